"""
Credit and usage-gate exceptions.

Structured domain errors raised by the ledger, the usage gate and the
request orchestrator. The API layer converts them to JSON responses via
a single exception handler registered in app.main.
"""
from typing import Optional


class CreditError(Exception):
    """
    Base exception for all credit-related errors.

    Attributes:
        message: Human-readable message returned to the client
        code: Stable machine-readable error code
        status_code: HTTP status the API layer responds with
        details: Extra structured fields merged into the response payload
    """

    status_code = 400

    def __init__(self, message: str, code: str = "CREDIT_ERROR", details: dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_detail(self) -> dict:
        """Convert exception to the structured `detail` payload."""
        return {
            "detail": self.message,
            "code": self.code,
            **self.details,
        }


class WalletNotFound(CreditError):
    """
    Raised when a user has no wallet row.

    Every user gets a wallet at registration, so this is a data-integrity
    violation. The user id is kept on the exception for logging only and
    is not exposed in the response payload.
    """

    status_code = 404

    def __init__(self, user_id: int):
        super().__init__(message="Wallet not found", code="WALLET_NOT_FOUND")
        self.user_id = user_id


class InvalidTool(CreditError):
    """Raised for an unknown or misconfigured tool (computed cost <= 0)."""

    status_code = 400

    def __init__(self, tool_type: str):
        super().__init__(
            message="Invalid tool type",
            code="INVALID_TOOL",
            details={"tool_type": tool_type},
        )
        self.tool_type = tool_type


class InsufficientCredits(CreditError):
    """
    Raised when the wallet cannot cover the cost of an operation.

    Attributes:
        required: Credits required for the operation
        available: Credits available (free + paid) when the check ran
    """

    status_code = 402

    def __init__(self, required: int, available: int):
        super().__init__(
            message="Insufficient credits for this operation",
            code="INSUFFICIENT_CREDITS",
            details={
                "required": required,
                "available": available,
                "shortfall": max(0, required - available),
            },
        )
        self.required = required
        self.available = available


class ToolDisabled(CreditError):
    """Raised when an administrator has disabled the tool."""

    status_code = 403

    def __init__(self, tool_type: str):
        super().__init__(
            message="This tool is temporarily unavailable",
            code="TOOL_DISABLED",
            details={"tool_type": tool_type},
        )
        self.tool_type = tool_type


class CooldownActive(CreditError):
    """Raised when the user must wait before using the tool again."""

    status_code = 429

    def __init__(self, tool_type: str, remaining_seconds: int):
        super().__init__(
            message=f"Please wait {remaining_seconds} seconds before using this tool again",
            code="COOLDOWN_ACTIVE",
            details={
                "tool_type": tool_type,
                "remaining_seconds": remaining_seconds,
            },
        )
        self.tool_type = tool_type
        self.remaining_seconds = remaining_seconds


class AIServiceError(CreditError):
    """Raised when the external AI provider fails. No credits are charged."""

    status_code = 502

    def __init__(self, message: str = "AI service temporarily unavailable. Please try again later.", cause: Optional[str] = None):
        super().__init__(message=message, code="AI_SERVICE_ERROR")
        self.cause = cause
