"""
Request orchestrator for paid AI tool runs.

Sequence for one request:

    enabled? -> cooldown? -> cost snapshot -> balance check
    -> pending record -> AI call -> debit -> success record

Credits are only debited after the AI call succeeds, so a failed call
costs nothing. The cost is computed once and the same value is used for
the balance check, the pending record and the debit.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.core.exceptions import AIServiceError, CreditError, InsufficientCredits
from app.services import ai_request_service
from app.services.usage_gate import UsageGate
from app.services.wallet_service import CreditLedger

logger = logging.getLogger(__name__)


@dataclass
class ToolRunResult:
    output: Any
    credits_used: int
    processing_time_ms: int
    remaining_credits: int
    request_id: str


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def run_tool(
    db: Session,
    user_id: int,
    tool_type: str,
    invoke: Callable[[], Any],
    ledger: CreditLedger,
    gate: UsageGate,
) -> ToolRunResult:
    """
    Run one paid AI tool invocation for a user.

    Args:
        db: Database session
        user_id: Authenticated user ID
        tool_type: Tool identifier (summary, questions, explain, rewrite)
        invoke: Zero-argument callable performing the AI call
        ledger: Credit ledger
        gate: Usage gate

    Returns:
        ToolRunResult with the AI output and the post-debit balance

    Raises:
        ToolDisabled, CooldownActive: gate rejected the request
        InvalidTool: tool has no positive cost
        InsufficientCredits: balance too low before or at debit time
        AIServiceError: the AI call failed (nothing debited)
    """
    gate.enforce(db, user_id, tool_type)

    cost = ledger.get_credit_cost(tool_type)
    if not ledger.has_enough_credits(db, user_id, tool_type, cost=cost):
        wallet = ledger.get_wallet(db, user_id)
        raise InsufficientCredits(required=cost, available=wallet.total_credits)

    record = ai_request_service.create_pending(db, user_id, tool_type, cost)
    start = time.monotonic()

    try:
        output = invoke()
    except Exception as e:
        processing_ms = _elapsed_ms(start)
        ai_request_service.mark_failed(db, record.request_id, str(e), processing_ms)
        logger.error(
            f"AI call failed: request_id={record.request_id}, user_id={user_id}, "
            f"tool={tool_type}: {type(e).__name__}: {e}"
        )
        if isinstance(e, AIServiceError):
            raise
        raise AIServiceError(cause=str(e)) from e

    processing_ms = _elapsed_ms(start)

    try:
        wallet = ledger.deduct_credits(db, user_id, tool_type, cost=cost)
    except Exception as e:
        # Balance changed or the database failed during the debit; the output is not delivered
        reason = e.message if isinstance(e, CreditError) else f"{type(e).__name__}: {e}"
        ai_request_service.mark_failed(db, record.request_id, f"Debit failed: {reason}", processing_ms)
        logger.error(
            f"Debit failed after AI call: request_id={record.request_id}, user_id={user_id}, "
            f"tool={tool_type}: {reason}"
        )
        raise

    ai_request_service.mark_success(db, record.request_id, processing_ms)
    logger.info(
        f"Tool run completed: request_id={record.request_id}, user_id={user_id}, "
        f"tool={tool_type}, credits={cost}, time_ms={processing_ms}"
    )

    return ToolRunResult(
        output=output,
        credits_used=cost,
        processing_time_ms=processing_ms,
        remaining_credits=wallet.total_credits,
        request_id=record.request_id,
    )
