"""
Logging configuration for the Hidn study API.

Root logger writes to stdout and, unless LOG_TO_FILE=0, to a rotating
logs/hidn.log. Both handlers mask bearer tokens and OpenAI keys that end
up inside log messages.
"""
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List, Optional

REDACTED = "***REDACTED***"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "hidn.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Loggers that are noisy at INFO: server access lines and provider HTTP traffic
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "openai", "httpx", "httpcore")

_SENSITIVE_KEY_PARTS = ("password", "token", "secret", "key", "authorization", "database_url")

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-_\.=]+", re.IGNORECASE),
    re.compile(r"()sk-[A-Za-z0-9\-_]{8,}"),
)


def mask_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
    return text


class SecretMaskingFilter(logging.Filter):
    """Rewrites the record message with credentials masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _build_handlers(level: int, log_dir: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            path / LOG_FILE_NAME,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        ))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    secret_filter = SecretMaskingFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(secret_filter)
    return handlers


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs") -> None:
    """
    Configure application logging.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        log_dir: Directory for the rotating log file, or None for stdout only
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in _build_handlers(level, log_dir):
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def sanitize_log_data(data: Any) -> Any:
    """
    Copy of `data` safe to log.

    Values under secret-like keys are replaced at any nesting depth; other
    strings have bearer tokens and API keys masked.
    """
    if isinstance(data, dict):
        return {
            k: REDACTED if any(part in str(k).lower() for part in _SENSITIVE_KEY_PARTS) else sanitize_log_data(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return type(data)(sanitize_log_data(item) for item in data)
    if isinstance(data, str):
        return mask_secrets(data)
    return data
