"""
Usage gate: per-tool enabled flag and per-user cooldown.

Cooldowns are measured from the created_at of the user's latest
*successful* request for the tool. Failed and pending requests never
start a cooldown.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import CooldownActive, ToolDisabled
from app.services.ai_request_service import get_last_success_time
from app.services.config_cache import ConfigCache, get_config_cache

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class CooldownStatus:
    allowed: bool
    remaining_seconds: int = 0


class UsageGate:
    def __init__(self, cache: ConfigCache, clock: Callable[[], datetime] = utc_now):
        self.cache = cache
        self._clock = clock

    def check_enabled(self, tool_type: str) -> None:
        """Raise ToolDisabled if an administrator switched the tool off."""
        if not self.cache.is_tool_enabled(tool_type):
            logger.info(f"Tool disabled: {tool_type}")
            raise ToolDisabled(tool_type)

    def check_cooldown(
        self,
        db: Session,
        user_id: int,
        tool_type: str,
        now: Optional[datetime] = None,
    ) -> CooldownStatus:
        """
        Check whether the user may use the tool again yet.

        remaining = cooldown - floor(seconds since last success). The user
        is allowed when there is no configured cooldown, no previous
        success, or remaining <= 0.
        """
        cooldown = self.cache.get_cooldown_seconds(tool_type)
        if cooldown <= 0:
            return CooldownStatus(allowed=True)

        last_success = get_last_success_time(db, user_id, tool_type)
        if last_success is None:
            return CooldownStatus(allowed=True)

        now = now or self._clock()
        elapsed = math.floor((_as_utc(now) - _as_utc(last_success)).total_seconds())
        remaining = cooldown - elapsed
        if remaining > 0:
            return CooldownStatus(allowed=False, remaining_seconds=remaining)
        return CooldownStatus(allowed=True)

    def enforce(self, db: Session, user_id: int, tool_type: str) -> None:
        """
        Run both gates.

        Raises:
            ToolDisabled: tool is switched off
            CooldownActive: user is still cooling down
        """
        self.check_enabled(tool_type)
        status = self.check_cooldown(db, user_id, tool_type)
        if not status.allowed:
            logger.info(
                f"Cooldown active: user_id={user_id}, tool={tool_type}, "
                f"remaining={status.remaining_seconds}s"
            )
            raise CooldownActive(tool_type, status.remaining_seconds)


def get_usage_gate() -> UsageGate:
    """FastAPI dependency returning a gate bound to the shared config cache."""
    return UsageGate(get_config_cache())
