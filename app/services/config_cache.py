"""
Process-wide cache of tool configuration and credit pricing.

Reads are served from an immutable snapshot. A read refreshes the snapshot
from the database only when it is older than the TTL, so administrator
edits become visible after at most one TTL window. Refresh failures keep
the previous snapshot (or the hardcoded defaults on a cold start) and are
only logged.
"""
import json
import logging
import math
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from app.core import config
from app.core.credits import (
    DAILY_FREE_CREDITS_KEY,
    DEFAULT_COOLDOWN_SECONDS,
    DEFAULT_COST_MULTIPLIER,
    DEFAULT_TOOL_PRICING,
    TOOL_PRICING_KEY,
)
from app.db.models import CreditConfig, ToolConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    """
    Configuration as loaded from storage at one point in time.

    The mappings are copied on construction and exposed read-only, so a
    published snapshot never changes under its readers.
    """
    tools: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    pricing: Optional[Mapping[str, Any]] = None
    daily_free_credits: Optional[int] = None

    def __post_init__(self):
        tools = {tool_id: MappingProxyType(dict(values)) for tool_id, values in self.tools.items()}
        object.__setattr__(self, "tools", MappingProxyType(tools))
        if self.pricing is not None:
            object.__setattr__(self, "pricing", MappingProxyType(dict(self.pricing)))


def load_snapshot_from_db(session_factory: Callable[[], Session]) -> ConfigSnapshot:
    """
    Load tool configs and credit config rows into a snapshot.
    
    Unparsable credit_config values are logged and left unset so the
    hardcoded defaults apply. Database errors propagate to the cache.
    """
    db = session_factory()
    try:
        tools = {row.tool_id: row.to_dict() for row in db.query(ToolConfig).all()}
        rows = {
            row.config_key: row.config_value
            for row in db.query(CreditConfig).filter(
                CreditConfig.config_key.in_([TOOL_PRICING_KEY, DAILY_FREE_CREDITS_KEY])
            )
        }
    finally:
        db.close()

    pricing = None
    if TOOL_PRICING_KEY in rows:
        try:
            parsed = json.loads(rows[TOOL_PRICING_KEY])
            if isinstance(parsed, dict):
                pricing = parsed
            else:
                logger.warning("tool_pricing config is not a JSON object, using defaults")
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to parse tool_pricing config, using defaults: {e}")

    daily_free_credits = None
    if DAILY_FREE_CREDITS_KEY in rows:
        try:
            daily_free_credits = max(0, int(rows[DAILY_FREE_CREDITS_KEY]))
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to parse daily_free_credits config, using default: {e}")

    return ConfigSnapshot(tools=tools, pricing=pricing, daily_free_credits=daily_free_credits)


def _to_float(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) or math.isinf(number) else number


class ConfigCache:
    """
    TTL cache over a ConfigSnapshot loader.
    
    Args:
        loader: Callable returning a fresh ConfigSnapshot (hits storage)
        ttl_seconds: Maximum snapshot age before a read triggers a refresh
        clock: Monotonic time source in seconds, injectable for tests
    """

    def __init__(
        self,
        loader: Callable[[], ConfigSnapshot],
        ttl_seconds: float = config.CONFIG_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        # (snapshot, loaded_at) replaced as one object; concurrent refreshes are last-writer-wins
        self._state: Optional[Tuple[ConfigSnapshot, float]] = None

    def refresh(self) -> Optional[ConfigSnapshot]:
        """Reload from storage. On failure keep whatever was cached before."""
        try:
            snapshot = self._loader()
        except Exception as e:
            if self._state is None:
                logger.error(f"Config refresh failed with no cached config, using defaults: {e}")
            else:
                logger.warning(f"Config refresh failed, serving last good config: {e}")
            return self._state[0] if self._state else None

        self._state = (snapshot, self._clock())
        logger.debug(f"Config cache refreshed: {len(snapshot.tools)} tool configs")
        return snapshot

    def invalidate(self) -> None:
        """Force the next read to reload. Admin writes deliberately do not call this."""
        self._state = None

    def snapshot(self) -> Optional[ConfigSnapshot]:
        state = self._state
        if state is None or self._clock() - state[1] >= self._ttl:
            return self.refresh()
        return state[0]

    # ------------------------------------------------------------------
    # Tool config lookups
    # ------------------------------------------------------------------

    def get_tool_config(self, tool_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.snapshot()
        if snapshot is None:
            return None
        tool = snapshot.tools.get(tool_id)
        return dict(tool) if tool is not None else None

    def get_cost_multiplier(self, tool_id: str) -> float:
        """Multiplier for a tool; 1.0 when unconfigured or unparsable."""
        tool = self.get_tool_config(tool_id)
        if not tool or tool.get("cost_multiplier") is None:
            return DEFAULT_COST_MULTIPLIER
        multiplier = _to_float(tool["cost_multiplier"])
        return DEFAULT_COST_MULTIPLIER if multiplier is None else multiplier

    def get_cooldown_seconds(self, tool_id: str) -> int:
        """Cooldown for a tool; 0 when unconfigured or unparsable."""
        tool = self.get_tool_config(tool_id)
        if not tool or tool.get("cooldown_seconds") is None:
            return DEFAULT_COOLDOWN_SECONDS
        try:
            return int(tool["cooldown_seconds"])
        except (TypeError, ValueError):
            return DEFAULT_COOLDOWN_SECONDS

    def is_tool_enabled(self, tool_id: str) -> bool:
        """Enabled flag; unconfigured tools are enabled (fail-open)."""
        tool = self.get_tool_config(tool_id)
        if not tool:
            return True
        return bool(tool.get("enabled", True))

    def get_char_limits(self, tool_id: str) -> Tuple[Optional[int], Optional[int]]:
        """(min_chars, max_chars) for a tool, None where unconfigured."""
        tool = self.get_tool_config(tool_id)
        if not tool:
            return None, None
        return tool.get("min_chars"), tool.get("max_chars")

    # ------------------------------------------------------------------
    # Pricing lookups
    # ------------------------------------------------------------------

    def get_tool_pricing(self) -> Dict[str, Any]:
        snapshot = self.snapshot()
        if snapshot is None or not snapshot.pricing:
            return dict(DEFAULT_TOOL_PRICING)
        return dict(snapshot.pricing)

    def get_base_cost(self, tool_id: str) -> float:
        """Base price of a tool; 0 for unknown tools or unparsable prices."""
        value = _to_float(self.get_tool_pricing().get(tool_id))
        return value if value is not None else 0

    def get_daily_free_credits(self) -> int:
        snapshot = self.snapshot()
        if snapshot is None or snapshot.daily_free_credits is None:
            return config.DAILY_FREE_CREDITS
        return snapshot.daily_free_credits


def _default_loader() -> ConfigSnapshot:
    from app.db.session import SessionLocal
    return load_snapshot_from_db(SessionLocal)


# Shared instance used by the API
config_cache = ConfigCache(loader=_default_loader)


def get_config_cache() -> ConfigCache:
    """FastAPI dependency returning the shared config cache."""
    return config_cache
