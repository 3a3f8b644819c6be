"""
Admin configuration service.

Reads and writes tool_configs / credit_config directly. Writes are not
pushed into the config cache; running processes pick them up when their
cache TTL expires.
"""
import json
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core import config
from app.core.credits import DAILY_FREE_CREDITS_KEY, DEFAULT_TOOL_CONFIGS, DEFAULT_TOOL_PRICING, TOOL_PRICING_KEY
from app.db.models import CreditConfig, ToolConfig

logger = logging.getLogger(__name__)


def _get_config_value(db: Session, key: str):
    row = db.query(CreditConfig).filter(CreditConfig.config_key == key).first()
    return row.config_value if row else None


def _set_config_value(db: Session, key: str, value: str) -> None:
    row = db.query(CreditConfig).filter(CreditConfig.config_key == key).first()
    if row:
        row.config_value = value
    else:
        db.add(CreditConfig(config_key=key, config_value=value))


def get_credit_config(db: Session) -> Dict[str, Any]:
    """Stored credit config, with defaults for missing or unparsable values."""
    daily_free_credits = config.DAILY_FREE_CREDITS
    raw_daily = _get_config_value(db, DAILY_FREE_CREDITS_KEY)
    if raw_daily is not None:
        try:
            daily_free_credits = int(raw_daily)
        except ValueError:
            logger.warning(f"Invalid stored daily_free_credits: {raw_daily!r}")

    tool_pricing = dict(DEFAULT_TOOL_PRICING)
    raw_pricing = _get_config_value(db, TOOL_PRICING_KEY)
    if raw_pricing is not None:
        try:
            tool_pricing = json.loads(raw_pricing)
        except ValueError:
            logger.warning("Invalid stored tool_pricing JSON")

    return {"daily_free_credits": daily_free_credits, "tool_pricing": tool_pricing}


def update_credit_config(db: Session, daily_free_credits: int = None, tool_pricing: Dict[str, float] = None) -> Dict[str, Any]:
    """
    Persist credit config values. None means leave unchanged.

    Raises:
        ValueError: negative values
    """
    if daily_free_credits is not None:
        if daily_free_credits < 0:
            raise ValueError("daily_free_credits must be >= 0")
        _set_config_value(db, DAILY_FREE_CREDITS_KEY, str(daily_free_credits))

    if tool_pricing is not None:
        if any(cost < 0 for cost in tool_pricing.values()):
            raise ValueError("Tool prices must be >= 0")
        _set_config_value(db, TOOL_PRICING_KEY, json.dumps(tool_pricing))

    db.commit()
    logger.info(f"Credit config updated: daily_free_credits={daily_free_credits}, tool_pricing={tool_pricing}")
    return get_credit_config(db)


def list_tool_configs(db: Session) -> List[Dict[str, Any]]:
    """All tool configs; the defaults when none are stored yet."""
    rows = db.query(ToolConfig).order_by(ToolConfig.tool_id).all()
    if not rows:
        return [dict(item) for item in DEFAULT_TOOL_CONFIGS]
    return [row.to_dict() for row in rows]


def upsert_tool_configs(db: Session, tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Insert or update tool configs by tool_id.

    Raises:
        ValueError: min_chars > max_chars, negative cooldown or multiplier
    """
    for item in tools:
        if item["min_chars"] > item["max_chars"]:
            raise ValueError(f"{item['tool_id']}: min_chars must be <= max_chars")
        if item["cooldown_seconds"] < 0:
            raise ValueError(f"{item['tool_id']}: cooldown_seconds must be >= 0")
        if item["cost_multiplier"] < 0:
            raise ValueError(f"{item['tool_id']}: cost_multiplier must be >= 0")

    for item in tools:
        row = db.query(ToolConfig).filter(ToolConfig.tool_id == item["tool_id"]).first()
        if row is None:
            row = ToolConfig(tool_id=item["tool_id"])
            db.add(row)
        for field_name, value in item.items():
            if field_name != "tool_id":
                setattr(row, field_name, value)

    db.commit()
    logger.info(f"Tool configs updated: {[item['tool_id'] for item in tools]}")
    return list_tool_configs(db)


def seed_defaults(db: Session) -> None:
    """Insert default tool configs and pricing where missing."""
    existing = {tool_id for (tool_id,) in db.query(ToolConfig.tool_id).all()}
    for item in DEFAULT_TOOL_CONFIGS:
        if item["tool_id"] not in existing:
            db.add(ToolConfig(**item))

    if _get_config_value(db, TOOL_PRICING_KEY) is None:
        db.add(CreditConfig(config_key=TOOL_PRICING_KEY, config_value=json.dumps(DEFAULT_TOOL_PRICING)))
    if _get_config_value(db, DAILY_FREE_CREDITS_KEY) is None:
        db.add(CreditConfig(config_key=DAILY_FREE_CREDITS_KEY, config_value=str(config.DAILY_FREE_CREDITS)))

    db.commit()
