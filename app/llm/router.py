"""
Model router: picks the model for each study tool.

An administrator-configured model_name in tool_configs wins over the
static routing table.
"""
import logging
from typing import Optional
from app.core.config import OPENAI_API_KEY, OPENAI_MODEL

logger = logging.getLogger(__name__)

# Tool -> model mapping
MODEL_ROUTING = {
    "summary": OPENAI_MODEL,
    "questions": OPENAI_MODEL,
    "explain": OPENAI_MODEL,
    "rewrite": OPENAI_MODEL,
}

# Sampling temperature per tool
TOOL_TEMPERATURE = {
    "summary": 0.3,
    "questions": 0.7,
    "explain": 0.5,
    "rewrite": 0.7,
}


def get_model_for_tool(tool_type: str, configured_model: Optional[str] = None) -> str:
    """
    Get the model for a tool.

    Args:
        tool_type: Tool identifier
        configured_model: model_name from the tool's config row, if any

    Returns:
        Model identifier string
    """
    if configured_model:
        return configured_model
    return MODEL_ROUTING.get(tool_type, OPENAI_MODEL)


def get_temperature_for_tool(tool_type: str) -> float:
    return TOOL_TEMPERATURE.get(tool_type, 0.7)


def is_model_available() -> bool:
    """Check if an AI provider is configured."""
    return bool(OPENAI_API_KEY)
