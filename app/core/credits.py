"""
Credit pricing and tool configuration defaults.

Single source of truth for the hardcoded fallbacks used when the
credit_config / tool_configs tables are empty or unreachable.
"""
from typing import Dict, List, Any

# Supported AI tools
SUPPORTED_TOOLS: List[str] = [
    "summary",
    "questions",
    "explain",
    "rewrite",
]

# Base credit cost per tool (before multiplier)
DEFAULT_TOOL_PRICING: Dict[str, int] = {
    "summary": 1,
    "questions": 2,
    "explain": 1,
    "rewrite": 1,
}

# Keys in the credit_config table
TOOL_PRICING_KEY = "tool_pricing"
DAILY_FREE_CREDITS_KEY = "daily_free_credits"

DEFAULT_COST_MULTIPLIER = 1.0
DEFAULT_COOLDOWN_SECONDS = 0

# Per-tool admin settings (seeded into tool_configs, shown to admins when the table is empty)
DEFAULT_TOOL_CONFIGS: List[Dict[str, Any]] = [
    {
        "tool_id": "summary",
        "tool_name": "Text summary",
        "description": "Condense long text into its key points",
        "enabled": True,
        "min_chars": 100,
        "max_chars": 10000,
        "cooldown_seconds": 5,
        "cost_multiplier": 1.0,
        "model_provider": "openai",
        "model_name": "gpt-4o-mini",
    },
    {
        "tool_id": "questions",
        "tool_name": "Question generator",
        "description": "Generate practice questions from study material",
        "enabled": True,
        "min_chars": 100,
        "max_chars": 8000,
        "cooldown_seconds": 5,
        "cost_multiplier": 1.0,
        "model_provider": "openai",
        "model_name": "gpt-4o-mini",
    },
    {
        "tool_id": "explain",
        "tool_name": "Explanation",
        "description": "Explain complex content in detail",
        "enabled": True,
        "min_chars": 50,
        "max_chars": 5000,
        "cooldown_seconds": 3,
        "cost_multiplier": 2.0,
        "model_provider": "openai",
        "model_name": "gpt-4o-mini",
    },
    {
        "tool_id": "rewrite",
        "tool_name": "Rewrite",
        "description": "Paraphrase text in a different style",
        "enabled": True,
        "min_chars": 50,
        "max_chars": 5000,
        "cooldown_seconds": 3,
        "cost_multiplier": 1.0,
        "model_provider": "openai",
        "model_name": "gpt-4o-mini",
    },
]


def is_supported_tool(tool_type: str) -> bool:
    """Check if the tool identifier is one of the known AI tools."""
    return tool_type in SUPPORTED_TOOLS
