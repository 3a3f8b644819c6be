"""
Pydantic schemas for admin configuration endpoints.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, model_validator


class CreditConfigResponse(BaseModel):
    daily_free_credits: int = Field(..., description="Daily free allowance per user")
    tool_pricing: Dict[str, float] = Field(..., description="Base cost per tool")


class CreditConfigUpdate(BaseModel):
    """PUT /admin/credits/config; omitted fields are left unchanged."""
    daily_free_credits: Optional[int] = Field(None, ge=0, description="Daily free allowance per user")
    tool_pricing: Optional[Dict[str, float]] = Field(None, description="Base cost per tool")

    @model_validator(mode="after")
    def validate_pricing(self):
        if self.tool_pricing is not None:
            for tool, cost in self.tool_pricing.items():
                if cost < 0:
                    raise ValueError(f"Price for {tool} must be >= 0")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "daily_free_credits": 10,
                "tool_pricing": {"summary": 1, "questions": 2, "explain": 1, "rewrite": 1}
            }
        }


class ToolConfigItem(BaseModel):
    """One tool's admin settings."""
    tool_id: str = Field(..., min_length=1, max_length=50)
    tool_name: str = Field(..., min_length=1)
    description: Optional[str] = None
    enabled: bool = True
    min_chars: int = Field(0, ge=0)
    max_chars: int = Field(10000, ge=1)
    cooldown_seconds: int = Field(0, ge=0)
    cost_multiplier: float = Field(1.0, ge=0)
    model_provider: Optional[str] = None
    model_name: Optional[str] = None

    @model_validator(mode="after")
    def validate_char_bounds(self):
        if self.min_chars > self.max_chars:
            raise ValueError("min_chars must be <= max_chars")
        return self


class ToolConfigsUpdate(BaseModel):
    """PUT /admin/tools/config; each listed tool is upserted."""
    tools: List[ToolConfigItem] = Field(..., min_length=1)


class ToolConfigsResponse(BaseModel):
    tools: List[ToolConfigItem]


class AddCreditsRequest(BaseModel):
    amount: int = Field(..., gt=0, le=1_000_000, description="Paid credits to add")
    reason: Optional[str] = Field(None, max_length=500, description="Logged with the top-up")
