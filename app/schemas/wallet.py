"""
Pydantic schemas for wallet endpoints.
"""
from typing import List
from pydantic import BaseModel, Field


class WalletResponse(BaseModel):
    """Response schema for GET /wallet."""
    user_id: int = Field(..., description="Wallet owner")
    free_credits: int = Field(..., ge=0, description="Free credits left today")
    paid_credits: int = Field(..., ge=0, description="Purchased credits")
    total_credits: int = Field(..., ge=0, description="free_credits + paid_credits")
    used_today: int = Field(..., ge=0, description="Free credits used today (UTC)")
    daily_free_limit: int = Field(..., ge=0, description="Daily free allowance")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "free_credits": 7,
                "paid_credits": 20,
                "total_credits": 27,
                "used_today": 3,
                "daily_free_limit": 10
            }
        }


class ToolCost(BaseModel):
    """Cost breakdown for one tool."""
    tool_type: str = Field(..., description="Tool identifier")
    base_cost: float = Field(..., description="Base price from tool pricing")
    multiplier: float = Field(..., description="Per-tool cost multiplier")
    credits_required: int = Field(..., description="ceil(base_cost * multiplier)")


class ToolCostsResponse(BaseModel):
    """Response schema for GET /wallet/costs."""
    tools: List[ToolCost]
