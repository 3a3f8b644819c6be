"""
Pydantic schemas for usage endpoints.
"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class AIRequestEntry(BaseModel):
    """A single tracked AI request."""
    request_id: str = Field(..., description="Request ID")
    tool_type: str = Field(..., description="Tool used (summary, questions, explain, rewrite)")
    status: str = Field(..., description="pending, success or failed")
    credits_used: int = Field(..., description="Cost snapshot of the request")
    processing_time_ms: int = Field(0, description="AI call duration in milliseconds")
    error_message: Optional[str] = Field(None, description="Failure reason, if any")
    created_at: datetime = Field(..., description="When the request started")
    completed_at: Optional[datetime] = Field(None, description="When the request finished")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "request_id": "1c9a6a0e-4d0b-4b7e-9f55-1f0e9e6a2f10",
                "tool_type": "summary",
                "status": "success",
                "credits_used": 1,
                "processing_time_ms": 842,
                "error_message": None,
                "created_at": "2026-01-15T10:30:00Z",
                "completed_at": "2026-01-15T10:30:01Z"
            }
        }


class UsageListResponse(BaseModel):
    """Response schema for GET /users/me/usage."""
    entries: List[AIRequestEntry] = Field(..., description="Requests on this page, newest first")
    total: int = Field(..., description="Total number of matching requests")
    page: int = Field(1, description="Current page number")
    page_size: int = Field(20, description="Number of items per page")


class ToolUsageStats(BaseModel):
    tool_type: str
    requests: int = Field(..., description="Successful requests")
    credits_used: int = Field(..., description="Credits spent on successful requests")
    avg_processing_time_ms: int = Field(..., description="Average AI call duration")


class UsageStatsResponse(BaseModel):
    """Response schema for GET /users/me/usage/stats."""
    tools: List[ToolUsageStats]
    total_requests: int
    total_credits_used: int


class UserCredits(BaseModel):
    free_credits: int
    paid_credits: int
    total_credits: int


class UserProfileResponse(BaseModel):
    """Response schema for GET /users/me."""
    id: int
    email: str
    full_name: str
    role: str
    created_at: Optional[datetime] = None
    credits: UserCredits

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "email": "student@example.com",
                "full_name": "Test Student",
                "role": "user",
                "created_at": "2026-01-15T10:30:00Z",
                "credits": {"free_credits": 7, "paid_credits": 20, "total_credits": 27}
            }
        }
