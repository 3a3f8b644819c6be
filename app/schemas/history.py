"""
Pydantic schemas for saved tool results.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.schemas.ai import MAX_TEXT_LENGTH

# Outputs such as question sets serialize larger than their input
MAX_OUTPUT_LENGTH = 5 * MAX_TEXT_LENGTH


class HistorySaveRequest(BaseModel):
    """Request schema for POST /history/save."""
    tool_type: str = Field(..., min_length=1, description="Tool that produced the result")
    input_text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH, description="Text the tool was run on")
    output_text: str = Field(..., min_length=1, max_length=MAX_OUTPUT_LENGTH, description="Tool output to keep")
    settings: Dict[str, Any] = Field(default_factory=dict, description="Mode, style or count used for the run")
    credits_used: int = Field(0, ge=0, description="Credits the run cost; taken from request_id when given")
    request_id: Optional[str] = Field(None, max_length=36, description="ID of the AI request that produced the result")

    class Config:
        json_schema_extra = {
            "example": {
                "tool_type": "summary",
                "input_text": "Photosynthesis converts light energy into chemical energy...",
                "output_text": "- Light energy is stored as glucose",
                "settings": {"mode": "bullet_list"},
                "request_id": "1c9a6a0e-4d0b-4b7e-9f55-1f0e9e6a2f10"
            }
        }


class HistoryPreview(BaseModel):
    """One entry in the history list."""
    id: int
    tool_type: str
    input_preview: str = Field(..., description="First 100 characters of the input")
    output_preview: str = Field(..., description="First 150 characters of the output")
    credits_used: int
    created_at: datetime


class HistoryEntry(BaseModel):
    """A saved result with full texts."""
    id: int
    request_id: Optional[str] = None
    tool_type: str
    input_text: str
    output_text: str
    settings: Dict[str, Any] = Field(default_factory=dict)
    credits_used: int
    created_at: datetime

    class Config:
        from_attributes = True


class HistoryListResponse(BaseModel):
    """Response schema for GET /history."""
    items: List[HistoryPreview]
    total: int = Field(..., description="Total saved results")
    page: int = Field(1, description="Current page number")
    limit: int = Field(20, description="Items per page")
    total_pages: int = Field(..., description="ceil(total / limit)")


class HistoryDeleteResponse(BaseModel):
    message: str
    deleted: int = Field(..., description="Number of entries removed")
