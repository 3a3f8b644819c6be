"""
Pydantic schemas for AI tool endpoints.
"""
from typing import Any, Dict, List, Literal
from pydantic import BaseModel, Field, field_validator

# Hard ceiling on input size; per-tool limits from tool_configs apply on top
MAX_TEXT_LENGTH = 10000


class ToolTextRequest(BaseModel):
    """Common input of every AI tool."""
    text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH, description="Study material to process")

    @field_validator("text")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Text must not be empty")
        return v


class SummaryRequest(ToolTextRequest):
    mode: Literal["key_points", "easy_read", "bullet_list", "ultra_short"] = Field(
        "key_points", description="Summary style"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "text": "Photosynthesis is the process by which green plants ...",
                "mode": "key_points"
            }
        }


class QuestionsRequest(ToolTextRequest):
    question_type: Literal["mcq", "short", "true_false", "fill_blank"] = Field(
        "mcq", description="Kind of questions to generate"
    )
    count: int = Field(5, ge=1, le=10, description="Number of questions (1-10)")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "The French Revolution began in 1789 ...",
                "question_type": "mcq",
                "count": 5
            }
        }


class ExplainRequest(ToolTextRequest):
    mode: Literal["easy", "exam", "friend", "deep_analysis"] = Field("easy", description="Explanation style")
    with_examples: bool = Field(True, description="Include examples in the explanation")


class RewriteRequest(ToolTextRequest):
    style: Literal["simple", "academic", "student", "practical"] = Field("simple", description="Target writing style")


class EstimateRequest(BaseModel):
    tool_type: str = Field(..., min_length=1, description="Tool identifier (summary, questions, explain, rewrite)")


class EstimateResponse(BaseModel):
    tool_type: str
    credits_required: int


class ToolRunMeta(BaseModel):
    """Billing metadata attached to every AI tool response."""
    request_id: str = Field(..., description="ID of the tracked AI request")
    credits_used: int = Field(..., description="Credits debited for this call")
    remaining_credits: int = Field(..., description="Total credits left after the debit")
    processing_time_ms: int = Field(..., description="AI call duration in milliseconds")


class SummaryResponse(ToolRunMeta):
    summary: str
    mode: str


class QuestionsResponse(ToolRunMeta):
    questions: List[Dict[str, Any]]
    question_type: str
    count: int


class ExplainResponse(ToolRunMeta):
    explanation: str
    mode: str


class RewriteResponse(ToolRunMeta):
    rewritten_text: str
    style: str

    class Config:
        json_schema_extra = {
            "example": {
                "rewritten_text": "Plants use sunlight to make food ...",
                "style": "simple",
                "request_id": "1c9a6a0e-4d0b-4b7e-9f55-1f0e9e6a2f10",
                "credits_used": 1,
                "remaining_credits": 9,
                "processing_time_ms": 842
            }
        }
