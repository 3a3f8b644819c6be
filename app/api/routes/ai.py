"""
AI study tool endpoints.

Every tool call goes through the orchestrator: gate checks, balance
check, tracked AI call, then the debit. Credit errors are turned into
structured JSON by the handler registered in app.main.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_current_user, get_db
from app.core.credits import is_supported_tool
from app.core.exceptions import InvalidTool
from app.core.rate_limit import ai_rate_limit
from app.schemas.ai import (
    EstimateRequest,
    EstimateResponse,
    ExplainRequest,
    ExplainResponse,
    QuestionsRequest,
    QuestionsResponse,
    RewriteRequest,
    RewriteResponse,
    SummaryRequest,
    SummaryResponse,
)
from app.services.ai_service import StudyAIService, get_ai_service
from app.services.orchestrator import ToolRunResult, run_tool
from app.services.usage_gate import UsageGate, get_usage_gate
from app.services.wallet_service import CreditLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"], dependencies=[Depends(ai_rate_limit)])


# ============================================
# Helper Functions
# ============================================

def _validate_text_length(ledger: CreditLedger, tool_type: str, text: str) -> None:
    """Enforce the tool's configured min/max character bounds."""
    min_chars, max_chars = ledger.cache.get_char_limits(tool_type)
    length = len(text)
    if min_chars is not None and length < min_chars:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Text is too short for this tool (minimum {min_chars} characters)"
        )
    if max_chars is not None and length > max_chars:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Text is too long for this tool (maximum {max_chars} characters)"
        )


def _meta(result: ToolRunResult) -> dict:
    return {
        "request_id": result.request_id,
        "credits_used": result.credits_used,
        "remaining_credits": result.remaining_credits,
        "processing_time_ms": result.processing_time_ms,
    }


# ============================================
# Tool Endpoints
# ============================================

@router.post("/summary", response_model=SummaryResponse)
def summarize(
    payload: SummaryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
    gate: UsageGate = Depends(get_usage_gate),
    ai: StudyAIService = Depends(get_ai_service),
):
    """Summarize study material in one of four modes."""
    _validate_text_length(ledger, "summary", payload.text)
    result = run_tool(
        db, user.id, "summary",
        lambda: ai.generate_summary(payload.text, payload.mode),
        ledger, gate,
    )
    return SummaryResponse(summary=result.output, mode=payload.mode, **_meta(result))


@router.post("/questions", response_model=QuestionsResponse)
def generate_questions(
    payload: QuestionsRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
    gate: UsageGate = Depends(get_usage_gate),
    ai: StudyAIService = Depends(get_ai_service),
):
    """Generate practice questions from study material."""
    _validate_text_length(ledger, "questions", payload.text)
    result = run_tool(
        db, user.id, "questions",
        lambda: ai.generate_questions(payload.text, payload.question_type, payload.count),
        ledger, gate,
    )
    return QuestionsResponse(
        questions=result.output,
        question_type=payload.question_type,
        count=len(result.output),
        **_meta(result),
    )


@router.post("/explain", response_model=ExplainResponse)
def explain(
    payload: ExplainRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
    gate: UsageGate = Depends(get_usage_gate),
    ai: StudyAIService = Depends(get_ai_service),
):
    """Explain study material in the requested style."""
    _validate_text_length(ledger, "explain", payload.text)
    result = run_tool(
        db, user.id, "explain",
        lambda: ai.generate_explanation(payload.text, payload.mode, payload.with_examples),
        ledger, gate,
    )
    return ExplainResponse(explanation=result.output, mode=payload.mode, **_meta(result))


@router.post("/rewrite", response_model=RewriteResponse)
def rewrite(
    payload: RewriteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
    gate: UsageGate = Depends(get_usage_gate),
    ai: StudyAIService = Depends(get_ai_service),
):
    """Rewrite text in another style."""
    _validate_text_length(ledger, "rewrite", payload.text)
    result = run_tool(
        db, user.id, "rewrite",
        lambda: ai.rewrite_text(payload.text, payload.style),
        ledger, gate,
    )
    return RewriteResponse(rewritten_text=result.output, style=payload.style, **_meta(result))


@router.post("/estimate", response_model=EstimateResponse)
def estimate_cost(
    payload: EstimateRequest,
    user: User = Depends(get_current_user),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Credits a tool call would cost right now. Nothing is charged."""
    if not is_supported_tool(payload.tool_type):
        raise InvalidTool(payload.tool_type)
    cost = ledger.get_credit_cost(payload.tool_type)
    if cost <= 0:
        raise InvalidTool(payload.tool_type)
    return EstimateResponse(tool_type=payload.tool_type, credits_required=cost)
