"""
Current user endpoints.

Profile with balances, timeline of the user's AI requests and per-tool totals.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_current_user, get_db
from app.schemas.usage import (
    AIRequestEntry,
    ToolUsageStats,
    UsageListResponse,
    UsageStatsResponse,
    UserCredits,
    UserProfileResponse,
)
from app.services import ai_request_service
from app.services.wallet_service import CreditLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/me", tags=["Users"])


@router.get("", status_code=status.HTTP_200_OK, response_model=UserProfileResponse)
def get_me(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Authenticated user with today's balances."""
    wallet = ledger.get_wallet(db, user.id)
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        created_at=user.created_at,
        credits=UserCredits(
            free_credits=wallet.free_credits,
            paid_credits=wallet.paid_credits,
            total_credits=wallet.total_credits,
        ),
    )


@router.get("/usage", status_code=status.HTTP_200_OK, response_model=UsageListResponse)
def get_usage(
    tool_type: Optional[str] = Query(None, description="Filter by tool"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Paginated AI request log, newest first."""
    items, total = ai_request_service.get_user_history(
        db, user.id, tool_type=tool_type, page=page, page_size=page_size
    )
    return UsageListResponse(
        entries=[AIRequestEntry.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/usage/stats", status_code=status.HTTP_200_OK, response_model=UsageStatsResponse)
def get_usage_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Per-tool counts of successful requests and credits spent."""
    stats = ai_request_service.get_usage_stats(db, user.id)
    tools = [ToolUsageStats(tool_type=tool_type, **values) for tool_type, values in sorted(stats.items())]
    return UsageStatsResponse(
        tools=tools,
        total_requests=sum(t.requests for t in tools),
        total_credits_used=sum(t.credits_used for t in tools),
    )
