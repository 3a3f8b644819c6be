"""
AI request tracking.

Every tool invocation attempt gets an ai_requests row. It is created as
pending before the provider call and finished as success or failed.
These rows are the audit trail for debits and the input to cooldowns.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models import AIRequest, AIRequestStatus

logger = logging.getLogger(__name__)

# Stored error messages are truncated to this many characters
MAX_ERROR_MESSAGE_LENGTH = 1000


def create_pending(db: Session, user_id: int, tool_type: str, credits_used: int) -> AIRequest:
    """
    Insert a pending request row and commit it.

    credits_used is the cost snapshot the request will be charged.
    """
    record = AIRequest(
        user_id=user_id,
        tool_type=tool_type,
        credits_used=credits_used,
        status=AIRequestStatus.PENDING,
        created_at=datetime.now(timezone.utc),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.debug(f"AI request created: request_id={record.request_id}, user_id={user_id}, tool={tool_type}")
    return record


def _finish(db: Session, request_id: str, status: str, processing_time_ms: int, error_message: Optional[str] = None) -> Optional[AIRequest]:
    record = db.query(AIRequest).filter(AIRequest.request_id == request_id).first()
    if not record:
        logger.warning(f"AI request not found when finishing: request_id={request_id}")
        return None

    record.status = status
    record.processing_time_ms = max(0, int(processing_time_ms))
    record.completed_at = datetime.now(timezone.utc)
    if error_message is not None:
        record.error_message = error_message[:MAX_ERROR_MESSAGE_LENGTH]
    db.commit()
    db.refresh(record)
    return record


def mark_success(db: Session, request_id: str, processing_time_ms: int) -> Optional[AIRequest]:
    return _finish(db, request_id, AIRequestStatus.SUCCESS, processing_time_ms)


def mark_failed(db: Session, request_id: str, error_message: str, processing_time_ms: int = 0) -> Optional[AIRequest]:
    return _finish(db, request_id, AIRequestStatus.FAILED, processing_time_ms, error_message or "Unknown error")


def get_last_success_time(db: Session, user_id: int, tool_type: str) -> Optional[datetime]:
    """created_at of the user's most recent successful request for a tool."""
    return db.query(func.max(AIRequest.created_at)).filter(
        AIRequest.user_id == user_id,
        AIRequest.tool_type == tool_type,
        AIRequest.status == AIRequestStatus.SUCCESS,
    ).scalar()


def get_user_history(
    db: Session,
    user_id: int,
    tool_type: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[AIRequest], int]:
    """
    Get a page of the user's requests, newest first.

    Returns:
        Tuple of (requests on this page, total matching requests)
    """
    query = db.query(AIRequest).filter(AIRequest.user_id == user_id)
    if tool_type:
        query = query.filter(AIRequest.tool_type == tool_type)

    total = query.count()
    offset = (page - 1) * page_size
    items = query.order_by(AIRequest.created_at.desc(), AIRequest.id.desc()).offset(offset).limit(page_size).all()
    return items, total


def get_usage_stats(db: Session, user_id: int) -> Dict[str, Dict[str, int]]:
    """
    Per-tool totals of successful requests, credits spent and average latency.

    Returns:
        {tool_type: {"requests": n, "credits_used": n, "avg_processing_time_ms": n}}
    """
    rows = db.query(
        AIRequest.tool_type,
        func.count(AIRequest.id).label("requests"),
        func.coalesce(func.sum(AIRequest.credits_used), 0).label("credits_used"),
        func.coalesce(func.avg(AIRequest.processing_time_ms), 0).label("avg_ms"),
    ).filter(
        AIRequest.user_id == user_id,
        AIRequest.status == AIRequestStatus.SUCCESS,
    ).group_by(AIRequest.tool_type).all()

    return {
        tool_type: {
            "requests": int(requests),
            "credits_used": int(credits_used),
            "avg_processing_time_ms": int(round(float(avg_ms))),
        }
        for tool_type, requests, credits_used, avg_ms in rows
    }
