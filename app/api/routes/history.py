"""
Saved tool results.

Results are saved explicitly by the client after a tool run; listing
returns previews, GET /history/{id} the full texts.
"""
import logging
import math
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_current_user, get_db
from app.schemas.history import (
    HistoryDeleteResponse,
    HistoryEntry,
    HistoryListResponse,
    HistoryPreview,
    HistorySaveRequest,
)
from app.services import history_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["History"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="History entry not found")


@router.post("/save", status_code=status.HTTP_201_CREATED, response_model=HistoryEntry)
def save_to_history(
    payload: HistorySaveRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Keep a tool result. InvalidTool is rendered by the credit error handler."""
    try:
        entry = history_service.save_entry(db, user.id, **payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HistoryEntry.model_validate(entry)


@router.get("", status_code=status.HTTP_200_OK, response_model=HistoryListResponse)
def get_history(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    items, total = history_service.list_entries(db, user.id, page=page, limit=limit)
    logger.debug(f"History listed: user_id={user.id}, total={total}, page={page}")
    return HistoryListResponse(
        items=[HistoryPreview(**item) for item in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.get("/{entry_id}", status_code=status.HTTP_200_OK, response_model=HistoryEntry)
def get_history_item(
    entry_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entry = history_service.get_entry(db, user.id, entry_id)
    if entry is None:
        raise _not_found()
    return HistoryEntry.model_validate(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_200_OK, response_model=HistoryDeleteResponse)
def delete_history_item(
    entry_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not history_service.delete_entry(db, user.id, entry_id):
        raise _not_found()
    return HistoryDeleteResponse(message="History entry deleted", deleted=1)


@router.delete("", status_code=status.HTTP_200_OK, response_model=HistoryDeleteResponse)
def delete_all_history(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    deleted = history_service.delete_all(db, user.id)
    return HistoryDeleteResponse(message=f"Deleted {deleted} history entries", deleted=deleted)
