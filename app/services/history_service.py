"""
Saved tool results ("history").

Tool runs never write here on their own; the client saves a result it
wants to keep. Listing returns short previews, fetching one entry returns
the full texts.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.credits import is_supported_tool
from app.core.exceptions import InvalidTool
from app.db.models import AIRequest, AIRequestStatus, History

logger = logging.getLogger(__name__)

INPUT_PREVIEW_LENGTH = 100
OUTPUT_PREVIEW_LENGTH = 150


def _preview(text: str, length: int) -> str:
    return text[:length]


def save_entry(
    db: Session,
    user_id: int,
    tool_type: str,
    input_text: str,
    output_text: str,
    settings: Optional[Dict[str, Any]] = None,
    credits_used: int = 0,
    request_id: Optional[str] = None,
) -> History:
    """
    Save a tool result for the user.

    When request_id is given it must name one of the user's successful
    requests for the same tool; the entry then records that request's
    charged credits instead of the client-supplied value.

    Raises:
        InvalidTool: tool_type is not a known tool
        ValueError: request_id does not match a successful request of this user and tool
    """
    if not is_supported_tool(tool_type):
        raise InvalidTool(tool_type)

    if request_id is not None:
        record = db.query(AIRequest).filter(
            AIRequest.request_id == request_id,
            AIRequest.user_id == user_id,
        ).first()
        if record is None or record.status != AIRequestStatus.SUCCESS:
            raise ValueError("Request not found or not completed")
        if record.tool_type != tool_type:
            raise ValueError(f"Request was made with tool '{record.tool_type}'")
        credits_used = record.credits_used

    entry = History(
        user_id=user_id,
        request_id=request_id,
        tool_type=tool_type,
        input_text=input_text,
        output_text=output_text,
        settings=dict(settings or {}),
        credits_used=max(0, credits_used),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"History saved: id={entry.id}, user_id={user_id}, tool={tool_type}")
    return entry


def list_entries(db: Session, user_id: int, page: int = 1, limit: int = 20) -> Tuple[List[Dict[str, Any]], int]:
    """
    Page of the user's saved results, newest first, with text previews.

    Returns:
        Tuple of (preview dicts, total entries of the user)
    """
    query = db.query(History).filter(History.user_id == user_id)
    total = query.count()
    rows = (
        query.order_by(History.created_at.desc(), History.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    items = [
        {
            "id": row.id,
            "tool_type": row.tool_type,
            "input_preview": _preview(row.input_text, INPUT_PREVIEW_LENGTH),
            "output_preview": _preview(row.output_text, OUTPUT_PREVIEW_LENGTH),
            "credits_used": row.credits_used,
            "created_at": row.created_at,
        }
        for row in rows
    ]
    return items, total


def get_entry(db: Session, user_id: int, entry_id: int) -> Optional[History]:
    """Full entry, or None if it does not exist or belongs to someone else."""
    return db.query(History).filter(History.id == entry_id, History.user_id == user_id).first()


def delete_entry(db: Session, user_id: int, entry_id: int) -> bool:
    deleted = db.query(History).filter(
        History.id == entry_id, History.user_id == user_id
    ).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def delete_all(db: Session, user_id: int) -> int:
    """Delete every saved result of the user. Returns how many were removed."""
    deleted = db.query(History).filter(History.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    logger.info(f"History cleared: user_id={user_id}, deleted={deleted}")
    return deleted
