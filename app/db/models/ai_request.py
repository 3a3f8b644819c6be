import uuid
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from app.db.base import Base


class AIRequestStatus:
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class AIRequest(Base):
    """
    One row per AI tool invocation attempt.
    
    Inserted as "pending" before the provider call and moved to "success"
    or "failed" afterwards. credits_used is the cost snapshot taken when
    the request started. Successful rows drive per-tool cooldowns.
    """
    __tablename__ = "ai_requests"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(String(36), unique=True, nullable=False, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tool_type = Column(String(50), nullable=False, index=True)
    credits_used = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=AIRequestStatus.PENDING, nullable=False)
    processing_time_ms = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Cooldown lookup: latest successful request per user and tool
    __table_args__ = (
        Index("idx_ai_requests_user_tool_status_created", "user_id", "tool_type", "status", "created_at"),
    )
