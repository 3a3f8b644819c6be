from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, JSON
from sqlalchemy.sql import func
from app.db.base import Base


class History(Base):
    """
    A tool result the user chose to keep.

    Entries are only created on explicit save, never by a tool run itself.
    request_id links back to the ai_requests row the result came from, when
    the client provided it.
    """
    __tablename__ = "history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    request_id = Column(String(36), nullable=True)
    tool_type = Column(String(50), nullable=False)
    input_text = Column(Text, nullable=False)
    output_text = Column(Text, nullable=False)
    settings = Column(JSON, nullable=False, default=dict)
    credits_used = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_history_user_created", "user_id", "created_at"),
    )
