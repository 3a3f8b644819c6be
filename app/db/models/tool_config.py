from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class ToolConfig(Base):
    """
    Administrator-managed settings for one AI tool.
    
    Read through the config cache; never written by the ledger.
    """
    __tablename__ = "tool_configs"

    id = Column(Integer, primary_key=True, index=True)
    tool_id = Column(String(50), unique=True, nullable=False, index=True)  # "summary", "questions", ...
    tool_name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    min_chars = Column(Integer, default=0, nullable=False)
    max_chars = Column(Integer, default=10000, nullable=False)
    cooldown_seconds = Column(Integer, default=0, nullable=False)
    cost_multiplier = Column(Numeric(6, 2), default=1.0, nullable=False)
    model_provider = Column(String, nullable=True)
    model_name = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self) -> dict:
        return {
            "tool_id": self.tool_id,
            "tool_name": self.tool_name,
            "description": self.description,
            "enabled": bool(self.enabled),
            "min_chars": self.min_chars,
            "max_chars": self.max_chars,
            "cooldown_seconds": self.cooldown_seconds,
            "cost_multiplier": float(self.cost_multiplier) if self.cost_multiplier is not None else None,
            "model_provider": self.model_provider,
            "model_name": self.model_name,
        }
