from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class CreditConfig(Base):
    """
    Key/value credit settings edited by administrators.
    
    Known keys: "tool_pricing" (JSON object tool -> base cost) and
    "daily_free_credits" (integer as text).
    """
    __tablename__ = "credit_config"

    id = Column(Integer, primary_key=True, index=True)
    config_key = Column(String(100), unique=True, nullable=False, index=True)
    config_value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
