from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class Wallet(Base):
    """
    Persistent paid credit balance, one per user.
    
    Created at registration and never deleted. Free credits are not stored
    here; they are derived from the daily_free_credits table.
    """
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    paid_credits = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("paid_credits >= 0", name="ck_wallets_paid_credits_non_negative"),
    )
