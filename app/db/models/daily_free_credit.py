from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class DailyFreeCredit(Base):
    """
    Free credits consumed by a user on a given UTC date.
    
    Rows are created lazily on the first free-credit debit of the day. A
    missing row for (user_id, today) means nothing was used yet: that is
    how the free allowance resets every day. Old rows are kept as history.
    """
    __tablename__ = "daily_free_credits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    used_credits = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # One record per user per day
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_free_credits_user_date"),
        CheckConstraint("used_credits >= 0", name="ck_daily_free_credits_used_non_negative"),
    )
