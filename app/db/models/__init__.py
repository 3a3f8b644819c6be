"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from app.db.models.user import User
from app.db.models.wallet import Wallet
from app.db.models.daily_free_credit import DailyFreeCredit
from app.db.models.tool_config import ToolConfig
from app.db.models.credit_config import CreditConfig
from app.db.models.ai_request import AIRequest, AIRequestStatus
from app.db.models.history import History

__all__ = [
    "User",
    "Wallet",
    "DailyFreeCredit",
    "ToolConfig",
    "CreditConfig",
    "AIRequest",
    "AIRequestStatus",
    "History",
]
