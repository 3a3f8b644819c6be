"""
Create all tables and seed default tool configs and pricing.

Local development only; deployed databases use Alembic (app.db.migrate).
"""
import logging

from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.db import models  # noqa: F401  registers all tables
from app.services.admin_service import seed_defaults

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()
    logger.info("Database initialized")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
