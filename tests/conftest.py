import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models import User, Wallet
from app.core.security import hash_password
from app.services.config_cache import ConfigCache, ConfigSnapshot


def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key enforcement in SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticLoader:
    """Config loader returning a fixed snapshot; counts calls."""

    def __init__(self, snapshot: ConfigSnapshot = None):
        self.snapshot = snapshot or ConfigSnapshot()
        self.calls = 0
        self.error = None

    def __call__(self) -> ConfigSnapshot:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.snapshot


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of a test (StaticPool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _set_sqlite_pragma)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def make_cache():
    """Build a ConfigCache over a static snapshot."""
    def _make(tools=None, pricing=None, daily_free_credits=None, ttl_seconds=300):
        loader = StaticLoader(ConfigSnapshot(
            tools=tools or {},
            pricing=pricing,
            daily_free_credits=daily_free_credits,
        ))
        return ConfigCache(loader=loader, ttl_seconds=ttl_seconds, clock=FakeClock())
    return _make


@pytest.fixture
def make_user(db):
    """Create a user with a wallet."""
    def _make(email="student@example.com", role="user", paid_credits=0):
        user = User(
            full_name="Test Student",
            email=email,
            password_hash=hash_password("testpass123"),
            role=role,
        )
        db.add(user)
        db.flush()
        db.add(Wallet(user_id=user.id, paid_credits=paid_credits))
        db.commit()
        db.refresh(user)
        return user
    return _make
