"""
Credit ledger.

Single source of truth for credit balances and debits. Each user has two
pools:

- free: a daily allowance, `daily_free_credits - used_today`, where
  used_today lives in daily_free_credits keyed by (user_id, UTC date)
- paid: wallets.paid_credits, persistent

Debits always drain the free pool before the paid pool. The whole
check-then-write sequence of a debit runs in one transaction that starts
with a write to the user's wallet row. On PostgreSQL that write holds the
row lock, so debits for the same user are serialized and debits for
different users never wait on each other. On SQLite it holds the database
write lock, which serializes all debits. Both pool writes are also
conditional UPDATEs and abort the debit with InsufficientCredits if they
would overdraw.
"""
import logging
import math
from dataclasses import dataclass, asdict
from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientCredits, InvalidTool, WalletNotFound
from app.db.models import DailyFreeCredit, Wallet
from app.services.config_cache import ConfigCache, get_config_cache

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class WalletSnapshot:
    """Balances of one user at a point in time."""
    user_id: int
    free_credits: int
    paid_credits: int
    total_credits: int
    used_today: int
    daily_free_limit: int

    def to_dict(self) -> dict:
        return asdict(self)


class CreditLedger:
    """
    Computes tool costs and moves credits out of a user's pools.

    Args:
        cache: Config cache providing base prices, multipliers and the daily free limit
        today: Returns the current UTC date; injectable for tests
    """

    def __init__(self, cache: ConfigCache, today: Callable[[], date] = utc_today):
        self.cache = cache
        self._today = today

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _used_today(self, db: Session, user_id: int, day: date) -> int:
        used = db.execute(
            select(DailyFreeCredit.used_credits).where(
                DailyFreeCredit.user_id == user_id,
                DailyFreeCredit.date == day,
            )
        ).scalar_one_or_none()
        # No row yet for this date: the allowance has reset
        return used or 0

    def get_wallet(self, db: Session, user_id: int) -> WalletSnapshot:
        """
        Get the user's balances for today.

        Raises:
            WalletNotFound: the user has no wallet row (broken registration invariant)
        """
        paid_credits = db.execute(
            select(Wallet.paid_credits).where(Wallet.user_id == user_id)
        ).scalar_one_or_none()
        if paid_credits is None:
            logger.error(f"Wallet missing for user_id={user_id}")
            raise WalletNotFound(user_id)

        daily_limit = self.cache.get_daily_free_credits()
        used_today = self._used_today(db, user_id, self._today())
        free_credits = max(0, daily_limit - used_today)

        return WalletSnapshot(
            user_id=user_id,
            free_credits=free_credits,
            paid_credits=paid_credits,
            total_credits=free_credits + paid_credits,
            used_today=used_today,
            daily_free_limit=daily_limit,
        )

    def get_credit_cost(self, tool_type: str) -> int:
        """
        Final cost of one invocation: ceil(base_cost * multiplier).

        Unknown tools cost 0. Fractional results round up.
        """
        base_cost = self.cache.get_base_cost(tool_type)
        multiplier = self.cache.get_cost_multiplier(tool_type)
        return math.ceil(base_cost * multiplier)

    def _resolve_cost(self, tool_type: str, cost: Optional[int]) -> int:
        if cost is None:
            cost = self.get_credit_cost(tool_type)
        if not cost or cost <= 0:
            raise InvalidTool(tool_type)
        return cost

    def has_enough_credits(self, db: Session, user_id: int, tool_type: str, cost: Optional[int] = None) -> bool:
        """
        Check whether the user can afford one invocation of the tool.

        Args:
            cost: Cost snapshot to check against; computed from the cache when omitted

        Raises:
            InvalidTool: the cost is 0 or negative
            WalletNotFound: the user has no wallet
        """
        cost = self._resolve_cost(tool_type, cost)
        return self.get_wallet(db, user_id).total_credits >= cost

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _lock_wallet(self, db: Session, user_id: int) -> None:
        """
        Per-user serialization point. Must be the first statement of the debit.

        A no-op UPDATE takes the wallet row lock on PostgreSQL and the
        database write lock on SQLite, where SELECT ... FOR UPDATE is
        ignored. Balances read after this see every earlier committed debit.
        """
        result = db.execute(
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .values(paid_credits=Wallet.paid_credits, updated_at=Wallet.updated_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.error(f"Wallet missing for user_id={user_id} during debit")
            raise WalletNotFound(user_id)

    def _consume_free(self, db: Session, user_id: int, day: date, amount: int, daily_limit: int, available: int) -> None:
        """Add `amount` to today's usage row, creating it if absent."""
        result = db.execute(
            update(DailyFreeCredit)
            .where(
                DailyFreeCredit.user_id == user_id,
                DailyFreeCredit.date == day,
                DailyFreeCredit.used_credits + amount <= daily_limit,
            )
            .values(used_credits=DailyFreeCredit.used_credits + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

        exists = db.execute(
            select(DailyFreeCredit.id).where(
                DailyFreeCredit.user_id == user_id,
                DailyFreeCredit.date == day,
            )
        ).first()
        if exists:
            # Row exists but another debit used the allowance since we read it
            raise InsufficientCredits(required=amount, available=available)

        try:
            db.execute(
                insert(DailyFreeCredit).values(user_id=user_id, date=day, used_credits=amount)
            )
        except IntegrityError:
            # Concurrent first debit of the day inserted the row first
            raise InsufficientCredits(required=amount, available=available)

    def _consume_paid(self, db: Session, user_id: int, amount: int, available: int) -> None:
        result = db.execute(
            update(Wallet)
            .where(Wallet.user_id == user_id, Wallet.paid_credits >= amount)
            .values(paid_credits=Wallet.paid_credits - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientCredits(required=amount, available=available)

    def deduct_credits(self, db: Session, user_id: int, tool_type: str, cost: Optional[int] = None) -> WalletSnapshot:
        """
        Debit one invocation of a tool, free pool first, then paid.

        Runs CHECK_BALANCE -> ALLOCATE_FREE -> ALLOCATE_PAID -> COMMIT in a
        single transaction. Any failure rolls back both pools.

        Args:
            db: Database session (committed or rolled back by this call)
            user_id: User ID
            tool_type: Tool being paid for
            cost: Cost snapshot taken when the request started; computed when omitted

        Returns:
            Wallet snapshot after the debit

        Raises:
            InvalidTool: the cost is 0 or negative
            WalletNotFound: the user has no wallet
            InsufficientCredits: free + paid < cost, or a concurrent debit won the race
        """
        cost = self._resolve_cost(tool_type, cost)
        day = self._today()
        daily_limit = self.cache.get_daily_free_credits()

        try:
            self._lock_wallet(db, user_id)
            paid_credits = db.execute(
                select(Wallet.paid_credits).where(Wallet.user_id == user_id)
            ).scalar_one()

            used_today = self._used_today(db, user_id, day)
            free_credits = max(0, daily_limit - used_today)
            total_credits = free_credits + paid_credits

            if total_credits < cost:
                raise InsufficientCredits(required=cost, available=total_credits)

            from_free = min(cost, free_credits)
            from_paid = cost - from_free

            if from_free > 0:
                self._consume_free(db, user_id, day, from_free, daily_limit, total_credits)
            if from_paid > 0:
                self._consume_paid(db, user_id, from_paid, total_credits)

            db.commit()
        except InsufficientCredits as e:
            db.rollback()
            logger.warning(
                f"Debit rejected: user_id={user_id}, tool={tool_type}, "
                f"required={cost}, available={e.available}"
            )
            raise InsufficientCredits(required=cost, available=e.available)
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Credits deducted: user_id={user_id}, tool={tool_type}, cost={cost}, "
            f"from_free={from_free}, from_paid={from_paid}"
        )
        return self.get_wallet(db, user_id)

    def create_wallet(self, db: Session, user_id: int, commit: bool = True) -> Wallet:
        """Create the wallet for a newly registered user with 0 paid credits."""
        wallet = Wallet(user_id=user_id, paid_credits=0)
        db.add(wallet)
        if commit:
            db.commit()
            db.refresh(wallet)
        else:
            db.flush()
        logger.info(f"Wallet created for user_id={user_id}")
        return wallet

    def add_paid_credits(self, db: Session, user_id: int, amount: int) -> WalletSnapshot:
        """
        Top up the paid pool.

        Raises:
            ValueError: amount is not positive
            WalletNotFound: the user has no wallet
        """
        if amount <= 0:
            raise ValueError("Amount must be positive")

        try:
            result = db.execute(
                update(Wallet)
                .where(Wallet.user_id == user_id)
                .values(paid_credits=Wallet.paid_credits + amount)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise WalletNotFound(user_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Paid credits added: user_id={user_id}, amount={amount}")
        return self.get_wallet(db, user_id)


def get_ledger() -> CreditLedger:
    """FastAPI dependency returning a ledger bound to the shared config cache."""
    return CreditLedger(get_config_cache())
