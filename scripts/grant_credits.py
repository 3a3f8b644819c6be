"""
Script to top up a user's paid credits by email.
Run: python -m scripts.grant_credits user@example.com 50
"""
import argparse
import logging
import sys

from app.db.session import SessionLocal
from app.db.models.user import User
from app.core.exceptions import WalletNotFound
from app.services.wallet_service import get_ledger

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def grant_credits(email: str, amount: int) -> bool:
    """Add `amount` paid credits to the wallet of the user with this email."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            logger.error(f"User {email} not found")
            return False

        wallet = get_ledger().add_paid_credits(db, user.id, amount)
        logger.info(
            f"Granted {amount} credits to {email} (ID: {user.id}); "
            f"paid={wallet.paid_credits}, total={wallet.total_credits}"
        )
        return True
    except (WalletNotFound, ValueError) as e:
        logger.error(f"Could not grant credits to {email}: {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Top up a user's paid credits")
    parser.add_argument("email")
    parser.add_argument("amount", type=int)
    args = parser.parse_args()

    if not grant_credits(args.email, args.amount):
        sys.exit(1)
