"""
Wallet endpoints: balances and tool prices.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_current_user, get_db
from app.core.credits import SUPPORTED_TOOLS
from app.schemas.wallet import WalletResponse, ToolCost, ToolCostsResponse
from app.services.wallet_service import CreditLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("", status_code=status.HTTP_200_OK, response_model=WalletResponse)
def get_wallet(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
):
    """
    Get the authenticated user's credit balances.

    free_credits resets at 00:00 UTC; paid_credits never expire.
    """
    return WalletResponse(**ledger.get_wallet(db, user.id).to_dict())


@router.get("/costs", status_code=status.HTTP_200_OK, response_model=ToolCostsResponse)
def get_tool_costs(
    user: User = Depends(get_current_user),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Current credit cost of every AI tool."""
    tools = [
        ToolCost(
            tool_type=tool_type,
            base_cost=ledger.cache.get_base_cost(tool_type),
            multiplier=ledger.cache.get_cost_multiplier(tool_type),
            credits_required=ledger.get_credit_cost(tool_type),
        )
        for tool_type in SUPPORTED_TOOLS
    ]
    return ToolCostsResponse(tools=tools)
