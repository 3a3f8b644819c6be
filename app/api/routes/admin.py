"""
Admin endpoints for credit pricing, tool settings and top-ups.

Changes are stored immediately but reach the AI endpoints only after the
config cache TTL expires.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_db, require_admin
from app.schemas.admin import (
    AddCreditsRequest,
    CreditConfigResponse,
    CreditConfigUpdate,
    ToolConfigItem,
    ToolConfigsResponse,
    ToolConfigsUpdate,
)
from app.schemas.wallet import WalletResponse
from app.services import admin_service
from app.services.wallet_service import CreditLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/credits/config", response_model=CreditConfigResponse)
def get_credit_config(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return CreditConfigResponse(**admin_service.get_credit_config(db))


@router.put("/credits/config", response_model=CreditConfigResponse)
def update_credit_config(
    payload: CreditConfigUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        updated = admin_service.update_credit_config(
            db,
            daily_free_credits=payload.daily_free_credits,
            tool_pricing=payload.tool_pricing,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"Credit config changed by admin user_id={admin.id}")
    return CreditConfigResponse(**updated)


@router.get("/tools/config", response_model=ToolConfigsResponse)
def get_tool_configs(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    tools = admin_service.list_tool_configs(db)
    return ToolConfigsResponse(tools=[ToolConfigItem(**tool) for tool in tools])


@router.put("/tools/config", response_model=ToolConfigsResponse)
def update_tool_configs(
    payload: ToolConfigsUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        tools = admin_service.upsert_tool_configs(db, [tool.model_dump() for tool in payload.tools])
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"Tool configs changed by admin user_id={admin.id}")
    return ToolConfigsResponse(tools=[ToolConfigItem(**tool) for tool in tools])


@router.post("/users/{user_id}/credits", response_model=WalletResponse)
def add_user_credits(
    user_id: int,
    payload: AddCreditsRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Top up a user's paid credits."""
    wallet = ledger.add_paid_credits(db, user_id, payload.amount)
    logger.info(
        f"Admin top-up: admin_id={admin.id}, user_id={user_id}, "
        f"amount={payload.amount}, reason={payload.reason!r}"
    )
    return WalletResponse(**wallet.to_dict())
