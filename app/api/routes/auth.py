import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.core.auth_dependency import get_db
from app.core.security import hash_password, verify_password, create_access_token
from app.schemas.auth import SignupRequest, SignupResponse, TokenResponse
from app.services.wallet_service import CreditLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ✅ USER SIGNUP: user and wallet are created in one transaction
@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse)
def signup(
    payload: SignupRequest,
    db: Session = Depends(get_db),
    ledger: CreditLedger = Depends(get_ledger),
):
    existing_user = db.query(User).filter(User.email == payload.email).first()
    if existing_user:
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        full_name=payload.full_name,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )

    try:
        db.add(user)
        db.flush()
        ledger.create_wallet(db, user.id, commit=False)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")

    db.refresh(user)
    wallet = ledger.get_wallet(db, user.id)
    logger.info(f"User registered: user_id={user.id}")

    return SignupResponse(
        message="User created successfully",
        user_id=user.id,
        free_credits=wallet.free_credits,
        paid_credits=wallet.paid_credits,
    )


# ✅ OAUTH2 LOGIN (Swagger sends "username", treated as email)
@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": user.email})
    return TokenResponse(access_token=token)
