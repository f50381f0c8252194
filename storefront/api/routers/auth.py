from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from storefront.core.security import create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from storefront.api.db.sessions import get_db
from storefront.api.schemas import UserCreate, UserOut, Token, UserLogin
from storefront.api.services import account_service

# IMPORT LOGGER
from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

def _issue_token(user):
    access_token = create_access_token(
        data={"sub": user.email, "id": user.id, "role": user.role.value},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

# 1. CUSTOMER REGISTRATION
@router.post("/register", response_model=UserOut)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    # New accounts are always customers; staff roles are granted out of band
    return account_service.register_user(db, user.email, user.password)

# 2. LOGIN (JSON body)
@router.post("/login", response_model=Token)
def login_json(user_data: UserLogin, db: Session = Depends(get_db)):
    user = account_service.authenticate(db, user_data.email, user_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User #{user.id} logged in.")
    return _issue_token(user)

# 3. LOGIN (OAuth2 form, used by the docs UI)
@router.post("/token", response_model=Token)
def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = account_service.authenticate(db, form_data.username, form_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _issue_token(user)
