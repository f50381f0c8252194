from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.db.sessions import get_db
from storefront.api.db.models import User
from storefront.api.deps import get_current_user
from storefront.api.schemas import UserOut, ProfileOut, ProfileUpdate
from storefront.api.services import account_service

router = APIRouter(prefix="/users", tags=["Users"])

@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user

@router.get("/me/profile", response_model=ProfileOut)
def read_my_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    profile = account_service.get_profile(db, current_user.id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile

@router.put("/me/profile", response_model=ProfileOut)
def update_my_profile(
    profile_data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or update the caller's profile. Only the fields sent are changed."""
    return account_service.upsert_profile(db, current_user.id, profile_data)
