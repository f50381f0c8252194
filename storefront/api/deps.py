from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from storefront.core.security import ALGORITHM, SECRET_KEY
from storefront.api.db.sessions import get_db
from storefront.api.db.models import User, UserRole
from storefront.api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """
    Validates the token and returns the user it was issued to.
    Deactivated accounts are rejected like unknown ones.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        email: str = payload.get("sub")
        user_id: int = payload.get("id")

        if email is None or user_id is None:
            raise credentials_exception

        token_data = TokenData(email=email, user_id=user_id)
    except JWTError:
        raise credentials_exception

    user = db.get(User, token_data.user_id)
    if user is None or not user.is_active:
        raise credentials_exception

    return user

def get_current_admin(current_user: User = Depends(get_current_user)):
    """
    Checks if the logged-in user has the 'admin' role.
    """
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this resource"
        )
    return current_user

def can_view_any_order(user: User) -> bool:
    """Admins and support staff may look at orders they did not place."""
    return user.role in (UserRole.ADMIN, UserRole.SUPPORT)
