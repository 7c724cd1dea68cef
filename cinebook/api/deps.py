from typing import Callable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from cinebook.core.config import settings
from cinebook.core.security import decode_token
from cinebook.db.session import get_db
from cinebook.models.user import User
from cinebook.services.reservation import ReservationEngine

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_token(token)
    if payload is None:
        raise credentials_exception
    try:
        user_uuid = UUID(payload.sub)
    except ValueError:
        raise credentials_exception
    user = db.query(User).filter(User.id == user_uuid).first()
    # A role change since the token was issued invalidates it
    if not user or user.role != payload.role:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


def require_role(*roles: str) -> Callable[..., User]:
    """
    The one authorization policy for the API. Routers depend on
    ``require_role("admin")`` (or the aliases below) instead of checking
    roles themselves.
    """

    def policy(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough privileges",
            )
        return current_user

    return policy


get_current_member = require_role("user", "admin")
get_current_admin_user = require_role("admin")


def get_reservation_engine(db: Session = Depends(get_db)) -> ReservationEngine:
    return ReservationEngine(db)
