import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from cinebook.db.session import get_db
from cinebook.core.config import settings
from cinebook.core.errors import EmailTaken
from cinebook.core.security import create_access_token, get_password_hash, verify_password

from cinebook.api.deps import get_current_member
from cinebook.models.user import User
from cinebook.schemas.user import UserCreate, Token, User as UserSchema

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def issue_token(user: User) -> Token:
    return Token(
        access_token=create_access_token(subject=str(user.id), role=user.role),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSchema.model_validate(user),
    )


def ensure_email_free(db: Session, email: str) -> None:
    if db.query(User.id).filter(User.email == email).first():
        raise EmailTaken(f"{email} is already registered")


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    """Create a member account and sign it in."""
    ensure_email_free(db, body.email)
    user = User(
        **body.model_dump(exclude={"password"}),
        password_hash=get_password_hash(body.password),
        role="user",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return issue_token(user)


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """OAuth2 password flow; the form's `username` is the account email."""
    user = db.query(User).filter(User.email == form_data.username.strip()).first()
    if user is None or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return issue_token(user)


@router.post("/logout")
def logout(current_user: User = Depends(get_current_member)):
    # Tokens are stateless; the client drops its copy
    return {"message": "Successfully logged out"}
