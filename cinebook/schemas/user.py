from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, UUID4, Field
from datetime import datetime

Role = Literal["user", "admin"]


# Profile fields a member can set on themselves
class UserBase(BaseModel):
    email: EmailStr
    full_name: str = Field("", max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    avatar_url: Optional[str] = None


# POST /auth/register — always creates a "user"; admins come from the seed
class UserCreate(UserBase):
    password: str = Field(min_length=6, max_length=72)  # bcrypt reads at most 72 bytes


# PATCH /me
class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    avatar_url: Optional[str] = None


class User(UserBase):
    id: UUID4
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: User


# Claims carried by an access token
class TokenPayload(BaseModel):
    sub: Optional[str] = None
    role: Optional[Role] = None
    exp: Optional[datetime] = None
