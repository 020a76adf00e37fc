from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from blogify.models.user import User, UserRole


class UserRegister(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    username: str
    password: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class UserLogin(BaseModel):
    # email 或用户名
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthorInfo(BaseModel):
    id: int
    username: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    displayName: str
    avatar: Optional[str] = None


class UserInfo(BaseModel):
    id: int
    email: str
    username: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    displayName: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole
    isActive: bool = True
    createdAt: Optional[datetime] = None
    lastLoginAt: Optional[datetime] = None


class Token(BaseModel):
    user: UserInfo
    token: str


class UserUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    firstName: Optional[str] = Field(None, max_length=100)
    lastName: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    username: Optional[str] = None
    avatar: Optional[str] = Field(None, max_length=500)


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    newPassword: str


def build_author(user: User) -> AuthorInfo:
    return AuthorInfo(
        id=user.id,
        username=user.username,
        firstName=user.first_name,
        lastName=user.last_name,
        displayName=user.display_name,
        avatar=user.avatar,
    )


def build_user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        email=user.email,
        username=user.username,
        firstName=user.first_name,
        lastName=user.last_name,
        displayName=user.display_name,
        bio=user.bio,
        avatar=user.avatar,
        role=user.role,
        isActive=user.is_active,
        createdAt=user.created_at,
        lastLoginAt=user.last_login_at,
    )
