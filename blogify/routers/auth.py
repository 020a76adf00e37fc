from datetime import timedelta
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from blogify.core.config import settings
from blogify.core.database import get_db
from blogify.core.deps import get_current_user
from blogify.core.security import create_access_token
from blogify.crud import user as user_crud
from blogify.models.user import User
from blogify.schemas.common import ResponseModel
from blogify.schemas.user import (
    ChangePasswordRequest, ForgotPasswordRequest, ResetPasswordRequest,
    Token, UserInfo, UserLogin, UserRegister, UserUpdate, build_user_info
)

router = APIRouter(prefix="/auth", tags=["认证"])
logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


@router.post("/register", response_model=ResponseModel[Token], status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """用户注册"""
    user = user_crud.register_user(
        db,
        email=user_data.email,
        username=user_data.username,
        password=user_data.password,
        first_name=user_data.firstName,
        last_name=user_data.lastName,
    )
    return ResponseModel(
        data=Token(user=build_user_info(user), token=issue_token(user)),
        message="User registered successfully"
    )


@router.post("/login", response_model=ResponseModel[Token])
def login(user_data: UserLogin, db: Session = Depends(get_db)):
    """用户登录（邮箱或用户名）"""
    user = user_crud.authenticate(db, user_data.identifier, user_data.password)
    return ResponseModel(
        data=Token(user=build_user_info(user), token=issue_token(user)),
        message="Login successful"
    )


@router.get("/profile", response_model=ResponseModel[UserInfo])
def get_profile(current_user: User = Depends(get_current_user)):
    return ResponseModel(data=build_user_info(current_user))


@router.put("/profile", response_model=ResponseModel[UserInfo])
def update_profile(
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """更新用户个人信息"""
    user = user_crud.update_profile(db, current_user, {
        "username": user_data.username,
        "first_name": user_data.firstName,
        "last_name": user_data.lastName,
        "bio": user_data.bio,
        "avatar": user_data.avatar,
    })
    return ResponseModel(data=build_user_info(user), message="Profile updated successfully")


@router.post("/change-password", response_model=ResponseModel)
def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user_crud.change_password(db, current_user, request.currentPassword, request.newPassword)
    return ResponseModel(message="Password changed successfully")


@router.post("/forgot-password", response_model=ResponseModel)
def forgot_password(request: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """忘记密码：无论邮箱是否存在都返回成功"""
    token = user_crud.request_password_reset(db, request.email)
    data = None
    # 仅开发环境回显 token，方便调试
    if token and settings.is_development:
        data = {"resetToken": token}
    return ResponseModel(
        data=data,
        message="If an account with that email exists, a password reset link has been sent"
    )


@router.post("/reset-password", response_model=ResponseModel)
def reset_password(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    user_crud.reset_password(db, request.token, request.newPassword)
    return ResponseModel(message="Password reset successfully")


@router.post("/logout", response_model=ResponseModel)
def logout(current_user: User = Depends(get_current_user)):
    # JWT 无状态，客户端丢弃 token 即可
    logger.info(f"User logged out: {current_user.username}")
    return ResponseModel(message="Logged out successfully")
