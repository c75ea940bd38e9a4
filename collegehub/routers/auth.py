"""
Authentication Router

Registration, login and credential recovery.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from collegehub.dependencies import get_current_user
from collegehub.models.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    User,
    UserSummary,
    VerifyEmailRequest,
)
from collegehub.services.auth_service import AuthService
from collegehub.services.user_service import UserService


router = APIRouter()
auth_service = AuthService()
user_service = UserService()


def _token_response(user: User, token: str) -> TokenResponse:
    return TokenResponse(
        token=token,
        user=UserSummary(user_id=user.user_id, name=user.name, email=user.email, role=user.role),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest):
    try:
        user, token = await auth_service.register(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _token_response(user, token)


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest):
    try:
        user, token = await auth_service.login(data.email, data.password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _token_response(user, token)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> dict:
    return current_user.model_dump()


@router.put("/profile")
async def update_profile(
    update: ProfileUpdate, current_user: User = Depends(get_current_user)
) -> dict:
    user = await user_service.update_profile(current_user.user_id, update)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user.model_dump()


@router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordRequest):
    """
    Issue a password reset token.

    Mail delivery is not wired up, so the token is returned in the response.
    """
    token = await auth_service.forgot_password(data.email)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found with this email"
        )
    return {"message": "Password reset instructions sent to your email", "reset_token": token}


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest):
    try:
        await auth_service.reset_password(data.token, data.password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Password reset successfully"}


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest, current_user: User = Depends(get_current_user)
):
    try:
        found = await auth_service.change_password(
            current_user.user_id, data.current_password, data.new_password
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"message": "Password changed successfully"}


@router.post("/verify-email")
async def verify_email(data: VerifyEmailRequest):
    try:
        await auth_service.verify_email(data.token)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Email verified successfully"}


@router.post("/resend-verification")
async def resend_verification(current_user: User = Depends(get_current_user)):
    try:
        token = await auth_service.resend_verification(current_user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Verification email sent", "verification_token": token}
