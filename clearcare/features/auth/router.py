from fastapi import APIRouter, Depends, status
from clearcare.features.auth.schemas import (
    RegisterRequest,
    ChangePasswordRequest,
    UpdateProfileRequest,
    MessageResponse,
    UserResponse,
)
from clearcare.features.auth.service import AuthService
from clearcare.features.auth.dependencies import get_current_user, get_request_meta
from clearcare.features.auth.models import User
from clearcare.shared.schemas import DataResponse, RequestMeta


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=DataResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Register a new patient or provider account.

    - **email**: User's email address
    - **password**: Strong password (min 8 chars, 1 uppercase, 1 lowercase, 1 digit)
    - **first_name** / **last_name**: User's name
    - **role**: patient or provider
    """
    user = await AuthService.register(request, meta)
    return DataResponse(data=AuthService.user_to_response(user))


@router.get("/me", response_model=DataResponse[UserResponse])
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user's information.

    Requires authentication.
    """
    return DataResponse(data=AuthService.user_to_response(current_user))


@router.patch("/me", response_model=DataResponse[UserResponse])
async def update_profile(
    update_data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Update current user's profile information.

    - **first_name** / **last_name**: optional
    - **phone**: optional
    """
    updated_user = await AuthService.update_profile(current_user, update_data, meta)
    return DataResponse(data=AuthService.user_to_response(updated_user))


@router.post("/change-password", response_model=DataResponse[MessageResponse])
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Change current user's password.

    Requires authentication.
    """
    await AuthService.change_password(
        current_user,
        request.current_password,
        request.new_password,
        meta,
    )
    return DataResponse(data=MessageResponse(message="Password changed successfully"))
