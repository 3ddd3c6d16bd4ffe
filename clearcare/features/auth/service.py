from datetime import datetime
from typing import Optional
from bson import ObjectId
from bson.errors import InvalidId
from clearcare.features.auth.models import User, UserHistory
from clearcare.features.auth.roles import permissions_for_role
from clearcare.features.auth.schemas import (
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from clearcare.core.security import verify_password, get_password_hash
from clearcare.shared.access import ROLE_ADMINISTRATOR
from clearcare.shared.schemas import RequestMeta
from clearcare.shared.exceptions import (
    BadRequestException,
    NotFoundException,
    CredentialsException,
    ConflictException,
)
from clearcare.core.logging import logger


class AuthService:
    """Account service: registration, profile and password changes."""

    @staticmethod
    def user_to_response(user: User) -> UserResponse:
        return UserResponse(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            role=user.role,
            permissions=permissions_for_role(user.role),
            two_factor_enabled=user.two_factor_enabled,
            status="inactive" if user.is_deleted else "active",
            last_login_at=user.last_login_at,
            deleted_at=user.deleted_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    @staticmethod
    async def record_history(
        user_id: str,
        action: str,
        changed_by: str,
        meta: Optional[RequestMeta] = None,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
    ) -> None:
        meta = meta or RequestMeta()
        await UserHistory(
            user_id=user_id,
            action=action,
            changed_by=changed_by,
            old_values=old_values,
            new_values=new_values,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
        ).insert()

    @staticmethod
    async def register(request: RegisterRequest, meta: Optional[RequestMeta] = None) -> User:
        """
        Register a new patient or provider account.

        Administrator accounts cannot be self-registered.
        """
        if request.role == ROLE_ADMINISTRATOR:
            raise BadRequestException("Creating Administrator users is disabled")

        email = request.email.lower()
        existing_user = await User.find_one(User.email == email)
        if existing_user:
            raise ConflictException("A user with this email already exists")

        user = User(
            email=email,
            password_hash=get_password_hash(request.password),
            first_name=request.first_name,
            last_name=request.last_name,
            role=request.role,
        )
        await user.insert()

        await AuthService.record_history(
            user_id=str(user.id),
            action="create",
            changed_by=str(user.id),
            meta=meta,
            new_values={
                "email": user.email,
                "role": user.role,
                "first_name": user.first_name,
                "last_name": user.last_name,
            },
        )

        logger.info(f"Registered {user.role} user {user.id}")
        return user

    @staticmethod
    async def get_user_by_id(user_id: str, include_deleted: bool = False) -> Optional[User]:
        """Get a user by id; soft-deleted users are hidden unless requested."""
        try:
            user = await User.get(ObjectId(user_id))
        except (InvalidId, TypeError):
            return None
        if user is None:
            return None
        if user.is_deleted and not include_deleted:
            return None
        return user

    @staticmethod
    async def get_user_or_404(user_id: str, include_deleted: bool = False) -> User:
        user = await AuthService.get_user_by_id(user_id, include_deleted=include_deleted)
        if user is None:
            raise NotFoundException("User not found")
        return user

    @staticmethod
    async def update_profile(
        user: User,
        request: UpdateProfileRequest,
        meta: Optional[RequestMeta] = None,
    ) -> User:
        """Update the caller's own name and phone."""
        update_dict = request.model_dump(exclude_unset=True, exclude_none=True)
        old_values = {field: getattr(user, field) for field in update_dict}

        for field, value in update_dict.items():
            setattr(user, field, value)

        user.update_timestamp()
        await user.save()

        await AuthService.record_history(
            user_id=str(user.id),
            action="update",
            changed_by=str(user.id),
            meta=meta,
            old_values=old_values,
            new_values=update_dict,
        )

        logger.info(f"Updated profile for user {user.id}")
        return user

    @staticmethod
    async def change_password(
        user: User,
        current_password: str,
        new_password: str,
        meta: Optional[RequestMeta] = None,
    ) -> None:
        if not verify_password(current_password, user.password_hash):
            raise CredentialsException("Current password is incorrect")

        user.password_hash = get_password_hash(new_password)
        user.must_change_password = False
        user.updated_at = datetime.utcnow()
        await user.save()

        await AuthService.record_history(
            user_id=str(user.id),
            action="change_password",
            changed_by=str(user.id),
            meta=meta,
        )

        logger.info(f"Password changed for user {user.id}")
