# Administration Feature - Service

from typing import Optional, List
from datetime import datetime
from clearcare.features.admin.schemas import (
    CreateUserRequest,
    UpdateUserRequest,
    RoleResponse,
    SystemSettings,
    UpdateSystemSettingsRequest,
)
from clearcare.features.auth.models import User
from clearcare.features.auth.roles import ROLE_DEFINITIONS
from clearcare.features.auth.schemas import UserResponse
from clearcare.features.auth.service import AuthService
from clearcare.features.patients.models import Patient
from clearcare.features.audit.service import AuditService
from clearcare.core.email import send_invitation_email, send_restore_notification_email
from clearcare.core.encryption import encryption
from clearcare.core.security import get_password_hash, generate_temporary_password
from clearcare.core.logging import logger
from clearcare.shared.access import ROLE_ADMINISTRATOR, ROLE_PATIENT
from clearcare.shared.schemas import RequestMeta
from clearcare.shared.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)


# Sections of SystemSettings merged key by key on update
NESTED_SETTINGS = ("password_policy", "notification_settings", "data_retention", "feature_flags")

_system_settings = SystemSettings()


def merge_settings(current: SystemSettings, updates: UpdateSystemSettingsRequest) -> SystemSettings:
    """Overlay a partial update; nested sections keep keys the update omits."""
    merged = current.model_dump()
    for field, value in updates.model_dump(exclude_none=True).items():
        if field in NESTED_SETTINGS:
            merged[field] = {**merged[field], **value}
        else:
            merged[field] = value
    return SystemSettings.model_validate(merged)


class AdminService:
    """Service class for administrator operations."""

    # ==================== Audit helpers ====================

    @staticmethod
    async def _audit(
        admin: User,
        action: str,
        user: User,
        meta: RequestMeta,
        details: Optional[dict] = None,
    ) -> None:
        await AuditService.record(
            user_id=str(admin.id),
            user_email=admin.email,
            user_name=admin.full_name or admin.email,
            action=action,
            resource_type="user",
            resource_id=str(user.id),
            resource_name=user.email,
            ip_address=meta.ip_address or "",
            user_agent=meta.user_agent or "",
            status="success",
            details=details,
        )

    # ==================== Users ====================

    @staticmethod
    async def get_users() -> List[UserResponse]:
        """All users, including deactivated ones, newest first."""
        users = await User.find_all().sort(-User.created_at).to_list()
        return [AuthService.user_to_response(u) for u in users]

    @staticmethod
    async def get_user(user_id: str) -> UserResponse:
        user = await AuthService.get_user_or_404(user_id, include_deleted=True)
        return AuthService.user_to_response(user)

    @staticmethod
    async def create_user(request: CreateUserRequest, admin: User, meta: Optional[RequestMeta] = None) -> UserResponse:
        """
        Create a patient or provider account.

        Patient accounts get an empty patient record. When no password is
        given a temporary one is generated and emailed to the user.
        """
        meta = meta or RequestMeta()
        if request.role == ROLE_ADMINISTRATOR:
            raise BadRequestException("Creating Administrator users is disabled")

        email = request.email.lower().strip()
        existing_user = await User.find_one(User.email == email)
        if existing_user:
            raise ConflictException("A user with this email already exists")

        temporary_password = None
        raw_password = request.password
        if raw_password is None:
            temporary_password = generate_temporary_password()
            raw_password = temporary_password

        user = User(
            email=email,
            password_hash=get_password_hash(raw_password),
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            role=request.role,
            must_change_password=temporary_password is not None,
        )
        await user.insert()

        if user.role == ROLE_PATIENT:
            patient = Patient(
                user_id=str(user.id),
                date_of_birth=encryption.encrypt("1900-01-01"),
                medical_record_number=encryption.encrypt(f"MRN-{str(user.id)[:8].upper()}"),
            )
            await patient.insert()
            logger.info(f"Created patient record {patient.id} for new user {user.id}")

        await AuthService.record_history(
            user_id=str(user.id),
            action="create",
            changed_by=str(admin.id),
            meta=meta,
            new_values={"email": user.email, "role": user.role},
        )
        await AdminService._audit(admin, "create", user, meta, {"role": user.role})

        if temporary_password:
            sent = await send_invitation_email(user.email, user.first_name, user.role, temporary_password)
            if not sent:
                logger.warning(f"Invitation email for user {user.id} was not sent")

        logger.info(f"Administrator {admin.id} created {user.role} user {user.id}")
        return AuthService.user_to_response(user)

    @staticmethod
    async def update_user(
        user_id: str,
        request: UpdateUserRequest,
        admin: User,
        meta: Optional[RequestMeta] = None,
    ) -> UserResponse:
        meta = meta or RequestMeta()
        user = await AuthService.get_user_or_404(user_id)

        if user.role == ROLE_ADMINISTRATOR and request.role and request.role != ROLE_ADMINISTRATOR:
            raise ForbiddenException("Cannot change administrator role")
        if request.role == ROLE_ADMINISTRATOR and user.role != ROLE_ADMINISTRATOR:
            raise BadRequestException("Promoting users to Administrator is disabled")

        update_dict = {}
        if request.first_name is not None:
            update_dict["first_name"] = request.first_name.strip()
        if request.last_name is not None:
            update_dict["last_name"] = request.last_name.strip()
        if request.role is not None:
            update_dict["role"] = request.role
        if request.email is not None:
            email = request.email.lower().strip()
            if email != user.email:
                taken = await User.find_one(User.email == email)
                if taken:
                    raise ConflictException("A user with this email already exists")
            update_dict["email"] = email

        old_values = {field: getattr(user, field) for field in update_dict}
        for field, value in update_dict.items():
            setattr(user, field, value)

        if request.password is not None:
            user.password_hash = get_password_hash(request.password)

        user.update_timestamp()
        await user.save()

        updated_fields = list(update_dict) + (["password"] if request.password is not None else [])
        await AuthService.record_history(
            user_id=str(user.id),
            action="update",
            changed_by=str(admin.id),
            meta=meta,
            old_values=old_values,
            new_values=update_dict,
        )
        await AdminService._audit(admin, "write", user, meta, {"updated_fields": updated_fields})

        logger.info(f"Administrator {admin.id} updated user {user.id}: {updated_fields}")
        return AuthService.user_to_response(user)

    @staticmethod
    async def delete_user(user_id: str, admin: User, meta: Optional[RequestMeta] = None) -> None:
        """Deactivate (soft-delete) a user. Administrators cannot be deleted."""
        meta = meta or RequestMeta()
        user = await AuthService.get_user_or_404(user_id)
        if user.role == ROLE_ADMINISTRATOR:
            raise ForbiddenException("Cannot delete administrator user")

        user.mark_deleted()
        await user.save()

        await AuthService.record_history(
            user_id=str(user.id),
            action="delete",
            changed_by=str(admin.id),
            meta=meta,
        )
        await AdminService._audit(admin, "delete", user, meta)

        logger.info(f"Administrator {admin.id} deactivated user {user.id}")

    @staticmethod
    async def restore_user(user_id: str, admin: User, meta: Optional[RequestMeta] = None) -> UserResponse:
        meta = meta or RequestMeta()
        user = await AuthService.get_user_or_404(user_id, include_deleted=True)
        if not user.is_deleted:
            raise BadRequestException("User is not deactivated")

        user.deleted_at = None
        user.update_timestamp()
        await user.save()

        await AuthService.record_history(
            user_id=str(user.id),
            action="restore",
            changed_by=str(admin.id),
            meta=meta,
        )
        await AdminService._audit(admin, "restore", user, meta)
        await send_restore_notification_email(user.email, user.first_name)

        logger.info(f"Administrator {admin.id} restored user {user.id}")
        return AuthService.user_to_response(user)

    # ==================== Roles ====================

    @staticmethod
    async def _role_response(definition: dict) -> RoleResponse:
        count = await User.find(
            User.role == definition["id"],
            User.deleted_at == None,  # noqa: E711
        ).count()
        now = datetime.utcnow()
        return RoleResponse(**definition, user_count=count, created_at=now, updated_at=now)

    @staticmethod
    async def get_roles() -> List[RoleResponse]:
        return [await AdminService._role_response(d) for d in ROLE_DEFINITIONS]

    @staticmethod
    async def get_role(role_id: str) -> RoleResponse:
        for definition in ROLE_DEFINITIONS:
            if definition["id"] == role_id:
                return await AdminService._role_response(definition)
        raise NotFoundException("Role not found")

    # ==================== System settings ====================

    @staticmethod
    def get_settings() -> SystemSettings:
        return _system_settings

    @staticmethod
    def update_settings(updates: UpdateSystemSettingsRequest) -> SystemSettings:
        global _system_settings
        _system_settings = merge_settings(_system_settings, updates)
        logger.info("System settings updated")
        return _system_settings

    @staticmethod
    def reset_settings() -> None:
        global _system_settings
        _system_settings = SystemSettings()
