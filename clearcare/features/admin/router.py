# Administration Feature - Router

from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from clearcare.features.admin.schemas import (
    CreateUserRequest,
    UpdateUserRequest,
    RoleResponse,
    SystemSettings,
    UpdateSystemSettingsRequest,
)
from clearcare.features.admin.service import AdminService
from clearcare.features.audit.schemas import AuditLogPage, AuditLogCount
from clearcare.features.audit.service import AuditService, DEFAULT_PAGE_SIZE
from clearcare.features.providers.schemas import GenerateReportRequest, ReportResponse
from clearcare.features.providers.service import ReportService, REPORT_SCOPE_ADMIN
from clearcare.features.auth.dependencies import require_roles, get_request_meta
from clearcare.features.auth.models import User
from clearcare.features.auth.schemas import UserResponse, MessageResponse
from clearcare.shared.access import ROLE_ADMINISTRATOR
from clearcare.shared.exceptions import ForbiddenException
from clearcare.shared.schemas import DataResponse, RequestMeta


current_admin = require_roles(ROLE_ADMINISTRATOR)

router = APIRouter(prefix="/admin", tags=["Administration"], dependencies=[Depends(current_admin)])


# ============== Users ==============

@router.get("/users", response_model=DataResponse[List[UserResponse]])
async def list_users():
    """List all users, including deactivated ones."""
    return DataResponse(data=await AdminService.get_users())


@router.get("/users/{user_id}", response_model=DataResponse[UserResponse])
async def get_user(user_id: str):
    return DataResponse(data=await AdminService.get_user(user_id))


@router.post("/users", response_model=DataResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    current_user: User = Depends(current_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Create a patient or provider account.

    - **password**: optional; a temporary password is emailed when omitted
    """
    user = await AdminService.create_user(request, current_user, meta)
    return DataResponse(data=user, message="User created successfully")


@router.put("/users/{user_id}", response_model=DataResponse[UserResponse])
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    current_user: User = Depends(current_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    user = await AdminService.update_user(user_id, request, current_user, meta)
    return DataResponse(data=user, message="User updated successfully")


@router.delete("/users/{user_id}", response_model=DataResponse[MessageResponse])
async def delete_user(
    user_id: str,
    current_user: User = Depends(current_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    await AdminService.delete_user(user_id, current_user, meta)
    return DataResponse(data=MessageResponse(message="User deactivated successfully"))


@router.post("/users/{user_id}/restore", response_model=DataResponse[UserResponse])
async def restore_user(
    user_id: str,
    current_user: User = Depends(current_admin),
    meta: RequestMeta = Depends(get_request_meta),
):
    user = await AdminService.restore_user(user_id, current_user, meta)
    return DataResponse(data=user, message="User restored successfully")


# ============== Roles ==============

@router.get("/roles", response_model=DataResponse[List[RoleResponse]])
async def list_roles():
    return DataResponse(data=await AdminService.get_roles())


@router.get("/roles/{role_id}", response_model=DataResponse[RoleResponse])
async def get_role(role_id: str):
    return DataResponse(data=await AdminService.get_role(role_id))


@router.post("/roles")
async def create_role():
    raise ForbiddenException("System roles cannot be created; only predefined roles are supported.")


@router.put("/roles/{role_id}")
async def update_role(role_id: str):
    raise ForbiddenException("System roles cannot be modified.")


@router.delete("/roles/{role_id}")
async def delete_role(role_id: str):
    raise ForbiddenException("System roles cannot be deleted.")


# ============== Audit logs ==============

@router.get("/audit-logs", response_model=DataResponse[AuditLogPage])
async def list_audit_logs(
    user_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
):
    """
    Audit logs, newest first.

    - **page**: clamped to at least 1
    - **limit**: clamped to 1..100
    """
    logs = await AuditService.get_logs(
        user_id=user_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return DataResponse(data=logs)


@router.get("/audit-logs/count", response_model=DataResponse[AuditLogCount])
async def count_audit_logs(
    user_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    total = await AuditService.count_logs(user_id, action, start_date, end_date)
    return DataResponse(data=AuditLogCount(total=total))


# ============== System settings ==============

@router.get("/settings", response_model=DataResponse[SystemSettings])
async def get_settings():
    return DataResponse(data=AdminService.get_settings())


@router.put("/settings", response_model=DataResponse[SystemSettings])
async def update_settings(request: UpdateSystemSettingsRequest):
    return DataResponse(data=AdminService.update_settings(request), message="Settings updated")


# ============== Reports ==============

@router.get("/reports", response_model=DataResponse[List[ReportResponse]])
async def list_reports():
    return DataResponse(data=await ReportService.get_reports(REPORT_SCOPE_ADMIN))


@router.get("/reports/{report_id}", response_model=DataResponse[ReportResponse])
async def get_report(report_id: str):
    return DataResponse(data=await ReportService.get_report(report_id, REPORT_SCOPE_ADMIN))


@router.post("/reports", response_model=DataResponse[ReportResponse], status_code=status.HTTP_201_CREATED)
async def generate_report(
    request: GenerateReportRequest,
    current_user: User = Depends(current_admin),
):
    """Generate a compliance, users, audit or system report."""
    report = await ReportService.generate_admin_report(request, str(current_user.id))
    return DataResponse(data=report)
