# Audit Log Feature - Service

import re
from typing import Any, Optional
from datetime import datetime
from clearcare.features.audit.models import AuditLog
from clearcare.features.audit.schemas import AuditLogResponse, AuditLogPage
from clearcare.core.logging import logger


SENSITIVE_KEY = re.compile(r"password|token|secret|code|otp|twofactor|2fa", re.IGNORECASE)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_RESOURCE_TYPES = {
    "patients": "patient",
    "providers": "provider",
    "instructions": "instruction",
    "compliance": "compliance",
    "users": "user",
    "admin": "admin",
    "auth": "auth",
}


def scrub(value: Any) -> Any:
    """Redact values under sensitive keys, recursively."""
    if isinstance(value, list):
        return [scrub(item) for item in value]
    if isinstance(value, dict):
        return {
            key: "[redacted]" if SENSITIVE_KEY.search(str(key)) else scrub(item)
            for key, item in value.items()
        }
    return value


def infer_action(method: str) -> str:
    method = method.upper()
    if method == "GET":
        return "read"
    if method in ("POST", "PUT", "PATCH"):
        return "write"
    if method == "DELETE":
        return "delete"
    return method.lower()


def infer_resource_type(path: str) -> str:
    """First path segment after the /api/v1 prefix, singularised."""
    parts = [part for part in path.split("?")[0].split("/") if part]
    index = 2 if parts[:2] == ["api", "v1"] else 0
    first = parts[index].lower() if len(parts) > index else ""
    return _RESOURCE_TYPES.get(first, first or "unknown")


def infer_status(status_code: int) -> str:
    if status_code < 400:
        return "success"
    if status_code in (401, 403):
        return "denied"
    return "failure"


class AuditService:
    """Service class for writing and querying the audit log."""

    @staticmethod
    def log_to_response(log: AuditLog) -> AuditLogResponse:
        return AuditLogResponse(
            id=str(log.id),
            user_id=log.user_id,
            user_email=log.user_email,
            user_name=log.user_name,
            action=log.action,
            resource_type=log.resource_type,
            resource_id=log.resource_id,
            resource_name=log.resource_name,
            ip_address=log.ip_address,
            user_agent=log.user_agent,
            status=log.status,
            details=log.details,
            timestamp=log.timestamp,
        )

    @staticmethod
    async def record(**fields) -> Optional[AuditLog]:
        """
        Write an audit row.

        Failures are logged and swallowed so auditing never breaks a request.
        """
        try:
            log = AuditLog(**fields)
            await log.insert()
            return log
        except Exception as e:
            logger.error(f"Failed to write audit log: {type(e).__name__}: {e}")
            return None

    @staticmethod
    def _filters(
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> dict:
        query: dict = {}
        if user_id:
            query["user_id"] = user_id
        if action:
            query["action"] = action
        if start_date or end_date:
            query["timestamp"] = {}
            if start_date:
                query["timestamp"]["$gte"] = start_date
            if end_date:
                query["timestamp"]["$lte"] = end_date
        return query

    @staticmethod
    async def get_logs(
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> AuditLogPage:
        """Filtered audit logs, newest first. Page and limit are clamped."""
        page = max(1, page)
        limit = min(MAX_PAGE_SIZE, max(1, limit))
        query = AuditService._filters(user_id, action, start_date, end_date)

        logs = await AuditLog.find(query).sort(-AuditLog.timestamp).skip((page - 1) * limit).limit(limit).to_list()
        total = await AuditLog.find(query).count()

        return AuditLogPage(
            items=[AuditService.log_to_response(log) for log in logs],
            total=total,
            page=page,
            limit=limit,
        )

    @staticmethod
    async def count_logs(
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> int:
        return await AuditLog.find(AuditService._filters(user_id, action, start_date, end_date)).count()
