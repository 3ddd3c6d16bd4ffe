# Audit Log Feature - HTTP middleware

import json
from fastapi import Request
from clearcare.config import settings
from clearcare.features.audit.service import (
    AuditService,
    scrub,
    infer_action,
    infer_resource_type,
    infer_status,
)


async def audit_requests(request: Request, call_next):
    """Write an audit row for every authenticated API request."""
    if not settings.AUDIT_LOG_ENABLED:
        return await call_next(request)

    method = request.method.upper()
    body = None
    if method != "GET" and "json" in request.headers.get("content-type", ""):
        raw = await request.body()
        try:
            body = scrub(json.loads(raw)) if raw else None
        except ValueError:
            body = None

    response = await call_next(request)

    # Set by get_current_user; unauthenticated calls are not audited
    user = getattr(request.state, "user", None)
    if user is None:
        return response

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else ""

    path_params = request.scope.get("path_params") or {}
    resource_id = next((v for v in path_params.values() if isinstance(v, str) and v.strip()), None)

    await AuditService.record(
        user_id=str(user.id),
        user_email=user.email or "",
        user_name=f"{user.first_name or ''} {user.last_name or ''}".strip() or user.email,
        action=infer_action(method),
        resource_type=infer_resource_type(request.url.path),
        resource_id=resource_id,
        ip_address=ip_address or "unknown",
        user_agent=request.headers.get("user-agent", ""),
        status=infer_status(response.status_code),
        details={
            "method": method,
            "path": request.url.path,
            "query": scrub(dict(request.query_params)),
            "body": body,
            "status_code": response.status_code,
        },
    )
    return response
