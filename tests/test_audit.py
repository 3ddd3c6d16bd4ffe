"""Tests for audit helpers and audit log queries."""

from datetime import datetime, timedelta

from clearcare.features.audit.models import AuditLog
from clearcare.features.audit.service import (
    AuditService,
    infer_action,
    infer_resource_type,
    infer_status,
    scrub,
)


def test_scrub_redacts_nested_sensitive_keys():
    body = {
        "email": "a@example.com",
        "password": "Secret123",
        "profile": {"accessToken": "abc", "name": "Ann"},
        "codes": [{"otp": "1234"}],
    }
    assert scrub(body) == {
        "email": "a@example.com",
        "password": "[redacted]",
        "profile": {"accessToken": "[redacted]", "name": "Ann"},
        "codes": "[redacted]",
    }


def test_infer_action():
    assert infer_action("get") == "read"
    assert infer_action("POST") == "write"
    assert infer_action("PATCH") == "write"
    assert infer_action("DELETE") == "delete"


def test_infer_resource_type():
    assert infer_resource_type("/api/v1/instructions/abc/acknowledge") == "instruction"
    assert infer_resource_type("/api/v1/compliance/metrics?patient_id=1") == "compliance"
    assert infer_resource_type("/api/v1/admin/users") == "admin"
    assert infer_resource_type("/health") == "health"
    assert infer_resource_type("/") == "unknown"


def test_infer_status():
    assert infer_status(200) == "success"
    assert infer_status(302) == "success"
    assert infer_status(401) == "denied"
    assert infer_status(403) == "denied"
    assert infer_status(404) == "failure"
    assert infer_status(500) == "failure"


async def test_get_logs_filters_and_paginates(db):
    base = datetime(2024, 1, 1)
    for i in range(25):
        await AuditLog(
            user_id="u1" if i % 2 == 0 else "u2",
            action="read" if i < 20 else "delete",
            resource_type="instruction",
            timestamp=base + timedelta(hours=i),
        ).insert()

    page = await AuditService.get_logs(page=2, limit=10)
    assert page.total == 25
    assert page.page == 2
    assert page.limit == 10
    assert len(page.items) == 10
    # newest first
    assert page.items[0].timestamp == base + timedelta(hours=14)

    deletes = await AuditService.get_logs(action="delete")
    assert deletes.total == 5

    in_range = await AuditService.count_logs(
        user_id="u1",
        start_date=base,
        end_date=base + timedelta(hours=9),
    )
    assert in_range == 5


async def test_page_and_limit_are_clamped(db):
    page = await AuditService.get_logs(page=0, limit=1000)
    assert page.page == 1
    assert page.limit == 100

    page = await AuditService.get_logs(limit=0)
    assert page.limit == 1


async def test_record_writes_row(db):
    log = await AuditService.record(
        user_id="u1",
        action="write",
        resource_type="user",
        status="success",
    )
    assert log is not None
    assert await AuditLog.find_all().count() == 1
