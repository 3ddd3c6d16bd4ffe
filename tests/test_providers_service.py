"""Tests for provider templates and report generation."""

from datetime import datetime
from types import SimpleNamespace

import pytest
from bson import ObjectId

from clearcare.features.instructions.schemas import CreateInstructionRequest
from clearcare.features.instructions.service import InstructionService
from clearcare.features.providers.models import InstructionTemplate
from clearcare.features.providers.schemas import (
    CreateTemplateRequest,
    DateRange,
    GenerateReportRequest,
    UpdateTemplateRequest,
)
from clearcare.features.providers.service import (
    REPORT_SCOPE_ADMIN,
    REPORT_SCOPE_PROVIDER,
    ReportService,
    TemplateService,
    parse_date_range,
    round_one_decimal,
    summarize_compliance,
)
from clearcare.shared.exceptions import BadRequestException, ForbiddenException, NotFoundException


# ==================== Templates ====================

async def test_template_crud_is_encrypted_and_owned(care_team):
    provider_id = str(care_team.provider.id)

    created = await TemplateService.create_template(
        CreateTemplateRequest(
            name="Post-op wound care",
            type="warning",
            description="Standard discharge warning",
            content="Watch for redness or fever",
            details={"severity": "high"},
        ),
        provider_id,
        "provider",
    )
    assert created.name == "Post-op wound care"
    assert created.details == {"severity": "high"}

    stored = await InstructionTemplate.get(ObjectId(created.id))
    assert stored.name.startswith("enc:")
    assert stored.content.startswith("enc:")
    assert "_encrypted" in stored.details

    updated = await TemplateService.update_template(
        created.id, UpdateTemplateRequest(content="Call if fever over 38C"), provider_id, "provider"
    )
    assert updated.content == "Call if fever over 38C"
    assert updated.name == "Post-op wound care"

    listed = await TemplateService.get_templates(provider_id, "provider")
    assert [t.id for t in listed] == [created.id]

    await TemplateService.delete_template(created.id, provider_id, "provider")
    with pytest.raises(NotFoundException):
        await TemplateService.get_template(created.id, provider_id, "provider")


async def test_other_providers_template_is_not_found(care_team):
    created = await TemplateService.create_template(
        CreateTemplateRequest(name="Diet", type="lifestyle", content="Low sodium"),
        str(care_team.provider.id),
        "provider",
    )

    other = str(care_team.other_provider.id)
    with pytest.raises(NotFoundException):
        await TemplateService.get_template(created.id, other, "provider")
    with pytest.raises(NotFoundException):
        await TemplateService.delete_template(created.id, other, "provider")
    assert await TemplateService.get_templates(other, "provider") == []


async def test_templates_are_provider_only(care_team):
    with pytest.raises(ForbiddenException):
        await TemplateService.get_templates(str(care_team.patient_user.id), "patient")


# ==================== Report helpers ====================

def test_parse_date_range_expands_date_only_bounds():
    start, end = parse_date_range(DateRange(start="2024-01-01", end="2024-01-31"))

    assert start == datetime(2024, 1, 1, 0, 0, 0)
    assert end == datetime(2024, 1, 31, 23, 59, 59, 999000)


def test_parse_date_range_keeps_timestamps():
    start, end = parse_date_range(
        DateRange(start="2024-01-01T08:30:00Z", end="2024-01-01T12:00:00+02:00")
    )

    assert start == datetime(2024, 1, 1, 8, 30)
    assert end == datetime(2024, 1, 1, 10, 0)


@pytest.mark.parametrize(
    "date_range",
    [
        DateRange(start="yesterday", end="2024-01-31"),
        DateRange(start="2024-02-01", end="2024-01-01"),
    ],
)
def test_parse_date_range_rejects_bad_input(date_range):
    with pytest.raises(BadRequestException):
        parse_date_range(date_range)


def test_round_one_decimal_rounds_half_up():
    assert round_one_decimal(66.666) == 66.7
    assert round_one_decimal(0.25) == 0.3
    assert round_one_decimal(0) == 0.0


def test_summarize_compliance_per_patient():
    date_range = DateRange(start="2024-01-01", end="2024-01-31")
    instructions = [
        SimpleNamespace(patient_id="p1", acknowledged_date=datetime(2024, 1, 3)),
        SimpleNamespace(patient_id="p1", acknowledged_date=None),
        SimpleNamespace(patient_id="p2", acknowledged_date=None),
        SimpleNamespace(patient_id="unassigned", acknowledged_date=None),
    ]
    records = [
        SimpleNamespace(patient_id="p1", overall_percentage=100),
        SimpleNamespace(patient_id="p1", overall_percentage=50),
        SimpleNamespace(patient_id="p2", overall_percentage=33.33),
    ]

    data = summarize_compliance(["p1", "p2"], instructions, records, date_range)

    assert data.total_patients == 2
    assert data.total_instructions == 4
    assert data.acknowledged_instructions == 1
    assert data.compliance_records_count == 3
    assert data.average_compliance_percent == 61.1
    rows = {row.patient_id: row for row in data.by_patient}
    assert rows["p1"].instructions == 2
    assert rows["p1"].acknowledged == 1
    assert rows["p1"].compliance_avg == 75.0
    assert rows["p2"].compliance_avg == 33.3


def test_summarize_compliance_empty():
    data = summarize_compliance([], [], [], DateRange(start="2024-01-01", end="2024-01-01"))

    assert data.average_compliance_percent == 0
    assert data.by_patient == []


# ==================== Reports ====================

def today_range() -> DateRange:
    today = datetime.utcnow().date().isoformat()
    return DateRange(start=today, end=today)


async def test_provider_report_is_persisted_and_scoped(care_team):
    provider_id = str(care_team.provider.id)
    await InstructionService.create_instruction(
        CreateInstructionRequest(
            patient_id=str(care_team.patient.id),
            title="Check blood pressure",
            type="follow-up",
            content="Book a visit in two weeks",
        ),
        provider_id,
        "provider",
    )

    report = await ReportService.generate_provider_report(
        GenerateReportRequest(type="compliance", date_range=today_range()),
        provider_id,
        "provider",
    )
    assert report.generated_by == provider_id
    assert report.title == "compliance Report"
    assert report.data["total_patients"] == 1
    assert report.data["total_instructions"] == 1
    assert report.data["by_patient"][0]["patient_id"] == str(care_team.patient.id)

    listed = await ReportService.get_reports(REPORT_SCOPE_PROVIDER, provider_id)
    assert [r.id for r in listed] == [report.id]
    assert await ReportService.get_reports(REPORT_SCOPE_PROVIDER, str(care_team.other_provider.id)) == []
    assert await ReportService.get_reports(REPORT_SCOPE_ADMIN) == []

    fetched = await ReportService.get_report(report.id, REPORT_SCOPE_PROVIDER, provider_id)
    assert fetched.data == report.data
    with pytest.raises(NotFoundException):
        await ReportService.get_report(report.id, REPORT_SCOPE_PROVIDER, str(care_team.other_provider.id))


async def test_admin_reports_by_type(care_team):
    admin_id = str(care_team.admin.id)

    users = await ReportService.generate_admin_report(
        GenerateReportRequest(type="users", date_range=today_range()), admin_id
    )
    assert users.data["total"] == 5
    assert "email" in users.data["columns"]

    system = await ReportService.generate_admin_report(
        GenerateReportRequest(type="system", date_range=today_range()), admin_id
    )
    assert system.data["total_users"] == 5
    assert system.data["users_by_role"] == {"provider": 2, "administrator": 1, "patient": 2}

    compliance = await ReportService.generate_admin_report(
        GenerateReportRequest(type="Compliance", date_range=today_range()), admin_id
    )
    assert compliance.data["total_patients"] == 2

    other = await ReportService.generate_admin_report(
        GenerateReportRequest(type="custom", date_range=today_range()), admin_id
    )
    assert other.data == {"date_range": today_range().model_dump()}

    listed = await ReportService.get_reports(REPORT_SCOPE_ADMIN)
    assert len(listed) == 4
