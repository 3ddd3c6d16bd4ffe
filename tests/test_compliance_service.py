"""Tests for compliance tracking against an in-memory database."""

import pytest
from pymongo.errors import DuplicateKeyError

from clearcare.features.compliance.schemas import (
    CreateComplianceRequest,
    UpdateComplianceRequest,
    UpdateLifestyleComplianceRequest,
    UpdateMedicationAdherenceRequest,
)
from clearcare.features.compliance.models import ComplianceRecord
from clearcare.features.compliance.service import ComplianceService
from clearcare.features.instructions.schemas import CreateInstructionRequest
from clearcare.features.instructions.service import InstructionService
from clearcare.shared.exceptions import BadRequestException, ForbiddenException, NotFoundException


async def new_instruction(team, instruction_type="medication"):
    details = (
        {"medication_details": {"name": "Metformin", "dosage": "500", "unit": "mg"}}
        if instruction_type == "medication"
        else {"lifestyle_details": {"category": "exercise"}}
    )
    return await InstructionService.create_instruction(
        CreateInstructionRequest(
            patient_id=str(team.patient.id),
            title=f"{instruction_type} plan",
            type=instruction_type,
            content="Follow the plan",
            compliance_tracking_enabled=True,
            **details,
        ),
        str(team.provider.id),
        "provider",
    )


async def new_record(team, record_type="medication"):
    instruction = await new_instruction(team, record_type)
    return await ComplianceService.create_record(
        CreateComplianceRequest(instruction_id=instruction.id, type=record_type),
        str(team.patient_user.id),
        "patient",
    )


async def test_patient_starts_tracking(care_team):
    record = await new_record(care_team)

    assert record.status == "not-started"
    assert record.overall_percentage == 0
    assert record.patient_id == str(care_team.patient.id)
    assert record.last_updated_by == str(care_team.patient_user.id)
    assert record.instruction.title == "medication plan"


async def test_duplicate_record_rejected(care_team):
    record = await new_record(care_team)

    with pytest.raises(BadRequestException):
        await ComplianceService.create_record(
            CreateComplianceRequest(instruction_id=record.instruction_id, type="medication"),
            str(care_team.provider.id),
            "provider",
        )


async def test_other_patient_cannot_track_or_read(care_team):
    instruction = await new_instruction(care_team)

    with pytest.raises(ForbiddenException):
        await ComplianceService.create_record(
            CreateComplianceRequest(instruction_id=instruction.id, type="medication"),
            str(care_team.other_patient_user.id),
            "patient",
        )

    record = await ComplianceService.create_record(
        CreateComplianceRequest(instruction_id=instruction.id, type="medication"),
        str(care_team.patient_user.id),
        "patient",
    )
    with pytest.raises(ForbiddenException):
        await ComplianceService.get_record(record.id, str(care_team.other_patient_user.id), "patient")
    with pytest.raises(ForbiddenException):
        await ComplianceService.get_record(record.id, str(care_team.other_provider.id), "provider")


async def test_unknown_record_is_not_found(care_team):
    with pytest.raises(NotFoundException):
        await ComplianceService.get_record("not-an-id", str(care_team.admin.id), "administrator")


async def test_medication_doses_recompute_progress(care_team):
    record = await new_record(care_team)
    caller = str(care_team.patient_user.id)

    await ComplianceService.update_medication_adherence(
        record.id,
        UpdateMedicationAdherenceRequest(date="2024-01-20", time="08:00", status="taken"),
        caller, "patient",
    )
    halfway = await ComplianceService.update_medication_adherence(
        record.id,
        UpdateMedicationAdherenceRequest(date="2024-01-20", time="20:00", status="missed", reason="asleep"),
        caller, "patient",
    )
    assert halfway.overall_percentage == 50
    assert halfway.status == "partial"
    assert len(halfway.medication_adherence.schedule) == 2

    # same (date, time) replaces the entry instead of appending
    done = await ComplianceService.update_medication_adherence(
        record.id,
        UpdateMedicationAdherenceRequest(date="2024-01-20T20:00:00", time="20:00", status="taken"),
        caller, "patient",
    )
    assert len(done.medication_adherence.schedule) == 2
    assert done.overall_percentage == 100
    assert done.status == "compliant"
    assert done.medication_adherence.schedule[1].reason == "asleep"


async def test_progress_override_keeps_computed_status(care_team):
    record = await new_record(care_team)

    updated = await ComplianceService.update_medication_adherence(
        record.id,
        UpdateMedicationAdherenceRequest(date="2024-01-21", status="missed", progress=40),
        str(care_team.provider.id), "provider",
    )

    assert updated.overall_percentage == 40
    assert updated.medication_adherence.overall_progress == 40
    assert updated.status == "non-compliant"
    assert updated.last_updated_by == str(care_team.provider.id)


async def test_lifestyle_check_ins_append(care_team):
    record = await new_record(care_team, "lifestyle")
    caller = str(care_team.patient_user.id)

    await ComplianceService.update_lifestyle_compliance(
        record.id, UpdateLifestyleComplianceRequest(date="2024-01-20", completed=True), caller, "patient"
    )
    updated = await ComplianceService.update_lifestyle_compliance(
        record.id,
        UpdateLifestyleComplianceRequest(date="2024-01-20", completed=False, notes="rained"),
        caller, "patient",
    )

    assert len(updated.lifestyle_compliance.check_ins) == 2
    assert updated.lifestyle_compliance.progress == 50
    assert updated.status == "partial"


async def test_sub_update_on_wrong_record_type(care_team):
    lifestyle = await new_record(care_team, "lifestyle")

    with pytest.raises(BadRequestException):
        await ComplianceService.update_medication_adherence(
            lifestyle.id,
            UpdateMedicationAdherenceRequest(date="2024-01-20", status="taken"),
            str(care_team.patient_user.id), "patient",
        )


async def test_update_record_overwrites_fields(care_team):
    record = await new_record(care_team)

    updated = await ComplianceService.update_record(
        record.id,
        UpdateComplianceRequest(status="partial", overall_percentage=65),
        str(care_team.admin.id), "administrator",
    )

    assert updated.status == "partial"
    assert updated.overall_percentage == 65


async def test_metrics_roll_up_visible_records(care_team):
    medication = await new_record(care_team, "medication")
    lifestyle = await new_record(care_team, "lifestyle")
    caller = str(care_team.patient_user.id)

    await ComplianceService.update_medication_adherence(
        medication.id, UpdateMedicationAdherenceRequest(date="2024-01-20", status="taken"), caller, "patient"
    )
    await ComplianceService.update_lifestyle_compliance(
        lifestyle.id, UpdateLifestyleComplianceRequest(date="2024-01-20", completed=True), caller, "patient"
    )
    await ComplianceService.update_lifestyle_compliance(
        lifestyle.id, UpdateLifestyleComplianceRequest(date="2024-01-21", completed=False), caller, "patient"
    )

    metrics = await ComplianceService.get_metrics(caller, "patient")
    assert metrics.patient_id == str(care_team.patient.id)
    assert metrics.overall_score == 75
    assert metrics.medication_adherence == 100
    assert metrics.lifestyle_compliance == 50
    assert metrics.appointment_compliance == 0
    assert metrics.active_instructions == 2
    assert metrics.compliant_instructions == 1
    assert len(metrics.trends) == 1
    assert metrics.trends[0].score == 75

    scoped = await ComplianceService.get_metrics(
        str(care_team.provider.id), "provider", patient_id=str(care_team.patient.id)
    )
    assert scoped.overall_score == 75

    hidden = await ComplianceService.get_metrics(str(care_team.other_provider.id), "provider")
    assert hidden.active_instructions == 0
    assert hidden.trends == []


async def test_records_listing_is_scoped(care_team):
    record = await new_record(care_team)

    mine = await ComplianceService.get_records(str(care_team.patient_user.id), "patient")
    assert [r.id for r in mine] == [record.id]

    assert await ComplianceService.get_records(str(care_team.other_patient_user.id), "patient") == []
    assert await ComplianceService.get_records(str(care_team.other_provider.id), "provider") == []

    everything = await ComplianceService.get_records(
        str(care_team.admin.id), "administrator", record_type="medication"
    )
    assert [r.id for r in everything] == [record.id]


async def test_update_record_rejects_blob_of_another_type(care_team):
    record = await new_record(care_team, "medication")

    with pytest.raises(BadRequestException):
        await ComplianceService.update_record(
            record.id,
            UpdateComplianceRequest(
                lifestyle_compliance={"check_ins": [{"date": "2024-01-01", "completed": True}]}
            ),
            str(care_team.provider.id), "provider",
        )

    unchanged = await ComplianceService.get_record(record.id, str(care_team.provider.id), "provider")
    assert unchanged.lifestyle_compliance is None

    updated = await ComplianceService.update_record(
        record.id,
        UpdateComplianceRequest(
            medication_adherence={"schedule": [{"date": "2024-01-01", "status": "taken"}], "overall_progress": 100}
        ),
        str(care_team.provider.id), "provider",
    )
    assert updated.medication_adherence.schedule[0].status == "taken"


async def test_one_record_per_instruction_and_type_in_storage(care_team):
    record = await new_record(care_team, "medication")

    with pytest.raises(DuplicateKeyError):
        await ComplianceRecord(
            instruction_id=record.instruction_id,
            patient_id=record.patient_id,
            type="medication",
            last_updated_by=str(care_team.provider.id),
        ).insert()
