"""Tests for patient management against an in-memory database."""

import pytest
from bson import ObjectId

from clearcare.features.patients.models import Patient, PatientHistory
from clearcare.features.patients.schemas import CreatePatientRequest, UpdatePatientRequest
from clearcare.features.patients.service import PatientService
from clearcare.shared.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)

from conftest import create_user


async def test_admin_creates_patient_with_encrypted_phi(db):
    admin = await create_user("administrator")
    provider = await create_user("provider")
    user = await create_user("patient", first_name="Maria", last_name="Lopez")

    request = CreatePatientRequest(
        user_id=str(user.id),
        date_of_birth="1990-06-01",
        gender="female",
        medical_record_number="MRN-1001",
        phone="555-0100",
        address_city="Springfield",
        emergency_contact_name="Luis Lopez",
        assigned_provider_ids=[str(provider.id)],
    )
    response = await PatientService.create_patient(request, str(admin.id), "administrator")

    assert response.first_name == "Maria"
    assert response.date_of_birth == "1990-06-01"
    assert response.medical_record_number == "MRN-1001"
    assert response.address.city == "Springfield"
    assert response.emergency_contact.name == "Luis Lopez"

    stored = await Patient.get(ObjectId(response.id))
    assert stored.date_of_birth.startswith("enc:")
    assert stored.medical_record_number.startswith("enc:")
    assert stored.gender == "female"

    history = await PatientHistory.find(PatientHistory.patient_id == response.id).to_list()
    assert [h.action for h in history] == ["create"]


async def test_only_admin_creates_patients(care_team):
    user = await create_user("patient")
    request = CreatePatientRequest(user_id=str(user.id))
    with pytest.raises(ForbiddenException):
        await PatientService.create_patient(request, str(care_team.provider.id), "provider")


async def test_duplicate_patient_record_rejected(care_team):
    request = CreatePatientRequest(user_id=str(care_team.patient_user.id))
    with pytest.raises(BadRequestException):
        await PatientService.create_patient(request, str(care_team.admin.id), "administrator")


async def test_create_for_unknown_user(db):
    request = CreatePatientRequest(user_id="65f0c0ffee0000000000dead")
    with pytest.raises(NotFoundException):
        await PatientService.create_patient(request, "admin", "administrator")


async def test_get_patient_access(care_team):
    patient_id = str(care_team.patient.id)

    own = await PatientService.get_patient(patient_id, str(care_team.patient_user.id), "patient")
    assert own.id == patient_id

    assigned = await PatientService.get_patient(patient_id, str(care_team.provider.id), "provider")
    assert assigned.last_name == "Smith"

    with pytest.raises(ForbiddenException):
        await PatientService.get_patient(patient_id, str(care_team.other_provider.id), "provider")
    with pytest.raises(ForbiddenException):
        await PatientService.get_patient(patient_id, str(care_team.other_patient_user.id), "patient")


async def test_get_missing_patient(db):
    with pytest.raises(NotFoundException):
        await PatientService.get_patient("not-an-id", "u", "administrator")


async def test_list_is_role_scoped(care_team):
    as_admin = await PatientService.get_patients(str(care_team.admin.id), "administrator")
    assert len(as_admin) == 2

    as_provider = await PatientService.get_patients(str(care_team.provider.id), "provider")
    assert [p.id for p in as_provider] == [str(care_team.patient.id)]

    as_patient = await PatientService.get_patients(str(care_team.patient_user.id), "patient")
    assert [p.id for p in as_patient] == [str(care_team.patient.id)]


async def test_patient_without_record_lists_nothing(db):
    user = await create_user("patient")
    assert await PatientService.get_patients(str(user.id), "patient") == []


async def test_lookup_by_user_is_admin_only(care_team):
    found = await PatientService.get_patient_by_user_id(str(care_team.patient_user.id), "administrator")
    assert found.id == str(care_team.patient.id)

    with pytest.raises(ForbiddenException):
        await PatientService.get_patient_by_user_id(str(care_team.patient_user.id), "provider")


async def test_provider_updates_demographics_but_not_assignments(care_team):
    patient_id = str(care_team.patient.id)
    provider_id = str(care_team.provider.id)

    updated = await PatientService.update_patient(
        patient_id, UpdatePatientRequest(phone="555-0199"), provider_id, "provider"
    )
    assert updated.phone == "555-0199"

    with pytest.raises(ForbiddenException):
        await PatientService.update_patient(
            patient_id,
            UpdatePatientRequest(assigned_provider_ids=[provider_id, "someone"]),
            provider_id,
            "provider",
        )

    history = await PatientHistory.find(PatientHistory.patient_id == patient_id).to_list()
    assert [h.action for h in history] == ["update"]


async def test_admin_reassigns_providers(care_team):
    patient_id = str(care_team.patient.id)
    updated = await PatientService.update_patient(
        patient_id,
        UpdatePatientRequest(assigned_provider_ids=[str(care_team.other_provider.id)]),
        str(care_team.admin.id),
        "administrator",
    )
    assert updated.assigned_provider_ids == [str(care_team.other_provider.id)]

    with pytest.raises(ForbiddenException):
        await PatientService.get_patient(patient_id, str(care_team.provider.id), "provider")


async def test_get_my_patient(care_team):
    mine = await PatientService.get_my_patient(str(care_team.patient_user.id))
    assert mine.id == str(care_team.patient.id)

    with pytest.raises(NotFoundException):
        await PatientService.get_my_patient(str(care_team.provider.id))
