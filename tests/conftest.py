"""Shared fixtures: in-memory MongoDB, user/patient factories and a stand-in user."""

import os

# Must be set before clearcare.config is imported
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-0123456789abcdef")
os.environ.setdefault("AUDIT_LOG_ENABLED", "false")
os.environ.setdefault("SMTP_USER", "")

from types import SimpleNamespace

import pytest
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from clearcare.core.encryption import encryption
from clearcare.database import document_models
from clearcare.features.auth.models import User
from clearcare.features.patients.models import Patient


@pytest.fixture
async def db():
    """Fresh in-memory database with every document model registered."""
    client = AsyncMongoMockClient()
    database = client["clearcare_test"]
    await init_beanie(database=database, document_models=document_models())
    yield database


async def create_user(role="patient", email=None, first_name="Test", last_name="User") -> User:
    user = User(
        email=email or f"{role}-{os.urandom(4).hex()}@example.com",
        password_hash="not-a-real-hash",
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    await user.insert()
    return user


async def create_patient(user: User, provider_ids=()) -> Patient:
    patient = Patient(
        user_id=str(user.id),
        date_of_birth=encryption.encrypt("1985-04-12"),
        medical_record_number=encryption.encrypt("MRN-TEST"),
        assigned_provider_ids=[str(p) for p in provider_ids],
    )
    await patient.insert()
    return patient


@pytest.fixture
async def care_team(db):
    """A provider with one assigned patient, plus an unrelated provider and patient."""
    provider = await create_user("provider", first_name="Gregory", last_name="House")
    other_provider = await create_user("provider", first_name="Lisa", last_name="Cuddy")
    admin = await create_user("administrator", first_name="Ada", last_name="Admin")

    patient_user = await create_user("patient", first_name="Pat", last_name="Smith")
    patient = await create_patient(patient_user, provider_ids=[provider.id])

    other_patient_user = await create_user("patient", first_name="Oscar", last_name="Jones")
    other_patient = await create_patient(other_patient_user, provider_ids=[other_provider.id])

    return SimpleNamespace(
        provider=provider,
        other_provider=other_provider,
        admin=admin,
        patient_user=patient_user,
        patient=patient,
        other_patient_user=other_patient_user,
        other_patient=other_patient,
    )


def fake_user(role="patient", user_id="65f0c0ffee0000000000abcd", email="user@example.com"):
    """Stand-in for an authenticated User in HTTP tests (no database needed)."""
    return SimpleNamespace(
        id=user_id,
        email=email,
        first_name="Test",
        last_name="User",
        role=role,
    )
