"""Tests for the role-scoped access policy."""

from types import SimpleNamespace

import pytest

from clearcare.shared.access import (
    AdministratorPolicy,
    PatientPolicy,
    ProviderPolicy,
    can_access,
    ensure_access,
    get_policy,
    require_role,
)
from clearcare.shared.exceptions import ForbiddenException


PATIENT = SimpleNamespace(user_id="u-patient", assigned_provider_ids=["u-doc"])


def test_patient_sees_only_own_record():
    assert can_access("patient", "u-patient", PATIENT)
    assert not can_access("patient", "u-someone-else", PATIENT)


def test_patient_without_record_is_denied():
    assert not can_access("patient", "u-patient", None)


def test_provider_needs_assignment():
    assert can_access("provider", "u-doc", PATIENT)
    assert not can_access("provider", "u-other-doc", PATIENT)


def test_provider_with_no_assignments():
    unassigned = SimpleNamespace(user_id="u-patient", assigned_provider_ids=[])
    assert not can_access("provider", "u-doc", unassigned)


def test_administrator_unrestricted():
    assert can_access("administrator", "u-admin", PATIENT)


def test_unknown_role_denied():
    assert not can_access("nurse", "u-patient", PATIENT)
    with pytest.raises(ForbiddenException):
        get_policy("nurse")


def test_patient_filters():
    assert PatientPolicy().patient_filter("u1") == {"user_id": "u1", "deleted_at": None}
    assert ProviderPolicy().patient_filter("u2") == {"assigned_provider_ids": "u2", "deleted_at": None}
    assert AdministratorPolicy().patient_filter("u3") is None


def test_ensure_access_raises_with_detail():
    with pytest.raises(ForbiddenException) as exc_info:
        ensure_access("provider", "u-other-doc", PATIENT, "not yours")
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "not yours"


def test_require_role():
    require_role("provider", "provider", "administrator")
    with pytest.raises(ForbiddenException):
        require_role("patient", "provider")
