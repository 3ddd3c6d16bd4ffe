"""
Role-scoped access policy.

Every read/write on instructions, compliance records and patients is
authorized against the patient the entity belongs to:

- patient: only their own patient record (patient.user_id == caller)
- provider: only patients whose assigned_provider_ids contain the caller
- administrator: unrestricted

Each role is a small strategy object so that services ask one question,
``can_access(role, caller_id, patient)``, instead of branching on the role.
The same strategies produce the MongoDB filter used to scope list queries.
"""

from typing import Dict, Iterable, Optional, Protocol

from clearcare.shared.exceptions import ForbiddenException


ROLE_PATIENT = "patient"
ROLE_PROVIDER = "provider"
ROLE_ADMINISTRATOR = "administrator"


class PatientLike(Protocol):
    """The two patient attributes the policy decides on."""

    user_id: str
    assigned_provider_ids: Iterable[str]


class RolePolicy:
    """Access strategy for one role."""

    role: str = ""

    def can_access(self, caller_id: str, patient: Optional[PatientLike]) -> bool:
        raise NotImplementedError

    def patient_filter(self, caller_id: str) -> Optional[dict]:
        """
        Filter on the patients collection selecting what the caller may see.

        Returns None when the role is unrestricted.
        """
        raise NotImplementedError


class PatientPolicy(RolePolicy):
    role = ROLE_PATIENT

    def can_access(self, caller_id, patient):
        return patient is not None and patient.user_id == caller_id

    def patient_filter(self, caller_id):
        return {"user_id": caller_id, "deleted_at": None}


class ProviderPolicy(RolePolicy):
    role = ROLE_PROVIDER

    def can_access(self, caller_id, patient):
        return patient is not None and caller_id in (patient.assigned_provider_ids or [])

    def patient_filter(self, caller_id):
        return {"assigned_provider_ids": caller_id, "deleted_at": None}


class AdministratorPolicy(RolePolicy):
    role = ROLE_ADMINISTRATOR

    def can_access(self, caller_id, patient):
        return True

    def patient_filter(self, caller_id):
        return None


POLICIES: Dict[str, RolePolicy] = {
    policy.role: policy
    for policy in (PatientPolicy(), ProviderPolicy(), AdministratorPolicy())
}


def get_policy(role: str) -> RolePolicy:
    """Look up the strategy for a role; unknown roles are forbidden."""
    policy = POLICIES.get(role)
    if policy is None:
        raise ForbiddenException(f"Unknown role: {role}")
    return policy


def can_access(role: str, caller_id: str, patient: Optional[PatientLike]) -> bool:
    """Single authorization predicate shared by every role-scoped service."""
    policy = POLICIES.get(role)
    if policy is None:
        return False
    return policy.can_access(caller_id, patient)


def ensure_access(
    role: str,
    caller_id: str,
    patient: Optional[PatientLike],
    detail: str = "You do not have access to this resource",
) -> None:
    if not can_access(role, caller_id, patient):
        raise ForbiddenException(detail)


def require_role(role: str, *allowed: str, detail: Optional[str] = None) -> None:
    """Operation-level gate (e.g. only providers create instructions)."""
    if role not in allowed:
        raise ForbiddenException(detail or f"This action requires role: {', '.join(allowed)}")
