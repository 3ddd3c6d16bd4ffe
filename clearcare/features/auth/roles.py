"""Static role definitions; roles are fixed and not stored in the database."""

from typing import List

from clearcare.shared.access import ROLE_PATIENT, ROLE_PROVIDER, ROLE_ADMINISTRATOR


ROLE_DEFINITIONS = [
    {
        "id": ROLE_PATIENT,
        "name": "Patient",
        "description": "Can view own instructions, compliance, and profile",
        "permissions": [
            "read:own-instructions",
            "write:own-acknowledgment",
            "read:own-compliance",
            "read:own-profile",
            "write:own-profile",
        ],
        "is_system_role": True,
    },
    {
        "id": ROLE_PROVIDER,
        "name": "Provider",
        "description": "Can manage patients, instructions, and compliance",
        "permissions": [
            "read:patients",
            "read:instructions",
            "write:instructions",
            "read:compliance",
            "read:reports",
            "write:templates",
        ],
        "is_system_role": True,
    },
    {
        "id": ROLE_ADMINISTRATOR,
        "name": "Administrator",
        "description": "Full system administration",
        "permissions": [
            "admin:users",
            "admin:roles",
            "admin:system",
            "admin:audit",
            "admin:reports",
        ],
        "is_system_role": True,
    },
]


def permissions_for_role(role: str) -> List[str]:
    for definition in ROLE_DEFINITIONS:
        if definition["id"] == role:
            return list(definition["permissions"])
    return []
