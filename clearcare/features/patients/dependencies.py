# Patient Management Feature - Dependencies

from fastapi import Depends
from clearcare.features.patients.models import Patient
from clearcare.features.patients.service import PatientService
from clearcare.features.auth.dependencies import require_roles
from clearcare.features.auth.models import User
from clearcare.core.logging import logger
from clearcare.shared.access import ROLE_PATIENT
from clearcare.shared.exceptions import NotFoundException


async def get_current_patient(
    current_user: User = Depends(require_roles(ROLE_PATIENT)),
) -> Patient:
    """
    Dependency to get the patient record of the authenticated patient user.

    Raises:
        ForbiddenException: If the caller is not a patient
        NotFoundException: If no patient record exists for the account
    """
    patient = await PatientService.find_patient_for_user(str(current_user.id))
    if patient is None:
        logger.warning(f"Patient user {current_user.id} has no patient record")
        raise NotFoundException("No patient record for this account")
    return patient
