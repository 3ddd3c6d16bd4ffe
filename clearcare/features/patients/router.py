# Patient Management Feature - Router

from typing import List
from fastapi import APIRouter, Depends, status
from clearcare.features.patients.models import Patient
from clearcare.features.patients.schemas import (
    CreatePatientRequest,
    UpdatePatientRequest,
    PatientResponse,
)
from clearcare.features.patients.service import PatientService
from clearcare.features.patients.dependencies import get_current_patient
from clearcare.features.auth.dependencies import get_current_user, get_request_meta
from clearcare.features.auth.models import User
from clearcare.shared.schemas import DataResponse, RequestMeta


router = APIRouter(prefix="/patients", tags=["Patients"])


@router.post("", response_model=DataResponse[PatientResponse], status_code=status.HTTP_201_CREATED)
async def create_patient(
    request: CreatePatientRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Create a patient record for an existing user account.

    Administrators only.
    """
    patient = await PatientService.create_patient(
        request, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=patient, message="Patient created successfully")


@router.get("", response_model=DataResponse[List[PatientResponse]])
async def list_patients(current_user: User = Depends(get_current_user)):
    """
    List patients visible to the caller.

    - patient: their own record
    - provider: assigned patients
    - administrator: all patients
    """
    patients = await PatientService.get_patients(str(current_user.id), current_user.role)
    return DataResponse(data=patients)


@router.get("/me", response_model=DataResponse[PatientResponse])
async def get_my_patient(patient: Patient = Depends(get_current_patient)):
    """Get the authenticated patient's own record."""
    return DataResponse(data=await PatientService.get_my_patient(patient.user_id))


@router.get("/by-user/{user_id}", response_model=DataResponse[PatientResponse])
async def get_patient_by_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
):
    """Look up a patient record by its user id. Administrators only."""
    patient = await PatientService.get_patient_by_user_id(user_id, current_user.role)
    return DataResponse(data=patient)


@router.get("/{patient_id}", response_model=DataResponse[PatientResponse])
async def get_patient(
    patient_id: str,
    current_user: User = Depends(get_current_user),
):
    patient = await PatientService.get_patient(patient_id, str(current_user.id), current_user.role)
    return DataResponse(data=patient)


@router.put("/{patient_id}", response_model=DataResponse[PatientResponse])
async def update_patient(
    patient_id: str,
    request: UpdatePatientRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Update patient demographics.

    Only administrators may change provider assignments.
    """
    patient = await PatientService.update_patient(
        patient_id, request, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=patient, message="Patient updated successfully")
