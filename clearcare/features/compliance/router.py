# Compliance Tracking Feature - Router

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from clearcare.features.compliance.schemas import (
    CreateComplianceRequest,
    UpdateComplianceRequest,
    UpdateMedicationAdherenceRequest,
    UpdateLifestyleComplianceRequest,
    ComplianceResponse,
    ComplianceMetrics,
)
from clearcare.features.compliance.service import ComplianceService
from clearcare.features.auth.dependencies import get_current_user
from clearcare.features.auth.models import User
from clearcare.shared.schemas import DataResponse


router = APIRouter(prefix="/compliance", tags=["Compliance"])


@router.post("", response_model=DataResponse[ComplianceResponse], status_code=status.HTTP_201_CREATED)
async def create_compliance_record(
    request: CreateComplianceRequest,
    current_user: User = Depends(get_current_user),
):
    """
    Start compliance tracking for an instruction.

    Only one record per instruction and type.
    """
    record = await ComplianceService.create_record(request, str(current_user.id), current_user.role)
    return DataResponse(data=record, message="Compliance record created successfully")


@router.get("", response_model=DataResponse[List[ComplianceResponse]])
async def list_compliance_records(
    instruction_id: Optional[str] = Query(None),
    patient_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    records = await ComplianceService.get_records(
        str(current_user.id),
        current_user.role,
        instruction_id=instruction_id,
        patient_id=patient_id,
        record_type=type,
    )
    return DataResponse(data=records)


@router.get("/metrics", response_model=DataResponse[ComplianceMetrics])
async def get_compliance_metrics(
    patient_id: Optional[str] = Query(None),
    instruction_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    """
    Aggregate compliance metrics.

    Returns overall and per-type scores, counts and a 7-day trend.
    """
    metrics = await ComplianceService.get_metrics(
        str(current_user.id),
        current_user.role,
        patient_id=patient_id,
        instruction_id=instruction_id,
    )
    return DataResponse(data=metrics)


@router.get("/{record_id}", response_model=DataResponse[ComplianceResponse])
async def get_compliance_record(
    record_id: str,
    current_user: User = Depends(get_current_user),
):
    record = await ComplianceService.get_record(record_id, str(current_user.id), current_user.role)
    return DataResponse(data=record)


@router.put("/{record_id}", response_model=DataResponse[ComplianceResponse])
async def update_compliance_record(
    record_id: str,
    request: UpdateComplianceRequest,
    current_user: User = Depends(get_current_user),
):
    record = await ComplianceService.update_record(
        record_id, request, str(current_user.id), current_user.role
    )
    return DataResponse(data=record)


@router.put("/{record_id}/medication", response_model=DataResponse[ComplianceResponse])
async def update_medication_adherence(
    record_id: str,
    request: UpdateMedicationAdherenceRequest,
    current_user: User = Depends(get_current_user),
):
    """
    Record a dose for a medication compliance record.

    - **date** / **time**: identify the schedule entry
    - **status**: taken, missed or pending
    - **progress**: optional explicit progress override
    """
    record = await ComplianceService.update_medication_adherence(
        record_id, request, str(current_user.id), current_user.role
    )
    return DataResponse(data=record)


@router.put("/{record_id}/lifestyle", response_model=DataResponse[ComplianceResponse])
async def update_lifestyle_compliance(
    record_id: str,
    request: UpdateLifestyleComplianceRequest,
    current_user: User = Depends(get_current_user),
):
    """Append a check-in to a lifestyle compliance record."""
    record = await ComplianceService.update_lifestyle_compliance(
        record_id, request, str(current_user.id), current_user.role
    )
    return DataResponse(data=record)
