# Provider Tools Feature - Router

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from clearcare.features.providers.schemas import (
    CreateTemplateRequest,
    UpdateTemplateRequest,
    TemplateResponse,
    GenerateReportRequest,
    ReportResponse,
)
from clearcare.features.providers.service import TemplateService, ReportService, REPORT_SCOPE_PROVIDER
from clearcare.features.instructions.schemas import (
    CreateInstructionRequest,
    UpdateInstructionRequest,
    InstructionResponse,
    MessageResponse,
)
from clearcare.features.instructions.service import InstructionService
from clearcare.features.compliance.schemas import ComplianceResponse, ComplianceMetrics
from clearcare.features.compliance.service import ComplianceService
from clearcare.features.patients.schemas import PatientResponse
from clearcare.features.patients.service import PatientService
from clearcare.features.auth.dependencies import require_roles, get_request_meta
from clearcare.features.auth.models import User
from clearcare.shared.access import ROLE_PROVIDER
from clearcare.shared.schemas import DataResponse, RequestMeta


router = APIRouter(prefix="/providers", tags=["Providers"])

current_provider = require_roles(ROLE_PROVIDER)


# ============== Reports ==============

@router.get("/reports", response_model=DataResponse[List[ReportResponse]])
async def list_reports(current_user: User = Depends(current_provider)):
    reports = await ReportService.get_reports(REPORT_SCOPE_PROVIDER, str(current_user.id))
    return DataResponse(data=reports)


@router.post("/reports", response_model=DataResponse[ReportResponse], status_code=status.HTTP_201_CREATED)
async def generate_report(
    request: GenerateReportRequest,
    current_user: User = Depends(current_provider),
):
    """
    Generate a report over the provider's patients.

    - **date_range**: start/end; date-only values cover whole days
    """
    report = await ReportService.generate_provider_report(request, str(current_user.id), current_user.role)
    return DataResponse(data=report)


@router.get("/reports/{report_id}", response_model=DataResponse[ReportResponse])
async def get_report(report_id: str, current_user: User = Depends(current_provider)):
    report = await ReportService.get_report(report_id, REPORT_SCOPE_PROVIDER, str(current_user.id))
    return DataResponse(data=report)


# ============== Templates ==============

@router.get("/templates", response_model=DataResponse[List[TemplateResponse]])
async def list_templates(current_user: User = Depends(current_provider)):
    templates = await TemplateService.get_templates(str(current_user.id), current_user.role)
    return DataResponse(data=templates)


@router.post("/templates", response_model=DataResponse[TemplateResponse], status_code=status.HTTP_201_CREATED)
async def create_template(
    request: CreateTemplateRequest,
    current_user: User = Depends(current_provider),
):
    template = await TemplateService.create_template(request, str(current_user.id), current_user.role)
    return DataResponse(data=template, message="Template created successfully")


@router.get("/templates/{template_id}", response_model=DataResponse[TemplateResponse])
async def get_template(template_id: str, current_user: User = Depends(current_provider)):
    template = await TemplateService.get_template(template_id, str(current_user.id), current_user.role)
    return DataResponse(data=template)


@router.put("/templates/{template_id}", response_model=DataResponse[TemplateResponse])
async def update_template(
    template_id: str,
    request: UpdateTemplateRequest,
    current_user: User = Depends(current_provider),
):
    template = await TemplateService.update_template(
        template_id, request, str(current_user.id), current_user.role
    )
    return DataResponse(data=template, message="Template updated successfully")


@router.delete("/templates/{template_id}", response_model=DataResponse[MessageResponse])
async def delete_template(template_id: str, current_user: User = Depends(current_provider)):
    await TemplateService.delete_template(template_id, str(current_user.id), current_user.role)
    return DataResponse(data=MessageResponse(message="Template deleted successfully"))


# ============== Instructions ==============

@router.get("/instructions", response_model=DataResponse[List[InstructionResponse]])
async def list_instructions(
    patient_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    current_user: User = Depends(current_provider),
):
    instructions = await InstructionService.get_instructions(
        str(current_user.id),
        current_user.role,
        patient_id=patient_id,
        status=status,
        instruction_type=type,
    )
    return DataResponse(data=instructions)


@router.get("/instructions/{instruction_id}", response_model=DataResponse[InstructionResponse])
async def get_instruction(instruction_id: str, current_user: User = Depends(current_provider)):
    instruction = await InstructionService.get_instruction(
        instruction_id, str(current_user.id), current_user.role
    )
    return DataResponse(data=instruction)


@router.post("/instructions", response_model=DataResponse[InstructionResponse], status_code=status.HTTP_201_CREATED)
async def create_instruction(
    request: CreateInstructionRequest,
    current_user: User = Depends(current_provider),
    meta: RequestMeta = Depends(get_request_meta),
):
    instruction = await InstructionService.create_instruction(
        request, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=instruction, message="Instruction created successfully")


@router.put("/instructions/{instruction_id}", response_model=DataResponse[InstructionResponse])
async def update_instruction(
    instruction_id: str,
    request: UpdateInstructionRequest,
    current_user: User = Depends(current_provider),
    meta: RequestMeta = Depends(get_request_meta),
):
    instruction = await InstructionService.update_instruction(
        instruction_id, request, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=instruction, message="Instruction updated successfully")


@router.delete("/instructions/{instruction_id}", response_model=DataResponse[MessageResponse])
async def delete_instruction(
    instruction_id: str,
    current_user: User = Depends(current_provider),
    meta: RequestMeta = Depends(get_request_meta),
):
    result = await InstructionService.delete_instruction(
        instruction_id, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=result)


# ============== Patients ==============

@router.get("/patients", response_model=DataResponse[List[PatientResponse]])
async def list_patients(current_user: User = Depends(current_provider)):
    """Patients assigned to the provider."""
    patients = await PatientService.get_patients(str(current_user.id), current_user.role)
    return DataResponse(data=patients)


@router.get("/patients/{patient_id}/compliance/metrics", response_model=DataResponse[ComplianceMetrics])
async def get_patient_compliance_metrics(
    patient_id: str,
    current_user: User = Depends(current_provider),
):
    await PatientService.get_patient(patient_id, str(current_user.id), current_user.role)
    metrics = await ComplianceService.get_metrics(
        str(current_user.id), current_user.role, patient_id=patient_id
    )
    return DataResponse(data=metrics)


@router.get("/patients/{patient_id}/compliance", response_model=DataResponse[List[ComplianceResponse]])
async def get_patient_compliance(
    patient_id: str,
    current_user: User = Depends(current_provider),
):
    await PatientService.get_patient(patient_id, str(current_user.id), current_user.role)
    records = await ComplianceService.get_records(
        str(current_user.id), current_user.role, patient_id=patient_id
    )
    return DataResponse(data=records)


@router.get("/patients/{patient_id}", response_model=DataResponse[PatientResponse])
async def get_patient(patient_id: str, current_user: User = Depends(current_provider)):
    patient = await PatientService.get_patient(patient_id, str(current_user.id), current_user.role)
    return DataResponse(data=patient)
