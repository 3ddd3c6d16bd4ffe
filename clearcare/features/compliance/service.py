# Compliance Tracking Feature - Service

from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from clearcare.features.compliance.models import (
    ComplianceRecord,
    MedicationAdherence,
    LifestyleCompliance,
)
from clearcare.features.compliance.schemas import (
    CreateComplianceRequest,
    UpdateComplianceRequest,
    UpdateMedicationAdherenceRequest,
    UpdateLifestyleComplianceRequest,
    ComplianceResponse,
    ComplianceMetrics,
    InstructionSummary,
    BLOB_TYPES,
)
from clearcare.features.compliance.adherence import apply_dose, apply_check_in
from clearcare.features.compliance.metrics import compute_metrics
from clearcare.features.instructions.models import CareInstruction
from clearcare.features.instructions.service import InstructionService
from clearcare.features.patients.models import Patient
from clearcare.features.patients.service import PatientService
from clearcare.core.logging import logger
from clearcare.shared.access import ROLE_PATIENT, ensure_access
from clearcare.shared.exceptions import NotFoundException, BadRequestException


class ComplianceService:
    """Service class for compliance tracking operations."""

    # ==================== Helpers ====================

    @staticmethod
    async def get_record_document(record_id: str) -> ComplianceRecord:
        try:
            record = await ComplianceRecord.get(ObjectId(record_id))
        except (InvalidId, TypeError):
            raise NotFoundException("Compliance record not found")

        if not record:
            raise NotFoundException("Compliance record not found")

        return record

    @staticmethod
    async def _authorize(record: ComplianceRecord, caller_id: str, role: str, action: str) -> None:
        try:
            patient = await Patient.get(ObjectId(record.patient_id))
        except (InvalidId, TypeError):
            patient = None
        if patient is not None and patient.is_deleted:
            patient = None

        if role == ROLE_PATIENT:
            detail = f"You can only {action} your own compliance records"
        else:
            detail = f"You can only {action} compliance records for assigned patients"
        ensure_access(role, caller_id, patient, detail)

    @staticmethod
    async def _instruction_summary(instruction_id: str) -> Optional[InstructionSummary]:
        try:
            instruction = await CareInstruction.get(ObjectId(instruction_id))
        except (InvalidId, TypeError):
            return None
        if not instruction:
            return None
        return InstructionSummary(
            id=str(instruction.id),
            title=instruction.title,
            type=instruction.type,
            status=instruction.status,
        )

    @staticmethod
    def record_to_response(
        record: ComplianceRecord,
        instruction: Optional[InstructionSummary] = None,
    ) -> ComplianceResponse:
        return ComplianceResponse(
            id=str(record.id),
            instruction_id=record.instruction_id,
            patient_id=record.patient_id,
            type=record.type,
            status=record.status,
            overall_percentage=record.overall_percentage,
            medication_adherence=record.medication_adherence,
            lifestyle_compliance=record.lifestyle_compliance,
            appointment_compliance=record.appointment_compliance,
            last_updated_by=record.last_updated_by,
            instruction=instruction,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    async def _to_response(record: ComplianceRecord) -> ComplianceResponse:
        summary = await ComplianceService._instruction_summary(record.instruction_id)
        return ComplianceService.record_to_response(record, summary)

    @staticmethod
    def _ensure_type(record: ComplianceRecord, expected: str) -> None:
        if record.type != expected:
            raise BadRequestException(f"This record is not a {expected} compliance record")

    @staticmethod
    async def _visible_records(
        caller_id: str,
        role: str,
        instruction_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        record_type: Optional[str] = None,
    ) -> List[ComplianceRecord]:
        query: dict = {}

        if role == ROLE_PATIENT:
            patient = await PatientService.find_patient_for_user(caller_id)
            if patient is None:
                return []
            query["patient_id"] = str(patient.id)
        else:
            allowed_ids = await PatientService.accessible_patient_ids(caller_id, role)
            if allowed_ids is not None:
                if patient_id and patient_id not in allowed_ids:
                    return []
                query["patient_id"] = patient_id or {"$in": allowed_ids}
            elif patient_id:
                query["patient_id"] = patient_id

        if instruction_id:
            query["instruction_id"] = instruction_id
        if record_type:
            query["type"] = record_type

        return await ComplianceRecord.find(query).sort(-ComplianceRecord.updated_at).to_list()

    # ==================== Operations ====================

    @staticmethod
    async def create_record(request: CreateComplianceRequest, caller_id: str, role: str) -> ComplianceResponse:
        """Start compliance tracking for an instruction; one record per (instruction, type)."""
        instruction = await InstructionService.get_instruction_document(request.instruction_id)

        patient = await PatientService.get_patient_document(instruction.patient_id)
        if role == ROLE_PATIENT:
            detail = "You can only create compliance records for your own instructions"
        else:
            detail = "You can only create compliance records for assigned patients"
        ensure_access(role, caller_id, patient, detail)

        existing = await ComplianceRecord.find_one(
            ComplianceRecord.instruction_id == request.instruction_id,
            ComplianceRecord.patient_id == instruction.patient_id,
            ComplianceRecord.type == request.type,
        )
        if existing:
            raise BadRequestException("Compliance record already exists for this instruction")

        record = ComplianceRecord(
            instruction_id=request.instruction_id,
            patient_id=instruction.patient_id,
            type=request.type,
            status=request.status,
            overall_percentage=request.overall_percentage,
            medication_adherence=request.medication_adherence,
            lifestyle_compliance=request.lifestyle_compliance,
            appointment_compliance=request.appointment_compliance,
            last_updated_by=caller_id,
        )
        await record.insert()

        logger.info(f"Created {record.type} compliance record {record.id} for instruction {record.instruction_id}")
        return await ComplianceService._to_response(record)

    @staticmethod
    async def get_records(
        caller_id: str,
        role: str,
        instruction_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        record_type: Optional[str] = None,
    ) -> List[ComplianceResponse]:
        """List visible records, most recently updated first."""
        records = await ComplianceService._visible_records(
            caller_id, role, instruction_id, patient_id, record_type
        )
        return [await ComplianceService._to_response(r) for r in records]

    @staticmethod
    async def get_record(record_id: str, caller_id: str, role: str) -> ComplianceResponse:
        record = await ComplianceService.get_record_document(record_id)
        await ComplianceService._authorize(record, caller_id, role, "access")
        return await ComplianceService._to_response(record)

    @staticmethod
    async def update_record(
        record_id: str,
        request: UpdateComplianceRequest,
        caller_id: str,
        role: str,
    ) -> ComplianceResponse:
        """Overwrite status, percentage or adherence blobs."""
        record = await ComplianceService.get_record_document(record_id)
        await ComplianceService._authorize(record, caller_id, role, "update")

        for field, blob_type in BLOB_TYPES.items():
            if getattr(request, field) is not None and blob_type != record.type:
                raise BadRequestException(f"{field} is not allowed on a {record.type} compliance record")

        for field in request.model_fields_set:
            value = getattr(request, field)
            if value is not None:
                setattr(record, field, value)

        record.last_updated_by = caller_id
        record.updated_at = datetime.utcnow()
        await record.save()

        logger.info(f"Updated compliance record {record_id}")
        return await ComplianceService._to_response(record)

    @staticmethod
    async def update_medication_adherence(
        record_id: str,
        request: UpdateMedicationAdherenceRequest,
        caller_id: str,
        role: str,
    ) -> ComplianceResponse:
        """Record a dose and recompute medication adherence."""
        record = await ComplianceService.get_record_document(record_id)
        ComplianceService._ensure_type(record, "medication")
        await ComplianceService._authorize(record, caller_id, role, "update medication adherence for")

        current = record.medication_adherence or MedicationAdherence()
        result = apply_dose(current.schedule, request, override=request.progress)

        record.medication_adherence = MedicationAdherence(
            schedule=result.entries,
            overall_progress=result.progress,
        )
        record.overall_percentage = result.progress
        record.status = result.status
        record.last_updated_by = caller_id
        record.updated_at = datetime.utcnow()
        await record.save()

        logger.info(f"Medication adherence for record {record_id} now {result.computed_progress:.1f}% ({result.status})")
        return await ComplianceService._to_response(record)

    @staticmethod
    async def update_lifestyle_compliance(
        record_id: str,
        request: UpdateLifestyleComplianceRequest,
        caller_id: str,
        role: str,
    ) -> ComplianceResponse:
        """Append a check-in and recompute lifestyle compliance."""
        record = await ComplianceService.get_record_document(record_id)
        ComplianceService._ensure_type(record, "lifestyle")
        await ComplianceService._authorize(record, caller_id, role, "update lifestyle compliance for")

        current = record.lifestyle_compliance or LifestyleCompliance()
        result = apply_check_in(current.check_ins, request, override=request.progress)

        record.lifestyle_compliance = LifestyleCompliance(
            check_ins=result.entries,
            progress=result.progress,
        )
        record.overall_percentage = result.progress
        record.status = result.status
        record.last_updated_by = caller_id
        record.updated_at = datetime.utcnow()
        await record.save()

        logger.info(f"Lifestyle compliance for record {record_id} now {result.computed_progress:.1f}% ({result.status})")
        return await ComplianceService._to_response(record)

    @staticmethod
    async def get_metrics(
        caller_id: str,
        role: str,
        patient_id: Optional[str] = None,
        instruction_id: Optional[str] = None,
    ) -> ComplianceMetrics:
        """Aggregate metrics over the records visible to the caller."""
        records = await ComplianceService._visible_records(
            caller_id, role, instruction_id=instruction_id, patient_id=patient_id
        )

        resolved_patient_id = ""
        if role == ROLE_PATIENT:
            patient = await PatientService.find_patient_for_user(caller_id)
            resolved_patient_id = str(patient.id) if patient else ""
        elif records:
            resolved_patient_id = patient_id or records[0].patient_id

        return compute_metrics(records, resolved_patient_id)
