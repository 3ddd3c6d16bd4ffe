# Care Instructions Feature - Service

from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from clearcare.features.instructions.models import (
    CareInstruction,
    Acknowledgment,
    InstructionHistory,
    DETAIL_FIELDS,
)
from clearcare.features.instructions.schemas import (
    CreateInstructionRequest,
    UpdateInstructionRequest,
    InstructionResponse,
    AcknowledgmentResponse,
    MessageResponse,
)
from clearcare.features.instructions.acknowledgment import next_state
from clearcare.features.patients.models import Patient
from clearcare.features.patients.service import PatientService
from clearcare.features.auth.service import AuthService
from clearcare.core.encryption import encryption
from clearcare.core.logging import logger
from clearcare.shared.access import (
    ROLE_PATIENT,
    ROLE_PROVIDER,
    ensure_access,
    require_role,
)
from clearcare.shared.schemas import RequestMeta, HistoryEntryResponse
from clearcare.shared.exceptions import NotFoundException, ForbiddenException, BadRequestException


DETAIL_COLUMNS = tuple(DETAIL_FIELDS.values())


class InstructionService:
    """Service class for care instruction operations."""

    # ==================== Helpers ====================

    @staticmethod
    async def get_instruction_document(instruction_id: str) -> CareInstruction:
        """Get a non-deleted instruction by id or raise NotFoundException."""
        try:
            instruction = await CareInstruction.get(ObjectId(instruction_id))
        except (InvalidId, TypeError):
            raise NotFoundException("Instruction not found")

        if not instruction or instruction.is_deleted:
            raise NotFoundException("Instruction not found")

        return instruction

    @staticmethod
    async def _patient_of(instruction: CareInstruction) -> Optional[Patient]:
        """The owning patient; soft-deleted patients count as absent."""
        try:
            patient = await Patient.get(ObjectId(instruction.patient_id))
        except (InvalidId, TypeError):
            return None
        if patient is None or patient.is_deleted:
            return None
        return patient

    @staticmethod
    async def _authorize(instruction: CareInstruction, caller_id: str, role: str, action: str) -> Patient:
        patient = await InstructionService._patient_of(instruction)
        if role == ROLE_PATIENT:
            detail = f"You can only {action} your own instructions"
        else:
            detail = f"You can only {action} instructions for patients assigned to you"
        ensure_access(role, caller_id, patient, detail)
        return patient

    @staticmethod
    def _check_detail_types(instruction: CareInstruction, update_dict: dict) -> None:
        """
        Keep detail blobs keyed by the instruction type after an update.

        A supplied blob of another type is rejected. When the type changes,
        the stored blob of the previous type is cleared.
        """
        new_type = update_dict.get("type", instruction.type)
        expected = DETAIL_FIELDS.get(new_type)
        for field in DETAIL_COLUMNS:
            if field == expected:
                continue
            if field in update_dict:
                raise BadRequestException(f"{field} is not allowed for a {new_type} instruction")
            if getattr(instruction, field) is not None:
                update_dict[field] = None

    @staticmethod
    async def _recent_acknowledgments(instruction_id: str, limit: int) -> List[Acknowledgment]:
        return await Acknowledgment.find(
            Acknowledgment.instruction_id == instruction_id
        ).sort(-Acknowledgment.timestamp).limit(limit).to_list()

    @staticmethod
    def instruction_to_response(
        instruction: CareInstruction,
        acknowledgments: Optional[List[Acknowledgment]] = None,
    ) -> InstructionResponse:
        """Convert CareInstruction document to response schema, decrypting content."""
        return InstructionResponse(
            id=str(instruction.id),
            provider_id=instruction.provider_id,
            provider_name=instruction.provider_name,
            patient_id=instruction.patient_id,
            patient_name=instruction.patient_name,
            title=instruction.title,
            type=instruction.type,
            priority=instruction.priority,
            content=encryption.decrypt(instruction.content),
            medication_details=encryption.decrypt_json(instruction.medication_details),
            lifestyle_details=encryption.decrypt_json(instruction.lifestyle_details),
            follow_up_details=encryption.decrypt_json(instruction.follow_up_details),
            warning_details=encryption.decrypt_json(instruction.warning_details),
            status=instruction.status,
            assigned_date=instruction.assigned_date,
            acknowledgment_deadline=instruction.acknowledgment_deadline,
            expiration_date=instruction.expiration_date,
            acknowledged_date=instruction.acknowledged_date,
            compliance_tracking_enabled=instruction.compliance_tracking_enabled,
            lifestyle_tracking_enabled=instruction.lifestyle_tracking_enabled,
            version=instruction.version,
            acknowledgments=[
                AcknowledgmentResponse(
                    id=str(ack.id),
                    instruction_id=ack.instruction_id,
                    patient_id=ack.patient_id,
                    acknowledgment_type=ack.acknowledgment_type,
                    ip_address=ack.ip_address,
                    user_agent=ack.user_agent,
                    timestamp=ack.timestamp,
                )
                for ack in (acknowledgments or [])
            ],
            created_at=instruction.created_at,
            updated_at=instruction.updated_at,
        )

    @staticmethod
    async def _record_history(
        instruction: CareInstruction,
        action: str,
        changed_by: str,
        meta: RequestMeta,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
    ) -> None:
        await InstructionHistory(
            instruction_id=str(instruction.id),
            action=action,
            changed_by=changed_by,
            old_values=old_values,
            new_values=new_values,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
        ).insert()

    # ==================== Operations ====================

    @staticmethod
    async def create_instruction(
        request: CreateInstructionRequest,
        caller_id: str,
        role: str,
        meta: Optional[RequestMeta] = None,
    ) -> InstructionResponse:
        """Create an instruction for a patient assigned to the calling provider."""
        require_role(role, ROLE_PROVIDER, detail="Only providers can create care instructions")
        meta = meta or RequestMeta()

        patient = await PatientService.get_patient_document(request.patient_id)
        ensure_access(
            role, caller_id, patient,
            "You can only create instructions for patients assigned to you",
        )

        provider = await AuthService.get_user_by_id(caller_id)
        patient_user = await AuthService.get_user_by_id(patient.user_id)
        if not provider or not patient_user:
            raise NotFoundException("Provider or patient user not found")

        details = request.model_dump(include=set(DETAIL_COLUMNS))
        instruction = CareInstruction(
            provider_id=caller_id,
            provider_name=provider.full_name,
            patient_id=request.patient_id,
            patient_name=patient_user.full_name,
            title=request.title,
            type=request.type,
            priority=request.priority,
            content=encryption.encrypt(request.content),
            assigned_date=request.assigned_date or datetime.utcnow(),
            acknowledgment_deadline=request.acknowledgment_deadline,
            expiration_date=request.expiration_date,
            compliance_tracking_enabled=request.compliance_tracking_enabled,
            lifestyle_tracking_enabled=request.lifestyle_tracking_enabled,
            status="active",
            version=1,
            **{field: encryption.encrypt_json(value) for field, value in details.items()},
        )
        await instruction.insert()

        await InstructionService._record_history(
            instruction,
            action="create",
            changed_by=caller_id,
            meta=meta,
            new_values={
                "title": instruction.title,
                "type": instruction.type,
                "patient_id": instruction.patient_id,
            },
        )

        logger.info(f"Provider {caller_id} created instruction {instruction.id} for patient {instruction.patient_id}")
        return InstructionService.instruction_to_response(instruction)

    @staticmethod
    async def get_instruction(instruction_id: str, caller_id: str, role: str) -> InstructionResponse:
        """Get an instruction with its ten most recent acknowledgments."""
        instruction = await InstructionService.get_instruction_document(instruction_id)
        await InstructionService._authorize(instruction, caller_id, role, "access")

        acknowledgments = await InstructionService._recent_acknowledgments(instruction_id, 10)
        return InstructionService.instruction_to_response(instruction, acknowledgments)

    @staticmethod
    async def get_instructions(
        caller_id: str,
        role: str,
        patient_id: Optional[str] = None,
        status: Optional[str] = None,
        instruction_type: Optional[str] = None,
    ) -> List[InstructionResponse]:
        """
        List instructions visible to the caller, newest first.

        Patients always see only their own instructions; the patient_id filter
        applies to providers and administrators.
        """
        query: dict = {"deleted_at": None}

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

        if status:
            query["status"] = status
        if instruction_type:
            query["type"] = instruction_type

        instructions = await CareInstruction.find(query).sort(-CareInstruction.created_at).to_list()

        responses = []
        for instruction in instructions:
            acknowledgments = await InstructionService._recent_acknowledgments(str(instruction.id), 5)
            responses.append(InstructionService.instruction_to_response(instruction, acknowledgments))
        return responses

    @staticmethod
    async def update_instruction(
        instruction_id: str,
        request: UpdateInstructionRequest,
        caller_id: str,
        role: str,
        meta: Optional[RequestMeta] = None,
    ) -> InstructionResponse:
        """Update an instruction; bumps version and records old/new values."""
        meta = meta or RequestMeta()
        instruction = await InstructionService.get_instruction_document(instruction_id)
        require_role(role, ROLE_PROVIDER, detail="Only providers can update instructions")
        await InstructionService._authorize(instruction, caller_id, role, "update")

        old_values = {
            "title": instruction.title,
            "type": instruction.type,
            "status": instruction.status,
            "content": instruction.content,
        }

        update_dict = request.model_dump(exclude_unset=True, exclude_none=True)
        InstructionService._check_detail_types(instruction, update_dict)
        if "content" in update_dict:
            update_dict["content"] = encryption.encrypt(update_dict["content"])
        for field in DETAIL_COLUMNS:
            if field in update_dict:
                update_dict[field] = encryption.encrypt_json(update_dict[field])

        for field, value in update_dict.items():
            setattr(instruction, field, value)

        instruction.version += 1
        instruction.updated_at = datetime.utcnow()
        await instruction.save()

        await InstructionService._record_history(
            instruction,
            action="update",
            changed_by=caller_id,
            meta=meta,
            old_values=old_values,
            new_values={
                "title": instruction.title,
                "type": instruction.type,
                "status": instruction.status,
            },
        )

        logger.info(f"Provider {caller_id} updated instruction {instruction_id} (v{instruction.version})")
        return InstructionService.instruction_to_response(instruction)

    @staticmethod
    async def delete_instruction(
        instruction_id: str,
        caller_id: str,
        role: str,
        meta: Optional[RequestMeta] = None,
    ) -> MessageResponse:
        """Soft-delete an instruction."""
        meta = meta or RequestMeta()
        instruction = await InstructionService.get_instruction_document(instruction_id)
        require_role(role, ROLE_PROVIDER, detail="Only providers can delete instructions")
        await InstructionService._authorize(instruction, caller_id, role, "delete")

        instruction.mark_deleted()
        await instruction.save()

        await InstructionService._record_history(
            instruction,
            action="delete",
            changed_by=caller_id,
            meta=meta,
            old_values={"title": instruction.title, "status": instruction.status},
        )

        logger.info(f"Provider {caller_id} deleted instruction {instruction_id}")
        return MessageResponse(message="Instruction deleted successfully")

    @staticmethod
    async def acknowledge_instruction(
        instruction_id: str,
        acknowledgment_type: str,
        caller_id: str,
        role: str,
        meta: Optional[RequestMeta] = None,
    ) -> InstructionResponse:
        """Record one acknowledgment step and advance the instruction status."""
        require_role(role, ROLE_PATIENT, detail="Only patients can acknowledge instructions")
        meta = meta or RequestMeta()

        instruction = await InstructionService.get_instruction_document(instruction_id)
        patient = await PatientService.find_patient_for_user(caller_id)
        if not patient or instruction.patient_id != str(patient.id):
            raise ForbiddenException("You can only acknowledge your own instructions")

        acknowledgment = Acknowledgment(
            instruction_id=instruction_id,
            patient_id=str(patient.id),
            acknowledgment_type=acknowledgment_type,
            ip_address=meta.ip_address or "",
            user_agent=meta.user_agent or "",
        )
        await acknowledgment.insert()

        recorded = await Acknowledgment.find(Acknowledgment.instruction_id == instruction_id).to_list()
        state = next_state(
            instruction.status,
            instruction.acknowledged_date,
            [ack.acknowledgment_type for ack in recorded],
            acknowledgment.timestamp,
        )
        if state.status != instruction.status:
            logger.info(f"Instruction {instruction_id} fully acknowledged")

        instruction.status = state.status
        instruction.acknowledged_date = state.acknowledged_date
        instruction.updated_at = datetime.utcnow()
        await instruction.save()

        await InstructionService._record_history(
            instruction,
            action="acknowledge",
            changed_by=caller_id,
            meta=meta,
            new_values={
                "acknowledgment_type": acknowledgment_type,
                "status": instruction.status,
            },
        )

        return InstructionService.instruction_to_response(instruction)

    @staticmethod
    async def get_instruction_history(
        instruction_id: str,
        caller_id: str,
        role: str,
    ) -> List[HistoryEntryResponse]:
        """History rows for an instruction, newest first."""
        instruction = await InstructionService.get_instruction_document(instruction_id)
        await InstructionService._authorize(instruction, caller_id, role, "access")

        rows = await InstructionHistory.find(
            InstructionHistory.instruction_id == instruction_id
        ).sort(-InstructionHistory.timestamp).to_list()

        return [
            HistoryEntryResponse(
                id=str(row.id),
                action=row.action,
                changed_by=row.changed_by,
                old_values=row.old_values,
                new_values=row.new_values,
                ip_address=row.ip_address,
                user_agent=row.user_agent,
                timestamp=row.timestamp,
            )
            for row in rows
        ]
