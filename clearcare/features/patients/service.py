# Patient Management Feature - Service

from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from clearcare.features.patients.models import Patient, PatientHistory, ENCRYPTED_FIELDS
from clearcare.features.patients.schemas import (
    CreatePatientRequest,
    UpdatePatientRequest,
    PatientResponse,
    AddressSchema,
    EmergencyContactSchema,
)
from clearcare.features.auth.models import User
from clearcare.features.auth.service import AuthService
from clearcare.core.encryption import encryption
from clearcare.core.logging import logger
from clearcare.shared.access import (
    ROLE_ADMINISTRATOR,
    ROLE_PATIENT,
    ensure_access,
    get_policy,
    require_role,
)
from clearcare.shared.schemas import RequestMeta
from clearcare.shared.exceptions import NotFoundException, BadRequestException, ForbiddenException


# Values snapshotted on history rows (stored as persisted, i.e. encrypted)
HISTORY_FIELDS = ("date_of_birth", "medical_record_number", "emergency_contact_name")


class PatientService:
    """Service class for patient management operations."""

    # ==================== Lookups used across features ====================

    @staticmethod
    async def get_patient_document(patient_id: str) -> Patient:
        """Get a non-deleted patient by id or raise NotFoundException."""
        try:
            patient = await Patient.get(ObjectId(patient_id))
        except (InvalidId, TypeError):
            raise NotFoundException("Patient not found")

        if not patient or patient.is_deleted:
            raise NotFoundException("Patient not found")

        return patient

    @staticmethod
    async def find_patient_for_user(user_id: str) -> Optional[Patient]:
        """The caller's own patient row, if any."""
        return await Patient.find_one(
            Patient.user_id == user_id,
            Patient.deleted_at == None,  # noqa: E711
        )

    @staticmethod
    async def accessible_patient_ids(caller_id: str, role: str) -> Optional[List[str]]:
        """
        Patient ids the caller may see.

        Returns None for unrestricted roles, otherwise a (possibly empty) list.
        """
        patient_filter = get_policy(role).patient_filter(caller_id)
        if patient_filter is None:
            return None
        patients = await Patient.find(patient_filter).to_list()
        return [str(p.id) for p in patients]

    # ==================== Response mapping ====================

    @staticmethod
    def patient_to_response(patient: Patient, user: Optional[User] = None) -> PatientResponse:
        """Convert Patient document to response schema, decrypting PHI."""
        plain = encryption.decrypt_fields(
            {field: getattr(patient, field) for field in ENCRYPTED_FIELDS},
            ENCRYPTED_FIELDS,
        )

        address = None
        if plain["address_street"] or plain["address_city"]:
            address = AddressSchema(
                street=plain["address_street"] or "",
                city=plain["address_city"] or "",
                state=plain["address_state"] or "",
                zip_code=plain["address_zip_code"] or "",
            )

        emergency_contact = None
        if plain["emergency_contact_name"] or plain["emergency_contact_phone"]:
            emergency_contact = EmergencyContactSchema(
                name=plain["emergency_contact_name"] or "",
                relationship=plain["emergency_contact_relationship"] or "",
                phone=plain["emergency_contact_phone"] or "",
            )

        return PatientResponse(
            id=str(patient.id),
            user_id=patient.user_id,
            first_name=user.first_name if user else "",
            last_name=user.last_name if user else "",
            email=user.email if user else "",
            date_of_birth=plain["date_of_birth"] or "",
            gender=patient.gender,
            medical_record_number=plain["medical_record_number"] or "",
            phone=plain["phone"] or None,
            address=address,
            emergency_contact=emergency_contact,
            assigned_provider_ids=list(patient.assigned_provider_ids),
            created_at=patient.created_at,
            updated_at=patient.updated_at,
        )

    @staticmethod
    async def _to_response(patient: Patient) -> PatientResponse:
        user = await AuthService.get_user_by_id(patient.user_id, include_deleted=True)
        return PatientService.patient_to_response(patient, user)

    @staticmethod
    def _encrypt_values(values: dict) -> dict:
        if values.get("date_of_birth") is not None:
            values["date_of_birth"] = values["date_of_birth"].isoformat()
        encrypted = encryption.encrypt_fields(values, ENCRYPTED_FIELDS)
        return {**values, **encrypted}

    @staticmethod
    async def _record_history(
        patient: Patient,
        action: str,
        changed_by: str,
        meta: RequestMeta,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
    ) -> None:
        await PatientHistory(
            patient_id=str(patient.id),
            action=action,
            changed_by=changed_by,
            old_values=old_values,
            new_values=new_values,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
        ).insert()

    # ==================== Operations ====================

    @staticmethod
    async def create_patient(
        request: CreatePatientRequest,
        caller_id: str,
        role: str,
        meta: Optional[RequestMeta] = None,
    ) -> PatientResponse:
        """Create a patient record. Administrators only."""
        require_role(role, ROLE_ADMINISTRATOR, detail="Only administrators can create patient records")
        meta = meta or RequestMeta()

        user = await AuthService.get_user_by_id(request.user_id)
        if user is None:
            raise NotFoundException("User not found")

        existing_patient = await PatientService.find_patient_for_user(request.user_id)
        if existing_patient:
            raise BadRequestException("Patient record already exists for this user")

        values = PatientService._encrypt_values(request.model_dump())
        patient = Patient(**values)
        await patient.insert()

        await PatientService._record_history(
            patient,
            action="create",
            changed_by=caller_id,
            meta=meta,
            new_values={
                "user_id": patient.user_id,
                **{field: getattr(patient, field) for field in HISTORY_FIELDS},
            },
        )

        logger.info(f"Created patient {patient.id} for user {patient.user_id}")
        return PatientService.patient_to_response(patient, user)

    @staticmethod
    async def get_patient(patient_id: str, caller_id: str, role: str) -> PatientResponse:
        """Get one patient with row-level access control."""
        patient = await PatientService.get_patient_document(patient_id)
        ensure_access(role, caller_id, patient, "You can only access patients you are allowed to see")
        return await PatientService._to_response(patient)

    @staticmethod
    async def get_patient_by_user_id(user_id: str, role: str) -> PatientResponse:
        """Look up the patient row for a user account. Administrators only."""
        require_role(
            role,
            ROLE_ADMINISTRATOR,
            detail="Only administrators can look up patient by user ID",
        )
        patient = await PatientService.find_patient_for_user(user_id)
        if not patient:
            raise NotFoundException("Patient not found for this user")
        return await PatientService._to_response(patient)

    @staticmethod
    async def get_my_patient(caller_id: str) -> PatientResponse:
        patient = await PatientService.find_patient_for_user(caller_id)
        if not patient:
            raise NotFoundException("No patient record for this account")
        return await PatientService._to_response(patient)

    @staticmethod
    async def get_patients(caller_id: str, role: str) -> List[PatientResponse]:
        """List the patients visible to the caller, newest first."""
        if role == ROLE_PATIENT:
            user = await AuthService.get_user_by_id(caller_id)
            if user is None:
                raise NotFoundException("User not found")

        patient_filter = get_policy(role).patient_filter(caller_id)
        if patient_filter is None:
            query = Patient.find(Patient.deleted_at == None)  # noqa: E711
        else:
            query = Patient.find(patient_filter)

        patients = await query.sort(-Patient.created_at).to_list()
        return [await PatientService._to_response(p) for p in patients]

    @staticmethod
    async def update_patient(
        patient_id: str,
        request: UpdatePatientRequest,
        caller_id: str,
        role: str,
        meta: Optional[RequestMeta] = None,
    ) -> PatientResponse:
        """Update a patient; self, assigned provider or administrator."""
        meta = meta or RequestMeta()
        patient = await PatientService.get_patient_document(patient_id)
        ensure_access(role, caller_id, patient, "You can only update patients you are allowed to manage")

        update_dict = request.model_dump(exclude_unset=True, exclude_none=True)
        if "assigned_provider_ids" in update_dict and role != ROLE_ADMINISTRATOR:
            raise ForbiddenException("Only administrators can change provider assignments")

        old_values = {field: getattr(patient, field) for field in HISTORY_FIELDS}

        for field, value in PatientService._encrypt_values(update_dict).items():
            setattr(patient, field, value)

        patient.updated_at = datetime.utcnow()
        await patient.save()

        await PatientService._record_history(
            patient,
            action="update",
            changed_by=caller_id,
            meta=meta,
            old_values=old_values,
            new_values={field: getattr(patient, field) for field in HISTORY_FIELDS},
        )

        logger.info(f"Updated patient {patient_id} by {role} {caller_id}")
        return await PatientService._to_response(patient)
