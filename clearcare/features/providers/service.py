# Provider Tools Feature - Service

from typing import Optional, List, Sequence, Tuple
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from bson import ObjectId
from bson.errors import InvalidId
from clearcare.features.providers.models import InstructionTemplate, GeneratedReport
from clearcare.features.providers.schemas import (
    CreateTemplateRequest,
    UpdateTemplateRequest,
    TemplateResponse,
    DateRange,
    GenerateReportRequest,
    ComplianceReportData,
    PatientReportRow,
    ReportResponse,
)
from clearcare.features.instructions.models import CareInstruction
from clearcare.features.compliance.models import ComplianceRecord
from clearcare.features.patients.models import Patient
from clearcare.features.auth.models import User
from clearcare.features.audit.models import AuditLog
from clearcare.core.encryption import encryption
from clearcare.core.logging import logger
from clearcare.shared.access import ROLE_PROVIDER, require_role
from clearcare.shared.exceptions import NotFoundException, BadRequestException


TEMPLATE_ENCRYPTED_FIELDS = ("name", "description", "content")

REPORT_SCOPE_PROVIDER = "provider"
REPORT_SCOPE_ADMIN = "admin"
MAX_REPORTS_LISTED = 100
MAX_TABULAR_ROWS = 1000

END_OF_DAY = time(23, 59, 59, 999000)


# ==================== Templates ====================

class TemplateService:
    """Provider-owned instruction templates."""

    @staticmethod
    def template_to_response(template: InstructionTemplate) -> TemplateResponse:
        plain = encryption.decrypt_fields(
            {field: getattr(template, field) for field in TEMPLATE_ENCRYPTED_FIELDS},
            TEMPLATE_ENCRYPTED_FIELDS,
        )
        return TemplateResponse(
            id=str(template.id),
            provider_id=template.provider_id,
            name=plain["name"],
            type=template.type,
            description=plain["description"],
            content=plain["content"],
            details=encryption.decrypt_json(template.details),
            created_at=template.created_at,
            updated_at=template.updated_at,
        )

    @staticmethod
    async def _get_owned(template_id: str, provider_id: str) -> InstructionTemplate:
        """Another provider's template is reported as not found."""
        try:
            template = await InstructionTemplate.get(ObjectId(template_id))
        except (InvalidId, TypeError):
            raise NotFoundException("Template not found")

        if not template or template.provider_id != provider_id:
            raise NotFoundException("Template not found")

        return template

    @staticmethod
    async def get_templates(provider_id: str, role: str) -> List[TemplateResponse]:
        require_role(role, ROLE_PROVIDER)
        templates = await InstructionTemplate.find(
            InstructionTemplate.provider_id == provider_id
        ).sort(-InstructionTemplate.updated_at).to_list()
        return [TemplateService.template_to_response(t) for t in templates]

    @staticmethod
    async def get_template(template_id: str, provider_id: str, role: str) -> TemplateResponse:
        require_role(role, ROLE_PROVIDER)
        template = await TemplateService._get_owned(template_id, provider_id)
        return TemplateService.template_to_response(template)

    @staticmethod
    async def create_template(request: CreateTemplateRequest, provider_id: str, role: str) -> TemplateResponse:
        require_role(role, ROLE_PROVIDER)
        values = request.model_dump()
        values.update(encryption.encrypt_fields(values, TEMPLATE_ENCRYPTED_FIELDS))
        values["details"] = encryption.encrypt_json(values["details"])

        template = InstructionTemplate(provider_id=provider_id, **values)
        await template.insert()

        logger.info(f"Provider {provider_id} created template {template.id}")
        return TemplateService.template_to_response(template)

    @staticmethod
    async def update_template(
        template_id: str,
        request: UpdateTemplateRequest,
        provider_id: str,
        role: str,
    ) -> TemplateResponse:
        require_role(role, ROLE_PROVIDER)
        template = await TemplateService._get_owned(template_id, provider_id)

        update_dict = request.model_dump(exclude_unset=True)
        update_dict.update(encryption.encrypt_fields(update_dict, TEMPLATE_ENCRYPTED_FIELDS))
        if "details" in update_dict:
            update_dict["details"] = encryption.encrypt_json(update_dict["details"])

        for field, value in update_dict.items():
            setattr(template, field, value)

        template.update_timestamp()
        await template.save()

        logger.info(f"Provider {provider_id} updated template {template_id}")
        return TemplateService.template_to_response(template)

    @staticmethod
    async def delete_template(template_id: str, provider_id: str, role: str) -> None:
        require_role(role, ROLE_PROVIDER)
        template = await TemplateService._get_owned(template_id, provider_id)
        await template.delete()
        logger.info(f"Provider {provider_id} deleted template {template_id}")


# ==================== Reports ====================

def round_one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _parse_bound(value: str, end: bool) -> datetime:
    text = value.strip()
    try:
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), END_OF_DAY if end else time.min)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestException(f"Invalid date: {value}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date_range(date_range: DateRange) -> Tuple[datetime, datetime]:
    """Inclusive datetime bounds; date-only values expand to start/end of day."""
    start = _parse_bound(date_range.start, end=False)
    end = _parse_bound(date_range.end, end=True)
    if start > end:
        raise BadRequestException("Date range start must not be after its end")
    return start, end


def summarize_compliance(
    patient_ids: Sequence[str],
    instructions: Sequence[CareInstruction],
    records: Sequence[ComplianceRecord],
    date_range: DateRange,
) -> ComplianceReportData:
    """Instruction and compliance totals, overall and per patient."""
    rows = {patient_id: PatientReportRow(patient_id=patient_id) for patient_id in patient_ids}

    for instruction in instructions:
        row = rows.get(instruction.patient_id)
        if row is None:
            continue
        row.instructions += 1
        if instruction.acknowledged_date:
            row.acknowledged += 1

    per_patient: dict = {}
    for record in records:
        per_patient.setdefault(record.patient_id, []).append(record.overall_percentage)
    for patient_id, scores in per_patient.items():
        if patient_id in rows:
            rows[patient_id].compliance_avg = round_one_decimal(sum(scores) / len(scores))

    average = sum(r.overall_percentage for r in records) / len(records) if records else 0

    return ComplianceReportData(
        date_range=date_range,
        total_patients=len(patient_ids),
        total_instructions=len(instructions),
        acknowledged_instructions=sum(1 for i in instructions if i.acknowledged_date),
        compliance_records_count=len(records),
        average_compliance_percent=round_one_decimal(average),
        by_patient=list(rows.values()),
    )


class ReportService:
    """Report generation for providers and administrators."""

    @staticmethod
    def report_to_response(report: GeneratedReport) -> ReportResponse:
        return ReportResponse(
            id=str(report.id),
            type=report.type,
            title=report.title,
            description=report.description,
            generated_at=report.generated_at,
            generated_by=report.generated_by,
            date_range=DateRange(start=report.date_range_start, end=report.date_range_end),
            data=report.payload,
            format=report.format,
        )

    @staticmethod
    async def _store(
        scope: str,
        request: GenerateReportRequest,
        generated_by: str,
        payload: dict,
        provider_id: Optional[str] = None,
    ) -> ReportResponse:
        report = GeneratedReport(
            scope=scope,
            provider_id=provider_id,
            type=request.type,
            title=f"{request.type} Report",
            description=f"Report for {request.date_range.start} to {request.date_range.end}",
            generated_by=generated_by,
            date_range_start=request.date_range.start,
            date_range_end=request.date_range.end,
            format=request.format,
            payload=payload,
        )
        await report.insert()
        logger.info(f"Generated {scope} {request.type} report {report.id}")
        return ReportService.report_to_response(report)

    @staticmethod
    async def _compliance_summary(
        start: datetime,
        end: datetime,
        date_range: DateRange,
        provider_id: Optional[str] = None,
    ) -> ComplianceReportData:
        patient_query: dict = {"deleted_at": None}
        instruction_query: dict = {
            "deleted_at": None,
            "assigned_date": {"$gte": start, "$lte": end},
        }
        if provider_id:
            patient_query["assigned_provider_ids"] = provider_id
            instruction_query["provider_id"] = provider_id

        patients = await Patient.find(patient_query).to_list()
        patient_ids = [str(p.id) for p in patients]

        instructions = await CareInstruction.find(instruction_query).to_list()

        record_query: dict = {"updated_at": {"$gte": start, "$lte": end}}
        if provider_id:
            record_query["patient_id"] = {"$in": patient_ids}
        records = await ComplianceRecord.find(record_query).to_list()

        return summarize_compliance(patient_ids, instructions, records, date_range)

    # ---------- provider scope ----------

    @staticmethod
    async def generate_provider_report(
        request: GenerateReportRequest,
        provider_id: str,
        role: str,
    ) -> ReportResponse:
        """Summarise the provider's patients, instructions and compliance in range."""
        require_role(role, ROLE_PROVIDER)
        start, end = parse_date_range(request.date_range)
        summary = await ReportService._compliance_summary(start, end, request.date_range, provider_id)
        return await ReportService._store(
            REPORT_SCOPE_PROVIDER,
            request,
            provider_id,
            summary.model_dump(),
            provider_id=provider_id,
        )

    # ---------- admin scope ----------

    @staticmethod
    async def _users_rows(start: datetime, end: datetime) -> dict:
        users = await User.find(
            {"created_at": {"$gte": start, "$lte": end}}
        ).sort(-User.created_at).limit(MAX_TABULAR_ROWS).to_list()
        rows = [
            {
                "id": str(u.id),
                "email": u.email,
                "first_name": u.first_name,
                "last_name": u.last_name,
                "role": u.role,
                "status": "inactive" if u.is_deleted else "active",
                "created_at": u.created_at.isoformat(),
            }
            for u in users
        ]
        return {"columns": list(rows[0].keys()) if rows else [], "rows": rows, "total": len(rows)}

    @staticmethod
    async def _audit_rows(start: datetime, end: datetime) -> dict:
        logs = await AuditLog.find(
            {"timestamp": {"$gte": start, "$lte": end}}
        ).sort(-AuditLog.timestamp).limit(MAX_TABULAR_ROWS).to_list()
        rows = [
            {
                "id": str(log.id),
                "timestamp": log.timestamp.isoformat(),
                "user_email": log.user_email,
                "action": log.action,
                "resource_type": log.resource_type,
                "resource_id": log.resource_id,
                "status": log.status,
            }
            for log in logs
        ]
        return {"columns": list(rows[0].keys()) if rows else [], "rows": rows, "total": len(rows)}

    @staticmethod
    async def _system_summary(start: datetime, end: datetime) -> dict:
        users = await User.find(User.deleted_at == None).to_list()  # noqa: E711
        by_role: dict = {}
        for user in users:
            by_role[user.role] = by_role.get(user.role, 0) + 1

        in_range = {"timestamp": {"$gte": start, "$lte": end}}
        logs = await AuditLog.find(in_range).to_list()
        return {
            "total_users": len(users),
            "users_by_role": by_role,
            "audit_events": len(logs),
            "successful_events": sum(1 for log in logs if log.status == "success"),
            "failed_events": sum(1 for log in logs if log.status == "failure"),
            "denied_events": sum(1 for log in logs if log.status == "denied"),
        }

    @staticmethod
    async def generate_admin_report(request: GenerateReportRequest, admin_id: str) -> ReportResponse:
        """Generate a compliance, users, audit or system report."""
        start, end = parse_date_range(request.date_range)
        report_type = request.type.lower()

        if report_type == "compliance":
            payload = (await ReportService._compliance_summary(start, end, request.date_range)).model_dump()
        elif report_type == "users":
            payload = await ReportService._users_rows(start, end)
        elif report_type == "audit":
            payload = await ReportService._audit_rows(start, end)
        elif report_type == "system":
            payload = await ReportService._system_summary(start, end)
        else:
            payload = {"date_range": request.date_range.model_dump()}

        return await ReportService._store(REPORT_SCOPE_ADMIN, request, admin_id, payload)

    # ---------- listing ----------

    @staticmethod
    def _scope_query(scope: str, provider_id: Optional[str]) -> dict:
        query: dict = {"scope": scope}
        if scope == REPORT_SCOPE_PROVIDER:
            query["provider_id"] = provider_id
        return query

    @staticmethod
    async def get_reports(scope: str, provider_id: Optional[str] = None) -> List[ReportResponse]:
        """Reports of one scope, newest first."""
        reports = await GeneratedReport.find(
            ReportService._scope_query(scope, provider_id)
        ).sort(-GeneratedReport.generated_at).limit(MAX_REPORTS_LISTED).to_list()
        return [ReportService.report_to_response(r) for r in reports]

    @staticmethod
    async def get_report(report_id: str, scope: str, provider_id: Optional[str] = None) -> ReportResponse:
        try:
            report = await GeneratedReport.get(ObjectId(report_id))
        except (InvalidId, TypeError):
            raise NotFoundException("Report not found")

        if not report or report.scope != scope or (
            scope == REPORT_SCOPE_PROVIDER and report.provider_id != provider_id
        ):
            raise NotFoundException("Report not found")

        return ReportService.report_to_response(report)
