"""MongoDB database connection manager."""

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from typing import Optional

from clearcare.config import settings
from clearcare.core.logging import logger


def document_models() -> list:
    """All Beanie document models registered with the database."""
    from clearcare.features.auth.models import User, UserHistory
    from clearcare.features.patients.models import Patient, PatientHistory
    from clearcare.features.instructions.models import (
        CareInstruction,
        Acknowledgment,
        InstructionHistory,
    )
    from clearcare.features.compliance.models import ComplianceRecord
    from clearcare.features.providers.models import InstructionTemplate, GeneratedReport
    from clearcare.features.audit.models import AuditLog

    return [
        User,
        UserHistory,
        Patient,
        PatientHistory,
        CareInstruction,
        Acknowledgment,
        InstructionHistory,
        ComplianceRecord,
        InstructionTemplate,
        GeneratedReport,
        AuditLog,
    ]


class Database:
    """MongoDB database connection manager."""

    client: Optional[AsyncIOMotorClient] = None

    @classmethod
    async def connect_db(cls):
        """Connect to MongoDB and initialize Beanie."""
        cls.client = AsyncIOMotorClient(settings.MONGODB_URL)

        await init_beanie(
            database=cls.client[settings.DATABASE_NAME],
            document_models=document_models(),
        )

        logger.info(f"Connected to MongoDB database: {settings.DATABASE_NAME}")

    @classmethod
    async def close_db(cls):
        """Close MongoDB connection."""
        if cls.client:
            cls.client.close()
            logger.info("Closed MongoDB connection")
