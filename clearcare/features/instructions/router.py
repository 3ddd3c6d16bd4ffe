# Care Instructions Feature - Router

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from clearcare.features.instructions.schemas import (
    CreateInstructionRequest,
    UpdateInstructionRequest,
    AcknowledgeInstructionRequest,
    InstructionResponse,
    MessageResponse,
)
from clearcare.features.instructions.service import InstructionService
from clearcare.features.auth.dependencies import get_current_user, get_request_meta
from clearcare.features.auth.models import User
from clearcare.shared.schemas import DataResponse, RequestMeta, HistoryEntryResponse


router = APIRouter(prefix="/instructions", tags=["Care Instructions"])


@router.post("", response_model=DataResponse[InstructionResponse], status_code=status.HTTP_201_CREATED)
async def create_instruction(
    request: CreateInstructionRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Create a care instruction.

    Providers only, for patients assigned to them.
    """
    instruction = await InstructionService.create_instruction(
        request, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=instruction, message="Instruction created successfully")


@router.get("", response_model=DataResponse[List[InstructionResponse]])
async def list_instructions(
    patient_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    """
    List instructions visible to the caller.

    - **patient_id**: filter by patient (providers/administrators)
    - **status**: filter by status
    - **type**: filter by instruction type
    """
    instructions = await InstructionService.get_instructions(
        str(current_user.id),
        current_user.role,
        patient_id=patient_id,
        status=status,
        instruction_type=type,
    )
    return DataResponse(data=instructions)


@router.get("/{instruction_id}", response_model=DataResponse[InstructionResponse])
async def get_instruction(
    instruction_id: str,
    current_user: User = Depends(get_current_user),
):
    instruction = await InstructionService.get_instruction(
        instruction_id, str(current_user.id), current_user.role
    )
    return DataResponse(data=instruction)


@router.put("/{instruction_id}", response_model=DataResponse[InstructionResponse])
async def update_instruction(
    instruction_id: str,
    request: UpdateInstructionRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    instruction = await InstructionService.update_instruction(
        instruction_id, request, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=instruction, message="Instruction updated successfully")


@router.delete("/{instruction_id}", response_model=DataResponse[MessageResponse])
async def delete_instruction(
    instruction_id: str,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    result = await InstructionService.delete_instruction(
        instruction_id, str(current_user.id), current_user.role, meta
    )
    return DataResponse(data=result)


@router.post("/{instruction_id}/acknowledge", response_model=DataResponse[InstructionResponse])
async def acknowledge_instruction(
    instruction_id: str,
    request: AcknowledgeInstructionRequest,
    current_user: User = Depends(get_current_user),
    meta: RequestMeta = Depends(get_request_meta),
):
    """
    Record an acknowledgment step (receipt, understanding or commitment).

    Patients only, on their own instructions.
    """
    instruction = await InstructionService.acknowledge_instruction(
        instruction_id,
        request.acknowledgment_type,
        str(current_user.id),
        current_user.role,
        meta,
    )
    return DataResponse(data=instruction, message="Instruction acknowledged")


@router.get("/{instruction_id}/history", response_model=DataResponse[List[HistoryEntryResponse]])
async def get_instruction_history(
    instruction_id: str,
    current_user: User = Depends(get_current_user),
):
    history = await InstructionService.get_instruction_history(
        instruction_id, str(current_user.id), current_user.role
    )
    return DataResponse(data=history)
