"""
Programs Router - admin weekly workout programs
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import require_admin
from backend.utils.responses import success_response
from crud import get_store
from crud.base import EntityStore
from models.fitness import DaySchedule, User
from services.program_service import ProgramService

programs_router = APIRouter(prefix="/api/admin/programs", tags=["admin-programs"])


class ProgramCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    schedule: Optional[List[DaySchedule]] = None


class ProgramUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    schedule: Optional[List[DaySchedule]] = None


@programs_router.get("")
async def list_programs(store: EntityStore = Depends(get_store), admin: User = Depends(require_admin)):
    return success_response(await ProgramService(store).list_programs())


@programs_router.post("")
async def create_program(
    request: ProgramCreateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    schedule = [day.model_dump() for day in request.schedule] if request.schedule is not None else None
    program = await ProgramService(store).create_program(
        name=request.name,
        description=request.description,
        schedule=schedule,
    )
    return success_response(program, message="Program created", status=201)


@programs_router.get("/{program_id}")
async def get_program(
    program_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    return success_response(await ProgramService(store).get_program(program_id))


@programs_router.put("/{program_id}")
async def update_program(
    program_id: str,
    request: ProgramUpdateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    changes = request.model_dump(exclude_unset=True)
    program = await ProgramService(store).update_program(program_id, **changes)
    return success_response(program, message="Program updated")


@programs_router.delete("/{program_id}")
async def delete_program(
    program_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    await ProgramService(store).delete_program(program_id)
    return success_response(message="Program deleted")
