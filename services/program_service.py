"""
Program Service - weekly workout programs and their assignment to users
"""
import logging
from typing import List, Optional

from backend.utils.errors import NotFoundError, ValidationError
from crud.base import EntityStore
from models.fitness import User, WeeklyProgram, default_schedule
from services.validation import build, require_fields, update

logger = logging.getLogger(__name__)


class ProgramService:

    def __init__(self, store: EntityStore):
        self.store = store

    async def list_programs(self) -> List[WeeklyProgram]:
        return await self.store.list_weekly_programs()

    async def get_program(self, program_id: str) -> WeeklyProgram:
        program = await self.store.get_weekly_program(program_id)
        if program is None:
            raise NotFoundError("WeeklyProgram", program_id)
        return program

    async def _check_course_references(self, program: WeeklyProgram) -> None:
        known = {course.id for course in await self.store.list_courses()}
        unknown = sorted({cid for day in program.schedule for cid in day.courses if cid not in known})
        if unknown:
            raise ValidationError(f"Unknown courses in schedule: {', '.join(unknown)}")

    async def create_program(
        self,
        name: str,
        description: Optional[str] = None,
        schedule: Optional[list] = None,
    ) -> WeeklyProgram:
        """
        Create a program. Without a schedule, seven empty training days are used.
        """
        require_fields(name=name)
        program = build(
            WeeklyProgram,
            name=name.strip(),
            description=description or None,
            schedule=schedule if schedule is not None else default_schedule(),
        )
        await self._check_course_references(program)
        await self.store.put_weekly_program(program)
        logger.info(f"Created weekly program '{program.name}'")
        return program

    async def update_program(self, program_id: str, **changes) -> WeeklyProgram:
        program = update(await self.get_program(program_id), **changes)
        await self._check_course_references(program)
        await self.store.put_weekly_program(program)
        return program

    async def delete_program(self, program_id: str) -> None:
        """Delete a program and unassign it from every user that had it."""
        program = await self.get_program(program_id)
        for user in await self.store.list_users():
            if user.assigned_program_id == program_id:
                await self.store.put_user(user.model_copy(update={"assigned_program_id": None}))
        await self.store.delete_weekly_program(program_id)
        logger.info(f"Deleted weekly program '{program.name}'")

    async def assign_program(self, user_id: str, program_id: Optional[str]) -> User:
        """Assign a program to a user, or remove their program when program_id is None."""
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if program_id is not None:
            await self.get_program(program_id)
        updated = user.model_copy(update={"assigned_program_id": program_id})
        await self.store.put_user(updated)
        if program_id:
            logger.info(f"Program {program_id} assigned to {user.username}")
        else:
            logger.info(f"Program removed for {user.username}")
        return updated

    async def get_user_program(self, user_id: str) -> Optional[WeeklyProgram]:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if not user.assigned_program_id:
            return None
        return await self.store.get_weekly_program(user.assigned_program_id)

    async def day_durations(self, program: WeeklyProgram) -> dict:
        """Total minutes of training per day_of_week."""
        durations = {course.id: course.duration for course in await self.store.list_courses()}
        return {
            day.day_of_week: sum(durations.get(cid, 0) for cid in day.courses)
            for day in program.schedule
        }
