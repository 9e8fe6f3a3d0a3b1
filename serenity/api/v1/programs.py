"""Program endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from serenity.api.deps import Container, CurrentUser
from serenity.models.requests import ProgramCreate, ProgramFilters, ProgramUpdate

router = APIRouter(prefix="/programs", tags=["Programs"])


@router.get("")
async def list_programs(filters: Annotated[ProgramFilters, Query()], container: Container, user_id: CurrentUser):
    return await container.programs.list_programs(filters, user_id)


@router.get("/featured")
async def featured_programs(container: Container):
    return await container.programs.get_featured()


@router.get("/{program_id}")
async def get_program(program_id: str, container: Container, user_id: CurrentUser):
    return await container.programs.get_program(program_id, user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_program(payload: ProgramCreate, container: Container):
    return await container.programs.create_program(payload)


@router.put("/{program_id}")
async def update_program(program_id: str, payload: ProgramUpdate, container: Container):
    return await container.programs.update_program(program_id, payload)


@router.delete("/{program_id}")
async def delete_program(program_id: str, container: Container):
    return await container.programs.delete_program(program_id)
