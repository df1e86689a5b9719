"""Blockers API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.session import get_db_session
from taskhub.models.project import Blocker, EntityRef, EntityType
from taskhub.schemas import (
    BlockerCreate,
    BlockerResolve,
    BlockerResponse,
    BlockerUpdate,
)
from taskhub.services.blocker import BlockerService

router = APIRouter()


@router.post("/", response_model=BlockerResponse, status_code=status.HTTP_201_CREATED)
async def create_blocker(
    blocker_data: BlockerCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Blocker:
    """Block a task or project."""
    service = BlockerService(db)
    return await service.create_blocker(
        EntityRef(blocker_data.entity_type, blocker_data.entity_id),
        blocker_data,
        created_by=blocker_data.created_by,
    )


@router.get("/", response_model=list[BlockerResponse])
async def list_blockers(
    entity_type: EntityType = Query(...),
    entity_id: UUID = Query(...),
    include_cleared: bool = Query(False),
    db: AsyncSession = Depends(get_db_session),
) -> list[Blocker]:
    """List blockers of a task or project, newest first."""
    service = BlockerService(db)
    return await service.list_blockers(
        EntityRef(entity_type, entity_id), include_cleared=include_cleared
    )


@router.get("/{blocker_id}", response_model=BlockerResponse)
async def get_blocker(
    blocker_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Blocker:
    """Get a blocker by ID."""
    service = BlockerService(db)
    return await service.blockers.get(blocker_id)


@router.patch("/{blocker_id}", response_model=BlockerResponse)
async def update_blocker(
    blocker_id: UUID,
    blocker_data: BlockerUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Blocker:
    """Edit a blocker's reason, waiting_on or expected date."""
    service = BlockerService(db)
    return await service.update_blocker(blocker_id, blocker_data)


@router.post("/{blocker_id}/resolve", response_model=BlockerResponse)
async def resolve_blocker(
    blocker_id: UUID,
    resolve_data: BlockerResolve,
    db: AsyncSession = Depends(get_db_session),
) -> Blocker:
    """Clear a blocker, unblocking its entity when no other blocker remains."""
    service = BlockerService(db)
    return await service.resolve_blocker(
        blocker_id,
        cleared_reason=resolve_data.cleared_reason,
        cleared_by=resolve_data.cleared_by,
    )
