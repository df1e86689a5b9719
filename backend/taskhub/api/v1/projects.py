"""Projects API endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.session import get_db_session
from taskhub.models.project import Project
from taskhub.schemas import ProjectCreate, ProjectResponse, ReconcileResponse
from taskhub.services.project import ProjectService

router = APIRouter()
logger = structlog.get_logger()


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Create a new project."""
    service = ProjectService(db)
    return await service.create_project(project_data)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Get a project by ID."""
    service = ProjectService(db)
    return await service.get_project(project_id)


@router.post("/{project_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Re-derive the project's blocked state from its blockers and tasks."""
    service = ProjectService(db)
    before = (await service.get_project(project_id)).status
    project = await service.reconcile(project_id)

    logger.info(
        "project_reconcile_requested",
        project_id=str(project_id),
        changed=project.status != before,
    )
    return {
        "project_id": project.id,
        "status": project.status,
        "changed": project.status != before,
    }


@router.post("/{project_id}/archive", response_model=ProjectResponse)
async def archive_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Archive a project."""
    service = ProjectService(db)
    return await service.archive_project(project_id)


@router.post("/{project_id}/unarchive", response_model=ProjectResponse)
async def unarchive_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Unarchive a project and reconcile its blocked state."""
    service = ProjectService(db)
    return await service.unarchive_project(project_id)
