"""API router package."""

from fastapi import APIRouter

from taskhub.api.v1 import activities, blockers, health, projects, tasks

router = APIRouter()

# Include all API routers
router.include_router(health.router, tags=["Health"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(blockers.router, prefix="/blockers", tags=["Blockers"])
router.include_router(activities.router, tags=["Activities"])
