"""Celery background tasks."""

import asyncio
from uuid import UUID

import structlog

from taskhub.worker import celery_app

logger = structlog.get_logger()


@celery_app.task(bind=True, name="taskhub.tasks.reconcile_project")
def reconcile_project(self, project_id: str) -> dict:
    """
    Re-derive a project's blocked state outside the request that changed it.

    Queued by ProjectReconciler.request_reconciliation when
    reconcile_in_background is enabled. Safe to run any number of times.

    Args:
        project_id: The project to reconcile

    Returns:
        Dict with status and the project's new status, if it changed
    """
    async def _process():
        from taskhub.db.session import worker_session
        from taskhub.services.reconciliation import ProjectReconciler

        async with worker_session() as db:
            reconciler = ProjectReconciler(db)
            return await reconciler.reevaluate_project_blocked_state(UUID(project_id))

    try:
        new_status = asyncio.run(_process())
        logger.info(
            "project_reconciled_in_background",
            project_id=project_id,
            new_status=new_status,
        )
        return {
            "status": "success",
            "project_id": project_id,
            "new_status": new_status,
        }
    except Exception as e:
        logger.error(
            "background_reconcile_failed",
            project_id=project_id,
            error=str(e),
        )
        return {
            "status": "error",
            "project_id": project_id,
            "error": str(e),
        }
