"""Services package."""

from taskhub.services.activity import ActivityService
from taskhub.services.blocker import BlockerService
from taskhub.services.hooks import StatusChangeHooks
from taskhub.services.notification import NotificationService
from taskhub.services.project import ProjectService
from taskhub.services.project_status import compute_effective_status
from taskhub.services.reconciliation import ProjectReconciler, compute_project_blocked
from taskhub.services.task import TaskService

__all__ = [
    "ActivityService",
    "BlockerService",
    "StatusChangeHooks",
    "NotificationService",
    "ProjectService",
    "compute_effective_status",
    "ProjectReconciler",
    "compute_project_blocked",
    "TaskService",
]
