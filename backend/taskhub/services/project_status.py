"""Effective project status derived from the project timeline.

Reconciliation consults this when a project stops being blocked, to decide
which non-blocked status it returns to. Callers can substitute their own
function with the same signature.
"""

from datetime import date
from typing import Callable

from taskhub.models.project import Project, ProjectStatus

EffectiveStatusFn = Callable[[Project], str]

# Statuses a user can toggle between before the prep date
MANUAL_STATUSES = frozenset(
    {ProjectStatus.NOT_STARTED.value, ProjectStatus.PLANNING.value}
)


def compute_auto_status(project: Project, today: date) -> str:
    """Status implied by prep/return dates alone."""
    prep = project.prep_date
    ret = project.return_date

    if prep and today < prep:
        return ProjectStatus.NOT_STARTED.value
    if ret and today >= ret:
        return ProjectStatus.POST_EVENT.value
    if prep and today >= prep:
        return ProjectStatus.EXECUTING.value
    return ProjectStatus.NOT_STARTED.value


def compute_effective_status(project: Project, today: date | None = None) -> str:
    """
    Determine the status a project should show when nothing blocks it.

    - completed and archived are kept as they are
    - projects without any dates are simply in progress
    - before prep_date, not_started/planning is a manual choice and kept
    - from prep_date on, the timeline decides (executing, then post_event)

    Never returns ``blocked``.
    """
    status = project.status
    if status in (ProjectStatus.COMPLETED.value, ProjectStatus.ARCHIVED.value):
        return status

    if project.prep_date is None and project.return_date is None:
        return ProjectStatus.IN_PROGRESS.value

    today = today or date.today()
    if project.prep_date and today < project.prep_date:
        if status in MANUAL_STATUSES:
            return status
        return ProjectStatus.NOT_STARTED.value

    return compute_auto_status(project, today)
