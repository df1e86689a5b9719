"""Tests for the timeline-driven effective project status."""

from datetime import date, timedelta

import pytest

from taskhub.models import Project
from taskhub.services.project_status import compute_auto_status, compute_effective_status

TODAY = date(2026, 6, 15)


def _project(status: str, prep_offset: int | None = None, return_offset: int | None = None) -> Project:
    return Project(
        name="Launch",
        status=status,
        prep_date=TODAY + timedelta(days=prep_offset) if prep_offset is not None else None,
        return_date=TODAY + timedelta(days=return_offset) if return_offset is not None else None,
    )


class TestComputeAutoStatus:
    def test_before_prep(self) -> None:
        assert compute_auto_status(_project("blocked", 3, 10), TODAY) == "not_started"

    def test_between_prep_and_return(self) -> None:
        assert compute_auto_status(_project("blocked", -1, 10), TODAY) == "executing"

    def test_on_return_date(self) -> None:
        assert compute_auto_status(_project("blocked", -5, 0), TODAY) == "post_event"

    def test_return_only_in_future(self) -> None:
        assert compute_auto_status(_project("blocked", None, 10), TODAY) == "not_started"


class TestComputeEffectiveStatus:
    @pytest.mark.parametrize("sticky", ["completed", "archived"])
    def test_sticky_statuses_kept(self, sticky: str) -> None:
        assert compute_effective_status(_project(sticky, -1, 10), TODAY) == sticky

    def test_no_dates_means_in_progress(self) -> None:
        assert compute_effective_status(_project("blocked"), TODAY) == "in_progress"

    @pytest.mark.parametrize("manual", ["not_started", "planning"])
    def test_manual_status_kept_before_prep(self, manual: str) -> None:
        assert compute_effective_status(_project(manual, 3, 10), TODAY) == manual

    def test_blocked_before_prep_becomes_not_started(self) -> None:
        assert compute_effective_status(_project("blocked", 3, 10), TODAY) == "not_started"

    @pytest.mark.parametrize(
        "prep_offset,return_offset,expected",
        [(-1, 10, "executing"), (-10, -1, "post_event"), (0, 0, "post_event")],
    )
    def test_timeline_after_prep(self, prep_offset: int, return_offset: int, expected: str) -> None:
        project = _project("blocked", prep_offset, return_offset)

        assert compute_effective_status(project, TODAY) == expected

    @pytest.mark.parametrize(
        "status", ["not_started", "planning", "in_progress", "executing", "post_event", "blocked"]
    )
    def test_never_blocked(self, status: str) -> None:
        for offsets in [(None, None), (3, 10), (-1, 10), (-10, -1)]:
            assert compute_effective_status(_project(status, *offsets), TODAY) != "blocked"
