from __future__ import annotations

from datetime import datetime

import pytest

from inspectiondesk.domain import report
from inspectiondesk.domain.report import ReportState
from inspectiondesk.errors import BadRequest

NOW = datetime(2026, 11, 2, 10, 0, 0)


def test_start_then_complete_stamps_times():
    started = report.start(ReportState(), parent_status="active_negotiation", now=NOW).report
    assert started.status == "in-progress"
    assert started.started_at == NOW

    done = report.complete(started, now=NOW).report
    assert done.status == "awaiting-report"
    assert done.completed_at == NOW


def test_start_rejected_on_completed_parent():
    with pytest.raises(BadRequest):
        report.start(ReportState(), parent_status="completed", now=NOW)


@pytest.mark.parametrize("status", ["in-progress", "awaiting-report", "completed", "absent"])
def test_start_is_forward_only(status):
    with pytest.raises(BadRequest):
        report.start(ReportState(status=status), parent_status="active_negotiation", now=NOW)


@pytest.mark.parametrize("status", ["not-started", "awaiting-report", "completed"])
def test_complete_requires_in_progress(status):
    with pytest.raises(BadRequest):
        report.complete(ReportState(status=status), now=NOW)


@pytest.mark.parametrize(
    "buyer,seller,status,ok",
    [
        (True, True, "completed", True),
        (True, False, "absent", False),
        (False, True, "absent", False),
        (False, False, "absent", False),
    ],
)
def test_submit_outcome_truth_table(buyer, seller, status, ok):
    out = report.submit(
        ReportState(status="awaiting-report"),
        buyer_present=buyer,
        seller_present=seller,
        buyer_interest="interested",
        notes="walked the site",
        now=NOW,
    ).report

    assert out.status == status
    assert out.was_successful is ok
    assert out.submitted_at == NOW


def test_submit_is_not_gated_on_prior_state():
    out = report.submit(
        ReportState(),
        buyer_present=True,
        seller_present=True,
        buyer_interest=None,
        notes=None,
        now=NOW,
    ).report
    assert out.status == "completed"


def test_submit_rejects_unknown_buyer_interest():
    with pytest.raises(BadRequest):
        report.submit(
            ReportState(),
            buyer_present=True,
            seller_present=True,
            buyer_interest="ecstatic",
            notes=None,
            now=NOW,
        )


def test_submit_treats_blank_buyer_interest_as_unset():
    out = report.submit(
        ReportState(status="awaiting-report"),
        buyer_present=True,
        seller_present=True,
        buyer_interest="",
        notes=None,
        now=NOW,
    ).report
    assert out.buyer_interest is None
    assert out.status == "completed"
