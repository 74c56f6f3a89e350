from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Tuple

from ..errors import BadRequest
from .inspection_states import LogActivity

# not-started -> in-progress -> awaiting-report -> completed | absent
REPORT_STATUSES = ("not-started", "in-progress", "awaiting-report", "completed", "absent")
REPORT_ORDER = {s: i for i, s in enumerate(REPORT_STATUSES)}

BUYER_INTEREST = ("very-interested", "interested", "neutral", "not-interested")


@dataclass(frozen=True)
class ReportState:
    status: str = "not-started"
    buyer_present: bool = False
    seller_present: bool = False
    buyer_interest: Optional[str] = None
    notes: Optional[str] = None
    was_successful: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReportTransition:
    report: ReportState
    effects: Tuple[LogActivity, ...] = ()


def start(report: ReportState, *, parent_status: str, now: datetime) -> ReportTransition:
    if parent_status == "completed":
        raise BadRequest("Inspection has already been completed")
    if report.status == "in-progress":
        raise BadRequest("Inspection already started")
    if REPORT_ORDER.get(report.status, 0) > REPORT_ORDER["in-progress"]:
        raise BadRequest(f"Inspection cannot be restarted once it is '{report.status}'")

    new = replace(report, status="in-progress", started_at=now)
    return ReportTransition(
        report=new,
        effects=(LogActivity(message="Field agent started the inspection.", meta={"reportStatus": new.status}),),
    )


def complete(report: ReportState, *, now: datetime) -> ReportTransition:
    if report.status != "in-progress":
        raise BadRequest("You can only complete an inspection that is in progress")

    new = replace(report, status="awaiting-report", completed_at=now)
    return ReportTransition(
        report=new,
        effects=(
            LogActivity(
                message="Field agent marked the inspection as complete, pending report submission.",
                meta={"reportStatus": new.status},
            ),
        ),
    )


def submit(
    report: ReportState,
    *,
    buyer_present: bool,
    seller_present: bool,
    buyer_interest: Optional[str],
    notes: Optional[str],
    now: datetime,
) -> ReportTransition:
    # Accepted from any report state: submission is not gated on awaiting-report.
    buyer_interest = buyer_interest or None
    if buyer_interest is not None and buyer_interest not in BUYER_INTEREST:
        raise BadRequest("Invalid buyer interest", details={"allowed": list(BUYER_INTEREST)})

    both_present = bool(buyer_present) and bool(seller_present)
    new = replace(
        report,
        buyer_present=bool(buyer_present),
        seller_present=bool(seller_present),
        buyer_interest=buyer_interest,
        notes=notes or "",
        was_successful=both_present,
        status="completed" if both_present else "absent",
        submitted_at=now,
    )
    return ReportTransition(
        report=new,
        effects=(
            LogActivity(
                message="Field agent submitted the inspection report.",
                meta={"reportStatus": new.status, "wasSuccessful": new.was_successful},
            ),
        ),
    )
