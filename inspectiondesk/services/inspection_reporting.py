from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain import report as report_fsm
from ..domain.report import ReportTransition
from ..models import InspectionRequest
from .effect_executor import EffectExecutor, snapshot_of
from .repositories import InspectionRepository
from .runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.reporting")


class InspectionReportingService:
    """Field-agent side of an inspection: start, stop, submit the report."""

    def __init__(self, db: Session, *, inspections: InspectionRepository, executor: EffectExecutor) -> None:
        self.db = db
        self.inspections = inspections
        self.executor = executor

    def _apply(self, row: InspectionRequest, t: ReportTransition, *, actor: Principal, action: str) -> InspectionRequest:
        snap = snapshot_of(row)
        self.inspections.apply_report(row, t.report)
        self.executor.record(snap, t.report, t.effects, actor=actor)
        self.db.commit()

        METRICS.inc(f"report_{action}")
        log.info(
            "report -> %s",
            t.report.status,
            extra={"inspection_id": snap.inspection_id, "field_agent_id": actor.user_id, "action": f"report.{action}"},
        )
        return row

    def start(self, inspection_id: int, *, actor: Principal) -> InspectionRequest:
        row = self.inspections.must_get_assigned(inspection_id, field_agent_user_id=actor.user_id)
        t = report_fsm.start(self.inspections.report_of(row), parent_status=row.status, now=datetime.utcnow())
        return self._apply(row, t, actor=actor, action="started")

    def complete(self, inspection_id: int, *, actor: Principal) -> InspectionRequest:
        row = self.inspections.must_get_assigned(inspection_id, field_agent_user_id=actor.user_id)
        t = report_fsm.complete(self.inspections.report_of(row), now=datetime.utcnow())
        return self._apply(row, t, actor=actor, action="completed")

    def submit(
        self,
        inspection_id: int,
        *,
        buyer_present: bool,
        seller_present: bool,
        buyer_interest: Optional[str],
        notes: Optional[str],
        actor: Principal,
    ) -> InspectionRequest:
        row = self.inspections.must_get_assigned(inspection_id, field_agent_user_id=actor.user_id)
        t = report_fsm.submit(
            self.inspections.report_of(row),
            buyer_present=buyer_present,
            seller_present=seller_present,
            buyer_interest=buyer_interest,
            notes=notes,
            now=datetime.utcnow(),
        )
        return self._apply(row, t, actor=actor, action="submitted")
