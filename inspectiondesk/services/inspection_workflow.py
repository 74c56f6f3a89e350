from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain import transitions
from ..models import InspectionRequest
from .effect_executor import EffectExecutor, snapshot_of
from .repositories import InspectionRepository
from .runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.workflow")


class InspectionWorkflowService:
    """
    Admin decisions on an inspection request.

    Read-modify-write without a version check: two admins acting on the same
    request at once race, and the later commit wins.
    """

    def __init__(self, db: Session, *, inspections: InspectionRepository, executor: EffectExecutor) -> None:
        self.db = db
        self.inspections = inspections
        self.executor = executor

    def update_status(self, inspection_id: int, decision: str, *, actor: Principal) -> InspectionRequest:
        row = self.inspections.must_get(inspection_id)
        snap = snapshot_of(row)

        t = transitions.decide_status(self.inspections.state_of(row), decision)
        self.inspections.apply_state(row, t.state)
        self.executor.record(snap, t.state, t.effects, actor=actor)
        self.db.commit()

        METRICS.inc("inspections_rejected" if t.state.status == "transaction_failed" else "inspections_approved")
        log.info(
            "inspection status -> %s",
            t.state.status,
            extra={"inspection_id": snap.inspection_id, "user_id": actor.user_id, "action": "inspection.status"},
        )

        self.executor.dispatch(snap, t.effects, state=t.state)
        return row

    def decide_loi(
        self,
        inspection_id: int,
        decision: str,
        *,
        reason: Optional[str] = None,
        actor: Principal,
    ) -> InspectionRequest:
        row = self.inspections.must_get(inspection_id)
        snap = snapshot_of(row)

        t = transitions.decide_loi(self.inspections.state_of(row), decision, reason)
        self.inspections.apply_state(row, t.state)
        if t.state.approve_loi is False:
            row.reason = reason
        self.executor.record(snap, t.state, t.effects, actor=actor)
        self.db.commit()

        METRICS.inc("loi_approved" if t.state.approve_loi else "loi_rejected")
        log.info(
            "LOI decision approve_loi=%s",
            t.state.approve_loi,
            extra={"inspection_id": snap.inspection_id, "user_id": actor.user_id, "action": "inspection.loi"},
        )

        self.executor.dispatch(snap, t.effects, state=t.state)
        return row
