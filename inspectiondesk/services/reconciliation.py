from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..models import FieldAgent, FieldAgentAssignment, InspectionRequest
from .runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.reconcile")


@dataclass(frozen=True)
class ReconcileResult:
    checked: int
    removed: int
    added: int
    missing_profiles: int

    def to_dict(self) -> dict:
        return asdict(self)


def reconcile_assignments(db: Session, *, commit: bool = True) -> ReconcileResult:
    """
    Make field_agent_assignments agree with InspectionRequest.assigned_field_agent_id.

    The request row is the source of truth:
      - back-refs whose request is gone, or points at another agent (or none), are removed
      - requests pointing at an agent with no back-ref get one
    Requests that point at a user without a FieldAgent profile are only counted.
    """
    agents_by_user = {int(a.user_id): int(a.id) for a in db.scalars(select(FieldAgent)).all()}
    expected: dict[int, int] = {}  # inspection_id -> field_agent.id
    missing_profiles = 0

    for insp_id, agent_user_id in db.execute(
        select(InspectionRequest.id, InspectionRequest.assigned_field_agent_id).where(
            InspectionRequest.assigned_field_agent_id.is_not(None)
        )
    ).all():
        fa_id = agents_by_user.get(int(agent_user_id))
        if fa_id is None:
            missing_profiles += 1
            continue
        expected[int(insp_id)] = fa_id

    links = db.execute(
        select(FieldAgentAssignment.id, FieldAgentAssignment.inspection_id, FieldAgentAssignment.field_agent_id)
    ).all()

    stale: list[int] = []
    present: set[int] = set()
    for link_id, insp_id, fa_id in links:
        if expected.get(int(insp_id)) == int(fa_id):
            present.add(int(insp_id))
        else:
            stale.append(int(link_id))

    if stale:
        db.execute(delete(FieldAgentAssignment).where(FieldAgentAssignment.id.in_(stale)))
        # flush the deletes first so re-adding a moved request can't trip unique(inspection_id)
        db.flush()

    now = datetime.utcnow()
    added = 0
    for insp_id, fa_id in sorted(expected.items()):
        if insp_id in present:
            continue
        db.add(FieldAgentAssignment(field_agent_id=fa_id, inspection_id=insp_id, created_at=now))
        added += 1

    if commit:
        db.commit()
    else:
        db.flush()

    result = ReconcileResult(checked=len(links), removed=len(stale), added=added, missing_profiles=missing_profiles)
    METRICS.inc("reconcile_runs")
    METRICS.inc("reconcile_removed", result.removed)
    METRICS.inc("reconcile_added", result.added)
    if result.removed or result.added or result.missing_profiles:
        log.warning("assignment drift repaired: %s", result.to_dict(), extra={"action": "reconcile"})
    else:
        log.info("assignments consistent (%s checked)", result.checked, extra={"action": "reconcile"})
    return result
