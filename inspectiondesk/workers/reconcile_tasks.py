from __future__ import annotations

from ..db import session_scope
from ..services.reconciliation import reconcile_assignments
from .celery_app import celery_app


@celery_app.task(name="inspectiondesk.workers.reconcile_tasks.reconcile_field_agent_assignments")
def reconcile_field_agent_assignments() -> dict:
    """
    Periodic self-healing sweep (celery-beat).

    Idempotent: a second run right after the first reports zero changes.
    """
    with session_scope() as db:
        res = reconcile_assignments(db)
    return {"ok": True, "reconcile": res.to_dict()}
