from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain import transitions
from ..errors import Conflict
from ..models import InspectionRequest
from .effect_executor import EffectExecutor, snapshot_of
from .payments import PaymentGateway
from .repositories import FieldAgentRepository, InspectionRepository, TransactionRepository
from .runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.assignment")


class FieldAgentAssignmentService:
    """
    Attach / detach a field agent and the guarded hard delete.

    The forward reference (InspectionRequest.assigned_field_agent_id) and the
    agent-side back-reference (field_agent_assignments) are written in the same
    session and committed once; a failure anywhere rolls both back.
    """

    def __init__(
        self,
        db: Session,
        *,
        inspections: InspectionRepository,
        agents: FieldAgentRepository,
        transactions: TransactionRepository,
        payments: PaymentGateway,
        executor: EffectExecutor,
    ) -> None:
        self.db = db
        self.inspections = inspections
        self.agents = agents
        self.transactions = transactions
        self.payments = payments
        self.executor = executor

    def _flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            # unique(inspection_id) on the back-reference lost a race with another attach
            self.db.rollback()
            raise Conflict("This inspection already has a field agent assigned") from e

    def attach(self, inspection_id: int, field_agent_user_id: int, *, actor: Principal) -> InspectionRequest:
        row = self.inspections.must_get(inspection_id)
        agent = self.agents.must_get_by_user_id(field_agent_user_id)
        snap = snapshot_of(row)

        t = transitions.attach_field_agent(
            self.inspections.state_of(row),
            agent_user_id=int(agent.user_id),
            agent_approved=bool(agent.account_approved),
            payment_status=self.payments.get_status(row.transaction),
        )

        self.inspections.apply_state(row, t.state)
        self.agents.add_assignment(agent, int(row.id))
        self._flush()
        self.executor.record(snap, t.state, t.effects, actor=actor)
        self.db.commit()

        METRICS.inc("field_agents_attached")
        log.info(
            "field agent attached",
            extra={
                "inspection_id": snap.inspection_id,
                "field_agent_id": int(agent.user_id),
                "user_id": actor.user_id,
                "action": "assignment.attach",
            },
        )

        self.executor.dispatch(snap, t.effects, state=t.state)
        return row

    def remove(self, inspection_id: int, *, actor: Principal) -> InspectionRequest:
        row = self.inspections.must_get(inspection_id)
        snap = snapshot_of(row)
        removed = row.assigned_field_agent_id

        t = transitions.remove_field_agent(self.inspections.state_of(row))

        self.inspections.apply_state(row, t.state)
        self.agents.pull_assignment(int(row.id))
        self.executor.record(snap, t.state, t.effects, actor=actor)
        self.db.commit()

        METRICS.inc("field_agents_removed")
        log.info(
            "field agent removed",
            extra={
                "inspection_id": snap.inspection_id,
                "field_agent_id": removed,
                "user_id": actor.user_id,
                "action": "assignment.remove",
            },
        )

        self.executor.dispatch(snap, t.effects, state=t.state)
        return row

    def delete_inspection_and_transaction(self, inspection_id: int, *, actor: Principal) -> dict:
        row = self.inspections.must_get(inspection_id)
        snap = snapshot_of(row)

        t = transitions.delete_request(self.inspections.state_of(row))

        pulled = self.agents.pull_assignment(int(row.id))
        txn = row.transaction
        txn_id = int(txn.id) if txn is not None else None
        self.executor.record(snap, t.state, t.effects, actor=actor)

        # agent hears about it before anything is gone; a failed send keeps the request
        try:
            self.executor.dispatch(snap, t.effects, state=t.state, commit=False)
            self.inspections.delete(row)
            if txn is not None:
                self.transactions.delete(txn)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        METRICS.inc("inspections_deleted")
        log.info(
            "inspection deleted (transaction=%s, back_refs=%s)",
            txn_id,
            pulled,
            extra={"inspection_id": snap.inspection_id, "user_id": actor.user_id, "action": "inspection.delete"},
        )
        return {
            "inspectionId": snap.inspection_id,
            "transactionDeleted": txn_id is not None,
            "fieldAgentReleased": snap.field_agent.user_id if snap.field_agent else None,
        }
