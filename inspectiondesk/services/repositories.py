"""
Per-entity repositories over an explicit SQLAlchemy Session.

Services receive these through their constructors (see deps.py), so tests can
hand in a session bound to an in-memory database, or a fake, without patching
module globals.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from ..domain.inspection_states import InspectionState
from ..domain.report import ReportState
from ..errors import NotFound
from ..models import (
    AppUser,
    FieldAgent,
    FieldAgentAssignment,
    InspectionRequest,
    Transaction,
)


def _utcnow() -> datetime:
    return datetime.utcnow()


class InspectionRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def hydrated_select(self):
        return select(InspectionRequest).options(
            joinedload(InspectionRequest.property),
            joinedload(InspectionRequest.requester),
            joinedload(InspectionRequest.owner),
            joinedload(InspectionRequest.transaction),
            joinedload(InspectionRequest.assigned_field_agent),
        )

    def get(self, inspection_id: int) -> Optional[InspectionRequest]:
        return self.db.scalar(self.hydrated_select().where(InspectionRequest.id == int(inspection_id)))

    def must_get(self, inspection_id: int) -> InspectionRequest:
        row = self.get(inspection_id)
        if row is None:
            raise NotFound("Inspection not found")
        return row

    def must_get_assigned(self, inspection_id: int, *, field_agent_user_id: int) -> InspectionRequest:
        row = self.db.scalar(
            self.hydrated_select().where(
                InspectionRequest.id == int(inspection_id),
                InspectionRequest.assigned_field_agent_id == int(field_agent_user_id),
            )
        )
        if row is None:
            raise NotFound("Inspection not found or not assigned to you")
        return row

    def delete(self, row: InspectionRequest) -> None:
        self.db.delete(row)

    # ---- aggregate <-> pure state ----
    @staticmethod
    def state_of(row: InspectionRequest) -> InspectionState:
        return InspectionState(
            status=row.status,
            stage=row.stage,
            pending_response_from=row.pending_response_from,
            inspection_type=row.inspection_type,
            is_negotiating=bool(row.is_negotiating),
            negotiation_price=float(row.negotiation_price or 0.0),
            is_loi=bool(row.is_loi),
            letter_of_intention_url=row.letter_of_intention_url,
            approve_loi=row.approve_loi,
            assigned_field_agent_id=row.assigned_field_agent_id,
        )

    @staticmethod
    def apply_state(row: InspectionRequest, state: InspectionState) -> None:
        row.status = state.status
        row.stage = state.stage
        row.pending_response_from = state.pending_response_from
        row.is_negotiating = state.is_negotiating
        row.is_loi = state.is_loi
        row.approve_loi = state.approve_loi
        row.assigned_field_agent_id = state.assigned_field_agent_id
        row.updated_at = _utcnow()

    @staticmethod
    def report_of(row: InspectionRequest) -> ReportState:
        return ReportState(
            status=row.report_status,
            buyer_present=bool(row.report_buyer_present),
            seller_present=bool(row.report_seller_present),
            buyer_interest=row.report_buyer_interest,
            notes=row.report_notes,
            was_successful=bool(row.report_was_successful),
            started_at=row.report_started_at,
            completed_at=row.report_completed_at,
            submitted_at=row.report_submitted_at,
        )

    @staticmethod
    def apply_report(row: InspectionRequest, report: ReportState) -> None:
        row.report_status = report.status
        row.report_buyer_present = report.buyer_present
        row.report_seller_present = report.seller_present
        row.report_buyer_interest = report.buyer_interest
        row.report_notes = report.notes
        row.report_was_successful = report.was_successful
        row.report_started_at = report.started_at
        row.report_completed_at = report.completed_at
        row.report_submitted_at = report.submitted_at
        row.updated_at = _utcnow()


class FieldAgentRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_user_id(self, user_id: int) -> Optional[FieldAgent]:
        return self.db.scalar(
            select(FieldAgent).options(joinedload(FieldAgent.user)).where(FieldAgent.user_id == int(user_id))
        )

    def must_get_by_user_id(self, user_id: int) -> FieldAgent:
        agent = self.get_by_user_id(user_id)
        if agent is None:
            raise NotFound("Field Agent not found")
        return agent

    def add_assignment(self, agent: FieldAgent, inspection_id: int) -> FieldAgentAssignment:
        link = FieldAgentAssignment(field_agent_id=int(agent.id), inspection_id=int(inspection_id), created_at=_utcnow())
        agent.assignments.append(link)
        return link

    def pull_assignment(self, inspection_id: int) -> int:
        """Drop every back-reference to the request; returns rows removed."""
        res = self.db.execute(
            delete(FieldAgentAssignment).where(FieldAgentAssignment.inspection_id == int(inspection_id))
        )
        return int(res.rowcount or 0)

    def assigned_inspection_ids(self, user_id: int) -> set[int]:
        rows = self.db.scalars(
            select(FieldAgentAssignment.inspection_id)
            .join(FieldAgent, FieldAgent.id == FieldAgentAssignment.field_agent_id)
            .where(FieldAgent.user_id == int(user_id))
        ).all()
        return {int(x) for x in rows}


class TransactionRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.get(Transaction, int(transaction_id))

    def delete(self, row: Transaction) -> None:
        self.db.delete(row)


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: Optional[int]) -> Optional[AppUser]:
        if user_id is None:
            return None
        return self.db.get(AppUser, int(user_id))
