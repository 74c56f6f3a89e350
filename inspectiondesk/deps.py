"""
FastAPI providers wiring repositories and services onto the request session.

Tests override get_email_transport / get_payment_gateway through
app.dependency_overrides; everything else is built from those two.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .services.activity_log import ActivityLogger
from .services.effect_executor import EffectExecutor
from .services.field_agent_assignment import FieldAgentAssignmentService
from .services.inspection_queries import InspectionQueries
from .services.inspection_reporting import InspectionReportingService
from .services.inspection_workflow import InspectionWorkflowService
from .services.notifications import EmailTransport, NotificationDispatcher, default_transport
from .services.participant_details import ParticipantDetailService
from .services.payments import LedgerPaymentGateway, PaymentGateway, PaystackPaymentGateway
from .services.repositories import (
    FieldAgentRepository,
    InspectionRepository,
    TransactionRepository,
    UserRepository,
)


@lru_cache(maxsize=1)
def _transport() -> EmailTransport:
    return default_transport()


def get_email_transport() -> EmailTransport:
    return _transport()


def get_payment_gateway(db: Session = Depends(get_db)) -> PaymentGateway:
    if (settings.payment_gateway or "ledger").strip().lower() == "paystack":
        return PaystackPaymentGateway()
    return LedgerPaymentGateway(db)


def get_notifier(
    db: Session = Depends(get_db),
    transport: EmailTransport = Depends(get_email_transport),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, transport)


def get_activity_logger(db: Session = Depends(get_db)) -> ActivityLogger:
    return ActivityLogger(db)


def get_executor(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> EffectExecutor:
    return EffectExecutor(activity=ActivityLogger(db), notifier=notifier, users=UserRepository(db))


def get_workflow(
    db: Session = Depends(get_db),
    executor: EffectExecutor = Depends(get_executor),
) -> InspectionWorkflowService:
    return InspectionWorkflowService(db, inspections=InspectionRepository(db), executor=executor)


def get_assignment(
    db: Session = Depends(get_db),
    executor: EffectExecutor = Depends(get_executor),
    payments: PaymentGateway = Depends(get_payment_gateway),
) -> FieldAgentAssignmentService:
    return FieldAgentAssignmentService(
        db,
        inspections=InspectionRepository(db),
        agents=FieldAgentRepository(db),
        transactions=TransactionRepository(db),
        payments=payments,
        executor=executor,
    )


def get_reporting(
    db: Session = Depends(get_db),
    executor: EffectExecutor = Depends(get_executor),
) -> InspectionReportingService:
    return InspectionReportingService(db, inspections=InspectionRepository(db), executor=executor)


def get_participants(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ParticipantDetailService:
    return ParticipantDetailService(inspections=InspectionRepository(db), notifier=notifier)


def get_queries(db: Session = Depends(get_db)) -> InspectionQueries:
    return InspectionQueries(db, inspections=InspectionRepository(db), agents=FieldAgentRepository(db))
