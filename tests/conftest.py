from __future__ import annotations

import os

# in-memory DB for anything that imports inspectiondesk.db directly
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_MODE", "dev")
os.environ.setdefault("EMAIL_BACKEND", "console")

import threading
from datetime import date, datetime
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inspectiondesk import models  # noqa: F401
from inspectiondesk.db import Base, get_db
from inspectiondesk.deps import get_email_transport, get_payment_gateway
from inspectiondesk.main import create_app
from inspectiondesk.models import AppUser, FieldAgent, InspectionRequest, Property, Transaction
from inspectiondesk.services.notifications import EmailMessage
from inspectiondesk.services.runtime_metrics import METRICS


class RecordingTransport:
    """Keeps every message; raises for addresses listed in fail_for."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sent: list[EmailMessage] = []
        self.attempted: list[str] = []
        self.fail_for: set[str] = set()

    def send(self, message: EmailMessage) -> None:
        with self._lock:
            self.attempted.append(message.to)
        if message.to in self.fail_for:
            raise RuntimeError(f"mailbox unavailable: {message.to}")
        with self._lock:
            self.sent.append(message)

    def to(self, address: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == address]

    def subjects(self) -> list[str]:
        return [m.subject for m in self.sent]


class FakePaymentGateway:
    def __init__(self, status: str = "success") -> None:
        self.status = status
        self.calls: list[Optional[str]] = []

    def get_status(self, transaction: Optional[Transaction]) -> str:
        self.calls.append(transaction.reference if transaction is not None else None)
        return self.status


@pytest.fixture(autouse=True)
def _reset_metrics():
    METRICS.reset()
    yield


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway("success")


@pytest.fixture
def client(db_session, transport, gateway):
    app = create_app()

    def _get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_transport] = lambda: transport
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    with TestClient(app) as c:
        yield c


# -----------------------------
# Data builders
# -----------------------------
class World:
    def __init__(self, db) -> None:
        self.db = db
        self.admin = self.user("admin@test.local", "Grace Admin", "admin")
        self.buyer = self.user("buyer@test.local", "Ada Buyer", "buyer", phone="+2348011111111")
        self.seller = self.user("seller@test.local", "Sola Seller", "seller", phone="+2348022222222")
        self.agent_user = self.user("agent@test.local", "Femi Agent", "field_agent")
        self.agent = self.field_agent(self.agent_user, approved=True)
        self.other_agent_user = self.user("agent2@test.local", "Bisi Agent", "field_agent")
        self.other_agent = self.field_agent(self.other_agent_user, approved=True)

        self.property = Property(
            owner_id=int(self.seller.id),
            property_type="buy",
            price=45_000_000.0,
            location_state="Lagos",
            location_lga="Eti-Osa",
            location_area="Lekki Phase 1",
        )
        db.add(self.property)
        db.commit()
        db.refresh(self.property)

        self._ref = 0

    def user(self, email: str, name: str, role: str, phone: Optional[str] = None) -> AppUser:
        u = AppUser(email=email, full_name=name, role=role, phone=phone)
        self.db.add(u)
        self.db.commit()
        self.db.refresh(u)
        return u

    def field_agent(self, user: AppUser, approved: bool = True) -> FieldAgent:
        fa = FieldAgent(user_id=int(user.id), account_approved=approved)
        self.db.add(fa)
        self.db.commit()
        self.db.refresh(fa)
        return fa

    def request(
        self,
        *,
        status: str = "pending_transaction",
        stage: str = "negotiation",
        inspection_type: str = "price",
        negotiation_price: float = 0.0,
        loi_url: Optional[str] = None,
        payment_status: str = "success",
        assigned_field_agent_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> InspectionRequest:
        self._ref += 1
        txn = Transaction(
            reference=f"ref-{self._ref}",
            payer_user_id=int(self.buyer.id),
            amount=5000.0,
            status=payment_status,
        )
        self.db.add(txn)
        self.db.flush()

        now = datetime.utcnow()
        row = InspectionRequest(
            property_id=int(self.property.id),
            requester_id=int(self.buyer.id),
            owner_id=int(self.seller.id),
            transaction_id=int(txn.id),
            status=status,
            stage=stage,
            inspection_type=inspection_type,
            negotiation_price=negotiation_price,
            letter_of_intention_url=loi_url,
            assigned_field_agent_id=assigned_field_agent_id,
            inspection_date=date(2026, 11, 2),
            inspection_time="10:00",
            inspection_mode="in_person",
            created_at=created_at or now,
            updated_at=updated_at or now,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row


@pytest.fixture
def world(db_session) -> World:
    return World(db_session)


def headers_for(user: AppUser) -> dict[str, str]:
    return {"X-User-Email": user.email, "X-User-Role": user.role}


@pytest.fixture
def admin_headers(world) -> dict[str, str]:
    return headers_for(world.admin)


@pytest.fixture
def agent_headers(world) -> dict[str, str]:
    return headers_for(world.agent_user)


@pytest.fixture
def as_user():
    return headers_for
