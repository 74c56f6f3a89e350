from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


# -----------------------------
# People
# -----------------------------
class AppUser(Base):
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="buyer")  # admin|buyer|seller|field_agent
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        joined = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return joined or self.email


class FieldAgent(Base):
    __tablename__ = "field_agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, unique=True, index=True)

    whatsapp_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    region_of_operation_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    account_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    user: Mapped["AppUser"] = relationship()
    assignments: Mapped[List["FieldAgentAssignment"]] = relationship(
        back_populates="field_agent", cascade="all, delete-orphan"
    )

    @property
    def assigned_inspection_ids(self) -> set[int]:
        return {int(a.inspection_id) for a in self.assignments}


class FieldAgentAssignment(Base):
    """
    Agent-side back-reference: one row per inspection request the agent holds.

    Unique on inspection_id, so a request can never sit in two agents' lists.
    """

    __tablename__ = "field_agent_assignments"
    __table_args__ = (
        UniqueConstraint("inspection_id", name="uq_field_agent_assignments_inspection"),
        Index("ix_field_agent_assignments_agent", "field_agent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    field_agent_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("field_agents.id", ondelete="CASCADE"), nullable=False
    )
    inspection_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("inspection_requests.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    field_agent: Mapped["FieldAgent"] = relationship(back_populates="assignments")


# -----------------------------
# Property / payments
# -----------------------------
class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)

    property_type: Mapped[str] = mapped_column(String(60), nullable=False, default="buy")  # buy|rent|jv|shortlet
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    location_state: Mapped[str] = mapped_column(String(80), nullable=False)
    location_lga: Mapped[str] = mapped_column(String(120), nullable=False)
    location_area: Mapped[str] = mapped_column(String(120), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    owner: Mapped["AppUser"] = relationship()

    @property
    def location_line(self) -> str:
        return f"{self.location_area}, {self.location_lga}, {self.location_state}"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    reference: Mapped[str] = mapped_column(String(80), nullable=False, unique=True, index=True)
    payer_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="NGN")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|success|failed|cancelled
    transaction_type: Mapped[str] = mapped_column(String(40), nullable=False, default="inspection")
    payment_mode: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Inspection requests
# -----------------------------
class InspectionRequest(Base):
    __tablename__ = "inspection_requests"
    __table_args__ = (
        Index("ix_inspection_requests_status_stage", "status", "stage"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    requester_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    transaction_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[str] = mapped_column(String(40), nullable=False, default="pending_transaction")
    stage: Mapped[str] = mapped_column(String(20), nullable=False, default="negotiation")
    pending_response_from: Mapped[str] = mapped_column(String(10), nullable=False, default="admin")

    inspection_type: Mapped[str] = mapped_column(String(10), nullable=False, default="price")  # price|LOI
    is_negotiating: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    negotiation_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_loi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    letter_of_intention_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    approve_loi: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)  # None = not yet decided
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    assigned_field_agent_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("app_users.id"), nullable=True, index=True
    )

    inspection_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    inspection_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    inspection_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="in_person")  # in_person|virtual

    # inspection report sub-record
    report_status: Mapped[str] = mapped_column(String(20), nullable=False, default="not-started")
    report_buyer_present: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    report_seller_present: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    report_buyer_interest: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    report_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    report_was_successful: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    report_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    report_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    report_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    property: Mapped["Property"] = relationship()
    requester: Mapped["AppUser"] = relationship(foreign_keys=[requester_id])
    owner: Mapped["AppUser"] = relationship(foreign_keys=[owner_id])
    transaction: Mapped[Optional["Transaction"]] = relationship()
    assigned_field_agent: Mapped[Optional["AppUser"]] = relationship(foreign_keys=[assigned_field_agent_id])


# -----------------------------
# Activity trail / notifications
# -----------------------------
class InspectionActivityLog(Base):
    """
    Append-only. inspection_id is deliberately not a foreign key: the trail
    outlives a hard-deleted request.
    """

    __tablename__ = "inspection_activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inspection_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    property_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    sender_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sender_model: Mapped[str] = mapped_column(String(20), nullable=False)  # User|Buyer|Admin
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False)  # buyer|seller|admin|field_agent

    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    stage: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    meta_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    meta_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
