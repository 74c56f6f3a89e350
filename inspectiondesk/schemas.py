from __future__ import annotations

from datetime import date, datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import AppUser, InspectionRequest, Property, Transaction
from .services.activity_log import ActivityLogOut as ActivityLogRecord

T = TypeVar("T")


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire (either accepted on input)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# -------------------- Requests --------------------

class StatusDecisionIn(CamelModel):
    status: str


class LOIDecisionIn(CamelModel):
    status: str
    reason: Optional[str] = None


class AttachFieldAgentIn(CamelModel):
    field_agent_id: int


class SubmitReportIn(CamelModel):
    buyer_present: bool = False
    seller_present: bool = False
    buyer_interest: Optional[str] = None
    notes: Optional[str] = None


class SendDetailsIn(CamelModel):
    send: str


# -------------------- Nested summaries --------------------

class UserSummaryOut(CamelModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str

    @classmethod
    def from_user(cls, u: Optional[AppUser]) -> Optional["UserSummaryOut"]:
        if u is None:
            return None
        return cls(id=int(u.id), email=u.email, full_name=u.display_name, phone=u.phone, role=u.role)


class PropertySummaryOut(CamelModel):
    id: int
    property_type: str
    price: Optional[float] = None
    location: str

    @classmethod
    def from_property(cls, p: Optional[Property]) -> Optional["PropertySummaryOut"]:
        if p is None:
            return None
        return cls(id=int(p.id), property_type=p.property_type, price=p.price, location=p.location_line)


class TransactionSummaryOut(CamelModel):
    id: int
    reference: str
    amount: float
    currency: str
    status: str


# -------------------- Inspection --------------------

class InspectionReportOut(CamelModel):
    status: str
    buyer_present: bool
    seller_present: bool
    buyer_interest: Optional[str] = None
    notes: Optional[str] = None
    was_successful: bool
    submitted_at: Optional[datetime] = None
    inspection_started_at: Optional[datetime] = None
    inspection_completed_at: Optional[datetime] = None


class InspectionOut(CamelModel):
    id: int
    property_id: int
    requester_id: int
    owner_id: int
    transaction_id: Optional[int] = None

    status: str
    stage: str
    pending_response_from: str

    inspection_type: str
    is_negotiating: bool
    negotiation_price: float
    is_loi: bool = Field(alias="isLOI")
    letter_of_intention: Optional[str] = None
    approve_loi: Optional[bool] = Field(default=None, alias="approveLOI")
    reason: Optional[str] = None

    assigned_field_agent_id: Optional[int] = None

    inspection_date: Optional[date] = None
    inspection_time: Optional[str] = None
    inspection_mode: str

    inspection_report: InspectionReportOut

    property: Optional[PropertySummaryOut] = None
    requester: Optional[UserSummaryOut] = None
    owner: Optional[UserSummaryOut] = None
    transaction: Optional[TransactionSummaryOut] = None
    assigned_field_agent: Optional[UserSummaryOut] = None

    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: InspectionRequest) -> "InspectionOut":
        txn: Optional[Transaction] = row.transaction
        return cls(
            id=int(row.id),
            property_id=int(row.property_id),
            requester_id=int(row.requester_id),
            owner_id=int(row.owner_id),
            transaction_id=row.transaction_id,
            status=row.status,
            stage=row.stage,
            pending_response_from=row.pending_response_from,
            inspection_type=row.inspection_type,
            is_negotiating=bool(row.is_negotiating),
            negotiation_price=float(row.negotiation_price or 0.0),
            is_loi=bool(row.is_loi),
            letter_of_intention=row.letter_of_intention_url,
            approve_loi=row.approve_loi,
            reason=row.reason,
            assigned_field_agent_id=row.assigned_field_agent_id,
            inspection_date=row.inspection_date,
            inspection_time=row.inspection_time,
            inspection_mode=row.inspection_mode,
            inspection_report=InspectionReportOut(
                status=row.report_status,
                buyer_present=bool(row.report_buyer_present),
                seller_present=bool(row.report_seller_present),
                buyer_interest=row.report_buyer_interest,
                notes=row.report_notes,
                was_successful=bool(row.report_was_successful),
                submitted_at=row.report_submitted_at,
                inspection_started_at=row.report_started_at,
                inspection_completed_at=row.report_completed_at,
            ),
            property=PropertySummaryOut.from_property(row.property),
            requester=UserSummaryOut.from_user(row.requester),
            owner=UserSummaryOut.from_user(row.owner),
            transaction=TransactionSummaryOut.model_validate(txn) if txn is not None else None,
            assigned_field_agent=UserSummaryOut.from_user(row.assigned_field_agent),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class InspectionActionOut(CamelModel):
    message: str
    data: InspectionOut


class DeleteInspectionOut(CamelModel):
    message: str
    inspection_id: int
    transaction_deleted: bool
    field_agent_released: Optional[int] = None


class MessageOut(CamelModel):
    message: str


# -------------------- Listings / stats --------------------

class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class PageOut(BaseModel, Generic[T]):
    data: List[T]
    pagination: PaginationOut


class ListOut(BaseModel, Generic[T]):
    data: List[T]


class AdminStatsOut(BaseModel):
    totalInspections: int
    totalApprovedInspections: int
    totalCompletedInspections: int
    totalCancelledInspections: int
    totalActiveNegotiations: int


class FieldAgentStatsOut(BaseModel):
    totalInspections: int
    pendingInspections: int
    completedInspections: int
    cancelledInspections: int
    averageResponseTimeInHours: float


class ActivityLogOut(CamelModel):
    id: int
    inspection_id: int
    property_id: int
    sender_id: Optional[int] = None
    sender_model: str
    sender_role: str
    sender_name: str
    sender_email: str
    message: str
    status: Optional[str] = None
    stage: Optional[str] = None
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_record(cls, r: ActivityLogRecord) -> "ActivityLogOut":
        return cls.model_validate(r)
