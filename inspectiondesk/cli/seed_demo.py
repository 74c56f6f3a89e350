from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models import AppUser, FieldAgent, InspectionRequest, Property, Transaction


@dataclass(frozen=True)
class SeedResult:
    admin_email: str
    buyer_email: str
    seller_email: str
    field_agent_email: str
    property_id: int
    inspection_ids: list[int]


def _get_or_create_user(db: Session, email: str, full_name: str, role: str, phone: Optional[str] = None) -> AppUser:
    row = db.query(AppUser).filter(AppUser.email == email).one_or_none()
    if row:
        return row
    row = AppUser(email=email, full_name=full_name, role=role, phone=phone)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _ensure_field_agent(db: Session, user: AppUser, approved: bool) -> FieldAgent:
    row = db.query(FieldAgent).filter(FieldAgent.user_id == int(user.id)).one_or_none()
    if row:
        row.account_approved = approved
        db.commit()
        return row
    row = FieldAgent(user_id=int(user.id), account_approved=approved, whatsapp_number=user.phone)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _new_request(
    db: Session,
    *,
    prop: Property,
    buyer: AppUser,
    inspection_type: str,
    negotiation_price: float = 0.0,
    loi_url: Optional[str] = None,
    payment_status: str = "success",
) -> InspectionRequest:
    txn = Transaction(
        reference=f"demo-{uuid.uuid4().hex[:12]}",
        payer_user_id=int(buyer.id),
        amount=5000.0,
        status=payment_status,
        transaction_type="inspection",
        payment_mode="card",
    )
    db.add(txn)
    db.flush()

    row = InspectionRequest(
        property_id=int(prop.id),
        requester_id=int(buyer.id),
        owner_id=int(prop.owner_id),
        transaction_id=int(txn.id),
        inspection_type=inspection_type,
        negotiation_price=negotiation_price,
        letter_of_intention_url=loi_url,
        inspection_date=date.today() + timedelta(days=7),
        inspection_time="10:00",
        inspection_mode="in_person",
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def seed_demo(
    db: Session,
    *,
    admin_email: str = "admin@inspectiondesk.local",
    buyer_email: str = "buyer@inspectiondesk.local",
    seller_email: str = "seller@inspectiondesk.local",
    field_agent_email: str = "agent@inspectiondesk.local",
) -> SeedResult:
    _get_or_create_user(db, admin_email, "Demo Admin", "admin")
    buyer = _get_or_create_user(db, buyer_email, "Ada Buyer", "buyer", phone="+2348000000001")
    seller = _get_or_create_user(db, seller_email, "Sola Seller", "seller", phone="+2348000000002")
    agent_user = _get_or_create_user(db, field_agent_email, "Femi Agent", "field_agent", phone="+2348000000003")
    _ensure_field_agent(db, agent_user, approved=True)

    prop = Property(
        owner_id=int(seller.id),
        property_type="buy",
        price=45_000_000.0,
        location_state="Lagos",
        location_lga="Eti-Osa",
        location_area="Lekki Phase 1",
    )
    db.add(prop)
    db.commit()
    db.refresh(prop)

    rows = [
        _new_request(db, prop=prop, buyer=buyer, inspection_type="price"),
        _new_request(db, prop=prop, buyer=buyer, inspection_type="price", negotiation_price=40_000_000.0),
        _new_request(db, prop=prop, buyer=buyer, inspection_type="LOI", loi_url="https://files.example.com/loi.pdf"),
    ]

    return SeedResult(
        admin_email=admin_email,
        buyer_email=buyer_email,
        seller_email=seller_email,
        field_agent_email=field_agent_email,
        property_id=int(prop.id),
        inspection_ids=[int(r.id) for r in rows],
    )