"""
Performs the effects produced by domain.transitions / domain.report.

Split in two:
  record()   - LogActivity effects, flushed inside the caller's transaction
  dispatch() - SendEmail / CreateNotification, called after commit

A snapshot of the hydrated request is taken before mutation, so recipients and
template context are still available after a remove or a hard delete.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from ..auth import Principal
from ..config import settings
from ..domain.email_templates import render
from ..domain.inspection_states import (
    CreateNotification,
    Effect,
    InspectionState,
    LogActivity,
    SendEmail,
)
from ..domain.report import ReportState
from ..models import AppUser, InspectionRequest
from .activity_log import ActivityLogger
from .notifications import EmailMessage, NotificationDispatcher
from .repositories import UserRepository

log = logging.getLogger("inspectiondesk.effects")


def _money(v: Optional[float]) -> str:
    if v is None:
        return "N/A"
    f = float(v)
    return f"{f:,.0f}" if f.is_integer() else f"{f:,.2f}"


@dataclass(frozen=True)
class Party:
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None

    @classmethod
    def of(cls, user: Optional[AppUser]) -> Optional["Party"]:
        if user is None:
            return None
        return cls(user_id=int(user.id), name=user.display_name, email=str(user.email), phone=user.phone)


@dataclass(frozen=True)
class InspectionSnapshot:
    inspection_id: int
    property_id: int
    owner_id: int
    buyer: Optional[Party]
    seller: Optional[Party]
    field_agent: Optional[Party]
    context: dict[str, Any] = field(default_factory=dict)

    def party(self, recipient: str) -> Optional[Party]:
        return {"buyer": self.buyer, "seller": self.seller, "field_agent": self.field_agent}.get(recipient)


def snapshot_of(row: InspectionRequest) -> InspectionSnapshot:
    buyer = Party.of(row.requester)
    seller = Party.of(row.owner)
    prop = row.property

    ctx: dict[str, Any] = {
        "brand": settings.email_from_name,
        "buyer_name": buyer.name if buyer else "N/A",
        "buyer_email": buyer.email if buyer else None,
        "buyer_phone": buyer.phone if buyer else None,
        "seller_name": seller.name if seller else "N/A",
        "seller_email": seller.email if seller else None,
        "seller_phone": seller.phone if seller else None,
        "property_type": prop.property_type if prop else "N/A",
        "location": prop.location_line if prop else "N/A",
        "price": _money(prop.price) if prop else "N/A",
        "inspection_date": row.inspection_date.isoformat() if row.inspection_date else None,
        "inspection_time": row.inspection_time,
        "inspection_mode": row.inspection_mode,
        "is_negotiating": bool(row.is_negotiating),
        "negotiation_price": _money(row.negotiation_price),
        "letter_of_intention": row.letter_of_intention_url,
    }
    return InspectionSnapshot(
        inspection_id=int(row.id),
        property_id=int(row.property_id),
        owner_id=int(row.owner_id),
        buyer=buyer,
        seller=seller,
        field_agent=Party.of(row.assigned_field_agent),
        context=ctx,
    )


def seller_response_link(*, owner_id: int, inspection_id: int) -> str:
    return f"{settings.client_link.rstrip('/')}/secure-seller-response/{int(owner_id)}/{int(inspection_id)}"


class EffectExecutor:
    def __init__(
        self,
        *,
        activity: ActivityLogger,
        notifier: NotificationDispatcher,
        users: UserRepository,
    ) -> None:
        self.activity = activity
        self.notifier = notifier
        self.users = users

    # ---- before commit ----
    def record(
        self,
        snap: InspectionSnapshot,
        state: Union[InspectionState, ReportState],
        effects: Iterable[Effect],
        *,
        actor: Principal,
    ) -> None:
        status = getattr(state, "status", None)
        stage = getattr(state, "stage", None)
        for eff in effects:
            if not isinstance(eff, LogActivity):
                continue
            # report transitions carry the report status in meta; status/stage stay the parent's
            include = eff.include_status and isinstance(state, InspectionState)
            self.activity.log(
                inspection_id=snap.inspection_id,
                property_id=snap.property_id,
                sender=actor,
                message=eff.message,
                status=status if include else None,
                stage=stage if include else None,
                meta=eff.meta or None,
            )

    # ---- after commit ----
    def _resolve(self, snap: InspectionSnapshot, recipient: str, user_id: Optional[int]) -> Optional[Party]:
        if user_id is not None:
            party = snap.party(recipient)
            if party is not None and party.user_id == int(user_id):
                return party
            return Party.of(self.users.get(user_id))
        return snap.party(recipient)

    def _context(self, snap: InspectionSnapshot, state: Optional[InspectionState], extra: dict[str, Any]) -> dict[str, Any]:
        ctx = dict(snap.context)
        if state is not None:
            ctx["is_negotiating"] = state.is_negotiating
            ctx["negotiation_price"] = _money(state.negotiation_price)
            ctx["letter_of_intention"] = state.letter_of_intention_url if state.is_loi else ctx.get("letter_of_intention")
        ctx.update({k: v for k, v in extra.items() if k != "with_response_link"})
        if extra.get("with_response_link"):
            ctx["response_link"] = seller_response_link(owner_id=snap.owner_id, inspection_id=snap.inspection_id)
        return ctx

    def dispatch(
        self,
        snap: InspectionSnapshot,
        effects: Iterable[Effect],
        *,
        state: Optional[InspectionState] = None,
        commit: bool = True,
    ) -> None:
        for eff in effects:
            if isinstance(eff, SendEmail):
                self._send_email(snap, eff, state)
            elif isinstance(eff, CreateNotification):
                self._create_notification(snap, eff, state, commit=commit)

    def _send_email(self, snap: InspectionSnapshot, eff: SendEmail, state: Optional[InspectionState]) -> None:
        party = self._resolve(snap, eff.recipient, eff.user_id)
        if party is None:
            log.warning(
                "no %s to email for inspection %s (%s)",
                eff.recipient,
                snap.inspection_id,
                eff.template,
                extra={"inspection_id": snap.inspection_id},
            )
            return
        ctx = self._context(snap, state, eff.context)
        ctx["recipient_name"] = party.name
        html = render(eff.template, ctx)
        self.notifier.notify(EmailMessage(to=party.email, subject=eff.subject, html=html))

    def _create_notification(
        self, snap: InspectionSnapshot, eff: CreateNotification, state: Optional[InspectionState], *, commit: bool = True
    ) -> None:
        party = self._resolve(snap, eff.recipient, eff.user_id)
        if party is None:
            log.warning(
                "no %s to notify for inspection %s",
                eff.recipient,
                snap.inspection_id,
                extra={"inspection_id": snap.inspection_id},
            )
            return
        ctx = self._context(snap, state, {})
        meta = {"inspectionId": snap.inspection_id, "propertyId": snap.property_id, **eff.meta}
        self.notifier.create_notification(
            user_id=party.user_id,
            title=eff.title,
            message=eff.message.format(**ctx),
            meta=meta,
            commit=commit,
        )
