from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from ..domain.email_templates import render
from ..errors import BadRequest
from .effect_executor import InspectionSnapshot, snapshot_of
from .notifications import EmailMessage, NotificationDispatcher
from .repositories import InspectionRepository
from .runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.participants")

DIRECTIONS = ("buyer-to-seller", "seller-to-buyer", "send-both")


class ParticipantDetailService:
    """
    Introduces buyer and seller to each other by email.

    send-both runs the two sends in parallel. Each send is independent: both
    are always attempted, and the first failure (if any) is re-raised once
    both have finished.
    """

    def __init__(self, *, inspections: InspectionRepository, notifier: NotificationDispatcher) -> None:
        self.inspections = inspections
        self.notifier = notifier

    def _buyer_to_seller(self, snap: InspectionSnapshot) -> EmailMessage:
        ctx = dict(snap.context, recipient_name=snap.seller.name)
        return EmailMessage(
            to=snap.seller.email,
            subject="Buyer details for your property inspection",
            html=render("buyer_details_to_seller", ctx),
        )

    def _seller_to_buyer(self, snap: InspectionSnapshot) -> EmailMessage:
        ctx = dict(snap.context, recipient_name=snap.buyer.name)
        return EmailMessage(
            to=snap.buyer.email,
            subject="Seller details for your property inspection",
            html=render("seller_details_to_buyer", ctx),
        )

    def send_details(self, inspection_id: int, direction: Optional[str]) -> str:
        d = (direction or "").strip().lower()
        if d not in DIRECTIONS:
            raise BadRequest("Invalid send direction", details={"allowed": list(DIRECTIONS)})

        row = self.inspections.must_get(inspection_id)
        snap = snapshot_of(row)
        if snap.buyer is None or snap.seller is None:
            raise BadRequest("Missing buyer or seller info")

        if d == "buyer-to-seller":
            self.notifier.notify(self._buyer_to_seller(snap))
        elif d == "seller-to-buyer":
            self.notifier.notify(self._seller_to_buyer(snap))
        else:
            self._send_both(snap)

        METRICS.inc("participant_details_sent")
        log.info("participant details sent (%s)", d, extra={"inspection_id": snap.inspection_id, "action": "details.send"})

        if d == "send-both":
            return "Both buyer and seller details sent successfully"
        return f"Details sent successfully from {d.replace('-', ' ')}"

    def _send_both(self, snap: InspectionSnapshot) -> None:
        builders: list[Callable[[InspectionSnapshot], EmailMessage]] = [self._buyer_to_seller, self._seller_to_buyer]
        messages = [b(snap) for b in builders]

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="details") as pool:
            futures = [pool.submit(self.notifier.notify, m) for m in messages]
            errors = [f.exception() for f in futures]

        first: Optional[BaseException] = next((e for e in errors if e is not None), None)
        if first is not None:
            raise first
