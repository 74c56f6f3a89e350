from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Transaction

log = logging.getLogger("inspectiondesk.payments")

PAYMENT_STATUSES = ("success", "failed", "pending")


def _normalize(raw: Optional[str]) -> str:
    s = (raw or "").strip().lower()
    if s in ("success", "successful", "paid"):
        return "success"
    if s in ("failed", "cancelled", "abandoned", "reversed"):
        return "failed"
    return "pending"


class PaymentGateway(Protocol):
    def get_status(self, transaction: Optional[Transaction]) -> str: ...


class LedgerPaymentGateway:
    """Trusts the local transaction row (written by the payment webhook)."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_status(self, transaction: Optional[Transaction]) -> str:
        if transaction is None:
            return "pending"
        return _normalize(transaction.status)


class PaystackPaymentGateway:
    """
    Verifies a transaction reference against Paystack.

    Unreachable API or non-2xx means "pending": assignment stays blocked until
    the payment can be confirmed.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.secret_key = secret_key or settings.paystack_secret_key
        self.base = (base_url or settings.paystack_base_url).rstrip("/")
        self._client = client

    def enabled(self) -> bool:
        return bool(self.secret_key)

    def _verify(self, reference: str) -> dict:
        url = f"{self.base}/transaction/verify/{reference}"
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if self._client is not None:
            r = self._client.get(url, headers=headers)
            r.raise_for_status()
            return r.json()
        with httpx.Client(timeout=20.0) as client:
            r = client.get(url, headers=headers)
            r.raise_for_status()
            return r.json()

    def get_status(self, transaction: Optional[Transaction]) -> str:
        if transaction is None or not transaction.reference:
            return "pending"
        if not self.enabled():
            log.warning("paystack_secret_key not set; treating %s as pending", transaction.reference)
            return "pending"

        try:
            data = self._verify(transaction.reference)
        except (httpx.HTTPError, ValueError) as e:
            log.warning("paystack verify failed for %s: %s", transaction.reference, e)
            return "pending"

        if not data.get("status"):
            return "pending"
        return _normalize((data.get("data") or {}).get("status"))
