from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple, Union

# -----------------------------------------------------------------------------
# Inspection request vocabulary
# -----------------------------------------------------------------------------
# status is the fine-grained state; stage is the coarse phase used by guards.
# Keep stage coarse: new negotiation sub-states belong in STATUSES only.
# -----------------------------------------------------------------------------

STATUSES = (
    "pending_transaction",
    "transaction_failed",
    "active_negotiation",
    "negotiation_countered",
    "negotiation_accepted",
    "negotiation_rejected",
    "negotiation_cancelled",
    "inspection_approved",
    "inspection_rescheduled",
    "completed",
    "cancelled",
)

STAGES = ("negotiation", "inspection", "completed", "cancelled")

PENDING_RESPONSE_FROM = ("buyer", "seller", "admin", "none")

INSPECTION_TYPES = ("price", "LOI")
INSPECTION_MODES = ("in_person", "virtual")

# approve is refused while the request already sits in one of these
ALREADY_APPROVED = frozenset({"active_negotiation", "negotiation_countered"})

# no field-agent mutation once the request reached one of these stages
LOCKED_STAGES = frozenset({"completed", "cancelled"})

ACTIVE_NEGOTIATION_STATUSES = (
    "active_negotiation",
    "inspection_approved",
    "inspection_rescheduled",
    "negotiation_countered",
    "negotiation_accepted",
    "negotiation_rejected",
    "negotiation_cancelled",
)

# what a field agent still has on their plate
AGENT_PENDING_STATUSES = ("pending_transaction",) + ACTIVE_NEGOTIATION_STATUSES

DECISIONS = ("approve", "reject")


# -----------------------------------------------------------------------------
# Effects: produced by transitions, performed by services.effect_executor
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SendEmail:
    recipient: str  # buyer|seller|field_agent
    template: str
    subject: str
    context: dict[str, Any] = field(default_factory=dict)
    # explicit recipient; wins over the role lookup (e.g. an agent just removed)
    user_id: Optional[int] = None


@dataclass(frozen=True)
class CreateNotification:
    recipient: str  # buyer|seller|field_agent
    title: str
    # str.format template; filled from the hydrated request (buyer_name, location, ...)
    message: str
    meta: dict[str, Any] = field(default_factory=dict)
    user_id: Optional[int] = None


@dataclass(frozen=True)
class LogActivity:
    message: str
    include_status: bool = True
    meta: dict[str, Any] = field(default_factory=dict)


Effect = Union[SendEmail, CreateNotification, LogActivity]


# -----------------------------------------------------------------------------
# Aggregate snapshot
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class InspectionState:
    status: str = "pending_transaction"
    stage: str = "negotiation"
    pending_response_from: str = "admin"

    inspection_type: str = "price"
    is_negotiating: bool = False
    negotiation_price: float = 0.0
    is_loi: bool = False
    letter_of_intention_url: Optional[str] = None
    approve_loi: Optional[bool] = None

    assigned_field_agent_id: Optional[int] = None

    def evolve(self, **changes: Any) -> "InspectionState":
        new = replace(self, **changes)
        if new.pending_response_from not in PENDING_RESPONSE_FROM:
            raise ValueError(f"invalid pending_response_from: {new.pending_response_from!r}")
        if new.stage not in STAGES:
            raise ValueError(f"invalid stage: {new.stage!r}")
        if new.status not in STATUSES:
            raise ValueError(f"invalid status: {new.status!r}")
        return new

    @property
    def is_locked(self) -> bool:
        return self.stage in LOCKED_STAGES


@dataclass(frozen=True)
class Transition:
    state: InspectionState
    effects: Tuple[Effect, ...] = ()
