"""
Pure transition functions for the inspection request aggregate.

Each function takes an InspectionState (plus whatever facts it needs that live
outside the aggregate) and returns a Transition: the new state and the effects
to perform. Guard violations raise BadRequest / Conflict before anything is
produced, so callers never have a half-applied state to clean up.

Nothing here touches the database, email or the activity log.
"""
from __future__ import annotations

from typing import Optional

from ..errors import BadRequest, Conflict
from .inspection_states import (
    ALREADY_APPROVED,
    DECISIONS,
    CreateNotification,
    InspectionState,
    LogActivity,
    SendEmail,
    Transition,
)

REJECTION_REASON = "Your inspection request was not approved. Please contact support for more info."
NO_REASON = "No reason provided"


def _require_decision(decision: str, what: str) -> str:
    d = (decision or "").strip().lower()
    if d not in DECISIONS:
        raise BadRequest(f"Invalid {what} status", details={"allowed": list(DECISIONS)})
    return d


def _has_loi_document(url: Optional[str]) -> bool:
    return bool(url and url.strip())


# -----------------------------------------------------------------------------
# Admin decisions
# -----------------------------------------------------------------------------
def approve(state: InspectionState) -> Transition:
    if state.status in ALREADY_APPROVED:
        raise Conflict("Inspection has already been approved. Cannot approve again.")

    is_negotiating = state.is_negotiating
    is_loi = state.is_loi
    stage = state.stage

    if state.inspection_type == "price":
        is_negotiating = state.negotiation_price > 0
        stage = "negotiation" if is_negotiating else "inspection"
    elif state.inspection_type == "LOI":
        is_loi = _has_loi_document(state.letter_of_intention_url)
        stage = "negotiation" if is_loi else "inspection"

    status = "negotiation_countered" if is_negotiating else "active_negotiation"

    new = state.evolve(
        is_negotiating=is_negotiating,
        is_loi=is_loi,
        stage=stage,
        status=status,
        pending_response_from="seller",
    )

    effects = (
        LogActivity(message=f"Inspection transaction approved successfully - status updated to {status}"),
        SendEmail(
            recipient="buyer",
            template="inspection_offer_buyer",
            subject="New Offer Received - Action Required",
        ),
        SendEmail(
            recipient="seller",
            template="inspection_request_seller",
            subject="Inspection Request Submitted",
            context={"with_response_link": True},
        ),
        CreateNotification(
            recipient="seller",
            title="New Inspection Request",
            message="{buyer_name} has requested an inspection for your property at {location}.",
            meta={"status": status},
        ),
    )
    return Transition(state=new, effects=effects)


def reject(state: InspectionState) -> Transition:
    new = state.evolve(
        status="transaction_failed",
        stage="cancelled",
        pending_response_from="admin",
    )
    effects = (
        SendEmail(
            recipient="buyer",
            template="inspection_rejected_buyer",
            subject="Inspection Request Rejected",
            context={"rejection_reason": REJECTION_REASON},
        ),
        LogActivity(message="Inspection transaction rejected by admin."),
    )
    return Transition(state=new, effects=effects)


def decide_status(state: InspectionState, decision: str) -> Transition:
    d = _require_decision(decision, "inspection")
    return approve(state) if d == "approve" else reject(state)


def decide_loi(state: InspectionState, decision: str, reason: Optional[str] = None) -> Transition:
    d = _require_decision(decision, "LOI")
    approved = d == "approve"

    if approved:
        # status/stage belong to the downstream negotiation-response step
        new = state.evolve(approve_loi=True)
        return Transition(
            state=new,
            effects=(
                LogActivity(
                    message="LOI document approved by admin.",
                    include_status=False,
                    meta={"approveLOI": True},
                ),
            ),
        )

    new = state.evolve(approve_loi=False, status="negotiation_cancelled", stage="cancelled")
    effects = (
        SendEmail(
            recipient="buyer",
            template="loi_rejected_buyer",
            subject="LOI Document Rejected",
            context={"reason": reason or NO_REASON},
        ),
        LogActivity(
            message="LOI document rejected by admin.",
            include_status=False,
            meta={"approveLOI": False, "reason": reason},
        ),
    )
    return Transition(state=new, effects=effects)


# -----------------------------------------------------------------------------
# Field-agent dispatch
# -----------------------------------------------------------------------------
def _require_unlocked(state: InspectionState) -> None:
    if state.is_locked:
        raise BadRequest(f"Action not allowed when stage is '{state.stage}'")


def attach_field_agent(
    state: InspectionState,
    *,
    agent_user_id: int,
    agent_approved: bool,
    payment_status: Optional[str],
) -> Transition:
    if not agent_approved:
        raise BadRequest("Only approved field agents can be assigned to inspections")

    if payment_status != "success":
        raise BadRequest(
            "Only inspections with successful payment transactions can have a field agent assigned",
            details={"payment_status": payment_status},
        )

    _require_unlocked(state)

    if state.assigned_field_agent_id is not None:
        if int(state.assigned_field_agent_id) == int(agent_user_id):
            raise Conflict("This field agent is already assigned to this inspection")
        raise Conflict("This inspection already has a field agent assigned")

    new = state.evolve(assigned_field_agent_id=int(agent_user_id))
    effects = (
        SendEmail(
            recipient="field_agent",
            template="field_agent_assigned",
            subject="New Inspection Assignment",
            user_id=int(agent_user_id),
        ),
        CreateNotification(
            recipient="field_agent",
            title="New Inspection Assignment",
            message="You have been assigned to an inspection for {property_type} at {location}.",
            user_id=int(agent_user_id),
        ),
        LogActivity(message=f"Field agent {agent_user_id} assigned to inspection."),
    )
    return Transition(state=new, effects=effects)


def remove_field_agent(state: InspectionState) -> Transition:
    _require_unlocked(state)

    if state.assigned_field_agent_id is None:
        raise Conflict("No field agent assigned to this inspection")

    removed = int(state.assigned_field_agent_id)
    new = state.evolve(assigned_field_agent_id=None)
    effects = (
        SendEmail(
            recipient="field_agent",
            template="field_agent_removed",
            subject="Inspection Assignment Removed",
            user_id=removed,
        ),
        CreateNotification(
            recipient="field_agent",
            title="Inspection Assignment Removed",
            message="Your assignment for {property_type} at {location} has been removed.",
            user_id=removed,
        ),
        LogActivity(message="Field agent removed from inspection.", meta={"fieldAgentId": removed}),
    )
    return Transition(state=new, effects=effects)


def delete_request(state: InspectionState) -> Transition:
    if state.stage == "completed":
        raise BadRequest("Completed inspections cannot be deleted")

    effects: list = []
    if state.assigned_field_agent_id is not None:
        agent = int(state.assigned_field_agent_id)
        effects += [
            SendEmail(
                recipient="field_agent",
                template="field_agent_removed",
                subject="Inspection Deleted",
                user_id=agent,
            ),
            CreateNotification(
                recipient="field_agent",
                title="Inspection Deleted",
                message=(
                    "Your assignment for {property_type} at {location} was removed "
                    "because the inspection was deleted."
                ),
                user_id=agent,
            ),
        ]
    effects.append(LogActivity(message="Inspection, linked transaction, and field agent assignment removed."))

    return Transition(state=state.evolve(assigned_field_agent_id=None), effects=tuple(effects))
