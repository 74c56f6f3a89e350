from __future__ import annotations

import pytest

from inspectiondesk.domain import transitions
from inspectiondesk.domain.inspection_states import (
    CreateNotification,
    InspectionState,
    LogActivity,
    SendEmail,
)
from inspectiondesk.errors import BadRequest, Conflict


def _emails(t):
    return [e for e in t.effects if isinstance(e, SendEmail)]


def test_approve_price_with_offer_goes_to_countered_negotiation():
    t = transitions.approve(InspectionState(inspection_type="price", negotiation_price=40_000_000))

    assert t.state.is_negotiating is True
    assert t.state.stage == "negotiation"
    assert t.state.status == "negotiation_countered"
    assert t.state.pending_response_from == "seller"


def test_approve_price_without_offer_goes_straight_to_inspection():
    t = transitions.approve(InspectionState(inspection_type="price", negotiation_price=0))

    assert t.state.is_negotiating is False
    assert t.state.stage == "inspection"
    assert t.state.status == "active_negotiation"
    assert t.state.pending_response_from == "seller"


@pytest.mark.parametrize(
    "url,is_loi,stage",
    [
        ("https://files.example.com/loi.pdf", True, "negotiation"),
        ("   ", False, "inspection"),
        (None, False, "inspection"),
    ],
)
def test_approve_loi_branches_on_document_presence(url, is_loi, stage):
    t = transitions.approve(InspectionState(inspection_type="LOI", letter_of_intention_url=url))

    assert t.state.is_loi is is_loi
    assert t.state.stage == stage
    assert t.state.status == "active_negotiation"


def test_approve_emits_buyer_and_seller_mail_seller_notification_and_log():
    t = transitions.approve(InspectionState())

    emails = _emails(t)
    assert [e.recipient for e in emails] == ["buyer", "seller"]
    assert emails[1].context.get("with_response_link") is True
    notes = [e for e in t.effects if isinstance(e, CreateNotification)]
    assert len(notes) == 1 and notes[0].recipient == "seller"
    assert notes[0].title == "New Inspection Request"
    assert any(isinstance(e, LogActivity) for e in t.effects)


@pytest.mark.parametrize("status", ["active_negotiation", "negotiation_countered"])
def test_approve_is_not_reentrant(status):
    with pytest.raises(Conflict) as ei:
        transitions.approve(InspectionState(status=status))
    assert ei.value.status_code == 409


def test_reject_cancels_and_only_emails_buyer():
    t = transitions.reject(InspectionState())

    assert (t.state.status, t.state.stage, t.state.pending_response_from) == (
        "transaction_failed",
        "cancelled",
        "admin",
    )
    assert [e.recipient for e in _emails(t)] == ["buyer"]
    assert not [e for e in t.effects if isinstance(e, CreateNotification)]


def test_unknown_decision_is_bad_request():
    with pytest.raises(BadRequest):
        transitions.decide_status(InspectionState(), "maybe")
    with pytest.raises(BadRequest):
        transitions.decide_loi(InspectionState(), "")


def test_loi_approve_only_flips_flag():
    before = InspectionState(inspection_type="LOI", status="active_negotiation", stage="negotiation")
    t = transitions.decide_loi(before, "approve")

    assert t.state.approve_loi is True
    assert t.state.status == before.status
    assert t.state.stage == before.stage
    assert _emails(t) == []
    log = [e for e in t.effects if isinstance(e, LogActivity)][0]
    assert log.meta == {"approveLOI": True}


def test_loi_reject_defaults_reason():
    t = transitions.decide_loi(InspectionState(inspection_type="LOI"), "reject")

    assert t.state.approve_loi is False
    assert t.state.status == "negotiation_cancelled"
    assert t.state.stage == "cancelled"
    (mail,) = _emails(t)
    assert mail.subject == "LOI Document Rejected"
    assert mail.context["reason"] == "No reason provided"


def test_attach_guards():
    ok = dict(agent_user_id=7, agent_approved=True, payment_status="success")

    with pytest.raises(BadRequest):
        transitions.attach_field_agent(InspectionState(), **{**ok, "agent_approved": False})
    with pytest.raises(BadRequest):
        transitions.attach_field_agent(InspectionState(), **{**ok, "payment_status": "pending"})
    with pytest.raises(BadRequest):
        transitions.attach_field_agent(InspectionState(stage="cancelled"), **ok)

    with pytest.raises(Conflict) as same:
        transitions.attach_field_agent(InspectionState(assigned_field_agent_id=7), **ok)
    with pytest.raises(Conflict) as other:
        transitions.attach_field_agent(InspectionState(assigned_field_agent_id=8), **ok)
    assert same.value.message != other.value.message


def test_attach_targets_the_new_agent():
    t = transitions.attach_field_agent(InspectionState(), agent_user_id=7, agent_approved=True, payment_status="success")

    assert t.state.assigned_field_agent_id == 7
    (mail,) = _emails(t)
    assert mail.user_id == 7 and mail.subject == "New Inspection Assignment"


def test_remove_guards_and_effects():
    with pytest.raises(Conflict):
        transitions.remove_field_agent(InspectionState())
    with pytest.raises(BadRequest):
        transitions.remove_field_agent(InspectionState(stage="completed", assigned_field_agent_id=7))

    t = transitions.remove_field_agent(InspectionState(assigned_field_agent_id=7))
    assert t.state.assigned_field_agent_id is None
    (mail,) = _emails(t)
    assert mail.user_id == 7 and mail.subject == "Inspection Assignment Removed"


def test_delete_forbidden_once_completed():
    with pytest.raises(BadRequest):
        transitions.delete_request(InspectionState(stage="completed"))


def test_delete_notifies_agent_only_when_assigned():
    assert _emails(transitions.delete_request(InspectionState())) == []

    t = transitions.delete_request(InspectionState(stage="cancelled", assigned_field_agent_id=3))
    (mail,) = _emails(t)
    assert mail.subject == "Inspection Deleted" and mail.user_id == 3


def test_evolve_rejects_unknown_values():
    with pytest.raises(ValueError):
        InspectionState().evolve(pending_response_from="everyone")
    with pytest.raises(ValueError):
        InspectionState().evolve(stage="limbo")
