from __future__ import annotations

import pytest

from inspectiondesk.models import (
    FieldAgentAssignment,
    InspectionActivityLog,
    InspectionRequest,
    Notification,
    Transaction,
)


def _attach(client, headers, inspection_id, user_id):
    return client.post(
        f"/api/inspections/{inspection_id}/attachFieldAgent",
        json={"fieldAgentId": user_id},
        headers=headers,
    )


def _links(db, inspection_id):
    return db.query(FieldAgentAssignment).filter(FieldAgentAssignment.inspection_id == inspection_id).all()


def test_attach_sets_both_references_and_notifies_agent(client, world, db_session, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")

    r = _attach(client, admin_headers, req.id, world.agent_user.id)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["assignedFieldAgentId"] == world.agent_user.id

    links = _links(db_session, req.id)
    assert len(links) == 1 and links[0].field_agent_id == world.agent.id
    assert [m.subject for m in transport.to(world.agent_user.email)] == ["New Inspection Assignment"]


def test_attach_requires_successful_payment(client, world, db_session, gateway, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    gateway.status = "pending"

    r = _attach(client, admin_headers, req.id, world.agent_user.id)
    assert r.status_code == 400
    assert _links(db_session, req.id) == []
    db_session.expire_all()
    assert db_session.get(InspectionRequest, req.id).assigned_field_agent_id is None


def test_attach_unapproved_agent_is_400(client, world, admin_headers):
    pending_user = world.user("new-agent@test.local", "New Agent", "field_agent")
    world.field_agent(pending_user, approved=False)
    req = world.request(status="active_negotiation", stage="inspection")

    assert _attach(client, admin_headers, req.id, pending_user.id).status_code == 400


def test_attach_unknown_agent_is_404(client, world, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    r = _attach(client, admin_headers, req.id, world.buyer.id)
    assert r.status_code == 404
    assert r.json()["error"] == "Field Agent not found"


def test_double_attach_conflicts_with_distinct_messages(client, world, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    assert _attach(client, admin_headers, req.id, world.agent_user.id).status_code == 200

    same = _attach(client, admin_headers, req.id, world.agent_user.id)
    other = _attach(client, admin_headers, req.id, world.other_agent_user.id)

    assert same.status_code == 409
    assert other.status_code == 409
    assert same.json()["error"] != other.json()["error"]


def test_attach_on_completed_stage_is_400(client, world, admin_headers):
    req = world.request(status="completed", stage="completed")
    assert _attach(client, admin_headers, req.id, world.agent_user.id).status_code == 400


def test_remove_clears_both_references(client, world, db_session, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    assert _attach(client, admin_headers, req.id, world.agent_user.id).status_code == 200

    r = client.delete(f"/api/inspections/{req.id}/removeFieldAgent", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["assignedFieldAgentId"] is None
    assert _links(db_session, req.id) == []
    assert "Inspection Assignment Removed" in [m.subject for m in transport.to(world.agent_user.email)]


def test_remove_without_agent_conflicts(client, world, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    r = client.delete(f"/api/inspections/{req.id}/removeFieldAgent", headers=admin_headers)
    assert r.status_code == 409


@pytest.mark.parametrize("stage", ["completed", "cancelled"])
def test_remove_on_locked_stage_is_400(client, world, admin_headers, stage):
    req = world.request(status=stage, stage=stage, assigned_field_agent_id=world.agent_user.id)
    r = client.delete(f"/api/inspections/{req.id}/removeFieldAgent", headers=admin_headers)
    assert r.status_code == 400


def test_delete_cascades_to_transaction_and_back_reference(client, world, db_session, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    txn_id = req.transaction_id
    assert _attach(client, admin_headers, req.id, world.agent_user.id).status_code == 200

    r = client.delete(f"/api/inspections/{req.id}/delete", headers=admin_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["transactionDeleted"] is True
    assert body["fieldAgentReleased"] == world.agent_user.id

    db_session.expire_all()
    assert db_session.get(InspectionRequest, req.id) is None
    assert db_session.get(Transaction, txn_id) is None
    assert _links(db_session, req.id) == []
    assert "Inspection Deleted" in [m.subject for m in transport.to(world.agent_user.email)]

    # the trail survives the hard delete
    messages = [
        row.message
        for row in db_session.query(InspectionActivityLog).filter(InspectionActivityLog.inspection_id == req.id)
    ]
    assert any("removed" in m for m in messages)


def test_delete_keeps_everything_when_agent_notice_fails(client, world, db_session, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    txn_id = req.transaction_id
    assert _attach(client, admin_headers, req.id, world.agent_user.id).status_code == 200
    transport.fail_for.add(world.agent_user.email)

    r = client.delete(f"/api/inspections/{req.id}/delete", headers=admin_headers)
    assert r.status_code == 502
    assert r.json()["error"] == "Failed to send notification email"

    db_session.expire_all()
    row = db_session.get(InspectionRequest, req.id)
    assert row is not None
    assert row.assigned_field_agent_id == world.agent_user.id
    assert db_session.get(Transaction, txn_id) is not None
    assert len(_links(db_session, req.id)) == 1
    assert db_session.query(Notification).filter(Notification.title == "Inspection Deleted").count() == 0

    # nothing was lost, so retrying once the mailbox works succeeds
    transport.fail_for.clear()
    r = client.delete(f"/api/inspections/{req.id}/delete", headers=admin_headers)
    assert r.status_code == 200


def test_delete_completed_is_400(client, world, db_session, admin_headers):
    req = world.request(status="completed", stage="completed")
    r = client.delete(f"/api/inspections/{req.id}/delete", headers=admin_headers)
    assert r.status_code == 400
    db_session.expire_all()
    assert db_session.get(InspectionRequest, req.id) is not None


def test_admin_lists_inspections_of_a_field_agent(client, world, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    world.request(status="active_negotiation", stage="inspection")
    assert _attach(client, admin_headers, req.id, world.agent_user.id).status_code == 200

    r = client.get(f"/api/field-agents/{world.agent_user.id}/inspections", headers=admin_headers)
    assert r.status_code == 200
    assert [d["id"] for d in r.json()["data"]] == [req.id]
    assert r.json()["pagination"]["total"] == 1

    assert client.get(f"/api/field-agents/{world.buyer.id}/inspections", headers=admin_headers).status_code == 404
