from __future__ import annotations

from inspectiondesk.models import InspectionActivityLog, InspectionRequest, Notification


def _status(client, headers, inspection_id, decision):
    return client.patch(f"/api/inspections/{inspection_id}/status", json={"status": decision}, headers=headers)


def test_approve_with_offer_updates_state_and_notifies(client, world, db_session, transport, admin_headers):
    req = world.request(negotiation_price=40_000_000)

    r = _status(client, admin_headers, req.id, "approve")
    assert r.status_code == 200, r.text
    body = r.json()["data"]
    assert body["status"] == "negotiation_countered"
    assert body["stage"] == "negotiation"
    assert body["pendingResponseFrom"] == "seller"
    assert body["isNegotiating"] is True

    assert transport.to(world.buyer.email)[0].subject.startswith("New Offer Received")
    seller_mail = transport.to(world.seller.email)[0]
    assert seller_mail.subject == "Inspection Request Submitted"
    assert f"/secure-seller-response/{world.seller.id}/{req.id}" in seller_mail.html

    note = db_session.query(Notification).filter(Notification.user_id == world.seller.id).one()
    assert note.title == "New Inspection Request"
    assert "Ada Buyer" in note.message

    logs = db_session.query(InspectionActivityLog).filter(InspectionActivityLog.inspection_id == req.id).all()
    assert len(logs) == 1
    assert logs[0].sender_role == "admin"
    assert logs[0].sender_model == "Admin"
    assert logs[0].status == "negotiation_countered"


def test_second_approve_conflicts(client, world, admin_headers):
    req = world.request()

    assert _status(client, admin_headers, req.id, "approve").status_code == 200
    r = _status(client, admin_headers, req.id, "approve")
    assert r.status_code == 409
    assert r.json()["error"] == "Inspection has already been approved. Cannot approve again."


def test_reject_emails_buyer_only(client, world, transport, admin_headers):
    req = world.request()

    r = _status(client, admin_headers, req.id, "reject")
    assert r.status_code == 200
    data = r.json()["data"]
    assert (data["status"], data["stage"], data["pendingResponseFrom"]) == ("transaction_failed", "cancelled", "admin")
    assert [m.to for m in transport.sent] == [world.buyer.email]


def test_unknown_decision_is_400(client, world, admin_headers):
    req = world.request()
    r = _status(client, admin_headers, req.id, "maybe")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid inspection status"


def test_missing_body_field_is_400(client, world, admin_headers):
    req = world.request()
    r = client.patch(f"/api/inspections/{req.id}/status", json={}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"
    assert "details" in r.json()


def test_unknown_inspection_is_404(client, world, admin_headers):
    r = _status(client, admin_headers, 9999, "approve")
    assert r.status_code == 404
    assert r.json() == {"error": "Inspection not found"}


def test_non_admin_is_forbidden(client, world, as_user):
    req = world.request()
    r = _status(client, as_user(world.buyer), req.id, "approve")
    assert r.status_code == 403


def test_notification_failure_is_502_but_state_is_kept(client, world, db_session, transport, admin_headers):
    req = world.request()
    transport.fail_for.add(world.buyer.email)

    r = _status(client, admin_headers, req.id, "approve")
    assert r.status_code == 502
    assert r.json()["error"] == "Failed to send notification email"

    db_session.expire_all()
    row = db_session.get(InspectionRequest, req.id)
    assert row.status == "active_negotiation"
    assert db_session.query(InspectionActivityLog).filter(InspectionActivityLog.inspection_id == req.id).count() == 1


def test_loi_reject_then_attach_is_refused(client, world, transport, admin_headers):
    # LOI request: approve, reject the letter, then try to dispatch
    req = world.request(inspection_type="LOI", loi_url="https://files.example.com/loi.pdf")

    r = _status(client, admin_headers, req.id, "approve")
    data = r.json()["data"]
    assert data["isLOI"] is True
    assert data["stage"] == "negotiation"

    r = client.patch(
        f"/api/inspections/{req.id}/approveOrRejectLOI",
        json={"status": "reject", "reason": "Unsigned document"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["approveLOI"] is False
    assert data["status"] == "negotiation_cancelled"
    assert data["stage"] == "cancelled"
    loi_mail = [m for m in transport.sent if m.subject == "LOI Document Rejected"][0]
    assert "Unsigned document" in loi_mail.html

    r = client.post(
        f"/api/inspections/{req.id}/attachFieldAgent",
        json={"fieldAgentId": world.agent_user.id},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_loi_approve_keeps_status(client, world, db_session, admin_headers):
    req = world.request(status="active_negotiation", inspection_type="LOI", loi_url="https://x/loi.pdf")

    r = client.patch(f"/api/inspections/{req.id}/approveOrRejectLOI", json={"status": "approve"}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["approveLOI"] is True
    assert data["status"] == "active_negotiation"

    log = db_session.query(InspectionActivityLog).filter(InspectionActivityLog.inspection_id == req.id).one()
    assert '"approveLOI": true' in log.meta_json
