from __future__ import annotations

import pytest


def _send(client, headers, inspection_id, direction, prefix="inspections"):
    return client.post(f"/api/{prefix}/{inspection_id}/sendDetails", json={"send": direction}, headers=headers)


@pytest.mark.parametrize(
    "direction,recipient,subject",
    [
        ("buyer-to-seller", "seller", "Buyer details for your property inspection"),
        ("seller-to-buyer", "buyer", "Seller details for your property inspection"),
    ],
)
def test_single_direction(client, world, transport, admin_headers, direction, recipient, subject):
    req = world.request(status="active_negotiation", stage="inspection")

    r = _send(client, admin_headers, req.id, direction)
    assert r.status_code == 200, r.text
    assert r.json()["message"] == f"Details sent successfully from {direction.replace('-', ' ')}"

    (mail,) = transport.sent
    assert mail.to == getattr(world, recipient).email
    assert mail.subject == subject


def test_buyer_details_reach_the_seller(client, world, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    _send(client, admin_headers, req.id, "buyer-to-seller")

    html = transport.to(world.seller.email)[0].html
    assert "Ada Buyer" in html
    assert world.buyer.email in html


def test_send_both(client, world, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")

    r = _send(client, admin_headers, req.id, "send-both")
    assert r.status_code == 200
    assert r.json()["message"] == "Both buyer and seller details sent successfully"
    assert sorted(m.to for m in transport.sent) == sorted([world.buyer.email, world.seller.email])


def test_send_both_partial_failure_still_attempts_both(client, world, transport, admin_headers):
    req = world.request(status="active_negotiation", stage="inspection")
    transport.fail_for.add(world.seller.email)

    r = _send(client, admin_headers, req.id, "send-both")
    assert r.status_code == 502
    assert r.json()["details"]["to"] == world.seller.email
    assert sorted(transport.attempted) == sorted([world.buyer.email, world.seller.email])
    assert [m.to for m in transport.sent] == [world.buyer.email]


def test_invalid_direction_is_400_before_lookup(client, world, admin_headers):
    r = _send(client, admin_headers, 9999, "sideways")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid send direction"


def test_unknown_inspection_is_404(client, world, admin_headers):
    assert _send(client, admin_headers, 9999, "send-both").status_code == 404


def test_field_agent_route_sends_too(client, world, transport, agent_headers):
    req = world.request(status="active_negotiation", stage="inspection", assigned_field_agent_id=world.agent_user.id)

    r = _send(client, agent_headers, req.id, "seller-to-buyer", prefix="inspectionsFieldAgent")
    assert r.status_code == 200
    assert [m.to for m in transport.sent] == [world.buyer.email]
