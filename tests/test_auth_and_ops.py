from __future__ import annotations

from inspectiondesk.auth import create_access_token


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_bearer_token_authenticates(client, world):
    token = create_access_token(user_id=world.admin.id, role="admin")
    r = client.get("/api/inspections/stats", headers=_bearer(token))
    assert r.status_code == 200


def test_stored_role_wins_over_token_claim(client, world):
    token = create_access_token(user_id=world.buyer.id, role="admin")
    r = client.get("/api/inspections/stats", headers=_bearer(token))
    assert r.status_code == 403


def test_expired_token_is_401(client, world):
    token = create_access_token(user_id=world.admin.id, role="admin", minutes=-5)
    r = client.get("/api/inspections/stats", headers=_bearer(token))
    assert r.status_code == 401
    assert r.json()["error"] == "Token expired"


def test_garbage_token_is_401(client, world):
    r = client.get("/api/inspections/stats", headers=_bearer("not-a-jwt"))
    assert r.status_code == 401


def test_missing_identity_is_401(client, world):
    assert client.get("/api/inspections/stats").status_code == 401


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_metrics_count_decisions(client, world, admin_headers):
    req = world.request()
    client.patch(f"/api/inspections/{req.id}/status", json={"status": "approve"}, headers=admin_headers)

    r = client.get("/api/metrics")
    assert r.status_code == 200
    assert "inspectiondesk_inspections_approved 1" in r.text.splitlines()
    assert "inspectiondesk_emails_sent 2" in r.text.splitlines()
