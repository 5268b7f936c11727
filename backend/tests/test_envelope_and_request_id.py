from __future__ import annotations

from fastapi.testclient import TestClient

from opportunest.main import create_app


def test_health_check_is_public():
    client = TestClient(create_app())

    r = client.get("/")
    assert r.status_code == 200
    assert r.text


def test_request_id_is_generated_and_returned():
    client = TestClient(create_app())

    r = client.get("/")
    assert r.status_code == 200
    assert r.headers.get("X-Request-Id")


def test_request_id_is_propagated_from_client():
    client = TestClient(create_app())

    r = client.get("/", headers={"X-Request-Id": "abc-123"})
    assert r.status_code == 200
    assert r.headers.get("X-Request-Id") == "abc-123"


def test_unknown_route_is_failure_envelope():
    client = TestClient(create_app())

    r = client.get("/this-route-does-not-exist")
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Route not found"
    assert body["status"] == 404
    assert body.get("requestId")


def test_missing_token_is_401_envelope():
    client = TestClient(create_app())

    r = client.get("/my-applications")
    assert r.status_code == 401
    body = r.json()
    assert body == {
        "success": False,
        "message": "Unauthorized",
        "status": 401,
        "requestId": r.headers["X-Request-Id"],
    }


def test_validation_errors_are_envelope(token_auth, fake_db):
    client = TestClient(create_app())

    r = client.post("/reviews", json={}, headers=token_auth("alice@example.com"))
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Request validation failed"
    assert isinstance(body["errors"], list) and body["errors"]
    paths = {e["path"] for e in body["errors"]}
    assert "ratingPoint" in paths


def test_invalid_object_id_is_400(fake_db):
    client = TestClient(create_app())

    r = client.get("/scholarships/not-an-id")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid id"


def test_store_outage_is_503(monkeypatch):
    from opportunest.db.mongo.errors import StoreUnavailable
    from opportunest.routers import scholarships

    def _down(**_kwargs):
        raise StoreUnavailable(message="Database unavailable", operation="find", collection="scholarships")

    monkeypatch.setattr(scholarships, "top_scholarships", _down)
    client = TestClient(create_app())

    r = client.get("/scholarships-top")
    assert r.status_code == 503
    assert r.json()["success"] is False


def test_cors_allows_known_frontend_origin():
    client = TestClient(create_app())

    r = client.options(
        "/scholarships-top",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert r.status_code == 200
    assert r.headers.get("access-control-allow-origin") == "http://localhost:5173"
    assert r.headers.get("access-control-allow-credentials") == "true"


def test_oversized_inbound_request_id_is_replaced():
    client = TestClient(create_app())

    r = client.get("/", headers={"X-Request-Id": "x" * 500})
    assert r.status_code == 200
    rid = r.headers.get("X-Request-Id")
    assert rid and rid != "x" * 500
