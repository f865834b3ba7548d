from datetime import datetime, timedelta, timezone

import jwt

from app.core.settings import settings

from factories import add_page, auth_headers


def _token(payload):
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def test_root(client):
    body = client.get("/").json()

    assert body["service"] == settings.APP_NAME
    assert body["status"] == "running"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_db_health_uses_configured_store(client, repos):
    add_page(repos, "p1")

    body = client.get("/health/db").json()

    assert body["connected"] is True
    assert body["database"] == "memory"
    assert body["active_pages"] == 1


def test_sub_claim_is_accepted(client, citizen):
    headers = {"Authorization": f"Bearer {_token({'sub': citizen.id})}"}

    assert client.get("/api/gamification/me/level", headers=headers).status_code == 200


def test_expired_token(client, citizen):
    expired = _token({"id": citizen.id, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)})

    resp = client.get("/api/gamification/me/level", headers={"Authorization": f"Bearer {expired}"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_token_signed_with_other_secret(client, citizen):
    forged = jwt.encode({"id": citizen.id}, "some-other-secret-that-is-long-enough", algorithm="HS256")

    resp = client.get("/api/gamification/me/level", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 401


def test_token_without_subject(client, citizen):
    resp = client.get("/api/gamification/me/level", headers={"Authorization": f"Bearer {_token({'role': 'admin'})}"})

    assert resp.status_code == 401


def test_valid_token(client, citizen):
    assert client.get("/api/notifications", headers=auth_headers(citizen.id)).status_code == 200
