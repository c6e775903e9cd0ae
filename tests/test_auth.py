from datetime import datetime, timedelta, timezone

from delphi_api.core.scheduler import cleanup_expired_tokens
from delphi_api.db.models import AccessToken

from conftest import PASSWORD


def test_register_then_login_by_email(client):
    response = client.post("/auth/register",
                           json={"username": "bob", "email": "bob@example.com", "password": "hunter22"})
    assert response.status_code == 201
    assert response.json()["data"]["username"] == "bob"

    response = client.post("/auth/login", json={"email": "bob@example.com", "password": "hunter22"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "bob"


def test_register_duplicate_username(client, user):
    response = client.post("/auth/register",
                           json={"username": user.username, "email": "other@example.com", "password": "hunter22"})
    assert response.status_code == 400


def test_login_rejects_bad_password(client, user):
    response = client.post("/auth/login", json={"username": user.username, "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid credentials"


def test_login_requires_username_or_email(client):
    response = client.post("/auth/login", json={"password": PASSWORD})
    assert response.status_code == 400


def test_verify_and_profile(client, user, auth_headers):
    response = client.get("/auth/verify", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == user.id

    response = client.put("/auth/profile", json={"username": "alice2"}, headers=auth_headers)
    assert response.status_code == 200
    assert client.get("/auth/profile", headers=auth_headers).json()["data"]["username"] == "alice2"


def test_logout_revokes_token(client, auth_headers):
    assert client.post("/auth/logout", headers=auth_headers).status_code == 200

    response = client.get("/auth/verify", headers=auth_headers)
    assert response.status_code == 401


def test_logout_all(client, user, auth_headers):
    client.post("/auth/login", json={"username": user.username, "password": PASSWORD})

    response = client.post("/auth/logout-all", headers=auth_headers)

    assert response.json()["data"]["tokens_removed"] == 2
    assert client.get("/auth/verify", headers=auth_headers).status_code == 401


def test_garbage_token(client):
    response = client.get("/auth/verify", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_scheduled_cleanup_purges_expired_tokens(db, session_factory, user):
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    db.add_all([
        AccessToken(user_id=user.id, token="old", expires_at=now - timedelta(minutes=1)),
        AccessToken(user_id=user.id, token="fresh", expires_at=now + timedelta(hours=1)),
    ])
    db.commit()

    assert cleanup_expired_tokens(session_factory) == 1
    assert [t.token for t in db.query(AccessToken).all()] == ["fresh"]


class BrokenSession:
    def query(self, *entities):
        raise RuntimeError("db down")

    def rollback(self):
        pass

    def close(self):
        pass


def test_cleanup_failure_is_logged_not_raised(caplog):
    assert cleanup_expired_tokens(BrokenSession) == 0
    assert "Expired token cleanup failed" in caplog.text
