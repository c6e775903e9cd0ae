from delphi_api.db.models import AccessToken


def test_list_and_read_users(client, user, auth_headers):
    response = client.get("/users/", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["meta"]["count"] == 1

    data = client.get(f"/users/{user.id}", headers=auth_headers).json()["data"]
    assert (data["username"], data["email"]) == ("alice", "alice@example.com")
    assert "password_hash" not in data


def test_missing_user_is_404(client, auth_headers):
    response = client.get("/users/999", headers=auth_headers)
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["type"] == "NotFoundError"


def test_create_user(client, auth_headers):
    response = client.post("/users/", json={"username": "carol", "password": "hunter22"}, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["data"]["username"] == "carol"


def test_create_user_rejects_taken_email_and_short_password(client, auth_headers):
    response = client.post("/users/", json={"username": "carol", "email": "alice@example.com",
                                             "password": "hunter22"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["details"]["field"] == "email"

    response = client.post("/users/", json={"username": "carol", "password": "abc"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_update_self(client, user, auth_headers):
    response = client.put(f"/users/{user.id}", json={"email": "alice@lab.example.org"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "alice@lab.example.org"


def test_update_with_no_changes_is_400(client, user, auth_headers):
    response = client.put(f"/users/{user.id}", json={}, headers=auth_headers)
    assert response.status_code == 400


def test_cannot_update_or_delete_someone_else(client, user, other_headers):
    response = client.put(f"/users/{user.id}", json={"username": "hijacked"}, headers=other_headers)
    assert response.status_code == 403
    assert response.json()["error"]["type"] == "AuthorizationError"

    response = client.delete(f"/users/{user.id}", headers=other_headers)
    assert response.status_code == 403


def test_delete_self_revokes_tokens(db, client, user, auth_headers):
    response = client.delete(f"/users/{user.id}", headers=auth_headers)
    assert response.status_code == 200

    assert client.get("/auth/verify", headers=auth_headers).status_code == 401
    assert db.query(AccessToken).count() == 0
