def test_ping(client):
    assert client.get("/ping").json() == {"message": "pong"}


def test_health_reports_database(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["database"] == "ok"


def test_unknown_endpoint_uses_error_envelope(client):
    response = client.get("/nope")
    assert response.status_code == 404
    error = response.json()["error"]
    assert response.json()["success"] is False
    assert error["code"] == "ENDPOINT_NOT_FOUND"


def test_protected_route_requires_token(client):
    response = client.get("/protocols/")
    assert response.status_code == 401
    assert response.json()["error"]["type"] == "AuthenticationError"


def test_request_validation_is_400(client, auth_headers):
    response = client.post("/protocols/", json={"name": "x"}, headers=auth_headers)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["errors"][0]["field"] == "name"
