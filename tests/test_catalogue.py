import pytest


def create(client, headers, resource, **payload):
    response = client.post(f"/{resource}/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# ---------------------------
# Sensors
# ---------------------------

def test_sensor_listings(client, auth_headers, make_sensor):
    make_sensor("Heart Rate Monitor", "Cardiovascular")
    make_sensor("GPS", "Location")
    mine = create(client, auth_headers, "sensors", name="Skin Temperature", category="Thermal")
    assert mine["is_custom"] is True

    public = client.get("/sensors/public").json()
    assert public["meta"]["count"] == 2

    custom = client.get("/sensors/custom", headers=auth_headers).json()["data"]
    assert [s["id"] for s in custom] == [mine["id"]]

    by_category = client.get("/sensors/category/Location", headers=auth_headers).json()["data"]
    assert [s["name"] for s in by_category] == ["GPS"]

    found = client.get("/sensors/search/heart", headers=auth_headers).json()["data"]
    assert [s["name"] for s in found] == ["Heart Rate Monitor"]


@pytest.mark.parametrize("resource", ["sensors", "tasks", "subsections"])
def test_search_term_too_short(client, auth_headers, resource):
    response = client.get(f"/{resource}/search/a", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Search term must be at least 2 characters long"


def test_update_and_delete_own_sensor(client, auth_headers):
    sensor = create(client, auth_headers, "sensors", name="EDA", category="Electrodermal")

    response = client.put(f"/sensors/{sensor['id']}", json={"description": "wrist band"}, headers=auth_headers)
    assert response.json()["data"]["description"] == "wrist band"

    assert client.delete(f"/sensors/{sensor['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/sensors/{sensor['id']}", headers=auth_headers).status_code == 404


def test_default_sensor_is_read_only(client, auth_headers, make_sensor):
    sensor = make_sensor()

    response = client.put(f"/sensors/{sensor.id}", json={"name": "Renamed"}, headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Default sensors cannot be modified"
    assert client.delete(f"/sensors/{sensor.id}", headers=auth_headers).status_code == 403


def test_other_users_sensor_is_read_only(client, auth_headers, other_headers):
    sensor = create(client, auth_headers, "sensors", name="EDA", category="Electrodermal")

    assert client.get(f"/sensors/{sensor['id']}", headers=other_headers).status_code == 200
    response = client.put(f"/sensors/{sensor['id']}", json={"name": "Mine"}, headers=other_headers)
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "You can only modify your own sensors"


# ---------------------------
# Domains
# ---------------------------

def test_domain_crud(client, auth_headers, make_domain):
    make_domain("Exercise")
    domain = create(client, auth_headers, "domains", name="  Sleep  ")
    assert domain["name"] == "Sleep"

    assert client.get("/domains/public").json()["meta"]["count"] == 1
    assert client.get("/domains/", headers=auth_headers).json()["meta"]["count"] == 2

    response = client.put(f"/domains/{domain['id']}", json={"description": "night"}, headers=auth_headers)
    assert response.json()["data"]["description"] == "night"

    assert client.delete(f"/domains/{domain['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/domains/{domain['id']}", headers=auth_headers).status_code == 404


def test_domain_ownership(client, auth_headers, other_headers, make_domain):
    default = make_domain()
    domain = create(client, auth_headers, "domains", name="Sleep")

    assert client.put(f"/domains/{default.id}", json={"name": "Other"}, headers=auth_headers).status_code == 403
    assert client.delete(f"/domains/{domain['id']}", headers=other_headers).status_code == 403


# ---------------------------
# Tasks
# ---------------------------

def test_task_listing_filters(client, auth_headers, other_headers):
    create(client, auth_headers, "tasks", title="Reading", time=10)
    create(client, auth_headers, "tasks", title="Pause", type="break", time=2)
    create(client, other_headers, "tasks", title="Someone else's task")

    titles = [t["title"] for t in client.get("/tasks/", headers=auth_headers).json()["data"]]
    assert titles == ["Pause", "Reading"]

    breaks = client.get("/tasks/", params={"type": "break"}, headers=auth_headers).json()["data"]
    assert [t["title"] for t in breaks] == ["Pause"]

    mine = client.get("/tasks/", params={"user_only": True}, headers=other_headers).json()["data"]
    assert [t["title"] for t in mine] == ["Someone else's task"]

    found = client.get("/tasks/search/read", headers=auth_headers).json()["data"]
    assert [t["title"] for t in found] == ["Reading"]


def test_task_default_links(client, auth_headers, make_sensor, make_domain):
    task = create(client, auth_headers, "tasks", title="Cycling", time=20)
    sensor, domain = make_sensor(), make_domain()

    response = client.post(f"/tasks/{task['id']}/sensors/{sensor.id}", headers=auth_headers)
    assert response.status_code == 201
    assert client.post(f"/tasks/{task['id']}/domains/{domain.id}", headers=auth_headers).status_code == 201

    response = client.post(f"/tasks/{task['id']}/sensors/{sensor.id}", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"]["type"] == "ConflictError"
    assert client.post(f"/tasks/{task['id']}/domains/{domain.id}", headers=auth_headers).status_code == 409

    full = client.get(f"/tasks/{task['id']}", params={"with_relations": True}, headers=auth_headers).json()["data"]
    assert [s["id"] for s in full["sensors"]] == [sensor.id]
    assert [d["id"] for d in full["domains"]] == [domain.id]
    plain = client.get(f"/tasks/{task['id']}", headers=auth_headers).json()["data"]
    assert "sensors" not in plain

    assert client.delete(f"/tasks/{task['id']}/sensors/{sensor.id}", headers=auth_headers).status_code == 200
    assert client.get(f"/tasks/{task['id']}/sensors", headers=auth_headers).json()["meta"]["count"] == 0
    response = client.delete(f"/tasks/{task['id']}/sensors/{sensor.id}", headers=auth_headers)
    assert response.status_code == 404

    assert client.get(f"/tasks/{task['id']}/domains", headers=auth_headers).json()["meta"]["count"] == 1


def test_unknown_sensor_cannot_be_linked(client, auth_headers):
    task = create(client, auth_headers, "tasks", title="Cycling")
    response = client.post(f"/tasks/{task['id']}/sensors/no-such-sensor", headers=auth_headers)
    assert response.status_code == 404


def test_task_ownership(client, auth_headers, other_headers, db):
    from delphi_api.db.models import Task

    builtin = Task(title="Walking", time=10, is_custom=False)
    db.add(builtin)
    db.commit()
    task = create(client, auth_headers, "tasks", title="Cycling")

    response = client.put(f"/tasks/{builtin.id}", json={"title": "Running"}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Default tasks cannot be modified"

    assert client.put(f"/tasks/{task['id']}", json={"title": "Spinning"}, headers=other_headers).status_code == 403
    assert client.delete(f"/tasks/{task['id']}", headers=other_headers).status_code == 403

    response = client.put(f"/tasks/{task['id']}", json={"title": "Spinning", "enabled": False}, headers=auth_headers)
    assert (response.json()["data"]["title"], response.json()["data"]["enabled"]) == ("Spinning", False)


def test_task_validation(client, auth_headers):
    response = client.post("/tasks/", json={"title": "x", "type": "nap"}, headers=auth_headers)
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["error"]["details"]["errors"]}
    assert fields == {"title", "type"}


# ---------------------------
# Subsections
# ---------------------------

def test_subsection_listings(client, auth_headers, other_headers):
    create(client, auth_headers, "subsections", title="Breathing", time=60, is_public=True)
    create(client, auth_headers, "subsections", title="Rest", time=30, type="break")
    create(client, other_headers, "subsections", title="Counting", time=45)

    assert client.get("/subsections/", headers=auth_headers).json()["meta"]["count"] == 3
    public = client.get("/subsections/public", headers=auth_headers).json()["data"]
    assert [s["title"] for s in public] == ["Breathing"]
    breaks = client.get("/subsections/type/break", headers=auth_headers).json()["data"]
    assert [s["title"] for s in breaks] == ["Rest"]
    mine = client.get("/subsections/my", headers=other_headers).json()["data"]
    assert [s["title"] for s in mine] == ["Counting"]
    assert client.get("/subsections/search/breath", headers=auth_headers).json()["meta"]["count"] == 1


def test_subsection_sensors(client, auth_headers, make_sensor):
    sub = create(client, auth_headers, "subsections", title="Breathing", time=60)
    hr, gps = make_sensor("HR"), make_sensor("GPS", "Location")

    for sensor in (hr, gps):
        assert client.post(f"/subsections/{sub['id']}/sensors/{sensor.id}", headers=auth_headers).status_code == 201
    assert client.post(f"/subsections/{sub['id']}/sensors/{hr.id}", headers=auth_headers).status_code == 409

    data = client.get(f"/subsections/{sub['id']}/with-sensors", headers=auth_headers).json()["data"]
    assert sorted(s["name"] for s in data["sensors"]) == ["GPS", "HR"]

    assert client.delete(f"/subsections/{sub['id']}/sensors/{gps.id}", headers=auth_headers).status_code == 200
    assert client.get(f"/subsections/{sub['id']}/sensors", headers=auth_headers).json()["meta"]["count"] == 1

    response = client.delete(f"/subsections/{sub['id']}/sensors", headers=auth_headers)
    assert response.json()["data"]["removed"] == 1


def test_subsection_ownership(client, auth_headers, other_headers):
    sub = create(client, auth_headers, "subsections", title="Breathing", time=60)

    response = client.put(f"/subsections/{sub['id']}", json={"time": 90}, headers=other_headers)
    assert response.status_code == 403
    assert client.delete(f"/subsections/{sub['id']}", headers=other_headers).status_code == 403

    response = client.put(f"/subsections/{sub['id']}", json={"time": 90}, headers=auth_headers)
    assert response.json()["data"]["time"] == 90


def test_subsection_time_must_be_positive(client, auth_headers):
    response = client.post("/subsections/", json={"title": "Rest", "time": 0}, headers=auth_headers)
    assert response.status_code == 400
