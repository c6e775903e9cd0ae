import pytest

from conftest import PASSWORD


def login(client, username):
    response = client.post("/auth/login", json={"username": username, "password": PASSWORD})
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


def create_protocol(client, headers, **payload):
    payload.setdefault("name", "Morning session")
    response = client.post("/protocols/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def task_titles(client, headers, protocol_id):
    response = client.get(f"/protocols/{protocol_id}/tasks", headers=headers)
    return [(t["title"], t["order_index"]) for t in response.json()["data"]]


@pytest.fixture()
def tasks(make_task, make_sensor, make_domain):
    hr = make_sensor("HR")
    return [
        make_task("Baseline", sensors=[hr], domains=[make_domain("Rest")]),
        make_task("Stroop"),
        make_task("Recovery"),
    ]


def test_create_and_read_protocol(client, auth_headers):
    protocol = create_protocol(client, auth_headers, description="  two hours  ")

    response = client.get(f"/protocols/{protocol['id']}", headers=auth_headers)

    assert response.json()["data"]["description"] == "two hours"
    listed = client.get("/protocols/my", headers=auth_headers).json()
    assert listed["meta"]["count"] == 1


def test_duplicate_name_conflicts(client, auth_headers):
    create_protocol(client, auth_headers)
    response = client.post("/protocols/", json={"name": "Morning session"}, headers=auth_headers)
    assert response.status_code == 409


def test_add_tasks_and_read_full_protocol(client, auth_headers, tasks):
    protocol = create_protocol(client, auth_headers)
    pid = protocol["id"]

    first = client.post(f"/protocols/{pid}/tasks/{tasks[0].id}", headers=auth_headers)
    assert first.status_code == 201
    assert first.json()["data"]["copied"] == {"sensors": 1, "domains": 1}
    client.post(f"/protocols/{pid}/tasks/{tasks[1].id}", headers=auth_headers)
    client.post(f"/protocols/{pid}/tasks/{tasks[2].id}", json={"position": 0, "override_title": "Cool-down"},
                headers=auth_headers)

    full = client.get(f"/protocols/{pid}/full", headers=auth_headers).json()["data"]

    assert [(t["title"], t["order_index"]) for t in full["tasks"]] == [
        ("Cool-down", 0), ("Baseline", 1), ("Stroop", 2)]
    assert full["tasks"][0]["has_title_override"] is True
    assert [s["name"] for s in full["tasks"][1]["sensors"]] == ["HR"]
    assert full["sections"] == []


def test_adding_same_task_twice_conflicts(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    client.post(f"/protocols/{pid}/tasks/{tasks[0].id}", headers=auth_headers)

    response = client.post(f"/protocols/{pid}/tasks/{tasks[0].id}", headers=auth_headers)

    assert response.status_code == 409
    assert task_titles(client, auth_headers, pid) == [("Baseline", 0)]


def test_out_of_range_position_is_rejected(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    response = client.post(f"/protocols/{pid}/tasks/{tasks[0].id}", json={"position": 1}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["details"]["max"] == 0


def test_move_and_remove_task(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    for task in tasks:
        client.post(f"/protocols/{pid}/tasks/{task.id}", headers=auth_headers)

    response = client.put(f"/protocols/{pid}/tasks/{tasks[0].id}/order", json={"order_index": 2},
                          headers=auth_headers)
    assert response.json()["data"]["moved"] is True
    assert task_titles(client, auth_headers, pid) == [("Stroop", 0), ("Recovery", 1), ("Baseline", 2)]

    response = client.delete(f"/protocols/{pid}/tasks/{tasks[1].id}", headers=auth_headers)
    assert response.json()["data"]["position"] == 0
    assert task_titles(client, auth_headers, pid) == [("Recovery", 0), ("Baseline", 1)]


def test_reorder_tasks(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    for task in tasks[:2]:
        client.post(f"/protocols/{pid}/tasks/{task.id}", headers=auth_headers)

    response = client.put(f"/protocols/{pid}/tasks/reorder", json={"task_orders": [
        {"task_id": tasks[0].id, "order_index": 1},
        {"task_id": tasks[1].id, "order_index": 0},
    ]}, headers=auth_headers)

    assert response.status_code == 200
    assert task_titles(client, auth_headers, pid) == [("Stroop", 0), ("Baseline", 1)]


def test_partial_reorder_conflicts(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    for task in tasks:
        client.post(f"/protocols/{pid}/tasks/{task.id}", headers=auth_headers)

    response = client.put(f"/protocols/{pid}/tasks/reorder", json={"task_orders": [
        {"task_id": tasks[0].id, "order_index": 1},
        {"task_id": tasks[1].id, "order_index": 0},
    ]}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["error"]["details"]["unassigned"] == [tasks[2].id]


def test_update_task_overrides(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    client.post(f"/protocols/{pid}/tasks/{tasks[1].id}", headers=auth_headers)

    response = client.put(f"/protocols/{pid}/tasks/{tasks[1].id}",
                          json={"override_time": 12, "notes": "dim lights"}, headers=auth_headers)

    data = response.json()["data"]
    assert (data["time"], data["has_time_override"], data["notes"]) == (12, True, "dim lights")


def test_create_from_template_copies_tasks(client, auth_headers, tasks):
    template = create_protocol(client, auth_headers, name="Template", is_template=True)
    client.post(f"/protocols/{template['id']}/tasks/{tasks[0].id}", json={"notes": "keep still"},
                headers=auth_headers)
    client.post(f"/protocols/{template['id']}/tasks/{tasks[1].id}", headers=auth_headers)

    copy = create_protocol(client, auth_headers, name="From template", template_protocol_id=template["id"])

    copied = client.get(f"/protocols/{copy['id']}/tasks", headers=auth_headers).json()["data"]
    assert [(t["title"], t["order_index"]) for t in copied] == [("Baseline", 0), ("Stroop", 1)]
    assert copied[0]["notes"] == "keep still"
    assert copy["template_protocol_id"] == template["id"]


def test_other_users_cannot_modify(client, auth_headers, make_user, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    make_user("mallory")
    other = login(client, "mallory")

    assert client.post(f"/protocols/{pid}/tasks/{tasks[0].id}", headers=other).status_code == 403
    assert client.put(f"/protocols/{pid}", json={"name": "Mine now"}, headers=other).status_code == 403
    assert client.delete(f"/protocols/{pid}", headers=other).status_code == 403
    # reading is allowed
    assert client.get(f"/protocols/{pid}", headers=other).status_code == 200


def test_private_protocol_is_not_a_template_for_others(client, auth_headers, make_user):
    pid = create_protocol(client, auth_headers)["id"]
    make_user("mallory")
    other = login(client, "mallory")

    response = client.post("/protocols/", json={"name": "Copy", "template_protocol_id": pid}, headers=other)

    assert response.status_code == 403


def test_deleting_task_compacts_protocol(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    for task in tasks:
        client.post(f"/protocols/{pid}/tasks/{task.id}", headers=auth_headers)

    assert client.delete(f"/tasks/{tasks[0].id}", headers=auth_headers).status_code == 200

    assert task_titles(client, auth_headers, pid) == [("Stroop", 0), ("Recovery", 1)]


def test_delete_protocol(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    client.post(f"/protocols/{pid}/tasks/{tasks[0].id}", headers=auth_headers)

    assert client.delete(f"/protocols/{pid}", headers=auth_headers).status_code == 200
    assert client.get(f"/protocols/{pid}", headers=auth_headers).status_code == 404


def test_protocol_sections(client, auth_headers, section, make_subsection):
    pid = create_protocol(client, auth_headers)["id"]
    sub = make_subsection("Breathing")
    client.post(f"/sections/{section.id}/subsections/{sub.id}", headers=auth_headers)

    response = client.post(f"/protocols/{pid}/sections/{section.id}", headers=auth_headers)
    assert response.status_code == 201

    sections = client.get(f"/protocols/{pid}/sections", headers=auth_headers).json()["data"]
    assert sections[0]["section"]["title"] == "Warm-up block"
    assert sections[0]["subsections"][0]["subsection"]["title"] == "Breathing"

    response = client.put(f"/protocols/{pid}/sections/reorder",
                          json={"assignments": {section.id: 0}}, headers=auth_headers)
    assert response.json()["data"]["updated"] == 1


def test_blank_override_falls_back_to_task(client, auth_headers, tasks):
    pid = create_protocol(client, auth_headers)["id"]
    client.post(f"/protocols/{pid}/tasks/{tasks[1].id}", json={"override_title": "Colour naming"},
                headers=auth_headers)

    response = client.put(f"/protocols/{pid}/tasks/{tasks[1].id}",
                          json={"override_title": "  ", "override_description": ""}, headers=auth_headers)

    data = response.json()["data"]
    assert (data["title"], data["has_title_override"]) == ("Stroop", False)
    assert data["has_description_override"] is False


def test_stored_empty_override_is_not_flagged(db, client, auth_headers, protocol, tasks):
    from delphi_api.core.ordering import PROTOCOL_TASKS, OrderingEngine

    OrderingEngine(db, PROTOCOL_TASKS).insert_at_position(protocol.id, tasks[1].id, override_title="")

    task = client.get(f"/protocols/{protocol.id}/tasks", headers=auth_headers).json()["data"][0]

    assert (task["title"], task["has_title_override"]) == ("Stroop", False)
