"""API testy pro /api/maintenance-tasks — stavy a oprávnění."""
import pytest


@pytest.fixture
def task_id(client):
    res = client.post("/api/maintenance-tasks", json={
        "device_id": 11, "task_type": "Kontrola ventilátorů", "scheduled_date": "2024-06-01", "assigned_to": 2,
    })
    assert res.status_code == 201
    return res.json()["id"]


def test_create_task_as_admin(client, task_id):
    task = client.get(f"/api/maintenance-tasks/{task_id}").json()
    assert task["status"] == "pending"
    assert task["assigned_to"] == 2


def test_create_task_user_assignment_dropped(client, user_headers):
    res = client.post("/api/maintenance-tasks", headers=user_headers, json={
        "device_id": 11, "task_type": "Čištění", "scheduled_date": "2024-06-01", "assigned_to": 1,
    })
    assert res.status_code == 201
    assert res.json()["assigned_to"] is None


def test_allowed_statuses(client, task_id, user_headers):
    user = client.get(f"/api/maintenance-tasks/{task_id}/allowed-statuses", headers=user_headers).json()
    assert user == ["pending", "in_progress"]
    admin = client.get(f"/api/maintenance-tasks/{task_id}/allowed-statuses").json()
    assert admin == ["pending", "in_progress", "completed", "cancelled"]


def test_user_steps_forward(client, task_id, user_headers):
    res = client.put(f"/api/maintenance-tasks/{task_id}", json={"status": "in_progress"}, headers=user_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "in_progress"
    res = client.put(f"/api/maintenance-tasks/{task_id}", json={"status": "completed"}, headers=user_headers)
    assert res.json()["status"] == "completed"


def test_user_cannot_skip_state(client, task_id, user_headers, fake_backend):
    res = client.put(f"/api/maintenance-tasks/{task_id}", json={"status": "completed"}, headers=user_headers)
    assert res.status_code == 422
    assert res.json()["code"] == "transition_not_allowed"
    assert ("PUT", f"/maintenance-tasks/{task_id}") not in fake_backend.calls


def test_admin_reopens_task(client, task_id, fake_backend):
    fake_backend.tasks[task_id]["status"] = "completed"
    res = client.put(f"/api/maintenance-tasks/{task_id}", json={"status": "pending"})
    assert res.status_code == 200
    assert res.json()["status"] == "pending"


def test_user_schedule_change_dropped(client, task_id, user_headers):
    res = client.put(
        f"/api/maintenance-tasks/{task_id}",
        json={"scheduled_date": "2024-09-01", "notes": "Odloženo"},
        headers=user_headers,
    )
    assert res.status_code == 200
    assert res.json()["scheduled_date"] == "2024-06-01"
    assert res.json()["notes"] == "Odloženo"


def test_user_schedule_change_strict(client, task_id, user_headers):
    res = client.put(
        f"/api/maintenance-tasks/{task_id}",
        params={"strict": True},
        json={"scheduled_date": "2024-09-01"},
        headers=user_headers,
    )
    assert res.status_code == 422
    assert res.json()["code"] == "field_not_permitted"


def test_list_tasks_filter(client, task_id):
    client.post("/api/maintenance-tasks", json={"device_id": 10, "task_type": "Revize", "scheduled_date": "2024-07-01"})
    res = client.get("/api/maintenance-tasks")
    assert len(res.json()) == 2


def test_delete_task_admin_only(client, task_id, user_headers):
    assert client.delete(f"/api/maintenance-tasks/{task_id}", headers=user_headers).status_code == 403
    assert client.delete(f"/api/maintenance-tasks/{task_id}").status_code == 204
    assert client.get(f"/api/maintenance-tasks/{task_id}").status_code == 404
