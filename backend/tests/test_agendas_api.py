from __future__ import annotations

from uuid import uuid4

from habitloop.db.models.activity_log import ActivityLog


def _create(test_client, user_id, **overrides):
    payload = {
        "user_id": str(user_id),
        "title": "Read pages",
        "type": "NUMERIC",
        "total_target": 300,
        "unit": "pages",
    }
    payload.update(overrides)
    return test_client.post("/agendas", json=payload)


def test_create_numeric_agenda_generates_initial_tasks(client) -> None:
    test_client, _ = client
    user_id = uuid4()

    response = _create(test_client, user_id)

    assert response.status_code == 201
    body = response.json()
    assert body["agenda"]["daily_target"] == 10
    assert body["agenda"]["start_date"] == "2024-01-10"
    assert [task["scheduled_date"] for task in body["tasks"]][:2] == ["2024-01-10", "2024-01-11"]
    assert len(body["tasks"]) == 7
    assert all(task["target_val"] == 10 and task["status"] == "PENDING" for task in body["tasks"])
    assert body["request_id"]


def test_custom_recurrence_only_schedules_listed_days(client) -> None:
    test_client, _ = client
    # 2024-01-10 is a Wednesday; 1 = Monday, 3 = Wednesday
    response = _create(
        test_client,
        uuid4(),
        type="BOOLEAN",
        total_target=None,
        recurrence_pattern="CUSTOM",
        recurrence_days=[1, 3],
        horizon_days=14,
    )

    assert response.status_code == 201
    dates = [task["scheduled_date"] for task in response.json()["tasks"]]
    assert dates == ["2024-01-10", "2024-01-15", "2024-01-17", "2024-01-22"]


def test_one_off_creates_single_task(client) -> None:
    test_client, _ = client
    response = _create(test_client, uuid4(), type="ONE_OFF", total_target=None, due_date="2024-02-01")

    assert response.status_code == 201
    tasks = response.json()["tasks"]
    assert len(tasks) == 1
    assert tasks[0]["scheduled_date"] == "2024-02-01"


def test_invalid_payloads_are_rejected(client) -> None:
    test_client, _ = client
    user_id = uuid4()

    assert _create(test_client, user_id, end_date="2024-01-01").status_code == 422
    assert _create(test_client, user_id, recurrence_pattern="CUSTOM", recurrence_days=[7]).status_code == 422
    assert _create(test_client, user_id, title="").status_code == 422


def test_list_agendas_is_scoped_to_user(client) -> None:
    test_client, _ = client
    user_id = uuid4()
    _create(test_client, user_id)
    _create(test_client, uuid4(), title="Someone else")

    response = test_client.get("/agendas", params={"user_id": str(user_id)})

    assert response.status_code == 200
    assert [agenda["title"] for agenda in response.json()] == ["Read pages"]


def test_update_target_retargets_pending_tasks(client) -> None:
    test_client, _ = client
    user_id = uuid4()
    agenda_id = _create(test_client, user_id).json()["agenda"]["id"]

    response = test_client.patch(
        f"/agendas/{agenda_id}",
        json={"user_id": str(user_id), "target_val": 25, "title": "  Read more  "},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["tasks_retargeted"] == 7
    assert body["agenda"]["daily_target"] == 25
    assert body["agenda"]["title"] == "Read more"

    tasks = test_client.get("/tasks", params={"user_id": str(user_id)}).json()
    assert {task["target_val"] for task in tasks} == {25}


def test_pausing_keeps_task_targets(client) -> None:
    test_client, _ = client
    user_id = uuid4()
    agenda_id = _create(test_client, user_id).json()["agenda"]["id"]

    response = test_client.patch(f"/agendas/{agenda_id}", json={"user_id": str(user_id), "status": "PAUSED"})

    assert response.status_code == 200
    assert response.json()["agenda"]["status"] == "PAUSED"
    assert response.json()["tasks_retargeted"] == 0


def test_update_rejects_end_date_before_start(client) -> None:
    test_client, _ = client
    user_id = uuid4()
    agenda_id = _create(test_client, user_id, start_date="2024-01-10").json()["agenda"]["id"]

    response = test_client.patch(f"/agendas/{agenda_id}", json={"user_id": str(user_id), "end_date": "2024-01-05"})
    assert response.status_code == 422

    stored = test_client.get("/agendas", params={"user_id": str(user_id)}).json()[0]
    assert stored["end_date"] is None

    response = test_client.patch(f"/agendas/{agenda_id}", json={"user_id": str(user_id), "end_date": "2024-01-20"})
    assert response.status_code == 200
    assert response.json()["agenda"]["end_date"] == "2024-01-20"


def test_update_unknown_agenda_returns_404(client) -> None:
    test_client, _ = client
    response = test_client.patch("/agendas/missing", json={"user_id": str(uuid4()), "title": "x"})
    assert response.status_code == 404


def test_delete_agenda_cascades_to_tasks(client) -> None:
    test_client, session_factory = client
    user_id = uuid4()
    agenda_id = _create(test_client, user_id).json()["agenda"]["id"]
    _create(test_client, user_id, title="Keep me")

    response = test_client.delete(f"/agendas/{agenda_id}", params={"user_id": str(user_id)})

    assert response.status_code == 200
    assert response.json()["tasks_removed"] == 7
    remaining = test_client.get("/tasks", params={"user_id": str(user_id)}).json()
    assert len(remaining) == 7
    assert all(task["agenda_id"] != agenda_id for task in remaining)
    assert test_client.delete(f"/agendas/{agenda_id}", params={"user_id": str(user_id)}).status_code == 404

    with session_factory() as session:
        actions = [log.action_type for log in session.query(ActivityLog).filter(ActivityLog.user_id == user_id)]
    assert actions.count("agenda_created") == 2
    assert "agenda_deleted" in actions
