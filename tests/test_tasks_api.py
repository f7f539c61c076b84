from datetime import datetime, timedelta, timezone

import pytest


@pytest.fixture
def alice(signup):
    return signup("alice@example.com")[1]


@pytest.fixture
def bob(signup):
    return signup("bob@example.com")[1]


def make_task(client, headers, title="Write report", **extra):
    response = client.post("/tasks", json={"title": title, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCrud:
    def test_create_returns_task(self, client, alice):
        task = make_task(client, alice, "Buy milk", description="2 litres")

        assert task["title"] == "Buy milk"
        assert task["description"] == "2 litres"
        assert task["completed"] is False
        assert {"id", "userId", "createdAt", "updatedAt"} <= set(task)

    def test_create_requires_title(self, client, alice):
        response = client.post("/tasks", json={"title": ""}, headers=alice)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_get_by_id(self, client, alice):
        task = make_task(client, alice)

        response = client.get(f"/tasks/{task['id']}", headers=alice)

        assert response.status_code == 200
        assert response.json() == task

    def test_partial_update(self, client, alice):
        task = make_task(client, alice, "Old title", description="keep me")

        response = client.patch(f"/tasks/{task['id']}", json={"title": "New title"}, headers=alice)

        assert response.status_code == 200
        assert response.json() == {"message": "Task updated"}
        updated = client.get(f"/tasks/{task['id']}", headers=alice).json()
        assert updated["title"] == "New title"
        assert updated["description"] == "keep me"

    def test_update_rejects_empty_title(self, client, alice):
        task = make_task(client, alice)

        response = client.patch(f"/tasks/{task['id']}", json={"title": ""}, headers=alice)

        assert response.status_code == 400

    def test_delete(self, client, alice):
        task = make_task(client, alice)

        response = client.delete(f"/tasks/{task['id']}", headers=alice)

        assert response.json() == {"message": "Task deleted"}
        assert client.get(f"/tasks/{task['id']}", headers=alice).status_code == 404

    def test_toggle_is_self_inverse(self, client, alice):
        task = make_task(client, alice)
        url = f"/tasks/{task['id']}/toggle"

        assert client.patch(url, headers=alice).json() == {"message": "Task toggled"}
        assert client.get(f"/tasks/{task['id']}", headers=alice).json()["completed"] is True

        client.patch(url, headers=alice)
        assert client.get(f"/tasks/{task['id']}", headers=alice).json()["completed"] is False

    def test_unknown_id_is_not_found(self, client, alice):
        for method in ("get", "delete"):
            response = getattr(client, method)("/tasks/does-not-exist", headers=alice)
            assert response.status_code == 404
            assert response.json()["code"] == "NOT_FOUND"


class TestOwnership:
    def test_other_users_task_is_invisible(self, client, alice, bob):
        task = make_task(client, alice, "Alice only")
        url = f"/tasks/{task['id']}"

        assert client.get(url, headers=bob).status_code == 404
        assert client.patch(url, json={"title": "hijacked"}, headers=bob).status_code == 404
        assert client.patch(f"{url}/toggle", headers=bob).status_code == 404
        assert client.delete(url, headers=bob).status_code == 404
        assert client.get("/tasks", headers=bob).json()["total"] == 0

        unchanged = client.get(url, headers=alice).json()
        assert unchanged == task

    def test_not_found_does_not_reveal_existence(self, client, alice, bob):
        task = make_task(client, alice)

        foreign = client.get(f"/tasks/{task['id']}", headers=bob)
        missing = client.get("/tasks/no-such-task", headers=bob)

        assert foreign.json() == missing.json()


class TestListing:
    def test_defaults_and_newest_first(self, client, alice):
        first = make_task(client, alice, "first")
        second = make_task(client, alice, "second")

        body = client.get("/tasks", headers=alice).json()

        assert body["page"] == 1
        assert body["total"] == 2
        assert body["pages"] == 1
        assert [t["id"] for t in body["tasks"]] == [second["id"], first["id"]]

    def test_pagination(self, client, alice):
        for i in range(15):
            make_task(client, alice, f"task {i}")

        body = client.get("/tasks", params={"page": 2, "limit": 10}, headers=alice).json()

        assert len(body["tasks"]) == 5
        assert body["total"] == 15
        assert body["page"] == 2
        assert body["pages"] == 2

    def test_status_filters(self, client, alice):
        done = make_task(client, alice, "done")
        make_task(client, alice, "open")
        client.patch(f"/tasks/{done['id']}/toggle", headers=alice)

        completed = client.get("/tasks", params={"status": "completed"}, headers=alice).json()
        pending = client.get("/tasks", params={"status": "pending"}, headers=alice).json()

        assert [t["title"] for t in completed["tasks"]] == ["done"]
        assert all(t["completed"] for t in completed["tasks"])
        assert [t["title"] for t in pending["tasks"]] == ["open"]
        assert not any(t["completed"] for t in pending["tasks"])

    def test_search_composes_with_status(self, client, alice):
        report = make_task(client, alice, "Write report")
        make_task(client, alice, "Review report")
        make_task(client, alice, "Buy milk")
        client.patch(f"/tasks/{report['id']}/toggle", headers=alice)

        matches = client.get("/tasks", params={"search": "report"}, headers=alice).json()
        pending = client.get(
            "/tasks", params={"search": "report", "status": "pending"}, headers=alice
        ).json()

        assert matches["total"] == 2
        assert [t["title"] for t in pending["tasks"]] == ["Review report"]

    def test_empty_list(self, client, alice):
        body = client.get("/tasks", headers=alice).json()

        assert body == {"tasks": [], "total": 0, "page": 1, "pages": 0}

    def test_unknown_status_means_no_filter(self, client, alice):
        done = make_task(client, alice, "done")
        make_task(client, alice, "open")
        client.patch(f"/tasks/{done['id']}/toggle", headers=alice)

        body = client.get("/tasks", params={"status": "archived"}, headers=alice).json()

        assert body["total"] == 2

    @pytest.mark.parametrize(
        "params, page, limit_applied",
        [
            ({"page": 0}, 1, 10),
            ({"page": "abc"}, 1, 10),
            ({"limit": 0}, 1, 10),
            ({"limit": "-3"}, 1, 10),
            ({"limit": 500}, 1, 12),
        ],
    )
    def test_bad_paging_values_fall_back_to_defaults(self, client, alice, params, page, limit_applied):
        for i in range(12):
            make_task(client, alice, f"task {i}")

        response = client.get("/tasks", params=params, headers=alice)

        assert response.status_code == 200
        body = response.json()
        assert body["page"] == page
        assert len(body["tasks"]) == limit_applied

    def test_search_matches_wildcard_characters_literally(self, client, alice):
        make_task(client, alice, "Buy milk")
        make_task(client, alice, "100% done")

        underscore = client.get("/tasks", params={"search": "_"}, headers=alice).json()
        percent = client.get("/tasks", params={"search": "%"}, headers=alice).json()

        assert underscore["tasks"] == []
        assert [t["title"] for t in percent["tasks"]] == ["100% done"]


def _parse_utc(value):
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def test_created_at_round_trips(client, alice):
    before = datetime.now(timezone.utc) - timedelta(seconds=5)
    task = make_task(client, alice)

    fetched = client.get(f"/tasks/{task['id']}", headers=alice).json()
    after = datetime.now(timezone.utc) + timedelta(seconds=5)

    assert _parse_utc(fetched["createdAt"]) == _parse_utc(task["createdAt"])
    assert before <= _parse_utc(fetched["createdAt"]) <= after


def test_toggle_moves_updated_at_forward(client, alice):
    task = make_task(client, alice)

    client.patch(f"/tasks/{task['id']}/toggle", headers=alice)
    toggled = client.get(f"/tasks/{task['id']}", headers=alice).json()

    assert _parse_utc(toggled["updatedAt"]) >= _parse_utc(task["updatedAt"])
