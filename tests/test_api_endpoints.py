"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end against the
local document store and identity provider.
"""

import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient


def _quick_add(client: TestClient, headers, text: str, **extra):
    response = client.post("/tasks/quick-add", json={"text": text, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["task"]


class TestAuthEndpoints:
    """Test sign-up, login and token handling."""

    def test_health(self, test_client):
        assert test_client.get("/health").json()["status"] == "healthy"

    def test_signup_returns_token(self, test_client):
        response = test_client.post("/auth/signup", json={"email": "a@example.com", "password": "secret123"})
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "a@example.com"

    def test_signup_weak_password(self, test_client):
        response = test_client.post("/auth/signup", json={"email": "a@example.com", "password": "123"})
        assert response.status_code == 400
        assert response.json()["detail"] == {
            "code": "auth/weak-password",
            "message": "Password should be at least 6 characters.",
        }

    def test_login_wrong_password(self, test_client, auth_headers):
        response = test_client.post("/auth/login", json={"email": "jane@example.com", "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "auth/wrong-password"

    def test_login_then_use_token(self, test_client, auth_headers):
        response = test_client.post("/auth/login", json={"email": "jane@example.com", "password": "secret123"})
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
        assert test_client.get("/state", headers=headers).json()["user"]["email"] == "jane@example.com"

    def test_requires_token(self, test_client):
        assert test_client.get("/board").status_code == 401
        assert test_client.get("/board", headers={"Authorization": "Bearer junk"}).status_code == 401

    def test_change_password(self, test_client, auth_headers):
        response = test_client.post(
            "/auth/change-password",
            json={"current_password": "secret123", "new_password": "better-secret"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        login = test_client.post("/auth/login", json={"email": "jane@example.com", "password": "better-secret"})
        assert login.status_code == 200

    def test_logout_drops_session(self, test_client, auth_headers):
        _quick_add(test_client, auth_headers, "Something")
        assert test_client.post("/auth/logout", headers=auth_headers).status_code == 200
        # The token is still valid; a fresh session reloads the same tasks
        board = test_client.get("/board", headers=auth_headers).json()
        assert board[0]["count"] == 1


class TestTaskEndpoints:
    """Test task mutations and projections."""

    def test_quick_add_returns_echoed_task(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "Call Jake tomorrow 3pm !high #work")
        assert task["text"] == "Call Jake"
        assert task["priority"] == "high"
        assert task["tags"] == ["work"]
        assert task["due_date"] == (date.today() + timedelta(days=1)).isoformat()
        assert task["due_time"] == "15:00:00"

    def test_quick_add_on_day(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "Party", day="2026-12-31")
        assert task["due_date"] == "2026-12-31"

    def test_quick_add_far_offset_keeps_text(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "x in 9999999 days")
        assert task["text"] == "x in 9999999 days"
        assert task["due_date"] is None

    def test_create_task_validation(self, test_client, auth_headers):
        response = test_client.post("/tasks", json={"text": "  "}, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "InvalidTask"

    def test_create_and_board(self, test_client, auth_headers):
        response = test_client.post(
            "/tasks", json={"text": "Ship it", "status": "today", "tags": ["eng"]}, headers=auth_headers
        )
        assert response.status_code == 201

        board = test_client.get("/board", headers=auth_headers).json()
        assert [c["status"] for c in board] == ["backlog", "today", "inprogress", "done"]
        assert board[1]["count"] == 1
        assert board[1]["cards"][0]["task"]["text"] == "Ship it"

    def test_patch_task(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "Draft")
        response = test_client.patch(f"/tasks/{task['id']}", json={"priority": "low"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["task"]["priority"] == "low"
        assert response.json()["task"]["text"] == "Draft"

    @pytest.mark.parametrize("field", ["status", "priority", "order"])
    def test_patch_null_required_field_is_rejected(self, test_client, auth_headers, field):
        task = _quick_add(test_client, auth_headers, "Draft")
        response = test_client.patch(f"/tasks/{task['id']}", json={field: None}, headers=auth_headers)
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "InvalidTask"
        assert detail["message"] == f"Task {field} cannot be empty"
        assert detail["retry"] is False

        current = test_client.get("/list", headers=auth_headers).json()[0]
        assert current["status"] == "backlog"
        assert current["priority"] == "normal"

    def test_patch_null_tags_clears_them(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "Draft #a")
        response = test_client.patch(f"/tasks/{task['id']}", json={"tags": None}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["task"]["tags"] == []

    def test_patch_unknown_task(self, test_client, auth_headers):
        response = test_client.patch("/tasks/missing", json={"text": "x"}, headers=auth_headers)
        assert response.status_code == 404

    def test_move_task(self, test_client, auth_headers):
        a = _quick_add(test_client, auth_headers, "a")
        b = _quick_add(test_client, auth_headers, "b")

        response = test_client.post(
            f"/tasks/{b['id']}/move", json={"status": "backlog", "index": 0}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["task"]["order"] == a["order"] / 2

        board = test_client.get("/board", headers=auth_headers).json()
        assert [card["task"]["text"] for card in board[0]["cards"]] == ["b", "a"]

    def test_subtasks(self, test_client, auth_headers):
        parent = _quick_add(test_client, auth_headers, "Parent")
        response = test_client.post(f"/tasks/{parent['id']}/subtasks", json={}, headers=auth_headers)
        assert response.status_code == 201
        sub = response.json()["task"]
        assert sub["text"] == "New subtask"
        assert sub["parent_id"] == parent["id"]

        test_client.post(f"/tasks/{sub['id']}/toggle", json={"done": True}, headers=auth_headers)
        card = test_client.get("/board", headers=auth_headers).json()[0]["cards"][0]
        assert (card["subtasks_done"], card["subtasks_total"]) == (1, 1)
        assert len(test_client.get("/list", headers=auth_headers).json()) == 1

    def test_delete_and_undo(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "Doomed #x")

        response = test_client.delete(f"/tasks/{task['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["task"] is None

        undo = test_client.post("/undo", headers=auth_headers).json()
        assert undo["outcome"] == "reverted"
        assert undo["notification"]["message"] == "Undo: Task restored"

        tasks = test_client.get("/list", headers=auth_headers).json()
        assert [(t["text"], t["tags"]) for t in tasks] == [("Doomed", ["x"])]

        assert test_client.post("/undo", headers=auth_headers).json()["outcome"] == "nothing"

    def test_list_filters(self, test_client, auth_headers):
        _quick_add(test_client, auth_headers, "urgent !high")
        _quick_add(test_client, auth_headers, "whenever !low")

        tasks = test_client.get("/list", params={"priority": "high"}, headers=auth_headers).json()
        assert [t["text"] for t in tasks] == ["urgent"]
        state = test_client.get("/state", headers=auth_headers).json()
        assert state["priority_filter"] == "high"

    def test_calendar(self, test_client, auth_headers):
        _quick_add(test_client, auth_headers, "Dentist today")
        month = test_client.get("/calendar", headers=auth_headers).json()
        assert len(month["cells"]) == 42
        today = next(c for c in month["cells"] if c["is_today"])
        assert [t["text"] for t in today["tasks"]] == ["Dentist"]

        moved = test_client.post("/calendar/next", headers=auth_headers).json()
        assert (moved["year"], moved["month"]) != (month["year"], month["month"])

    def test_state_update(self, test_client, auth_headers):
        task = _quick_add(test_client, auth_headers, "Pick me")
        response = test_client.patch(
            "/state", json={"current_view": "list", "selected_task_id": task["id"]}, headers=auth_headers
        )
        assert response.status_code == 200
        state = response.json()
        assert state["current_view"] == "list"
        assert state["selected_task"]["id"] == task["id"]

    def test_command_palette(self, test_client, auth_headers):
        commands = test_client.get("/commands", params={"search": "view"}, headers=auth_headers).json()
        assert [c["id"] for c in commands] == ["kanban", "list", "calendar"]

        state = test_client.post("/commands/calendar", headers=auth_headers).json()
        assert state["current_view"] == "calendar"

        assert test_client.post("/commands/nope", headers=auth_headers).status_code == 404

    def test_offline_rejects_writes(self, test_client, auth_headers):
        state = test_client.post("/connectivity", json={"online": False}, headers=auth_headers).json()
        assert state["online"] is False

        response = test_client.post("/tasks/quick-add", json={"text": "Nope"}, headers=auth_headers)
        assert response.status_code == 503
        assert response.json()["detail"]["message"] == "Cannot create task while offline"

        undo = test_client.post("/undo", headers=auth_headers).json()
        assert undo["outcome"] == "nothing"
