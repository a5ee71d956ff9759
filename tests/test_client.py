"""Tests for the client session, HTTP client and task board."""

from datetime import date, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from api.middleware.rate_limiter import limiter
from client.api_client import TaskBoardClient
from client.board import NoticeLevel, TaskBoard, is_overdue, parse_filter
from client.session import SessionStore
from config import get_settings_for_testing
from exceptions import (
    ApiConnectionError,
    AuthError,
    ConflictError,
    NotFoundError,
    RateLimitError,
)
from models import Task, TaskCreate, TaskPatch, TaskStatus


@pytest.fixture(name="session")
def session_fixture(tmp_path):
    return SessionStore(tmp_path / "session.json")


@pytest.fixture(name="api")
def api_fixture(client: TestClient, session: SessionStore):
    return TaskBoardClient(session, http=client)


@pytest.fixture(name="strict_auth_limit")
def strict_auth_limit_fixture(monkeypatch):
    """Enforce one auth request per minute for the duration of a test."""
    monkeypatch.setattr(
        "api.middleware.rate_limiter.get_settings",
        lambda: get_settings_for_testing(auth_rate_limit="1/minute")
    )
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(name="notices")
def notices_fixture():
    return []


@pytest.fixture(name="board")
def board_fixture(api: TaskBoardClient, registration: dict, notices: list):
    api.register(**registration)
    return TaskBoard(api, notify=lambda level, message: notices.append((level, message)))


def seed(board: TaskBoard) -> dict:
    """Create one task per status, with the in-progress one flagged done."""
    ids = {}
    for status, completed in [("pending", False), ("in-progress", True), ("completed", False)]:
        task = board.add({
            "title": f"{status} task",
            "description": "",
            "dueDate": "2024-05-01",
            "status": status,
            "completed": completed,
        })
        ids[status] = task.id
    return ids


# =============================================================================
# Session store
# =============================================================================

class TestSessionStore:
    def test_token_survives_a_new_instance(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        SessionStore(path).login("abc.def.ghi")

        restored = SessionStore(path)
        assert restored.token is None
        assert restored.load() == "abc.def.ghi"
        assert restored.is_authenticated

    def test_logout_clears_memory_and_disk(self, session: SessionStore):
        session.login("abc.def.ghi")
        session.logout()

        assert not session.is_authenticated
        assert not session.path.exists()
        assert session.load() is None

    def test_corrupt_file_loads_as_logged_out(self, session: SessionStore):
        session.path.write_text("{not json", encoding="utf-8")

        assert session.load() is None
        assert not session.is_authenticated


# =============================================================================
# HTTP client
# =============================================================================

class TestTaskBoardClient:
    def test_register_stores_token_and_authenticates_calls(
        self, api: TaskBoardClient, session: SessionStore, registration: dict
    ):
        api.register(**registration)

        assert session.is_authenticated
        assert api.me().email == registration["email"]

    def test_login_replaces_stored_token(
        self, api: TaskBoardClient, session: SessionStore, registration: dict
    ):
        api.register(**registration)
        session.logout()

        token = api.login(registration["email"], registration["password"])

        assert session.token == token

    def test_errors_map_back_to_exceptions(self, api: TaskBoardClient, registration: dict):
        api.register(**registration)

        with pytest.raises(ConflictError):
            api.register(**registration)
        with pytest.raises(NotFoundError) as exc_info:
            api.fetch_task("missing")
        assert exc_info.value.message == "Task not found"
        assert exc_info.value.details["status_code"] == 404

    def test_calls_without_token_raise_auth_error(self, api: TaskBoardClient):
        with pytest.raises(AuthError):
            api.fetch_tasks()

    def test_patch_sends_only_supplied_fields(self, api: TaskBoardClient, registration: dict):
        api.register(**registration)
        task = api.create_task(TaskCreate(title="Plan", description="Q3", due_date="2024-07-01"))

        updated = api.update_task(task.id, TaskPatch(priority="high"))

        assert updated.priority.value == "high"
        assert updated.title == "Plan"
        assert api.delete_task(task.id) == "Task deleted successfully"

    def test_unreachable_server_raises_connection_error(self, session: SessionStore):
        def refuse(request: httpx.Request):
            raise httpx.ConnectError("Connection refused", request=request)

        http = httpx.Client(base_url="http://api.invalid", transport=httpx.MockTransport(refuse))
        api = TaskBoardClient(session, http=http)

        with pytest.raises(ApiConnectionError):
            api.login("a@b.com", "secret1")

    def test_rate_limited_login_raises_rate_limit_error(
        self, api: TaskBoardClient, registration: dict, strict_auth_limit
    ):
        api.register(**registration)
        api.login(registration["email"], registration["password"])
        with pytest.raises(RateLimitError) as exc_info:
            api.login(registration["email"], registration["password"])

        assert exc_info.value.details["status_code"] == 429
        assert exc_info.value.message.startswith("Too many requests")


# =============================================================================
# Task board
# =============================================================================

class TestTaskBoard:
    def test_filters_never_requery_the_server(self, board: TaskBoard, api: TaskBoardClient, monkeypatch):
        ids = seed(board)

        def fail():
            raise AssertionError("filtering must not call the API")

        monkeypatch.setattr(api, "fetch_tasks", fail)

        board.set_filter("all")
        assert len(board.visible()) == 3
        board.set_filter("in-progress")
        assert [t.id for t in board.visible()] == [ids["in-progress"]]
        board.set_filter("pending")
        assert [t.id for t in board.visible()] == [ids["pending"]]

    def test_completed_filter_uses_the_done_flag(self, board: TaskBoard):
        ids = seed(board)

        board.set_filter("completed")

        assert [t.id for t in board.visible()] == [ids["in-progress"]]

    def test_unknown_filter_is_rejected(self):
        with pytest.raises(ValueError):
            parse_filter("todo")

    def test_load_replaces_local_list(self, board: TaskBoard, api: TaskBoardClient):
        api.create_task(TaskCreate(title="Made elsewhere", description="", due_date="2024-01-01"))

        assert board.tasks == []
        assert board.load()
        assert [t.title for t in board.tasks] == ["Made elsewhere"]

    def test_mutations_follow_server_confirmation(self, board: TaskBoard, notices: list):
        task = board.add({"title": "Buy milk", "description": "2%", "dueDate": "2024-01-01"})
        assert board.tasks == [task]

        updated = board.edit(task.id, {"status": "completed"})
        assert board.tasks[0].status == TaskStatus.COMPLETED
        assert board.tasks[0] == updated

        assert board.remove(task.id)
        assert board.tasks == []

        assert [level for level, _ in notices] == [NoticeLevel.SUCCESS] * 3
        assert board.loading == {"create": False, "update": False, "delete": False}

    def test_failed_action_leaves_list_untouched_and_notifies(self, board: TaskBoard, notices: list):
        task = board.add({"title": "Buy milk", "description": "2%", "dueDate": "2024-01-01"})
        notices.clear()

        assert board.edit(task.id, {"status": "todo"}) is None
        assert board.remove("missing") is False

        assert board.tasks == [task]
        assert [level for level, _ in notices] == [NoticeLevel.ERROR] * 2
        assert notices[1][1] == "Failed to delete task: Task not found"
        assert board.loading["delete"] is False

    def test_invalid_local_input_is_reported_not_sent(self, board: TaskBoard, notices: list):
        assert board.add({"title": "", "description": "", "dueDate": "2024-01-01"}) is None
        assert notices[-1][0] == NoticeLevel.ERROR
        assert board.loading["create"] is False

    def test_rejected_token_forces_logout(self, board: TaskBoard, session: SessionStore, notices: list):
        board.add({"title": "Buy milk", "description": "2%", "dueDate": "2024-01-01"})
        session.login("stale.or.forged")

        assert board.load() is False

        assert not session.is_authenticated
        assert not session.path.exists()
        assert board.tasks == []
        assert notices[-1][0] == NoticeLevel.ERROR


def make_task(due: date, completed: bool = False) -> Task:
    return Task(id="t1", title="Report", description="", due_date=due, completed=completed)


class TestOverdue:
    TODAY = date(2024, 6, 15)

    def test_past_due_and_not_done_is_overdue(self):
        assert is_overdue(make_task(self.TODAY - timedelta(days=1)), today=self.TODAY)

    def test_due_today_is_not_overdue(self):
        assert not is_overdue(make_task(self.TODAY), today=self.TODAY)

    def test_done_task_is_never_overdue(self):
        task = make_task(self.TODAY - timedelta(days=30), completed=True)
        assert not is_overdue(task, today=self.TODAY)

    def test_board_lists_overdue_tasks(self, board: TaskBoard):
        late = board.add({"title": "Late", "description": "", "dueDate": "2024-06-14"})
        board.add({"title": "On time", "description": "", "dueDate": "2024-06-15"})
        board.add({"title": "Done", "description": "", "dueDate": "2024-06-01", "completed": True})

        assert board.overdue(today=self.TODAY) == [late]
