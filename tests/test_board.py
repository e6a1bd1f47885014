# tests/test_board.py
import pytest
import requests

from app.client.api import ApiError, TaskApiClient
from app.client.board import (
    BoardStore, DELETE_TASK, REORDER_TASKS, SET_TASKS, SET_SELECTED_TASK, UPDATE_TASK,
    get_column, initial_state, resolve_drop_target, task_reducer,
)
from conftest import create_task


def make_task(task_id, title, status="TODO", order=0):
    return {"id": task_id, "title": title, "status": status, "order": order}


def titles(state, status="TODO"):
    return [t["title"] for t in get_column(state, status)]


@pytest.fixture
def state():
    tasks = [
        make_task(1, "A", order=0),
        make_task(2, "B", order=1),
        make_task(3, "C", order=2),
        make_task(4, "X", status="IN_PROGRESS", order=0),
    ]
    return task_reducer(initial_state(), {"type": SET_TASKS, "payload": tasks})


class UnreachableSession:
    """Session whose every request fails at the transport level"""

    def __init__(self):
        self.calls = 0

    def request(self, method, url, **kwargs):
        self.calls += 1
        raise requests.ConnectionError("connection refused")


# -------------------- reducer --------------------

def test_set_tasks_derives_sorted_columns():
    tasks = [make_task(2, "second", order=1), make_task(1, "first", order=0), make_task(3, "done", "DONE")]
    state = task_reducer(initial_state(), {"type": SET_TASKS, "payload": tasks})

    assert [c["id"] for c in state["columns"]] == ["TODO", "IN_PROGRESS", "DONE"]
    assert titles(state) == ["first", "second"]
    assert titles(state, "IN_PROGRESS") == []
    assert titles(state, "DONE") == ["done"]


def test_reorder_within_column(state):
    new_state = task_reducer(state, {"type": REORDER_TASKS, "payload": {"task_id": 3, "dest_index": 0}})

    assert titles(new_state) == ["C", "A", "B"]
    assert [t["order"] for t in get_column(new_state, "TODO")] == [0, 1, 2]
    # the previous state is untouched
    assert titles(state) == ["A", "B", "C"]


def test_reorder_across_columns(state):
    new_state = task_reducer(state, {
        "type": REORDER_TASKS,
        "payload": {"task_id": 1, "dest_column": "IN_PROGRESS", "dest_index": 0},
    })

    assert titles(new_state) == ["B", "C"]
    assert titles(new_state, "IN_PROGRESS") == ["A", "X"]
    assert [t["order"] for t in get_column(new_state, "TODO")] == [0, 1]
    assert [t["order"] for t in get_column(new_state, "IN_PROGRESS")] == [0, 1]


def test_reorder_unknown_task_is_noop(state):
    assert task_reducer(state, {"type": REORDER_TASKS, "payload": {"task_id": 99, "dest_index": 0}}) is state


def test_delete_closes_gap_and_clears_selection(state):
    state = task_reducer(state, {"type": SET_SELECTED_TASK, "payload": make_task(2, "B", order=1)})
    new_state = task_reducer(state, {"type": DELETE_TASK, "payload": 2})

    assert [(t["title"], t["order"]) for t in get_column(new_state, "TODO")] == [("A", 0), ("C", 1)]
    assert new_state["selected_task"] is None


def test_update_refreshes_selected_task(state):
    state = task_reducer(state, {"type": SET_SELECTED_TASK, "payload": make_task(1, "A")})
    updated = make_task(1, "A renamed")
    new_state = task_reducer(state, {"type": UPDATE_TASK, "payload": updated})

    assert new_state["selected_task"] == updated
    assert titles(new_state)[0] == "A renamed"


def test_unknown_action_returns_same_state(state):
    assert task_reducer(state, {"type": "NOPE"}) is state


# -------------------- drop target --------------------

def test_drop_on_column_appends(state):
    assert resolve_drop_target(state, 1, "IN_PROGRESS") == ("IN_PROGRESS", 1)
    assert resolve_drop_target(state, 1, "DONE") == ("DONE", 0)


def test_drop_on_task_takes_its_index(state):
    assert resolve_drop_target(state, 3, 1) == ("TODO", 0)
    assert resolve_drop_target(state, 1, 4) == ("IN_PROGRESS", 0)


def test_drop_nowhere(state):
    assert resolve_drop_target(state, 1, None) is None
    assert resolve_drop_target(state, 1, 99) is None
    assert resolve_drop_target(state, 99, "TODO") is None


# -------------------- store --------------------

def test_failed_reorder_rolls_back(state):
    session = UnreachableSession()
    store = BoardStore(TaskApiClient("http://api.invalid", token="t", session=session), state=state)
    seen = []
    store.subscribe(lambda s: seen.append(titles(s)))

    with pytest.raises(ApiError):
        store.reorder_task(3, 0)

    assert session.calls == 1
    # optimistic move was visible before the request failed
    assert ["C", "A", "B"] in seen
    assert titles(store.state) == ["A", "B", "C"]
    assert store.state["tasks"] == state["tasks"]
    assert "Network error" in store.state["error"]


def test_drag_end_swallows_api_errors(state):
    store = BoardStore(TaskApiClient("http://api.invalid", session=UnreachableSession()), state=state)

    assert store.handle_drag_end(1, "DONE") is None
    assert titles(store.state, "DONE") == []
    assert store.state["error"]


def test_drag_onto_own_position_skips_request(state):
    session = UnreachableSession()
    store = BoardStore(TaskApiClient("http://api.invalid", session=session), state=state)

    assert store.handle_drag_end(1, 1) is None
    assert session.calls == 0


def test_unsubscribe(state):
    store = BoardStore(TaskApiClient("http://api.invalid", session=UnreachableSession()), state=state)
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.set_filters(search="bug")
    unsubscribe()
    store.clear_error()

    assert len(seen) == 1
    assert store.state["filters"] == {"search": "bug"}


def test_store_against_server(client, alice, team):
    for title in "ABC":
        create_task(client, alice, team["id"], title)

    api = TaskApiClient("http://testserver", session=client)
    api.login("alice@example.com", "password123")
    store = BoardStore(api)

    store.fetch_tasks(team["id"])
    assert titles(store.state) == ["A", "B", "C"]
    assert store.state["current_team_id"] == team["id"]
    assert store.state["loading"] is False

    c = get_column(store.state, "TODO")[2]
    a = get_column(store.state, "TODO")[0]
    moved = store.handle_drag_end(c["id"], a["id"])

    assert moved["order"] == 0
    assert titles(store.state) == ["C", "A", "B"]

    store.fetch_tasks(team["id"])
    assert [(t["title"], t["order"]) for t in get_column(store.state, "TODO")] == [("C", 0), ("A", 1), ("B", 2)]

    store.handle_drag_end(a["id"], "DONE")
    assert titles(store.state) == ["C", "B"]
    assert titles(store.state, "DONE") == ["A"]

    created = store.create_task({"title": "D", "teamId": team["id"]})
    assert created["order"] == 2
    store.delete_task(created["id"])
    assert titles(store.state) == ["C", "B"]


def test_store_rolls_back_rejected_reorder(client, alice, bob, team):
    create_task(client, alice, team["id"], "A")
    create_task(client, alice, team["id"], "B")

    api = TaskApiClient("http://testserver", session=client)
    api.login("bob@example.com", "password123")
    store = BoardStore(api)
    store.fetch_tasks(team["id"])

    b = get_column(store.state, "TODO")[1]
    with pytest.raises(ApiError) as exc_info:
        store.reorder_task(b["id"], 0)

    assert exc_info.value.status_code == 403
    assert titles(store.state) == ["A", "B"]
    assert store.state["error"] == "You do not have permission to reorder this task"


def test_client_surfaces_error_envelope(client, alice):
    api = TaskApiClient("http://testserver", session=client)
    with pytest.raises(ApiError) as exc_info:
        api.login("alice@example.com", "bad-password")
    assert exc_info.value.status_code == 401
    assert api.token is None

    api.login("alice@example.com", "password123")
    dashboard = api.get_dashboard(important_tasks_limit=3)
    assert dashboard["activeTeams"] == 0


def test_update_status_change_mirrors_server_columns(client, alice, team):
    for title in "ABC":
        create_task(client, alice, team["id"], title)

    api = TaskApiClient("http://testserver", session=client)
    api.login("alice@example.com", "password123")
    store = BoardStore(api)
    store.fetch_tasks(team["id"])

    a, b, c = get_column(store.state, "TODO")
    updated = store.update_task(b["id"], {"status": "DONE"})
    assert (updated["status"], updated["order"]) == ("DONE", 0)

    local = [(t["title"], t["order"]) for t in get_column(store.state, "TODO")]
    assert local == [("A", 0), ("C", 1)]

    server = api.get_tasks(teamId=team["id"], status="TODO", sortBy="order")["tasks"]
    assert [(t["title"], t["order"]) for t in server] == local

    # C already sits where it is dropped, so no request is made
    assert store.handle_drag_end(c["id"], c["id"]) is None


def test_update_with_new_order_renumbers_column(state):
    moved = make_task(1, "A", order=2)
    new_state = task_reducer(state, {"type": UPDATE_TASK, "payload": moved})

    assert [(t["title"], t["order"]) for t in get_column(new_state, "TODO")] == [("B", 0), ("C", 1), ("A", 2)]


def test_fetch_uses_stored_filters(client, alice, team):
    create_task(client, alice, team["id"], "Fix login bug")
    create_task(client, alice, team["id"], "Write docs")

    api = TaskApiClient("http://testserver", session=client)
    api.login("alice@example.com", "password123")
    store = BoardStore(api)

    store.set_filters(search="login")
    store.fetch_tasks(team["id"])
    assert titles(store.state) == ["Fix login bug"]

    store.fetch_tasks(team["id"], search="docs")
    assert titles(store.state) == ["Write docs"]


def test_client_get_task_and_dashboard(client, alice, team):
    task = create_task(client, alice, team["id"], "Ship it", priority="HIGH", assigneeId=alice["user"]["id"])

    api = TaskApiClient("http://testserver", session=client)
    api.login("alice@example.com", "password123")

    fetched = api.get_task(task["id"])
    assert fetched["title"] == "Ship it"
    assert fetched["assignee"]["username"] == "alice"

    with pytest.raises(ApiError) as exc_info:
        api.get_task(999)
    assert exc_info.value.status_code == 404

    dashboard = api.get_dashboard(important_tasks_limit=1)
    assert dashboard["totalTasks"] == 1
    assert dashboard["activeTeams"] == 1
    assert [t["title"] for t in dashboard["importantTasks"]] == ["Ship it"]
