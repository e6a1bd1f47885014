# app/client/board.py
"""
Client-side Kanban board state.

The board keeps a flat list of tasks (API dicts with camelCase keys) and
three columns derived from it. ``task_reducer`` is a pure function from
(state, action) to a new state; ``BoardStore`` holds the current state and
is the only place that replaces it. Drag-and-drop moves are applied
optimistically and rolled back to a snapshot if the server rejects them.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from app.client.api import ApiError, TaskApiClient

logger = logging.getLogger(__name__)

STATUSES: Tuple[str, ...] = ("TODO", "IN_PROGRESS", "DONE")
COLUMN_TITLES: Dict[str, str] = {"TODO": "To Do", "IN_PROGRESS": "In Progress", "DONE": "Done"}

# Action types
SET_LOADING = "SET_LOADING"
SET_ERROR = "SET_ERROR"
SET_TASKS = "SET_TASKS"
ADD_TASK = "ADD_TASK"
UPDATE_TASK = "UPDATE_TASK"
DELETE_TASK = "DELETE_TASK"
SET_FILTERS = "SET_FILTERS"
SET_SELECTED_TASK = "SET_SELECTED_TASK"
SET_CURRENT_TEAM_ID = "SET_CURRENT_TEAM_ID"
REORDER_TASKS = "REORDER_TASKS"
RESTORE_SNAPSHOT = "RESTORE_SNAPSHOT"

Task = Dict[str, Any]
State = Dict[str, Any]
Action = Mapping[str, Any]


def sort_key(task: Task) -> Tuple[int, int]:
    # Same tie-break as the server: order, then id
    return task["order"], task["id"]


def derive_columns(tasks: List[Task]) -> List[Dict[str, Any]]:
    return [
        {
            "id": status,
            "title": COLUMN_TITLES[status],
            "tasks": sorted((t for t in tasks if t["status"] == status), key=sort_key),
        }
        for status in STATUSES
    ]


def initial_state() -> State:
    return {
        "tasks": [],
        "columns": derive_columns([]),
        "loading": False,
        "error": None,
        "filters": {"search": ""},
        "selected_task": None,
        "current_team_id": None,
    }


def find_task(state: State, task_id) -> Optional[Task]:
    return next((t for t in state["tasks"] if t["id"] == task_id), None)


def get_column(state: State, status: str) -> List[Task]:
    return next(c["tasks"] for c in state["columns"] if c["id"] == status)


def _with_tasks(state: State, tasks: List[Task], **changes) -> State:
    return {**state, **changes, "tasks": tasks, "columns": derive_columns(tasks)}


def _renumbered(column: List[Task]) -> Dict[Any, Task]:
    return {t["id"]: {**t, "order": index} for index, t in enumerate(column)}


def _place(state: State, task: Task, dest_status: str, dest_index: int) -> State:
    """Splice ``task`` into ``dest_status`` at ``dest_index`` and renumber the columns it left and joined."""
    current = find_task(state, task["id"])
    source_status = current["status"]

    source = [t for t in get_column(state, source_status) if t["id"] != task["id"]]
    dest = source if dest_status == source_status else list(get_column(state, dest_status))

    index = max(0, min(dest_index, len(dest)))
    dest.insert(index, {**task, "status": dest_status})

    changed = _renumbered(dest)
    if dest is not source:
        changed.update(_renumbered(source))

    tasks = [changed.get(t["id"], t) for t in state["tasks"]]
    return _with_tasks(state, tasks)


def _reorder(state: State, payload: Mapping[str, Any]) -> State:
    task = find_task(state, payload["task_id"])
    if task is None:
        return state

    dest_status = payload.get("dest_column") or task["status"]
    if dest_status not in STATUSES:
        return state
    return _place(state, task, dest_status, payload["dest_index"])


def _update(state: State, task: Task) -> State:
    current = find_task(state, task["id"])
    if current is None:
        return state

    if current["status"] != task["status"] or current["order"] != task["order"]:
        # The server moved the task, so its old and new columns were renumbered there
        new_state = _place(state, task, task["status"], task["order"])
    else:
        tasks = [task if t["id"] == task["id"] else t for t in state["tasks"]]
        new_state = _with_tasks(state, tasks)

    selected = state["selected_task"]
    if selected and selected["id"] == task["id"]:
        new_state["selected_task"] = find_task(new_state, task["id"])
    return new_state


def task_reducer(state: State, action: Action) -> State:
    kind = action["type"]
    payload = action.get("payload")

    if kind == SET_LOADING:
        return {**state, "loading": payload}
    if kind == SET_ERROR:
        return {**state, "error": payload}
    if kind == SET_TASKS:
        return _with_tasks(state, list(payload))
    if kind == ADD_TASK:
        return _with_tasks(state, state["tasks"] + [payload])
    if kind == UPDATE_TASK:
        return _update(state, payload)
    if kind == DELETE_TASK:
        removed = find_task(state, payload)
        if removed is None:
            return state
        remaining = [t for t in state["tasks"] if t["id"] != payload]
        # The server closes the gap in the column, mirror it locally
        column = sorted((t for t in remaining if t["status"] == removed["status"]), key=sort_key)
        changed = _renumbered(column)
        tasks = [changed.get(t["id"], t) for t in remaining]
        selected = state["selected_task"]
        if selected and selected["id"] == payload:
            selected = None
        return _with_tasks(state, tasks, selected_task=selected)
    if kind == SET_FILTERS:
        return {**state, "filters": {**state["filters"], **payload}}
    if kind == SET_SELECTED_TASK:
        return {**state, "selected_task": payload}
    if kind == SET_CURRENT_TEAM_ID:
        return {**state, "current_team_id": payload}
    if kind == REORDER_TASKS:
        return _reorder(state, payload)
    if kind == RESTORE_SNAPSHOT:
        return {**state, "tasks": payload["tasks"], "columns": payload["columns"]}

    logger.warning(f"Unknown board action: {kind}")
    return state


def resolve_drop_target(state: State, active_id, over_id) -> Optional[Tuple[str, int]]:
    """(status, index) where a dragged task lands, or None for no drop.

    Dropping on a column appends to it; dropping on a task takes that
    task's position.
    """
    if over_id is None or find_task(state, active_id) is None:
        return None

    if over_id in STATUSES:
        return over_id, len(get_column(state, over_id))

    over_task = find_task(state, over_id)
    if over_task is None:
        return None
    column = get_column(state, over_task["status"])
    index = next(i for i, t in enumerate(column) if t["id"] == over_id)
    return over_task["status"], index


class BoardStore:
    """Holds the board state; ``dispatch`` is the only way to change it"""

    def __init__(self, api: TaskApiClient, state: Optional[State] = None):
        self.api = api
        self.state = state or initial_state()
        self._listeners: List[Callable[[State], None]] = []

    def subscribe(self, listener: Callable[[State], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> State:
        new_state = task_reducer(self.state, action)
        if new_state is not self.state:
            self.state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self.state

    def _fail(self, error: ApiError, fallback: str) -> None:
        self.dispatch({"type": SET_ERROR, "payload": error.message or fallback})

    # -------------------- remote operations --------------------
    def fetch_tasks(self, team_id: int, **filters) -> List[Task]:
        """Load a team's board using the stored filters, overridden by ``filters``"""
        query = {**self.state["filters"], **filters}
        self.dispatch({"type": SET_LOADING, "payload": True})
        self.dispatch({"type": SET_ERROR, "payload": None})
        try:
            result = self.api.get_tasks(teamId=team_id, **query, sortBy="order", sortOrder="asc", limit=100)
            self.dispatch({"type": SET_TASKS, "payload": result["tasks"]})
            self.dispatch({"type": SET_CURRENT_TEAM_ID, "payload": team_id})
            return result["tasks"]
        except ApiError as e:
            self._fail(e, "Failed to fetch tasks")
            raise
        finally:
            self.dispatch({"type": SET_LOADING, "payload": False})

    def create_task(self, data: dict) -> Task:
        self.dispatch({"type": SET_ERROR, "payload": None})
        try:
            task = self.api.create_task(data)
        except ApiError as e:
            self._fail(e, "Failed to create task")
            raise
        self.dispatch({"type": ADD_TASK, "payload": task})
        return task

    def update_task(self, task_id: int, data: dict) -> Task:
        self.dispatch({"type": SET_ERROR, "payload": None})
        try:
            task = self.api.update_task(task_id, data)
        except ApiError as e:
            self._fail(e, "Failed to update task")
            raise
        self.dispatch({"type": UPDATE_TASK, "payload": task})
        return task

    def delete_task(self, task_id: int) -> None:
        self.dispatch({"type": SET_ERROR, "payload": None})
        try:
            self.api.delete_task(task_id)
        except ApiError as e:
            self._fail(e, "Failed to delete task")
            raise
        self.dispatch({"type": DELETE_TASK, "payload": task_id})

    def reorder_task(self, task_id: int, new_order: int, new_status: Optional[str] = None) -> Task:
        """Move a task optimistically, then reconcile with the server's copy.

        On failure the board is restored to the snapshot taken before the
        move and the error is re-raised.
        """
        task = find_task(self.state, task_id)
        if task is None:
            raise ApiError("Task not found", 404)

        snapshot = {"tasks": self.state["tasks"], "columns": self.state["columns"]}
        status_change = new_status if new_status and new_status != task["status"] else None

        self.dispatch({"type": SET_ERROR, "payload": None})
        self.dispatch({
            "type": REORDER_TASKS,
            "payload": {"task_id": task_id, "dest_column": new_status, "dest_index": new_order},
        })

        try:
            updated = self.api.reorder_task(task_id, new_order, status_change)
        except ApiError as e:
            logger.warning(f"Reorder of task {task_id} rejected, restoring board: {e.message}")
            self.dispatch({"type": RESTORE_SNAPSHOT, "payload": snapshot})
            self._fail(e, "Failed to reorder task")
            raise

        self.dispatch({"type": UPDATE_TASK, "payload": updated})
        return updated

    def handle_drag_end(self, active_id, over_id) -> Optional[Task]:
        target = resolve_drop_target(self.state, active_id, over_id)
        if target is None:
            return None

        new_status, new_order = target
        task = find_task(self.state, active_id)
        if task["status"] == new_status and task["order"] == new_order:
            return None

        try:
            return self.reorder_task(active_id, new_order, new_status)
        except ApiError as e:
            logger.error(f"Failed to reorder task {active_id}: {e.message}")
            return None

    # -------------------- local state --------------------
    def set_filters(self, **filters) -> None:
        self.dispatch({"type": SET_FILTERS, "payload": filters})

    def set_selected_task(self, task: Optional[Task]) -> None:
        self.dispatch({"type": SET_SELECTED_TASK, "payload": task})

    def set_current_team_id(self, team_id: Optional[int]) -> None:
        self.dispatch({"type": SET_CURRENT_TEAM_ID, "payload": team_id})

    def clear_error(self) -> None:
        self.dispatch({"type": SET_ERROR, "payload": None})
