# app/routers/task.py
import logging
import math
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config.settings import AppConfig
from app.database import get_db
from app.models.task import Task, TaskStatus, TaskPriority
from app.models.team import TeamMember
from app.models.user import User
from app.schemas.task import TaskCreate, TaskUpdate, TaskReorder, TaskOut, TaskList, TaskStats, TaskQuery
from app.services.ordering import TaskOrdering, priority_rank
from app.utils.auth import get_current_user
from app.utils.permissions import require_membership, require_assignable, can_mutate_task, can_delete_task
from app.utils.responses import success

router = APIRouter()
logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "title": Task.title,
    "priority": priority_rank,
    "dueDate": Task.due_date,
    "order": Task.order,
}

# Nullable columns a client may clear explicitly
NULLABLE_FIELDS = {"description", "assignee_id", "due_date"}

def task_query_params(
    page: int = Query(1, ge=1),
    limit: int = Query(AppConfig.TASKS_DEFAULT_LIMIT, ge=1, le=AppConfig.TASKS_MAX_LIMIT),
    search: Optional[str] = None,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    assignee_id: Optional[int] = Query(None, alias="assigneeId"),
    creator_id: Optional[int] = Query(None, alias="creatorId"),
    team_id: Optional[int] = Query(None, alias="teamId"),
    sort_by: Literal["createdAt", "updatedAt", "title", "priority", "dueDate", "order"] = Query("order", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    due_from: Optional[datetime] = Query(None, alias="dueFrom"),
    due_to: Optional[datetime] = Query(None, alias="dueTo"),
) -> TaskQuery:
    return TaskQuery(
        page=page, limit=limit, search=search, status=status_filter, priority=priority,
        assignee_id=assignee_id, creator_id=creator_id, team_id=team_id,
        sort_by=sort_by, sort_order=sort_order, due_from=due_from, due_to=due_to,
    )

def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task

@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a task at the end of its (team, status) column"""
    require_membership(db, current_user.id, payload.team_id)
    require_assignable(db, payload.assignee_id, payload.team_id)

    ordering = TaskOrdering(db)
    ordering.lock_team(payload.team_id)

    db_task = Task(
        **payload.model_dump(),
        creator_id=current_user.id,
        order=ordering.next_order(payload.team_id, payload.status),
    )
    db.add(db_task)
    db.commit()
    db.refresh(db_task)

    logger.info(f"Task {db_task.id} created in team {db_task.team_id} ({db_task.status.value}, order {db_task.order})")
    return success(TaskOut.model_validate(db_task), "Task created successfully", status.HTTP_201_CREATED)

@router.get("")
def get_tasks(
    query: TaskQuery = Depends(task_query_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Paginated task list scoped to the caller's teams"""
    if query.team_id is not None:
        require_membership(db, current_user.id, query.team_id)
        tasks_query = db.query(Task).filter(Task.team_id == query.team_id)
    else:
        team_ids = [row.team_id for row in db.query(TeamMember.team_id).filter(TeamMember.user_id == current_user.id)]
        if not team_ids:
            empty = TaskList(tasks=[], total=0, page=query.page, total_pages=0)
            return success(empty, "Tasks retrieved successfully")
        tasks_query = db.query(Task).filter(Task.team_id.in_(team_ids))

    if query.status:
        tasks_query = tasks_query.filter(Task.status == query.status)
    if query.priority:
        tasks_query = tasks_query.filter(Task.priority == query.priority)
    if query.assignee_id is not None:
        tasks_query = tasks_query.filter(Task.assignee_id == query.assignee_id)
    if query.creator_id is not None:
        tasks_query = tasks_query.filter(Task.creator_id == query.creator_id)
    if query.due_from:
        tasks_query = tasks_query.filter(Task.due_date >= query.due_from)
    if query.due_to:
        tasks_query = tasks_query.filter(Task.due_date <= query.due_to)
    if query.search:
        pattern = f"%{query.search}%"
        tasks_query = tasks_query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))

    total = tasks_query.count()

    sort_column = SORT_COLUMNS[query.sort_by]
    primary = sort_column.desc() if query.sort_order == "desc" else sort_column.asc()
    tasks = tasks_query.order_by(primary, Task.id.asc()).offset((query.page - 1) * query.limit).limit(query.limit).all()

    result = TaskList(
        tasks=[TaskOut.model_validate(task) for task in tasks],
        total=total,
        page=query.page,
        total_pages=math.ceil(total / query.limit),
    )
    return success(result, "Tasks retrieved successfully")

@router.get("/stats/{team_id}")
def get_task_stats(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Task counters for one team"""
    require_membership(db, current_user.id, team_id)

    team_tasks = db.query(Task).filter(Task.team_id == team_id)
    stats = TaskStats(
        total=team_tasks.count(),
        todo=team_tasks.filter(Task.status == TaskStatus.TODO).count(),
        in_progress=team_tasks.filter(Task.status == TaskStatus.IN_PROGRESS).count(),
        done=team_tasks.filter(Task.status == TaskStatus.DONE).count(),
        overdue=team_tasks.filter(
            Task.due_date < datetime.utcnow(),
            Task.status != TaskStatus.DONE
        ).count(),
        high_priority=team_tasks.filter(Task.priority == TaskPriority.HIGH).count(),
        my_tasks=team_tasks.filter(
            or_(Task.creator_id == current_user.id, Task.assignee_id == current_user.id)
        ).count(),
    )
    return success(stats, "Task statistics retrieved successfully")

@router.get("/{task_id}")
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = get_task_or_404(db, task_id)
    require_membership(db, current_user.id, task.team_id)
    return success(TaskOut.model_validate(task), "Task retrieved successfully")

@router.put("/{task_id}")
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Partial update - creator, assignee or team admin"""
    task = get_task_or_404(db, task_id)
    membership = require_membership(db, current_user.id, task.team_id)
    if not can_mutate_task(current_user, task, membership):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have permission to edit this task")

    update_data = task_update.model_dump(exclude_unset=True)
    if update_data.get("assignee_id") is not None:
        require_assignable(db, update_data["assignee_id"], task.team_id)

    new_status = update_data.pop("status", None)
    new_order = update_data.pop("order", None)
    if new_order is not None or (new_status is not None and new_status != task.status):
        # Position changes go through the ordering model so the columns stay dense
        ordering = TaskOrdering(db)
        ordering.lock_team(task.team_id)
        db.refresh(task)
        ordering.move(task, new_order, new_status)

    for field, value in update_data.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(task, field, value)

    db.commit()
    db.refresh(task)

    logger.info(f"Task {task.id} updated by user {current_user.id}: {sorted(task_update.model_fields_set)}")
    return success(TaskOut.model_validate(task), "Task updated successfully")

@router.put("/{task_id}/reorder")
def reorder_task(
    task_id: int,
    payload: TaskReorder,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Move a task to index ``newOrder`` of its column, or of ``newStatus``'s column"""
    task = get_task_or_404(db, task_id)
    membership = require_membership(db, current_user.id, task.team_id)
    if not can_mutate_task(current_user, task, membership):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have permission to reorder this task")

    ordering = TaskOrdering(db)
    ordering.lock_team(task.team_id)
    db.refresh(task)
    ordering.move(task, payload.new_order, payload.new_status)

    db.commit()
    db.refresh(task)

    logger.info(f"Task {task.id} reordered to {task.status.value}[{task.order}] by user {current_user.id}")
    return success(TaskOut.model_validate(task), "Task reordered successfully")

@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Delete a task - creator or team admin"""
    task = get_task_or_404(db, task_id)
    membership = require_membership(db, current_user.id, task.team_id)
    if not can_delete_task(current_user, task, membership):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have permission to delete this task")

    team_id, task_status = task.team_id, task.status
    ordering = TaskOrdering(db)
    ordering.lock_team(team_id)
    db.delete(task)
    db.flush()
    ordering.compact(team_id, task_status)
    db.commit()

    logger.info(f"Task {task_id} deleted by user {current_user.id}")
    return success(message="Task deleted successfully")
