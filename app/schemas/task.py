# app/schemas/task.py
from pydantic import AfterValidator, Field
from datetime import datetime
from typing import Annotated, Literal, Optional, List
from app.models.task import TaskStatus, TaskPriority
from app.schemas.base import ApiModel
from app.schemas.user import UserSummary

def _title_not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("Title cannot be empty")
    return v

TaskTitle = Annotated[str, Field(min_length=1, max_length=200), AfterValidator(_title_not_blank)]

class TaskCreate(ApiModel):
    title: TaskTitle
    description: Optional[str] = Field(default=None, max_length=2000)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    assignee_id: Optional[int] = None
    due_date: Optional[datetime] = None
    team_id: int

class TaskUpdate(ApiModel):
    title: Optional[TaskTitle] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    assignee_id: Optional[int] = None
    order: Optional[int] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None

class TaskReorder(ApiModel):
    new_order: int = Field(ge=0)
    new_status: Optional[TaskStatus] = None

class TeamRef(ApiModel):
    id: int
    name: str

class TaskOut(ApiModel):
    id: int
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    order: int
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    team_id: int
    creator_id: int
    assignee_id: Optional[int] = None
    creator: UserSummary
    assignee: Optional[UserSummary] = None
    team: TeamRef

class TaskList(ApiModel):
    tasks: List[TaskOut]
    total: int
    page: int
    total_pages: int

class TaskStats(ApiModel):
    total: int
    todo: int
    in_progress: int
    done: int
    overdue: int
    high_priority: int
    my_tasks: int

class DashboardStats(ApiModel):
    total_tasks: int
    completed_tasks: int
    active_teams: int
    important_tasks: List[TaskOut]

class TaskQuery(ApiModel):
    page: int = 1
    limit: int = 20
    search: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[int] = None
    creator_id: Optional[int] = None
    team_id: Optional[int] = None
    sort_by: Literal["createdAt", "updatedAt", "title", "priority", "dueDate", "order"] = "order"
    sort_order: Literal["asc", "desc"] = "asc"
    due_from: Optional[datetime] = None
    due_to: Optional[datetime] = None
