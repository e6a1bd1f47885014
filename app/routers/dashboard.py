# app/routers/dashboard.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.settings import AppConfig
from app.database import get_db
from app.models import User, Task, TeamMember
from app.models.task import TaskStatus
from app.schemas.task import TaskOut, DashboardStats
from app.services.ordering import priority_rank
from app.utils.auth import get_current_user
from app.utils.responses import success

router = APIRouter()

ACTIVE_STATUSES = (TaskStatus.TODO, TaskStatus.IN_PROGRESS)

@router.get("/dashboard")
def get_dashboard_stats(
    important_tasks_limit: int = Query(
        AppConfig.IMPORTANT_TASKS_DEFAULT_LIMIT,
        alias="importantTasksLimit",
        ge=1,
        le=AppConfig.IMPORTANT_TASKS_MAX_LIMIT,
    ),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Personal overview: assigned/completed counts, team count and the most important open tasks"""
    team_ids = [row.team_id for row in db.query(TeamMember.team_id).filter(TeamMember.user_id == current_user.id)]

    if not team_ids:
        empty = DashboardStats(total_tasks=0, completed_tasks=0, active_teams=0, important_tasks=[])
        return success(empty, "Dashboard statistics retrieved successfully")

    assigned = db.query(Task).filter(
        Task.assignee_id == current_user.id,
        Task.team_id.in_(team_ids)
    )

    # HIGH priority first, then column position
    important_tasks = assigned.filter(Task.status.in_(ACTIVE_STATUSES)).order_by(
        priority_rank.desc(), Task.order.asc(), Task.id.asc()
    ).limit(important_tasks_limit).all()

    stats = DashboardStats(
        total_tasks=assigned.count(),
        completed_tasks=assigned.filter(Task.status == TaskStatus.DONE).count(),
        active_teams=len(team_ids),
        important_tasks=[TaskOut.model_validate(task) for task in important_tasks],
    )
    return success(stats, "Dashboard statistics retrieved successfully")
