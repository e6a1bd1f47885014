# app/utils/permissions.py
"""
Authorization policy for teams and tasks.

A caller may mutate a task if they created it, are assigned to it, or hold
the ADMIN role in the task's team. Deleting additionally excludes plain
assignees. Team settings are owner-only.
"""

from typing import Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.models.team import Team, TeamMember, MemberRole
from app.models.task import Task
from app.models.user import User


def get_membership(db: Session, user_id: int, team_id: int) -> Optional[TeamMember]:
    return db.query(TeamMember).filter(
        TeamMember.user_id == user_id,
        TeamMember.team_id == team_id
    ).first()


def require_membership(db: Session, user_id: int, team_id: int,
                       detail: str = "You are not a member of this team") -> TeamMember:
    """Return the caller's membership or raise 403"""
    membership = get_membership(db, user_id, team_id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    return membership


def is_team_admin(membership: Optional[TeamMember]) -> bool:
    return membership is not None and membership.role == MemberRole.ADMIN


def can_mutate_task(user: User, task: Task, membership: Optional[TeamMember]) -> bool:
    if membership is None:
        return False
    return (
        task.creator_id == user.id
        or task.assignee_id == user.id
        or is_team_admin(membership)
    )


def can_delete_task(user: User, task: Task, membership: Optional[TeamMember]) -> bool:
    if membership is None:
        return False
    return task.creator_id == user.id or is_team_admin(membership)


def is_team_owner(user: User, team: Team) -> bool:
    return team.owner_id == user.id


def require_team_owner(user: User, team: Team, detail: str) -> None:
    if not is_team_owner(user, team):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_assignable(db: Session, assignee_id: Optional[int], team_id: int) -> None:
    """An assignee must belong to the task's team"""
    if assignee_id is None:
        return
    if get_membership(db, assignee_id, team_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Assignee is not a member of this team"
        )
