# app/routers/team.py
import logging
import math
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.config.settings import AppConfig
from app.database import get_db
from app.models.team import Team, TeamMember, TeamType, MemberRole
from app.models.task import Task, TaskStatus
from app.models.user import User
from app.schemas.team import (
    TeamCreate, TeamUpdate, TeamOut, TeamList, TeamMemberOut, JoinTeam,
    InviteUser, JoinCodeOut, TeamStats, TasksByStatus,
)
from app.schemas.user import UserSummary
from app.utils.auth import get_current_user
from app.utils.permissions import get_membership, require_membership, is_team_admin, require_team_owner
from app.utils.responses import success

router = APIRouter()
logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_letters + string.digits + "_-"

def generate_join_code(length: int = AppConfig.JOIN_CODE_LENGTH) -> str:
    """Random token granting access to a private team"""
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))

def serialize_team(db: Session, team: Team, include_join_code: bool = True) -> TeamOut:
    member_count = db.query(TeamMember).filter(TeamMember.team_id == team.id).count()
    task_count = db.query(Task).filter(Task.team_id == team.id).count()
    return TeamOut(
        id=team.id,
        name=team.name,
        description=team.description,
        type=team.type,
        join_code=team.join_code if include_join_code else None,
        created_at=team.created_at,
        updated_at=team.updated_at,
        owner_id=team.owner_id,
        owner=UserSummary.model_validate(team.owner),
        member_count=member_count,
        task_count=task_count,
    )

def get_team_or_404(db: Session, team_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team

def paginate_teams(db: Session, query, page: int, limit: int, include_join_code: bool) -> TeamList:
    total = query.count()
    teams = query.order_by(Team.created_at.desc(), Team.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return TeamList(
        teams=[serialize_team(db, team, include_join_code) for team in teams],
        total=total,
        page=page,
        total_pages=math.ceil(total / limit),
    )

def apply_search(query, search: Optional[str]):
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Team.name.ilike(pattern), Team.description.ilike(pattern)))
    return query

@router.post("", status_code=status.HTTP_201_CREATED)
def create_team(team_data: TeamCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Create a team owned by the caller, who joins it as ADMIN"""
    db_team = Team(
        name=team_data.name,
        description=team_data.description,
        type=team_data.type,
        join_code=generate_join_code() if team_data.type == TeamType.PRIVATE else None,
        owner_id=current_user.id,
    )
    db_team.members.append(TeamMember(user_id=current_user.id, role=MemberRole.ADMIN))

    db.add(db_team)
    db.commit()
    db.refresh(db_team)

    logger.info(f"Team {db_team.id} ({db_team.type.value}) created by user {current_user.id}")
    return success(serialize_team(db, db_team), "Team created successfully", status.HTTP_201_CREATED)

@router.get("")
def get_public_teams(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(AppConfig.TEAMS_DEFAULT_LIMIT, ge=1, le=AppConfig.TEAMS_MAX_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List public teams, newest first"""
    query = apply_search(db.query(Team).filter(Team.type == TeamType.PUBLIC), search)
    return success(paginate_teams(db, query, page, limit, include_join_code=False), "Public teams retrieved successfully")

@router.get("/my-teams")
def get_my_teams(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(AppConfig.TEAMS_DEFAULT_LIMIT, ge=1, le=AppConfig.TEAMS_MAX_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the teams the caller belongs to"""
    query = db.query(Team).filter(Team.members.any(TeamMember.user_id == current_user.id))
    query = apply_search(query, search)
    return success(paginate_teams(db, query, page, limit, include_join_code=True), "User teams retrieved successfully")

@router.get("/user/team-ids")
def get_my_team_ids(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = db.query(TeamMember.team_id).filter(TeamMember.user_id == current_user.id).all()
    return success([row.team_id for row in rows], "User team IDs retrieved successfully")

@router.post("/join")
def join_team(payload: JoinTeam, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Join a public team by id or a private team by join code"""
    if payload.join_code:
        team = db.query(Team).filter(Team.join_code == payload.join_code).first()
        if not team:
            raise HTTPException(status_code=404, detail="Invalid join code")
    else:
        team = get_team_or_404(db, payload.team_id)
        if team.type == TeamType.PRIVATE:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot join private team without join code"
            )

    if get_membership(db, current_user.id, team.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You are already a member of this team")

    member = TeamMember(user_id=current_user.id, team_id=team.id, role=MemberRole.MEMBER)
    db.add(member)
    db.commit()
    db.refresh(member)

    logger.info(f"User {current_user.id} joined team {team.id}")
    return success(TeamMemberOut.model_validate(member), "Successfully joined the team")

@router.get("/{team_id}")
def get_team(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Get a team; private teams are visible to members only"""
    team = get_team_or_404(db, team_id)
    membership = get_membership(db, current_user.id, team.id)
    if team.type == TeamType.PRIVATE and membership is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this team")
    return success(serialize_team(db, team, include_join_code=membership is not None), "Team retrieved successfully")

@router.post("/{team_id}/leave")
def leave_team(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    team = get_team_or_404(db, team_id)
    membership = get_membership(db, current_user.id, team.id)
    if membership is None:
        raise HTTPException(status_code=404, detail="You are not a member of this team")
    if team.owner_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Team owner cannot leave the team. Transfer ownership or delete the team instead."
        )

    db.delete(membership)
    db.commit()
    logger.info(f"User {current_user.id} left team {team.id}")
    return success(message="Successfully left the team")

@router.put("/{team_id}")
def update_team(team_id: int, team_update: TeamUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Update team settings - owner only"""
    team = get_team_or_404(db, team_id)
    require_team_owner(current_user, team, "Only team owner can update team settings")

    update_data = team_update.model_dump(exclude_unset=True)
    if update_data.get("type") == TeamType.PRIVATE and team.join_code is None:
        team.join_code = generate_join_code()
    elif update_data.get("type") == TeamType.PUBLIC:
        team.join_code = None

    for field, value in update_data.items():
        if value is None and field != "description":
            continue
        setattr(team, field, value)

    db.commit()
    db.refresh(team)
    return success(serialize_team(db, team), "Team updated successfully")

@router.post("/{team_id}/regenerate-join-code")
def regenerate_join_code(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    team = get_team_or_404(db, team_id)
    require_team_owner(current_user, team, "Only team owner can regenerate join code")
    if team.type != TeamType.PRIVATE:
        raise HTTPException(status_code=400, detail="Join code can only be regenerated for private teams")

    team.join_code = generate_join_code()
    db.commit()
    return success(JoinCodeOut(join_code=team.join_code), "Join code regenerated successfully")

@router.get("/{team_id}/members")
def get_team_members(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Members of a team, admins first"""
    get_team_or_404(db, team_id)
    require_membership(db, current_user.id, team_id, "You must be a team member to view member list")

    members = db.query(TeamMember).filter(TeamMember.team_id == team_id).order_by(
        TeamMember.role.asc(), TeamMember.joined_at.asc(), TeamMember.id.asc()
    ).all()
    return success([TeamMemberOut.model_validate(member) for member in members], "Team members retrieved successfully")

@router.post("/{team_id}/members")
def invite_user(team_id: int, invite: InviteUser, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Add a user to the team by username - admins only"""
    get_team_or_404(db, team_id)
    membership = require_membership(db, current_user.id, team_id, "You must be a team member to invite users")
    if not is_team_admin(membership):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only team admins can invite users")

    target_user = db.query(User).filter(User.username == invite.username).first()
    if not target_user:
        raise HTTPException(status_code=404, detail="User not found")

    if get_membership(db, target_user.id, team_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a member of this team")

    member = TeamMember(user_id=target_user.id, team_id=team_id, role=invite.role)
    db.add(member)
    db.commit()
    db.refresh(member)
    return success(TeamMemberOut.model_validate(member), "User invited successfully")

@router.delete("/{team_id}/members/{user_id}")
def remove_user(team_id: int, user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Remove a member from the team - admins only, never the owner"""
    team = get_team_or_404(db, team_id)
    membership = require_membership(db, current_user.id, team_id, "You must be a team member to remove users")
    if not is_team_admin(membership):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only team admins can remove users")
    if team.owner_id == user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot remove team owner")

    target = get_membership(db, user_id, team_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User is not a member of this team")

    db.delete(target)
    db.commit()
    return success(message="User removed successfully")

@router.delete("/{team_id}")
def delete_team(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Delete a team with its members and tasks - owner only"""
    team = get_team_or_404(db, team_id)
    require_team_owner(current_user, team, "Only team owner can delete the team")

    db.delete(team)
    db.commit()
    logger.info(f"Team {team_id} deleted by user {current_user.id}")
    return success(message="Team deleted successfully")

@router.get("/{team_id}/stats")
def get_team_stats(team_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    require_membership(db, current_user.id, team_id, "You must be a team member to view team stats")

    since = datetime.utcnow() - timedelta(days=AppConfig.RECENT_ACTIVITY_DAYS)
    member_count = db.query(TeamMember).filter(TeamMember.team_id == team_id).count()
    status_counts = db.query(Task.status, func.count(Task.id)).filter(
        Task.team_id == team_id
    ).group_by(Task.status).all()
    recent_activity = db.query(Task).filter(
        Task.team_id == team_id,
        or_(Task.created_at >= since, Task.updated_at >= since)
    ).count()

    by_status = TasksByStatus()
    for task_status, count in status_counts:
        if task_status == TaskStatus.TODO:
            by_status.todo = count
        elif task_status == TaskStatus.IN_PROGRESS:
            by_status.in_progress = count
        elif task_status == TaskStatus.DONE:
            by_status.done = count

    stats = TeamStats(
        total_members=member_count,
        total_tasks=by_status.todo + by_status.in_progress + by_status.done,
        tasks_by_status=by_status,
        recent_activity=recent_activity,
    )
    return success(stats, "Team statistics retrieved successfully")
