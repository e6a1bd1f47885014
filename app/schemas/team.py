from pydantic import Field, model_validator
from typing import Optional, List
from datetime import datetime
from app.models.team import TeamType, MemberRole
from app.schemas.base import ApiModel
from app.schemas.user import UserSummary, MemberUser

class TeamCreate(ApiModel):
    name: str = Field(min_length=2, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    type: TeamType = TeamType.PUBLIC

class TeamUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    type: Optional[TeamType] = None

class TeamOut(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    type: TeamType
    join_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    owner_id: int
    owner: UserSummary
    member_count: int
    task_count: int

class TeamList(ApiModel):
    teams: List[TeamOut]
    total: int
    page: int
    total_pages: int

class TeamMemberOut(ApiModel):
    id: int
    role: MemberRole
    joined_at: datetime
    user: MemberUser

class JoinTeam(ApiModel):
    team_id: Optional[int] = None
    join_code: Optional[str] = None

    @model_validator(mode="after")
    def require_target(self):
        if self.team_id is None and not self.join_code:
            raise ValueError("Either teamId or joinCode must be provided")
        return self

class InviteUser(ApiModel):
    username: str = Field(min_length=1)
    role: MemberRole = MemberRole.MEMBER

class JoinCodeOut(ApiModel):
    join_code: str

class TasksByStatus(ApiModel):
    todo: int = 0
    in_progress: int = 0
    done: int = 0

class TeamStats(ApiModel):
    total_members: int
    total_tasks: int
    tasks_by_status: TasksByStatus
    recent_activity: int
