from .user import User
from .team import Team, TeamMember, TeamType, MemberRole
from .task import Task, TaskStatus, TaskPriority, PRIORITY_RANK
