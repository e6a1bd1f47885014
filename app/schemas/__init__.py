from .user import UserRegister, UserLogin, UserOut, UserSummary, MemberUser
from .tokens import Token
from .team import TeamCreate, TeamUpdate, TeamOut, TeamList, TeamMemberOut, JoinTeam, InviteUser, JoinCodeOut, TeamStats, TasksByStatus
from .task import TaskCreate, TaskUpdate, TaskReorder, TaskOut, TaskList, TaskStats, DashboardStats, TaskQuery
