# SQLModel definitions - imported here to ensure metadata is populated for create_all.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user_account import UserAccount  # noqa: F401
from .company import Company, Capability  # noqa: F401
from .company_member import CompanyMember  # noqa: F401
from .invite_code import InviteCode, UsedInviteCode  # noqa: F401
from .connection import Connection, ConnectionChat  # noqa: F401
from .project import Project, ProjectMember, ProjectChat  # noqa: F401
from .notification import Notification  # noqa: F401
