# SQLModel definitions, imported here to ensure metadata is populated for create_all.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .role import Role  # noqa: F401
from .user import User  # noqa: F401
from .customer import Customer  # noqa: F401
from .project import Project  # noqa: F401
from .task import Task  # noqa: F401
from .comment import Comment  # noqa: F401
from .file import File  # noqa: F401
from .message import Message  # noqa: F401
from .notification import Notification  # noqa: F401
from .invitation import Invitation  # noqa: F401
