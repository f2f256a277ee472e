# SQLModel definitions - imported here to ensure metadata is populated for create_all.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User, Profile  # noqa: F401
from .organization import Organization, Membership  # noqa: F401
from .task import Task, TaskTag  # noqa: F401
from .template import Template, TemplateTag  # noqa: F401
from .event import Event  # noqa: F401
