# Typed per-entity query interfaces; services never build SQL themselves.
from .events import EventRepository  # noqa: F401
from .organizations import MembershipRepository, OrganizationRepository  # noqa: F401
from .tasks import TaskQuery, TaskRepository  # noqa: F401
from .templates import TemplateRepository  # noqa: F401
from .users import UserRepository  # noqa: F401
