from enum import Enum
from pydantic import BaseModel

class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class StatusFilter(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"

class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"

# Scope keywords accepted wherever a task scope is expected; any other value
# must be an organization id.
PERSONAL_SCOPE = "personal"
OWNED_SCOPE = "owned"

class ErrorBody(BaseModel):
    code: str
    message: str
    status: int

class ErrorResponse(BaseModel):
    error: ErrorBody
