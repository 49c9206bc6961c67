"""SQLAlchemy database models for flowboard."""

from datetime import datetime
import uuid
from typing import Type, TypeVar, Union

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, JSON, String, Time

from flowboard.database.database import Base
from flowboard.models.task import TaskPriority, TaskStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class TaskDB(Base):
    """Database model for a task document."""

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Every query is scoped by owner
    owner_id = Column(String, nullable=False, index=True)

    # Basic fields
    text = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default=TaskStatus.BACKLOG.value, index=True)
    priority = Column(String, nullable=False, default=TaskPriority.NORMAL.value)

    # Tags (stored as JSON array, insertion order preserved)
    tags = Column(JSON, nullable=False, default=list)

    # Due date with optional time of day
    due_date = Column(Date, nullable=True)
    due_time = Column(Time, nullable=True)

    # Subtask back-reference
    parent_id = Column(String, nullable=True, index=True)

    # Fractional sort key ("order" is quoted by SQLAlchemy)
    order = Column("order", Float, nullable=False, index=True)

    # Timestamps (assigned by the store, never by the client)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flowboard.models.task import Task

        return Task(
            id=self.id,
            owner_id=self.owner_id,
            text=self.text,
            description=self.description or "",
            status=value_to_enum(self.status, TaskStatus, TaskStatus.BACKLOG),
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.NORMAL),
            tags=list(self.tags or []),
            due_date=self.due_date,
            due_time=self.due_time,
            parent_id=self.parent_id,
            order=self.order,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserDB(Base):
    """Database model for a user of the local identity provider."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)

    # PBKDF2 hash, "<salt hex>$<digest hex>"; never the raw password
    password_hash = Column(String, nullable=False)

    failed_sign_ins = Column(Integer, nullable=False, default=0)
    disabled = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flowboard.models.user import User
        return User(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
