"""Repository layer for task document operations."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from flowboard.models.task import EDITABLE_FIELDS, Task
from flowboard.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)

_ENUM_FIELDS = ("status", "priority")


def _column_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only user-editable fields, with enums flattened to their values."""
    values = {}
    for name, value in fields.items():
        if name not in EDITABLE_FIELDS:
            continue
        if name in _ENUM_FIELDS and value is not None:
            value = enum_to_value(value)
        if name == "tags" and value is not None:
            value = list(value)
        if name == "description" and value is None:
            value = ""
        values[name] = value
    return values


class TaskRepository:
    """Repository for task document database operations."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, owner_id: str, fields: Dict[str, Any]) -> Task:
        """Insert a new task document; id and timestamps are assigned here."""
        now = datetime.utcnow()
        task_db = TaskDB(owner_id=owner_id, created_at=now, updated_at=now, **_column_values(fields))
        try:
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Inserted task {task_db.id}: {task_db.text[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to insert task for {owner_id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        return task_db.to_pydantic() if task_db else None

    def list_for_owner(self, owner_id: str) -> List[Task]:
        """Get all tasks for an owner, ascending by order."""
        tasks_db = (
            self.db.query(TaskDB)
            .filter(TaskDB.owner_id == owner_id)
            .order_by(TaskDB.order.asc(), TaskDB.created_at.asc())
            .all()
        )
        return [task_db.to_pydantic() for task_db in tasks_db]

    def merge(self, task_id: str, fields: Dict[str, Any]) -> Task:
        """Merge partial fields into an existing task and refresh updated_at."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        if not task_db:
            raise ValueError(f"Task {task_id} not found")

        for name, value in _column_values(fields).items():
            setattr(task_db, name, value)
        task_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Merged {sorted(fields)} into task {task_id}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to merge task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, task_id: str) -> Optional[str]:
        """Permanently delete a task.

        Returns:
            The deleted task's owner ID, or None if it did not exist
        """
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        if not task_db:
            return None

        owner_id = task_db.owner_id
        try:
            self.db.delete(task_db)
            self.db.commit()
            logger.debug(f"Deleted task {task_id}")
            return owner_id
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise
