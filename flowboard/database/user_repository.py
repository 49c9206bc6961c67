"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from flowboard.models.user import User
from flowboard.database.models import UserDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[UserDB]:
        """Get user row by ID."""
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[UserDB]:
        """Get user row by (case-insensitive) email."""
        return self.db.query(UserDB).filter(UserDB.email == email.lower()).first()

    def create(self, email: str, password_hash: str, display_name: Optional[str] = None) -> User:
        """Create a new user."""
        now = datetime.utcnow()
        user_db = UserDB(
            email=email.lower(),
            display_name=display_name,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user_db.id}: {user_db.email}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {email}: {type(e).__name__}: {str(e)}")
            raise

    def save(self, user_db: UserDB) -> None:
        """Persist changes made to a user row (password, failure counter)."""
        user_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_db.id}: {type(e).__name__}: {str(e)}")
            raise
