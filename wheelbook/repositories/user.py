"""Repository for user data access operations."""

from typing import Optional

from sqlalchemy.orm import Session

from wheelbook.database.models.user import User


class UserRepository:
    """Repository for user data access."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def create_user(self, email: str, **fields) -> User:
        """Add a new user to the session and flush it.

        Args:
            email: Unique email address
            **fields: Other user column values (name, subscription fields)

        Returns:
            Created user instance
        """
        user = User(email=email, **fields)
        self.db.add(user)
        self.db.flush()
        return user
