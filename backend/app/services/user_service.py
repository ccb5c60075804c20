"""User service - credential store access"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from app.models.user import User
from app.schemas.user import UserRole
from app.core.security import get_password_hash, utc_now
from app.core.exceptions import UserAlreadyExistsError, ResourceNotFoundError
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Service for user records"""

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        role: str = UserRole.USER.value,
        is_verified: bool = False,
        commit: bool = True
    ) -> User:
        """
        Create new user

        The existence check gives the common case a clean 409; the unique
        constraint on ``users.email`` catches concurrent signups that both
        passed it.

        Args:
            db: Database session
            email: Email, stored as given
            password: Plain text password
            role: Initial role
            is_verified: Initial verification flag
            commit: If False the row is only flushed; the caller commits or
                rolls back

        Returns:
            Created user

        Raises:
            UserAlreadyExistsError: If the email is already registered
        """
        if UserService.get_user_by_email(db, email):
            raise UserAlreadyExistsError()

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            is_verified=is_verified
        )

        db.add(user)
        try:
            if commit:
                db.commit()
            else:
                db.flush()
        except IntegrityError:
            db.rollback()
            logger.info(f"Concurrent signup lost the race for {email}")
            raise UserAlreadyExistsError()
        if commit:
            db.refresh(user)
            logger.info(f"Created user: {user.email} (role: {user.role})")
        return user

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email (exact match)"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def mark_verified(db: Session, email: str) -> bool:
        """
        Set the verification flag

        Returns:
            True if a user row was updated
        """
        updated = (
            db.query(User)
            .filter(User.email == email)
            .update({User.is_verified: True}, synchronize_session=False)
        )
        db.commit()
        return updated > 0

    @staticmethod
    def record_login(db: Session, user: User) -> None:
        user.last_login = utc_now()
        db.commit()

    @staticmethod
    def update_role(db: Session, user_id: int, role: UserRole) -> User:
        """
        Assign a role (admin action)

        Raises:
            ResourceNotFoundError: If the user does not exist
        """
        user = UserService.get_user_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User")

        previous = user.role
        user.role = role.value
        db.commit()
        db.refresh(user)

        logger.info(f"Role changed for {user.email}: {previous} -> {user.role}")
        return user

    @staticmethod
    def get_all_users(db: Session, role: Optional[str] = None) -> List[User]:
        """
        Get all users, optionally filtered by role

        Args:
            db: Database session
            role: Optional role filter

        Returns:
            List of users
        """
        query = db.query(User)

        if role:
            query = query.filter(User.role == role)

        return query.order_by(User.id).all()

    @staticmethod
    def ensure_admin(db: Session, email: str, password: str) -> Optional[User]:
        """Create a verified admin account if the email is not registered yet."""
        if UserService.get_user_by_email(db, email):
            return None
        return UserService.create_user(
            db,
            email,
            password,
            role=UserRole.ADMIN.value,
            is_verified=True
        )


# Singleton instance
user_service = UserService()
