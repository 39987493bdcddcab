import logging
from typing import List, Optional
from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import (
    User,
    UserRole,
    RefreshToken,
    PasswordReset,
    UserProgress,
    QuizAttempt,
    ScenarioCompletion,
)
from .....application.ports.user_repo import UserRepository
from .....exceptions import DuplicateIdentity
from .....utils import utcnow

logger = logging.getLogger(__name__)

# Rows owned by a user, removed before the user itself to satisfy FK constraints
DEPENDENT_MODELS = (RefreshToken, PasswordReset, UserProgress, QuizAttempt, ScenarioCompletion)


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email)).first()

    def get_by_phone(self, phone_number: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.phone_number == phone_number)).first()

    def get_by_username_or_email(self, identifier: str, role: Optional[str] = None) -> Optional[User]:
        stmt = select(User).where(or_(User.username == identifier, User.email == identifier.strip().lower()))
        if role is not None:
            stmt = stmt.where(User.role == role)
        return self.session.exec(stmt).first()

    def create(self, username: str, email: str, phone_number: str, password_hash: str,
               name: Optional[str], role: str = UserRole.USER, is_phone_verified: bool = False) -> User:
        user = User(
            username=username,
            email=email,
            phone_number=phone_number,
            password_hash=password_hash,
            name=name or username,
            role=role,
            is_phone_verified=is_phone_verified,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # Concurrent registration won the unique index
            self.session.rollback()
            raise DuplicateIdentity("Username, email or phone number already in use")
        self.session.refresh(user)
        return user

    def mark_phone_verified(self, user_id: int) -> None:
        user = self.get_by_id(user_id)
        if not user or user.is_phone_verified:
            return
        user.is_phone_verified = True
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()

    def set_password_hash(self, user_id: int, password_hash: str) -> None:
        user = self.get_by_id(user_id)
        if not user:
            return
        user.password_hash = password_hash
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()

    def list_all(self) -> List[User]:
        return list(self.session.exec(select(User).order_by(User.created_at.desc(), User.id.desc())).all())

    def delete_cascade(self, user_id: int) -> None:
        """Delete a user and every dependent record in a single transaction."""
        try:
            for model in DEPENDENT_MODELS:
                self.session.execute(delete(model).where(model.user_id == user_id))
            user = self.get_by_id(user_id)
            if user:
                self.session.delete(user)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.error(f"Cascade delete of user {user_id} rolled back", exc_info=True)
            raise
