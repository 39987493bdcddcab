# cyberguard/application/services/user_service.py
import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ...config import settings
from ...db.models import User
from ...exceptions import InternalError, NotFound, ValidationError
from ...utils import as_utc, normalize_email, utcnow
from ..ports.cache import ADMIN_USERS_ALL_KEY, USERS_ALL_KEY, Cache, invalidate_user_listings
from ..ports.password_reset_repo import PasswordResetRepository
from ..ports.user_repo import UserRepository
from .auth_service import MessageResult

logger = logging.getLogger(__name__)


def public_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "isPhoneVerified": user.is_phone_verified,
        "createdAt": as_utc(user.created_at).isoformat(),
        "updatedAt": as_utc(user.updated_at).isoformat(),
    }


def admin_user(user: User) -> Dict[str, Any]:
    entry = public_user(user)
    entry.update({"phoneNumber": user.phone_number, "password": user.password_hash})
    return entry


@dataclass
class UserService:
    """User listings (read-through cached) and admin user management."""

    user_repo: UserRepository
    cache: Cache
    reset_repo: Optional[PasswordResetRepository] = None
    users_ttl: int = field(default_factory=lambda: settings.USERS_CACHE_TTL_SECONDS)
    admin_users_ttl: int = field(default_factory=lambda: settings.ADMIN_USERS_CACHE_TTL_SECONDS)
    reset_code_ttl_minutes: int = field(default_factory=lambda: settings.PASSWORD_RESET_CODE_TTL_MINUTES)

    def list_users(self) -> List[Dict[str, Any]]:
        cached = self.cache.get(USERS_ALL_KEY)
        if cached is not None:
            return cached
        users = [public_user(u) for u in self.user_repo.list_all()]
        self.cache.set(USERS_ALL_KEY, users, self.users_ttl)
        return users

    def list_users_for_admin(self) -> List[Dict[str, Any]]:
        cached = self.cache.get(ADMIN_USERS_ALL_KEY)
        if cached is not None:
            return cached
        users = [public_user(u) for u in self.user_repo.list_all()]
        self.cache.set(ADMIN_USERS_ALL_KEY, users, self.admin_users_ttl)
        return users

    def list_users_with_credentials(self) -> List[Dict[str, Any]]:
        # Never cached: contains password hashes
        return [admin_user(u) for u in self.user_repo.list_all()]

    def delete_user(self, actor_id: int, target_id: int) -> MessageResult:
        target = self.user_repo.get_by_id(target_id)
        if not target:
            raise NotFound("User not found")
        if target.is_admin:
            raise ValidationError("Cannot delete admin users")
        if target.id == actor_id:
            raise ValidationError("Admins cannot delete themselves")

        try:
            self.user_repo.delete_cascade(target.id)
        except Exception as e:
            raise InternalError("Failed to delete user") from e
        invalidate_user_listings(self.cache, target.id)
        logger.info(f"Admin {actor_id} deleted user {target.id}")
        return MessageResult("User deleted successfully")

    def verify_user(self, email: str) -> User:
        """Manual override of the phone-verification flag."""
        if not email:
            raise ValidationError("Email is required")
        user = self.user_repo.get_by_email(normalize_email(email))
        if not user:
            raise NotFound("User not found")
        self.user_repo.mark_phone_verified(user.id)
        invalidate_user_listings(self.cache, user.id)
        return self.user_repo.get_by_id(user.id)

    def issue_reset_code(self, target_id: int) -> Dict[str, Any]:
        """Create a local reset code for support-assisted resets (used when no provider handle exists)."""
        if self.reset_repo is None:
            raise InternalError("Password reset storage is not configured")
        target = self.user_repo.get_by_id(target_id)
        if not target:
            raise NotFound("User not found")
        code = f"{secrets.randbelow(1_000_000):06d}"
        expires_at = utcnow() + timedelta(minutes=self.reset_code_ttl_minutes)
        self.reset_repo.create(user_id=target.id, code=code, expires_at=expires_at)
        return {"code": code, "expiresAt": expires_at.isoformat(), "phoneNumber": target.phone_number}
