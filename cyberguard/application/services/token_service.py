import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from ...config import settings
from ...db.models import RefreshToken, User
from ...exceptions import InvalidOrExpiredToken
from ...utils import utcnow
from ..ports.token_repo import RefreshTokenRepository

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 48


@dataclass
class IssuedRefreshToken:
    token: str
    expires_at: datetime

    @property
    def max_age(self) -> int:
        return max(0, int((self.expires_at - utcnow()).total_seconds()))


def access_claims_for(user: User) -> Dict[str, Any]:
    return {"userId": user.id, "username": user.username, "role": user.role}


@dataclass
class TokenService:
    """Signs stateless access tokens and manages persisted refresh tokens."""

    refresh_repo: RefreshTokenRepository
    secret_key: str = field(default_factory=lambda: settings.SECRET_KEY)
    algorithm: str = field(default_factory=lambda: settings.ALGORITHM)
    access_expire_minutes: int = field(default_factory=lambda: settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    refresh_ttl_days: int = field(default_factory=lambda: settings.REFRESH_TOKEN_TTL_DAYS)

    def issue_access(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        to_encode = claims.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_expire_minutes))
        to_encode.update({"iat": now, "exp": expire, "type": "access"})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_access(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidOrExpiredToken("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidOrExpiredToken(f"Invalid token: {e}")
        if payload.get("type") != "access" or payload.get("userId") is None:
            raise InvalidOrExpiredToken("Invalid token: missing claims")
        return payload

    def issue_refresh(self, user_id: int) -> IssuedRefreshToken:
        token = secrets.token_hex(REFRESH_TOKEN_BYTES)
        expires_at = utcnow() + timedelta(days=self.refresh_ttl_days)
        self.refresh_repo.create(user_id=user_id, token=token, expires_at=expires_at)
        return IssuedRefreshToken(token=token, expires_at=expires_at)

    def find_usable_refresh(self, token: Optional[str]) -> Optional[RefreshToken]:
        if not token:
            return None
        record = self.refresh_repo.get_by_token(token)
        if record is None or not record.is_usable():
            return None
        return record

    def revoke_refresh(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return self.refresh_repo.revoke(token, revoked_at=utcnow())
