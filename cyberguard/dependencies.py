import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .application.ports.audit_logger import AuditLogger
from .application.ports.cache import Cache
from .application.ports.otp_provider import OTPProvider
from .application.ports.password_hasher import PasswordHasher
from .application.services.auth_service import AuthService
from .application.services.content_service import ContentService
from .application.services.progress_service import ProgressService
from .application.services.token_service import TokenService
from .application.services.user_service import UserService
from .config import settings
from .database import get_session
from .exceptions import Forbidden, InvalidOrExpiredToken, Unauthorized
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.cache import build_cache
from .infrastructure.otp.console_provider import ConsoleOTPProvider
from .infrastructure.otp.messagecentral_provider import MessageCentralOTPProvider
from .infrastructure.persistence.sqlalchemy.repositories.content_repository_sql import SqlContentRepository
from .infrastructure.persistence.sqlalchemy.repositories.password_reset_repository_sql import SqlPasswordResetRepository
from .infrastructure.persistence.sqlalchemy.repositories.progress_repository_sql import SqlProgressRepository
from .infrastructure.persistence.sqlalchemy.repositories.refresh_token_repository_sql import SqlRefreshTokenRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from .infrastructure.security.password_hasher import BcryptPasswordHasher

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# Process-wide collaborators
@lru_cache()
def get_cache() -> Cache:
    return build_cache(settings.REDIS_URL)


@lru_cache()
def get_otp_provider() -> OTPProvider:
    if settings.OTP_PROVIDER.lower() == "console":
        logger.warning("Using console OTP provider; codes are not delivered by SMS")
        return ConsoleOTPProvider(code=settings.CONSOLE_OTP_CODE)
    return MessageCentralOTPProvider()


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return BcryptPasswordHasher(rounds=settings.PASSWORD_HASH_ROUNDS)


@lru_cache()
def get_audit_logger() -> AuditLogger:
    return StdAuditLogger()


# Per-request collaborators
def get_user_repository(session: Session = Depends(get_session)) -> SqlUserRepository:
    return SqlUserRepository(session)


def get_token_service(session: Session = Depends(get_session)) -> TokenService:
    return TokenService(refresh_repo=SqlRefreshTokenRepository(session))


def get_auth_service(
    session: Session = Depends(get_session),
    token_service: TokenService = Depends(get_token_service),
    otp_provider: OTPProvider = Depends(get_otp_provider),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    cache: Cache = Depends(get_cache),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuthService:
    return AuthService(
        user_repo=SqlUserRepository(session),
        token_service=token_service,
        otp_provider=otp_provider,
        password_hasher=password_hasher,
        reset_repo=SqlPasswordResetRepository(session),
        cache=cache,
        audit=audit,
    )


def get_user_service(session: Session = Depends(get_session), cache: Cache = Depends(get_cache)) -> UserService:
    return UserService(
        user_repo=SqlUserRepository(session),
        cache=cache,
        reset_repo=SqlPasswordResetRepository(session),
    )


def get_progress_service(session: Session = Depends(get_session), cache: Cache = Depends(get_cache)) -> ProgressService:
    return ProgressService(repo=SqlProgressRepository(session), cache=cache)


def get_content_service(session: Session = Depends(get_session), cache: Cache = Depends(get_cache)) -> ContentService:
    return ContentService(repo=SqlContentRepository(session), cache=cache)


# Access guard
@dataclass(frozen=True)
class Identity:
    user_id: int
    username: Optional[str]
    role: Optional[str]


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> Identity:
    """Bearer-token gate: 401 when absent, 403 when invalid or expired."""
    if not credentials or not credentials.credentials:
        raise Unauthorized("Access token required")
    try:
        claims = token_service.verify_access(credentials.credentials)
    except InvalidOrExpiredToken as e:
        logger.info(f"Rejected access token on {request.url.path}: {e}")
        raise Forbidden("Invalid or expired token")

    try:
        user_id = int(claims["userId"])
    except (TypeError, ValueError):
        raise Forbidden("Invalid or expired token")

    identity = Identity(user_id=user_id, username=claims.get("username"), role=claims.get("role"))
    request.state.identity = identity
    return identity


def require_admin(
    identity: Identity = Depends(get_current_identity),
    user_repo: SqlUserRepository = Depends(get_user_repository),
) -> Identity:
    # Role is re-read from storage; a demoted admin's old token stops working
    user = user_repo.get_by_id(identity.user_id)
    if not user or not user.is_admin:
        raise Forbidden("Admin access required")
    return identity
