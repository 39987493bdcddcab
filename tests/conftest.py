from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from cyberguard import db  # noqa: F401  (registers every table)
from cyberguard.application.ports.otp_provider import OTPResult
from cyberguard.application.services.auth_service import AuthService
from cyberguard.application.services.token_service import TokenService
from cyberguard.database import get_session
from cyberguard.dependencies import get_cache, get_otp_provider
from cyberguard.infrastructure.cache.memory_cache import InMemoryCache
from cyberguard.infrastructure.persistence.sqlalchemy.repositories.password_reset_repository_sql import SqlPasswordResetRepository
from cyberguard.infrastructure.persistence.sqlalchemy.repositories.refresh_token_repository_sql import SqlRefreshTokenRepository
from cyberguard.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from cyberguard.main import app

TEST_SECRET = "test-secret-key"


class FakeOTPProvider:
    """Hands out V1, V2, ... and accepts ``code`` once per verification id."""

    def __init__(self, code: str = "123456"):
        self.code = code
        self.sent: List[str] = []
        self.validated: List[tuple] = []
        self.pending = {}
        self.fail_sends = False

    async def send_code(self, phone_number: str, country_code: Optional[str] = None) -> OTPResult:
        self.sent.append(phone_number)
        if self.fail_sends:
            return OTPResult.failure("HTTP 503")
        verification_id = f"V{len(self.sent)}"
        self.pending[verification_id] = phone_number
        return OTPResult.ok(verification_id)

    async def validate_code(self, verification_id: str, code: str) -> OTPResult:
        self.validated.append((verification_id, code))
        if verification_id not in self.pending:
            return OTPResult.failure("VERIFICATION_EXPIRED")
        if code != self.code:
            return OTPResult.failure("WRONG_OTP_PROVIDED")
        del self.pending[verification_id]
        return OTPResult.ok()


class PlainHasher:
    """Reversible stand-in so service tests skip bcrypt's cost."""

    def hash(self, password: str) -> str:
        return f"plain${password}"

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"plain${password}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def otp():
    return FakeOTPProvider()


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def user_repo(session):
    return SqlUserRepository(session)


@pytest.fixture
def token_service(session):
    return TokenService(refresh_repo=SqlRefreshTokenRepository(session), secret_key=TEST_SECRET)


@pytest.fixture
def auth_service(session, user_repo, token_service, otp, cache):
    return AuthService(
        user_repo=user_repo,
        token_service=token_service,
        otp_provider=otp,
        password_hasher=PlainHasher(),
        reset_repo=SqlPasswordResetRepository(session),
        cache=cache,
        password_min_length=6,
    )


@pytest.fixture
def client(engine, otp, cache):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_otp_provider] = lambda: otp
    app.dependency_overrides[get_cache] = lambda: cache
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
