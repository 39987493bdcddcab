import pytest

from cyberguard.application.ports.cache import ADMIN_USERS_ALL_KEY, USERS_ALL_KEY, user_key
from cyberguard.application.services.user_service import UserService
from cyberguard.db.models import RefreshToken, UserProgress
from cyberguard.exceptions import InternalError, NotFound, ValidationError
from cyberguard.infrastructure.persistence.sqlalchemy.repositories.password_reset_repository_sql import SqlPasswordResetRepository
from cyberguard.utils import as_utc, utcnow
from sqlmodel import select


@pytest.fixture
def user_service(session, user_repo, cache):
    return UserService(user_repo=user_repo, cache=cache, reset_repo=SqlPasswordResetRepository(session))


@pytest.fixture
def admin(user_repo):
    return user_repo.create("root", "root@example.com", "5550001", "h", "Root", role="admin", is_phone_verified=True)


@pytest.fixture
def alice(user_repo):
    return user_repo.create("alice", "alice@example.com", "5551234", "h", None)


def test_public_listing_is_cached(user_service, user_repo, alice):
    first = user_service.list_users()
    user_repo.create("bob", "bob@example.com", "5552222", "h", None)

    # Served from cache until something invalidates it
    assert user_service.list_users() == first
    assert [u["username"] for u in first] == ["alice"]
    assert "password" not in first[0]


def test_admin_listing_uses_its_own_key(user_service, cache, alice):
    users = user_service.list_users_for_admin()
    assert cache.get(ADMIN_USERS_ALL_KEY) == users
    assert cache.get(USERS_ALL_KEY) is None


def test_credentials_listing_includes_hash_and_is_not_cached(user_service, cache, alice):
    users = user_service.list_users_with_credentials()
    assert users[0]["password"] == "h"
    assert cache.get(ADMIN_USERS_ALL_KEY) is None


def test_delete_rules(user_service, admin, alice):
    with pytest.raises(NotFound):
        user_service.delete_user(actor_id=admin.id, target_id=9999)
    with pytest.raises(ValidationError) as exc:
        user_service.delete_user(actor_id=admin.id, target_id=admin.id)
    assert exc.value.detail == "Cannot delete admin users"


def test_self_delete_is_rejected(user_service, alice):
    with pytest.raises(ValidationError) as exc:
        user_service.delete_user(actor_id=alice.id, target_id=alice.id)
    assert exc.value.detail == "Admins cannot delete themselves"


def test_delete_cascades_and_invalidates(user_service, session, cache, admin, alice):
    alice_id = alice.id
    session.add(RefreshToken(token="t" * 96, user_id=alice_id, expires_at=utcnow()))
    session.add(UserProgress(user_id=alice_id))
    session.commit()
    cache.set(USERS_ALL_KEY, ["stale"], 60)
    cache.set(user_key(alice_id), {"stale": True}, 60)

    user_service.delete_user(actor_id=admin.id, target_id=alice_id)

    assert user_service.user_repo.get_by_id(alice_id) is None
    assert session.exec(select(RefreshToken).where(RefreshToken.user_id == alice_id)).first() is None
    assert session.exec(select(UserProgress).where(UserProgress.user_id == alice_id)).first() is None
    assert cache.get(USERS_ALL_KEY) is None
    assert cache.get(user_key(alice_id)) is None


def test_failed_cascade_surfaces_as_internal_error(user_service, admin, alice, monkeypatch):
    def boom(user_id):
        raise RuntimeError("disk full")

    monkeypatch.setattr(user_service.user_repo, "delete_cascade", boom)
    with pytest.raises(InternalError):
        user_service.delete_user(actor_id=admin.id, target_id=alice.id)


def test_verify_user_by_email(user_service, alice):
    user = user_service.verify_user(" ALICE@example.com ")
    assert user.is_phone_verified is True

    with pytest.raises(NotFound):
        user_service.verify_user("nobody@example.com")


def test_issue_reset_code(user_service, session, alice):
    issued = user_service.issue_reset_code(alice.id)

    assert len(issued["code"]) == 6
    record = SqlPasswordResetRepository(session).latest_for_code(alice.id, issued["code"])
    assert record is not None and as_utc(record.expires_at) > utcnow()


def test_listing_timestamps_carry_utc_offset(user_service, session, alice):
    session.expire_all()
    entry = user_service.list_users()[0]
    assert entry["createdAt"].endswith("+00:00")
