from datetime import timedelta

import pytest

from cyberguard.application.ports.cache import ADMIN_USERS_ALL_KEY, USERS_ALL_KEY
from cyberguard.application.services.auth_service import FORGOT_PASSWORD_MESSAGE
from cyberguard.exceptions import (
    DuplicateIdentity,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    PhoneNotVerified,
    ProviderFailure,
    ValidationError,
)
from cyberguard.infrastructure.persistence.sqlalchemy.repositories.password_reset_repository_sql import SqlPasswordResetRepository
from cyberguard.utils import utcnow


async def register_alice(auth_service, phone="5551234", password="pw123456"):
    return await auth_service.register("alice", "Alice@Example.com ", password, phone)


async def register_verified(auth_service, otp, phone="5551234", password="pw123456"):
    result = await register_alice(auth_service, phone=phone, password=password)
    await auth_service.verify_phone(phone, otp.code, result.verification_id)
    return result.user


async def test_register_creates_unverified_user_and_sends_code(auth_service, otp):
    result = await register_alice(auth_service)

    assert result.user.is_phone_verified is False
    assert result.user.email == "alice@example.com"
    assert result.user.name == "alice"
    assert result.verification_id == "V1"
    assert otp.sent == ["5551234"]


async def test_register_stores_hash_not_password(auth_service):
    result = await register_alice(auth_service, password="pw123456")
    assert result.user.password_hash != "pw123456"


async def test_register_requires_all_fields(auth_service):
    with pytest.raises(ValidationError):
        await auth_service.register("alice", "alice@example.com", "", "5551234")


@pytest.mark.parametrize(
    "username,email,phone,message",
    [
        ("alice", "other@example.com", "5550000", "Username already exists"),
        ("bob", "ALICE@example.com", "5550000", "Email already in use"),
        ("bob", "bob@example.com", " 5551234 ", "Phone number already in use"),
    ],
)
async def test_register_rejects_duplicate_identity(auth_service, username, email, phone, message):
    await register_alice(auth_service)
    with pytest.raises(DuplicateIdentity) as exc:
        await auth_service.register(username, email, "pw123456", phone)
    assert exc.value.detail == message


async def test_register_keeps_user_when_sms_fails(auth_service, otp, user_repo):
    otp.fail_sends = True
    result = await register_alice(auth_service)

    assert result.verification_id is None
    assert user_repo.get_by_phone("5551234") is not None


async def test_register_invalidates_user_listings(auth_service, cache):
    cache.set(USERS_ALL_KEY, [], 60)
    cache.set(ADMIN_USERS_ALL_KEY, [], 300)
    await register_alice(auth_service)
    assert cache.get(USERS_ALL_KEY) is None
    assert cache.get(ADMIN_USERS_ALL_KEY) is None


async def test_unverified_login_is_rejected_with_remediation(auth_service):
    await register_alice(auth_service)

    with pytest.raises(PhoneNotVerified) as exc:
        await auth_service.login("alice", "pw123456")
    assert exc.value.status_code == 403
    assert exc.value.data == {"requiresPhoneVerification": True, "phoneNumber": "5551234"}


async def test_login_failures_are_indistinguishable(auth_service, otp):
    await register_verified(auth_service, otp)

    with pytest.raises(InvalidCredentials) as wrong_password:
        await auth_service.login("alice", "nope-nope")
    with pytest.raises(InvalidCredentials) as unknown_user:
        await auth_service.login("mallory", "pw123456")
    assert wrong_password.value.detail == unknown_user.value.detail == "Invalid username or password"


async def test_verify_then_login_by_username_or_email(auth_service, otp, token_service):
    user = await register_verified(auth_service, otp)

    by_name = await auth_service.login("alice", "pw123456")
    by_email = await auth_service.login("ALICE@example.com", "pw123456")

    claims = token_service.verify_access(by_name.access_token)
    assert claims["userId"] == user.id
    assert claims["role"] == "user"
    assert by_email.user.id == user.id
    assert len(by_name.refresh_token.token) == 96


async def test_failed_verification_leaves_user_unverified(auth_service, user_repo):
    result = await register_alice(auth_service)

    with pytest.raises(ProviderFailure) as exc:
        await auth_service.verify_phone("5551234", "000000", result.verification_id)
    assert exc.value.detail == "WRONG_OTP_PROVIDED"
    assert user_repo.get_by_phone("5551234").is_phone_verified is False


async def test_reused_code_fails_and_flag_stays_verified(auth_service, otp, user_repo):
    result = await register_alice(auth_service)
    await auth_service.verify_phone("5551234", "123456", result.verification_id)

    with pytest.raises(ProviderFailure):
        await auth_service.verify_phone("5551234", "123456", result.verification_id)
    assert user_repo.get_by_phone("5551234").is_phone_verified is True


async def test_verify_phone_unknown_user(auth_service):
    with pytest.raises(NotFound):
        await auth_service.verify_phone("5550000", "123456", "V1")


async def test_verify_phone_requires_handle(auth_service):
    await register_alice(auth_service)
    with pytest.raises(ValidationError):
        await auth_service.verify_phone("5551234", "123456", "")


async def test_resend_verification(auth_service, otp):
    await register_alice(auth_service)

    result = await auth_service.resend_verification("5551234")
    assert result.message == "Verification code sent"
    assert result.verification_id == "V2"


async def test_resend_for_verified_phone_sends_nothing(auth_service, otp):
    await register_verified(auth_service, otp)
    sent_before = len(otp.sent)

    result = await auth_service.resend_verification("5551234")
    assert result.message == "Phone already verified"
    assert len(otp.sent) == sent_before


async def test_resend_soft_fails_when_provider_down(auth_service, otp):
    await register_alice(auth_service)
    otp.fail_sends = True

    result = await auth_service.resend_verification("5551234")
    assert result.verification_id is None
    assert "temporarily unavailable" in result.message


async def test_resend_unknown_phone(auth_service):
    with pytest.raises(NotFound):
        await auth_service.resend_verification("5550000")


async def test_forgot_password_does_not_reveal_existence(auth_service, otp):
    await register_verified(auth_service, otp)
    sent_before = len(otp.sent)

    known = await auth_service.forgot_password("5551234")
    unknown = await auth_service.forgot_password("5559999")

    assert known.message == unknown.message == FORGOT_PASSWORD_MESSAGE
    assert known.verification_id and unknown.verification_id
    # Only the known phone reached the provider
    assert otp.sent[sent_before:] == ["5551234"]


async def test_forgot_password_handle_does_not_reveal_existence_when_sms_fails(auth_service, otp):
    await register_verified(auth_service, otp)
    otp.fail_sends = True

    known = await auth_service.forgot_password("5551234")
    unknown = await auth_service.forgot_password("5559999")

    assert known.message == unknown.message
    assert known.verification_id and unknown.verification_id
    assert known.verification_id.isdigit() and unknown.verification_id.isdigit()


async def test_forgot_then_reset_password_round_trip(auth_service, otp):
    await register_verified(auth_service, otp)

    forgot = await auth_service.forgot_password("5551234")
    await auth_service.reset_password("5551234", "123456", "newpass1", forgot.verification_id)

    assert (await auth_service.login("alice", "newpass1")).access_token
    with pytest.raises(InvalidCredentials):
        await auth_service.login("alice", "pw123456")


async def test_reset_password_enforces_minimum_length(auth_service, otp):
    await register_verified(auth_service, otp)
    with pytest.raises(ValidationError):
        await auth_service.reset_password("5551234", "123456", "short", "V9")


async def test_reset_password_with_handle_ignores_local_records(auth_service, otp, session, user_repo):
    user = await register_verified(auth_service, otp)
    SqlPasswordResetRepository(session).create(user.id, "654321", utcnow() + timedelta(minutes=10))

    # The local record matches, but a supplied handle selects the provider path only
    with pytest.raises(ProviderFailure):
        await auth_service.reset_password("5551234", "654321", "newpass1", "V-unknown")


async def test_reset_password_local_fallback(auth_service, otp, session):
    reset_repo = SqlPasswordResetRepository(session)
    user = await register_verified(auth_service, otp)
    reset_repo.create(user.id, "654321", utcnow() + timedelta(minutes=10))

    with pytest.raises(ValidationError) as bad:
        await auth_service.reset_password("5551234", "111111", "newpass1")
    assert bad.value.detail == "Invalid code"

    await auth_service.reset_password("5551234", "654321", "newpass1")
    assert reset_repo.latest_for_code(user.id, "654321") is None
    assert (await auth_service.login("alice", "newpass1")).user.id == user.id


async def test_reset_password_rejects_expired_local_code(auth_service, otp, session):
    user = await register_verified(auth_service, otp)
    SqlPasswordResetRepository(session).create(user.id, "654321", utcnow() - timedelta(minutes=1))

    with pytest.raises(ValidationError) as exc:
        await auth_service.reset_password("5551234", "654321", "newpass1")
    assert exc.value.detail == "Code expired"


async def test_reset_password_unknown_phone_looks_like_bad_code(auth_service):
    with pytest.raises(ValidationError) as exc:
        await auth_service.reset_password("5559999", "123456", "newpass1", "V1")
    assert exc.value.status_code == 400


async def test_refresh_issues_access_token_for_owner(auth_service, otp, token_service):
    user = await register_verified(auth_service, otp)
    login = await auth_service.login("alice", "pw123456")

    access = await auth_service.refresh(login.refresh_token.token)
    assert token_service.verify_access(access)["userId"] == user.id


async def test_refresh_rejects_missing_revoked_and_expired(auth_service, otp, token_service, session):
    await register_verified(auth_service, otp)
    login = await auth_service.login("alice", "pw123456")

    with pytest.raises(InvalidToken):
        await auth_service.refresh(None)

    await auth_service.logout(login.refresh_token.token)
    with pytest.raises(InvalidToken):
        await auth_service.refresh(login.refresh_token.token)

    expired = token_service.issue_refresh(login.user.id)
    record = token_service.refresh_repo.get_by_token(expired.token)
    record.expires_at = utcnow() - timedelta(seconds=1)
    session.add(record)
    session.commit()
    with pytest.raises(InvalidToken):
        await auth_service.refresh(expired.token)


async def test_logout_without_token_succeeds(auth_service):
    result = await auth_service.logout(None)
    assert result.message == "Logged out"


async def test_admin_login_only_matches_admins(auth_service, otp, user_repo):
    await register_verified(auth_service, otp)
    with pytest.raises(InvalidCredentials) as exc:
        await auth_service.admin_login("alice", "pw123456")
    assert exc.value.detail == "Invalid admin credentials"

    user_repo.create("root", "root@example.com", "5550001", "plain$adminpw1", "Root", role="admin")
    result = await auth_service.admin_login("root", "adminpw1")
    assert result.user.role == "admin"


async def test_change_password(auth_service, otp):
    user = await register_verified(auth_service, otp)

    with pytest.raises(InvalidCredentials):
        await auth_service.change_password(user.id, "wrong-one", "newpass1")

    await auth_service.change_password(user.id, "pw123456", "newpass1")
    assert (await auth_service.login("alice", "newpass1")).user.id == user.id
