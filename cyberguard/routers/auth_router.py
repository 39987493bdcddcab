# cyberguard/routers/auth_router.py
import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ..application.services.auth_service import AuthService, LoginResult
from ..application.services.token_service import IssuedRefreshToken
from ..application.services.user_service import UserService, public_user
from ..config import settings
from ..dependencies import (
    Identity,
    get_auth_service,
    get_current_identity,
    get_user_service,
    require_admin,
)
from ..schemas import (
    AdminVerifyUserRequest,
    ChangePasswordRequest,
    LoginRequest,
    PhoneRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyPhoneRequest,
    ok,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def set_refresh_cookie(response: Response, refresh: IssuedRefreshToken) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh.token,
        max_age=refresh.max_age,
        expires=refresh.max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _session_payload(result: LoginResult) -> dict:
    return {"token": result.access_token, "user": public_user(result.user)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.register(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        phone_number=payload.phone_number,
        name=payload.name,
    )
    return ok(
        "User created successfully. Please verify your phone to sign in.",
        {"user": public_user(result.user), "verificationId": result.verification_id},
    )


@router.post("/login")
async def login(payload: LoginRequest, response: Response, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.login(payload.username, payload.password)
    set_refresh_cookie(response, result.refresh_token)
    return ok("Login successful", _session_payload(result))


@router.post("/admin/login")
async def admin_login(payload: LoginRequest, response: Response, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.admin_login(payload.username, payload.password)
    set_refresh_cookie(response, result.refresh_token)
    return ok("Admin login successful", _session_payload(result))


@router.post("/verify-phone")
async def verify_phone(payload: VerifyPhoneRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.verify_phone(payload.phone_number, payload.code, payload.verification_id)
    return ok(result.message)


@router.post("/resend-phone-code")
async def resend_phone_code(payload: PhoneRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.resend_verification(payload.phone_number)
    return ok(result.message, {"verificationId": result.verification_id})


@router.post("/forgot-password")
async def forgot_password(payload: PhoneRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.forgot_password(payload.phone_number)
    return ok(result.message, {"verificationId": result.verification_id})


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.reset_password(
        payload.phone_number, payload.code, payload.new_password, payload.verification_id
    )
    return ok(result.message)


@router.post("/refresh")
async def refresh(request: Request, auth_service: AuthService = Depends(get_auth_service)):
    # The refresh token is only ever read from the http-only cookie
    access_token = await auth_service.refresh(request.cookies.get(settings.REFRESH_COOKIE_NAME))
    return ok("Token refreshed", {"token": access_token})


@router.post("/logout")
async def logout(request: Request, response: Response, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.logout(request.cookies.get(settings.REFRESH_COOKIE_NAME))
    clear_refresh_cookie(response)
    return ok(result.message)


@router.get("/profile")
async def profile(identity: Identity = Depends(get_current_identity),
                  auth_service: AuthService = Depends(get_auth_service)):
    user = auth_service.get_profile(identity.user_id)
    data = public_user(user)
    data["phoneNumber"] = user.phone_number
    return ok("Profile retrieved", data)


@router.post("/change-password")
async def change_password(payload: ChangePasswordRequest, identity: Identity = Depends(get_current_identity),
                          auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.change_password(identity.user_id, payload.current_password, payload.new_password)
    return ok(result.message)


# ------------------------
# Admin
# ------------------------
@router.get("/admin/users")
async def admin_users(identity: Identity = Depends(require_admin),
                      user_service: UserService = Depends(get_user_service)):
    users = user_service.list_users_with_credentials()
    return ok("Users retrieved", {"users": users, "count": len(users)})


@router.delete("/admin/user/{user_id}")
async def admin_delete_user(user_id: int, identity: Identity = Depends(require_admin),
                            user_service: UserService = Depends(get_user_service)):
    result = user_service.delete_user(actor_id=identity.user_id, target_id=user_id)
    return ok(result.message)


@router.post("/admin/verify-user")
async def admin_verify_user(payload: AdminVerifyUserRequest, identity: Identity = Depends(require_admin),
                            user_service: UserService = Depends(get_user_service)):
    user = user_service.verify_user(payload.email)
    logger.info(f"Admin {identity.user_id} manually verified user {user.id}")
    return ok("User manually verified successfully", public_user(user))


@router.post("/admin/user/{user_id}/reset-code")
async def admin_issue_reset_code(user_id: int, identity: Identity = Depends(require_admin),
                                 user_service: UserService = Depends(get_user_service)):
    data = user_service.issue_reset_code(user_id)
    logger.info(f"Admin {identity.user_id} issued a reset code for user {user_id}")
    return ok("Reset code issued", data)
