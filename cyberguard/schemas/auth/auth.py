# cyberguard/schemas/auth.py
from pydantic import AliasChoices, Field, field_validator
from typing import Optional

from ..common.common import RequestModel


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class RegisterRequest(RequestModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)
    phone_number: str = Field(..., alias="phoneNumber", min_length=1, max_length=32)
    name: Optional[str] = Field(None, max_length=100)

    @field_validator("username", "phone_number")
    @classmethod
    def strip_identity(cls, v):
        v = _strip(v)
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        v = _strip(v)
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class LoginRequest(RequestModel):
    # "username" may hold an email address
    username: str = Field(..., min_length=1, validation_alias=AliasChoices("username", "usernameOrEmail", "email"))
    password: str = Field(..., min_length=1)


class VerifyPhoneRequest(RequestModel):
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    code: str = Field(..., min_length=1, max_length=12)
    verification_id: str = Field(..., alias="verificationId", min_length=1)


class PhoneRequest(RequestModel):
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)


class ResetPasswordRequest(RequestModel):
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    code: str = Field(..., min_length=1, max_length=12)
    new_password: str = Field(..., alias="newPassword", min_length=1)
    verification_id: Optional[str] = Field(None, alias="verificationId")


class ChangePasswordRequest(RequestModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=1)


class AdminVerifyUserRequest(RequestModel):
    email: str = Field(..., min_length=1)
