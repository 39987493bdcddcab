# cyberguard/db/models/users/user.py
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utcnow


class UserRole:
    USER = "user"
    ADMIN = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(max_length=100, unique=True, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    phone_number: str = Field(max_length=20, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    name: Optional[str] = Field(max_length=100, default=None)
    role: str = Field(max_length=10, default=UserRole.USER)
    is_phone_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
