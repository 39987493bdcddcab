#!/usr/bin/env python3
"""
Create the initial admin account.

Does nothing when an admin already exists. The password comes from
ADMIN_PASSWORD, or is generated and printed once.
"""
import os
import secrets
import sys
from typing import Optional, Tuple

from dotenv import load_dotenv
from sqlmodel import Session, select

load_dotenv()

from cyberguard.config import settings
from cyberguard.database import create_db_and_tables, engine
from cyberguard.db.models import User, UserRole
from cyberguard.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from cyberguard.infrastructure.security.password_hasher import BcryptPasswordHasher

DEFAULT_USERNAME = "admin"
DEFAULT_EMAIL = "admin@arcyberguard.com"
DEFAULT_PHONE = "9999999999"


def create_admin(session: Session, password: Optional[str] = None) -> Tuple[User, Optional[str]]:
    """Return (admin, plaintext password); the password is None when the admin already existed."""
    existing = session.exec(select(User).where(User.role == UserRole.ADMIN)).first()
    if existing:
        return existing, None

    password = password or secrets.token_urlsafe(12)
    hasher = BcryptPasswordHasher(rounds=settings.PASSWORD_HASH_ROUNDS)
    admin = SqlUserRepository(session).create(
        username=os.getenv("ADMIN_USERNAME", DEFAULT_USERNAME),
        email=os.getenv("ADMIN_EMAIL", DEFAULT_EMAIL).strip().lower(),
        phone_number=os.getenv("ADMIN_PHONE", DEFAULT_PHONE).strip(),
        password_hash=hasher.hash(password),
        name="System Administrator",
        role=UserRole.ADMIN,
        # Admins sign in through the admin login and are not phone-gated
        is_phone_verified=True,
    )
    return admin, password


def main() -> int:
    create_db_and_tables()
    with Session(engine) as session:
        admin, password = create_admin(session, os.getenv("ADMIN_PASSWORD"))

    if password is None:
        print(f"Admin user already exists: {admin.username}")
        return 0

    print("Admin user created successfully!")
    print(f"Username: {admin.username}")
    print(f"Email: {admin.email}")
    print(f"Phone: {admin.phone_number}")
    if not os.getenv("ADMIN_PASSWORD"):
        print(f"Password: {password}")
    print("\nPlease change the password after first login!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
