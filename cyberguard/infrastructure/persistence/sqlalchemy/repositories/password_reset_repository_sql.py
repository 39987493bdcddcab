from datetime import datetime
from typing import Optional
from sqlalchemy import delete
from sqlmodel import Session, select

from .....db.models import PasswordReset
from .....application.ports.password_reset_repo import PasswordResetRepository


class SqlPasswordResetRepository(PasswordResetRepository):
    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: int, code: str, expires_at: datetime) -> PasswordReset:
        rec = PasswordReset(user_id=user_id, code=code, expires_at=expires_at)
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return rec

    def latest_for_code(self, user_id: int, code: str) -> Optional[PasswordReset]:
        return self.session.exec(
            select(PasswordReset)
            .where(PasswordReset.user_id == user_id, PasswordReset.code == code)
            .order_by(PasswordReset.id.desc())
        ).first()

    def delete_for_user(self, user_id: int) -> int:
        result = self.session.execute(delete(PasswordReset).where(PasswordReset.user_id == user_id))
        self.session.commit()
        return result.rowcount or 0
