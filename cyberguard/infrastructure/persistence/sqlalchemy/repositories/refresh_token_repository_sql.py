from datetime import datetime
from typing import Optional
from sqlmodel import Session, select

from .....db.models import RefreshToken
from .....application.ports.token_repo import RefreshTokenRepository


class SqlRefreshTokenRepository(RefreshTokenRepository):
    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        rec = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return rec

    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        return self.session.exec(select(RefreshToken).where(RefreshToken.token == token)).first()

    def revoke(self, token: str, revoked_at: datetime) -> bool:
        rec = self.get_by_token(token)
        if not rec:
            return False
        if rec.revoked_at is None:
            rec.revoked_at = revoked_at
            self.session.add(rec)
            self.session.commit()
        return True
