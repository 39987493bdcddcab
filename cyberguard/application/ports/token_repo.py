from datetime import datetime
from typing import Optional, Protocol

from ...db.models import RefreshToken


class RefreshTokenRepository(Protocol):
    def create(self, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
        ...

    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        ...

    def revoke(self, token: str, revoked_at: datetime) -> bool:
        ...
