from datetime import datetime
from typing import Optional, Protocol

from ...db.models import PasswordReset


class PasswordResetRepository(Protocol):
    def create(self, user_id: int, code: str, expires_at: datetime) -> PasswordReset:
        ...

    def latest_for_code(self, user_id: int, code: str) -> Optional[PasswordReset]:
        ...

    def delete_for_user(self, user_id: int) -> int:
        ...
