from typing import List, Optional, Protocol

from ...db.models import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def get_by_username(self, username: str) -> Optional[User]:
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def get_by_phone(self, phone_number: str) -> Optional[User]:
        ...

    def get_by_username_or_email(self, identifier: str, role: Optional[str] = None) -> Optional[User]:
        ...

    def create(self, username: str, email: str, phone_number: str, password_hash: str,
               name: Optional[str], role: str = "user", is_phone_verified: bool = False) -> User:
        ...

    def mark_phone_verified(self, user_id: int) -> None:
        ...

    def set_password_hash(self, user_id: int, password_hash: str) -> None:
        ...

    def list_all(self) -> List[User]:
        ...

    def delete_cascade(self, user_id: int) -> None:
        ...
