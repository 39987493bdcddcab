from passlib.context import CryptContext

from ...application.ports.password_hasher import PasswordHasher

MIN_BCRYPT_ROUNDS = 10


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = MIN_BCRYPT_ROUNDS):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=max(rounds, MIN_BCRYPT_ROUNDS),
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Malformed stored hash
            return False
