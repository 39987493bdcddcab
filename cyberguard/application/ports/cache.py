from typing import Any, Optional, Protocol

USERS_ALL_KEY = "users:all"
ADMIN_USERS_ALL_KEY = "admin:users:all"
QUIZ_CATEGORIES_KEY = "quiz:categories"
PHISHING_EMAILS_KEY = "game:phishing-emails"


def user_key(user_id: int) -> str:
    return f"user:{user_id}"


def progress_key(user_id: int) -> str:
    return f"progress:{user_id}"


def quiz_category_key(key: str) -> str:
    return f"quiz:category:{key}"


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    def delete(self, *keys: str) -> None:
        ...


def invalidate_user_listings(cache: Cache, user_id: Optional[int] = None) -> None:
    keys = [USERS_ALL_KEY, ADMIN_USERS_ALL_KEY]
    if user_id is not None:
        keys.append(user_key(user_id))
    cache.delete(*keys)
