import json
import logging
import os
from typing import Any, Dict, MutableMapping, Optional

from ..utils import utcnow

logger = logging.getLogger(__name__)

SESSION_KEY = "userData"
GUEST_PROFILE = {"username": "Guest User", "email": "guest@example.com"}


class MemoryStorage(dict):
    """String key/value storage held in memory (browser localStorage stand-in)."""


class JSONFileStorage(MutableMapping):
    """String key/value storage persisted to one JSON file."""

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError:
            logger.warning(f"Session file {self.path} is not valid JSON; treating it as empty")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    def __getitem__(self, key):
        return self._load()[key]

    def __setitem__(self, key, value):
        data = self._load()
        data[key] = value
        self._save(data)

    def __delitem__(self, key):
        data = self._load()
        del data[key]
        self._save(data)

    def __iter__(self):
        return iter(self._load())

    def __len__(self):
        return len(self._load())


class ClientSessionStore:
    """The client's record of who is signed in.

    The whole session lives under one key as a JSON blob. A missing or
    unreadable blob means nobody is signed in.
    """

    def __init__(self, storage: Optional[MutableMapping] = None, key: str = SESSION_KEY):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key

    def get(self) -> Optional[Dict[str, Any]]:
        raw = self.storage.get(self.key)
        if not raw:
            return None
        try:
            session = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored session could not be parsed; treating it as signed out")
            return None
        return session if isinstance(session, dict) else None

    def set(self, session: Dict[str, Any]) -> None:
        self.storage[self.key] = json.dumps(session)

    def clear(self) -> None:
        self.storage.pop(self.key, None)

    def set_from_login(self, response: Dict[str, Any], login_type: str = "user") -> Dict[str, Any]:
        """Store the body of a successful login (``{"data": {"token", "user"}}``)."""
        data = response.get("data") or {}
        session = dict(data.get("user") or {})
        session.update({
            "token": data.get("token"),
            "loginTime": utcnow().isoformat(),
            "loginType": login_type,
        })
        self.set(session)
        return session

    def set_guest(self) -> Dict[str, Any]:
        session = dict(GUEST_PROFILE, isGuest=True, loginTime=utcnow().isoformat(), loginType="user")
        self.set(session)
        return session

    def update_token(self, token: str) -> None:
        session = self.get()
        if session is None:
            return
        session["token"] = token
        self.set(session)

    def is_authenticated(self) -> bool:
        return self.get() is not None

    @property
    def token(self) -> Optional[str]:
        session = self.get()
        return session.get("token") if session else None

    def auth_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers
