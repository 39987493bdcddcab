from dataclasses import dataclass
from typing import Optional

from .session_store import ClientSessionStore

HOME_PATH = "/"
ADMIN_HOME_PATH = "/admin"


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    redirect_to: Optional[str] = None

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(True)

    @classmethod
    def redirect(cls, path: str) -> "GuardDecision":
        return cls(False, path)


def guard_route(store: ClientSessionStore, require_admin: bool = False) -> GuardDecision:
    """Decide whether a protected client route may render.

    No session goes home. Admin routes need a real (non-guest) admin.
    A signed-in admin visiting a user route is sent to the admin area.
    """
    session = store.get()
    if session is None:
        return GuardDecision.redirect(HOME_PATH)

    is_admin = session.get("role") == "admin"
    is_guest = bool(session.get("isGuest"))

    if require_admin and (is_guest or not is_admin):
        return GuardDecision.redirect(HOME_PATH)
    if not require_admin and is_admin and not is_guest:
        return GuardDecision.redirect(ADMIN_HOME_PATH)
    return GuardDecision.allow()
