from .route_guard import GuardDecision, guard_route
from .session_store import ClientSessionStore, JSONFileStorage, MemoryStorage

__all__ = ["ClientSessionStore", "GuardDecision", "JSONFileStorage", "MemoryStorage", "guard_route"]
