"""
Cross-request session stores.

The host application decides where a token lives between requests (process
memory, a distributed cache, a signed cookie...). TokenSession only needs
get() and set(); it re-validates the expiry of whatever get() returns.
"""

import threading
from typing import Optional, Protocol

from heyrecruit.auth.models import Session


class SessionCache(Protocol):
    """Store shared across TokenSession instances or requests"""

    def get(self) -> Optional[Session]:
        """Return the stored session, or None if nothing is stored."""
        ...

    def set(self, session: Session) -> None:
        """Replace the stored session (token and expiry together)."""
        ...


class InMemorySessionCache:
    """
    Thread-safe in-process store.

    Usage:
        cache = InMemorySessionCache()
        session_a = TokenSession(config, cache=cache)
        session_b = TokenSession(config, cache=cache)  # reuses session_a's token
    """

    def __init__(self, session: Optional[Session] = None):
        self._lock = threading.Lock()
        self._session = session

    def get(self) -> Optional[Session]:
        with self._lock:
            return self._session

    def set(self, session: Session) -> None:
        with self._lock:
            self._session = session

    def clear(self) -> None:
        with self._lock:
            self._session = None
