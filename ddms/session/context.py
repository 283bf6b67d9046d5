from __future__ import annotations

import logging
import threading
from pathlib import Path

from pydantic import BaseModel

from ddms.models.auth import AuthUser, Store

logger = logging.getLogger(__name__)

STORE_HEADER = "X-Store-ID"


class PersistedSession(BaseModel):
    user: AuthUser | None = None
    token: str | None = None
    refresh_token: str | None = None
    current_store: Store | None = None
    is_authenticated: bool = False


class AuthSession:
    """Process-wide authentication context.

    State only changes through ``set_auth``, ``swap_tokens``,
    ``set_current_store``, ``update_user`` and ``clear``; each of them
    replaces the affected fields under one lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._user: AuthUser | None = None
        self._token: str | None = None
        self._refresh_token: str | None = None
        self._current_store: Store | None = None
        self._is_authenticated = False

    @property
    def user(self) -> AuthUser | None:
        with self._lock:
            return self._user

    @property
    def token(self) -> str | None:
        with self._lock:
            return self._token

    @property
    def refresh_token(self) -> str | None:
        with self._lock:
            return self._refresh_token

    @property
    def current_store(self) -> Store | None:
        with self._lock:
            return self._current_store

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._is_authenticated

    def set_auth(self, user: AuthUser, token: str, refresh_token: str | None) -> None:
        with self._lock:
            self._user = user
            self._token = token
            self._refresh_token = refresh_token
            self._is_authenticated = True
            self._current_store = user.stores[0] if user.stores else None
        logger.info("Session authenticated: user=%s store=%s", user.id, self.current_store_id)

    def swap_tokens(self, token: str, refresh_token: str | None) -> None:
        with self._lock:
            self._token = token
            if refresh_token:
                self._refresh_token = refresh_token
        logger.debug("Token pair replaced")

    def set_current_store(self, store: Store, token: str | None = None) -> None:
        with self._lock:
            self._current_store = store
            if token:
                self._token = token
            if self._user is not None:
                self._user = self._user.model_copy(update={"current_store_id": store.id})
        logger.info("Current store switched to %s", store.id)

    def update_user(self, **fields) -> None:
        with self._lock:
            if self._user is not None:
                self._user = self._user.model_copy(update=fields)

    def clear(self) -> bool:
        """Drop all credentials. Returns True when a session was actually cleared."""
        with self._lock:
            was_authenticated = self._is_authenticated or self._token is not None
            self._user = None
            self._token = None
            self._refresh_token = None
            self._current_store = None
            self._is_authenticated = False
        if was_authenticated:
            logger.info("Session cleared")
        return was_authenticated

    @property
    def current_store_id(self) -> str | None:
        store = self.current_store
        return store.id if store is not None else None

    def auth_headers(self) -> dict[str, str]:
        with self._lock:
            headers: dict[str, str] = {}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            if self._current_store is not None:
                headers[STORE_HEADER] = self._current_store.id
            return headers

    # ---- persistence ----

    def to_persisted(self) -> PersistedSession:
        with self._lock:
            return PersistedSession(
                user=self._user,
                token=self._token,
                refresh_token=self._refresh_token,
                current_store=self._current_store,
                is_authenticated=self._is_authenticated,
            )

    def save(self, path: str | Path) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.to_persisted().model_dump_json(by_alias=True))
        logger.debug("Session saved to %s", target.resolve())

    @classmethod
    def load(cls, path: str | Path) -> AuthSession:
        session = cls()
        source = Path(path)
        if not source.exists():
            return session
        persisted = PersistedSession.model_validate_json(source.read_text())
        with session._lock:
            session._user = persisted.user
            session._token = persisted.token
            session._refresh_token = persisted.refresh_token
            session._current_store = persisted.current_store
            session._is_authenticated = persisted.is_authenticated and persisted.token is not None
        logger.debug("Session loaded from %s authenticated=%s", source.resolve(), session.is_authenticated)
        return session
