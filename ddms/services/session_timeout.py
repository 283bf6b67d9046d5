"""Idle-session guard.

The controller has three live phases. ``ACTIVE`` arms a single pre-warning
timer. When it fires the controller enters ``WARNING`` and arms two timers:
a countdown tick and a deadline. Whichever reaches zero first ends the session
(``EXPIRED``), which logs out and redirects to the login entry point.

Every transition starts with ``_cancel_all()``, which cancels the armed
handles and bumps a generation counter. Timer callbacks carry the generation
they were armed under and do nothing once it is stale, so the most recent
reset always wins and the two expiry paths converge on one logout.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, model_validator

from ddms.models.session import SessionPhase, SessionSnapshot
from ddms.session.context import AuthSession
from ddms.session.scheduler import Scheduler, ThreadingScheduler, TimerHandle
from ddms.settings import settings

logger = logging.getLogger(__name__)

ACTIVITY_EVENTS = frozenset({"mousedown", "keydown", "touchstart", "scroll", "wheel", "mousemove"})

SESSION_EXTENDED_MESSAGE = "Session extended"
SESSION_EXPIRED_NOTICE = "Session expired. Please login again."


class SessionTimeoutConfig(BaseModel):
    timeout_duration_ms: int = 15 * 60 * 1000
    warning_duration_ms: int = 2 * 60 * 1000
    countdown_interval_ms: int = 1000

    @model_validator(mode="after")
    def _check_durations(self) -> SessionTimeoutConfig:
        if self.warning_duration_ms <= 0 or self.countdown_interval_ms <= 0:
            raise ValueError("warning_duration_ms and countdown_interval_ms must be positive")
        if self.warning_duration_ms >= self.timeout_duration_ms:
            raise ValueError("warning_duration_ms must be shorter than timeout_duration_ms")
        return self

    @property
    def pre_warning_ms(self) -> int:
        return self.timeout_duration_ms - self.warning_duration_ms

    @classmethod
    def from_settings(cls) -> SessionTimeoutConfig:
        return cls(
            timeout_duration_ms=settings.session_timeout_ms,
            warning_duration_ms=settings.session_warning_ms,
            countdown_interval_ms=settings.session_countdown_ms,
        )


class SessionTimeoutController:
    def __init__(
        self,
        session: AuthSession,
        logout: Callable[[], None],
        scheduler: Scheduler | None = None,
        config: SessionTimeoutConfig | None = None,
        *,
        on_session_expired: Callable[[], None] | None = None,
        on_warning: Callable[[int], None] | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_notice: Callable[[str], None] | None = None,
        redirect: Callable[[str], None] | None = None,
        login_path: str | None = None,
    ) -> None:
        self.session = session
        self.config = config or SessionTimeoutConfig.from_settings()
        self.scheduler = scheduler or ThreadingScheduler()
        self.login_path = login_path or settings.login_path
        self._logout = logout
        self._on_session_expired = on_session_expired
        self._on_warning = on_warning
        self._on_tick = on_tick
        self._on_notice = on_notice
        self._redirect = redirect

        self._lock = threading.RLock()
        self._phase = SessionPhase.DISABLED
        self._generation = 0
        self._pre_warning: TimerHandle | None = None
        self._countdown: TimerHandle | None = None
        self._deadline: TimerHandle | None = None
        self._warning_started_at = 0.0
        self._remaining_ms = self.config.timeout_duration_ms
        self._last_activity: datetime | None = None
        self._warning_visible = False
        self._session_active = True

    # ---- queries ----

    @property
    def phase(self) -> SessionPhase:
        with self._lock:
            return self._phase

    @property
    def remaining_time_ms(self) -> int:
        with self._lock:
            return self._remaining_ms

    @property
    def is_session_warning_visible(self) -> bool:
        with self._lock:
            return self._warning_visible

    @property
    def is_session_active(self) -> bool:
        with self._lock:
            return self._session_active

    @property
    def last_activity_timestamp(self) -> datetime | None:
        with self._lock:
            return self._last_activity

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                phase=self._phase,
                is_authenticated=self.session.is_authenticated,
                is_session_active=self._session_active,
                is_session_warning_visible=self._warning_visible,
                remaining_time_ms=self._remaining_ms,
                last_activity_timestamp=self._last_activity,
            )

    # ---- commands ----

    def enable(self) -> None:
        """Start guarding the session; a no-op until the user is authenticated."""
        with self._lock:
            if not self.session.is_authenticated:
                self._cancel_all()
                self._phase = SessionPhase.DISABLED
                logger.debug("Session timeout not enabled: not authenticated")
                return
            self._reset()
        logger.info(
            "Session timeout enabled: timeout=%dms warning=%dms",
            self.config.timeout_duration_ms,
            self.config.warning_duration_ms,
        )

    def disable(self) -> None:
        with self._lock:
            self._cancel_all()
            self._phase = SessionPhase.DISABLED
            self._warning_visible = False
            self._session_active = True
        logger.debug("Session timeout disabled")

    # Teardown is the same as disabling.
    close = disable

    def record_activity(self, event: str = "keydown") -> bool:
        """Feed a user-activity event. Returns True when the idle timer was reset.

        Activity never dismisses a visible warning; only ``extend`` does.
        """
        if event not in ACTIVITY_EVENTS:
            return False
        with self._lock:
            if self._phase != SessionPhase.ACTIVE or not self.session.is_authenticated:
                return False
            self._reset()
        return True

    def extend(self) -> bool:
        with self._lock:
            if self._phase not in (SessionPhase.ACTIVE, SessionPhase.WARNING):
                logger.warning("Cannot extend session in phase %s", self._phase.value)
                return False
            if not self.session.is_authenticated:
                logger.warning("Cannot extend session: not authenticated")
                return False
            self._reset()
        logger.info("Session extended")
        self._emit(self._on_notice, SESSION_EXTENDED_MESSAGE)
        return True

    def logout(self) -> bool:
        """End the session explicitly. Returns False when it had already ended."""
        with self._lock:
            if self._phase == SessionPhase.EXPIRED:
                self._cancel_all()
                return False
            self._close_locked()
        self._finish(expired=False)
        return True

    # ---- internals ----

    def _cancel_all(self) -> None:
        self._generation += 1
        for handle in (self._pre_warning, self._countdown, self._deadline):
            if handle is not None:
                handle.cancel()
        self._pre_warning = None
        self._countdown = None
        self._deadline = None

    def _reset(self) -> None:
        self._cancel_all()
        self._phase = SessionPhase.ACTIVE
        self._warning_visible = False
        self._session_active = True
        self._remaining_ms = self.config.timeout_duration_ms
        self._last_activity = datetime.now(timezone.utc)
        generation = self._generation
        self._pre_warning = self.scheduler.call_later(
            self.config.pre_warning_ms, lambda: self._enter_warning(generation)
        )

    def _enter_warning(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._phase != SessionPhase.ACTIVE:
                return
            if not self.session.is_authenticated:
                self._cancel_all()
                self._phase = SessionPhase.DISABLED
                return
            self._pre_warning = None
            self._phase = SessionPhase.WARNING
            self._warning_visible = True
            self._session_active = False
            self._warning_started_at = self.scheduler.now()
            self._remaining_ms = self.config.warning_duration_ms
            self._countdown = self.scheduler.call_later(
                self.config.countdown_interval_ms, lambda: self._tick(generation)
            )
            self._deadline = self.scheduler.call_later(
                self.config.warning_duration_ms, lambda: self._expire(generation)
            )
            remaining = self._remaining_ms
        logger.info("Session warning shown: %dms remaining", remaining)
        self._emit(self._on_warning, remaining)

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._phase != SessionPhase.WARNING:
                return
            elapsed = self.scheduler.now() - self._warning_started_at
            remaining = max(0, int(self.config.warning_duration_ms - elapsed))
            self._remaining_ms = remaining
            if remaining > 0:
                self._countdown = self.scheduler.call_later(
                    self.config.countdown_interval_ms, lambda: self._tick(generation)
                )
        self._emit(self._on_tick, remaining)
        if remaining <= 0:
            self._expire(generation)

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._phase != SessionPhase.WARNING:
                return
            self._close_locked()
        self._finish(expired=True)

    def _close_locked(self) -> None:
        self._cancel_all()
        self._phase = SessionPhase.EXPIRED
        self._warning_visible = False
        self._session_active = False
        self._remaining_ms = 0

    def _finish(self, expired: bool) -> None:
        if expired:
            logger.info("Session expired after inactivity")
            try:
                self._emit(self._on_session_expired)
            except Exception:
                logger.exception("Session expiry callback failed")
        try:
            self._logout()
        except Exception:
            logger.exception("Logout failed while ending session")
        else:
            if expired:
                self._emit(self._on_notice, SESSION_EXPIRED_NOTICE)
        finally:
            # Local auth is cleared even when logout raised.
            self.session.clear()
        if self._redirect is not None:
            self._redirect(self.login_path)

    @staticmethod
    def _emit(callback: Callable | None, *args) -> None:
        if callback is not None:
            callback(*args)
