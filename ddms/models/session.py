from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class SessionPhase(str, Enum):
    DISABLED = "disabled"
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"


class SessionSnapshot(BaseModel):
    phase: SessionPhase = SessionPhase.DISABLED
    is_authenticated: bool = False
    is_session_active: bool = True
    is_session_warning_visible: bool = False
    remaining_time_ms: int = 0
    last_activity_timestamp: datetime | None = None
