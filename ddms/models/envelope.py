from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DDMSStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class LoginStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    EXPIRED = "expired"


class DDMSResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: DDMSStatus = Field(alias="DDMS_status")
    login_status: LoginStatus = Field(default=LoginStatus.AUTHENTICATED, alias="DDMS_login_status")
    error_code: str | None = Field(default=None, alias="DDMS_error_code")
    data: Any = Field(default=None, alias="DDMS_data")

    @property
    def is_error(self) -> bool:
        return self.status == DDMSStatus.ERROR

    @property
    def session_rejected(self) -> bool:
        return self.login_status in (LoginStatus.UNAUTHENTICATED, LoginStatus.EXPIRED)
