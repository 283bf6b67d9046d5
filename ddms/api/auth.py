from __future__ import annotations

import logging

from ddms.api.client import ApiClient
from ddms.models.envelope import DDMSResponse

logger = logging.getLogger(__name__)


class AuthApi:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    def send_otp(self, mobile: str) -> DDMSResponse:
        return self.client.post("/auth/send-otp", {"mobile": mobile})

    def login(
        self,
        mobile: str,
        password: str | None = None,
        otp: str | None = None,
        new_password: str | None = None,
    ) -> DDMSResponse:
        body = {"mobile": mobile, "password": password, "otp": otp, "newPassword": new_password}
        return self.client.post("/auth/login", {k: v for k, v in body.items() if v is not None})

    def logout(self) -> DDMSResponse:
        return self.client.post("/auth/logout")

    def switch_store(self, store_id: str) -> DDMSResponse:
        return self.client.post("/store-context/switch", {"storeId": store_id})
