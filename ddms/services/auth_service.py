from __future__ import annotations

import logging

from ddms.api.auth import AuthApi
from ddms.errors import ApiError
from ddms.models.auth import AuthUser, Store
from ddms.session.context import AuthSession

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, auth_api: AuthApi, session: AuthSession) -> None:
        self.auth_api = auth_api
        self.session = session

    def send_otp(self, mobile: str) -> None:
        if not mobile:
            raise ValueError("Mobile number is required")
        self.auth_api.send_otp(mobile)
        logger.info("OTP requested for mobile=%s", mobile)

    def login(
        self,
        mobile: str,
        password: str | None = None,
        otp: str | None = None,
        new_password: str | None = None,
    ) -> AuthUser:
        if not mobile:
            raise ValueError("Mobile number is required")
        if not password and not otp:
            raise ValueError("Password or OTP is required")

        envelope = self.auth_api.login(mobile, password=password, otp=otp, new_password=new_password)
        data = envelope.data or {}
        token = data.get("token")
        if not token or not data.get("user"):
            logger.warning("Login for mobile=%s returned no token", mobile)
            raise ApiError(envelope.error_code or "LOGIN_FAILED", data=data)

        user = AuthUser.model_validate(data["user"])
        self.session.set_auth(user, token, data.get("refreshToken"))
        logger.info("Login succeeded: user=%s roles=%d", user.id, len(user.roles))
        return user

    def switch_store(self, store_id: str) -> Store:
        user = self.session.user
        if user is None:
            raise ValueError("Not logged in")
        store = next((s for s in user.stores if s.id == store_id), None)
        if store is None:
            raise ValueError(f"Store '{store_id}' is not available to this user")

        envelope = self.auth_api.switch_store(store.id)
        token = (envelope.data or {}).get("token") if isinstance(envelope.data, dict) else None
        self.session.set_current_store(store, token)
        return store

    def logout(self) -> None:
        """Best-effort remote logout followed by an unconditional local clear."""
        if self.session.token:
            try:
                self.auth_api.logout()
            except Exception:
                logger.exception("Logout API call failed")
        if self.session.clear():
            logger.info("Logged out")
