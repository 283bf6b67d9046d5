"""HTTP transport for the DDMS backend.

Every response is unwrapped from the DDMS envelope. Authenticated requests
carry the bearer token and the current store header taken from the shared
``AuthSession``. A 401 on a non-auth endpoint triggers exactly one token
refresh and one retry; any further failure ends the session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError

from ddms.errors import (
    SESSION_EXPIRED_MESSAGE,
    ApiError,
    AuthenticationRequiredError,
    SessionExpiredError,
    TransportError,
)
from ddms.models.auth import TokenPair
from ddms.models.envelope import DDMSResponse, DDMSStatus
from ddms.session.context import AuthSession
from ddms.settings import settings

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"
AUTH_ENDPOINTS = ("/auth/send-otp", "/auth/login", REFRESH_PATH, "/auth/logout")


def is_auth_endpoint(url: str) -> bool:
    return any(endpoint in url for endpoint in AUTH_ENDPOINTS)


def _parse_envelope(response: httpx.Response) -> DDMSResponse | None:
    try:
        return DDMSResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return None


class ApiClient:
    def __init__(
        self,
        session: AuthSession,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.session = session
        self.http = httpx.Client(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        # Called when the backend no longer accepts the session. Wire it to the
        # application's logout path; without it the session is only cleared.
        self.on_auth_failure: Callable[[], None] | None = None

    def close(self) -> None:
        self.http.close()

    # ---- verbs ----

    def get(self, url: str, params: dict[str, Any] | None = None) -> DDMSResponse:
        return self.request("GET", url, params=params)

    def post(self, url: str, json: Any = None) -> DDMSResponse:
        return self.request("POST", url, json=json)

    def put(self, url: str, json: Any = None) -> DDMSResponse:
        return self.request("PUT", url, json=json)

    def delete(self, url: str) -> DDMSResponse:
        return self.request("DELETE", url)

    def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> DDMSResponse:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        return self._send(method, url, json=json, params=params, retried=False)

    # ---- internals ----

    def _send(
        self,
        method: str,
        url: str,
        *,
        json: Any,
        params: dict[str, Any] | None,
        retried: bool,
    ) -> DDMSResponse:
        auth_endpoint = is_auth_endpoint(url)
        try:
            response = self.http.request(
                method, url, json=json, params=params, headers=self.session.auth_headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Request failed: {exc}") from exc

        logger.debug("%s %s -> %d", method, url, response.status_code)

        if response.status_code == 401 and not auth_endpoint:
            if retried:
                logger.warning("%s %s rejected again after token refresh", method, url)
                self._end_session()
                raise SessionExpiredError()
            self._refresh_tokens()
            return self._send(method, url, json=json, params=params, retried=True)

        envelope = _parse_envelope(response)
        if envelope is None:
            raise TransportError(
                f"Unexpected response from {url} (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        if not auth_endpoint and envelope.session_rejected:
            logger.warning("%s %s: login status %s", method, url, envelope.login_status.value)
            self._end_session()
            raise AuthenticationRequiredError()

        if envelope.is_error or response.is_error:
            logger.info("%s %s: error_code=%s", method, url, envelope.error_code)
            raise ApiError(envelope.error_code, data=envelope.data, status_code=response.status_code)

        if envelope.status == DDMSStatus.WARNING:
            logger.warning("%s %s: warning %s", method, url, envelope.error_code)

        return envelope

    def _refresh_tokens(self) -> None:
        refresh_token = self.session.refresh_token
        if not self.session.is_authenticated or not refresh_token:
            self._end_session()
            raise AuthenticationRequiredError()

        try:
            # Sent without the stale bearer header.
            response = self.http.post(REFRESH_PATH, json={"refreshToken": refresh_token})
            envelope = _parse_envelope(response)
            if (
                response.is_error
                or envelope is None
                or envelope.status != DDMSStatus.SUCCESS
                or not envelope.data
            ):
                raise TransportError("Token refresh failed", status_code=response.status_code)
            pair = TokenPair.model_validate(envelope.data)
        except (httpx.HTTPError, TransportError, ValidationError) as exc:
            logger.warning("Token refresh failed: %s", exc)
            self._end_session()
            raise SessionExpiredError(SESSION_EXPIRED_MESSAGE) from exc

        self.session.swap_tokens(pair.token, pair.refresh_token or refresh_token)
        logger.info("Access token refreshed")

    def _end_session(self) -> None:
        if self.on_auth_failure is not None:
            self.on_auth_failure()
        else:
            self.session.clear()
