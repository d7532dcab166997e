"""Async sign-in client for the authentication service.

WHY: Access to the transcriber is gated behind an account. The sign-in
service is separate from the transcription service, so it gets its own
small client with its own error mapping.

HOW: One POST to {AUTH_API_URL}/login with a JSON body of email and
password. A successful body is validated into an AuthSession; anything
else is raised as AuthenticationError with a message chosen from the HTTP
status, falling back to the body's ``message``.

RULES:
- Empty email or password → AuthenticationError before any request
- 400 → malformed input, 401 → bad credentials, 500 → server error
- Other non-2xx → body ``message`` (or a generic sign-in failure)
- 2xx with ``success`` false → AuthenticationError with the body message
- Timeout or network failure → ConnectivityError
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from sta_transcriber.api.errors import (
    AuthenticationError,
    ConnectivityError,
    ResponseFormatError,
)
from sta_transcriber.api.models import AuthSession
from sta_transcriber.config import AUTH_API_URL

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    400: "Please fill in all fields correctly",
    401: "Incorrect email or password",
    500: "Server error. Try again later",
}
_EMPTY_FIELDS_MESSAGE = "Please fill in all fields"
_GENERIC_MESSAGE = "Sign-in failed"
_NETWORK_MESSAGE = (
    "Could not connect to the sign-in server. Check your internet "
    "connection or whether the server is available."
)


class AuthClient:
    """Signs a user in against the authentication service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or AUTH_API_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def login(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a session token.

        Raises:
            AuthenticationError: rejected credentials or a refused request.
            ConnectivityError: the auth service could not be reached.
        """
        if not email or not password:
            raise AuthenticationError(_EMPTY_FIELDS_MESSAGE)

        url = "{}/login".format(self.base_url)
        logger.info("Signing in as %s", email)
        started = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    url,
                    json={"email": email, "password": password},
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise ConnectivityError(_NETWORK_MESSAGE) from exc

        logger.info(
            "Sign-in response in %.2fs | HTTP %d",
            time.monotonic() - started, resp.status_code,
        )

        try:
            body = resp.json()
        except ValueError:
            body = None

        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str) or not message:
            message = None

        if not resp.is_success:
            raise AuthenticationError(
                _STATUS_MESSAGES.get(resp.status_code) or message or _GENERIC_MESSAGE,
                status_code=resp.status_code,
                raw_payload=body if body is not None else resp.text,
            )

        if not isinstance(body, dict) or not body.get("success"):
            raise AuthenticationError(
                message or _GENERIC_MESSAGE,
                status_code=resp.status_code,
                raw_payload=body,
            )

        try:
            session = AuthSession.from_dict(body)
        except ResponseFormatError as exc:
            raise AuthenticationError(
                exc.message, status_code=resp.status_code, raw_payload=body
            ) from exc

        logger.info("Signed in as %s", session.user.get("email", email))
        return session
