"""Async HTTP client for the transcription service.

WHY: A job needs three calls against the service: a best-effort wake-up
probe (the service sleeps when idle and can take a minute to start), the
audio upload that returns a job id, and the status query the poller
repeats until the job is done. This module keeps all HTTP details behind
one client class so the poller, runner, CLI, and tests never touch httpx
directly.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptionClient is
an async context manager — enter it to open the connection pool, exit to
close it. Every call gets its own deadline, enforced by the cancellation
token on top of the httpx timeout, so a slow call aborts only itself.

RULES:
- Always use the async context manager (async with TranscriptionClient() as client:)
- wake() never raises for network reasons; failures are logged and swallowed
- submit() classifies failures: 4xx → ClientInputError, 5xx → ServerFault,
  other non-2xx → UploadError, timeout/network → ConnectivityError;
  it never retries
- get_status() lets transport errors and timeouts propagate to the poller,
  which owns the retry policy
- Response bodies are validated into api.models dataclasses before return
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import time
from typing import Any, Optional

import httpx

from sta_transcriber.api.errors import (
    ClientInputError,
    ConnectivityError,
    ResponseFormatError,
    ServerFault,
    UploadError,
)
from sta_transcriber.api.models import StatusResponse, SubmitResponse
from sta_transcriber.config import (
    POLL_TIMEOUT_S,
    TRANSCRIBE_API_URL,
    UPLOAD_TIMEOUT_S,
    WAKE_TIMEOUT_S,
)
from sta_transcriber.core.cancel import CancellationToken

logger = logging.getLogger(__name__)

# Caller-facing messages for upload rejections without a usable body message.
_CLIENT_ERROR_MESSAGES = {
    400: "The audio file was rejected. Check the file and try again.",
    401: "You are not authorized to use the transcription service.",
    403: "Access to the transcription service was denied.",
    404: "The transcription service endpoint was not found.",
    413: "The audio file is too large.",
    415: "The audio format is not supported.",
    429: "Too many requests. Wait a moment and try again.",
}

_UPLOAD_TIMEOUT_MESSAGE = (
    "The server took too long to respond. It may be starting up; "
    "try again in 30 seconds."
)
_UPLOAD_NETWORK_MESSAGE = (
    "Could not connect to the server. It may be starting up; "
    "wait 30 seconds and try again."
)


def _decode_body(resp: httpx.Response) -> Any:
    """Return the JSON body, or the raw text when it is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _body_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


class TranscriptionClient:
    """Async client for the transcription service.

    WHY: Provides a clean, typed interface for the job workflow:
    wake → submit → get_status (repeated by the poller). Handles deadlines,
    error classification, and payload validation.

    HOW: Wraps httpx.AsyncClient. Each method accepts an optional
    CancellationToken; a fresh token is used when none is given.

    RULES:
    - Use as: async with TranscriptionClient() as client: ...
    - base_url defaults to TRANSCRIBE_API_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        wake_timeout: float = WAKE_TIMEOUT_S,
        upload_timeout: float = UPLOAD_TIMEOUT_S,
        poll_timeout: float = POLL_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or TRANSCRIBE_API_URL).rstrip("/")
        self.wake_timeout = wake_timeout
        self.upload_timeout = upload_timeout
        self.poll_timeout = poll_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> TranscriptionClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Accept": "application/json"},
            # Per-call deadlines are applied in each method; this only
            # bounds connection setup.
            timeout=httpx.Timeout(None, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TranscriptionClient must be used as an async context manager: "
                "async with TranscriptionClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Step 1: Wake the service
    # ------------------------------------------------------------------

    async def wake(self, cancel: CancellationToken | None = None) -> bool:
        """Probe GET /health so a sleeping service starts booting.

        WHY: The hosted service spins down when idle. Hitting /health
        first absorbs the cold start under a generous deadline, so the
        upload that follows is less likely to time out.

        HOW: Issues the probe under the wake deadline. The response body
        is ignored. Any failure is logged and swallowed, because the
        service may be reachable even when the probe fails.

        RULES:
        - Never raises for timeouts, network errors, or HTTP errors
        - Still raises JobCancelledError when the token is cancelled
        - Returns True when the probe got any 2xx response

        Args:
            cancel: Optional cancellation token.

        Returns:
            Whether the probe succeeded (informational only).
        """
        client = self._ensure_client()
        cancel = cancel or CancellationToken()
        started = time.monotonic()
        try:
            resp = await cancel.run(
                client.get("/health", timeout=self.wake_timeout),
                timeout=self.wake_timeout,
            )
        except (asyncio.TimeoutError, httpx.HTTPError) as exc:
            logger.warning(
                "Wake-up probe failed (continuing anyway): %s",
                exc.__class__.__name__,
            )
            return False

        elapsed = time.monotonic() - started
        if resp.is_success:
            logger.info("Service awake (%.2fs)", elapsed)
            return True
        logger.warning(
            "Wake-up probe returned HTTP %d after %.2fs (continuing anyway)",
            resp.status_code, elapsed,
        )
        return False

    # ------------------------------------------------------------------
    # Step 2: Upload audio
    # ------------------------------------------------------------------

    async def submit(
        self,
        audio_bytes: bytes,
        filename: str,
        cancel: CancellationToken | None = None,
    ) -> str:
        """Upload the audio and return the service's job identifier.

        WHY: POST /transcribe-async accepts the audio and starts the job
        in the background, answering 202 with the transcript id the
        poller needs.

        HOW: Sends a multipart/form-data POST with the audio in the
        ``audio`` field, under the upload deadline. Classifies every
        failure into the error taxonomy.

        RULES:
        - 2xx with transcript_id → returns the id
        - 2xx without transcript_id → UploadError (body message or generic)
        - 4xx → ClientInputError with a caller-facing message
        - 5xx → ServerFault with a generic server-error message
        - any other non-2xx (e.g. 3xx) → UploadError
        - timeout or network failure → ConnectivityError, no retry

        Args:
            audio_bytes: Raw audio file content.
            filename: Original file name (sent with the upload).
            cancel: Optional cancellation token.

        Returns:
            The transcript id assigned by the service.
        """
        client = self._ensure_client()
        cancel = cancel or CancellationToken()
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        logger.info(
            "Uploading %s (%.2f MB)", filename, len(audio_bytes) / 1024 / 1024
        )
        started = time.monotonic()
        try:
            resp = await cancel.run(
                client.post(
                    "/transcribe-async",
                    files={"audio": (filename, audio_bytes, content_type)},
                    timeout=self.upload_timeout,
                ),
                timeout=self.upload_timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ConnectivityError(_UPLOAD_TIMEOUT_MESSAGE) from exc
        except httpx.HTTPError as exc:
            raise ConnectivityError(_UPLOAD_NETWORK_MESSAGE) from exc

        logger.info(
            "Upload finished in %.2fs | HTTP %d",
            time.monotonic() - started, resp.status_code,
        )

        body = _decode_body(resp)

        if resp.is_client_error:
            message = _body_message(body) or _CLIENT_ERROR_MESSAGES.get(
                resp.status_code,
                "The request was rejected (HTTP {}).".format(resp.status_code),
            )
            raise ClientInputError(message, status_code=resp.status_code, raw_payload=body)

        if resp.is_server_error:
            raise ServerFault(
                "Server error (HTTP {})".format(resp.status_code),
                status_code=resp.status_code,
                raw_payload=body,
            )

        if not resp.is_success:
            raise UploadError(
                _body_message(body)
                or "Unexpected response from the server (HTTP {})".format(resp.status_code),
                status_code=resp.status_code,
                raw_payload=body,
            )

        try:
            accepted = SubmitResponse.from_dict(body)
        except ResponseFormatError:
            raise UploadError(
                _body_message(body) or "Could not start the transcription",
                status_code=resp.status_code,
                raw_payload=body,
            )

        logger.info("Job accepted: %s", accepted.transcript_id)
        return accepted.transcript_id

    # ------------------------------------------------------------------
    # Step 3: Status query (called repeatedly by the poller)
    # ------------------------------------------------------------------

    async def get_status(
        self,
        transcript_id: str,
        cancel: CancellationToken | None = None,
    ) -> StatusResponse:
        """Fetch and validate the current status of a job.

        WHY: The poller needs a typed, validated view of GET /status/{id}
        so its state machine only branches on known states.

        HOW: Issues the query under the per-poll deadline and parses the
        body into a StatusResponse.

        RULES:
        - asyncio.TimeoutError / httpx.TransportError propagate unchanged
          (the poller decides whether to retry)
        - An undecodable or unknown-shape body → ResponseFormatError
          (not retried); the HTTP status is recorded in the message

        Args:
            transcript_id: The id returned by submit().
            cancel: Optional cancellation token.

        Returns:
            The parsed StatusResponse.
        """
        client = self._ensure_client()
        cancel = cancel or CancellationToken()
        resp = await cancel.run(
            client.get("/status/{}".format(transcript_id), timeout=self.poll_timeout),
            timeout=self.poll_timeout,
        )

        try:
            body = resp.json()
        except ValueError:
            raise ResponseFormatError(
                "Could not read the job status (HTTP {})".format(resp.status_code),
                raw_payload=resp.text,
            )

        try:
            return StatusResponse.from_dict(body)
        except ResponseFormatError as exc:
            if not resp.is_success:
                raise ResponseFormatError(
                    "Could not read the job status (HTTP {})".format(resp.status_code),
                    raw_payload=body,
                ) from exc
            raise
