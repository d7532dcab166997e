"""Typed error taxonomy for transcription jobs.

WHY: Every way a job can end badly needs its own human-readable message
(shown by default) and its raw technical details (shown on demand).
Callers distinguish the cases by exception type instead of parsing
message strings.

HOW: TranscriptionError is the common base carrying ``message`` and an
optional ``raw_payload``. Subclasses name each failure class. Upload
failures share an UploadError parent so callers can catch "the job never
started" in one place.

RULES:
- Every error is terminal for the current job; nothing is resubmitted
- ``message`` is safe to show to the user
- ``raw_payload`` holds the decoded response body (or text) when one exists
"""

from __future__ import annotations

from typing import Any, Optional


class TranscriptionError(Exception):
    """Base class for all job-ending failures."""

    def __init__(self, message: str, raw_payload: Optional[Any] = None) -> None:
        self.message = message
        self.raw_payload = raw_payload
        super().__init__(message)


class ConnectivityError(TranscriptionError):
    """Transport failure or deadline expiry talking to the service.

    Retried within the attempt budget while polling; never retried for
    the upload.
    """


class UploadError(TranscriptionError):
    """The upload did not yield a job identifier."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        raw_payload: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, raw_payload)


class ClientInputError(UploadError):
    """The service rejected the request (HTTP 4xx)."""


class ServerFault(UploadError):
    """The service failed while handling the request (HTTP 5xx)."""


class RemoteJobError(TranscriptionError):
    """The service reported the job itself as failed."""


class BudgetExceeded(TranscriptionError):
    """Every poll attempt was used while the job was still processing."""


class ResponseFormatError(TranscriptionError):
    """A response body could not be decoded into a known shape."""


class JobCancelledError(TranscriptionError):
    """The caller cancelled the job through its cancellation token."""


class AuthenticationError(TranscriptionError):
    """Sign-in against the auth service failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        raw_payload: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, raw_payload)
