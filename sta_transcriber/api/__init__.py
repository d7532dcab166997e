"""Transcription service API package — async HTTP interface to the service.

WHY: A transcription needs to wake the hosted service, upload the audio,
and query the job status until it finishes; signing in is a separate
service. This package keeps all of that HTTP behind two client classes.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptionClient
covers wake/submit/status, AuthClient covers sign-in. Response bodies are
validated into typed dataclasses (models.py); every failure is raised as
one of the TranscriptionError subclasses (errors.py).

RULES:
- All HTTP calls go through these clients (no direct httpx usage elsewhere)
- Callers catch TranscriptionError subclasses, never httpx exceptions
"""

from sta_transcriber.api.auth import AuthClient
from sta_transcriber.api.client import TranscriptionClient
from sta_transcriber.api.errors import (
    AuthenticationError,
    BudgetExceeded,
    ClientInputError,
    ConnectivityError,
    JobCancelledError,
    RemoteJobError,
    ResponseFormatError,
    ServerFault,
    TranscriptionError,
    UploadError,
)
from sta_transcriber.api.models import AuthSession, RemoteStatus, StatusResponse, SubmitResponse

__all__ = [
    "AuthClient",
    "AuthSession",
    "AuthenticationError",
    "BudgetExceeded",
    "ClientInputError",
    "ConnectivityError",
    "JobCancelledError",
    "RemoteJobError",
    "RemoteStatus",
    "ResponseFormatError",
    "ServerFault",
    "StatusResponse",
    "SubmitResponse",
    "TranscriptionClient",
    "TranscriptionError",
    "UploadError",
]
