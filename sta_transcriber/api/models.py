"""Transcription service request and response dataclasses.

WHY: The service returns loosely-typed JSON objects. Typed, validated
dataclasses make the boundary explicit: nothing downstream ever sees a
raw dict, and a malformed payload is rejected at the edge instead of
surfacing as a KeyError three layers later.

HOW: Each dataclass maps 1:1 to a service JSON object. Factory methods
(from_dict) validate and parse raw responses, raising ResponseFormatError
on anything outside the known shape.

RULES:
- RemoteStatus is a closed set: processing, completed, error
- StatusResponse.text is only meaningful when status is completed
- confidence is a float 0.0–1.0 or None
- from_dict never returns a partially-valid object
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sta_transcriber.api.errors import ResponseFormatError


class RemoteStatus(str, enum.Enum):
    """Job status as reported by GET /status/{transcript_id}."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ResponseFormatError(
            "Unexpected response from the server", raw_payload=data
        )
    return value


def _optional_float(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseFormatError(
            "Unexpected response from the server", raw_payload=data
        )
    return float(value)


@dataclass(frozen=True)
class SubmitResponse:
    """Accepted upload from POST /transcribe-async.

    RULES:
    - transcript_id is a non-empty string
    """

    transcript_id: str

    @classmethod
    def from_dict(cls, data: Any) -> SubmitResponse:
        if not isinstance(data, dict):
            raise ResponseFormatError(
                "Unexpected response from the server", raw_payload=data
            )
        transcript_id = data.get("transcript_id")
        if isinstance(transcript_id, int) and not isinstance(transcript_id, bool):
            transcript_id = str(transcript_id)
        if not isinstance(transcript_id, str) or not transcript_id:
            raise ResponseFormatError(
                "The server did not return a transcript id", raw_payload=data
            )
        return cls(transcript_id=transcript_id)


@dataclass(frozen=True)
class StatusResponse:
    """Status response from polling GET /status/{transcript_id}.

    WHY: The poller branches on the remote status. Validating here means
    the state machine only ever handles the three known states.

    HOW: Maps the top-level fields of the status response. A missing
    ``text`` on a completed job is read as an empty transcript (the audio
    held no speech); a non-string ``text`` is a format error.

    RULES:
    - status is one of RemoteStatus
    - error is only meaningful when status is "error"
    - raw keeps the decoded body for "technical details" display
    """

    status: RemoteStatus
    text: str = ""
    language_code: Optional[str] = None
    confidence: Optional[float] = None
    error: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Any) -> StatusResponse:
        if not isinstance(data, dict):
            raise ResponseFormatError(
                "Unexpected response from the server", raw_payload=data
            )
        try:
            status = RemoteStatus(data.get("status"))
        except ValueError:
            raise ResponseFormatError(
                "Unexpected response from the server", raw_payload=data
            )

        return cls(
            status=status,
            text=_optional_str(data, "text") or "",
            language_code=_optional_str(data, "language_code"),
            confidence=_optional_float(data, "confidence"),
            error=_optional_str(data, "error"),
            raw=data,
        )


@dataclass(frozen=True)
class AuthSession:
    """Successful sign-in from POST /auth/login.

    RULES:
    - token is the bearer token issued by the auth service
    - user is the user record as returned (at least an email)
    """

    token: str
    user: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Any) -> AuthSession:
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            raise ResponseFormatError(
                "Unexpected response from the auth server", raw_payload=data
            )
        body = data["data"]
        token = body.get("token")
        user = body.get("user")
        if not isinstance(token, str) or not token or not isinstance(user, dict):
            raise ResponseFormatError(
                "Unexpected response from the auth server", raw_payload=data
            )
        return cls(token=token, user=user)
