"""
Orthanc API Client — Errors.

Every failure raised by the client derives from :class:`OrthancError`.
Callers branch on the concrete class: transport failures are usually
transient, decode failures point at a schema mismatch and status errors
carry what the server reported (``status_code == 404`` means "not found").
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from orthanc_api.dicom.models import ApiError

CLIENT_ERROR_THRESHOLD = 400


class OrthancError(Exception):
    """Base exception for all Orthanc client errors."""

    def __init__(self, message: str, details: ApiError | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details is None:
            return self.message
        return f"{self.message}: {self.details.message}"


class TransportError(OrthancError):
    """Connection, TLS or protocol failure, or a body that is not valid UTF-8."""


class DecodeError(OrthancError):
    """A response body did not match the expected JSON shape."""

    @classmethod
    def from_validation(cls, exc: ValidationError) -> DecodeError:
        return cls(f"cannot decode {exc.title}: {exc.errors(include_url=False)}")


class StatusError(OrthancError):
    """The server answered with a status code of 400 or above."""

    def __init__(
        self,
        status_code: int,
        reason: str,
        details: ApiError | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"API error: {status_code} {reason}", details)


class ApiResponseError(StatusError):
    """Status error whose body parsed as Orthanc's structured error."""

    details: ApiError


class BareStatusError(StatusError):
    """Status error with an empty body; only the status is known."""


def check_http_error(status_code: int, body: bytes, reason: str | None = None) -> bytes:
    """Classify a response and return its body when it is a success.

    Args:
        status_code: HTTP status of the response.
        body: Raw response body.
        reason: Reason phrase; derived from *status_code* when omitted.

    Returns:
        *body*, untouched, for any status below 400.

    Raises:
        BareStatusError: Status >= 400 and the body is empty.
        ApiResponseError: Status >= 400 and the body is an Orthanc error document.
        DecodeError: Status >= 400 and the body is not an Orthanc error document.
    """
    if status_code < CLIENT_ERROR_THRESHOLD:
        return body

    reason = reason or httpx.codes.get_reason_phrase(status_code)
    if not body:
        raise BareStatusError(status_code, reason)

    try:
        details = ApiError.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError.from_validation(exc) from exc
    raise ApiResponseError(status_code, reason, details)
