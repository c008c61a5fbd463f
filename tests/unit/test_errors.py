"""
Unit tests for HTTP status classification.
"""

from __future__ import annotations

import pytest

from orthanc_api.dicom.errors import (
    ApiResponseError,
    BareStatusError,
    DecodeError,
    OrthancError,
    StatusError,
    check_http_error,
)
from orthanc_api.dicom.models import ApiError

BAD_FILE_FORMAT = (
    b'{"Method":"POST","Uri":"/instances","Message":"Bad file format",'
    b'"Details":"Cannot parse an invalid DICOM file (size: 12 bytes)",'
    b'"HttpStatus":400,"HttpError":"Bad Request","OrthancStatus":15,"OrthancError":"Bad file format"}'
)


class TestCheckHttpError:
    """Verify the success/failure split around status 400."""

    @pytest.mark.parametrize("status", [200, 201, 204, 301, 308, 399])
    @pytest.mark.parametrize("body", [b"", b"foo", b"\xff\xfe", BAD_FILE_FORMAT])
    def test_below_400_passes_body_through(self, status: int, body: bytes) -> None:
        assert check_http_error(status, body) is body

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 500, 504])
    def test_empty_body_is_bare_status_error(self, status: int) -> None:
        with pytest.raises(BareStatusError) as excinfo:
            check_http_error(status, b"")
        assert excinfo.value.status_code == status
        assert excinfo.value.details is None

    def test_bare_status_error_message(self) -> None:
        with pytest.raises(BareStatusError) as excinfo:
            check_http_error(401, b"")
        assert excinfo.value.message == "API error: 401 Unauthorized"
        assert excinfo.value.reason == "Unauthorized"

    def test_explicit_reason_is_kept(self) -> None:
        with pytest.raises(BareStatusError) as excinfo:
            check_http_error(404, b"", "Nothing Here")
        assert str(excinfo.value) == "API error: 404 Nothing Here"

    def test_structured_body_is_api_response_error(self) -> None:
        with pytest.raises(ApiResponseError) as excinfo:
            check_http_error(400, BAD_FILE_FORMAT)
        assert excinfo.value.status_code == 400
        assert excinfo.value.message == "API error: 400 Bad Request"
        assert excinfo.value.details == ApiError(
            method="POST",
            uri="/instances",
            message="Bad file format",
            details="Cannot parse an invalid DICOM file (size: 12 bytes)",
            http_status=400,
            http_error="Bad Request",
            orthanc_status=15,
            orthanc_error="Bad file format",
        )

    def test_structured_body_without_details(self) -> None:
        body = (
            b'{"Method":"GET","Uri":"/patients/x","Message":"Unknown resource",'
            b'"HttpStatus":404,"HttpError":"Not Found","OrthancStatus":17,"OrthancError":"Unknown resource"}'
        )
        with pytest.raises(ApiResponseError) as excinfo:
            check_http_error(404, body)
        assert excinfo.value.details.details is None

    def test_unstructured_body_is_decode_error(self) -> None:
        with pytest.raises(DecodeError):
            check_http_error(504, b"foo bar baz")

    def test_status_errors_share_a_base(self) -> None:
        assert issubclass(ApiResponseError, StatusError)
        assert issubclass(BareStatusError, StatusError)
        assert issubclass(StatusError, OrthancError)
        assert not issubclass(DecodeError, StatusError)
