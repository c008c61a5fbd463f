"""
Orthanc API Client — HTTP Transport.

Thin wrapper around :class:`httpx.Client` that issues exactly one
request per call, attaches basic-auth credentials when configured and
turns transport-level failures into :class:`TransportError`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from orthanc_api.dicom.errors import TransportError

logger = logging.getLogger(__name__)


class Transport:
    """Authenticated request issuer bound to one Orthanc server.

    Args:
        base_url: Orthanc REST API root (e.g. ``http://localhost:8042``).
        username: Basic-auth username.
        password: Basic-auth password. Credentials are only sent when
            both *username* and *password* are given.
        timeout: Transport timeout in seconds; ``None`` waits until the
            server answers.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        auth = (username, password) if username is not None and password is not None else None
        self._client = httpx.Client(
            base_url=base_url,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        return self._base_url

    # Lifecycle

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    # Requests

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a single request and return the response, whatever its status.

        Args:
            method: HTTP verb (``GET``, ``POST``, ``PUT`` or ``DELETE``).
            path: Path relative to the base URL, query string included.
            json: Value serialized as a JSON body.
            content: Raw body sent verbatim; takes the place of *json*.
            headers: Extra request headers.

        Raises:
            TransportError: If no response could be obtained.
        """
        try:
            response = self._client.request(
                method,
                path,
                json=json,
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        logger.debug("%s %s → %d (%d bytes)", method, path, response.status_code, len(response.content))
        return response

    @staticmethod
    def decode_text(body: bytes) -> str:
        """Decode a text response body as UTF-8.

        Raises:
            TransportError: If *body* is not valid UTF-8.
        """
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TransportError(f"response is not valid UTF-8: {exc}") from exc
