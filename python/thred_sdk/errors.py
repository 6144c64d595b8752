"""
Location: python/thred_sdk/errors.py

Summary:
    Error taxonomy for the thred-sdk. Every failure surfaced by the SDK is
    a ThredError tagged with an ErrorKind, an optional HTTP status and the
    parsed error body when one was available.

Usage:
    Used by client.py to classify non-success HTTP responses and
    transport failures (including timeouts).

Example:
    from thred_sdk.errors import ErrorKind, ThredError

    try:
        await client.answer({"message": "Hello"})
    except ThredError as e:
        if e.kind is ErrorKind.AUTHENTICATION:
            refresh_key()
"""

import asyncio
import enum
import logging
from typing import Optional

import httpx
import pydantic

from .types import ErrorResponse


logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    """Category of a ThredError."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    SERVER = "server"
    NETWORK = "network"
    TIMEOUT = "timeout"
    GENERIC = "generic"


# HTTP status codes with a dedicated kind; everything else is GENERIC
STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    500: ErrorKind.SERVER,
}


class ThredError(Exception):
    """
    Exception raised for every SDK failure.

    Attributes:
        kind: Category of the failure
        status_code: HTTP status code, when the failure came from a response
        response: Parsed JSON error body, when the server sent one
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.GENERIC,
        status_code: Optional[int] = None,
        response: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.response = response

    def __repr__(self) -> str:
        return (
            f"ThredError({self.message!r}, kind={self.kind.name}, "
            f"status_code={self.status_code!r})"
        )


async def raise_for_response(response: httpx.Response) -> None:
    """
    Raise a ThredError for a non-success response.

    The error body is only read when the server declares JSON; a body that
    fails to parse is ignored and the reason phrase is used as the message.

    Args:
        response: A completed or streaming httpx.Response

    Raises:
        ThredError: Always, unless the response is a success
    """
    if response.is_success:
        return

    error_data: Optional[dict] = None
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            await response.aread()
            parsed = response.json()
            if isinstance(parsed, dict):
                error_data = parsed
        except (ValueError, httpx.HTTPError):
            pass

    message = None
    if error_data:
        try:
            error_body = ErrorResponse.model_validate(error_data)
            message = error_body.message or error_body.error
        except pydantic.ValidationError:
            pass
    message = message or response.reason_phrase or f"HTTP {response.status_code}"

    kind = STATUS_KINDS.get(response.status_code, ErrorKind.GENERIC)
    logger.debug("API returned %s, classified as %s", response.status_code, kind.value)
    raise ThredError(message, kind, response.status_code, error_data)


def transport_error(exc: BaseException, timeout_ms: int) -> ThredError:
    """
    Map a transport-level exception to a ThredError.

    Timeouts from either httpx or the client deadline become TIMEOUT;
    any other httpx request failure (connection, protocol, decoding,
    redirects) becomes NETWORK.

    Args:
        exc: The exception raised while sending or reading
        timeout_ms: Configured timeout, used in the message

    Returns:
        The ThredError to raise in its place
    """
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return ThredError(f"Request timed out after {timeout_ms}ms", ErrorKind.TIMEOUT)
    return ThredError(str(exc) or "Network request failed", ErrorKind.NETWORK)
