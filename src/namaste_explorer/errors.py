"""Error taxonomy for API calls.

Every failure leaving the client is one of three kinds:

- HttpResponseError: the server answered with an error status.
- NetworkError: the request went out but no response came back.
- GenericError: anything else (bad parameters, undecodable payloads, ...).
"""

import json

import httpx

NETWORK_ERROR_MESSAGE = "Network Error: No response received from server"
UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"

# distinguishes an unreadable body from a JSON null body
_UNREADABLE = object()


class ApiClientError(Exception):
    """Base class for every classified client error."""

    kind = "generic"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class HttpResponseError(ApiClientError):
    """The server responded with a non-success status code."""

    kind = "http"

    def __init__(self, status_code: int, body, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NetworkError(ApiClientError):
    """No response was received (timeout, refused connection, DNS failure)."""

    kind = "network"

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)


class GenericError(ApiClientError):
    """Any failure that is neither an HTTP error response nor a network fault."""

    kind = "generic"


def classify_error(exc: BaseException) -> ApiClientError:
    """Convert any exception raised during a call into an ApiClientError."""
    if isinstance(exc, ApiClientError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        return _from_response(exc)
    if isinstance(exc, httpx.RequestError):
        return NetworkError()
    message = str(exc)
    return GenericError(message or UNKNOWN_ERROR_MESSAGE)


def _from_response(exc: httpx.HTTPStatusError) -> HttpResponseError:
    response = exc.response
    body = _response_body(response)
    if body is _UNREADABLE:
        body = None
        detail = str(exc)
    elif isinstance(body, str):
        detail = json.dumps(body) if body else str(exc)
    else:
        detail = json.dumps(body)
    return HttpResponseError(
        status_code=response.status_code,
        body=body,
        message=f"API Error: {response.status_code} - {detail}",
    )


def _response_body(response: httpx.Response):
    """Return the decoded JSON body, the raw text, or _UNREADABLE."""
    try:
        return response.json()
    except ValueError:
        pass
    try:
        return response.text
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        return _UNREADABLE
