"""Diagnostic classification of failed requests.

Classification runs once over the captured errors when the final report is
built. It never feeds back into the run.
"""

from __future__ import annotations

import errno
import ssl

import httpx

from wb.metrics.models import ErrorDescription, ErrorKind

TEMPORARY_ERRNOS = frozenset(
    {
        errno.EAGAIN,
        errno.EINTR,
        errno.ECONNRESET,
        errno.ECONNABORTED,
        errno.ECONNREFUSED,
        errno.EPIPE,
    }
)

# httpx errors raised for a transport hiccup rather than a broken target.
TEMPORARY_TYPES: tuple[type[BaseException], ...] = (
    httpx.ReadError,
    httpx.WriteError,
    httpx.RemoteProtocolError,
)

_MAX_CHAIN = 8


def describe_error(exc: BaseException) -> ErrorDescription:
    request_error = isinstance(exc, (httpx.RequestError, httpx.InvalidURL))
    inner = exc
    if isinstance(exc, httpx.RequestError) and exc.__cause__ is not None:
        inner = exc.__cause__
    os_error = _find_os_error(inner)
    timeout = isinstance(exc, httpx.TimeoutException) or isinstance(os_error, TimeoutError)
    temporary = isinstance(exc, TEMPORARY_TYPES) or (
        os_error is not None and not isinstance(os_error, ssl.SSLError) and os_error.errno in TEMPORARY_ERRNOS
    )
    return ErrorDescription(
        type_name=type(exc).__name__,
        message=str(exc) or repr(exc),
        request_error=request_error,
        network_error=isinstance(exc, httpx.TransportError) or os_error is not None,
        timeout=timeout,
        temporary=temporary,
    )


def classify(description: ErrorDescription) -> ErrorKind:
    if not (description.request_error or description.network_error):
        return ErrorKind.UNCLASSIFIED
    if description.timeout:
        return ErrorKind.TIMEOUT
    if description.temporary:
        return ErrorKind.TEMPORARY
    return ErrorKind.OTHER


def _find_os_error(exc: BaseException) -> OSError | None:
    seen = 0
    current: BaseException | None = exc
    while current is not None and seen < _MAX_CHAIN:
        if isinstance(current, OSError):
            return current
        current = current.__cause__ or current.__context__
        seen += 1
    return None
