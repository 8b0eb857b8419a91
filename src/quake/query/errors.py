"""Error kinds raised by the cursor codec, the query engine, and store adapters.

Each kind is its own class carrying a stable ``code`` and an HTTP
``status_code`` so callers can branch on type instead of message text.
"""

from typing import Any


class QueryError(Exception):
    """Base class for all query-path errors."""

    code = "QUERY_ERROR"
    status_code = 500

    def __init__(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.metadata:
            data["metadata"] = self.metadata
        return data


class CursorError(QueryError):
    """A nextToken was rejected. Always a client error; never retried."""

    code = "INVALID_NEXT_TOKEN"
    status_code = 400


class MalformedCursor(CursorError):
    code = "MALFORMED_CURSOR"


class InvalidSignature(CursorError):
    code = "INVALID_SIGNATURE"


class UnsupportedVersion(CursorError):
    code = "UNSUPPORTED_VERSION"


class ParameterMismatch(CursorError):
    code = "PARAMETER_MISMATCH"


class StoreUnavailable(QueryError):
    """The store adapter failed or timed out. Transient."""

    code = "STORE_UNAVAILABLE"
    status_code = 503
