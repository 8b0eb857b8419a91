"""Earthquake query core -- day buckets, signed cursors, and the paginated query engine."""

from quake.query.buckets import day_bucket_for, enumerate_day_buckets
from quake.query.cursor import CURSOR_VERSION, ResumeState, decode_cursor, encode_cursor, verify_binding
from quake.query.engine import QueryRequest, QueryResult, execute_query
from quake.query.errors import (
    CursorError,
    InvalidSignature,
    MalformedCursor,
    ParameterMismatch,
    QueryError,
    StoreUnavailable,
    UnsupportedVersion,
)

__all__ = [
    "CURSOR_VERSION",
    "CursorError",
    "InvalidSignature",
    "MalformedCursor",
    "ParameterMismatch",
    "QueryError",
    "QueryRequest",
    "QueryResult",
    "ResumeState",
    "StoreUnavailable",
    "UnsupportedVersion",
    "day_bucket_for",
    "decode_cursor",
    "encode_cursor",
    "enumerate_day_buckets",
    "execute_query",
    "verify_binding",
]
