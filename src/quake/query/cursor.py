"""Signed, stateless pagination cursors (``nextToken``).

A token is ``<payload>.<signature>`` where ``payload`` is the unpadded
base64url encoding of the compact JSON resume state and ``signature`` is the
unpadded base64url HMAC-SHA256 of those same JSON bytes. The payload is
readable by anyone holding the token; the signature only stops it from being
altered or replayed against a different query.
"""

import base64
import binascii
import hashlib
import hmac
import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from quake.query.errors import InvalidSignature, MalformedCursor, ParameterMismatch, UnsupportedVersion

CURSOR_VERSION = 1

_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class ResumeState(BaseModel):
    """Everything needed to continue a paginated query where the last page stopped."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = Field(default=CURSOR_VERSION, alias="v")
    start_time: int = Field(alias="st")
    end_time: int = Field(alias="et")
    min_magnitude: float = Field(alias="mm")
    page_size: int = Field(alias="ps")
    bucket_keys: tuple[str, ...] = Field(alias="buckets")
    bucket_index: int = Field(alias="idx")
    # Opaque to this module; shape belongs to the store adapter.
    continuation_key: dict[str, Any] | None = Field(default=None, alias="lek")

    @model_validator(mode="after")
    def _check_bucket_index(self) -> "ResumeState":
        if not 0 <= self.bucket_index < len(self.bucket_keys):
            raise ValueError(f"bucket index {self.bucket_index} outside 0..{len(self.bucket_keys) - 1}")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "v": self.version,
            "st": self.start_time,
            "et": self.end_time,
            "mm": self.min_magnitude,
            "ps": self.page_size,
            "buckets": list(self.bucket_keys),
            "idx": self.bucket_index,
        }
        if self.continuation_key is not None:
            payload["lek"] = self.continuation_key
        return payload


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(segment: str) -> bytes:
    if not _B64URL_RE.match(segment):
        raise MalformedCursor("nextToken payload is not base64url")
    try:
        return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as exc:
        raise MalformedCursor("nextToken payload is not base64url") from exc


def _sign(raw: bytes, secret: str | bytes) -> bytes:
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    return hmac.new(key, raw, hashlib.sha256).digest()


def encode_cursor(state: ResumeState, secret: str | bytes) -> str:
    """Serialize and sign ``state`` into a URL-safe token."""
    raw = json.dumps(state.to_payload(), separators=(",", ":")).encode("utf-8")
    return f"{_b64url_encode(raw)}.{_b64url_encode(_sign(raw, secret))}"


def decode_cursor(token: str, secret: str | bytes) -> ResumeState:
    """Verify and parse a token produced by :func:`encode_cursor`.

    Raises:
        MalformedCursor: wrong shape, bad base64url, or an unparseable payload.
        InvalidSignature: the signature does not match the payload bytes.
        UnsupportedVersion: the payload carries an unknown version.
    """
    segments = token.split(".")
    if len(segments) != 2 or not all(segments):
        raise MalformedCursor("nextToken must have exactly two non-empty segments")
    payload_segment, signature_segment = segments

    raw = _b64url_decode(payload_segment)
    # A non-canonical segment decodes to the signed bytes but is not the token we issued.
    if _b64url_encode(raw) != payload_segment:
        raise InvalidSignature("nextToken signature does not match")

    expected = _b64url_encode(_sign(raw, secret)).encode("ascii")
    if not hmac.compare_digest(expected, signature_segment.encode("utf-8")):
        raise InvalidSignature("nextToken signature does not match")

    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise MalformedCursor("nextToken payload is not valid JSON") from exc
    if not isinstance(payload, dict) or "v" not in payload:
        raise MalformedCursor("nextToken payload is missing its version")

    version = payload["v"]
    if type(version) is not int or version != CURSOR_VERSION:
        raise UnsupportedVersion(f"Unsupported cursor version: {version!r}", metadata={"version": version})

    try:
        return ResumeState.model_validate(payload)
    except ValidationError as exc:
        raise MalformedCursor("nextToken payload has an invalid shape") from exc


def verify_binding(
    state: ResumeState,
    start_time: int,
    end_time: int,
    min_magnitude: float,
    page_size: int,
) -> None:
    """Raise ParameterMismatch unless the cursor was issued for exactly these parameters."""
    mismatched = [
        name
        for name, bound, presented in (
            ("starttime", state.start_time, start_time),
            ("endtime", state.end_time, end_time),
            ("minmagnitude", state.min_magnitude, min_magnitude),
            ("pageSize", state.page_size, page_size),
        )
        if bound != presented
    ]
    if mismatched:
        raise ParameterMismatch(
            "nextToken does not match query parameters",
            metadata={"fields": mismatched},
        )
