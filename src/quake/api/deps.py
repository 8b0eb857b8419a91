"""FastAPI dependency injection."""

from fastapi import Depends, Request

from quake.common.config import Settings, get_settings
from quake.query.errors import QueryError
from quake.store.protocol import EventStore


class InfrastructureNotReady(QueryError):
    """Required configuration is missing; the service cannot answer queries."""

    code = "INFRASTRUCTURE_NOT_READY"
    status_code = 503


def get_event_store(request: Request) -> EventStore:
    store: EventStore | None = getattr(request.app.state, "event_store", None)
    if store is None:
        raise InfrastructureNotReady("TABLE_NAME environment variable not set")
    return store


def get_next_token_secret(settings: Settings = Depends(get_settings)) -> str:
    if not settings.next_token_secret:
        raise InfrastructureNotReady("NEXT_TOKEN_SECRET environment variable not set")
    return settings.next_token_secret
