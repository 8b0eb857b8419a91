"""FastAPI application factory."""

from contextlib import AsyncExitStack, asynccontextmanager

import aioboto3
import structlog
from botocore.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quake.api.middleware import REQUEST_ID_HEADER, RequestIdMiddleware, RequestLoggingMiddleware
from quake.api.routes import earthquakes
from quake.common.config import get_settings
from quake.common.logging import configure_logging
from quake.common.models import ErrorResponse
from quake.query.errors import CursorError, QueryError, StoreUnavailable
from quake.store.dynamodb import DynamoDBEventStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    async with AsyncExitStack() as stack:
        # --- DynamoDB client + event store ---
        event_store = None
        if settings.is_store_configured:
            session = aioboto3.Session()
            client = await stack.enter_async_context(
                session.client(
                    "dynamodb",
                    region_name=settings.aws_region,
                    endpoint_url=settings.dynamodb_endpoint_url or None,
                    config=Config(retries={"max_attempts": 3, "mode": "standard"}),
                )
            )
            event_store = DynamoDBEventStore(
                client,
                table_name=settings.table_name,
                index_name=settings.time_ordered_index,
                fetch_multiplier=settings.store_fetch_multiplier,
                min_fetch_limit=settings.store_min_fetch_limit,
            )
            logger.info("dynamodb_store_ready", table=settings.table_name, region=settings.aws_region)
        else:
            logger.warning("dynamodb_not_configured", detail="TABLE_NAME is not set; queries will return 503.")
        app.state.event_store = event_store

        if not settings.next_token_secret:
            logger.warning("next_token_secret_missing", detail="NEXT_TOKEN_SECRET is not set; queries will return 503.")

        yield

    app.state.event_store = None


async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    """Render QueryError subclasses as the API error envelope."""
    if isinstance(exc, CursorError):
        body = ErrorResponse(error="INVALID_NEXT_TOKEN", message=exc.message, details={"reason": exc.code})
        logger.warning("invalid_next_token", reason=exc.code, detail=exc.message)
    elif isinstance(exc, StoreUnavailable):
        body = ErrorResponse(error="DATABASE_UNAVAILABLE", message="Database query failed")
        logger.error("database_unavailable", detail=exc.message, exc_info=exc)
    else:
        body = ErrorResponse(error=exc.code, message=exc.message)
        logger.error("query_error", code=exc.code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [str(error.get("msg", "")) for error in exc.errors()]
    logger.warning("request_validation_failed", errors=messages)
    body = ErrorResponse(error="VALIDATION_ERROR", message="; ".join(messages), details={"errors": messages})
    return JSONResponse(status_code=400, content=body.model_dump())


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Earthquake Query API",
        description="Time and magnitude filtered earthquake listings with signed pagination",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(QueryError, query_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]

    app.include_router(earthquakes.router, prefix="/api", tags=["earthquakes"])

    @app.get("/api/health")
    async def health(request: Request):
        services: dict[str, str] = {}

        event_store = getattr(request.app.state, "event_store", None)
        if event_store is not None:
            try:
                services["dynamodb"] = "up" if await event_store.health_check() else "down"
            except Exception:
                logger.warning("health_check_dynamodb_failed", exc_info=True)
                services["dynamodb"] = "down"
        else:
            services["dynamodb"] = "down"

        all_up = all(v == "up" for v in services.values())
        return JSONResponse(
            status_code=200 if all_up else 503,
            content={
                "status": "healthy" if all_up else "unhealthy",
                "services": services,
            },
        )

    return app


app = create_app()
