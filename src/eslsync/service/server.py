"""
Webhook receiver.

Exposes the inbound item-update endpoint the back-office system posts to.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from eslsync import __version__
from eslsync.config import SyncConfig, get_config
from eslsync.core.errors import ServiceUnavailableError
from eslsync.core.records import decode_records
from eslsync.service.orchestrator import SyncOrchestrator

logger = structlog.get_logger(__name__)


def _first_validation_message(error: ValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def create_app(orchestrator: SyncOrchestrator, config: Optional[SyncConfig] = None) -> FastAPI:
    """
    Build the webhook application.

    Only POST is routed, so other methods get 405 from FastAPI.

    Args:
        orchestrator: Pipeline orchestrator handling each request
        config: Sync configuration (webhook path, shutdown grace)

    Returns:
        The FastAPI application
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await orchestrator.client.connect()
        logger.info(
            "webhook_started",
            path=config.webhook_path,
            sink=config.sink_base_url,
            stores=list(orchestrator.store_map),
        )
        yield
        await orchestrator.shutdown(config.shutdown_grace_seconds)

    app = FastAPI(title="esl-sync", version=__version__, lifespan=lifespan)

    @app.post(config.webhook_path, response_class=PlainTextResponse)
    async def receive_items(request: Request) -> PlainTextResponse:
        body = await request.body()
        logger.info("request_received", path=request.url.path, size_bytes=len(body))

        if not body.strip():
            return PlainTextResponse("Empty request body", status_code=400)

        try:
            records = decode_records(body)
        except ValidationError as e:
            message = _first_validation_message(e)
            logger.error("request_decode_failed", error=message)
            return PlainTextResponse(f"Invalid JSON: {message}", status_code=400)

        if not records:
            return PlainTextResponse("No items to process", status_code=200)

        try:
            outcome, status = await orchestrator.handle(records)
        except ServiceUnavailableError as e:
            return PlainTextResponse(str(e), status_code=503)

        return PlainTextResponse(outcome.summary(), status_code=status)

    return app
