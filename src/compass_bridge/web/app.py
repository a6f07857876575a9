"""FastAPI application exposing the capability host over HTTP."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from compass_bridge import __version__
from compass_bridge.api.mcp.context import HostContext
from compass_bridge.api.mcp.handler import ResponseEnvelope, recover_request_id
from compass_bridge.core.mcp.exceptions import (
    INVALID_REQUEST_CODE,
    InvalidRequestError,
    OrchestrationError,
    ProviderNotFoundError,
)
from compass_bridge.core.mcp.models import dump

logger = logging.getLogger(__name__)


class ProcessRequest(BaseModel):
    """Natural-language request body."""

    prompt: str = Field(..., min_length=1)
    context: dict[str, Any] | None = None


def _grouped(entries: list[dict[str, Any]], key: str) -> list[dict[str, Any]]:
    return [
        {"providerName": entry["providerName"], key: [dump(item) for item in entry[key]]}
        for entry in entries
    ]


def create_app(context: HostContext) -> FastAPI:
    """Build the HTTP front end for a host context."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001
        logger.info(
            f"Starting {context.settings.host.server_name} with "
            f"{len(context.router)} providers"
        )
        yield
        logger.info(f"Shutting down {context.settings.host.server_name}")

    app = FastAPI(
        title="Compass Bridge",
        description="Envelope endpoint and orchestration API for capability providers",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    @app.post("/mcp/{provider_name}")
    async def handle_envelope(provider_name: str, request: Request) -> dict[str, Any]:
        """Handle one request envelope for a single provider."""
        try:
            payload = await request.json()
        except ValueError:
            error = InvalidRequestError("Invalid request: body is not valid JSON")
            return ResponseEnvelope.failure(
                None, INVALID_REQUEST_CODE, error.message, error.to_data()
            ).to_dict()

        try:
            handler = context.handler(provider_name)
        except ProviderNotFoundError as e:
            request_id = recover_request_id(payload)
            logger.warning(e.message)
            return ResponseEnvelope.from_exception(request_id, e).to_dict()

        response = await handler.handle_raw(payload)
        return response.to_dict()

    @app.post("/process")
    async def process(body: ProcessRequest) -> dict[str, Any]:
        """Plan and run a natural-language request across all providers."""
        try:
            return await context.orchestrator.process(body.prompt, body.context)
        except OrchestrationError as e:
            logger.error(f"Orchestration failed: {e.message}")
            raise HTTPException(status_code=502, detail=e.message) from e

    @app.get("/tools")
    async def list_tools() -> dict[str, Any]:
        return {"tools": _grouped(await context.router.list_all_tools(), "tools")}

    @app.get("/resources")
    async def list_resources() -> dict[str, Any]:
        return {
            "resources": _grouped(
                await context.router.list_all_resources(), "resources"
            )
        }

    @app.get("/prompts")
    async def list_prompts() -> dict[str, Any]:
        return {"prompts": _grouped(await context.router.list_all_prompts(), "prompts")}

    @app.get("/status")
    async def status() -> dict[str, Any]:
        return context.router.status()

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": context.settings.host.server_name}

    return app
