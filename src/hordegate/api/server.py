"""
Horde Gateway API Server

OpenAI-compatible front for the KoboldAI Horde.
- POST /v1/chat/completions and /v1/completions submit a horde job
- Each request polls its own job until done, then answers synchronously
- Decode failures answer 400, downstream and mapping failures answer 500
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from ..config.config_manager import Config, load_config
from ..errors import GatewayError
from .routes import create_router
from .service import GatewayService

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "upstream generation failed"


def format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts) or "invalid request body"


# ---------------------------------------------------------------------------
# FastAPI Application Factory
# ---------------------------------------------------------------------------

def create_app(config: Config = None, service: Optional[GatewayService] = None) -> FastAPI:
    if config is None:
        config = load_config("config.yaml")
    if service is None:
        service = GatewayService(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info(
            f"Horde gateway ready  host={config.api.host}  port={config.api.port}  "
            f"horde={config.horde.base_url}"
        )
        yield
        await service.aclose()
        logger.info("Horde gateway stopped")

    app = FastAPI(
        title="Horde Gateway",
        description="OpenAI-compatible completion API backed by the KoboldAI Horde",
        lifespan=lifespan,
    )

    # Store on app.state so tests can reach the service
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def decode_error_handler(request: Request, exc: RequestValidationError):
        message = format_validation_error(exc)
        logger.warning(f"[API] Bad request on {request.url.path}: {message}")
        return PlainTextResponse(message, status_code=400)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        logger.error(f"[API] {request.url.path} failed: {type(exc).__name__}: {exc}")
        message = str(exc) if config.api.expose_error_details else GENERIC_ERROR_MESSAGE
        return PlainTextResponse(message, status_code=500)

    app.include_router(create_router(service))
    return app


# ---------------------------------------------------------------------------
# Entry point (called from main.py serve command)
# ---------------------------------------------------------------------------

def start_server(config: Config):
    import uvicorn

    app = create_app(config)
    uvicorn.run(app, host=config.api.host, port=config.api.port)
