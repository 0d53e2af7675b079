"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from linrelay.server.context import ServerContext, build_context
from linrelay.server.routes import RelayError, health_router, router
from linrelay.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the production context on startup."""
    app.state.context = build_context(get_settings())
    yield


async def _relay_error(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse({"success": False, "error": exc.message}, status_code=exc.status_code)


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s", request.url.path)
    problems = "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())
    return JSONResponse({"success": False, "error": f"Invalid request: {problems}"}, status_code=400)


def create_app(context: ServerContext | None = None) -> FastAPI:
    """Create the relay app.

    Args:
        context: Injected dependencies for tests. When None, the lifespan
                 handler builds the production context from settings.
    """
    if context is not None:
        app = FastAPI(title="linrelay", version="0.1.0")
        app.state.context = context
        origins = context.settings.allowed_origins
    else:
        app = FastAPI(title="linrelay", version="0.1.0", lifespan=lifespan)
        origins = get_settings().allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RelayError, _relay_error)
    app.add_exception_handler(RequestValidationError, _invalid_request)

    app.include_router(health_router)
    app.include_router(router)
    return app
