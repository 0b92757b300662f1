from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from codeduel import __version__
from codeduel.config import Settings, load_settings
from codeduel.handlers import SOLVE_FAILED, RequestHandler, run_until_disconnected
from codeduel.llm.client import LLMClient
from codeduel.logger import configure_logging, setup_logger
from codeduel.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware
from codeduel.models import (
    ErrorResponse,
    EvaluateRequest,
    Evaluation,
    HealthResponse,
    SolveRequest,
    SolveResponse,
)
from codeduel.utils.exceptions import (
    ClientDisconnectedError,
    InvalidRequestError,
    ProviderError,
)

logger = setup_logger(__name__)


def create_app(
    settings: Optional[Settings] = None, llm_client: Optional[LLMClient] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Loaded settings; read from the environment when omitted
        llm_client: Provider client; built from settings when omitted

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    llm = llm_client or LLMClient(settings)
    handler = RequestHandler(settings, llm)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager: startup and shutdown."""
        logger.info("🚀 Starting code duel gateway")
        logger.info(
            f"   Config: env={settings.environment}, origin={settings.allowed_origin}, "
            f"timeout={settings.llm_timeout_seconds}s, providers={llm.providers}"
        )
        logger.info("📚 API endpoints available:")
        logger.info("   POST /api/solve - Generate solutions")
        logger.info("   POST /api/evaluate - Evaluate solutions")
        logger.info("   GET /api/health - Check server status")
        yield
        logger.info("🛑 Shutting down service")
        await llm.aclose()

    app = FastAPI(title="Code Duel Gateway", version=__version__, lifespan=lifespan)

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.post(
        "/api/solve",
        response_model=SolveResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def solve(payload: SolveRequest, request: Request):
        """Generate a solution for a programming problem."""
        return await run_until_disconnected(request, handler.solve(payload))

    @app.post(
        "/api/evaluate",
        response_model=Evaluation,
        responses={400: {"model": ErrorResponse}},
    )
    async def evaluate(payload: EvaluateRequest, request: Request):
        """Review a solution. Provider failures degrade to a fixed evaluation."""
        return await run_until_disconnected(request, handler.evaluate(payload))

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        return handler.health()

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        logger.warning(f"⚠️ Rejected {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"⚠️ Invalid body for {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(ProviderError)
    async def provider_error_handler(request: Request, exc: ProviderError):
        # Detail was logged by the handler; never echo it to the caller.
        return JSONResponse(status_code=500, content={"error": SOLVE_FAILED})

    @app.exception_handler(ClientDisconnectedError)
    async def disconnect_handler(request: Request, exc: ClientDisconnectedError):
        logger.info(f"🔌 Client left {request.url.path}; provider call cancelled")
        return JSONResponse(status_code=499, content={"error": "Client closed request"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"🔥 Unexpected Error: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.debug(f"Static directory {static_dir} not found; serving API only")

    return app


def run() -> None:
    """Console entry point: load settings, then serve with uvicorn."""
    settings = load_settings()
    app = create_app(settings)
    logger.info(f"🚀 Server running on http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
