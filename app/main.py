"""FastAPI application entry point for the Research Report Gateway."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.config import get_settings
from app.api.routes import router
from app.errors import GatewayError
from app.models.schemas import HealthResponse
from app.services.arxiv_client import ArxivClient
from app.services.completion_client import CompletionClient
from app.services.identity_provider import SupabaseIdentityProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan: build shared clients, then close them."""
    settings = get_settings()

    # Create async database engine
    engine = create_async_engine(settings.database_url, echo=settings.debug)
    app.state.db_engine = engine
    app.state.db_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    # Upstream clients, shared by all requests
    app.state.search_client = ArxivClient(
        base_url=settings.arxiv_base_url,
        timeout=settings.upstream_timeout_seconds,
    )
    app.state.completion_client = CompletionClient(
        api_key=settings.openrouter_api_key,
        model=settings.openrouter_model,
        base_url=settings.openrouter_base_url,
        referer=settings.openrouter_referer,
        org_id=settings.openrouter_org_id,
        timeout=settings.upstream_timeout_seconds,
    )
    app.state.identity_provider = SupabaseIdentityProvider(
        supabase_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        timeout=settings.identity_timeout_seconds,
    )

    logger.info("Application started")
    yield

    # Shutdown
    await app.state.search_client.close()
    await app.state.completion_client.close()
    await app.state.identity_provider.close()
    await engine.dispose()
    logger.info("Application shut down")


def _missing_field_message(exc: RequestValidationError) -> str:
    """Name the first offending body field the way the routes do."""
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if loc:
            field = loc[-1]
            return f"{field[:1].upper()}{field[1:]} is invalid or missing"
    return "Request body is required"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": _missing_field_message(exc)},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.app_version)

    # Include API routes
    app.include_router(router, prefix=settings.api_prefix)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
