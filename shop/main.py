import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from shop.api.v1.router import build_router
from shop.clients.item_client import HttpItemDirectory
from shop.core.config import settings
from shop.core.exceptions import (
    AuthenticationFailed,
    EmailAlreadyExists,
    ItemNotFound,
    PurchaseConflict,
    UserNotFound,
)
from shop.core.limiter import limiter
from shop.core.logging import request_id_var, setup_logging
from shop.db.sessions import Database, get_async_session

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """The only place where domain outcomes become HTTP status codes."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(AuthenticationFailed)
    async def auth_exception_handler(request: Request, exc: AuthenticationFailed):
        logger.warning(f"Auth failure: {exc} | path {request.url.path}")
        return _error(401, str(exc), headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(ItemNotFound)
    @app.exception_handler(UserNotFound)
    async def not_found_handler(request: Request, exc: Exception):
        return _error(404, str(exc))

    @app.exception_handler(EmailAlreadyExists)
    @app.exception_handler(PurchaseConflict)
    async def conflict_handler(request: Request, exc: Exception):
        return _error(409, str(exc))

    # RATE LIMITING
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database.from_settings(settings)
    app.state.database = database

    item_directory = None
    if app.state.service in ("purchase", "all"):
        item_directory = HttpItemDirectory.from_settings(settings)
        app.state.item_directory = item_directory

    logger.info(f"Service '{app.state.service}' started")
    try:
        yield
    finally:
        if item_directory is not None:
            await item_directory.aclose()
        await database.dispose()
        logger.info(f"Service '{app.state.service}' stopped")


def create_app(service: str = settings.service_name) -> FastAPI:
    setup_logging(service=service)

    app = FastAPI(
        title=f"Shop {service.capitalize()} API" if service != "all" else "Shop API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.limiter = limiter

    register_exception_handlers(app)

    # ROUTERS
    app.include_router(build_router(service), prefix="/api/v1")

    # SECURITY MIDDLEWARES
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts.split(","),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8000",
            "http://localhost:3000",
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Idempotency-Key"],
    )

    # REQUEST TRACING & SECURITY HEADERS
    @app.middleware("http")
    async def security_and_tracing_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            response = await call_next(request)

            response.headers["X-Request-Id"] = request_id
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"

            return response

        except Exception as e:
            # Storage and transport faults end here; the caller learns nothing of them
            logger.error(f"Unhandled error: {e!r}", exc_info=True)
            return _error(500, "An unexpected error occurred.")

        finally:
            request_id_var.reset(token)

    # HEALTH CHECKS
    @app.get("/health")
    async def health_check(db: AsyncSession = Depends(get_async_session)):
        health_status = {"status": "healthy", "service": service, "dependencies": {}}

        try:
            await db.execute(text("SELECT 1"))
            health_status["dependencies"]["database"] = "ok"
        except Exception as e:
            health_status["status"] = "unhealthy"
            health_status["dependencies"]["database"] = str(e)

        return health_status

    return app


app = create_app()
