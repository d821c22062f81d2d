"""
coursehub/main.py
Application factory, error envelope handlers and the server entry point
"""
import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursehub import __version__
from coursehub.config import API_PREFIX, Settings, configure_logging
from coursehub.database import close_db, create_context, init_db
from coursehub.errors import APIError, ErrorCode, code_for_status, error_response, internal_error_response
from coursehub.routes import router
from coursehub.security.rate_limit import limiter
from coursehub.uploads import FileStore

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger.warning(f"API error on {request.method} {request.url.path}: {exc.code} - {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

        error_details = []
        for error in exc.errors():
            error_details.append({
                "loc": list(error.get("loc", ())),
                "msg": error.get("msg"),
                "type": error.get("type")
            })

        return error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorCode.VALIDATION_ERROR,
            "Missing or invalid fields",
            {"errors": error_details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Endpoint not found"
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message = "Method not allowed for this endpoint"
        else:
            message = str(exc.detail)
        logger.warning(f"HTTP {exc.status_code} on {request.method} {request.url.path}")
        return error_response(
            exc.status_code,
            code_for_status(exc.status_code),
            message,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            ErrorCode.RATE_LIMITED,
            "Too many requests. Please try again later.",
            {"limit": str(exc.detail)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        return internal_error_response(exc, f"{request.method} {request.url.path}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around an explicit AppContext.

    Each call gets its own engine and session factory, so tests can run
    isolated apps side by side.
    """
    settings = settings or Settings.from_env()
    context = create_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting application...")
        try:
            await init_db(context.engine)
            logger.info("Database connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect to database: {str(e)}")
            raise

        yield

        logger.info("Shutting down application...")
        await close_db(context.engine)

    app = FastAPI(
        title="CourseHub API",
        description="University course management: courses, materials, assignments and submissions",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.context = context

    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "environment": settings.environment,
            "version": __version__,
        }

    app.include_router(router, prefix=API_PREFIX)

    store = FileStore(settings.upload_dir, settings.upload_url_prefix)
    store.ensure_root()
    app.mount(settings.upload_url_prefix, StaticFiles(directory=str(store.root)), name="uploads")

    logger.info(f"✓ Routes mounted under {API_PREFIX}")
    return app


def run() -> None:
    """Console entry point: serve with uvicorn on PORT"""
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=os.getenv("HOST", "0.0.0.0"),
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
