import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from deeplearn.core.config import settings
from deeplearn.db.database import test_postgres_connection
from deeplearn.api.feed import router as feed_router
from deeplearn.api.home import router as home_router
from deeplearn.api.interests import router as interests_router
from deeplearn.api.threads import router as threads_router
from deeplearn.db.migrate import apply_migrations
from deeplearn.db.pool import init_pool, close_pool, get_pool


logger = logging.getLogger("deeplearn")


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def catch_unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return error_response(500, "Internal server error")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
        return error_response(400, "Invalid request body")

    @app.get("/health")
    async def health():
        try:
            pool = get_pool()
        except RuntimeError as exc:
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "error": str(exc)},
            )

        try:
            await pool.fetchval("SELECT 1;")
        except Exception as exc:  # noqa: BLE001
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unavailable",
                    "error": f"Database health check failed: {exc}",
                },
            )

        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        logger.info("Checking Postgres connection...")
        await test_postgres_connection()

        logger.info("Applying database migrations...")
        await apply_migrations()

        logger.info("Initializing database pool...")
        await init_pool()
        logger.info("Startup complete")

    @app.on_event("shutdown")
    async def on_shutdown():
        try:
            await close_pool()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Shutdown DB pool close failed: %s", exc)

    app.include_router(feed_router, prefix=settings.api_prefix)
    app.include_router(threads_router, prefix=settings.api_prefix)
    app.include_router(home_router, prefix=settings.api_prefix)
    app.include_router(interests_router, prefix=settings.api_prefix)

    return app


app = create_app()
