"""
Thinkify API application
"""
from contextlib import asynccontextmanager
from typing import List, Tuple

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from thinkify import __version__
from thinkify.api.v1.router import api_router
from thinkify.core.config import settings
from thinkify.core.database import close_db, init_db
from thinkify.core.exceptions import ThinkifyError
from thinkify.core.logging_config import logger
from thinkify.core.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from thinkify.core.rate_limiter import limiter, rate_limit_exceeded_handler
from thinkify.core.responses import error_body, error_response

SECRET_SETTINGS = ("SECRET_KEY", "JWT_SECRET_KEY")


def check_settings() -> Tuple[List[str], List[str]]:
    """Return (fatal, advisory) problems with the loaded settings.

    Placeholder secrets are fatal in production and advisory elsewhere.
    """
    fatal: List[str] = []
    advisory: List[str] = []
    if not settings.DATABASE_URL:
        fatal.append("DATABASE_URL is empty")
    for name in SECRET_SETTINGS:
        if getattr(settings, name) in ("", "CHANGE_ME"):
            problem = f"{name} still has its placeholder value"
            (fatal if settings.is_production() else advisory).append(problem)
    return fatal, advisory


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} {__version__} starting ({settings.ENVIRONMENT})")

    fatal, advisory = check_settings()
    for problem in advisory:
        logger.warning(f"Configuration: {problem}")
    if fatal:
        for problem in fatal:
            logger.critical(f"Configuration: {problem}")
        raise RuntimeError("Refusing to start: " + "; ".join(fatal))

    await init_db()
    logger.info("Database schema ready")
    try:
        yield
    finally:
        logger.info(f"{settings.APP_NAME} stopping")
        await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Learning management API: assignments, polls and role-based access",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Starlette runs the most recently added middleware first, so CORS is outermost
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(ThinkifyError)
async def thinkify_error_handler(request: Request, exc: ThinkifyError):
    where = f"{request.method} {request.url.path}"
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, where)
    else:
        logger.warning(
            f"{exc.code} on {where}: {exc.message}",
            extra={"event_type": "request_rejected", "error_code": exc.code, "http_status": exc.status_code},
        )
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(error_body("Invalid request", exc.errors())),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    detail = str(exc) if settings.is_dev_mode() else "An error occurred"
    return JSONResponse(status_code=500, content=error_body("Internal Server Error", detail))


@app.get("/health", tags=["Health"])
async def health():
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT,
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("thinkify.main:app", host=settings.SERVER_HOST, port=settings.SERVER_PORT, reload=settings.DEBUG)
