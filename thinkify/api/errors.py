"""Controller-level failure handling shared by the route modules"""
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thinkify.core.exceptions import ValidationError
from thinkify.core.logging_config import logger
from thinkify.core.responses import server_error

# Caught by controllers and answered with their own message; everything else
# (404s, auth failures) goes to the app-level handlers.
CONTROLLER_FAILURES = (ValidationError, SQLAlchemyError)


async def controller_failure(db: AsyncSession, message: str, exc: Exception,
                             fallback: str, context: str) -> JSONResponse:
    """Roll back the unit of work and answer 500 with the controller's message"""
    await db.rollback()
    if isinstance(exc, ValidationError):
        logger.warning(
            f"{context}: {exc.message}",
            extra={"event_type": "domain_validation", "error_code": exc.code, "error_context": context},
        )
    else:
        logger.log_error_with_context(exc, context)
    return server_error(message, exc, fallback)
