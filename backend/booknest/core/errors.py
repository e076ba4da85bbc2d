"""
Exception handlers mapping framework and storage errors onto the API's
error taxonomy:

  400  malformed body or query, business-rule violation
  401  missing or invalid credentials
  403  authenticated but not entitled
  404  unknown id, or an id that can't be parsed
  409  duplicate email / active reservation, concurrent modification

Services raise HTTPException directly for domain failures; the handlers
here only cover what escapes them.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from booknest.core.logging import get_logger

logger = get_logger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    # A path parameter that fails to parse means the resource can't exist
    if any(err.get("loc", ())[:1] == ("path",) for err in errors):
        logger.info("malformed_resource_id", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Resource not found"},
        )

    logger.info("request_validation_failed", error_count=len(errors))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors)},
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity_violation", error=str(exc.orig))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Request conflicts with existing data"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
