"""
Exception Handler pour Cocorico API.

Gere de maniere uniforme toutes les exceptions applicatives
et les convertit en responses JSON standardisees.
"""
import logging
from typing import Union

from fastapi import Request, FastAPI
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import AppException

logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: dict = None,
    request_id: str = None
) -> JSONResponse:
    """
    Cree une response d'erreur standardisee.

    Args:
        status_code: Code HTTP
        error_code: Code d'erreur applicatif
        message: Message d'erreur
        details: Details supplementaires
        request_id: ID de la requete pour tracabilite

    Returns:
        JSONResponse formatee
    """
    content = {
        "error": error_code,
        "message": message,
    }

    if details:
        content["details"] = details

    if request_id:
        content["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        content=content
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handler pour les exceptions applicatives et metier.

    Les exceptions des services heritent de AppException et
    arrivent ici sans traduction dans les endpoints.
    """
    request_id = getattr(request.state, "request_id", None)

    if exc.status_code >= 500:
        logger.error(
            f"AppException: {exc.error_code} - {exc.message}",
            extra={"request_id": request_id, "details": exc.details}
        )
    else:
        logger.info(
            f"AppException: {exc.error_code} - {exc.message}",
            extra={"request_id": request_id}
        )

    return create_error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details if exc.details else None,
        request_id=request_id
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handler pour les HTTPException standard de FastAPI/Starlette.
    """
    request_id = getattr(request.state, "request_id", None)

    error_codes = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "PAYLOAD_TOO_LARGE",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
    }

    error_code = error_codes.get(exc.status_code, "HTTP_ERROR")

    return create_error_response(
        status_code=exc.status_code,
        error_code=error_code,
        message=str(exc.detail),
        request_id=request_id
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError]
) -> JSONResponse:
    """
    Handler pour les erreurs de validation Pydantic.
    """
    request_id = getattr(request.state, "request_id", None)

    errors = exc.errors() if hasattr(exc, "errors") else []

    formatted_errors = []
    for error in errors:
        loc = ".".join(str(part) for part in error.get("loc", []))
        formatted_errors.append({
            "field": loc,
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "unknown")
        })

    return create_error_response(
        status_code=422,
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        details={"errors": formatted_errors},
        request_id=request_id
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """
    Handler pour les violations de contraintes (unicite, cles etrangeres).

    Typiquement deux creations concurrentes du meme nom de produit.
    """
    request_id = getattr(request.state, "request_id", None)
    logger.warning(
        f"Integrity error: {exc.orig}",
        extra={"request_id": request_id}
    )
    return create_error_response(
        status_code=409,
        error_code="CONFLICT",
        message="Operation violates a database constraint",
        request_id=request_id
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler catch-all pour les exceptions non gerees.

    Ne jamais exposer les details de l'exception au client.

    - Erreurs DB/reseau: log ERROR, 503
    - Bugs code: log CRITICAL avec stack trace, 500
    """
    request_id = getattr(request.state, "request_id", None)
    exc_type = type(exc).__name__
    exc_module = type(exc).__module__

    infra_exceptions = (
        "OperationalError", "InterfaceError", "DatabaseError",
        "ConnectionError", "TimeoutError", "ConnectionRefusedError",
        "BrokenPipeError"
    )

    if exc_type in infra_exceptions or "sqlalchemy" in exc_module.lower():
        logger.error(
            f"Infrastructure error: {exc_type}: {exc}",
            extra={"request_id": request_id, "category": "infrastructure"}
        )
        error_code = "SERVICE_UNAVAILABLE"
        status_code = 503
    else:
        logger.critical(
            f"Unhandled error: {exc_type}: {exc}",
            extra={"request_id": request_id, "category": "bug"},
            exc_info=True
        )
        error_code = "INTERNAL_ERROR"
        status_code = 500

    return create_error_response(
        status_code=status_code,
        error_code=error_code,
        message="An unexpected error occurred",
        request_id=request_id
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre tous les exception handlers sur l'application.

    Args:
        app: L'instance FastAPI
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
