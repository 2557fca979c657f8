"""
Exceptions applicatives pour Cocorico API.

Ces exceptions sont converties en responses HTTP par le exception handler.

Usage:
    from app.core.exceptions import NotFound
    raise NotFound("Product")

Le exception handler convertira en:
    HTTP 404: {"error": "NOT_FOUND", "message": "Product not found"}
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Exception de base pour l'application.

    Fournit status_code HTTP et error_code pour le client.
    """
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise l'exception pour la response JSON"""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Resource Exceptions (404, 409)
# =============================================================================

class NotFound(AppException):
    """Resource non trouvee"""
    status_code = 404
    error_code = "NOT_FOUND"
    message = "Resource not found"

    def __init__(self, resource: str = None):
        message = f"{resource} not found" if resource else None
        super().__init__(message=message)


class AlreadyExists(AppException):
    """Resource existe deja"""
    status_code = 409
    error_code = "ALREADY_EXISTS"
    message = "Resource already exists"


class Conflict(AppException):
    """Etat incompatible avec l'operation demandee"""
    status_code = 409
    error_code = "CONFLICT"
    message = "Operation conflicts with the current state"


# =============================================================================
# Validation Exceptions (400, 413, 422)
# =============================================================================

class BadRequest(AppException):
    """Requete invalide"""
    status_code = 400
    error_code = "BAD_REQUEST"
    message = "Invalid request"


class PayloadTooLarge(AppException):
    """Fichier televerse trop volumineux"""
    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"
    message = "Uploaded file is too large"


class ValidationError(AppException):
    """Erreur de validation"""
    status_code = 422
    error_code = "VALIDATION_ERROR"
    message = "Validation failed"


# =============================================================================
# External / Infrastructure Exceptions (502, 503)
# =============================================================================

class ExternalServiceError(AppException):
    """Un service externe (OCR) a echoue"""
    status_code = 502
    error_code = "EXTERNAL_SERVICE_ERROR"
    message = "External service failed"


class ServiceUnavailable(AppException):
    """Service temporairement indisponible ou non configure"""
    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"
    message = "Service temporarily unavailable"
