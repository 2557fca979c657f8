"""
Health Check endpoints pour Cocorico API.

Fournit les endpoints de monitoring:
- /health: Liveness check (l'app repond)
- /ready: Readiness check (base de donnees OK)
- /health/deep: Deep health check (tous les details)
"""
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Any, List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.dependencies import get_db

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(tags=["Health"])


# =============================================================================
# Health Check Functions
# =============================================================================

def check_database(db: Session) -> Dict[str, Any]:
    """
    Verifie la connexion a la base de donnees.

    Returns:
        Dict avec status et details
    """
    try:
        start = time.perf_counter()
        result = db.execute(text("SELECT 1"))
        result.fetchone()
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency_ms}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "error", "error": str(e)}


def check_ocr() -> Dict[str, Any]:
    """L'OCR est optionnel: non configure n'est pas une erreur."""
    if not get_settings().ocr_configured:
        return {"status": "not_configured", "reason": "OCR_ENDPOINT or OCR_API_KEY not set"}
    return {"status": "ok"}


# =============================================================================
# Endpoints
# =============================================================================

@router.get(
    "/health",
    summary="Liveness check",
    description="Retourne 200 si l'application repond. Utilise par les load balancers.",
    include_in_schema=False
)
async def health():
    """
    Liveness probe.

    Retourne OK si l'application est en vie.
    Ne verifie pas les dependances.
    """
    return {"status": "ok"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Retourne 200 si l'application est prete a recevoir du trafic.",
    include_in_schema=False
)
async def ready(db: Session = Depends(get_db)):
    """
    Readiness probe.

    Retourne 503 si la base de donnees est indisponible.
    """
    errors: List[str] = []

    db_status = check_database(db)
    if db_status["status"] != "ok":
        errors.append(f"database: {db_status.get('error', 'unknown error')}")

    if errors:
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "errors": errors,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get(
    "/health/deep",
    summary="Deep health check",
    description="Retourne l'etat detaille de toutes les dependances."
)
async def deep_health(db: Session = Depends(get_db)):
    """
    Deep health check.

    Retourne l'etat detaille de:
    - Application (version, environnement)
    - Base de donnees
    - OCR
    """
    checks = {
        "database": check_database(db),
        "ocr": check_ocr(),
    }

    all_ok = all(
        c.get("status") in ("ok", "not_configured")
        for c in checks.values()
    )

    response = {
        "status": "ok" if all_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.APP_VERSION,
        "environment": settings.ENV,
        "checks": checks,
    }

    return JSONResponse(status_code=200 if all_ok else 503, content=response)
