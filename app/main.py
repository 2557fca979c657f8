"""
Cocorico API - Point d'entree principal
Back-office restaurant: inventaire, plats, menus, factures, ventes, litiges
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from contextlib import asynccontextmanager

from app.core.config import get_settings
from app.middleware.request_id import RequestIDMiddleware
from app.middleware.timing import TimingMiddleware
from app.middleware.exception_handler import register_exception_handlers

# Configuration du logging
settings = get_settings()

# Utiliser le logging structure en production, console en dev
from app.core.logging import configure_logging, get_logger
configure_logging(
    level=settings.LOG_LEVEL,
    json_format=settings.ENV != "dev",  # JSON en prod, console en dev
    include_console=True
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestionnaire de cycle de vie de l'application
    Execute au demarrage et a l'arret
    """
    # Demarrage
    logger.info("=" * 50)
    logger.info(f"Demarrage de {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environnement: {settings.ENV}")
    logger.info(f"Debug: {settings.DEBUG}")
    logger.info(f"OCR configure: {settings.ocr_configured}")
    logger.info("=" * 50)

    # Validation complete de la configuration en production
    try:
        warnings = settings.validate_production_config()
        logger.info("Validation de la configuration: OK")

        # Logger les warnings (non-bloquants)
        for warning in warnings:
            logger.warning(warning)

    except ValueError as e:
        logger.critical(f"CONFIGURATION: {e}")
        if settings.is_strict_env:
            raise  # Bloquer le demarrage en production

    yield

    # Arret
    logger.info("Arret de l'application...")


# Creation de l'application FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Back-office restaurant Cocorico",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# ============================================
# Middleware Stack (dernier ajoute = premier execute)
# ============================================

# 5. Trusted Hosts (validation Host header)
app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.get_allowed_hosts()
)

# 4. CORS (doit etre premier execute pour preflight)
cors_origins = settings.get_cors_origins()
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS and "*" not in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)

# 3. GZip Compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# 2. Request ID (tracabilite)
app.add_middleware(RequestIDMiddleware)

# 1. Timing (requetes lentes)
app.add_middleware(TimingMiddleware, slow_threshold_ms=settings.SLOW_REQUEST_THRESHOLD_MS)

# Exception Handlers (enregistres separement)
register_exception_handlers(app)


# ============================================
# Routes de base
# ============================================

@app.get("/", tags=["Root"])
async def root():
    """Page d'accueil de l'API"""
    return {
        "message": f"Bienvenue sur {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.ENV == "dev" else "Desactive en production"
    }


# ============================================
# Health Check Routes
# ============================================

from app.api.health import router as health_router
app.include_router(health_router)


# ============================================
# Import des routers API v1
# ============================================

from app.api.v1.router import api_router

# Inclusion du router API v1
app.include_router(api_router, prefix="/api/v1")
