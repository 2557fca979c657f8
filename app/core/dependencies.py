"""
Dependencies FastAPI pour Cocorico API
Injection de dependances pour la DB et les collaborateurs externes.
"""
from typing import Generator

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.ocr import OcrClient


# ============================================
# Database Session
# ============================================

def get_db() -> Generator[Session, None, None]:
    """
    Fournit une session DB avec auto-commit/rollback.
    Utilise comme dependance FastAPI.

    Yields:
        Session SQLAlchemy

    Usage:
        @router.get("/products")
        def list_products(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ============================================
# Collaborateurs externes
# ============================================

def get_ocr_client() -> OcrClient:
    """Fournit le client OCR configure depuis les settings."""
    return OcrClient.from_settings(get_settings())
