"""
Services metier pour Cocorico API
Contient la logique metier separee des repositories

Modules disponibles:
- ocr: Client d'extraction de documents (factures, tickets)
- restaurant: Produits, plats, menus, factures, ventes, litiges
"""
from app.services.ocr import OcrClient, OcrNotConfiguredError, ExtractionError

__all__ = [
    "OcrClient",
    "OcrNotConfiguredError",
    "ExtractionError",
]
