"""
Repositories pour Cocorico API
Pattern Repository pour isolation acces DB

Modules disponibles:
- base: Repository generique avec operations CRUD
- restaurant: Inventaire, plats, menus, factures, ventes, litiges
"""
from app.repositories.base import BaseRepository

__all__ = [
    "BaseRepository",
]
