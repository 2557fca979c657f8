"""
Modeles SQLAlchemy pour Cocorico API
Export tous les modeles pour faciliter les imports

Modules disponibles:
- base: Classe de base et mixins (Base, TimestampMixin, utc_now)
- restaurant: Inventaire, plats, menus, factures, ventes, litiges
"""
from app.models.base import Base, TimestampMixin, utc_now

from app.models.restaurant import (
    Product,
    CompositeIngredient,
    Unit,
    Dish,
    RecipeIngredient,
    Menu,
    MenuSection,
    MenuDish,
    PricingType,
    Supplier,
    Bill,
    BillProduct,
    BillStatus,
    Sale,
    Dispute,
    DisputeProduct,
    DisputeType,
    DisputeStatus,
    DisputeReason,
    StockMovement,
    MovementType,
    MovementSource,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "utc_now",
    "Product",
    "CompositeIngredient",
    "Unit",
    "Dish",
    "RecipeIngredient",
    "Menu",
    "MenuSection",
    "MenuDish",
    "PricingType",
    "Supplier",
    "Bill",
    "BillProduct",
    "BillStatus",
    "Sale",
    "Dispute",
    "DisputeProduct",
    "DisputeType",
    "DisputeStatus",
    "DisputeReason",
    "StockMovement",
    "MovementType",
    "MovementSource",
]
