"""
Models Restaurant Domain pour Cocorico.
Inventaire, plats, menus, factures, ventes, litiges et mouvements de stock.
"""
from app.models.restaurant.product import (
    Product,
    CompositeIngredient,
    Unit,
)
from app.models.restaurant.dish import Dish, RecipeIngredient
from app.models.restaurant.menu import (
    Menu,
    MenuSection,
    MenuDish,
    PricingType,
    PrixFixe,
    Choice,
    MenuPricing,
)
from app.models.restaurant.supplier import Supplier
from app.models.restaurant.bill import Bill, BillProduct, BillStatus
from app.models.restaurant.sale import Sale
from app.models.restaurant.dispute import (
    Dispute,
    DisputeProduct,
    DisputeType,
    DisputeStatus,
    DisputeReason,
)
from app.models.restaurant.stock_movement import (
    StockMovement,
    MovementType,
    MovementSource,
)

__all__ = [
    # Product
    "Product",
    "CompositeIngredient",
    "Unit",
    # Dish
    "Dish",
    "RecipeIngredient",
    # Menu
    "Menu",
    "MenuSection",
    "MenuDish",
    "PricingType",
    "PrixFixe",
    "Choice",
    "MenuPricing",
    # Supplier
    "Supplier",
    # Bill
    "Bill",
    "BillProduct",
    "BillStatus",
    # Sale
    "Sale",
    # Dispute
    "Dispute",
    "DisputeProduct",
    "DisputeType",
    "DisputeStatus",
    "DisputeReason",
    # Stock
    "StockMovement",
    "MovementType",
    "MovementSource",
]
