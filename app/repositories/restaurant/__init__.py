"""
Repositories Restaurant Domain.
Acces aux donnees de l'inventaire, des plats, menus, factures, ventes et litiges.
"""
from app.repositories.restaurant.product import (
    ProductRepository,
    CompositeIngredientRepository,
)
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.repositories.restaurant.dish import (
    DishRepository,
    RecipeIngredientRepository,
)
from app.repositories.restaurant.menu import MenuRepository
from app.repositories.restaurant.supplier import SupplierRepository
from app.repositories.restaurant.bill import BillRepository, BillProductRepository
from app.repositories.restaurant.sale import SaleRepository
from app.repositories.restaurant.dispute import DisputeRepository

__all__ = [
    "ProductRepository",
    "CompositeIngredientRepository",
    "StockMovementRepository",
    "DishRepository",
    "RecipeIngredientRepository",
    "MenuRepository",
    "SupplierRepository",
    "BillRepository",
    "BillProductRepository",
    "SaleRepository",
    "DisputeRepository",
]
