"""
Services Restaurant Domain.
Logique metier pour la gestion du restaurant.
"""
from app.services.restaurant.product import (
    ProductService,
    ProductNotFoundError,
    ProductNameExistsError,
    ProductInUseError,
    InvalidProductError,
)
from app.services.restaurant.dish import (
    DishService,
    DishNotFoundError,
    DishHasSalesError,
    InvalidDishError,
)
from app.services.restaurant.menu import (
    MenuService,
    MenuNotFoundError,
    InvalidMenuError,
)
from app.services.restaurant.bill import (
    BillService,
    BillNotFoundError,
    BillAlreadyProcessedError,
    InvalidBillError,
)
from app.services.restaurant.sale import (
    SaleService,
    SaleNotFoundError,
    InvalidSaleError,
    InsufficientStockError,
)
from app.services.restaurant.dispute import (
    DisputeService,
    DisputeNotFoundError,
    InvalidDisputeError,
    InvalidStatusTransitionError,
)
from app.services.restaurant.orders import OrderService
from app.services.restaurant.alerts import AlertService

__all__ = [
    # Services
    "ProductService",
    "DishService",
    "MenuService",
    "BillService",
    "SaleService",
    "DisputeService",
    "OrderService",
    "AlertService",
    # Errors
    "ProductNotFoundError",
    "ProductNameExistsError",
    "ProductInUseError",
    "InvalidProductError",
    "DishNotFoundError",
    "DishHasSalesError",
    "InvalidDishError",
    "MenuNotFoundError",
    "InvalidMenuError",
    "BillNotFoundError",
    "BillAlreadyProcessedError",
    "InvalidBillError",
    "SaleNotFoundError",
    "InvalidSaleError",
    "InsufficientStockError",
    "DisputeNotFoundError",
    "InvalidDisputeError",
    "InvalidStatusTransitionError",
]
