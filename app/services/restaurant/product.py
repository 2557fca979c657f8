"""
Service pour la gestion de l'inventaire (produits et preparations).
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import AppException
from app.models.restaurant.product import Product, Unit
from app.models.restaurant.stock_movement import StockMovement, MovementType, MovementSource
from app.repositories.restaurant.product import ProductRepository, CompositeIngredientRepository
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.services.restaurant.costing import CostLine, CompositeBreakdown, composite_unit_price
from app.services.restaurant.stock_status import StockStatus, classify_stock

logger = logging.getLogger(__name__)

SYNC_REASON = "Inventory Sync Adjustment"
MANUAL_REASON = "Manual Adjustment"
NO_CHANGE_MESSAGE = "No change in quantity"


class ProductNotFoundError(AppException):
    """Produit non trouve."""
    status_code = 404
    error_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__(message=f"Product {product_id} not found")
        self.product_id = product_id


class ProductNameExistsError(AppException):
    """Nom de produit deja utilise."""
    status_code = 409
    error_code = "PRODUCT_NAME_EXISTS"

    def __init__(self, name: str):
        super().__init__(message=f"A product named '{name}' already exists")
        self.name = name


class ProductInUseError(AppException):
    """Produit reference par une recette ou une preparation."""
    status_code = 409
    error_code = "PRODUCT_IN_USE"

    def __init__(self, product_id: int):
        super().__init__(
            message=f"Product {product_id} is used in a recipe or a composite product"
        )
        self.product_id = product_id


class InvalidProductError(AppException):
    """Donnees de produit invalides."""
    status_code = 400
    error_code = "INVALID_PRODUCT"


@dataclass
class BulkDeleteResult:
    deleted: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class SyncAdjustResult:
    product: Product
    movement: Optional[StockMovement]
    old_quantity: Decimal
    new_quantity: Decimal
    message: Optional[str] = None

    @property
    def change(self) -> Decimal:
        return self.new_quantity - self.old_quantity


@dataclass
class ProductStockStatus:
    product: Product
    status: Optional[StockStatus]
    menu_demand: Optional[Decimal] = None


def _fmt(value: Decimal) -> str:
    return f"{Decimal(value):.1f}"


class ProductService:
    """
    Service pour la gestion des produits.

    Responsabilites:
    - CRUD produits et suppression groupee
    - Ajustements d'inventaire avec historique
    - Classification du stock avec la demande des menus actifs
    - Preparations (produits composes)
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        movement_repo: StockMovementRepository,
        composite_repo: CompositeIngredientRepository,
    ):
        self.product_repo = product_repo
        self.movement_repo = movement_repo
        self.composite_repo = composite_repo

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate(
        quantity: Optional[Decimal] = None,
        unit_price: Optional[Decimal] = None,
        par_level: Optional[Decimal] = None,
    ) -> None:
        if quantity is not None and quantity < 0:
            raise InvalidProductError("Quantity cannot be negative")
        if unit_price is not None and unit_price <= 0:
            raise InvalidProductError("Unit price must be positive")
        if par_level is not None and par_level <= 0:
            raise InvalidProductError("Par level must be positive")

    def _check_name_available(self, name: str, exclude_id: Optional[int] = None) -> None:
        existing = self.product_repo.get_by_name(name)
        if existing and existing.id != exclude_id:
            raise ProductNameExistsError(name)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        trackable: Optional[bool] = None,
    ) -> List[Product]:
        return self.product_repo.list_products(search=search, category=category, trackable=trackable)

    def get_product(self, product_id: int) -> Product:
        """Recupere un produit par ID."""
        product = self.product_repo.get(product_id)
        if not product:
            raise ProductNotFoundError(product_id)
        return product

    def create_product(
        self,
        name: str,
        unit: Unit,
        quantity: Decimal = Decimal("0"),
        unit_price: Optional[Decimal] = None,
        par_level: Optional[Decimal] = None,
        category: Optional[str] = None,
        trackable: bool = False,
    ) -> Product:
        """
        Cree un nouveau produit.

        Raises:
            ProductNameExistsError: si le nom existe deja
            InvalidProductError: quantite negative, prix ou niveau cible <= 0
        """
        name = name.strip()
        if not name:
            raise InvalidProductError("Product name is required")
        self._validate(quantity, unit_price, par_level)
        self._check_name_available(name)

        product = self.product_repo.create({
            "name": name,
            "unit": unit,
            "quantity": quantity,
            "unit_price": unit_price,
            "par_level": par_level,
            "category": category,
            "trackable": trackable,
            "is_composite": False,
        })
        logger.info(f"Produit cree: {product.name}", extra={"product_id": product.id})
        return product

    def update_product(self, product_id: int, **data) -> Product:
        """
        Met a jour un produit. Un changement de quantite est trace
        par un mouvement ADJUSTMENT.
        """
        product = self.get_product(product_id)
        self._validate(data.get("quantity"), data.get("unit_price"), data.get("par_level"))

        if "name" in data and data["name"] is not None:
            name = data["name"].strip()
            if not name:
                raise InvalidProductError("Product name is required")
            self._check_name_available(name, exclude_id=product.id)
            data["name"] = name

        new_quantity = data.pop("quantity", None)
        for key, value in data.items():
            if hasattr(product, key):
                setattr(product, key, value)

        if new_quantity is not None and Decimal(new_quantity) != product.quantity:
            self._adjust(product, Decimal(new_quantity), MANUAL_REASON, description=None)

        self.product_repo.session.flush()
        return product

    def delete_product(self, product_id: int) -> None:
        """
        Supprime un produit.

        Raises:
            ProductInUseError: produit utilise dans une recette ou une preparation
        """
        product = self.get_product(product_id)
        if self.product_repo.is_in_use(product.id):
            raise ProductInUseError(product.id)
        self.product_repo.session.delete(product)
        self.product_repo.session.flush()
        logger.info(f"Produit supprime: {product.name}", extra={"product_id": product_id})

    def bulk_delete(self, product_ids: List[int]) -> BulkDeleteResult:
        """
        Supprime plusieurs produits independamment.

        Chaque suppression a son propre savepoint: un echec n'annule
        pas les suppressions reussies.
        """
        result = BulkDeleteResult()
        session = self.product_repo.session
        for product_id in product_ids:
            try:
                with session.begin_nested():
                    self.delete_product(product_id)
            except (AppException, IntegrityError) as e:
                result.failed += 1
                result.errors.append({
                    "product_id": product_id,
                    "error": e.message if isinstance(e, AppException) else "Constraint violation",
                })
            else:
                result.deleted += 1

        logger.info(
            f"Suppression groupee: {result.deleted} supprime(s), {result.failed} echec(s)",
            extra={"deleted": result.deleted, "failed": result.failed},
        )
        return result

    # -------------------------------------------------------------------------
    # Inventaire
    # -------------------------------------------------------------------------

    def _adjust(
        self,
        product: Product,
        new_quantity: Decimal,
        reason: str,
        description: Optional[str],
    ) -> StockMovement:
        difference = new_quantity - product.quantity
        product.quantity = new_quantity
        return self.movement_repo.record(
            product,
            MovementType.ADJUSTMENT,
            abs(difference),
            source=MovementSource.MANUAL,
            reason=reason,
            description=description,
        )

    def sync_adjust(self, product_id: int, new_quantity: Decimal) -> SyncAdjustResult:
        """
        Ajuste la quantite lors d'un inventaire.

        Sans changement, aucun mouvement n'est cree.
        """
        if new_quantity is None:
            raise InvalidProductError("new_quantity is required")
        new_quantity = Decimal(new_quantity)
        if new_quantity < 0:
            raise InvalidProductError("Quantity cannot be negative")

        product = self.get_product(product_id)
        old_quantity = Decimal(product.quantity)
        difference = new_quantity - old_quantity

        if difference == 0:
            return SyncAdjustResult(
                product=product,
                movement=None,
                old_quantity=old_quantity,
                new_quantity=new_quantity,
                message=NO_CHANGE_MESSAGE,
            )

        direction = "increased" if difference > 0 else "decreased"
        description = (
            f"Stock {direction} by {_fmt(abs(difference))} {product.unit.value} "
            f"during inventory sync (was {_fmt(old_quantity)}, now {_fmt(new_quantity)})"
        )
        movement = self._adjust(product, new_quantity, SYNC_REASON, description)
        logger.info(
            f"Ajustement inventaire {product.name}: {old_quantity} -> {new_quantity}",
            extra={"product_id": product.id},
        )
        return SyncAdjustResult(
            product=product,
            movement=movement,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
        )

    def get_movements(self, product_id: int, limit: int = 50) -> List[StockMovement]:
        """Historique des mouvements d'un produit."""
        self.get_product(product_id)
        return self.movement_repo.get_by_product(product_id, limit=limit)

    def get_stock_statuses(self, alerts_only: bool = False) -> List[ProductStockStatus]:
        """
        Classe chaque produit avec la demande des menus actifs.

        Args:
            alerts_only: ne retourner que les produits LOW ou CRITICAL
        """
        demand = self.product_repo.get_menu_demand()
        statuses = []
        for product in self.product_repo.list_products():
            needed = demand.get(product.id)
            status = classify_stock(product.quantity, product.par_level, needed)
            if alerts_only and status is None:
                continue
            statuses.append(ProductStockStatus(product=product, status=status, menu_demand=needed))
        return statuses

    # -------------------------------------------------------------------------
    # Preparations
    # -------------------------------------------------------------------------

    def _composite_lines(self, ingredients: List[Dict[str, Any]]) -> List[CostLine]:
        if not ingredients:
            raise InvalidProductError("A composite product needs at least one ingredient")
        lines = []
        for ingredient in ingredients:
            quantity = Decimal(str(ingredient["quantity"]))
            if quantity <= 0:
                raise InvalidProductError("Ingredient quantity must be positive")
            base = self.get_product(ingredient["base_product_id"])
            lines.append(CostLine(
                product_id=base.id,
                product_name=base.name,
                quantity=quantity,
                unit=ingredient.get("unit") or base.unit,
                unit_price=base.unit_price,
            ))
        return lines

    def create_composite_product(
        self,
        name: str,
        unit: Unit,
        ingredients: List[Dict[str, Any]],
        yield_quantity: Optional[Decimal] = None,
        unit_price: Optional[Decimal] = None,
        par_level: Optional[Decimal] = None,
        category: Optional[str] = None,
        trackable: bool = False,
    ) -> Product:
        """
        Cree une preparation a partir d'ingredients de base.

        Le stock initial est 0. Sans prix fourni, le prix unitaire est
        calcule depuis les ingredients (laisse vide s'il manque un prix).

        Args:
            ingredients: [{base_product_id, quantity, unit}]
        """
        name = name.strip()
        if not name:
            raise InvalidProductError("Product name is required")
        if yield_quantity is not None and yield_quantity <= 0:
            raise InvalidProductError("Yield quantity must be positive")
        self._validate(None, unit_price, par_level)
        self._check_name_available(name)

        lines = self._composite_lines(ingredients)
        if unit_price is None:
            breakdown = composite_unit_price(lines, yield_quantity)
            unit_price = breakdown.unit_price if breakdown.unit_price > 0 else None

        product = self.product_repo.create({
            "name": name,
            "unit": unit,
            "quantity": Decimal("0"),
            "unit_price": unit_price,
            "par_level": par_level,
            "category": category,
            "trackable": trackable,
            "is_composite": True,
            "yield_quantity": yield_quantity,
        })
        for line in lines:
            self.composite_repo.create({
                "composite_product_id": product.id,
                "base_product_id": line.product_id,
                "quantity": line.quantity,
                "unit": line.unit,
            })
        logger.info(f"Preparation creee: {product.name}", extra={"product_id": product.id})
        return product

    def get_composite_breakdown(self, product_id: int) -> CompositeBreakdown:
        """Prix unitaire calcule d'une preparation et detail par ingredient."""
        product = self.product_repo.get_with_composition(product_id)
        if not product:
            raise ProductNotFoundError(product_id)
        if not product.is_composite:
            raise InvalidProductError(f"Product {product_id} is not a composite product")

        lines = [
            CostLine(
                product_id=ci.base_product_id,
                product_name=ci.base_product.name if ci.base_product else "",
                quantity=Decimal(ci.quantity),
                unit=ci.unit,
                unit_price=ci.base_product.unit_price if ci.base_product else None,
            )
            for ci in product.composite_ingredients
        ]
        return composite_unit_price(lines, product.yield_quantity)
