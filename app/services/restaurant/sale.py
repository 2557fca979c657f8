"""
Service pour les ventes et la deduction de stock par recette.

Une vente consomme les ingredients de la fiche technique du plat:
chaque ingredient genere un mouvement OUT (source RECIPE_DEDUCTION).
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.exceptions import AppException
from app.models.base import utc_now
from app.models.restaurant.dish import Dish
from app.models.restaurant.sale import Sale
from app.models.restaurant.stock_movement import MovementSource, MovementType
from app.repositories.restaurant.dish import DishRepository
from app.repositories.restaurant.sale import SaleRepository
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.services.ocr import DocumentExtraction, OcrClient
from app.services.restaurant.dish import DishNotFoundError

logger = logging.getLogger(__name__)


class SaleNotFoundError(AppException):
    """Vente non trouvee."""
    status_code = 404
    error_code = "SALE_NOT_FOUND"

    def __init__(self, sale_id: int):
        super().__init__(message=f"Sale {sale_id} not found")
        self.sale_id = sale_id


class InvalidSaleError(AppException):
    """Donnees de vente invalides."""
    status_code = 400
    error_code = "INVALID_SALE"


class InsufficientStockError(AppException):
    """Stock insuffisant pour un ou plusieurs ingredients."""
    status_code = 409
    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, shortages: List[str]):
        super().__init__(
            message=f"Insufficient inventory for: {', '.join(shortages)}",
            details={"shortages": shortages},
        )
        self.shortages = shortages


@dataclass
class SalesSummaryLine:
    dish_id: int
    dish_name: str
    total_quantity: int
    sales_count: int
    revenue: Optional[Decimal] = None


@dataclass
class ReceiptLineResult:
    dish_name: str
    quantity_sold: int
    ingredients_deducted: int
    has_recipe: bool
    dish_created: bool = False
    warning: Optional[str] = None


@dataclass
class ReceiptConfirmation:
    sales: List[Sale] = field(default_factory=list)
    results: List[ReceiptLineResult] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{len(self.results)} sales recorded"


class SaleService:
    """
    Service pour les ventes.

    Responsabilites:
    - Enregistrement des ventes avec controle et deduction du stock
    - Correction et suppression (stock reajuste)
    - Synthese par plat
    - Import d'un ticket de caisse (OCR puis confirmation)
    """

    def __init__(
        self,
        sale_repo: SaleRepository,
        dish_repo: DishRepository,
        movement_repo: StockMovementRepository,
        ocr_client: Optional[OcrClient] = None,
    ):
        self.sale_repo = sale_repo
        self.dish_repo = dish_repo
        self.movement_repo = movement_repo
        self.ocr_client = ocr_client

    # =========================================================================
    # Stock
    # =========================================================================

    @staticmethod
    def _shortages(dish: Dish, servings: int) -> List[str]:
        shortages = []
        for ingredient in dish.recipe_ingredients:
            required = ingredient.quantity_required * servings
            product = ingredient.product
            if product.quantity < required:
                shortages.append(
                    f"{product.name} (need {required} {ingredient.unit.value}, "
                    f"have {product.quantity} {product.unit.value})"
                )
        return shortages

    def _move_stock(
        self,
        dish: Dish,
        servings: int,
        sale: Optional[Sale],
        reason: str,
        floor_at_zero: bool = False,
    ) -> int:
        """
        Deduit (servings > 0) ou restitue (servings < 0) les ingredients
        de la recette. Retourne le nombre de mouvements crees.
        """
        count = 0
        for ingredient in dish.recipe_ingredients:
            product = ingredient.product
            delta = ingredient.quantity_required * abs(servings)
            if servings > 0:
                if floor_at_zero:
                    delta = min(delta, max(product.quantity, Decimal("0")))
                product.quantity = product.quantity - delta
                movement_type = MovementType.OUT
            else:
                product.quantity = product.quantity + delta
                movement_type = MovementType.IN
            self.movement_repo.record(
                product,
                movement_type,
                delta,
                source=MovementSource.RECIPE_DEDUCTION,
                reason=reason,
                description="Automatic deduction from recipe",
                sale_id=sale.id if sale is not None else None,
            )
            count += 1
        return count

    # =========================================================================
    # CRUD
    # =========================================================================

    def list_sales(
        self,
        dish_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Sale]:
        return self.sale_repo.list_sales(dish_id=dish_id, start_date=start_date, end_date=end_date)

    def get_sale(self, sale_id: int) -> Sale:
        sale = self.sale_repo.get(sale_id)
        if not sale:
            raise SaleNotFoundError(sale_id)
        return sale

    def _get_dish(self, dish_id: int) -> Dish:
        dish = self.dish_repo.get_with_recipe(dish_id)
        if not dish:
            raise DishNotFoundError(dish_id)
        return dish

    def create_sale(
        self,
        dish_id: int,
        quantity_sold: int,
        sale_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Sale:
        """
        Enregistre une vente et deduit les ingredients du stock.

        Le stock de chaque ingredient est verifie avant toute ecriture:
        en cas d'insuffisance rien n'est modifie.

        Raises:
            DishNotFoundError: plat inconnu
            InvalidSaleError: plat inactif ou quantite invalide
            InsufficientStockError: stock insuffisant
        """
        if quantity_sold < 1:
            raise InvalidSaleError("Quantity sold must be at least 1")

        dish = self._get_dish(dish_id)
        if not dish.is_active:
            raise InvalidSaleError("Cannot record sale for inactive dish")

        shortages = self._shortages(dish, quantity_sold)
        if shortages:
            raise InsufficientStockError(shortages)

        sale = self.sale_repo.create({
            "dish_id": dish.id,
            "quantity_sold": quantity_sold,
            "sale_date": sale_date or utc_now(),
            "notes": notes,
        })
        self._move_stock(dish, quantity_sold, sale, reason=f"Sale: {dish.name} (x{quantity_sold})")

        logger.info(
            f"Vente enregistree: {dish.name} x{quantity_sold}",
            extra={"sale_id": sale.id, "dish_id": dish.id}
        )
        return sale

    def update_sale(
        self,
        sale_id: int,
        quantity_sold: Optional[int] = None,
        sale_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Sale:
        """
        Met a jour une vente. Un changement de quantite reajuste le stock
        de la difference.
        """
        sale = self.get_sale(sale_id)

        if quantity_sold is not None and quantity_sold != sale.quantity_sold:
            if quantity_sold < 1:
                raise InvalidSaleError("Quantity sold must be at least 1")
            dish = self._get_dish(sale.dish_id)
            difference = quantity_sold - sale.quantity_sold
            if difference > 0:
                shortages = self._shortages(dish, difference)
                if shortages:
                    raise InsufficientStockError(shortages)
            self._move_stock(
                dish, difference, sale,
                reason=f"Sale updated: {dish.name} ({sale.quantity_sold} -> {quantity_sold})",
            )
            sale.quantity_sold = quantity_sold

        if sale_date is not None:
            sale.sale_date = sale_date
        if notes is not None:
            sale.notes = notes

        self.sale_repo.session.flush()
        return sale

    def delete_sale(self, sale_id: int) -> None:
        """Supprime une vente et restitue les ingredients au stock."""
        sale = self.get_sale(sale_id)
        dish = self._get_dish(sale.dish_id)
        self._move_stock(
            dish, -sale.quantity_sold, None,
            reason=f"Sale deleted: {dish.name} (x{sale.quantity_sold})",
        )
        self.sale_repo.session.delete(sale)
        self.sale_repo.session.flush()

    def get_summary(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[SalesSummaryLine]:
        """Ventes agregees par plat, les plus vendus d'abord."""
        lines = []
        for row in self.sale_repo.summary_by_dish(start_date=start_date, end_date=end_date):
            revenue = None
            if row["selling_price"] is not None:
                revenue = row["selling_price"] * row["total_quantity"]
            lines.append(SalesSummaryLine(
                dish_id=row["dish_id"],
                dish_name=row["dish_name"],
                total_quantity=row["total_quantity"],
                sales_count=row["sales_count"],
                revenue=revenue,
            ))
        return lines

    # =========================================================================
    # Ticket de caisse
    # =========================================================================

    def process_receipt(self, content: bytes, content_type: Optional[str] = None) -> DocumentExtraction:
        """Extraction OCR d'un ticket, rien n'est persiste."""
        if not content:
            raise InvalidSaleError("No file uploaded")
        if self.ocr_client is None:
            raise InvalidSaleError("No OCR client available")
        return self.ocr_client.analyze(content, content_type)

    def confirm_receipt(
        self,
        dishes: List[Dict[str, Any]],
        sale_date: Optional[datetime] = None,
        receipt_ref: Optional[str] = None,
    ) -> ReceiptConfirmation:
        """
        Enregistre les ventes d'un ticket confirme.

        Chaque plat est retrouve par nom (insensible a la casse) ou cree
        sans recette. Le stock est deduit sans jamais passer sous zero.

        Args:
            dishes: [{name, quantity}]
        """
        if not dishes:
            raise InvalidSaleError("No dishes provided")

        sale_date = sale_date or utc_now()
        confirmation = ReceiptConfirmation()
        for line in dishes:
            name = (line.get("name") or "").strip()
            quantity = int(line.get("quantity") or 0)
            if not name:
                raise InvalidSaleError("Dish name is required")
            if quantity < 1:
                raise InvalidSaleError("Quantity sold must be at least 1")

            dish = self.dish_repo.get_by_name_insensitive(name)
            created = dish is None
            if created:
                logger.info(f"Plat inconnu, creation: {name}")
                dish = self.dish_repo.create({"name": name, "is_active": True})

            sale = self.sale_repo.create({
                "dish_id": dish.id,
                "quantity_sold": quantity,
                "sale_date": sale_date,
                "notes": f"Imported from receipt scan - {receipt_ref}" if receipt_ref else "Imported from receipt scan",
            })
            confirmation.sales.append(sale)

            deducted = 0
            if not created:
                deducted = self._move_stock(
                    dish, quantity, sale,
                    reason=f"Sale: {dish.name} (x{quantity})",
                    floor_at_zero=True,
                )

            result = ReceiptLineResult(
                dish_name=dish.name,
                quantity_sold=quantity,
                ingredients_deducted=deducted,
                has_recipe=deducted > 0,
                dish_created=created,
            )
            if not result.has_recipe:
                logger.warning(f"Pas de recette pour {dish.name}, stock non deduit")
                result.warning = "No recipe found - stock not deducted"
            confirmation.results.append(result)

        return confirmation
