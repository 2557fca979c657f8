"""
Tests unitaires pour SaleService: deduction de stock par recette.
"""
import pytest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock


def _ingredient(product_id, required, stock):
    from app.models.restaurant.product import Unit

    return SimpleNamespace(
        product_id=product_id,
        product=SimpleNamespace(
            id=product_id, name=f"Produit {product_id}", quantity=Decimal(stock),
            unit=Unit.KG, unit_price=None,
        ),
        quantity_required=Decimal(required),
        unit=Unit.KG,
    )


def _dish(*ingredients, is_active=True, dish_id=1):
    return SimpleNamespace(
        id=dish_id,
        name="Burger",
        is_active=is_active,
        recipe_ingredients=list(ingredients),
    )


def _service(sale_repo=None, dish_repo=None, movement_repo=None, ocr_client=None):
    from app.services.restaurant.sale import SaleService

    return SaleService(
        sale_repo or MagicMock(),
        dish_repo or MagicMock(),
        movement_repo or MagicMock(),
        ocr_client=ocr_client,
    )


class TestCreateSale:
    """Tests pour create_sale."""

    @pytest.mark.unit
    def test_sale_deducts_each_ingredient(self):
        from app.models.restaurant.stock_movement import MovementType, MovementSource

        bun = _ingredient(1, "1", "10")
        steak = _ingredient(2, "0.15", "3")
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(bun, steak)
        sale_repo = MagicMock()
        sale_repo.create.return_value = SimpleNamespace(id=50)
        movement_repo = MagicMock()

        _service(sale_repo, dish_repo, movement_repo).create_sale(dish_id=1, quantity_sold=4)

        assert bun.product.quantity == Decimal("6")
        assert steak.product.quantity == Decimal("2.40")
        assert movement_repo.record.call_count == 2
        args, kwargs = movement_repo.record.call_args
        assert args[1] == MovementType.OUT
        assert kwargs["source"] == MovementSource.RECIPE_DEDUCTION
        assert kwargs["sale_id"] == 50

    @pytest.mark.unit
    def test_insufficient_stock_changes_nothing(self):
        """Aucune ecriture si un ingredient manque."""
        from app.services.restaurant.sale import InsufficientStockError

        bun = _ingredient(1, "1", "10")
        steak = _ingredient(2, "1", "1")
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(bun, steak)
        sale_repo = MagicMock()
        movement_repo = MagicMock()

        with pytest.raises(InsufficientStockError) as exc:
            _service(sale_repo, dish_repo, movement_repo).create_sale(dish_id=1, quantity_sold=2)

        assert exc.value.status_code == 409
        assert len(exc.value.shortages) == 1
        assert "Produit 2" in exc.value.shortages[0]
        assert bun.product.quantity == Decimal("10")
        sale_repo.create.assert_not_called()
        movement_repo.record.assert_not_called()

    @pytest.mark.unit
    def test_inactive_dish_is_refused(self):
        from app.services.restaurant.sale import InvalidSaleError

        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(is_active=False)

        with pytest.raises(InvalidSaleError):
            _service(dish_repo=dish_repo).create_sale(dish_id=1, quantity_sold=1)

    @pytest.mark.unit
    def test_quantity_must_be_positive(self):
        from app.services.restaurant.sale import InvalidSaleError

        with pytest.raises(InvalidSaleError):
            _service().create_sale(dish_id=1, quantity_sold=0)

    @pytest.mark.unit
    def test_unknown_dish(self):
        from app.services.restaurant.dish import DishNotFoundError

        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = None

        with pytest.raises(DishNotFoundError):
            _service(dish_repo=dish_repo).create_sale(dish_id=9, quantity_sold=1)


class TestUpdateAndDeleteSale:
    """Tests pour update_sale et delete_sale."""

    @pytest.mark.unit
    def test_lower_quantity_restores_difference(self):
        from app.models.restaurant.stock_movement import MovementType

        steak = _ingredient(2, "0.2", "1")
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(steak)
        sale = SimpleNamespace(id=3, dish_id=1, quantity_sold=5, sale_date=None, notes=None)
        sale_repo = MagicMock()
        sale_repo.get.return_value = sale
        movement_repo = MagicMock()

        _service(sale_repo, dish_repo, movement_repo).update_sale(3, quantity_sold=2)

        assert sale.quantity_sold == 2
        assert steak.product.quantity == Decimal("1.6")
        assert movement_repo.record.call_args[0][1] == MovementType.IN

    @pytest.mark.unit
    def test_higher_quantity_checks_stock(self):
        from app.services.restaurant.sale import InsufficientStockError

        steak = _ingredient(2, "1", "1")
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(steak)
        sale_repo = MagicMock()
        sale_repo.get.return_value = SimpleNamespace(id=3, dish_id=1, quantity_sold=1)

        with pytest.raises(InsufficientStockError):
            _service(sale_repo, dish_repo).update_sale(3, quantity_sold=3)

    @pytest.mark.unit
    def test_delete_restores_stock(self):
        steak = _ingredient(2, "0.5", "1")
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(steak)
        sale = SimpleNamespace(id=3, dish_id=1, quantity_sold=2)
        sale_repo = MagicMock()
        sale_repo.get.return_value = sale

        _service(sale_repo, dish_repo).delete_sale(3)

        assert steak.product.quantity == Decimal("2.0")
        sale_repo.session.delete.assert_called_once_with(sale)

    @pytest.mark.unit
    def test_delete_unknown_sale(self):
        from app.services.restaurant.sale import SaleNotFoundError

        sale_repo = MagicMock()
        sale_repo.get.return_value = None

        with pytest.raises(SaleNotFoundError):
            _service(sale_repo).delete_sale(3)


class TestSalesSummary:
    """Tests pour get_summary."""

    @pytest.mark.unit
    def test_revenue_needs_selling_price(self):
        sale_repo = MagicMock()
        sale_repo.summary_by_dish.return_value = [
            {"dish_id": 1, "dish_name": "Burger", "total_quantity": 4, "sales_count": 2,
             "selling_price": Decimal("12")},
            {"dish_id": 2, "dish_name": "Soupe", "total_quantity": 1, "sales_count": 1,
             "selling_price": None},
        ]

        lines = _service(sale_repo).get_summary()

        assert lines[0].revenue == Decimal("48")
        assert lines[1].revenue is None


class TestReceipt:
    """Tests pour l'import d'un ticket de caisse."""

    @pytest.mark.unit
    def test_process_receipt_requires_content(self):
        from app.services.restaurant.sale import InvalidSaleError

        with pytest.raises(InvalidSaleError):
            _service(ocr_client=MagicMock()).process_receipt(b"")

    @pytest.mark.unit
    def test_process_receipt_delegates_to_ocr(self):
        ocr_client = MagicMock()

        _service(ocr_client=ocr_client).process_receipt(b"img", "image/png")

        ocr_client.analyze.assert_called_once_with(b"img", "image/png")

    @pytest.mark.unit
    def test_confirm_receipt_floors_stock_at_zero(self):
        """La deduction d'un ticket ne rend jamais le stock negatif."""
        steak = _ingredient(2, "1", "1.5")
        dish_repo = MagicMock()
        dish_repo.get_by_name_insensitive.return_value = _dish(steak)
        sale_repo = MagicMock()
        movement_repo = MagicMock()

        confirmation = _service(sale_repo, dish_repo, movement_repo).confirm_receipt(
            [{"name": "burger", "quantity": 3}], receipt_ref="ticket.jpg",
        )

        assert steak.product.quantity == Decimal("0")
        assert movement_repo.record.call_args[0][2] == Decimal("1.5")
        assert confirmation.results[0].has_recipe is True
        assert "ticket.jpg" in sale_repo.create.call_args[0][0]["notes"]
        assert confirmation.message == "1 sales recorded"

    @pytest.mark.unit
    def test_confirm_receipt_creates_unknown_dish(self):
        dish_repo = MagicMock()
        dish_repo.get_by_name_insensitive.return_value = None
        dish_repo.create.return_value = _dish(dish_id=8)
        movement_repo = MagicMock()

        confirmation = _service(dish_repo=dish_repo, movement_repo=movement_repo).confirm_receipt(
            [{"name": "Nouveau plat", "quantity": 1}],
        )

        result = confirmation.results[0]
        assert result.dish_created is True
        assert result.has_recipe is False
        assert result.warning == "No recipe found - stock not deducted"
        movement_repo.record.assert_not_called()

    @pytest.mark.unit
    def test_confirm_receipt_requires_dishes(self):
        from app.services.restaurant.sale import InvalidSaleError

        with pytest.raises(InvalidSaleError):
            _service().confirm_receipt([])
