"""
Tests unitaires pour les repositories du domaine restaurant.
Comprend tests d'INTERFACE (hasattr) et tests COMPORTEMENTAUX (session simulee).
"""
import pytest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock


# =============================================================================
# Tests d'INTERFACE
# =============================================================================

class TestRepositoryInterfaces:
    """Chaque repository expose son model et ses requetes."""

    @pytest.mark.unit
    @pytest.mark.parametrize("path,name,model,methods", [
        ("app.repositories.restaurant.product", "ProductRepository", "Product",
         ["get_by_name", "get_by_name_insensitive", "list_products", "get_reorder_candidates",
          "is_in_use", "get_menu_demand", "get_with_composition"]),
        ("app.repositories.restaurant.dish", "DishRepository", "Dish",
         ["list_dishes", "get_with_recipe", "get_by_name_insensitive", "has_sales"]),
        ("app.repositories.restaurant.menu", "MenuRepository", "Menu",
         ["list_menus", "get_with_sections", "add_section", "add_dish", "clear_sections"]),
        ("app.repositories.restaurant.bill", "BillRepository", "Bill",
         ["list_bills", "get_with_products"]),
        ("app.repositories.restaurant.dispute", "DisputeRepository", "Dispute",
         ["list_disputes", "get_with_products", "get_open", "count_open"]),
        ("app.repositories.restaurant.sale", "SaleRepository", "Sale",
         ["list_sales", "summary_by_dish"]),
        ("app.repositories.restaurant.supplier", "SupplierRepository", "Supplier",
         ["get_by_name", "get_or_create", "list_suppliers"]),
        ("app.repositories.restaurant.stock_movement", "StockMovementRepository", "StockMovement",
         ["record", "get_by_product"]),
    ])
    def test_repository_interface(self, path, name, model, methods):
        import importlib
        from app.repositories.base import BaseRepository
        import app.models.restaurant as models

        repository = getattr(importlib.import_module(path), name)

        assert issubclass(repository, BaseRepository)
        assert repository.model is getattr(models, model)
        for method in methods + ["get", "create", "update", "delete", "count"]:
            assert hasattr(repository, method), f"Missing method: {name}.{method}"


# =============================================================================
# Tests COMPORTEMENTAUX
# =============================================================================

class TestBaseRepositoryBehavior:
    """Tests du CRUD generique."""

    @pytest.mark.unit
    def test_create_adds_and_flushes(self):
        from app.repositories.restaurant.supplier import SupplierRepository

        session = MagicMock()

        supplier = SupplierRepository(session).create({"name": "Rungis"})

        assert supplier.name == "Rungis"
        session.add.assert_called_once_with(supplier)
        session.flush.assert_called_once()
        session.commit.assert_not_called()

    @pytest.mark.unit
    def test_update_ignores_unknown_fields(self):
        from app.models.restaurant.supplier import Supplier
        from app.repositories.restaurant.supplier import SupplierRepository

        existing = Supplier(name="Rungis")
        session = MagicMock()
        session.get.return_value = existing

        result = SupplierRepository(session).update(1, {"phone": "0102030405", "unknown": 1})

        assert result is existing
        assert existing.phone == "0102030405"
        assert not hasattr(existing, "unknown")

    @pytest.mark.unit
    def test_update_and_delete_missing(self):
        from app.repositories.restaurant.supplier import SupplierRepository

        session = MagicMock()
        session.get.return_value = None
        repo = SupplierRepository(session)

        assert repo.update(1, {"name": "X"}) is None
        assert repo.delete(1) is False
        session.delete.assert_not_called()


class TestSupplierRepositoryBehavior:
    """Tests pour get_or_create."""

    @pytest.mark.unit
    def test_get_or_create_returns_existing(self):
        from app.models.restaurant.supplier import Supplier
        from app.repositories.restaurant.supplier import SupplierRepository

        existing = Supplier(name="Rungis")
        session = MagicMock()
        session.execute.return_value.scalar_one_or_none.return_value = existing

        assert SupplierRepository(session).get_or_create("Rungis") is existing
        session.add.assert_not_called()

    @pytest.mark.unit
    def test_get_or_create_creates_missing(self):
        from app.repositories.restaurant.supplier import SupplierRepository

        session = MagicMock()
        session.execute.return_value.scalar_one_or_none.return_value = None

        supplier = SupplierRepository(session).get_or_create("Metro", email="achat@metro.fr")

        assert supplier.name == "Metro"
        assert supplier.email == "achat@metro.fr"
        session.add.assert_called_once_with(supplier)


class TestStockMovementRepositoryBehavior:
    """Tests pour l'enregistrement des mouvements."""

    @pytest.mark.unit
    def test_record_stores_absolute_quantity_and_balance(self):
        from app.models.restaurant.stock_movement import MovementType, MovementSource
        from app.repositories.restaurant.stock_movement import StockMovementRepository

        product = SimpleNamespace(id=3, quantity=Decimal("4"), unit_price=Decimal("2.5"))
        session = MagicMock()

        movement = StockMovementRepository(session).record(
            product, MovementType.OUT, Decimal("-2"),
            source=MovementSource.RECIPE_DEDUCTION, sale_id=9,
        )

        assert movement.quantity == Decimal("2")
        assert movement.balance_after == Decimal("4")
        assert movement.total_value == Decimal("5.0")
        assert movement.sale_id == 9
        assert movement.source == MovementSource.RECIPE_DEDUCTION
        session.add.assert_called_once_with(movement)

    @pytest.mark.unit
    def test_record_without_price(self):
        from app.models.restaurant.stock_movement import MovementType, MovementSource
        from app.repositories.restaurant.stock_movement import StockMovementRepository

        product = SimpleNamespace(id=3, quantity=Decimal("1"), unit_price=None)

        movement = StockMovementRepository(MagicMock()).record(product, MovementType.IN, Decimal("1"))

        assert movement.total_value is None
        assert movement.source == MovementSource.MANUAL
