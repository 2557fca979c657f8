"""
Tests unitaires pour les endpoints API.
Comprend tests d'INTERFACE (routers, schemas) et tests COMPORTEMENTAUX
avec services simules via dependency_overrides (pas de DB).
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock


NOW = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


def _product(product_id=1, **kwargs):
    from app.models.restaurant.product import Unit

    data = {
        "id": product_id,
        "name": "Tomates",
        "quantity": Decimal("10"),
        "unit": Unit.KG,
        "unit_price": Decimal("2.5"),
        "par_level": None,
        "category": "Legumes",
        "trackable": True,
        "is_composite": False,
        "yield_quantity": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(kwargs)
    return SimpleNamespace(**data)


@pytest.fixture
def api():
    """
    TestClient avec un helper pour remplacer une factory de service.

    Usage:
        service = api.override(get_product_service)
    """
    from fastapi.testclient import TestClient
    from app.main import app

    client = TestClient(app)

    def override(factory, service=None):
        service = service or MagicMock()
        app.dependency_overrides[factory] = lambda: service
        return service

    client.override = override
    yield client
    app.dependency_overrides.clear()


# =============================================================================
# Tests d'INTERFACE
# =============================================================================

class TestRouterInterface:
    """Tests d'interface pour les routers."""

    @pytest.mark.unit
    @pytest.mark.parametrize("module,prefix", [
        ("products", "/products"),
        ("dishes", "/dishes"),
        ("menus", "/menus"),
        ("bills", "/bills"),
        ("sales", "/sales"),
        ("disputes", "/disputes"),
        ("orders", "/orders"),
        ("dashboard", "/dashboard"),
    ])
    def test_router_prefix(self, module, prefix):
        """Chaque router doit avoir son prefix."""
        import importlib

        endpoint = importlib.import_module(f"app.api.v1.endpoints.{module}")
        assert endpoint.router.prefix == prefix

    @pytest.mark.unit
    def test_stock_router_prefix(self):
        from app.api.v1.endpoints.products import stock_router

        assert stock_router.prefix == "/stock"

    @pytest.mark.unit
    def test_routes_are_registered(self):
        """Les routes principales doivent etre enregistrees dans api_router."""
        from app.api.v1.router import api_router

        paths = {route.path for route in api_router.routes}
        expected = [
            "/products",
            "/products/{product_id}/sync-adjust",
            "/products/sync",
            "/stock/status",
            "/dishes/{dish_id}/cost",
            "/menus/{menu_id}/costing",
            "/bills/process",
            "/bills/{bill_id}/confirm",
            "/sales/confirm",
            "/disputes/{dispute_id}/status",
            "/orders/suggestions",
            "/dashboard/alerts",
        ]
        for path in expected:
            assert path in paths, f"Missing route: {path}"


class TestSchemaValidation:
    """Tests de validation des schemas."""

    @pytest.mark.unit
    def test_product_create_rejects_negative_quantity(self):
        from app.api.v1.endpoints.products import ProductCreate
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            ProductCreate(name="Tomates", unit="KG", quantity=Decimal("-1"))

    @pytest.mark.unit
    def test_product_create_forbids_unknown_fields(self):
        from app.api.v1.endpoints.products import ProductCreate
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            ProductCreate(name="Tomates", unit="KG", supplier="Rungis")

    @pytest.mark.unit
    def test_sale_create_requires_one_serving(self):
        from app.api.v1.endpoints.sales import SaleCreate
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            SaleCreate(dish_id=1, quantity_sold=0)

    @pytest.mark.unit
    def test_bill_line_defaults_to_pieces(self):
        from app.api.v1.endpoints.bills import BillLineInput
        from app.models.restaurant.product import Unit

        line = BillLineInput(product_name="Oeufs", quantity=Decimal("30"))

        assert line.unit == Unit.PC
        assert line.product_id is None


# =============================================================================
# Tests COMPORTEMENTAUX
# =============================================================================

class TestProductEndpoints:
    """Tests pour /products et /stock."""

    @pytest.mark.unit
    def test_list_products(self, api):
        from app.api.v1.endpoints.products import get_product_service

        service = api.override(get_product_service)
        service.list_products.return_value = [_product()]

        response = api.get("/api/v1/products", params={"search": "tom"})

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Tomates"
        service.list_products.assert_called_once_with(search="tom", category=None, trackable=None)

    @pytest.mark.unit
    def test_create_product(self, api):
        from app.api.v1.endpoints.products import get_product_service

        service = api.override(get_product_service)
        service.create_product.return_value = _product(7)

        response = api.post("/api/v1/products", json={"name": "Tomates", "unit": "KG"})

        assert response.status_code == 201
        assert response.json()["id"] == 7
        kwargs = service.create_product.call_args.kwargs
        assert kwargs["quantity"] == Decimal("0")
        assert kwargs["trackable"] is False

    @pytest.mark.unit
    def test_create_product_validation_error(self, api):
        from app.api.v1.endpoints.products import get_product_service

        api.override(get_product_service)

        response = api.post("/api/v1/products", json={"name": "Tomates", "unit": "BARREL"})

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.unit
    def test_product_not_found(self, api):
        from app.api.v1.endpoints.products import get_product_service
        from app.services.restaurant.product import ProductNotFoundError

        service = api.override(get_product_service)
        service.get_product.side_effect = ProductNotFoundError(42)

        response = api.get("/api/v1/products/42")

        assert response.status_code == 404
        assert response.json()["error"] == "PRODUCT_NOT_FOUND"

    @pytest.mark.unit
    def test_update_product_ignores_missing_fields(self, api):
        from app.api.v1.endpoints.products import get_product_service

        service = api.override(get_product_service)
        service.update_product.return_value = _product(par_level=Decimal("5"))

        response = api.patch("/api/v1/products/1", json={"par_level": "5"})

        assert response.status_code == 200
        service.update_product.assert_called_once_with(1, par_level=Decimal("5"))

    @pytest.mark.unit
    def test_sync_adjust_reports_difference(self, api):
        from app.api.v1.endpoints.products import get_product_service
        from app.services.restaurant.product import SyncAdjustResult

        service = api.override(get_product_service)
        movement = SimpleNamespace(
            id=3, product_id=1, movement_type="ADJUSTMENT", quantity=Decimal("2"),
            balance_after=Decimal("8"), reason="Inventory Sync", description="",
            source="MANUAL", unit_price=None, total_value=None, bill_id=None,
            sale_id=None, created_at=NOW,
        )
        service.sync_adjust.return_value = SyncAdjustResult(
            product=_product(quantity=Decimal("8")),
            movement=movement,
            old_quantity=Decimal("10"),
            new_quantity=Decimal("8"),
        )

        response = api.post("/api/v1/products/1/sync-adjust", json={"new_quantity": "8"})

        assert response.status_code == 200
        difference = response.json()["difference"]
        assert difference["type"] == "loss"
        assert Decimal(difference["change"]) == Decimal("-2")

    @pytest.mark.unit
    def test_inventory_sync_failure_is_bad_request(self, api):
        from app.api.v1.endpoints.products import get_product_service
        from app.services.restaurant.product import ProductNotFoundError

        service = api.override(get_product_service)
        service.get_product.side_effect = ProductNotFoundError(5)

        response = api.post("/api/v1/products/sync", json={"counts": [{"product_id": 5, "new_quantity": 1}]})

        assert response.status_code == 400
        assert response.json()["message"] == "Product 5 not found"
        service.sync_adjust.assert_not_called()

    @pytest.mark.unit
    def test_stock_status(self, api):
        from app.api.v1.endpoints.products import get_product_service
        from app.services.restaurant.product import ProductStockStatus
        from app.services.restaurant.stock_status import StockStatus

        service = api.override(get_product_service)
        service.get_stock_statuses.return_value = [
            ProductStockStatus(product=_product(), status=StockStatus.CRITICAL, menu_demand=Decimal("4")),
        ]

        response = api.get("/api/v1/stock/status", params={"alerts_only": True})

        assert response.status_code == 200
        assert response.json()[0]["status"] == "critical"
        service.get_stock_statuses.assert_called_once_with(alerts_only=True)


class TestDishEndpoints:
    """Tests pour /dishes."""

    @pytest.mark.unit
    def test_cost_lines_include_line_cost(self, api):
        from app.api.v1.endpoints.dishes import get_dish_service
        from app.models.restaurant.product import Unit
        from app.services.restaurant.costing import CostLine, DishCost

        service = api.override(get_dish_service)
        service.get_cost.return_value = DishCost(
            cost=Decimal("1.5"),
            has_all_prices=True,
            selling_price=Decimal("12"),
            margin=Decimal("87.5"),
            lines=[CostLine(1, "Steak", Decimal("0.15"), Unit.KG, Decimal("10"))],
        )

        response = api.get("/api/v1/dishes/3/cost")

        assert response.status_code == 200
        assert Decimal(response.json()["lines"][0]["line_cost"]) == Decimal("1.5")

    @pytest.mark.unit
    def test_availability_lists_shortfall(self, api):
        from app.api.v1.endpoints.dishes import get_dish_service
        from app.models.restaurant.product import Unit
        from app.services.restaurant.dish import DishAvailability, MissingIngredient

        service = api.override(get_dish_service)
        service.can_make.return_value = DishAvailability(
            dish_id=3,
            servings=4,
            missing=[MissingIngredient(2, "Steak", Decimal("0.6"), Decimal("0.2"), Unit.KG)],
        )

        response = api.get("/api/v1/dishes/3/availability", params={"servings": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["can_make"] is False
        assert Decimal(body["missing"][0]["shortfall"]) == Decimal("0.4")
        service.can_make.assert_called_once_with(3, 4)


class TestBillEndpoints:
    """Tests pour /bills."""

    @pytest.mark.unit
    def test_process_bill_returns_items_for_review(self, api):
        from app.api.v1.endpoints.bills import get_bill_service
        from app.services.ocr import DocumentExtraction, ExtractedLineItem
        from app.services.restaurant.bill import ProcessedBill

        service = api.override(get_bill_service)
        service.process_upload.return_value = ProcessedBill(
            bill=SimpleNamespace(id=5, filename="facture.pdf"),
            extraction=DocumentExtraction(
                supplier_name="Rungis", date=NOW, total_amount=Decimal("10"),
                items=[ExtractedLineItem("Tomates", Decimal("5"), "KG", Decimal("2"), Decimal("10"))],
            ),
        )

        response = api.post(
            "/api/v1/bills/process",
            files={"file": ("facture.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["bill_id"] == 5
        assert body["items"][0]["id"] == "temp-0"
        assert body["items"][0]["name"] == "Tomates"
        service.process_upload.assert_called_once_with("facture.pdf", b"%PDF-1.4", "application/pdf")

    @pytest.mark.unit
    def test_process_bill_rejects_large_file(self, api, monkeypatch):
        from app.api.v1.endpoints.bills import get_bill_service
        from app.core.config import get_settings

        service = api.override(get_bill_service)
        monkeypatch.setattr(get_settings(), "MAX_UPLOAD_SIZE", 4)

        response = api.post("/api/v1/bills/process", files={"file": ("f.pdf", b"0123456789")})

        assert response.status_code == 413
        service.process_upload.assert_not_called()

    @pytest.mark.unit
    def test_confirm_bill(self, api):
        from app.api.v1.endpoints.bills import get_bill_service
        from app.services.restaurant.bill import BillConfirmation

        service = api.override(get_bill_service)
        service.confirm.return_value = BillConfirmation(
            bill=SimpleNamespace(id=5), products_updated=2, products_created=1,
        )

        response = api.post("/api/v1/bills/5/confirm", json={
            "products": [
                {"product_id": 1, "product_name": "Tomates", "quantity": "5", "unit": "KG"},
                {"product_name": "Basilic", "quantity": "2", "unit": "BUNCH"},
            ],
            "supplier": "Rungis",
        })

        assert response.status_code == 200
        assert response.json()["products_created"] == 1
        args, kwargs = service.confirm.call_args
        assert args[0] == 5
        assert len(args[1]) == 2
        assert kwargs["supplier"] == "Rungis"

    @pytest.mark.unit
    def test_confirm_processed_bill(self, api):
        from app.api.v1.endpoints.bills import get_bill_service
        from app.services.restaurant.bill import BillAlreadyProcessedError

        service = api.override(get_bill_service)
        service.confirm.side_effect = BillAlreadyProcessedError(5)

        response = api.post("/api/v1/bills/5/confirm", json={
            "products": [{"product_name": "Tomates", "quantity": "1"}],
        })

        assert response.status_code == 400
        assert response.json()["error"] == "BILL_ALREADY_PROCESSED"


class TestSaleEndpoints:
    """Tests pour /sales."""

    @pytest.mark.unit
    def test_insufficient_stock_is_conflict(self, api):
        from app.api.v1.endpoints.sales import get_sale_service
        from app.services.restaurant.sale import InsufficientStockError

        service = api.override(get_sale_service)
        service.create_sale.side_effect = InsufficientStockError(["Steak (need 0.3 KG, have 0.1 KG)"])

        response = api.post("/api/v1/sales", json={"dish_id": 1, "quantity_sold": 2})

        assert response.status_code == 409
        assert response.json()["details"]["shortages"] == ["Steak (need 0.3 KG, have 0.1 KG)"]

    @pytest.mark.unit
    def test_confirm_receipt(self, api):
        from app.api.v1.endpoints.sales import get_sale_service

        service = api.override(get_sale_service)
        service.confirm_receipt.return_value = SimpleNamespace(
            message="1 sales recorded",
            results=[SimpleNamespace(
                dish_name="Burger", quantity_sold=2, ingredients_deducted=3,
                has_recipe=True, dish_created=False, warning=None,
            )],
        )

        response = api.post("/api/v1/sales/confirm", json={
            "dishes": [{"name": "Burger", "quantity": 2}],
            "receipt_ref": "ticket-12",
        })

        assert response.status_code == 200
        assert response.json()["results"][0]["ingredients_deducted"] == 3
        args, kwargs = service.confirm_receipt.call_args
        assert args[0] == [{"name": "Burger", "quantity": 2}]
        assert kwargs["receipt_ref"] == "ticket-12"


class TestDisputeEndpoints:
    """Tests pour /disputes."""

    @pytest.mark.unit
    def test_invalid_transition_is_conflict(self, api):
        from app.api.v1.endpoints.disputes import get_dispute_service
        from app.models.restaurant.dispute import DisputeStatus
        from app.services.restaurant.dispute import InvalidStatusTransitionError

        service = api.override(get_dispute_service)
        service.update_status.side_effect = InvalidStatusTransitionError(
            DisputeStatus.CLOSED, DisputeStatus.OPEN,
        )

        response = api.post("/api/v1/disputes/3/status", json={"status": "OPEN"})

        assert response.status_code == 409
        assert response.json()["details"] == {"current": "CLOSED", "target": "OPEN"}


class TestDashboardEndpoints:
    """Tests pour /dashboard et /orders."""

    @pytest.mark.unit
    def test_alerts_with_counts(self, api):
        from app.api.v1.endpoints.dashboard import get_alert_service
        from app.services.restaurant.alerts import Alert, AlertService, AlertType
        from app.services.restaurant.stock_status import AlertUrgency

        service = api.override(get_alert_service)
        service.get_alerts.return_value = [
            Alert(id="stock-1", type=AlertType.LOW_STOCK, title="Tomates",
                  description="1 / 10 KG", urgency=AlertUrgency.HIGH, href="/inventory", badge="low"),
        ]
        service.count_by_type = AlertService.count_by_type

        response = api.get("/api/v1/dashboard/alerts")

        assert response.status_code == 200
        body = response.json()
        assert body["alerts"][0]["urgency"] == "high"
        assert body["counts"] == {"all": 1, "lowStock": 1, "dispute": 0}

    @pytest.mark.unit
    def test_orders_by_supplier(self, api):
        from app.api.v1.endpoints.orders import get_order_service
        from app.models.restaurant.product import Unit
        from app.services.restaurant.reorder import ReorderSuggestion, SupplierOrder

        suggestion = ReorderSuggestion(
            product_id=1, product_name="Tomates", current_quantity=Decimal("2"),
            par_level=Decimal("10"), unit=Unit.KG, suggested_quantity=8,
            percent_of_par=Decimal("20"), last_price=Decimal("2"),
        )
        service = api.override(get_order_service)
        service.get_orders_by_supplier.return_value = [
            SupplierOrder(supplier_id=None, supplier_name="Unknown supplier", items=[suggestion]),
        ]

        response = api.get("/api/v1/orders/by-supplier")

        assert response.status_code == 200
        order = response.json()[0]
        assert order["key"] == "unknown"
        assert Decimal(order["total_cost"]) == Decimal("16")
        assert Decimal(order["items"][0]["estimated_cost"]) == Decimal("16")


class TestHealthEndpoints:
    """Tests pour les endpoints de sante."""

    @pytest.mark.unit
    def test_liveness(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.unit
    def test_ready_with_database(self, api):
        from app.core.dependencies import get_db

        api.override(get_db)

        response = api.get("/ready")

        assert response.status_code == 200

    @pytest.mark.unit
    def test_ready_without_database(self, api):
        from sqlalchemy.exc import OperationalError
        from app.core.dependencies import get_db

        session = api.override(get_db)
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

        response = api.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "error"
