"""
Tests unitaires pour DishService et MenuService.
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock


def _ingredient(product_id, required, stock, unit_price=None, name=None):
    from app.models.restaurant.product import Unit

    product = SimpleNamespace(
        id=product_id,
        name=name or f"Produit {product_id}",
        quantity=Decimal(stock),
        unit=Unit.KG,
        unit_price=Decimal(unit_price) if unit_price else None,
    )
    return SimpleNamespace(
        product_id=product_id,
        product=product,
        quantity_required=Decimal(required),
        unit=Unit.KG,
    )


def _dish(dish_id=1, ingredients=None, selling_price="10", is_active=True):
    return SimpleNamespace(
        id=dish_id,
        name=f"Plat {dish_id}",
        selling_price=Decimal(selling_price) if selling_price else None,
        is_active=is_active,
        recipe_ingredients=ingredients or [],
    )


def _dish_service(dish_repo=None, recipe_repo=None, product_repo=None):
    from app.services.restaurant.dish import DishService

    return DishService(dish_repo or MagicMock(), recipe_repo or MagicMock(), product_repo or MagicMock())


class TestDishService:
    """Tests comportementaux pour DishService."""

    @pytest.mark.unit
    def test_get_dish_not_found(self):
        from app.services.restaurant.dish import DishNotFoundError

        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = None

        with pytest.raises(DishNotFoundError):
            _dish_service(dish_repo).get_dish(3)

    @pytest.mark.unit
    def test_create_dish_adds_recipe_lines(self):
        from app.models.restaurant.product import Unit

        dish_repo = MagicMock()
        dish_repo.create.return_value = _dish(7)
        recipe_repo = MagicMock()
        product_repo = MagicMock()
        product_repo.get.return_value = SimpleNamespace(id=3, unit=Unit.G)

        _dish_service(dish_repo, recipe_repo, product_repo).create_dish(
            name=" Burger ",
            selling_price=Decimal("14"),
            ingredients=[{"product_id": 3, "quantity_required": "150"}],
        )

        assert dish_repo.create.call_args[0][0]["name"] == "Burger"
        line = recipe_repo.create.call_args[0][0]
        assert line["dish_id"] == 7
        assert line["quantity_required"] == Decimal("150")
        assert line["unit"] == Unit.G

    @pytest.mark.unit
    def test_create_dish_rejects_unknown_product(self):
        from app.services.restaurant.dish import InvalidDishError

        dish_repo = MagicMock()
        dish_repo.create.return_value = _dish(7)
        product_repo = MagicMock()
        product_repo.get.return_value = None

        with pytest.raises(InvalidDishError):
            _dish_service(dish_repo, product_repo=product_repo).create_dish(
                name="Burger",
                ingredients=[{"product_id": 99, "quantity_required": "1"}],
            )

    @pytest.mark.unit
    def test_create_dish_rejects_negative_price(self):
        from app.services.restaurant.dish import InvalidDishError

        with pytest.raises(InvalidDishError):
            _dish_service().create_dish(name="Burger", selling_price=Decimal("-1"))

    @pytest.mark.unit
    def test_update_dish_replaces_recipe(self):
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(4)
        recipe_repo = MagicMock()
        product_repo = MagicMock()
        product_repo.get.return_value = SimpleNamespace(id=1, unit=None)

        _dish_service(dish_repo, recipe_repo, product_repo).update_dish(
            4, ingredients=[{"product_id": 1, "quantity_required": 2}], name="Nouveau",
        )

        recipe_repo.delete_by_dish.assert_called_once_with(4)
        assert recipe_repo.create.call_count == 1

    @pytest.mark.unit
    def test_delete_dish_with_sales_is_refused(self):
        from app.services.restaurant.dish import DishHasSalesError

        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish()
        dish_repo.has_sales.return_value = True

        with pytest.raises(DishHasSalesError) as exc:
            _dish_service(dish_repo).delete_dish(1)
        assert exc.value.status_code == 409

    @pytest.mark.unit
    def test_get_cost_and_margin(self):
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(
            ingredients=[_ingredient(1, "0.5", "10", unit_price="4"), _ingredient(2, "1", "10")],
        )

        cost = _dish_service(dish_repo).get_cost(1)

        assert cost.cost == Decimal("2.0")
        assert cost.has_all_prices is False
        assert cost.margin == Decimal("80")

    @pytest.mark.unit
    def test_can_make_lists_missing_ingredients(self):
        dish_repo = MagicMock()
        dish_repo.get_with_recipe.return_value = _dish(
            ingredients=[_ingredient(1, "0.2", "1"), _ingredient(2, "0.5", "1")],
        )

        availability = _dish_service(dish_repo).can_make(1, servings=3)

        assert availability.can_make is False
        assert [m.product_id for m in availability.missing] == [2]
        assert availability.missing[0].shortfall == Decimal("0.5")

    @pytest.mark.unit
    def test_can_make_requires_one_serving(self):
        from app.services.restaurant.dish import InvalidDishError

        with pytest.raises(InvalidDishError):
            _dish_service().can_make(1, servings=0)


class TestMenuPricing:
    """Tests pour la tarification des menus."""

    @pytest.mark.unit
    def test_pricing_from_flat_fields(self):
        from app.services.restaurant.menu import MenuService
        from app.models.restaurant.menu import Choice, PrixFixe

        assert MenuService.pricing_from(None) is None
        assert MenuService.pricing_from("PRIX_FIXE", fixed_price=Decimal("25")) == PrixFixe(fixed_price=Decimal("25"))
        assert MenuService.pricing_from("CHOICE", min_courses=2, max_courses=3) == Choice(min_courses=2, max_courses=3)

    @pytest.mark.unit
    def test_incomplete_pricing_is_rejected(self):
        from app.services.restaurant.menu import MenuService, InvalidMenuError

        with pytest.raises(InvalidMenuError):
            MenuService.pricing_from("CHOICE", min_courses=2)
        with pytest.raises(InvalidMenuError):
            MenuService.pricing_from("PRIX_FIXE")
        with pytest.raises(InvalidMenuError):
            MenuService.pricing_from("BUFFET")

    @pytest.mark.unit
    def test_validate_pricing_bounds(self):
        from app.services.restaurant.menu import validate_pricing, InvalidMenuError
        from app.models.restaurant.menu import Choice, PrixFixe

        validate_pricing(PrixFixe(fixed_price=Decimal("0")))
        with pytest.raises(InvalidMenuError):
            validate_pricing(PrixFixe(fixed_price=Decimal("-1")))
        with pytest.raises(InvalidMenuError):
            validate_pricing(Choice(min_courses=0, max_courses=2))
        with pytest.raises(InvalidMenuError):
            validate_pricing(Choice(min_courses=3, max_courses=2))

    @pytest.mark.unit
    def test_validate_dates(self):
        from app.services.restaurant.menu import validate_dates, InvalidMenuError

        now = datetime.now(timezone.utc)
        validate_dates(now, None)
        with pytest.raises(InvalidMenuError):
            validate_dates(now, now - timedelta(days=1))


class TestMenuService:
    """Tests comportementaux pour MenuService."""

    @pytest.mark.unit
    def test_create_menu_adds_default_sections(self):
        from app.services.restaurant.menu import MenuService, DEFAULT_SECTIONS

        menu_repo = MagicMock()
        service = MenuService(menu_repo, MagicMock())

        service.create_menu(name="Menu du jour")

        names = [c.kwargs["name"] for c in menu_repo.add_section.call_args_list]
        orders = [c.kwargs["display_order"] for c in menu_repo.add_section.call_args_list]
        assert names == list(DEFAULT_SECTIONS)
        assert orders == [1, 2, 3]

    @pytest.mark.unit
    def test_create_menu_applies_pricing(self):
        from app.services.restaurant.menu import MenuService
        from app.models.restaurant.menu import Choice, PricingType

        menu_repo = MagicMock()

        menu = MenuService(menu_repo, MagicMock()).create_menu(
            name="Formule", pricing=Choice(min_courses=2, max_courses=3),
        )

        assert menu.pricing_type == PricingType.CHOICE
        assert menu.min_courses == 2
        menu_repo.session.add.assert_called_once_with(menu)

    @pytest.mark.unit
    def test_create_menu_rejects_unknown_dish(self):
        from app.services.restaurant.menu import MenuService, InvalidMenuError

        dish_repo = MagicMock()
        dish_repo.exists.return_value = False

        with pytest.raises(InvalidMenuError):
            MenuService(MagicMock(), dish_repo).create_menu(
                name="Menu", sections=[{"name": "Plats", "dishes": [{"dish_id": 9}]}],
            )

    @pytest.mark.unit
    def test_list_menus_current_only(self):
        from app.services.restaurant.menu import MenuService

        now = datetime(2026, 6, 1, tzinfo=timezone.utc)
        current = MagicMock()
        current.is_current.return_value = True
        expired = MagicMock()
        expired.is_current.return_value = False
        menu_repo = MagicMock()
        menu_repo.list_menus.return_value = [current, expired]

        menus = MenuService(menu_repo, MagicMock()).list_menus(current_only=True, now=now)

        assert menus == [current]
        current.is_current.assert_called_once_with(now)

    @pytest.mark.unit
    def test_update_menu_replaces_sections(self):
        from app.services.restaurant.menu import MenuService

        menu = SimpleNamespace(id=1, name="Menu", description=None, start_date=None, end_date=None)
        menu_repo = MagicMock()
        menu_repo.get_with_sections.return_value = menu

        MenuService(menu_repo, MagicMock()).update_menu(
            1, sections=[{"name": "Unique"}], description="Nouveau",
        )

        menu_repo.clear_sections.assert_called_once_with(menu)
        assert menu.description == "Nouveau"
        assert menu_repo.add_section.call_count == 1

    @pytest.mark.unit
    def test_get_costing_by_section(self):
        from app.services.restaurant.menu import MenuService

        dish = _dish(5, ingredients=[_ingredient(1, "1", "10", unit_price="3")])
        dish.name = "Tartare"
        menu = SimpleNamespace(
            id=1,
            sections=[SimpleNamespace(
                id=11, name="Plats",
                dishes=[SimpleNamespace(dish_id=5, dish=dish)],
            )],
        )
        menu_repo = MagicMock()
        menu_repo.get_with_sections.return_value = menu

        costing = MenuService(menu_repo, MagicMock()).get_costing(1)

        line = costing.sections[0].dishes[0]
        assert line["dish_name"] == "Tartare"
        assert line["cost"] == Decimal("3")
        assert line["margin"] == Decimal("70")
