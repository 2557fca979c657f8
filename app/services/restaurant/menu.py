"""
Service pour la gestion des menus.

Un menu est compose de sections ordonnees contenant des plats ordonnes.
La tarification est soit a prix fixe, soit au choix (min/max plats).
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.exceptions import AppException
from app.models.base import utc_now
from app.models.restaurant.menu import Choice, Menu, MenuPricing, PrixFixe
from app.repositories.restaurant.dish import DishRepository
from app.repositories.restaurant.menu import MenuRepository
from app.services.restaurant.costing import DishCost, dish_cost

logger = logging.getLogger(__name__)


DEFAULT_SECTIONS = ("Entrees", "Plats", "Desserts")


class MenuNotFoundError(AppException):
    """Menu non trouve."""
    status_code = 404
    error_code = "MENU_NOT_FOUND"

    def __init__(self, menu_id: int):
        super().__init__(message=f"Menu {menu_id} not found")
        self.menu_id = menu_id


class InvalidMenuError(AppException):
    """Donnees de menu invalides (dates, tarification, plats)."""
    status_code = 400
    error_code = "INVALID_MENU"


@dataclass
class SectionCosting:
    section_id: int
    name: str
    dishes: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class MenuCosting:
    menu_id: int
    sections: List[SectionCosting] = field(default_factory=list)


def validate_pricing(pricing: Optional[MenuPricing]) -> None:
    """
    Verifie la coherence de la tarification.

    Raises:
        InvalidMenuError: prix negatif ou bornes incoherentes
    """
    if pricing is None:
        return
    if isinstance(pricing, PrixFixe):
        if pricing.fixed_price is None or pricing.fixed_price < 0:
            raise InvalidMenuError("Fixed price must be zero or positive")
    elif isinstance(pricing, Choice):
        if pricing.min_courses < 1:
            raise InvalidMenuError("Minimum courses must be at least 1")
        if pricing.min_courses > pricing.max_courses:
            raise InvalidMenuError("Minimum courses cannot exceed maximum courses")


def validate_dates(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise InvalidMenuError("Start date must be before end date")


class MenuService:
    """
    Service pour la gestion des menus.

    Responsabilites:
    - CRUD menus, sections et plats
    - Filtre des menus en cours de validite
    - Cout matiere par section
    """

    def __init__(self, menu_repo: MenuRepository, dish_repo: DishRepository):
        self.menu_repo = menu_repo
        self.dish_repo = dish_repo

    def list_menus(
        self,
        is_active: Optional[bool] = None,
        current_only: bool = False,
        search: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Menu]:
        menus = self.menu_repo.list_menus(is_active=is_active, search=search)
        if current_only:
            now = now or utc_now()
            menus = [menu for menu in menus if menu.is_current(now)]
        return menus

    def get_menu(self, menu_id: int) -> Menu:
        menu = self.menu_repo.get_with_sections(menu_id)
        if not menu:
            raise MenuNotFoundError(menu_id)
        return menu

    def _build_sections(self, menu: Menu, sections: List[Dict[str, Any]]) -> None:
        for section_index, section_data in enumerate(sections):
            name = (section_data.get("name") or "").strip()
            if not name:
                raise InvalidMenuError("Section name is required")
            display_order = section_data.get("display_order")
            section = self.menu_repo.add_section(
                menu,
                name=name,
                display_order=section_index + 1 if display_order is None else display_order,
            )
            for dish_index, dish_data in enumerate(section_data.get("dishes") or []):
                dish_id = dish_data["dish_id"]
                if not self.dish_repo.exists(dish_id):
                    raise InvalidMenuError(f"Dish {dish_id} not found")
                display_order = dish_data.get("display_order")
                self.menu_repo.add_dish(
                    section,
                    dish_id=dish_id,
                    display_order=dish_index if display_order is None else display_order,
                    notes=dish_data.get("notes"),
                )

    def create_menu(
        self,
        name: str,
        description: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        is_active: bool = True,
        pricing: Optional[MenuPricing] = None,
        sections: Optional[List[Dict[str, Any]]] = None,
    ) -> Menu:
        """
        Cree un menu.

        Sans sections fournies, trois sections par defaut sont creees
        (Entrees, Plats, Desserts).
        """
        if not name or not name.strip():
            raise InvalidMenuError("Menu name is required")
        validate_dates(start_date, end_date)
        validate_pricing(pricing)

        menu = Menu(
            name=name.strip(),
            description=description,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        )
        if pricing is not None:
            menu.apply_pricing(pricing)
        self.menu_repo.session.add(menu)
        self.menu_repo.session.flush()

        if not sections:
            sections = [{"name": section_name} for section_name in DEFAULT_SECTIONS]
        self._build_sections(menu, sections)

        logger.info(f"Menu cree: {menu.name}", extra={"menu_id": menu.id})
        return menu

    def update_menu(
        self,
        menu_id: int,
        pricing: Optional[MenuPricing] = None,
        sections: Optional[List[Dict[str, Any]]] = None,
        **data,
    ) -> Menu:
        """
        Met a jour un menu. Les sections fournies remplacent
        integralement les sections existantes.
        """
        menu = self.get_menu(menu_id)
        if "name" in data and (not data["name"] or not data["name"].strip()):
            raise InvalidMenuError("Menu name is required")

        validate_dates(
            data.get("start_date", menu.start_date),
            data.get("end_date", menu.end_date),
        )
        validate_pricing(pricing)

        for key, value in data.items():
            if hasattr(menu, key):
                setattr(menu, key, value)
        if pricing is not None:
            menu.apply_pricing(pricing)

        if sections is not None:
            self.menu_repo.clear_sections(menu)
            self._build_sections(menu, sections)

        self.menu_repo.session.flush()
        return menu

    def delete_menu(self, menu_id: int) -> None:
        menu = self.get_menu(menu_id)
        self.menu_repo.session.delete(menu)
        self.menu_repo.session.flush()

    def get_costing(self, menu_id: int) -> MenuCosting:
        """Cout matiere de chaque plat, section par section."""
        menu = self.get_menu(menu_id)
        costing = MenuCosting(menu_id=menu.id)
        for section in menu.sections:
            section_costing = SectionCosting(section_id=section.id, name=section.name)
            for menu_dish in section.dishes:
                cost: DishCost = dish_cost(menu_dish.dish)
                section_costing.dishes.append({
                    "dish_id": menu_dish.dish_id,
                    "dish_name": menu_dish.dish.name,
                    "cost": cost.cost,
                    "has_all_prices": cost.has_all_prices,
                    "selling_price": cost.selling_price,
                    "margin": cost.margin,
                })
            costing.sections.append(section_costing)
        return costing

    @staticmethod
    def pricing_from(
        pricing_type: Optional[str],
        fixed_price: Optional[Decimal] = None,
        min_courses: Optional[int] = None,
        max_courses: Optional[int] = None,
    ) -> Optional[MenuPricing]:
        """Construit la variante de tarification a partir de champs a plat."""
        if pricing_type is None:
            return None
        if pricing_type == "CHOICE":
            if min_courses is None or max_courses is None:
                raise InvalidMenuError("Choice pricing requires min and max courses")
            return Choice(min_courses=min_courses, max_courses=max_courses)
        if pricing_type == "PRIX_FIXE":
            if fixed_price is None:
                raise InvalidMenuError("Prix fixe pricing requires a fixed price")
            return PrixFixe(fixed_price=fixed_price)
        raise InvalidMenuError(f"Unknown pricing type {pricing_type}")
