"""
Repository pour Menu, MenuSection et MenuDish.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.models.restaurant.dish import Dish, RecipeIngredient
from app.models.restaurant.menu import Menu, MenuSection, MenuDish
from app.repositories.base import BaseRepository


def _menu_tree():
    """Options de chargement du menu complet (sections, plats, recettes)."""
    return (
        selectinload(Menu.sections)
        .selectinload(MenuSection.dishes)
        .selectinload(MenuDish.dish)
        .selectinload(Dish.recipe_ingredients)
        .selectinload(RecipeIngredient.product)
    )


class MenuRepository(BaseRepository[Menu]):
    """Repository pour les menus."""

    model = Menu

    def list_menus(
        self,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Menu]:
        """Liste les menus avec sections et plats, les plus recents d'abord."""
        stmt = select(Menu).options(_menu_tree())
        if is_active is not None:
            stmt = stmt.where(Menu.is_active == is_active)
        if search:
            stmt = stmt.where(Menu.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(Menu.created_at.desc(), Menu.id.desc())
        return list(self.session.execute(stmt).scalars().all())

    def get_with_sections(self, menu_id: int) -> Optional[Menu]:
        """Recupere un menu avec ses sections ordonnees et leurs plats."""
        stmt = select(Menu).options(_menu_tree()).where(Menu.id == menu_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def add_section(
        self,
        menu: Menu,
        name: str,
        display_order: int,
    ) -> MenuSection:
        section = MenuSection(menu_id=menu.id, name=name, display_order=display_order)
        menu.sections.append(section)
        self.session.flush()
        return section

    def add_dish(
        self,
        section: MenuSection,
        dish_id: int,
        display_order: int,
        notes: Optional[str] = None,
    ) -> MenuDish:
        menu_dish = MenuDish(
            section_id=section.id,
            dish_id=dish_id,
            display_order=display_order,
            notes=notes,
        )
        section.dishes.append(menu_dish)
        self.session.flush()
        return menu_dish

    def clear_sections(self, menu: Menu) -> None:
        """Supprime toutes les sections (et leurs plats) d'un menu."""
        menu.sections.clear()
        self.session.flush()
