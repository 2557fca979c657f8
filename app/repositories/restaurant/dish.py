"""
Repository pour Dish et RecipeIngredient.
"""
from typing import List, Optional

from sqlalchemy import select, func, exists, delete
from sqlalchemy.orm import joinedload

from app.models.restaurant.dish import Dish, RecipeIngredient
from app.models.restaurant.sale import Sale
from app.repositories.base import BaseRepository


class DishRepository(BaseRepository[Dish]):
    """Repository pour les plats."""

    model = Dish

    def list_dishes(
        self,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Dish]:
        """Liste les plats avec leur recette."""
        stmt = select(Dish).options(
            joinedload(Dish.recipe_ingredients)
            .joinedload(RecipeIngredient.product)
        )
        if is_active is not None:
            stmt = stmt.where(Dish.is_active == is_active)
        if search:
            stmt = stmt.where(Dish.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(Dish.name)
        return list(self.session.execute(stmt).unique().scalars().all())

    def get_with_recipe(self, dish_id: int) -> Optional[Dish]:
        """Recupere un plat avec ses ingredients et produits."""
        stmt = (
            select(Dish)
            .options(
                joinedload(Dish.recipe_ingredients)
                .joinedload(RecipeIngredient.product)
            )
            .where(Dish.id == dish_id)
        )
        return self.session.execute(stmt).unique().scalar_one_or_none()

    def get_by_name_insensitive(self, name: str) -> Optional[Dish]:
        """Recherche un plat par nom sans tenir compte de la casse."""
        stmt = (
            select(Dish)
            .options(
                joinedload(Dish.recipe_ingredients)
                .joinedload(RecipeIngredient.product)
            )
            .where(func.lower(Dish.name) == name.strip().lower())
            .order_by(Dish.id)
        )
        return self.session.execute(stmt).unique().scalars().first()

    def has_sales(self, dish_id: int) -> bool:
        """Le plat a-t-il des ventes enregistrees."""
        stmt = select(exists().where(Sale.dish_id == dish_id))
        return bool(self.session.execute(stmt).scalar())


class RecipeIngredientRepository(BaseRepository[RecipeIngredient]):
    """Repository pour les lignes de fiche technique."""

    model = RecipeIngredient

    def get_by_dish(self, dish_id: int) -> List[RecipeIngredient]:
        stmt = (
            select(RecipeIngredient)
            .options(joinedload(RecipeIngredient.product))
            .where(RecipeIngredient.dish_id == dish_id)
            .order_by(RecipeIngredient.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def delete_by_dish(self, dish_id: int) -> int:
        """Supprime toute la recette d'un plat. Retourne le nombre de lignes."""
        result = self.session.execute(
            delete(RecipeIngredient).where(RecipeIngredient.dish_id == dish_id)
        )
        self.session.flush()
        return result.rowcount or 0
