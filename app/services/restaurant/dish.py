"""
Service pour la gestion des plats et de leurs fiches techniques.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.exceptions import AppException
from app.models.restaurant.dish import Dish
from app.models.restaurant.product import Unit
from app.repositories.restaurant.dish import DishRepository, RecipeIngredientRepository
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.costing import DishCost, dish_cost

logger = logging.getLogger(__name__)


class DishNotFoundError(AppException):
    """Plat non trouve."""
    status_code = 404
    error_code = "DISH_NOT_FOUND"

    def __init__(self, dish_id: int):
        super().__init__(message=f"Dish {dish_id} not found")
        self.dish_id = dish_id


class InvalidDishError(AppException):
    """Donnees de plat invalides."""
    status_code = 400
    error_code = "INVALID_DISH"


class DishHasSalesError(AppException):
    """Plat avec des ventes enregistrees."""
    status_code = 409
    error_code = "DISH_HAS_SALES"

    def __init__(self, dish_id: int):
        super().__init__(message=f"Dish {dish_id} has recorded sales and cannot be deleted")
        self.dish_id = dish_id


@dataclass
class MissingIngredient:
    product_id: int
    product_name: str
    required: Decimal
    available: Decimal
    unit: Unit

    @property
    def shortfall(self) -> Decimal:
        return self.required - self.available


@dataclass
class DishAvailability:
    dish_id: int
    servings: int
    missing: List[MissingIngredient] = field(default_factory=list)

    @property
    def can_make(self) -> bool:
        return not self.missing


class DishService:
    """
    Service pour la gestion des plats.

    Responsabilites:
    - CRUD plats et recettes
    - Cout matiere et marge
    - Verification du stock pour un nombre de portions
    """

    def __init__(
        self,
        dish_repo: DishRepository,
        recipe_repo: RecipeIngredientRepository,
        product_repo: ProductRepository,
    ):
        self.dish_repo = dish_repo
        self.recipe_repo = recipe_repo
        self.product_repo = product_repo

    def list_dishes(
        self,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Dish]:
        return self.dish_repo.list_dishes(is_active=is_active, search=search)

    def get_dish(self, dish_id: int) -> Dish:
        """Recupere un plat avec sa recette."""
        dish = self.dish_repo.get_with_recipe(dish_id)
        if not dish:
            raise DishNotFoundError(dish_id)
        return dish

    def _add_ingredients(self, dish_id: int, ingredients: List[Dict[str, Any]]) -> None:
        for ingredient in ingredients:
            quantity = Decimal(str(ingredient["quantity_required"]))
            if quantity <= 0:
                raise InvalidDishError("Ingredient quantity must be positive")
            product = self.product_repo.get(ingredient["product_id"])
            if not product:
                raise InvalidDishError(f"Product {ingredient['product_id']} not found")
            self.recipe_repo.create({
                "dish_id": dish_id,
                "product_id": product.id,
                "quantity_required": quantity,
                "unit": ingredient.get("unit") or product.unit,
            })

    @staticmethod
    def _validate(name: Optional[str], selling_price: Optional[Decimal]) -> None:
        if name is not None and not name.strip():
            raise InvalidDishError("Dish name is required")
        if selling_price is not None and selling_price < 0:
            raise InvalidDishError("Selling price cannot be negative")

    def create_dish(
        self,
        name: str,
        selling_price: Optional[Decimal] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        ingredients: Optional[List[Dict[str, Any]]] = None,
    ) -> Dish:
        """
        Cree un plat et sa recette.

        Args:
            ingredients: [{product_id, quantity_required, unit}]
        """
        self._validate(name, selling_price)
        dish = self.dish_repo.create({
            "name": name.strip(),
            "selling_price": selling_price,
            "description": description,
            "is_active": is_active,
        })
        if ingredients:
            self._add_ingredients(dish.id, ingredients)
            self.dish_repo.session.expire(dish, ["recipe_ingredients"])
        logger.info(f"Plat cree: {dish.name}", extra={"dish_id": dish.id})
        return dish

    def update_dish(
        self,
        dish_id: int,
        ingredients: Optional[List[Dict[str, Any]]] = None,
        **data,
    ) -> Dish:
        """
        Met a jour un plat. Si `ingredients` est fourni, la recette
        est entierement remplacee.
        """
        dish = self.get_dish(dish_id)
        self._validate(data.get("name"), data.get("selling_price"))
        if data.get("name") is not None:
            data["name"] = data["name"].strip()

        for key, value in data.items():
            if hasattr(dish, key):
                setattr(dish, key, value)

        if ingredients is not None:
            self.recipe_repo.delete_by_dish(dish.id)
            self._add_ingredients(dish.id, ingredients)
            self.dish_repo.session.expire(dish, ["recipe_ingredients"])

        self.dish_repo.session.flush()
        return dish

    def delete_dish(self, dish_id: int) -> None:
        """
        Supprime un plat.

        Raises:
            DishHasSalesError: le plat a des ventes (historique conserve)
        """
        dish = self.get_dish(dish_id)
        if self.dish_repo.has_sales(dish.id):
            raise DishHasSalesError(dish.id)
        self.dish_repo.session.delete(dish)
        self.dish_repo.session.flush()

    def get_cost(self, dish_id: int) -> DishCost:
        """Cout matiere, completude des prix et marge d'un plat."""
        return dish_cost(self.get_dish(dish_id))

    def can_make(self, dish_id: int, servings: int = 1) -> DishAvailability:
        """Liste les ingredients insuffisants pour `servings` portions."""
        if servings < 1:
            raise InvalidDishError("Servings must be at least 1")
        dish = self.get_dish(dish_id)
        availability = DishAvailability(dish_id=dish.id, servings=servings)
        for ingredient in dish.recipe_ingredients:
            required = Decimal(ingredient.quantity_required) * servings
            available = Decimal(ingredient.product.quantity)
            if available < required:
                availability.missing.append(MissingIngredient(
                    product_id=ingredient.product_id,
                    product_name=ingredient.product.name,
                    required=required,
                    available=available,
                    unit=ingredient.unit,
                ))
        return availability
