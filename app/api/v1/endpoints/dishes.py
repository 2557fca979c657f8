"""
API Endpoints Plats.
Fiches techniques, cout matiere et disponibilite.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.models.restaurant.product import Unit
from app.repositories.restaurant.dish import DishRepository, RecipeIngredientRepository
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.dish import DishService

router = APIRouter(prefix="/dishes", tags=["Dishes"])


# =============================================================================
# Schemas
# =============================================================================

class RecipeIngredientInput(BaseModel):
    product_id: int
    quantity_required: Decimal = Field(..., gt=0)
    unit: Optional[Unit] = None


class DishCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    selling_price: Optional[Decimal] = Field(None, ge=0)
    is_active: bool = True
    ingredients: Optional[List[RecipeIngredientInput]] = None

    class Config:
        extra = "forbid"


class DishUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    selling_price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    ingredients: Optional[List[RecipeIngredientInput]] = None

    class Config:
        extra = "forbid"


class RecipeIngredientResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity_required: Decimal
    unit: Unit

    class Config:
        from_attributes = True


class DishResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    selling_price: Optional[Decimal]
    is_active: bool
    recipe_ingredients: List[RecipeIngredientResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CostLineResponse(BaseModel):
    product_id: Optional[int]
    product_name: str
    quantity: Decimal
    unit: Optional[Unit]
    unit_price: Optional[Decimal]
    line_cost: Decimal

    class Config:
        from_attributes = True


class DishCostResponse(BaseModel):
    dish_id: int
    cost: Decimal
    has_all_prices: bool
    selling_price: Optional[Decimal]
    margin: Optional[Decimal]
    lines: List[CostLineResponse]


class MissingIngredientResponse(BaseModel):
    product_id: int
    product_name: str
    required: Decimal
    available: Decimal
    unit: Unit
    shortfall: Decimal

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    dish_id: int
    servings: int
    can_make: bool
    missing: List[MissingIngredientResponse]

    class Config:
        from_attributes = True


# =============================================================================
# Dependencies
# =============================================================================

def get_dish_service(db: Session = Depends(get_db)) -> DishService:
    """Fournit le service plat."""
    return DishService(
        DishRepository(db),
        RecipeIngredientRepository(db),
        ProductRepository(db),
    )


# =============================================================================
# Dishes Endpoints
# =============================================================================

@router.get("", response_model=List[DishResponse], summary="Liste des plats")
def list_dishes(
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, description="Recherche par nom"),
    service: DishService = Depends(get_dish_service)
):
    return service.list_dishes(is_active=is_active, search=search)


@router.post("", response_model=DishResponse, status_code=201, summary="Creer un plat")
def create_dish(
    data: DishCreate,
    service: DishService = Depends(get_dish_service)
):
    """Cree un plat avec sa fiche technique."""
    payload = data.model_dump()
    dish = service.create_dish(**payload)
    return service.get_dish(dish.id)


@router.get("/{dish_id}", response_model=DishResponse, summary="Detail d'un plat")
def get_dish(
    dish_id: int,
    service: DishService = Depends(get_dish_service)
):
    return service.get_dish(dish_id)


@router.patch("/{dish_id}", response_model=DishResponse, summary="Modifier un plat")
def update_dish(
    dish_id: int,
    data: DishUpdate,
    service: DishService = Depends(get_dish_service)
):
    """Met a jour un plat; la liste d'ingredients fournie remplace la recette."""
    update_data = {k: v for k, v in data.model_dump().items() if v is not None}
    service.update_dish(dish_id, **update_data)
    return service.get_dish(dish_id)


@router.delete("/{dish_id}", status_code=204, summary="Supprimer un plat")
def delete_dish(
    dish_id: int,
    service: DishService = Depends(get_dish_service)
):
    """Supprime un plat sans ventes enregistrees."""
    service.delete_dish(dish_id)


@router.get("/{dish_id}/cost", response_model=DishCostResponse, summary="Cout matiere et marge")
def get_dish_cost(
    dish_id: int,
    service: DishService = Depends(get_dish_service)
):
    cost = service.get_cost(dish_id)
    return {
        "dish_id": dish_id,
        "cost": cost.cost,
        "has_all_prices": cost.has_all_prices,
        "selling_price": cost.selling_price,
        "margin": cost.margin,
        "lines": [CostLineResponse.model_validate(line) for line in cost.lines],
    }


@router.get("/{dish_id}/availability", response_model=AvailabilityResponse, summary="Portions realisables")
def get_dish_availability(
    dish_id: int,
    servings: int = Query(1, ge=1),
    service: DishService = Depends(get_dish_service)
):
    """Liste les ingredients manquants pour le nombre de portions demande."""
    return AvailabilityResponse.model_validate(service.can_make(dish_id, servings))
