"""
API Endpoints Menus.
Menus, sections ordonnees, tarification et cout matiere.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.models.restaurant.menu import PricingType
from app.repositories.restaurant.dish import DishRepository
from app.repositories.restaurant.menu import MenuRepository
from app.services.restaurant.menu import MenuService

router = APIRouter(prefix="/menus", tags=["Menus"])


# =============================================================================
# Schemas
# =============================================================================

class MenuDishInput(BaseModel):
    dish_id: int
    display_order: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class MenuSectionInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_order: Optional[int] = Field(None, ge=0)
    dishes: List[MenuDishInput] = []


class MenuCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    pricing_type: Optional[PricingType] = None
    fixed_price: Optional[Decimal] = Field(None, ge=0)
    min_courses: Optional[int] = Field(None, ge=1)
    max_courses: Optional[int] = Field(None, ge=1)
    sections: Optional[List[MenuSectionInput]] = None

    class Config:
        extra = "forbid"


class MenuUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    pricing_type: Optional[PricingType] = None
    fixed_price: Optional[Decimal] = Field(None, ge=0)
    min_courses: Optional[int] = Field(None, ge=1)
    max_courses: Optional[int] = Field(None, ge=1)
    sections: Optional[List[MenuSectionInput]] = None

    class Config:
        extra = "forbid"


class DishSummary(BaseModel):
    id: int
    name: str
    selling_price: Optional[Decimal]
    is_active: bool

    class Config:
        from_attributes = True


class MenuDishResponse(BaseModel):
    id: int
    dish_id: int
    display_order: int
    notes: Optional[str]
    dish: DishSummary

    class Config:
        from_attributes = True


class MenuSectionResponse(BaseModel):
    id: int
    name: str
    display_order: int
    dishes: List[MenuDishResponse] = []

    class Config:
        from_attributes = True


class MenuResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    is_active: bool
    pricing_type: PricingType
    fixed_price: Optional[Decimal]
    min_courses: Optional[int]
    max_courses: Optional[int]
    sections: List[MenuSectionResponse] = []

    class Config:
        from_attributes = True


class DishCostingResponse(BaseModel):
    dish_id: int
    dish_name: str
    cost: Decimal
    has_all_prices: bool
    selling_price: Optional[Decimal]
    margin: Optional[Decimal]


class SectionCostingResponse(BaseModel):
    section_id: int
    name: str
    dishes: List[DishCostingResponse]

    class Config:
        from_attributes = True


class MenuCostingResponse(BaseModel):
    menu_id: int
    sections: List[SectionCostingResponse]

    class Config:
        from_attributes = True


# =============================================================================
# Dependencies
# =============================================================================

def get_menu_service(db: Session = Depends(get_db)) -> MenuService:
    """Fournit le service menu."""
    return MenuService(MenuRepository(db), DishRepository(db))


def _split_payload(payload: dict):
    """Separe les champs de tarification et les sections du reste."""
    pricing = MenuService.pricing_from(
        payload.pop("pricing_type", None),
        fixed_price=payload.pop("fixed_price", None),
        min_courses=payload.pop("min_courses", None),
        max_courses=payload.pop("max_courses", None),
    )
    sections = payload.pop("sections", None)
    return pricing, sections, payload


# =============================================================================
# Menus Endpoints
# =============================================================================

@router.get("", response_model=List[MenuResponse], summary="Liste des menus")
def list_menus(
    is_active: Optional[bool] = None,
    current_only: bool = Query(False, description="Uniquement les menus dans leur periode de validite"),
    search: Optional[str] = Query(None, description="Recherche par nom"),
    service: MenuService = Depends(get_menu_service)
):
    return service.list_menus(is_active=is_active, current_only=current_only, search=search)


@router.post("", response_model=MenuResponse, status_code=201, summary="Creer un menu")
def create_menu(
    data: MenuCreate,
    service: MenuService = Depends(get_menu_service)
):
    """Cree un menu; sans sections, Entrees, Plats et Desserts sont crees."""
    pricing, sections, fields = _split_payload(data.model_dump())
    menu = service.create_menu(pricing=pricing, sections=sections, **fields)
    return service.get_menu(menu.id)


@router.get("/{menu_id}", response_model=MenuResponse, summary="Detail d'un menu")
def get_menu(
    menu_id: int,
    service: MenuService = Depends(get_menu_service)
):
    return service.get_menu(menu_id)


@router.patch("/{menu_id}", response_model=MenuResponse, summary="Modifier un menu")
def update_menu(
    menu_id: int,
    data: MenuUpdate,
    service: MenuService = Depends(get_menu_service)
):
    """Met a jour un menu; les sections fournies remplacent les existantes."""
    pricing, sections, fields = _split_payload(data.model_dump(exclude_unset=True))
    service.update_menu(menu_id, pricing=pricing, sections=sections, **fields)
    return service.get_menu(menu_id)


@router.delete("/{menu_id}", status_code=204, summary="Supprimer un menu")
def delete_menu(
    menu_id: int,
    service: MenuService = Depends(get_menu_service)
):
    service.delete_menu(menu_id)


@router.get("/{menu_id}/costing", response_model=MenuCostingResponse, summary="Cout matiere du menu")
def get_menu_costing(
    menu_id: int,
    service: MenuService = Depends(get_menu_service)
):
    """Cout et marge de chaque plat, section par section."""
    return service.get_costing(menu_id)
