"""
API Endpoints Produits et Stock.
Inventaire, ajustements, preparations et statut de stock.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.core.exceptions import BadRequest
from app.models.restaurant.product import Unit
from app.models.restaurant.stock_movement import MovementSource, MovementType
from app.repositories.restaurant.product import CompositeIngredientRepository, ProductRepository
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.services.restaurant.flows import inventory_sync_flow
from app.services.restaurant.product import ProductService
from app.services.restaurant.review_flow import FlowStep
from app.services.restaurant.stock_status import StockStatus

router = APIRouter(prefix="/products", tags=["Products"])
stock_router = APIRouter(prefix="/stock", tags=["Stock"])


# =============================================================================
# Schemas
# =============================================================================

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    unit: Unit
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit_price: Optional[Decimal] = Field(None, gt=0)
    par_level: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = Field(None, max_length=50)
    trackable: bool = False

    class Config:
        extra = "forbid"


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    unit: Optional[Unit] = None
    quantity: Optional[Decimal] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(None, gt=0)
    par_level: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = Field(None, max_length=50)
    trackable: Optional[bool] = None

    class Config:
        extra = "forbid"


class ProductResponse(BaseModel):
    id: int
    name: str
    quantity: Decimal
    unit: Unit
    unit_price: Optional[Decimal]
    par_level: Optional[Decimal]
    category: Optional[str]
    trackable: bool
    is_composite: bool
    yield_quantity: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted: int
    failed: int
    errors: List[Dict[str, Any]] = []


class SyncAdjustRequest(BaseModel):
    new_quantity: Decimal = Field(..., ge=0)

    class Config:
        extra = "forbid"


class MovementResponse(BaseModel):
    id: int
    product_id: int
    movement_type: MovementType
    quantity: Decimal
    balance_after: Decimal
    reason: Optional[str]
    description: Optional[str]
    source: MovementSource
    unit_price: Optional[Decimal]
    total_value: Optional[Decimal]
    bill_id: Optional[int]
    sale_id: Optional[int]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SyncDifference(BaseModel):
    old_quantity: Decimal
    new_quantity: Decimal
    change: Decimal
    type: str


class SyncAdjustResponse(BaseModel):
    product: ProductResponse
    movement: Optional[MovementResponse]
    message: Optional[str] = None
    difference: Optional[SyncDifference] = None


class InventoryCount(BaseModel):
    product_id: int
    new_quantity: Decimal = Field(..., ge=0)


class InventorySyncRequest(BaseModel):
    counts: List[InventoryCount] = Field(..., min_length=1)


class InventorySyncResponse(BaseModel):
    message: Optional[str]
    adjustments: List[SyncAdjustResponse]


class CompositeIngredientInput(BaseModel):
    base_product_id: int
    quantity: Decimal = Field(..., gt=0)
    unit: Optional[Unit] = None


class CompositeProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    unit: Unit
    ingredients: List[CompositeIngredientInput] = Field(..., min_length=1)
    yield_quantity: Optional[Decimal] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, gt=0)
    par_level: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = Field(None, max_length=50)
    trackable: bool = False

    class Config:
        extra = "forbid"


class CostLineResponse(BaseModel):
    product_id: Optional[int]
    product_name: str
    quantity: Decimal
    unit: Optional[Unit]
    unit_price: Optional[Decimal]
    line_cost: Decimal

    class Config:
        from_attributes = True


class CompositePriceResponse(BaseModel):
    product_id: int
    unit_price: Decimal
    total_cost: Decimal
    yield_quantity: Decimal
    has_missing_prices: bool
    lines: List[CostLineResponse]


class StockStatusResponse(BaseModel):
    id: int
    name: str
    quantity: Decimal
    unit: Unit
    par_level: Optional[Decimal]
    category: Optional[str]
    status: Optional[StockStatus]
    menu_demand: Optional[Decimal] = None


# =============================================================================
# Dependencies
# =============================================================================

def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    """Fournit le service produit."""
    return ProductService(
        ProductRepository(db),
        StockMovementRepository(db),
        CompositeIngredientRepository(db),
    )


def _sync_response(result) -> Dict[str, Any]:
    response = {
        "product": result.product,
        "movement": result.movement,
        "message": result.message,
        "difference": None,
    }
    if result.movement is not None:
        response["difference"] = {
            "old_quantity": result.old_quantity,
            "new_quantity": result.new_quantity,
            "change": result.change,
            "type": "addition" if result.change > 0 else "loss",
        }
    return response


# =============================================================================
# Products Endpoints
# =============================================================================

@router.get("", response_model=List[ProductResponse], summary="Liste des produits")
def list_products(
    search: Optional[str] = Query(None, description="Recherche par nom"),
    category: Optional[str] = None,
    trackable: Optional[bool] = None,
    service: ProductService = Depends(get_product_service)
):
    """Recupere les produits tries par nom."""
    return service.list_products(search=search, category=category, trackable=trackable)


@router.post("", response_model=ProductResponse, status_code=201, summary="Creer un produit")
def create_product(
    data: ProductCreate,
    service: ProductService = Depends(get_product_service)
):
    """Cree un nouveau produit."""
    return service.create_product(**data.model_dump())


@router.post("/bulk-delete", response_model=BulkDeleteResponse, summary="Suppression multiple")
def bulk_delete_products(
    data: BulkDeleteRequest,
    service: ProductService = Depends(get_product_service)
):
    """Supprime plusieurs produits; les echecs sont comptes, pas propages."""
    result = service.bulk_delete(data.ids)
    return {"deleted": result.deleted, "failed": result.failed, "errors": result.errors}


@router.post("/composite", response_model=ProductResponse, status_code=201, summary="Creer une preparation")
def create_composite_product(
    data: CompositeProductCreate,
    service: ProductService = Depends(get_product_service)
):
    """Cree un produit compose d'ingredients de base."""
    payload = data.model_dump()
    return service.create_composite_product(**payload)


@router.post("/sync", response_model=InventorySyncResponse, summary="Synchroniser l'inventaire")
def sync_inventory(
    data: InventorySyncRequest,
    service: ProductService = Depends(get_product_service)
):
    """
    Applique un comptage d'inventaire complet.

    Chaque produit est ajuste a sa quantite comptee; en cas d'erreur
    aucun ajustement n'est conserve.
    """
    flow = inventory_sync_flow(service)
    state = flow.run_all([count.model_dump() for count in data.counts])
    if state.step != FlowStep.COMPLETE:
        raise BadRequest(state.error or "Inventory sync failed")
    return {
        "message": state.message,
        "adjustments": [_sync_response(result) for result in flow.result],
    }


@router.get("/{product_id}", response_model=ProductResponse, summary="Detail d'un produit")
def get_product(
    product_id: int,
    service: ProductService = Depends(get_product_service)
):
    return service.get_product(product_id)


@router.patch("/{product_id}", response_model=ProductResponse, summary="Modifier un produit")
def update_product(
    product_id: int,
    data: ProductUpdate,
    service: ProductService = Depends(get_product_service)
):
    """Met a jour un produit; un changement de quantite est trace."""
    update_data = {k: v for k, v in data.model_dump().items() if v is not None}
    return service.update_product(product_id, **update_data)


@router.delete("/{product_id}", status_code=204, summary="Supprimer un produit")
def delete_product(
    product_id: int,
    service: ProductService = Depends(get_product_service)
):
    """Supprime un produit non utilise par une recette ou une preparation."""
    service.delete_product(product_id)


@router.post("/{product_id}/sync-adjust", response_model=SyncAdjustResponse, summary="Ajustement d'inventaire")
def sync_adjust_product(
    product_id: int,
    data: SyncAdjustRequest,
    service: ProductService = Depends(get_product_service)
):
    """Aligne le stock sur la quantite comptee."""
    return _sync_response(service.sync_adjust(product_id, data.new_quantity))


@router.get("/{product_id}/movements", response_model=List[MovementResponse], summary="Historique des mouvements")
def list_product_movements(
    product_id: int,
    limit: int = Query(50, ge=1, le=500),
    service: ProductService = Depends(get_product_service)
):
    return service.get_movements(product_id, limit=limit)


@router.get("/{product_id}/composite-price", response_model=CompositePriceResponse, summary="Prix d'une preparation")
def get_composite_price(
    product_id: int,
    service: ProductService = Depends(get_product_service)
):
    """Prix unitaire calcule d'une preparation et detail par ingredient."""
    breakdown = service.get_composite_breakdown(product_id)
    return {
        "product_id": product_id,
        "unit_price": breakdown.unit_price,
        "total_cost": breakdown.total_cost,
        "yield_quantity": breakdown.yield_quantity,
        "has_missing_prices": breakdown.has_missing_prices,
        "lines": [CostLineResponse.model_validate(line) for line in breakdown.lines],
    }


# =============================================================================
# Stock Endpoints
# =============================================================================

@stock_router.get("/status", response_model=List[StockStatusResponse], summary="Statut du stock")
def get_stock_status(
    alerts_only: bool = Query(False, description="Uniquement les produits critiques ou bas"),
    service: ProductService = Depends(get_product_service)
):
    """Classe chaque produit (critical, low ou aucun) selon la demande des menus actifs."""
    return [
        {
            "id": item.product.id,
            "name": item.product.name,
            "quantity": item.product.quantity,
            "unit": item.product.unit,
            "par_level": item.product.par_level,
            "category": item.product.category,
            "status": item.status,
            "menu_demand": item.menu_demand,
        }
        for item in service.get_stock_statuses(alerts_only=alerts_only)
    ]
