"""
API Endpoints Commandes.
Suggestions de reapprovisionnement, detail ou par fournisseur.
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.models.restaurant.product import Unit
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.orders import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


class SuggestionResponse(BaseModel):
    product_id: int
    product_name: str
    current_quantity: Decimal
    par_level: Decimal
    unit: Unit
    suggested_quantity: int
    percent_of_par: Decimal
    last_price: Optional[Decimal]
    estimated_cost: Optional[Decimal]
    category: Optional[str]
    supplier_id: Optional[int]
    supplier_name: Optional[str]

    class Config:
        from_attributes = True


class SupplierOrderResponse(BaseModel):
    key: str
    supplier_id: Optional[int]
    supplier_name: str
    total_cost: Decimal
    items: List[SuggestionResponse]

    class Config:
        from_attributes = True


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Fournit le service de commande."""
    return OrderService(ProductRepository(db))


@router.get("/suggestions", response_model=List[SuggestionResponse], summary="Suggestions de commande")
def list_suggestions(service: OrderService = Depends(get_order_service)):
    """Produits suivis sous leur niveau cible, les plus urgents d'abord."""
    return [SuggestionResponse.model_validate(s) for s in service.get_suggestions()]


@router.get("/by-supplier", response_model=List[SupplierOrderResponse], summary="Commandes par fournisseur")
def list_orders_by_supplier(service: OrderService = Depends(get_order_service)):
    return [SupplierOrderResponse.model_validate(o) for o in service.get_orders_by_supplier()]
