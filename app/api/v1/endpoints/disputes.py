"""
API Endpoints Litiges.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.models.restaurant.dispute import DisputeReason, DisputeStatus, DisputeType
from app.repositories.restaurant.bill import BillRepository
from app.repositories.restaurant.dispute import DisputeRepository
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.dispute import DisputeService

router = APIRouter(prefix="/disputes", tags=["Disputes"])


# =============================================================================
# Schemas
# =============================================================================

class DisputeProductInput(BaseModel):
    product_id: int
    quantity_disputed: Decimal = Field(..., gt=0)
    reason: DisputeReason
    description: Optional[str] = None


class DisputeCreate(BaseModel):
    bill_id: int
    type: DisputeType
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    amount_disputed: Optional[Decimal] = Field(None, ge=0)
    products: List[DisputeProductInput] = []

    class Config:
        extra = "forbid"


class DisputeStatusUpdate(BaseModel):
    status: DisputeStatus
    resolution_notes: Optional[str] = None

    class Config:
        extra = "forbid"


class DisputeProductResponse(BaseModel):
    id: int
    product_id: int
    quantity_disputed: Decimal
    reason: DisputeReason
    description: Optional[str]

    class Config:
        from_attributes = True


class DisputeResponse(BaseModel):
    id: int
    bill_id: int
    type: DisputeType
    status: DisputeStatus
    title: str
    description: Optional[str]
    amount_disputed: Optional[Decimal]
    resolution_notes: Optional[str]
    resolved_at: Optional[datetime]
    products: List[DisputeProductResponse] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Dependencies
# =============================================================================

def get_dispute_service(db: Session = Depends(get_db)) -> DisputeService:
    """Fournit le service litige."""
    return DisputeService(DisputeRepository(db), BillRepository(db), ProductRepository(db))


# =============================================================================
# Disputes Endpoints
# =============================================================================

@router.get("", response_model=List[DisputeResponse], summary="Liste des litiges")
def list_disputes(
    status: Optional[DisputeStatus] = None,
    service: DisputeService = Depends(get_dispute_service)
):
    return service.list_disputes(status=status)


@router.post("", response_model=DisputeResponse, status_code=201, summary="Ouvrir un litige")
def create_dispute(
    data: DisputeCreate,
    service: DisputeService = Depends(get_dispute_service)
):
    """Ouvre un litige; la facture passe en DISPUTED."""
    payload = data.model_dump()
    return service.create_dispute(**payload)


@router.get("/{dispute_id}", response_model=DisputeResponse, summary="Detail d'un litige")
def get_dispute(
    dispute_id: int,
    service: DisputeService = Depends(get_dispute_service)
):
    return service.get_dispute(dispute_id)


@router.post("/{dispute_id}/status", response_model=DisputeResponse, summary="Changer le statut")
def update_dispute_status(
    dispute_id: int,
    data: DisputeStatusUpdate,
    service: DisputeService = Depends(get_dispute_service)
):
    """Fait evoluer le statut; RESOLVED et CLOSED exigent des notes de resolution."""
    return service.update_status(dispute_id, data.status, resolution_notes=data.resolution_notes)
