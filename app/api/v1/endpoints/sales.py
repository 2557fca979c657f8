"""
API Endpoints Ventes.
Saisie des ventes, synthese et import de tickets de caisse.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.v1.endpoints.bills import read_upload
from app.core.dependencies import get_db, get_ocr_client
from app.repositories.restaurant.dish import DishRepository
from app.repositories.restaurant.sale import SaleRepository
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.services.ocr import OcrClient
from app.services.restaurant.sale import SaleService

router = APIRouter(prefix="/sales", tags=["Sales"])


# =============================================================================
# Schemas
# =============================================================================

class SaleCreate(BaseModel):
    dish_id: int
    quantity_sold: int = Field(..., ge=1)
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class SaleUpdate(BaseModel):
    quantity_sold: Optional[int] = Field(None, ge=1)
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class SaleDishResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: int
    dish_id: int
    quantity_sold: int
    sale_date: datetime
    notes: Optional[str]
    dish: Optional[SaleDishResponse] = None

    class Config:
        from_attributes = True


class SalesSummaryResponse(BaseModel):
    dish_id: int
    dish_name: str
    total_quantity: int
    sales_count: int
    revenue: Optional[Decimal]

    class Config:
        from_attributes = True


class ReceiptItemResponse(BaseModel):
    id: str
    name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


class ProcessedReceiptResponse(BaseModel):
    filename: str
    date: Optional[datetime]
    total_amount: Optional[Decimal]
    items: List[ReceiptItemResponse]


class ReceiptDishInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=1)


class ReceiptConfirmRequest(BaseModel):
    dishes: List[ReceiptDishInput]
    sale_date: Optional[datetime] = None
    receipt_ref: Optional[str] = Field(None, max_length=255)

    class Config:
        extra = "forbid"


class ReceiptLineResponse(BaseModel):
    dish_name: str
    quantity_sold: int
    ingredients_deducted: int
    has_recipe: bool
    dish_created: bool
    warning: Optional[str] = None

    class Config:
        from_attributes = True


class ReceiptConfirmResponse(BaseModel):
    success: bool = True
    message: str
    results: List[ReceiptLineResponse]


# =============================================================================
# Dependencies
# =============================================================================

def get_sale_service(
    db: Session = Depends(get_db),
    ocr_client: OcrClient = Depends(get_ocr_client)
) -> SaleService:
    """Fournit le service vente avec le client OCR."""
    return SaleService(
        SaleRepository(db),
        DishRepository(db),
        StockMovementRepository(db),
        ocr_client=ocr_client,
    )


# =============================================================================
# Sales Endpoints
# =============================================================================

@router.get("", response_model=List[SaleResponse], summary="Liste des ventes")
def list_sales(
    dish_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: SaleService = Depends(get_sale_service)
):
    return service.list_sales(dish_id=dish_id, start_date=start_date, end_date=end_date)


@router.post("", response_model=SaleResponse, status_code=201, summary="Enregistrer une vente")
def create_sale(
    data: SaleCreate,
    service: SaleService = Depends(get_sale_service)
):
    """Enregistre une vente et deduit les ingredients du stock."""
    return service.create_sale(**data.model_dump())


@router.get("/summary", response_model=List[SalesSummaryResponse], summary="Synthese par plat")
def get_sales_summary(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: SaleService = Depends(get_sale_service)
):
    return service.get_summary(start_date=start_date, end_date=end_date)


@router.post("/process", response_model=ProcessedReceiptResponse, summary="Analyser un ticket")
def process_receipt(
    file: UploadFile = File(..., description="Ticket de caisse"),
    service: SaleService = Depends(get_sale_service)
):
    """Extraction OCR d'un ticket; rien n'est enregistre."""
    content = read_upload(file)
    extraction = service.process_receipt(content, file.content_type)
    return {
        "filename": file.filename or "upload",
        "date": extraction.date,
        "total_amount": extraction.total_amount,
        "items": [
            {
                "id": f"temp-{index}",
                "name": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for index, item in enumerate(extraction.items)
        ],
    }


@router.post("/confirm", response_model=ReceiptConfirmResponse, summary="Confirmer un ticket")
def confirm_receipt(
    data: ReceiptConfirmRequest,
    service: SaleService = Depends(get_sale_service)
):
    """Enregistre les ventes d'un ticket et deduit le stock des recettes."""
    confirmation = service.confirm_receipt(
        [dish.model_dump() for dish in data.dishes],
        sale_date=data.sale_date,
        receipt_ref=data.receipt_ref,
    )
    return {"message": confirmation.message, "results": confirmation.results}


@router.patch("/{sale_id}", response_model=SaleResponse, summary="Modifier une vente")
def update_sale(
    sale_id: int,
    data: SaleUpdate,
    service: SaleService = Depends(get_sale_service)
):
    """Met a jour une vente; le stock est reajuste de la difference."""
    return service.update_sale(sale_id, **data.model_dump())


@router.delete("/{sale_id}", status_code=204, summary="Supprimer une vente")
def delete_sale(
    sale_id: int,
    service: SaleService = Depends(get_sale_service)
):
    """Supprime une vente et restitue le stock."""
    service.delete_sale(sale_id)
