"""
API Endpoints Factures.
Televersement OCR, confirmation de reception et consultation.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.dependencies import get_db, get_ocr_client
from app.core.exceptions import PayloadTooLarge
from app.models.restaurant.bill import BillStatus
from app.models.restaurant.product import Unit
from app.repositories.restaurant.bill import BillProductRepository, BillRepository
from app.repositories.restaurant.product import ProductRepository
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.repositories.restaurant.supplier import SupplierRepository
from app.services.ocr import OcrClient
from app.services.restaurant.bill import BillService

router = APIRouter(prefix="/bills", tags=["Bills"])


# =============================================================================
# Schemas
# =============================================================================

class ExtractedItemResponse(BaseModel):
    id: str
    name: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_price: Decimal


class ProcessedBillResponse(BaseModel):
    bill_id: int
    filename: str
    supplier: Optional[str]
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None
    date: Optional[datetime]
    total_amount: Optional[Decimal]
    items: List[ExtractedItemResponse]


class BillLineInput(BaseModel):
    product_id: Optional[int] = None
    product_name: str = Field(..., min_length=1, max_length=200)
    quantity: Decimal = Field(..., gt=0)
    unit: Unit = Unit.PC
    unit_price: Optional[Decimal] = Field(None, ge=0)


class BillConfirmRequest(BaseModel):
    products: List[BillLineInput]
    supplier: Optional[str] = Field(None, max_length=200)
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None
    bill_date: Optional[datetime] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)

    class Config:
        extra = "forbid"


class BillConfirmResponse(BaseModel):
    success: bool = True
    message: str
    bill_id: int
    products_updated: int
    products_created: int


class SupplierResponse(BaseModel):
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]

    class Config:
        from_attributes = True


class BillProductResponse(BaseModel):
    id: int
    product_id: int
    quantity: Decimal
    unit_price: Optional[Decimal]
    total_price: Optional[Decimal]

    class Config:
        from_attributes = True


class BillResponse(BaseModel):
    id: int
    filename: str
    bill_date: Optional[datetime]
    total_amount: Optional[Decimal]
    status: BillStatus
    notes: Optional[str] = None
    supplier: Optional[SupplierResponse] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BillDetailResponse(BillResponse):
    products: List[BillProductResponse] = []
    raw_content: Optional[dict] = None


# =============================================================================
# Dependencies
# =============================================================================

def get_bill_service(
    db: Session = Depends(get_db),
    ocr_client: OcrClient = Depends(get_ocr_client)
) -> BillService:
    """Fournit le service facture avec le client OCR."""
    return BillService(
        BillRepository(db),
        BillProductRepository(db),
        ProductRepository(db),
        SupplierRepository(db),
        StockMovementRepository(db),
        ocr_client=ocr_client,
    )


def read_upload(file: UploadFile) -> bytes:
    """Lit un fichier televerse en refusant les fichiers trop volumineux."""
    max_size = get_settings().MAX_UPLOAD_SIZE
    content = file.file.read(max_size + 1)
    if len(content) > max_size:
        raise PayloadTooLarge(f"File exceeds the maximum size of {max_size} bytes")
    return content


# =============================================================================
# Bills Endpoints
# =============================================================================

@router.post("/process", response_model=ProcessedBillResponse, status_code=201, summary="Analyser une facture")
def process_bill(
    file: UploadFile = File(..., description="Facture (image ou PDF)"),
    service: BillService = Depends(get_bill_service)
):
    """
    Analyse une facture par OCR et cree une facture PENDING.

    Les lignes extraites sont retournees pour revue avant confirmation.
    """
    content = read_upload(file)
    processed = service.process_upload(file.filename or "upload", content, file.content_type)
    extraction = processed.extraction
    return {
        "bill_id": processed.bill.id,
        "filename": processed.bill.filename,
        "supplier": extraction.supplier_name,
        "supplier_email": extraction.supplier_email,
        "supplier_phone": extraction.supplier_phone,
        "date": extraction.date,
        "total_amount": extraction.total_amount,
        "items": [
            {
                "id": f"temp-{index}",
                "name": item.description,
                "quantity": item.quantity,
                "unit": item.unit,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for index, item in enumerate(extraction.items)
        ],
    }


@router.post("/{bill_id}/confirm", response_model=BillConfirmResponse, summary="Confirmer une facture")
def confirm_bill(
    bill_id: int,
    data: BillConfirmRequest,
    service: BillService = Depends(get_bill_service)
):
    """Confirme la reception: produits crees si besoin, stock incremente."""
    payload = data.model_dump()
    products = payload.pop("products")
    result = service.confirm(bill_id, products, **payload)
    return {
        "message": result.message,
        "bill_id": result.bill.id,
        "products_updated": result.products_updated,
        "products_created": result.products_created,
    }


@router.get("", response_model=List[BillResponse], summary="Liste des factures")
def list_bills(
    status: Optional[BillStatus] = None,
    service: BillService = Depends(get_bill_service)
):
    return service.list_bills(status=status)


@router.get("/{bill_id}", response_model=BillDetailResponse, summary="Detail d'une facture")
def get_bill(
    bill_id: int,
    service: BillService = Depends(get_bill_service)
):
    return service.get_bill(bill_id)
