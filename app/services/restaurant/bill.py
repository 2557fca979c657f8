"""
Service pour la reception des factures fournisseurs.

Deux etapes:
1. process_upload: extraction OCR, facture creee en PENDING
2. confirm: lignes validees, stock incremente, facture PROCESSED
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import AppException
from app.models.restaurant.bill import Bill, BillStatus
from app.models.restaurant.product import Product, Unit
from app.models.restaurant.stock_movement import MovementSource, MovementType
from app.repositories.restaurant.bill import BillProductRepository, BillRepository
from app.repositories.restaurant.product import ProductRepository
from app.repositories.restaurant.stock_movement import StockMovementRepository
from app.repositories.restaurant.supplier import SupplierRepository
from app.services.ocr import DocumentExtraction, OcrClient

logger = logging.getLogger(__name__)


class BillNotFoundError(AppException):
    """Facture non trouvee."""
    status_code = 404
    error_code = "BILL_NOT_FOUND"

    def __init__(self, bill_id: int):
        super().__init__(message=f"Bill {bill_id} not found")
        self.bill_id = bill_id


class BillAlreadyProcessedError(AppException):
    """Facture deja confirmee."""
    status_code = 400
    error_code = "BILL_ALREADY_PROCESSED"

    def __init__(self, bill_id: int):
        super().__init__(
            message="Bill has already been processed and cannot be confirmed again"
        )
        self.bill_id = bill_id


class InvalidBillError(AppException):
    """Donnees de confirmation invalides."""
    status_code = 400
    error_code = "INVALID_BILL"


@dataclass
class ProcessedBill:
    bill: Bill
    extraction: DocumentExtraction


@dataclass
class BillConfirmation:
    bill: Bill
    products_updated: int
    products_created: int
    message: str = "Bill confirmed and inventory updated"


def parse_unit(value: Any) -> Unit:
    if isinstance(value, Unit):
        return value
    try:
        return Unit(str(value).strip().upper())
    except ValueError:
        raise InvalidBillError(f"Unknown unit {value}")


class BillService:
    """
    Service pour les factures.

    Responsabilites:
    - Extraction OCR d'une facture televersee
    - Confirmation: produits, fournisseur, lignes, mouvements de stock
    """

    def __init__(
        self,
        bill_repo: BillRepository,
        bill_product_repo: BillProductRepository,
        product_repo: ProductRepository,
        supplier_repo: SupplierRepository,
        movement_repo: StockMovementRepository,
        ocr_client: Optional[OcrClient] = None,
    ):
        self.bill_repo = bill_repo
        self.bill_product_repo = bill_product_repo
        self.product_repo = product_repo
        self.supplier_repo = supplier_repo
        self.movement_repo = movement_repo
        self.ocr_client = ocr_client

    def list_bills(self, status: Optional[BillStatus] = None) -> List[Bill]:
        return self.bill_repo.list_bills(status=status)

    def get_bill(self, bill_id: int) -> Bill:
        bill = self.bill_repo.get_with_products(bill_id)
        if not bill:
            raise BillNotFoundError(bill_id)
        return bill

    def extract(self, content: bytes, content_type: Optional[str] = None) -> DocumentExtraction:
        """Extraction OCR seule, rien n'est persiste."""
        if self.ocr_client is None:
            raise InvalidBillError("No OCR client available")
        return self.ocr_client.analyze(content, content_type)

    def process_upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> ProcessedBill:
        """
        Analyse un document et cree une facture en attente.

        Raises:
            OcrNotConfiguredError: OCR non configure
            ExtractionError: echec de l'extraction
        """
        if not content:
            raise InvalidBillError("No file uploaded")

        extraction = self.extract(content, content_type)
        bill = self.bill_repo.create({
            "filename": filename,
            "bill_date": extraction.date,
            "total_amount": extraction.total_amount,
            "status": BillStatus.PENDING,
            "raw_content": extraction.to_dict(),
        })
        logger.info(
            f"Facture extraite: {filename} ({len(extraction.items)} lignes)",
            extra={"bill_id": bill.id}
        )
        return ProcessedBill(bill=bill, extraction=extraction)

    def _resolve_product(self, item: Dict[str, Any]) -> Tuple[Product, bool]:
        product_id = item.get("product_id")
        if product_id is not None:
            product = self.product_repo.get(product_id)
            if not product:
                raise InvalidBillError(f"Product {product_id} not found")
            return product, False

        name = (item.get("product_name") or "").strip()
        if not name:
            raise InvalidBillError("Product name is required")
        product = self.product_repo.get_by_name_insensitive(name)
        if product:
            return product, False

        unit_price = item.get("unit_price")
        product = self.product_repo.create({
            "name": name,
            "quantity": Decimal("0"),
            "unit": parse_unit(item.get("unit") or Unit.PC),
            "unit_price": Decimal(str(unit_price)) if unit_price else None,
            "trackable": True,
        })
        logger.info(f"Produit cree depuis facture: {name}", extra={"product_id": product.id})
        return product, True

    def confirm(
        self,
        bill_id: int,
        products: List[Dict[str, Any]],
        supplier: Optional[str] = None,
        bill_date: Optional[datetime] = None,
        total_amount: Optional[Decimal] = None,
        supplier_email: Optional[str] = None,
        supplier_phone: Optional[str] = None,
    ) -> BillConfirmation:
        """
        Confirme une facture et met a jour l'inventaire.

        Args:
            products: [{product_id?, product_name, quantity, unit, unit_price}]

        Raises:
            BillNotFoundError: facture inconnue
            BillAlreadyProcessedError: facture deja PROCESSED
            InvalidBillError: aucune ligne ou ligne invalide
        """
        bill = self.bill_repo.get(bill_id)
        if not bill:
            raise BillNotFoundError(bill_id)
        if bill.status == BillStatus.PROCESSED:
            raise BillAlreadyProcessedError(bill_id)
        if not products:
            raise InvalidBillError("No products provided")

        created = 0
        for item in products:
            quantity = Decimal(str(item.get("quantity") or 0))
            if quantity <= 0:
                raise InvalidBillError("Quantity must be positive")
            unit_price = item.get("unit_price")
            unit_price = Decimal(str(unit_price)) if unit_price is not None else None

            product, is_new = self._resolve_product(item)
            created += int(is_new)

            self.bill_product_repo.create({
                "bill_id": bill.id,
                "product_id": product.id,
                "quantity": quantity,
                "unit_price": unit_price,
            })

            product.quantity = product.quantity + quantity
            if unit_price is not None and unit_price > 0:
                product.unit_price = unit_price
            self.movement_repo.record(
                product,
                MovementType.IN,
                quantity,
                source=MovementSource.SCAN_RECEPTION,
                reason="Bill reception",
                description=f"Received from bill {bill.filename}",
                bill_id=bill.id,
            )

        if supplier and supplier.strip():
            bill.supplier = self.supplier_repo.get_or_create(
                supplier.strip(), email=supplier_email, phone=supplier_phone
            )
        if bill_date is not None:
            bill.bill_date = bill_date
        if total_amount is not None:
            bill.total_amount = total_amount
        bill.status = BillStatus.PROCESSED
        self.bill_repo.session.flush()

        logger.info(
            f"Facture confirmee: {len(products)} lignes, {created} produits crees",
            extra={"bill_id": bill.id}
        )
        return BillConfirmation(
            bill=bill,
            products_updated=len(products),
            products_created=created,
        )
