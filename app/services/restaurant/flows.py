"""
Flux de revue sequentielle branches sur les services.

- reception: facture OCR -> revue ligne par ligne -> confirmation facture
- ventes: ticket OCR -> revue -> enregistrement des ventes
- synchronisation d'inventaire: quantites comptees -> revue -> ajustements
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from app.services.restaurant.bill import BillService
from app.services.restaurant.product import ProductService
from app.services.restaurant.review_flow import ReviewFlowController
from app.services.restaurant.sale import SaleService

RECEPTION_SUCCESS = "Bill confirmed and inventory updated"
SALES_SUCCESS = "Sales recorded"
SYNC_SUCCESS = "Inventory synchronized"


@dataclass(frozen=True)
class UploadedDocument:
    filename: str
    content: bytes
    content_type: Optional[str] = None


def reception_flow(bill_service: BillService) -> ReviewFlowController:
    """Reception d'une livraison a partir d'une facture scannee."""

    def extract(document: UploadedDocument) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        processed = bill_service.process_upload(
            document.filename, document.content, document.content_type
        )
        extraction = processed.extraction
        items = [
            {
                "product_name": item.description,
                "quantity": item.quantity,
                "unit": item.unit,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for item in extraction.items
        ]
        header = {
            "bill_id": processed.bill.id,
            "supplier": extraction.supplier_name,
            "supplier_email": extraction.supplier_email,
            "supplier_phone": extraction.supplier_phone,
            "bill_date": extraction.date,
            "total_amount": extraction.total_amount,
        }
        return items, header

    def persist(payload: Dict[str, Any]):
        header = payload["header"]
        return bill_service.confirm(
            header["bill_id"],
            payload["items"],
            supplier=header.get("supplier"),
            bill_date=header.get("bill_date"),
            total_amount=header.get("total_amount"),
            supplier_email=header.get("supplier_email"),
            supplier_phone=header.get("supplier_phone"),
        )

    return ReviewFlowController(extract, persist, success_message=RECEPTION_SUCCESS)


def sales_flow(sale_service: SaleService) -> ReviewFlowController:
    """Saisie des ventes a partir d'un ticket de caisse."""

    def extract(document: UploadedDocument) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        extraction = sale_service.process_receipt(document.content, document.content_type)
        items = [
            {"name": item.description, "quantity": max(int(item.quantity), 1)}
            for item in extraction.items
        ]
        header = {
            "sale_date": extraction.date,
            "total_amount": extraction.total_amount,
            "receipt_ref": document.filename,
        }
        return items, header

    def persist(payload: Dict[str, Any]):
        header = payload["header"]
        return sale_service.confirm_receipt(
            payload["items"],
            sale_date=header.get("sale_date"),
            receipt_ref=header.get("receipt_ref"),
        )

    return ReviewFlowController(extract, persist, success_message=SALES_SUCCESS)


def inventory_sync_flow(product_service: ProductService) -> ReviewFlowController:
    """
    Synchronisation d'inventaire: la source est la liste des quantites
    comptees [{product_id, new_quantity}].
    """

    def extract(counts: Sequence[Mapping[str, Any]]) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        items = []
        for count in counts:
            product = product_service.get_product(count["product_id"])
            items.append({
                "product_id": product.id,
                "product_name": product.name,
                "current_quantity": product.quantity,
                "new_quantity": Decimal(str(count["new_quantity"])),
                "unit": product.unit.value,
            })
        return items, {}

    def persist(payload: Dict[str, Any]):
        # Une ligne passee garde le stock courant
        items = payload["items"]
        return [
            product_service.sync_adjust(items[index]["product_id"], Decimal(str(items[index]["new_quantity"])))
            for index in payload["confirmed"]
        ]

    return ReviewFlowController(extract, persist, success_message=SYNC_SUCCESS)
