"""
Service pour les litiges fournisseurs.

Cycle de vie:
    OPEN -> IN_PROGRESS | RESOLVED | CLOSED
    IN_PROGRESS -> RESOLVED | CLOSED
    RESOLVED -> CLOSED
    CLOSED: terminal
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.exceptions import AppException
from app.models.base import utc_now
from app.models.restaurant.bill import BillStatus
from app.models.restaurant.dispute import (
    Dispute,
    DisputeProduct,
    DisputeReason,
    DisputeStatus,
    DisputeType,
)
from app.repositories.restaurant.bill import BillRepository
from app.repositories.restaurant.dispute import DisputeRepository
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.bill import BillNotFoundError

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    DisputeStatus.OPEN: {DisputeStatus.IN_PROGRESS, DisputeStatus.RESOLVED, DisputeStatus.CLOSED},
    DisputeStatus.IN_PROGRESS: {DisputeStatus.RESOLVED, DisputeStatus.CLOSED},
    DisputeStatus.RESOLVED: {DisputeStatus.CLOSED},
    DisputeStatus.CLOSED: set(),
}

RESOLVING_STATUSES = (DisputeStatus.RESOLVED, DisputeStatus.CLOSED)


class DisputeNotFoundError(AppException):
    """Litige non trouve."""
    status_code = 404
    error_code = "DISPUTE_NOT_FOUND"

    def __init__(self, dispute_id: int):
        super().__init__(message=f"Dispute {dispute_id} not found")
        self.dispute_id = dispute_id


class InvalidDisputeError(AppException):
    """Donnees de litige invalides."""
    status_code = 400
    error_code = "INVALID_DISPUTE"


class InvalidStatusTransitionError(AppException):
    """Transition de statut interdite."""
    status_code = 409
    error_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: DisputeStatus, target: DisputeStatus):
        super().__init__(
            message=f"Cannot move dispute from {current.value} to {target.value}",
            details={"current": current.value, "target": target.value},
        )


def can_transition(current: DisputeStatus, target: DisputeStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class DisputeService:
    """Service pour les litiges."""

    def __init__(
        self,
        dispute_repo: DisputeRepository,
        bill_repo: BillRepository,
        product_repo: ProductRepository,
    ):
        self.dispute_repo = dispute_repo
        self.bill_repo = bill_repo
        self.product_repo = product_repo

    def list_disputes(self, status: Optional[DisputeStatus] = None) -> List[Dispute]:
        return self.dispute_repo.list_disputes(status=status)

    def get_dispute(self, dispute_id: int) -> Dispute:
        dispute = self.dispute_repo.get_with_products(dispute_id)
        if not dispute:
            raise DisputeNotFoundError(dispute_id)
        return dispute

    def create_dispute(
        self,
        bill_id: int,
        type: DisputeType,
        title: str,
        description: Optional[str] = None,
        amount_disputed: Optional[Decimal] = None,
        products: Optional[List[Dict[str, Any]]] = None,
    ) -> Dispute:
        """
        Ouvre un litige sur une facture. La facture passe en DISPUTED.

        Args:
            products: [{product_id, quantity_disputed, reason, description}]
        """
        bill = self.bill_repo.get(bill_id)
        if not bill:
            raise BillNotFoundError(bill_id)
        if not title or not title.strip():
            raise InvalidDisputeError("Dispute title is required")
        if amount_disputed is not None and amount_disputed < 0:
            raise InvalidDisputeError("Disputed amount cannot be negative")

        dispute = Dispute(
            bill_id=bill.id,
            type=type,
            status=DisputeStatus.OPEN,
            title=title.strip(),
            description=description,
            amount_disputed=amount_disputed,
        )
        for item in products or []:
            quantity = Decimal(str(item.get("quantity_disputed") or 0))
            if quantity <= 0:
                raise InvalidDisputeError("Disputed quantity must be positive")
            if not self.product_repo.exists(item["product_id"]):
                raise InvalidDisputeError(f"Product {item['product_id']} not found")
            dispute.products.append(DisputeProduct(
                product_id=item["product_id"],
                quantity_disputed=quantity,
                reason=DisputeReason(item["reason"]),
                description=item.get("description"),
            ))

        self.dispute_repo.session.add(dispute)
        bill.status = BillStatus.DISPUTED
        self.dispute_repo.session.flush()

        logger.info(
            f"Litige ouvert: {dispute.title}",
            extra={"dispute_id": dispute.id, "bill_id": bill.id}
        )
        return dispute

    def update_status(
        self,
        dispute_id: int,
        status: DisputeStatus,
        resolution_notes: Optional[str] = None,
    ) -> Dispute:
        """
        Fait evoluer le statut d'un litige.

        Raises:
            InvalidStatusTransitionError: transition interdite
            InvalidDisputeError: notes de resolution manquantes
        """
        dispute = self.get_dispute(dispute_id)
        if not can_transition(dispute.status, status):
            raise InvalidStatusTransitionError(dispute.status, status)

        if status in RESOLVING_STATUSES:
            notes = (resolution_notes or dispute.resolution_notes or "").strip()
            if not notes:
                raise InvalidDisputeError("Resolution notes are required")
            dispute.resolution_notes = notes
            if dispute.resolved_at is None:
                dispute.resolved_at = utc_now()

        dispute.status = status
        self.dispute_repo.session.flush()
        logger.info(
            f"Litige {dispute.id}: statut {status.value}",
            extra={"dispute_id": dispute.id}
        )
        return dispute
