"""
Repository pour Dispute et DisputeProduct.
"""
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import joinedload

from app.models.restaurant.dispute import Dispute, DisputeProduct, DisputeStatus
from app.repositories.base import BaseRepository

OPEN_STATUSES = (DisputeStatus.OPEN, DisputeStatus.IN_PROGRESS)


class DisputeRepository(BaseRepository[Dispute]):
    """Repository pour les litiges."""

    model = Dispute

    def list_disputes(self, status: Optional[DisputeStatus] = None) -> List[Dispute]:
        """Liste les litiges avec facture et produits, les plus recents d'abord."""
        stmt = select(Dispute).options(
            joinedload(Dispute.bill),
            joinedload(Dispute.products).joinedload(DisputeProduct.product),
        )
        if status is not None:
            stmt = stmt.where(Dispute.status == status)
        stmt = stmt.order_by(Dispute.created_at.desc(), Dispute.id.desc())
        return list(self.session.execute(stmt).unique().scalars().all())

    def get_with_products(self, dispute_id: int) -> Optional[Dispute]:
        stmt = (
            select(Dispute)
            .options(
                joinedload(Dispute.bill),
                joinedload(Dispute.products).joinedload(DisputeProduct.product),
            )
            .where(Dispute.id == dispute_id)
        )
        return self.session.execute(stmt).unique().scalar_one_or_none()

    def get_open(self) -> List[Dispute]:
        """Litiges OPEN ou IN_PROGRESS, les plus anciens d'abord."""
        stmt = (
            select(Dispute)
            .options(joinedload(Dispute.bill))
            .where(Dispute.status.in_(OPEN_STATUSES))
            .order_by(Dispute.created_at)
        )
        return list(self.session.execute(stmt).scalars().all())

    def count_open(self) -> int:
        stmt = select(func.count(Dispute.id)).where(Dispute.status.in_(OPEN_STATUSES))
        return self.session.execute(stmt).scalar() or 0
