"""
Repository pour Bill et BillProduct.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from app.models.restaurant.bill import Bill, BillProduct, BillStatus
from app.repositories.base import BaseRepository


class BillRepository(BaseRepository[Bill]):
    """Repository pour les factures."""

    model = Bill

    def list_bills(self, status: Optional[BillStatus] = None) -> List[Bill]:
        """Liste les factures, les plus recentes d'abord."""
        stmt = select(Bill).options(joinedload(Bill.supplier))
        if status is not None:
            stmt = stmt.where(Bill.status == status)
        stmt = stmt.order_by(Bill.created_at.desc(), Bill.id.desc())
        return list(self.session.execute(stmt).scalars().all())

    def get_with_products(self, bill_id: int) -> Optional[Bill]:
        """Recupere une facture avec ses lignes et son fournisseur."""
        stmt = (
            select(Bill)
            .options(
                joinedload(Bill.supplier),
                joinedload(Bill.products).joinedload(BillProduct.product),
            )
            .where(Bill.id == bill_id)
        )
        return self.session.execute(stmt).unique().scalar_one_or_none()


class BillProductRepository(BaseRepository[BillProduct]):
    """Repository pour les lignes de facture."""

    model = BillProduct
