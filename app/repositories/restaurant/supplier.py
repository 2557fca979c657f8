"""
Repository pour Supplier.
"""
from typing import List, Optional

from sqlalchemy import select

from app.models.restaurant.supplier import Supplier
from app.repositories.base import BaseRepository


class SupplierRepository(BaseRepository[Supplier]):
    """Repository pour les fournisseurs."""

    model = Supplier

    def get_by_name(self, name: str) -> Optional[Supplier]:
        stmt = select(Supplier).where(Supplier.name == name)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_or_create(
        self,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Supplier:
        """Recupere un fournisseur par nom ou le cree."""
        supplier = self.get_by_name(name)
        if supplier is None:
            supplier = self.create({"name": name, "email": email, "phone": phone})
        return supplier

    def list_suppliers(self) -> List[Supplier]:
        stmt = select(Supplier).order_by(Supplier.name)
        return list(self.session.execute(stmt).scalars().all())
