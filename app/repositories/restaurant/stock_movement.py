"""
Repository pour StockMovement.
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select

from app.models.restaurant.product import Product
from app.models.restaurant.stock_movement import (
    StockMovement,
    MovementType,
    MovementSource,
)
from app.repositories.base import BaseRepository


class StockMovementRepository(BaseRepository[StockMovement]):
    """Repository pour l'historique des mouvements de stock."""

    model = StockMovement

    def record(
        self,
        product: Product,
        movement_type: MovementType,
        quantity: Decimal,
        source: MovementSource = MovementSource.MANUAL,
        reason: Optional[str] = None,
        description: Optional[str] = None,
        bill_id: Optional[int] = None,
        sale_id: Optional[int] = None,
    ) -> StockMovement:
        """
        Enregistre un mouvement sur un produit dont la quantite
        a deja ete mise a jour.

        La quantite est stockee en valeur absolue, balance_after
        reprend le stock courant du produit.
        """
        quantity = abs(Decimal(quantity))
        total_value = None
        if product.unit_price is not None:
            total_value = quantity * product.unit_price

        movement = StockMovement(
            product_id=product.id,
            movement_type=movement_type,
            quantity=quantity,
            balance_after=product.quantity,
            reason=reason,
            description=description,
            source=source,
            unit_price=product.unit_price,
            total_value=total_value,
            bill_id=bill_id,
            sale_id=sale_id,
        )
        self.session.add(movement)
        self.session.flush()
        return movement

    def get_by_product(self, product_id: int, limit: int = 50) -> List[StockMovement]:
        """Recupere les mouvements d'un produit, du plus recent au plus ancien."""
        stmt = (
            select(StockMovement)
            .where(StockMovement.product_id == product_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())
