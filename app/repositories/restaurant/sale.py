"""
Repository pour Sale.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import joinedload

from app.models.restaurant.dish import Dish
from app.models.restaurant.sale import Sale
from app.repositories.base import BaseRepository


class SaleRepository(BaseRepository[Sale]):
    """Repository pour les ventes."""

    model = Sale

    def _filtered(
        self,
        stmt,
        dish_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ):
        if dish_id is not None:
            stmt = stmt.where(Sale.dish_id == dish_id)
        if start_date is not None:
            stmt = stmt.where(Sale.sale_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Sale.sale_date <= end_date)
        return stmt

    def list_sales(
        self,
        dish_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Sale]:
        """Liste les ventes avec le plat, les plus recentes d'abord."""
        stmt = select(Sale).options(joinedload(Sale.dish))
        stmt = self._filtered(stmt, dish_id, start_date, end_date)
        stmt = stmt.order_by(Sale.sale_date.desc(), Sale.id.desc())
        return list(self.session.execute(stmt).scalars().all())

    def summary_by_dish(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[dict]:
        """
        Agrege les ventes par plat.

        Returns:
            [{dish_id, dish_name, selling_price, total_quantity, sales_count}]
        """
        stmt = (
            select(
                Dish.id,
                Dish.name,
                Dish.selling_price,
                func.sum(Sale.quantity_sold),
                func.count(Sale.id),
            )
            .join(Dish, Sale.dish_id == Dish.id)
        )
        stmt = self._filtered(stmt, None, start_date, end_date)
        stmt = stmt.group_by(Dish.id, Dish.name, Dish.selling_price).order_by(
            func.sum(Sale.quantity_sold).desc(), Dish.name
        )
        return [
            {
                "dish_id": dish_id,
                "dish_name": name,
                "selling_price": price,
                "total_quantity": int(total or 0),
                "sales_count": int(count or 0),
            }
            for dish_id, name, price, total, count in self.session.execute(stmt).all()
        ]
