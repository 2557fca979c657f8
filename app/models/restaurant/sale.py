"""
Model Sale - Ventes enregistrees (saisie manuelle ou ticket de caisse).
"""
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Integer, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.restaurant.dish import Dish
    from app.models.restaurant.stock_movement import StockMovement


class Sale(Base, TimestampMixin):
    """
    Vente d'un plat.

    Attributes:
        dish_id: FK vers le plat vendu
        quantity_sold: Nombre de portions (>= 1)
        sale_date: Date de la vente
        notes: Notes libres
    """
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    dish_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("dishes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False)
    sale_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relations
    dish: Mapped["Dish"] = relationship(back_populates="sales")
    movements: Mapped[List["StockMovement"]] = relationship(back_populates="sale")

    def __repr__(self) -> str:
        return f"<Sale(id={self.id}, dish_id={self.dish_id}, qty={self.quantity_sold})>"
