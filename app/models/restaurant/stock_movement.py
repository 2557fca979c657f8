"""
Model StockMovement - Historique des mouvements de stock.
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Numeric, ForeignKey, Enum, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, utc_now

if TYPE_CHECKING:
    from app.models.restaurant.product import Product
    from app.models.restaurant.bill import Bill
    from app.models.restaurant.sale import Sale


class MovementType(str, enum.Enum):
    """Types de mouvements de stock."""
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    WASTE = "WASTE"


class MovementSource(str, enum.Enum):
    """Origine d'un mouvement de stock."""
    MANUAL = "MANUAL"
    SCAN_RECEPTION = "SCAN_RECEPTION"
    SCAN_SALES = "SCAN_SALES"
    RECIPE_DEDUCTION = "RECIPE_DEDUCTION"
    SYSTEM_ADJUSTMENT = "SYSTEM_ADJUSTMENT"


class StockMovement(Base):
    """
    Mouvement de stock (historique).

    Attributes:
        product_id: FK vers le produit
        movement_type: IN, OUT, ADJUSTMENT ou WASTE
        quantity: Quantite du mouvement (toujours positive)
        balance_after: Stock apres le mouvement
        reason: Motif court
        source: Origine du mouvement
        unit_price / total_value: Valorisation (si prix connu)
        bill_id / sale_id: Document a l'origine du mouvement
    """
    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, values_callable=lambda e: [m.value for m in e], name="movement_type"),
        nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[MovementSource] = mapped_column(
        Enum(MovementSource, values_callable=lambda e: [m.value for m in e], name="movement_source"),
        nullable=False,
        default=MovementSource.MANUAL
    )
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    total_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    bill_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("bills.id", ondelete="SET NULL"),
        nullable=True
    )
    sale_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("sales.id", ondelete="SET NULL"),
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True
    )

    # Relations
    product: Mapped["Product"] = relationship(back_populates="movements")
    bill: Mapped[Optional["Bill"]] = relationship()
    sale: Mapped[Optional["Sale"]] = relationship(back_populates="movements")

    @property
    def signed_quantity(self) -> Decimal:
        """Quantite signee (negative pour sorties/pertes)."""
        if self.movement_type in (MovementType.OUT, MovementType.WASTE):
            return -self.quantity
        return self.quantity

    def __repr__(self) -> str:
        return (
            f"<StockMovement(product_id={self.product_id}, "
            f"type={self.movement_type.value}, qty={self.quantity})>"
        )
