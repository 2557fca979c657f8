"""
Model Dispute - Litiges fournisseurs sur une facture.
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Numeric, ForeignKey, Enum, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.restaurant.bill import Bill
    from app.models.restaurant.product import Product


class DisputeType(str, enum.Enum):
    """Types de litige."""
    RETURN = "RETURN"
    COMPLAINT = "COMPLAINT"
    REFUND = "REFUND"


class DisputeStatus(str, enum.Enum):
    """Statuts d'un litige."""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class DisputeReason(str, enum.Enum):
    """Motif d'un produit en litige."""
    MISSING = "MISSING"
    DAMAGED = "DAMAGED"
    WRONG_QUANTITY = "WRONG_QUANTITY"
    WRONG_PRODUCT = "WRONG_PRODUCT"
    QUALITY = "QUALITY"


class Dispute(Base, TimestampMixin):
    """
    Litige ouvert sur une facture.

    Attributes:
        bill_id: FK vers la facture concernee
        type: RETURN, COMPLAINT ou REFUND
        status: OPEN -> IN_PROGRESS -> RESOLVED -> CLOSED
        amount_disputed: Montant conteste
        resolution_notes: Notes de resolution (RESOLVED / CLOSED)
        resolved_at: Date de resolution
    """
    __tablename__ = "disputes"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    bill_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type: Mapped[DisputeType] = mapped_column(
        Enum(DisputeType, values_callable=lambda e: [m.value for m in e], name="dispute_type"),
        nullable=False
    )
    status: Mapped[DisputeStatus] = mapped_column(
        Enum(DisputeStatus, values_callable=lambda e: [m.value for m in e], name="dispute_status"),
        nullable=False,
        default=DisputeStatus.OPEN
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    amount_disputed: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    resolution_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relations
    bill: Mapped["Bill"] = relationship(back_populates="disputes")
    products: Mapped[List["DisputeProduct"]] = relationship(
        back_populates="dispute",
        cascade="all, delete-orphan"
    )

    @property
    def is_open(self) -> bool:
        """Le litige attend-il encore une resolution."""
        return self.status in (DisputeStatus.OPEN, DisputeStatus.IN_PROGRESS)

    def __repr__(self) -> str:
        return f"<Dispute(id={self.id}, bill_id={self.bill_id}, status={self.status.value})>"


class DisputeProduct(Base, TimestampMixin):
    """Produit conteste dans un litige."""
    __tablename__ = "dispute_products"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    dispute_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("disputes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )
    quantity_disputed: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    reason: Mapped[DisputeReason] = mapped_column(
        Enum(DisputeReason, values_callable=lambda e: [m.value for m in e], name="dispute_reason"),
        nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relations
    dispute: Mapped["Dispute"] = relationship(back_populates="products")
    product: Mapped["Product"] = relationship()

    def __repr__(self) -> str:
        return f"<DisputeProduct(dispute_id={self.dispute_id}, product_id={self.product_id})>"
