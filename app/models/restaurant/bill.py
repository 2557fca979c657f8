"""
Model Bill - Factures de livraison et leurs lignes produits.
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Numeric, ForeignKey, Enum, String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, utc_now

if TYPE_CHECKING:
    from app.models.restaurant.product import Product
    from app.models.restaurant.supplier import Supplier
    from app.models.restaurant.dispute import Dispute


class BillStatus(str, enum.Enum):
    """Statuts d'une facture."""
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"
    DISPUTED = "DISPUTED"


class Bill(Base, TimestampMixin):
    """
    Facture fournisseur scannee.

    Attributes:
        filename: Nom du fichier televerse
        supplier_id: Fournisseur (connu apres confirmation)
        bill_date: Date de la facture
        total_amount: Montant total
        status: PENDING, PROCESSED ou DISPUTED
        raw_content: Extraction OCR brute
    """
    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    bill_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[BillStatus] = mapped_column(
        Enum(BillStatus, values_callable=lambda e: [m.value for m in e], name="bill_status"),
        nullable=False,
        default=BillStatus.PENDING
    )
    raw_content: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relations
    supplier: Mapped[Optional["Supplier"]] = relationship(back_populates="bills")
    products: Mapped[List["BillProduct"]] = relationship(
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillProduct.id"
    )
    disputes: Mapped[List["Dispute"]] = relationship(back_populates="bill")

    @property
    def is_processed(self) -> bool:
        return self.status == BillStatus.PROCESSED

    def __repr__(self) -> str:
        return f"<Bill(id={self.id}, filename='{self.filename}', status={self.status.value})>"


class BillProduct(Base):
    """Ligne de facture: un produit recu, sa quantite et son prix."""
    __tablename__ = "bill_products"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    bill_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )

    # Relations
    bill: Mapped["Bill"] = relationship(back_populates="products")
    product: Mapped["Product"] = relationship(back_populates="bill_products")

    @property
    def total_price(self) -> Optional[Decimal]:
        if self.unit_price is None:
            return None
        return self.quantity * self.unit_price

    def __repr__(self) -> str:
        return f"<BillProduct(bill_id={self.bill_id}, product_id={self.product_id}, qty={self.quantity})>"
