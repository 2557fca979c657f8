"""
Model Product - Produits en stock (ingredients de base et preparations).
"""
import enum
from decimal import Decimal
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Boolean, Numeric, ForeignKey, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.restaurant.dish import RecipeIngredient
    from app.models.restaurant.bill import BillProduct
    from app.models.restaurant.stock_movement import StockMovement


class Unit(str, enum.Enum):
    """
    Unites de mesure.

    Les unites sont des libelles: aucune conversion n'est faite entre
    elles (KG et G ne sont jamais convertis l'un vers l'autre).
    """
    KG = "KG"
    G = "G"
    L = "L"
    ML = "ML"
    CL = "CL"
    PC = "PC"
    BUNCH = "BUNCH"
    CLOVE = "CLOVE"


def unit_enum(name: str) -> Enum:
    """Type Enum PostgreSQL pour une colonne d'unite."""
    return Enum(Unit, values_callable=lambda e: [m.value for m in e], name=name)


class Product(Base, TimestampMixin):
    """
    Produit suivi en inventaire.

    Attributes:
        name: Nom unique du produit
        quantity: Stock courant (jamais negatif)
        unit: Unite de mesure
        unit_price: Prix unitaire (optionnel)
        par_level: Niveau de stock cible (optionnel)
        category: Categorie libre
        trackable: Produit suivi pour les commandes
        is_composite: Preparation composee d'autres produits
        yield_quantity: Quantite produite par une recette de preparation
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), default=Decimal("0"), nullable=False)
    unit: Mapped[Unit] = mapped_column(unit_enum("product_unit"), nullable=False)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    par_level: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    trackable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_composite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    yield_quantity: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3), nullable=True)

    # Relations
    recipe_ingredients: Mapped[List["RecipeIngredient"]] = relationship(back_populates="product")
    bill_products: Mapped[List["BillProduct"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan"
    )
    movements: Mapped[List["StockMovement"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan"
    )
    composite_ingredients: Mapped[List["CompositeIngredient"]] = relationship(
        back_populates="composite_product",
        foreign_keys="CompositeIngredient.composite_product_id",
        cascade="all, delete-orphan"
    )
    used_in_composites: Mapped[List["CompositeIngredient"]] = relationship(
        back_populates="base_product",
        foreign_keys="CompositeIngredient.base_product_id"
    )

    @property
    def is_empty(self) -> bool:
        """Le stock est-il vide."""
        return self.quantity <= 0

    @property
    def stock_value(self) -> Decimal:
        """Valeur du stock (0 si pas de prix)."""
        if self.unit_price is None:
            return Decimal("0")
        return self.quantity * self.unit_price

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', qty={self.quantity} {self.unit.value})>"


class CompositeIngredient(Base, TimestampMixin):
    """
    Ingredient de base entrant dans une preparation (produit compose).

    Attributes:
        composite_product_id: FK vers la preparation
        base_product_id: FK vers l'ingredient de base
        quantity: Quantite utilisee par recette
        unit: Unite de la quantite
    """
    __tablename__ = "composite_ingredients"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    composite_product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    base_product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    unit: Mapped[Unit] = mapped_column(unit_enum("composite_unit"), nullable=False)

    # Relations
    composite_product: Mapped["Product"] = relationship(
        back_populates="composite_ingredients",
        foreign_keys=[composite_product_id]
    )
    base_product: Mapped["Product"] = relationship(
        back_populates="used_in_composites",
        foreign_keys=[base_product_id]
    )

    def __repr__(self) -> str:
        return (
            f"<CompositeIngredient(composite={self.composite_product_id}, "
            f"base={self.base_product_id}, qty={self.quantity})>"
        )
