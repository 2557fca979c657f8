"""
Model Dish - Plats de la carte et leurs fiches techniques.
"""
from decimal import Decimal
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Boolean, Numeric, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.restaurant.product import Unit, unit_enum

if TYPE_CHECKING:
    from app.models.restaurant.product import Product
    from app.models.restaurant.menu import MenuDish
    from app.models.restaurant.sale import Sale


class Dish(Base, TimestampMixin):
    """
    Plat propose par le restaurant.

    Le cout n'est jamais stocke: il est derive des ingredients
    de la recette et du prix unitaire de chaque produit.

    Attributes:
        name: Nom du plat
        description: Description
        selling_price: Prix de vente (optionnel)
        is_active: Plat actif a la carte
    """
    __tablename__ = "dishes"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    selling_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relations
    recipe_ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        back_populates="dish",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.id"
    )
    menu_dishes: Mapped[List["MenuDish"]] = relationship(
        back_populates="dish",
        cascade="all, delete-orphan"
    )
    sales: Mapped[List["Sale"]] = relationship(back_populates="dish")

    @property
    def nb_ingredients(self) -> int:
        """Nombre d'ingredients de la recette."""
        return len(self.recipe_ingredients)

    def __repr__(self) -> str:
        return f"<Dish(id={self.id}, name='{self.name}')>"


class RecipeIngredient(Base, TimestampMixin):
    """
    Ligne de fiche technique: un produit et la quantite requise par portion.

    L'unite peut differer de celle du produit; aucune conversion n'est faite.
    """
    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    dish_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("dishes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    quantity_required: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    unit: Mapped[Unit] = mapped_column(unit_enum("recipe_unit"), nullable=False)

    # Relations
    dish: Mapped["Dish"] = relationship(back_populates="recipe_ingredients")
    product: Mapped["Product"] = relationship(back_populates="recipe_ingredients")

    @property
    def product_name(self) -> str:
        return self.product.name if self.product else ""

    def __repr__(self) -> str:
        return (
            f"<RecipeIngredient(dish_id={self.dish_id}, product_id={self.product_id}, "
            f"qty={self.quantity_required})>"
        )
