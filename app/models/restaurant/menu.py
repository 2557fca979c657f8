"""
Model Menu - Menus, sections et plats associes.

La tarification est une union etiquetee: PRIX_FIXE (prix fixe) ou
CHOICE (bornes min/max du nombre de plats). Les colonnes sont a plat en
base, la propriete `pricing` expose la variante typee.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Union, TYPE_CHECKING

from sqlalchemy import BigInteger, Text, Boolean, Numeric, ForeignKey, Enum, String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.restaurant.dish import Dish


class PricingType(str, enum.Enum):
    """Modes de tarification d'un menu."""
    PRIX_FIXE = "PRIX_FIXE"
    CHOICE = "CHOICE"


@dataclass(frozen=True)
class PrixFixe:
    """Menu a prix fixe."""
    fixed_price: Decimal
    type: PricingType = PricingType.PRIX_FIXE


@dataclass(frozen=True)
class Choice:
    """Menu au choix, borne par un nombre de plats."""
    min_courses: int
    max_courses: int
    type: PricingType = PricingType.CHOICE


MenuPricing = Union[PrixFixe, Choice]


class Menu(Base, TimestampMixin):
    """
    Menu du restaurant.

    Attributes:
        name: Nom du menu
        description: Description
        start_date / end_date: Periode de validite (optionnelle)
        is_active: Menu actif
        pricing_type: PRIX_FIXE ou CHOICE
    """
    __tablename__ = "menus"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    pricing_type: Mapped[PricingType] = mapped_column(
        Enum(PricingType, values_callable=lambda e: [m.value for m in e], name="menu_pricing_type"),
        nullable=False,
        default=PricingType.PRIX_FIXE
    )
    fixed_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    min_courses: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_courses: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Relations
    sections: Mapped[List["MenuSection"]] = relationship(
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuSection.display_order"
    )

    @property
    def pricing(self) -> Optional[MenuPricing]:
        """Variante de tarification typee (None si incomplete)."""
        if self.pricing_type == PricingType.CHOICE:
            if self.min_courses is None or self.max_courses is None:
                return None
            return Choice(min_courses=self.min_courses, max_courses=self.max_courses)
        if self.fixed_price is None:
            return None
        return PrixFixe(fixed_price=self.fixed_price)

    def apply_pricing(self, pricing: MenuPricing) -> None:
        """Ecrit une variante de tarification dans les colonnes."""
        if isinstance(pricing, Choice):
            self.pricing_type = PricingType.CHOICE
            self.min_courses = pricing.min_courses
            self.max_courses = pricing.max_courses
            self.fixed_price = None
        else:
            self.pricing_type = PricingType.PRIX_FIXE
            self.fixed_price = pricing.fixed_price
            self.min_courses = None
            self.max_courses = None

    def is_current(self, now: datetime) -> bool:
        """Le menu est-il dans sa periode de validite a `now`."""
        if self.start_date is not None and self.start_date > now:
            return False
        if self.end_date is not None and self.end_date < now:
            return False
        return True

    @property
    def dishes(self) -> List["Dish"]:
        """Plats du menu, dans l'ordre des sections."""
        return [md.dish for section in self.sections for md in section.dishes]

    def __repr__(self) -> str:
        return f"<Menu(id={self.id}, name='{self.name}', pricing={self.pricing_type.value})>"


class MenuSection(Base, TimestampMixin):
    """Section ordonnee d'un menu (Entrees, Plats, Desserts...)."""
    __tablename__ = "menu_sections"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    menu_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relations
    menu: Mapped["Menu"] = relationship(back_populates="sections")
    dishes: Mapped[List["MenuDish"]] = relationship(
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="MenuDish.display_order"
    )

    def __repr__(self) -> str:
        return f"<MenuSection(menu_id={self.menu_id}, name='{self.name}', order={self.display_order})>"


class MenuDish(Base, TimestampMixin):
    """Liaison ordonnee entre une section de menu et un plat."""
    __tablename__ = "menu_dishes"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    section_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("menu_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    dish_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("dishes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relations
    section: Mapped["MenuSection"] = relationship(back_populates="dishes")
    dish: Mapped["Dish"] = relationship(back_populates="menu_dishes")

    def __repr__(self) -> str:
        return f"<MenuDish(section_id={self.section_id}, dish_id={self.dish_id})>"
