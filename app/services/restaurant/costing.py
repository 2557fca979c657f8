"""
Calcul du cout matiere et de la marge des plats.

Le cout d'un plat est la somme quantite x prix unitaire de chaque
ingredient. Un ingredient sans prix compte pour 0 et positionne
has_all_prices a False: l'affichage masque alors la marge plutot
que de la sous-estimer.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from app.models.restaurant.product import Unit

ZERO = Decimal("0")


@dataclass(frozen=True)
class CostLine:
    """Une ligne de recette valorisable."""
    product_id: Optional[int]
    product_name: str
    quantity: Decimal
    unit: Optional[Unit]
    unit_price: Optional[Decimal]

    @property
    def has_price(self) -> bool:
        return self.unit_price is not None

    @property
    def line_cost(self) -> Decimal:
        if self.unit_price is None:
            return ZERO
        return Decimal(self.quantity) * Decimal(self.unit_price)


@dataclass(frozen=True)
class CostSummary:
    total: Decimal
    has_all_prices: bool


@dataclass(frozen=True)
class DishCost:
    """Cout, marge et detail d'un plat."""
    cost: Decimal
    has_all_prices: bool
    selling_price: Optional[Decimal]
    margin: Optional[Decimal]
    lines: List[CostLine]


@dataclass(frozen=True)
class CompositeBreakdown:
    """Prix unitaire d'une preparation et son detail."""
    unit_price: Decimal
    total_cost: Decimal
    yield_quantity: Decimal
    has_missing_prices: bool
    lines: List[CostLine]


def compute_cost(lines: Iterable[CostLine]) -> CostSummary:
    """Somme des couts de ligne; l'ordre des lignes n'a pas d'effet."""
    total = ZERO
    has_all_prices = True
    for line in lines:
        if not line.has_price:
            has_all_prices = False
        total += line.line_cost
    return CostSummary(total=total, has_all_prices=has_all_prices)


def compute_margin(cost: Decimal, selling_price: Optional[Decimal]) -> Optional[Decimal]:
    """
    Marge en pourcentage du prix de vente.

    None si le prix de vente est absent ou si le cout est nul.
    """
    if selling_price is None or cost is None or cost <= 0:
        return None
    selling_price = Decimal(selling_price)
    if selling_price == 0:
        return None
    return (selling_price - Decimal(cost)) / selling_price * 100


def recipe_cost_lines(recipe_ingredients) -> List[CostLine]:
    """Convertit les RecipeIngredient charges (avec produit) en lignes de cout."""
    lines = []
    for ingredient in recipe_ingredients:
        product = ingredient.product
        lines.append(CostLine(
            product_id=ingredient.product_id,
            product_name=product.name if product else "",
            quantity=Decimal(ingredient.quantity_required),
            unit=ingredient.unit,
            unit_price=product.unit_price if product else None,
        ))
    return lines


def dish_cost(dish) -> DishCost:
    """Cout et marge d'un plat charge avec sa recette."""
    lines = recipe_cost_lines(dish.recipe_ingredients)
    summary = compute_cost(lines)
    return DishCost(
        cost=summary.total,
        has_all_prices=summary.has_all_prices,
        selling_price=dish.selling_price,
        margin=compute_margin(summary.total, dish.selling_price),
        lines=lines,
    )


def composite_unit_price(
    lines: Iterable[CostLine],
    yield_quantity: Optional[Decimal] = None,
) -> CompositeBreakdown:
    """
    Prix unitaire d'une preparation: cout total / rendement.

    Si un prix de base manque ou vaut 0, le prix unitaire vaut 0.
    Un rendement absent ou nul vaut 1.
    """
    lines = list(lines)
    total = ZERO
    has_missing_prices = False
    for line in lines:
        if line.unit_price is None or line.unit_price <= 0:
            has_missing_prices = True
        total += line.line_cost

    divisor = Decimal(yield_quantity) if yield_quantity else Decimal("1")
    unit_price = ZERO if has_missing_prices else total / divisor

    return CompositeBreakdown(
        unit_price=unit_price,
        total_cost=total,
        yield_quantity=divisor,
        has_missing_prices=has_missing_prices,
        lines=lines,
    )
