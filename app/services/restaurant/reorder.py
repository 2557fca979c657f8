"""
Construction des suggestions de commande.

Un produit est suggere lorsque son stock est strictement sous son
niveau cible. La quantite suggeree ramene le stock au niveau cible
(arrondie a l'unite superieure). Les suggestions sont triees du plus
urgent (plus petit pourcentage du niveau cible) au moins urgent.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from app.models.restaurant.product import Unit

UNKNOWN_SUPPLIER_KEY = "unknown"
UNKNOWN_SUPPLIER_NAME = "Unknown supplier"


@dataclass(frozen=True)
class ReorderCandidate:
    """Produit suivi avec le dernier fournisseur connu."""
    product_id: int
    product_name: str
    quantity: Decimal
    par_level: Optional[Decimal]
    unit: Unit
    unit_price: Optional[Decimal] = None
    category: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None


@dataclass(frozen=True)
class ReorderSuggestion:
    product_id: int
    product_name: str
    current_quantity: Decimal
    par_level: Decimal
    unit: Unit
    suggested_quantity: int
    percent_of_par: Decimal
    last_price: Optional[Decimal] = None
    category: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None

    @property
    def estimated_cost(self) -> Optional[Decimal]:
        if self.last_price is None:
            return None
        return self.last_price * self.suggested_quantity


@dataclass
class SupplierOrder:
    """Suggestions regroupees pour un fournisseur."""
    supplier_id: Optional[int]
    supplier_name: str
    items: List[ReorderSuggestion] = field(default_factory=list)

    @property
    def key(self) -> str:
        return str(self.supplier_id) if self.supplier_id is not None else UNKNOWN_SUPPLIER_KEY

    @property
    def total_cost(self) -> Decimal:
        """Somme prix x quantite, les articles sans prix sont ignores."""
        return sum(
            (item.estimated_cost for item in self.items if item.estimated_cost is not None),
            Decimal("0"),
        )


def candidate_from_product(product) -> ReorderCandidate:
    """
    Construit un candidat a partir d'un Product charge avec ses lignes
    de facture; le fournisseur est celui de la ligne la plus recente.
    """
    supplier_id = None
    supplier_name = None
    lines = [line for line in (product.bill_products or []) if line.bill is not None]
    if lines:
        latest = max(lines, key=lambda line: (line.created_at, line.id))
        if latest.bill.supplier is not None:
            supplier_id = latest.bill.supplier.id
            supplier_name = latest.bill.supplier.name

    return ReorderCandidate(
        product_id=product.id,
        product_name=product.name,
        quantity=product.quantity,
        par_level=product.par_level,
        unit=product.unit,
        unit_price=product.unit_price,
        category=product.category,
        supplier_id=supplier_id,
        supplier_name=supplier_name,
    )


def build_reorder_suggestions(candidates: Iterable[ReorderCandidate]) -> List[ReorderSuggestion]:
    """Suggestions pour les candidats sous leur niveau cible, les plus urgents d'abord."""
    suggestions = []
    for candidate in candidates:
        if candidate.par_level is None or candidate.par_level <= 0:
            continue
        quantity = Decimal(candidate.quantity)
        par_level = Decimal(candidate.par_level)
        if quantity >= par_level:
            continue

        suggestions.append(ReorderSuggestion(
            product_id=candidate.product_id,
            product_name=candidate.product_name,
            current_quantity=quantity,
            par_level=par_level,
            unit=candidate.unit,
            suggested_quantity=math.ceil(par_level - quantity),
            percent_of_par=quantity / par_level * 100,
            last_price=candidate.unit_price,
            category=candidate.category,
            supplier_id=candidate.supplier_id,
            supplier_name=candidate.supplier_name,
        ))

    # sorted() est stable: l'ordre d'entree departage les egalites
    return sorted(suggestions, key=lambda s: s.percent_of_par)


def group_by_supplier(suggestions: Iterable[ReorderSuggestion]) -> List[SupplierOrder]:
    """Regroupe les suggestions par fournisseur, dans l'ordre de premiere apparition."""
    groups: Dict[str, SupplierOrder] = {}
    for suggestion in suggestions:
        key = str(suggestion.supplier_id) if suggestion.supplier_id is not None else UNKNOWN_SUPPLIER_KEY
        if key not in groups:
            groups[key] = SupplierOrder(
                supplier_id=suggestion.supplier_id,
                supplier_name=suggestion.supplier_name or UNKNOWN_SUPPLIER_NAME,
            )
        groups[key].items.append(suggestion)
    return list(groups.values())
