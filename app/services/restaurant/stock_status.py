"""
Classification du niveau de stock et urgence des alertes.

Fonctions pures: elles ne font aucun acces DB et travaillent sur
des valeurs deja chargees par les repositories.

Regles de classification (la premiere qui s'applique gagne):
1. Demande des menus actifs (total_needed > 0): portions disponibles
   = floor(quantity / total_needed); <= 3 CRITICAL, < 10 LOW, sinon rien.
2. Niveau cible (par_level > 0): pourcentage du niveau cible;
   <= 25 CRITICAL, <= 50 LOW, sinon rien.
3. Aucune base de comparaison: rien.
"""
import enum
import math
from decimal import Decimal
from typing import Any, Iterable, List, Optional, TypeVar, Union

Number = Union[int, float, Decimal]

# Seuils en portions (regle menu)
CRITICAL_SERVINGS = 3
LOW_SERVINGS = 10

# Seuils en pourcentage du niveau cible
CRITICAL_PERCENT = 25
LOW_PERCENT = 50


class StockStatus(str, enum.Enum):
    """Etat d'alerte d'un produit."""
    CRITICAL = "critical"
    LOW = "low"


class AlertUrgency(str, enum.Enum):
    """Urgence d'une alerte du tableau de bord."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_URGENCY_RANK = {
    AlertUrgency.HIGH: 0,
    AlertUrgency.MEDIUM: 1,
    AlertUrgency.LOW: 2,
}


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def servings_available(quantity: Number, total_needed: Number) -> int:
    """Nombre de portions realisables avec le stock courant."""
    return math.floor(_to_decimal(quantity) / _to_decimal(total_needed))


def percent_of_par(quantity: Number, par_level: Number) -> Decimal:
    """Stock courant en pourcentage du niveau cible."""
    return _to_decimal(quantity) / _to_decimal(par_level) * 100


def classify_stock(
    quantity: Number,
    par_level: Optional[Number] = None,
    total_needed: Optional[Number] = None,
) -> Optional[StockStatus]:
    """
    Classe un niveau de stock.

    Args:
        quantity: Stock courant (>= 0)
        par_level: Niveau cible (ignore si absent ou <= 0)
        total_needed: Quantite requise par les menus actifs

    Returns:
        StockStatus.CRITICAL, StockStatus.LOW ou None
    """
    if total_needed is not None and _to_decimal(total_needed) > 0:
        servings = servings_available(quantity, total_needed)
        if servings <= CRITICAL_SERVINGS:
            return StockStatus.CRITICAL
        if servings < LOW_SERVINGS:
            return StockStatus.LOW
        return None

    if par_level is not None and _to_decimal(par_level) > 0:
        percent = percent_of_par(quantity, par_level)
        if percent <= CRITICAL_PERCENT:
            return StockStatus.CRITICAL
        if percent <= LOW_PERCENT:
            return StockStatus.LOW
        return None

    return None


def classify_product(product: Any, menu_demand: Optional[Number] = None) -> Optional[StockStatus]:
    """Classe un produit (objet avec quantity et par_level)."""
    return classify_stock(
        product.quantity,
        par_level=getattr(product, "par_level", None),
        total_needed=menu_demand,
    )


def low_stock_urgency(quantity: Number, par_level: Number) -> AlertUrgency:
    """
    Urgence d'une alerte de stock bas selon le pourcentage manquant.

    >= 80% manquant: HIGH, >= 50%: MEDIUM, sinon LOW.
    """
    par = _to_decimal(par_level)
    if par <= 0:
        return AlertUrgency.LOW
    percent_short = (par - _to_decimal(quantity)) / par * 100
    if percent_short >= 80:
        return AlertUrgency.HIGH
    if percent_short >= 50:
        return AlertUrgency.MEDIUM
    return AlertUrgency.LOW


def dispute_urgency(days_since: int) -> AlertUrgency:
    """Urgence d'un litige ouvert selon son anciennete en jours."""
    if days_since >= 7:
        return AlertUrgency.HIGH
    if days_since >= 3:
        return AlertUrgency.MEDIUM
    return AlertUrgency.LOW


T = TypeVar("T")


def sort_by_urgency(alerts: Iterable[T], key=lambda alert: alert.urgency) -> List[T]:
    """Tri stable HIGH, MEDIUM puis LOW."""
    return sorted(alerts, key=lambda alert: _URGENCY_RANK[AlertUrgency(key(alert))])
