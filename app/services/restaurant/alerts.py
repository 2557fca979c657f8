"""
Service pour les alertes et les indicateurs du tableau de bord.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from app.models.base import utc_now
from app.repositories.restaurant.bill import BillRepository
from app.repositories.restaurant.dispute import DisputeRepository
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.stock_status import (
    AlertUrgency,
    dispute_urgency,
    low_stock_urgency,
    sort_by_urgency,
)


class AlertType(str, enum.Enum):
    LOW_STOCK = "lowStock"
    DISPUTE = "dispute"


@dataclass
class Alert:
    id: str
    type: AlertType
    title: str
    description: str
    urgency: AlertUrgency
    href: str
    badge: Optional[str] = None


@dataclass
class DashboardStats:
    total_products: int
    low_stock_count: int
    bills_count: int
    open_disputes_count: int


def _is_low(product) -> bool:
    return bool(product.par_level) and product.quantity < product.par_level


class AlertService:
    """
    Agregation des alertes de stock et de litiges.

    Les alertes sont triees par urgence (HIGH, MEDIUM, LOW), l'ordre
    d'origine departage les egalites.
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        dispute_repo: DisputeRepository,
        bill_repo: BillRepository,
    ):
        self.product_repo = product_repo
        self.dispute_repo = dispute_repo
        self.bill_repo = bill_repo

    def get_alerts(self, now: Optional[datetime] = None) -> List[Alert]:
        now = now or utc_now()
        alerts = []

        for product in self.product_repo.list_products():
            if not _is_low(product):
                continue
            alerts.append(Alert(
                id=f"stock-{product.id}",
                type=AlertType.LOW_STOCK,
                title=product.name,
                description=f"{product.quantity} / {product.par_level} {product.unit.value}",
                urgency=low_stock_urgency(product.quantity, product.par_level),
                href="/inventory",
                badge="low",
            ))

        for dispute in self.dispute_repo.get_open():
            days = max((now - dispute.created_at).days, 0)
            alerts.append(Alert(
                id=f"dispute-{dispute.id}",
                type=AlertType.DISPUTE,
                title=dispute.title,
                description=f"{dispute.type.value} on bill {dispute.bill.filename}",
                urgency=dispute_urgency(days),
                href=f"/disputes/{dispute.id}",
                badge=f"{days}d",
            ))

        return sort_by_urgency(alerts)

    @staticmethod
    def count_by_type(alerts: List[Alert]) -> Dict[str, int]:
        return {
            "all": len(alerts),
            AlertType.LOW_STOCK.value: sum(1 for a in alerts if a.type == AlertType.LOW_STOCK),
            AlertType.DISPUTE.value: sum(1 for a in alerts if a.type == AlertType.DISPUTE),
        }

    def get_stats(self) -> DashboardStats:
        products = self.product_repo.list_products()
        return DashboardStats(
            total_products=len(products),
            low_stock_count=sum(1 for p in products if _is_low(p)),
            bills_count=self.bill_repo.count(),
            open_disputes_count=self.dispute_repo.count_open(),
        )
