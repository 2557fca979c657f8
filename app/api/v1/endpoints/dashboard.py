"""
API Endpoints Tableau de bord.
Alertes (stock bas, litiges ouverts) et indicateurs.
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.repositories.restaurant.bill import BillRepository
from app.repositories.restaurant.dispute import DisputeRepository
from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.alerts import AlertService, AlertType
from app.services.restaurant.stock_status import AlertUrgency

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


class AlertResponse(BaseModel):
    id: str
    type: AlertType
    title: str
    description: str
    urgency: AlertUrgency
    href: str
    badge: Optional[str] = None

    class Config:
        from_attributes = True


class AlertsResponse(BaseModel):
    alerts: List[AlertResponse]
    counts: Dict[str, int]


class DashboardStatsResponse(BaseModel):
    total_products: int
    low_stock_count: int
    bills_count: int
    open_disputes_count: int

    class Config:
        from_attributes = True


def get_alert_service(db: Session = Depends(get_db)) -> AlertService:
    """Fournit le service d'alertes."""
    return AlertService(ProductRepository(db), DisputeRepository(db), BillRepository(db))


@router.get("/alerts", response_model=AlertsResponse, summary="Alertes")
def list_alerts(service: AlertService = Depends(get_alert_service)):
    """Alertes triees par urgence, avec le decompte par type."""
    alerts = service.get_alerts()
    return {"alerts": alerts, "counts": service.count_by_type(alerts)}


@router.get("/stats", response_model=DashboardStatsResponse, summary="Indicateurs")
def get_stats(service: AlertService = Depends(get_alert_service)):
    return service.get_stats()
