"""
Router principal API v1 pour Cocorico
Combine tous les endpoints v1

Endpoints disponibles:
- /products: Inventaire, ajustements, preparations
- /stock: Statut du stock
- /dishes: Plats et fiches techniques
- /menus: Menus, sections et cout matiere
- /bills: Factures fournisseurs (OCR, confirmation)
- /sales: Ventes et tickets de caisse
- /disputes: Litiges fournisseurs
- /orders: Suggestions de commande
- /dashboard: Alertes et indicateurs
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    products,
    dishes,
    menus,
    bills,
    sales,
    disputes,
    orders,
    dashboard,
)


# Router principal v1
api_router = APIRouter()

# Inclusion des routers d'endpoints
api_router.include_router(products.router)
api_router.include_router(products.stock_router)
api_router.include_router(dishes.router)
api_router.include_router(menus.router)
api_router.include_router(bills.router)
api_router.include_router(sales.router)
api_router.include_router(disputes.router)
api_router.include_router(orders.router)
api_router.include_router(dashboard.router)
