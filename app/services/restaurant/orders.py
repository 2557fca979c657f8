"""
Service pour les suggestions de commande fournisseur.
"""
import logging
from typing import List

from app.repositories.restaurant.product import ProductRepository
from app.services.restaurant.reorder import (
    ReorderSuggestion,
    SupplierOrder,
    build_reorder_suggestions,
    candidate_from_product,
    group_by_supplier,
)

logger = logging.getLogger(__name__)


class OrderService:
    """Suggestions de reapprovisionnement a partir des niveaux cibles."""

    def __init__(self, product_repo: ProductRepository):
        self.product_repo = product_repo

    def get_suggestions(self) -> List[ReorderSuggestion]:
        """Produits suivis sous leur niveau cible, les plus urgents d'abord."""
        products = self.product_repo.get_reorder_candidates()
        suggestions = build_reorder_suggestions(candidate_from_product(p) for p in products)
        logger.debug(f"{len(suggestions)} suggestions sur {len(products)} produits suivis")
        return suggestions

    def get_orders_by_supplier(self) -> List[SupplierOrder]:
        return group_by_supplier(self.get_suggestions())
