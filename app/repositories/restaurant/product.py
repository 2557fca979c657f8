"""
Repository pour Product et CompositeIngredient.
"""
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select, func, exists
from sqlalchemy.orm import joinedload

from app.models.restaurant.product import Product, CompositeIngredient
from app.models.restaurant.dish import Dish, RecipeIngredient
from app.models.restaurant.menu import Menu, MenuSection, MenuDish
from app.models.restaurant.bill import Bill, BillProduct
from app.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Repository pour les produits en stock."""

    model = Product

    def get_by_name(self, name: str) -> Optional[Product]:
        """Recupere un produit par nom exact."""
        stmt = select(Product).where(Product.name == name)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_name_insensitive(self, name: str) -> Optional[Product]:
        """Recupere un produit par nom, sans tenir compte de la casse."""
        stmt = select(Product).where(func.lower(Product.name) == name.strip().lower())
        return self.session.execute(stmt).scalars().first()

    def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        trackable: Optional[bool] = None,
    ) -> List[Product]:
        """Liste les produits avec filtres optionnels, tries par nom."""
        stmt = select(Product)
        if search:
            stmt = stmt.where(Product.name.ilike(f"%{search}%"))
        if category:
            stmt = stmt.where(Product.category == category)
        if trackable is not None:
            stmt = stmt.where(Product.trackable == trackable)
        stmt = stmt.order_by(Product.name)
        return list(self.session.execute(stmt).scalars().all())

    def get_with_composition(self, product_id: int) -> Optional[Product]:
        """Recupere un produit compose avec ses ingredients de base."""
        stmt = (
            select(Product)
            .options(
                joinedload(Product.composite_ingredients)
                .joinedload(CompositeIngredient.base_product)
            )
            .where(Product.id == product_id)
        )
        return self.session.execute(stmt).unique().scalar_one_or_none()

    def get_reorder_candidates(self) -> List[Product]:
        """
        Recupere les produits suivis ayant un niveau cible,
        avec leurs lignes de facture et fournisseurs.
        """
        stmt = (
            select(Product)
            .options(
                joinedload(Product.bill_products)
                .joinedload(BillProduct.bill)
                .joinedload(Bill.supplier)
            )
            .where(
                Product.trackable == True,
                Product.par_level.is_not(None)
            )
            .order_by(Product.name)
        )
        return list(self.session.execute(stmt).unique().scalars().all())

    def is_in_use(self, product_id: int) -> bool:
        """Le produit est-il reference par une recette ou une preparation."""
        in_recipe = select(
            exists().where(RecipeIngredient.product_id == product_id)
        )
        in_composite = select(
            exists().where(CompositeIngredient.base_product_id == product_id)
        )
        return bool(
            self.session.execute(in_recipe).scalar()
            or self.session.execute(in_composite).scalar()
        )

    def get_menu_demand(self) -> Dict[int, Decimal]:
        """
        Somme des quantites requises par produit pour les plats actifs
        presents dans au moins un menu actif.

        Returns:
            {product_id: total_needed}
        """
        active_dish_ids = (
            select(MenuDish.dish_id)
            .join(MenuSection, MenuDish.section_id == MenuSection.id)
            .join(Menu, MenuSection.menu_id == Menu.id)
            .where(Menu.is_active == True)
            .distinct()
        )
        stmt = (
            select(
                RecipeIngredient.product_id,
                func.sum(RecipeIngredient.quantity_required)
            )
            .join(Dish, RecipeIngredient.dish_id == Dish.id)
            .where(
                Dish.is_active == True,
                Dish.id.in_(active_dish_ids)
            )
            .group_by(RecipeIngredient.product_id)
        )
        return {
            product_id: Decimal(total)
            for product_id, total in self.session.execute(stmt).all()
            if total is not None
        }


class CompositeIngredientRepository(BaseRepository[CompositeIngredient]):
    """Repository pour les ingredients des preparations."""

    model = CompositeIngredient

    def get_by_composite(self, composite_product_id: int) -> List[CompositeIngredient]:
        stmt = (
            select(CompositeIngredient)
            .options(joinedload(CompositeIngredient.base_product))
            .where(CompositeIngredient.composite_product_id == composite_product_id)
            .order_by(CompositeIngredient.id)
        )
        return list(self.session.execute(stmt).scalars().all())
