"""
Factories FactoryBoy pour les tests.

Ces factories permettent de créer des objets de test de manière
indépendante du seed de données, avec des valeurs réalistes.

Usage:
    from tests.factories import ProductFactory, DishFactory

    product = ProductFactory.build()
    dish = DishFactory.create(db_session=db_session)
"""
from tests.factories.product import ProductFactory, SupplierFactory
from tests.factories.dish import DishFactory, RecipeIngredientFactory
from tests.factories.bill import BillFactory

__all__ = [
    "ProductFactory",
    "SupplierFactory",
    "DishFactory",
    "RecipeIngredientFactory",
    "BillFactory",
]
