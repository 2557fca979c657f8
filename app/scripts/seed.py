"""
Script de seed pour Cocorico
Cree un jeu de donnees de demonstration: produits, fournisseurs, plats et menu

Usage:
    python -m app.scripts.seed

Le script est idempotent - peut etre relance sans effet
si les donnees existent deja.
"""
import sys
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.core.exceptions import AppException
from app.models.restaurant.menu import PrixFixe
from app.models.restaurant.product import Unit
from app.repositories.restaurant import (
    DishRepository,
    MenuRepository,
    ProductRepository,
    RecipeIngredientRepository,
    SupplierRepository,
)
from app.services.restaurant.dish import DishService
from app.services.restaurant.menu import MenuService


# ============================================
# Configuration du Seed
# ============================================

SEED_SUPPLIERS = [
    {"name": "Halles Rungis", "email": "commandes@halles-rungis.fr", "phone": "01 45 12 34 56"},
    {"name": "Ferme du Val", "email": "contact@fermeduval.fr", "phone": None},
]

SEED_PRODUCTS = [
    {"name": "Tomates", "quantity": "12", "unit": Unit.KG, "unit_price": "2.80",
     "par_level": "10", "category": "Legumes", "trackable": True},
    {"name": "Mozzarella", "quantity": "3", "unit": Unit.KG, "unit_price": "11.50",
     "par_level": "5", "category": "Cremerie", "trackable": True},
    {"name": "Basilic", "quantity": "4", "unit": Unit.BUNCH, "unit_price": "1.20",
     "par_level": "6", "category": "Herbes", "trackable": True},
    {"name": "Huile d'olive", "quantity": "5", "unit": Unit.L, "unit_price": "9.00",
     "par_level": "2", "category": "Epicerie", "trackable": True},
    {"name": "Poulet fermier", "quantity": "8", "unit": Unit.KG, "unit_price": "9.90",
     "par_level": "6", "category": "Viandes", "trackable": True},
    {"name": "Ail", "quantity": "20", "unit": Unit.CLOVE, "unit_price": "0.10",
     "par_level": None, "category": "Legumes", "trackable": False},
    {"name": "Creme fraiche", "quantity": "2", "unit": Unit.L, "unit_price": "4.20",
     "par_level": "3", "category": "Cremerie", "trackable": True},
    {"name": "Fraises", "quantity": "1.5", "unit": Unit.KG, "unit_price": "7.50",
     "par_level": "2", "category": "Fruits", "trackable": True},
]

SEED_DISHES = [
    {
        "name": "Salade caprese",
        "selling_price": "9.50",
        "description": "Tomates, mozzarella et basilic",
        "ingredients": [
            ("Tomates", "0.2", Unit.KG),
            ("Mozzarella", "0.125", Unit.KG),
            ("Basilic", "0.25", Unit.BUNCH),
            ("Huile d'olive", "0.02", Unit.L),
        ],
    },
    {
        "name": "Poulet a l'ail",
        "selling_price": "18.00",
        "description": None,
        "ingredients": [
            ("Poulet fermier", "0.3", Unit.KG),
            ("Ail", "4", Unit.CLOVE),
            ("Creme fraiche", "0.05", Unit.L),
        ],
    },
    {
        "name": "Fraises chantilly",
        "selling_price": "7.00",
        "description": None,
        "ingredients": [
            ("Fraises", "0.15", Unit.KG),
            ("Creme fraiche", "0.05", Unit.L),
        ],
    },
]

SEED_MENU = {
    "name": "Menu du marche",
    "description": "Entree, plat et dessert",
    "fixed_price": "29.00",
    "sections": [
        ("Entrees", ["Salade caprese"]),
        ("Plats", ["Poulet a l'ail"]),
        ("Desserts", ["Fraises chantilly"]),
    ],
}


# ============================================
# Fonctions Utilitaires
# ============================================

def print_banner():
    """Affiche le banner du script"""
    print("=" * 60)
    print("           Cocorico - Script de Seed")
    print("=" * 60)
    print()


def print_success(message: str):
    print(f"  + {message}")


def print_info(message: str):
    print(f"  - {message}")


def print_warning(message: str):
    print(f"  ! {message}")


def print_error(message: str):
    print(f"  x {message}")


# ============================================
# Fonctions de Seed
# ============================================

def seed_suppliers(session: Session) -> None:
    print("\n[1/4] Creation des fournisseurs...")
    supplier_repo = SupplierRepository(session)

    for data in SEED_SUPPLIERS:
        existing = supplier_repo.get_by_name(data["name"])
        if existing:
            print_info(f"Fournisseur '{data['name']}' existe deja (ID: {existing.id})")
            continue
        supplier = supplier_repo.create(data)
        print_success(f"Fournisseur '{data['name']}' cree (ID: {supplier.id})")


def seed_products(session: Session) -> dict:
    """
    Cree les produits de demonstration.

    Returns:
        Dict nom -> Product
    """
    print("\n[2/4] Creation des produits...")
    product_repo = ProductRepository(session)
    products = {}

    for data in SEED_PRODUCTS:
        existing = product_repo.get_by_name(data["name"])
        if existing:
            print_info(f"Produit '{data['name']}' existe deja (ID: {existing.id})")
            products[data["name"]] = existing
            continue

        product = product_repo.create({
            "name": data["name"],
            "quantity": Decimal(data["quantity"]),
            "unit": data["unit"],
            "unit_price": Decimal(data["unit_price"]),
            "par_level": Decimal(data["par_level"]) if data["par_level"] else None,
            "category": data["category"],
            "trackable": data["trackable"],
        })
        print_success(f"Produit '{data['name']}' cree (ID: {product.id})")
        products[data["name"]] = product

    return products


def seed_dishes(session: Session, products: dict) -> dict:
    print("\n[3/4] Creation des plats...")
    dish_repo = DishRepository(session)
    service = DishService(dish_repo, RecipeIngredientRepository(session), ProductRepository(session))
    dishes = {}

    for data in SEED_DISHES:
        existing = dish_repo.get_by_name_insensitive(data["name"])
        if existing:
            print_info(f"Plat '{data['name']}' existe deja (ID: {existing.id})")
            dishes[data["name"]] = existing
            continue

        dish = service.create_dish(
            name=data["name"],
            selling_price=Decimal(data["selling_price"]),
            description=data["description"],
            ingredients=[
                {
                    "product_id": products[name].id,
                    "quantity_required": Decimal(quantity),
                    "unit": unit,
                }
                for name, quantity, unit in data["ingredients"]
            ],
        )
        print_success(f"Plat '{data['name']}' cree (ID: {dish.id})")
        dishes[data["name"]] = dish

    return dishes


def seed_menu(session: Session, dishes: dict) -> None:
    print("\n[4/4] Creation du menu...")
    menu_repo = MenuRepository(session)

    if menu_repo.list_menus(search=SEED_MENU["name"]):
        print_info(f"Menu '{SEED_MENU['name']}' existe deja")
        return

    service = MenuService(menu_repo, DishRepository(session))
    menu = service.create_menu(
        name=SEED_MENU["name"],
        description=SEED_MENU["description"],
        pricing=PrixFixe(fixed_price=Decimal(SEED_MENU["fixed_price"])),
        sections=[
            {"name": name, "dishes": [{"dish_id": dishes[d].id} for d in dish_names]}
            for name, dish_names in SEED_MENU["sections"]
        ],
    )
    print_success(f"Menu '{SEED_MENU['name']}' cree (ID: {menu.id})")


def verify_tables_exist(session: Session) -> bool:
    """Verifie que les tables necessaires existent"""
    try:
        session.execute(text("SELECT 1 FROM products LIMIT 1"))
        session.execute(text("SELECT 1 FROM menus LIMIT 1"))
        return True
    except SQLAlchemyError as e:
        print_error(f"Tables manquantes: {e}")
        print_warning("Executez d'abord: alembic upgrade head")
        return False


# ============================================
# Main
# ============================================

def main():
    """Point d'entree principal du script de seed"""
    print_banner()

    session = SessionLocal()

    try:
        print("Verification des tables...")
        if not verify_tables_exist(session):
            return 1

        print_success("Tables OK")

        seed_suppliers(session)
        products = seed_products(session)
        dishes = seed_dishes(session, products)
        seed_menu(session, dishes)

        session.commit()

        print("\n" + "=" * 60)
        print("                 Seed termine avec succes!")
        print("=" * 60 + "\n")

        return 0

    except (SQLAlchemyError, AppException) as e:
        session.rollback()
        print_error(f"Erreur: {e}")
        import traceback
        traceback.print_exc()
        return 1

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
