"""Initial schema

Revision ID: a1c0f3e2d4b5
Revises:
Create Date: 2026-10-17

This migration creates the restaurant back-office tables:
- products / composite_ingredients: Inventaire et produits composes
- dishes / recipe_ingredients: Plats et recettes
- menus / menu_sections / menu_dishes: Cartes
- suppliers, bills, bill_products: Fournisseurs et factures
- sales: Ventes de plats
- disputes / dispute_products: Litiges fournisseurs
- stock_movements: Historique des mouvements de stock
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM


revision = 'a1c0f3e2d4b5'
down_revision = None
branch_labels = None
depends_on = None


UNIT_VALUES = ('KG', 'G', 'L', 'ML', 'CL', 'PC', 'BUNCH', 'CLOVE')

ENUM_TYPES = {
    'product_unit': UNIT_VALUES,
    'composite_unit': UNIT_VALUES,
    'recipe_unit': UNIT_VALUES,
    'menu_pricing_type': ('PRIX_FIXE', 'CHOICE'),
    'bill_status': ('PENDING', 'PROCESSED', 'DISPUTED'),
    'dispute_type': ('RETURN', 'COMPLAINT', 'REFUND'),
    'dispute_status': ('OPEN', 'IN_PROGRESS', 'RESOLVED', 'CLOSED'),
    'dispute_reason': ('MISSING', 'DAMAGED', 'WRONG_QUANTITY', 'WRONG_PRODUCT', 'QUALITY'),
    'movement_type': ('IN', 'OUT', 'ADJUSTMENT', 'WASTE'),
    'movement_source': ('MANUAL', 'SCAN_RECEPTION', 'SCAN_SALES', 'RECIPE_DEDUCTION', 'SYSTEM_ADJUSTMENT'),
}


def _enum(name: str) -> ENUM:
    return ENUM(*ENUM_TYPES[name], name=name, create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create restaurant tables."""

    # ========================================
    # 1. CREATE ENUMS
    # ========================================
    statements = []
    for name, values in ENUM_TYPES.items():
        labels = ", ".join(f"'{v}'" for v in values)
        statements.append(
            f"IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{name}') THEN\n"
            f"                CREATE TYPE {name} AS ENUM ({labels});\n"
            f"            END IF;"
        )
    op.execute(
        "DO $$\n        BEGIN\n            "
        + "\n            ".join(statements)
        + "\n        END$$;"
    )

    # ========================================
    # 2. PRODUCTS
    # ========================================
    op.create_table(
        'products',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True),
        sa.Column('quantity', sa.Numeric(10, 3), nullable=False, server_default='0'),
        sa.Column('unit', _enum('product_unit'), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('par_level', sa.Numeric(10, 3), nullable=True),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('trackable', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_composite', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('yield_quantity', sa.Numeric(10, 3), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'composite_ingredients',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('composite_product_id', sa.BigInteger(),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('base_product_id', sa.BigInteger(),
                  sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 3), nullable=False),
        sa.Column('unit', _enum('composite_unit'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_composite_ingredients_composite_product_id', 'composite_ingredients', ['composite_product_id'])

    # ========================================
    # 3. DISHES & RECIPES
    # ========================================
    op.create_table(
        'dishes',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('selling_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )

    op.create_table(
        'recipe_ingredients',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('dish_id', sa.BigInteger(),
                  sa.ForeignKey('dishes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.BigInteger(),
                  sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity_required', sa.Numeric(10, 3), nullable=False),
        sa.Column('unit', _enum('recipe_unit'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_recipe_ingredients_dish_id', 'recipe_ingredients', ['dish_id'])
    op.create_index('ix_recipe_ingredients_product_id', 'recipe_ingredients', ['product_id'])

    # ========================================
    # 4. MENUS
    # ========================================
    op.create_table(
        'menus',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('pricing_type', _enum('menu_pricing_type'), nullable=False, server_default='PRIX_FIXE'),
        sa.Column('fixed_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('min_courses', sa.Integer(), nullable=True),
        sa.Column('max_courses', sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'menu_sections',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('menu_id', sa.BigInteger(),
                  sa.ForeignKey('menus.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_menu_sections_menu_id', 'menu_sections', ['menu_id'])

    op.create_table(
        'menu_dishes',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('section_id', sa.BigInteger(),
                  sa.ForeignKey('menu_sections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('dish_id', sa.BigInteger(),
                  sa.ForeignKey('dishes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_menu_dishes_section_id', 'menu_dishes', ['section_id'])
    op.create_index('ix_menu_dishes_dish_id', 'menu_dishes', ['dish_id'])

    # ========================================
    # 5. SUPPLIERS & BILLS
    # ========================================
    op.create_table(
        'suppliers',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'bills',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('supplier_id', sa.BigInteger(),
                  sa.ForeignKey('suppliers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('bill_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', _enum('bill_status'), nullable=False, server_default='PENDING'),
        sa.Column('raw_content', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_bills_supplier_id', 'bills', ['supplier_id'])

    op.create_table(
        'bill_products',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('bill_id', sa.BigInteger(),
                  sa.ForeignKey('bills.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.BigInteger(),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 3), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_bill_products_bill_id', 'bill_products', ['bill_id'])
    op.create_index('ix_bill_products_product_id', 'bill_products', ['product_id'])

    # ========================================
    # 6. SALES
    # ========================================
    op.create_table(
        'sales',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('dish_id', sa.BigInteger(),
                  sa.ForeignKey('dishes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity_sold', sa.Integer(), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_sales_dish_id', 'sales', ['dish_id'])
    op.create_index('ix_sales_sale_date', 'sales', ['sale_date'])

    # ========================================
    # 7. DISPUTES
    # ========================================
    op.create_table(
        'disputes',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('bill_id', sa.BigInteger(),
                  sa.ForeignKey('bills.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', _enum('dispute_type'), nullable=False),
        sa.Column('status', _enum('dispute_status'), nullable=False, server_default='OPEN'),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('amount_disputed', sa.Numeric(10, 2), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_disputes_bill_id', 'disputes', ['bill_id'])

    op.create_table(
        'dispute_products',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('dispute_id', sa.BigInteger(),
                  sa.ForeignKey('disputes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.BigInteger(),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity_disputed', sa.Numeric(10, 3), nullable=False),
        sa.Column('reason', _enum('dispute_reason'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_dispute_products_dispute_id', 'dispute_products', ['dispute_id'])

    # ========================================
    # 8. STOCK MOVEMENTS
    # ========================================
    op.create_table(
        'stock_movements',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('product_id', sa.BigInteger(),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('movement_type', _enum('movement_type'), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 3), nullable=False),
        sa.Column('balance_after', sa.Numeric(10, 3), nullable=False),
        sa.Column('reason', sa.String(200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('source', _enum('movement_source'), nullable=False, server_default='MANUAL'),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('bill_id', sa.BigInteger(),
                  sa.ForeignKey('bills.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sale_id', sa.BigInteger(),
                  sa.ForeignKey('sales.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_stock_movements_product_id', 'stock_movements', ['product_id'])
    op.create_index('ix_stock_movements_created_at', 'stock_movements', ['created_at'])


def downgrade() -> None:
    """Drop restaurant tables."""
    tables = [
        'stock_movements',
        'dispute_products',
        'disputes',
        'sales',
        'bill_products',
        'bills',
        'suppliers',
        'menu_dishes',
        'menu_sections',
        'menus',
        'recipe_ingredients',
        'dishes',
        'composite_ingredients',
        'products',
    ]
    for table in tables:
        op.drop_table(table)

    for name in reversed(list(ENUM_TYPES)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
