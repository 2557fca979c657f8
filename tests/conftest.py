"""
Configuration globale pytest pour Cocorico API
Fixtures partagees entre tous les tests

Environnement de test (ENV=test):
- Validation stricte de la configuration desactivee (app/main.py)
- Tests unitaires: services et repositories simules, pas de DB
- Tests integration/e2e: vraie DB, ignores si elle est injoignable
"""
import os
import uuid
import pytest
from decimal import Decimal
from typing import Generator, Dict, Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

# Configuration environnement de test
os.environ["ENV"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"

from app.core.config import get_settings, Settings
from app.core.dependencies import get_db
from app.main import app


# ============================================
# Configuration Base de Donnees Test
# ============================================

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings pour environnement de test"""
    return get_settings()


@pytest.fixture(scope="session")
def test_db_url(test_settings: Settings) -> str:
    """URL de la base de donnees de test"""
    return test_settings.DATABASE_URL


@pytest.fixture(scope="session")
def db_engine(test_db_url: str):
    """
    Engine SQLAlchemy pour les tests.
    Les tests qui en dependent sont ignores si la DB est injoignable.
    """
    engine = create_engine(
        test_db_url,
        pool_pre_ping=True,
        echo=False  # Mettre True pour debug SQL
    )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as exc:
        engine.dispose()
        pytest.skip(f"Base de donnees de test indisponible: {exc.orig}")

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Session de DB pour les tests.
    Rien n'est commite: rollback a la fin de chaque test.
    """
    TestSessionLocal = sessionmaker(bind=db_engine, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


# ============================================
# Client API Test
# ============================================

@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    TestClient FastAPI avec override de get_db.
    Toutes les requetes d'un test partagent la session de test.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================
# Fixtures Donnees de Test
# ============================================

@pytest.fixture
def unique_name():
    """Genere des noms uniques (les noms de produit sont uniques en base)."""
    def _make(prefix: str) -> str:
        return f"{prefix} {uuid.uuid4().hex[:8]}"
    return _make


@pytest.fixture
def sample_product_data(unique_name) -> Dict[str, Any]:
    """Donnees produit valides pour creation"""
    return {
        "name": unique_name("Tomates"),
        "unit": "KG",
        "quantity": "10",
        "unit_price": "2.50",
        "par_level": "8",
        "category": "Legumes",
        "trackable": True,
    }


@pytest.fixture
def sample_dish_data(unique_name) -> Dict[str, Any]:
    """Donnees plat valides (sans recette)"""
    return {
        "name": unique_name("Salade"),
        "selling_price": "12.00",
    }


@pytest.fixture
def invalid_units() -> list:
    """Unites refusees par l'API"""
    return ["", "kilo", "BARREL", "LB"]


@pytest.fixture
def sample_receipt_items() -> list:
    """Lignes de ticket de caisse deja revues"""
    return [
        {"name": "Burger", "quantity": 2},
        {"name": "Frites", "quantity": 3},
    ]


@pytest.fixture
def decimal_close():
    """Comparaison de quantites serialisees en chaine"""
    def _close(value, expected, places: int = 3) -> bool:
        return round(Decimal(str(value)), places) == round(Decimal(str(expected)), places)
    return _close


# ============================================
# Markers pytest
# ============================================

def pytest_configure(config):
    """Configuration des markers personnalises"""
    config.addinivalue_line(
        "markers", "unit: Tests unitaires (pas de DB)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests integration (avec DB)"
    )
    config.addinivalue_line(
        "markers", "e2e: Tests end-to-end (API complete)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests lents (> 1s)"
    )
