"""
Base Repository generique pour Cocorico API
Fournit les operations CRUD de base pour tous les models

Les repositories ne font que flush(): le commit est gere par
la dependance get_db a la fin de la requete.
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.base import Base

logger = logging.getLogger(__name__)

# Type generique pour le model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository generique avec operations CRUD

    Usage:
        class ProductRepository(BaseRepository[Product]):
            model = Product
    """

    # Type du model - doit etre defini dans les sous-classes
    model: Type[ModelType]

    def __init__(self, session: Session):
        """
        Initialise le repository avec une session DB

        Args:
            session: Session SQLAlchemy active
        """
        self.session = session

    def get(self, id: int) -> Optional[ModelType]:
        """
        Recupere un objet par son ID

        Args:
            id: ID de l'objet

        Returns:
            L'objet trouve ou None
        """
        return self.session.get(self.model, id)

    def get_by_id(self, id: int) -> Optional[ModelType]:
        """Alias pour get() - recupere un objet par son ID"""
        return self.get(id)

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        Recupere tous les objets avec pagination

        Args:
            skip: Nombre d'objets a sauter (offset)
            limit: Nombre maximum d'objets a retourner
        """
        return (
            self.session.query(self.model)
            .order_by(self.model.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create(self, data: Dict[str, Any]) -> ModelType:
        """
        Cree un nouvel objet

        Args:
            data: Dictionnaire avec les donnees de l'objet

        Returns:
            L'objet cree
        """
        obj = self.model(**data)
        self.session.add(obj)
        self.session.flush()  # Pour obtenir l'ID
        return obj

    def update(
        self,
        id: int,
        data: Dict[str, Any]
    ) -> Optional[ModelType]:
        """
        Met a jour un objet existant

        Returns:
            L'objet mis a jour ou None si non trouve
        """
        obj = self.get_by_id(id)
        if obj is None:
            return None

        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        self.session.flush()
        return obj

    def delete(self, id: int) -> bool:
        """
        Supprime un objet par son ID

        Returns:
            True si supprime, False si non trouve
        """
        obj = self.get_by_id(id)
        if obj is None:
            return False

        self.session.delete(obj)
        self.session.flush()
        return True

    def count(self) -> int:
        """Compte le nombre total d'objets"""
        return self.session.query(func.count(self.model.id)).scalar() or 0

    def exists(self, id: int) -> bool:
        """Verifie si un objet existe"""
        return self.get_by_id(id) is not None
