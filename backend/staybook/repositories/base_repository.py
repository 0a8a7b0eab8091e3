# backend/staybook/repositories/base_repository.py
"""
Base Repository Pattern for staybook

Provides the foundation for the listing, booking and payment repositories:
- Common CRUD operations
- Type safety with generics
- Transaction boundaries owned by services (repositories only flush)
- Uniform wrapping of SQLAlchemy failures in RepositoryException
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import supports_row_locks

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """
    Abstract repository interface defining core data access methods.

    Services depend on this surface only, so tests can hand them fakes.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """
        Retrieve an entity by its primary key.

        Returns:
            The entity if found, None otherwise
        """

    @abstractmethod
    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Raises:
            RepositoryException: If creation fails
        """

    @abstractmethod
    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """
        Update an existing entity.

        Returns:
            The updated entity if found, None otherwise
        """

    @abstractmethod
    def delete(self, id: str) -> bool:
        """
        Delete an entity by its primary key.

        Returns:
            True if deleted, False if not found
        """


class BaseRepository(IRepository[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session (transaction managed by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def supports_row_locks(self) -> bool:
        return supports_row_locks(self.db)

    def get_by_id(self, id: str) -> Optional[T]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}") from e

    def get_for_update(self, id: str) -> Optional[T]:
        """
        Retrieve an entity and lock its row until the transaction ends.

        Falls back to a plain read on dialects without row locks.
        """
        try:
            query = self._build_query().filter(self.model.id == id)  # type: ignore[attr-defined]
            if self.supports_row_locks:
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to lock {self.model.__name__}") from e

    def get_by_ids(self, ids: Iterable[str]) -> List[T]:
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return []
        return self._execute_query(
            self._build_query().filter(self.model.id.in_(id_list))  # type: ignore[attr-defined]
        )

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(
                f"Integrity constraint violated creating {self.model.__name__}"
            ) from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}") from e

    def bulk_create(self, entities: List[Dict[str, Any]]) -> List[T]:
        """
        Insert many entities with a single flush.

        Args:
            entities: List of entity data dictionaries

        Returns:
            List of created entities (ids assigned)
        """
        if not entities:
            return []
        try:
            db_entities = [self.model(**data) for data in entities]
            self.db.add_all(db_entities)
            self.db.flush()
            return db_entities
        except IntegrityError as exc:
            self.logger.error("Integrity error bulk creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(
                f"Integrity constraint violated bulk creating {self.model.__name__}"
            ) from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error bulk creating: {str(e)}")
            raise RepositoryException(f"Failed to bulk create {self.model.__name__}") from e

    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """
        Update an existing entity.

        Only updates provided fields, preserves others.
        """
        try:
            entity = self.get_by_id(id)
            if not entity:
                return None

            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)

            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error updating %s %s: %s", self.model.__name__, id, exc)
            raise RepositoryException(
                f"Integrity constraint violated updating {self.model.__name__}"
            ) from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to update {self.model.__name__}") from e

    def delete(self, id: str) -> bool:
        """
        Delete an entity by its primary key.

        Returns False if entity not found, raises exception for constraint violations.
        """
        try:
            entity = self.get_by_id(id)
            if not entity:
                return False

            self.db.delete(entity)
            self.db.flush()
            return True
        except IntegrityError as e:
            self.logger.error(
                f"Cannot delete {self.model.__name__} {id} due to constraints: {str(e)}"
            )
            raise RepositoryException("Cannot delete due to existing references") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to delete {self.model.__name__}") from e

    # Protected helper methods for use by subclasses

    def _build_query(self) -> Query:
        """Get base query for the model."""
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException("Query failed") from e
