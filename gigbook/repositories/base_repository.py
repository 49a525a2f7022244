# gigbook/repositories/base_repository.py
"""
Base repository for the booking engine.

Repositories own data access only. They flush but never commit: the
service layer decides transaction boundaries. Every SQLAlchemy error is
wrapped in RepositoryException so services can tell storage failures
apart from domain errors.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Common data access patterns shared by all repositories.

    Attributes:
        db: SQLAlchemy session (owned by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""
        try:
            return self.db.query(self.model).filter(self.model.id == id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def get_for_update(self, id: str) -> Optional[T]:
        """
        Retrieve an entity and lock its row until the transaction ends.

        SQLite renders no FOR UPDATE clause; the compare-and-swap helpers
        still guard against lost updates there.
        """
        try:
            return (
                self.db.query(self.model)
                .filter(self.model.id == id)
                .populate_existing()
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to lock {self.model.__name__}: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}")

    def compare_and_swap(
        self,
        id: str,
        expected: Dict[str, Any],
        values: Dict[str, Any],
    ) -> bool:
        """
        Conditionally update a row.

        Issues ``UPDATE ... SET values WHERE id = :id AND <expected>`` and
        reports whether exactly one row matched. A collection in ``expected``
        matches any of its values. The identity map is
        refreshed so callers see the new state.

        Returns:
            True if the row was in the expected state and got updated
        """
        try:
            self.db.flush()
            stmt = update(self.model).where(self.model.id == id)
            for column, value in expected.items():
                attr = getattr(self.model, column)
                if isinstance(value, (list, tuple, set, frozenset)):
                    stmt = stmt.where(attr.in_(list(value)))
                else:
                    stmt = stmt.where(attr == value)
            stmt = stmt.values(**values).execution_options(synchronize_session=False)
            result = self.db.execute(stmt)
            swapped = result.rowcount == 1
            if swapped:
                entity = self.db.get(self.model, id)
                if entity is not None:
                    self.db.refresh(entity)
            return swapped
        except SQLAlchemyError as e:
            self.logger.error(f"Compare-and-swap failed on {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}")

    def find_one_by(self, **kwargs: Any) -> Optional[T]:
        """Find a single entity by exact-match criteria."""
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding one by criteria: {str(e)}")
            raise RepositoryException(f"Failed to find record: {str(e)}")

    # Protected helpers for subclasses

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}")

    def _execute_scalar(self, query: Query) -> Any:
        """Execute scalar query with error handling."""
        try:
            return query.scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Scalar query error: {str(e)}")
            raise RepositoryException(f"Scalar query failed: {str(e)}")
