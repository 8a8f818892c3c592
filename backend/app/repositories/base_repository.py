# backend/app/repositories/base_repository.py
"""
Base repository for the studio platform.

Repositories own all query construction. They flush but never commit;
transaction boundaries belong to the service layer (``BaseService.transaction``).
SQLAlchemy failures are logged and re-raised as ``RepositoryException``.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Shared lookups and writes for one model.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _translate_errors(self, action: str, rollback: bool = False) -> Iterator[None]:
        """Log a SQLAlchemy failure and surface it as RepositoryException."""
        try:
            yield
        except IntegrityError as exc:
            self.logger.error(f"Integrity error while {action} {self.model.__name__}: {exc}")
            if rollback:
                self.db.rollback()
            raise RepositoryException(f"Integrity constraint violated while {action}") from exc
        except SQLAlchemyError as exc:
            self.logger.error(f"Database error while {action} {self.model.__name__}: {exc}")
            if rollback:
                self.db.rollback()
            raise RepositoryException(f"Failed {action} {self.model.__name__}") from exc

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        with self._translate_errors("loading"):
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()

    def create(self, **kwargs: Any) -> T:
        """Add and flush a new row. The caller's transaction decides whether it sticks."""
        with self._translate_errors("creating", rollback=True):
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity

    def delete(self, id: str) -> bool:
        """Delete by primary key. Returns False if not found."""
        with self._translate_errors("deleting", rollback=True):
            entity = self.get_by_id(id, load_relationships=False)
            if entity is None:
                return False
            self.db.delete(entity)
            self.db.flush()
            return True

    def exists(self, **criteria: Any) -> bool:
        with self._translate_errors("checking"):
            return self.db.query(self.model).filter_by(**criteria).first() is not None

    def count(self, **criteria: Any) -> int:
        with self._translate_errors("counting"):
            return self.db.query(self.model).filter_by(**criteria).count()

    def find_one_by(self, **criteria: Any) -> Optional[T]:
        with self._translate_errors("finding"):
            return self.db.query(self.model).filter_by(**criteria).first()

    def _run(self, query: Query, description: str) -> List[T]:
        """Execute a list query built by a subclass."""
        with self._translate_errors(description):
            return query.all()

    def _apply_eager_loading(self, query: Query) -> Query:
        """Hook for subclasses to add joinedload/selectinload options."""
        return query
