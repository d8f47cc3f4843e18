"""
Storage Collaborator

Thin per-model repositories over a SQLAlchemy session:
find / query / insert / patch / delete, plus a transaction scope.

Repositories never commit on their own. Every mutation in the services
runs inside `transaction(db)`, so authorization and validation are
finished before anything is written, and a failure rolls back every
statement issued inside the block.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import false
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.core.exceptions import ConflictError, InternalError
from app.core.policy import ScopeKind, ScopeSpec
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class QueryResult:
    items: List[Any]
    total: int


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Commit on success, roll back on any error.

    SQLAlchemy failures surface as InternalError (or ConflictError for
    integrity violations). Other exceptions are re-raised unchanged
    after the rollback.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity violation, rolled back: {e.orig}")
        raise ConflictError("Record conflicts with existing data")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure, rolled back: {e}", exc_info=True)
        raise InternalError("Storage operation failed")
    except Exception:
        db.rollback()
        raise


class Repository:
    """Base repository. Subclasses set `model`."""

    model = None

    def __init__(self, db: Session):
        self.db = db

    @property
    def tenant_column(self):
        return self.model.tenant_id

    def find(self, record_id: str) -> Optional[Any]:
        """Load by id, ignoring scope. Callers must re-check the tenant."""
        try:
            return self.db.query(self.model).filter(self.model.id == record_id).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Lookup failed for {self.model.__name__} {record_id}: {e}")
            raise InternalError("Storage lookup failed")

    def scoped(self, scope: ScopeSpec) -> Query:
        """Base query narrowed to `scope`. Filters are added on top of this."""
        query = self.db.query(self.model)

        if scope.kind == ScopeKind.UNRESTRICTED:
            return query
        if scope.kind == ScopeKind.TENANT:
            return query.filter(self.tenant_column == scope.tenant_id)
        if scope.kind == ScopeKind.ASSIGNEE:
            return query.filter(
                self.tenant_column == scope.tenant_id,
                self.model.assignee_id == scope.user_id,
            )
        # ScopeKind.NONE
        return query.filter(false())

    def query(
        self,
        scope: ScopeSpec,
        *criteria,
        page: int = 1,
        page_size: int = 20,
        order_by=None,
    ) -> QueryResult:
        try:
            query = self.scoped(scope)
            if criteria:
                query = query.filter(*criteria)
            total = query.count()
            if order_by is None:
                order_by = self.model.created_at.desc()
            # id breaks created_at ties so pages never overlap
            items = query.order_by(order_by, self.model.id).offset((page - 1) * page_size).limit(page_size).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Query failed for {self.model.__name__}: {e}")
            raise InternalError("Storage query failed")

        return QueryResult(items=items, total=total)

    def count(self, *criteria) -> int:
        try:
            return self.db.query(self.model).filter(*criteria).count()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Count failed for {self.model.__name__}: {e}")
            raise InternalError("Storage query failed")

    def insert(self, record: Any) -> Any:
        self.db.add(record)
        self.db.flush()
        return record

    def patch(self, record: Any, fields: Dict[str, Any]) -> Any:
        for field, value in fields.items():
            setattr(record, field, value)
        self.db.flush()
        return record

    def delete(self, record: Any) -> None:
        self.db.delete(record)
        self.db.flush()

    def delete_where(self, *criteria) -> int:
        """Bulk delete; returns the number of rows removed."""
        return self.db.query(self.model).filter(*criteria).delete(synchronize_session="fetch")

    def update_where(self, values: Dict[str, Any], *criteria) -> int:
        """Bulk update; returns the number of rows changed."""
        return self.db.query(self.model).filter(*criteria).update(values, synchronize_session="fetch")
