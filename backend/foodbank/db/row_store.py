"""Row store contract consumed by the allocation engine.

The engine only needs four primitives against a transactional store:
read-by-filter, read-by-id, update-by-id and insert. Every primitive returns
plain row mappings (column name -> value) or raises ``RowStoreError``; ORM
instances never leave this module, so callers normalize rows into their own
records right after each fetch.

``SqlAlchemyRowStore`` implements the contract over a SQLAlchemy ``Session``.
Each write commits on its own, so a failed write never takes earlier writes
with it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RowStoreError(Exception):
    """Structured failure of a row store operation."""

    def __init__(
        self,
        operation: str,
        table: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation
        self.table = table
        self.message = message
        self.details = details or {}
        super().__init__(f"{operation} on '{table}' failed: {message}")

    def to_details(self) -> Dict[str, Any]:
        """Diagnostic payload safe to attach to a failed envelope."""
        return {
            "operation": self.operation,
            "table": self.table,
            "message": self.message,
            **self.details,
        }


class ConcurrencyConflict(RowStoreError):
    """A conditional update matched no row because its precondition no longer holds."""


def _table_name(model) -> str:
    return getattr(model, "__tablename__", model.__name__)


def _to_row(instance) -> Row:
    return {
        attr.key: getattr(instance, attr.key)
        for attr in inspect(instance).mapper.column_attrs
    }


class RowStore(ABC):
    """Abstract transactional row store."""

    @abstractmethod
    async def read_by_filter(
        self,
        model,
        *criteria,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Rows of ``model`` matching every criterion, in ``order_by`` order."""

    @abstractmethod
    async def read_by_id(self, model, row_id: Any) -> Optional[Row]:
        """The row with primary key ``row_id``, or None."""

    @abstractmethod
    async def update_by_id(
        self,
        model,
        row_id: Any,
        values: Row,
        expected: Optional[Row] = None,
    ) -> Row:
        """Update one row and return it.

        ``expected`` holds column preconditions; when they no longer match,
        ``ConcurrencyConflict`` is raised and nothing is written.
        """

    @abstractmethod
    async def insert(self, model, values: Row) -> Row:
        """Insert one row and return it with generated columns filled in."""


class SqlAlchemyRowStore(RowStore):
    """Row store backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, model, exc: SQLAlchemyError) -> RowStoreError:
        self.db.rollback()
        logger.error(f"Row store {operation} on '{_table_name(model)}' failed: {exc}")
        return RowStoreError(
            operation,
            _table_name(model),
            exc.__class__.__name__,
            {"reason": str(getattr(exc, "orig", None) or exc)},
        )

    async def read_by_filter(
        self,
        model,
        *criteria,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[Row]:
        stmt = select(model).where(*criteria).order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        # Always reload from the database; another session may have written since.
        stmt = stmt.execution_options(populate_existing=True)
        try:
            instances = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise self._fail("read", model, e) from e
        return [_to_row(instance) for instance in instances]

    async def read_by_id(self, model, row_id: Any) -> Optional[Row]:
        try:
            instance = self.db.get(model, row_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise self._fail("read", model, e) from e
        return _to_row(instance) if instance is not None else None

    async def update_by_id(
        self,
        model,
        row_id: Any,
        values: Row,
        expected: Optional[Row] = None,
    ) -> Row:
        pk = inspect(model).primary_key[0]
        stmt = update(model).where(pk == row_id)
        for column, value in (expected or {}).items():
            stmt = stmt.where(getattr(model, column) == value)
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                if expected:
                    raise ConcurrencyConflict(
                        "update",
                        _table_name(model),
                        "precondition failed",
                        {"id": row_id, "expected": expected},
                    )
                raise RowStoreError("update", _table_name(model), "row not found", {"id": row_id})
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("update", model, e) from e

        row = await self.read_by_id(model, row_id)
        if row is None:
            raise RowStoreError("update", _table_name(model), "row vanished after update", {"id": row_id})
        return row

    async def insert(self, model, values: Row) -> Row:
        try:
            instance = model(**values)
            self.db.add(instance)
            self.db.commit()
            self.db.refresh(instance)
        except SQLAlchemyError as e:
            raise self._fail("insert", model, e) from e
        return _to_row(instance)
