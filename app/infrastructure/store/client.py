"""
Store gateway: select / insert / update / delete against named collections.

Every call returns StoreResponse(data, error); backend failures are never
raised to the caller. Non-privileged statements go through the row
policies in app.infrastructure.store.policies.

Usage:
    store = StoreClient(db, caller)
    res = (
        store.table("kanban_boards")
        .select("*")
        .eq("user_id", caller.id)
        .is_("agency_id", None)
        .order("created_at", desc=True)
        .execute()
    )
    if res.error:
        ...
"""
import inspect
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import AuthUser
from app.infrastructure.db.models import (
    KanbanBoard, Expense, Profile, Agency, AgencyMember,
)
from app.infrastructure.store import policies

logger = logging.getLogger(__name__)


COLLECTIONS = {
    "kanban_boards": KanbanBoard,
    "expenses": Expense,
    "profiles": Profile,
    "agencies": Agency,
    "agency_members": AgencyMember,
}


class StoreError(Exception):
    """Failure reported by the store. code: unauthenticated, row_policy,
    forbidden, not_found, unknown_column, unknown_collection,
    unknown_procedure, backend."""

    def __init__(self, message: str, code: str = "backend"):
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"StoreError(code={self.code!r}, message={self.message!r})"


@dataclass
class StoreResponse:
    data: Any = None
    error: StoreError | None = None


def row_to_dict(obj) -> dict:
    return {c.key: getattr(obj, c.key) for c in obj.__table__.columns}


class QueryBuilder:
    def __init__(self, client: "StoreClient", name: str):
        self._client = client
        self._name = name
        self._model = COLLECTIONS.get(name)
        self._op = "select"
        self._columns: list[str] | None = None
        self._payload: Any = None
        self._filters: list[tuple] = []
        self._or_groups: list[tuple] = []
        self._order: list[tuple[str, bool]] = []
        self._limit: int | None = None
        self._single = False

    # ── operations ──

    def select(self, columns: str = "*") -> "QueryBuilder":
        self._op = "select"
        if columns.strip() != "*":
            self._columns = [c.strip() for c in columns.split(",") if c.strip()]
        return self

    def insert(self, values: dict | list[dict]) -> "QueryBuilder":
        self._op = "insert"
        self._payload = values if isinstance(values, list) else [values]
        return self

    def update(self, patch: dict) -> "QueryBuilder":
        self._op = "update"
        self._payload = patch
        return self

    def delete(self) -> "QueryBuilder":
        self._op = "delete"
        return self

    # ── filters ──

    def eq(self, column: str, value) -> "QueryBuilder":
        self._filters.append((column, "eq", value))
        return self

    def is_(self, column: str, value) -> "QueryBuilder":
        self._filters.append((column, "is", value))
        return self

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        self._filters.append((column, "ilike", pattern))
        return self

    def in_(self, column: str, values) -> "QueryBuilder":
        self._filters.append((column, "in", list(values)))
        return self

    def or_(self, *conditions: tuple[str, str, Any]) -> "QueryBuilder":
        """Any of (column, op, value), op in eq / ilike / is."""
        self._or_groups.append(conditions)
        return self

    # ── modifiers ──

    def order(self, column: str, desc: bool = False) -> "QueryBuilder":
        self._order.append((column, desc))
        return self

    def limit(self, n: int) -> "QueryBuilder":
        self._limit = n
        return self

    def single(self) -> "QueryBuilder":
        self._single = True
        return self

    # ── execution ──

    def execute(self) -> StoreResponse:
        client = self._client
        db = client.db
        try:
            if self._model is None:
                raise StoreError(f"Unknown collection: {self._name}", "unknown_collection")
            if client.caller is None and not client.privileged:
                raise StoreError("Not authenticated", "unauthenticated")

            if self._op == "select":
                data = self._run_select()
            elif self._op == "insert":
                data = self._run_insert()
            elif self._op == "update":
                data = self._run_update()
            else:
                data = self._run_delete()
            return StoreResponse(data=data)
        except StoreError as e:
            db.rollback()
            logger.info("Store %s on %s rejected: %s", self._op, self._name, e.message)
            return StoreResponse(error=e)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Store %s on %s failed: %s", self._op, self._name, e)
            return StoreResponse(error=StoreError(str(e.__class__.__name__), "backend"))

    def _column(self, name: str):
        if name not in self._model.__table__.c:
            raise StoreError(f"Unknown column {name!r} on {self._name}", "unknown_column")
        return getattr(self._model, name)

    def _condition(self, column: str, op: str, value):
        col = self._column(column)
        if op == "eq":
            return col == value
        if op == "is":
            return col.is_(value)
        if op == "ilike":
            return col.ilike(value)
        if op == "in":
            return col.in_(value)
        raise StoreError(f"Unsupported filter operator: {op}", "backend")

    def _query(self):
        client = self._client
        q = client.db.query(self._model)
        if not client.privileged:
            q = q.filter(policies.row_filter(self._name, self._model, client.caller))
        for column, op, value in self._filters:
            q = q.filter(self._condition(column, op, value))
        for group in self._or_groups:
            q = q.filter(or_(*(self._condition(c, op, v) for c, op, v in group)))
        return q

    def _run_select(self):
        q = self._query()
        for column, desc in self._order:
            col = self._column(column)
            q = q.order_by(col.desc() if desc else col.asc())
        if self._limit is not None:
            q = q.limit(self._limit)

        columns = self._columns
        if columns:
            for c in columns:
                self._column(c)
        rows = []
        for obj in q.all():
            row = row_to_dict(obj)
            rows.append({c: row[c] for c in columns} if columns else row)

        if self._single:
            if len(rows) != 1:
                raise StoreError(
                    f"Expected a single row from {self._name}, got {len(rows)}",
                    "not_found",
                )
            return rows[0]
        return rows

    def _run_insert(self):
        client = self._client
        created = []
        for record in self._payload:
            for key in record:
                self._column(key)
            if not client.privileged:
                policies.check_insert(client.db, self._name, record, client.caller)
            obj = self._model(**record)
            client.db.add(obj)
            created.append(obj)
        client.db.flush()
        data = [row_to_dict(obj) for obj in created]
        client.db.commit()
        return data

    def _run_update(self):
        for key in self._payload:
            self._column(key)
        objs = self._query().all()
        for obj in objs:
            for key, value in self._payload.items():
                setattr(obj, key, value)
        self._client.db.flush()
        data = [row_to_dict(obj) for obj in objs]
        self._client.db.commit()
        return data

    def _run_delete(self):
        objs = self._query().all()
        data = [row_to_dict(obj) for obj in objs]
        for obj in objs:
            self._client.db.delete(obj)
        self._client.db.commit()
        return data


class StoreClient:
    """
    Gateway bound to one caller.

    There is no optimistic-concurrency token: the last write wins.
    """

    def __init__(self, db: Session, caller: AuthUser | None, privileged: bool = False):
        self.db = db
        self.caller = caller
        self.privileged = privileged

    @classmethod
    def service(cls, db: Session) -> "StoreClient":
        """Privileged client; bypasses row policies. Used by procedures only."""
        return cls(db, caller=None, privileged=True)

    def table(self, name: str) -> QueryBuilder:
        return QueryBuilder(self, name)

    def rpc(self, name: str, params: dict) -> StoreResponse:
        from app.infrastructure.store.procedures import PROCEDURES

        if self.caller is None:
            return StoreResponse(error=StoreError("Not authenticated", "unauthenticated"))
        proc = PROCEDURES.get(name)
        if proc is None:
            return StoreResponse(error=StoreError(f"Unknown procedure: {name}", "unknown_procedure"))
        try:
            inspect.signature(proc).bind(self.db, self.caller, **params)
        except TypeError as e:
            return StoreResponse(error=StoreError(f"Bad parameters for {name}: {e}", "backend"))
        try:
            return StoreResponse(data=proc(self.db, self.caller, **params))
        except StoreError as e:
            self.db.rollback()
            logger.warning("Procedure %s rejected: %s", name, e.message)
            return StoreResponse(error=e)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Procedure %s failed: %s", name, e)
            return StoreResponse(error=StoreError(str(e.__class__.__name__), "backend"))
