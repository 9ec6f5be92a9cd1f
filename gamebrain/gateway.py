"""
Remote data gateway.

A small collection-oriented interface over the document store. The rest of
the application never talks to Firestore directly: it goes through a
:class:`Gateway`, so the in-memory implementation can stand in for the real
backend in development and in tests.

Documents are returned as plain dicts carrying their document id under
``'id'``. Query results carry an opaque :class:`Cursor` that references the
last document of the page and is only valid for the exact collection,
filters and ordering that produced it.
"""

from __future__ import annotations

import copy
import logging
import operator
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore_v1 import FieldFilter, Increment, SERVER_TIMESTAMP

logger = logging.getLogger(__name__)

ASCENDING = 'ASCENDING'
DESCENDING = 'DESCENDING'

Filter = Tuple[str, str, Any]
OrderBy = Tuple[str, str]

__all__ = [
    'ASCENDING', 'DESCENDING', 'SERVER_TIMESTAMP',
    'Cursor', 'QueryResult', 'GatewayError', 'StaleCursorError',
    'Gateway', 'FirestoreGateway', 'InMemoryGateway',
]


class GatewayError(Exception):
    """Raised when the backing document store fails."""


class StaleCursorError(GatewayError, ValueError):
    """A cursor was presented with a different query than the one that made it."""


@dataclass(frozen=True)
class Cursor:
    signature: tuple
    token: Any = field(compare=False)


@dataclass
class QueryResult:
    docs: List[Dict[str, Any]]
    cursor: Optional[Cursor] = None

    def __len__(self) -> int:
        return len(self.docs)

    def __iter__(self):
        return iter(self.docs)

    @property
    def empty(self) -> bool:
        return not self.docs


def _signature(collection: str, filters: Sequence[Filter], order_by: Optional[OrderBy]) -> tuple:
    return (collection, tuple(tuple(f) for f in filters), tuple(order_by) if order_by else None)


def _check_cursor(cursor: Optional[Cursor], signature: tuple) -> None:
    if cursor is not None and cursor.signature != signature:
        raise StaleCursorError('cursor does not belong to this query')


class Gateway:
    """Capability set consumed by the DAO layer."""

    def query(self, collection: str, filters: Sequence[Filter] = (),
              order_by: Optional[OrderBy] = None, limit: Optional[int] = None,
              start_after: Optional[Cursor] = None) -> QueryResult:
        raise NotImplementedError

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        raise NotImplementedError

    def put(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def increment(self, collection: str, doc_id: str, field_name: str, amount: int) -> None:
        """Atomically add ``amount`` to a numeric field."""
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Firestore
# ---------------------------------------------------------------------------

class FirestoreGateway(Gateway):
    def __init__(self, client: Any) -> None:
        self._db = client

    def _snapshot_to_dict(self, snap: Any) -> Optional[Dict[str, Any]]:
        if not snap.exists:
            return None
        d = snap.to_dict()
        d['id'] = snap.id
        return d

    def query(self, collection, filters=(), order_by=None, limit=None, start_after=None):
        signature = _signature(collection, filters, order_by)
        _check_cursor(start_after, signature)

        q = self._db.collection(collection)
        for field_name, op, value in filters:
            q = q.where(filter=FieldFilter(field_name, op, value))
        if order_by:
            q = q.order_by(order_by[0], direction=order_by[1])
        if start_after is not None:
            q = q.start_after(start_after.token)
        if limit:
            q = q.limit(limit)

        try:
            snaps = list(q.stream())
        except GoogleAPIError as exc:
            raise GatewayError(f'query on {collection} failed: {exc}') from exc

        cursor = Cursor(signature, snaps[-1]) if snaps else None
        return QueryResult([self._snapshot_to_dict(s) for s in snaps], cursor)

    def get_by_id(self, collection, doc_id):
        try:
            snap = self._db.collection(collection).document(doc_id).get()
        except GoogleAPIError as exc:
            raise GatewayError(f'get {collection}/{doc_id} failed: {exc}') from exc
        return self._snapshot_to_dict(snap)

    def insert(self, collection, fields):
        try:
            _, doc_ref = self._db.collection(collection).add(fields)
        except GoogleAPIError as exc:
            raise GatewayError(f'insert into {collection} failed: {exc}') from exc
        return doc_ref.id

    def put(self, collection, doc_id, fields):
        try:
            self._db.collection(collection).document(doc_id).set(fields)
        except GoogleAPIError as exc:
            raise GatewayError(f'set {collection}/{doc_id} failed: {exc}') from exc

    def increment(self, collection, doc_id, field_name, amount):
        try:
            self._db.collection(collection).document(doc_id).update({field_name: Increment(amount)})
        except GoogleAPIError as exc:
            raise GatewayError(f'increment {collection}/{doc_id}.{field_name} failed: {exc}') from exc

    def delete(self, collection, doc_id):
        try:
            self._db.collection(collection).document(doc_id).delete()
        except GoogleAPIError as exc:
            raise GatewayError(f'delete {collection}/{doc_id} failed: {exc}') from exc


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

_OPERATORS = {
    '==': operator.eq,
    '!=': operator.ne,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
    'in': lambda value, options: value in options,
    'not-in': lambda value, options: value not in options,
    'array-contains': lambda value, item: isinstance(value, list) and item in value,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryGateway(Gateway):
    """Process-local document store with Firestore query semantics.

    Documents missing the ``order_by`` field are left out of ordered queries,
    and ties are broken by document id, as Firestore does.
    """

    def __init__(self, data: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None) -> None:
        self._lock = threading.Lock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for collection, docs in (data or {}).items():
            for doc_id, fields in docs.items():
                self.put(collection, doc_id, fields)

    def _resolve(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        resolved = {}
        for key, value in fields.items():
            if value is SERVER_TIMESTAMP:
                value = _now()
            resolved[key] = copy.deepcopy(value)
        resolved.pop('id', None)
        return resolved

    def _matches(self, doc: Dict[str, Any], filters: Sequence[Filter]) -> bool:
        for field_name, op, value in filters:
            if op not in _OPERATORS:
                raise GatewayError(f'unsupported operator {op!r}')
            if field_name not in doc:
                return False
            try:
                if not _OPERATORS[op](doc[field_name], value):
                    return False
            except TypeError:
                return False
        return True

    def query(self, collection, filters=(), order_by=None, limit=None, start_after=None):
        signature = _signature(collection, filters, order_by)
        _check_cursor(start_after, signature)

        with self._lock:
            rows = [
                (doc_id, doc) for doc_id, doc in self._collections.get(collection, {}).items()
                if self._matches(doc, filters)
            ]

            if order_by:
                field_name, direction = order_by
                rows = [r for r in rows if r[1].get(field_name) is not None]

                def key(row):
                    return (row[1][field_name], row[0])
            else:
                direction = ASCENDING

                def key(row):
                    return (row[0],)

            descending = direction == DESCENDING
            rows.sort(key=key, reverse=descending)

            if start_after is not None:
                token = start_after.token
                if descending:
                    rows = [r for r in rows if key(r) < token]
                else:
                    rows = [r for r in rows if key(r) > token]

            if limit:
                rows = rows[:limit]

            docs = []
            for doc_id, doc in rows:
                d = copy.deepcopy(doc)
                d['id'] = doc_id
                docs.append(d)

        cursor = Cursor(signature, key(rows[-1])) if rows else None
        return QueryResult(docs, cursor)

    def get_by_id(self, collection, doc_id):
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            if doc is None:
                return None
            d = copy.deepcopy(doc)
        d['id'] = doc_id
        return d

    def insert(self, collection, fields):
        doc_id = uuid.uuid4().hex[:20]
        self.put(collection, doc_id, fields)
        return doc_id

    def put(self, collection, doc_id, fields):
        resolved = self._resolve(fields)
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = resolved

    def increment(self, collection, doc_id, field_name, amount):
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            if doc is None:
                raise GatewayError(f'no document {collection}/{doc_id}')
            doc[field_name] = (doc.get(field_name) or 0) + amount

    def delete(self, collection, doc_id):
        with self._lock:
            self._collections.get(collection, {}).pop(doc_id, None)

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, {}))
