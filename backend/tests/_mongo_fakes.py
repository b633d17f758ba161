"""
backend/tests/_mongo_fakes.py

Purpose:
    Small in-memory stand-ins for the motor collections, client sessions and
    transactions used by the ledger and match pool services.
"""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any

from bson import ObjectId
from pymongo.errors import DuplicateKeyError


def _matches(doc: dict, query: dict) -> bool:
    for key, expected in query.items():
        actual = doc.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual not in expected["$in"]:
                return False
        elif actual != expected:
            return False
    return True


def _project(doc: dict, projection: dict | None) -> dict:
    if not projection:
        return dict(doc)
    return {k: v for k, v in doc.items() if k in projection or k == "_id"}


def _evaluate(expr: Any, doc: dict) -> Any:
    """The few aggregation expressions used by pipeline updates."""
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    if isinstance(expr, dict) and "$ifNull" in expr:
        value, default = expr["$ifNull"]
        resolved = _evaluate(value, doc)
        return _evaluate(default, doc) if resolved is None else resolved
    if isinstance(expr, dict) and "$add" in expr:
        return sum(_evaluate(term, doc) for term in expr["$add"])
    return expr


class _AsyncCursor:
    def __init__(self, docs: list[dict]):
        self._docs = list(docs)

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    def __init__(self, docs: list[dict] | None = None):
        self.docs: list[dict] = [dict(d) for d in (docs or [])]
        self.calls: list[tuple[str, Any]] = []

    def _find_index(self, query: dict) -> int | None:
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                return index
        return None

    async def find_one(self, query: dict, projection: dict | None = None, **_kwargs):
        self.calls.append(("find_one", query))
        index = self._find_index(query)
        return None if index is None else _project(self.docs[index], projection)

    def find(self, query: dict, projection: dict | None = None):
        self.calls.append(("find", query))
        return _AsyncCursor([_project(d, projection) for d in self.docs if _matches(d, query)])

    async def insert_one(self, doc: dict, session=None):
        self.calls.append(("insert_one", doc))
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        if self._find_index({"_id": doc["_id"]}) is not None:
            raise DuplicateKeyError(f"E11000 duplicate key error _id: {doc['_id']}")
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one_and_update(self, query: dict, update: dict, return_document=False, session=None):
        self.calls.append(("find_one_and_update", query))
        index = self._find_index(query)
        if index is None:
            return None
        doc = self.docs[index]
        if isinstance(update, list):
            for stage in update:
                doc.update({k: _evaluate(v, doc) for k, v in stage["$set"].items()})
            return dict(doc)
        doc.update(update.get("$set") or {})
        return dict(doc)

    async def update_one(self, query: dict, update: dict, upsert: bool = False):
        self.calls.append(("update_one", query))
        index = self._find_index(query)
        if index is None:
            if not upsert:
                return SimpleNamespace(matched_count=0)
            self.docs.append({**query, **(update.get("$set") or {})})
            return SimpleNamespace(matched_count=0, upserted_id=query.get("_id"))
        self.docs[index].update(update.get("$set") or {})
        return SimpleNamespace(matched_count=1)

    async def replace_one(self, query: dict, replacement: dict, upsert: bool = False):
        self.calls.append(("replace_one", query))
        index = self._find_index(query)
        new_doc = {"_id": query.get("_id"), **replacement}
        if index is None:
            if upsert:
                self.docs.append(new_doc)
            return SimpleNamespace(matched_count=0)
        self.docs[index] = new_doc
        return SimpleNamespace(matched_count=1)

    async def bulk_write(self, ops: list, ordered: bool = True):
        self.calls.append(("bulk_write", len(ops)))
        for op in ops:
            await self.replace_one(op._filter, op._doc, upsert=op._upsert)
        return SimpleNamespace(acknowledged=True)

    async def delete_many(self, query: dict):
        self.calls.append(("delete_many", query))
        keep = [d for d in self.docs if not _matches(d, query)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep
        return SimpleNamespace(deleted_count=deleted)

    def writes(self) -> list[tuple[str, Any]]:
        return [c for c in self.calls if c[0] not in ("find_one", "find")]


class FakeSession:
    """Runs the callback and restores every collection if it raises."""

    def __init__(self, db: SimpleNamespace):
        self._db = db

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def with_transaction(self, callback):
        snapshot = {
            name: copy.deepcopy(coll.docs)
            for name, coll in vars(self._db).items()
            if isinstance(coll, FakeCollection)
        }
        try:
            return await callback(self)
        except BaseException:
            for name, docs in snapshot.items():
                getattr(self._db, name).docs = docs
            raise


class FakeClient:
    def __init__(self, db: SimpleNamespace):
        self._db = db

    async def start_session(self):
        return FakeSession(self._db)


def make_db(**collections: list[dict]) -> SimpleNamespace:
    names = (
        "users", "purchase_logs", "credit_transactions", "suspicious_activity",
        "match_pool", "pool_metadata", "remote_config", "worker_state",
    )
    return SimpleNamespace(**{
        name: FakeCollection(collections.get(name)) for name in names
    })


def install(monkeypatch, db_module, db: SimpleNamespace) -> None:
    """Point app.database at the fake database and transaction client."""
    monkeypatch.setattr(db_module, "db", db, raising=False)
    monkeypatch.setattr(db_module, "client", FakeClient(db), raising=False)
