from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from garden_site.db import MongoDatabase, to_object_id
from garden_site.util.time import as_utc, utcnow

from .results import Failed, Found, InvalidReference, NotFound, Outcome, StorageError


def _debug(msg: str) -> None:
    print(f"[storage] {msg}")


Mapper = Callable[[Mapping[str, Any]], Dict[str, Any]]
Encoder = Callable[[Dict[str, Any]], Dict[str, Any]]
SortSpec = Sequence[Tuple[str, int]]

INSERTION_ORDER: SortSpec = (("_id", ASCENDING),)


def _normalize_value(v: Any) -> Any:
    """Make a value storable: UTC datetimes at BSON (ms) precision, nested dicts/lists walked."""
    if isinstance(v, datetime):
        v = as_utc(v)
        return v.replace(microsecond=(v.microsecond // 1000) * 1000)
    if isinstance(v, date):
        return as_utc(datetime(v.year, v.month, v.day))
    if isinstance(v, Mapping):
        return {k: _normalize_value(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_normalize_value(x) for x in v]
    return v


class DocumentRepository:
    """CRUD over one collection.

    `data` passed to `create`/`update` uses the external (camelCase) field
    names; `renames` maps the few that are stored under another name.
    """

    def __init__(
        self,
        database: MongoDatabase,
        *,
        collection: str,
        mapper: Mapper,
        sort: SortSpec = INSERTION_ORDER,
        defaults: Optional[Callable[[], Dict[str, Any]]] = None,
        references: Sequence[str] = (),
        renames: Optional[Dict[str, str]] = None,
        encoder: Optional[Encoder] = None,
        timestamps: bool = True,
    ):
        self.database = database
        self.name = collection
        self.mapper = mapper
        self.sort = list(sort)
        self._defaults = defaults
        self.references = tuple(references)
        self.renames = dict(renames or {})
        self._encoder = encoder
        self.timestamps = timestamps

    @property
    def coll(self) -> Any:
        return self.database.collection(self.name)

    # -----------------------------
    # Encoding
    # -----------------------------

    def encode(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """External fields -> stored fields (renames, reference ids, dates)."""
        doc: Dict[str, Any] = {}
        for key, value in data.items():
            if key in ("id", "_id"):
                continue
            if key in self.references:
                if value is None or value == "":
                    value = None
                else:
                    oid = to_object_id(value)
                    if oid is None:
                        raise InvalidReference(f"{self.name}.{key}: invalid id {value!r}")
                    value = oid
            doc[self.renames.get(key, key)] = _normalize_value(value)
        if self._encoder is not None:
            doc = self._encoder(doc)
        return doc

    def _map(self, doc: Mapping[str, Any]) -> Dict[str, Any]:
        return self.mapper(doc)

    # -----------------------------
    # Outcome API
    # -----------------------------

    def find(self, id: Any) -> Outcome[Dict[str, Any]]:
        oid = to_object_id(id)
        if oid is None:
            _debug(f"{self.name}: invalid id {id!r}")
            return NotFound("invalid_id")
        try:
            doc = self.coll.find_one({"_id": oid})
        except Exception as e:
            _debug(f"Error fetching {self.name} id={id}: {e}")
            return Failed(e)
        if doc is None:
            return NotFound()
        return Found(self._map(doc))

    def fetch_all(self, query: Optional[Dict[str, Any]] = None) -> Outcome[List[Dict[str, Any]]]:
        try:
            cursor = self.coll.find(query or {})
            if self.sort:
                cursor = cursor.sort(self.sort)
            return Found([self._map(d) for d in cursor])
        except Exception as e:
            _debug(f"Error listing {self.name} query={query}: {e}")
            return Failed(e)

    def insert(self, data: Mapping[str, Any]) -> Outcome[Dict[str, Any]]:
        try:
            doc = self._defaults() if self._defaults else {}
            doc.update(self.prepare_insert(self.encode(data)))
            if self.timestamps:
                now = utcnow()
                doc.setdefault("createdAt", now)
                doc["updatedAt"] = now
            res = self.coll.insert_one(doc)
            doc["_id"] = res.inserted_id
        except InvalidReference as e:
            _debug(f"Rejected {self.name} insert: {e}")
            return NotFound(str(e))
        except Exception as e:
            _debug(f"Error creating {self.name}: {e}")
            return Failed(e)
        return Found(self._map(doc))

    def patch(self, id: Any, data: Mapping[str, Any]) -> Outcome[Dict[str, Any]]:
        """Merge `data` onto the stored document (fields not given stay as is)."""
        oid = to_object_id(id)
        if oid is None:
            _debug(f"{self.name}: invalid id {id!r} for update")
            return NotFound("invalid_id")
        try:
            changes = self.prepare_update(self.encode(data))
        except InvalidReference as e:
            _debug(f"Rejected {self.name} update id={id}: {e}")
            return NotFound(str(e))
        if self.timestamps:
            changes["updatedAt"] = utcnow()
        try:
            if changes:
                doc = self.coll.find_one_and_update(
                    {"_id": oid},
                    {"$set": changes},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                doc = self.coll.find_one({"_id": oid})
        except Exception as e:
            _debug(f"Error updating {self.name} id={id}: {e}")
            return Failed(e)
        if doc is None:
            return NotFound()
        return Found(self._map(doc))

    def remove(self, id: Any) -> Outcome[Dict[str, Any]]:
        """Hard delete; Found carries the removed document (external shape)."""
        oid = to_object_id(id)
        if oid is None:
            _debug(f"{self.name}: invalid id {id!r} for delete")
            return NotFound("invalid_id")
        try:
            doc = self.coll.find_one_and_delete({"_id": oid})
        except Exception as e:
            _debug(f"Error deleting {self.name} id={id}: {e}")
            return Failed(e)
        if doc is None:
            return NotFound()
        self.after_remove(doc)
        return Found(self._map(doc))

    # Hooks for subclasses.
    def prepare_insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        return doc

    def prepare_update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return changes

    def after_remove(self, doc: Mapping[str, Any]) -> None:
        return None

    # -----------------------------
    # Sentinel API
    # -----------------------------

    def get(self, id: Any) -> Optional[Dict[str, Any]]:
        return self.find(id).value

    def list(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self.fetch_all(query).value or []

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        out = self.insert(data)
        if isinstance(out, Found):
            return out.value
        if isinstance(out, Failed):
            raise StorageError(f"{self.name}: create failed ({out.message})") from out.error
        raise InvalidReference(out.reason)

    def update(self, id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return self.patch(id, data).value

    def delete(self, id: Any) -> bool:
        return isinstance(self.remove(id), Found)

    def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        try:
            return int(self.coll.count_documents(query or {}))
        except Exception as e:
            _debug(f"Error counting {self.name}: {e}")
            return 0


class OrderedRepository(DocumentRepository):
    """A collection displayed in a user-controlled order.

    New documents go to the end (`max(order_field) + 1`) unless the caller
    supplies a position. With `compact=True`, deleting shifts later
    documents up one slot so positions stay contiguous.
    """

    def __init__(self, database: MongoDatabase, *, order_field: str = "order", compact: bool = True, **kw: Any):
        kw.setdefault("sort", ((order_field, ASCENDING),))
        super().__init__(database, **kw)
        self.order_field = order_field
        self.compact = compact

    def next_position(self) -> int:
        last = self.coll.find_one({}, sort=[(self.order_field, DESCENDING)])
        if last is None or last.get(self.order_field) is None:
            return 0
        try:
            return int(last[self.order_field]) + 1
        except (TypeError, ValueError):
            return 0

    def prepare_insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        if doc.get(self.order_field) is None:
            doc[self.order_field] = self.next_position()
        return doc

    def after_remove(self, doc: Mapping[str, Any]) -> None:
        if not self.compact or doc.get(self.order_field) is None:
            return
        try:
            self.coll.update_many(
                {self.order_field: {"$gt": doc[self.order_field]}},
                {"$inc": {self.order_field: -1}},
            )
        except Exception as e:
            # The delete itself already happened; a gap in positions is harmless.
            _debug(f"Error compacting {self.name} after delete: {e}")

    def reorder(self, id: Any, direction: str) -> bool:
        """Swap a document with its neighbour ("up" = earlier, "down" = later)."""
        if direction not in ("up", "down"):
            raise ValueError("invalid_direction")
        oid = to_object_id(id)
        if oid is None:
            _debug(f"{self.name}: invalid id {id!r} for reorder")
            return False
        try:
            doc = self.coll.find_one({"_id": oid})
            if doc is None:
                return False
            pos = int(doc.get(self.order_field) or 0)
            target = pos - 1 if direction == "up" else pos + 1
            neighbour = self.coll.find_one({self.order_field: target})
            if neighbour is None:
                return False
            now = utcnow()
            self.coll.update_one({"_id": doc["_id"]}, {"$set": {self.order_field: target, "updatedAt": now}})
            self.coll.update_one({"_id": neighbour["_id"]}, {"$set": {self.order_field: pos, "updatedAt": now}})
            return True
        except Exception as e:
            _debug(f"Error reordering {self.name} id={id}: {e}")
            return False
