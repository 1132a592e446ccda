"""
Deta Base API on top of MongoDB.

``Deta(uri).Base("users")`` returns a :class:`Base` bound to the ``users``
collection of the configured database (``deta`` unless overridden).  Every
operation runs synchronously, returns the driver's result and lets driver
errors propagate unchanged.

Differences from the hosted SDK:
- ``fetch`` returns the complete list of matching items; there is no
  ``last``/``limit`` pagination.
- items are stored as plain documents; MongoDB's ``_id`` is never returned.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pymongo.errors import PyMongoError
from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

from .config import DATABASE_NAME, IDLE_TIMEOUT_SECONDS, MONGO_URI
from .connection import ClientFactory, IdleClient, connect
from .logger import logger
from .query_compiler import QueryInput, compile_query
from .update_compiler import Util, compile_update

# Returned items never carry MongoDB's internal id
_PROJECTION = {"_id": 0}

_UNSET: Any = object()


class Deta:
    """Entry point: one client per handle, one :class:`Base` per collection."""

    def __init__(
        self,
        connection_uri: Optional[str] = None,
        database_name: Optional[str] = None,
        *,
        idle_timeout: Optional[float] = _UNSET,
        client_factory: Optional[ClientFactory] = None,
    ):
        if idle_timeout is _UNSET:
            idle_timeout = IDLE_TIMEOUT_SECONDS

        if client_factory is None:
            uri = connection_uri or MONGO_URI
            if not uri:
                raise ValueError(
                    "A MongoDB connection URI is required (argument or MONGO_URI)."
                )

            def client_factory() -> Any:
                return connect(uri)

        self.connection_uri = connection_uri
        self.database_name = database_name or DATABASE_NAME
        self._client = IdleClient(client_factory, idle_timeout)

    def Base(self, name: str) -> "Base":
        return Base(name, self._client, self.database_name)

    base = Base

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Deta":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class Base:
    """CRUD facade over a single MongoDB collection."""

    util = Util

    def __init__(self, name: str, client: IdleClient, database_name: str = DATABASE_NAME):
        if not name:
            raise ValueError("A collection name is required.")
        self.name = name
        self.database_name = database_name
        self._client = client

    def __repr__(self) -> str:
        return f"Base({self.database_name}.{self.name})"

    def _run(self, operation: str, fn):
        """Lease the client, run ``fn(collection)`` and log driver failures."""
        try:
            with self._client.lease() as client:
                return fn(client[self.database_name][self.name])
        except PyMongoError as e:
            logger.error("[%s] %s failed on %r: %s", operation, operation.lower(), self, e)
            raise

    # ---------------------- WRITE ----------------------

    def put(self, item: Mapping[str, Any], key: Optional[str] = None) -> InsertOneResult:
        """Insert ``item`` as a new document, stamping ``key`` onto it when given.

        The caller's mapping is left untouched.  Uniqueness of ``key`` is up
        to the collection's indexes.
        """
        document = _to_document(item)
        if key is not None:
            document["key"] = key
        return self._run("PUT", lambda coll: coll.insert_one(document))

    def put_many(self, items: Iterable[Mapping[str, Any]]) -> InsertManyResult:
        documents = [_to_document(item) for item in items]
        if not documents:
            raise ValueError("put_many requires at least one item")
        return self._run("PUT_MANY", lambda coll: coll.insert_many(documents))

    def update(self, updates: Mapping[str, Any], key: str) -> UpdateResult:
        """Merge ``updates`` into the item stored under ``key``.

        Fields absent from ``updates`` are unchanged.  A missing key is a
        no-op (``matched_count == 0``), not an error.
        """
        update_doc = compile_update(updates)
        return self._run("UPDATE", lambda coll: coll.update_one({"key": key}, update_doc))

    def delete(self, key: str) -> DeleteResult:
        return self._run("DELETE", lambda coll: coll.delete_one({"key": key}))

    # ---------------------- READ ----------------------

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the item stored under ``key``, or ``None``."""
        return self._run("GET", lambda coll: coll.find_one({"key": key}, _PROJECTION))

    def fetch(self, query: QueryInput = None) -> List[Dict[str, Any]]:
        """Return every item matching ``query`` as a list.

        ``query`` is a Deta-style mapping (``{"age?gte": 18}``) or a list of
        them (OR).  ``None`` or ``{}`` returns the whole collection.
        """
        mongo_filter = compile_query(query)
        logger.debug("[FETCH] %r filter: %s", self, mongo_filter)
        return self._run("FETCH", lambda coll: list(coll.find(mongo_filter, _PROJECTION)))


def _to_document(item: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(item, Mapping):
        raise TypeError(f"items must be mappings, got {type(item).__name__}")
    return dict(item)
