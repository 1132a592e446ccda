"""
Coroutine flavour of the Deta Base API.

Each operation resolves with the same value as its :class:`~deta_mongo.base.Base`
counterpart, or raises the same driver error.  The blocking pymongo call
runs on a worker thread via ``asyncio.to_thread``.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

from .base import Base, Deta
from .query_compiler import QueryInput
from .update_compiler import Util


class AsyncDeta:
    """Async wrapper around :class:`Deta`; accepts the same arguments."""

    def __init__(self, *args: Any, **kwargs: Any):
        self._deta = Deta(*args, **kwargs)

    @property
    def database_name(self) -> str:
        return self._deta.database_name

    def Base(self, name: str) -> "AsyncBase":
        return AsyncBase(self._deta.Base(name))

    base = Base

    def close(self) -> None:
        self._deta.close()

    async def __aenter__(self) -> "AsyncDeta":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncBase:
    util = Util

    def __init__(self, base: Base):
        self._base = base

    @property
    def name(self) -> str:
        return self._base.name

    async def put(self, item: Mapping[str, Any], key: Optional[str] = None) -> InsertOneResult:
        return await asyncio.to_thread(self._base.put, item, key)

    async def put_many(self, items: Iterable[Mapping[str, Any]]) -> InsertManyResult:
        return await asyncio.to_thread(self._base.put_many, list(items))

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._base.get, key)

    async def update(self, updates: Mapping[str, Any], key: str) -> UpdateResult:
        return await asyncio.to_thread(self._base.update, updates, key)

    async def delete(self, key: str) -> DeleteResult:
        return await asyncio.to_thread(self._base.delete, key)

    async def fetch(self, query: QueryInput = None) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._base.fetch, query)
