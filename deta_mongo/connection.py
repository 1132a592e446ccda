"""
Idle-aware MongoClient holder.

Every database call runs inside ``IdleClient.lease()``.  While at least one
lease is outstanding the client is never closed.  When the last lease is
released the idle deadline moves forward; once it passes with no lease
outstanding, the client is closed and the next lease opens a fresh one.
"""

import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from pymongo import MongoClient
from pymongo.server_api import ServerApi

from .config import SERVER_SELECTION_TIMEOUT_MS
from .logger import logger

ClientFactory = Callable[[], Any]


def connect(mongo_uri: str) -> MongoClient:
    """Create a MongoClient pinned to the stable server API, with timeout protection."""
    return MongoClient(
        mongo_uri,
        serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
    )


class IdleClient:
    """Hands out scoped leases on one lazily created client.

    ``idle_timeout`` is in seconds; ``None`` or ``0`` keeps the client open
    until :meth:`close` is called.  At most one idle timer is pending at a
    time: releases only move the idle deadline, and the timer re-arms itself
    for whatever is left of it when it fires early.
    """

    def __init__(self, client_factory: ClientFactory, idle_timeout: Optional[float] = None):
        self._client_factory = client_factory
        self._idle_timeout = idle_timeout or None
        self._lock = threading.Lock()
        self._client: Any = None
        self._active = 0
        self._timer: Optional[threading.Timer] = None
        self._last_release = 0.0
        # bumped by close() so an already-fired timer cannot act on a new client
        self._generation = 0

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def active_leases(self) -> int:
        return self._active

    @contextmanager
    def lease(self) -> Iterator[Any]:
        """Yield the live client; it stays open until the block exits."""
        with self._lock:
            if self._client is None:
                logger.info("[CONNECTION] Opening client")
                self._client = self._client_factory()
            self._active += 1
            client = self._client

        try:
            yield client
        finally:
            with self._lock:
                self._active -= 1
                if self._active == 0 and self._idle_timeout:
                    self._last_release = time.monotonic()
                    if self._timer is None:
                        self._arm_timer(self._idle_timeout)

    def close(self) -> None:
        """Close the client now, regardless of the idle timer."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._close_client()

    # ---------------------- INTERNALS (lock held) ----------------------

    def _arm_timer(self, delay: float) -> None:
        self._timer = threading.Timer(
            delay, self._on_timer, args=(self._generation,)
        )
        self._timer.daemon = True
        self._timer.start()

    def _close_client(self) -> None:
        if self._client is not None:
            logger.info("[CONNECTION] Closing client")
            client, self._client = self._client, None
            client.close()

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            # the release of the last outstanding lease arms a fresh timer
            if self._active or self._client is None:
                return

            remaining = self._last_release + self._idle_timeout - time.monotonic()
            if remaining > 0:
                self._arm_timer(remaining)
                return

            logger.info(
                "[CONNECTION] Idle for %ss, closing client", self._idle_timeout,
            )
            self._close_client()
