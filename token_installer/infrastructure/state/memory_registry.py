from __future__ import annotations

import asyncio
import logging
import threading
import time
from contextlib import suppress
from typing import Callable, Optional

from token_installer.domain.ports.state_store import StateStorePort
from token_installer.domain.services import generate_state_token

logger = logging.getLogger(__name__)


class InMemoryStateRegistry(StateStorePort):
    """
    Process-local table of OAuth state tokens -> creation time.

    Every read-modify-write on the table happens under one lock, so two
    concurrent consume() calls on the same token cannot both succeed.
    Nothing survives a restart.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 600,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        token_factory: Callable[[], str] = generate_state_token,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._sweep_interval = float(sweep_interval_seconds)
        self._clock = clock
        self._token_factory = token_factory
        self._states: dict[str, float] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def _expired(self, created_at: float, now: float) -> bool:
        return now - created_at > self._ttl

    def issue(self) -> str:
        token = self._token_factory()
        with self._lock:
            if token in self._states:
                raise RuntimeError("state token collision")
            self._states[token] = self._clock()
        return token

    def is_pending(self, token: str) -> bool:
        if not token:
            return False
        with self._lock:
            created_at = self._states.get(token)
            return created_at is not None and not self._expired(
                created_at, self._clock()
            )

    def consume(self, token: str) -> bool:
        if not token:
            return False
        with self._lock:
            created_at = self._states.pop(token, None)
            if created_at is None:
                return False
            # popped either way: an expired entry is as good as absent
            return not self._expired(created_at, self._clock())

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            stale = [t for t, ts in self._states.items() if self._expired(ts, now)]
            for token in stale:
                del self._states[token]
        if stale:
            logger.debug("state sweep", extra={"removed": len(stale)})
        return len(stale)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("state sweep failed")

    async def open(self) -> None:
        """Start the periodic sweep on the running loop."""
        if self.is_open:
            return
        self._sweeper = asyncio.create_task(self._sweep_forever())
        logger.info(
            "state registry opened",
            extra={
                "ttl_seconds": self._ttl,
                "sweep_interval_seconds": self._sweep_interval,
            },
        )

    async def close(self) -> None:
        """Stop the sweep and forget every pending state."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        with self._lock:
            self._states.clear()
        logger.info("state registry closed")
