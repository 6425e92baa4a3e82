"""
Dedicated asyncio event loop running in a background thread.

Flask handles each request on its own worker thread; every command is
handed to this one loop, so all session state is mutated on a single
thread.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar
import asyncio
import logging
import threading
from concurrent.futures import Future

T = TypeVar("T")

logger = logging.getLogger(__name__)


class EventLoopThread:
    """Owns an event loop and the daemon thread running it forever."""

    def __init__(self, name: str = "webgis-loop") -> None:
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("Event loop thread not started")
        return self._loop

    def start(self) -> "EventLoopThread":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        self._ready.wait()
        logger.info(f"🔁 Event loop thread '{self._name}' started")
        return self

    def _run(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._ready.set()
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()

    def submit(self, coro: Awaitable[T]) -> "Future[T]":
        """Schedule a coroutine without waiting for it."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Run a coroutine on the loop and wait for its result."""
        return self.submit(coro).result(timeout)

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a plain function on the loop thread and wait for its result."""

        async def _call() -> T:
            return fn(*args)

        return self.run(_call())

    def stop(self) -> None:
        if self._loop is None or self._thread is None:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._thread = None
        self._loop = None
        self._ready.clear()
        logger.info(f"🛑 Event loop thread '{self._name}' stopped")
