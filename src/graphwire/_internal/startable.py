from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable


@runtime_checkable
class Startable(Protocol):
    """Expose start/stop hooks driven by ``App``.

    Any constructed instance with both methods is managed automatically, no
    opt-in registration needed. Each method may be ``async def`` or a plain
    method; plain methods run in a worker thread, and an awaitable they return
    is awaited on the event loop. Signal failure by raising. A hook that misses
    its deadline receives a cancellation request.

    Examples:
        .. code-block:: python

            class HttpServer:
                async def start(self) -> None:
                    await self._server.start_serving()

                async def stop(self) -> None:
                    self._server.close()
                    await self._server.wait_closed()

    """

    def start(self) -> Awaitable[None] | None:
        """Start the service."""
        ...

    def stop(self) -> Awaitable[None] | None:
        """Stop the service and release what it owns."""
        ...


__all__ = ["Startable"]
