from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any, Final, Literal

from graphwire.exceptions import GraphWireDeadlineError, GraphWireLifecycleError

if TYPE_CHECKING:
    from graphwire._internal.container import ConstructedInstance, Container

DEFAULT_START_TIMEOUT: Final[float] = 30.0
DEFAULT_STOP_TIMEOUT: Final[float] = 30.0

_Hook = Literal["start", "stop"]


class App:
    """Start and stop the services a container has built.

    The managed set is every constructed instance exposing ``start`` and
    ``stop`` (see ``Startable``), in the order the container built them.
    ``start`` walks that order and ``stop`` walks it in reverse, one service
    at a time.

    Each call runs as its own task (plain methods run in a worker thread, and
    an awaitable they return is awaited) and is raced against the phase
    deadline. A call that loses the race is abandoned: the orchestrator sends
    its task a cancellation request and moves on without waiting. Cancellation
    is cooperative, so a hook that ignores it, or a plain method already
    running in a worker thread, may keep running in the background.
    """

    def __init__(
        self,
        container: Container,
        *,
        start_timeout: float | None = DEFAULT_START_TIMEOUT,
        stop_timeout: float | None = DEFAULT_STOP_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        """Bind an orchestrator to a container.

        Args:
            container: Container whose constructed instances are managed.
            start_timeout: Seconds allowed for the whole start phase. ``None``
                or ``0`` disables the bound.
            stop_timeout: Seconds allowed for the whole stop phase. ``None``
                or ``0`` disables the bound.
            logger: Logger for phase progress. ``None`` keeps the
                orchestrator silent.

        Examples:
            .. code-block:: python

                app = App(
                    container,
                    start_timeout=5,
                    stop_timeout=10,
                    logger=logging.getLogger("service"),
                )

        """
        self._container = container
        self._start_timeout = start_timeout
        self._stop_timeout = stop_timeout
        self._logger = logger
        self._abandoned: set[asyncio.Future[Any]] = set()

    @property
    def container(self) -> Container:
        return self._container

    @property
    def start_timeout(self) -> float | None:
        return self._start_timeout

    @property
    def stop_timeout(self) -> float | None:
        return self._stop_timeout

    async def start(self) -> None:
        """Start managed services in creation order.

        Iteration stops at the first failure; later services are never
        started.

        Raises:
            GraphWireDeadlineError: If the start phase ran out of time.
            GraphWireLifecycleError: If a service's ``start`` raised.

        """
        self._log(logging.INFO, "Starting...")
        deadline = self._deadline(self._start_timeout)

        for constructed in self._container.startables:
            try:
                await self._call_bounded(constructed, "start", deadline)
            except GraphWireDeadlineError:
                self._log(logging.ERROR, "Start timed out.")
                raise
            except GraphWireLifecycleError as error:
                self._log(logging.ERROR, "Failed to start: %s", error)
                raise

        self._log(logging.INFO, "Started.")

    async def stop(self) -> None:
        """Stop managed services in reverse creation order.

        Every service gets a stop attempt, even after an earlier one failed.
        Deadline expiries are logged and never raised: shutdown is best
        effort.

        Raises:
            GraphWireLifecycleError: The first failure raised by a service's
                ``stop``, after all services were attempted.

        """
        self._log(logging.INFO, "Stopping...")
        deadline = self._deadline(self._stop_timeout)
        first_error: GraphWireLifecycleError | None = None
        timed_out = False

        for constructed in reversed(self._container.startables):
            try:
                await self._call_bounded(constructed, "stop", deadline)
            except GraphWireDeadlineError:
                timed_out = True
            except GraphWireLifecycleError as error:
                if first_error is None:
                    first_error = error

        if timed_out:
            self._log(logging.ERROR, "Stop timed out.")
        if first_error is not None:
            self._log(logging.ERROR, "Failed to stop cleanly: %s", first_error)
            raise first_error
        if not timed_out:
            self._log(logging.INFO, "Stopped.")

    async def run(self, shutdown: asyncio.Event | None = None) -> None:
        """Start, wait for shutdown, then stop.

        If starting fails, whatever did start is stopped and the start error
        is raised. Otherwise the call waits for ``shutdown`` to be set, or for
        the calling task to be cancelled when no event is given. Stopping
        always gets its own fresh deadline, so it still runs after the caller
        was cancelled; ``CancelledError`` is re-raised once it finishes.

        Args:
            shutdown: Event that requests shutdown. Wiring it to process
                signals is up to the caller.

        Raises:
            GraphWireDeadlineError: If the start phase ran out of time.
            GraphWireLifecycleError: If a service failed to start, or failed
                to stop after a normal shutdown.

        Examples:
            .. code-block:: python

                shutdown = asyncio.Event()
                loop.add_signal_handler(signal.SIGTERM, shutdown.set)
                await app.run(shutdown)

        """
        try:
            await self.start()
        except (GraphWireLifecycleError, asyncio.CancelledError):
            await self._stop_best_effort()
            raise

        waiter = shutdown if shutdown is not None else asyncio.Event()
        try:
            await waiter.wait()
        except asyncio.CancelledError:
            await self._stop_best_effort()
            raise

        await self.stop()

    async def _stop_best_effort(self) -> None:
        # stop() has already logged the failure
        with suppress(GraphWireLifecycleError):
            await self.stop()

    async def _call_bounded(
        self,
        constructed: ConstructedInstance,
        hook: _Hook,
        deadline: float | None,
    ) -> None:
        name = constructed.provider.name
        task = self._launch(getattr(constructed.value, hook))

        try:
            done, _pending = await asyncio.wait({task}, timeout=self._remaining(deadline))
        except asyncio.CancelledError:
            self._abandon(task, name=name, hook=hook)
            raise

        if task not in done:
            self._abandon(task, name=name, hook=hook)
            msg = f"'{name}' did not finish {hook} before the deadline."
            raise GraphWireDeadlineError(msg)

        if task.cancelled():
            msg = f"'{name}' {hook} was cancelled."
            raise GraphWireLifecycleError(msg)

        error = task.exception()
        if error is not None:
            msg = f"'{name}' failed to {hook}: {error}"
            raise GraphWireLifecycleError(msg) from error

    def _launch(self, method: Callable[[], Any]) -> asyncio.Future[Any]:
        return asyncio.ensure_future(_invoke_hook(method))

    def _abandon(self, task: asyncio.Future[Any], *, name: str, hook: _Hook) -> None:
        self._abandoned.add(task)
        task.cancel()
        task.add_done_callback(functools.partial(self._on_abandoned_done, name=name, hook=hook))

    def _on_abandoned_done(self, task: asyncio.Future[Any], *, name: str, hook: _Hook) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            self._log(logging.DEBUG, "Abandoned %s of '%s' was cancelled.", hook, name)
        elif (error := task.exception()) is not None:
            self._log(logging.DEBUG, "Abandoned %s of '%s' failed late: %s", hook, name, error)
        else:
            self._log(logging.DEBUG, "Abandoned %s of '%s' finished late.", hook, name)

    def _deadline(self, timeout: float | None) -> float | None:
        if not timeout:
            return None
        return asyncio.get_running_loop().time() + timeout

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - asyncio.get_running_loop().time())

    def _log(self, level: int, msg: str, *args: object) -> None:
        if self._logger is None:
            return
        self._logger.log(level, msg, *args)


async def _invoke_hook(method: Callable[[], Any]) -> None:
    if inspect.iscoroutinefunction(method):
        result = method()
    else:
        result = await asyncio.to_thread(method)
    if inspect.isawaitable(result):
        await result


__all__ = ["DEFAULT_START_TIMEOUT", "DEFAULT_STOP_TIMEOUT", "App"]
