"""Ordered start and stop with ``App``.

Any built instance exposing ``start`` and ``stop`` is managed. ``App.run``
starts them in creation order, waits for shutdown, and stops them in reverse.
Plain methods are run in a worker thread so they never block the event loop.
"""

from __future__ import annotations

import asyncio

from graphwire import App, Container


class EventLog:
    def __init__(self) -> None:
        self.events: list[str] = []


class Database:
    def __init__(self, log: EventLog) -> None:
        self.log = log

    async def start(self) -> None:
        self.log.events.append("database:start")

    async def stop(self) -> None:
        self.log.events.append("database:stop")


class Worker:
    def __init__(self, log: EventLog, database: Database) -> None:
        self.log = log
        self.database = database

    def start(self) -> None:
        self.log.events.append("worker:start")

    def stop(self) -> None:
        self.log.events.append("worker:stop")


async def main() -> None:
    container = Container()
    container.provide(EventLog)
    container.provide(Database)
    container.provide(Worker)
    log = container.resolve(EventLog)
    container.resolve(Worker)

    app = App(container, start_timeout=5, stop_timeout=5)
    shutdown = asyncio.Event()
    running = asyncio.create_task(app.run(shutdown))

    await asyncio.sleep(0.1)
    print(f"running={','.join(log.events)}")  # => running=database:start,worker:start

    shutdown.set()
    await running
    print(f"stopped={','.join(log.events[2:])}")  # => stopped=worker:stop,database:stop


if __name__ == "__main__":
    asyncio.run(main())
