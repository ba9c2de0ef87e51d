"""Quickstart: wire a service graph from constructor type hints.

Register one constructor per component, resolve only the top-level
capability, and see graphwire build the whole chain once.
"""

from __future__ import annotations

from typing import Protocol

from graphwire import Container


class DBClient(Protocol):
    def exec(self) -> str: ...


class Repo(Protocol):
    def find(self) -> str: ...


class Service(Protocol):
    def run(self) -> str: ...


class SqlClient:
    def exec(self) -> str:
        return "data"


class SqlRepo:
    def __init__(self, db: DBClient) -> None:
        self.db = db

    def find(self) -> str:
        return self.db.exec()


class MyService:
    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    def run(self) -> str:
        return f"Running MyService with: {self.repo.find()}"


def new_db_client() -> SqlClient:
    return SqlClient()


def new_repo(db: DBClient) -> SqlRepo:
    return SqlRepo(db)


def new_service(repo: Repo) -> MyService:
    return MyService(repo)


def main() -> None:
    container = Container()
    container.provide(new_service)
    container.provide(new_repo)
    container.provide(new_db_client)

    service = container.resolve(Service)
    print(service.run())  # => Running MyService with: data

    order = ">".join(type(instance).__name__ for instance in container.instances)
    print(f"created={order}")  # => created=SqlClient>SqlRepo>MyService

    same = container.resolve(MyService) is service
    print(f"singleton={same}")  # => singleton=True


if __name__ == "__main__":
    main()
