"""Plain values and overrides with ``Provider.arg``.

Strings, numbers and other plain values have no provider of their own. Attach
them to the constructor that needs them; each value is matched to parameters
by its runtime type.
"""

from __future__ import annotations

from graphwire import Container, GraphWireInvalidRegistrationError


class Settings:
    def __init__(self, dsn: str, pool_size: int, timeout: float = 2.5) -> None:
        self.dsn = dsn
        self.pool_size = pool_size
        self.timeout = timeout


class Database:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings


def main() -> None:
    container = Container()
    settings_provider = container.provide(Settings).args("postgres://localhost/app", 5)
    container.provide(Database)

    database = container.resolve(Database)
    print(f"dsn={database.settings.dsn}")  # => dsn=postgres://localhost/app
    print(f"pool_size={database.settings.pool_size}")  # => pool_size=5
    print(f"timeout={database.settings.timeout}")  # => timeout=2.5

    try:
        settings_provider.arg("postgres://elsewhere/app")
    except GraphWireInvalidRegistrationError:
        print("late_arg=rejected")  # => late_arg=rejected


if __name__ == "__main__":
    main()
