"""Registration and resolution errors.

Invalid constructors fail at ``provide``. Missing dependencies, cycles, and
constructor failures surface from ``resolve`` with the constructor chain in
the message.
"""

from __future__ import annotations

from graphwire import (
    Container,
    GraphWireCircularDependencyError,
    GraphWireConstructionError,
    GraphWireDependencyNotRegisteredError,
    GraphWireDuplicateProviderError,
    GraphWireInvalidRegistrationError,
)


class Cache:
    pass


class Mailer:
    def __init__(self, cache: Cache) -> None:
        self.cache = cache


class Left:
    pass


class Right:
    pass


class Broker:
    pass


def new_cache() -> Cache:
    return Cache()


def other_cache() -> Cache:
    return Cache()


def new_mailer(cache: Cache) -> Mailer:
    return Mailer(cache)


def new_left(right: Right) -> Left:
    del right
    return Left()


def new_right(left: Left) -> Right:
    del left
    return Right()


def new_broker() -> tuple[Broker, Exception | None]:
    return Broker(), ConnectionError("broker unreachable")


def log_nothing() -> None:
    return None


def main() -> None:
    container = Container()

    try:
        container.provide(log_nothing)
    except GraphWireInvalidRegistrationError:
        print("no_value=rejected")  # => no_value=rejected

    container.provide(new_mailer)
    try:
        container.resolve(Mailer)
    except GraphWireDependencyNotRegisteredError as error:
        names_constructor = "new_mailer" in str(error)
        print(f"missing_names_constructor={names_constructor}")  # => missing_names_constructor=True

    container.provide(new_cache)
    try:
        container.provide(other_cache)
    except GraphWireDuplicateProviderError:
        print("duplicate=rejected")  # => duplicate=rejected

    container.provide(new_left)
    container.provide(new_right)
    try:
        container.resolve(Left)
    except GraphWireCircularDependencyError:
        print("cycle=detected")  # => cycle=detected

    container.provide(new_broker)
    try:
        container.resolve(Broker)
    except GraphWireConstructionError as error:
        print(f"cause={error.__cause__}")  # => cause=broker unreachable

    mailer = container.resolve(Mailer)
    print(f"mailer_resolves={isinstance(mailer, Mailer)}")  # => mailer_resolves=True


if __name__ == "__main__":
    main()
