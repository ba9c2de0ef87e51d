"""Shared pytest fixtures for graphwire tests."""

import pytest

from graphwire import Container


@pytest.fixture()
def container() -> Container:
    """Default container: protocol lookups resolve to the first registered match."""
    return Container()


@pytest.fixture()
def strict_container() -> Container:
    """Container that rejects protocols satisfied by several providers."""
    return Container(strict_capabilities=True)
