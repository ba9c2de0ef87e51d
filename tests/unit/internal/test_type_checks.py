from typing import Protocol

from graphwire._internal.type_checks import (
    conforms_to,
    is_assignable,
    is_protocol,
    is_runtime_class,
    protocol_members,
)


class Reader(Protocol):
    def read(self) -> bytes: ...


class ReadWriter(Reader, Protocol):
    name: str

    def write(self, data: bytes) -> None: ...


class FileReader:
    def read(self) -> bytes:
        return b""


class FileReadWriter:
    name: str

    def read(self) -> bytes:
        return b""

    def write(self, data: bytes) -> None:
        del data


class NominalReader(Reader):
    pass


class Base:
    pass


class Derived(Base):
    pass


def test_is_runtime_class_rejects_generic_aliases() -> None:
    assert is_runtime_class(int) is True
    assert is_runtime_class(list[int]) is False
    assert is_runtime_class("int") is False


def test_is_protocol_detects_protocol_classes_only() -> None:
    assert is_protocol(Reader) is True
    assert is_protocol(ReadWriter) is True
    assert is_protocol(FileReader) is False
    assert is_protocol(NominalReader) is False
    assert is_protocol(Protocol) is False


def test_protocol_members_include_inherited_members() -> None:
    assert protocol_members(Reader) == frozenset({"read"})
    assert protocol_members(ReadWriter) == frozenset({"read", "write", "name"})


def test_structural_conformance() -> None:
    assert conforms_to(FileReader, Reader) is True
    assert conforms_to(FileReader, ReadWriter) is False
    assert conforms_to(FileReadWriter, ReadWriter) is True


def test_nominal_subclass_conforms() -> None:
    assert conforms_to(NominalReader, Reader) is True


def test_is_assignable_by_identity_subclass_and_structure() -> None:
    assert is_assignable(Base, Base) is True
    assert is_assignable(Derived, Base) is True
    assert is_assignable(Base, Derived) is False
    assert is_assignable(FileReader, Reader) is True
    assert is_assignable(Base, Reader) is False


def test_is_assignable_rejects_non_classes() -> None:
    assert is_assignable(list[int], list) is False
    assert is_assignable(int, list[int]) is False
