"""Typed documents backed by their original TOML text.

A :class:`DocumentHolder` keeps the typed projection of a file next to the
``tomlkit`` document it was read from.  Every change goes through
:meth:`DocumentHolder.edit`, which hands out both at once, so the text written
back still contains the comments, ordering and keys we do not understand.

The helpers on :class:`ParseContext` read one field at a time and turn any
problem into a :class:`ParseWarning` instead of an exception.  A reader keeps
the default for that field and carries on with the rest of the file.
"""
from __future__ import annotations

import copy
import math
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, List, Optional, TypeVar

import tomlkit
from tomlkit import TOMLDocument
from tomlkit.exceptions import TOMLKitError

T = TypeVar("T")
R = TypeVar("R")
V = TypeVar("V")


class DocumentSyntaxError(ValueError):
    """Raised when text cannot be parsed as TOML at all."""


def parse_document(text: str) -> TOMLDocument:
    try:
        return tomlkit.parse(text)
    except TOMLKitError as exc:
        raise DocumentSyntaxError(f"Invalid TOML: {exc}") from exc


class DocumentHolder(Generic[T]):
    """A typed value plus the TOML document it is persisted as."""

    __slots__ = ("_value", "_document")

    def __init__(self, value: T, document: Optional[TOMLDocument] = None) -> None:
        self._value = value
        self._document = document if document is not None else tomlkit.document()

    @property
    def value(self) -> T:
        return self._value

    def edit(self, fun: Callable[[T, TOMLDocument], R]) -> R:
        """Mutate the value and the document together."""

        return fun(self._value, self._document)

    @contextmanager
    def rollback_on_error(self) -> Iterator["DocumentHolder[T]"]:
        """Undo every edit made inside the block if it raises."""

        value = copy.deepcopy(self._value)
        text = tomlkit.dumps(self._document)
        try:
            yield self
        except BaseException:
            self._value = value
            self._document = tomlkit.parse(text)
            raise

    def serialize(self) -> str:
        return tomlkit.dumps(self._document)


@dataclass(frozen=True, slots=True)
class ParseWarning:
    """A field that was ignored while reading a document."""

    path: str
    message: str

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"Invalid value for {self.path}: {self.message}"


@dataclass(slots=True)
class ParseResult(Generic[T]):
    result: DocumentHolder[T]
    warnings: List[ParseWarning] = field(default_factory=list)

    @property
    def value(self) -> T:
        return self.result.value


def _plain(value: Any) -> Any:
    unwrap = getattr(value, "unwrap", None)
    if unwrap is not None and not isinstance(value, Mapping):
        return unwrap()
    return value


def type_name(value: Any) -> str:
    value = _plain(value)
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "table"
    if isinstance(value, list):
        return "array"
    return "datetime"


class ParseContext:
    """Tracks the key path being read and the warnings collected so far."""

    def __init__(self) -> None:
        self._path: List[str] = []
        self.warnings: List[ParseWarning] = []

    def path_to(self, key: str) -> str:
        return ".".join([*self._path, key])

    @contextmanager
    def nested(self, key: str) -> Iterator[None]:
        self._path.append(key)
        try:
            yield
        finally:
            self._path.pop()

    def unexpected_type(self, key: str, expected: str, found: Any) -> None:
        self.warnings.append(
            ParseWarning(self.path_to(key), f"expected {expected} but found {type_name(found)}")
        )

    def unsupported_value(self, key: str, value: Any, reason: str = "unsupported value") -> None:
        self.warnings.append(ParseWarning(self.path_to(key), f"{reason} {_plain(value)!r}"))

    def get_str(self, table: Mapping, key: str) -> Optional[str]:
        if key not in table:
            return None
        value = _plain(table[key])
        if isinstance(value, str):
            return str(value)
        self.unexpected_type(key, "string", value)
        return None

    def get_bool(self, table: Mapping, key: str) -> Optional[bool]:
        if key not in table:
            return None
        value = _plain(table[key])
        if isinstance(value, bool):
            return value
        self.unexpected_type(key, "boolean", value)
        return None

    def get_float(self, table: Mapping, key: str) -> Optional[float]:
        """Read a number; integers are accepted, NaN and infinities are not."""

        if key not in table:
            return None
        value = _plain(table[key])
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.unexpected_type(key, "float", value)
            return None
        if not math.isfinite(value):
            self.unsupported_value(key, value)
            return None
        return float(value)

    def parse_from_str(self, table: Mapping, key: str, parser: Callable[[str], V]) -> Optional[V]:
        """Read a string and convert it, ``parser`` signals bad input with ``ValueError``."""

        raw = self.get_str(table, key)
        if raw is None:
            return None
        try:
            return parser(raw)
        except ValueError:
            self.unsupported_value(key, raw)
            return None

    def get_table(self, table: Mapping, key: str) -> Optional[Mapping]:
        if key not in table:
            return None
        value = table[key]
        if isinstance(value, Mapping):
            return value
        self.unexpected_type(key, "table", value)
        return None


__all__ = [
    "DocumentHolder",
    "DocumentSyntaxError",
    "ParseContext",
    "ParseResult",
    "ParseWarning",
    "parse_document",
    "type_name",
]
