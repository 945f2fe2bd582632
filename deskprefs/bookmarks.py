"""Bookmarked movies and their ``bookmarks.toml`` reader."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List
from urllib.parse import unquote, urlsplit

from tomlkit.items import AoT

from .parse import DocumentHolder, ParseContext, ParseResult, ParseWarning, parse_document

INVALID_URL = "invalid:///"

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


def parse_url(text: str) -> str:
    """Return ``text`` if it is an absolute URL, raise ``ValueError`` otherwise."""

    candidate = text.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise ValueError(f"Not a URL: {text!r}") from exc
    if not parts.scheme or not _SCHEME.match(parts.scheme):
        raise ValueError(f"Not an absolute URL: {text!r}")
    if not (parts.netloc or parts.path):
        raise ValueError(f"URL has no location: {text!r}")
    return candidate


def url_to_readable_name(url: str) -> str:
    """Last path segment of ``url``, percent-decoded, or the URL itself."""

    try:
        path = urlsplit(url).path
    except ValueError:
        return url
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    if not segment:
        return url
    return unquote(segment)


@dataclass(slots=True)
class Bookmark:
    url: str
    name: str

    def is_invalid(self) -> bool:
        return self.url == INVALID_URL


Bookmarks = List[Bookmark]


def read_bookmarks(text: str) -> ParseResult[Bookmarks]:
    """Read ``[[bookmark]]`` entries, keeping unusable ones as invalid bookmarks.

    Raises :class:`~deskprefs.parse.DocumentSyntaxError` only if ``text`` is
    not TOML.
    """

    document = parse_document(text)
    cx = ParseContext()
    bookmarks: Bookmarks = []

    if "bookmark" in document:
        array = document["bookmark"]
        if isinstance(array, AoT):
            for index, table in enumerate(array):
                with cx.nested(f"bookmark[{index}]"):
                    url = cx.parse_from_str(table, "url", parse_url)
                    if url is None:
                        if "url" not in table:
                            cx.warnings.append(ParseWarning(cx.path_to("url"), "missing"))
                        url = INVALID_URL
                    name = cx.get_str(table, "name")
                    if name is None:
                        name = url_to_readable_name(url)
                bookmarks.append(Bookmark(url=url, name=name))
        else:
            cx.unexpected_type("bookmark", "array of tables", array)

    return ParseResult(DocumentHolder(bookmarks, document), cx.warnings)


__all__ = [
    "Bookmark",
    "Bookmarks",
    "INVALID_URL",
    "parse_url",
    "read_bookmarks",
    "url_to_readable_name",
]
