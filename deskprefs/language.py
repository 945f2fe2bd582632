"""Language identifiers and host locale detection."""
from __future__ import annotations

import locale
import os
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

_LANGUAGE = re.compile(r"^(?:[a-z]{2,3}|[a-z]{5,8})$", re.IGNORECASE)
_SCRIPT = re.compile(r"^[a-z]{4}$", re.IGNORECASE)
_REGION = re.compile(r"^(?:[a-z]{2}|[0-9]{3})$", re.IGNORECASE)
_VARIANT = re.compile(r"^(?:[a-z0-9]{5,8}|[0-9][a-z0-9]{3})$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class LanguageIdentifier:
    """A BCP 47 style language tag such as ``en-US`` or ``zh-Hans-CN``."""

    language: str
    script: Optional[str] = None
    region: Optional[str] = None
    variants: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "LanguageIdentifier":
        """Parse ``text``; underscores are accepted as separators.

        Raises ``ValueError`` for anything that is not a language tag.
        """

        parts = text.strip().replace("_", "-").split("-")
        if not _LANGUAGE.match(parts[0]):
            raise ValueError(f"Not a language identifier: {text!r}")
        language = parts[0].lower()
        rest = parts[1:]
        script = None
        region = None
        if rest and _SCRIPT.match(rest[0]):
            script = rest.pop(0).title()
        if rest and _REGION.match(rest[0]):
            region = rest.pop(0).upper()
        variants = []
        for part in rest:
            if not _VARIANT.match(part):
                raise ValueError(f"Not a language identifier: {text!r}")
            variants.append(part.lower())
        return cls(language, script, region, tuple(variants))

    def __str__(self) -> str:
        parts = [self.language]
        if self.script:
            parts.append(self.script)
        if self.region:
            parts.append(self.region)
        parts.extend(self.variants)
        return "-".join(parts)


US_ENGLISH = LanguageIdentifier("en", region="US")


def system_locale() -> Optional[str]:
    """Return the host locale name (``en_US`` style) or ``None``."""

    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(var)
        if value:
            return value
    try:
        name, _encoding = locale.getlocale()
    except ValueError:
        return None
    return name


def default_language(provider: Optional[Callable[[], Optional[str]]] = None) -> LanguageIdentifier:
    """Language derived from the host locale, falling back to US English."""

    raw = (provider or system_locale)()
    if not raw:
        return US_ENGLISH
    # strip encoding and modifier, e.g. "de_DE.UTF-8@euro"
    raw = raw.split(".", 1)[0].split("@", 1)[0]
    if raw.upper() in ("C", "POSIX"):
        return US_ENGLISH
    try:
        return LanguageIdentifier.parse(raw)
    except ValueError:
        return US_ENGLISH


__all__ = ["LanguageIdentifier", "US_ENGLISH", "default_language", "system_locale"]
