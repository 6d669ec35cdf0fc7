"""Username sanitization and uniqueness suffixing."""

import re
import unicodedata
from collections.abc import Callable, Iterable

_EDGE_JUNK = re.compile(r"^[^A-Za-z0-9]+|\W+$", re.ASCII)
_INVALID_CHARS = re.compile(r"[^\w.-]", re.ASCII)
_SEPARATOR_RUNS = re.compile(r"[-_.]{2,}")
_TRAILING_JUNK = re.compile(r"[^A-Za-z0-9]+$")


def sanitize_username(raw: str | None) -> str:
    """Reduce arbitrary text to the username character set.

    Accents are transliterated, leading and trailing symbol runs are trimmed
    (not replaced), remaining invalid characters become ``_`` and separator
    runs collapse to a single ``_``::

        >>> sanitize_username("Hokli$$!!")
        'Hokli'
        >>> sanitize_username("Bob The Bob")
        'Bob_The_Bob'
    """
    if not raw:
        return ""
    name = unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    name = _EDGE_JUNK.sub("", name.strip())
    name = _INVALID_CHARS.sub("_", name)
    name = _SEPARATOR_RUNS.sub("_", name)
    name = _TRAILING_JUNK.sub("", name)
    return name


class UsernameSuggester:
    """Derives an available username from a list of candidate sources."""

    def __init__(self, min_length: int = 3, max_length: int = 20) -> None:
        self._min_length = min_length
        self._max_length = max_length

    def fix_length(self, name: str) -> str:
        """Pad short names with ``1`` and truncate long ones."""
        if not name:
            return name
        if len(name) < self._min_length:
            name = name + "1" * (self._min_length - len(name))
        if len(name) > self._max_length:
            name = _TRAILING_JUNK.sub("", name[: self._max_length])
        return name

    def sanitize(self, raw: str | None) -> str:
        return self.fix_length(sanitize_username(raw))

    def first_valid(self, candidates: Iterable[str | None]) -> str:
        """Sanitized form of the first candidate that survives sanitization."""
        for candidate in candidates:
            name = self.sanitize(candidate)
            if name:
                return name
        return ""

    def suggest(
        self, candidates: Iterable[str | None], is_taken: Callable[[str], bool]
    ) -> str:
        """Pick the first usable candidate and make it unique.

        Collisions get the smallest free numeric suffix (``bob`` → ``bob1``).
        Returns ``""`` when every candidate sanitizes away.
        """
        name = self.first_valid(candidates)
        if not name or not is_taken(name):
            return name

        i = 1
        while True:
            suffix = str(i)
            attempt = name[: self._max_length - len(suffix)] + suffix
            if not is_taken(attempt):
                return attempt
            i += 1
