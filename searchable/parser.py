"""Keyword and column weight parsing.

Splits a search string into keywords (quoted phrases stay whole), applies
wildcard markers for fulltext-style searches and normalises the searchable
column specification into an ordered ``{column: weight}`` mapping.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal
from numbers import Real
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from searchable.config import Settings

logger = logging.getLogger(__name__)

# A double-quoted phrase, or a run of non-whitespace without quotes
_TOKEN_RE = re.compile(r'"([^"]*)"|([^\s"]+)')

# Single-character wildcard accepted in keywords, and its SQL counterpart
_SINGLE_CHAR_WILDCARD = "?"
_SQL_SINGLE_CHAR_WILDCARD = "_"


class Token(NamedTuple):
    """A single keyword to search for.

    Attributes:
        raw: The keyword as typed, wildcard markers included.
        text: The keyword with markers stripped and ``?`` turned into ``_``.
        is_prefix: Ends with the wildcard marker but does not start with it.
        is_substring: Starts and ends with the wildcard marker.
    """

    raw: str
    text: str
    is_prefix: bool
    is_substring: bool

    @property
    def prefix_pattern(self) -> str:
        return f"{self.text}%"

    @property
    def substring_pattern(self) -> str:
        return f"%{self.text}%"

    @property
    def where_pattern(self) -> str:
        """The most specific pattern for this token, used in the relevance filter."""
        if self.is_substring:
            return self.substring_pattern
        if self.is_prefix:
            return self.prefix_pattern
        return self.text


class Parser:
    """Parse search keywords and searchable columns.

    Args:
        weight: Weight given to columns listed without one.
        wildcard: Marker the caller uses for wildcard matching.
    """

    def __init__(self, weight: float = 1, wildcard: str = "*") -> None:
        self.weight = weight
        self.wildcard = wildcard

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Parser:
        if settings is None:
            from searchable.config import get_settings

            settings = get_settings()
        return cls(weight=settings.WEIGHT, wildcard=settings.WILDCARD)

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def parse_weights(self, columns: str | Iterable[Any] | Mapping[str, Any], *more: str) -> dict[str, float]:
        """Normalise searchable columns into an ordered ``{column: weight}`` dict.

        Accepts a single column name (extra names may follow as positional
        arguments), an iterable of names and/or ``(name, weight)`` pairs, or a
        mapping of name to weight. Later duplicates overwrite earlier ones.
        """
        if isinstance(columns, str):
            columns = (columns, *more)

        if isinstance(columns, Mapping):
            entries: Iterable[tuple[str, Any]] = columns.items()
        else:
            entries = (self._entry(item) for item in columns)

        parsed: dict[str, float] = {}
        for column, weight in entries:
            parsed[column] = self._coerce_weight(column, weight)
        return parsed

    def _entry(self, item: Any) -> tuple[str, Any]:
        if isinstance(item, str):
            return item, None
        column, weight = item
        return column, weight

    def _coerce_weight(self, column: str, weight: Any) -> float:
        if isinstance(weight, bool) or weight is None:
            return self.weight
        if isinstance(weight, str):
            try:
                weight = float(weight)
            except ValueError:
                return self.weight
        if not isinstance(weight, Real | Decimal):
            return self.weight
        weight = float(weight)
        if not math.isfinite(weight):
            return self.weight
        if weight <= 0:
            logger.warning("Non-positive weight %r for column %s, using default %s", weight, column, self.weight)
            return self.weight
        return weight

    # ------------------------------------------------------------------
    # Keywords
    # ------------------------------------------------------------------

    def parse_query(self, query: str, fulltext: bool = True) -> list[str]:
        """Split *query* into keywords, adding wildcards when *fulltext* is set.

        Splits on any whitespace, keeping double-quoted phrases as a single
        keyword without the quotes. In fulltext mode every keyword is wrapped
        in wildcard markers so it matches anywhere in the column.
        """
        words = self._split_string(query.strip())

        if fulltext:
            words = self._add_wildcards(words)

        return words

    def _split_string(self, query: str) -> list[str]:
        words = []
        for phrase, word in _TOKEN_RE.findall(query):
            value = phrase.strip() if phrase else word
            if value:
                words.append(value)
        return words

    def _add_wildcards(self, words: list[str]) -> list[str]:
        token = self.wildcard
        return [f"{token}{word.strip(token)}{token}" for word in words]

    def strip_wildcards(self, word: str) -> str:
        """Strip wildcard markers from the ends of *word*.

        Embedded markers are kept literally; ``?`` becomes the SQL single
        character wildcard.
        """
        return word.strip(self.wildcard).replace(_SINGLE_CHAR_WILDCARD, _SQL_SINGLE_CHAR_WILDCARD)

    def make_token(self, word: str) -> Token:
        starts = word.startswith(self.wildcard)
        ends = word.endswith(self.wildcard)
        return Token(
            raw=word,
            text=self.strip_wildcards(word),
            is_prefix=ends and not starts,
            is_substring=starts and ends and len(word) > len(self.wildcard),
        )
