"""Weighted relevance scoring for SQLAlchemy select statements.

For every searchable column a ``CASE`` sum scores the row:

* exact match of any keyword: ``exact_score * weight``
* keyword typed as ``word*`` matching the start: ``prefix_score * weight``
* keyword typed as ``*word*`` matching anywhere: ``substring_score * weight``

The column sums are added up and aggregated with ``max()`` per group key,
which collapses duplicates produced by joins. Rows are filtered on a
relevance threshold (default ``sum(weights) / threshold_divisor``) in an
outer query and ordered by relevance first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from sqlalchemy import Select, case, func, literal, literal_column, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import FromClause, Join

from searchable.columns import ColumnCollection, WeightedColumn
from searchable.exceptions import SearchableError
from searchable.grammar import Grammar, numeric_literal
from searchable.params import get_scoring_params
from searchable.parser import Parser, Token
from searchable.query import SearchQuery

logger = logging.getLogger(__name__)

_NO_SCORE = literal_column("0")


@dataclass
class ScoreExpression:
    """Relevance clauses accumulated over all searchable columns.

    Attributes:
        cases: One ``CASE`` sum per column, in column order.
        predicates: ``LIKE`` conditions for the relevance filter.
        select_bindings: Values bound in ``cases``, in render order.
        where_bindings: Values bound in ``predicates``, in render order.
    """

    cases: list[ColumnElement] = field(default_factory=list)
    predicates: list[ColumnElement] = field(default_factory=list)
    select_bindings: list[str] = field(default_factory=list)
    where_bindings: list[str] = field(default_factory=list)

    def relevance(self) -> ColumnElement:
        total = self.cases[0]
        for expression in self.cases[1:]:
            total = total + expression
        return func.max(total).label("relevance")

    def where(self) -> ColumnElement:
        return or_(*self.predicates).self_group()


def _base_table(query: Select) -> FromClause:
    """Return the leftmost table the query selects from."""
    froms = query.get_final_froms()
    if not froms:
        raise SearchableError("Cannot search a query without a FROM clause")
    base = froms[0]
    while isinstance(base, Join):
        base = base.left
    if not getattr(base, "name", None):
        raise SearchableError(f"Cannot resolve the base table name from {base!r}")
    return base


class Searchable:
    """Build relevance-scored queries.

    Args:
        parser: Keyword and column parser. Defaults to one built from settings.
        grammar: Dialect grammar. Defaults to one built from settings.
        params: Overrides for the scoring parameters.
    """

    def __init__(
        self,
        parser: Parser | None = None,
        grammar: Grammar | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.parser = parser or Parser.from_settings()
        self.grammar = grammar or Grammar.from_settings()
        self.params = get_scoring_params(params)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def search(
        self,
        query: Select,
        keywords: str | Iterable[str],
        columns: str | Iterable[Any] | Mapping[str, Any],
        fulltext: bool = True,
        threshold: float | None = None,
        group_by: str = "id",
    ) -> Select | SearchQuery:
        """Search through *columns* of *query* for *keywords* with relevance scoring.

        Args:
            query: The select statement to search. It is never modified.
            keywords: A search string, or a list of keywords used as typed.
            columns: Column names, ``(name, weight)`` pairs or a name to weight mapping.
            fulltext: Wrap every keyword in wildcards (match anywhere).
            threshold: Minimum relevance. ``0`` only orders by relevance.
            group_by: Row identifier column, qualified with the base table
                unless it contains a dot.

        Returns:
            A ``SearchQuery``, or *query* itself when there is nothing to search
            for or nothing to search in.
        """
        if isinstance(keywords, str):
            words = self.parser.parse_query(keywords, fulltext)
        else:
            words = [word.strip() for word in keywords if word and word.strip()]

        weights = self.parser.parse_weights(columns)

        tokens = self.tokens(words)
        if not tokens or not weights:
            logger.debug("Search skipped: %d keywords, %d columns", len(tokens), len(weights))
            return query

        base = _base_table(query)
        collection = self.columns(base.name, weights)
        resolved = self.resolve_threshold(collection, threshold)

        inner = self.build_inner(query, base.name, tokens, collection, group_by, resolved)

        # Ordering belongs to the outer query, after the relevance ordering;
        # SearchQuery resolves name references against the aliased subquery.
        return SearchQuery(
            inner,
            alias=base.name,
            threshold=resolved,
            grammar=self.grammar,
            orders=query._order_by_clauses,
        )

    def tokens(self, words: Iterable[str]) -> list[Token]:
        """Turn keywords into tokens, dropping those left empty by stripping."""
        tokens = []
        for word in words:
            token = self.parser.make_token(word)
            if token.text:
                tokens.append(token)
            else:
                logger.debug("Dropping keyword %r with no searchable text", word)
        return tokens

    def columns(self, base_table: str, weights: Mapping[str, float]) -> ColumnCollection:
        """Create the searchable column collection from a ``{column: weight}`` mapping."""
        collection = ColumnCollection()
        for key, weight in weights.items():
            collection.add(WeightedColumn.from_key(key, weight, base_table, self.grammar))
        return collection

    def resolve_threshold(self, columns: ColumnCollection, threshold: float | None) -> float:
        if threshold is None:
            resolved = columns.total_weight() / self.params["threshold_divisor"]
            logger.debug("Relevance threshold defaulted to %s", resolved)
            return resolved
        return float(threshold)

    # ------------------------------------------------------------------
    # Inner scoring query
    # ------------------------------------------------------------------

    def build_inner(
        self,
        query: Select,
        base_table: str,
        tokens: list[Token],
        columns: ColumnCollection,
        group_by: str,
        threshold: float,
    ) -> Select:
        """Derive the scoring query from *query*.

        Selects ``<table>.*`` with the aggregated relevance, groups by the
        row identifier and, unless *threshold* is zero, keeps only rows
        matching at least one keyword. Existing ordering is dropped.
        """
        score = self.score(columns, tokens)

        inner = query.with_only_columns(
            literal_column(f"{self.grammar.quote(base_table)}.*"),
            score.relevance(),
            maintain_column_froms=True,
        )
        inner = inner.order_by(None).group_by(literal_column(self._group_column(base_table, group_by)))

        # A zero threshold only orders the full result by relevance, so the
        # extra filtering is left out.
        if threshold > 0:
            inner = inner.where(score.where())

        return inner

    def _group_column(self, base_table: str, group_by: str) -> str:
        if "." in group_by:
            table, column = group_by.split(".", 1)
            return self.grammar.wrap(self.grammar.prefix_table(table), column)
        return self.grammar.wrap(base_table, group_by)

    def score(self, columns: ColumnCollection, tokens: list[Token]) -> ScoreExpression:
        score = ScoreExpression()
        for column in columns:
            self._add_column(score, column, tokens)
        return score

    def _add_column(self, score: ScoreExpression, column: WeightedColumn, tokens: list[Token]) -> None:
        expression = column.expression

        exact = [token.text for token in tokens]
        prefix = [token.prefix_pattern for token in tokens if token.is_prefix]
        substring = [token.substring_pattern for token in tokens if token.is_substring]

        total = self._case(
            [expression == literal(value) for value in exact],
            self.params["exact_score"] * column.weight,
        )
        if prefix:
            total = total + self._case(
                [self._like(expression, value) for value in prefix],
                self.params["prefix_score"] * column.weight,
            )
        if substring:
            total = total + self._case(
                [self._like(expression, value) for value in substring],
                self.params["substring_score"] * column.weight,
            )

        where = [token.where_pattern for token in tokens]

        score.cases.append(total)
        score.select_bindings.extend(exact + prefix + substring)
        score.predicates.extend(self._like(expression, value) for value in where)
        score.where_bindings.extend(where)

    def _case(self, conditions: list[ColumnElement], score: float) -> ColumnElement:
        return case((or_(*conditions), numeric_literal(score)), else_=_NO_SCORE)

    def _like(self, expression: ColumnElement, value: str) -> ColumnElement:
        """Case-insensitive where the dialect supports it (``ILIKE`` on PostgreSQL)."""
        if self.grammar.is_postgres:
            return expression.ilike(literal(value))
        return expression.like(literal(value))


@lru_cache
def get_searchable() -> Searchable:
    """Return a cached ``Searchable`` configured from settings."""
    return Searchable()


def search(
    query: Select,
    keywords: str | Iterable[str],
    columns: str | Iterable[Any] | Mapping[str, Any],
    fulltext: bool = True,
    threshold: float | None = None,
    group_by: str = "id",
    *,
    searchable: Searchable | None = None,
) -> Select | SearchQuery:
    """Relevance search *query*; see ``Searchable.search``."""
    return (searchable or get_searchable()).search(query, keywords, columns, fulltext, threshold, group_by)
