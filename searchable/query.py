"""Composite relevance query.

``SearchQuery`` is what a search returns. It keeps the inner scoring query
open for further composition (joins, filters, grouping) and renders the
final statement on demand::

    SELECT * FROM (<inner scoring query>) AS <table>
    WHERE relevance >= <threshold>
    ORDER BY relevance DESC, <caller ordering...>
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, literal_column, select
from sqlalchemy.sql.elements import UnaryExpression, _textual_label_reference

from searchable.grammar import Grammar, numeric_literal
from searchable.subquery import Subquery

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_RELEVANCE = literal_column("relevance")
_ALIAS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)


def _clear_select_aliases(columns: Sequence[str]) -> list[str]:
    """Strip ``AS alias`` parts from select columns."""
    return [_ALIAS_RE.split(column, maxsplit=1)[0].strip() for column in columns]


class SearchQuery:
    """Relevance-ordered query built around an inner scoring statement.

    Every modifier returns a new ``SearchQuery``; the instance it is called
    on is left untouched, like SQLAlchemy's own generative statements.

    Args:
        inner: The scoring query (relevance select, search where, group by).
        alias: Name the inner query is exposed under, the base table name.
        threshold: Minimum relevance score of returned rows.
        grammar: Grammar used for identifiers and rendering.
        orders: Ordering applied after ``relevance DESC``.
        limit: Outer query limit.
        offset: Outer query offset.
    """

    def __init__(
        self,
        inner: Select,
        *,
        alias: str,
        threshold: float,
        grammar: Grammar,
        orders: Sequence[Any] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> None:
        self._inner = inner
        self._alias = alias
        self._threshold = threshold
        self._grammar = grammar
        self._orders = tuple(self._order_clause(clause) for clause in orders)
        self._limit = limit
        self._offset = offset

    def _clone(self, **changes: Any) -> SearchQuery:
        state: dict[str, Any] = {
            "inner": self._inner,
            "alias": self._alias,
            "threshold": self._threshold,
            "grammar": self._grammar,
            "orders": self._orders,
            "limit": self._limit,
            "offset": self._offset,
        }
        state.update(changes)
        return SearchQuery(**state)

    @property
    def inner(self) -> Select:
        return self._inner

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    @property
    def orders(self) -> tuple[Any, ...]:
        return self._orders

    def with_threshold(self, threshold: float) -> SearchQuery:
        """Return a copy filtering on a different relevance threshold."""
        return self._clone(threshold=float(threshold))

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def where(self, *criteria: Any) -> SearchQuery:
        return self._clone(inner=self._inner.where(*criteria))

    def filter(self, *criteria: Any) -> SearchQuery:
        return self._clone(inner=self._inner.filter(*criteria))

    def having(self, *criteria: Any) -> SearchQuery:
        return self._clone(inner=self._inner.having(*criteria))

    def join(self, target: Any, onclause: Any = None, *, isouter: bool = False, full: bool = False) -> SearchQuery:
        return self._clone(inner=self._inner.join(target, onclause, isouter=isouter, full=full))

    def outerjoin(self, target: Any, onclause: Any = None, *, full: bool = False) -> SearchQuery:
        return self._clone(inner=self._inner.outerjoin(target, onclause, full=full))

    def group_by(self, *clauses: Any) -> SearchQuery:
        return self._clone(inner=self._inner.group_by(*clauses))

    def order_by(self, *clauses: Any) -> SearchQuery:
        """Append ordering after ``relevance DESC``; ``order_by(None)`` clears it.

        Plain strings are treated as (optionally dotted) column names.
        """
        if clauses == (None,):
            return self._clone(orders=())
        return self._clone(orders=self._orders + clauses)

    def _order_clause(self, clause: Any) -> Any:
        """Resolve name references so they render against the aliased subquery.

        ``order_by("name")`` on the caller's select is a label reference that
        only resolves against that select's own columns.
        """
        if isinstance(clause, str):
            return literal_column(".".join(self._grammar.quote(part) for part in clause.split(".")))
        if isinstance(clause, _textual_label_reference):
            return self._order_clause(clause.element)
        if isinstance(clause, UnaryExpression):
            element = self._order_clause(clause.element)
            if element is not clause.element:
                clause = clause._clone()
                clause.element = element
        return clause

    def limit(self, limit: int | None) -> SearchQuery:
        return self._clone(limit=limit)

    def offset(self, offset: int | None) -> SearchQuery:
        return self._clone(offset=offset)

    # ------------------------------------------------------------------
    # Outer query
    # ------------------------------------------------------------------

    def _build_outer(self, *columns: Any) -> Select:
        return (
            select(*columns)
            .select_from(Subquery(self._inner, self._alias, self._grammar))
            .where(_RELEVANCE >= numeric_literal(self._threshold))
        )

    def to_base(self) -> Select:
        """Build the final statement with every relevance clause applied."""
        outer = self._build_outer(literal_column("*")).order_by(_RELEVANCE.desc(), *self._orders)
        if self._limit is not None:
            outer = outer.limit(self._limit)
        if self._offset is not None:
            outer = outer.offset(self._offset)
        return outer

    def count_for_pagination(self, columns: Sequence[str] = ("*",)) -> Select:
        """Build the statement counting every row above the threshold.

        Ordering, limit and offset are left out. Aliases are stripped from
        *columns* so the aggregate does not clash with the subquery's names.
        """
        columns = _clear_select_aliases(columns)
        if columns == ["*"]:
            aggregate = func.count()
        else:
            aggregate = func.count(*(literal_column(column) for column in columns))
        return self._build_outer(aggregate.label("aggregate"))

    async def count(self, session: AsyncSession, columns: Sequence[str] = ("*",)) -> int:
        """Execute the pagination count and return the number of matching rows."""
        result = await session.execute(self.count_for_pagination(columns))
        value = result.scalar()
        total = int(value) if value is not None else 0
        logger.debug("Relevance search on %s matched %d rows", self._alias, total)
        return total

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def compile(self) -> tuple[str, list[Any]]:
        return self._grammar.compile(self.to_base())

    def to_sql(self) -> str:
        return self.compile()[0]

    def get_bindings(self) -> list[Any]:
        return self.compile()[1]

    def __clause_element__(self) -> Select:
        return self.to_base()

    def __repr__(self) -> str:
        return f"SearchQuery(alias={self._alias!r}, threshold={self._threshold!r})"
