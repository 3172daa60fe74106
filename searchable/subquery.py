"""Aliased subquery wrapper.

``Subquery`` stands for ``(<select>) AS <alias>`` and can be used anywhere
SQLAlchemy expects a FROM element. The generative ``Select`` methods used
when composing queries are forwarded to the wrapped statement, and the
result is wrapped again so chains keep returning ``Subquery`` objects.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select
from sqlalchemy.sql.selectable import Subquery as SASubquery

from searchable.grammar import Grammar


class Subquery:
    """A select statement used as a (possibly aliased) table reference.

    Args:
        query: The wrapped select statement.
        alias: Name the subquery is exposed under.
        grammar: Grammar used to render the subquery as text.
    """

    def __init__(self, query: Select, alias: str | None = None, grammar: Grammar | None = None) -> None:
        self._query = query
        self._alias = alias
        self._grammar = grammar or Grammar()

    @property
    def query(self) -> Select:
        return self._query

    @query.setter
    def query(self, query: Select) -> None:
        self._query = query

    @property
    def alias(self) -> str | None:
        return self._alias

    @alias.setter
    def alias(self, alias: str | None) -> None:
        self._alias = alias

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def get_value(self) -> str:
        """Render as ``(<sql>)`` or ``(<sql>) AS <alias>``."""
        sql = f"({self._grammar.to_sql(self._query)})"
        if self._alias:
            sql += f" AS {self._grammar.wrap_table(self._alias, prefix=False)}"
        return sql

    def to_sql(self) -> str:
        return self._grammar.to_sql(self._query)

    def get_bindings(self) -> list[Any]:
        return self._grammar.get_bindings(self._query)

    def __clause_element__(self) -> SASubquery:
        return self._query.subquery(self._alias)

    def __str__(self) -> str:
        return self.get_value()

    def __repr__(self) -> str:
        return f"Subquery(alias={self._alias!r})"

    # ------------------------------------------------------------------
    # Forwarded Select methods
    # ------------------------------------------------------------------

    def _wrap(self, query: Select) -> Subquery:
        return Subquery(query, self._alias, self._grammar)

    def where(self, *criteria: Any) -> Subquery:
        return self._wrap(self._query.where(*criteria))

    def filter(self, *criteria: Any) -> Subquery:
        return self._wrap(self._query.filter(*criteria))

    def join(self, target: Any, onclause: Any = None, *, isouter: bool = False, full: bool = False) -> Subquery:
        return self._wrap(self._query.join(target, onclause, isouter=isouter, full=full))

    def outerjoin(self, target: Any, onclause: Any = None, *, full: bool = False) -> Subquery:
        return self._wrap(self._query.outerjoin(target, onclause, full=full))

    def select_from(self, *froms: Any) -> Subquery:
        return self._wrap(self._query.select_from(*froms))

    def group_by(self, *clauses: Any) -> Subquery:
        return self._wrap(self._query.group_by(*clauses))

    def order_by(self, *clauses: Any) -> Subquery:
        return self._wrap(self._query.order_by(*clauses))

    def limit(self, limit: int | None) -> Subquery:
        return self._wrap(self._query.limit(limit))

    def offset(self, offset: int | None) -> Subquery:
        return self._wrap(self._query.offset(offset))
