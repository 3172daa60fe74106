"""Searchable columns paired with their relevance weights."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import literal_column
from sqlalchemy.sql.elements import ColumnClause

if TYPE_CHECKING:
    from searchable.grammar import Grammar


class WeightedColumn(BaseModel):
    """A single searchable column.

    Attributes:
        table: Table the column belongs to (prefix applied).
        column: Raw column name.
        qualified_name: The column key as the caller wrote it.
        weight: Relevance multiplier for matches in this column.
        wrapped: Dialect-quoted ``table.column`` identifier.
    """

    model_config = ConfigDict(frozen=True)

    table: str
    column: str
    qualified_name: str
    weight: float = Field(gt=0)
    wrapped: str

    @classmethod
    def from_key(cls, key: str, weight: float, base_table: str, grammar: Grammar) -> WeightedColumn:
        """Build a column from a possibly dot-qualified *key*.

        Unqualified keys belong to *base_table*, which is used as is.
        Qualified keys get the grammar's table prefix.
        """
        if "." in key:
            table, column = key.split(".", 1)
            table = grammar.prefix_table(table)
        else:
            table, column = base_table, key

        return cls(
            table=table,
            column=column,
            qualified_name=key,
            weight=weight,
            wrapped=grammar.wrap(table, column),
        )

    @property
    def expression(self) -> ColumnClause:
        """SQL expression referencing the column without adding FROM entries."""
        return literal_column(self.wrapped)


class ColumnCollection:
    """Ordered collection of weighted columns, keyed by qualified name."""

    def __init__(self, columns: list[WeightedColumn] | None = None) -> None:
        self._columns: dict[str, WeightedColumn] = {}
        for column in columns or []:
            self.add(column)

    def add(self, column: WeightedColumn) -> ColumnCollection:
        self._columns[column.qualified_name] = column
        return self

    def weights(self) -> list[float]:
        return [column.weight for column in self._columns.values()]

    def total_weight(self) -> float:
        return sum(self.weights())

    def __getitem__(self, qualified_name: str) -> WeightedColumn:
        return self._columns[qualified_name]

    def __contains__(self, qualified_name: object) -> bool:
        return qualified_name in self._columns

    def __iter__(self) -> Iterator[WeightedColumn]:
        return iter(self._columns.values())

    def __len__(self) -> int:
        return len(self._columns)
