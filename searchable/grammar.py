"""SQL grammar adapter.

Wraps a SQLAlchemy ``Dialect`` to provide what the relevance builder needs
from the target database: identifier quoting with an optional table prefix,
dialect family detection and rendering of statements to SQL text with the
bound values in placeholder order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import literal_column
from sqlalchemy.dialects import registry
from sqlalchemy.dialects.mysql.base import MySQLDialect
from sqlalchemy.dialects.postgresql.base import PGDialect
from sqlalchemy.dialects.sqlite.base import SQLiteDialect
from sqlalchemy.exc import NoSuchModuleError

from searchable.exceptions import SearchableError

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import Dialect
    from sqlalchemy.sql.elements import ColumnClause

    from searchable.config import Settings

_DIALECTS: dict[str, type] = {
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
    "postgresql": PGDialect,
    "postgres": PGDialect,
    "sqlite": SQLiteDialect,
}

def _load_dialect(name: str) -> Dialect:
    """Instantiate a compile-only dialect rendering ``?`` placeholders."""
    dialect_cls = _DIALECTS.get(name.lower())
    if dialect_cls is None:
        try:
            dialect_cls = registry.load(name)
        except NoSuchModuleError as exc:
            raise SearchableError(f"Unknown SQL dialect: {name!r}") from exc
    return dialect_cls(paramstyle="qmark")


def format_number(value: float) -> str:
    """Render a number as SQL literal text (``1``, ``0.75``, ``37.5``)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def numeric_literal(value: float) -> ColumnClause:
    """A raw numeric literal, rendered inline rather than as a bound value."""
    return literal_column(format_number(value))


class Grammar:
    """Dialect-aware identifier quoting and statement rendering.

    Args:
        dialect: A SQLAlchemy dialect instance or a dialect name
            (``mysql``, ``postgresql``, ``sqlite`` or any registered name).
            Names produce a dialect using the ``qmark`` paramstyle.
        table_prefix: Prefix prepended to table names written by the caller.
    """

    def __init__(self, dialect: Dialect | str = "mysql", table_prefix: str = "") -> None:
        if isinstance(dialect, str):
            dialect = _load_dialect(dialect)
        self._dialect = dialect
        self.table_prefix = table_prefix

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Grammar:
        """Create a grammar from the configured dialect name and table prefix."""
        if settings is None:
            from searchable.config import get_settings

            settings = get_settings()
        return cls(settings.DIALECT, table_prefix=settings.TABLE_PREFIX)

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def name(self) -> str:
        return self._dialect.name

    @property
    def is_postgres(self) -> bool:
        """Whether the dialect belongs to the PostgreSQL family."""
        return isinstance(self._dialect, PGDialect)

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote a single identifier the way the dialect renders it."""
        return self._dialect.identifier_preparer.quote(identifier)

    def prefix_table(self, table: str) -> str:
        """Apply the configured table prefix to a caller-supplied table name."""
        if not self.table_prefix:
            return table
        return f"{self.table_prefix}{table}"

    def wrap_table(self, table: str, prefix: bool = True) -> str:
        return self.quote(self.prefix_table(table) if prefix else table)

    def wrap(self, table: str, column: str) -> str:
        """Quote ``table.column``. *table* is taken as already prefixed."""
        return f"{self.quote(table)}.{self.quote(column)}"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def compile(self, statement: Any) -> tuple[str, list[Any]]:
        """Render *statement* to SQL text and its bound values.

        The values are returned in the order their placeholders appear in
        the SQL text.
        """
        if hasattr(statement, "__clause_element__"):
            statement = statement.__clause_element__()
        compiled = statement.compile(dialect=self._dialect)
        params = compiled.params
        names = compiled.positiontup if compiled.positional else list(params)
        return str(compiled), [params[name] for name in names]

    def to_sql(self, statement: Any) -> str:
        return self.compile(statement)[0]

    def get_bindings(self, statement: Any) -> list[Any]:
        return self.compile(statement)[1]
