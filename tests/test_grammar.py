"""Tests for the dialect grammar adapter."""

from __future__ import annotations

import pytest
from sqlalchemy import literal, literal_column, select
from sqlalchemy.dialects.postgresql.base import PGDialect

from searchable.config import Settings
from searchable.exceptions import SearchableError
from searchable.grammar import Grammar, format_number


class TestDialects:
    """Dialect lookup and family detection."""

    @pytest.mark.parametrize(
        ("name", "expected", "postgres"),
        [
            ("mysql", "mysql", False),
            ("postgresql", "postgresql", True),
            ("postgres", "postgresql", True),
            ("sqlite", "sqlite", False),
        ],
    )
    def test_named_dialects(self, name, expected, postgres):
        """Dialect names resolve to SQLAlchemy dialects."""
        grammar = Grammar(name)
        assert grammar.name == expected
        assert grammar.is_postgres is postgres

    def test_postgres_family_by_dialect_class(self):
        """Dialects derived from PostgreSQL count as PostgreSQL under any name."""

        class WarehouseDialect(PGDialect):
            name = "warehouse"

        grammar = Grammar(WarehouseDialect(paramstyle="qmark"))
        assert grammar.name == "warehouse"
        assert grammar.is_postgres

    def test_unknown_dialect_raises(self):
        """An unknown dialect name is rejected."""
        with pytest.raises(SearchableError, match="Unknown SQL dialect"):
            Grammar("no-such-database")

    def test_from_settings(self):
        """Dialect and table prefix come from settings."""
        grammar = Grammar.from_settings(Settings(DIALECT="postgresql", TABLE_PREFIX="app_"))
        assert grammar.is_postgres
        assert grammar.table_prefix == "app_"


class TestIdentifiers:
    """Identifier quoting and table prefixes."""

    def test_plain_identifiers_are_not_quoted(self, grammar):
        """Lower case non-reserved names render bare, as SQLAlchemy does."""
        assert grammar.wrap("users", "first_name") == "users.first_name"

    def test_mixed_case_identifiers_are_quoted(self, grammar, pg_grammar):
        """Identifiers needing quotes use the dialect's quote character."""
        assert grammar.quote("PREFIX_users") == "`PREFIX_users`"
        assert pg_grammar.quote("PREFIX_users") == '"PREFIX_users"'

    def test_prefix_table(self):
        """The prefix is prepended to caller table names."""
        grammar = Grammar("mysql", table_prefix="app_")
        assert grammar.prefix_table("users") == "app_users"
        assert grammar.wrap_table("users") == "app_users"
        assert grammar.wrap_table("users", prefix=False) == "users"

    def test_no_prefix_by_default(self, grammar):
        """Without a prefix table names are unchanged."""
        assert grammar.prefix_table("users") == "users"


class TestRendering:
    """Statement compilation with ordered bindings."""

    def test_compile_returns_qmark_sql_and_ordered_values(self, grammar, users):
        """Placeholders are ``?`` and values follow their order in the SQL."""
        stmt = (
            select(literal_column("*"))
            .select_from(users)
            .where(users.c.first_name == literal("a"))
            .where(users.c.last_name == literal("b"))
            .limit(5)
        )
        sql, bindings = grammar.compile(stmt)
        assert sql.count("?") == len(bindings)
        assert bindings == ["a", "b", 5]

    def test_to_sql_and_get_bindings(self, grammar, users):
        """to_sql and get_bindings split compile's result."""
        stmt = select(literal_column("*")).select_from(users).where(users.c.id == literal(3))
        assert "users.id = ?" in grammar.to_sql(stmt)
        assert grammar.get_bindings(stmt) == [3]


class TestFormatNumber:
    """Numeric literal rendering."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1, "1"), (1.0, "1"), (0.75, "0.75"), (2.5, "2.5"), (150, "150"), (37.5, "37.5"), (0, "0")],
    )
    def test_format_number(self, value, expected):
        """Integral values drop the fractional part."""
        assert format_number(value) == expected
