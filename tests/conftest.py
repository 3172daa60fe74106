import os

import pytest
from sqlalchemy import column, literal_column, select, table

# Keep settings deterministic regardless of the developer's environment
os.environ.setdefault("SEARCHABLE_DIALECT", "mysql")


def squash(sql: str) -> str:
    """Collapse the newlines SQLAlchemy puts between clauses."""
    return " ".join(sql.split())


@pytest.fixture
def users():
    return table("users", column("id"), column("name"), column("first_name"), column("last_name"))


@pytest.fixture
def company_user():
    return table("company_user", column("user_id"), column("company_id"))


@pytest.fixture
def companies():
    return table("companies", column("id"), column("name"))


@pytest.fixture
def query(users):
    """``SELECT * FROM users``."""
    return select(literal_column("*")).select_from(users)


@pytest.fixture
def grammar():
    from searchable.grammar import Grammar

    return Grammar("mysql")


@pytest.fixture
def pg_grammar():
    from searchable.grammar import Grammar

    return Grammar("postgresql")


@pytest.fixture
def parser():
    from searchable.parser import Parser

    return Parser()


@pytest.fixture
def searchable(parser, grammar):
    from searchable.builder import Searchable

    return Searchable(parser=parser, grammar=grammar)
