"""Weighted multi-column relevance search for SQLAlchemy select statements."""

from searchable.builder import ScoreExpression, Searchable, get_searchable, search
from searchable.columns import ColumnCollection, WeightedColumn
from searchable.exceptions import SearchableError
from searchable.grammar import Grammar
from searchable.parser import Parser, Token
from searchable.query import SearchQuery
from searchable.subquery import Subquery

__all__ = [
    "ColumnCollection",
    "Grammar",
    "Parser",
    "ScoreExpression",
    "SearchQuery",
    "Searchable",
    "SearchableError",
    "Subquery",
    "Token",
    "WeightedColumn",
    "get_searchable",
    "search",
]
