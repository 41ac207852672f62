"""
Dialect-aware search predicates for the list query.

Two SQL constructs are defined and compiled per backend:

  - `token_match(column, term)`: the column shares at least one word token with
    `term` (case-insensitive). PostgreSQL uses full-text search with the `simple`
    configuration; SQLite calls `listing_tokens_overlap`, a Python function
    registered on each connection.

Word boundaries are the same on both backends: every run of characters that are
not letters or digits separates tokens. The `simple` parser alone would keep
hosts and numbers such as `example.com` or `3.5` whole, so on PostgreSQL the
column goes through `regexp_replace` before `to_tsvector`, and the GIN indexes
in `models/listing.py` are built on the same `searchable_text` expression.
  - `mode_contains(column, values)`: the stored mode set is a superset of `values`.
    PostgreSQL uses array containment (`@>`); SQLite calls `listing_modes_contain`.

Both builders return None when the filter is empty, meaning "no predicate".
"""

import json
import re
from typing import Iterable

from sqlalchemy import Boolean, Text, bindparam
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from listing_store.models.listing import TEXT_SEARCH_CONFIG, searchable_text

_TOKEN_RX = re.compile(r"[^\W_]+")


def tokenize(text: str | None) -> list[str]:
    """Lower-cased word tokens of `text`, duplicates removed, order kept."""
    if not text:
        return []
    return list(dict.fromkeys(_TOKEN_RX.findall(text.lower())))


# -----------------------
# SQL constructs
# -----------------------

class _TokenMatch(FunctionElement):
    type = Boolean()
    inherit_cache = True
    name = "token_match"


class _ModeContains(FunctionElement):
    type = Boolean()
    inherit_cache = True
    name = "mode_contains"


@compiles(_TokenMatch, "postgresql")
def _token_match_postgresql(element, compiler, **kw):
    column, query = list(element.clauses)
    return "%s @@ to_tsquery('%s', %s)" % (
        compiler.process(searchable_text(column), **kw),
        TEXT_SEARCH_CONFIG,
        compiler.process(query, **kw),
    )


@compiles(_TokenMatch, "sqlite")
def _token_match_sqlite(element, compiler, **kw):
    column, query = list(element.clauses)
    return "listing_tokens_overlap(%s, %s)" % (
        compiler.process(column, **kw),
        compiler.process(query, **kw),
    )


@compiles(_ModeContains, "postgresql")
def _mode_contains_postgresql(element, compiler, **kw):
    column, values = list(element.clauses)
    return "%s @> %s" % (compiler.process(column, **kw), compiler.process(values, **kw))


@compiles(_ModeContains, "sqlite")
def _mode_contains_sqlite(element, compiler, **kw):
    column, values = list(element.clauses)
    return "listing_modes_contain(%s, %s)" % (
        compiler.process(column, **kw),
        compiler.process(values, **kw),
    )


def token_match(column, term: str | None):
    """
    Predicate "column shares a token with term", or None when term has no tokens.

    Tokens are OR-ed: 'example academy' matches rows containing either word.
    """
    tokens = tokenize(term)
    if not tokens:
        return None
    query = " | ".join(tokens)
    return _TokenMatch(column, bindparam("search_term", query, type_=Text(), unique=True))


def mode_contains(column, values: Iterable[str] | None):
    """Predicate "stored modes contain every value", or None for an empty filter."""
    wanted = sorted(set(values or ()))
    if not wanted:
        return None
    return _ModeContains(column, bindparam("mode_filter", wanted, type_=column.type, unique=True))


# -----------------------
# SQLite functions
# -----------------------

def _tokens_overlap(text: str | None, query: str | None) -> int:
    if text is None or query is None:
        return 0
    return int(bool(set(tokenize(text)) & set(tokenize(query))))


def _modes_contain(stored: str | None, wanted: str | None) -> int:
    if stored is None or wanted is None:
        return 0
    return int(set(json.loads(wanted)) <= set(json.loads(stored)))


def register_sqlite_functions(dbapi_connection) -> None:
    """Install the search helpers on a raw SQLite (or aiosqlite adapted) connection."""
    dbapi_connection.create_function("listing_tokens_overlap", 2, _tokens_overlap)
    dbapi_connection.create_function("listing_modes_contain", 2, _modes_contain)
