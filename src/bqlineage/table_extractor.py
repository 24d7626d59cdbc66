"""
Identifier Extractor.

Walks sqlglot trees and returns every table name appearing in FROM/JOIN
position (plus the USING source of MERGE). Comma joins, explicit joins and
parenthesized join trees all end up as sqlglot Join nodes, so collecting the
leaf of every From/Join clause covers them; aliases are never part of a name.
"""

import logging
from typing import Iterable, List, Optional

from sqlglot import exp

from .names import normalize_name, unique_names
from .sql_parser import DEFAULT_DIALECT, ParseUnavailableError, SqlParser, get_parser

logger = logging.getLogger(__name__)


def table_name_of(table: exp.Table) -> Optional[str]:
    """
    Qualified name of a table reference, without alias or quoting.

    Returns None for table-valued function calls (``FROM my_tvf(1)``), whose
    parts are not plain identifiers.
    """
    parts = table.parts
    if not parts or not all(isinstance(part, exp.Identifier) for part in parts):
        return None
    return normalize_name(".".join(part.name for part in parts))


def _unwrap_source(node: Optional[exp.Expression]) -> Optional[exp.Expression]:
    """Strip parentheses around a join tree, e.g. ``FROM (a JOIN b ON ...)``"""
    while isinstance(node, (exp.Paren, exp.Subquery)) and isinstance(
        node.this, (exp.Table, exp.Paren, exp.Subquery)
    ):
        node = node.this
    return node


def _add_source(node: Optional[exp.Expression], names: List[str]):
    source = _unwrap_source(node)
    if isinstance(source, exp.Table):
        name = table_name_of(source)
        if name:
            names.append(name)


def collect_table_references(tree: exp.Expression) -> List[str]:
    """
    Collect from-position table names anywhere in a tree.

    Subqueries are not sources themselves; their own FROM clauses are found
    by the walk. Names are deduplicated case-insensitively, first spelling wins.
    """
    names: List[str] = []
    for clause in tree.find_all(exp.From, exp.Join):
        _add_source(clause.this, names)
    for merge in tree.find_all(exp.Merge):
        _add_source(merge.args.get("using"), names)
    return unique_names(names)


def references_in(statements: Iterable[exp.Expression]) -> List[str]:
    """Union of from-position table names over several statements"""
    names: List[str] = []
    for statement in statements:
        names.extend(collect_table_references(statement))
    return unique_names(names)


def extract_table_references(
    sql: str,
    dialect: str = DEFAULT_DIALECT,
    parser: Optional[SqlParser] = None,
) -> List[str]:
    """
    Extract every table referenced in FROM/JOIN position.

    Args:
        sql: SQL text (may hold several statements)
        dialect: sqlglot dialect used when no parser is given
        parser: Optional parser implementing the SqlParser protocol

    Returns:
        Qualified names in order of discovery. An empty list when the SQL
        cannot be parsed: callers must read it as "no lineage information
        available", not as "the query reads no tables".

    Example:
        extract_table_references("SELECT * FROM a, `p.d.b` AS x JOIN c USING (id)")
        # -> ["a", "p.d.b", "c"]
    """
    try:
        statements = get_parser(parser, dialect).parse(sql)
    except ParseUnavailableError:
        logger.debug("No table references extracted: SQL could not be parsed")
        return []
    return references_in(statements)


__all__ = [
    "table_name_of",
    "collect_table_references",
    "references_in",
    "extract_table_references",
]
