"""
CTE Resolver.

Enumerates every CTE definition of a statement (nested WITH blocks included)
and classifies each name read by a CTE body as a physical source table or a
reference to a CTE.

Resolution is two-pass: all CTE names are collected first over the entire
statement, then each body is classified against that set. A CTE may read a
CTE defined after it, so names visible "so far" are not enough.

Ambiguity policy: a name that matches a CTE name (case-insensitively) is
always a CTE reference, even if it could also be a physical table.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from sqlglot import exp

from .models import CteColumn, CteDefinition
from .names import name_key, normalize_name, unique_names
from .sql_parser import DEFAULT_DIALECT, ParseUnavailableError, SqlParser, get_parser
from .table_extractor import collect_table_references
from .text_scan import PatternScanner

logger = logging.getLogger(__name__)


# ============================================================================
# Tree Walking
# ============================================================================


def iter_cte_nodes(statements: Iterable[exp.Expression]) -> Iterator[exp.CTE]:
    """Yield every CTE node of every statement, outer blocks first"""
    for statement in statements:
        for cte in statement.find_all(exp.CTE):
            if cte.alias_or_name:
                yield cte


def collect_cte_names(statements: Iterable[exp.Expression]) -> Set[str]:
    """First pass: case-insensitive keys of every CTE defined anywhere"""
    return {name_key(cte.alias_or_name) for cte in iter_cte_nodes(statements)}


# ============================================================================
# Classification
# ============================================================================


def classify_references(
    references: Iterable[str], known_cte_keys: Set[str]
) -> Tuple[List[str], List[str]]:
    """
    Partition names into (source_tables, referenced_ctes).

    ``known_cte_keys`` is the full set from the name-collection pass.
    """
    source_tables: List[str] = []
    referenced_ctes: List[str] = []
    for name in references:
        if name_key(name) in known_cte_keys:
            referenced_ctes.append(name)
        else:
            source_tables.append(name)
    return unique_names(source_tables), unique_names(referenced_ctes)


def build_cte_definitions(
    bodies: Iterable[Tuple[str, Iterable[str]]], known_cte_keys: Set[str]
) -> List[CteDefinition]:
    """
    Second pass: build one CteDefinition per distinct CTE name.

    Args:
        bodies: (cte_name, names read by its body) in definition order
        known_cte_keys: Keys of every CTE name in the statement

    A name defined more than once (e.g. in two nested WITH blocks) yields a
    single definition reading the union of both bodies; the first spelling
    and position win.
    """
    merged: Dict[str, Tuple[str, List[str]]] = {}
    for cte_name, references in bodies:
        name = normalize_name(cte_name)
        key = name_key(name)
        if key not in merged:
            merged[key] = (name, [])
        merged[key][1].extend(references)

    definitions = []
    for name, references in merged.values():
        source_tables, referenced_ctes = classify_references(references, known_cte_keys)
        definitions.append(
            CteDefinition(
                name=name,
                source_tables=tuple(source_tables),
                referenced_ctes=tuple(referenced_ctes),
            )
        )
    return definitions


def resolve_ctes(statements: List[exp.Expression]) -> List[CteDefinition]:
    """Resolve CTE definitions from already-parsed statements"""
    known_cte_keys = collect_cte_names(statements)
    bodies = [
        (cte.alias_or_name, collect_table_references(cte.this))
        for cte in iter_cte_nodes(statements)
    ]
    return build_cte_definitions(bodies, known_cte_keys)


# ============================================================================
# Public API
# ============================================================================


def extract_ctes(
    sql: str,
    dialect: str = DEFAULT_DIALECT,
    parser: Optional[SqlParser] = None,
) -> List[CteDefinition]:
    """
    Extract all CTE definitions with their dependencies.

    Falls back to the pattern scanner when the parser rejects the text, so a
    result is always produced (possibly missing some join forms).

    Example:
        extract_ctes("WITH Foo AS (SELECT * FROM T) SELECT * FROM foo")
        # -> [CteDefinition(name="Foo", source_tables=("T",), referenced_ctes=())]
    """
    try:
        statements = get_parser(parser, dialect).parse(sql)
    except ParseUnavailableError:
        logger.debug("Resolving CTEs with the pattern scanner")
        return list(PatternScanner().analyze(sql).ctes)
    return resolve_ctes(statements)


def get_cte_names(
    sql: str,
    dialect: str = DEFAULT_DIALECT,
    parser: Optional[SqlParser] = None,
) -> List[str]:
    """Get all CTE names defined in the SQL, in definition order"""
    try:
        statements = get_parser(parser, dialect).parse(sql)
    except ParseUnavailableError:
        logger.debug("Listing CTE names with the pattern scanner")
        return PatternScanner().find_cte_names(sql)
    return unique_names(normalize_name(cte.alias_or_name) for cte in iter_cte_nodes(statements))


def extract_cte_columns(
    sql: str,
    cte_name: str,
    dialect: str = DEFAULT_DIALECT,
    parser: Optional[SqlParser] = None,
) -> List[CteColumn]:
    """
    Extract output column names of one CTE.

    Handles:
    - Explicit column list: WITH my_cte (col1, col2) AS (...)
    - Aliased expressions: SELECT a + 1 AS b -> "b"
    - Star and qualified star: SELECT * -> "*", SELECT t.* -> "t.*"
    - Plain and qualified columns: SELECT t.col -> "col"
    - Function calls without alias: SELECT COUNT(*) -> "COUNT"

    Set operations use the first branch. Returns an empty list when the SQL
    cannot be parsed or the CTE does not exist.
    """
    try:
        statements = get_parser(parser, dialect).parse(sql)
    except ParseUnavailableError:
        return []

    key = name_key(cte_name)
    for cte in iter_cte_nodes(statements):
        if name_key(cte.alias_or_name) != key:
            continue

        alias = cte.args.get("alias")
        explicit = [col.name for col in alias.columns] if alias is not None else []
        if explicit:
            return [CteColumn(name) for name in explicit]

        body = cte.this
        names = []
        for projection in getattr(body, "selects", None) or []:
            column_name = _projection_name(projection)
            if column_name and column_name not in names:
                names.append(column_name)
        return [CteColumn(name) for name in names]

    return []


def _projection_name(node: exp.Expression) -> Optional[str]:
    """Name of one select-list item, or None when it has no natural name"""
    if isinstance(node, exp.Alias):
        return node.alias or _projection_name(node.this)
    if isinstance(node, exp.Star):
        return "*"
    if isinstance(node, exp.Column):
        if isinstance(node.this, exp.Star):
            return f"{node.table}.*" if node.table else "*"
        return node.name or None
    if isinstance(node, exp.Anonymous):
        return node.name or None
    if isinstance(node, exp.Func):
        return node.sql_name()
    return None


__all__ = [
    "iter_cte_nodes",
    "collect_cte_names",
    "classify_references",
    "build_cte_definitions",
    "resolve_ctes",
    "extract_ctes",
    "get_cte_names",
    "extract_cte_columns",
]
