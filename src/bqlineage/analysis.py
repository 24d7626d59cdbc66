"""
Statement analysis strategies.

A StatementAnalyzer turns SQL text into a StatementAnalysis: CTE definitions,
every from-position reference, and the references of the main body (the
statement outside its CTE definitions).

SyntaxTreeAnalyzer is the production implementation. The PatternScanner from
text_scan is used only when that implementation fails with its documented
error, ParseUnavailableError.
"""

import logging
from typing import List, Optional, Protocol

from sqlglot import exp

from .cte_resolver import resolve_ctes
from .models import StatementAnalysis
from .names import unique_names
from .sql_parser import DEFAULT_DIALECT, ParseUnavailableError, SqlParser, get_parser
from .table_extractor import collect_table_references, references_in
from .text_scan import PatternScanner

logger = logging.getLogger(__name__)


class StatementAnalyzer(Protocol):
    def analyze(self, sql: str) -> StatementAnalysis: ...


class SyntaxTreeAnalyzer:
    """
    Analyze SQL through the parser collaborator.

    The main body is found structurally: CTE definitions are removed from a
    copy of each statement tree and what remains is walked again, so deeply
    nested parentheses in the last CTE cannot move the split point.

    Raises:
        ParseUnavailableError: From ``analyze`` when the parser rejects the text.
    """

    def __init__(self, dialect: str = DEFAULT_DIALECT, parser: Optional[SqlParser] = None):
        self.parser = get_parser(parser, dialect)

    def analyze(self, sql: str) -> StatementAnalysis:
        statements = self.parser.parse(sql)
        return StatementAnalysis(
            ctes=tuple(resolve_ctes(statements)),
            table_references=tuple(references_in(statements)),
            main_body_references=tuple(self.main_body_references(statements)),
            from_syntax_tree=True,
        )

    @staticmethod
    def main_body_references(statements: List[exp.Expression]) -> List[str]:
        """From-position names outside every CTE definition"""
        names: List[str] = []
        for statement in statements:
            main_body = statement.copy()
            for cte in list(main_body.find_all(exp.CTE)):
                cte.pop()
            names.extend(collect_table_references(main_body))
        return unique_names(names)


def analyze_statement(
    sql: str,
    dialect: str = DEFAULT_DIALECT,
    parser: Optional[SqlParser] = None,
) -> StatementAnalysis:
    """
    Analyze SQL with the syntax tree, falling back to the pattern scanner.

    Never raises for unparseable SQL; the result's ``from_syntax_tree`` flag
    tells which strategy produced it.
    """
    try:
        return SyntaxTreeAnalyzer(dialect=dialect, parser=parser).analyze(sql)
    except ParseUnavailableError as e:
        logger.warning("Falling back to pattern-based lineage extraction: %s", e)
        return PatternScanner().analyze(sql)


__all__ = [
    "StatementAnalyzer",
    "SyntaxTreeAnalyzer",
    "analyze_statement",
]
