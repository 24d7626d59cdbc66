"""
Parser collaborator.

Turns raw SQL text into sqlglot syntax trees. This is the only place where a
parser failure is detected; callers catch ParseUnavailableError and degrade
(empty result or the pattern scanner), never propagate it to the end user.
"""

import logging
from typing import List, Optional, Protocol

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

logger = logging.getLogger(__name__)

DEFAULT_DIALECT = "bigquery"


class ParseUnavailableError(ValueError):
    """The parser rejected the SQL text (syntax error or unsupported construct)"""


class SqlParser(Protocol):
    """Anything that turns SQL text into a list of sqlglot statement trees"""

    dialect: str

    def parse(self, sql: str) -> List[exp.Expression]: ...


class SqlglotParser:
    """
    Production parser backed by sqlglot.

    Multi-statement text is split by sqlglot itself; empty statements
    (e.g. a trailing semicolon) are dropped.
    """

    def __init__(self, dialect: str = DEFAULT_DIALECT):
        self.dialect = dialect

    def parse(self, sql: str) -> List[exp.Expression]:
        """
        Parse SQL text into statement trees.

        Raises:
            ParseUnavailableError: If sqlglot cannot tokenize or parse the text.
        """
        try:
            statements = sqlglot.parse(sql, read=self.dialect)
        except SqlglotError as e:
            logger.debug("sqlglot rejected %s SQL", self.dialect, exc_info=True)
            raise ParseUnavailableError(f"Could not parse SQL ({self.dialect}): {e}") from e

        return [stmt for stmt in statements if stmt is not None]

    def __repr__(self) -> str:
        return f"SqlglotParser(dialect={self.dialect!r})"


def get_parser(parser: Optional[SqlParser] = None, dialect: str = DEFAULT_DIALECT) -> SqlParser:
    """Return the given parser or the default sqlglot parser for the dialect"""
    return parser if parser is not None else SqlglotParser(dialect)


__all__ = [
    "DEFAULT_DIALECT",
    "ParseUnavailableError",
    "SqlParser",
    "SqlglotParser",
    "get_parser",
]
