"""
Text-level SQL scanning.

Contains:
- Literal and comment masking (offset-preserving)
- Shared table-name pattern and reserved keyword set
- PatternScanner: reduced-fidelity reference/CTE scanner used when the parser
  rejects the text. It only looks at FROM/JOIN/USING positions and
  ``name AS (...)`` CTE heads, so some constructs are missed, but it always
  produces a result.
"""

import logging
import re
from dataclasses import dataclass
from typing import List

from .models import StatementAnalysis
from .names import name_key, normalize_name, unique_names

logger = logging.getLogger(__name__)

# ============================================================================
# Shared Patterns
# ============================================================================

# One name part: backtick-quoted, or a bare identifier. Only the first part
# may contain hyphens (unquoted BigQuery project ids like my-project.ds.t).
_FIRST_PART = r"(?:`[^`\n]+`|[A-Za-z_][A-Za-z0-9_-]*)"
_NEXT_PART = r"(?:`[^`\n]+`|[A-Za-z_][A-Za-z0-9_]*)"
TABLE_NAME_PATTERN = rf"{_FIRST_PART}(?:\.{_NEXT_PART})*"

# BigQuery reserved keywords plus the DML/DDL words that follow write keywords
SQL_KEYWORDS = frozenset(
    """
    ALL AND ANY ARRAY AS ASC ASSERT_ROWS_MODIFIED AT BETWEEN BY CASE CAST
    COLLATE CONTAINS CREATE CROSS CUBE CURRENT DEFAULT DEFINE DESC DISTINCT
    ELSE END ENUM ESCAPE EXCEPT EXCLUDE EXISTS EXTRACT FALSE FETCH FOLLOWING
    FOR FROM FULL GROUP GROUPING GROUPS HASH HAVING IF IGNORE IN INNER
    INTERSECT INTERVAL INTO IS JOIN LATERAL LEFT LIKE LIMIT LOOKUP MERGE
    NATURAL NEW NO NOT NULL NULLS OF ON OR ORDER OUTER OVER PARTITION
    PRECEDING PROTO QUALIFY RANGE RECURSIVE RESPECT RIGHT ROLLUP ROWS SELECT
    SET SOME STRUCT TABLESAMPLE THEN TO TREAT TRUE UNBOUNDED UNION UNNEST
    USING WHEN WHERE WINDOW WITH WITHIN
    DELETE FUNCTION INSERT MATCHED REPLACE ROW TABLE TEMP TEMPORARY UPDATE
    VALUES VIEW
    """.split()
)


def is_keyword(captured: str) -> bool:
    """Check if a captured (unquoted) name is really a keyword"""
    return "`" not in captured and captured.upper() in SQL_KEYWORDS


# ============================================================================
# Literal and Comment Masking
# ============================================================================


def mask_literals_and_comments(sql: str) -> str:
    """
    Blank out string literals and comments, keeping every offset.

    Backtick-quoted identifiers are kept verbatim. Newlines inside masked
    regions are preserved so line numbers still match the input.
    """
    chars = list(sql)
    n = len(sql)

    def blank(start: int, end: int):
        for j in range(start, end):
            if chars[j] != "\n":
                chars[j] = " "

    i = 0
    while i < n:
        ch = sql[i]
        if sql.startswith("--", i) or ch == "#":
            end = sql.find("\n", i)
            end = n if end == -1 else end
            blank(i, end)
            i = end
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = n if end == -1 else end + 2
            blank(i, end)
            i = end
        elif ch == "`":
            end = sql.find("`", i + 1)
            i = n if end == -1 else end + 1
        elif ch in ("'", '"'):
            end = _string_end(sql, i)
            blank(i, end)
            i = end
        else:
            i += 1

    return "".join(chars)


def _string_end(sql: str, start: int) -> int:
    """Index just past the string literal opening at ``start``"""
    quote = sql[start]
    delimiter = quote * 3 if sql.startswith(quote * 3, start) else quote
    i = start + len(delimiter)
    n = len(sql)
    while i < n:
        if sql[i] == "\\":
            i += 2
            continue
        if sql.startswith(delimiter, i):
            return i + len(delimiter)
        if sql[i] == "\n" and len(delimiter) == 1:
            # Unterminated single-line string
            return i
        i += 1
    return n


def find_matching_paren(text: str, open_index: int) -> int:
    """
    Index of the parenthesis closing the one at ``open_index``.

    Returns -1 when the text is unbalanced.
    """
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def collapse_whitespace(sql: str) -> str:
    return re.sub(r"\s+", " ", sql).strip()


# ============================================================================
# Pattern Scanner
# ============================================================================

_WITH_KEYWORD = re.compile(r"\bWITH\s+(?:RECURSIVE\s+)?", re.IGNORECASE)
_CTE_HEAD = re.compile(
    rf"\s*(`[^`\n]+`|[A-Za-z_][A-Za-z0-9_]*)\s*(?:\([^()]*\)\s*)?AS\s*\(",
    re.IGNORECASE,
)
_CTE_SEPARATOR = re.compile(r"\s*,", re.IGNORECASE)
_REFERENCE = re.compile(rf"\b(FROM|JOIN|USING)\s+({TABLE_NAME_PATTERN})", re.IGNORECASE)
_ALIAS_THEN_COMMA = re.compile(
    rf"(?:\s+(?:AS\s+)?([A-Za-z_][A-Za-z0-9_]*))?\s*,\s*({TABLE_NAME_PATTERN})",
    re.IGNORECASE,
)
# FROM inside EXTRACT(part FROM x), SUBSTRING(x FROM n), TRIM(c FROM x)
_FUNCTION_FROM = re.compile(
    r"(\b(?:EXTRACT|SUBSTRING|TRIM)\s*\([^()]*?)\bFROM\b",
    re.IGNORECASE,
)
_DISTINCT_BEFORE = re.compile(r"\bDISTINCT\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class _CteSpan:
    name: str
    start: int  # Offset of the CTE name
    body_start: int  # Offset just after the opening parenthesis
    body_end: int  # Offset of the closing parenthesis
    top_level: bool


class PatternScanner:
    """
    Reduced-fidelity analyzer working on masked SQL text.

    Used only when the parser rejects a statement. CTE bodies are delimited by
    parenthesis matching, references are keyword-bounded identifier matches
    after FROM, JOIN (and comma joins) and USING.

    Example:
        analysis = PatternScanner().analyze(sql)
        analysis.ctes, analysis.table_references, analysis.main_body_references
    """

    def analyze(self, sql: str) -> StatementAnalysis:
        # Import here to avoid circular import
        from .cte_resolver import build_cte_definitions

        masked = mask_literals_and_comments(sql)
        spans = self.find_cte_spans(masked)

        bodies = [
            (span.name, self.scan_references(masked[span.body_start : span.body_end]))
            for span in spans
        ]
        ctes = build_cte_definitions(bodies, {name_key(span.name) for span in spans})

        main_text = self._strip_cte_definitions(masked, spans)

        logger.debug(
            "Pattern scan found %d CTE(s) in %d characters of SQL", len(ctes), len(sql)
        )
        return StatementAnalysis(
            ctes=tuple(ctes),
            table_references=tuple(self.scan_references(masked)),
            main_body_references=tuple(self.scan_references(main_text)),
            from_syntax_tree=False,
        )

    def find_cte_names(self, sql: str) -> List[str]:
        """CTE names in definition order"""
        spans = self.find_cte_spans(mask_literals_and_comments(sql))
        return unique_names(span.name for span in spans)

    def find_cte_spans(self, masked: str) -> List[_CteSpan]:
        """Locate every ``name AS (...)`` definition of every WITH block"""
        spans: List[_CteSpan] = []
        for with_match in _WITH_KEYWORD.finditer(masked):
            prefix = masked[: with_match.start()]
            top_level = prefix.count("(") == prefix.count(")")

            pos = with_match.end()
            while True:
                head = _CTE_HEAD.match(masked, pos)
                if not head or is_keyword(head.group(1)):
                    break
                open_index = head.end() - 1
                close_index = find_matching_paren(masked, open_index)
                if close_index == -1:
                    break

                spans.append(
                    _CteSpan(
                        name=normalize_name(head.group(1)),
                        start=head.start(1),
                        body_start=open_index + 1,
                        body_end=close_index,
                        top_level=top_level,
                    )
                )

                separator = _CTE_SEPARATOR.match(masked, close_index + 1)
                if not separator:
                    break
                pos = separator.end()
        return spans

    def scan_references(self, masked: str) -> List[str]:
        """Table names in FROM/JOIN/USING position, in order of appearance"""
        text = _FUNCTION_FROM.sub(lambda m: m.group(1) + "    ", masked)
        found: List[str] = []

        for match in _REFERENCE.finditer(text):
            keyword, captured = match.group(1).upper(), match.group(2)
            lookbehind = text[max(0, match.start() - 20) : match.start()]
            if keyword == "FROM" and _DISTINCT_BEFORE.search(lookbehind):
                continue
            if not self._accept(text, captured, match.end()):
                continue
            found.append(normalize_name(captured))

            if keyword != "FROM":
                continue
            # Comma joins: FROM a [AS] x, b y, ...
            pos = match.end()
            while True:
                follow = _ALIAS_THEN_COMMA.match(text, pos)
                if not follow:
                    break
                alias = follow.group(1)
                if alias and is_keyword(alias):
                    break
                if not self._accept(text, follow.group(2), follow.end()):
                    break
                found.append(normalize_name(follow.group(2)))
                pos = follow.end()

        return unique_names(found)

    @staticmethod
    def _accept(text: str, captured: str, end: int) -> bool:
        """Reject keywords and function calls (``UNNEST(...)``, TVFs)"""
        if is_keyword(captured):
            return False
        rest = text[end : end + 64].lstrip()
        return not rest.startswith("(")

    @staticmethod
    def _strip_cte_definitions(masked: str, spans: List[_CteSpan]) -> str:
        """Blank out top-level CTE definitions, leaving the main body(ies)"""
        chars = list(masked)
        for span in spans:
            if not span.top_level:
                continue
            for j in range(span.start, span.body_end + 1):
                if chars[j] != "\n":
                    chars[j] = " "
        return "".join(chars)


__all__ = [
    "TABLE_NAME_PATTERN",
    "SQL_KEYWORDS",
    "is_keyword",
    "mask_literals_and_comments",
    "find_matching_paren",
    "collapse_whitespace",
    "PatternScanner",
]
