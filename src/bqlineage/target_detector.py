"""
Target Detector.

Finds the tables and views a SQL text writes to. Detection is pattern-based
over the statement text rather than the syntax tree: the write target always
follows a short keyword prefix, which is cheap to recognize lexically and works
for statements the parser cannot handle.
"""

import logging
import re
from typing import List, Pattern, Tuple

from .models import LineageTarget, StatementType
from .names import name_key, normalize_name
from .text_scan import TABLE_NAME_PATTERN, is_keyword, mask_literals_and_comments

logger = logging.getLogger(__name__)

_T = rf"({TABLE_NAME_PATTERN})"

# Priority order; earlier patterns claim their text span first
TARGET_PATTERNS: List[Tuple[StatementType, Pattern]] = [
    (StatementType.INSERT, re.compile(rf"\bINSERT\s+(?:INTO\s+)?{_T}", re.IGNORECASE)),
    (
        StatementType.CREATE_TABLE,
        re.compile(
            r"\bCREATE\s+(?:OR\s+REPLACE\s+)?(?:TEMP(?:ORARY)?\s+|EXTERNAL\s+|SNAPSHOT\s+)?"
            rf"TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?{_T}",
            re.IGNORECASE,
        ),
    ),
    (
        StatementType.CREATE_VIEW,
        re.compile(
            r"\bCREATE\s+(?:OR\s+REPLACE\s+)?(?:MATERIALIZED\s+)?"
            rf"VIEW\s+(?:IF\s+NOT\s+EXISTS\s+)?{_T}",
            re.IGNORECASE,
        ),
    ),
    (StatementType.MERGE, re.compile(rf"\bMERGE\s+(?:INTO\s+)?{_T}", re.IGNORECASE)),
    # SET (possibly after an alias) tells a target apart from a bare reference
    (
        StatementType.UPDATE,
        re.compile(rf"\bUPDATE\s+{_T}\s+(?:(?:AS\s+)?[A-Za-z_]\w*\s+)?SET\b", re.IGNORECASE),
    ),
    (StatementType.DELETE, re.compile(rf"\bDELETE\s+(?:FROM\s+)?{_T}", re.IGNORECASE)),
    (StatementType.TRUNCATE, re.compile(rf"\bTRUNCATE\s+TABLE\s+{_T}", re.IGNORECASE)),
]


def extract_targets(sql: str) -> List[LineageTarget]:
    """
    Detect every write target in the SQL text.

    Each pattern is applied over the whole text (so concatenated scripts
    contribute all their targets); a match overlapping a span already claimed
    by a higher-priority pattern is ignored. Duplicate names collapse to one
    target keeping the first statement type seen, in priority order.

    String literals and comments are masked first, and keyword captures such
    as ``THEN DELETE WHEN ...`` inside a MERGE are rejected.

    Example:
        extract_targets("INSERT INTO `p.d.t` SELECT * FROM s")
        # -> [LineageTarget(name="p.d.t", statement_type=StatementType.INSERT)]
    """
    masked = mask_literals_and_comments(sql)
    claimed: List[Tuple[int, int]] = []
    targets: List[LineageTarget] = []
    seen = set()

    for statement_type, pattern in TARGET_PATTERNS:
        for match in pattern.finditer(masked):
            captured = match.group(1)
            if is_keyword(captured):
                continue
            span = match.span()
            if any(span[0] < end and start < span[1] for start, end in claimed):
                continue
            claimed.append(span)

            name = normalize_name(captured)
            key = name_key(name)
            if key in seen:
                continue
            seen.add(key)
            targets.append(LineageTarget(name=name, statement_type=statement_type))

    logger.debug("Detected %d write target(s)", len(targets))
    return targets


__all__ = [
    "TARGET_PATTERNS",
    "extract_targets",
]
