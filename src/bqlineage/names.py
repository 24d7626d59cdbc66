"""
Qualified table name helpers.

A qualified name is a dot-joined string of 1-3 parts (``table``,
``dataset.table`` or ``project.dataset.table``). Quoting markers are stripped,
an inline ``AS alias`` suffix is never part of the name, and comparison is
case-insensitive on the full string.
"""

import re
from typing import Iterable, List, Optional

from .models import TableName

_QUOTE_CHARS = "`\""
_ALIAS_SUFFIX = re.compile(r"\s+(?:as\s+)?[A-Za-z_][A-Za-z0-9_]*\s*$", re.IGNORECASE)
_DOT_SPACING = re.compile(r"\s*\.\s*")


def normalize_name(raw: str) -> str:
    """
    Normalize a raw table reference into a qualified name.

    Examples:
        normalize_name("`my-proj.sales.orders`")  -> "my-proj.sales.orders"
        normalize_name("`proj`.`ds`.t AS x")      -> "proj.ds.t"
    """
    name = raw.strip()
    for quote in _QUOTE_CHARS:
        name = name.replace(quote, "")
    name = _DOT_SPACING.sub(".", name)
    if " " in name:
        name = _ALIAS_SUFFIX.sub("", name)
    return name.strip()


def name_key(name: str) -> str:
    """Case-insensitive lookup key for a qualified name."""
    return normalize_name(name).lower()


def display_name(full_name: str) -> str:
    """Last part of a qualified name"""
    return full_name.split(".")[-1]


def parse_table_name(full_name: str) -> TableName:
    """
    Split a qualified name into project, dataset and table parts.

    Names with more than three parts keep the leading parts joined in
    ``project`` (e.g. ``region-us.INFORMATION_SCHEMA.JOBS`` style paths).
    """
    parts = normalize_name(full_name).split(".")
    if len(parts) >= 3:
        return TableName(
            full_name=full_name,
            project=".".join(parts[:-2]),
            dataset=parts[-2],
            table=parts[-1],
        )
    if len(parts) == 2:
        return TableName(full_name=full_name, dataset=parts[0], table=parts[1])
    return TableName(full_name=full_name, table=parts[0])


def unique_names(names: Iterable[str], exclude: Optional[Iterable[str]] = None) -> List[str]:
    """
    Deduplicate names case-insensitively, keeping the first spelling seen.

    Names whose key appears in ``exclude`` are dropped.
    """
    excluded = {name_key(n) for n in exclude} if exclude else set()
    seen = set()
    result = []
    for name in names:
        key = name_key(name)
        if not key or key in seen or key in excluded:
            continue
        seen.add(key)
        result.append(name)
    return result


__all__ = [
    "normalize_name",
    "name_key",
    "display_name",
    "parse_table_name",
    "unique_names",
]
