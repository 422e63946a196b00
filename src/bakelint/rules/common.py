"""Helpers shared by several rule families."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

# Result tuple markers written in return-type annotations.
TWO_ELEMENT_MARKER = "TErrTuple"
THREE_ELEMENT_MARKER = "TErrTriple"

_TEST_FILE_RE = re.compile(r"\.(test|spec)\.tsx?$")


def is_test_file(path: str) -> bool:
    """True for ``*.test.ts(x)`` and ``*.spec.ts(x)`` files."""
    return _TEST_FILE_RE.search(path) is not None


def has_result_marker(type_text: str | None, marker: str) -> bool:
    """True if *type_text* instantiates ``marker<...>`` (possibly inside ``Promise<...>``)."""
    if not type_text:
        return False
    return re.search(rf"(?<![\w$]){re.escape(marker)}\s*<", type_text) is not None


def guidance(unit: SourceUnit, topic: str) -> str:
    return unit.config.guidance(topic)


def in_category_folder(unit: SourceUnit, category: str) -> bool:
    return unit.relative_path.startswith(unit.config.folder(category) + "/")


def segments_below(unit: SourceUnit, category: str) -> list[str]:
    """Path segments after the category folder (``["user", "fx.get.ts"]``)."""
    prefix = unit.config.folder(category) + "/"
    if not unit.relative_path.startswith(prefix):
        return []
    return [p for p in unit.relative_path[len(prefix):].split("/") if p]
