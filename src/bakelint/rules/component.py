"""UI component rules (``src/component``)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bakelint.rules.base import Diagnostic, rule

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

TOPIC = "frontend-builder"


@rule("comp.file-name", path_only=True, applies=lambda u: u.file_name.endswith(".tsx"))
def check_file_name(unit: SourceUnit) -> Diagnostic | None:
    if unit.file_name.startswith("comp."):
        return Diagnostic.info(f"Component file name {unit.file_name} is valid")
    return Diagnostic.error(
        "Component files ending with .tsx must start with 'comp.'. "
        f"Found: {unit.file_name}. "
        f"{unit.config.guidance(TOPIC)}"
    )


RULES = (check_file_name,)
