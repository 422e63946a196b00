"""Database folder rules (``src/database/<db>/``): path and name only."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bakelint.rules.base import Diagnostic, rule
from bakelint.rules.common import segments_below

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

TOPIC = "database-manager"
ALLOWED_PREFIXES = ("conn.", "schema.", "auth.")


def _database_name(unit: SourceUnit) -> str | None:
    """Name of the ``<db>`` folder, or ``None`` when the file sits directly in the root."""
    parts = segments_below(unit, "database")
    return parts[0] if len(parts) >= 2 else None


def name_matches_directory(stem: str, db_name: str) -> bool:
    """``conn.<db>``, ``auth.<db>`` or any ``schema.*.<db>`` name."""
    if stem in (f"conn.{db_name}", f"auth.{db_name}"):
        return True
    return stem.startswith("schema.") and stem.endswith(f".{db_name}")


@rule("database.file-name", path_only=True)
def check_file_name(unit: SourceUnit) -> Diagnostic | None:
    if unit.file_name.startswith(ALLOWED_PREFIXES):
        return None
    return Diagnostic.error(
        "Only 'conn.<dbname>.ts', 'schema.<type>.<dbname>.ts', and 'auth.<dbname>.ts' files "
        f"are allowed in {unit.config.folder('database')}/<dbname>/. "
        f"Found: {unit.file_name}. "
        "Database queries and helper functions should be placed in "
        f"{unit.config.folder('function')}/ directory. "
        "The function-builder subagent can help you create properly structured functions. "
        f"{unit.config.guidance('function-builder')}"
    )


@rule(
    "database.file-name-matches-directory",
    path_only=True,
    applies=lambda u: u.file_name.startswith(ALLOWED_PREFIXES) and _database_name(u) is not None,
)
def check_file_name_matches_directory(unit: SourceUnit) -> Diagnostic | None:
    db_name = _database_name(unit)
    if db_name is None or name_matches_directory(unit.stem, db_name):
        return None
    return Diagnostic.error(
        "Database file name must match the directory name. "
        f"Expected patterns: conn.{db_name}.ts, auth.{db_name}.ts, or schema.<type>.{db_name}.ts. "
        f"Found: {unit.file_name} in {unit.config.folder('database')}/{db_name}/. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("database.path-depth", path_only=True)
def check_path_depth(unit: SourceUnit) -> Diagnostic | None:
    if len(segments_below(unit, "database")) == 2:
        return None
    return Diagnostic.error(
        f"Database files must be at {unit.config.folder('database')}/<dbname>/<file>.ts. "
        "No subdirectories or additional nesting allowed. "
        f"Found: {unit.relative_path}. "
        f"{unit.config.guidance(TOPIC)}"
    )


RULES = (check_file_name, check_file_name_matches_directory, check_path_depth)
