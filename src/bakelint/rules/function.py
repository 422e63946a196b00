"""Function rules (``src/function``) for pure, effectful and transactional files.

Subtype is decided by filename prefix: ``fn.`` pure, ``fx.`` effectful
(portal + ``TErrTuple``), ``tx.`` transactional (portal + ``TErrTriple``).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from bakelint import extractor
from bakelint.categories import FunctionKind
from bakelint.errors import BakelintError
from bakelint.parser import parse
from bakelint.rules.base import Diagnostic, RuleDescriptor, rule
from bakelint.rules.common import (
    THREE_ELEMENT_MARKER,
    TWO_ELEMENT_MARKER,
    has_result_marker,
    segments_below,
)

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

logger = logging.getLogger(__name__)

TOPIC = "function-builder"
MAX_MODULE_DEPTH = 1
CONNECTION_SUFFIX = "Db"
TESTING_FACTORY_PREFIX = "createTesting"
PORTAL_DB_PROPERTY = "db"

_TEST_SUFFIX_RE = re.compile(r"\.(test|spec)(\.tsx?)$")

_EXPECTED_MARKER = {
    FunctionKind.PURE: TWO_ELEMENT_MARKER,
    FunctionKind.EFFECTFUL: TWO_ELEMENT_MARKER,
    FunctionKind.TRANSACTIONAL: THREE_ELEMENT_MARKER,
}
_EXPECTED_PARAMS = {
    FunctionKind.PURE: 1,
    FunctionKind.EFFECTFUL: 2,
    FunctionKind.TRANSACTIONAL: 2,
}


def _is_function(unit: SourceUnit) -> bool:
    return unit.signature.is_function


# ---------------------------------------------------------------------------
# Path rules
# ---------------------------------------------------------------------------


@rule("fn.file-name", path_only=True)
def check_file_name(unit: SourceUnit) -> Diagnostic | None:
    if FunctionKind.from_file_name(unit.file_name) is not None:
        return None
    return Diagnostic.error(
        "Function file names must start with 'fn.', 'fx.', or 'tx.'. "
        f"Found: {unit.file_name}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("fn.path-depth", path_only=True)
def check_path_depth(unit: SourceUnit) -> Diagnostic | None:
    parts = segments_below(unit, "function")
    # <module>/<file> at most.
    if len(parts) <= MAX_MODULE_DEPTH + 1:
        return None
    return Diagnostic.error(
        f"Function path cannot have more than {MAX_MODULE_DEPTH} level of module nesting. "
        f"Found {len(parts)} levels: {'/'.join(parts)}. "
        f"{unit.config.guidance(TOPIC)}"
    )


# ---------------------------------------------------------------------------
# Default export
# ---------------------------------------------------------------------------


@rule("fn.default-export")
def check_default_export(unit: SourceUnit) -> Diagnostic | None:
    if unit.default_export.exists:
        return None
    return Diagnostic.error(
        "Function must have a default export. "
        f"File {unit.relative_path} has no default export. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("fn.default-export-is-function", applies=lambda u: u.default_export.exists)
def check_default_export_is_function(unit: SourceUnit) -> Diagnostic | None:
    if unit.signature.is_function:
        return None
    return Diagnostic.error(
        "Function default export must be a function. "
        f"Found a {unit.default_export.kind.value} export in {unit.relative_path}. "
        f"{unit.config.guidance(TOPIC)}"
    )


# ---------------------------------------------------------------------------
# Subtype signature rules
# ---------------------------------------------------------------------------


def _return_type_rule(kind: FunctionKind) -> RuleDescriptor:
    marker = _EXPECTED_MARKER[kind]

    def check(unit: SourceUnit) -> Diagnostic | None:
        return_type = unit.signature.return_type
        if return_type is None:
            return Diagnostic.error(
                f"{kind.label} function must have an explicit return type. "
                f"Expected: {marker}<Data>. "
                f"{unit.config.guidance(TOPIC)}"
            )
        if has_result_marker(return_type, marker):
            return None
        return Diagnostic.error(
            f"{kind.label} function must return {marker}<Data>. "
            f"Found: {return_type}. "
            f"{unit.config.guidance(TOPIC)}"
        )

    return RuleDescriptor(id=f"{kind.prefix}return-type", check=check, applies=_is_function)


def _parameter_count_rule(kind: FunctionKind) -> RuleDescriptor:
    expected = _EXPECTED_PARAMS[kind]
    shape = "(TArgs)" if expected == 1 else "(TPortal, TArgs)"

    def check(unit: SourceUnit) -> Diagnostic | None:
        count = len(unit.signature.parameters)
        if count == expected:
            return None
        noun = "parameter" if expected == 1 else "parameters"
        return Diagnostic.error(
            f"{kind.label} function must have exactly {expected} {noun} {shape}. "
            f"Found: {count} parameters. "
            f"{unit.config.guidance(TOPIC)}"
        )

    return RuleDescriptor(id=f"{kind.prefix}parameter-count", check=check, applies=_is_function)


def _first_parameter_rule(kind: FunctionKind) -> RuleDescriptor:
    def check(unit: SourceUnit) -> Diagnostic | None:
        params = unit.signature.parameters
        if not params:
            return Diagnostic.error(
                f"{kind.label} function must have 2 parameters. "
                "The first parameter must be a Portal type. "
                f"{unit.config.guidance(TOPIC)}"
            )
        type_text = params[0].type_text
        if "Portal" in type_text:
            return None
        return Diagnostic.error(
            f"{kind.label} function first parameter must be a Portal type (contains 'Portal'). "
            f"Found: {type_text}. "
            f"{unit.config.guidance(TOPIC)}"
        )

    return RuleDescriptor(
        id=f"{kind.prefix}first-parameter-type", check=check, applies=_is_function
    )


# ---------------------------------------------------------------------------
# Database discipline
# ---------------------------------------------------------------------------


def _database_dependencies(portal: extractor.PortalTypeDescriptor) -> dict[str, str]:
    """Portal properties typed ``typeof X`` that denote a connection."""
    return {
        prop: target
        for prop, target in portal.typeof_targets().items()
        if prop == PORTAL_DB_PROPERTY or target.endswith(CONNECTION_SUFFIX)
    }


@rule("fn.db-portal-type")
def check_db_portal_type(unit: SourceUnit) -> Diagnostic | None:
    portal = unit.portal_type
    if portal is None:
        return None
    dependencies = _database_dependencies(portal)
    if not dependencies:
        return None

    valid = unit.database_names
    if not valid:
        return None

    for prop, target in dependencies.items():
        if target in valid:
            continue
        names = ", ".join(valid)
        return Diagnostic.error(
            f"{portal.name}.{prop} must be typeof one of the database variables: {names}. "
            f"Found: typeof {target}. "
            f"Available database variables: {names}. "
            f"{unit.config.guidance(TOPIC)}"
        )
    return None


@rule("fn.db-imports-type-only")
def check_db_imports_type_only(unit: SourceUnit) -> Diagnostic | None:
    for record in extractor.get_database_connection_imports(unit.imports):
        if record.is_type_only:
            continue
        names = list(record.imported_names)
        return Diagnostic.error(
            "Database connection imports must be type-only. "
            f"Found non-type-only import: {record.text}. "
            f"Use 'import type {{ {', '.join(names)} }} from \"{record.module_path}\"' "
            f"or 'import {{ type {', type '.join(names)} }} from \"{record.module_path}\"'. "
            "Database connections should only be used for typing, not runtime values. "
            f"{unit.config.guidance(TOPIC)}"
        )
    return None


@rule("fn.single-function-export")
def check_single_function_export(unit: SourceUnit) -> Diagnostic | None:
    extra = extractor.get_exported_function_names(unit.root)
    if not extra:
        return None
    return Diagnostic.error(
        "Single file, single function principle violated. "
        f"Found additional exported function(s): {', '.join(extra)}. "
        "fn/fx/tx files should only export ONE function (the default export). "
        "You can export types, interfaces, and constants, but not additional functions. "
        "If you need helper functions, "
        "either make them non-exported or move them to a separate file. "
        f"{unit.config.guidance(TOPIC)}"
    )


# ---------------------------------------------------------------------------
# Test files
# ---------------------------------------------------------------------------


def testing_factory_name(connection: str) -> str:
    """``mainDb`` -> ``createTestingMainDb``."""
    base = connection
    if connection.endswith(CONNECTION_SUFFIX):
        base = connection[: -len(CONNECTION_SUFFIX)]
    return f"{TESTING_FACTORY_PREFIX}{base[:1].upper()}{base[1:]}{CONNECTION_SUFFIX}"


def _function_under_test(unit: SourceUnit) -> Path | None:
    if _TEST_SUFFIX_RE.search(unit.file_name) is None:
        return None
    sibling = _TEST_SUFFIX_RE.sub(r"\2", unit.relative_path)
    return unit.project_root / sibling


def _declared_connection(path: Path) -> str | None:
    """Read the function under test and return its ``db: typeof X`` target."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Cannot read file: %s", path)
        return None
    try:
        root = parse(content, path.suffix).root_node
    except BakelintError:
        logger.warning("Cannot parse file: %s", path)
        return None
    export = extractor.find_default_export(root)
    symbols = extractor.build_symbol_table(root)
    function_node = extractor.resolve_default_export_function(export, symbols)
    portal = extractor.describe_portal_type(root, function_node)
    if portal is None:
        return None
    return portal.typeof_targets().get(PORTAL_DB_PROPERTY)


@rule("fn.test-imports-testing-db")
def check_test_imports_testing_db(unit: SourceUnit) -> Diagnostic | None:
    target = _function_under_test(unit)
    if target is None or not target.is_file():
        return None
    connection = _declared_connection(target)
    if connection is None:
        return None

    factory = testing_factory_name(connection)
    for record in unit.imports:
        basename = extractor.module_basename(record.module_path)
        if not basename.startswith(extractor.CONNECTION_FILE_PREFIX):
            continue
        if any(b.kind == "named" and b.imported == factory for b in record.bindings):
            return None

    return Diagnostic.error(
        "Test file must import the testing database function when testing database operations. "
        f"Expected import: import {{ {factory} }} from '@/src/database/.../conn....ts'. "
        f"Your function uses database variable '{connection}', "
        f"so tests must use '{factory}()' instead of mocking. "
        f"{unit.config.guidance(TOPIC)}"
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PATH_RULES = (check_file_name, check_path_depth)
EXPORT_RULES = (check_default_export, check_default_export_is_function)

SUBTYPE_RULES: dict[FunctionKind, tuple[RuleDescriptor, ...]] = {
    FunctionKind.PURE: (
        _return_type_rule(FunctionKind.PURE),
        _parameter_count_rule(FunctionKind.PURE),
    ),
    FunctionKind.EFFECTFUL: (
        _return_type_rule(FunctionKind.EFFECTFUL),
        _parameter_count_rule(FunctionKind.EFFECTFUL),
        _first_parameter_rule(FunctionKind.EFFECTFUL),
        check_db_portal_type,
    ),
    FunctionKind.TRANSACTIONAL: (
        _return_type_rule(FunctionKind.TRANSACTIONAL),
        _parameter_count_rule(FunctionKind.TRANSACTIONAL),
        _first_parameter_rule(FunctionKind.TRANSACTIONAL),
        check_db_portal_type,
    ),
}

TRAILING_RULES = (check_db_imports_type_only, check_single_function_export)

TEST_RULES = (check_test_imports_testing_db,)


def rules_for(kind: FunctionKind | None) -> tuple[RuleDescriptor, ...]:
    """Ordered rule list for a function file of subtype *kind*."""
    subtype = SUBTYPE_RULES.get(kind, ()) if kind is not None else ()
    return (*PATH_RULES, *EXPORT_RULES, *subtype, *TRAILING_RULES)
