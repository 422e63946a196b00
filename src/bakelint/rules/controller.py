"""Controller rules (``src/controller``): signature ``(TPortal, TArgs) => TErrTuple``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bakelint import extractor
from bakelint.rules.base import Diagnostic, rule
from bakelint.rules.common import TWO_ELEMENT_MARKER, has_result_marker

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

TOPIC = "controller-builder"
PORTAL_TOPIC = "ctrl-builder"
FUNCTION_FOLDER_MARKER = "/function/"


def _is_function(unit: SourceUnit) -> bool:
    return unit.signature.is_function


@rule("ctrl.file-name", path_only=True)
def check_file_name(unit: SourceUnit) -> Diagnostic | None:
    if unit.stem.startswith("ctrl."):
        return None
    return Diagnostic.error(
        "Controller file names must start with 'ctrl.'. "
        f"Found: {unit.file_name}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("ctrl.default-export")
def check_default_export(unit: SourceUnit) -> Diagnostic | None:
    if unit.default_export.exists:
        return None
    return Diagnostic.error(
        "Controller must have a default export function. "
        f"File {unit.relative_path} has no default export. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("ctrl.default-export-is-function", applies=lambda u: u.default_export.exists)
def check_default_export_is_function(unit: SourceUnit) -> Diagnostic | None:
    if unit.signature.is_function:
        return None
    return Diagnostic.error(
        "Controller default export must be a function. "
        f"Found a {unit.default_export.kind.value} export in {unit.relative_path}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("ctrl.parameter-count", applies=_is_function)
def check_parameter_count(unit: SourceUnit) -> Diagnostic | None:
    count = len(unit.signature.parameters)
    if count == 2:
        return None
    return Diagnostic.error(
        f"Controller function must have exactly 2 parameters (TPortal, TArgs), found {count}. "
        f"{unit.config.guidance(TOPIC)}"
    )


def _has_parameters(unit: SourceUnit, count: int) -> bool:
    return _is_function(unit) and len(unit.signature.parameters) >= count


@rule("ctrl.first-parameter-is-portal", applies=lambda u: _has_parameters(u, 1))
def check_first_parameter_is_portal(unit: SourceUnit) -> Diagnostic | None:
    type_text = unit.signature.parameters[0].type_text
    if "Portal" in type_text or "portal" in type_text:
        return None
    return Diagnostic.error(
        f"First parameter must be a portal type (TPortal), found: {type_text}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("ctrl.second-parameter-is-args", applies=lambda u: _has_parameters(u, 2))
def check_second_parameter_is_args(unit: SourceUnit) -> Diagnostic | None:
    type_text = unit.signature.parameters[1].type_text
    if "Args" in type_text or "args" in type_text:
        return None
    return Diagnostic.error(
        f"Second parameter must be an args type (TArgs), found: {type_text}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("ctrl.return-type", applies=_is_function)
def check_return_type(unit: SourceUnit) -> Diagnostic | None:
    return_type = unit.signature.return_type
    if return_type is None:
        return Diagnostic.error(
            "Controller function must have an explicit return type. "
            f"Expected: {TWO_ELEMENT_MARKER}<Data>. "
            f"{unit.config.guidance(TOPIC)}"
        )
    if has_result_marker(return_type, TWO_ELEMENT_MARKER):
        return None
    return Diagnostic.error(
        f"Controller function must return {TWO_ELEMENT_MARKER}<Data>. "
        f"Found: {return_type}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("ctrl.portal-does-not-contain-functions")
def check_portal_does_not_contain_functions(unit: SourceUnit) -> Diagnostic | None:
    portal = unit.portal_type
    if portal is None:
        return None
    imported = extractor.get_imported_function_names(unit.imports, FUNCTION_FOLDER_MARKER)
    threaded = [name for name in portal.property_names if name in imported]
    if not threaded:
        return None
    return Diagnostic.error(
        f"{portal.name} must not contain function imports. Found: {', '.join(threaded)}. "
        "Controllers should import and call functions directly, "
        f"not pass them through {portal.name}. "
        f"{portal.name} should only contain variables (like db connections) "
        "that need to be mocked for testing. "
        "If function needs dependencies (like a db connection), "
        "pass those variables in TPortal or TArgs, "
        "and let the controller call the function with those dependencies. "
        f"{unit.config.guidance(PORTAL_TOPIC)}"
    )


RULES = (
    check_file_name,
    check_default_export,
    check_default_export_is_function,
    check_parameter_count,
    check_first_parameter_is_portal,
    check_second_parameter_is_args,
    check_return_type,
    check_portal_does_not_contain_functions,
)
