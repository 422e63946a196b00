"""Route handler rules (``src/api``): naming, routing-framework instance, imports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bakelint import extractor
from bakelint.rules.base import Diagnostic, rule

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

TOPIC = "api-builder"
FRAMEWORK_MODULE = "elysia"
FRAMEWORK_CLASS = "Elysia"
ROUTE_PREFIX = "/api/"
CONTROLLER_PREFIX = "ctrl."


def is_model_file(unit: SourceUnit) -> bool:
    """Validation schema files: ``api.<name>.model.ts``."""
    return unit.stem.endswith(".model")


def is_api_aggregator(unit: SourceUnit) -> bool:
    return unit.relative_path == f"{unit.config.folder('api')}/router.ts"


def _route_module(unit: SourceUnit) -> bool:
    return not is_model_file(unit) and not is_api_aggregator(unit)


@rule("api.file-name", path_only=True, applies=lambda u: not is_api_aggregator(u))
def check_file_name(unit: SourceUnit) -> Diagnostic | None:
    if is_model_file(unit) or unit.stem.startswith("api."):
        return None
    return Diagnostic.error(
        "API file names must start with 'api.'. "
        f"Found: {unit.file_name}. "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("api.imports-elysia", applies=_route_module)
def check_imports_elysia(unit: SourceUnit) -> Diagnostic | None:
    for record in unit.imports:
        if record.module_path != FRAMEWORK_MODULE:
            continue
        if any(b.kind == "named" and b.imported == FRAMEWORK_CLASS for b in record.bindings):
            return None
    return Diagnostic.error(
        f"API files must import {FRAMEWORK_CLASS} from '{FRAMEWORK_MODULE}'. "
        f"File {unit.relative_path} does not import {FRAMEWORK_CLASS}. "
        f"Add: import {{ {FRAMEWORK_CLASS} }} from '{FRAMEWORK_MODULE}'; "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("api.default-export-is-elysia", applies=_route_module)
def check_default_export_is_elysia(unit: SourceUnit) -> Diagnostic | None:
    value = extractor.resolve_default_export_value(unit.default_export, unit.symbols)
    if extractor.is_construction_of(value, FRAMEWORK_CLASS):
        return None
    return Diagnostic.error(
        f"API files must default export a new {FRAMEWORK_CLASS}() instance. "
        f"File {unit.relative_path} does not export an {FRAMEWORK_CLASS} instance. "
        f"Use: export default new {FRAMEWORK_CLASS}({{ prefix: '/api/...' }}).get(...); "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("api.elysia-has-prefix", applies=_route_module)
def check_elysia_has_prefix(unit: SourceUnit) -> Diagnostic | None:
    instances = extractor.find_constructions(unit.root, FRAMEWORK_CLASS)
    if not instances:
        # Missing instance is reported by api.default-export-is-elysia.
        return None

    for instance in instances:
        value_node = extractor.find_option(instance, "prefix")
        if value_node is None:
            continue
        prefix = extractor.string_literal_value(value_node)
        if prefix is not None and not prefix.startswith(ROUTE_PREFIX):
            return Diagnostic.error(
                f"API {FRAMEWORK_CLASS} prefix must start with '{ROUTE_PREFIX}'. "
                f"Found prefix: '{prefix}' in {unit.relative_path}. "
                f"{unit.config.guidance(TOPIC)}"
            )
        return None

    return Diagnostic.error(
        f"API {FRAMEWORK_CLASS} instance must have a 'prefix' option. "
        f"File {unit.relative_path} is missing prefix. "
        f"Use: new {FRAMEWORK_CLASS}({{ prefix: '/api/module/endpoint' }}) "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("api.imports-controller", applies=_route_module)
def check_imports_controller(unit: SourceUnit) -> Diagnostic | None:
    for record in unit.imports:
        if extractor.module_basename(record.module_path).startswith(CONTROLLER_PREFIX):
            return None
    return Diagnostic.error(
        "API files must import at least one controller file (ctrl.*). "
        f"File {unit.relative_path} does not import any controller. "
        "API routes should delegate business logic to controllers, e.g. "
        "import ctrlUserGet from '@/src/controller/user/ctrl.get'; "
        f"{unit.config.guidance(TOPIC)}"
    )


@rule("api.router-hint", applies=_route_module)
def router_hint(unit: SourceUnit) -> Diagnostic | None:
    router = unit.config.api_router
    return Diagnostic.info(f"<hint>Add this API route to {router} using .use()</hint>")


RULES = (
    check_file_name,
    check_imports_elysia,
    check_default_export_is_elysia,
    check_elysia_has_prefix,
    check_imports_controller,
    router_hint,
)
