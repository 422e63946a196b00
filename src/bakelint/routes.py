"""Route lookup: which controllers each HTTP method of an api file calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from bakelint import extractor
from bakelint.parser import parse

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
CONTROLLER_MARKER = "ctrl."


@dataclass(frozen=True)
class Route:
    """A single endpoint declared in an api file."""

    method: str  # GET, POST, ...
    path: str  # full path including the instance prefix; "" for handler objects
    controllers: tuple[str, ...]  # controller module names, e.g. "ctrl.get-user"
    line: int  # 1-based line number


def extract_controller_imports(imports: list[extractor.ImportRecord]) -> dict[str, str]:
    """Map local controller bindings to their module file name."""
    controllers: dict[str, str] = {}
    for record in imports:
        if CONTROLLER_MARKER not in record.module_path:
            continue
        for binding in record.runtime_bindings():
            controllers[binding.name] = extractor.module_basename(record.module_path)
    return controllers


def find_controller_calls(node: TSNode, controllers: dict[str, str]) -> list[str]:
    """Controller modules called anywhere inside *node*, in first-call order."""
    found: list[str] = []
    for call in extractor.walk(node):
        if call.type != "call_expression":
            continue
        callee = call.child_by_field_name("function")
        if callee is None:
            continue
        if callee.type == "member_expression":
            callee = callee.child_by_field_name("property")
        module = controllers.get(extractor.node_text(callee))
        if module is not None and module not in found:
            found.append(module)
    return found


def _object_routes(root: TSNode, controllers: dict[str, str]) -> list[Route]:
    """``{ GET: async (req) => ..., POST: ... }`` handler objects."""
    routes: list[Route] = []
    for node in extractor.walk(root):
        if node.type != "pair":
            continue
        key = extractor.node_text(node.child_by_field_name("key"))
        value = node.child_by_field_name("value")
        if key not in HTTP_METHODS or value is None:
            continue
        called = find_controller_calls(value, controllers)
        if called:
            routes.append(Route(key, "", tuple(called), node.start_point[0] + 1))
    return routes


def _join_route(prefix: str, sub_path: str | None) -> str:
    base = prefix.rstrip("/")
    if not sub_path or sub_path == "/":
        return base or "/"
    return base + "/" + sub_path.lstrip("/")


def _chain_routes(root: TSNode, controllers: dict[str, str], class_name: str) -> list[Route]:
    """``new Elysia({ prefix }).get('/x', handler)`` chains."""
    routes: list[Route] = []
    for call in extractor.walk(root):
        if call.type != "call_expression":
            continue
        callee = call.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            continue
        method_node = callee.child_by_field_name("property")
        if method_node is None:
            continue
        method = extractor.node_text(method_node).upper()
        if method not in HTTP_METHODS:
            continue
        chain_root = extractor.find_chain_root(call)
        if not extractor.is_construction_of(chain_root, class_name):
            continue

        prefix = extractor.string_literal_value(extractor.find_option(chain_root, "prefix")) or ""
        arguments = call.child_by_field_name("arguments")
        if arguments is None:
            continue
        args = arguments.named_children
        sub_path = extractor.string_literal_value(args[0]) if args else None
        routes.append(
            Route(
                method=method,
                path=_join_route(prefix, sub_path),
                controllers=tuple(find_controller_calls(arguments, controllers)),
                line=method_node.start_point[0] + 1,
            )
        )
    routes.sort(key=lambda r: r.line)
    return routes


def extract_routes_from_source(
    content: str, extension: str = ".ts", class_name: str = "Elysia"
) -> list[Route]:
    """Extract routes from api file text."""
    root = parse(content, extension).root_node
    controllers = extract_controller_imports(extractor.extract_imports(root))
    return _chain_routes(root, controllers, class_name) + _object_routes(root, controllers)


def method_controller_map(routes: list[Route]) -> dict[str, list[str]]:
    """Group controller modules by HTTP method; methods calling none are omitted."""
    result: dict[str, list[str]] = {}
    for route in routes:
        if not route.controllers:
            continue
        bucket = result.setdefault(route.method, [])
        for module in route.controllers:
            if module not in bucket:
                bucket.append(module)
    return result


def extract_method_controller_map(content: str) -> dict[str, list[str]]:
    """Map each HTTP method to the controller modules its handlers call.

    Example: ``{"GET": ["ctrl.get-user-magic-cards"], "POST": ["ctrl.create-deck"]}``.
    """
    return method_controller_map(extract_routes_from_source(content))


def extract_routes(file_path: Path) -> list[Route]:
    """Read an api file and extract its routes; unreadable files yield ``[]``."""
    file_path = Path(file_path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Cannot read file: %s", file_path)
        return []
    if not content.strip():
        return []
    return extract_routes_from_source(content, file_path.suffix)
