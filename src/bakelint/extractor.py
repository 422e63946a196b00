"""Signature extractor: default exports, parameters, imports and type aliases.

All helpers operate on a tree-sitter tree produced by :mod:`bakelint.parser`
and never raise on unexpected shapes: a missing node simply yields ``None``
or an empty result, which rules read as "not applicable".
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node as TSNode

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# "function" is the pre-0.21 grammar name of "function_expression".
FUNCTION_LITERAL_TYPES: frozenset[str] = frozenset(
    {"function_expression", "function", "arrow_function", "generator_function"}
)
FUNCTION_DECLARATION_TYPES: frozenset[str] = frozenset(
    {"function_declaration", "generator_function_declaration"}
)
_CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_VARIABLE_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})
_WRAPPER_EXPRESSIONS = frozenset(
    {"parenthesized_expression", "as_expression", "satisfies_expression"}
)

_TYPEOF_RE = re.compile(r"^typeof\s+([A-Za-z_$][\w$]*)$")

CONNECTION_FILE_PREFIX = "conn."


def node_text(node: TSNode | None) -> str:
    """Return the UTF-8 text of *node* (empty string for ``None``)."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def walk(node: TSNode) -> Iterator[TSNode]:
    """Yield *node* and all of its descendants in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def top_level_statements(root: TSNode) -> Iterator[TSNode]:
    """Yield top-level statements, looking through error-recovery wrappers."""
    for child in root.named_children:
        if child.type == "ERROR":
            yield from top_level_statements(child)
        else:
            yield child


def _has_token(node: TSNode, token: str) -> bool:
    return any(child.type == token for child in node.children)


def _unwrap(node: TSNode | None) -> TSNode | None:
    while node is not None and node.type in _WRAPPER_EXPRESSIONS:
        node = node.named_children[0] if node.named_children else None
    return node


def _string_value(node: TSNode | None) -> str | None:
    """Return the content of a string literal node without its quotes."""
    if node is None or node.type != "string":
        return None
    text = node_text(node)
    return text[1:-1] if len(text) >= 2 else ""


def _annotation_text(node: TSNode | None) -> str | None:
    """Return the type text of a ``: T`` annotation node."""
    if node is None:
        return None
    text = node_text(node).strip()
    if text.startswith(":"):
        text = text[1:].strip()
    return text or None


# ---------------------------------------------------------------------------
# Default export
# ---------------------------------------------------------------------------


class ExportKind(enum.Enum):
    """What a default export statement exports."""

    VARIABLE = "variable"
    FUNCTION = "function"
    CLASS = "class"
    EXPRESSION = "expression"
    NONE = "none"


class ExportSpelling(enum.Enum):
    """Surface syntax the default export was written in."""

    EXPORT_DEFAULT = "export default"
    DEFAULT_EXPORT = "default export"
    EXPORT_CLAUSE = "export { x as default }"


@dataclass(frozen=True)
class DefaultExport:
    """Normalized default export of a module.

    ``node`` is the function/class declaration for FUNCTION/CLASS, the
    first variable declarator for VARIABLE and the exported expression
    (possibly a bare identifier) for EXPRESSION.
    """

    kind: ExportKind
    node: TSNode | None = None
    spelling: ExportSpelling | None = None

    @property
    def exists(self) -> bool:
        return self.kind is not ExportKind.NONE


NO_DEFAULT_EXPORT = DefaultExport(kind=ExportKind.NONE)


def _from_declaration(decl: TSNode, spelling: ExportSpelling) -> DefaultExport:
    if decl.type in FUNCTION_DECLARATION_TYPES:
        return DefaultExport(ExportKind.FUNCTION, decl, spelling)
    if decl.type in _CLASS_TYPES:
        return DefaultExport(ExportKind.CLASS, decl, spelling)
    if decl.type in _VARIABLE_TYPES:
        for child in decl.named_children:
            if child.type == "variable_declarator":
                return DefaultExport(ExportKind.VARIABLE, child, spelling)
    return DefaultExport(ExportKind.EXPRESSION, decl, spelling)


def find_default_export(root: TSNode, *, rewritten: bool = False) -> DefaultExport:
    """Resolve the module's default export into a single tagged value.

    Recognizes ``export default <decl|expr>``, the trailing-keyword form
    ``default export <decl>`` (rewritten by
    :func:`bakelint.parser.normalize_default_export` before parsing; pass
    ``rewritten=True`` to tag it) and ``export { name as default }``.
    """
    keyword_spelling = (
        ExportSpelling.DEFAULT_EXPORT if rewritten else ExportSpelling.EXPORT_DEFAULT
    )

    for stmt in top_level_statements(root):
        if stmt.type != "export_statement":
            continue

        if _has_token(stmt, "default"):
            decl = stmt.child_by_field_name("declaration")
            if decl is not None:
                return _from_declaration(decl, keyword_spelling)
            value = _unwrap(stmt.child_by_field_name("value"))
            if value is not None:
                return DefaultExport(ExportKind.EXPRESSION, value, keyword_spelling)
            continue

        for clause in stmt.named_children:
            if clause.type != "export_clause":
                continue
            for spec in clause.named_children:
                alias = spec.child_by_field_name("alias")
                if spec.type == "export_specifier" and node_text(alias) == "default":
                    name = spec.child_by_field_name("name")
                    return DefaultExport(ExportKind.EXPRESSION, name, ExportSpelling.EXPORT_CLAUSE)

    return NO_DEFAULT_EXPORT


def has_default_export(root: TSNode) -> bool:
    """Return True if the module declares a default export in any spelling."""
    return find_default_export(root).exists


# ---------------------------------------------------------------------------
# Symbol table
# ---------------------------------------------------------------------------


def build_symbol_table(root: TSNode) -> dict[str, TSNode]:
    """Map top-level names to their declarations.

    Values are function/class declaration nodes or ``variable_declarator``
    nodes.  Declarations wrapped in ``export`` statements are included; the
    first declaration of a name wins.
    """
    table: dict[str, TSNode] = {}

    def _add(name_node: TSNode | None, decl: TSNode) -> None:
        if name_node is not None and name_node.type in ("identifier", "type_identifier"):
            table.setdefault(node_text(name_node), decl)

    for stmt in top_level_statements(root):
        decl = stmt
        if stmt.type == "export_statement":
            inner = stmt.child_by_field_name("declaration")
            if inner is None:
                continue
            decl = inner

        if decl.type in FUNCTION_DECLARATION_TYPES or decl.type in _CLASS_TYPES:
            _add(decl.child_by_field_name("name"), decl)
        elif decl.type in _VARIABLE_TYPES:
            for child in decl.named_children:
                if child.type == "variable_declarator":
                    _add(child.child_by_field_name("name"), child)

    return table


def _function_value(declarator: TSNode) -> TSNode | None:
    value = _unwrap(declarator.child_by_field_name("value"))
    if value is not None and value.type in FUNCTION_LITERAL_TYPES:
        return value
    return None


def resolve_default_export_function(
    export: DefaultExport, symbols: dict[str, TSNode]
) -> TSNode | None:
    """Return the function node behind the default export, or ``None``.

    Identifiers are followed one hop through *symbols*.
    """
    node = export.node
    if node is None:
        return None
    if export.kind is ExportKind.FUNCTION:
        return node
    if export.kind is ExportKind.VARIABLE:
        return _function_value(node)
    if export.kind is not ExportKind.EXPRESSION:
        return None

    if node.type in FUNCTION_LITERAL_TYPES:
        return node
    if node.type == "identifier":
        target = symbols.get(node_text(node))
        if target is None:
            return None
        if target.type in FUNCTION_DECLARATION_TYPES:
            return target
        if target.type == "variable_declarator":
            return _function_value(target)
    return None


def resolve_default_export_value(
    export: DefaultExport, symbols: dict[str, TSNode]
) -> TSNode | None:
    """Return the expression a default export evaluates to.

    ``export default app`` resolves to the initializer of ``const app``;
    declarations resolve to themselves.
    """
    node = export.node
    if node is None:
        return None
    if export.kind is ExportKind.VARIABLE:
        return _unwrap(node.child_by_field_name("value"))
    if export.kind is ExportKind.EXPRESSION and node.type == "identifier":
        target = symbols.get(node_text(node))
        if target is not None and target.type == "variable_declarator":
            return _unwrap(target.child_by_field_name("value"))
        return target
    return node


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Parameter:
    """One declared parameter of a function."""

    name: str
    type_text: str = "any"
    optional: bool = False


@dataclass(frozen=True)
class ExportSignature:
    """Shape of the default export as seen by the rules."""

    has_default: bool
    is_function: bool
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None


def get_parameters(function_node: TSNode) -> list[Parameter]:
    """Return the ordered parameter list of *function_node*."""
    params = function_node.child_by_field_name("parameters")
    if params is None:
        # Arrow function with a single bare parameter: ``x => ...``.
        single = function_node.child_by_field_name("parameter")
        return [Parameter(name=node_text(single))] if single is not None else []

    result: list[Parameter] = []
    for child in params.named_children:
        if child.type not in _PARAMETER_TYPES:
            continue
        pattern = child.child_by_field_name("pattern")
        name = node_text(pattern) if pattern is not None else node_text(child)
        if name == "this":
            continue
        type_text = _annotation_text(child.child_by_field_name("type")) or "any"
        result.append(
            Parameter(name=name, type_text=type_text, optional=child.type == "optional_parameter")
        )
    return result


def get_return_type(function_node: TSNode) -> str | None:
    """Return the written return-type annotation text, never an inferred type."""
    return _annotation_text(function_node.child_by_field_name("return_type"))


def is_default_export_function(export: DefaultExport, symbols: dict[str, TSNode]) -> bool:
    return resolve_default_export_function(export, symbols) is not None


def get_default_export_parameters(
    export: DefaultExport, symbols: dict[str, TSNode]
) -> list[Parameter]:
    """Parameters of the default-exported function; empty when it is not one."""
    function_node = resolve_default_export_function(export, symbols)
    return get_parameters(function_node) if function_node is not None else []


def get_default_export_return_type(
    export: DefaultExport, symbols: dict[str, TSNode]
) -> str | None:
    function_node = resolve_default_export_function(export, symbols)
    return get_return_type(function_node) if function_node is not None else None


def get_export_signature(export: DefaultExport, symbols: dict[str, TSNode]) -> ExportSignature:
    """Build the :class:`ExportSignature` of a normalized default export."""
    function_node = resolve_default_export_function(export, symbols)
    if function_node is None:
        return ExportSignature(has_default=export.exists, is_function=False)
    return ExportSignature(
        has_default=True,
        is_function=True,
        parameters=tuple(get_parameters(function_node)),
        return_type=get_return_type(function_node),
    )


def get_exported_function_names(root: TSNode) -> list[str]:
    """Return names of functions exported by name (not as default).

    Covers ``export function f() {}`` and ``export const f = () => {}``.
    """
    names: list[str] = []
    for stmt in top_level_statements(root):
        if stmt.type != "export_statement" or _has_token(stmt, "default"):
            continue
        decl = stmt.child_by_field_name("declaration")
        if decl is None:
            continue
        if decl.type in FUNCTION_DECLARATION_TYPES:
            names.append(node_text(decl.child_by_field_name("name")))
        elif decl.type in _VARIABLE_TYPES:
            for child in decl.named_children:
                if child.type == "variable_declarator" and _function_value(child) is not None:
                    names.append(node_text(child.child_by_field_name("name")))
    return names


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportBinding:
    """A single local name introduced by an import statement."""

    name: str
    kind: str  # "default" | "named" | "namespace"
    imported: str  # exported name in the source module ("default" / "*" for others)
    is_type_only: bool = False


@dataclass(frozen=True)
class ImportRecord:
    """One ``import`` statement."""

    module_path: str
    bindings: tuple[ImportBinding, ...]
    statement_type_only: bool
    text: str
    line: int

    @property
    def imported_names(self) -> tuple[str, ...]:
        return tuple(b.name for b in self.bindings)

    @property
    def is_default(self) -> bool:
        return any(b.kind == "default" for b in self.bindings)

    @property
    def is_type_only(self) -> bool:
        """True for ``import type ...`` or when every binding is a ``type`` specifier."""
        if self.statement_type_only:
            return True
        if not self.bindings:
            return False
        return all(b.kind == "named" and b.is_type_only for b in self.bindings)

    def runtime_bindings(self) -> list[ImportBinding]:
        """Bindings that exist at runtime (not erased as types)."""
        if self.statement_type_only:
            return []
        return [b for b in self.bindings if not b.is_type_only]


def _parse_import(stmt: TSNode) -> ImportRecord | None:
    source = stmt.child_by_field_name("source")
    module_path = _string_value(source)
    if module_path is None:
        return None

    statement_type_only = _has_token(stmt, "type")
    bindings: list[ImportBinding] = []

    for clause in stmt.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                bindings.append(ImportBinding(node_text(part), "default", "default"))
            elif part.type == "namespace_import":
                for ident in part.named_children:
                    if ident.type == "identifier":
                        bindings.append(ImportBinding(node_text(ident), "namespace", "*"))
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name_node = spec.child_by_field_name("name")
                    alias_node = spec.child_by_field_name("alias")
                    imported = node_text(name_node)
                    local = node_text(alias_node) if alias_node is not None else imported
                    type_only = _has_token(spec, "type")
                    bindings.append(
                        ImportBinding(local, "named", imported, is_type_only=type_only)
                    )

    return ImportRecord(
        module_path=module_path,
        bindings=tuple(bindings),
        statement_type_only=statement_type_only,
        text=node_text(stmt).strip(),
        line=stmt.start_point[0] + 1,
    )


def extract_imports(root: TSNode) -> list[ImportRecord]:
    """Return every top-level import statement in source order."""
    records: list[ImportRecord] = []
    for stmt in top_level_statements(root):
        if stmt.type != "import_statement":
            continue
        record = _parse_import(stmt)
        if record is not None:
            records.append(record)
    return records


def module_basename(module_path: str) -> str:
    """Return the last path segment of an import specifier."""
    return module_path.rstrip("/").rsplit("/", 1)[-1]


def get_imported_function_names(imports: list[ImportRecord], folder_marker: str) -> list[str]:
    """Return runtime bindings imported from modules whose path contains *folder_marker*."""
    names: list[str] = []
    for record in imports:
        if folder_marker not in record.module_path:
            continue
        names.extend(b.name for b in record.runtime_bindings())
    return names


def get_database_connection_imports(imports: list[ImportRecord]) -> list[ImportRecord]:
    """Return imports of connection modules (last segment starts with ``conn.``)."""
    return [
        r for r in imports if module_basename(r.module_path).startswith(CONNECTION_FILE_PREFIX)
    ]


# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PortalTypeDescriptor:
    """Property names (and their type text) of an object-shaped type."""

    name: str
    property_names: tuple[str, ...]
    property_types: dict[str, str]

    def typeof_targets(self) -> dict[str, str]:
        """Map property name -> identifier for properties typed ``typeof X``."""
        targets: dict[str, str] = {}
        for prop, type_text in self.property_types.items():
            match = _TYPEOF_RE.match(type_text)
            if match:
                targets[prop] = match.group(1)
        return targets


def find_type_alias(root: TSNode, name: str) -> TSNode | None:
    """Return the ``type <name> = ...`` declaration anywhere in the tree."""
    for node in walk(root):
        if node.type != "type_alias_declaration":
            continue
        if node_text(node.child_by_field_name("name")) == name:
            return node
    return None


def _describe_object_type(name: str, object_type: TSNode) -> PortalTypeDescriptor:
    names: list[str] = []
    types: dict[str, str] = {}
    for member in object_type.named_children:
        if member.type != "property_signature":
            continue
        prop = member.child_by_field_name("name")
        if prop is None or prop.type != "property_identifier":
            continue
        prop_name = node_text(prop)
        names.append(prop_name)
        types[prop_name] = _annotation_text(member.child_by_field_name("type")) or "any"
    return PortalTypeDescriptor(name=name, property_names=tuple(names), property_types=types)


def get_type_literal_property_names(alias: TSNode) -> list[str]:
    """Return the property names of an alias whose value is an object literal type."""
    value = alias.child_by_field_name("value")
    if value is None or value.type != "object_type":
        return []
    name = node_text(alias.child_by_field_name("name"))
    return list(_describe_object_type(name, value).property_names)


def describe_type_alias(root: TSNode, name: str) -> PortalTypeDescriptor | None:
    """Describe the object-shaped alias *name*, or ``None`` if absent or not an object."""
    alias = find_type_alias(root, name)
    if alias is None:
        return None
    value = alias.child_by_field_name("value")
    if value is None or value.type != "object_type":
        return None
    return _describe_object_type(name, value)


def describe_portal_type(
    root: TSNode, function_node: TSNode | None, default_name: str = "TPortal"
) -> PortalTypeDescriptor | None:
    """Describe the capability type of *function_node*'s first parameter.

    The first parameter's annotation is followed to a same-file alias or
    read directly when it is an inline object type.  Without a usable
    parameter, or when the annotation names no alias in this file, the
    alias named *default_name* is used.
    """
    if function_node is not None:
        params = function_node.child_by_field_name("parameters")
        first = None
        if params is not None:
            first = next((c for c in params.named_children if c.type in _PARAMETER_TYPES), None)
        annotation = first.child_by_field_name("type") if first is not None else None
        type_node = None
        if annotation is not None and annotation.named_children:
            type_node = annotation.named_children[-1]
        if type_node is not None and type_node.type == "object_type":
            pattern = first.child_by_field_name("pattern")
            return _describe_object_type(node_text(pattern), type_node)
        if type_node is not None and type_node.type == "type_identifier":
            described = describe_type_alias(root, node_text(type_node))
            if described is not None:
                return described
    return describe_type_alias(root, default_name)


# ---------------------------------------------------------------------------
# Construction expressions (routing framework instances)
# ---------------------------------------------------------------------------


def find_chain_root(node: TSNode | None) -> TSNode | None:
    """Follow ``a.b(...).c(...)`` chains back to their innermost receiver."""
    node = _unwrap(node)
    while node is not None and node.type == "call_expression":
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            break
        node = _unwrap(callee.child_by_field_name("object"))
    return node


def is_construction_of(node: TSNode | None, class_name: str) -> bool:
    """True if *node* is ``new <class_name>(...)``, possibly with chained calls."""
    root = find_chain_root(node)
    if root is None or root.type != "new_expression":
        return False
    return node_text(root.child_by_field_name("constructor")) == class_name


def find_constructions(root: TSNode, class_name: str) -> list[TSNode]:
    """Return every ``new <class_name>(...)`` expression in the tree."""
    return [
        node
        for node in walk(root)
        if node.type == "new_expression"
        and node_text(node.child_by_field_name("constructor")) == class_name
    ]


def find_option(new_expression: TSNode, key: str) -> TSNode | None:
    """Return the value node of ``key`` in the first object-literal argument."""
    arguments = new_expression.child_by_field_name("arguments")
    if arguments is None or not arguments.named_children:
        return None
    first = arguments.named_children[0]
    if first.type != "object":
        return None
    for pair in first.named_children:
        if pair.type != "pair":
            continue
        pair_key = pair.child_by_field_name("key")
        if pair_key is not None and pair_key.type == "string":
            key_text = _string_value(pair_key)
        else:
            key_text = node_text(pair_key)
        if key_text == key:
            return pair.child_by_field_name("value")
    return None


def string_literal_value(node: TSNode | None) -> str | None:
    """Return the value of a plain string (or substitution-free template) literal."""
    if node is None:
        return None
    if node.type == "template_string" and not any(
        c.type == "template_substitution" for c in node.named_children
    ):
        return node_text(node)[1:-1]
    return _string_value(node)
