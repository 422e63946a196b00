"""Tests for bakelint.extractor: default exports, signatures, imports, portal types."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bakelint import extractor
from bakelint.extractor import ExportKind, ExportSpelling
from bakelint.parser import normalize_default_export, parse

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode


def _root(text: str, extension: str = ".ts") -> TSNode:
    normalized, _ = normalize_default_export(text)
    return parse(normalized, extension).root_node


def _default(text: str) -> extractor.DefaultExport:
    normalized, rewritten = normalize_default_export(text)
    return extractor.find_default_export(parse(normalized).root_node, rewritten=rewritten)


def _signature(text: str) -> extractor.ExportSignature:
    root = _root(text)
    export = extractor.find_default_export(root)
    return extractor.get_export_signature(export, extractor.build_symbol_table(root))


FX_BODY = (
    "function fxGet(portal: TPortal, args: TArgs): Promise<TErrTuple<string>> {\n"
    "  return [null, args.id];\n"
    "}\n"
)


# ---------------------------------------------------------------------------
# Default export
# ---------------------------------------------------------------------------


class TestFindDefaultExport:
    def test_export_default_function(self) -> None:
        export = _default("export default " + FX_BODY)
        assert export.kind is ExportKind.FUNCTION
        assert export.spelling is ExportSpelling.EXPORT_DEFAULT
        assert export.exists

    def test_trailing_keyword_spelling(self) -> None:
        export = _default("default export " + FX_BODY)
        assert export.kind is ExportKind.FUNCTION
        assert export.spelling is ExportSpelling.DEFAULT_EXPORT

    def test_export_default_class(self) -> None:
        assert _default("export default class Store {}\n").kind is ExportKind.CLASS

    def test_export_default_expression(self) -> None:
        export = _default("export default async (a: TArgs) => a;\n")
        assert export.kind is ExportKind.EXPRESSION
        assert export.node is not None
        assert export.node.type == "arrow_function"

    def test_export_clause(self) -> None:
        export = _default("const handler = () => 1;\nexport { handler as default };\n")
        assert export.kind is ExportKind.EXPRESSION
        assert export.spelling is ExportSpelling.EXPORT_CLAUSE
        assert extractor.node_text(export.node) == "handler"

    def test_no_default(self) -> None:
        export = _default("export const a = 1;\nexport function b() {}\n")
        assert export.kind is ExportKind.NONE
        assert not export.exists

    def test_has_default_export(self) -> None:
        assert extractor.has_default_export(_root("export default 1;\n"))
        assert not extractor.has_default_export(_root("const a = 1;\n"))


class TestSpellingEquivalence:
    @pytest.mark.parametrize(
        "body",
        [
            FX_BODY,
            "async function fxGet(portal: TPortal, args: TArgs): TErrTuple<string> "
            "{ return [null, 1]; }\n",
            "function fnPure(args: TArgs): TErrTuple<number> { return [1, null]; }\n",
        ],
    )
    def test_same_signature(self, body: str) -> None:
        standard = _signature("export default " + body)
        trailing = _signature("default export " + body)
        assert standard == trailing
        assert standard.is_function

    def test_same_portal(self) -> None:
        prelude = "type TPortal = { db: typeof usersDb };\ntype TArgs = { id: string };\n"
        descriptors = []
        for spelling in ("export default ", "default export "):
            root = _root(prelude + spelling + FX_BODY)
            export = extractor.find_default_export(root)
            symbols = extractor.build_symbol_table(root)
            fn = extractor.resolve_default_export_function(export, symbols)
            descriptors.append(extractor.describe_portal_type(root, fn))
        assert descriptors[0] == descriptors[1]
        assert descriptors[0] is not None


# ---------------------------------------------------------------------------
# Symbol resolution and signature
# ---------------------------------------------------------------------------


class TestSignature:
    def test_parameters_and_return_type(self) -> None:
        sig = _signature("export default " + FX_BODY)
        assert [p.name for p in sig.parameters] == ["portal", "args"]
        assert [p.type_text for p in sig.parameters] == ["TPortal", "TArgs"]
        assert sig.return_type == "Promise<TErrTuple<string>>"

    def test_missing_return_type(self) -> None:
        sig = _signature("export default function f(a: TArgs) { return a; }\n")
        assert sig.is_function
        assert sig.return_type is None

    def test_untyped_parameter_is_any(self) -> None:
        sig = _signature("export default function f(a, b?: number) {}\n")
        assert sig.parameters[0].type_text == "any"
        assert sig.parameters[1].optional is True

    def test_default_arrow(self) -> None:
        sig = _signature("export default (args: TArgs): TErrTuple<string> => [null, 'x'];\n")
        assert sig.is_function
        assert len(sig.parameters) == 1

    def test_identifier_resolves_to_function(self) -> None:
        sig = _signature(
            "const fxGet = async (portal: TPortal, args: TArgs)"
            ": Promise<TErrTuple<string>> => [null, ''];\n"
            "export default fxGet;\n"
        )
        assert sig.is_function
        assert sig.return_type == "Promise<TErrTuple<string>>"

    def test_identifier_resolves_to_declaration(self) -> None:
        sig = _signature(
            "function fxGet(a: TArgs): string { return ''; }\nexport default fxGet;\n"
        )
        assert sig.is_function
        assert sig.return_type == "string"

    def test_non_function_default(self) -> None:
        sig = _signature("export default { name: 'x' };\n")
        assert sig.has_default
        assert not sig.is_function

    def test_unresolved_identifier(self) -> None:
        sig = _signature("import thing from './thing';\nexport default thing;\n")
        assert sig.has_default
        assert not sig.is_function

    def test_default_export_accessors(self) -> None:
        root = _root("const fxGet = (a: TArgs): string => '';\nexport default fxGet;\n")
        export = extractor.find_default_export(root)
        symbols = extractor.build_symbol_table(root)
        assert extractor.is_default_export_function(export, symbols)
        assert extractor.get_default_export_parameters(export, symbols) == [
            extractor.Parameter(name="a", type_text="TArgs")
        ]
        assert extractor.get_default_export_return_type(export, symbols) == "string"

    def test_default_export_accessors_without_function(self) -> None:
        root = _root("export default 42;\n")
        export = extractor.find_default_export(root)
        assert not extractor.is_default_export_function(export, {})
        assert extractor.get_default_export_parameters(export, {}) == []
        assert extractor.get_default_export_return_type(export, {}) is None

    def test_exported_function_names(self) -> None:
        root = _root(
            "export function helper() {}\n"
            "export const other = () => 1;\n"
            "export const VALUE = 3;\n"
            "export type T = string;\n"
            "export default function main() {}\n"
        )
        assert extractor.get_exported_function_names(root) == ["helper", "other"]


class TestSymbolTable:
    def test_collects_top_level_names(self) -> None:
        root = _root(
            "const a = 1, b = 2;\n"
            "function f() {}\n"
            "export class K {}\n"
            "export const c = 3;\n"
        )
        table = extractor.build_symbol_table(root)
        assert set(table) == {"a", "b", "f", "K", "c"}

    def test_first_declaration_wins(self) -> None:
        root = _root("var a = 1;\nvar a = 2;\n")
        table = extractor.build_symbol_table(root)
        assert extractor.node_text(table["a"]) == "a = 1"


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class TestImports:
    def test_binding_kinds(self) -> None:
        root = _root(
            "import def, { named, other as alias } from './mod';\n"
            "import * as ns from 'pkg';\n"
        )
        records = extractor.extract_imports(root)
        assert [r.module_path for r in records] == ["./mod", "pkg"]
        first = records[0]
        assert first.imported_names == ("def", "named", "alias")
        assert first.is_default
        assert first.bindings[2].imported == "other"
        assert records[1].bindings[0].kind == "namespace"
        assert first.line == 1
        assert records[1].line == 2

    def test_statement_type_only(self) -> None:
        source = "import type { usersDb } from './conn.users';\n"
        record = extractor.extract_imports(_root(source))[0]
        assert record.is_type_only
        assert record.runtime_bindings() == []

    def test_specifier_type_only(self) -> None:
        source = "import { type usersDb } from './conn.users';\n"
        record = extractor.extract_imports(_root(source))[0]
        assert record.is_type_only

    def test_mixed_is_not_type_only(self) -> None:
        record = extractor.extract_imports(
            _root("import { type usersDb, createTestingUsersDb } from './conn.users';\n")
        )[0]
        assert not record.is_type_only
        assert [b.name for b in record.runtime_bindings()] == ["createTestingUsersDb"]

    def test_runtime_import(self) -> None:
        record = extractor.extract_imports(_root("import { usersDb } from './conn.users';\n"))[0]
        assert not record.is_type_only

    def test_side_effect_import(self) -> None:
        record = extractor.extract_imports(_root("import './polyfill';\n"))[0]
        assert record.bindings == ()
        assert not record.is_type_only

    def test_module_basename(self) -> None:
        assert extractor.module_basename("@/src/database/users/conn.users") == "conn.users"
        assert extractor.module_basename("elysia") == "elysia"

    def test_imported_function_names(self) -> None:
        records = extractor.extract_imports(
            _root(
                "import fxGet from '@/src/function/user/fx.get';\n"
                "import type { TThing } from '@/src/function/user/types';\n"
                "import { Elysia } from 'elysia';\n"
            )
        )
        assert extractor.get_imported_function_names(records, "/function/") == ["fxGet"]

    def test_database_connection_imports(self) -> None:
        records = extractor.extract_imports(
            _root(
                "import type { usersDb } from '@/src/database/users/conn.users';\n"
                "import { schema } from '@/src/database/users/schema.tables.users';\n"
            )
        )
        found = extractor.get_database_connection_imports(records)
        assert [r.module_path for r in found] == ["@/src/database/users/conn.users"]


# ---------------------------------------------------------------------------
# Portal types
# ---------------------------------------------------------------------------


class TestPortalType:
    def test_alias_properties(self) -> None:
        root = _root("type TPortal = { db: typeof usersDb; clock: () => Date };\n")
        descriptor = extractor.describe_type_alias(root, "TPortal")
        assert descriptor is not None
        assert descriptor.property_names == ("db", "clock")
        assert descriptor.typeof_targets() == {"db": "usersDb"}

    def test_alias_not_object(self) -> None:
        root = _root("type TPortal = string;\n")
        assert extractor.describe_type_alias(root, "TPortal") is None
        alias = extractor.find_type_alias(root, "TPortal")
        assert alias is not None
        assert extractor.get_type_literal_property_names(alias) == []

    def test_follows_first_parameter_alias(self) -> None:
        root = _root(
            "type TDeps = { db: typeof usersDb };\n"
            "export default function f(deps: TDeps, args: TArgs) {}\n"
        )
        fn = extractor.resolve_default_export_function(
            extractor.find_default_export(root), extractor.build_symbol_table(root)
        )
        descriptor = extractor.describe_portal_type(root, fn)
        assert descriptor is not None
        assert descriptor.name == "TDeps"

    def test_unresolved_parameter_alias_falls_back_to_tportal(self) -> None:
        root = _root(
            "type TPortal = { fxGet: typeof fxGet };\n"
            "export default function f(deps: TDeps, args: TArgs) {}\n"
        )
        fn = extractor.resolve_default_export_function(
            extractor.find_default_export(root), extractor.build_symbol_table(root)
        )
        descriptor = extractor.describe_portal_type(root, fn)
        assert descriptor is not None
        assert descriptor.name == "TPortal"
        assert descriptor.typeof_targets() == {"fxGet": "fxGet"}

    def test_inline_object_parameter(self) -> None:
        root = _root("export default function f(portal: { db: typeof usersDb }, args: TArgs) {}\n")
        fn = extractor.resolve_default_export_function(
            extractor.find_default_export(root), extractor.build_symbol_table(root)
        )
        descriptor = extractor.describe_portal_type(root, fn)
        assert descriptor is not None
        assert descriptor.typeof_targets() == {"db": "usersDb"}

    def test_fallback_to_tportal(self) -> None:
        root = _root("type TPortal = { db: typeof usersDb };\nexport default 1;\n")
        descriptor = extractor.describe_portal_type(root, None)
        assert descriptor is not None
        assert descriptor.name == "TPortal"

    def test_absent(self) -> None:
        assert extractor.describe_portal_type(_root("const a = 1;\n"), None) is None


# ---------------------------------------------------------------------------
# Constructions
# ---------------------------------------------------------------------------


class TestConstructions:
    def test_chained_construction(self) -> None:
        root = _root(
            "export default new Elysia({ prefix: '/api/x' })"
            ".get('/', () => 1).post('/', () => 2);\n"
        )
        export = extractor.find_default_export(root)
        assert extractor.is_construction_of(export.node, "Elysia")
        assert not extractor.is_construction_of(export.node, "Hono")

    def test_find_option(self) -> None:
        root = _root("const app = new Elysia({ prefix: `/api/x`, 'name': 'n' });\n")
        (instance,) = extractor.find_constructions(root, "Elysia")
        prefix = extractor.find_option(instance, "prefix")
        assert extractor.string_literal_value(prefix) == "/api/x"
        assert extractor.string_literal_value(extractor.find_option(instance, "name")) == "n"
        assert extractor.find_option(instance, "missing") is None

    def test_template_with_substitution_is_not_literal(self) -> None:
        root = _root("const app = new Elysia({ prefix: `/api/${name}` });\n")
        (instance,) = extractor.find_constructions(root, "Elysia")
        assert extractor.string_literal_value(extractor.find_option(instance, "prefix")) is None
