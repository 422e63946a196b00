"""Tests for bakelint.parser: grammar loading and default-export normalization."""

from __future__ import annotations

import pytest

from bakelint.parser import (
    clear_cache,
    get_lang_config,
    normalize_default_export,
    parse,
    supported_extensions,
)


@pytest.fixture(autouse=True)
def _clear_lang_cache() -> None:
    clear_cache()


class TestGetLangConfig:
    def test_typescript(self) -> None:
        config = get_lang_config(".ts")
        assert config is not None
        assert config.name == "typescript"

    def test_tsx(self) -> None:
        config = get_lang_config(".tsx")
        assert config is not None
        assert config.name == "tsx"

    def test_unknown_extension(self) -> None:
        assert get_lang_config(".py") is None

    def test_cached(self) -> None:
        assert get_lang_config(".ts") is get_lang_config(".ts")

    def test_supported_extensions(self) -> None:
        assert {".ts", ".tsx", ".mts", ".cts"} <= supported_extensions()


class TestParse:
    def test_parses_module(self) -> None:
        tree = parse("const a: number = 1;\n")
        assert tree.root_node.type == "program"
        assert not tree.root_node.has_error

    def test_tsx_accepts_jsx(self) -> None:
        tree = parse("export default function Comp() { return <div>hi</div>; }\n", ".tsx")
        assert not tree.root_node.has_error

    def test_unknown_extension_uses_typescript(self) -> None:
        tree = parse("let x = 1;\n", ".js")
        assert tree.root_node.type == "program"

    def test_malformed_input_still_yields_tree(self) -> None:
        tree = parse("export default function (\n")
        assert tree.root_node.has_error


class TestNormalizeDefaultExport:
    def test_rewrites_trailing_keyword(self) -> None:
        text, changed = normalize_default_export("default export function f() {}\n")
        assert changed is True
        assert text == "export default function f() {}\n"

    def test_length_preserved(self) -> None:
        original = "const x = 1;\n  default  export const y = 2;\n"
        text, changed = normalize_default_export(original)
        assert changed is True
        assert len(text) == len(original)
        assert text.splitlines()[1] == "  export  default const y = 2;"

    def test_leaves_standard_spelling(self) -> None:
        original = "export default function f() {}\n"
        assert normalize_default_export(original) == (original, False)

    def test_ignores_identifier_named_default(self) -> None:
        original = "const defaults = 1;\nexport { defaults };\n"
        assert normalize_default_export(original) == (original, False)
