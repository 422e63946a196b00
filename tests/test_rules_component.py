"""Tests for bakelint.rules.component: UI component files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bakelint.engine import check

if TYPE_CHECKING:
    from pathlib import Path


class TestComponentFileName:
    def test_valid_name_advisory(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/component/comp.button.tsx", "", "beforeWrite")
        assert result.errors == []
        assert result.messages == ["Component file name comp.button.tsx is valid"]

    def test_invalid_name(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/component/Button.tsx", "", "beforeWrite")
        assert len(result.errors) == 1
        assert "Component files ending with .tsx must start with 'comp.'" in result.errors[0]
        assert "frontend-builder.md" in result.errors[0]

    def test_non_tsx_ignored(self, tmp_project: Path) -> None:
        content = "export const a = 1;\n"
        result = check(tmp_project, "src/component/styles.ts", content, "afterWrite")
        assert result.errors == []
        assert result.messages == []

    def test_after_write_parses_tsx(self, tmp_project: Path) -> None:
        content = "export default function Button() {\n  return <button>ok</button>;\n}\n"
        result = check(tmp_project, "src/component/comp.button.tsx", content, "afterWrite")
        assert result.errors == []
