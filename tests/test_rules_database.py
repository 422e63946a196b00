"""Tests for bakelint.rules.database: database folder layout."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bakelint.engine import check
from bakelint.rules.database import name_matches_directory

if TYPE_CHECKING:
    from pathlib import Path


class TestValidFiles:
    @pytest.mark.parametrize(
        "rel_path",
        [
            "src/database/orders/conn.orders.ts",
            "src/database/orders/auth.orders.ts",
            "src/database/orders/schema.tables.orders.ts",
        ],
    )
    @pytest.mark.parametrize("phase", ["beforeWrite", "afterWrite"])
    def test_clean(self, tmp_project: Path, rel_path: str, phase: str) -> None:
        result = check(tmp_project, rel_path, "export const ordersDb = drizzle(url);\n", phase)
        assert result.errors == []
        assert result.messages == []


class TestFileName:
    def test_query_file_rejected(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/database/orders/queries.ts", "", "beforeWrite")
        assert len(result.errors) == 1
        assert "Found: queries.ts" in result.errors[0]
        assert "should be placed in src/function/ directory" in result.errors[0]


class TestFileNameMatchesDirectory:
    def test_mismatched_connection(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/database/orders/conn.items.ts", "", "afterWrite")
        assert len(result.errors) == 1
        error = result.errors[0]
        expected = "conn.orders.ts, auth.orders.ts, or schema.<type>.orders.ts"
        assert f"Expected patterns: {expected}" in error
        assert "Found: conn.items.ts in src/database/orders/" in error

    def test_schema_wrong_db(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/database/orders/schema.tables.users.ts", "", "beforeEdit")
        assert len(result.errors) == 1

    def test_schema_without_type_segment(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/database/orders/schema.orders.ts", "", "beforeWrite")
        assert result.errors == []

    @pytest.mark.parametrize(
        ("stem", "expected"),
        [
            ("conn.orders", True),
            ("auth.orders", True),
            ("schema.tables.orders", True),
            ("schema.orders", True),
            ("schema.a.b.orders", True),
            ("schema.orders.users", False),
            ("conn.items", False),
        ],
    )
    def test_name_matches_directory(self, stem: str, expected: bool) -> None:
        assert name_matches_directory(stem, "orders") is expected


class TestPathDepth:
    def test_file_in_database_root(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/database/conn.orders.ts", "", "beforeWrite")
        assert len(result.errors) == 1
        assert "Database files must be at src/database/<dbname>/<file>.ts" in result.errors[0]

    def test_nested_folder(self, tmp_project: Path) -> None:
        rel = "src/database/orders/old/conn.orders.ts"
        errors = check(tmp_project, rel, "", "beforeWrite").errors
        assert any("No subdirectories or additional nesting allowed" in e for e in errors)
