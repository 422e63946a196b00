"""Shared test fixtures for bakelint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


USERS_CONNECTION = (
    "import { drizzle } from 'drizzle-orm/bun-sqlite';\n"
    "\n"
    "export const usersDb = drizzle(process.env.USERS_DB_URL!);\n"
)


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a project with the category folders and one database connection."""
    for folder in ("api", "controller", "function", "component"):
        (tmp_path / "src" / folder).mkdir(parents=True)
    conn = tmp_path / "src" / "database" / "users" / "conn.users.ts"
    conn.parent.mkdir(parents=True)
    conn.write_text(USERS_CONNECTION)
    return tmp_path


@pytest.fixture()
def write_file(tmp_project: Path) -> Callable[[str, str], Path]:
    """Return a helper writing *content* to a project-relative path."""

    def _write(rel_path: str, content: str) -> Path:
        target = tmp_project / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        return target

    return _write
