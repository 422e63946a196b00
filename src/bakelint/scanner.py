"""Database name scanner: discover connection identifiers under the database folder."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from bakelint.config import CATEGORY_FOLDERS, DEFAULT_CONFIG
from bakelint.errors import UnknownCategoryError

if TYPE_CHECKING:
    from pathlib import Path

    from bakelint.config import BakelintConfig

logger = logging.getLogger(__name__)

# export const mainDb = drizzle(...)
_CONNECTION_EXPORT_RE = re.compile(r"export\s+const\s+(\w+Db)\s*=")

CONNECTION_PREFIX = "conn."


def list_category_files(
    project_root: Path,
    category: str,
    *,
    config: BakelintConfig = DEFAULT_CONFIG,
    suffixes: tuple[str, ...] = (".ts", ".tsx"),
) -> list[Path]:
    """List source files below the folder of *category*, sorted by path.

    A missing folder yields an empty list.

    Raises
    ------
    UnknownCategoryError
        When *category* is not one of the known folder categories.
    """
    if category not in CATEGORY_FOLDERS:
        msg = f"Unknown category '{category}'. Known: {', '.join(sorted(CATEGORY_FOLDERS))}"
        raise UnknownCategoryError(msg)

    folder = project_root / config.folder(category)
    if not folder.is_dir():
        return []

    try:
        return sorted(p for p in folder.rglob("*") if p.is_file() and p.suffix in suffixes)
    except OSError as exc:
        logger.warning("Cannot scan %s: %s", folder, exc)
        return []


def get_database_names(
    project_root: Path,
    *,
    config: BakelintConfig = DEFAULT_CONFIG,
) -> list[str]:
    """Return connection identifiers exported by ``conn.*.ts`` files.

    Every call re-reads the folder.  Unreadable files are logged and
    skipped, so the result may be partial but never raises for I/O.
    """
    names: list[str] = []
    for path in list_category_files(project_root, "database", config=config, suffixes=(".ts",)):
        if not path.name.startswith(CONNECTION_PREFIX):
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Cannot read file: %s", path)
            continue
        for name in _CONNECTION_EXPORT_RE.findall(content):
            if name not in names:
                names.append(name)
    return names
