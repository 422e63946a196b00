"""Project-wide check: run the after-write rule set over every source file."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bakelint.categories import CheckPhase
from bakelint.classifier import classify_relative
from bakelint.config import load_config
from bakelint.engine import run
from bakelint.source import SourceUnit

if TYPE_CHECKING:
    from pathlib import Path

    from bakelint.config import BakelintConfig

logger = logging.getLogger(__name__)

LINT_EXTENSIONS = frozenset({".ts", ".tsx", ".mts", ".cts", ".js", ".md", ".txt"})


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class FileReport:
    """Diagnostics for a single file."""

    path: str  # project-relative, POSIX separators
    category: str
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class LintResult:
    """Result of a project-wide run."""

    reports: list[FileReport] = field(default_factory=list)
    files_scanned: int = 0
    elapsed_ms: float = 0.0

    @property
    def error_count(self) -> int:
        return sum(len(r.errors) for r in self.reports)

    @property
    def failing_files(self) -> list[FileReport]:
        return [r for r in self.reports if r.errors]


# ---------------------------------------------------------------------------
# File collection
# ---------------------------------------------------------------------------


def collect_files(project_root: Path, config: BakelintConfig) -> list[Path]:
    """Source-tree files plus script files lying directly in the project root."""
    files: list[Path] = []

    for candidate in sorted(project_root.iterdir()):
        if candidate.is_file() and candidate.suffix in (".ts", ".tsx", ".js"):
            files.append(candidate)

    source_dir = project_root / config.source_dir
    if source_dir.is_dir():
        for path in sorted(source_dir.rglob("*")):
            if not path.is_file() or path.suffix not in LINT_EXTENSIONS:
                continue
            rel_parts = path.relative_to(project_root).parts[:-1]
            if any(part in config.ignore_dirs for part in rel_parts):
                continue
            files.append(path)

    return files


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def lint(
    project_root: Path,
    *,
    config: BakelintConfig | None = None,
) -> LintResult:
    """Check every collected file as if it had just been written.

    Files that cannot be read are logged and skipped.

    Raises
    ------
    ConfigError
        When ``.bakelint/config.yml`` holds invalid values.
    """
    start = time.monotonic()
    if config is None:
        config = load_config(project_root)

    result = LintResult()
    for path in collect_files(project_root, config):
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Cannot read file: %s", path)
            continue

        rel = path.relative_to(project_root).as_posix()
        unit = SourceUnit(
            project_root=project_root, relative_path=rel, text=content, config=config
        )
        classification = classify_relative(rel, config)
        checked = run(classification, CheckPhase.AFTER_WRITE, unit)
        result.files_scanned += 1
        if checked.messages or checked.errors:
            result.reports.append(
                FileReport(
                    path=rel,
                    category=classification.category.value,
                    messages=checked.messages,
                    errors=checked.errors,
                )
            )

    result.elapsed_ms = (time.monotonic() - start) * 1000
    return result


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: LintResult) -> str:
    """Format a LintResult as human-readable text.

    Example output::

        src/function/user/fx.get.ts (function)
          x Effectful function must return TErrTuple<Data>. Found: string. ...

        1 error in 1 file (12 files scanned, 0.1s)
    """
    lines: list[str] = []
    for report in result.failing_files:
        lines.append(f"{report.path} ({report.category})")
        for error in report.errors:
            lines.append(f"  ✗ {error}")
        lines.append("")

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"
    failing = len(result.failing_files)
    if failing:
        errors = result.error_count
        error_word = "error" if errors == 1 else "errors"
        file_word = "file" if failing == 1 else "files"
        lines.append(
            f"{errors} {error_word} in {failing} {file_word} "
            f"({result.files_scanned} files scanned, {elapsed_str})"
        )
    else:
        lines.append(f"✓ No errors found ({result.files_scanned} files scanned, {elapsed_str})")
    return "\n".join(lines)


def format_json(result: LintResult) -> str:
    """Format a LintResult as structured JSON with ``files`` and ``summary``."""
    output: dict[str, object] = {
        "files": [
            {
                "path": r.path,
                "category": r.category,
                "messages": r.messages,
                "errors": r.errors,
            }
            for r in result.reports
        ],
        "summary": {
            "files_scanned": result.files_scanned,
            "files_with_errors": len(result.failing_files),
            "errors_count": result.error_count,
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult) -> str:
    """One line per error: ``path:category:first line of the error text``.

    Returns empty string when there are no errors.
    """
    lines: list[str] = []
    for report in result.failing_files:
        for error in report.errors:
            first_line = error.splitlines()[0] if error else ""
            lines.append(f"{report.path}:{report.category}:{first_line}")
    return "\n".join(lines)
