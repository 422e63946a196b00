"""File watcher: re-check changed source files."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bakelint.config import BakelintConfig
    from bakelint.engine import CheckResult

DEFAULT_DEBOUNCE_MS = 500

_WATCH_EXTENSIONS = frozenset({".ts", ".tsx", ".mts", ".cts", ".js", ".md", ".txt"})


def _get_watch_paths(project_root: Path, config: BakelintConfig) -> list[Path]:
    """Directories to watch: the source dir when present, else the project root."""
    source_dir = project_root / config.source_dir
    if source_dir.is_dir():
        return [source_dir]
    return [project_root] if project_root.is_dir() else []


def _filter_relevant(
    changes: Iterable[tuple[object, str]],
    project_root: Path,
    config: BakelintConfig,
) -> list[tuple[object, str]]:
    """Keep changes to files with watched extensions, ignoring hidden/temp files."""
    result: list[tuple[object, str]] = []

    for change_type, path_str in changes:
        p = Path(path_str)

        if p.name.startswith("~") or p.name.endswith(".tmp"):
            continue
        if p.suffix not in _WATCH_EXTENSIONS:
            continue

        try:
            rel = p.relative_to(project_root)
        except ValueError:
            continue

        # Directory parts only; the file name itself may start with a dot.
        if any(part.startswith(".") or part in config.ignore_dirs for part in rel.parts[:-1]):
            continue

        result.append((change_type, path_str))

    return result


def _format_time() -> str:
    """Return current time as ``HH:MM:SS`` string."""
    return datetime.now(tz=timezone.utc).strftime("%H:%M:%S")


@dataclass(frozen=True)
class WatchEvent:
    """One re-checked file after filtering and debounce."""

    path: str  # project-relative
    messages: tuple[str, ...]
    errors: tuple[str, ...]


def recheck(project_root: Path, path: Path, config: BakelintConfig) -> CheckResult | None:
    """Run the after-edit check on *path*; ``None`` when the file is gone or unreadable."""
    from bakelint.categories import CheckPhase
    from bakelint.engine import check

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return check(project_root, path, content, CheckPhase.AFTER_EDIT, config=config)


def watch(
    project_root: Path,
    debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    callback: Callable[[WatchEvent], None] | None = None,
    *,
    config: BakelintConfig | None = None,
) -> None:
    """Watch source files and re-check each one as it changes.

    Every changed file gets the after-edit rule set; errors are printed in
    red, advisory messages dimmed.  Runs until interrupted.
    """
    from rich.console import Console
    from rich.markup import escape
    from watchfiles import watch as fs_watch

    from bakelint.config import load_config

    console = Console()
    if config is None:
        config = load_config(project_root)

    watch_paths = _get_watch_paths(project_root, config)
    if not watch_paths:
        console.print("[red]No directories to watch.[/red]")
        return

    path_names = ", ".join(str(p.relative_to(project_root)) or "." for p in watch_paths)
    console.print(f"[bold blue]Watching:[/bold blue] {path_names}")
    console.print(f"[dim]Debounce: {debounce_ms}ms  |  Press Ctrl+C to stop[/dim]")
    console.print()

    try:
        for batch in fs_watch(*watch_paths, debounce=debounce_ms):
            relevant = _filter_relevant(batch, project_root, config)
            for path_str in sorted({path_str for _, path_str in relevant}):
                path = Path(path_str)
                checked = recheck(project_root, path, config)
                if checked is None:
                    continue

                rel = path.relative_to(project_root).as_posix()
                timestamp = _format_time()
                if checked.errors:
                    console.print(
                        f"[dim]{timestamp}[/dim] [red]{rel}[/red] "
                        f"({len(checked.errors)} error{'s' if len(checked.errors) != 1 else ''})"
                    )
                    for error in checked.errors:
                        console.print(f"  [red]✗[/red] {escape(error)}")
                else:
                    console.print(f"[dim]{timestamp}[/dim] [green]{rel}[/green] ok")
                for message in checked.messages:
                    console.print(f"  [dim]{escape(message)}[/dim]")

                if callback is not None:
                    callback(
                        WatchEvent(
                            path=rel,
                            messages=tuple(checked.messages),
                            errors=tuple(checked.errors),
                        )
                    )

    except KeyboardInterrupt:
        console.print("\n[yellow]Watch stopped.[/yellow]")
