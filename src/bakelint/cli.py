"""Bakelint CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import IO, TYPE_CHECKING

import click

from bakelint import __version__
from bakelint.categories import CheckPhase
from bakelint.errors import BakelintError

if TYPE_CHECKING:
    from bakelint.config import BakelintConfig
    from bakelint.engine import CheckResult

_PHASES = [phase.value for phase in CheckPhase]


@click.group()
@click.version_option(version=__version__, prog_name="bakelint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Bakelint - convention checks for generated TypeScript."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_config_or_exit(project_root: Path) -> BakelintConfig:
    from bakelint.config import load_config

    try:
        return load_config(project_root)
    except BakelintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


def _run_check(project_root: Path, file_path: str | Path, content: str, phase: str) -> CheckResult:
    """Run one check with the configured append-only log attached."""
    from bakelint.engine import ENGINE_LOGGER, check
    from bakelint.file_log import attach_file_log, detach_file_log

    config = _load_config_or_exit(project_root)
    engine_logger = logging.getLogger(ENGINE_LOGGER)
    handler = None
    if config.log_file:
        handler = attach_file_log(engine_logger, project_root / config.log_file)
    try:
        return check(project_root, file_path, content, phase, config=config, logger=engine_logger)
    except BakelintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    finally:
        detach_file_log(engine_logger, handler)


@main.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--phase",
    type=click.Choice(_PHASES),
    default=CheckPhase.AFTER_WRITE.value,
    show_default=True,
    help="Lifecycle phase to check.",
)
@click.option(
    "--content-from",
    "content_from",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Read the file content from here ('-' for stdin) instead of PATH.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json"]),
    default="rich",
    help="Output format.",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.pass_context
def check(
    ctx: click.Context,
    path: Path,
    *,
    phase: str,
    content_from: IO[str] | None,
    fmt: str,
    project: Path | None,
) -> None:
    """Check one file at one phase; exit 1 when errors are found."""
    project_root = project or Path.cwd()
    file_path = path if path.is_absolute() else project_root / path

    if content_from is not None:
        content = content_from.read()
    elif CheckPhase(phase).is_before:
        content = ""
    else:
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            click.echo(f"Error: cannot read {path}: {exc}", err=True)
            sys.exit(1)

    result = _run_check(project_root, file_path, content, phase)

    if fmt == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        quiet = bool(ctx.obj and ctx.obj.get("quiet"))
        if not quiet:
            for message in result.messages:
                click.echo(f"  [info] {message}")
        for error in result.errors:
            click.echo(f"  [ERR] {error}")
        if not result.errors and not quiet:
            click.echo(f"✓ {path}: no errors")

    if result.rejected:
        sys.exit(1)


@main.command()
def hook() -> None:
    """Check a host tool call read as JSON from stdin.

    Expects ``{"directory", "filePath", "phase"}`` plus ``content`` (writes)
    or ``oldString`` (before-phases only).  When an after-phase payload
    carries no content the edited file is read from disk.  Prints ``{"messages", "errors"}``
    and exits 1 when errors are present.
    """
    try:
        payload = json.loads(sys.stdin.read())
    except json.JSONDecodeError as exc:
        click.echo(f"Error: invalid JSON payload: {exc}", err=True)
        sys.exit(2)

    if not isinstance(payload, dict):
        click.echo("Error: payload must be a JSON object", err=True)
        sys.exit(2)

    phase = payload.get("phase")
    file_path = payload.get("filePath")
    if phase not in _PHASES or not isinstance(file_path, str):
        phases = ", ".join(_PHASES)
        click.echo(f"Error: payload needs 'filePath' and a 'phase' in {phases}", err=True)
        sys.exit(2)

    project_root = Path(payload.get("directory") or Path.cwd())
    content = payload.get("content")
    is_before = CheckPhase(phase).is_before
    if content is None and is_before:
        content = payload.get("oldString")
    if content is None and not is_before:
        target = Path(file_path)
        target = target if target.is_absolute() else project_root / target
        try:
            content = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            click.echo(f"Error: cannot read {file_path}: {exc}", err=True)
            sys.exit(2)

    result = _run_check(project_root, file_path, content or "", phase)
    click.echo(json.dumps(result.to_dict()))
    if result.rejected:
        sys.exit(1)


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if errors found.",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def lint(
    *,
    fmt: str | None,
    strict: bool,
    project: Path | None,
) -> None:
    """Check every source file as if it had just been written.

    Exit codes: 0 = clean or errors without --strict,
    1 = errors with --strict, 2 = configuration error.
    """
    from bakelint.linter import format_json as _format_json
    from bakelint.linter import format_porcelain as _format_porcelain
    from bakelint.linter import format_rich as _format_rich
    from bakelint.linter import lint as run_lint

    project_root = project or Path.cwd()

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = run_lint(project_root)
    except BakelintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": _format_rich,
        "json": _format_json,
        "porcelain": _format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if strict and result.error_count:
        sys.exit(1)


@main.command("db-names")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def db_names(*, as_json: bool, project: Path | None) -> None:
    """List database connection identifiers exported by conn.*.ts files."""
    from bakelint.scanner import get_database_names

    project_root = project or Path.cwd()
    config = _load_config_or_exit(project_root)
    names = get_database_names(project_root, config=config)

    if as_json:
        click.echo(json.dumps(names))
        return
    for name in names:
        click.echo(name)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def routes(file: Path, *, as_json: bool) -> None:
    """Show which controllers each HTTP method of an api file calls."""
    from bakelint.routes import extract_routes, method_controller_map

    found = extract_routes(file)

    if as_json:
        click.echo(json.dumps(method_controller_map(found), indent=2))
        return

    if not found:
        click.echo("No routes found.")
        return
    for route in found:
        target = ", ".join(route.controllers) or "-"
        path = route.path or "(handler)"
        click.echo(f"{route.method:<7} {path:<30} {target}  (line {route.line})")


@main.command("watch")
@click.option("--debounce", default=500, type=int, help="Debounce delay in ms.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def watch_cmd(*, debounce: int, project: Path | None) -> None:
    """Watch source files and re-check them as they change."""
    from bakelint.watcher import watch

    project_root = project or Path.cwd()
    config = _load_config_or_exit(project_root)
    watch(project_root, debounce_ms=debounce, config=config)
