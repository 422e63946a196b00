"""Project hygiene rules that apply to every file regardless of category."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from bakelint.rules.base import Diagnostic, rule

if TYPE_CHECKING:
    from bakelint.source import SourceUnit

TS_EXTENSIONS = frozenset({".ts", ".tsx", ".mts", ".cts"})
DOC_EXTENSIONS = frozenset({".md", ".txt"})

# Comments and string/template literals, matched left to right.
_NOISE_RE = re.compile(
    r"//[^\n]*"
    r"|/\*.*?\*/"
    r"|`(?:[^`\\]|\\.)*`"
    r"|\"(?:[^\"\\\n]|\\.)*\""
    r"|'(?:[^'\\\n]|\\.)*'",
    re.DOTALL,
)
_DESCRIBE_RE = re.compile(r"^\s*describe(?:\.\w+)*\s*\(")
_TEST_CALL_RE = re.compile(r"^\s*(?:test|it)(?:\.\w+)*\s*\(")

_DESCRIBE_EXAMPLE = (
    "Example:\n"
    'describe("ModuleName", () => {\n'
    '  test("should do something", () => { ... });\n'
    "});"
)


# ---------------------------------------------------------------------------
# Path rules
# ---------------------------------------------------------------------------


@rule("gen.no-ts-file-in-root", path_only=True)
def check_no_ts_file_in_root(unit: SourceUnit) -> Diagnostic | None:
    if len(unit.parts) != 1 or unit.extension not in (".ts", ".tsx"):
        return None
    return Diagnostic.error(
        ".ts and .tsx files are not allowed in the project root. "
        "Please place TypeScript files in the appropriate "
        f"{unit.config.source_dir}/ subdirectory. "
        "If you need to create one off scripts place them in one-off-scripts/ directory."
    )


@rule("gen.no-js-files", path_only=True)
def check_no_js_files(unit: SourceUnit) -> Diagnostic | None:
    if any(part in unit.config.ignore_dirs for part in unit.parts[:-1]):
        return None
    if not unit.file_name.lower().endswith(".js"):
        return None
    return Diagnostic.error(
        ".js files are not allowed in this project. "
        "Please use TypeScript (.ts) files instead."
    )


def _in_docs_folder(unit: SourceUnit) -> bool:
    return any(
        unit.relative_path.startswith(folder + "/") for folder in unit.config.docs_folders
    )


@rule("gen.documentation", path_only=True)
def check_documentation(unit: SourceUnit) -> Diagnostic | None:
    ext = unit.extension.lower()
    if ext not in DOC_EXTENSIONS or _in_docs_folder(unit):
        return None
    folders = " or ".join(f"/{folder}" for folder in unit.config.docs_folders)
    return Diagnostic.error(
        f"Documentation files ({ext}) should only be created in the {folders} folders. "
        f"Attempted to create: {unit.file_name}. "
        "Agents should not add useless documentation. "
        "If documentation is really needed, use JSDoc comments in the code instead. "
        "Usually agents can read the code directly, which is sufficient. "
        "Only add JSDoc for non-trivial usage patterns. "
        "Agents should not engage in over-engineering documentation - "
        "no example scripts or similar files are needed."
    )


# ---------------------------------------------------------------------------
# Content rules
# ---------------------------------------------------------------------------


def _is_typescript(unit: SourceUnit) -> bool:
    return unit.extension in TS_EXTENSIONS


def _outside_api(unit: SourceUnit) -> bool:
    if not _is_typescript(unit):
        return False
    if unit.relative_path == unit.config.api_router:
        return False
    return not unit.relative_path.startswith(unit.config.folder("api") + "/")


def imports_api_route(module_path: str, api_folder: str) -> bool:
    """True if *module_path* points into the api category folder."""
    api_name = PurePosixPath(api_folder).name
    return (
        module_path.startswith(f"{api_folder}/")
        or module_path.startswith(f"@/{api_name}/")
        or f"/{api_folder}/" in module_path
        or (module_path.startswith(("./", "../")) and f"/{api_name}/" in module_path)
    )


@rule("gen.no-api-routes-in-routes", applies=_outside_api)
def check_no_api_route_imports(unit: SourceUnit) -> Diagnostic | None:
    api_folder = unit.config.folder("api")
    for record in unit.imports:
        if not imports_api_route(record.module_path, api_folder):
            continue
        router = unit.config.api_router
        return Diagnostic.error(
            "API routes must NOT be imported directly. "
            f"Found import: '{record.module_path}'\n\n"
            f"API routes should be added as subrouters in {router} using .use().\n\n"
            "Example:\n"
            "```typescript\n"
            f"// In {router}\n"
            "import apiHealth from './api/health/api.health';\n\n"
            "export default new Elysia({ name: 'api-router' })\n"
            "  .use(apiHealth)\n"
            "```\n\n"
            f"{unit.config.guidance('api-builder')}"
        )
    return None


def strip_comments_and_strings(content: str) -> str:
    """Blank out comments and replace string literals with ``""``.

    Newlines inside removed spans are kept so line structure survives.
    """

    def _replace(match: re.Match[str]) -> str:
        text = match.group(0)
        newlines = "\n" * text.count("\n")
        if text.startswith("/"):
            return newlines
        return '""' + newlines

    return _NOISE_RE.sub(_replace, content)


def scan_top_level_calls(content: str) -> tuple[list[str], list[str]]:
    """Return ``(describe_lines, test_lines)`` found at brace depth zero.

    This is a line-based heuristic over comment/string-stripped text, not a
    parse: a call counts as top-level when its line starts outside any
    ``{ ... }`` block.
    """
    describes: list[str] = []
    tests: list[str] = []
    depth = 0
    for line in strip_comments_and_strings(content).split("\n"):
        if depth <= 0:
            if _DESCRIBE_RE.match(line):
                describes.append(line.strip())
            elif _TEST_CALL_RE.match(line):
                tests.append(line.strip())
        depth += line.count("{") - line.count("}")
    return describes, tests


def _source_test_file(unit: SourceUnit) -> bool:
    return unit.relative_path.startswith(unit.config.source_dir + "/")


@rule("gen.test-describe-wrapper", applies=_source_test_file)
def check_test_describe_wrapper(unit: SourceUnit) -> Diagnostic | None:
    describes, tests = scan_top_level_calls(unit.text)
    if tests:
        return Diagnostic.error(
            "Top-level test() calls are not allowed in test files. "
            f"Found {len(tests)} top-level test() call(s). "
            "All test() calls must be wrapped inside a single top-level describe() block. "
            f"{_DESCRIBE_EXAMPLE}"
        )
    if not describes:
        return Diagnostic.error(
            "Test files must have a single top-level describe() block. "
            "No describe() block found. "
            f"{_DESCRIBE_EXAMPLE}"
        )
    if len(describes) > 1:
        return Diagnostic.error(
            "Test files must have exactly ONE top-level describe() block. "
            f"Found {len(describes)} top-level describe() calls. "
            "Please consolidate all tests into a single describe() block. "
            "You can use nested describe() blocks inside the single top-level describe()."
        )
    return None


RULES = (
    check_no_ts_file_in_root,
    check_no_js_files,
    check_documentation,
    check_no_api_route_imports,
)

TEST_RULES = (check_no_api_route_imports, check_test_describe_wrapper)
