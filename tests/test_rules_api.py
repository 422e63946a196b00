"""Tests for bakelint.rules.api: route handler files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bakelint.engine import check
from bakelint.rules import api
from bakelint.source import SourceUnit

if TYPE_CHECKING:
    from pathlib import Path

    from bakelint.engine import CheckResult

API_PATH = "src/api/user/api.user.ts"

VALID_API = (
    "import { Elysia } from 'elysia';\n"
    "import ctrlGetUser from '@/src/controller/user/ctrl.get-user';\n"
    "\n"
    "export default new Elysia({ prefix: '/api/user' })\n"
    "  .get('/:id', ({ params }) => ctrlGetUser({}, { id: params.id }));\n"
)


def _check(project: Path, content: str, rel_path: str = API_PATH) -> CheckResult:
    return check(project, rel_path, content, "afterWrite")


class TestValidApi:
    def test_no_errors_and_router_hint(self, tmp_project: Path) -> None:
        result = _check(tmp_project, VALID_API)
        assert result.errors == []
        assert result.messages == [
            "<hint>Add this API route to src/api-router.ts using .use()</hint>"
        ]

    def test_instance_through_variable(self, tmp_project: Path) -> None:
        content = (
            "import { Elysia } from 'elysia';\n"
            "import ctrlGetUser from '@/src/controller/user/ctrl.get-user';\n"
            "const app = new Elysia({ prefix: '/api/user' })"
            ".get('/', () => ctrlGetUser({}, {}));\n"
            "export default app;\n"
        )
        assert _check(tmp_project, content).errors == []

    def test_trailing_default_spelling(self, tmp_project: Path) -> None:
        content = (
            "import { Elysia } from 'elysia';\n"
            "import ctrlGetUser from '@/src/controller/user/ctrl.get-user';\n"
            "const app = new Elysia({ prefix: '/api/user' });\n"
            "default export app;\n"
        )
        assert _check(tmp_project, content).errors == []


class TestFileName:
    def test_bad_name(self, tmp_project: Path) -> None:
        result = check(tmp_project, "src/api/user/user.ts", "", "beforeWrite")
        assert len(result.errors) == 1
        assert "API file names must start with 'api.'" in result.errors[0]
        assert "Found: user.ts" in result.errors[0]
        assert result.errors[0].endswith("You might want to read .opencode/agent/api-builder.md")

    def test_model_file_exempt(self, tmp_project: Path) -> None:
        content = "export const userModel = {};\n"
        result = _check(tmp_project, content, "src/api/user/user.model.ts")
        assert result.errors == []
        assert result.messages == []

    def test_aggregator_exempt(self, tmp_project: Path) -> None:
        content = "import { Elysia } from 'elysia';\nexport default new Elysia();\n"
        assert _check(tmp_project, content, "src/api/router.ts").errors == []


class TestImportsElysia:
    def test_missing_import(self, tmp_project: Path) -> None:
        content = VALID_API.replace("import { Elysia } from 'elysia';\n", "")
        result = _check(tmp_project, content)
        assert len(result.errors) == 1
        assert "must import Elysia from 'elysia'" in result.errors[0]

    def test_default_import_does_not_count(self, tmp_project: Path) -> None:
        content = VALID_API.replace("import { Elysia }", "import Elysia")
        result = _check(tmp_project, content)
        assert any("must import Elysia" in e for e in result.errors)


class TestDefaultExportIsElysia:
    def test_exports_plain_object(self, tmp_project: Path) -> None:
        content = (
            "import { Elysia } from 'elysia';\n"
            "import ctrlGetUser from '@/src/controller/user/ctrl.get-user';\n"
            "export default { get: ctrlGetUser };\n"
        )
        result = _check(tmp_project, content)
        assert len(result.errors) == 1
        assert "must default export a new Elysia() instance" in result.errors[0]

    def test_no_default_export(self, tmp_project: Path) -> None:
        content = VALID_API.replace("export default ", "export const app = ")
        result = _check(tmp_project, content)
        assert any("does not export an Elysia instance" in e for e in result.errors)


class TestElysiaHasPrefix:
    def test_prefix_outside_api(self, tmp_project: Path) -> None:
        result = _check(tmp_project, VALID_API.replace("'/api/user'", "'/users'"))
        assert len(result.errors) == 1
        assert "must start with '/api/'" in result.errors[0]
        assert "'/users'" in result.errors[0]

    def test_missing_prefix(self, tmp_project: Path) -> None:
        result = _check(tmp_project, VALID_API.replace("{ prefix: '/api/user' }", ""))
        assert len(result.errors) == 1
        assert "must have a 'prefix' option" in result.errors[0]

    def test_no_instance_reported_once(self, tmp_project: Path) -> None:
        content = (
            "import { Elysia } from 'elysia';\n"
            "import ctrlGetUser from '@/src/controller/user/ctrl.get-user';\n"
            "export default ctrlGetUser;\n"
        )
        errors = _check(tmp_project, content).errors
        assert len(errors) == 1
        assert "must default export a new Elysia() instance" in errors[0]


class TestImportsController:
    def test_missing_controller(self, tmp_project: Path) -> None:
        content = VALID_API.replace(
            "import ctrlGetUser from '@/src/controller/user/ctrl.get-user';\n", ""
        )
        result = _check(tmp_project, content)
        assert len(result.errors) == 1
        assert "must import at least one controller file (ctrl.*)" in result.errors[0]


class TestRuleHelpers:
    def test_is_model_file(self, tmp_project: Path) -> None:
        unit = SourceUnit.create(tmp_project, "src/api/user/api.user.model.ts")
        assert api.is_model_file(unit)
        assert not api.is_api_aggregator(unit)

    def test_rule_ids(self) -> None:
        assert [r.id for r in api.RULES] == [
            "api.file-name",
            "api.imports-elysia",
            "api.default-export-is-elysia",
            "api.elysia-has-prefix",
            "api.imports-controller",
            "api.router-hint",
        ]
