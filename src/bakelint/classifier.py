"""File classifier and dispatcher: path -> category -> ordered rule subset."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from bakelint.categories import CheckPhase, FileCategory, FunctionKind
from bakelint.config import DEFAULT_CONFIG
from bakelint.rules import api, component, controller, database, function, general
from bakelint.rules.common import is_test_file
from bakelint.source import relative_posix

if TYPE_CHECKING:
    from pathlib import Path

    from bakelint.config import BakelintConfig
    from bakelint.rules.base import RuleDescriptor

# Checked in order; the first matching folder wins.
_FOLDER_CATEGORIES: tuple[FileCategory, ...] = (
    FileCategory.API,
    FileCategory.CONTROLLER,
    FileCategory.FUNCTION,
    FileCategory.DATABASE,
    FileCategory.COMPONENT,
)


@dataclass(frozen=True)
class Classification:
    """Where a file sits in the project layout.

    ``home`` is the folder category even for test files, whose
    ``category`` is :attr:`FileCategory.TEST`.
    """

    category: FileCategory
    home: FileCategory
    relative_path: str | None
    function_kind: FunctionKind | None = None

    @property
    def is_test(self) -> bool:
        return self.category is FileCategory.TEST


UNCLASSIFIED = Classification(FileCategory.UNCLASSIFIED, FileCategory.UNCLASSIFIED, None)


def classify_relative(
    relative_path: str | None, config: BakelintConfig = DEFAULT_CONFIG
) -> Classification:
    """Classify a project-relative POSIX path."""
    if not relative_path:
        return UNCLASSIFIED

    home = FileCategory.GENERAL
    for category in _FOLDER_CATEGORIES:
        if relative_path.startswith(config.folder(category.value) + "/"):
            home = category
            break

    file_name = relative_path.rsplit("/", 1)[-1]
    if is_test_file(file_name):
        return Classification(FileCategory.TEST, home, relative_path)

    kind = FunctionKind.from_file_name(file_name) if home is FileCategory.FUNCTION else None
    return Classification(home, home, relative_path, kind)


def classify(
    project_root: str | Path,
    file_path: str | Path,
    config: BakelintConfig = DEFAULT_CONFIG,
) -> Classification:
    """Classify *file_path* by its location relative to *project_root*.

    Separators are normalized, so Windows-style paths classify the same
    way.  Files outside the project are :attr:`FileCategory.UNCLASSIFIED`.
    """
    return classify_relative(relative_posix(project_root, file_path), config)


def _category_rules(classification: Classification) -> tuple[RuleDescriptor, ...]:
    category = classification.category
    if category is FileCategory.API:
        return api.RULES
    if category is FileCategory.CONTROLLER:
        return controller.RULES
    if category is FileCategory.FUNCTION:
        return function.rules_for(classification.function_kind)
    if category is FileCategory.DATABASE:
        return database.RULES
    if category is FileCategory.COMPONENT:
        return component.RULES
    if category is FileCategory.TEST:
        if classification.home is FileCategory.FUNCTION:
            return function.TEST_RULES
        return ()
    return ()


def select_rules(classification: Classification, phase: CheckPhase) -> list[RuleDescriptor]:
    """Return the ordered rules to run for *classification* in *phase*.

    Before-phases keep only path rules.  Test files skip the production
    contract of their folder and get the test-file subset instead.
    """
    if classification.category is FileCategory.UNCLASSIFIED:
        return []

    if classification.is_test:
        selected = [*general.TEST_RULES, *_category_rules(classification)]
    else:
        selected = [*general.RULES, *_category_rules(classification)]

    if phase.is_before:
        return [r for r in selected if r.path_only]
    return selected
