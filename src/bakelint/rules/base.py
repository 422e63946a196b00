"""Rule primitives: diagnostics and rule descriptors."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from bakelint.source import SourceUnit


class DiagnosticKind(enum.Enum):
    """Whether a diagnostic blocks the operation."""

    INFORMATIONAL = "informational"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """Outcome of one violated (or advisory) rule."""

    kind: DiagnosticKind
    text: str
    rule_id: str = ""

    @classmethod
    def error(cls, text: str) -> Diagnostic:
        return cls(DiagnosticKind.ERROR, text)

    @classmethod
    def info(cls, text: str) -> Diagnostic:
        return cls(DiagnosticKind.INFORMATIONAL, text)

    @property
    def is_error(self) -> bool:
        return self.kind is DiagnosticKind.ERROR


def _always(_unit: SourceUnit) -> bool:
    return True


@dataclass(frozen=True)
class RuleDescriptor:
    """A named check plus the precondition deciding whether it runs.

    ``path_only`` rules look at the path alone and are the only ones run
    in before-phases.
    """

    id: str
    check: Callable[[SourceUnit], Diagnostic | None]
    path_only: bool = False
    applies: Callable[[SourceUnit], bool] = _always

    def evaluate(self, unit: SourceUnit) -> Diagnostic | None:
        if not self.applies(unit):
            return None
        diagnostic = self.check(unit)
        if diagnostic is None:
            return None
        return Diagnostic(diagnostic.kind, diagnostic.text, self.id)


def rule(
    rule_id: str,
    *,
    path_only: bool = False,
    applies: Callable[[SourceUnit], bool] = _always,
) -> Callable[[Callable[[SourceUnit], Diagnostic | None]], RuleDescriptor]:
    """Decorator turning a check function into a :class:`RuleDescriptor`."""

    def _wrap(check: Callable[[SourceUnit], Diagnostic | None]) -> RuleDescriptor:
        return RuleDescriptor(id=rule_id, check=check, path_only=path_only, applies=applies)

    return _wrap
