"""Aggregator: run every applicable rule for a file and split the diagnostics.

The engine never stops at the first violation; a single pass reports all
of them.  Errors block the triggering write/edit, messages are advisory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from bakelint.categories import CheckPhase
from bakelint.classifier import classify_relative, select_rules
from bakelint.config import load_config
from bakelint.errors import BakelintError, EngineError
from bakelint.source import SourceUnit, normalize_path, relative_posix

if TYPE_CHECKING:
    from bakelint.classifier import Classification
    from bakelint.config import BakelintConfig
    from bakelint.rules.base import Diagnostic

ENGINE_LOGGER = "bakelint"


@dataclass
class CheckResult:
    """Messages and errors collected for one file, in rule order."""

    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list, repr=False)

    @property
    def rejected(self) -> bool:
        """True when the host must treat the operation as failed."""
        return bool(self.errors)

    def to_dict(self) -> dict[str, list[str]]:
        return {"messages": list(self.messages), "errors": list(self.errors)}


def run(
    classification: Classification,
    phase: CheckPhase,
    unit: SourceUnit,
    *,
    logger: logging.Logger | None = None,
) -> CheckResult:
    """Evaluate the rules selected for *classification* and *phase* against *unit*.

    Raises
    ------
    EngineError
        When a rule raises instead of returning a diagnostic.
    """
    log = logger if logger is not None else logging.getLogger(ENGINE_LOGGER)
    result = CheckResult()

    for descriptor in select_rules(classification, phase):
        try:
            diagnostic = descriptor.evaluate(unit)
        except BakelintError:
            raise
        except Exception as exc:
            raise EngineError(descriptor.id, exc) from exc
        if diagnostic is None:
            continue
        result.diagnostics.append(diagnostic)
        if diagnostic.is_error:
            result.errors.append(diagnostic.text)
            log.info(
                "%s %s [%s]: %s", phase.value, unit.relative_path, descriptor.id, diagnostic.text
            )
        else:
            result.messages.append(diagnostic.text)

    log.debug(
        "%s %s (%s): %d messages, %d errors",
        phase.value,
        unit.relative_path,
        classification.category.value,
        len(result.messages),
        len(result.errors),
    )
    return result


def check(
    project_root: str | Path,
    file_path: str | Path,
    content: str,
    phase: CheckPhase | str,
    *,
    config: BakelintConfig | None = None,
    logger: logging.Logger | None = None,
) -> CheckResult:
    """Check one file at one lifecycle phase.

    Parameters
    ----------
    project_root:
        Project directory; categories are resolved relative to it.
    file_path:
        Absolute path, or a path relative to *project_root*.
    content:
        File text.  Before-phases may pass an empty string: they only run
        path rules.
    phase:
        A :class:`CheckPhase` or its wire name (``"afterWrite"`` ...).
    config:
        Layout settings; loaded from ``.bakelint/config.yml`` when omitted.
    logger:
        Destination for the per-call log lines.
    """
    phase = CheckPhase(phase) if isinstance(phase, str) else phase
    root = Path(project_root)
    if config is None:
        config = load_config(root)

    rel = relative_posix(root, file_path)
    unit = SourceUnit(
        project_root=root,
        relative_path=rel if rel is not None else normalize_path(file_path),
        text=content,
        config=config,
    )
    classification = classify_relative(rel, config)
    return run(classification, phase, unit, logger=logger)
