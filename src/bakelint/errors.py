"""Exception hierarchy shared by the engine, the scanner and the CLI."""

from __future__ import annotations


class BakelintError(Exception):
    """Base class for all bakelint failures."""


class ConfigError(BakelintError):
    """Raised when ``.bakelint/config.yml`` holds invalid values."""


class GrammarUnavailableError(BakelintError):
    """Raised when no tree-sitter grammar is installed for an extension."""


class UnknownCategoryError(BakelintError):
    """Raised when a caller asks for a file category that does not exist."""


class EngineError(BakelintError):
    """Raised when a rule crashes instead of returning a diagnostic."""

    def __init__(self, rule_id: str, cause: Exception) -> None:
        super().__init__(f"Rule '{rule_id}' failed: {cause}")
        self.rule_id = rule_id
