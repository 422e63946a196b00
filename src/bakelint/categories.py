"""Closed vocabularies shared by the classifier, the rules and the engine."""

from __future__ import annotations

import enum


class FileCategory(enum.Enum):
    """Category a file belongs to, derived from its path."""

    API = "api"
    CONTROLLER = "controller"
    FUNCTION = "function"
    DATABASE = "database"
    COMPONENT = "component"
    GENERAL = "general"
    TEST = "test"
    UNCLASSIFIED = "unclassified"


class FunctionKind(enum.Enum):
    """Subtype of a function file, derived from its filename prefix."""

    PURE = "fn."
    EFFECTFUL = "fx."
    TRANSACTIONAL = "tx."

    @property
    def prefix(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return {"fn.": "Pure", "fx.": "Effectful", "tx.": "Transactional"}[self.value]

    @classmethod
    def from_file_name(cls, name: str) -> FunctionKind | None:
        for kind in cls:
            if name.startswith(kind.value):
                return kind
        return None


class CheckPhase(enum.Enum):
    """Lifecycle moment at which a check runs."""

    BEFORE_WRITE = "beforeWrite"
    BEFORE_EDIT = "beforeEdit"
    AFTER_WRITE = "afterWrite"
    AFTER_EDIT = "afterEdit"

    @property
    def is_before(self) -> bool:
        """Before-phases only run path/name rules; the content may not exist yet."""
        return self in (CheckPhase.BEFORE_WRITE, CheckPhase.BEFORE_EDIT)
