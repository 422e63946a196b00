"""SourceUnit: one file under inspection, with lazily derived syntax facts."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from bakelint import extractor
from bakelint.config import DEFAULT_CONFIG, BakelintConfig
from bakelint.parser import normalize_default_export, parse
from bakelint.scanner import get_database_names

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode
    from tree_sitter import Tree


def normalize_path(path: str | Path) -> str:
    """Return *path* with forward slashes and no trailing slash."""
    text = str(path).replace("\\", "/")
    return text.rstrip("/") if len(text) > 1 else text


def relative_posix(project_root: str | Path, file_path: str | Path) -> str | None:
    """Return *file_path* relative to *project_root* in POSIX form.

    Relative inputs are taken as already relative to the root.  Returns
    ``None`` when the file lies outside the project.
    """
    root = normalize_path(project_root)
    target = normalize_path(file_path)
    if not PurePosixPath(target).is_absolute() and not _has_drive(target):
        rel = PurePosixPath(target)
    else:
        try:
            rel = PurePosixPath(target).relative_to(PurePosixPath(root))
        except ValueError:
            return None
    parts = [p for p in rel.parts if p not in ("", ".")]
    if ".." in parts:
        return None
    return "/".join(parts)


def _has_drive(path: str) -> bool:
    return len(path) >= 2 and path[1] == ":"


@dataclass
class SourceUnit:
    """A file's path and text, plus syntax facts computed at most once.

    Instances are created per check call and never shared between calls.
    """

    project_root: Path
    relative_path: str
    text: str = ""
    config: BakelintConfig = field(default=DEFAULT_CONFIG)

    @classmethod
    def create(
        cls,
        project_root: str | Path,
        file_path: str | Path,
        text: str = "",
        *,
        config: BakelintConfig = DEFAULT_CONFIG,
    ) -> SourceUnit:
        rel = relative_posix(project_root, file_path)
        if rel is None:
            rel = normalize_path(file_path)
        return cls(project_root=Path(project_root), relative_path=rel, text=text, config=config)

    # ---- path facts (no parsing) ----

    @property
    def path(self) -> Path:
        return self.project_root / self.relative_path

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(self.relative_path.split("/")) if self.relative_path else ()

    @property
    def file_name(self) -> str:
        return self.parts[-1] if self.parts else ""

    @property
    def extension(self) -> str:
        return PurePosixPath(self.file_name).suffix

    @property
    def stem(self) -> str:
        """File name without its final extension (``fx.get.user`` for ``fx.get.user.ts``)."""
        return PurePosixPath(self.file_name).stem

    # ---- syntax facts (parsed on first use) ----

    @cached_property
    def _normalized(self) -> tuple[str, bool]:
        return normalize_default_export(self.text)

    @cached_property
    def tree(self) -> Tree:
        return parse(self._normalized[0], self.extension)

    @property
    def root(self) -> TSNode:
        return self.tree.root_node

    @cached_property
    def default_export(self) -> extractor.DefaultExport:
        return extractor.find_default_export(self.root, rewritten=self._normalized[1])

    @cached_property
    def symbols(self) -> dict[str, TSNode]:
        return extractor.build_symbol_table(self.root)

    @cached_property
    def imports(self) -> list[extractor.ImportRecord]:
        return extractor.extract_imports(self.root)

    @cached_property
    def default_function(self) -> TSNode | None:
        return extractor.resolve_default_export_function(self.default_export, self.symbols)

    @cached_property
    def signature(self) -> extractor.ExportSignature:
        return extractor.get_export_signature(self.default_export, self.symbols)

    @cached_property
    def portal_type(self) -> extractor.PortalTypeDescriptor | None:
        return extractor.describe_portal_type(self.root, self.default_function)

    @cached_property
    def database_names(self) -> list[str]:
        return get_database_names(self.project_root, config=self.config)
