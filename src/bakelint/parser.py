"""Parser adapter: tree-sitter grammars for TypeScript and TSX sources."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

from bakelint.errors import GrammarUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Tree

# "default export <decl>" at statement start; rewritten to "export default <decl>".
_TRAILING_DEFAULT_RE = re.compile(r"^([ \t]*)default(\s+)export\b", re.MULTILINE)


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for one TypeScript dialect."""

    name: str
    language: Language


# ---- Language loaders (lazy, handle ImportError) ----


def _load_typescript() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(name="typescript", language=Language(tstypescript.language_typescript()))


def _load_tsx() -> LangConfig:
    import tree_sitter_typescript as tstypescript

    return LangConfig(name="tsx", language=Language(tstypescript.language_tsx()))


# Extension -> loader function mapping.
_EXTENSION_LOADERS: dict[str, Callable[[], LangConfig]] = {
    ".ts": _load_typescript,
    ".mts": _load_typescript,
    ".cts": _load_typescript,
    ".tsx": _load_tsx,
}

# Cache for loaded languages (None means "tried and failed / unsupported").
_LANG_CACHE: dict[str, LangConfig | None] = {}


def get_lang_config(extension: str) -> LangConfig | None:
    """Get language config for a file extension, or ``None`` if unsupported/unavailable."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]

    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        _LANG_CACHE[extension] = None
        return None

    try:
        config = loader()
    except ImportError:
        _LANG_CACHE[extension] = None
        return None

    _LANG_CACHE[extension] = config
    return config


def supported_extensions() -> frozenset[str]:
    """Return the set of file extensions with available grammars."""
    return frozenset(ext for ext in _EXTENSION_LOADERS if get_lang_config(ext) is not None)


def clear_cache() -> None:
    """Clear the language config cache (useful for testing)."""
    _LANG_CACHE.clear()


def normalize_default_export(text: str) -> tuple[str, bool]:
    """Rewrite the trailing-keyword spelling ``default export`` as ``export default``.

    The rewrite keeps the text length and every line/column position
    unchanged, so node positions in the parsed tree still point at the
    caller's original source.  Returns the new text and whether anything
    was rewritten.
    """
    normalized, count = _TRAILING_DEFAULT_RE.subn(r"\1export\2default", text)
    return normalized, count > 0


def parse(text: str, extension: str = ".ts") -> Tree:
    """Parse *text* with the grammar for *extension*.

    Unknown extensions fall back to the plain TypeScript grammar.  Malformed
    input still produces a tree; tree-sitter marks the broken spans with
    ``ERROR`` nodes instead of failing.

    Raises
    ------
    GrammarUnavailableError
        When ``tree-sitter-typescript`` is not installed.
    """
    config = get_lang_config(extension if extension in _EXTENSION_LOADERS else ".ts")
    if config is None:
        msg = f"No tree-sitter grammar available for '{extension}' files"
        raise GrammarUnavailableError(msg)

    parser = Parser(config.language)
    return parser.parse(text.encode("utf-8"))
