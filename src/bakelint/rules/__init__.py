"""Rule catalog, grouped by file category."""

from bakelint.rules.base import Diagnostic, DiagnosticKind, RuleDescriptor, rule

__all__ = ["Diagnostic", "DiagnosticKind", "RuleDescriptor", "rule"]
