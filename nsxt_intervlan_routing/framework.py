"""
Diagnostics and response containers shared by the provider, resources and
data sources.

Adapters never raise on API failures. They append a Diagnostic to the
response instead, and the caller (the CLI, or any other host) decides what
to do with errors and warnings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, TextIO

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass
class Diagnostic:
    severity: str
    summary: str
    detail: str = ""
    attribute: Optional[str] = None

    def __str__(self) -> str:
        where = f" (at {self.attribute})" if self.attribute else ""
        text = f"{self.summary}{where}"
        if self.detail:
            text = f"{text}: {self.detail}"
        return text


class Diagnostics:
    """Ordered collection of errors and warnings."""

    def __init__(self):
        self.items: List[Diagnostic] = []

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def add_error(self, summary: str, detail: str = "", attribute: Optional[str] = None) -> None:
        self.items.append(Diagnostic(SEVERITY_ERROR, summary, detail, attribute))

    def add_warning(self, summary: str, detail: str = "", attribute: Optional[str] = None) -> None:
        self.items.append(Diagnostic(SEVERITY_WARNING, summary, detail, attribute))

    def extend(self, other: "Diagnostics") -> None:
        self.items.extend(other.items)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.items if d.severity == SEVERITY_ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.items if d.severity == SEVERITY_WARNING]

    def has_error(self) -> bool:
        return bool(self.errors)

    def print_results(self, file: Optional[TextIO] = None) -> None:
        """Print warnings, then errors. Defaults to stdout."""
        if self.warnings:
            print("\nWarnings:", file=file)
            for warning in self.warnings:
                print(f"  [WARN] {warning}", file=file)

        if self.errors:
            print("\nErrors:", file=file)
            for error in self.errors:
                print(f"  [ERROR] {error}", file=file)


@dataclass
class ResourceResponse:
    """
    Outcome of one resource lifecycle call.

    Attributes:
        state:       New state to persist, or None when nothing should change
        diagnostics: Errors and warnings raised by the call
        removed:     True when the remote object is gone and the caller
                     should drop it from its tracked state
    """

    state: Optional[Any] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    removed: bool = False


@dataclass
class DataSourceResponse:
    state: Optional[Any] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class ProviderResponse:
    """Outcome of provider configuration; provider_data is shared with every adapter."""

    provider_data: Optional[Any] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
