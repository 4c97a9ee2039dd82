"""
Diagnostics collected while decoding a descriptor buffer.

Parsers never print. They push errors and warnings into a
:class:`DiagnosticsBuilder`, and the frozen :class:`AnalysisResult` it
produces is the only thing handed to the presentation layer.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Verdict(str, Enum):
    WELL_FORMED = "well_formed"
    VALID_WITH_WARNINGS = "valid_with_warnings"
    INVALID = "invalid"


class Diagnostic(BaseModel):
    """One finding, tied to a byte offset when there is one."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    offset: Optional[int] = Field(default=None, description="Byte offset in the analysed buffer")
    fatal: bool = Field(default=False, description="True if this error stopped the parse pass")


class AnalysisResult(BaseModel):
    """Outcome of one parse pass over one buffer."""

    model_config = ConfigDict(frozen=True)

    diagnostics: tuple[Diagnostic, ...] = ()
    error_count: int = 0
    warning_count: int = 0
    verdict: Verdict = Verdict.WELL_FORMED
    halted: bool = Field(default=False, description="A fatal error stopped the walk early")
    parsed: Optional[Any] = None

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def messages(self, severity: Optional[Severity] = None) -> list[str]:
        return [d.message for d in self.diagnostics if severity is None or d.severity == severity]


def compute_verdict(error_count: int, warning_count: int) -> Verdict:
    if error_count == 0 and warning_count == 0:
        return Verdict.WELL_FORMED
    if error_count == 0:
        return Verdict.VALID_WITH_WARNINGS
    return Verdict.INVALID


class DiagnosticsBuilder:
    """Accumulator threaded through one parse call."""

    def __init__(self):
        self._diagnostics: list[Diagnostic] = []
        self.halted = False

    def error(self, message: str, offset: Optional[int] = None) -> None:
        self._diagnostics.append(Diagnostic(severity=Severity.ERROR, message=message, offset=offset))

    def warning(self, message: str, offset: Optional[int] = None) -> None:
        self._diagnostics.append(Diagnostic(severity=Severity.WARNING, message=message, offset=offset))

    def fatal(self, message: str, offset: Optional[int] = None) -> None:
        """Record an error that ends the current pass."""
        self._diagnostics.append(
            Diagnostic(severity=Severity.ERROR, message=message, offset=offset, fatal=True))
        self.halted = True

    @property
    def error_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self._diagnostics if d.severity == Severity.WARNING)

    def build(self, parsed: Any = None) -> AnalysisResult:
        errors = self.error_count
        warnings = self.warning_count
        return AnalysisResult(
            diagnostics=tuple(self._diagnostics),
            error_count=errors,
            warning_count=warnings,
            verdict=compute_verdict(errors, warnings),
            halted=self.halted,
            parsed=parsed,
        )
