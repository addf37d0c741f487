"""
Core types shared by the engine, the checks and the listeners.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from . import messages
from .tokens import TokenType

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")

DEFAULT_TAB_WIDTH = 8


class Severity(Enum):
    """Severity of a violation, ordered from least to most severe."""

    IGNORE = "ignore"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_name(cls, name: str) -> "Severity":
        """Parse a severity name (case-insensitive)."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown severity level: {name}") from None

    @property
    def label(self) -> str:
        """Label used by the plain text format."""
        return "WARN" if self is Severity.WARNING else self.name


def expand_tab_column(line: str, index: int, tab_width: int = DEFAULT_TAB_WIDTH) -> int:
    """Length of ``line[:index]`` when tabs advance to the next tab stop."""
    length = 0
    for char in line[:index]:
        if char == "\t":
            length = (length // tab_width + 1) * tab_width
        else:
            length += 1
    return length


@dataclass
class FileText:
    """Contents of one audited file split into lines without terminators."""

    path: str
    text: str
    lines: List[str] = field(init=False)

    def __post_init__(self):
        self.lines = _LINE_SPLIT.split(self.text)
        if self.lines[-1] == "":
            self.lines.pop()

    @classmethod
    def read(cls, path: str, charset: str = "utf-8") -> "FileText":
        with open(path, "r", encoding=charset, errors="replace", newline="") as f:
            return cls(path, f.read())

    def line(self, number: int) -> str:
        """Return the 1-based line ``number``."""
        return self.lines[number - 1]

    @property
    def line_count(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class Violation:
    """A single rule infraction.

    Attributes:
        line: 1-based line
        column: 1-based column with tabs expanded, ``None`` when not applicable
        bundle: package holding the message template
        key: message key inside the bundle
        args: substitution arguments
        severity: reported severity
        module_id: configured ``id`` of the module, or ``None``
        source_name: module name used in output, e.g. ``CustomImportOrder``
        token_type: kind of the node the violation was reported on
        column_no: 0-based character column of that node
        custom_message: user supplied template overriding the bundle
    """

    line: int
    column: Optional[int]
    bundle: str
    key: str
    args: Tuple[object, ...]
    severity: Severity
    source_name: str
    module_id: Optional[str] = None
    token_type: Optional[TokenType] = None
    column_no: Optional[int] = None
    custom_message: Optional[str] = None

    @property
    def message(self) -> str:
        return messages.format_message(self.bundle, self.key, self.args, self.custom_message)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return self.line, self.column or 0


def sort_violations(violations: List[Violation]) -> List[Violation]:
    """Order by (line, column); ties keep reporting order."""
    return sorted(violations, key=lambda violation: violation.sort_key)


@dataclass(frozen=True)
class AuditEvent:
    """Event delivered to listeners and filters."""

    file_name: Optional[str] = None
    violation: Optional[Violation] = None

    @property
    def line(self) -> int:
        return self.violation.line if self.violation else 0

    @property
    def column(self) -> Optional[int]:
        return self.violation.column if self.violation else None

    @property
    def message(self) -> str:
        return self.violation.message if self.violation else ""

    @property
    def severity(self) -> Severity:
        return self.violation.severity if self.violation else Severity.INFO

    @property
    def source_name(self) -> str:
        return self.violation.source_name if self.violation else ""

    @property
    def module_id(self) -> Optional[str]:
        return self.violation.module_id if self.violation else None
