"""Check: LineLength

Detects lines longer than the configured maximum. Tabs are expanded to the
next tab stop before measuring. ``package`` and ``import`` statements are
never reported.

Examples (max 80):
- a 72 character line                   # GOOD
- a 95 character string concatenation   # BAD: longer than 80
- import com.example.a.very.long.Name;  # GOOD: imports are exempt
"""

import re

from jcheck.api import AbstractFileSetCheck, to_int, to_pattern
from jcheck.registry import register_module
from jcheck.types import expand_tab_column

PACKAGE_IMPORT_PATTERN = re.compile(r"^(package|import) .*")


@register_module
class LineLengthCheck(AbstractFileSetCheck):
    """Flag lines exceeding ``max`` columns."""

    def __init__(self):
        super().__init__()
        self.max = 80
        self.ignore_pattern = to_pattern("^$")

    def set_max(self, value: str) -> None:
        self.max = to_int(value)

    def set_ignore_pattern(self, value: str) -> None:
        self.ignore_pattern = to_pattern(value)

    def process_filtered(self, path, file_text):
        for line_no, line in enumerate(file_text.lines, 1):
            length = expand_tab_column(line, len(line), self.tab_width)
            if length > self.max and not self._is_ignored(line):
                self.log(line_no, "maxLineLen", self.max, length)

    def _is_ignored(self, line: str) -> bool:
        return bool(PACKAGE_IMPORT_PATTERN.search(line) or self.ignore_pattern.search(line))
