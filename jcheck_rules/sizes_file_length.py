"""Check: FileLength

Reports files with more lines than allowed.

Examples (max 2000):
- a 1500 line file    # GOOD
- a 2500 line file    # BAD: reported on line 1
"""

from jcheck.api import AbstractFileSetCheck, to_int
from jcheck.registry import register_module


@register_module
class FileLengthCheck(AbstractFileSetCheck):
    """Limit the number of lines in a file."""

    def __init__(self):
        super().__init__()
        self.max = 2000

    def set_max(self, value: str) -> None:
        self.max = to_int(value)

    def process_filtered(self, path, file_text):
        if file_text.line_count > self.max:
            self.log(1, "maxLen.file", file_text.line_count, self.max)
