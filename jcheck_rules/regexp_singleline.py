"""Check: RegexpSingleline

Matches a regular expression against every line of a file. Reports each
match beyond ``maximum`` and, when fewer than ``minimum`` lines match, one
violation on line 1.

Examples (format ``System\\.out\\.println``):
- System.out.println("debug");   # BAD: illegal pattern
- LOG.debug("debug");            # GOOD

Examples (format ``^// Copyright``, minimum 1, maximum 10):
- a file without the header      # BAD: reported on line 1
"""

import re

from jcheck.api import AbstractFileSetCheck, to_bool, to_int
from jcheck.registry import register_module

MSG_REGEXP_EXCEEDED = "regexp.exceeded"
MSG_REGEXP_MINIMUM = "regexp.minimum"


@register_module
class RegexpSinglelineCheck(AbstractFileSetCheck):
    """Count lines matching ``format`` against ``minimum`` and ``maximum``."""

    def __init__(self):
        super().__init__()
        self.format = "$^"
        self.message = ""
        self.ignore_case = False
        self.minimum = 0
        self.maximum = 0
        self._pattern = re.compile(self.format)

    def set_format(self, value: str) -> None:
        re.compile(value)
        self.format = value

    def set_message(self, value: str) -> None:
        self.message = value

    def set_ignore_case(self, value: str) -> None:
        self.ignore_case = to_bool(value)

    def set_minimum(self, value: str) -> None:
        self.minimum = to_int(value)

    def set_maximum(self, value: str) -> None:
        self.maximum = to_int(value)

    def finish_local_setup(self):
        flags = re.IGNORECASE if self.ignore_case else 0
        self._pattern = re.compile(self.format, flags)
        if self.message:
            # a configured message replaces both templates
            for key in (MSG_REGEXP_EXCEEDED, MSG_REGEXP_MINIMUM):
                self.custom_messages.setdefault(key, self.message)

    def process_filtered(self, path, file_text):
        matches = 0
        for line_no, line in enumerate(file_text.lines, 1):
            if self._pattern.search(line):
                matches += 1
                if matches > self.maximum:
                    self.log(line_no, MSG_REGEXP_EXCEEDED, self.format)
        if matches < self.minimum:
            self.log(1, MSG_REGEXP_MINIMUM, self.minimum, self.format)
