"""
Inline suppression comments.

A comment of the form ``// jcheck:ignore[TypeName, Magic*]`` suppresses
violations of the named modules on the line that carries it. Patterns are
matched against the module name and the configured module id; glob patterns
are allowed.
"""

import fnmatch
import logging
import re
from typing import Dict, Optional, Set

from .api import Filter, to_pattern
from .registry import register_module
from .types import AuditEvent, FileText

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_FORMAT = r"//\s*jcheck:\s*ignore\s*\[\s*([^\]]+)\s*\]"


class SuppressionParser:
    """Parser for suppression comments in one file."""

    def __init__(self, text: str, comment_format: str = DEFAULT_COMMENT_FORMAT):
        self.text = text
        self.lines = FileText("", text).lines
        self._comment_format = re.compile(comment_format, re.IGNORECASE)
        self._parse_suppressions()

    def _parse_suppressions(self):
        """Parse all suppression comments in the text."""
        self.line_suppressions: Dict[int, Set[str]] = {}  # line_number -> {module_patterns}

        for line_num, line in enumerate(self.lines, 1):
            patterns = self._extract_suppression_patterns(line)
            if patterns:
                self.line_suppressions[line_num] = patterns

    def _extract_suppression_patterns(self, line: str) -> Set[str]:
        """Extract suppression patterns from a line."""
        patterns = set()

        for match in self._comment_format.finditer(line):
            # Split on commas and clean up whitespace
            for pattern in match.group(1).split(','):
                pattern = pattern.strip()
                if pattern:
                    patterns.add(pattern)

        return patterns

    def is_suppressed(self, module_name: str, line: int) -> bool:
        """Check if a violation of ``module_name`` on ``line`` is suppressed."""
        for pattern in self.line_suppressions.get(line, ()):
            if self._matches_pattern(module_name, pattern):
                return True
        return False

    @staticmethod
    def _matches_pattern(module_name: str, pattern: str) -> bool:
        """Check if a module name matches a suppression pattern."""
        # Exact match
        if module_name == pattern:
            return True

        # Glob pattern match (e.g., Magic*)
        return fnmatch.fnmatchcase(module_name, pattern)


@register_module
class SuppressWithInlineComment(Filter):
    """Drops violations suppressed by a comment on their line."""

    def __init__(self):
        super().__init__()
        self.comment_format = DEFAULT_COMMENT_FORMAT
        self._file_name: Optional[str] = None
        self._parser: Optional[SuppressionParser] = None

    def set_comment_format(self, value: str) -> None:
        pattern = to_pattern(value)
        if pattern.groups < 1:
            raise ValueError("commentFormat needs a group capturing the module names")
        self.comment_format = value

    def accept(self, event: AuditEvent) -> bool:
        if event.violation is None or event.file_name is None:
            return True
        parser = self._parser_for(event.file_name)
        if parser is None:
            return True
        names = [event.source_name]
        if event.module_id:
            names.append(event.module_id)
        return not any(parser.is_suppressed(name, event.line) for name in names)

    def _parser_for(self, file_name: str) -> Optional[SuppressionParser]:
        if file_name != self._file_name:
            self._file_name = file_name
            try:
                text = FileText.read(file_name, self.context.charset).text
            except OSError as e:
                logger.warning("Cannot read %s for suppression comments: %s", file_name, e)
                self._parser = None
            else:
                self._parser = SuppressionParser(text, self.comment_format)
        return self._parser
