"""Check: AvoidStarImport

Detects imports that use the ``.*`` form.

Star imports hide which classes a file depends on and make name clashes
between packages possible when a library adds a class.

Examples:
- import java.util.*;                  # BAD: star import
- import static java.lang.Math.*;      # BAD unless allowStaticMemberImports
- import java.util.List;               # GOOD: explicit import
"""

from typing import Set

from jcheck.api import AbstractCheck, to_bool, to_str_list
from jcheck.registry import register_module
from jcheck.tokens import TokenType
from jcheck.tree import import_name

STAR_IMPORT_SUFFIX = ".*"


@register_module
class AvoidStarImportCheck(AbstractCheck):
    """Flag ``.*`` imports outside the excluded packages."""

    def __init__(self):
        super().__init__()
        self.excludes: Set[str] = set()
        self.allow_class_imports = False
        self.allow_static_member_imports = False

    def set_excludes(self, value: str) -> None:
        """Packages or classes whose star import is allowed; ``.*`` is optional."""
        self.excludes = {
            name if name.endswith(STAR_IMPORT_SUFFIX) else name + STAR_IMPORT_SUFFIX
            for name in to_str_list(value)
        }

    def set_allow_class_imports(self, value: str) -> None:
        self.allow_class_imports = to_bool(value)

    def set_allow_static_member_imports(self, value: str) -> None:
        self.allow_static_member_imports = to_bool(value)

    def acceptable_tokens(self):
        return [TokenType.IMPORT, TokenType.STATIC_IMPORT]

    def visit(self, node):
        if node.type is TokenType.IMPORT and self.allow_class_imports:
            return
        if node.type is TokenType.STATIC_IMPORT and self.allow_static_member_imports:
            return
        name = import_name(node)
        if name.endswith(STAR_IMPORT_SUFFIX) and name not in self.excludes:
            self.log(self._name_node(node), "import.avoidStar", name)

    @staticmethod
    def _name_node(node):
        """The dotted name of the import, skipping a leading ``static``."""
        for child in node.children:
            if child.type in (TokenType.DOT, TokenType.IDENT):
                return child
        return node
