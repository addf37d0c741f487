"""Check: NestedForDepth, NestedIfDepth

Restricts how deeply ``for`` loops and ``if``-``else`` statements nest.
An ``else if`` continues its chain and does not add a level.

Examples (max 1):
- for (...) { for (...) { } }                # GOOD: depth 1
- for (...) { for (...) { for (...) { } } }  # BAD: depth 2
- if (a) { } else if (b) { }                 # GOOD: depth 0
"""

from jcheck.api import AbstractCheck, to_int
from jcheck.registry import register_module
from jcheck.tokens import TokenType
from jcheck.tree import DetailNode


class _NestingDepthCheck(AbstractCheck):
    """Base for checks that count nesting of one statement kind."""

    token = TokenType.LITERAL_FOR
    message_key = ""

    def __init__(self):
        super().__init__()
        self.max = 1
        self._depth = 0

    def set_max(self, value: str) -> None:
        self.max = to_int(value)

    def acceptable_tokens(self):
        return [self.token]

    def required_tokens(self):
        return [self.token]

    def begin_tree(self, root):
        self._depth = 0

    def visit(self, node):
        if self._counts(node):
            if self._depth > self.max:
                self.log(node, self.message_key, self._depth, self.max)
            self._depth += 1

    def leave(self, node):
        if self._counts(node):
            self._depth -= 1

    def _counts(self, node: DetailNode) -> bool:
        return True


@register_module
class NestedForDepthCheck(_NestingDepthCheck):
    """Limit nesting of ``for`` loops."""

    token = TokenType.LITERAL_FOR
    message_key = "nested.for.depth"


@register_module
class NestedIfDepthCheck(_NestingDepthCheck):
    """Limit nesting of ``if``-``else`` statements."""

    token = TokenType.LITERAL_IF
    message_key = "nested.if.depth"

    def _counts(self, node: DetailNode) -> bool:
        return not is_else_if(node)


def is_else_if(node: DetailNode) -> bool:
    """True for the ``if`` of an ``else if``."""
    previous = node.previous_sibling
    return (node.parent is not None and node.parent.type is TokenType.LITERAL_IF
            and previous is not None and previous.type is TokenType.LITERAL_ELSE)
