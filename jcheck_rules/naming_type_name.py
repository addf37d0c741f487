"""Check: TypeName

Checks that class, interface, enum, annotation and record names match a
pattern. The violation is reported at the name itself.

Examples (default format ``^[A-Z][a-zA-Z0-9]*$``):
- class OrderService {}     # GOOD
- class order_service {}    # BAD: lowercase and underscore
- interface _Handler {}     # BAD: leading underscore
"""

from jcheck.api import AbstractCheck, to_bool, to_pattern
from jcheck.registry import register_module
from jcheck.tokens import TokenType
from jcheck.tree import DetailNode

DEFAULT_FORMAT = "^[A-Z][a-zA-Z0-9]*$"

_TYPE_DEFINITIONS = [
    TokenType.CLASS_DEF,
    TokenType.INTERFACE_DEF,
    TokenType.ENUM_DEF,
    TokenType.ANNOTATION_DEF,
    TokenType.RECORD_DEF,
]


@register_module
class TypeNameCheck(AbstractCheck):
    """Validate type names against ``format``."""

    def __init__(self):
        super().__init__()
        self.format = to_pattern(DEFAULT_FORMAT)
        self.apply_to_public = True
        self.apply_to_protected = True
        self.apply_to_package = True
        self.apply_to_private = True

    def set_format(self, value: str) -> None:
        self.format = to_pattern(value)

    def set_apply_to_public(self, value: str) -> None:
        self.apply_to_public = to_bool(value)

    def set_apply_to_protected(self, value: str) -> None:
        self.apply_to_protected = to_bool(value)

    def set_apply_to_package(self, value: str) -> None:
        self.apply_to_package = to_bool(value)

    def set_apply_to_private(self, value: str) -> None:
        self.apply_to_private = to_bool(value)

    def acceptable_tokens(self):
        return list(_TYPE_DEFINITIONS)

    def visit(self, node):
        if not self._must_check_name(node):
            return
        name = node.find_first_token(TokenType.IDENT)
        if name is not None and not self.format.search(name.text):
            self.log(name, "name.invalidPattern", name.text, self.format.pattern)

    def _must_check_name(self, node: DetailNode) -> bool:
        access = self._access_of(node)
        return {
            "public": self.apply_to_public,
            "protected": self.apply_to_protected,
            "private": self.apply_to_private,
        }.get(access, self.apply_to_package)

    @staticmethod
    def _access_of(node: DetailNode) -> str:
        """Declared access level; members of interfaces are implicitly public."""
        modifiers = node.find_first_token(TokenType.MODIFIERS)
        if modifiers is not None:
            for keyword, access in ((TokenType.LITERAL_PUBLIC, "public"),
                                    (TokenType.LITERAL_PROTECTED, "protected"),
                                    (TokenType.LITERAL_PRIVATE, "private")):
                if modifiers.find_first_token(keyword) is not None:
                    return access
        block = node.parent
        owner = block.parent if block is not None and block.type is TokenType.OBJBLOCK else None
        if owner is not None and owner.type in (TokenType.INTERFACE_DEF, TokenType.ANNOTATION_DEF):
            return "public"
        return "package"
