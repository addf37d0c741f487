"""Check: MagicNumber

Detects numeric literals that are not defined as constants.

A number is not magic when it is in ``ignoreNumbers``, when it is part of a
constant definition (a ``static final`` field, an interface field or an enum
constant argument) or when one of the ignore options applies.

Examples:
- private static final int TIMEOUT = 30;   # GOOD: constant definition
- int retries = 3;                         # BAD: 3 is a magic number
- return i + 1;                            # GOOD: 1 is ignored by default
"""

import bisect
from typing import List, Optional

from jcheck.api import AbstractCheck, to_bool, to_str_list
from jcheck.registry import register_module
from jcheck.tokens import TokenType
from jcheck.tree import DetailNode, find_enclosing

DEFAULT_IGNORE_NUMBERS = [-1.0, 0.0, 1.0, 2.0]

# Nodes allowed between a number and the constant definition it belongs to
_CONSTANT_PATH_TOKENS = {
    TokenType.ASSIGN, TokenType.ARRAY_INIT, TokenType.EXPR, TokenType.UNARY_PLUS,
    TokenType.UNARY_MINUS, TokenType.TYPECAST, TokenType.ELIST, TokenType.LITERAL_NEW,
    TokenType.METHOD_CALL, TokenType.STAR, TokenType.DIV, TokenType.PLUS, TokenType.MINUS,
    TokenType.QUESTION, TokenType.EQUAL, TokenType.NOT_EQUAL, TokenType.MOD, TokenType.SR,
    TokenType.BSR, TokenType.GE, TokenType.GT, TokenType.SL, TokenType.LE, TokenType.LT,
    TokenType.BXOR, TokenType.BOR, TokenType.BNOT, TokenType.BAND, TokenType.DOT,
}

_NUMBER_TOKENS = [TokenType.NUM_DOUBLE, TokenType.NUM_FLOAT, TokenType.NUM_INT, TokenType.NUM_LONG]


def parse_number(text: str, token: TokenType) -> float:
    """
    Value of a Java numeric literal.

    Handles underscores, ``L``/``F``/``D`` suffixes and hexadecimal, octal and
    binary integer forms. ``int`` and ``long`` literals written in hex, octal or
    binary wrap around like they do in Java.
    """
    literal = text.replace("_", "")
    if token in (TokenType.NUM_INT, TokenType.NUM_LONG):
        if literal[-1] in "lL":
            literal = literal[:-1]
        lowered = literal.lower()
        if lowered.startswith("0x"):
            value = int(lowered[2:], 16)
        elif lowered.startswith("0b"):
            value = int(lowered[2:], 2)
        elif len(lowered) > 1 and lowered.startswith("0"):
            value = int(lowered[1:], 8)
        else:
            return float(int(lowered))
        bits = 64 if token is TokenType.NUM_LONG else 32
        if value >= 1 << (bits - 1):
            value -= 1 << bits
        return float(value)
    if literal[-1] in "fFdD" and not literal.lower().startswith("0x"):
        literal = literal[:-1]
    if literal.lower().startswith("0x"):
        if literal[-1] in "fFdD":
            literal = literal[:-1]
        return float.fromhex(literal)
    return float(literal)


@register_module
class MagicNumberCheck(AbstractCheck):
    """Report numeric literals that should be named constants."""

    def __init__(self):
        super().__init__()
        self.ignore_numbers: List[float] = list(DEFAULT_IGNORE_NUMBERS)
        self.ignore_hash_code_method = False
        self.ignore_annotation = False
        self.ignore_field_declaration = False
        self.ignore_annotation_element_defaults = True

    def set_ignore_numbers(self, value: str) -> None:
        self.ignore_numbers = sorted(float(number) for number in to_str_list(value))

    def set_ignore_hash_code_method(self, value: str) -> None:
        self.ignore_hash_code_method = to_bool(value)

    def set_ignore_annotation(self, value: str) -> None:
        self.ignore_annotation = to_bool(value)

    def set_ignore_field_declaration(self, value: str) -> None:
        self.ignore_field_declaration = to_bool(value)

    def set_ignore_annotation_element_defaults(self, value: str) -> None:
        self.ignore_annotation_element_defaults = to_bool(value)

    def acceptable_tokens(self):
        return list(_NUMBER_TOKENS)

    def visit(self, node):
        if self.ignore_annotation and find_enclosing(node, TokenType.ANNOTATION) is not None:
            return
        if (self.ignore_annotation_element_defaults
                and find_enclosing(node, TokenType.ANNOTATION_FIELD_DEF) is not None):
            return
        if self._is_in_ignore_list(node):
            return
        if self.ignore_hash_code_method and self._is_in_hash_code_method(node):
            return

        constant = self._containing_constant_def(node)
        if constant is None:
            if not (self.ignore_field_declaration and self._is_field_declaration(node)):
                self._report(node)
        elif self._breaks_constant_path(node, constant):
            self._report(node)

    def _report(self, node: DetailNode) -> None:
        parent = node.parent
        if parent is not None and parent.type is TokenType.UNARY_MINUS:
            self.log(parent, "magic.number", "-" + node.text)
        else:
            self.log(node, "magic.number", node.text)

    def _is_in_ignore_list(self, node: DetailNode) -> bool:
        value = parse_number(node.text, node.type)
        if node.parent is not None and node.parent.type is TokenType.UNARY_MINUS:
            value = -value
        index = bisect.bisect_left(self.ignore_numbers, value)
        return index < len(self.ignore_numbers) and self.ignore_numbers[index] == value

    @staticmethod
    def _is_in_hash_code_method(node: DetailNode) -> bool:
        method = find_enclosing(node, TokenType.METHOD_DEF)
        if method is None:
            return False
        name = method.find_first_token(TokenType.IDENT)
        parameters = method.find_first_token(TokenType.PARAMETERS)
        return (name is not None and name.text == "hashCode"
                and (parameters is None
                     or parameters.find_first_token(TokenType.PARAMETER_DEF) is None))

    @staticmethod
    def _containing_constant_def(node: DetailNode) -> Optional[DetailNode]:
        definition = find_enclosing(node, TokenType.VARIABLE_DEF, TokenType.ENUM_CONSTANT_DEF)
        if definition is None:
            return None
        if definition.type is TokenType.ENUM_CONSTANT_DEF or is_constant_definition(definition):
            return definition
        return None

    @staticmethod
    def _breaks_constant_path(node: DetailNode, constant: DetailNode) -> bool:
        """True when a node between ``node`` and ``constant`` is not plain arithmetic."""
        for ancestor in node.ancestors():
            if ancestor is constant:
                return False
            if ancestor.type not in _CONSTANT_PATH_TOKENS:
                return True
        return False

    @staticmethod
    def _is_field_declaration(node: DetailNode) -> bool:
        variable = find_enclosing(node, TokenType.VARIABLE_DEF)
        if variable is None or variable.parent is None or variable.parent.parent is None:
            return False
        return (variable.parent.type is TokenType.OBJBLOCK
                and variable.parent.parent.type in (TokenType.CLASS_DEF, TokenType.RECORD_DEF))


def is_constant_definition(variable: DetailNode) -> bool:
    """``static final`` fields, and every field of an interface or annotation."""
    block = variable.parent
    if block is None or block.type is not TokenType.OBJBLOCK:
        return False
    owner = block.parent
    if owner is not None and owner.type in (TokenType.INTERFACE_DEF, TokenType.ANNOTATION_DEF):
        return True
    modifiers = variable.find_first_token(TokenType.MODIFIERS)
    return (modifiers is not None
            and modifiers.find_first_token(TokenType.LITERAL_STATIC) is not None
            and modifiers.find_first_token(TokenType.FINAL) is not None)
