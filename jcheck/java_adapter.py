"""
Tree-sitter adapter for Java.

Parses Java source with ``tree-sitter-java`` and converts the concrete syntax
tree into a ``DetailNode`` tree. Conversion rules:

- named nodes map onto ``TokenType`` members; nodes without a mapping are
  transparent and their children are spliced into the parent
- anonymous tokens keep only keywords, modifiers and separators; the keyword
  or operator that names a composite node becomes that node's text
- declarations with several declarators become one ``VARIABLE_DEF`` each
- the ``type`` field of declarations and casts is wrapped into ``TYPE``
"""

import logging
from typing import Iterator, List, Optional, Tuple

import tree_sitter
import tree_sitter_java

from .errors import JavaSyntaxError
from .javadoc import parse_javadoc
from .tokens import TokenType as T
from .tree import DetailNode

logger = logging.getLogger(__name__)

_COMPOSITES = {
    "program": T.COMPILATION_UNIT,
    "package_declaration": T.PACKAGE_DEF,
    "class_declaration": T.CLASS_DEF,
    "interface_declaration": T.INTERFACE_DEF,
    "enum_declaration": T.ENUM_DEF,
    "record_declaration": T.RECORD_DEF,
    "annotation_type_declaration": T.ANNOTATION_DEF,
    "class_body": T.OBJBLOCK,
    "interface_body": T.OBJBLOCK,
    "enum_body": T.OBJBLOCK,
    "annotation_type_body": T.OBJBLOCK,
    "enum_constant": T.ENUM_CONSTANT_DEF,
    "method_declaration": T.METHOD_DEF,
    "constructor_declaration": T.CTOR_DEF,
    "compact_constructor_declaration": T.COMPACT_CTOR_DEF,
    "annotation_type_element_declaration": T.ANNOTATION_FIELD_DEF,
    "static_initializer": T.STATIC_INIT,
    "field_declaration": T.VARIABLE_DEF,
    "local_variable_declaration": T.VARIABLE_DEF,
    "constant_declaration": T.VARIABLE_DEF,
    "formal_parameters": T.PARAMETERS,
    "inferred_parameters": T.PARAMETERS,
    "formal_parameter": T.PARAMETER_DEF,
    "spread_parameter": T.PARAMETER_DEF,
    "receiver_parameter": T.PARAMETER_DEF,
    "catch_formal_parameter": T.PARAMETER_DEF,
    "modifiers": T.MODIFIERS,
    "type_arguments": T.TYPE_ARGUMENTS,
    "type_parameters": T.TYPE_PARAMETERS,
    "type_parameter": T.TYPE_PARAMETER,
    "wildcard": T.WILDCARD_TYPE,
    "dimensions": T.ARRAY_DECLARATOR,
    "dimensions_expr": T.ARRAY_DECLARATOR,
    "superclass": T.EXTENDS_CLAUSE,
    "extends_interfaces": T.EXTENDS_CLAUSE,
    "super_interfaces": T.IMPLEMENTS_CLAUSE,
    "permits": T.PERMITS_CLAUSE,
    "throws": T.LITERAL_THROWS,
    "marker_annotation": T.ANNOTATION,
    "annotation": T.ANNOTATION,
    "element_value_pair": T.ANNOTATION_MEMBER_VALUE_PAIR,
    "element_value_array_initializer": T.ANNOTATION_ARRAY_INIT,
    "block": T.SLIST,
    "constructor_body": T.SLIST,
    "switch_block_statement_group": T.CASE_GROUP,
    "switch_rule": T.SWITCH_RULE,
    "expression_statement": T.EXPR,
    "argument_list": T.ELIST,
    "method_invocation": T.METHOD_CALL,
    "explicit_constructor_invocation": T.METHOD_CALL,
    "method_reference": T.METHOD_REF,
    "lambda_expression": T.LAMBDA,
    "object_creation_expression": T.LITERAL_NEW,
    "array_creation_expression": T.LITERAL_NEW,
    "array_initializer": T.ARRAY_INIT,
    "array_access": T.INDEX_OP,
    "cast_expression": T.TYPECAST,
    "ternary_expression": T.QUESTION,
    "instanceof_expression": T.LITERAL_INSTANCEOF,
    "field_access": T.DOT,
    "scoped_identifier": T.DOT,
    "scoped_type_identifier": T.DOT,
    "class_literal": T.DOT,
    "if_statement": T.LITERAL_IF,
    "for_statement": T.LITERAL_FOR,
    "enhanced_for_statement": T.LITERAL_FOR,
    "while_statement": T.LITERAL_WHILE,
    "do_statement": T.LITERAL_DO,
    "return_statement": T.LITERAL_RETURN,
    "throw_statement": T.LITERAL_THROW,
    "try_statement": T.LITERAL_TRY,
    "try_with_resources_statement": T.LITERAL_TRY,
    "resource_specification": T.RESOURCE_SPECIFICATION,
    "resource": T.RESOURCE,
    "catch_clause": T.LITERAL_CATCH,
    "finally_clause": T.LITERAL_FINALLY,
    "switch_expression": T.LITERAL_SWITCH,
    "switch_statement": T.LITERAL_SWITCH,
    "break_statement": T.LITERAL_BREAK,
    "continue_statement": T.LITERAL_CONTINUE,
    "yield_statement": T.LITERAL_YIELD,
    "assert_statement": T.LITERAL_ASSERT,
    "labeled_statement": T.LABELED_STAT,
    "synchronized_statement": T.LITERAL_SYNCHRONIZED,
}

# Text of composite nodes; the anonymous child carrying this text is dropped
_HEAD_TEXT = {
    T.PACKAGE_DEF: "package",
    T.IMPORT: "import",
    T.STATIC_IMPORT: "import",
    T.LITERAL_IF: "if",
    T.LITERAL_FOR: "for",
    T.LITERAL_WHILE: "while",
    T.LITERAL_DO: "do",
    T.LITERAL_RETURN: "return",
    T.LITERAL_THROW: "throw",
    T.LITERAL_TRY: "try",
    T.LITERAL_CATCH: "catch",
    T.LITERAL_FINALLY: "finally",
    T.LITERAL_SWITCH: "switch",
    T.LITERAL_CASE: "case",
    T.LITERAL_DEFAULT: "default",
    T.LITERAL_BREAK: "break",
    T.LITERAL_CONTINUE: "continue",
    T.LITERAL_YIELD: "yield",
    T.LITERAL_ASSERT: "assert",
    T.LITERAL_SYNCHRONIZED: "synchronized",
    T.LITERAL_NEW: "new",
    T.LITERAL_THROWS: "throws",
    T.LITERAL_INSTANCEOF: "instanceof",
    T.EXTENDS_CLAUSE: "extends",
    T.IMPLEMENTS_CLAUSE: "implements",
    T.PERMITS_CLAUSE: "permits",
    T.STATIC_INIT: "static",
    T.DOT: ".",
    T.METHOD_REF: "::",
    T.LAMBDA: "->",
    T.QUESTION: "?",
    T.INDEX_OP: "[",
    T.TYPECAST: "(",
    T.SLIST: "{",
    T.ARRAY_INIT: "{",
    T.ANNOTATION_ARRAY_INIT: "{",
    T.ARRAY_DECLARATOR: "[",
    T.ANNOTATION_MEMBER_VALUE_PAIR: "=",
}

_LEAVES = {
    "identifier": T.IDENT,
    "type_identifier": T.IDENT,
    "asterisk": T.STAR,
    "string_literal": T.STRING_LITERAL,
    "text_block": T.TEXT_BLOCK_LITERAL,
    "character_literal": T.CHAR_LITERAL,
    "true": T.LITERAL_TRUE,
    "false": T.LITERAL_FALSE,
    "null_literal": T.LITERAL_NULL,
    "this": T.LITERAL_THIS,
    "super": T.LITERAL_SUPER,
}

_INTEGER_LITERALS = {"decimal_integer_literal", "hex_integer_literal",
                     "octal_integer_literal", "binary_integer_literal"}
_FLOAT_LITERALS = {"decimal_floating_point_literal", "hex_floating_point_literal"}
_PRIMITIVE_TYPES = {"integral_type", "floating_point_type", "boolean_type", "void_type"}

_KEYWORDS = {
    "void": T.LITERAL_VOID,
    "boolean": T.LITERAL_BOOLEAN,
    "byte": T.LITERAL_BYTE,
    "char": T.LITERAL_CHAR,
    "short": T.LITERAL_SHORT,
    "int": T.LITERAL_INT,
    "long": T.LITERAL_LONG,
    "float": T.LITERAL_FLOAT,
    "double": T.LITERAL_DOUBLE,
}

_ANONYMOUS = {
    "{": T.LCURLY,
    "}": T.RCURLY,
    "(": T.LPAREN,
    ")": T.RPAREN,
    "[": T.LBRACK,
    "]": T.RBRACK,
    ";": T.SEMI,
    ",": T.COMMA,
    ":": T.COLON,
    "...": T.ELLIPSIS,
    "@": T.AT,
    "=": T.ASSIGN,
    "public": T.LITERAL_PUBLIC,
    "private": T.LITERAL_PRIVATE,
    "protected": T.LITERAL_PROTECTED,
    "static": T.LITERAL_STATIC,
    "final": T.FINAL,
    "abstract": T.ABSTRACT,
    "transient": T.LITERAL_TRANSIENT,
    "volatile": T.LITERAL_VOLATILE,
    "native": T.LITERAL_NATIVE,
    "synchronized": T.LITERAL_SYNCHRONIZED,
    "strictfp": T.STRICTFP,
    "default": T.LITERAL_DEFAULT,
    "class": T.LITERAL_CLASS,
    "interface": T.LITERAL_INTERFACE,
    "@interface": T.LITERAL_INTERFACE,
    "enum": T.ENUM,
    "record": T.LITERAL_RECORD,
    "else": T.LITERAL_ELSE,
}

_BINARY_OPERATORS = {
    "+": T.PLUS, "-": T.MINUS, "*": T.STAR, "/": T.DIV, "%": T.MOD,
    "||": T.LOR, "&&": T.LAND, "|": T.BOR, "^": T.BXOR, "&": T.BAND,
    "==": T.EQUAL, "!=": T.NOT_EQUAL, "<": T.LT, ">": T.GT, "<=": T.LE, ">=": T.GE,
    "<<": T.SL, ">>": T.SR, ">>>": T.BSR,
}

_ASSIGN_OPERATORS = {
    "=": T.ASSIGN, "+=": T.PLUS_ASSIGN, "-=": T.MINUS_ASSIGN, "*=": T.STAR_ASSIGN,
    "/=": T.DIV_ASSIGN, "%=": T.MOD_ASSIGN, "&=": T.BAND_ASSIGN, "|=": T.BOR_ASSIGN,
    "^=": T.BXOR_ASSIGN, "<<=": T.SL_ASSIGN, ">>=": T.SR_ASSIGN, ">>>=": T.BSR_ASSIGN,
}

_UNARY_OPERATORS = {"-": T.UNARY_MINUS, "+": T.UNARY_PLUS, "!": T.LNOT, "~": T.BNOT}

_TYPE_FIELD_OWNERS = {
    "field_declaration", "local_variable_declaration", "constant_declaration",
    "formal_parameter", "method_declaration", "annotation_type_element_declaration",
    "cast_expression",
}

_VARIABLE_DECLARATIONS = {"field_declaration", "local_variable_declaration", "constant_declaration"}


class JavaAdapter:
    """Parses Java source into ``DetailNode`` trees."""

    def __init__(self):
        self._parser = None

    @property
    def language_id(self) -> str:
        return "java"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        return (".java",)

    def _get_parser(self) -> tree_sitter.Parser:
        """Get or create the tree-sitter parser."""
        if self._parser is None:
            language = tree_sitter.Language(tree_sitter_java.language())
            self._parser = tree_sitter.Parser()
            self._parser.language = language
            logger.debug("%s parser initialized", self.language_id)
        return self._parser

    def parse(self, text: str, include_comments: bool = False,
              include_javadoc: bool = False) -> DetailNode:
        """
        Parse Java source text.

        Args:
            text: full source of a compilation unit
            include_comments: keep comment nodes in the tree
            include_javadoc: attach parsed javadoc trees below ``/** */`` comments,
                implies ``include_comments``

        Returns:
            The ``COMPILATION_UNIT`` root node

        Raises:
            JavaSyntaxError: if the source is not well formed
        """
        source = text.encode("utf-8")
        tree = self._get_parser().parse(source)
        builder = _TreeBuilder(source, include_comments or include_javadoc, include_javadoc)
        if tree.root_node.has_error:
            raise builder.syntax_error(tree.root_node)
        return builder.build(tree.root_node)


class _TreeBuilder:
    """Converts one tree-sitter tree. Holds the source for position mapping."""

    def __init__(self, source: bytes, include_comments: bool, include_javadoc: bool):
        self.source = source
        self.include_comments = include_comments
        self.include_javadoc = include_javadoc
        self._lines: List[bytes] = source.split(b"\n")
        self._ascii = [line.isascii() for line in self._lines]

    # Positions

    def _char_column(self, row: int, byte_column: int) -> int:
        if byte_column == 0 or row >= len(self._lines) or self._ascii[row]:
            return byte_column
        return len(self._lines[row][:byte_column].decode("utf-8", errors="replace"))

    def _start(self, ts_node) -> Tuple[int, int]:
        row, column = ts_node.start_point
        return row + 1, self._char_column(row, column)

    def _end(self, ts_node) -> Tuple[int, int]:
        row, column = ts_node.end_point
        return row + 1, self._char_column(row, column)

    def _text(self, ts_node) -> str:
        return self.source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace")

    def _node(self, token: T, text: str, ts_node) -> DetailNode:
        line, column = self._start(ts_node)
        end_line, end_column = self._end(ts_node)
        return DetailNode(token, text, line, column, end_line, end_column)

    # Errors

    def syntax_error(self, root) -> JavaSyntaxError:
        """Describe the first ERROR or MISSING node of a broken tree."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.is_missing:
                line, column = self._start(node)
                return JavaSyntaxError(line, column, f"missing '{node.type}'")
            if node.type == "ERROR":
                line, column = self._start(node)
                snippet = self._text(node).splitlines()[0] if node.end_byte > node.start_byte else ""
                return JavaSyntaxError(line, column, f"unexpected input '{snippet.strip()}'")
            stack.extend(reversed(node.children))
        line, column = self._start(root)
        return JavaSyntaxError(line, column, "malformed source")

    # Conversion

    def build(self, ts_root) -> DetailNode:
        root = DetailNode(T.COMPILATION_UNIT, "COMPILATION_UNIT", 1, 0, len(self._lines), 0)
        self._children(ts_root, root, None)
        return root

    @staticmethod
    def _fields(ts_node) -> Iterator[Tuple[Optional[str], object]]:
        cursor = ts_node.walk()
        if not cursor.goto_first_child():
            return
        while True:
            yield cursor.field_name, cursor.node
            if not cursor.goto_next_sibling():
                break

    def _children(self, ts_node, target: DetailNode, head: Optional[str]) -> None:
        owner = ts_node.type
        for field, child in self._fields(ts_node):
            self._emit(child, field, owner, target, head)

    def _emit(self, ts_node, field: Optional[str], owner: str,
              target: DetailNode, head: Optional[str]) -> None:
        kind = ts_node.type
        if not ts_node.is_named:
            if kind == head:
                return
            token = _ANONYMOUS.get(kind)
            if token is not None:
                target.add_child(self._node(token, kind, ts_node))
            return

        if kind in ("line_comment", "block_comment"):
            if self.include_comments:
                target.add_child(self._comment(ts_node))
            return

        if field == "type" and owner in _TYPE_FIELD_OWNERS:
            wrapper = target.add_child(self._node(T.TYPE, "TYPE", ts_node))
            self._emit(ts_node, None, kind, wrapper, None)
            return

        leaf = self._leaf(ts_node)
        if leaf is not None:
            target.add_child(leaf)
            return

        if kind in _VARIABLE_DECLARATIONS:
            declarators = [child for name, child in self._fields(ts_node) if name == "declarator"]
            if len(declarators) > 1:
                self._variable_group(ts_node, declarators, target)
                return

        token, text = self._composite(ts_node)
        if token is None:
            self._children(ts_node, target, head)
            return
        node = target.add_child(self._node(token, text, ts_node))
        self._children(ts_node, node, text)

    def _leaf(self, ts_node) -> Optional[DetailNode]:
        kind = ts_node.type
        if kind in _LEAVES:
            return self._node(_LEAVES[kind], self._text(ts_node), ts_node)
        if kind in _INTEGER_LITERALS:
            text = self._text(ts_node)
            token = T.NUM_LONG if text[-1] in "lL" else T.NUM_INT
            return self._node(token, text, ts_node)
        if kind in _FLOAT_LITERALS:
            text = self._text(ts_node)
            token = T.NUM_FLOAT if text[-1] in "fF" else T.NUM_DOUBLE
            return self._node(token, text, ts_node)
        if kind in _PRIMITIVE_TYPES:
            text = self._text(ts_node).split()[-1]
            token = _KEYWORDS.get(text)
            if token is not None:
                return self._node(token, text, ts_node)
        return None

    def _composite(self, ts_node) -> Tuple[Optional[T], Optional[str]]:
        """Return the token kind and text of a composite node, or ``(None, None)``."""
        kind = ts_node.type
        if kind == "import_declaration":
            is_static = any(child.type == "static" for child in ts_node.children)
            return (T.STATIC_IMPORT if is_static else T.IMPORT), "import"
        if kind == "switch_label":
            first = ts_node.children[0].type if ts_node.child_count else "case"
            return (T.LITERAL_DEFAULT, "default") if first == "default" else (T.LITERAL_CASE, "case")
        if kind in ("binary_expression", "assignment_expression", "unary_expression"):
            operator = ts_node.child_by_field_name("operator")
            text = operator.type if operator is not None else ""
            table = {
                "binary_expression": _BINARY_OPERATORS,
                "assignment_expression": _ASSIGN_OPERATORS,
                "unary_expression": _UNARY_OPERATORS,
            }[kind]
            token = table.get(text)
            return (token, text) if token is not None else (None, None)
        if kind == "update_expression":
            first = ts_node.children[0]
            if first.type in ("++", "--"):
                return (T.INC if first.type == "++" else T.DEC), first.type
            last = ts_node.children[-1].type
            return (T.POST_INC if last == "++" else T.POST_DEC), last
        token = _COMPOSITES.get(kind)
        if token is None:
            return None, None
        return token, _HEAD_TEXT.get(token, token.name)

    def _variable_group(self, ts_node, declarators: list, target: DetailNode) -> None:
        """Emit one ``VARIABLE_DEF`` per declarator of ``int a, b;``."""
        first_start = declarators[0].start_byte
        shared = [(name, child) for name, child in self._fields(ts_node)
                  if child.start_byte < first_start and child.is_named]
        separators = [child for child in ts_node.children if child.type in (",", ";")]
        owner = ts_node.type
        for index, declarator in enumerate(declarators):
            variable = target.add_child(self._node(T.VARIABLE_DEF, "VARIABLE_DEF", ts_node))
            for name, child in shared:
                self._emit(child, name, owner, variable, "VARIABLE_DEF")
            self._children(declarator, variable, "VARIABLE_DEF")
            if index < len(separators):
                separator = separators[index]
                variable.add_child(self._node(_ANONYMOUS[separator.type], separator.type, separator))

    def _comment(self, ts_node) -> DetailNode:
        text = self._text(ts_node)
        line, column = self._start(ts_node)
        end_line, end_column = self._end(ts_node)
        if text.startswith("//"):
            comment = DetailNode(T.SINGLE_LINE_COMMENT, "//", line, column, end_line, end_column)
            comment.add_child(DetailNode(T.COMMENT_CONTENT, text[2:], line, column + 2,
                                         end_line, end_column))
            return comment
        comment = DetailNode(T.BLOCK_COMMENT_BEGIN, "/*", line, column, end_line, end_column)
        body = text[2:-2]
        content = comment.add_child(DetailNode(T.COMMENT_CONTENT, body, line, column + 2,
                                               end_line, max(end_column - 2, 0)))
        if self.include_javadoc and body.startswith("*") and body != "*":
            content.add_child(parse_javadoc(body[1:]))
        comment.add_child(DetailNode(T.BLOCK_COMMENT_END, "*/", end_line, max(end_column - 2, 0),
                                     end_line, end_column))
        return comment
