"""
Token kinds of the jcheck syntax tree.

Every node of a converted tree carries one member of ``TokenType`` (Java
source) or ``JavadocTokenType`` (javadoc sub-trees). Both enumerations are
closed: checks subscribe to members of these enums and the dispatcher builds
its lookup tables from them once per run.
"""

from enum import Enum, auto
from typing import Iterable, Set, Union


class TokenType(Enum):
    """Node kinds of a Java syntax tree."""

    # Structure
    COMPILATION_UNIT = auto()
    PACKAGE_DEF = auto()
    IMPORT = auto()
    STATIC_IMPORT = auto()
    CLASS_DEF = auto()
    INTERFACE_DEF = auto()
    ENUM_DEF = auto()
    RECORD_DEF = auto()
    ANNOTATION_DEF = auto()
    OBJBLOCK = auto()
    ENUM_CONSTANT_DEF = auto()
    METHOD_DEF = auto()
    CTOR_DEF = auto()
    COMPACT_CTOR_DEF = auto()
    RECORD_COMPONENTS = auto()
    RECORD_COMPONENT_DEF = auto()
    ANNOTATION_FIELD_DEF = auto()
    STATIC_INIT = auto()
    INSTANCE_INIT = auto()
    VARIABLE_DEF = auto()
    PARAMETERS = auto()
    PARAMETER_DEF = auto()
    MODIFIERS = auto()
    TYPE = auto()
    TYPE_ARGUMENTS = auto()
    TYPE_ARGUMENT = auto()
    TYPE_PARAMETERS = auto()
    TYPE_PARAMETER = auto()
    WILDCARD_TYPE = auto()
    ARRAY_DECLARATOR = auto()
    EXTENDS_CLAUSE = auto()
    IMPLEMENTS_CLAUSE = auto()
    PERMITS_CLAUSE = auto()
    LITERAL_THROWS = auto()
    ANNOTATION = auto()
    ANNOTATION_MEMBER_VALUE_PAIR = auto()
    ANNOTATION_ARRAY_INIT = auto()
    SLIST = auto()
    EXPR = auto()
    ELIST = auto()
    METHOD_CALL = auto()
    METHOD_REF = auto()
    LAMBDA = auto()
    LITERAL_NEW = auto()
    ARRAY_INIT = auto()
    INDEX_OP = auto()
    TYPECAST = auto()
    QUESTION = auto()
    DOT = auto()
    IDENT = auto()

    # Statements
    LITERAL_IF = auto()
    LITERAL_ELSE = auto()
    LITERAL_FOR = auto()
    FOR_EACH_CLAUSE = auto()
    LITERAL_WHILE = auto()
    LITERAL_DO = auto()
    LITERAL_RETURN = auto()
    LITERAL_THROW = auto()
    LITERAL_TRY = auto()
    RESOURCE_SPECIFICATION = auto()
    RESOURCE = auto()
    LITERAL_CATCH = auto()
    LITERAL_FINALLY = auto()
    LITERAL_SWITCH = auto()
    CASE_GROUP = auto()
    SWITCH_RULE = auto()
    LITERAL_CASE = auto()
    LITERAL_DEFAULT = auto()
    LITERAL_BREAK = auto()
    LITERAL_CONTINUE = auto()
    LITERAL_YIELD = auto()
    LITERAL_ASSERT = auto()
    LABELED_STAT = auto()
    EMPTY_STAT = auto()

    # Operators
    ASSIGN = auto()
    PLUS_ASSIGN = auto()
    MINUS_ASSIGN = auto()
    STAR_ASSIGN = auto()
    DIV_ASSIGN = auto()
    MOD_ASSIGN = auto()
    BAND_ASSIGN = auto()
    BOR_ASSIGN = auto()
    BXOR_ASSIGN = auto()
    SL_ASSIGN = auto()
    SR_ASSIGN = auto()
    BSR_ASSIGN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    DIV = auto()
    MOD = auto()
    LOR = auto()
    LAND = auto()
    BOR = auto()
    BXOR = auto()
    BAND = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    SL = auto()
    SR = auto()
    BSR = auto()
    LITERAL_INSTANCEOF = auto()
    UNARY_MINUS = auto()
    UNARY_PLUS = auto()
    INC = auto()
    DEC = auto()
    POST_INC = auto()
    POST_DEC = auto()
    BNOT = auto()
    LNOT = auto()

    # Literals
    NUM_INT = auto()
    NUM_LONG = auto()
    NUM_FLOAT = auto()
    NUM_DOUBLE = auto()
    STRING_LITERAL = auto()
    TEXT_BLOCK_LITERAL = auto()
    CHAR_LITERAL = auto()
    LITERAL_TRUE = auto()
    LITERAL_FALSE = auto()
    LITERAL_NULL = auto()
    LITERAL_THIS = auto()
    LITERAL_SUPER = auto()

    # Primitive types
    LITERAL_VOID = auto()
    LITERAL_BOOLEAN = auto()
    LITERAL_BYTE = auto()
    LITERAL_CHAR = auto()
    LITERAL_SHORT = auto()
    LITERAL_INT = auto()
    LITERAL_LONG = auto()
    LITERAL_FLOAT = auto()
    LITERAL_DOUBLE = auto()

    # Modifiers and declaration keywords
    LITERAL_PUBLIC = auto()
    LITERAL_PRIVATE = auto()
    LITERAL_PROTECTED = auto()
    LITERAL_STATIC = auto()
    FINAL = auto()
    ABSTRACT = auto()
    LITERAL_TRANSIENT = auto()
    LITERAL_VOLATILE = auto()
    LITERAL_NATIVE = auto()
    LITERAL_SYNCHRONIZED = auto()
    STRICTFP = auto()
    LITERAL_CLASS = auto()
    LITERAL_INTERFACE = auto()
    ENUM = auto()
    LITERAL_RECORD = auto()
    AT = auto()

    # Separators
    LCURLY = auto()
    RCURLY = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACK = auto()
    RBRACK = auto()
    SEMI = auto()
    COMMA = auto()
    COLON = auto()
    ELLIPSIS = auto()

    # Comments
    SINGLE_LINE_COMMENT = auto()
    BLOCK_COMMENT_BEGIN = auto()
    BLOCK_COMMENT_END = auto()
    COMMENT_CONTENT = auto()


class JavadocTokenType(Enum):
    """Node kinds of a javadoc comment tree."""

    JAVADOC = auto()
    TEXT = auto()
    NEWLINE = auto()
    LEADING_ASTERISK = auto()
    WS = auto()
    DESCRIPTION = auto()
    JAVADOC_TAG = auto()
    JAVADOC_INLINE_TAG = auto()
    JAVADOC_INLINE_TAG_START = auto()
    JAVADOC_INLINE_TAG_END = auto()
    PARAM_LITERAL = auto()
    RETURN_LITERAL = auto()
    THROWS_LITERAL = auto()
    EXCEPTION_LITERAL = auto()
    SEE_LITERAL = auto()
    SINCE_LITERAL = auto()
    AUTHOR_LITERAL = auto()
    VERSION_LITERAL = auto()
    DEPRECATED_LITERAL = auto()
    SERIAL_LITERAL = auto()
    CUSTOM_NAME = auto()
    CODE_LITERAL = auto()
    LINK_LITERAL = auto()
    LINKPLAIN_LITERAL = auto()
    LITERAL_LITERAL = auto()
    VALUE_LITERAL = auto()
    INHERIT_DOC_LITERAL = auto()
    PARAMETER_NAME = auto()
    REFERENCE = auto()
    EOF = auto()


NodeType = Union[TokenType, JavadocTokenType]


def token_by_name(name: str) -> TokenType:
    """
    Look up a Java token kind by its name.

    Raises:
        ValueError: if ``name`` is not a token kind
    """
    try:
        return TokenType[name.strip()]
    except KeyError:
        raise ValueError(f"Unknown TokenType name: {name.strip()}") from None


def parse_token_names(value: str) -> Set[TokenType]:
    """Parse a comma-separated list of token names."""
    return {token_by_name(part) for part in value.split(",") if part.strip()}


def names_of(tokens: Iterable[NodeType]) -> str:
    return ", ".join(sorted(token.name for token in tokens))
