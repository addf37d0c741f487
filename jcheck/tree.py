"""
Syntax tree model.

``DetailNode`` is the node type handed to checks, printers and the xpath
evaluator. Trees are assembled by the Java adapter and the javadoc parser;
once assembled their shape is fixed and checks only read them.
"""

from typing import Iterator, List, Optional, Tuple

from .tokens import NodeType, TokenType


class DetailNode:
    """A node of a converted syntax tree.

    Attributes:
        type: token kind of the node
        text: source text for leaves, keyword or operator text for composites
        line: 1-based line (0-based inside javadoc trees)
        column: 0-based character column, tabs count as one character
        end_line: line of the last character covered by the node
        parent: enclosing node, ``None`` for the root
    """

    __slots__ = ("type", "text", "line", "column", "end_line", "end_column",
                 "parent", "_children", "_index")

    def __init__(self, type: NodeType, text: str, line: int, column: int,
                 end_line: Optional[int] = None, end_column: Optional[int] = None):
        self.type = type
        self.text = text
        self.line = line
        self.column = column
        self.end_line = line if end_line is None else end_line
        self.end_column = column if end_column is None else end_column
        self.parent: Optional["DetailNode"] = None
        self._children: List["DetailNode"] = []
        self._index = 0

    def add_child(self, child: "DetailNode") -> "DetailNode":
        """Attach ``child`` as the last child. Used only while building trees."""
        child.parent = self
        child._index = len(self._children)
        self._children.append(child)
        return child

    @property
    def children(self) -> Tuple["DetailNode", ...]:
        return tuple(self._children)

    @property
    def child_count(self) -> int:
        return len(self._children)

    @property
    def first_child(self) -> Optional["DetailNode"]:
        return self._children[0] if self._children else None

    @property
    def last_child(self) -> Optional["DetailNode"]:
        return self._children[-1] if self._children else None

    @property
    def next_sibling(self) -> Optional["DetailNode"]:
        if self.parent is None:
            return None
        siblings = self.parent._children
        index = self._index + 1
        return siblings[index] if index < len(siblings) else None

    @property
    def previous_sibling(self) -> Optional["DetailNode"]:
        if self.parent is None or self._index == 0:
            return None
        return self.parent._children[self._index - 1]

    def find_first_token(self, token: NodeType) -> Optional["DetailNode"]:
        """Return the first direct child of kind ``token``."""
        for child in self._children:
            if child.type is token:
                return child
        return None

    def get_child_count(self, token: NodeType) -> int:
        return sum(1 for child in self._children if child.type is token)

    def ancestors(self) -> Iterator["DetailNode"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def __repr__(self) -> str:
        return f"{self.type.name}[{self.line}x{self.column}]({self.text!r})"


def iter_preorder(root: DetailNode) -> Iterator[DetailNode]:
    """Yield ``root`` and its descendants in depth-first, left-to-right order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node._children))


def full_ident(node: Optional[DetailNode]) -> str:
    """
    Join a (possibly dotted) name node into its source form.

    ``DOT`` nodes are joined with ``.``; any other node contributes its text.
    """
    if node is None:
        return ""
    if node.type is TokenType.DOT:
        return ".".join(full_ident(child) for child in node.children
                        if child.type is not TokenType.ANNOTATION)
    return node.text


def find_enclosing(node: DetailNode, *tokens: NodeType) -> Optional[DetailNode]:
    """Return the nearest ancestor whose kind is one of ``tokens``."""
    for ancestor in node.ancestors():
        if ancestor.type in tokens:
            return ancestor
    return None


def import_name(node: DetailNode) -> str:
    """Imported name of an ``IMPORT`` or ``STATIC_IMPORT`` node, e.g. ``java.util.*``."""
    name = ""
    for child in node.children:
        if child.type in (TokenType.DOT, TokenType.IDENT):
            name = full_ident(child)
        elif child.type is TokenType.STAR:
            name += ".*"
    return name
