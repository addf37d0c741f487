"""
XPath subset over ``DetailNode`` trees.

Element names are token kind names (``CLASS_DEF``, ``IDENT``...). The only
attribute is ``@text``; it exists on identifiers and literals, for string
literals without the quotes. Supported syntax:

- absolute and relative location paths with ``/`` and ``//``
- ``.``, ``..``, ``*`` and ``@text``
- axes ``child``, ``descendant``, ``descendant-or-self``, ``self``, ``parent``,
  ``ancestor``, ``ancestor-or-self``, ``following-sibling``,
  ``preceding-sibling`` and ``attribute``
- predicates with positions, ``=``, ``!=``, ``and``, ``or``, parentheses
- unions with ``|``
- functions ``not``, ``contains``, ``starts-with``, ``count``, ``string``,
  ``string-length``, ``true`` and ``false``

A query is evaluated against a virtual document node whose only child is the
tree root, so ``/COMPILATION_UNIT`` selects the root.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from .errors import XpathError
from .tokens import TokenType
from .tree import DetailNode, iter_preorder

TEXT_ATTRIBUTE_TOKENS = frozenset({
    TokenType.IDENT,
    TokenType.NUM_INT,
    TokenType.NUM_LONG,
    TokenType.NUM_FLOAT,
    TokenType.NUM_DOUBLE,
    TokenType.STRING_LITERAL,
    TokenType.CHAR_LITERAL,
    TokenType.TEXT_BLOCK_LITERAL,
})

_TOKEN = re.compile(r"""
    \s*(?:
        (?P<string>'[^']*'|"[^"]*")
      | (?P<number>\d+(?:\.\d+)?)
      | (?P<op>//|::|\.\.|!=|[/\[\]()@|=,.*])
      | (?P<name>[A-Za-z_][\w-]*)
    )""", re.VERBOSE)

_AXES = {
    "child", "descendant", "descendant-or-self", "self", "parent", "ancestor",
    "ancestor-or-self", "following-sibling", "preceding-sibling", "attribute",
}

_FUNCTIONS = {
    "not": 1, "contains": 2, "starts-with": 2, "count": 1, "string": 1,
    "string-length": 1, "true": 0, "false": 0,
}


def text_attribute(node: DetailNode) -> Optional[str]:
    """Value of ``@text`` for ``node``, or ``None`` when it has none."""
    if node.type not in TEXT_ATTRIBUTE_TOKENS:
        return None
    if node.type is TokenType.STRING_LITERAL and len(node.text) >= 2:
        return node.text[1:-1]
    return node.text


# Expression tree

@dataclass
class _Step:
    axis: str
    test: str
    predicates: List[object] = field(default_factory=list)


@dataclass
class _Path:
    absolute: bool
    steps: List[_Step]


@dataclass
class _Union:
    paths: List[object]


@dataclass
class _Binary:
    op: str
    left: object
    right: object


@dataclass
class _Call:
    name: str
    args: List[object]


@dataclass
class _Literal:
    value: Union[str, float]


# Items

class _Document:
    """Virtual parent of the tree root."""

    def __init__(self, root: DetailNode):
        self.children = (root,)


@dataclass(frozen=True)
class _Attribute:
    owner: DetailNode
    name: str
    value: str


Item = Union[DetailNode, _Document, _Attribute]


class _Parser:
    """Recursive descent parser producing the expression tree."""

    def __init__(self, query: str):
        self.query = query
        self.tokens = self._tokenize(query)
        self.index = 0

    def _tokenize(self, query: str) -> List[tuple]:
        tokens = []
        position = 0
        while position < len(query):
            if query[position:].strip() == "":
                break
            match = _TOKEN.match(query, position)
            if match is None or match.end() == position:
                raise XpathError(query, position, f"unexpected character '{query[position:].lstrip()[:1]}'")
            kind = match.lastgroup
            tokens.append((kind, match.group(kind), match.start(kind)))
            position = match.end()
        return tokens

    # Token helpers

    def _peek(self, offset: int = 0) -> Optional[tuple]:
        index = self.index + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _at(self, kind: str, value: Optional[str] = None, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token[0] == kind and (value is None or token[1] == value)

    def _next(self) -> tuple:
        token = self._peek()
        if token is None:
            raise XpathError(self.query, len(self.query), "unexpected end of expression")
        self.index += 1
        return token

    def _expect(self, kind: str, value: str) -> None:
        token = self._next()
        if token[0] != kind or token[1] != value:
            raise XpathError(self.query, token[2], f"expected '{value}' but found '{token[1]}'")

    # Grammar

    def parse(self) -> object:
        if not self.tokens:
            raise XpathError(self.query, 0, "empty expression")
        expr = self._or()
        token = self._peek()
        if token is not None:
            raise XpathError(self.query, token[2], f"unexpected '{token[1]}'")
        return expr

    def _or(self) -> object:
        left = self._and()
        while self._at("name", "or"):
            self.index += 1
            left = _Binary("or", left, self._and())
        return left

    def _and(self) -> object:
        left = self._comparison()
        while self._at("name", "and"):
            self.index += 1
            left = _Binary("and", left, self._comparison())
        return left

    def _comparison(self) -> object:
        left = self._union()
        if self._at("op", "=") or self._at("op", "!="):
            op = self._next()[1]
            left = _Binary(op, left, self._union())
        return left

    def _union(self) -> object:
        paths = [self._primary()]
        while self._at("op", "|"):
            self.index += 1
            paths.append(self._primary())
        return paths[0] if len(paths) == 1 else _Union(paths)

    def _primary(self) -> object:
        token = self._peek()
        if token is None:
            raise XpathError(self.query, len(self.query), "unexpected end of expression")
        kind, value, position = token
        if kind == "string":
            self.index += 1
            return _Literal(value[1:-1])
        if kind == "number":
            self.index += 1
            return _Literal(float(value))
        if kind == "op" and value == "(":
            self.index += 1
            expr = self._or()
            self._expect("op", ")")
            return expr
        if kind == "name" and self._at("op", "(", offset=1) and value in _FUNCTIONS:
            return self._call()
        return self._path()

    def _call(self) -> _Call:
        name, position = self._next()[1:]
        self._expect("op", "(")
        args = []
        if not self._at("op", ")"):
            args.append(self._or())
            while self._at("op", ","):
                self.index += 1
                args.append(self._or())
        self._expect("op", ")")
        if len(args) != _FUNCTIONS[name]:
            raise XpathError(self.query, position,
                             f"{name}() takes {_FUNCTIONS[name]} argument(s), got {len(args)}")
        return _Call(name, args)

    def _path(self) -> _Path:
        steps: List[_Step] = []
        absolute = False
        if self._at("op", "/"):
            self.index += 1
            absolute = True
            if not self._starts_step():
                return _Path(True, [])
        elif self._at("op", "//"):
            self.index += 1
            absolute = True
            steps.append(_Step("descendant-or-self", "node()"))
        steps.append(self._step())
        while self._at("op", "/") or self._at("op", "//"):
            if self._next()[1] == "//":
                steps.append(_Step("descendant-or-self", "node()"))
            steps.append(self._step())
        return _Path(absolute, steps)

    def _starts_step(self) -> bool:
        token = self._peek()
        if token is None:
            return False
        kind, value, _ = token
        return kind == "name" or (kind == "op" and value in (".", "..", "*", "@"))

    def _step(self) -> _Step:
        kind, value, position = self._next()
        if kind == "op" and value == ".":
            return _Step("self", "node()", self._predicates())
        if kind == "op" and value == "..":
            return _Step("parent", "node()", self._predicates())
        if kind == "op" and value == "@":
            name = self._next()
            if name[0] != "name" and name[1] != "*":
                raise XpathError(self.query, name[2], "attribute name expected")
            return _Step("attribute", name[1], self._predicates())
        axis = "child"
        if kind == "name" and self._at("op", "::"):
            if value not in _AXES:
                raise XpathError(self.query, position, f"unknown axis '{value}'")
            axis = value
            self.index += 1
            kind, value, position = self._next()
        if kind == "name" or (kind == "op" and value == "*"):
            return _Step(axis, value, self._predicates())
        raise XpathError(self.query, position, f"unexpected '{value}'")

    def _predicates(self) -> List[object]:
        predicates = []
        while self._at("op", "["):
            self.index += 1
            predicates.append(self._or())
            self._expect("op", "]")
        return predicates


class _Evaluator:
    """Evaluates an expression tree against one syntax tree."""

    def __init__(self, root: DetailNode):
        self.document = _Document(root)
        self.order: Dict[int, int] = {id(node): index for index, node in enumerate(iter_preorder(root))}
        self.root = root

    # Navigation

    def _parent(self, item: Item) -> Optional[Item]:
        if isinstance(item, _Attribute):
            return item.owner
        if isinstance(item, _Document):
            return None
        return item.parent if item.parent is not None else self.document

    @staticmethod
    def _children(item: Item) -> Sequence[DetailNode]:
        if isinstance(item, _Attribute):
            return ()
        return item.children

    def _descendants(self, item: Item) -> List[DetailNode]:
        result: List[DetailNode] = []
        for child in self._children(item):
            result.extend(iter_preorder(child))
        return result

    def _ancestors(self, item: Item) -> List[Item]:
        result = []
        parent = self._parent(item)
        while parent is not None:
            result.append(parent)
            parent = self._parent(parent)
        return result

    def _axis(self, axis: str, item: Item) -> List[Item]:
        if axis == "child":
            return list(self._children(item))
        if axis == "descendant":
            return self._descendants(item)
        if axis == "descendant-or-self":
            return [item] + self._descendants(item)
        if axis == "self":
            return [item]
        if axis == "parent":
            parent = self._parent(item)
            return [parent] if parent is not None else []
        if axis == "ancestor":
            return self._ancestors(item)
        if axis == "ancestor-or-self":
            return [item] + self._ancestors(item)
        if axis in ("following-sibling", "preceding-sibling"):
            if not isinstance(item, DetailNode) or item.parent is None:
                return []
            siblings = list(item.parent.children)
            index = siblings.index(item)
            if axis == "following-sibling":
                return siblings[index + 1:]
            return list(reversed(siblings[:index]))
        if axis == "attribute":
            if isinstance(item, DetailNode):
                value = text_attribute(item)
                if value is not None:
                    return [_Attribute(item, "text", value)]
            return []
        raise ValueError(axis)

    @staticmethod
    def _matches(step: _Step, item: Item) -> bool:
        if step.test == "node()":
            return True
        if step.axis == "attribute":
            return isinstance(item, _Attribute) and step.test in ("*", item.name)
        if not isinstance(item, DetailNode):
            return False
        return step.test == "*" or item.type.name == step.test

    def _position(self, item: Item) -> float:
        if isinstance(item, _Document):
            return -1
        if isinstance(item, _Attribute):
            return self.order.get(id(item.owner), 0) + 0.5
        return self.order.get(id(item), 0)

    def _document_order(self, items: List[Item]) -> List[Item]:
        return sorted(items, key=self._position)

    # Evaluation

    def evaluate(self, expr: object, item: Item, position: int = 1, size: int = 1):
        if isinstance(expr, _Literal):
            return expr.value
        if isinstance(expr, _Path):
            return self._path(expr, item)
        if isinstance(expr, _Union):
            merged: List[Item] = []
            for path in expr.paths:
                value = self.evaluate(path, item, position, size)
                if not isinstance(value, list):
                    raise TypeError("union operands must be node sets")
                merged.extend(value)
            return self._document_order(list(dict.fromkeys(merged)))
        if isinstance(expr, _Binary):
            if expr.op == "or":
                return (self._boolean(self.evaluate(expr.left, item, position, size))
                        or self._boolean(self.evaluate(expr.right, item, position, size)))
            if expr.op == "and":
                return (self._boolean(self.evaluate(expr.left, item, position, size))
                        and self._boolean(self.evaluate(expr.right, item, position, size)))
            left = self.evaluate(expr.left, item, position, size)
            right = self.evaluate(expr.right, item, position, size)
            return self._equals(left, right, negate=expr.op == "!=")
        if isinstance(expr, _Call):
            return self._call(expr, item, position, size)
        raise TypeError(f"cannot evaluate {expr!r}")

    def _path(self, path: _Path, item: Item) -> List[Item]:
        current: List[Item] = [self.document] if path.absolute else [item]
        for step in path.steps:
            selected: List[Item] = []
            for context in current:
                candidates = [candidate for candidate in self._axis(step.axis, context)
                              if self._matches(step, candidate)]
                for predicate in step.predicates:
                    candidates = self._filter(candidates, predicate)
                selected.extend(candidates)
            current = self._document_order(list(dict.fromkeys(selected)))
        return current

    def _filter(self, items: List[Item], predicate: object) -> List[Item]:
        kept = []
        size = len(items)
        for position, item in enumerate(items, 1):
            value = self.evaluate(predicate, item, position, size)
            if isinstance(value, float):
                if value == position:
                    kept.append(item)
            elif self._boolean(value):
                kept.append(item)
        return kept

    def _call(self, call: _Call, item: Item, position: int, size: int):
        args = [self.evaluate(arg, item, position, size) for arg in call.args]
        if call.name == "not":
            return not self._boolean(args[0])
        if call.name == "contains":
            return self._string(args[1]) in self._string(args[0])
        if call.name == "starts-with":
            return self._string(args[0]).startswith(self._string(args[1]))
        if call.name == "count":
            if not isinstance(args[0], list):
                raise TypeError("count() expects a node set")
            return float(len(args[0]))
        if call.name == "string":
            return self._string(args[0])
        if call.name == "string-length":
            return float(len(self._string(args[0])))
        return call.name == "true"

    # Conversions

    @staticmethod
    def _item_string(item: Item) -> str:
        if isinstance(item, _Attribute):
            return item.value
        if isinstance(item, _Document):
            return ""
        return item.text

    def _string(self, value) -> str:
        if isinstance(value, list):
            return self._item_string(value[0]) if value else ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else str(value)
        return value

    @staticmethod
    def _boolean(value) -> bool:
        if isinstance(value, list):
            return bool(value)
        if isinstance(value, float):
            return value != 0 and not math.isnan(value)
        return bool(value)

    @staticmethod
    def _number(value: str) -> float:
        try:
            return float(value)
        except ValueError:
            return math.nan

    def _equals(self, left, right, negate: bool) -> bool:
        if isinstance(left, list) and isinstance(right, list):
            return any(self._compare_atoms(self._item_string(a), self._item_string(b), negate)
                       for a in left for b in right)
        if isinstance(left, list) or isinstance(right, list):
            nodes, other = (left, right) if isinstance(left, list) else (right, left)
            if isinstance(other, bool):
                return (bool(nodes) != other) if negate else (bool(nodes) == other)
            return any(self._compare_atoms(self._item_string(node), other, negate) for node in nodes)
        return self._compare_atoms(left, right, negate)

    def _compare_atoms(self, left, right, negate: bool) -> bool:
        if isinstance(left, bool) or isinstance(right, bool):
            result = self._boolean(left) == self._boolean(right)
        elif isinstance(left, float) or isinstance(right, float):
            a = left if isinstance(left, float) else self._number(left)
            b = right if isinstance(right, float) else self._number(right)
            result = a == b
            if negate:
                return not result and not (math.isnan(a) or math.isnan(b))
        else:
            result = self._string(left) == self._string(right)
        return not result if negate else result


class XpathQuery:
    """A compiled query.

    Raises:
        XpathError: if ``query`` is not valid in the supported subset
    """

    def __init__(self, query: str):
        self.query = query
        self._expr = _Parser(query).parse()

    def evaluate(self, root: DetailNode) -> List[DetailNode]:
        """Return the tree nodes selected by the query, in document order."""
        evaluator = _Evaluator(root)
        try:
            value = evaluator.evaluate(self._expr, evaluator.document)
        except TypeError as e:
            raise XpathError(self.query, 0, str(e)) from e
        if not isinstance(value, list):
            raise XpathError(self.query, 0, "expression does not select nodes")
        return [item for item in value if isinstance(item, DetailNode)]

    def __repr__(self) -> str:
        return f"XpathQuery({self.query!r})"


def evaluate_xpath(query: str, root: DetailNode) -> List[DetailNode]:
    """Compile ``query`` and evaluate it against ``root``."""
    return XpathQuery(query).evaluate(root)
