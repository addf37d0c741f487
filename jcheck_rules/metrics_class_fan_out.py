"""Check: ClassFanOutComplexity

Counts the distinct classes each class definition depends on: declared types,
instantiations, thrown exceptions and annotations. Nested classes are counted
separately from the class that encloses them.

Common JDK types (``String``, ``List``, boxed primitives, ...) and everything in
``java.lang`` are excluded by default.

Examples (max 2):
- class A { Foo f; Bar b; }            # GOOD: fan-out 2
- class A { Foo f; Bar b; Baz z; }     # BAD: fan-out 3
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Set

from jcheck.api import AbstractCheck, to_int, to_pattern, to_str_list
from jcheck.registry import register_module
from jcheck.tokens import TokenType
from jcheck.tree import DetailNode, full_ident, import_name

DEFAULT_EXCLUDED_CLASSES = frozenset({
    # primitives and void
    "boolean", "byte", "char", "double", "float", "int", "long", "short", "void", "var",
    # wrappers
    "Boolean", "Byte", "Character", "Double", "Float", "Integer", "Long", "Short", "Void",
    # core
    "Object", "Class", "String", "StringBuffer", "StringBuilder",
    # exceptions
    "ArrayIndexOutOfBoundsException", "Exception", "RuntimeException",
    "IllegalArgumentException", "IllegalStateException", "IndexOutOfBoundsException",
    "NullPointerException", "Throwable", "SecurityException",
    "UnsupportedOperationException",
    # collections
    "List", "ArrayList", "Deque", "Queue", "LinkedList", "Set", "HashSet", "SortedSet",
    "TreeSet", "Map", "HashMap", "SortedMap", "TreeMap", "LinkedHashMap", "LinkedHashSet",
    "Collection", "EnumSet",
    # optionals and streams
    "Optional", "OptionalDouble", "OptionalInt", "OptionalLong",
    "DoubleStream", "IntStream", "LongStream", "Stream",
    # annotations
    "Override", "Deprecated", "SafeVarargs", "SuppressWarnings", "FunctionalInterface",
    "SuppressFBWarnings",
})

_JAVA_NAME = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*(\.[A-Za-z_$][A-Za-z0-9_$]*)*")

_CLASS_DEFINITIONS = (
    TokenType.CLASS_DEF, TokenType.INTERFACE_DEF, TokenType.ENUM_DEF,
    TokenType.ANNOTATION_DEF, TokenType.RECORD_DEF,
)

_TYPE_NAME_TOKENS = (TokenType.IDENT, TokenType.DOT)


@dataclass
class _ClassContext:
    node: DetailNode
    referenced: Set[str] = field(default_factory=set)


def type_names(node: DetailNode) -> List[str]:
    """Class names used by a ``TYPE`` node, including type arguments."""
    names: List[str] = []
    for child in node.children:
        if child.type in _TYPE_NAME_TOKENS:
            names.append(_without_annotations(child))
        elif child.type.name.startswith("LITERAL_") and child.child_count == 0:
            names.append(child.text)
        elif child.type in (TokenType.TYPE_ARGUMENTS, TokenType.TYPE_ARGUMENT,
                            TokenType.WILDCARD_TYPE, TokenType.TYPE):
            names.extend(type_names(child))
    return names


def _without_annotations(node: DetailNode) -> str:
    if node.type is TokenType.DOT:
        parts = [_without_annotations(child) for child in node.children
                 if child.type in _TYPE_NAME_TOKENS]
        return ".".join(parts)
    return full_ident(node)


@register_module
class ClassFanOutComplexityCheck(AbstractCheck):
    """Limit the number of classes a class depends on."""

    def __init__(self):
        super().__init__()
        self.max = 20
        self.excluded_classes: Set[str] = set(DEFAULT_EXCLUDED_CLASSES)
        self.excluded_packages: Set[str] = set()
        self.exclude_classes_regexps: List[Pattern] = [to_pattern("^$")]
        self._package = ""
        self._imports: Dict[str, str] = {}
        self._contexts: List[_ClassContext] = []

    def set_max(self, value: str) -> None:
        self.max = to_int(value)

    def set_excluded_classes(self, value: str) -> None:
        self.excluded_classes = set(to_str_list(value))

    def set_excluded_packages(self, value: str) -> None:
        packages = to_str_list(value)
        invalid = [name for name in packages if not _JAVA_NAME.fullmatch(name)]
        if invalid:
            raise ValueError(
                f"the following values are not valid identifiers: [{', '.join(invalid)}]")
        self.excluded_packages = set(packages)

    def set_exclude_classes_regexps(self, value: str) -> None:
        self.exclude_classes_regexps = [to_pattern(pattern) for pattern in to_str_list(value)]

    def acceptable_tokens(self):
        return self.required_tokens()

    def required_tokens(self):
        return [
            TokenType.PACKAGE_DEF,
            TokenType.IMPORT,
            *_CLASS_DEFINITIONS,
            TokenType.TYPE,
            TokenType.LITERAL_NEW,
            TokenType.LITERAL_THROWS,
            TokenType.ANNOTATION,
        ]

    def begin_tree(self, root):
        self._package = ""
        self._imports = {}
        self._contexts = []

    def visit(self, node):
        kind = node.type
        if kind is TokenType.PACKAGE_DEF:
            name = next((child for child in node.children if child.type in _TYPE_NAME_TOKENS), None)
            self._package = full_ident(name)
        elif kind is TokenType.IMPORT:
            self._register_import(import_name(node))
        elif kind in _CLASS_DEFINITIONS:
            self._contexts.append(_ClassContext(node))
        elif kind is TokenType.TYPE:
            # nested TYPE nodes are handled by their outermost TYPE
            if node.parent is None or node.parent.type is not TokenType.TYPE:
                self._add_all(type_names(node))
        elif kind is TokenType.LITERAL_NEW:
            self._visit_new(node)
        elif kind is TokenType.LITERAL_THROWS:
            self._add_all(_without_annotations(child) for child in node.children
                          if child.type in _TYPE_NAME_TOKENS)
        elif kind is TokenType.ANNOTATION:
            name = next((child for child in node.children if child.type in _TYPE_NAME_TOKENS), None)
            if name is not None:
                self._add(full_ident(name))

    def leave(self, node):
        if node.type in _CLASS_DEFINITIONS:
            context = self._contexts.pop()
            count = len(context.referenced)
            if count > self.max:
                self.log(context.node, "classFanOutComplexity", count, self.max)

    def _register_import(self, name: str) -> None:
        if not name.endswith(".*"):
            self._imports[name.rpartition(".")[2]] = name

    def _visit_new(self, node: DetailNode) -> None:
        for child in node.children:
            if child.type in _TYPE_NAME_TOKENS:
                self._add(_without_annotations(child))
                return
            if child.type.name.startswith("LITERAL_") and child.child_count == 0:
                self._add(child.text)
                return

    def _add_all(self, names) -> None:
        for name in names:
            self._add(name)

    def _add(self, name: str) -> None:
        context = self._current()
        if context is not None and name and self._is_significant(name):
            context.referenced.add(name)

    def _current(self) -> Optional[_ClassContext]:
        return self._contexts[-1] if self._contexts else None

    def _is_significant(self, name: str) -> bool:
        return (name not in self.excluded_classes
                and not self._is_from_excluded_package(name)
                and not any(pattern.fullmatch(name) for pattern in self.exclude_classes_regexps))

    def _is_from_excluded_package(self, name: str) -> bool:
        qualified = name if "." in name else self._imports.get(name, "")
        if "." not in qualified:
            return False
        package = qualified.rpartition(".")[0]
        return package.startswith("java.lang") or package in self.excluded_packages
