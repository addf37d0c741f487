"""
Parser for javadoc comment bodies.

The input is the text between ``/**`` and ``*/``. The resulting tree lives in
its own coordinate space: lines and columns are 0-based offsets into the
comment body, not into the enclosing file.
"""

import re
from typing import Optional

from .tokens import JavadocTokenType as J
from .tree import DetailNode

_LEADING_ASTERISK = re.compile(r"[ \t]*\*(?!/)")
_BLOCK_TAG = re.compile(r"@([A-Za-z][\w.-]*)")
_INLINE_TAG = re.compile(r"\{@([A-Za-z]+)(\s*)([^}]*)\}")
_ARGUMENT = re.compile(r"([ \t]+)(\S+)")

_BLOCK_TAGS = {
    "param": J.PARAM_LITERAL,
    "return": J.RETURN_LITERAL,
    "throws": J.THROWS_LITERAL,
    "exception": J.EXCEPTION_LITERAL,
    "see": J.SEE_LITERAL,
    "since": J.SINCE_LITERAL,
    "author": J.AUTHOR_LITERAL,
    "version": J.VERSION_LITERAL,
    "deprecated": J.DEPRECATED_LITERAL,
    "serial": J.SERIAL_LITERAL,
}

_INLINE_TAGS = {
    "code": J.CODE_LITERAL,
    "link": J.LINK_LITERAL,
    "linkplain": J.LINKPLAIN_LITERAL,
    "literal": J.LITERAL_LITERAL,
    "value": J.VALUE_LITERAL,
    "inheritDoc": J.INHERIT_DOC_LITERAL,
}

# Block tags whose first word is an argument rather than description text
_ARGUMENT_TAGS = {
    "param": J.PARAMETER_NAME,
    "throws": J.REFERENCE,
    "exception": J.REFERENCE,
    "see": J.REFERENCE,
}

_REFERENCE_INLINE_TAGS = {"link", "linkplain", "value"}


def parse_javadoc(body: str) -> DetailNode:
    """Parse a javadoc comment body into a ``JAVADOC`` rooted tree."""
    return JavadocParser(body).parse()


class JavadocParser:
    """Line oriented builder for javadoc trees."""

    def __init__(self, body: str):
        self.body = body

    def parse(self) -> DetailNode:
        root = DetailNode(J.JAVADOC, self.body, 0, 0)
        lines = self.body.split("\n")
        container = root
        for index, raw in enumerate(lines):
            line = raw[:-1] if raw.endswith("\r") else raw
            column = 0
            if index > 0:
                match = _LEADING_ASTERISK.match(line)
                if match:
                    container.add_child(
                        DetailNode(J.LEADING_ASTERISK, match.group(), index, 0))
                    column = match.end()
            rest = line[column:]
            stripped = rest.lstrip(" \t")
            if stripped.startswith("@") and _BLOCK_TAG.match(stripped):
                indent = len(rest) - len(stripped)
                if indent:
                    container.add_child(DetailNode(J.WS, rest[:indent], index, column))
                container = self._block_tag(root, stripped, index, column + indent)
            else:
                self._text(container, rest, index, column)
            if index < len(lines) - 1:
                container.add_child(DetailNode(J.NEWLINE, "\n", index, len(line)))
        last = len(lines) - 1
        root.add_child(DetailNode(J.EOF, "<EOF>", last, len(lines[last])))
        return root

    def _block_tag(self, root: DetailNode, text: str, line: int, column: int) -> DetailNode:
        match = _BLOCK_TAG.match(text)
        name = match.group(1)
        tag = root.add_child(DetailNode(J.JAVADOC_TAG, "JAVADOC_TAG", line, column))
        tag.add_child(DetailNode(_BLOCK_TAGS.get(name, J.CUSTOM_NAME), match.group(), line, column))
        position = match.end()

        argument_type = _ARGUMENT_TAGS.get(name)
        if argument_type is not None:
            argument = _ARGUMENT.match(text, position)
            if argument:
                tag.add_child(DetailNode(J.WS, argument.group(1), line, column + position))
                tag.add_child(DetailNode(argument_type, argument.group(2), line,
                                         column + argument.start(2)))
                position = argument.end()

        remainder = text[position:]
        stripped = remainder.lstrip(" \t")
        indent = len(remainder) - len(stripped)
        if indent:
            tag.add_child(DetailNode(J.WS, remainder[:indent], line, column + position))
        description = tag.add_child(
            DetailNode(J.DESCRIPTION, "DESCRIPTION", line, column + position + indent))
        self._text(description, stripped, line, column + position + indent)
        return description

    def _text(self, container: DetailNode, text: str, line: int, column: int) -> None:
        """Split ``text`` into plain text and inline tags."""
        position = 0
        for match in _INLINE_TAG.finditer(text):
            self._plain(container, text[position:match.start()], line, column + position)
            self._inline_tag(container, match, line, column)
            position = match.end()
        self._plain(container, text[position:], line, column + position)

    @staticmethod
    def _plain(container: DetailNode, text: str, line: int, column: int) -> None:
        if not text:
            return
        kind = J.WS if not text.strip() else J.TEXT
        container.add_child(DetailNode(kind, text, line, column))

    def _inline_tag(self, container: DetailNode, match: "re.Match", line: int, column: int) -> None:
        start = column + match.start()
        name = match.group(1)
        tag = container.add_child(DetailNode(J.JAVADOC_INLINE_TAG, "JAVADOC_INLINE_TAG", line, start))
        tag.add_child(DetailNode(J.JAVADOC_INLINE_TAG_START, "{", line, start))
        tag.add_child(DetailNode(_INLINE_TAGS.get(name, J.CUSTOM_NAME), "@" + name, line, start + 1))
        if match.group(2):
            tag.add_child(DetailNode(J.WS, match.group(2), line, column + match.start(2)))
        content = match.group(3)
        content_column = column + match.start(3)
        if content and name in _REFERENCE_INLINE_TAGS:
            reference, _, label = content.partition(" ")
            tag.add_child(DetailNode(J.REFERENCE, reference, line, content_column))
            if label:
                tag.add_child(DetailNode(J.WS, " ", line, content_column + len(reference)))
                description = tag.add_child(DetailNode(
                    J.DESCRIPTION, "DESCRIPTION", line, content_column + len(reference) + 1))
                self._plain(description, label, line, content_column + len(reference) + 1)
        elif content:
            tag.add_child(DetailNode(J.TEXT, content, line, content_column))
        tag.add_child(DetailNode(J.JAVADOC_INLINE_TAG_END, "}", line, column + match.end() - 1))


def find_javadoc_tag(root: DetailNode, literal: J) -> Optional[DetailNode]:
    """Return the first block tag whose literal child has kind ``literal``."""
    for child in root.children:
        if child.type is J.JAVADOC_TAG and child.first_child is not None \
                and child.first_child.type is literal:
            return child
    return None
