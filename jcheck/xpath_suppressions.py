"""
XPath based suppressions.

- ``XpathQueryGenerator`` builds queries that select the nodes at a position
- ``XpathFileGeneratorAstFilter`` and ``XpathFileGeneratorAuditListener``
  together turn the violations of a run into a suppressions file
- ``SuppressionXpathFilter`` reads such a file and drops matching violations
"""

import logging
import os
import re
import sys
import threading
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Pattern, TextIO, Tuple

from .api import TreeWalkerFilter, to_bool, to_int
from .errors import ConfigurationError, XpathError
from .java_adapter import JavaAdapter
from .listeners import OutputStreamOptions, StreamListener, escape_attribute
from .registry import register_module
from .tokens import NodeType, TokenType
from .tree import DetailNode, iter_preorder
from .types import DEFAULT_TAB_WIDTH, AuditEvent, FileText, Violation, expand_tab_column
from .xpath import XpathQuery, text_attribute

logger = logging.getLogger(__name__)

SUPPRESSIONS_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<!DOCTYPE suppressions PUBLIC\n"
    '    "-//Checkstyle//DTD SuppressionXpathFilter Experimental Configuration 1.2//EN"\n'
    '    "https://checkstyle.org/dtds/suppressions_1_2_xpath_experimental.dtd">\n'
    "<suppressions>\n"
)
SUPPRESSIONS_FOOTER = "</suppressions>\n"

_LINE_COLUMN = re.compile(r"^(\d+):(\d+)$")


def parse_line_column(value: str) -> Tuple[int, int]:
    """Split ``line:column``; raises ``ValueError`` on any other format."""
    match = _LINE_COLUMN.match(value)
    if match is None:
        raise ValueError(f"{value} does not match valid format 'line:column'.")
    return int(match.group(1)), int(match.group(2))


def _quote(text: str) -> Optional[str]:
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    return None


class XpathQueryGenerator:
    """Generates one query per node starting at a line and column.

    Args:
        root: tree to search
        line: 1-based line
        column: 1-based column with tabs expanded; ``None`` matches any column
        file_text: source of the tree, for tab expansion
        tab_width: tab width used for ``column``
        token_type: when set, only nodes of this kind match
    """

    def __init__(self, root: DetailNode, line: int, column: Optional[int],
                 file_text: FileText, tab_width: int = DEFAULT_TAB_WIDTH,
                 token_type: Optional[NodeType] = None):
        self.root = root
        self.line = line
        self.column = column
        self.file_text = file_text
        self.tab_width = tab_width
        self.token_type = token_type

    def matching_nodes(self) -> List[DetailNode]:
        return [node for node in iter_preorder(self.root) if self._matches(node)]

    def generate(self) -> List[str]:
        return [self.query_for(node) for node in self.matching_nodes()]

    def _matches(self, node: DetailNode) -> bool:
        if node.line != self.line:
            return False
        if self.token_type is not None and node.type is not self.token_type:
            return False
        if self.column is None:
            return True
        line_text = self.file_text.line(node.line) if node.line <= self.file_text.line_count else ""
        return expand_tab_column(line_text, node.column, self.tab_width) + 1 == self.column

    @classmethod
    def query_for(cls, node: DetailNode) -> str:
        """Absolute query from the root to ``node``."""
        path = [node] + list(node.ancestors())
        return "".join("/" + cls._step(step) for step in reversed(path))

    @staticmethod
    def _step(node: DetailNode) -> str:
        name = node.type.name
        ident = node.find_first_token(TokenType.IDENT)
        if ident is not None:
            quoted = _quote(ident.text)
            if quoted is not None:
                return f"{name}[./IDENT[@text={quoted}]]"
        value = text_attribute(node)
        if value is not None:
            quoted = _quote(value)
            if quoted is not None:
                return f"{name}[@text={quoted}]"
        return name


# Keyed by file as well: equal violations in different files are distinct entries.
_generated_queries: Dict[Tuple[str, Violation], List[str]] = {}
_generated_lock = threading.Lock()


def pop_generated_queries(file_name: str, violation: Violation) -> List[str]:
    with _generated_lock:
        return _generated_queries.pop((file_name, violation), [])


def discard_generated_queries(file_name: str) -> None:
    """Drop the queries left for ``file_name``, e.g. for violations a later filter removed."""
    with _generated_lock:
        for key in [key for key in _generated_queries if key[0] == file_name]:
            del _generated_queries[key]


@register_module
class XpathFileGeneratorAstFilter(TreeWalkerFilter):
    """Records suppression queries for every violation; never drops one."""

    def __init__(self):
        super().__init__()
        self.tab_width: Optional[int] = None

    def set_tab_width(self, value: str) -> None:
        self.tab_width = to_int(value)

    def accept(self, event: AuditEvent, root: DetailNode, file_text: FileText) -> bool:
        violation = event.violation
        if violation is not None and violation.column is not None:
            generator = XpathQueryGenerator(root, violation.line, violation.column, file_text,
                                            self.tab_width or self.context.tab_width,
                                            violation.token_type)
            queries = generator.generate()
            if queries:
                with _generated_lock:
                    _generated_queries[(event.file_name, violation)] = queries
        return True


class XpathFileGeneratorAuditListener(StreamListener):
    """Writes the suppressions file for the violations of a run.

    Nothing is written when no violation produced a query.
    """

    def __init__(self, output: TextIO = sys.stdout,
                 output_option: OutputStreamOptions = OutputStreamOptions.CLOSE):
        super().__init__([output], [output_option])
        self.output = output
        self._entries: List[str] = []

    def add_error(self, event: AuditEvent) -> None:
        file_name = os.path.basename(event.file_name)
        if event.module_id is not None:
            owner = f'       id="{escape_attribute(event.module_id)}"\n'
        else:
            check = event.source_name if event.source_name.endswith("Check") \
                else event.source_name + "Check"
            owner = f'       checks="{escape_attribute(check)}"\n'
        for query in pop_generated_queries(event.file_name, event.violation):
            self._entries.append(
                "<suppress-xpath\n"
                f'       files="{escape_attribute(file_name)}"\n'
                f"{owner}"
                f'       query="{escape_attribute(query)}"/>\n')

    def file_finished(self, event: AuditEvent) -> None:
        discard_generated_queries(event.file_name)

    def audit_finished(self, event: AuditEvent) -> None:
        if self._entries:
            self.output.write(SUPPRESSIONS_HEADER)
            for entry in self._entries:
                self.output.write(entry)
            self.output.write(SUPPRESSIONS_FOOTER)
        self.close()


def print_suppressions(path: str, line_column: str, tab_width: int = DEFAULT_TAB_WIDTH,
                       charset: str = "utf-8") -> str:
    """Queries for every node at ``line:column`` of the Java file at ``path``."""
    line, column = parse_line_column(line_column)
    file_text = FileText.read(path, charset)
    root = JavaAdapter().parse(file_text.text, include_comments=True)
    queries = XpathQueryGenerator(root, line, column, file_text, tab_width).generate()
    return "".join(query + "\n" for query in queries)


class _SuppressElement:
    """One ``<suppress-xpath>`` entry."""

    def __init__(self, files: Optional[str], checks: Optional[str], message: Optional[str],
                 module_id: Optional[str], query: Optional[str]):
        self.files: Optional[Pattern] = re.compile(files) if files else None
        self.checks: Optional[Pattern] = re.compile(checks) if checks else None
        self.message: Optional[Pattern] = re.compile(message) if message else None
        self.module_id = module_id
        self.query = XpathQuery(query) if query else None

    def matches(self, event: AuditEvent, nodes: Optional[List[DetailNode]]) -> bool:
        if self.files is not None and not self.files.search(event.file_name or ""):
            return False
        if self.checks is not None:
            name = event.source_name
            if not (self.checks.search(name) or self.checks.search(name + "Check")):
                return False
        if self.module_id is not None and event.module_id != self.module_id:
            return False
        if self.message is not None and not self.message.search(event.message):
            return False
        if nodes is not None:
            violation = event.violation
            return any(self._at_violation(node, violation) for node in nodes)
        return True

    @staticmethod
    def _at_violation(node: DetailNode, violation: Violation) -> bool:
        if node.line != violation.line:
            return False
        if violation.token_type is not None and node.type is not violation.token_type:
            return False
        return violation.column_no is None or node.column == violation.column_no


@register_module
class SuppressionXpathFilter(TreeWalkerFilter):
    """Drops violations selected by a suppressions file."""

    def __init__(self):
        super().__init__()
        self.file: Optional[str] = None
        self.optional = False
        self.elements: List[_SuppressElement] = []
        self._root: Optional[DetailNode] = None
        self._cache: Dict[int, List[DetailNode]] = {}

    def set_file(self, value: str) -> None:
        self.file = value

    def set_optional(self, value: str) -> None:
        self.optional = to_bool(value)

    def finish_local_setup(self) -> None:
        if not self.file:
            return
        if not os.path.exists(self.file):
            if self.optional:
                logger.warning("Suppressions file %s not found, ignoring", self.file)
                return
            raise ConfigurationError(f"Unable to find: {self.file}", layer=self.name)
        self.elements = load_xpath_suppressions(self.file)
        logger.debug("Loaded %d xpath suppressions from %s", len(self.elements), self.file)

    def accept(self, event: AuditEvent, root: DetailNode, file_text: FileText) -> bool:
        if event.violation is None:
            return True
        if root is not self._root:
            self._root = root
            self._cache = {}
        for index, element in enumerate(self.elements):
            nodes = None
            if element.query is not None:
                if index not in self._cache:
                    self._cache[index] = element.query.evaluate(root)
                nodes = self._cache[index]
            if element.matches(event, nodes):
                return False
        return True


def load_xpath_suppressions(path: str) -> List[_SuppressElement]:
    """
    Read a suppressions file.

    Raises:
        ConfigurationError: on malformed XML, invalid patterns or queries, or an
            entry without ``checks``, ``id`` and ``message``
    """
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ConfigurationError(f"Unable to parse {path} - {e}") from e
    elements = []
    for entry in tree.getroot():
        if entry.tag not in ("suppress", "suppress-xpath"):
            continue
        attributes = entry.attrib
        if not any(attributes.get(name) for name in ("checks", "id", "message")):
            raise ConfigurationError(
                f"Unable to parse {path} - missing checks or id or message attribute")
        try:
            elements.append(_SuppressElement(
                attributes.get("files"), attributes.get("checks"), attributes.get("message"),
                attributes.get("id"), attributes.get("query")))
        except (re.error, XpathError) as e:
            raise ConfigurationError(f"Unable to parse {path} - {e}") from e
    return elements
