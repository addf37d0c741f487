"""
Text renderings of syntax trees for the command line print modes.

Every node is rendered as ``TYPE -> text [line:column]`` and indented with
branch connectors::

    COMPILATION_UNIT -> COMPILATION_UNIT [1:0]
    `--CLASS_DEF -> CLASS_DEF [1:0]
        |--MODIFIERS -> MODIFIERS [1:0]
        ...
"""

import logging
from typing import List

from .java_adapter import JavaAdapter
from .javadoc import parse_javadoc
from .tree import DetailNode, iter_preorder
from .types import FileText
from .xpath import XpathQuery

logger = logging.getLogger(__name__)

XPATH_DELIMITER = "---------"


def escape_control_chars(text: str) -> str:
    return text.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


def get_node_info(node: DetailNode) -> str:
    return f"{node.type.name} -> {escape_control_chars(node.text)} [{node.line}:{node.column}]"


def get_indentation(node: DetailNode) -> str:
    """Connector prefix of ``node``: one column per ancestor below the root."""
    if node.parent is None:
        return ""
    parts = ["`--" if node.next_sibling is None else "|--"]
    ancestor = node.parent
    while ancestor.parent is not None:
        parts.append("    " if ancestor.next_sibling is None else "|   ")
        ancestor = ancestor.parent
    return "".join(reversed(parts))


def print_tree(root: DetailNode) -> str:
    """Render ``root`` and all of its descendants, one node per line."""
    return "".join(get_indentation(node) + get_node_info(node) + "\n"
                   for node in iter_preorder(root))


def print_branch(node: DetailNode) -> str:
    """Render the path from the tree root down to ``node``."""
    lines: List[str] = []
    current = node
    while current is not None:
        lines.append(get_indentation(current) + get_node_info(current) + "\n")
        current = current.parent
    return "".join(reversed(lines))


def parse_file(path: str, include_comments: bool = False, include_javadoc: bool = False,
               charset: str = "utf-8") -> DetailNode:
    file_text = FileText.read(path, charset)
    return JavaAdapter().parse(file_text.text, include_comments=include_comments,
                               include_javadoc=include_javadoc)


def print_file_ast(path: str, include_comments: bool = False) -> str:
    """Tree of a Java file, optionally with comment nodes."""
    return print_tree(parse_file(path, include_comments=include_comments))


def print_java_and_javadoc_tree(path: str) -> str:
    """Tree of a Java file with comment nodes and parsed javadoc sub-trees."""
    return print_tree(parse_file(path, include_javadoc=True))


def print_javadoc_tree(path: str, charset: str = "utf-8") -> str:
    """Tree of a file holding only a javadoc comment body, without ``/**`` and ``*/``."""
    return print_tree(parse_javadoc(FileText.read(path, charset).text))


def print_xpath_branches(query: str, path: str) -> str:
    """
    Render every node selected by ``query`` in the Java file at ``path``.

    Non-root matches are printed as their branch from the root; a match on the
    root itself prints the whole tree. Matches are separated by ``---------``.

    Raises:
        XpathError: if ``query`` is not valid
    """
    compiled = XpathQuery(query)
    root = parse_file(path, include_comments=True)
    matches = compiled.evaluate(root)
    logger.debug("Query %s selected %d node(s) in %s", query, len(matches), path)
    fragments = [print_tree(node) if node.parent is None else print_branch(node)
                 for node in matches]
    return (XPATH_DELIMITER + "\n").join(fragments)
