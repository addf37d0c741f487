"""
TreeWalker: the file-set check that parses Java files and drives tree checks.

Subscriptions are computed once, when checks are registered: for every token
kind the walker keeps the ordered list of checks (configuration order) that
want to see it. Each file is then walked exactly once; checks are notified on
entering (``visit``) and leaving (``leave``) nodes of their subscribed kinds.
"""

import logging
import time
from typing import Dict, List

from .api import (
    AbstractCheck,
    AbstractFileSetCheck,
    Module,
    ModuleContext,
    ModuleKind,
    TreeWalkerFilter,
    to_int,
)
from .errors import CheckRuntimeError, ConfigurationError
from .java_adapter import JavaAdapter
from .registry import register_module
from .tokens import TokenType, names_of
from .tree import DetailNode
from .types import AuditEvent, FileText, Violation

logger = logging.getLogger(__name__)


@register_module
class TreeWalker(AbstractFileSetCheck):
    """Runs tree checks over the syntax tree of every ``.java`` file."""

    kind = ModuleKind.TREE_WALKER

    def __init__(self):
        super().__init__()
        self._adapter = JavaAdapter()
        self.file_extensions = list(self._adapter.file_extensions)
        self.checks: List[AbstractCheck] = []
        self.filters: List[TreeWalkerFilter] = []
        self._subscribers: Dict[TokenType, List[AbstractCheck]] = {}
        self._comments_required = False

    def set_tab_width(self, value: str) -> None:
        self.tab_width = to_int(value)

    def child_context(self) -> ModuleContext:
        return ModuleContext(
            factory=self.context.factory,
            severity=self.context.severity,
            tab_width=self.tab_width,
            charset=self.context.charset,
        )

    def add_child(self, child: Module) -> None:
        if isinstance(child, AbstractCheck):
            self.register_check(child)
        else:
            self.filters.append(child)

    def register_check(self, check: AbstractCheck) -> None:
        """
        Subscribe ``check`` to its tokens.

        Raises:
            ConfigurationError: if required tokens are not all acceptable
        """
        acceptable = set(check.acceptable_tokens())
        missing = set(check.required_tokens()) - acceptable
        if missing:
            raise ConfigurationError(
                f'Token "{names_of(missing)}" from required tokens was not found in '
                f"Acceptable tokens list in check {type(check).__name__}",
                layer=check.name,
            )
        for token in sorted(check.subscribed_tokens(), key=lambda t: t.value):
            self._subscribers.setdefault(token, []).append(check)
        if check.is_comment_nodes_required():
            self._comments_required = True
        if check not in self.checks:
            self.checks.append(check)
        logger.debug("Registered %s for %d token kinds", check.name, len(check.subscribed_tokens()))

    def subscribers(self, token: TokenType) -> List[AbstractCheck]:
        return list(self._subscribers.get(token, ()))

    def process_filtered(self, path: str, file_text: FileText) -> None:
        if not self.checks:
            return
        started = time.perf_counter()
        root = self._adapter.parse(file_text.text, include_comments=self._comments_required)
        logger.debug("Parsed %s in %.1f ms", path, (time.perf_counter() - started) * 1000)
        self.walk(path, root, file_text)
        for violation in self._collect(path, root, file_text):
            self._violations.append(violation)

    def walk(self, path: str, root: DetailNode, file_text: FileText) -> None:
        """Run one traversal of ``root``, the tree of ``path``, with every registered check."""
        for check in self.checks:
            check.clear_violations()
            check.file_contents = file_text
            self._call(path, check, check.begin_tree, root)

        stack = [(root, False)]
        while stack:
            node, leaving = stack.pop()
            subscribed = self._subscribers.get(node.type, ())
            if leaving:
                for check in subscribed:
                    self._call(path, check, check.leave, node)
                continue
            for check in subscribed:
                self._call(path, check, check.visit, node)
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

        for check in self.checks:
            self._call(path, check, check.finish_tree, root)

    @staticmethod
    def _call(path: str, check: AbstractCheck, hook, node: DetailNode) -> None:
        try:
            hook(node)
        except Exception as e:
            raise CheckRuntimeError(check.name, node.line, node.column, e, path=path) from e

    def _collect(self, path: str, root: DetailNode, file_text: FileText) -> List[Violation]:
        collected = []
        for check in self.checks:
            for violation in check.get_violations():
                event = AuditEvent(path, violation)
                if all(f.accept(event, root, file_text) for f in self.filters):
                    collected.append(violation)
        return collected
