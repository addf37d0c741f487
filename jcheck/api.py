"""
Module contracts of the jcheck engine.

Every configurable unit (the root ``Checker``, file-set checks, the
``TreeWalker``, tree checks and filters) derives from ``Module``. Modules are
configured from a ``Configuration``: properties first, then
``finish_local_setup``, then nested children.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Pattern, Sequence, Set

from .config import Configuration
from .errors import ConfigurationError, PropertyError
from .tokens import TokenType, names_of, parse_token_names
from .tree import DetailNode
from .types import (
    DEFAULT_TAB_WIDTH,
    AuditEvent,
    FileText,
    Severity,
    Violation,
    expand_tab_column,
    sort_violations,
)

if TYPE_CHECKING:
    from .registry import ModuleFactory

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


class ModuleKind(Enum):
    CHECKER = "checker"
    FILESET = "fileset"
    TREE_WALKER = "treewalker"
    CHECK = "check"
    FILTER = "filter"
    TREE_WALKER_FILTER = "treewalker_filter"


@dataclass
class ModuleContext:
    """Settings a parent module hands down to its children."""

    factory: "ModuleFactory"
    severity: Severity = Severity.ERROR
    tab_width: int = DEFAULT_TAB_WIDTH
    charset: str = "utf-8"


# Property value converters

def to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean value: {value}")


def to_int(value: str) -> int:
    return int(value.strip())


def to_pattern(value: str) -> Pattern:
    return re.compile(value)


def to_str_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def property_setter_name(name: str) -> str:
    """``customImportOrderRules`` -> ``set_custom_import_order_rules``."""
    return "set_" + _CAMEL_BOUNDARY.sub("_", name).lower()


class Module:
    """Base class of every configurable module."""

    kind = ModuleKind.CHECK

    def __init__(self):
        name = type(self).__name__
        self.name = name[:-len("Check")] if name.endswith("Check") and name != "Check" else name
        self.id: Optional[str] = None
        self.severity = Severity.ERROR
        self.custom_messages: Dict[str, str] = {}
        self.context: Optional[ModuleContext] = None
        self.configuration: Optional[Configuration] = None
        self.children: List["Module"] = []

    @property
    def bundle(self) -> str:
        """Package holding the module's ``messages.yaml``."""
        module = type(self).__module__
        return module.rpartition(".")[0] or module

    def contextualize(self, context: ModuleContext) -> None:
        self.context = context
        self.severity = context.severity

    def configure(self, configuration: Configuration) -> None:
        """Apply properties, finish local setup, then set up children."""
        self.configuration = configuration
        self.name = configuration.name
        for name, value in configuration.properties.items():
            self.set_property(name, value)
        self.custom_messages = dict(configuration.messages)
        self.finish_local_setup()
        for child_configuration in configuration.children:
            self.setup_child(child_configuration)

    def set_property(self, name: str, value: str) -> None:
        """
        Assign a configured property through its ``set_<name>`` method.

        Raises:
            PropertyError: when the property does not exist or the value is
                rejected; the converter's exception is kept as ``__cause__``
        """
        setter = getattr(self, property_setter_name(name), None)
        if setter is None or not callable(setter):
            raise PropertyError(
                name, value,
                f"Property '{name}' does not exist, please check the documentation")
        try:
            setter(value)
        except (ValueError, TypeError, re.error) as e:
            raise PropertyError(name, value) from e

    def set_severity(self, value: str) -> None:
        self.severity = Severity.from_name(value)

    def set_id(self, value: str) -> None:
        self.id = value or None

    def finish_local_setup(self) -> None:
        """Hook called after properties are applied and before children."""

    def child_context(self) -> ModuleContext:
        return self.context

    def setup_child(self, child_configuration: Configuration) -> None:
        """Create, validate and configure a nested module."""
        from .registry import check_nesting

        name = child_configuration.name
        context = self.child_context()
        if context is None:
            raise ConfigurationError(f"{name} is not allowed as a child in {self.name}",
                                     layer=self.name)
        try:
            child = context.factory.create_module(name)
        except ConfigurationError as e:
            raise ConfigurationError.wrap(name, e)
        # Tracked before configuring so destroy() reaches it on failure.
        self.children.append(child)
        check_nesting(self, child, name)
        try:
            child.contextualize(context)
            child.configure(child_configuration)
        except ConfigurationError as e:
            raise ConfigurationError.wrap(name, e)
        self.add_child(child)

    def add_child(self, child: "Module") -> None:
        """Register an already configured child. Kinds are validated upstream."""

    def destroy(self) -> None:
        for child in self.children:
            child.destroy()


class AbstractCheck(Module):
    """A check driven by the ``TreeWalker`` over a file's syntax tree."""

    kind = ModuleKind.CHECK

    def __init__(self):
        super().__init__()
        self.tokens: Set[TokenType] = set()
        self.tab_width = DEFAULT_TAB_WIDTH
        self.file_contents: Optional[FileText] = None
        self._violations: List[Violation] = []

    def default_tokens(self) -> Sequence[TokenType]:
        return self.acceptable_tokens()

    def acceptable_tokens(self) -> Sequence[TokenType]:
        raise NotImplementedError

    def required_tokens(self) -> Sequence[TokenType]:
        return ()

    def is_comment_nodes_required(self) -> bool:
        return False

    def contextualize(self, context: ModuleContext) -> None:
        super().contextualize(context)
        self.tab_width = context.tab_width

    def set_tokens(self, value: str) -> None:
        tokens = parse_token_names(value)
        unknown = tokens - set(self.acceptable_tokens())
        if unknown:
            raise ValueError(
                f'Token "{names_of(unknown)}" was not found in Acceptable tokens list '
                f"in check {type(self).__name__}")
        self.tokens = tokens

    def subscribed_tokens(self) -> Set[TokenType]:
        """Tokens the walker delivers: configured or default, plus required."""
        base = self.tokens or set(self.default_tokens())
        return base | set(self.required_tokens())

    # Traversal hooks

    def begin_tree(self, root: DetailNode) -> None:
        """Called before the traversal of each file; reset per-file state here."""

    def visit(self, node: DetailNode) -> None:
        pass

    def leave(self, node: DetailNode) -> None:
        pass

    def finish_tree(self, root: DetailNode) -> None:
        pass

    # Reporting

    def log(self, node: DetailNode, key: str, *args: object) -> None:
        """Report a violation at ``node``."""
        line_text = self.file_contents.line(node.line) if self.file_contents else ""
        column = expand_tab_column(line_text, node.column, self.tab_width) + 1
        self._violations.append(Violation(
            line=node.line,
            column=column,
            bundle=self.bundle,
            key=key,
            args=args,
            severity=self.severity,
            source_name=self.name,
            module_id=self.id,
            token_type=node.type if isinstance(node.type, TokenType) else None,
            column_no=node.column,
            custom_message=self.custom_messages.get(key),
        ))

    def clear_violations(self) -> None:
        self._violations = []

    def get_violations(self) -> List[Violation]:
        return list(self._violations)


class AbstractFileSetCheck(Module):
    """A check that processes the raw text of each file."""

    kind = ModuleKind.FILESET

    def __init__(self):
        super().__init__()
        self.file_extensions: List[str] = []
        self.tab_width = DEFAULT_TAB_WIDTH
        self._violations: List[Violation] = []

    def contextualize(self, context: ModuleContext) -> None:
        super().contextualize(context)
        self.tab_width = context.tab_width

    def set_file_extensions(self, value: str) -> None:
        self.file_extensions = [ext if ext.startswith(".") else "." + ext
                                for ext in to_str_list(value)]

    def accepts(self, path: str) -> bool:
        return not self.file_extensions or any(path.endswith(ext) for ext in self.file_extensions)

    def begin_processing(self, charset: str) -> None:
        pass

    def finish_processing(self) -> None:
        pass

    def process(self, path: str, file_text: FileText) -> List[Violation]:
        """Run the check on one file and return its sorted violations."""
        self._violations = []
        if self.accepts(path):
            self.process_filtered(path, file_text)
        return sort_violations(self._violations)

    def process_filtered(self, path: str, file_text: FileText) -> None:
        raise NotImplementedError

    def log(self, line: int, key: str, *args: object, column: Optional[int] = None) -> None:
        self._violations.append(Violation(
            line=line, column=column, bundle=self.bundle, key=key, args=args,
            severity=self.severity, source_name=self.name, module_id=self.id,
            custom_message=self.custom_messages.get(key),
        ))


class Filter(Module):
    """Decides whether an audit event reaches the listeners."""

    kind = ModuleKind.FILTER

    def accept(self, event: AuditEvent) -> bool:
        raise NotImplementedError


class TreeWalkerFilter(Module):
    """Filter evaluated by the ``TreeWalker`` with access to the tree."""

    kind = ModuleKind.TREE_WALKER_FILTER

    def accept(self, event: AuditEvent, root: DetailNode, file_text: FileText) -> bool:
        raise NotImplementedError


class AuditListener:
    """Receiver of audit lifecycle events. All hooks default to no-ops."""

    def audit_started(self, event: AuditEvent) -> None:
        pass

    def file_started(self, event: AuditEvent) -> None:
        pass

    def add_error(self, event: AuditEvent) -> None:
        pass

    def add_exception(self, event: AuditEvent, error: BaseException) -> None:
        pass

    def file_finished(self, event: AuditEvent) -> None:
        pass

    def audit_finished(self, event: AuditEvent) -> None:
        pass
