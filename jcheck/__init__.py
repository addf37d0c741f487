"""
jcheck: a rule-driven static analysis engine for Java sources.

This package provides the engine: configuration loading, module creation,
the tree-sitter based Java parser, the tree walker that dispatches syntax
tree nodes to checks, filters and audit listeners. Checks live in
``jcheck_rules``.
"""

__version__ = "0.4.0"

from .types import AuditEvent, FileText, Severity, Violation

from .errors import (
    CheckRuntimeError, CheckstyleError, ConfigurationError, JavaSyntaxError,
    ModuleInstantiationError, PropertyError, XpathError
)

from .api import (
    AbstractCheck, AbstractFileSetCheck, AuditListener, Filter, Module,
    ModuleContext, ModuleKind, TreeWalkerFilter
)

from .config import (
    Configuration, find_config_file, load_configuration, load_properties,
    module_config, parse_configuration
)

from .registry import (
    ModuleFactory, discover_modules, get_registry, register_module
)

from .checker import Checker
from .tree_walker import TreeWalker

__all__ = [
    # Types
    "AuditEvent", "FileText", "Severity", "Violation",

    # Errors
    "CheckRuntimeError", "CheckstyleError", "ConfigurationError", "JavaSyntaxError",
    "ModuleInstantiationError", "PropertyError", "XpathError",

    # Module contracts
    "AbstractCheck", "AbstractFileSetCheck", "AuditListener", "Filter", "Module",
    "ModuleContext", "ModuleKind", "TreeWalkerFilter",

    # Configuration
    "Configuration", "find_config_file", "load_configuration", "load_properties",
    "module_config", "parse_configuration",

    # Registry
    "ModuleFactory", "discover_modules", "get_registry", "register_module",

    # Engine
    "Checker", "TreeWalker",
]
