"""
Registry for jcheck modules.

Module classes register themselves with the ``register_module`` decorator
when their Python module is imported; ``discover_modules`` imports every
submodule of the given packages so that all decorators run. Names from a
configuration are resolved by ``ModuleFactory`` against the registered names,
trying an ordered list of package prefixes.
"""

import importlib
import logging
import pkgutil
from typing import Dict, List, Optional, Sequence, Type

from .api import Module, ModuleKind
from .errors import ConfigurationError, ModuleInstantiationError

logger = logging.getLogger(__name__)

DEFAULT_PACKAGES = ["jcheck", "jcheck_rules"]

# Parent kind -> kinds it may contain. Kinds missing here accept no children.
ALLOWED_CHILDREN: Dict[ModuleKind, frozenset] = {
    ModuleKind.CHECKER: frozenset({ModuleKind.FILESET, ModuleKind.TREE_WALKER, ModuleKind.FILTER}),
    ModuleKind.TREE_WALKER: frozenset({ModuleKind.CHECK, ModuleKind.TREE_WALKER_FILTER}),
}

ModuleClass = Type[Module]


class Registry:
    """Maps fully qualified names to module classes."""

    def __init__(self):
        self._modules: Dict[str, ModuleClass] = {}

    def register_module(self, module_class: ModuleClass) -> ModuleClass:
        """Register a class under its full dotted path and its package alias."""
        qualified = f"{module_class.__module__}.{module_class.__name__}"
        package = module_class.__module__.split(".")[0]
        for key in (qualified, f"{package}.{module_class.__name__}"):
            existing = self._modules.get(key)
            if existing is not None and existing is not module_class:
                logger.warning("Module name %s already registered by %s", key, existing)
                continue
            self._modules[key] = module_class
        return module_class

    def get(self, qualified_name: str) -> Optional[ModuleClass]:
        return self._modules.get(qualified_name)

    def names(self) -> List[str]:
        return sorted(self._modules)

    def discover_modules(self, entry_packages: Sequence[str]) -> int:
        """
        Import every submodule of the given packages.

        Args:
            entry_packages: List of package names to discover from

        Returns:
            Number of module names registered by the discovery
        """
        initial_count = len(self._modules)
        for package_name in entry_packages:
            self._discover_from_package(package_name)
        return len(self._modules) - initial_count

    def _discover_from_package(self, package_name: str) -> None:
        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            logger.warning("Could not import package %s: %s", package_name, e)
            return

        if hasattr(package, "__path__"):
            for _, modname, _ in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
                if modname.endswith("__main__"):
                    continue
                importlib.import_module(modname)

    def clear(self) -> None:
        self._modules.clear()


_global_registry = Registry()


def register_module(module_class: ModuleClass) -> ModuleClass:
    """Class decorator registering a module in the global registry."""
    return _global_registry.register_module(module_class)


def discover_modules(entry_packages: Sequence[str]) -> int:
    return _global_registry.discover_modules(entry_packages)


def get_registry() -> Registry:
    return _global_registry


class ModuleFactory:
    """Creates modules by configured name.

    Args:
        packages: package prefixes tried in order for short names
        registry: registry to resolve against (the global one by default)
    """

    def __init__(self, packages: Optional[Sequence[str]] = None,
                 registry: Optional[Registry] = None):
        self.packages = list(packages if packages is not None else DEFAULT_PACKAGES)
        self.registry = registry or _global_registry

    def candidates(self, name: str) -> List[str]:
        """Fully qualified names tried for ``name``, in order."""
        names = [name]
        if not name.endswith("Check"):
            names.append(name + "Check")
        result = list(names)
        for package in self.packages:
            result.extend(f"{package}.{candidate}" for candidate in names)
        return result

    def resolve(self, name: str) -> ModuleClass:
        attempted = self.candidates(name)
        for candidate in attempted:
            module_class = self.registry.get(candidate)
            if module_class is not None:
                logger.debug("Resolved module %s as %s", name, candidate)
                return module_class
        raise ModuleInstantiationError(name, attempted)

    def create_module(self, name: str) -> Module:
        """
        Instantiate the module registered for ``name``.

        Raises:
            ModuleInstantiationError: if no candidate resolves or construction fails
        """
        module_class = self.resolve(name)
        try:
            return module_class()
        except Exception as e:
            raise ModuleInstantiationError(
                name, [f"{module_class.__module__}.{module_class.__name__}"]) from e


def check_nesting(parent: Module, child: Module, child_name: str) -> None:
    """
    Reject a child module whose kind the parent may not contain.

    Raises:
        ConfigurationError: ``<child> is not allowed as a child in <parent>``
    """
    if child.kind not in ALLOWED_CHILDREN.get(parent.kind, frozenset()):
        raise ConfigurationError(f"{child_name} is not allowed as a child in {parent.name}",
                                 layer=parent.name)
