"""
Configuration loading for jcheck.

A configuration file is a YAML tree of modules::

    module: Checker
    properties:
      severity: warning
    children:
      - module: TreeWalker
        children:
          - module: CustomImportOrder
            properties:
              customImportOrderRules: STATIC###THIRD_PARTY_PACKAGE

The document is validated with pydantic and frozen into ``Configuration``
objects, which stay immutable for the rest of the run.
"""

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigurationError

CONFIG_FILE_NAMES = ["jcheck.yaml", "jcheck.yml", ".jcheck.yaml", ".jcheck.yml"]

_PLACEHOLDER = re.compile(r"\$\{([^}]*)\}")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    return str(value)


class ModuleSpec(BaseModel):
    """Schema of one module entry in a configuration file."""

    model_config = ConfigDict(extra="forbid")

    module: str
    properties: Dict[str, str] = {}
    messages: Dict[str, str] = {}
    children: List["ModuleSpec"] = []

    @field_validator("properties", "messages", mode="before")
    @classmethod
    def _stringify_values(cls, value: Any) -> Dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("must be a mapping")
        return {str(key): _stringify(item) for key, item in value.items() if item is not None}

    @field_validator("children", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


ModuleSpec.model_rebuild()


@dataclass(frozen=True)
class Configuration:
    """Immutable configuration of one module and its nested modules."""

    name: str
    properties: Mapping[str, str] = field(default_factory=dict)
    children: Tuple["Configuration", ...] = ()
    messages: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "messages", MappingProxyType(dict(self.messages)))
        object.__setattr__(self, "children", tuple(self.children))

    def get_property(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.properties.get(name, default)

    def find_child(self, name: str) -> Optional["Configuration"]:
        for child in self.children:
            if child.name == name:
                return child
        return None


def module_config(name: str, *children: Configuration,
                  messages: Optional[Dict[str, str]] = None, **properties: Any) -> Configuration:
    """Build a ``Configuration`` in code; property values are stringified."""
    return Configuration(
        name=name,
        properties={key: _stringify(value) for key, value in properties.items()},
        children=children,
        messages=messages or {},
    )


def substitute(value: str, properties: Mapping[str, str]) -> str:
    """Replace ``${name}`` placeholders from ``properties``."""
    def replace(match: "re.Match") -> str:
        name = match.group(1)
        if name not in properties:
            raise ConfigurationError(f"Property ${{{name}}} has not been set", layer=name)
        return properties[name]

    return _PLACEHOLDER.sub(replace, value)


def _freeze(spec: ModuleSpec, properties: Mapping[str, str]) -> Configuration:
    return Configuration(
        name=spec.module,
        properties={key: substitute(value, properties) for key, value in spec.properties.items()},
        children=tuple(_freeze(child, properties) for child in spec.children),
        messages=dict(spec.messages),
    )


def parse_configuration(text: str, properties: Optional[Mapping[str, str]] = None,
                        source: str = "<string>") -> Configuration:
    """
    Parse a YAML configuration document.

    Args:
        text: YAML content
        properties: values for ``${name}`` placeholders
        source: name used in error messages

    Returns:
        Root ``Configuration``

    Raises:
        ConfigurationError: on YAML syntax errors, schema violations or
            unresolved placeholders
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"unable to parse configuration stream - {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"unable to parse configuration stream - {source} is not a module mapping")
    try:
        spec = ModuleSpec.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration {source} - {e}") from e
    return _freeze(spec, properties or {})


def load_configuration(config_path: str,
                       properties: Optional[Mapping[str, str]] = None) -> Configuration:
    """Load a configuration file from disk."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigurationError(f"Unable to find: {config_path}") from e
    return parse_configuration(text, properties, source=config_path)


def load_properties(path: str) -> Dict[str, str]:
    """
    Read a ``key=value`` properties file.

    Blank lines and lines starting with ``#`` or ``!`` are ignored; ``:`` is
    accepted as separator too.
    """
    result: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line[0] in "#!":
                continue
            match = re.match(r"([^=:\s]+)\s*[=:]?\s*(.*)", line)
            if match:
                result[match.group(1)] = match.group(2)
    return result


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by walking up the directory tree.

    Args:
        start_path: Directory (or file) to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)
    if os.path.isfile(current_path):
        current_path = os.path.dirname(current_path)

    while True:
        for config_name in CONFIG_FILE_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            break
        current_path = parent_path

    return None
