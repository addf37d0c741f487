"""
Exception hierarchy of the jcheck engine.

Configuration failures are raised in layers: every layer that wraps an error
adds one ``(layer, detail)`` pair and keeps the wrapped error reachable through
``__cause__``. ``ConfigurationError.chain()`` walks those layers so callers can
inspect the structure instead of parsing the concatenated message.
"""

from typing import List, Optional, Sequence, Tuple


class CheckstyleError(Exception):
    """Base class of all errors raised by the engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CheckstyleError):
    """Invalid configuration detected while loading modules.

    Args:
        message: full message of this layer
        layer: name of the module or property this layer belongs to
        detail: the part of the message contributed by this layer
    """

    def __init__(self, message: str, layer: Optional[str] = None,
                 detail: Optional[str] = None):
        super().__init__(message)
        self.layer = layer
        self.detail = message if detail is None else detail

    @classmethod
    def wrap(cls, module_name: str, cause: "ConfigurationError") -> "ConfigurationError":
        """Build the ``cannot initialize module`` layer around ``cause``."""
        detail = f"cannot initialize module {module_name}"
        error = cls(f"{detail} - {cause.message}", layer=module_name, detail=detail)
        error.__cause__ = cause
        return error

    def chain(self) -> List[Tuple[Optional[str], str]]:
        """Return ``(layer, detail)`` pairs from the outermost error inwards."""
        pairs: List[Tuple[Optional[str], str]] = []
        error: Optional[BaseException] = self
        while error is not None:
            if isinstance(error, ConfigurationError):
                pairs.append((error.layer, error.detail))
            else:
                pairs.append((type(error).__name__, str(error)))
            error = error.__cause__
        return pairs

    @property
    def root_cause(self) -> BaseException:
        error: BaseException = self
        while error.__cause__ is not None:
            error = error.__cause__
        return error


class PropertyError(ConfigurationError):
    """A property value could not be converted or applied."""

    def __init__(self, name: str, value: str, reason: Optional[str] = None):
        message = reason or f"Cannot set property '{name}' to '{value}'"
        super().__init__(message, layer=name)
        self.property_name = name
        self.value = value


class ModuleInstantiationError(ConfigurationError):
    """No registered module matched any candidate name."""

    def __init__(self, name: str, attempted: Sequence[str]):
        candidates = ", ".join(attempted)
        super().__init__(
            f"Unable to instantiate '{name}' class, it is also not possible to "
            f"instantiate it as {candidates}.",
            layer=name,
        )
        self.name = name
        self.attempted = tuple(attempted)


class JavaSyntaxError(CheckstyleError):
    """The parser rejected the source text."""

    def __init__(self, line: int, column: int, detail: str):
        super().__init__(f"{line}:{column}: {detail}")
        self.line = line
        self.column = column
        self.detail = detail


class CheckRuntimeError(CheckstyleError):
    """A check raised while processing a file, at a node when one is known."""

    def __init__(self, module: str, line: Optional[int], column: Optional[int],
                 cause: BaseException, path: Optional[str] = None):
        location = f" on node at {line}:{column}" if line is not None else ""
        prefix = f"{path}: " if path else ""
        super().__init__(
            f"{prefix}{module} failed{location}: {type(cause).__name__}: {cause}"
        )
        self.module = module
        self.line = line
        self.column = column
        self.path = path


class XpathError(CheckstyleError):
    """A query string is not valid in the supported xpath subset."""

    def __init__(self, query: str, position: int, detail: str):
        super().__init__(f"Invalid xpath '{query}' at position {position}: {detail}")
        self.query = query
        self.position = position
