"""
Helpers shared by the test modules: a recording listener and checker runners.
"""

from typing import List, Sequence

from jcheck.api import AuditListener
from jcheck.checker import Checker
from jcheck.config import Configuration, module_config


class CollectingListener(AuditListener):
    """Records listener events for assertions."""

    def __init__(self):
        self.events: List[tuple] = []
        self.errors = []
        self.exceptions = []

    def audit_started(self, event):
        self.events.append(("audit_started",))

    def file_started(self, event):
        self.events.append(("file_started", event.file_name))

    def add_error(self, event):
        self.events.append(("add_error", event.file_name, event.line))
        self.errors.append(event)

    def add_exception(self, event, error):
        self.events.append(("add_exception", event.file_name))
        self.exceptions.append((event, error))

    def file_finished(self, event):
        self.events.append(("file_finished", event.file_name))

    def audit_finished(self, event):
        self.events.append(("audit_finished",))

    def messages(self) -> List[str]:
        """Violations as ``line:column: message`` (``line: message`` without column)."""
        result = []
        for event in self.errors:
            location = str(event.line) if event.column is None else f"{event.line}:{event.column}"
            result.append(f"{location}: {event.message}")
        return result


def tree_walker_config(*checks: Configuration, **properties) -> Configuration:
    return module_config("Checker", module_config("TreeWalker", *checks), **properties)


def run_checker(configuration: Configuration, files: Sequence[str]):
    """Configure a ``Checker``, audit ``files`` and return ``(error_count, listener)``."""
    checker = Checker()
    checker.configure(configuration)
    listener = CollectingListener()
    checker.add_listener(listener)
    try:
        count = checker.process(files)
    finally:
        checker.destroy()
    return count, listener
