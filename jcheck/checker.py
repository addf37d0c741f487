"""
Checker: root module of an audit.

The checker owns the file-set checks, the filters and the listeners. It reads
every file once, hands the text to each file-set check, merges and sorts their
violations, filters them and reports the result to the listeners. Events for a
file are always emitted in the order ``file_started``, ``add_error``...,
``add_exception``, ``file_finished``, and files are reported in input order
even when they are processed in parallel.
"""

import codecs
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

from . import messages
from .api import (
    AbstractFileSetCheck,
    AuditListener,
    Filter,
    Module,
    ModuleContext,
    ModuleKind,
    to_bool,
    to_int,
    to_str_list,
)
from .config import Configuration
from .errors import CheckRuntimeError, CheckstyleError, ConfigurationError
from .registry import ModuleFactory, register_module
from .settings import get_settings
from .types import AuditEvent, FileText, Severity, Violation, sort_violations

logger = logging.getLogger(__name__)

FileResult = Tuple[List[Violation], Optional[CheckstyleError]]


@register_module
class Checker(Module):
    """Root of the module tree.

    Args:
        factory: resolves module names; a default ``ModuleFactory`` if omitted
    """

    kind = ModuleKind.CHECKER

    def __init__(self, factory: Optional[ModuleFactory] = None):
        super().__init__()
        settings = get_settings()
        self.factory = factory or ModuleFactory()
        self.severity = Severity.from_name(settings.severity)
        self.tab_width = settings.tab_width
        self.charset = settings.charset
        self.jobs = settings.jobs
        self.locale_language = settings.locale_language
        self.locale_country = settings.locale_country
        self.file_extensions: List[str] = []
        self.halt_on_exception = False
        self.file_set_checks: List[AbstractFileSetCheck] = []
        self.filters: List[Filter] = []
        self.listeners: List[AuditListener] = []

    # Properties

    def set_tab_width(self, value: str) -> None:
        self.tab_width = to_int(value)

    def set_charset(self, value: str) -> None:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unsupported charset: {value}") from e
        self.charset = value

    def set_file_extensions(self, value: str) -> None:
        self.file_extensions = [ext if ext.startswith(".") else "." + ext
                                for ext in to_str_list(value)]

    def set_locale_language(self, value: str) -> None:
        self.locale_language = value

    def set_locale_country(self, value: str) -> None:
        self.locale_country = value

    def set_halt_on_exception(self, value: str) -> None:
        self.halt_on_exception = to_bool(value)

    def set_jobs(self, value: str) -> None:
        jobs = to_int(value)
        if jobs < 1:
            raise ValueError("jobs must be positive")
        self.jobs = jobs

    # Lifecycle

    def configure(self, configuration: Configuration) -> None:
        """Configure the module tree; modules created so far are destroyed on failure."""
        try:
            super().configure(configuration)
        except ConfigurationError:
            self.destroy()
            raise

    def finish_local_setup(self) -> None:
        messages.set_locale(self.locale_language, self.locale_country)
        self.context = ModuleContext(
            factory=self.factory,
            severity=self.severity,
            tab_width=self.tab_width,
            charset=self.charset,
        )

    def child_context(self) -> ModuleContext:
        return self.context

    def add_child(self, child: Module) -> None:
        if isinstance(child, AbstractFileSetCheck):
            self.file_set_checks.append(child)
        elif isinstance(child, Filter):
            self.filters.append(child)

    def add_listener(self, listener: AuditListener) -> None:
        self.listeners.append(listener)

    def add_filter(self, audit_filter: Filter) -> None:
        self.filters.append(audit_filter)

    def destroy(self) -> None:
        super().destroy()
        self.file_set_checks = []
        self.filters = []
        self.children = []

    # Processing

    def process(self, files: Sequence[str]) -> int:
        """
        Audit ``files``.

        Returns:
            Number of reported errors: violations of severity error that passed
            the filters, plus files that failed with an exception
        """
        paths = [os.path.abspath(path) for path in files if self._accepts(path)]
        logger.info("Auditing %d file(s) with %d job(s)", len(paths), self.jobs)
        self._fire(lambda listener: listener.audit_started(AuditEvent()))
        for check in self.file_set_checks:
            check.begin_processing(self.charset)

        error_count = 0
        if self.jobs > 1 and len(paths) > 1:
            for path, result in zip(paths, self._process_parallel(paths)):
                error_count += self._report(path, result)
        else:
            for path in paths:
                self._fire(lambda listener: listener.file_started(AuditEvent(path)))
                error_count += self._report(path, self._process_file(path, self.file_set_checks),
                                            started=True)

        for check in self.file_set_checks:
            check.finish_processing()
        self._fire(lambda listener: listener.audit_finished(AuditEvent()))
        logger.info("Audit finished with %d error(s)", error_count)
        return error_count

    def _accepts(self, path: str) -> bool:
        return not self.file_extensions or any(path.endswith(ext) for ext in self.file_extensions)

    def _process_file(self, path: str,
                      checks: Iterable[AbstractFileSetCheck]) -> FileResult:
        try:
            file_text = FileText.read(path, self.charset)
            violations: List[Violation] = []
            for check in checks:
                violations.extend(self._run_check(check, path, file_text))
        except (CheckstyleError, OSError) as e:
            error = CheckstyleError(f"Exception was thrown while processing {path}")
            if self.halt_on_exception:
                raise error from e
            error.__cause__ = e
            logger.debug("Processing %s failed: %s", path, e)
            return [], error
        return sort_violations(violations), None

    @staticmethod
    def _run_check(check: AbstractFileSetCheck, path: str,
                   file_text: FileText) -> List[Violation]:
        try:
            return check.process(path, file_text)
        except CheckstyleError:
            raise
        except Exception as e:
            raise CheckRuntimeError(check.name, None, None, e, path=path) from e

    def _process_parallel(self, paths: List[str]) -> List[FileResult]:
        """Process files on worker threads, each thread with its own module instances."""
        local = threading.local()
        created: List[List[AbstractFileSetCheck]] = []
        lock = threading.Lock()

        def worker_checks() -> List[AbstractFileSetCheck]:
            checks = getattr(local, "checks", None)
            if checks is None:
                checks = self._create_file_set_checks()
                with lock:
                    created.append(checks)
                local.checks = checks
            return checks

        def run(path: str) -> FileResult:
            return self._process_file(path, worker_checks())

        try:
            with ThreadPoolExecutor(max_workers=self.jobs) as executor:
                return list(executor.map(run, paths))
        finally:
            for checks in created:
                for check in checks:
                    check.destroy()

    def _create_file_set_checks(self) -> List[AbstractFileSetCheck]:
        checks = []
        for child_configuration in self.configuration.children:
            child = self.factory.create_module(child_configuration.name)
            if not isinstance(child, AbstractFileSetCheck):
                continue
            child.contextualize(self.context)
            child.configure(child_configuration)
            child.begin_processing(self.charset)
            checks.append(child)
        return checks

    def _report(self, path: str, result: FileResult, started: bool = False) -> int:
        violations, error = result
        if not started:
            self._fire(lambda listener: listener.file_started(AuditEvent(path)))
        count = 0
        for violation in violations:
            if violation.severity is Severity.IGNORE:
                continue
            event = AuditEvent(path, violation)
            if not all(f.accept(event) for f in self.filters):
                continue
            if violation.severity is Severity.ERROR:
                count += 1
            self._fire(lambda listener: listener.add_error(event))
        if error is not None:
            count += 1
            self._fire(lambda listener: listener.add_exception(AuditEvent(path), error))
        self._fire(lambda listener: listener.file_finished(AuditEvent(path)))
        return count

    def _fire(self, notify) -> None:
        for listener in self.listeners:
            notify(listener)
