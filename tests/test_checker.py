"""
Tests for the Checker: error counting, severities, failures and parallel runs.
"""

import pytest

from jcheck.api import AbstractFileSetCheck
from jcheck.checker import Checker
from jcheck.config import module_config
from jcheck.errors import CheckRuntimeError, CheckstyleError, ConfigurationError, JavaSyntaxError
from jcheck.registry import register_module
from jcheck.types import Severity

from helpers import run_checker, tree_walker_config

STAR_IMPORT = "import java.util.*;\nclass A {}\n"
BROKEN = "class A {\n    int x = ;\n}\n"


def avoid_star(**properties):
    return tree_walker_config(module_config("AvoidStarImport", **properties))


@register_module
class ExplodingFileCheck(AbstractFileSetCheck):
    """Raises a plain exception on files mentioning ``explode``."""

    def process_filtered(self, path, file_text):
        if "explode" in file_text.text:
            raise RuntimeError("exploded")


class TestErrorCount:

    def test_counts_errors_over_files(self, java_file):
        first = java_file(STAR_IMPORT, name="A.java")
        second = java_file(STAR_IMPORT, name="B.java")

        count, listener = run_checker(avoid_star(), [first, second])

        assert count == 2
        assert listener.events == [
            ("audit_started",),
            ("file_started", first),
            ("add_error", first, 1),
            ("file_finished", first),
            ("file_started", second),
            ("add_error", second, 1),
            ("file_finished", second),
            ("audit_finished",),
        ]

    def test_clean_file(self, java_file):
        path = java_file("import java.util.List;\nclass A {}\n")

        count, listener = run_checker(avoid_star(), [path])

        assert count == 0
        assert listener.events == [
            ("audit_started",), ("file_started", path), ("file_finished", path), ("audit_finished",),
        ]

    def test_file_extensions(self, java_file):
        source = java_file(STAR_IMPORT)
        other = java_file(STAR_IMPORT, name="notes.txt")
        config = tree_walker_config(module_config("AvoidStarImport"), fileExtensions="java")

        count, listener = run_checker(config, [other, source])

        assert count == 1
        assert [event for event in listener.events if event[0] == "file_started"] == [
            ("file_started", source),
        ]


class TestSeverity:

    def test_warnings_are_reported_but_not_counted(self, java_file):
        path = java_file(STAR_IMPORT)

        count, listener = run_checker(avoid_star(severity="warning"), [path])

        assert count == 0
        assert [event.severity for event in listener.errors] == [Severity.WARNING]

    def test_checker_severity_is_inherited(self, java_file):
        path = java_file(STAR_IMPORT)
        config = tree_walker_config(module_config("AvoidStarImport"), severity="info")

        count, listener = run_checker(config, [path])

        assert count == 0
        assert listener.errors[0].severity is Severity.INFO

    def test_ignored_violations_are_dropped(self, java_file):
        path = java_file(STAR_IMPORT)

        count, listener = run_checker(avoid_star(severity="ignore"), [path])

        assert count == 0
        assert listener.errors == []

    def test_unknown_severity(self):
        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(avoid_star(severity="fatal"))

        assert str(excinfo.value.root_cause) == "Unknown severity level: fatal"

    def test_module_id(self, java_file):
        path = java_file(STAR_IMPORT)

        _, listener = run_checker(avoid_star(id="noStars"), [path])

        assert listener.errors[0].module_id == "noStars"
        assert listener.errors[0].source_name == "AvoidStarImport"


class TestFailures:

    def test_syntax_error_does_not_stop_the_audit(self, java_file):
        broken = java_file(BROKEN, name="Broken.java")
        good = java_file(STAR_IMPORT, name="Good.java")

        count, listener = run_checker(avoid_star(), [broken, good])

        assert count == 2
        assert listener.events == [
            ("audit_started",),
            ("file_started", broken),
            ("add_exception", broken),
            ("file_finished", broken),
            ("file_started", good),
            ("add_error", good, 1),
            ("file_finished", good),
            ("audit_finished",),
        ]
        _, error = listener.exceptions[0]
        assert error.message == f"Exception was thrown while processing {broken}"
        assert isinstance(error.__cause__, JavaSyntaxError)

    def test_missing_file(self, tmp_path):
        missing = str(tmp_path / "Missing.java")

        count, listener = run_checker(avoid_star(), [missing])

        assert count == 1
        _, error = listener.exceptions[0]
        assert isinstance(error.__cause__, OSError)

    def test_halt_on_exception(self, java_file):
        broken = java_file(BROKEN)
        checker = Checker()
        checker.configure(module_config(
            "Checker", module_config("TreeWalker", module_config("AvoidStarImport")),
            haltOnException=True))

        with pytest.raises(CheckstyleError) as excinfo:
            checker.process([broken])
        checker.destroy()

        assert isinstance(excinfo.value.__cause__, JavaSyntaxError)

    def test_file_set_check_failure_names_check_and_file(self, java_file):
        bad = java_file("// explode\nclass A {}\n", name="Bad.java")
        good = java_file(STAR_IMPORT, name="Good.java")
        config = module_config(
            "Checker",
            module_config("TreeWalker", module_config("AvoidStarImport")),
            module_config(f"{__name__}.ExplodingFileCheck"),
        )

        count, listener = run_checker(config, [bad, good])

        assert count == 2
        assert [event[0] for event in listener.events if event[1:2] == (good,)] == [
            "file_started", "add_error", "file_finished",
        ]
        (event, error), = listener.exceptions
        assert error.message == f"Exception was thrown while processing {bad}"
        cause = error.__cause__
        assert isinstance(cause, CheckRuntimeError)
        assert cause.path == bad
        assert str(cause) == f"{bad}: {__name__}.ExplodingFileCheck failed: RuntimeError: exploded"
        assert isinstance(cause.__cause__, RuntimeError)

    @pytest.mark.parametrize("name, value", [("charset", "no-such-charset"), ("jobs", "0")])
    def test_invalid_checker_properties(self, name, value):
        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(module_config("Checker", **{name: value}))

        assert excinfo.value.message == f"Cannot set property '{name}' to '{value}'"


class TestParallel:

    def test_parallel_output_matches_sequential(self, java_file):
        sources = {
            "A.java": STAR_IMPORT,
            "B.java": "import java.util.List;\nclass B {}\n",
            "C.java": BROKEN,
            "D.java": "import java.io.*;\nimport javax.swing.*;\nclass D {}\n",
        }
        paths = [java_file(text, name=name) for name, text in sources.items()]

        sequential = run_checker(avoid_star(), paths)
        parallel = run_checker(
            tree_walker_config(module_config("AvoidStarImport"), jobs=3), paths)

        assert sequential[0] == parallel[0] == 4
        assert sequential[1].events == parallel[1].events
        assert sequential[1].messages() == parallel[1].messages()


class TestFixtureAudit:

    def test_several_checks_over_one_file(self, fixtures_dir):
        path = str(fixtures_dir / "InputMixed.java")
        config = tree_walker_config(module_config("AvoidStarImport"),
                                    module_config("MagicNumber"),
                                    module_config("NestedForDepth"))

        count, listener = run_checker(config, [path])

        assert count == 3
        assert listener.messages() == [
            "3:8: Using the '.*' form of import should be avoided - java.util.*.",
            "13:17: Nested for depth is 2 (max allowed is 1).",
            "13:37: '3' is a magic number.",
        ]
