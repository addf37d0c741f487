"""
Tests for the TreeWalker: subscriptions, traversal order and error handling.
"""

import pytest

from jcheck.api import AbstractCheck
from jcheck.checker import Checker
from jcheck.config import module_config
from jcheck.errors import CheckRuntimeError, ConfigurationError
from jcheck.tokens import TokenType
from jcheck.tree_walker import TreeWalker
from jcheck.registry import register_module
from jcheck.types import FileText
from jcheck_rules.coding_magic_number import MagicNumberCheck

from helpers import run_checker, tree_walker_config

NESTED_SOURCE = "class A {\n  void f() {}\n  class B {\n    void g() {}\n  }\n}\n"


class RecordingCheck(AbstractCheck):
    """Records every hook call as a tuple."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def acceptable_tokens(self):
        return [TokenType.CLASS_DEF, TokenType.METHOD_DEF]

    def begin_tree(self, root):
        self.calls.append(("begin", root.type.name))

    def visit(self, node):
        self.calls.append(("visit", node.find_first_token(TokenType.IDENT).text))

    def leave(self, node):
        self.calls.append(("leave", node.find_first_token(TokenType.IDENT).text))

    def finish_tree(self, root):
        self.calls.append(("finish", root.type.name))


class CommentCheck(AbstractCheck):

    def __init__(self):
        super().__init__()
        self.comments = []

    def acceptable_tokens(self):
        return [TokenType.SINGLE_LINE_COMMENT]

    def is_comment_nodes_required(self):
        return True

    def visit(self, node):
        self.comments.append(node.first_child.text)


class IncompleteCheck(AbstractCheck):

    def acceptable_tokens(self):
        return [TokenType.IMPORT]

    def required_tokens(self):
        return [TokenType.IMPORT, TokenType.PACKAGE_DEF]


class RequiredImportCheck(AbstractCheck):

    def acceptable_tokens(self):
        return [TokenType.IMPORT, TokenType.CLASS_DEF]

    def required_tokens(self):
        return [TokenType.IMPORT]


@register_module
class FailingCheck(AbstractCheck):

    def acceptable_tokens(self):
        return [TokenType.CLASS_DEF]

    def visit(self, node):
        raise KeyError("boom")


@register_module
class DestroyCountingCheck(AbstractCheck):
    destroyed = []

    def acceptable_tokens(self):
        return [TokenType.CLASS_DEF]

    def destroy(self):
        DestroyCountingCheck.destroyed.append(self)
        super().destroy()


def walk(check, source=NESTED_SOURCE):
    walker = TreeWalker()
    walker.register_check(check)
    return walker.process("A.java", FileText("A.java", source))


class TestSubscriptions:

    def test_required_tokens_must_be_acceptable(self):
        with pytest.raises(ConfigurationError) as excinfo:
            TreeWalker().register_check(IncompleteCheck())

        assert excinfo.value.message == (
            'Token "PACKAGE_DEF" from required tokens was not found in Acceptable tokens '
            "list in check IncompleteCheck")

    def test_required_tokens_are_always_subscribed(self):
        check = RequiredImportCheck()
        check.set_tokens("CLASS_DEF")

        assert check.subscribed_tokens() == {TokenType.CLASS_DEF, TokenType.IMPORT}

    def test_checks_keep_configuration_order(self):
        walker = TreeWalker()
        first, second = RecordingCheck(), RecordingCheck()
        walker.register_check(first)
        walker.register_check(second)

        assert walker.subscribers(TokenType.CLASS_DEF) == [first, second]
        assert walker.subscribers(TokenType.IMPORT) == []


class TestTraversal:

    def test_visit_and_leave_order(self):
        check = RecordingCheck()
        walk(check)

        assert check.calls == [
            ("begin", "COMPILATION_UNIT"),
            ("visit", "A"),
            ("visit", "f"),
            ("leave", "f"),
            ("visit", "B"),
            ("visit", "g"),
            ("leave", "g"),
            ("leave", "B"),
            ("leave", "A"),
            ("finish", "COMPILATION_UNIT"),
        ]

    def test_configured_token_subset(self):
        check = RecordingCheck()
        check.set_tokens("METHOD_DEF")
        walk(check)

        assert [call for call in check.calls if call[0] == "visit"] == [("visit", "f"), ("visit", "g")]

    def test_comment_nodes_on_request(self):
        check = CommentCheck()
        walk(check, "// one\nclass A {\n  // two\n}\n")

        assert check.comments == [" one", " two"]

    def test_violation_columns_expand_tabs(self):
        violations = walk(MagicNumberCheck(), "class A {\n\tint x = 5;\n}\n")

        assert len(violations) == 1
        violation = violations[0]
        assert (violation.line, violation.column, violation.column_no) == (2, 17, 9)
        assert violation.token_type is TokenType.NUM_INT

    def test_repeated_walks_are_independent(self):
        check = MagicNumberCheck()
        walker = TreeWalker()
        walker.register_check(check)
        file_text = FileText("A.java", "class A {\n  int x = 5;\n}\n")

        first = walker.process("A.java", file_text)
        second = walker.process("A.java", file_text)

        assert first == second
        assert len(second) == 1

    def test_other_extensions_are_skipped(self):
        walker = TreeWalker()
        walker.register_check(MagicNumberCheck())

        assert walker.file_extensions == [".java"]
        assert walker.process("notes.txt", FileText("notes.txt", "int x = 5;\n")) == []


class TestErrors:

    def test_check_failure_is_reported_as_exception(self, java_file):
        path = java_file("class A {}\n")
        config = tree_walker_config(module_config(f"{__name__}.FailingCheck"))

        count, listener = run_checker(config, [path])

        assert count == 1
        assert listener.errors == []
        (event, error), = listener.exceptions
        assert error.message == f"Exception was thrown while processing {path}"
        cause = error.__cause__
        assert isinstance(cause, CheckRuntimeError)
        assert (cause.line, cause.column) == (1, 0)
        assert cause.path == path
        assert str(cause) == f"{path}: {__name__}.FailingCheck failed on node at 1:0: KeyError: 'boom'"


class TestLifecycle:

    def setup_method(self):
        DestroyCountingCheck.destroyed.clear()

    def test_checks_destroyed_once_after_failure(self, java_file):
        path = java_file("class A {}\n")
        config = tree_walker_config(module_config(f"{__name__}.DestroyCountingCheck"),
                                    module_config(f"{__name__}.FailingCheck"))

        count, listener = run_checker(config, [path])

        assert count == 1
        assert len(listener.exceptions) == 1
        assert len(DestroyCountingCheck.destroyed) == 1

    def test_parallel_worker_instances_destroyed_once(self, java_file):
        paths = [java_file("class A {}\n", name=f"{name}.java") for name in ("A", "B", "C")]
        config = tree_walker_config(module_config(f"{__name__}.DestroyCountingCheck"), jobs=2)

        run_checker(config, paths)

        destroyed = DestroyCountingCheck.destroyed
        assert len(destroyed) >= 2
        assert len({id(check) for check in destroyed}) == len(destroyed)

    def test_configured_siblings_destroyed_when_configuration_aborts(self):
        config = tree_walker_config(
            module_config(f"{__name__}.DestroyCountingCheck"),
            module_config("CustomImportOrder", customImportOrderRules="SAME_PACKAGE(-1)"))
        checker = Checker()

        with pytest.raises(ConfigurationError):
            checker.configure(config)

        assert len(DestroyCountingCheck.destroyed) == 1
        assert checker.children == []
