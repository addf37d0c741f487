"""
Tests for message bundles and locales.
"""

from jcheck import messages
from jcheck.config import module_config

from helpers import run_checker, tree_walker_config


class TestMessages:

    def test_format(self):
        assert messages.format_message("jcheck_rules", "maxLen.file", (10, 5)) == (
            "File length is 10 lines (max allowed is 5).")

    def test_unknown_key_renders_key(self):
        assert messages.format_message("jcheck_rules", "no.such.key") == "no.such.key"

    def test_custom_template_wins(self):
        assert messages.format_message("jcheck_rules", "maxLen.file", (10, 5),
                                       custom_template="{0} > {1}") == "10 > 5"

    def test_bad_template_is_returned_as_is(self):
        assert messages.format_message("jcheck_rules", "maxLen.file", (),
                                       custom_template="{0} > {1}") == "{0} > {1}"

    def test_locale_fallback(self):
        messages.set_locale("de", "ch")
        assert messages.get_locale() == "de_CH"
        assert messages.format_message("jcheck_rules", "magic.number", ("5",)) == (
            "'5' ist eine magische Zahl.")

        messages.set_locale("fr")
        assert messages.format_message("jcheck_rules", "magic.number", ("5",)) == (
            "'5' is a magic number.")

        messages.set_locale(None)
        assert messages.get_locale() == "en"

    def test_explicit_locale(self):
        assert messages.format_message("jcheck", "DefaultLogger.auditFinished",
                                       locale="de") == "Prüfung beendet."

    def test_bundle_without_messages(self):
        assert messages.load_bundle("jcheck.no_such_package") == {}

    def test_checker_locale(self, java_file):
        path = java_file("class A {\n  int x = 5;\n}\n")
        config = tree_walker_config(module_config("MagicNumber"), localeLanguage="de")

        _, listener = run_checker(config, [path])

        assert listener.messages() == ["2:11: '5' ist eine magische Zahl."]
