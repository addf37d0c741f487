"""
Tests for xpath suppression queries: generation, the generated file and the
SuppressionXpathFilter that reads it.
"""

import io
import os

import pytest

from jcheck.checker import Checker
from jcheck.config import module_config
from jcheck.errors import ConfigurationError
from jcheck.listeners import OutputStreamOptions
from jcheck.tokens import TokenType
from jcheck.tree import DetailNode
from jcheck import xpath_suppressions
from jcheck.xpath_suppressions import (
    SUPPRESSIONS_FOOTER,
    SUPPRESSIONS_HEADER,
    XpathFileGeneratorAuditListener,
    XpathQueryGenerator,
    parse_line_column,
    print_suppressions,
)

from helpers import run_checker, tree_walker_config

SOURCE = """
    public class Service {
        void run() {
            int count = 5;
        }
        void other() {
            int limit = 7;
        }
    }
"""

SERVICE = "/COMPILATION_UNIT/CLASS_DEF[./IDENT[@text='Service']]/OBJBLOCK"
COUNT = SERVICE + "/METHOD_DEF[./IDENT[@text='run']]/SLIST/VARIABLE_DEF[./IDENT[@text='count']]"
LIMIT = SERVICE + "/METHOD_DEF[./IDENT[@text='other']]/SLIST/VARIABLE_DEF[./IDENT[@text='limit']]"


def suppressions_file(tmp_path, *entries):
    path = tmp_path / "suppressions.xml"
    path.write_text('<?xml version="1.0"?>\n<suppressions>\n' + "\n".join(entries)
                    + "\n</suppressions>\n", encoding="utf-8")
    return str(path)


def filtered(tmp_path, *entries, **check_properties):
    return tree_walker_config(
        module_config("MagicNumber", **check_properties),
        module_config("SuppressionXpathFilter", file=suppressions_file(tmp_path, *entries)),
    )


class TestQueryGeneration:

    def test_parse_line_column(self):
        assert parse_line_column("3:21") == (3, 21)
        with pytest.raises(ValueError) as excinfo:
            parse_line_column("3")
        assert str(excinfo.value) == "3 does not match valid format 'line:column'."

    def test_single_node(self, java_file):
        path = java_file(SOURCE, name="Service.java")

        assert print_suppressions(path, "3:21") == COUNT + "/NUM_INT[@text='5']\n"

    def test_every_node_starting_at_position(self, java_file):
        path = java_file(SOURCE, name="Service.java")

        assert print_suppressions(path, "3:9").splitlines() == [
            COUNT,
            COUNT + "/TYPE",
            COUNT + "/TYPE/LITERAL_INT",
        ]

    def test_no_node_at_position(self, java_file):
        path = java_file(SOURCE, name="Service.java")

        assert print_suppressions(path, "3:2") == ""

    def test_tab_width(self, java_file):
        path = java_file("class A {\n\tint x;\n}\n")

        assert print_suppressions(path, "2:9", tab_width=8) != ""
        assert print_suppressions(path, "2:5", tab_width=4) != ""
        assert print_suppressions(path, "2:5", tab_width=8) == ""

    def test_quoting(self):
        root = DetailNode(TokenType.COMPILATION_UNIT, "COMPILATION_UNIT", 1, 0)
        single = root.add_child(DetailNode(TokenType.STRING_LITERAL, '"it\'s"', 1, 0))
        both = root.add_child(DetailNode(TokenType.STRING_LITERAL, '"it\'s \\"x\\""', 1, 10))

        assert XpathQueryGenerator.query_for(single) == \
            "/COMPILATION_UNIT/STRING_LITERAL[@text=\"it's\"]"
        assert XpathQueryGenerator.query_for(both) == "/COMPILATION_UNIT/STRING_LITERAL"


class TestSuppressionsFileGeneration:

    def generate(self, *paths, filters=(), **checker_properties):
        config = module_config(
            "Checker",
            module_config("TreeWalker", module_config("MagicNumber"),
                          module_config("XpathFileGeneratorAstFilter")),
            *filters,
            **checker_properties,
        )
        output = io.StringIO()
        checker = Checker()
        checker.configure(config)
        checker.add_listener(XpathFileGeneratorAuditListener(output, OutputStreamOptions.NONE))
        try:
            checker.process(list(paths))
        finally:
            checker.destroy()
        return output.getvalue()

    def test_generated_file(self, java_file):
        path = java_file(SOURCE, name="Service.java")

        def entry(query):
            return ("<suppress-xpath\n"
                    '       files="Service.java"\n'
                    '       checks="MagicNumberCheck"\n'
                    f'       query="{query.replace(chr(39), "&apos;")}"/>\n')

        assert self.generate(path) == (
            SUPPRESSIONS_HEADER
            + entry(COUNT + "/NUM_INT[@text='5']")
            + entry(LIMIT + "/NUM_INT[@text='7']")
            + SUPPRESSIONS_FOOTER
        )

    def test_nothing_written_without_violations(self, java_file):
        path = java_file("class A {}\n")

        assert self.generate(path) == ""

    def test_equal_violations_in_parallel_files(self, java_file):
        paths = [java_file(SOURCE, name=name) for name in ("A.java", "B.java")]

        generated = self.generate(*paths, jobs=2)

        assert generated.count('files="A.java"') == 2
        assert generated.count('files="B.java"') == 2

    def test_queries_of_filtered_violations_are_discarded(self, java_file):
        path = java_file(SOURCE.replace("int count = 5;",
                                        "int count = 5; // jcheck:ignore[MagicNumber]"),
                         name="Service.java")

        generated = self.generate(path, filters=[module_config("SuppressWithInlineComment")])

        assert "count" not in generated
        assert "@text='7'" in generated
        assert not [key for key in xpath_suppressions._generated_queries
                    if key[0] == os.path.abspath(path)]

    def test_generated_file_suppresses_everything(self, java_file, tmp_path):
        path = java_file(SOURCE, name="Service.java")
        generated = tmp_path / "generated.xml"
        generated.write_text(self.generate(path), encoding="utf-8")
        config = tree_walker_config(
            module_config("MagicNumber"),
            module_config("SuppressionXpathFilter", file=str(generated)))

        count, listener = run_checker(config, [path])

        assert count == 0
        assert listener.errors == []


class TestSuppressionXpathFilter:

    def test_query_limits_suppression(self, java_file, tmp_path):
        path = java_file(SOURCE, name="Service.java")
        config = filtered(tmp_path, '<suppress-xpath checks="MagicNumber" '
                                    "query=\"//METHOD_DEF[./IDENT[@text='run']]//NUM_INT\"/>")

        _, listener = run_checker(config, [path])

        assert listener.messages() == ["6:21: '7' is a magic number."]

    @pytest.mark.parametrize("entry, remaining", [
        ('<suppress checks="MagicNumber" files="Other\\.java$"/>', 2),
        ('<suppress checks="MagicNumber" files="Service"/>', 0),
        ('<suppress checks="TypeName"/>', 2),
        ('<suppress checks="MagicNumberCheck"/>', 0),
        ("<suppress message=\"'7'\"/>", 1),
    ])
    def test_attributes(self, java_file, tmp_path, entry, remaining):
        path = java_file(SOURCE, name="Service.java")

        count, _ = run_checker(filtered(tmp_path, entry), [path])

        assert count == remaining

    def test_module_id(self, java_file, tmp_path):
        path = java_file(SOURCE, name="Service.java")

        count, _ = run_checker(filtered(tmp_path, '<suppress id="magic"/>', id="magic"), [path])
        assert count == 0
        count, _ = run_checker(filtered(tmp_path, '<suppress id="magic"/>'), [path])
        assert count == 2

    def test_missing_file(self, tmp_path):
        missing = str(tmp_path / "missing.xml")
        config = tree_walker_config(module_config("SuppressionXpathFilter", file=missing))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert excinfo.value.message == (
            "cannot initialize module TreeWalker - cannot initialize module "
            f"SuppressionXpathFilter - Unable to find: {missing}")

    def test_optional_missing_file(self, java_file, tmp_path):
        path = java_file(SOURCE, name="Service.java")
        config = tree_walker_config(
            module_config("MagicNumber"),
            module_config("SuppressionXpathFilter", file=str(tmp_path / "missing.xml"),
                          optional=True))

        count, _ = run_checker(config, [path])

        assert count == 2

    @pytest.mark.parametrize("entry, detail", [
        ('<suppress files="Service"/>', "missing checks or id or message attribute"),
        ('<suppress checks="("/>', "missing ), unterminated subpattern"),
        ('<suppress-xpath checks="MagicNumber" query="//["/>', "Invalid xpath"),
    ])
    def test_invalid_entries(self, tmp_path, entry, detail):
        path = suppressions_file(tmp_path, entry)
        config = tree_walker_config(module_config("SuppressionXpathFilter", file=path))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert f"Unable to parse {path} - " in excinfo.value.message
        assert detail in excinfo.value.message

    def test_malformed_xml(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<suppressions>", encoding="utf-8")
        config = tree_walker_config(module_config("SuppressionXpathFilter", file=str(path)))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert f"Unable to parse {path} - " in excinfo.value.message
