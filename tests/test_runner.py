"""
Tests for the command line runner.
"""

import pytest

from jcheck.runner import EXIT_FAILURE, EXIT_INVALID_INPUT, collect_files, main
from jcheck.settings import get_settings
from jcheck.xpath_suppressions import SUPPRESSIONS_HEADER

STAR_IMPORT_CONFIG = """
module: Checker
children:
  - module: TreeWalker
    children:
      - module: AvoidStarImport
"""


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory with default settings."""
    monkeypatch.chdir(tmp_path)
    for name in ("JCHECK_LOCALE", "JCHECK_TAB_WIDTH", "JCHECK_JOBS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def config_file(tmp_path):
    def write(text: str = STAR_IMPORT_CONFIG, name: str = "jcheck.yaml") -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return write


class TestValidation:

    @pytest.mark.parametrize("argv, message", [
        ([], "Files to process must be specified, found 0."),
        (["missing.java"], "Files to process must be specified, found 0."),
        (["-t", "-c", "jcheck.yaml", "{file}"], "Option '-t' cannot be used with other options."),
        (["-t", "-T", "{file}"], "Option '-t' cannot be used with other options."),
        (["-t", "{file}", "{other}"], "Printing AST is allowed for only one file."),
        (["-s", "1:1", "{file}", "{other}"],
         "Printing xpath suppressions is allowed for only one file."),
        (["{file}"], "Must specify a config file."),
        (["--jobs", "0", "{file}"], "--jobs must be a positive number."),
        (["-x", "(", "{file}"], "Invalid exclude pattern: "),
    ])
    def test_invalid_input(self, java_file, capsys, argv, message):
        paths = {"file": java_file("class A {}\n", name="A.java"),
                 "other": java_file("class B {}\n", name="B.java")}

        status = main([arg.format(**paths) for arg in argv])

        assert status == EXIT_INVALID_INPUT
        assert message in capsys.readouterr().err

    def test_missing_config(self, java_file, capsys):
        path = java_file("class A {}\n")

        assert main(["-c", "nope.yaml", path]) == EXIT_FAILURE
        assert capsys.readouterr().err == "Could not find config file nope.yaml.\n"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["-V"])

        assert excinfo.value.code == 0
        assert capsys.readouterr().out == "jcheck version: 0.4.0\n"


class TestAudit:

    def test_violations(self, java_file, config_file, capsys):
        path = java_file("import java.util.*;\nclass Input {}\n")

        status = main(["-c", config_file(), path])

        captured = capsys.readouterr()
        assert status == 1
        assert captured.out == (
            "Starting audit...\n"
            f"[ERROR] {path}:1:8: Using the '.*' form of import should be avoided - java.util.*."
            " [AvoidStarImport]\n"
            "Audit done.\n"
        )
        assert captured.err == "jcheck ends with 1 errors.\n"

    def test_clean_run(self, java_file, config_file, capsys):
        path = java_file("import java.util.List;\nclass Input {}\n")

        assert main(["-c", config_file(), path]) == 0
        assert capsys.readouterr().err == ""

    def test_config_found_in_parent_directory(self, java_file, config_file, tmp_path,
                                              monkeypatch, capsys):
        path = java_file("import java.util.*;\nclass Input {}\n")
        config_file()
        nested = tmp_path / "nested"
        nested.mkdir()
        monkeypatch.chdir(nested)

        assert main([path]) == 1
        assert "[AvoidStarImport]" in capsys.readouterr().out

    def test_xml_report(self, java_file, config_file, tmp_path, capsys):
        path = java_file("import java.util.*;\nclass Input {}\n")
        report = tmp_path / "report.xml"

        status = main(["-c", config_file(), "-f", "xml", "-o", str(report), path])

        assert status == 1
        content = report.read_text(encoding="utf-8")
        assert content.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<checkstyle version=')
        assert f'<file name="{path}">' in content
        assert '<error line="1" column="8" severity="error"' in content
        assert content.endswith("</checkstyle>\n")
        assert capsys.readouterr().out == ""

    def test_properties_file(self, java_file, config_file, tmp_path, capsys):
        path = java_file("class A {\n}\n")
        properties = tmp_path / "jcheck.properties"
        properties.write_text("maxLength=1\n", encoding="utf-8")
        config = config_file("module: Checker\nchildren:\n"
                             "  - module: FileLength\n    properties:\n      max: ${maxLength}\n")

        status = main(["-c", config, "-p", str(properties), path])

        assert status == 1
        assert "File length is 2 lines (max allowed is 1). [FileLength]" in capsys.readouterr().out

    def test_unresolved_property(self, java_file, config_file, capsys):
        path = java_file("class A {}\n")
        config = config_file("module: Checker\nchildren:\n"
                             "  - module: FileLength\n    properties:\n      max: ${maxLength}\n")

        assert main(["-c", config, path]) == EXIT_FAILURE
        assert "Property ${maxLength} has not been set" in capsys.readouterr().err

    def test_unknown_module(self, java_file, config_file, capsys):
        path = java_file("class A {}\n")
        config = config_file("module: Checker\nchildren:\n  - module: Bogus\n")

        assert main(["-c", config, path]) == EXIT_FAILURE
        assert "Unable to instantiate 'Bogus' class" in capsys.readouterr().err

    def test_directories_and_excludes(self, tmp_path, config_file, capsys):
        source = tmp_path / "src"
        (source / "generated").mkdir(parents=True)
        for path in (source / "A.java", source / "B.java", source / "generated" / "C.java"):
            path.write_text("import java.util.*;\nclass Input {}\n", encoding="utf-8")
        config = config_file()

        assert main(["-c", config, str(source)]) == 3
        assert main(["-c", config, "-e", str(source / "generated"), str(source)]) == 2
        assert main(["-c", config, "-x", r"B\.java$", "-e", str(source / "generated"),
                     str(source)]) == 1
        capsys.readouterr()

    def test_parallel_jobs(self, tmp_path, config_file, capsys):
        for name in ("A", "B", "C"):
            (tmp_path / f"{name}.java").write_text("import java.io.*;\nclass Input {}\n",
                                                  encoding="utf-8")
        files = [str(tmp_path / f"{name}.java") for name in ("A", "B", "C")]

        assert main(["-c", config_file(), "--jobs", "2", *files]) == 3
        capsys.readouterr()

    def test_generate_suppressions(self, java_file, config_file, capsys):
        path = java_file("class A {\n    int x = 5;\n}\n", name="A.java")
        config = config_file("module: Checker\nchildren:\n  - module: TreeWalker\n"
                             "    children:\n      - module: MagicNumber\n")

        status = main(["-c", config, "-g", path])

        out = capsys.readouterr().out
        assert status == 1
        assert out.startswith(SUPPRESSIONS_HEADER)
        assert 'files="A.java"' in out
        assert 'checks="MagicNumberCheck"' in out
        assert "query=\"/COMPILATION_UNIT/CLASS_DEF[./IDENT[@text=&apos;A&apos;]]/OBJBLOCK" \
               "/VARIABLE_DEF[./IDENT[@text=&apos;x&apos;]]/NUM_INT[@text=&apos;5&apos;]\"/>" in out


class TestPrintModes:

    def test_tree(self, java_file, capsys):
        path = java_file("class A {}\n")

        assert main(["-t", path]) == 0
        assert capsys.readouterr().out.startswith(
            "COMPILATION_UNIT -> COMPILATION_UNIT [1:0]\n`--CLASS_DEF -> CLASS_DEF [1:0]\n")

    def test_tree_with_comments(self, java_file, capsys):
        path = java_file("// hi\nclass A {}\n")

        assert main(["-T", path]) == 0
        assert "|--SINGLE_LINE_COMMENT -> // [1:0]" in capsys.readouterr().out

    def test_xpath(self, java_file, capsys):
        path = java_file("class A {\n    void run() {}\n}\n")

        assert main(["-b", "//METHOD_DEF", path]) == 0
        out = capsys.readouterr().out
        assert out.startswith("COMPILATION_UNIT -> COMPILATION_UNIT [1:0]\n")
        assert "METHOD_DEF -> METHOD_DEF [2:4]" in out

    def test_invalid_xpath(self, java_file, capsys):
        path = java_file("class A {}\n")

        assert main(["-b", "//[", path]) == EXIT_FAILURE
        assert capsys.readouterr().err == \
            f"Error during evaluation for xpath: //[, file: {path}\n"

    def test_suppression_queries(self, java_file, capsys):
        path = java_file("class A {\n    int x = 5;\n}\n")

        assert main(["-s", "2:13", path]) == 0
        assert capsys.readouterr().out == (
            "/COMPILATION_UNIT/CLASS_DEF[./IDENT[@text='A']]/OBJBLOCK"
            "/VARIABLE_DEF[./IDENT[@text='x']]/NUM_INT[@text='5']\n")

    def test_suppression_bad_position(self, java_file, capsys):
        path = java_file("class A {}\n")

        assert main(["-s", "2", path]) == EXIT_INVALID_INPUT
        assert capsys.readouterr().err == "2 does not match valid format 'line:column'.\n"

    def test_syntax_error(self, java_file, capsys):
        path = java_file("class A {\n    int x = ;\n}\n")

        assert main(["-t", path]) == EXIT_FAILURE
        assert capsys.readouterr().err.startswith(f"{path}: ")


class TestCollectFiles:

    def test_keeps_order_and_drops_duplicates(self, tmp_path):
        first = tmp_path / "B.java"
        second = tmp_path / "A.java"
        for path in (first, second):
            path.write_text("class X {}\n", encoding="utf-8")

        assert collect_files([str(first), str(second), str(first)]) == [str(first), str(second)]

    def test_missing_path_is_skipped(self, tmp_path):
        assert collect_files([str(tmp_path / "missing")]) == []
