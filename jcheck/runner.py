"""
CLI runner for jcheck.

Audits Java files against a YAML configuration, or prints syntax trees and
suppression queries for a single file.
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional, Pattern, Sequence, TextIO

from . import __version__, messages
from .checker import Checker
from .config import Configuration, find_config_file, load_configuration, load_properties
from .errors import CheckstyleError, ConfigurationError, XpathError
from .listeners import DefaultLogger, OutputStreamOptions, XMLLogger
from .printers import (
    print_file_ast,
    print_java_and_javadoc_tree,
    print_javadoc_tree,
    print_xpath_branches,
)
from .registry import DEFAULT_PACKAGES, discover_modules
from .settings import get_settings
from .types import DEFAULT_TAB_WIDTH
from .xpath_suppressions import XpathFileGeneratorAuditListener, print_suppressions

logger = logging.getLogger(__name__)

EXIT_INVALID_INPUT = -1
EXIT_FAILURE = -2

_PRINT_OPTIONS = [
    ("-t", "tree"),
    ("-T", "tree_with_comments"),
    ("-J", "tree_with_javadoc"),
    ("-j", "javadoc_tree"),
    ("-b", "xpath"),
    ("-s", "suppression_line_column"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jcheck",
        description="Static analysis of Java sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jcheck -c jcheck.yaml src/
  jcheck -c jcheck.yaml -f xml -o report.xml src/ --jobs 4
  jcheck -t src/main/java/Foo.java
  jcheck -b "//METHOD_DEF[./IDENT[@text='run']]" Foo.java
        """
    )

    parser.add_argument(
        "files",
        nargs="*",
        help="Files or directories to process"
    )

    parser.add_argument(
        "-c",
        dest="config",
        help="Path to the configuration file; defaults to the nearest jcheck.yaml"
    )

    parser.add_argument(
        "-f",
        dest="format",
        choices=["plain", "xml"],
        help="Output format (default: plain)"
    )

    parser.add_argument(
        "-o",
        dest="output",
        help="Write the report to this file instead of stdout"
    )

    parser.add_argument(
        "-p",
        dest="properties",
        help="Properties file with values for ${name} placeholders"
    )

    parser.add_argument(
        "-t", "--tree",
        action="store_true",
        help="Print the syntax tree of the file"
    )

    parser.add_argument(
        "-T", "--treeWithComments",
        dest="tree_with_comments",
        action="store_true",
        help="Print the syntax tree of the file including comments"
    )

    parser.add_argument(
        "-J", "--treeWithJavadoc",
        dest="tree_with_javadoc",
        action="store_true",
        help="Print the syntax tree of the file including javadoc trees"
    )

    parser.add_argument(
        "-j", "--javadocTree",
        dest="javadoc_tree",
        action="store_true",
        help="Print the tree of a file that holds a javadoc comment body"
    )

    parser.add_argument(
        "-b", "--branch-matching-xpath",
        dest="xpath",
        help="Print the branches of the nodes matching the xpath query"
    )

    parser.add_argument(
        "-s", "--suppression-line-column-number",
        dest="suppression_line_column",
        help="Print suppression queries for the nodes at line:column"
    )

    parser.add_argument(
        "-g", "--generate-xpath-suppression",
        dest="generate_xpath_suppression",
        action="store_true",
        help="Generate a suppressions file for all violations"
    )

    parser.add_argument(
        "-w", "--tabWidth",
        dest="tab_width",
        type=int,
        default=None,
        help=f"Tab width used for -s and -g columns (default: {DEFAULT_TAB_WIDTH})"
    )

    parser.add_argument(
        "-e", "--exclude",
        dest="excludes",
        action="append",
        default=[],
        help="Directory or file to exclude (repeatable)"
    )

    parser.add_argument(
        "-x", "--exclude-regexp",
        dest="exclude_regexps",
        action="append",
        default=[],
        help="Regular expression of paths to exclude (repeatable)"
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Print debug logging to stderr"
    )

    parser.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Number of files processed in parallel (default: 1)"
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"jcheck version: {__version__}"
    )

    return parser


def collect_files(paths: Sequence[str], excludes: Sequence[str] = (),
                  exclude_patterns: Sequence[Pattern] = ()) -> List[str]:
    """Expand directories recursively and drop excluded paths, keeping input order."""
    excluded_roots = [str(Path(path).absolute()) for path in excludes]
    result: List[str] = []
    for path in paths:
        path_obj = Path(path)
        if path_obj.is_file():
            candidates = [path_obj]
        elif path_obj.is_dir():
            candidates = sorted(p for p in path_obj.rglob("*") if p.is_file())
        else:
            logger.warning("Path %s does not exist", path)
            continue
        for candidate in candidates:
            abs_path = str(candidate.absolute())
            if any(abs_path == root or abs_path.startswith(root.rstrip("/\\") + "/")
                   for root in excluded_roots):
                continue
            if any(pattern.search(abs_path) for pattern in exclude_patterns):
                continue
            if abs_path not in result:
                result.append(abs_path)
    return result


def validate_cli(args: argparse.Namespace, files: List[str]) -> Optional[str]:
    """Return the message for an invalid option combination, or ``None``."""
    if not files:
        return f"Files to process must be specified, found {len(files)}."
    used_print = [flag for flag, dest in _PRINT_OPTIONS if getattr(args, dest)]
    if used_print:
        flag = used_print[0]
        others = (len(used_print) > 1 or args.config or args.output or args.properties
                  or args.format or args.generate_xpath_suppression)
        if others:
            return f"Option '{flag}' cannot be used with other options."
        if len(files) > 1:
            if flag == "-s":
                return "Printing xpath suppressions is allowed for only one file."
            return "Printing AST is allowed for only one file."
        return None
    if not args.config:
        return "Must specify a config file."
    return None


def with_xpath_generator(configuration: Configuration, tab_width: int) -> Configuration:
    """Add the suppression generating filter to every TreeWalker of ``configuration``."""
    generator = Configuration("XpathFileGeneratorAstFilter", {"tabWidth": str(tab_width)})
    children = tuple(
        Configuration(child.name, child.properties, child.children + (generator,), child.messages)
        if child.name == "TreeWalker" else child
        for child in configuration.children
    )
    return Configuration(configuration.name, configuration.properties, children,
                         configuration.messages)


def run_print_mode(args: argparse.Namespace, path: str) -> int:
    try:
        if args.tree:
            output = print_file_ast(path)
        elif args.tree_with_comments:
            output = print_file_ast(path, include_comments=True)
        elif args.tree_with_javadoc:
            output = print_java_and_javadoc_tree(path)
        elif args.javadoc_tree:
            output = print_javadoc_tree(path)
        elif args.xpath:
            try:
                output = print_xpath_branches(args.xpath, path)
            except XpathError as e:
                print(f"Error during evaluation for xpath: {args.xpath}, file: {path}", file=sys.stderr)
                logger.debug("Xpath failure: %s", e)
                return EXIT_FAILURE
        else:
            tab_width = args.tab_width or get_settings().tab_width
            try:
                output = print_suppressions(path, args.suppression_line_column, tab_width)
            except ValueError as e:
                print(str(e), file=sys.stderr)
                return EXIT_INVALID_INPUT
    except CheckstyleError as e:
        print(f"{path}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"Could not read {path}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    sys.stdout.write(output)
    return 0


def _open_output(args: argparse.Namespace):
    if args.output:
        return open(args.output, "w", encoding="utf-8"), OutputStreamOptions.CLOSE
    return sys.stdout, OutputStreamOptions.NONE


def run_audit(args: argparse.Namespace, files: List[str]) -> int:
    if not Path(args.config).is_file():
        print(f"Could not find config file {args.config}.", file=sys.stderr)
        return EXIT_FAILURE

    properties = {}
    if args.properties:
        try:
            properties = load_properties(args.properties)
        except OSError:
            print(f"Could not find file {args.properties}.", file=sys.stderr)
            return EXIT_FAILURE

    tab_width = args.tab_width or get_settings().tab_width
    try:
        configuration = load_configuration(args.config, properties)
        if args.generate_xpath_suppression:
            configuration = with_xpath_generator(configuration, tab_width)
    except ConfigurationError as e:
        print(e.message, file=sys.stderr)
        return EXIT_FAILURE

    discovered = discover_modules(DEFAULT_PACKAGES)
    logger.debug("Discovered %d module names from %s", discovered, DEFAULT_PACKAGES)

    checker = Checker()
    try:
        checker.configure(configuration)
    except ConfigurationError as e:
        print(e.message, file=sys.stderr)
        return EXIT_FAILURE
    if args.jobs is not None:
        checker.set_jobs(str(args.jobs))

    try:
        stream, option = _open_output(args)
    except OSError as e:
        checker.destroy()
        print(f"Could not write {args.output}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    listener = _create_listener(args, stream, option)
    checker.add_listener(listener)
    try:
        error_count = checker.process(files)
    except CheckstyleError as e:
        print(e.message, file=sys.stderr)
        return EXIT_FAILURE
    finally:
        checker.destroy()
        listener.close()

    if error_count > 0:
        print(messages.format_message("jcheck", "Main.errorCounter", (error_count,)), file=sys.stderr)
    return error_count


def _create_listener(args: argparse.Namespace, stream: TextIO, option: OutputStreamOptions):
    if args.generate_xpath_suppression:
        return XpathFileGeneratorAuditListener(stream, option)
    if args.format == "xml":
        return XMLLogger(stream, option)
    return DefaultLogger(stream, option)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        exclude_patterns = [re.compile(pattern) for pattern in args.exclude_regexps]
    except re.error as e:
        print(f"Invalid exclude pattern: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    if args.jobs is not None and args.jobs < 1:
        print("--jobs must be a positive number.", file=sys.stderr)
        return EXIT_INVALID_INPUT

    files = collect_files(args.files, args.excludes, exclude_patterns)
    printing = any(getattr(args, dest) for _, dest in _PRINT_OPTIONS)
    if not args.config and not printing:
        args.config = find_config_file()
        if args.config:
            logger.info("Using config file %s", args.config)
    problem = validate_cli(args, files)
    if problem is not None:
        print(problem, file=sys.stderr)
        return EXIT_INVALID_INPUT

    if printing:
        return run_print_mode(args, files[0])
    return run_audit(args, files)


if __name__ == "__main__":
    sys.exit(main())
