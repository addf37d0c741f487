"""Check: CustomImportOrder

Checks that import declarations follow a configured group order.

Groups are listed in ``customImportOrderRules`` separated by ``###``:

- ``STATIC``: static imports
- ``SAME_PACKAGE(n)``: imports sharing the first ``n`` package domains with the
  file's own package
- ``STANDARD_JAVA_PACKAGE``: imports matching ``standardPackageRegExp``
- ``SPECIAL_IMPORTS``: imports matching ``specialImportsRegExp``
- ``THIRD_PARTY_PACKAGE``: imports matching ``thirdPartyPackageRegExp``

Imports that fit no listed group belong to an implicit last group and must come
after all others. When several regular expressions match an import, the group
with the longest match wins; ties go to the earlier match position, then to the
group listed first.

Examples (rules ``STATIC###STANDARD_JAVA_PACKAGE###THIRD_PARTY_PACKAGE``):
- import static java.lang.Math.abs;   # GOOD: static group first
- import java.util.List;             # GOOD: after a blank line
- import org.junit.Test;             # GOOD: after a blank line
- import java.io.File;               # BAD: standard import after third party
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from jcheck.api import AbstractCheck, to_bool, to_int, to_pattern
from jcheck.registry import register_module
from jcheck.tokens import TokenType
from jcheck.tree import DetailNode, full_ident, import_name

MSG_LINE_SEPARATOR = "custom.import.order.line.separator"
MSG_SEPARATED_IN_GROUP = "custom.import.order.separated.internally"
MSG_LEX = "custom.import.order.lex"
MSG_NONGROUP_IMPORT = "custom.import.order.nonGroup.import"
MSG_NONGROUP_EXPECTED = "custom.import.order.nonGroup.expected"
MSG_ORDER = "custom.import.order"

STATIC_RULE_GROUP = "STATIC"
SAME_PACKAGE_RULE_GROUP = "SAME_PACKAGE"
THIRD_PARTY_PACKAGE_RULE_GROUP = "THIRD_PARTY_PACKAGE"
STANDARD_JAVA_PACKAGE_RULE_GROUP = "STANDARD_JAVA_PACKAGE"
SPECIAL_IMPORTS_RULE_GROUP = "SPECIAL_IMPORTS"
NON_GROUP_RULE_GROUP = "NOT_ASSIGNED_TO_ANY_GROUP"

_GROUP_SEPARATOR = re.compile(r"\s*###\s*")
_PLAIN_RULES = {
    STATIC_RULE_GROUP,
    THIRD_PARTY_PACKAGE_RULE_GROUP,
    STANDARD_JAVA_PACKAGE_RULE_GROUP,
    SPECIAL_IMPORTS_RULE_GROUP,
}


@dataclass
class ImportDetails:
    """One import declaration and the group it was assigned to."""

    full_path: str
    group: str
    is_static: bool
    node: DetailNode

    @property
    def start_line(self) -> int:
        return self.node.line

    @property
    def end_line(self) -> int:
        return self.node.end_line


@dataclass
class _RuleMatch:
    group: str
    length: int
    position: int


def first_domains(depth: int, ident: str) -> str:
    """``first_domains(2, "java.util.List")`` -> ``"java.util."``."""
    domains = [domain for domain in ident.split(".") if domain]
    return "".join(domain + "." for domain in domains[:depth])


def compare_imports(import1: str, import2: str) -> int:
    """Compare two imports domain by domain; shorter wins when one is a prefix."""
    tokens1 = import1.split(".")
    tokens2 = import2.split(".")
    for token1, token2 in zip(tokens1, tokens2):
        if token1 != token2:
            return -1 if token1 < token2 else 1
    return (len(tokens1) > len(tokens2)) - (len(tokens1) < len(tokens2))


@register_module
class CustomImportOrderCheck(AbstractCheck):
    """Enforce a configured ordering of import groups."""

    def __init__(self):
        super().__init__()
        self.custom_import_order_rules: List[str] = [NON_GROUP_RULE_GROUP]
        self.standard_package_reg_exp: Pattern = re.compile(r"^(java|javax)\.")
        self.third_party_package_reg_exp: Pattern = re.compile(".*")
        self.special_imports_reg_exp: Pattern = re.compile("^$")
        self.same_package_matching_depth = 2
        self.sort_imports_in_group_alphabetically = False
        self.separate_line_between_groups = True
        self._same_package_domains = ""
        self._imports: List[ImportDetails] = []

    # Properties

    def set_custom_import_order_rules(self, value: str) -> None:
        rules: List[str] = []
        if value.strip():
            for rule in _GROUP_SEPARATOR.split(value.strip()):
                rules.append(self._parse_rule(rule))
        rules.append(NON_GROUP_RULE_GROUP)
        self.custom_import_order_rules = rules

    def _parse_rule(self, rule: str) -> str:
        """Validate one rule keyword and return its group name."""
        if rule in _PLAIN_RULES:
            return rule
        if rule.startswith(SAME_PACKAGE_RULE_GROUP):
            argument = rule[rule.find("(") + 1:rule.find(")")]
            depth = int(argument)
            if depth <= 0:
                raise ValueError(
                    f"SAME_PACKAGE rule parameter should be positive integer: {rule}")
            self.same_package_matching_depth = depth
            return SAME_PACKAGE_RULE_GROUP
        raise ValueError(f"Unexpected rule: {rule}")

    def set_standard_package_reg_exp(self, value: str) -> None:
        self.standard_package_reg_exp = to_pattern(value)

    def set_third_party_package_reg_exp(self, value: str) -> None:
        self.third_party_package_reg_exp = to_pattern(value)

    def set_special_imports_reg_exp(self, value: str) -> None:
        self.special_imports_reg_exp = to_pattern(value)

    def set_same_package_matching_depth(self, value: str) -> None:
        self.same_package_matching_depth = to_int(value)

    def set_sort_imports_in_group_alphabetically(self, value: str) -> None:
        self.sort_imports_in_group_alphabetically = to_bool(value)

    def set_separate_line_between_groups(self, value: str) -> None:
        self.separate_line_between_groups = to_bool(value)

    # Tokens

    def acceptable_tokens(self):
        return [TokenType.IMPORT, TokenType.STATIC_IMPORT, TokenType.PACKAGE_DEF]

    def required_tokens(self):
        return self.acceptable_tokens()

    # Traversal

    def begin_tree(self, root):
        self._imports = []
        self._same_package_domains = ""

    def visit(self, node):
        if node.type is TokenType.PACKAGE_DEF:
            self._same_package_domains = first_domains(
                self.same_package_matching_depth, self._package_name(node))
            return
        full_path = import_name(node)
        is_static = node.type is TokenType.STATIC_IMPORT
        self._imports.append(ImportDetails(
            full_path, self._import_group(is_static, full_path), is_static, node))

    def finish_tree(self, root):
        if self._imports:
            self._finish_import_list()

    @staticmethod
    def _package_name(node: DetailNode) -> str:
        for child in node.children:
            if child.type in (TokenType.DOT, TokenType.IDENT):
                return full_ident(child)
        return ""

    def _finish_import_list(self) -> None:
        rules = self.custom_import_order_rules
        first = self._imports[0]
        current_group = self._import_group(first.is_static, first.full_path)
        current_index = rules.index(current_group)
        previous_in_group: Optional[ImportDetails] = None
        previous_path: Optional[str] = None

        for details in self._imports:
            group = details.group
            path = details.full_path
            if group == current_group:
                self._check_extra_empty_line(previous_in_group, details)
                if self._is_alphabetical_order_broken(previous_path, path):
                    self.log(details.node, MSG_LEX, path, previous_path)
                else:
                    previous_path = path
                previous_in_group = details
            elif len(rules) > current_index + 1:
                # the last group is always the non-group one
                next_group = self._next_import_group(current_index + 1)
                if group == next_group:
                    self._check_missed_empty_line(previous_in_group, details)
                    current_group = next_group
                    current_index = rules.index(next_group)
                    previous_path = path
                else:
                    self._log_wrong_group_order(details, next_group)
                previous_in_group = details
            else:
                self._log_wrong_group_order(details, current_group)

    def _check_missed_empty_line(self, previous: Optional[ImportDetails],
                                 details: ImportDetails) -> None:
        if (self.separate_line_between_groups and previous is not None
                and self._empty_lines_between(previous.end_line, details.start_line) != 1):
            self.log(details.node, MSG_LINE_SEPARATOR, details.full_path)

    def _check_extra_empty_line(self, previous: Optional[ImportDetails],
                                details: ImportDetails) -> None:
        if (previous is not None
                and self._empty_lines_between(previous.end_line, details.start_line) > 0):
            self.log(details.node, MSG_SEPARATED_IN_GROUP, details.full_path)

    def _is_alphabetical_order_broken(self, previous: Optional[str], current: str) -> bool:
        return (self.sort_imports_in_group_alphabetically
                and previous is not None
                and compare_imports(current, previous) < 0)

    def _empty_lines_between(self, from_line: int, to_line: int) -> int:
        lines = self.file_contents.lines
        return sum(1 for number in range(from_line + 1, to_line)
                   if not lines[number - 1].strip())

    def _log_wrong_group_order(self, details: ImportDetails, expected_group: str) -> None:
        if details.group == NON_GROUP_RULE_GROUP:
            self.log(details.node, MSG_NONGROUP_IMPORT, details.full_path)
        elif expected_group == NON_GROUP_RULE_GROUP:
            self.log(details.node, MSG_NONGROUP_EXPECTED, details.group, details.full_path)
        else:
            self.log(details.node, MSG_ORDER, details.group, expected_group, details.full_path)

    def _next_import_group(self, index: int) -> str:
        """First group from ``index`` on that has imports; the last group otherwise."""
        rules = self.custom_import_order_rules
        while len(rules) > index + 1:
            if any(details.group == rules[index] for details in self._imports):
                break
            index += 1
        return rules[index]

    def _import_group(self, is_static: bool, path: str) -> str:
        """Assign ``path`` to the best matching configured group."""
        rules = self.custom_import_order_rules
        best = _RuleMatch(NON_GROUP_RULE_GROUP, 0, 0)
        if is_static and STATIC_RULE_GROUP in rules:
            best = _RuleMatch(STATIC_RULE_GROUP, len(path), 0)
        elif SAME_PACKAGE_RULE_GROUP in rules:
            prefix = first_domains(self.same_package_matching_depth, path)
            if prefix == self._same_package_domains:
                best = _RuleMatch(SAME_PACKAGE_RULE_GROUP, len(path), 0)

        if best.group == NON_GROUP_RULE_GROUP:
            for group in rules:
                if group == STANDARD_JAVA_PACKAGE_RULE_GROUP:
                    best = self._better_pattern_match(path, group, self.standard_package_reg_exp, best)
                elif group == SPECIAL_IMPORTS_RULE_GROUP:
                    best = self._better_pattern_match(path, group, self.special_imports_reg_exp, best)

        if (best.group == NON_GROUP_RULE_GROUP
                and THIRD_PARTY_PACKAGE_RULE_GROUP in rules
                and self.third_party_package_reg_exp.search(path)):
            best = _RuleMatch(THIRD_PARTY_PACKAGE_RULE_GROUP, 0, 0)
        return best.group

    @staticmethod
    def _better_pattern_match(path: str, group: str, pattern: Pattern,
                              current: _RuleMatch) -> _RuleMatch:
        """Keep ``current`` unless a match is longer, or as long and earlier."""
        best = current
        for match in pattern.finditer(path):
            length = match.end() - match.start()
            if length > best.length or (length == best.length and match.start() < best.position):
                best = _RuleMatch(group, length, match.start())
        return best
