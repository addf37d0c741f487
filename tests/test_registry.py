"""
Tests for module registration, creation and nesting rules.
"""

import pytest

from jcheck.api import AbstractCheck, Module, property_setter_name
from jcheck.checker import Checker
from jcheck.config import module_config
from jcheck.errors import ConfigurationError, ModuleInstantiationError
from jcheck.registry import DEFAULT_PACKAGES, ModuleFactory, Registry, discover_modules
from jcheck.tree_walker import TreeWalker
from jcheck_rules.imports_custom_order import CustomImportOrderCheck

from helpers import tree_walker_config


class SampleCheck(AbstractCheck):

    def acceptable_tokens(self):
        return []


class TestRegistry:

    def test_register_under_qualified_and_package_names(self):
        registry = Registry()
        registry.register_module(SampleCheck)

        module = SampleCheck.__module__
        assert registry.get(f"{module}.SampleCheck") is SampleCheck
        assert registry.get(f"{module.split('.')[0]}.SampleCheck") is SampleCheck

    def test_first_registration_wins(self):
        registry = Registry()
        registry.register_module(SampleCheck)
        duplicate = type("SampleCheck", (SampleCheck,), {"__module__": SampleCheck.__module__})
        registry.register_module(duplicate)

        assert registry.get(f"{SampleCheck.__module__}.SampleCheck") is SampleCheck

    def test_discovery_is_idempotent(self):
        assert discover_modules(DEFAULT_PACKAGES) == 0


class TestModuleFactory:

    def setup_method(self):
        self.factory = ModuleFactory()

    def test_candidates(self):
        assert self.factory.candidates("Foo") == [
            "Foo", "FooCheck",
            "jcheck.Foo", "jcheck.FooCheck",
            "jcheck_rules.Foo", "jcheck_rules.FooCheck",
        ]
        assert self.factory.candidates("FooCheck") == [
            "FooCheck", "jcheck.FooCheck", "jcheck_rules.FooCheck",
        ]

    def test_create_by_short_name(self):
        check = self.factory.create_module("CustomImportOrder")

        assert isinstance(check, CustomImportOrderCheck)
        assert check.name == "CustomImportOrder"

    def test_create_by_qualified_name(self):
        check = self.factory.create_module(
            "jcheck_rules.imports_custom_order.CustomImportOrderCheck")

        assert isinstance(check, CustomImportOrderCheck)
        assert isinstance(self.factory.create_module("TreeWalker"), TreeWalker)

    def test_unknown_module(self):
        with pytest.raises(ModuleInstantiationError) as excinfo:
            self.factory.create_module("Nope")

        assert excinfo.value.message == (
            "Unable to instantiate 'Nope' class, it is also not possible to instantiate it as "
            "Nope, NopeCheck, jcheck.Nope, jcheck.NopeCheck, jcheck_rules.Nope, "
            "jcheck_rules.NopeCheck.")


class TestModuleNames:

    def test_check_suffix_is_dropped(self):
        assert SampleCheck().name == "Sample"
        assert Module().name == "Module"

    def test_property_setter_name(self):
        assert property_setter_name("customImportOrderRules") == "set_custom_import_order_rules"
        assert property_setter_name("max") == "set_max"
        assert property_setter_name("ignoreCase") == "set_ignore_case"


class TestNesting:

    def test_check_directly_under_checker(self):
        config = module_config("Checker", module_config("TypeName"))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert excinfo.value.message == "TypeName is not allowed as a child in Checker"

    def test_tree_walker_inside_tree_walker(self):
        config = tree_walker_config(module_config("TreeWalker"))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert excinfo.value.message == (
            "cannot initialize module TreeWalker - TreeWalker is not allowed as a child "
            "in TreeWalker")

    def test_unknown_child(self):
        config = tree_walker_config(module_config("Nope"))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert excinfo.value.message.startswith(
            "cannot initialize module TreeWalker - cannot initialize module Nope - "
            "Unable to instantiate 'Nope' class")

    def test_unknown_property(self):
        config = tree_walker_config(module_config("TypeName", bogus="1"))

        with pytest.raises(ConfigurationError) as excinfo:
            Checker().configure(config)

        assert excinfo.value.message == (
            "cannot initialize module TreeWalker - cannot initialize module TypeName - "
            "Property 'bogus' does not exist, please check the documentation")
        assert [layer for layer, _ in excinfo.value.chain()] == ["TreeWalker", "TypeName", "bogus"]
