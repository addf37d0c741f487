"""
Shared fixtures for the jcheck test suite.
"""

import textwrap
from pathlib import Path
from typing import List

import pytest

from jcheck import messages
from jcheck.config import Configuration, module_config
from jcheck.registry import DEFAULT_PACKAGES, discover_modules

from helpers import run_checker, tree_walker_config

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def pytest_configure(config):
    discover_modules(DEFAULT_PACKAGES)


@pytest.fixture(autouse=True)
def english_messages():
    """Every test starts and ends with the default locale."""
    messages.set_locale("en")
    yield
    messages.set_locale("en")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def java_file(tmp_path):
    """Write a Java source (dedented) and return its path as a string."""
    def write(source: str, name: str = "Input.java") -> str:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return str(path)
    return write


@pytest.fixture
def verify():
    """Run one tree check over a file and return its violations as text."""
    def run(check: Configuration, path: str) -> List[str]:
        _, listener = run_checker(tree_walker_config(check), [path])
        assert not listener.exceptions, listener.exceptions
        return listener.messages()
    return run


@pytest.fixture
def verify_file_set():
    """Run one file-set check over a file and return its violations as text."""
    def run(check: Configuration, path: str) -> List[str]:
        _, listener = run_checker(module_config("Checker", check), [path])
        assert not listener.exceptions, listener.exceptions
        return listener.messages()
    return run
