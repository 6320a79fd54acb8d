"""Shared fixtures: Python-grammar rule tables and sources.

The bundled tree-sitter-python grammar stands in for the syntax tree
provider; the rules in helpers_rules are written against its node types.
"""

import pytest

from sdml_lint.adapters import default_python_adapter
from sdml_lint.config import EngineConfig
from sdml_lint.runner import LintRunner
from sdml_lint.table import RuleTable
from sdml_lint.types import CollectingHost, LintRequest

from helpers_rules import SOURCE, TYPE_NAME_CASE, TYPES_MISSING_BODIES, FUNCTION_NAME_CASE


@pytest.fixture
def adapters():
    return {"python": default_python_adapter}


@pytest.fixture
def python_config():
    return EngineConfig(language="python")


@pytest.fixture
def table():
    return RuleTable([TYPE_NAME_CASE, TYPES_MISSING_BODIES, FUNCTION_NAME_CASE])


@pytest.fixture
def host():
    return CollectingHost()


@pytest.fixture
def make_runner(adapters, python_config):
    """Build a runner over the given rules with the python adapter only."""
    def _make(rules, host=None, config=None):
        return LintRunner(
            table=RuleTable(rules),
            host=host,
            config=config or python_config,
            adapters=adapters,
        )
    return _make


@pytest.fixture
def request_for():
    def _request(text=SOURCE, path="example.py", version=1, **kwargs):
        return LintRequest(path=path, text=text, version=version, **kwargs)
    return _request


@pytest.fixture
def python_tree():
    return default_python_adapter.parse(SOURCE)
