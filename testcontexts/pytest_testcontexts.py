"""Configure the global test context from pytest.

Enable it in a ``conftest.py``::

    pytest_plugins = ["testcontexts.pytest_testcontexts"]

and select the test cases to run with ``--tc-pattern`` (repeatable) or the
``tc_patterns`` ini option.
"""

import pytest

from testcontexts.testcontexts import (
    PatternCompileError,
    LOGGER,
    tc,
)


def pytest_addoption(parser):
    group = parser.getgroup("testcontexts")
    group.addoption(
        "--tc-pattern",
        action="append",
        dest="tc_patterns",
        default=[],
        metavar="PATTERN",
        help=(
            "only run test cases whose full name matches the regular "
            "expression (may be repeated)"
        ),
    )
    parser.addini(
        "tc_patterns",
        type="linelist",
        default=[],
        help="regular expressions selecting the test cases to run",
    )


@pytest.hookimpl(trylast=True)
def pytest_configure(config):
    patterns = config.getoption("tc_patterns") or config.getini("tc_patterns")
    try:
        tc.test_patterns(patterns)
    except PatternCompileError as e:
        raise pytest.UsageError(str(e)) from e


def pytest_unconfigure(config):
    tc.test_patterns([])


def pytest_report_header(config):
    if tc.patterns:
        return "testcontexts patterns: {}".format(
            ", ".join(pattern.pattern for pattern in tc.patterns),
        )


@pytest.fixture
def test_context():
    """The global test context, checked to be balanced after the test."""
    yield tc
    if tc.names or tc.in_test_case:
        LOGGER.error(
            "Test context left unbalanced at {}".format(tc.full_name()),
        )
        pytest.fail(
            "test context left unbalanced at {!r}".format(tc.full_name()),
        )
