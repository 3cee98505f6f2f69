from testcontexts.testcontexts import (
    TestContext,
    SharedValue,
    PrivateValue,
    PropertyValue,
    TestContextError,
    UsageError,
    OutOfContextError,
    PropertyNotFoundError,
    PatternCompileError,
    LOGGER,
    tc,
    current_test_name,
    test_patterns,
    test_set,
    test_case,
    reporting,
)

from testcontexts.__version__ import (
    __title__,
    __description__,
    __version__,
    __author__,
    __license__,
)


__all__ = [
    "TestContext",
    "SharedValue",
    "PrivateValue",
    "PropertyValue",
    "TestContextError",
    "UsageError",
    "OutOfContextError",
    "PropertyNotFoundError",
    "PatternCompileError",
    "tc",
    "current_test_name",
    "test_patterns",
    "test_set",
    "test_case",
    "reporting",
]
