import logging
import re
from collections.abc import Mapping
from contextlib import contextmanager, nullcontext


LOGGER = logging.getLogger(__name__)


class TestContextError(Exception):
    """Base class for all errors raised by a :class:`.TestContext`."""


class UsageError(TestContextError):
    """Raise when the test contexts are used incorrectly."""


class OutOfContextError(TestContextError):
    """Raise when a property is read while no test case is running."""

    def __init__(self, property, full_name):
        self.property = property
        self.full_name = full_name
        super().__init__(
            "Trying to access property {} of test context {} outside a test "
            "case".format(property, full_name),
        )

    def __reduce__(self):
        return self.__class__, (self.property, self.full_name)


class PropertyNotFoundError(TestContextError, KeyError):
    """Raise when a test case reads a property nobody declared."""

    def __init__(self, property, full_name):
        self.property = property
        self.full_name = full_name
        super().__init__(
            "Test context {} has no property named {}".format(
                full_name,
                property,
            ),
        )

    def __str__(self):
        # KeyError would show the repr of the message.
        return self.args[0]

    def __reduce__(self):
        return self.__class__, (self.property, self.full_name)


class PatternCompileError(TestContextError, ValueError):
    """Raise when a test pattern is not a valid regular expression."""

    def __init__(self, pattern, error):
        self.pattern = pattern
        self.error = str(error)
        super().__init__(
            "Invalid test pattern {!r}: {}".format(pattern, self.error),
        )

    def __reduce__(self):
        return self.__class__, (self.pattern, self.error)


class SharedValue(object):
    """A value used as-is by all the test cases.

    :param value: The value every test case will get.

    If the value is mutable, the test cases are responsible to never change it
    (or at least ensure the original value is restored by the end of each test
    case).
    """

    def __init__(self, value):
        self.value = value

    def __repr__(self):
        return "SharedValue({!r})".format(self.value)


class PrivateValue(object):
    """A value (lazily) re-created for each test case that reads it.

    :param make: Called with no arguments to create the value.
    :type make: callable
    :param finalize: Called with the value at the end of each test case that
        read it, so it can be properly disposed of.
    :type finalize: callable or None

    The value can be mutated at will by the test case without affecting any
    other test case.

    Example::

        test_set(
            "with a scratch directory",
            body,
            scratch=PrivateValue(tempfile.mkdtemp, shutil.rmtree),
        )
    """

    def __init__(self, make, finalize=None):
        if not callable(make):
            raise TypeError("make must be callable")
        if finalize is not None and not callable(finalize):
            raise TypeError("finalize must be callable or None")
        self.make = make
        self.finalize = finalize

    def __repr__(self):
        return "PrivateValue({!r}, {!r})".format(self.make, self.finalize)


PropertyValue = (SharedValue, PrivateValue)


def _run_now(run, name, data, properties):
    """Decorator running the decorated function as the body right away.

    The decorated name is bound to ``None``, so the body can't be run again by
    accident.
    """

    def decorator(func):
        run(name, func, data=data, **properties)

    return decorator


def _check_body(name, body):
    if not callable(body):
        raise UsageError(
            "The body of {} must be callable, not {!r} (pass properties as "
            "data=... or keywords)".format(name, body),
        )


class TestContext(object):
    """The state shared by nested test sets and the test cases inside them.

    A test context tracks the names of the currently active test sets (and
    test case), the properties they declared, and, while a test case body is
    running, the values of the properties the test case has read so far.

    The tests run strictly sequentially, depth first. A test context is not
    thread-safe: if tests run in several threads, each thread must use its own
    :class:`.TestContext` instead of the global :data:`.tc`.

    Example::

        tc = TestContext()

        def body():

            def check():
                assert tc.get("foo") == "foo"

            tc.test_case("reads foo", check)

        tc.test_set("with foo", body, foo=SharedValue("foo"))
    """

    def __init__(self):
        self._patterns = []
        self._names = []
        self._data = {}
        self._values = None
        self._reporter = None

    def __getattr__(self, attr):
        """Defer property lookups to :meth:`.get`."""
        if attr.startswith("_"):
            raise AttributeError(attr)
        return self.get(attr)

    @property
    def names(self):
        """The names of the active test sets, outermost first."""
        return tuple(self._names)

    @property
    def patterns(self):
        """The compiled patterns currently selecting the test cases."""
        return tuple(self._patterns)

    @property
    def in_test_case(self):
        """Whether a test case body is running."""
        return self._values is not None

    def full_name(self):
        """The ``/``-separated names of the active test sets and test case."""
        return "/".join(self._names)

    def has(self, property):
        """Whether the property is declared by any of the active scopes."""
        return property in self._data

    def get(self, property):
        """Get the value of a property inside a test case.

        :param property: The name of the property.
        :type property: str

        The first read of a property in a test case resolves it: a
        :class:`.SharedValue` gives its value, a :class:`.PrivateValue` has its
        ``make`` function invoked. The result is then cached, so every other
        read in the same test case gives the very same object.
        """
        values = self._values
        if values is None:
            raise OutOfContextError(property, self.full_name())

        if property in values:
            return values[property]

        try:
            property_value = self._data[property]
        except KeyError:
            raise PropertyNotFoundError(property, self.full_name()) from None

        if isinstance(property_value, SharedValue):
            value = property_value.value
        else:
            LOGGER.debug(
                "Making private value {} for test {}".format(
                    property,
                    self.full_name(),
                ),
            )
            value = property_value.make()

        values[property] = value
        return value

    def test_patterns(self, patterns):
        """Specify the patterns selecting the test cases to run.

        :param patterns: Regular expressions, either strings or compiled.
        :type patterns: iterable

        Only test cases whose full name is matched (anywhere, as in
        :func:`re.search`) by at least one of the patterns will run. If there
        are no patterns, all the test cases will run.

        All the patterns are compiled before any of them is used, so if one is
        invalid, the previous patterns remain in effect.
        """
        if isinstance(patterns, (str, bytes)):
            raise PatternCompileError(
                patterns,
                "expected a sequence of patterns, not a single one",
            )
        compiled = []
        for pattern in patterns:
            if isinstance(pattern, re.Pattern):
                if not isinstance(pattern.pattern, str):
                    raise PatternCompileError(
                        pattern,
                        "test names can only match str patterns",
                    )
                compiled.append(pattern)
                continue
            if not isinstance(pattern, str):
                raise PatternCompileError(
                    pattern,
                    "expected a str or a compiled pattern",
                )
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise PatternCompileError(pattern, e) from e
        self._patterns = compiled
        LOGGER.debug(
            "Test patterns: {}".format(
                [pattern.pattern for pattern in compiled],
            ),
        )

    def is_selected(self, full_name):
        """Whether a test case with this full name should run."""
        if not self._patterns:
            return True
        return any(pattern.search(full_name) for pattern in self._patterns)

    @contextmanager
    def reporting(self, test_case):
        """Report the test sets and test cases through a unittest test case.

        :param test_case: The test case recording the results.
        :type test_case: :class:`unittest.TestCase`

        While reporting, the body of each test set and test case runs inside
        ``test_case.subTest(name)``, so the results are grouped by name and a
        failing test case does not prevent its siblings from running.

        Example::

            class TestThings(unittest.TestCase):

                def test_things(self):
                    with tc.reporting(self):
                        test_set("things", things_body)
        """
        previous = self._reporter
        self._reporter = test_case
        try:
            yield test_case
        finally:
            self._reporter = previous

    def _group(self, name):
        if self._reporter is None:
            return nullcontext()
        return self._reporter.subTest(name)

    def _collect(self, data, properties):
        """Validate the declarations of a scope before it is entered."""
        if isinstance(data, Mapping):
            data = data.items()
        declared = {}
        for property, value in list(data) + list(properties.items()):
            if (
                not isinstance(property, str)
                or property.startswith("_")
                or hasattr(type(self), property)
            ):
                raise UsageError(
                    "Invalid property name {!r} in test context {}".format(
                        property,
                        self.full_name(),
                    ),
                )
            if not isinstance(value, PropertyValue):
                raise UsageError(
                    "Property {} must be a SharedValue or a PrivateValue, "
                    "not {!r}".format(property, value),
                )
            if property in declared or property in self._data:
                raise UsageError(
                    "Trying to override property {} of test context {}"
                    .format(property, self.full_name()),
                )
            declared[property] = value
        return declared

    def test_set(self, name, body=None, *, data=(), **properties):
        """Run a body under a named test set with additional properties.

        :param name: The name of the test set.
        :type name: str
        :param body: Called with no arguments inside the test set.
        :type body: callable
        :param data: Keyword only. ``(property, value)`` pairs, or a mapping,
            where each value is a :class:`.SharedValue` or a
            :class:`.PrivateValue`.
        :param properties: More properties, given as keyword arguments.

        Nesting test sets is allowed. This is a common pattern for
        incrementally setting up a test environment for the actual test cases.
        In BDD terminology, a test set is functionally equivalent to the
        "given" or "when" clauses.

        The property values are not accessible (yet). See :meth:`.test_case`
        for actually accessing the data. A property may not be declared if it
        is already visible, that is, declared by an enclosing test set, nor if
        its name is taken by a member of the context (such as ``names``).

        If ``body`` is not given, this returns a decorator that runs the
        decorated function as the body, right away::

            @tc.test_set("with foo", foo=SharedValue("foo"))
            def _():
                ...

        .. note::
            The decorator does NOT return any replacement function.
        """
        if body is None:
            return _run_now(self.test_set, name, data, properties)
        _check_body(name, body)

        if self._values is not None:
            raise UsageError(
                "Trying to nest {} inside the test case {}".format(
                    name,
                    self.full_name(),
                ),
            )

        declared = self._collect(data, properties)
        self._names.append(name)
        self._data.update(declared)
        LOGGER.debug("Entering test set {}".format(self.full_name()))

        try:
            with self._group(name):
                body()
        finally:
            LOGGER.debug("Leaving test set {}".format(self.full_name()))
            for property in declared:
                del self._data[property]
            self._names.pop()

    def test_case(self, name, body=None, *, data=(), **properties):
        """Run the actual test code with access to the properties.

        :param name: The name of the test case.
        :type name: str
        :param body: Called with no arguments to perform the test.
        :type body: callable
        :param data: Keyword only. ``(property, value)`` pairs, or a mapping,
            same as for :meth:`.test_set`.
        :param properties: More properties, given as keyword arguments.
        :returns: Whether the body was run.
        :rtype: bool

        Similar to :meth:`.test_set`, but while the body runs, any property
        declared by the test case or by the containing test sets can be read
        via :meth:`.get` (or as an attribute of the context). Private values
        are re-created (lazily) for each test case, and if they have a
        ``finalize`` function, it is invoked to properly dispose of them at
        the end of the test case.

        Nesting a test set or a test case inside a test case is forbidden.
        That is, a test case is expected to actually test some specific
        scenario which was set up by the containing test sets. In BDD
        terminology, a test case is functionally equivalent to the "then"
        clause.

        The full name of the test case is the ``/``-separated path of the
        names of the containing test sets plus the test case ``name``. If test
        patterns were specified and none of them matches the full name, the
        test case is silently skipped.
        """
        if body is None:
            return _run_now(self.test_case, name, data, properties)
        _check_body(name, body)

        outcome = []

        def run_case():
            full_name = self.full_name()
            if not self.is_selected(full_name):
                LOGGER.debug("Skipping test {}".format(full_name))
                return

            self._values = {}
            try:
                LOGGER.debug("Test {}...".format(full_name))
                outcome.append(True)
                body()
            finally:
                self._finalize_values()

        self.test_set(name, run_case, data=data, **properties)
        return bool(outcome)

    def _finalize_values(self):
        """Dispose of the private values read by the test case."""
        values = self._values
        error = None
        try:
            for property, value in values.items():
                property_value = self._data[property]
                if (
                    not isinstance(property_value, PrivateValue)
                    or property_value.finalize is None
                ):
                    continue
                LOGGER.debug("Finalizing private value {}".format(property))
                try:
                    property_value.finalize(value)
                except Exception as e:
                    if error is None:
                        error = e
                    else:
                        LOGGER.error(
                            "Couldn't finalize private value {} due to "
                            "exception.".format(property),
                            exc_info=True,
                        )
        finally:
            self._values = None
        if error is not None:
            raise error


tc = TestContext()
"""The global context for running tests."""

# Keep pytest from collecting these when imported into a test module.
TestContext.__test__ = False
TestContextError.__test__ = False


def current_test_name():
    """The full name of the test set or test case being run by :data:`.tc`."""
    return tc.full_name()


def test_patterns(patterns):
    """Specify patterns for the tests :data:`.tc` will run.

    See :meth:`.TestContext.test_patterns`.
    """
    tc.test_patterns(patterns)


def test_set(name, body=None, *, data=(), **properties):
    """Run a test set using the global :data:`.tc` test context.

    See :meth:`.TestContext.test_set`.
    """
    return tc.test_set(name, body, data=data, **properties)


def test_case(name, body=None, *, data=(), **properties):
    """Run a test case using the global :data:`.tc` test context.

    See :meth:`.TestContext.test_case`.
    """
    return tc.test_case(name, body, data=data, **properties)


def reporting(test_case):
    """Report the results of :data:`.tc` through a unittest test case.

    See :meth:`.TestContext.reporting`.
    """
    return tc.reporting(test_case)


for _func in (test_patterns, test_set, test_case):
    _func.__test__ = False
del _func
