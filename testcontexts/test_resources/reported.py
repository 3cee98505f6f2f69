import unittest

from testcontexts import (
    PrivateValue,
    PropertyNotFoundError,
    SharedValue,
    TestContext,
)


context = TestContext()

made = []
finalized = []
ran = []


def make_items():
    items = []
    made.append(items)
    return items


class TestReported(unittest.TestCase):

    def test_contexts(self):
        with context.reporting(self):
            context.test_set("reported", self.reported)

    def reported(self):
        context.test_set("with foo", self.with_foo, foo=SharedValue(1))
        context.test_set(
            "with items",
            self.with_items,
            items=PrivateValue(make_items, finalized.append),
        )

    def with_foo(self):

        @context.test_case("passes")
        def test():
            ran.append(context.full_name())
            self.assertEqual(context.foo, 1)

        @context.test_case("fails")
        def test():
            ran.append(context.full_name())
            self.assertEqual(context.foo, 2)

        @context.test_case("errors")
        def test():
            ran.append(context.full_name())
            context.get("bar")

        @context.test_case("still runs")
        def test():
            ran.append(context.full_name())
            with self.assertRaises(PropertyNotFoundError):
                context.bar

    def with_items(self):

        @context.test_case("fails after reading")
        def test():
            ran.append(context.full_name())
            context.items.append(1)
            self.fail("failed on purpose")

        @context.test_case("gets fresh items")
        def test():
            ran.append(context.full_name())
            self.assertEqual(context.items, [])


expected_ran = [
    "reported/with foo/passes",
    "reported/with foo/fails",
    "reported/with foo/errors",
    "reported/with foo/still runs",
    "reported/with items/fails after reading",
    "reported/with items/gets fresh items",
]
