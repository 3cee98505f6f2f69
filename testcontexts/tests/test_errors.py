import pickle
import unittest

from testcontexts import (
    OutOfContextError,
    PatternCompileError,
    PrivateValue,
    PropertyNotFoundError,
    SharedValue,
    TestContext,
    TestContextError,
    UsageError,
)


class TestPropertyAccess(unittest.TestCase):

    def setUp(self):
        self.context = TestContext()

    def test_read_outside_any_scope(self):
        with self.assertRaises(OutOfContextError) as raised:
            self.context.foo
        self.assertEqual(raised.exception.property, "foo")
        self.assertEqual(raised.exception.full_name, "")

    def test_read_inside_a_test_set(self):
        context = self.context
        errors = []

        def body():
            try:
                context.get("foo")
            except OutOfContextError as e:
                errors.append(e)

        context.test_set("context", body, foo=SharedValue("foo"))
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].full_name, "context")
        self.assertIn("outside a test case", str(errors[0]))

    def test_read_undeclared_property(self):
        context = self.context

        def body():
            context.get("missing")

        with self.assertRaises(PropertyNotFoundError) as raised:
            context.test_case("case", body)
        self.assertEqual(
            str(raised.exception),
            "Test context case has no property named missing",
        )
        self.assertIsInstance(raised.exception, KeyError)
        self.assertIsInstance(raised.exception, TestContextError)

    def test_private_attributes_are_not_properties(self):
        with self.assertRaises(AttributeError):
            self.context._missing


class TestPickling(unittest.TestCase):

    def test_errors_survive_pickling(self):
        errors = [
            OutOfContextError("foo", "a/b"),
            PropertyNotFoundError("foo", "a/b"),
            PatternCompileError("(bad", "missing )"),
        ]
        for error in errors:
            copy = pickle.loads(pickle.dumps(error))
            self.assertIs(type(copy), type(error))
            self.assertEqual(str(copy), str(error))
            self.assertEqual(copy.args, error.args)
        copy = pickle.loads(pickle.dumps(errors[1]))
        self.assertEqual((copy.property, copy.full_name), ("foo", "a/b"))
        copy = pickle.loads(pickle.dumps(errors[2]))
        self.assertEqual((copy.pattern, copy.error), ("(bad", "missing )"))


class TestUsage(unittest.TestCase):

    def setUp(self):
        self.context = TestContext()

    def test_set_inside_case(self):
        context = self.context

        def body():
            context.test_set("nested", lambda: None)

        with self.assertRaises(UsageError):
            context.test_case("case", body)
        self.assertEqual(context.names, ())
        self.assertFalse(context.in_test_case)

    def test_case_inside_case(self):
        context = self.context

        def body():
            context.test_case("nested", lambda: None)

        with self.assertRaises(UsageError):
            context.test_case("case", body)

    def test_override_visible_property(self):
        context = self.context
        ran = []

        def inner():
            ran.append("inner")

        def outer():
            context.test_set("inner", inner, foo=SharedValue(2))

        with self.assertRaises(UsageError):
            context.test_set("outer", outer, foo=SharedValue(1))
        self.assertEqual(ran, [])
        self.assertEqual(context.names, ())
        self.assertFalse(context.has("foo"))

    def test_siblings_may_declare_the_same_property(self):
        context = self.context
        read = []

        def first():

            @context.test_case("case")
            def test():
                read.append(context.foo)

        def second():

            @context.test_case("case", foo=PrivateValue(lambda: 2))
            def test():
                read.append(context.foo)

        def body():
            context.test_set("first", first, foo=SharedValue(1))
            context.test_set("second", second)

        context.test_set("siblings", body)
        self.assertEqual(read, [1, 2])

    def test_failed_declaration_changes_nothing(self):
        context = self.context
        checked = []

        def body():
            with self.assertRaises(UsageError):
                context.test_set(
                    "bad",
                    lambda: None,
                    data=[("bar", SharedValue(1))],
                    foo=SharedValue(2),
                )
            checked.append((context.names, context.has("bar")))

        context.test_set("outer", body, foo=SharedValue(1))
        self.assertEqual(checked, [(("outer",), False)])

    def test_same_property_twice_in_one_declaration(self):
        with self.assertRaises(UsageError):
            self.context.test_set(
                "twice",
                lambda: None,
                data=[("foo", SharedValue(1))],
                foo=SharedValue(2),
            )

    def test_invalid_declarations(self):
        with self.assertRaises(UsageError):
            self.context.test_set("raw", lambda: None, foo=1)
        with self.assertRaises(UsageError):
            self.context.test_set(
                "private name",
                lambda: None,
                data=[("_foo", SharedValue(1))],
            )
        self.assertEqual(self.context.names, ())

    def test_body_must_be_callable(self):
        context = self.context
        with self.assertRaises(UsageError):
            context.test_case("case", {"bar": SharedValue(2)})
        with self.assertRaises(UsageError):
            context.test_set("set", [("bar", SharedValue(2))])
        self.assertEqual(context.names, ())
        self.assertFalse(context.has("bar"))
        self.assertFalse(context.in_test_case)

    def test_data_is_keyword_only(self):
        with self.assertRaises(TypeError):
            self.context.test_set(
                "set",
                lambda: None,
                [("bar", SharedValue(2))],
            )

    def test_property_may_not_shadow_context_members(self):
        context = self.context
        for name in ("names", "get", "has", "full_name", "test_case",
                     "in_test_case", "reporting", "is_selected"):
            with self.assertRaises(UsageError):
                context.test_case(
                    "case",
                    lambda: None,
                    data=[(name, SharedValue(["a", "b"]))],
                )
        self.assertEqual(context.names, ())

    def test_cleanup_when_the_set_raises(self):
        context = self.context

        def body():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            context.test_set("raises", body, foo=SharedValue(1))
        self.assertEqual(context.names, ())
        self.assertFalse(context.has("foo"))


if __name__ == '__main__':
    unittest.main()
