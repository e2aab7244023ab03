import unittest

from ptaflow.util.canonical import CanonicalObject, Sentinel
from ptaflow.util.typedispatch import (
    TypeDispatchDeclarationError,
    TypeDispatcher,
    TypeDispatchError,
    defaultdispatch,
    dispatch,
)


class TestTypeDispatch(unittest.TestCase):
    def testTD(self):
        def visitNumber(self, node):
            return "number"

        def visitDefault(self, node):
            return "default"

        class FooBar(TypeDispatcher):
            num = dispatch(int)(visitNumber)
            default = defaultdispatch(visitDefault)

        self.assertEqual(FooBar.__dict__["num"], visitNumber)
        self.assertEqual(FooBar.__dict__["default"], visitDefault)

        foo = FooBar()

        self.assertEqual(foo(1), "number")
        self.assertEqual(foo(2**70), "number")
        self.assertEqual(foo(True), "number")
        self.assertEqual(foo(1.0), "default")

    def testExceptionDefault(self):
        class Strict(TypeDispatcher):
            @dispatch(str, bytes)
            def visitText(self, node, suffix):
                return node + suffix

        strict = Strict()
        self.assertEqual(strict("a", "b"), "ab")
        self.assertRaises(TypeDispatchError, strict, 1, "b")

    def testInheritedHandlers(self):
        class Base(TypeDispatcher):
            @dispatch(int)
            def visitInt(self, node):
                return "base"

        class Derived(Base):
            @dispatch(float)
            def visitFloat(self, node):
                return "derived"

        self.assertEqual(Derived()(1), "base")
        self.assertEqual(Derived()(1.0), "derived")

    def testDuplicateDeclaration(self):
        with self.assertRaises(TypeDispatchDeclarationError):
            class Twice(TypeDispatcher):
                @dispatch(int)
                def a(self, node):
                    pass

                @dispatch(int)
                def b(self, node):
                    pass


class TestCanonical(unittest.TestCase):
    def testStructuralEquality(self):
        class Point(CanonicalObject):
            __slots__ = ()

        class Other(CanonicalObject):
            __slots__ = ()

        self.assertEqual(Point(1, 2), Point(1, 2))
        self.assertEqual(hash(Point(1, 2)), hash(Point(1, 2)))
        self.assertNotEqual(Point(1, 2), Point(2, 1))
        self.assertNotEqual(Point(1, 2), Other(1, 2))
        self.assertEqual(repr(Point(1, "a")), "Point(1, 'a')")

    def testSentinel(self):
        self.assertEqual(repr(Sentinel("base")), "base")
        self.assertNotEqual(Sentinel("base"), Sentinel("base"))


if __name__ == "__main__":
    unittest.main()
