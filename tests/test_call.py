import unittest

from vmtrace_tool.call import Call, CallBuilder, format_method_id
from vmtrace_tool.models import ClockType


class TestCallBuilder(unittest.TestCase):
    def setUp(self):
        self.root = CallBuilder(1)
        self.root.set_method_entry_time(0, 100)
        self.child1 = CallBuilder(2)
        self.child1.set_method_entry_time(10, 110)
        self.child1.set_method_exit_time(30, 140)
        self.child2 = CallBuilder(3)
        self.child2.set_method_entry_time(40, 150)
        self.child2.set_method_exit_time(50, 170)
        self.root.add_callee(self.child1)
        self.root.add_callee(self.child2)
        self.root.set_method_exit_time(60, 200)

    def test_build_assigns_depths(self):
        call = self.root.build(0)

        self.assertIsInstance(call, Call)
        self.assertEqual(call.stack_depth, 0)
        self.assertEqual([c.method_id for c in call.children], [2, 3])
        self.assertEqual([c.stack_depth for c in call.children], [1, 1])

    def test_build_starts_at_given_depth(self):
        call = self.root.build(3)
        self.assertEqual(call.stack_depth, 3)
        self.assertEqual(call.children[0].stack_depth, 4)

    def test_build_is_idempotent(self):
        first = self.root.build(0)
        second = self.root.build(0)
        self.assertIs(first, second)
        self.assertTrue(self.root.is_built)

    def test_build_rejects_child_built_at_other_depth(self):
        self.child1.build(0)
        with self.assertRaises(ValueError):
            self.root.build(0)

    def test_build_reuses_child_built_at_same_depth(self):
        child = self.child1.build(1)
        call = self.root.build(0)
        self.assertIs(call.children[0], child)

    def test_call_is_immutable(self):
        call = self.root.build(0)
        with self.assertRaises(AttributeError):
            call.stack_depth = 5

    def test_adopt_callees_moves_list(self):
        ancestor = CallBuilder(9)
        callees = [self.root]
        ancestor.adopt_callees(callees)
        self.assertIs(ancestor.callees, callees)

        call = ancestor.build(0)
        self.assertEqual(call.children[0].method_id, 1)
        self.assertEqual(call.children[0].children[0].stack_depth, 2)

    def test_deep_chain_does_not_hit_recursion_limit(self):
        root = CallBuilder(0)
        current = root
        for i in range(1, 5000):
            callee = CallBuilder(i)
            current.add_callee(callee)
            current = callee

        call = root.build(0)
        deepest = list(call.iter_calls())[-1]
        self.assertEqual(deepest.method_id, 4999)
        self.assertEqual(deepest.stack_depth, 4999)


class TestCallTiming(unittest.TestCase):
    def setUp(self):
        root = CallBuilder(1)
        root.set_method_entry_time(0, 100)
        child = CallBuilder(2)
        child.set_method_entry_time(10, 110)
        child.set_method_exit_time(30, 140)
        root.add_callee(child)
        root.set_method_exit_time(60, 200)
        self.call = root.build(0)

    def test_inclusive_time_per_clock(self):
        self.assertEqual(self.call.get_inclusive_time(ClockType.THREAD), 60)
        self.assertEqual(self.call.get_inclusive_time(ClockType.GLOBAL), 100)

    def test_exclusive_time_per_clock(self):
        self.assertEqual(self.call.get_exclusive_time(ClockType.THREAD), 40)
        self.assertEqual(self.call.get_exclusive_time(ClockType.GLOBAL), 70)

    def test_incomplete_call_has_no_inclusive_time(self):
        builder = CallBuilder(5)
        builder.set_method_entry_time(1, 2)
        call = builder.build(0)

        self.assertTrue(call.is_entry_known)
        self.assertFalse(call.is_exit_known)
        self.assertFalse(call.is_complete)
        self.assertIsNone(call.get_inclusive_time(ClockType.THREAD))
        self.assertIsNone(call.get_exclusive_time(ClockType.GLOBAL))

    def test_exclusive_time_unknown_when_child_incomplete(self):
        parent = CallBuilder(1)
        parent.set_method_entry_time(0, 0)
        child = CallBuilder(2)
        child.set_method_entry_time(5, 5)
        parent.add_callee(child)
        parent.set_method_exit_time(10, 10)
        call = parent.build(0)

        self.assertEqual(call.get_inclusive_time(ClockType.THREAD), 10)
        self.assertIsNone(call.get_exclusive_time(ClockType.THREAD))

    def test_iter_calls_is_preorder(self):
        self.assertEqual([c.method_id for c in self.call.iter_calls()], [1, 2])

    def test_format_method_id(self):
        self.assertEqual(format_method_id(0x1a2b), "0x1a2b")


if __name__ == '__main__':
    unittest.main()
