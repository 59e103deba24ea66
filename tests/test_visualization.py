import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from vmtrace_tool.analyzer.visualization import plot_call_tree, _resolve_spans
from vmtrace_tool.call_stack_reconstructor import CallStackReconstructor
from vmtrace_tool.models import ClockType, TraceAction

ENTER = TraceAction.METHOD_ENTER
EXIT = TraceAction.METHOD_EXIT


class TestVisualization(unittest.TestCase):
    def setUp(self):
        r = CallStackReconstructor()
        r.add_trace_action(1, ENTER, 0, 100)
        r.add_trace_action(2, ENTER, 10, 120)
        r.add_trace_action(2, EXIT, 20, 150)
        r.add_trace_action(1, EXIT, 30, 170)
        r.add_trace_action(3, EXIT, 40, 200)
        r.add_trace_action(4, ENTER, 50, 210)
        self.calls = r.get_top_level_callees()
        self.tmp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_resolve_spans_clips_unknown_times(self):
        spans = _resolve_spans(self.calls, ClockType.GLOBAL)

        synthetic = self.calls[0]
        self.assertEqual(spans[id(synthetic)], (100, 200))
        self.assertEqual(spans[id(synthetic.children[0])], (100, 170))

        truncated = self.calls[1]
        self.assertEqual(spans[id(truncated)], (210, 210))

    def test_plot_call_tree(self):
        with redirect_stdout(io.StringIO()):
            image_file = plot_call_tree(self.calls, self.tmp_dir.name, thread_id=1,
                                        clock=ClockType.GLOBAL, method_names={1: "Main.main()V"})

        self.assertIsNotNone(image_file)
        self.assertTrue(os.path.exists(image_file))
        self.assertEqual(image_file.name, "call_tree_thread_1_global.png")

    def test_plot_empty_forest(self):
        with redirect_stdout(io.StringIO()):
            with self.assertLogs('vmtrace_tool.analyzer.visualization', level='WARNING'):
                image_file = plot_call_tree((), self.tmp_dir.name, thread_id=2)
        self.assertIsNone(image_file)


if __name__ == '__main__':
    unittest.main()
