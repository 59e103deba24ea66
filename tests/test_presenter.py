import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from vmtrace_tool.analyzer.aggregator import data_aggregation
from vmtrace_tool.analyzer.presenter import (
    summarize_aggregated_calls,
    merge_summaries,
    build_rows,
    generate_base_name,
    generate_output_files,
    print_markdown_table,
)
from vmtrace_tool.call_stack_reconstructor import reconstruct_call_stacks
from vmtrace_tool.models import ClockType, TraceAction, TraceEvent

ENTER = TraceAction.METHOD_ENTER
EXIT = TraceAction.METHOD_EXIT


class TestPresenter(unittest.TestCase):
    def setUp(self):
        trees = reconstruct_call_stacks([
            TraceEvent(1, 1, ENTER, 0, 0),
            TraceEvent(1, 2, ENTER, 10, 10),
            TraceEvent(1, 2, EXIT, 20, 40),
            TraceEvent(1, 1, EXIT, 100, 200),
        ])
        self.method_names = {1: "Main.run()V"}
        aggregated = data_aggregation(trees, ['method'])
        self.summaries = summarize_aggregated_calls(aggregated, ['method'], self.method_names)
        self.tmp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_summary_keys_are_method_ids(self):
        self.assertEqual(set(self.summaries), {1, 2})
        self.assertEqual(self.summaries[1].columns, {'method': "Main.run()V"})
        self.assertEqual(self.summaries[2].columns, {'method': "0x2"})

    def test_methods_sharing_a_name_are_kept_apart(self):
        trees = reconstruct_call_stacks([
            TraceEvent(1, 1, ENTER, 0, 0),
            TraceEvent(1, 1, EXIT, 10, 10),
            TraceEvent(1, 2, ENTER, 20, 20),
            TraceEvent(1, 2, EXIT, 50, 50),
        ])
        aggregated = data_aggregation(trees, ['method'])
        summaries = summarize_aggregated_calls(aggregated, ['method'], {1: "Foo.bar", 2: "Foo.bar"})

        rows = build_rows(summaries)

        self.assertEqual(len(rows), 2)
        self.assertEqual(sum(row['count'] for row in rows), 2)
        self.assertEqual([row['thread_inclusive_total'] for row in rows], [30, 10])

        merged = build_rows(merge_summaries([summaries, summaries]))
        self.assertEqual(sum(row['count'] for row in merged), 4)

    def test_build_rows_sorted_by_inclusive_total(self):
        rows = build_rows(self.summaries, sort_clock=ClockType.THREAD)

        self.assertEqual([row['method'] for row in rows], ["Main.run()V", "0x2"])
        first = rows[0]
        self.assertEqual(first['count'], 1)
        self.assertEqual(first['thread_inclusive_total'], 100)
        self.assertEqual(first['global_inclusive_total'], 200)
        self.assertEqual(first['thread_exclusive_total'], 90)
        self.assertEqual(first['global_exclusive_total'], 170)
        self.assertEqual(first['thread_exclusive_ratio'], 90.0)
        self.assertNotIn('file_count', first)

    def test_merge_summaries_across_files(self):
        merged = merge_summaries([self.summaries, self.summaries])
        rows = build_rows(merged)

        self.assertEqual(rows[0]['count'], 2)
        self.assertEqual(rows[0]['file_count'], 2)
        self.assertEqual(rows[0]['thread_inclusive_total'], 200)

    def test_generate_output_files(self):
        rows = build_rows(self.summaries)
        base_name = generate_base_name(['method'], 'baseline')
        self.assertEqual(base_name, "baseline_calls_by_method")

        with redirect_stdout(io.StringIO()):
            files = generate_output_files(rows, self.tmp_dir.name, base_name, ['json', 'csv', 'xlsx'])

        self.assertEqual([f.suffix for f in files], ['.json', '.csv', '.xlsx'])
        for f in files:
            self.assertTrue(os.path.exists(f))

        with open(files[0], encoding='utf-8') as f:
            data = json.load(f)
        self.assertEqual(data[0]['method'], "Main.run()V")

    def test_generate_output_files_without_rows(self):
        with self.assertLogs('vmtrace_tool.analyzer.presenter', level='WARNING'):
            files = generate_output_files([], self.tmp_dir.name, "empty", ['json'])
        self.assertEqual(files, [])

    def test_print_markdown_table(self):
        rows = build_rows(self.summaries)
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            print_markdown_table(rows, "调用统计")

        output = buffer.getvalue()
        self.assertIn("# 调用统计", output)
        self.assertIn("| method |", output)
        self.assertIn("Main.run()V", output)


if __name__ == '__main__':
    unittest.main()
