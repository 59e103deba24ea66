import gzip
import json
import os
import tempfile
import unittest

from vmtrace_tool.models import TraceAction
from vmtrace_tool.parser import parse_trace_events, TraceFileError


class TestParser(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.data = {
            "traceName": "sample",
            "methods": {"0xa": "Foo.bar()V", "11": "Foo.baz()V", "bogus": "x"},
            "traceEvents": [
                {"tid": 1, "method_id": "0xa", "action": "enter", "thread_time": 0, "global_time": 100},
                {"tid": 1, "method_id": 11, "action": "enter", "thread_time": 5, "global_time": 105},
                {"tid": 1, "method_id": 11, "action": "exit", "thread_time": 9, "global_time": 110},
                {"tid": 1, "method_id": 10, "action": "exit", "thread_time": 12, "global_time": 120},
                {"tid": 1, "method_id": 10, "action": "jump", "thread_time": 13, "global_time": 121},
                {"tid": 2, "action": "enter", "thread_time": 0, "global_time": 0},
            ]
        }

    def tearDown(self):
        self.tmp_dir.cleanup()

    def _write(self, name, data, compress=False):
        path = os.path.join(self.tmp_dir.name, name)
        if compress:
            with gzip.open(path, 'wt', encoding='utf-8') as f:
                json.dump(data, f)
        else:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(data, f)
        return path

    def test_parse_events_skips_malformed(self):
        path = self._write("trace.json", self.data)

        with self.assertLogs('vmtrace_tool.parser', level='WARNING'):
            trace = parse_trace_events(path)

        self.assertEqual(len(trace.events), 4)
        first = trace.events[0]
        self.assertEqual(first.thread_id, 1)
        self.assertEqual(first.method_id, 0xa)
        self.assertIs(first.action, TraceAction.METHOD_ENTER)
        self.assertEqual((first.thread_time, first.global_time), (0, 100))
        self.assertIs(trace.events[3].action, TraceAction.METHOD_EXIT)

    def test_method_names(self):
        path = self._write("trace.json", self.data)
        with self.assertLogs('vmtrace_tool.parser', level='WARNING'):
            trace = parse_trace_events(path)

        self.assertEqual(trace.method_names, {10: "Foo.bar()V", 11: "Foo.baz()V"})
        self.assertEqual(trace.metadata['traceName'], "sample")

    def test_gzip_file(self):
        data = {"traceEvents": self.data["traceEvents"][:4]}
        path = self._write("trace.json.gz", data, compress=True)

        trace = parse_trace_events(path)
        self.assertEqual(len(trace.events), 4)

    def test_missing_file(self):
        with self.assertRaises(TraceFileError):
            parse_trace_events(os.path.join(self.tmp_dir.name, "missing.json"))

    def test_invalid_json(self):
        path = os.path.join(self.tmp_dir.name, "broken.json")
        with open(path, 'w', encoding='utf-8') as f:
            f.write("{not json")
        with self.assertRaises(TraceFileError):
            parse_trace_events(path)

    def test_invalid_encoding(self):
        path = os.path.join(self.tmp_dir.name, "binary.json")
        with open(path, 'wb') as f:
            f.write(b'{"traceEvents": ["\xff\xfe"]}')
        with self.assertRaises(TraceFileError):
            parse_trace_events(path)

    def test_truncated_gzip(self):
        path = self._write("trace.json.gz", self.data, compress=True)
        with open(path, 'rb') as f:
            content = f.read()
        with open(path, 'wb') as f:
            f.write(content[:len(content) // 2])
        with self.assertRaises(TraceFileError):
            parse_trace_events(path)

    def test_decimal_ids_with_leading_zeros(self):
        data = {
            "methods": {"010": "Foo.bar()V", "0X1f": "Foo.baz()V"},
            "traceEvents": [
                {"tid": "07", "method_id": "010", "action": "enter", "thread_time": "005", "global_time": 9},
            ],
        }
        path = self._write("zeros.json", data)

        trace = parse_trace_events(path)

        self.assertEqual(trace.method_names, {10: "Foo.bar()V", 31: "Foo.baz()V"})
        event = trace.events[0]
        self.assertEqual((event.thread_id, event.method_id, event.thread_time), (7, 10, 5))

    def test_missing_trace_events(self):
        path = self._write("empty.json", {"events": []})
        with self.assertRaises(TraceFileError):
            parse_trace_events(path)


if __name__ == '__main__':
    unittest.main()
