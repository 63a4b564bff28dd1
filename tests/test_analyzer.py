"""
编译单元重建与多文件并行处理测试
"""

import json
import os
import tempfile
import unittest

from clang_trace_tool.models import TraceEvent
from clang_trace_tool.analyzer.main import (
    reconstruct_unit,
    process_trace_file,
    process_trace_files,
    unit_name_for,
    PROFILE_MODE,
    DASHBOARD_MODE,
)
from clang_trace_tool.hierarchy_builder import FULL_ANCESTOR, NEAREST_PARENT
from clang_trace_tool.errors import MalformedTraceError
from clang_trace_tool.serializers.dashboard import build_dashboard_document


def raw_trace(*spans, build_dur=1000):
    events = [{"name": "ExecuteCompiler", "ph": "X", "ts": 0, "dur": build_dur, "pid": 1, "tid": 1}]
    for idx, (file, start, end) in enumerate(spans):
        events.append({"name": "Source", "cat": "Source", "ph": "b", "ts": start, "pid": 1, "tid": 1,
                       "id": idx, "args": {"detail": file}})
        events.append({"name": "Source", "cat": "Source", "ph": "e", "ts": end, "pid": 1, "tid": 1, "id": idx})
    return {"traceEvents": events}


def to_events(trace):
    return [TraceEvent(name=e["name"], cat=e.get("cat", ""), ph=e["ph"], ts=e["ts"], pid=e["pid"],
                       tid=e["tid"], id=e.get("id"), dur=e.get("dur"), args=e.get("args", {}))
            for e in trace["traceEvents"]]


class TestReconstructUnit(unittest.TestCase):
    def test_profile_mode_builds_ancestor_chains(self):
        events = to_events(raw_trace(("outer.h", 0, 100), ("inner.h", 10, 40), build_dur=5000))
        unit = reconstruct_unit("foo", events, mode=PROFILE_MODE)

        self.assertEqual(unit.hierarchy, FULL_ANCESTOR)
        self.assertEqual(unit.build_time, 5000)
        outer, inner = unit.intervals
        self.assertEqual(inner.get_include_stack(), ["outer.h", "inner.h"])
        self.assertIsNone(inner.parent)
        self.assertEqual((outer.self_duration, inner.self_duration), (70, 30))
        self.assertEqual(unit.diagnostics, [])

    def test_dashboard_mode_assigns_parents(self):
        events = to_events(raw_trace(("outer.h", 0, 100), ("inner.h", 10, 40)))
        unit = reconstruct_unit("foo", events, mode=DASHBOARD_MODE)

        self.assertEqual(unit.hierarchy, NEAREST_PARENT)
        outer, inner = unit.intervals
        self.assertIs(inner.parent, outer)
        self.assertIsNone(inner.ancestors)

    def test_partial_overlap_diagnostic(self):
        events = to_events(raw_trace(("a.h", 0, 50), ("b.h", 10, 100)))
        unit = reconstruct_unit("foo", events)

        kinds = [d.kind for d in unit.diagnostics]
        self.assertIn("partial_overlap", kinds)

    def test_partial_overlap_strict(self):
        events = to_events(raw_trace(("a.h", 0, 50), ("b.h", 10, 100)))
        with self.assertRaises(MalformedTraceError):
            reconstruct_unit("foo", events, strict=True)

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            reconstruct_unit("foo", [], mode="flame")

    def test_empty_events(self):
        unit = reconstruct_unit("foo", [])
        self.assertEqual(unit.intervals, [])
        self.assertEqual(unit.build_time, 0)

    def test_unit_name(self):
        self.assertEqual(unit_name_for("/tmp/obj/Foo.cpp.json"), "Foo.cpp")
        self.assertEqual(unit_name_for("trace.json.gz"), "trace.json.gz")


class TestProcessFiles(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write(self, name, trace):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, 'w', encoding='utf-8') as f:
            if isinstance(trace, str):
                f.write(trace)
            else:
                json.dump(trace, f)
        return path

    def test_process_trace_file(self):
        path = self._write("a.cpp.json", raw_trace(("a.h", 0, 10)))
        result_path, unit = process_trace_file(path, mode=DASHBOARD_MODE)

        self.assertEqual(result_path, path)
        self.assertEqual(unit.name, "a.cpp")
        self.assertEqual(unit.source_path, path)
        self.assertEqual(len(unit.intervals), 1)

    def test_bad_file_returns_none(self):
        path = self._write("bad.json", "{")
        self.assertEqual(process_trace_file(path), (path, None))

    def test_strict_malformed_file_is_skipped(self):
        path = self._write("bad.json", raw_trace(("a.h", 0, 50), ("b.h", 10, 100)))
        self.assertEqual(process_trace_file(path, strict=True), (path, None))

    def test_process_files_keeps_input_order_and_skips_failures(self):
        paths = [
            self._write("b.json", raw_trace(("b.h", 0, 10))),
            self._write("bad.json", "not json"),
            self._write("empty.json", raw_trace()),
            self._write("a.json", raw_trace(("a.h", 0, 10), ("c.h", 2, 3))),
        ]
        units = process_trace_files(paths, mode=PROFILE_MODE, max_workers=1)

        self.assertEqual([unit.name for unit in units], ["b", "a"])

    def _odd_field_traces(self):
        null_end = raw_trace(("b.h", 0, 10))
        null_end["traceEvents"].append({"name": "Source", "cat": "Source", "ph": "e", "ts": None,
                                        "pid": 1, "tid": 1, "id": 0})
        string_ts = raw_trace()
        string_ts["traceEvents"] += [
            {"name": "Source", "cat": "Source", "ph": "b", "ts": 0, "pid": 1, "tid": 1, "id": 0,
             "args": {"detail": "c.h"}},
            {"name": "Source", "cat": "Source", "ph": "e", "ts": "10", "pid": 1, "tid": 1, "id": 0},
        ]
        list_detail = raw_trace()
        list_detail["traceEvents"] += [
            {"name": "Source", "cat": "Source", "ph": "b", "ts": 0, "pid": 1, "tid": 1, "id": 0,
             "args": {"detail": ["d.h"]}},
            {"name": "Source", "cat": "Source", "ph": "e", "ts": 5, "pid": 1, "tid": 1, "id": 0},
        ]
        return [
            self._write("good.json", raw_trace(("a.h", 0, 10))),
            self._write("null_end.json", null_end),
            self._write("string_ts.json", string_ts),
            self._write("list_detail.json", list_detail),
        ]

    def test_odd_field_values_do_not_abort_run(self):
        paths = self._odd_field_traces()
        for max_workers in (1, 2):
            units = process_trace_files(paths, mode=DASHBOARD_MODE, max_workers=max_workers)

            self.assertEqual([unit.name for unit in units], ["good", "null_end", "string_ts"])
            self.assertEqual([(i.file, i.end) for unit in units for i in unit.intervals],
                             [("a.h", 10), ("b.h", 10), ("c.h", 10.0)])

            document = build_dashboard_document(units)
            self.assertEqual(sorted(document['tables']['files']), ["a.h", "b.h", "c.h"])

    def test_process_files_in_worker_pool(self):
        paths = [self._write(f"u{n}.json", raw_trace(("x.h", 0, 10 + n))) for n in range(3)]
        units = process_trace_files(paths, mode=DASHBOARD_MODE, max_workers=2)

        self.assertEqual([unit.name for unit in units], ["u0", "u1", "u2"])
        self.assertEqual([unit.intervals[0].end for unit in units], [10, 11, 12])


if __name__ == '__main__':
    unittest.main()
