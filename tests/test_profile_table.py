"""
Firefox Profiler 表格序列化单元测试
"""

import unittest

from clang_trace_tool.models import TraceEvent, SourceInterval, CompilationUnit
from clang_trace_tool.analyzer.main import reconstruct_unit, PROFILE_MODE
from clang_trace_tool.serializers.profile_table import (
    ProfileTables,
    build_profile_document,
    convert_single_trace,
    merge_into_profile,
    COMPILATION_CATEGORY,
    HEADER_SUBCATEGORY,
)


def source_events(*spans):
    """(file, start, end) -> 使用不同 id 的 begin/end 事件"""
    events = []
    for idx, (file, start, end) in enumerate(spans):
        events.append(TraceEvent(name="Source", cat="Source", ph="b", ts=start, pid=1, tid=1, id=idx,
                                 args={"detail": file}))
        events.append(TraceEvent(name="Source", cat="Source", ph="e", ts=end, pid=1, tid=1, id=idx))
    return events


def make_unit(name, *spans):
    intervals = [SourceInterval(file=f, start=s, end=e, index=i) for i, (f, s, e) in enumerate(spans)]
    return CompilationUnit(name=name, intervals=intervals)


class TestProfileTables(unittest.TestCase):
    def test_string_table_starts_with_empty_string(self):
        tables = ProfileTables()
        self.assertEqual(tables.intern_string(""), 0)
        self.assertEqual(tables.intern_string("a.h"), 1)
        self.assertEqual(tables.intern_string("a.h"), 1)
        self.assertEqual(tables.string_array, ["", "a.h"])

    def test_frame_and_func_dedup(self):
        tables = ProfileTables()
        first = tables.get_or_create_frame("a.h")
        second = tables.get_or_create_frame("a.h")
        other = tables.get_or_create_frame("b.h")

        self.assertEqual(first, second)
        self.assertNotEqual(first, other)
        self.assertEqual(tables.frame_table['length'], 2)
        self.assertEqual(tables.func_table['length'], 2)
        self.assertEqual(tables.get_or_create_func("a.h"), tables.frame_table['func'][first])
        self.assertEqual(tables.frame_table['category'], [COMPILATION_CATEGORY] * 2)
        self.assertEqual(tables.frame_table['subcategory'], [HEADER_SUBCATEGORY] * 2)
        # fileName 与 name 使用同一个字符串索引
        self.assertEqual(tables.func_table['name'], tables.func_table['fileName'])

    def test_stack_dedup_by_frame_and_prefix(self):
        tables = ProfileTables()
        root = tables.get_or_create_stack(0, None)
        self.assertEqual(tables.get_or_create_stack(0, None), root)
        child = tables.get_or_create_stack(1, root)
        self.assertEqual(tables.get_or_create_stack(1, root), child)
        self.assertNotEqual(tables.get_or_create_stack(1, None), child)
        self.assertEqual(tables.stack_table['length'], 3)

    def test_shared_prefixes_collapse(self):
        tables = ProfileTables()
        left = tables.get_stack_for_path(["a.h", "b.h"])
        right = tables.get_stack_for_path(["a.h", "c.h"])

        self.assertEqual(tables.stack_table['prefix'][left], tables.stack_table['prefix'][right])
        self.assertEqual(tables.stack_table['length'], 3)
        self.assertIsNone(tables.get_stack_for_path([]))


class TestProfileDocument(unittest.TestCase):
    def test_single_interval(self):
        unit = reconstruct_unit("foo", source_events(("a.h", 1000, 2000)), mode=PROFILE_MODE)
        profile = convert_single_trace(unit, "foo.json")
        thread = profile['threads'][0]

        self.assertEqual(len(unit.intervals), 1)
        self.assertEqual(thread['samples']['length'], 1)
        self.assertEqual(thread['samples']['weight'], [1.0])
        self.assertEqual(thread['samples']['time'], [2.0])
        self.assertEqual(thread['samples']['weightType'], 'tracing-ms')
        self.assertEqual(thread['funcTable']['length'], 1)
        self.assertEqual(thread['frameTable']['length'], 1)
        self.assertEqual(thread['stackTable']['length'], 1)
        self.assertEqual(profile['shared']['stringArray'], ["", "a.h"])
        self.assertEqual(profile['meta']['arguments'], "foo.json")
        self.assertEqual(thread['name'], "Clang compilation: foo.json")

    def test_nested_samples_use_include_chain(self):
        unit = reconstruct_unit("foo", source_events(("outer.h", 0, 100), ("inner.h", 10, 40)))
        profile = convert_single_trace(unit, "foo.json")
        thread = profile['threads'][0]
        samples = thread['samples']
        strings = profile['shared']['stringArray']

        # 按结束时间排序: inner 先于 outer
        self.assertEqual(samples['time'], [0.04, 0.1])
        self.assertEqual(samples['weight'], [0.03, 0.07])

        inner_stack = samples['stack'][0]
        stack_table = thread['stackTable']
        frame_names = []
        current = inner_stack
        while current is not None:
            func = thread['frameTable']['func'][stack_table['frame'][current]]
            frame_names.append(strings[thread['funcTable']['name'][func]])
            current = stack_table['prefix'][current]
        self.assertEqual(frame_names, ["inner.h", "outer.h"])

        outer_stack = samples['stack'][1]
        self.assertEqual(stack_table['prefix'][inner_stack], outer_stack)

    def test_merged_profile_uses_unit_root_frames(self):
        unit_a = reconstruct_unit("a", source_events(("x.h", 0, 100)))
        unit_b = reconstruct_unit("b", source_events(("x.h", 0, 50)))

        profile = merge_into_profile([unit_a, unit_b], "Build")
        thread = profile['threads'][0]
        strings = profile['shared']['stringArray']

        self.assertEqual(thread['samples']['time'], [0.1, 0.15])
        # 根帧: a, b；共享头文件帧 x.h
        self.assertEqual(thread['frameTable']['length'], 3)
        self.assertEqual(thread['stackTable']['length'], 4)
        root_names = [strings[thread['funcTable']['name'][thread['frameTable']['func'][frame]]]
                      for frame, prefix in zip(thread['stackTable']['frame'], thread['stackTable']['prefix'])
                      if prefix is None]
        self.assertEqual(root_names, ["a", "b"])

    def test_self_durations_computed_when_missing(self):
        unit = make_unit("u", ("outer.h", 0, 100), ("inner.h", 10, 40))
        profile = convert_single_trace(unit, "u.json")

        self.assertEqual(profile['threads'][0]['samples']['weight'], [0.03, 0.07])

    def test_empty_document_is_valid(self):
        profile = build_profile_document([], "empty.json")
        thread = profile['threads'][0]

        self.assertEqual(thread['samples']['length'], 0)
        self.assertEqual(thread['stackTable']['length'], 0)
        self.assertEqual(profile['meta']['endTime'], profile['meta']['startTime'])

    def test_runs_do_not_share_tables(self):
        first = convert_single_trace(make_unit("u", ("a.h", 0, 10)), "u.json")
        second = convert_single_trace(make_unit("v", ("b.h", 0, 10)), "v.json")

        self.assertEqual(first['shared']['stringArray'], ["", "a.h"])
        self.assertEqual(second['shared']['stringArray'], ["", "b.h"])


if __name__ == '__main__':
    unittest.main()
