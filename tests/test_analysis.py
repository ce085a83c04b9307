"""Tests for the tabular views on planning contexts and traces."""
import unittest

from pathtrace import (
    BaseRelation, CandidatePath, JoinEdge, PathKind, PlanningContext, Query, RelationEntry, StandardPlanner,
    TraceRecorder, render_path, TraceSettings, RichFormat,
)
from pathtrace.analysis import CandidateColumns, candidates_frame, trace_lines_frame


class CandidatesFrameTests(unittest.TestCase):
    def test_sweep_order(self) -> None:
        scan_a = CandidatePath(PathKind.SeqScan, rows=100.0, startup_cost=0.0, total_cost=10.0)
        index_a = CandidatePath(PathKind.IndexScan, rows=100.0, startup_cost=0.5, total_cost=8.0)
        scan_b = CandidatePath(PathKind.SeqScan, rows=5.0, startup_cost=0.0, total_cost=1.0)
        join = CandidatePath(PathKind.HashJoin, rows=50.0, startup_cost=2.0, total_cost=20.0, outer=index_a, inner=scan_b)
        context = PlanningContext(
            base_rels=[None, RelationEntry(frozenset({"a"}), [scan_a, index_a], cheapest_path=index_a),
                       RelationEntry(frozenset({"b"}), [scan_b], cheapest_path=scan_b)],
            join_rels=[RelationEntry(frozenset({"a", "b"}), [join], cheapest_path=join)])

        frame = candidates_frame(context)
        self.assertEqual(list(frame.columns), CandidateColumns)
        self.assertEqual(len(frame), 4)
        self.assertEqual(frame["relation"].tolist(), ["{a}", "{a}", "{b}", "{a, b}"])
        self.assertEqual(frame["scope"].tolist(), ["base", "base", "base", "join"])
        self.assertEqual(frame["position"].tolist(), [0, 1, 0, 0])
        self.assertEqual(frame["label"].tolist(), ["Seq Scan", "Index Scan", "Seq Scan", "Hash Join"])
        self.assertEqual(frame["cheapest"].tolist(), [False, True, True, True])

    def test_missing_context(self) -> None:
        frame = candidates_frame(None)
        self.assertTrue(frame.empty)
        self.assertEqual(list(frame.columns), CandidateColumns)

    def test_planner_context(self) -> None:
        query = Query((BaseRelation("a", rows=1000.0), BaseRelation("b", rows=100.0)), (JoinEdge("a", "b", 0.01),))
        planner = StandardPlanner()
        planner.plan(query)
        frame = candidates_frame(planner.current_context)

        self.assertEqual(set(frame["scope"]), {"base", "join"})
        cheapest_per_relation = frame.groupby("relation")["cheapest"].sum()
        self.assertTrue((cheapest_per_relation == 1).all())


class TraceLinesFrameTests(unittest.TestCase):
    def test_depths(self) -> None:
        outer = CandidatePath(PathKind.SeqScan, rows=1.0, startup_cost=0.0, total_cost=1.0)
        inner = CandidatePath(PathKind.SeqScan, rows=1.0, startup_cost=0.0, total_cost=1.0)
        join = CandidatePath(PathKind.NestLoop, rows=1.0, startup_cost=0.0, total_cost=2.0, outer=outer, inner=inner)
        recorder = TraceRecorder()
        render_path(join, sink=recorder, settings=TraceSettings(RichFormat))

        frame = trace_lines_frame(recorder)
        self.assertEqual(frame["depth"].tolist(), [0, 1, 1, 1, 1])
        self.assertEqual(set(frame["severity"]), {"INFO"})

    def test_empty_trace(self) -> None:
        frame = trace_lines_frame(TraceRecorder())
        self.assertTrue(frame.empty)


if __name__ == "__main__":
    unittest.main()
