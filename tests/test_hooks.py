"""Tests for installing the tracer on a planner and for its interaction with other hooks."""
import unittest

from pathtrace import (
    CandidatePath, MissingContextMessage, PathKind, PlanKind, PlanNode, PlannedStatement, PlannerHookPoint,
    PlanningContext, RelationEntry, Severity, SimpleFormat, TraceLine, TraceRecorder, TraceSettings, TraceWarning,
    TracingExtension,
)
from pathtrace.util import StateError

from tests import regression_suite


class _CountingPlanner:
    def __init__(self) -> None:
        self.calls = 0
        self.plan_tree = PlanNode(PlanKind.SeqScan, 0.0, 10.0, 100.0, 8, relation="a")

    def __call__(self, query, query_text="", planner_options=0, bound_params=None) -> PlannedStatement:
        self.calls += 1
        return PlannedStatement(self.plan_tree, query_text=query_text, planner_options=planner_options)


class _FailingPlanner:
    def __call__(self, query, query_text="", planner_options=0, bound_params=None) -> PlannedStatement:
        raise RuntimeError("planner exploded")


class _BrokenSink:
    def emit(self, line: TraceLine) -> None:
        raise OSError("sink is gone")


def _single_relation_context() -> PlanningContext:
    path = CandidatePath(PathKind.SeqScan, rows=100.0, startup_cost=0.0, total_cost=10.0, relids=frozenset({"a"}))
    return PlanningContext(base_rels=[None, RelationEntry(frozenset({"a"}), [path])])


class PlanningTracerTests(regression_suite.TraceTestCase):
    def test_missing_context(self) -> None:
        planner = _CountingPlanner()
        hook_point = PlannerHookPoint(planner)
        recorder = TraceRecorder()
        extension = TracingExtension(lambda: None, sink=recorder)
        extension.load(hook_point)

        result = hook_point.plan("SELECT 1", "SELECT 1")

        self.assertIs(result.plan_tree, planner.plan_tree)
        self.assertTraceEqual(recorder, [MissingContextMessage])
        self.assertEqual(recorder.lines[0].severity, Severity.Info)

    def test_result_is_returned_unchanged(self) -> None:
        planner = _CountingPlanner()
        expected = planner("q")
        hook_point = PlannerHookPoint(lambda *args: expected)
        extension = TracingExtension(_single_relation_context, sink=TraceRecorder())
        extension.load(hook_point)

        self.assertIs(hook_point.plan("q"), expected)

    def test_trace_with_context(self) -> None:
        hook_point = PlannerHookPoint(_CountingPlanner())
        recorder = TraceRecorder()
        extension = TracingExtension(_single_relation_context, sink=recorder, settings=TraceSettings(SimpleFormat))
        extension.load(hook_point)

        hook_point.plan("q")
        self.assertTraceEqual(recorder, [
            "Selected Plan: Seq Scan  cost=0.00..10.00 rows=100 width=8",
            "Examining relation 1",
            "Path type: Seq Scan | cost=10.00 | rows=100.00",
        ])

    def test_delegate_errors_propagate(self) -> None:
        hook_point = PlannerHookPoint(_FailingPlanner())
        recorder = TraceRecorder()
        extension = TracingExtension(_single_relation_context, sink=recorder)
        extension.load(hook_point)

        with self.assertRaises(RuntimeError):
            hook_point.plan("q")
        self.assertEqual(len(recorder), 0)

    def test_tracing_errors_are_reported(self) -> None:
        def broken_provider() -> PlanningContext:
            raise KeyError("context")

        planner = _CountingPlanner()
        hook_point = PlannerHookPoint(planner)
        recorder = TraceRecorder()
        extension = TracingExtension(broken_provider, sink=recorder)
        extension.load(hook_point)

        result = hook_point.plan("q")
        self.assertIs(result.plan_tree, planner.plan_tree)
        self.assertEqual(recorder.texts(severity=Severity.Warning), ["Trace aborted: KeyError: 'context'"])

    def test_broken_sink(self) -> None:
        planner = _CountingPlanner()
        hook_point = PlannerHookPoint(planner)
        extension = TracingExtension(_single_relation_context, sink=_BrokenSink())
        extension.load(hook_point)

        with self.assertWarns(TraceWarning):
            result = hook_point.plan("q")
        self.assertIs(result.plan_tree, planner.plan_tree)

    def test_arguments_are_forwarded(self) -> None:
        received = []

        def planner(query, query_text, planner_options, bound_params) -> PlannedStatement:
            received.append((query, query_text, planner_options, bound_params))
            return PlannedStatement(None, query_text, planner_options)

        hook_point = PlannerHookPoint(planner)
        TracingExtension(lambda: None, sink=TraceRecorder()).load(hook_point)
        hook_point.plan("q", "query text", 4, {"p": 1})
        self.assertEqual(received, [("q", "query text", 4, {"p": 1})])


class TracingExtensionTests(unittest.TestCase):
    def test_load_and_unload(self) -> None:
        hook_point = PlannerHookPoint(_CountingPlanner())
        extension = TracingExtension(lambda: None, sink=TraceRecorder())

        tracer = extension.load(hook_point)
        self.assertTrue(extension.loaded)
        self.assertIs(hook_point.hook, tracer)

        extension.unload()
        self.assertFalse(extension.loaded)
        self.assertIsNone(hook_point.hook)
        self.assertIsNone(extension.tracer)

    def test_previous_hook_is_chained(self) -> None:
        planner = _CountingPlanner()
        hook_point = PlannerHookPoint(planner)
        hook_calls = []

        def custom_hook(query, query_text, planner_options, bound_params) -> PlannedStatement:
            hook_calls.append(query)
            return planner(query, query_text, planner_options, bound_params)

        hook_point.hook = custom_hook
        recorder = TraceRecorder()
        extension = TracingExtension(lambda: None, sink=recorder)
        extension.load(hook_point)

        hook_point.plan("q")
        self.assertEqual(hook_calls, ["q"])
        self.assertEqual(planner.calls, 1)
        self.assertEqual(len(recorder), 1)

        extension.unload()
        self.assertIs(hook_point.hook, custom_hook)

    def test_stacked_extensions(self) -> None:
        planner = _CountingPlanner()
        hook_point = PlannerHookPoint(planner)
        first_recorder, second_recorder = TraceRecorder(), TraceRecorder()
        first = TracingExtension(lambda: None, sink=first_recorder)
        second = TracingExtension(lambda: None, sink=second_recorder)
        first_tracer = first.load(hook_point)
        second.load(hook_point)

        hook_point.plan("q")
        self.assertEqual(planner.calls, 1)
        self.assertEqual(len(first_recorder), 1)
        self.assertEqual(len(second_recorder), 1)

        with self.assertRaises(StateError):
            first.unload()

        second.unload()
        self.assertIs(hook_point.hook, first_tracer)
        first.unload()
        self.assertIsNone(hook_point.hook)

    def test_invalid_state_transitions(self) -> None:
        hook_point = PlannerHookPoint(_CountingPlanner())
        extension = TracingExtension(lambda: None, sink=TraceRecorder())
        with self.assertRaises(StateError):
            extension.unload()

        extension.load(hook_point)
        with self.assertRaises(StateError):
            extension.load(hook_point)

    def test_context_manager(self) -> None:
        hook_point = PlannerHookPoint(_CountingPlanner())
        with TracingExtension(lambda: None, sink=TraceRecorder()) as extension:
            extension.load(hook_point)
            self.assertIsNotNone(hook_point.hook)
        self.assertIsNone(hook_point.hook)
        self.assertFalse(extension.loaded)


if __name__ == "__main__":
    unittest.main()
