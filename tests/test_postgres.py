"""Tests for plans that are obtained from Postgres.

The tests of the live planner require a working Postgres instance. The connection is read from the *.psycopg_connection*
file in the current working directory. If that file does not exist, these tests are skipped.
"""
import unittest

from pathtrace import PlanKind, PlanNode, PlannerHookPoint, TraceRecorder, TracingExtension, plan_label
from pathtrace.planner import PlanningWarning
from pathtrace.postgres import PostgresPlanner, connect, parse_explain

from tests import regression_suite

pg_connect_dir = "."
pg_config_file = f"{pg_connect_dir}/.psycopg_connection"

HashJoinExplain = [{
    "Plan": {
        "Node Type": "Hash Join",
        "Join Type": "Inner",
        "Startup Cost": 1.5,
        "Total Cost": 48.25,
        "Plan Rows": 42,
        "Plan Width": 16,
        "Plans": [
            {"Node Type": "Seq Scan", "Relation Name": "title", "Startup Cost": 0.0, "Total Cost": 35.5,
             "Plan Rows": 2550, "Plan Width": 8},
            {"Node Type": "Hash", "Startup Cost": 1.25, "Total Cost": 1.25, "Plan Rows": 20, "Plan Width": 8,
             "Plans": [
                 {"Node Type": "Index Only Scan", "Relation Name": "movie_info", "Startup Cost": 0.15,
                  "Total Cost": 1.25, "Plan Rows": 20, "Plan Width": 8}
             ]}
        ]
    }
}]


class ExplainParsingTests(regression_suite.PlanTestCase):
    def test_parse_hash_join(self) -> None:
        plan = parse_explain(HashJoinExplain)
        expected = PlanNode(PlanKind.HashJoin, 1.5, 48.25, 42.0, 16,
                            left=PlanNode(PlanKind.SeqScan, 0.0, 35.5, 2550.0, 8, relation="title"),
                            right=PlanNode(PlanKind.Hash, 1.25, 1.25, 20.0, 8,
                                           left=PlanNode(PlanKind.IndexOnlyScan, 0.15, 1.25, 20.0, 8,
                                                         relation="movie_info")))
        self.assertPlansEqual(plan, expected)
        self.assertEqual(plan.left.relation, "title")
        self.assertEqual(plan.rows, 42.0)
        self.assertEqual(plan.width, 16)

    def test_accepts_all_nesting_levels(self) -> None:
        from_list = parse_explain(HashJoinExplain)
        from_dict = parse_explain(HashJoinExplain[0])
        from_plan = parse_explain(HashJoinExplain[0]["Plan"])
        self.assertPlansEqual(from_list, from_dict)
        self.assertPlansEqual(from_list, from_plan)

    def test_node_type_names(self) -> None:
        node_types = {
            "Nested Loop": PlanKind.NestLoop,
            "Aggregate": PlanKind.Agg,
            "Materialize": PlanKind.Material,
            "Bitmap Heap Scan": PlanKind.BitmapHeapScan,
            "Tid Scan": PlanKind.TidScan,
            "Limit": PlanKind.Limit,
            "Custom Scan": PlanKind.Other,
        }
        for node_type, kind in node_types.items():
            with self.subTest("Node type", node_type=node_type):
                self.assertEqual(parse_explain({"Node Type": node_type}).kind, kind)

    def test_unknown_nodes_use_fallback_label(self) -> None:
        plan = parse_explain({"Node Type": "Foreign Scan"})
        self.assertEqual(plan_label(plan.kind), "Other Plan")

    def test_surplus_children_are_dropped(self) -> None:
        scans = [{"Node Type": "Seq Scan", "Relation Name": f"part_{i}"} for i in range(3)]
        with self.assertWarns(PlanningWarning):
            plan = parse_explain({"Node Type": "Append", "Plans": scans})
        self.assertEqual(plan.kind, PlanKind.Append)
        self.assertEqual([child.relation for child in plan.children()], ["part_0", "part_1"])

    def test_invalid_input(self) -> None:
        with self.assertRaises(ValueError):
            parse_explain([])
        with self.assertRaises(ValueError):
            parse_explain({"Planning Time": 0.1})


class ConnectTests(unittest.TestCase):
    def test_missing_config_file(self) -> None:
        with self.assertRaises(ValueError):
            connect(config_file=f"{pg_connect_dir}/.psycopg_connection_does_not_exist")


@regression_suite.skip_if_no_db(pg_config_file)
class PostgresPlannerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.planner = PostgresPlanner(connect(config_file=pg_config_file))

    def tearDown(self) -> None:
        self.planner.close()

    def test_explain(self) -> None:
        result = self.planner.plan("SELECT 1;")
        self.assertEqual(result.plan_tree.kind, PlanKind.Result)
        self.assertEqual(result.query_text, "SELECT 1")

    def test_trace_without_context(self) -> None:
        hook_point = PlannerHookPoint(self.planner)
        recorder = TraceRecorder()
        with TracingExtension(self.planner.context_provider, sink=recorder) as extension:
            extension.load(hook_point)
            hook_point.plan("SELECT 1")
        self.assertEqual(recorder.texts(), ["Planning context is not available. Cannot log paths."])


if __name__ == "__main__":
    unittest.main()
