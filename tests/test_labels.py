"""Tests for the classification of path and plan tags."""
import unittest

from pathtrace import (
    OtherPathLabel, OtherPlanLabel, PathKind, PlanKind,
    coerce_path_kind, coerce_plan_kind, path_label, plan_label,
)


class PathLabelTests(unittest.TestCase):
    def test_known_kinds(self) -> None:
        expected = {
            PathKind.SeqScan: "Seq Scan",
            PathKind.IndexScan: "Index Scan",
            PathKind.BitmapHeapScan: "Bitmap Heap Scan",
            PathKind.TidScan: "TID Scan",
            PathKind.SubqueryScan: "Subquery Scan",
            PathKind.NestLoop: "Nested Loop Join",
            PathKind.HashJoin: "Hash Join",
            PathKind.MergeJoin: "Merge Join",
            PathKind.Append: "Append",
            PathKind.BitmapAnd: "Bitmap And",
            PathKind.BitmapOr: "Bitmap Or",
        }
        for kind, label in expected.items():
            with self.subTest("Path kind", kind=kind):
                self.assertEqual(path_label(kind), label)

    def test_raw_tag_names(self) -> None:
        self.assertEqual(path_label("HashPath"), "Hash Join")
        self.assertEqual(path_label("HashJoin"), "Hash Join")
        self.assertEqual(path_label("Path"), "Seq Scan")

    def test_fallback(self) -> None:
        for tag in [PathKind.Other, "CustomPath", "", 42, None, PlanKind.HashJoin, "Hash"]:
            with self.subTest("Unknown tag", tag=tag):
                self.assertEqual(path_label(tag), OtherPathLabel)

    def test_join_classification(self) -> None:
        joins = {kind for kind in PathKind if kind.is_join()}
        self.assertEqual(joins, {PathKind.NestLoop, PathKind.HashJoin, PathKind.MergeJoin})
        self.assertTrue(PathKind.SeqScan.is_scan())
        self.assertFalse(PathKind.Append.is_scan())


class PlanLabelTests(unittest.TestCase):
    def test_known_kinds(self) -> None:
        for kind in PlanKind:
            if kind == PlanKind.Other:
                continue
            with self.subTest("Plan kind", kind=kind):
                self.assertNotEqual(plan_label(kind), OtherPlanLabel)

    def test_auxiliary_nodes(self) -> None:
        self.assertEqual(plan_label(PlanKind.Agg), "Aggregate")
        self.assertEqual(plan_label(PlanKind.Material), "Materialize")
        self.assertEqual(plan_label("IndexOnlyScan"), "Index Only Scan")

    def test_fallback(self) -> None:
        for tag in [PlanKind.Other, "Custom Scan", 3.14, None, PathKind.HashJoin, "HashPath"]:
            with self.subTest("Unknown tag", tag=tag):
                self.assertEqual(plan_label(tag), OtherPlanLabel)

    def test_coercion_keeps_families_apart(self) -> None:
        self.assertIsNone(coerce_plan_kind(PathKind.SeqScan))
        self.assertIsNone(coerce_path_kind(PlanKind.SeqScan))
        self.assertEqual(coerce_plan_kind("SeqScan"), PlanKind.SeqScan)
        self.assertEqual(coerce_path_kind("SeqScan"), PathKind.SeqScan)


if __name__ == "__main__":
    unittest.main()
