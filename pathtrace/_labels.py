"""Maps the node tags of paths and plans to the operator names that are shown in the traces."""
from __future__ import annotations

from ._core import PathKind, PlanKind, coerce_path_kind, coerce_plan_kind

OtherPathLabel = "Other Path"
"""Label for all path tags that are not known to the classifier."""

OtherPlanLabel = "Other Plan"
"""Label for all plan tags that are not known to the classifier."""


def path_label(tag: object) -> str:
    """Provides the display name of a candidate path tag.

    This function never fails. Tags that cannot be resolved to a `PathKind` (including plan tags) receive the
    `OtherPathLabel`.
    """
    match coerce_path_kind(tag):
        case PathKind.SeqScan:
            return "Seq Scan"
        case PathKind.IndexScan:
            return "Index Scan"
        case PathKind.BitmapHeapScan:
            return "Bitmap Heap Scan"
        case PathKind.TidScan:
            return "TID Scan"
        case PathKind.SubqueryScan:
            return "Subquery Scan"
        case PathKind.NestLoop:
            return "Nested Loop Join"
        case PathKind.HashJoin:
            return "Hash Join"
        case PathKind.MergeJoin:
            return "Merge Join"
        case PathKind.Append:
            return "Append"
        case PathKind.BitmapAnd:
            return "Bitmap And"
        case PathKind.BitmapOr:
            return "Bitmap Or"
        case _:
            return OtherPathLabel


def plan_label(tag: object) -> str:
    """Provides the display name of a plan node tag.

    This function never fails. Tags that cannot be resolved to a `PlanKind` (including path tags) receive the
    `OtherPlanLabel`.
    """
    match coerce_plan_kind(tag):
        case PlanKind.SeqScan:
            return "Seq Scan"
        case PlanKind.IndexScan:
            return "Index Scan"
        case PlanKind.IndexOnlyScan:
            return "Index Only Scan"
        case PlanKind.BitmapHeapScan:
            return "Bitmap Heap Scan"
        case PlanKind.BitmapIndexScan:
            return "Bitmap Index Scan"
        case PlanKind.TidScan:
            return "TID Scan"
        case PlanKind.SubqueryScan:
            return "Subquery Scan"
        case PlanKind.NestLoop:
            return "Nested Loop Join"
        case PlanKind.HashJoin:
            return "Hash Join"
        case PlanKind.MergeJoin:
            return "Merge Join"
        case PlanKind.Agg:
            return "Aggregate"
        case PlanKind.Sort:
            return "Sort"
        case PlanKind.Hash:
            return "Hash"
        case PlanKind.Append:
            return "Append"
        case PlanKind.Material:
            return "Materialize"
        case PlanKind.Memoize:
            return "Memoize"
        case PlanKind.Limit:
            return "Limit"
        case PlanKind.Result:
            return "Result"
        case PlanKind.Gather:
            return "Gather"
        case _:
            return OtherPlanLabel
