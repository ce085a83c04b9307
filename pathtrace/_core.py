from __future__ import annotations

from enum import Enum
from typing import Optional

Cost = float
"""Type alias for a cost estimate."""

Rows = float
"""Type alias for a (estimated) number of rows. Planners estimate rows as floating point values."""


class PathKind(Enum):
    """The node tags of candidate paths, i.e. of the search space that a planner explores.

    The values correspond to the names of the path nodes in the Postgres planner. Hosts that only know the raw tag names can
    use them directly, see `coerce_path_kind`.

    Paths fall into three groups: base scans (sequential, index, bitmap, TID and subquery scans), join paths (nested loop, hash
    and merge joins) and set operations (append and bitmap and/or). Only join paths have input paths that are relevant for
    tracing. `Other` can be used for all nodes that do not fit any of these groups.
    """

    SeqScan = "Path"
    IndexScan = "IndexPath"
    BitmapHeapScan = "BitmapHeapPath"
    TidScan = "TidPath"
    SubqueryScan = "SubqueryScanPath"
    NestLoop = "NestPath"
    HashJoin = "HashPath"
    MergeJoin = "MergePath"
    Append = "AppendPath"
    BitmapAnd = "BitmapAndPath"
    BitmapOr = "BitmapOrPath"
    Other = "OtherPath"

    def is_join(self) -> bool:
        """Checks, whether the tag denotes a join path."""
        return self in _JoinPathKinds

    def is_scan(self) -> bool:
        """Checks, whether the tag denotes an access path of a base relation."""
        return self in _ScanPathKinds

    def __json__(self) -> str:
        return self.value


_JoinPathKinds = frozenset({PathKind.NestLoop, PathKind.HashJoin, PathKind.MergeJoin})
_ScanPathKinds = frozenset({PathKind.SeqScan, PathKind.IndexScan, PathKind.BitmapHeapScan, PathKind.TidScan,
                            PathKind.SubqueryScan})


class PlanKind(Enum):
    """The node tags of plan nodes, i.e. of the execution plan that a planner finally selected.

    Plan tags are a superset of the path tags, since the final plan also contains auxiliary nodes such as sorts, hash tables
    or aggregations. Still, both tag universes are independent of each other: a hash join path and a hash join plan node are
    different tags. The values correspond to the names of the plan nodes in the Postgres planner.
    """

    SeqScan = "SeqScan"
    IndexScan = "IndexScan"
    IndexOnlyScan = "IndexOnlyScan"
    BitmapHeapScan = "BitmapHeapScan"
    BitmapIndexScan = "BitmapIndexScan"
    TidScan = "TidScan"
    SubqueryScan = "SubqueryScan"
    NestLoop = "NestLoop"
    HashJoin = "HashJoin"
    MergeJoin = "MergeJoin"
    Agg = "Agg"
    Sort = "Sort"
    Hash = "Hash"
    Append = "Append"
    Material = "Material"
    Memoize = "Memoize"
    Limit = "Limit"
    Result = "Result"
    Gather = "Gather"
    Other = "OtherPlan"

    def __json__(self) -> str:
        return self.value


def coerce_path_kind(tag: object) -> Optional[PathKind]:
    """Resolves an arbitrary tag to a path kind, if possible.

    Path kinds are passed through unchanged. Strings are matched against the tag values (e.g. ``"HashPath"``) as well as the
    member names (e.g. ``"HashJoin"``). Everything else (including tags from the plan universe) cannot be resolved and
    results in *None*.
    """
    if isinstance(tag, PathKind):
        return tag
    if not isinstance(tag, str):
        return None
    if tag in PathKind.__members__:
        return PathKind[tag]
    try:
        return PathKind(tag)
    except ValueError:
        return None


def coerce_plan_kind(tag: object) -> Optional[PlanKind]:
    """Resolves an arbitrary tag to a plan kind, if possible. See `coerce_path_kind` for the rules."""
    if isinstance(tag, PlanKind):
        return tag
    if not isinstance(tag, str):
        return None
    if tag in PlanKind.__members__:
        return PlanKind[tag]
    try:
        return PlanKind(tag)
    except ValueError:
        return None
