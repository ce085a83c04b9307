"""Models the data structures that a planner exposes while planning a query.

There are two families of trees: `CandidatePath` nodes form the search space of the planner, i.e. all the alternatives that
are still considered for a specific relation. `PlanNode` objects form the final execution plan that the planner selected.
Candidate paths are grouped per relation into `RelationEntry` objects and all of those entries are contained in the
`PlanningContext` of the current query.

All of these objects are owned by the planner. Tracing only reads them and never keeps references to them once the current
planning call is over.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from ._core import Cost, PathKind, PlanKind, Rows, coerce_path_kind
from .util.jsonize import jsondict, nan_safe


@dataclass(eq=False)
class CandidatePath:
    """A single way to compute the rows of some relation, as considered by the planner.

    Attributes
    ----------
    kind : PathKind | str | Any
        The tag of the path. This is usually a `PathKind`, but hosts can also supply the raw tag names or arbitrary other
        objects. Unknown tags are tolerated and simply shown as "other" paths.
    rows : Rows
        The estimated number of rows that the path produces.
    startup_cost : Cost
        The estimated cost before the first row can be produced.
    total_cost : Cost
        The estimated cost to produce all rows.
    outer : Optional[CandidatePath], optional
        For join paths, the outer input. This is ignored for all other paths.
    inner : Optional[CandidatePath], optional
        For join paths, the inner input. This is ignored for all other paths.
    relids : frozenset[str], optional
        The names of the base relations that are computed by the path.
    """

    kind: PathKind | str | Any
    rows: Rows
    startup_cost: Cost
    total_cost: Cost
    outer: Optional[CandidatePath] = None
    inner: Optional[CandidatePath] = None
    relids: frozenset[str] = frozenset()

    def is_join(self) -> bool:
        """Checks, whether this path joins two input paths. Unknown tags are never joins."""
        kind = coerce_path_kind(self.kind)
        return kind is not None and kind.is_join()

    def children(self) -> Sequence[CandidatePath]:
        """Provides the input paths that are relevant for the traversal.

        For join paths these are the outer and inner input (if present). All other paths are leaves, even if they happen to
        carry inputs.
        """
        if not self.is_join():
            return ()
        return tuple(child for child in (self.outer, self.inner) if child is not None)

    def __json__(self) -> jsondict:
        return {
            "kind": self.kind,
            "rows": nan_safe(self.rows),
            "startup_cost": nan_safe(self.startup_cost),
            "total_cost": nan_safe(self.total_cost),
            "relids": self.relids,
            "outer": self.outer if self.is_join() else None,
            "inner": self.inner if self.is_join() else None
        }

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        kind = self.kind.name if isinstance(self.kind, PathKind) else str(self.kind)
        if self.is_join():
            return f"{kind}({self.outer}, {self.inner})"
        relids = ", ".join(sorted(self.relids))
        return f"{kind}({relids})"


@dataclass(eq=False)
class PlanNode:
    """A single node of the execution plan that the planner selected.

    In contrast to candidate paths, the children of a plan node are purely structural: any node can have up to two inputs,
    e.g. a sort node has a single input and a hash join node has two inputs.

    Attributes
    ----------
    kind : PlanKind | str | Any
        The tag of the plan node. See `CandidatePath.kind` for the supported values.
    startup_cost : Cost
        The estimated cost before the first row can be produced.
    total_cost : Cost
        The estimated cost to produce all rows.
    rows : Rows
        The estimated number of rows that the node produces.
    width : int
        The estimated average width of the produced rows in bytes.
    left : Optional[PlanNode], optional
        The first (outer) input node, if any.
    right : Optional[PlanNode], optional
        The second (inner) input node, if any.
    relation : str, optional
        For scan nodes, the relation that is being scanned.
    """

    kind: PlanKind | str | Any
    startup_cost: Cost
    total_cost: Cost
    rows: Rows
    width: int
    left: Optional[PlanNode] = None
    right: Optional[PlanNode] = None
    relation: str = ""

    def children(self) -> Sequence[PlanNode]:
        """Provides all input nodes that are present, the left one first."""
        return tuple(child for child in (self.left, self.right) if child is not None)

    def __json__(self) -> jsondict:
        return {
            "kind": self.kind,
            "startup_cost": nan_safe(self.startup_cost),
            "total_cost": nan_safe(self.total_cost),
            "rows": nan_safe(self.rows),
            "width": self.width,
            "relation": self.relation,
            "left": self.left,
            "right": self.right
        }

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        kind = self.kind.name if isinstance(self.kind, PlanKind) else str(self.kind)
        if self.relation:
            return f"{kind}({self.relation})"
        child_texts = ", ".join(str(child) for child in self.children())
        return f"{kind}({child_texts})"


@dataclass(eq=False)
class RelationEntry:
    """All candidate paths for a single relation.

    The relation can either be a base relation, or a join relation that combines multiple base relations.

    Attributes
    ----------
    relids : frozenset[str]
        The names of all base relations that are part of the relation.
    pathlist : list[CandidatePath]
        The candidate paths in the order in which the planner stores them.
    rows : Rows, optional
        The estimated number of rows of the relation. Can be *NaN* if unknown.
    cheapest_path : Optional[CandidatePath], optional
        The cheapest path in the `pathlist`. This is only set once the planner has collected all paths.
    """

    relids: frozenset[str]
    pathlist: list[CandidatePath] = field(default_factory=list)
    rows: Rows = math.nan
    cheapest_path: Optional[CandidatePath] = None

    def identifier(self) -> str:
        """Provides an opaque identifier of the relation that can be used in headers.

        If the relation knows its base relations, these are used. Otherwise the object identity is used.
        """
        if self.relids:
            tables = ", ".join(sorted(self.relids))
            return f"{{{tables}}}"
        return hex(id(self))

    def __json__(self) -> jsondict:
        return {"relids": self.relids, "rows": nan_safe(self.rows), "pathlist": self.pathlist}

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return self.identifier()


@dataclass(eq=False)
class PlanningContext:
    """The planner state of the current query that is relevant for tracing.

    Attributes
    ----------
    base_rels : list[Optional[RelationEntry]]
        The base relations, addressed by their index. Slot 0 is reserved and never used. Slots can be empty, e.g. for range
        table entries that do not correspond to actual relations.
    join_rels : Optional[list[RelationEntry]], optional
        The join relations in the order in which the planner discovered them. Planners that do not expose their join
        relations leave this empty.
    """

    base_rels: list[Optional[RelationEntry]] = field(default_factory=lambda: [None])
    join_rels: Optional[list[RelationEntry]] = None

    @property
    def rel_array_size(self) -> int:
        """Get the size of the base relation array, including the reserved slot 0."""
        return len(self.base_rels)

    def base_rel(self, slot: int) -> Optional[RelationEntry]:
        """Provides the base relation at a specific slot. Slot 0 and unknown slots yield *None*."""
        if slot <= 0 or slot >= self.rel_array_size:
            return None
        return self.base_rels[slot]

    def __json__(self) -> jsondict:
        return {"base_rels": self.base_rels, "join_rels": self.join_rels}


@dataclass(frozen=True, eq=False)
class PlannedStatement:
    """The result of a planning call.

    Attributes
    ----------
    plan_tree : Optional[PlanNode]
        The root of the execution plan. Utility statements do not have a plan.
    query_text : str, optional
        The textual representation of the query that was planned.
    planner_options : int, optional
        The options that were supplied to the planner.
    """

    plan_tree: Optional[PlanNode]
    query_text: str = ""
    planner_options: int = 0

    def __json__(self) -> jsondict:
        return {"plan_tree": self.plan_tree, "query_text": self.query_text, "planner_options": self.planner_options}
