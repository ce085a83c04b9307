"""Tabulates the contents of planning contexts and traces as Pandas data frames."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

import pandas as pd

from ._labels import path_label
from ._nodes import PlanningContext, RelationEntry
from ._trace import TraceLine
from .util.df import as_df

CandidateColumns = ["relation", "scope", "slot", "position", "label", "startup_cost", "total_cost", "rows", "cheapest"]
TraceLineColumns = ["position", "severity", "depth", "text"]


def _candidate_rows(relation: RelationEntry, scope: str, slot: Optional[int]) -> list[dict]:
    return [{
        "relation": relation.identifier(),
        "scope": scope,
        "slot": slot,
        "position": position,
        "label": path_label(path.kind),
        "startup_cost": path.startup_cost,
        "total_cost": path.total_cost,
        "rows": path.rows,
        "cheapest": path is relation.cheapest_path
    } for position, path in enumerate(relation.pathlist)]


def candidates_frame(context: Optional[PlanningContext]) -> pd.DataFrame:
    """Provides all top-level candidate paths of a planning context.

    The rows are in the same order as the paths in a (rich) trace: base relations by slot first, join relations in
    discovery order afterwards. Within each relation, the paths appear in the order of the path list. Input paths of
    join paths are not listed separately.

    Parameters
    ----------
    context : Optional[PlanningContext]
        The context to inspect. If this is *None*, an empty data frame is returned.

    Returns
    -------
    pd.DataFrame
        A data frame with the columns *relation*, *scope* (either *base* or *join*), *slot* (only set for base
        relations), *position* (within the path list), *label*, *startup_cost*, *total_cost*, *rows* and *cheapest*.
    """
    if context is None:
        return as_df([], column_names=CandidateColumns)

    rows: list[dict] = []
    for slot in range(1, context.rel_array_size):
        relation = context.base_rel(slot)
        if relation is not None:
            rows.extend(_candidate_rows(relation, "base", slot))
    for relation in context.join_rels or []:
        if relation is not None:
            rows.extend(_candidate_rows(relation, "join", None))

    return as_df(rows, column_names=CandidateColumns)


def trace_lines_frame(lines: Iterable[TraceLine]) -> pd.DataFrame:
    """Provides the lines of a trace (e.g. the contents of a `TraceRecorder`).

    The *depth* column is derived from the indentation of each line, i.e. it counts the leading pairs of spaces.
    """
    rows = []
    for position, line in enumerate(lines):
        depth = (len(line.text) - len(line.text.lstrip(" "))) // 2
        rows.append({"position": position, "severity": line.severity.value, "depth": depth, "text": line.text})
    return as_df(rows, column_names=TraceLineColumns)
