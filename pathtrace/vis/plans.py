"""Visualizes candidate paths, selected plans and join graphs."""

from __future__ import annotations

from collections.abc import Sequence

import graphviz as gv

from .._labels import path_label, plan_label
from .._nodes import CandidatePath, PlanNode
from ..planner import Query
from . import trees


def _path_labels(path: CandidatePath) -> tuple[str, dict]:
    label = f"{path_label(path.kind)}\ncost={path.startup_cost:.2f}..{path.total_cost:.2f}\nrows={path.rows:.0f}"
    if path.is_join():
        return label, {"style": "bold"}
    relids = ", ".join(sorted(path.relids))
    if relids:
        label = f"{label}\n{relids}"
    return label, {"color": "grey"}


def _path_traversal(path: CandidatePath) -> Sequence[CandidatePath]:
    return path.children()


def _plan_labels(plan: PlanNode) -> tuple[str, dict]:
    label = f"{plan_label(plan.kind)}\ncost={plan.startup_cost:.2f}..{plan.total_cost:.2f}\nrows={plan.rows:.0f}"
    if plan.relation:
        return f"{label}\n{plan.relation}", {"color": "grey"}
    return label, {}


def _plan_traversal(plan: PlanNode) -> Sequence[PlanNode]:
    return plan.children()


def plot_path(path: CandidatePath, *, out_path: str = "", out_format: str = "svg") -> gv.Digraph:
    """Creates a Graphviz visualization of a candidate path.

    Like the trace, the visualization only descends into the inputs of join paths.
    """
    if path is None:
        return gv.Digraph()
    return trees.plot_tree(path, _path_labels, _path_traversal, out_path=out_path, out_format=out_format)


def plot_plan(plan: PlanNode, *, out_path: str = "", out_format: str = "svg") -> gv.Digraph:
    """Creates a Graphviz visualization of a selected plan, including all of its input nodes."""
    if plan is None:
        return gv.Digraph()
    return trees.plot_tree(plan, _plan_labels, _plan_traversal, out_path=out_path, out_format=out_format)


def plot_join_graph(query: Query, *, out_path: str = "", out_format: str = "svg") -> gv.Graph:
    """Creates a Graphviz visualization of the join graph of a query. Edges are annotated with the join selectivities."""
    join_graph = query.join_graph()
    graph = gv.Graph()
    for table in join_graph.nodes:
        relation = query.relation(table)
        graph.node(table, label=f"{table}\nrows={relation.filtered_rows:.0f}")
    for left, right, selectivity in join_graph.edges(data="selectivity"):
        graph.edge(left, right, label=f"{selectivity:g}")

    if out_path:
        graph.render(out_path, format=out_format, cleanup=True)
    return graph
