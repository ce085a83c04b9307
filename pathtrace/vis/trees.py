"""Provides generic utilities to transform arbitrary tree structures into Graphviz objects."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Optional

import graphviz as gv

from .._base import T


def _gv_escape(node: T, node_id_generator: Callable[[T], int] = id) -> str:
    return str(node_id_generator(node))


def plot_tree(
    node: T,
    label_generator: Callable[[T], tuple[str, dict]],
    child_supplier: Callable[[T], Sequence[T]],
    *,
    out_path: str = "",
    out_format: str = "svg",
    node_id_generator: Callable[[T], int] = id,
    _graph: Optional[gv.Digraph] = None,
    **kwargs,
) -> gv.Digraph:
    """Transforms an arbitrary tree into a directed Graphviz graph. The tree traversal is achieved via callback functions.

    Edges point from each node to its children and children are added in the order in which the `child_supplier` provides
    them.

    Parameters
    ----------
    node : T
        The root node of the tree.
    label_generator : Callable[[T], tuple[str, dict]]
        Callback function to generate labels of the nodes in the graph. The dictionary can contain additional formatting
        attributes (e.g. bold font). Consult the Graphviz documentation for allowed values
    child_supplier : Callable[[T], Sequence[T]]
        Provides the children of the current node.
    out_path : str, optional
        An optional file path to store the graph at. If empty, the graph will only be provided as a Graphviz object.
    out_format : str, optional
        The output format of the graph. Defaults to SVG and will only be used if the graph should be stored to disk (according
        to `out_path`).
    node_id_generator : Callable[[T], int], optional
        Callback function to generate unique identifiers for the nodes. Defaults to the object identity. These identifiers
        are only used internally to identify the different nodes in the graph.
    _graph : Optional[gv.Digraph], optional
        Internal parameter used for state-management within the plotting function. Do not set this parameter yourself!

    Returns
    -------
    gv.Digraph
        The graph

    References
    ----------

    .. Graphviz project: https://graphviz.org/
    """
    initial = _graph is None
    _graph = gv.Digraph(**kwargs) if initial else _graph
    label, params = label_generator(node)
    node_key = _gv_escape(node, node_id_generator=node_id_generator)
    _graph.node(node_key, label=gv.escape(label), **params)

    for child in child_supplier(node):
        child_key = _gv_escape(child, node_id_generator=node_id_generator)
        _graph.edge(node_key, child_key)
        plot_tree(child, label_generator, child_supplier, node_id_generator=node_id_generator, _graph=_graph)

    if initial and out_path:
        _graph.render(out_path, format=out_format, cleanup=True)
    return _graph
