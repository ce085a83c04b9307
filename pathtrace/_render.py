"""Renders candidate paths, selected plans and entire planning contexts as indented traces.

All renderers traverse their trees in depth-first pre-order: first the line of the current node, then the lines of its
inputs. Paths only descend into the inputs of join paths, whereas plans descend into all present inputs. Both renderers
share the same indentation rules: two spaces per nesting level, capped at the maximum depth of the current settings.
"""
from __future__ import annotations

from typing import Optional

from ._labels import path_label, plan_label
from ._nodes import CandidatePath, PlanNode, PlanningContext, RelationEntry
from ._trace import TraceLine, TraceSettings, TraceSink, indentation

DefaultSettings = TraceSettings()


def _emit(sink: TraceSink, settings: TraceSettings, text: str) -> None:
    sink.emit(TraceLine(settings.severity, text))


def render_path(path: Optional[CandidatePath], level: int = 0, *, sink: TraceSink,
                settings: TraceSettings = DefaultSettings) -> None:
    """Writes the trace of a candidate path and (for join paths) its inputs.

    The tree is traversed with an explicit stack of pending nodes and header lines, so arbitrarily deep join trees are
    rendered completely.

    Parameters
    ----------
    path : Optional[CandidatePath]
        The path to render. If this is *None*, nothing is written.
    level : int, optional
        The nesting level of the path. Top-level paths use level 0.
    sink : TraceSink
        Receives the trace lines.
    settings : TraceSettings, optional
        The format and indentation rules to use.
    """
    trace_format = settings.format
    pending: list[str | tuple[Optional[CandidatePath], int]] = [(path, level)]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            _emit(sink, settings, item)
            continue

        current, current_level = item
        if current is None:
            continue
        indent = indentation(current_level, max_depth=settings.max_depth)
        _emit(sink, settings, trace_format.format_path(indent, path_label(current.kind),
                                                       startup_cost=current.startup_cost,
                                                       total_cost=current.total_cost, rows=current.rows))
        if not current.is_join():
            continue

        # pushed in reverse, the outer input is rendered first
        pending.append((current.inner, current_level + 1))
        pending.append(trace_format.inner_header.format(indent=indent))
        pending.append((current.outer, current_level + 1))
        pending.append(trace_format.outer_header.format(indent=indent))


def render_plan(plan: Optional[PlanNode], level: int = 0, *, sink: TraceSink,
                settings: TraceSettings = DefaultSettings) -> None:
    """Writes the trace of a selected plan and all of its input nodes.

    In contrast to `render_path`, the traversal does not depend on the kind of node: all present inputs are rendered, the
    left one first. See `render_path` for the parameters.
    """
    pending: list[tuple[PlanNode, int]] = [(plan, level)] if plan is not None else []
    while pending:
        current, current_level = pending.pop()
        indent = indentation(current_level, max_depth=settings.max_depth)
        _emit(sink, settings, settings.format.format_plan(indent, plan_label(current.kind),
                                                          startup_cost=current.startup_cost,
                                                          total_cost=current.total_cost, rows=current.rows,
                                                          width=current.width))
        pending.extend((child, current_level + 1) for child in reversed(current.children()))


def _render_relation(relation: RelationEntry, *, sink: TraceSink, settings: TraceSettings) -> None:
    for path in relation.pathlist:
        render_path(path, settings.format.base_level, sink=sink, settings=settings)


def sweep_relations(context: Optional[PlanningContext], *, sink: TraceSink, settings: TraceSettings = DefaultSettings) -> None:
    """Writes the traces of all candidate paths that are currently stored in a planning context.

    Base relations are visited in the order of their slots, skipping the reserved slot 0 as well as all empty slots. Each
    relation is announced by a header line, followed by its paths in the order of its path list. If the format includes
    join relations, these are visited afterwards in the order of the context's join relation list.

    Nothing is sorted, filtered or deduplicated: the trace shows everything that the planner currently holds. Empty slots
    intentionally do not get a header line, so every header is followed by the paths of an actual relation.
    """
    if context is None:
        return

    trace_format = settings.format
    for slot in range(1, context.rel_array_size):
        relation = context.base_rels[slot]
        if relation is None:
            continue
        _emit(sink, settings, trace_format.relation_header.format(slot=slot))
        _render_relation(relation, sink=sink, settings=settings)

    if not trace_format.include_join_rels or not context.join_rels:
        return

    for relation in context.join_rels:
        if relation is None:
            continue
        _emit(sink, settings, trace_format.join_relation_header.format(relation=relation.identifier()))
        _render_relation(relation, sink=sink, settings=settings)


def trace_planning(plan: Optional[PlanNode], context: PlanningContext, *, sink: TraceSink,
                   settings: TraceSettings = DefaultSettings) -> None:
    """Writes the complete trace of a planning call: the selected plan first, the candidate paths afterwards."""
    if settings.format.banner:
        _emit(sink, settings, settings.format.banner)
    render_plan(plan, 0, sink=sink, settings=settings)
    sweep_relations(context, sink=sink, settings=settings)
