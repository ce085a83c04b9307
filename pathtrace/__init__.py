"""pathtrace - Diagnostic tracing for the search space of a query planner.

A cost-based query planner considers many alternative ways to compute each relation of a query before it settles on the
final execution plan. pathtrace makes this search space visible: after each planning call, it writes the selected plan
as well as all candidate paths that the planner still holds for the base relations (and, depending on the trace format,
for the join relations) as indented, human-readable lines.

The tracing never influences planning. It is attached to a planner through a `PlannerHookPoint`: the `TracingExtension`
installs a `PlanningTracer` there, which first delegates to the previously installed hook (or the standard planner) and
afterwards inspects the planning context of the call. The context is obtained through a context provider that is
supplied by the planner, e.g. `StandardPlanner.context_provider`. Planners that do not expose their search space (such as
the `PostgresPlanner`) simply yield a single line stating that no planning context is available.

On a high-level, the package is structured as follows:

- this module contains the data structures of the planner state (`CandidatePath`, `PlanNode`, `RelationEntry` and
  `PlanningContext`), the classification of node tags (`path_label` and `plan_label`), the renderers and the hook adapter
- the `planner` module provides the `StandardPlanner`, a compact Postgres-style dynamic programming planner that exposes its
  planning context
- the `postgres` module obtains selected plans from a live Postgres server
- the `analysis` module tabulates planning contexts and traces as Pandas data frames
- the `vis` package renders paths, plans and join graphs via Graphviz. It has to be imported explicitly and requires the
  *vis* extra.
- the `util` package contains utilities that are not specific to query planning

Traces can be produced in two formats. The `SimpleFormat` prints one line per path with its total cost, whereas the
`RichFormat` additionally prints startup costs and also sweeps the join relations. Trace lines are written to a
`TraceSink`, e.g. a `TraceRecorder` that keeps them in memory or a `LoggerSink` that prints them.
"""

from . import analysis, planner, postgres, util
from ._core import Cost, PathKind, PlanKind, Rows, coerce_path_kind, coerce_plan_kind
from ._hooks import (
  ContextProvider,
  PlannerHook,
  PlannerHookPoint,
  PlanningTracer,
  TraceWarning,
  TracingExtension
)
from ._labels import OtherPathLabel, OtherPlanLabel, path_label, plan_label
from ._nodes import CandidatePath, PlanNode, PlannedStatement, PlanningContext, RelationEntry
from ._render import render_path, render_plan, sweep_relations, trace_planning
from ._trace import (
  MaxIndentDepth, MissingContextMessage,
  Severity, TraceLine, TraceSink, TraceRecorder, LoggerSink,
  TraceFormat, SimpleFormat, RichFormat, TraceSettings,
  indentation, trace_format
)
from .planner import BaseRelation, JoinEdge, Query, PlannerSettings, StandardPlanner, PlanningError, PlanningWarning

__version__ = "0.1.0"

__all__ = [
  "analysis", "planner", "postgres", "util",
  "Cost", "Rows", "PathKind", "PlanKind", "coerce_path_kind", "coerce_plan_kind",
  "ContextProvider", "PlannerHook", "PlannerHookPoint", "PlanningTracer", "TraceWarning", "TracingExtension",
  "OtherPathLabel", "OtherPlanLabel", "path_label", "plan_label",
  "CandidatePath", "PlanNode", "PlannedStatement", "PlanningContext", "RelationEntry",
  "render_path", "render_plan", "sweep_relations", "trace_planning",
  "MaxIndentDepth", "MissingContextMessage",
  "Severity", "TraceLine", "TraceSink", "TraceRecorder", "LoggerSink",
  "TraceFormat", "SimpleFormat", "RichFormat", "TraceSettings",
  "indentation", "trace_format",
  "BaseRelation", "JoinEdge", "Query", "PlannerSettings", "StandardPlanner", "PlanningError", "PlanningWarning"
]
