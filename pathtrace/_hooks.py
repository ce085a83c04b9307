"""Attaches the tracing to a planner.

Planners expose a single `PlannerHookPoint`. Each hook that is installed there receives all planning requests and is
responsible for delegating to the hook that was installed before it, or to the standard planner if there is no such hook.
The `PlanningTracer` is such a hook: it delegates first and traces the planner state afterwards. The `TracingExtension`
takes care of installing and removing the tracer.
"""
from __future__ import annotations

import warnings
from collections.abc import Callable, Mapping
from typing import Any, Optional

from ._nodes import PlannedStatement, PlanningContext
from ._render import trace_planning
from ._trace import MissingContextMessage, Severity, TraceLine, TraceSettings, TraceSink
from .util.errors import StateError

PlannerHook = Callable[[Any, str, int, Optional[Mapping[str, Any]]], PlannedStatement]
"""Signature of planners and planner hooks.

The arguments are the query to plan, its textual representation, the planner options and the bound parameters of the
query (if any). The result is the planned statement.
"""

ContextProvider = Callable[[], Optional[PlanningContext]]
"""Provides access to the planning context of the most recent planning call, if the planner exposes one."""


class TraceWarning(UserWarning):
    """Issued if a trace could not be written, not even partially."""
    pass


class PlannerHookPoint:
    """The place where planner hooks are registered.

    At most one hook is installed at any time. Hooks form a chain by remembering the hook that was installed before them.

    Parameters
    ----------
    standard_planner : PlannerHook
        The planner that is used if no hook is installed.
    """

    def __init__(self, standard_planner: PlannerHook) -> None:
        self.standard_planner = standard_planner
        self.hook: Optional[PlannerHook] = None

    def plan(self, query: Any, query_text: str = "", planner_options: int = 0,
             bound_params: Optional[Mapping[str, Any]] = None) -> PlannedStatement:
        """Plans a query using the installed hook, or the standard planner if there is none."""
        planner = self.hook if self.hook is not None else self.standard_planner
        return planner(query, query_text, planner_options, bound_params)

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"PlannerHookPoint [hook={self.hook}]"


class PlanningTracer:
    """Planner hook that traces the selected plan and the candidate paths of each planning call.

    The tracer never interferes with planning: the result of the delegate planner is returned as-is. Errors of the delegate
    are propagated unchanged, but errors that happen while tracing are only reported as a warning line.

    Parameters
    ----------
    previous : Optional[PlannerHook]
        The hook that was installed before the tracer. If present, planning is delegated to this hook.
    standard_planner : PlannerHook
        The planner to delegate to if there is no `previous` hook.
    context_provider : ContextProvider
        Provides the planning context after the delegate planner has finished.
    sink : TraceSink
        Receives the trace lines.
    settings : TraceSettings, optional
        Controls the format of the trace.
    """

    def __init__(self, previous: Optional[PlannerHook], *, standard_planner: PlannerHook,
                 context_provider: ContextProvider, sink: TraceSink, settings: TraceSettings = TraceSettings()) -> None:
        self.previous = previous
        self.standard_planner = standard_planner
        self.context_provider = context_provider
        self.sink = sink
        self.settings = settings

    def __call__(self, query: Any, query_text: str = "", planner_options: int = 0,
                 bound_params: Optional[Mapping[str, Any]] = None) -> PlannedStatement:
        delegate = self.previous if self.previous is not None else self.standard_planner
        result = delegate(query, query_text, planner_options, bound_params)

        try:
            self._trace(result)
        except Exception as e:
            self._report_failure(e)

        return result

    def _trace(self, result: PlannedStatement) -> None:
        context = self.context_provider()
        if context is None:
            self.sink.emit(TraceLine(Severity.Info, MissingContextMessage))
            return
        plan = result.plan_tree if result is not None else None
        trace_planning(plan, context, sink=self.sink, settings=self.settings)

    def _report_failure(self, error: Exception) -> None:
        message = f"Trace aborted: {type(error).__name__}: {error}"
        try:
            self.sink.emit(TraceLine(Severity.Warning, message))
        except Exception:
            warnings.warn(message, category=TraceWarning)

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"PlanningTracer [format={self.settings.format}]"


class TracingExtension:
    """Installs a `PlanningTracer` on a hook point and removes it again.

    Loading saves the hook that is currently installed and chains the tracer to it. Unloading restores the saved hook.
    Since hooks form a stack, an extension can only be unloaded while its tracer is still the installed hook.

    Parameters
    ----------
    context_provider : ContextProvider
        Provides the planning context, see `PlanningTracer`.
    sink : TraceSink
        Receives the trace lines.
    settings : TraceSettings, optional
        Controls the format of the trace.
    """

    def __init__(self, context_provider: ContextProvider, *, sink: TraceSink,
                 settings: TraceSettings = TraceSettings()) -> None:
        self._context_provider = context_provider
        self._sink = sink
        self._settings = settings
        self._hook_point: Optional[PlannerHookPoint] = None
        self._previous: Optional[PlannerHook] = None
        self._tracer: Optional[PlanningTracer] = None

    @property
    def loaded(self) -> bool:
        """Get whether the extension is currently installed on a hook point."""
        return self._hook_point is not None

    @property
    def tracer(self) -> Optional[PlanningTracer]:
        """Get the tracer that is installed while the extension is loaded."""
        return self._tracer

    def load(self, hook_point: PlannerHookPoint) -> PlanningTracer:
        """Installs the tracer on a hook point.

        Raises
        ------
        StateError
            If the extension is already loaded.
        """
        if self.loaded:
            raise StateError("Tracing extension is already loaded")

        self._previous = hook_point.hook
        self._tracer = PlanningTracer(self._previous, standard_planner=hook_point.standard_planner,
                                      context_provider=self._context_provider, sink=self._sink, settings=self._settings)
        hook_point.hook = self._tracer
        self._hook_point = hook_point
        return self._tracer

    def unload(self) -> None:
        """Removes the tracer from its hook point and restores the hook that was installed before.

        Raises
        ------
        StateError
            If the extension is not loaded, or if another hook has been installed on top of the tracer in the meantime.
        """
        if not self.loaded:
            raise StateError("Tracing extension is not loaded")
        if self._hook_point.hook is not self._tracer:
            raise StateError("Another hook has been installed after the tracer. Unload that hook first.")

        self._hook_point.hook = self._previous
        self._hook_point = None
        self._previous = None
        self._tracer = None

    def __enter__(self) -> TracingExtension:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.loaded:
            self.unload()

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        state = "loaded" if self.loaded else "unloaded"
        return f"TracingExtension [{state}, format={self._settings.format}]"
