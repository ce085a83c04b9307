"""Provides the output side of the tracing: trace lines, sinks that receive them and the formats that shape them.

The renderers only produce formatted text lines. How these lines are transported is up to the `TraceSink`. Two sinks are
available: the `TraceRecorder` keeps all lines in memory, the `LoggerSink` forwards them to a logging function.
"""
from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Optional, Protocol

from ._core import Cost, Rows
from .util.jsonize import jsondict
from .util.logging import Logger

MaxIndentDepth = 16
"""The default nesting level after which the indentation does not grow any further."""


class Severity(enum.Enum):
    """The severity levels of trace lines, modelled after the Postgres message levels."""

    Debug = "DEBUG"
    Info = "INFO"
    Notice = "NOTICE"
    Warning = "WARNING"

    def __json__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TraceLine:
    """A single line of a trace.

    Attributes
    ----------
    severity : Severity
        How important the line is. Regular trace output is informational.
    text : str
        The formatted line, including its indentation.
    """

    severity: Severity
    text: str

    def __json__(self) -> jsondict:
        return {"severity": self.severity, "text": self.text}

    def __str__(self) -> str:
        return f"{self.severity.value}:  {self.text}"


class TraceSink(Protocol):
    """Receives the lines of a trace, one line at a time and in the order in which they were produced."""

    def emit(self, line: TraceLine) -> None:
        ...


class TraceRecorder:
    """Sink that collects all trace lines in memory.

    Parameters
    ----------
    forward : Optional[TraceSink], optional
        An additional sink that receives all lines as well, e.g. to print them while still keeping them around.
    """

    def __init__(self, forward: Optional[TraceSink] = None) -> None:
        self._lines: list[TraceLine] = []
        self._forward = forward

    @property
    def lines(self) -> Sequence[TraceLine]:
        """Get all lines that have been recorded so far."""
        return tuple(self._lines)

    def texts(self, *, severity: Optional[Severity] = None) -> list[str]:
        """Provides the text of all recorded lines, optionally restricted to a specific severity."""
        return [line.text for line in self._lines if severity is None or line.severity == severity]

    def clear(self) -> None:
        """Drops all recorded lines."""
        self._lines.clear()

    def emit(self, line: TraceLine) -> None:
        self._lines.append(line)
        if self._forward is not None:
            self._forward.emit(line)

    def __json__(self) -> list[TraceLine]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[TraceLine]:
        return iter(self._lines)

    def __str__(self) -> str:
        return "\n".join(str(line) for line in self._lines)


class LoggerSink:
    """Sink that writes each trace line through a logging function, e.g. one created by `util.make_logger`.

    Lines are written with their severity tag, i.e. as ``INFO:  <text>``.
    """

    def __init__(self, logger: Logger) -> None:
        self._logger = logger

    def emit(self, line: TraceLine) -> None:
        self._logger(str(line))


@dataclass(frozen=True)
class TraceFormat:
    """Describes the shape of all lines of a trace.

    The line templates are `str.format` templates. Path templates receive ``indent``, ``label``, ``startup_cost``,
    ``total_cost`` and ``rows``. Plan templates additionally receive ``width``. Operand headers receive the ``indent`` of
    the join path. Relation headers receive the ``slot`` of a base relation and join relation headers receive the
    ``relation`` identifier.

    Two formats are pre-defined: `SimpleFormat` prints total costs only and sweeps the base relations, `RichFormat` also
    prints startup costs, nests the paths below their relation header and additionally sweeps the join relations.
    """

    name: str
    path_line: str
    plan_line: str
    outer_header: str
    inner_header: str
    relation_header: str
    join_relation_header: str
    base_level: int
    include_join_rels: bool
    banner: str = ""

    def format_path(self, indent: str, label: str, *, startup_cost: Cost, total_cost: Cost, rows: Rows) -> str:
        return self.path_line.format(indent=indent, label=label, startup_cost=startup_cost, total_cost=total_cost, rows=rows)

    def format_plan(self, indent: str, label: str, *, startup_cost: Cost, total_cost: Cost, rows: Rows, width: int) -> str:
        return self.plan_line.format(indent=indent, label=label, startup_cost=startup_cost, total_cost=total_cost, rows=rows,
                                     width=width)

    def __str__(self) -> str:
        return self.name


SelectedPlanLine = "{indent}Selected Plan: {label}  cost={startup_cost:.2f}..{total_cost:.2f} rows={rows:.0f} width={width}"

SimpleFormat = TraceFormat(
    name="simple",
    path_line="{indent}Path type: {label} | cost={total_cost:.2f} | rows={rows:.2f}",
    plan_line=SelectedPlanLine,
    outer_header="{indent}  [Join left:]",
    inner_header="{indent}  [Join right:]",
    relation_header="Examining relation {slot}",
    join_relation_header="Examining join relation {relation}",
    base_level=0,
    include_join_rels=False
)
"""Compact format: total cost and fractional rows per path, base relations only."""

RichFormat = TraceFormat(
    name="rich",
    path_line="{indent}Path: {label}  cost={startup_cost:.2f}..{total_cost:.2f}  rows={rows:.0f}",
    plan_line=SelectedPlanLine,
    outer_header="{indent}  Outer:",
    inner_header="{indent}  Inner:",
    relation_header="Relation #{slot}",
    join_relation_header="Join Relation {relation}",
    base_level=1,
    include_join_rels=True,
    banner="Logging paths for all relations in the query..."
)
"""Detailed format: startup and total cost per path, base relations as well as join relations."""

MissingContextMessage = "Planning context is not available. Cannot log paths."


def trace_format(name: str | TraceFormat) -> TraceFormat:
    """Resolves a format by its name (*simple* or *rich*). Formats are passed through unchanged."""
    if isinstance(name, TraceFormat):
        return name
    match name.lower():
        case "simple":
            return SimpleFormat
        case "rich":
            return RichFormat
        case _:
            raise ValueError(f"Unknown trace format: '{name}'")


def indentation(level: int, *, max_depth: int = MaxIndentDepth) -> str:
    """Generates the indentation for a specific nesting level: two spaces per level, but at most `max_depth` levels."""
    return "  " * max(0, min(level, max_depth))


@dataclass(frozen=True)
class TraceSettings:
    """Configures how traces are produced.

    Attributes
    ----------
    format : TraceFormat, optional
        The shape of the trace lines. Defaults to the `RichFormat`.
    max_depth : int, optional
        The nesting level after which the indentation stops growing. Deeper nodes are still traced.
    severity : Severity, optional
        The severity of all regular trace lines.
    """

    format: TraceFormat = RichFormat
    max_depth: int = MaxIndentDepth
    severity: Severity = Severity.Info

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"Maximum depth must not be negative, but was {self.max_depth}")

    @staticmethod
    def of(format: str | TraceFormat = RichFormat, *, max_depth: int = MaxIndentDepth,
           severity: str | Severity = Severity.Info) -> TraceSettings:
        """Creates new settings, resolving formats and severities given by name."""
        if not isinstance(severity, Severity):
            try:
                severity = Severity[severity.capitalize()]
            except KeyError:
                raise ValueError(f"Unknown severity: '{severity}'") from None
        return TraceSettings(trace_format(format), max_depth, severity)

    def __json__(self) -> jsondict:
        return {"format": self.format.name, "max_depth": self.max_depth, "severity": self.severity}
