"""Command line interface: plans a query with the standard planner and writes the trace to stdout."""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from ._hooks import PlannerHookPoint, TracingExtension
from ._trace import LoggerSink, MaxIndentDepth, TraceRecorder, TraceSettings
from .planner import PlannerSettings, PlanningError, StandardPlanner, read_query_json, read_settings_json
from .util.jsonize import to_json_dump
from .util.logging import make_logger, print_stderr


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathtrace",
        description="Plans a query and traces the selected plan as well as all candidate paths of the planner.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="The query is described as JSON: a list of 'relations' (name, rows and optionally width, pages, "
               "selectivity, indexed) and a list of 'joins' (left, right, selectivity).",
    )
    parser.add_argument("query", help="JSON file that describes the query to plan")
    parser.add_argument("-f", "--format", choices=["simple", "rich"], default="rich", help="the shape of the trace lines")
    parser.add_argument("-c", "--planner-config", default="",
                        help="JSON file with cost constants and operator switches of the planner")
    parser.add_argument("--max-depth", type=int, default=MaxIndentDepth,
                        help="nesting level after which the indentation stops growing")
    parser.add_argument("-j", "--json", action="store_true", help="write the trace and the plan as JSON")
    parser.add_argument("-g", "--graph", default="", help="additionally render the selected plan to this file (SVG)")
    parser.add_argument("-v", "--verbose", action="store_true", help="be verbose")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = make_parser().parse_args(argv)

    try:
        query = read_query_json(args.query)
        planner_settings = read_settings_json(args.planner_config) if args.planner_config else PlannerSettings()
        trace_settings = TraceSettings.of(args.format, max_depth=args.max_depth)
    except (OSError, ValueError, KeyError) as e:
        print_stderr(f"Cannot load inputs: {e}")
        return 2

    planner = StandardPlanner(planner_settings, verbose=args.verbose)
    hook_point = PlannerHookPoint(planner)
    recorder = TraceRecorder() if args.json else TraceRecorder(LoggerSink(make_logger(file=sys.stdout)))

    with TracingExtension(planner.context_provider, sink=recorder, settings=trace_settings) as extension:
        extension.load(hook_point)
        try:
            result = hook_point.plan(query, query_text=str(query))
        except PlanningError as e:
            print_stderr(e)
            return 1

    if args.json:
        to_json_dump({"plan": result.plan_tree, "trace": recorder}, sys.stdout, indent=2)
        print()
    if args.graph:
        from .vis import plot_plan
        plot_plan(result.plan_tree, out_path=args.graph)
    return 0


if __name__ == "__main__":
    sys.exit(main())
