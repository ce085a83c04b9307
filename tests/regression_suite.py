from __future__ import annotations

import abc
import unittest
from collections.abc import Iterable

import psycopg

from pathtrace import PlanNode, TraceRecorder
from pathtrace import postgres


def _stringify_lines(lines: Iterable[str]) -> str:
    """Renders trace lines one per line, making differences in indentation visible."""
    return "\n".join(f"|{line}|" for line in lines)


class TraceTestCase(unittest.TestCase, abc.ABC):
    """Abstract test case that provides assertions on recorded traces."""

    def assertTraceEqual(self, recorder: TraceRecorder, expected: list[str], message: str = "") -> None:
        """Assertion that fails if the recorded lines differ from the expected lines in any way, including whitespace."""
        actual = recorder.texts()
        if actual != expected:
            default_msg = f"Traces differ. Expected:\n{_stringify_lines(expected)}\nActual:\n{_stringify_lines(actual)}"
            raise AssertionError(default_msg if not message else f"{message} :: {default_msg}")


class PlanTestCase(unittest.TestCase, abc.ABC):
    def assertPlansEqual(self, first_plan: PlanNode, second_plan: PlanNode, message: str = "", *,
                         _cur_level: int = 0) -> None:
        if first_plan.kind != second_plan.kind:
            default_msg = f"Different operators at level {_cur_level}: {first_plan} vs. {second_plan}"
            raise AssertionError(default_msg if not message else f"{message} :: {default_msg}")
        elif len(first_plan.children()) != len(second_plan.children()):
            default_msg = f"Different number of child nodes at level {_cur_level}: {first_plan} vs. {second_plan}"
            raise AssertionError(default_msg if not message else f"{message} :: {default_msg}")

        for (left_child, right_child) in zip(first_plan.children(), second_plan.children()):
            self.assertPlansEqual(left_child, right_child, message=message, _cur_level=_cur_level + 1)


def skip_if_no_db(config_file):
    """Decorator to conditionally skip a test if a database connection cannot be established.

    Parameters
    ----------
    config_file : str
        The config file that describes the connection to the database. Must be compatible with `postgres.connect()`
    """
    try:
        conn = postgres.connect(config_file=config_file)
        conn.close()
        return lambda f: f
    except (psycopg.OperationalError, ValueError):
        return unittest.skip(f"Cannot connect to database with config file '{config_file}'")
