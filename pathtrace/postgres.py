"""Obtains selected plans from a live Postgres server.

Postgres does not publish its search space to clients, so plans that are obtained through this module never come with a
planning context. Still, the `PostgresPlanner` can be installed as the standard planner of a `PlannerHookPoint` and the
tracer will report that no candidate paths are available.
"""
from __future__ import annotations

import os
import warnings
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import psycopg

from ._core import PlanKind
from ._nodes import PlannedStatement, PlanNode
from .planner import PlanningWarning
from .util.logging import standard_logger

DefaultConfigFile = ".psycopg_connection"


def _resolve_node_type(node_type: str) -> PlanKind:
    normalized = node_type.replace(" ", "")
    match normalized:
        case "Aggregate":
            return PlanKind.Agg
        case "NestedLoop":
            return PlanKind.NestLoop
        case "Materialize":
            return PlanKind.Material
        case "TidScan" | "TIDScan":
            return PlanKind.TidScan
        case _:
            try:
                return PlanKind(normalized)
            except ValueError:
                return PlanKind.Other


def _parse_plan_node(node: Mapping[str, Any]) -> PlanNode:
    children = [_parse_plan_node(child) for child in node.get("Plans", [])]
    if len(children) > 2:
        warnings.warn(f"{node['Node Type']} node has {len(children)} inputs, but only the first two are kept",
                      category=PlanningWarning)

    left = children[0] if len(children) > 0 else None
    right = children[1] if len(children) > 1 else None
    return PlanNode(_resolve_node_type(node["Node Type"]),
                    startup_cost=float(node.get("Startup Cost", 0.0)),
                    total_cost=float(node.get("Total Cost", 0.0)),
                    rows=float(node.get("Plan Rows", 0.0)),
                    width=int(node.get("Plan Width", 0)),
                    left=left, right=right,
                    relation=node.get("Relation Name", ""))


def parse_explain(explain_json: list | Mapping[str, Any]) -> PlanNode:
    """Converts the output of an ``EXPLAIN (FORMAT JSON)`` query into a plan tree.

    Parameters
    ----------
    explain_json : list | Mapping[str, Any]
        The raw output of the explain query. This can be the list that Postgres returns, the dictionary that is contained
        in this list, or the actual *Plan* dictionary.

    Returns
    -------
    PlanNode
        The root node of the plan. Node types that are not known are mapped to `PlanKind.Other`.

    Raises
    ------
    ValueError
        If the input does not contain a plan.

    Warnings
    --------
    Plan nodes can have at most two inputs. If a Postgres node has more inputs (e.g. an *Append* node), all inputs beyond
    the second one are dropped and a `PlanningWarning` is issued.
    """
    if isinstance(explain_json, list):
        if not explain_json:
            raise ValueError("Explain output is empty")
        explain_json = explain_json[0]
    if "Plan" in explain_json:
        explain_json = explain_json["Plan"]
    if "Node Type" not in explain_json:
        raise ValueError(f"Explain output does not contain a plan: {explain_json}")
    return _parse_plan_node(explain_json)


def connect(connect_string: str = "", *, config_file: str | Path = "",
            application_name: str = "pathtrace") -> psycopg.Connection:
    """Convenience function to seamlessly connect to a Postgres instance.

    The connect string is determined as follows:

    1. if the connect string is supplied directly via the `connect_string` parameter, this is used
    2. the connect string is read from the `config_file` if this parameter is supplied. If the file does not exist, an
       error is raised.
    3. the connect string is read from the default connection file *.psycopg_connection* in the current working directory
    4. the connection parameters are read from the standard Postgres environment variables (e.g. *PGDATABASE*, *PGHOST*,
       ...). This method is triggered via the presence of the *PGDATABASE* environment variable. A warning is emitted if
       this method is used.

    Raises
    ------
    ValueError
        If none of these methods worked.
    """
    if connect_string:
        connect_string = connect_string.strip()
    elif config_file:
        config_file = Path(config_file)
        if not config_file.is_file():
            raise ValueError(f"Failed to obtain a database connection. Config file '{config_file}' does not exist "
                             f"(working directory is {os.getcwd()}).")
        with open(config_file, "r") as f:
            connect_string = f.readline().strip()
    elif Path(DefaultConfigFile).is_file():
        with open(DefaultConfigFile, "r") as f:
            connect_string = f.readline().strip()
    elif os.getenv("PGDATABASE"):
        warnings.warn("Using environment variables to construct connection string.")
        env_vars = {
            "PGDATABASE": "dbname",
            "PGHOST": "host",
            "PGPORT": "port",
            "PGUSER": "user",
            "PGPASSWORD": "password",
            "PGPASSFILE": "passfile",
        }
        components = [f"{key} = '{os.getenv(var)}'" for var, key in env_vars.items() if os.getenv(var)]
        connect_string = " ".join(components)
    else:
        raise ValueError("Failed to obtain a database connection. Please either supply the connect string directly, or put "
                         f"a '{DefaultConfigFile}' file in your working directory.")

    return psycopg.connect(connect_string, application_name=application_name, autocommit=True)


class PostgresPlanner:
    """Planner that lets a Postgres server select the plan for a SQL query.

    The planner can be used wherever a standard planner is expected. Queries have to be supplied as SQL strings.

    Parameters
    ----------
    connection : psycopg.Connection | str
        Either an open connection, or a connect string that is used to open a new connection.
    verbose : bool, optional
        Whether the explain queries should be logged to stderr.
    """

    def __init__(self, connection: psycopg.Connection | str, *, verbose: bool = False) -> None:
        self._connection = connection if isinstance(connection, psycopg.Connection) else connect(connection)
        self._log = standard_logger(verbose)

    @property
    def connection(self) -> psycopg.Connection:
        """Get the connection that is used to obtain the plans."""
        return self._connection

    def context_provider(self) -> None:
        """Postgres never exposes its planning context."""
        return None

    def plan(self, query: str, query_text: str = "", planner_options: int = 0,
             bound_params: Optional[Mapping[str, Any]] = None) -> PlannedStatement:
        """Obtains the plan that Postgres selects for a query.

        The `bound_params` are passed to the explain query as query parameters. The `planner_options` are only passed
        through to the planned statement.
        """
        query = query.strip().removesuffix(";")
        explain_query = f"EXPLAIN (FORMAT JSON) {query}"
        self._log("Running", explain_query)
        with self._connection.cursor() as cursor:
            cursor.execute(explain_query, bound_params)
            explain_json = cursor.fetchone()[0]
        return PlannedStatement(parse_explain(explain_json), query_text=query_text or query,
                                planner_options=planner_options)

    def __call__(self, query: str, query_text: str = "", planner_options: int = 0,
                 bound_params: Optional[Mapping[str, Any]] = None) -> PlannedStatement:
        return self.plan(query, query_text, planner_options, bound_params)

    def close(self) -> None:
        self._connection.close()

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"PostgresPlanner [{self._connection.info.dbname}]"
