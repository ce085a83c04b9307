"""A compact dynamic programming planner in the style of the Postgres optimizer.

The `StandardPlanner` enumerates access paths and join paths the same way the Postgres planner does: each relation keeps a
list of candidate paths that are pruned through `add_path`, join relations are built level by level and the cheapest path
of the final relation is converted into the execution plan. While doing so, the planner exposes its search space as a
`PlanningContext`, which can be inspected by the tracing (see `StandardPlanner.context_provider`).

The cost model is a heavily simplified version of the Postgres cost model. It uses the same cost constants (named after
the corresponding configuration parameters) and roughly mimics how the different operators are charged, but it does not
attempt to reproduce actual Postgres estimates. Queries are not supplied as SQL, but as abstract descriptions of the
relations and their join predicates, see `Query`.
"""
from __future__ import annotations

import collections
import math
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import networkx as nx

from ._core import Cost, PathKind, PlanKind, Rows
from ._nodes import CandidatePath, PlanNode, PlannedStatement, PlanningContext, RelationEntry
from .util import jsonize
from .util.errors import InvariantViolationError, LogicError
from .util.logging import standard_logger

PageSize = 8192
"""The size of a single disk page in bytes, used to derive page counts of relations."""

FuzzFactor = 1.01
"""Paths whose costs differ by less than this factor are considered equally expensive when pruning the path lists."""

DefaultWidth = 32


class PlanningError(RuntimeError):
    """Raised if a query cannot be planned, e.g. because it contains cross products.

    Parameters
    ----------
    query : Query
        The query that failed.
    msg : str, optional
        Describes the failure in more detail.
    """

    def __init__(self, query: Query, msg: str = "") -> None:
        super().__init__(f"Cannot plan query {query}: {msg}" if msg else f"Cannot plan query {query}")
        self.query = query


class PlanningWarning(UserWarning):
    """Issued if the planner has to deviate from its settings or from the input, e.g. to fall back to a disabled operator."""
    pass


def clamp_rows(rows: Rows) -> Rows:
    """Rounds a row estimate to an integral value of at least 1, like Postgres' ``clamp_row_est``."""
    if math.isnan(rows) or rows <= 1.0:
        return 1.0
    return float(round(rows))


_Required = object()


def _json_object(data: Any, description: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{description} must be a JSON object, but was {data!r}")
    return data


def _json_list(data: Mapping[str, Any], key: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a JSON list, but was {value!r}")
    return value


def _json_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"Missing required key '{key}' in {dict(data)}")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, but was {value!r}")
    return value


def _json_number(data: Mapping[str, Any], key: str, default: Any = _Required, *, integral: bool = False) -> Any:
    """Reads a numeric entry. JSON ``null`` counts as absent, booleans are not accepted as numbers."""
    value = data.get(key)
    if value is None:
        if default is _Required:
            raise ValueError(f"Missing required key '{key}' in {dict(data)}")
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' must be a number, but was {value!r}")
    if not integral:
        return float(value)
    if not float(value).is_integer():
        raise ValueError(f"'{key}' must be an integer, but was {value!r}")
    return int(value)


def _json_flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, but was {value!r}")
    return value


@dataclass(frozen=True)
class BaseRelation:
    """A base table of a query.

    Attributes
    ----------
    name : str
        The name of the relation. Names have to be unique within a query.
    rows : Rows
        The number of tuples stored in the relation.
    width : int, optional
        The average width of the tuples in bytes.
    pages : Optional[float], optional
        The number of disk pages of the relation. If omitted, this is derived from the rows and the width.
    selectivity : float, optional
        The combined selectivity of all filter predicates on the relation. A selectivity of 1 means that there are no
        filters.
    indexed : bool, optional
        Whether the filter predicates can be answered by an index. Only indexed relations receive index paths.
    """

    name: str
    rows: Rows
    width: int = DefaultWidth
    pages: Optional[float] = None
    selectivity: float = 1.0
    indexed: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Relations must have a name")
        if self.rows < 0:
            raise ValueError(f"Relation '{self.name}' cannot have a negative number of rows")
        if self.width <= 0:
            raise ValueError(f"Relation '{self.name}' must have a positive width")
        if self.pages is not None and self.pages < 0:
            raise ValueError(f"Relation '{self.name}' cannot have a negative number of pages")
        if not 0.0 < self.selectivity <= 1.0:
            raise ValueError(f"Selectivity of relation '{self.name}' must be in (0, 1], but was {self.selectivity}")

    @property
    def page_count(self) -> float:
        """Get the number of pages, either as supplied or as estimated from the rows and the width."""
        if self.pages is not None:
            return self.pages
        return max(1.0, math.ceil(self.rows * self.width / PageSize))

    @property
    def filtered_rows(self) -> Rows:
        """Get the number of rows that pass the filter predicates."""
        return clamp_rows(self.rows * self.selectivity)

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> BaseRelation:
        """Parses a relation entry. Entries of the wrong type are rejected with a `ValueError`."""
        data = _json_object(data, "Relation entry")
        return BaseRelation(name=_json_str(data, "name"), rows=_json_number(data, "rows"),
                            width=_json_number(data, "width", DefaultWidth, integral=True),
                            pages=_json_number(data, "pages", None), selectivity=_json_number(data, "selectivity", 1.0),
                            indexed=_json_flag(data, "indexed"))

    def __json__(self) -> jsonize.jsondict:
        return {"name": self.name, "rows": self.rows, "width": self.width, "pages": self.pages,
                "selectivity": self.selectivity, "indexed": self.indexed}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class JoinEdge:
    """An equi-join predicate between two base relations, together with its selectivity."""

    left: str
    right: str
    selectivity: float

    def __post_init__(self) -> None:
        if self.left == self.right:
            raise ValueError(f"Join predicates must reference two different relations, not just '{self.left}'")
        if not 0.0 < self.selectivity <= 1.0:
            raise ValueError(f"Selectivity of join {self} must be in (0, 1], but was {self.selectivity}")

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> JoinEdge:
        data = _json_object(data, "Join entry")
        return JoinEdge(left=_json_str(data, "left"), right=_json_str(data, "right"),
                        selectivity=_json_number(data, "selectivity"))

    def __json__(self) -> jsonize.jsondict:
        return {"left": self.left, "right": self.right, "selectivity": self.selectivity}

    def __str__(self) -> str:
        return f"{self.left} ⋈ {self.right}"


@dataclass(frozen=True)
class Query:
    """Abstract description of a select-project-join query, optionally with aggregation, sorting and a limit.

    Attributes
    ----------
    relations : tuple[BaseRelation, ...]
        The base relations of the query. Their order determines the slots of the relations in the planning context.
    joins : tuple[JoinEdge, ...], optional
        The join predicates between the relations.
    aggregate : bool, optional
        Whether the query computes an aggregate over its result.
    order_by : bool, optional
        Whether the query result has to be sorted.
    limit : Optional[int], optional
        The maximum number of result rows, if any.
    """

    relations: tuple[BaseRelation, ...]
    joins: tuple[JoinEdge, ...] = ()
    aggregate: bool = False
    order_by: bool = False
    limit: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.relations:
            raise ValueError("Query must contain at least one relation")
        names = [rel.name for rel in self.relations]
        duplicates = sorted(name for name, count in collections.Counter(names).items() if count > 1)
        if duplicates:
            raise ValueError(f"Relation names must be unique, but found duplicates: {duplicates}")
        for join in self.joins:
            if join.left not in names or join.right not in names:
                raise ValueError(f"Join {join} references unknown relations")
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"Limit must not be negative, but was {self.limit}")

    def relation(self, name: str) -> BaseRelation:
        """Provides the base relation with a specific name.

        Raises
        ------
        KeyError
            If there is no such relation.
        """
        for rel in self.relations:
            if rel.name == name:
                return rel
        raise KeyError(name)

    def join_graph(self) -> nx.Graph:
        """Provides the join graph of the query.

        Nodes are the relation names, edges correspond to the join predicates. Each edge has a *selectivity* attribute.
        Multiple predicates between the same relations are combined into a single edge by multiplying their selectivities.
        """
        graph = nx.Graph()
        graph.add_nodes_from(rel.name for rel in self.relations)
        for join in self.joins:
            if graph.has_edge(join.left, join.right):
                graph.edges[join.left, join.right]["selectivity"] *= join.selectivity
            else:
                graph.add_edge(join.left, join.right, selectivity=join.selectivity)
        return graph

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> Query:
        """Parses a query description.

        The description has to contain a list of *relations* and can optionally contain a list of *joins*, as well as
        the *aggregate*, *order_by* and *limit* settings. See `BaseRelation` and `JoinEdge` for the keys of the nested
        entries.
        """
        data = _json_object(data, "Query description")
        if "relations" not in data:
            raise ValueError("Query description does not contain any relations")
        relations = tuple(BaseRelation.from_json(rel) for rel in _json_list(data, "relations"))
        joins = tuple(JoinEdge.from_json(join) for join in _json_list(data, "joins"))
        return Query(relations, joins, aggregate=_json_flag(data, "aggregate"), order_by=_json_flag(data, "order_by"),
                     limit=_json_number(data, "limit", None, integral=True))

    def __json__(self) -> jsonize.jsondict:
        return {"relations": self.relations, "joins": self.joins, "aggregate": self.aggregate, "order_by": self.order_by,
                "limit": self.limit}

    def __str__(self) -> str:
        return "{" + ", ".join(rel.name for rel in self.relations) + "}"


def read_query_json(path: str | Path) -> Query:
    """Loads a query description from a JSON file, see `Query.from_json` for the format."""
    return Query.from_json(jsonize.read_json(path))


@dataclass(frozen=True)
class PlannerSettings:
    """The cost constants and operator switches of the planner.

    All settings are named after the corresponding Postgres configuration parameters and use the same defaults.
    """

    seq_page_cost: Cost = 1.0
    random_page_cost: Cost = 4.0
    cpu_tuple_cost: Cost = 0.01
    cpu_index_tuple_cost: Cost = 0.005
    cpu_operator_cost: Cost = 0.0025
    enable_seqscan: bool = True
    enable_indexscan: bool = True
    enable_bitmapscan: bool = True
    enable_nestloop: bool = True
    enable_hashjoin: bool = True
    enable_mergejoin: bool = True

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> PlannerSettings:
        """Parses planner settings.

        All keys are optional, but unknown keys and values of the wrong type are rejected with a `ValueError`. Switches
        have to be booleans, cost constants have to be numbers.
        """
        data = _json_object(data, "Planner settings")
        known_settings = {setting.name: setting for setting in fields(PlannerSettings)}
        unknown_settings = set(data) - set(known_settings)
        if unknown_settings:
            raise ValueError(f"Unknown planner settings: {sorted(unknown_settings)}")

        parsed: dict[str, Any] = {}
        for key in data:
            if isinstance(known_settings[key].default, bool):
                parsed[key] = _json_flag(data, key)
            else:
                parsed[key] = _json_number(data, key)
        return PlannerSettings(**parsed)

    def __json__(self) -> jsonize.jsondict:
        return {setting.name: getattr(self, setting.name) for setting in fields(self)}


def read_settings_json(path: str | Path) -> PlannerSettings:
    """Loads planner settings from a JSON file."""
    return PlannerSettings.from_json(jsonize.read_json(path))


@dataclass
class _JoinRelLevels:
    levels: dict[int, list[RelationEntry]] = field(default_factory=lambda: collections.defaultdict(list))
    discovered: list[RelationEntry] = field(default_factory=list)

    def lookup(self, relids: frozenset[str]) -> Optional[RelationEntry]:
        for rel in self.levels[len(relids)]:
            if rel.relids == relids:
                return rel
        return None


class StandardPlanner:
    """Plans queries by means of a Postgres-style dynamic programming join enumeration.

    The planner can be used as a regular function (its signature matches the planner hooks) or via its `plan` method.
    After each planning call, the search space of that call is available as the `current_context`. It stays around until
    the next planning call starts.

    Parameters
    ----------
    settings : PlannerSettings, optional
        The cost constants and operator switches to use.
    verbose : bool, optional
        Whether the planner should log its progress to stderr.
    """

    def __init__(self, settings: PlannerSettings = PlannerSettings(), *, verbose: bool = False) -> None:
        self.settings = settings
        self.current_context: Optional[PlanningContext] = None
        self._log = standard_logger(verbose)
        self._query: Optional[Query] = None
        self._join_graph: Optional[nx.Graph] = None
        self._widths: dict[frozenset[str], int] = {}

    def context_provider(self) -> Optional[PlanningContext]:
        """Provides the planning context of the most recent planning call, if there is one."""
        return self.current_context

    def plan(self, query: Query, query_text: str = "", planner_options: int = 0,
             bound_params: Optional[Mapping[str, Any]] = None) -> PlannedStatement:
        """Computes the execution plan for a query.

        Parameters
        ----------
        query : Query
            The query to plan
        query_text : str, optional
            The textual representation of the query. This is only passed through to the planned statement.
        planner_options : int, optional
            Options for the planner. These are only passed through to the planned statement.
        bound_params : Optional[Mapping[str, Any]], optional
            Values of query parameters. These are currently not used by the planner.

        Returns
        -------
        PlannedStatement
            The planned statement, containing the execution plan.

        Raises
        ------
        PlanningError
            If the query contains cross products.
        """
        self.current_context = None
        self._query = query
        self._join_graph = query.join_graph()
        self._widths = {}
        self._log("Planning query", query, "with", len(query.relations), "relations")

        if not nx.is_connected(self._join_graph):
            raise PlanningError(query, "Join graph is not connected, but cross products are not supported")

        base_rels = [self._build_base_rel(rel) for rel in query.relations]
        context = PlanningContext(base_rels=[None, *base_rels], join_rels=[])

        if len(base_rels) == 1:
            final_rel = base_rels[0]
        else:
            final_rel = self._standard_join_search(base_rels, context)

        if final_rel.cheapest_path is None:
            raise LogicError(f"No path has been selected for the final relation {final_rel}")
        plan_tree = self._create_plan(final_rel.cheapest_path)
        plan_tree = self._add_upper_nodes(plan_tree, query)

        self.current_context = context
        self._log("Selected plan", plan_tree)
        return PlannedStatement(plan_tree, query_text=query_text, planner_options=planner_options)

    def __call__(self, query: Query, query_text: str = "", planner_options: int = 0,
                 bound_params: Optional[Mapping[str, Any]] = None) -> PlannedStatement:
        return self.plan(query, query_text, planner_options, bound_params)

    def add_path(self, rel: RelationEntry, path: CandidatePath) -> bool:
        """Stores a new path in the path list of a relation, if the path is worthy of further consideration.

        A path is rejected if there is a path that is at least as cheap in terms of both startup cost and total cost.
        Likewise, all existing paths that are more expensive than the new path on both counts are removed. Costs are compared
        with the `FuzzFactor`. Existing paths always win ties.

        Returns
        -------
        bool
            Whether the path was stored.
        """
        retained_paths: list[CandidatePath] = []
        for existing_path in rel.pathlist:
            if _dominates(existing_path, path):
                return False
            if _dominates(path, existing_path):
                continue
            retained_paths.append(existing_path)

        retained_paths.append(path)
        rel.pathlist = retained_paths
        return True

    def _standard_join_search(self, initial_rels: list[RelationEntry], context: PlanningContext) -> RelationEntry:
        levels_needed = len(initial_rels)
        join_levels = _JoinRelLevels()
        join_levels.levels[1] = initial_rels

        for level in range(2, levels_needed + 1):
            self._join_search_one_level(level, join_levels)
            for rel in join_levels.levels[level]:
                self._set_cheapest(rel)
            self._log("Built", len(join_levels.levels[level]), "join relations at level", level)

        context.join_rels = join_levels.discovered
        final_level = join_levels.levels[levels_needed]
        if len(final_level) != 1:
            raise InvariantViolationError(f"Final join level should contain exactly one relation, but found {final_level}")
        return final_level[0]

    def _join_search_one_level(self, level: int, join_levels: _JoinRelLevels) -> None:
        considered_pairs: set[frozenset[frozenset[str]]] = set()

        candidate_pairs: list[tuple[RelationEntry, RelationEntry]] = []
        candidate_pairs.extend((rel1, rel2) for rel1 in join_levels.levels[level - 1] for rel2 in join_levels.levels[1])
        for outer_size in range(2, level // 2 + 1):
            inner_size = level - outer_size
            candidate_pairs.extend((rel1, rel2) for rel1 in join_levels.levels[outer_size]
                                   for rel2 in join_levels.levels[inner_size])

        for rel1, rel2 in candidate_pairs:
            if rel1.relids & rel2.relids:
                # don't join anything that we have already joined
                continue
            if not self._joins_between(rel1.relids, rel2.relids):
                # don't consider cross products
                continue
            pair = frozenset({rel1.relids, rel2.relids})
            if pair in considered_pairs:
                continue
            considered_pairs.add(pair)

            join_rel = self._build_join_rel(rel1.relids | rel2.relids, join_levels)
            self._add_paths_to_joinrel(join_rel, outer_rel=rel1, inner_rel=rel2)
            self._add_paths_to_joinrel(join_rel, outer_rel=rel2, inner_rel=rel1)

    def _joins_between(self, outer: frozenset[str], inner: frozenset[str]) -> bool:
        return bool(nx.node_boundary(self._join_graph, outer, inner))

    def _build_join_rel(self, relids: frozenset[str], join_levels: _JoinRelLevels) -> RelationEntry:
        join_rel = join_levels.lookup(relids)
        if join_rel is not None:
            return join_rel

        join_rel = RelationEntry(relids=relids, pathlist=[], rows=self._estimate_rows(relids))
        join_levels.levels[len(relids)].append(join_rel)
        join_levels.discovered.append(join_rel)
        return join_rel

    def _build_base_rel(self, relation: BaseRelation) -> RelationEntry:
        base_rel = RelationEntry(relids=frozenset({relation.name}), pathlist=[], rows=relation.filtered_rows)
        settings = self.settings

        if settings.enable_seqscan:
            self.add_path(base_rel, self._seq_scan_path(relation))
        if relation.indexed and settings.enable_indexscan:
            self.add_path(base_rel, self._index_scan_path(relation))
        if relation.indexed and settings.enable_bitmapscan:
            self.add_path(base_rel, self._bitmap_scan_path(relation))

        if not base_rel.pathlist:
            warnings.warn(f"All scan operators are disabled for relation '{relation}'. Falling back to sequential scan.",
                          category=PlanningWarning)
            self.add_path(base_rel, self._seq_scan_path(relation))

        self._set_cheapest(base_rel)
        return base_rel

    def _add_paths_to_joinrel(self, join_rel: RelationEntry, *, outer_rel: RelationEntry,
                              inner_rel: RelationEntry) -> None:
        outer_path, inner_path = outer_rel.cheapest_path, inner_rel.cheapest_path
        if outer_path is None or inner_path is None:
            raise LogicError(f"Cannot join {outer_rel} and {inner_rel} before their cheapest paths are known")

        settings = self.settings
        join_paths: list[CandidatePath] = []
        if settings.enable_nestloop:
            join_paths.append(self._nestloop_path(join_rel, outer_path, inner_path))
        if settings.enable_hashjoin:
            join_paths.append(self._hashjoin_path(join_rel, outer_path, inner_path))
        if settings.enable_mergejoin:
            join_paths.append(self._mergejoin_path(join_rel, outer_path, inner_path))

        if not join_paths:
            warnings.warn(f"All join operators are disabled for relation {join_rel}. Falling back to nested loop join.",
                          category=PlanningWarning)
            join_paths.append(self._nestloop_path(join_rel, outer_path, inner_path))

        for path in join_paths:
            self.add_path(join_rel, path)

    def _set_cheapest(self, rel: RelationEntry) -> None:
        if rel.pathlist:
            rel.cheapest_path = min(rel.pathlist, key=lambda path: (path.total_cost, path.startup_cost))

    def _estimate_rows(self, relids: frozenset[str]) -> Rows:
        cardinality = math.prod(self._query.relation(name).filtered_rows for name in relids)
        for _, _, selectivity in self._join_graph.subgraph(relids).edges(data="selectivity"):
            cardinality *= selectivity
        return clamp_rows(cardinality)

    def _width(self, relids: frozenset[str]) -> int:
        if relids not in self._widths:
            self._widths[relids] = sum(self._query.relation(name).width for name in relids)
        return self._widths[relids]

    def _seq_scan_path(self, relation: BaseRelation) -> CandidatePath:
        settings = self.settings
        cpu_per_tuple = settings.cpu_tuple_cost
        if relation.selectivity < 1.0:
            cpu_per_tuple += settings.cpu_operator_cost
        total_cost = relation.page_count * settings.seq_page_cost + relation.rows * cpu_per_tuple
        return CandidatePath(PathKind.SeqScan, rows=relation.filtered_rows, startup_cost=0.0, total_cost=total_cost,
                             relids=frozenset({relation.name}))

    def _index_startup_cost(self, relation: BaseRelation) -> Cost:
        # descending the index tree, as in genericcostestimate
        return math.ceil(math.log2(max(relation.rows, 2.0))) * self.settings.cpu_operator_cost

    def _index_scan_path(self, relation: BaseRelation) -> CandidatePath:
        settings = self.settings
        startup_cost = self._index_startup_cost(relation)
        pages_fetched = max(1.0, relation.page_count * relation.selectivity)
        total_cost = (startup_cost + pages_fetched * settings.random_page_cost
                      + relation.filtered_rows * (settings.cpu_index_tuple_cost + settings.cpu_tuple_cost))
        return CandidatePath(PathKind.IndexScan, rows=relation.filtered_rows, startup_cost=startup_cost,
                             total_cost=total_cost, relids=frozenset({relation.name}))

    def _bitmap_scan_path(self, relation: BaseRelation) -> CandidatePath:
        settings = self.settings
        # the bitmap has to be completed before the first heap page can be fetched
        startup_cost = self._index_startup_cost(relation) + relation.filtered_rows * settings.cpu_index_tuple_cost
        pages_fetched = min(relation.page_count, max(1.0, 2 * relation.page_count * relation.selectivity))
        page_cost = (settings.seq_page_cost + settings.random_page_cost) / 2
        total_cost = startup_cost + pages_fetched * page_cost + relation.filtered_rows * settings.cpu_tuple_cost
        return CandidatePath(PathKind.BitmapHeapScan, rows=relation.filtered_rows, startup_cost=startup_cost,
                             total_cost=total_cost, relids=frozenset({relation.name}))

    def _nestloop_path(self, join_rel: RelationEntry, outer: CandidatePath, inner: CandidatePath) -> CandidatePath:
        settings = self.settings
        startup_cost = outer.startup_cost + inner.startup_cost
        rescan_cost = max(outer.rows - 1.0, 0.0) * (inner.total_cost - inner.startup_cost)
        total_cost = (outer.total_cost + inner.total_cost + rescan_cost
                      + outer.rows * inner.rows * settings.cpu_operator_cost + join_rel.rows * settings.cpu_tuple_cost)
        return CandidatePath(PathKind.NestLoop, rows=join_rel.rows, startup_cost=startup_cost, total_cost=total_cost,
                             outer=outer, inner=inner, relids=join_rel.relids)

    def _hashjoin_path(self, join_rel: RelationEntry, outer: CandidatePath, inner: CandidatePath) -> CandidatePath:
        settings = self.settings
        build_cost = inner.total_cost + inner.rows * (settings.cpu_operator_cost + settings.cpu_tuple_cost)
        startup_cost = outer.startup_cost + build_cost
        lookup_cost = (outer.total_cost - outer.startup_cost) + outer.rows * settings.cpu_operator_cost
        total_cost = startup_cost + lookup_cost + join_rel.rows * settings.cpu_tuple_cost
        return CandidatePath(PathKind.HashJoin, rows=join_rel.rows, startup_cost=startup_cost, total_cost=total_cost,
                             outer=outer, inner=inner, relids=join_rel.relids)

    def _mergejoin_path(self, join_rel: RelationEntry, outer: CandidatePath, inner: CandidatePath) -> CandidatePath:
        settings = self.settings
        startup_cost = (outer.total_cost + self._sort_cost(outer.rows)
                        + inner.total_cost + self._sort_cost(inner.rows))
        merge_cost = (outer.rows + inner.rows) * settings.cpu_operator_cost
        total_cost = startup_cost + merge_cost + join_rel.rows * settings.cpu_tuple_cost
        return CandidatePath(PathKind.MergeJoin, rows=join_rel.rows, startup_cost=startup_cost, total_cost=total_cost,
                             outer=outer, inner=inner, relids=join_rel.relids)

    def _sort_cost(self, rows: Rows) -> Cost:
        return 2.0 * self.settings.cpu_operator_cost * rows * math.log2(max(rows, 2.0))

    def _create_plan(self, path: CandidatePath) -> PlanNode:
        width = self._width(path.relids)
        match path.kind:
            case PathKind.SeqScan:
                return PlanNode(PlanKind.SeqScan, path.startup_cost, path.total_cost, path.rows, width,
                                relation=_relation_name(path))
            case PathKind.IndexScan:
                return PlanNode(PlanKind.IndexScan, path.startup_cost, path.total_cost, path.rows, width,
                                relation=_relation_name(path))
            case PathKind.BitmapHeapScan:
                bitmap = PlanNode(PlanKind.BitmapIndexScan, path.startup_cost, path.startup_cost, path.rows, 0,
                                  relation=_relation_name(path))
                return PlanNode(PlanKind.BitmapHeapScan, path.startup_cost, path.total_cost, path.rows, width,
                                left=bitmap, relation=_relation_name(path))
            case PathKind.NestLoop:
                return PlanNode(PlanKind.NestLoop, path.startup_cost, path.total_cost, path.rows, width,
                                left=self._create_plan(path.outer), right=self._create_plan(path.inner))
            case PathKind.HashJoin:
                inner_plan = self._create_plan(path.inner)
                hash_node = PlanNode(PlanKind.Hash, inner_plan.total_cost, inner_plan.total_cost, inner_plan.rows,
                                     inner_plan.width, left=inner_plan)
                return PlanNode(PlanKind.HashJoin, path.startup_cost, path.total_cost, path.rows, width,
                                left=self._create_plan(path.outer), right=hash_node)
            case PathKind.MergeJoin:
                return PlanNode(PlanKind.MergeJoin, path.startup_cost, path.total_cost, path.rows, width,
                                left=self._sort_node(self._create_plan(path.outer)),
                                right=self._sort_node(self._create_plan(path.inner)))
            case _:
                raise LogicError(f"Cannot create a plan for unknown path {path}")

    def _sort_node(self, input_plan: PlanNode) -> PlanNode:
        startup_cost = input_plan.total_cost + self._sort_cost(input_plan.rows)
        total_cost = startup_cost + input_plan.rows * self.settings.cpu_operator_cost
        return PlanNode(PlanKind.Sort, startup_cost, total_cost, input_plan.rows, input_plan.width, left=input_plan)

    def _add_upper_nodes(self, plan: PlanNode, query: Query) -> PlanNode:
        settings = self.settings
        if query.aggregate:
            agg_cost = plan.total_cost + plan.rows * settings.cpu_operator_cost
            plan = PlanNode(PlanKind.Agg, agg_cost, agg_cost + settings.cpu_tuple_cost, 1.0, 8, left=plan)
        elif query.order_by:
            plan = self._sort_node(plan)

        if query.limit is not None:
            limit_rows = min(float(query.limit), plan.rows)
            fraction = limit_rows / plan.rows if plan.rows > 0 else 0.0
            total_cost = plan.startup_cost + (plan.total_cost - plan.startup_cost) * fraction
            plan = PlanNode(PlanKind.Limit, plan.startup_cost, total_cost, limit_rows, plan.width, left=plan)

        return plan

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return "StandardPlanner"


def _dominates(path: CandidatePath, other: CandidatePath) -> bool:
    return (path.startup_cost <= other.startup_cost * FuzzFactor
            and path.total_cost <= other.total_cost * FuzzFactor)


def _relation_name(path: CandidatePath) -> str:
    return next(iter(path.relids)) if path.relids else ""

