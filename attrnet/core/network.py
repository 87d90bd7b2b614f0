from __future__ import annotations

import warnings
from typing import Any, Callable, Iterable, Mapping, Sequence

import polars as pl

from ..errors import (
    DuplicateColumn,
    LengthMismatch,
    ReservedColumn,
    StaticColumnWarning,
    UnknownColumn,
)
from ._history import History
from .graph import EdgeSubsetMode, GraphHandle, GraphTransform
from .measures import MeasureKind, MeasureRegistry, reserved_columns
from .query import ExpressionEvaluator, filter_rows, labels, neighbors_by_label, resolve_labels
from .table import NAME, AttributeTable

_POLICIES = ("drop", "keep")


def _columns_of(attrs) -> dict:
    """Normalise a mapping or Polars DF [DataFrame] into ``{column: list}``."""
    if attrs is None:
        return {}
    if isinstance(attrs, pl.DataFrame):
        return {c: attrs.get_column(c).to_list() for c in attrs.columns}
    return {str(k): v for k, v in dict(attrs).items()}


class Network:
    """
    A graph plus synchronised node and edge attribute tables.

    Columns come in three flavours:

    - **structural**: ``name`` (both tables) and ``source``, ``target`` and,
      for weighted graphs, ``weight`` (edge table). Rebuilt from the graph on
      every change.
    - **derived**: one per registered measure; recomputed from the topology
      after every structural change.
    - **static**: supplied by the caller (construction or :meth:`annotate`);
      carried across changes by matching rows on ``name`` but never recomputed.

    Every operation that changes anything returns a **new** Network; the
    original (graph, tables, history) is left exactly as it was.

    Parameters
    ----------
    graph : GraphHandle
        Topology. Node ``i`` of the graph is row ``i`` of the node table.
    node_names : Sequence, optional
        Unique node identifiers; default ``n0, n1, ...`` (or a ``name`` column
        of ``node_attrs``).
    node_attrs, edge_attrs : Mapping[str, Sequence] | polars.DataFrame, optional
        Initial static columns, aligned to node / edge order.
    edge_names : Sequence, optional
        Unique edge identifiers; default ``e0, e1, ...``.
    node_measures, edge_measures : Mapping[str, Callable], optional
        Derived-measure functions ``(GraphHandle) -> sequence``.
    static_policy : {'drop', 'keep'}, optional
        What happens to static columns when node or edge membership changes:
        ``'drop'`` (default) removes the columns, ``'keep'`` carries surviving rows.
        A :class:`~attrnet.errors.StaticColumnWarning` is emitted either way.
    engine : str, optional
        Graph engine for built-in measures (``'networkx'`` or ``'igraph'``).
    evaluator : ExpressionEvaluator, optional
        Compiler for text predicates.
    history : bool, optional
        Record an operation history.

    Raises
    ------
    DuplicateIdentifier
        If node or edge names repeat.
    LengthMismatch
        If an attribute column or name list has the wrong length.
    DuplicateColumn
        If a static column has the same name as a derived measure.
    ReservedColumn
        If a static column uses a structural name.
    DerivedMeasureError
        If a measure function fails on the initial graph.
    """

    __slots__ = (
        "_graph", "_nodes", "_edges", "_measures", "_static",
        "_static_policy", "_evaluator", "_history",
    )

    def __init__(
        self,
        graph: GraphHandle,
        node_names: Sequence[Any] | None = None,
        *,
        node_attrs=None,
        edge_attrs=None,
        edge_names: Sequence[Any] | None = None,
        node_measures: Mapping[str, Callable] | None = None,
        edge_measures: Mapping[str, Callable] | None = None,
        static_policy: str = "drop",
        engine: str | None = None,
        evaluator: ExpressionEvaluator | None = None,
        history: bool = True,
    ):
        if not isinstance(graph, GraphHandle):
            raise TypeError(f"graph must be a GraphHandle, got {type(graph).__name__}")
        if static_policy not in _POLICIES:
            raise ValueError(f"static_policy must be one of {_POLICIES}, got {static_policy!r}")
        if engine is not None and engine != graph.engine:
            graph = GraphHandle(graph.n_nodes, graph.edge_list(), directed=graph.directed,
                                weights=graph.weights, engine=engine)

        node_cols = _columns_of(node_attrs)
        edge_cols = _columns_of(edge_attrs)
        node_names = self._pick_names(node_names, node_cols, graph.n_nodes, "n", "node")
        edge_names = self._pick_names(edge_names, edge_cols, graph.n_edges, "e", "edge")

        measures = MeasureRegistry(node=node_measures, edge=edge_measures)
        for kind, cols in ((MeasureKind.NODE, node_cols), (MeasureKind.EDGE, edge_cols)):
            for col in cols:
                if col in reserved_columns(kind):
                    raise ReservedColumn(col)
                if col in measures.names(kind):
                    raise DuplicateColumn(col)

        derived = measures.recompute(graph)
        nodes = AttributeTable.build(
            node_names, {**derived[MeasureKind.NODE], **node_cols}, kind="node"
        )
        edges = AttributeTable.build(
            edge_names,
            {**self._structural_edge_columns(graph, node_names), **derived[MeasureKind.EDGE], **edge_cols},
            kind="edge",
        )

        self._graph = graph
        self._nodes = nodes
        self._edges = edges
        self._measures = measures
        self._static = {MeasureKind.NODE: tuple(node_cols), MeasureKind.EDGE: tuple(edge_cols)}
        self._static_policy = static_policy
        self._evaluator = evaluator
        self._history = History(history).record(
            "init", n_nodes=graph.n_nodes, n_edges=graph.n_edges, directed=graph.directed,
            node_measures=measures.names("node"), edge_measures=measures.names("edge"),
        )
        self._check_invariants()

    @staticmethod
    def _pick_names(names, cols: dict, count: int, prefix: str, kind: str) -> list:
        given = cols.pop(NAME, None)
        if names is None:
            names = given if given is not None else [f"{prefix}{i}" for i in range(count)]
        elif given is not None and list(given) != list(names):
            raise ValueError(f"{kind} names given twice and they differ")
        names = list(names)
        if len(names) != count:
            raise LengthMismatch(NAME, count, len(names))
        return names

    @staticmethod
    def _structural_edge_columns(graph: GraphHandle, node_names: Sequence) -> dict:
        el = graph.edge_list()
        cols = {
            "source": [node_names[u] for u, _ in el],
            "target": [node_names[v] for _, v in el],
        }
        if graph.is_weighted:
            cols["weight"] = list(graph.weights)
        return cols

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[tuple],
        *,
        nodes: Sequence[Any] | None = None,
        directed: bool = False,
        weights: Sequence[float] | None = None,
        **kwargs,
    ) -> "Network":
        """
        Build a Network from ``(source_name, target_name)`` pairs.

        Parameters
        ----------
        edges : Iterable[tuple]
            Endpoint names.
        nodes : Sequence, optional
            Node names in the desired order (isolated nodes must be listed
            here); names only seen in ``edges`` are appended in order of
            first appearance.
        directed : bool, optional
        weights : Sequence[float], optional
        **kwargs
            Forwarded to :class:`Network`.

        Returns
        -------
        Network
        """
        edges = [tuple(e) for e in edges]
        order = list(nodes) if nodes is not None else []
        index = {}
        for v in order:
            index.setdefault(v, len(index))
        for u, v in edges:
            for x in (u, v):
                if x not in index:
                    index[x] = len(index)
                    order.append(x)
        graph = GraphHandle(
            len(order),
            [(index[u], index[v]) for u, v in edges],
            directed=directed,
            weights=weights,
            engine=kwargs.pop("engine", None) or "networkx",
        )
        return cls(graph, order, **kwargs)

    # Derivation plumbing

    def _spawn(self, graph, nodes, edges, measures, static, op: str, /, **fields) -> "Network":
        new = object.__new__(type(self))
        new._graph = graph
        new._nodes = nodes
        new._edges = edges
        new._measures = measures
        new._static = static
        new._static_policy = self._static_policy
        new._evaluator = self._evaluator
        new._history = self._history.record(op, **fields)
        new._check_invariants()
        return new

    def _check_invariants(self) -> None:
        if self._nodes.height != self._graph.n_nodes:
            raise RuntimeError(
                f"node table has {self._nodes.height} rows for {self._graph.n_nodes} nodes"
            )
        if self._edges.height != self._graph.n_edges:
            raise RuntimeError(
                f"edge table has {self._edges.height} rows for {self._graph.n_edges} edges"
            )

    def _identity(self) -> GraphTransform:
        return GraphTransform(
            self._graph, tuple(range(self._graph.n_nodes)), tuple(range(self._graph.n_edges))
        )

    def _apply(self, tr: GraphTransform, op: str, /, measures: MeasureRegistry | None = None,
               **fields) -> "Network":
        """
        Rebuild both tables for a transformed graph.

        1. derived columns are recomputed against ``tr.graph`` (atomically),
        2. static columns are reconciled by ``name`` (or dropped),
        3. row-count invariants are checked on the result.
        """
        if measures is None:
            measures = self._measures
        graph = tr.graph
        old_nodes = self._nodes.names
        old_edges = self._edges.names
        node_names = [old_nodes[i] for i in tr.node_index]
        edge_names = [old_edges[j] for j in tr.edge_index]

        derived = measures.recompute(graph)

        changed = {
            MeasureKind.NODE: tr.node_index != tuple(range(len(old_nodes))),
            MeasureKind.EDGE: tr.edge_index != tuple(range(len(old_edges))),
        }
        static = {}
        static_tables = {}
        dropped = {}
        carried = {}
        for kind, table, names in (
            (MeasureKind.NODE, self._nodes, node_names),
            (MeasureKind.EDGE, self._edges, edge_names),
        ):
            cols = self._static[kind]
            if cols and changed[kind]:
                if self._static_policy == "drop":
                    dropped[kind.value] = list(cols)
                    cols = ()
                else:
                    carried[kind.value] = list(cols)
            static[kind] = tuple(cols)
            static_tables[kind] = table.select(cols).take_by_name(names)

        if carried:
            warnings.warn(
                f"{op}: static columns {carried} were carried over without recomputation "
                "and may no longer reflect the new topology",
                StaticColumnWarning,
                stacklevel=3,
            )
        if dropped:
            warnings.warn(
                f"{op}: static columns {dropped} were dropped (static_policy='drop')",
                StaticColumnWarning,
                stacklevel=3,
            )

        nodes = self._assemble(
            MeasureKind.NODE, node_names, {}, derived[MeasureKind.NODE],
            static_tables[MeasureKind.NODE], self._nodes.columns,
        )
        edges = self._assemble(
            MeasureKind.EDGE, edge_names, self._structural_edge_columns(graph, node_names),
            derived[MeasureKind.EDGE], static_tables[MeasureKind.EDGE], self._edges.columns,
        )
        return self._spawn(graph, nodes, edges, measures, static, op, **fields)

    @staticmethod
    def _assemble(kind, names, structural, derived, static_table, order) -> AttributeTable:
        cols = dict(structural)
        cols.update(derived)
        for c in static_table.columns:
            if c != NAME:
                cols[c] = static_table.get(c)
        table = AttributeTable.build(names, cols, kind=kind.value)
        # keep the previous column order; new columns go last
        present = [c for c in order if c in table and c != NAME]
        present += [c for c in table.columns if c not in present and c != NAME]
        return table.select(present)

    # Read-only access

    @property
    def graph(self) -> GraphHandle:
        return self._graph

    @property
    def measures(self) -> MeasureRegistry:
        return self._measures

    @property
    def static_policy(self) -> str:
        """How static columns are treated when node or edge membership changes."""
        return self._static_policy

    @property
    def n_nodes(self) -> int:
        return self._graph.n_nodes

    @property
    def n_edges(self) -> int:
        return self._graph.n_edges

    @property
    def directed(self) -> bool:
        return self._graph.directed

    def node_attributes(self) -> AttributeTable:
        """Snapshot of the node table (tables are immutable)."""
        return self._nodes

    def edge_attributes(self) -> AttributeTable:
        """Snapshot of the edge table (tables are immutable)."""
        return self._edges

    def nodes(self, column: str = NAME) -> list:
        """Values of a node column. Raises :class:`UnknownColumn` if absent."""
        return self._nodes.get(column)

    def edges(self, column: str = NAME) -> list:
        """Values of an edge column. Raises :class:`UnknownColumn` if absent."""
        return self._edges.get(column)

    def static_columns(self, kind="node") -> list[str]:
        return list(self._static[MeasureKind(kind)])

    def derived_columns(self, kind="node") -> list[str]:
        return self._measures.names(kind)

    def _table(self, kind) -> AttributeTable:
        return self._nodes if MeasureKind(kind) is MeasureKind.NODE else self._edges

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        return (
            f"Network({self.n_nodes} nodes, {self.n_edges} edges, {kind}; "
            f"node columns={self._nodes.columns}, edge columns={self._edges.columns})"
        )

    # Queries

    def filter_nodes(self, predicate, project: str | None = None):
        """
        Rows of the node table matching ``predicate``.

        Parameters
        ----------
        predicate : str | polars.Expr
            e.g. ``"degree >= 8 & group == 'core'"``.
        project : str, optional
            Return this column's values for the matches instead of row indices.

        Returns
        -------
        list
            Row indices, or projected values.

        Raises
        ------
        UnknownColumn
        TypeMismatch
        ExpressionSyntaxError
        """
        return self._filter(self._nodes, predicate, project)

    def filter_edges(self, predicate, project: str | None = None):
        """Edge-table counterpart of :meth:`filter_nodes`."""
        return self._filter(self._edges, predicate, project)

    def _filter(self, table: AttributeTable, predicate, project):
        if project is not None and project not in table:
            raise UnknownColumn(project, table.columns)
        idx = filter_rows(table, predicate, self._evaluator)
        if project is None:
            return idx
        return labels(table, idx, project)

    def neighbors(self, query, lookup_column: str = NAME, degree: int = 1,
                  include_center: bool = True, mode: str = "all",
                  return_column: str | None = NAME) -> list:
        """
        Nodes within ``degree`` hops of the node(s) whose ``lookup_column`` equals ``query``.

        Parameters
        ----------
        query : Any | Iterable
            One label or several (neighbourhoods are united).
        lookup_column : str, optional
        degree : int, optional
            Maximum number of hops.
        include_center : bool, optional
        mode : {'all', 'out', 'in'}, optional
            Edge orientation on directed graphs.
        return_column : str | None, optional
            Column to report; ``None`` returns node indices.

        Returns
        -------
        list
            In node order.

        Raises
        ------
        NotFound
        AmbiguousLabel
        UnknownColumn
        """
        if return_column is not None and return_column not in self._nodes:
            raise UnknownColumn(return_column, self._nodes.columns)
        idx = neighbors_by_label(self._nodes, self._graph, query, lookup_column,
                                 degree, include_center, mode)
        if return_column is None:
            return idx
        return labels(self._nodes, idx, return_column)

    # Copy-producing operations

    def annotate(self, kind, column: str, values, replace: bool = False) -> "Network":
        """
        Return a new Network with a static column added to the node or edge table.

        Parameters
        ----------
        kind : {'node', 'edge'}
        column : str
        values : Sequence
            One value per entity, in table order.
        replace : bool, optional
            Overwrite an existing static column.

        Raises
        ------
        LengthMismatch
        DuplicateColumn
            If the column exists (without ``replace``) or is a derived measure.
        ReservedColumn
        """
        kind = MeasureKind(kind)
        if column in reserved_columns(kind):
            raise ReservedColumn(column)
        if column in self._measures.names(kind):
            raise DuplicateColumn(column)
        table = self._table(kind).add_column(column, values, replace=replace)
        static = dict(self._static)
        if column not in static[kind]:
            static[kind] = static[kind] + (column,)
        nodes, edges = (table, self._edges) if kind is MeasureKind.NODE else (self._nodes, table)
        return self._spawn(self._graph, nodes, edges, self._measures, static,
                           "annotate", kind=kind, column=column, replace=replace)

    def drop_annotation(self, kind, column: str) -> "Network":
        """Return a new Network without the static ``column``."""
        kind = MeasureKind(kind)
        if column not in self._static[kind]:
            raise UnknownColumn(column, list(self._static[kind]))
        table = self._table(kind).drop_columns([column])
        static = dict(self._static)
        static[kind] = tuple(c for c in static[kind] if c != column)
        nodes, edges = (table, self._edges) if kind is MeasureKind.NODE else (self._nodes, table)
        return self._spawn(self._graph, nodes, edges, self._measures, static,
                           "drop_annotation", kind=kind, column=column)

    def register_measure(self, name: str, kind, fn: Callable) -> "Network":
        """
        Return a new Network with ``fn`` registered and all derived columns refreshed.

        Raises
        ------
        DuplicateColumn
            If ``name`` is already a measure or a static column.
        ReservedColumn
        DerivedMeasureError
        """
        kind = MeasureKind(kind)
        if name in self._static[kind]:
            raise DuplicateColumn(name)
        measures = self._measures.register(name, kind, fn)
        return self._apply(self._identity(), "register_measure", measures=measures,
                           name=name, kind=kind)

    def unregister_measure(self, name: str, kind) -> "Network":
        """
        Return a new Network without the derived column ``name``.

        Raises
        ------
        UnknownColumn
            If ``name`` is not a registered measure of ``kind``.
        """
        kind = MeasureKind(kind)
        measures = self._measures.unregister(name, kind)
        return self._apply(self._identity(), "unregister_measure", measures=measures,
                           name=name, kind=kind)

    def recompute(self) -> "Network":
        """Return a new Network with every derived column recomputed."""
        return self._apply(self._identity(), "recompute")

    def copy(self) -> "Network":
        """An independent Network with the same graph, tables and history (plus this call)."""
        return self._spawn(self._graph, self._nodes, self._edges, self._measures,
                           dict(self._static), "copy")

    def delete_nodes_by_attribute(self, values, lookup_column: str = NAME) -> "Network":
        """
        Delete the nodes whose ``lookup_column`` equals one of ``values``.

        Incident edges go with them. Derived columns are recomputed on the
        remaining graph; static columns follow ``static_policy``.

        Raises
        ------
        NotFound
        AmbiguousLabel
        UnknownColumn
        DerivedMeasureError
        """
        ids = resolve_labels(self._nodes, values, lookup_column)
        return self._apply(self._graph.delete_nodes(ids), "delete_nodes",
                           values=values, lookup_column=lookup_column)

    def delete_edges_by_attribute(self, values, lookup_column: str = NAME) -> "Network":
        """Delete the edges whose ``lookup_column`` equals one of ``values``."""
        ids = resolve_labels(self._edges, values, lookup_column)
        return self._apply(self._graph.delete_edges(ids), "delete_edges",
                           values=values, lookup_column=lookup_column)

    def subset_nodes(self, query, lookup_column: str = NAME, degree: int = 1,
                     include_center: bool = True, mode: str = "all") -> "Network":
        """
        Induced subgraph on the ``degree``-hop neighbourhood of ``query``.

        See :meth:`neighbors` for the parameters.
        """
        ids = neighbors_by_label(self._nodes, self._graph, query, lookup_column,
                                 degree, include_center, mode)
        return self._apply(self._graph.induce_subgraph(ids), "subset_nodes",
                           query=query, lookup_column=lookup_column, degree=degree,
                           include_center=include_center, mode=mode)

    def filter_subgraph(self, predicate) -> "Network":
        """Induced subgraph on the nodes matching a node-table ``predicate``."""
        ids = filter_rows(self._nodes, predicate, self._evaluator)
        return self._apply(self._graph.induce_subgraph(ids), "filter_subgraph",
                           predicate=predicate if isinstance(predicate, str) else repr(predicate))

    def subset_edges(self, edges=None, *, predicate=None, indices: Iterable[int] | None = None,
                     lookup_column: str = NAME,
                     mode: EdgeSubsetMode | str = EdgeSubsetMode.TOUCHED) -> "Network":
        """
        Subgraph induced by a set of edges.

        Exactly one edge selector must be given.

        Parameters
        ----------
        edges : Any | Iterable, optional
            Edge labels, resolved through ``lookup_column``.
        predicate : str | polars.Expr, optional
            Edge-table predicate.
        indices : Iterable[int], optional
            Raw edge indices of this Network.
        lookup_column : str, optional
        mode : EdgeSubsetMode | str, optional
            ``'touched'`` keeps only nodes incident to a kept edge, ``'all'``
            keeps every node.

        Raises
        ------
        ValueError
            If zero or several selectors are given.
        """
        given = [x is not None for x in (edges, predicate, indices)]
        if sum(given) != 1:
            raise ValueError("pass exactly one of edges=, predicate= or indices=")
        if edges is not None:
            ids = resolve_labels(self._edges, edges, lookup_column)
        elif predicate is not None:
            ids = filter_rows(self._edges, predicate, self._evaluator)
        else:
            ids = list(indices)
        mode = EdgeSubsetMode(mode)
        return self._apply(self._graph.induce_subgraph_by_edges(ids, mode), "subset_edges",
                           edge_ids=ids, mode=mode)

    def simplify(self, remove_multiple: bool = True, remove_loops: bool = True,
                 combine_weights: str = "first") -> "Network":
        """
        Collapse parallel edges and/or remove self-loops.

        The first edge of every parallel group keeps its ``name``.
        """
        return self._apply(self._graph.simplify(remove_multiple, remove_loops, combine_weights),
                           "simplify", remove_multiple=remove_multiple,
                           remove_loops=remove_loops, combine_weights=combine_weights)

    def delete_isolates(self) -> "Network":
        """Remove nodes without incident edges."""
        return self._apply(self._graph.delete_isolates(), "delete_isolates")

    # History

    def history(self, as_df: bool = False):
        """
        The operation history that produced this Network.

        Parameters
        ----------
        as_df : bool, default False
            If True, return a Polars DF [DataFrame]; otherwise a list of dicts.

        Returns
        -------
        list[dict] or polars.DataFrame
            Each event includes 'version', 'ts_utc', 'mono_ns', 'op' and the
            call's arguments.
        """
        return self._history.to_polars() if as_df else self._history.events()

    def export_history(self, path: str) -> int:
        """Write the history to ``path`` (see :meth:`History.export`)."""
        return self._history.export(path)

    def mark(self, label: str) -> "Network":
        """Return a new Network whose history ends with a manual marker."""
        return self._spawn(self._graph, self._nodes, self._edges, self._measures,
                           dict(self._static), "mark", label=label)

    # Export

    def to_networkx(self):
        """NetworkX multigraph keyed by node ``name`` carrying every attribute."""
        from ..adapters.networkx import to_networkx

        return to_networkx(self)

    def to_dataframes(self) -> dict:
        """``{'nodes': DataFrame, 'edges': DataFrame}`` copies of both tables."""
        return {"nodes": self._nodes.to_polars(), "edges": self._edges.to_polars()}
