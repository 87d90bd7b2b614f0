from __future__ import annotations

from typing import Dict, Mapping, Optional

import polars as pl

from ..core.graph import GraphHandle
from ..core.measures import EDGE_RESERVED
from ..core.network import Network
from ..errors import NotFound, UnknownColumn


def to_dataframes(network: Network, *, public_only: bool = False) -> Dict[str, pl.DataFrame]:
    """
    Export a Network to Polars DataFrames.

    Returns a dictionary with two tables:
    - 'nodes': ``name`` plus every node column
    - 'edges': ``name``, ``source``, ``target`` (node names), ``weight`` when
      the graph is weighted, plus every edge column

    Args:
        network: Network to export
        public_only: If True, filter out attributes starting with '__'

    Returns:
        Dictionary mapping table names to Polars DataFrames (copies)
    """
    result = network.to_dataframes()
    if public_only:
        result = {
            k: df.select([c for c in df.columns if not c.startswith("__")])
            for k, df in result.items()
        }
    return result


def _require(df: pl.DataFrame, column: str) -> None:
    if column not in df.columns:
        raise UnknownColumn(column, df.columns)


def from_dataframes(
    nodes: Optional[pl.DataFrame] = None,
    edges: Optional[pl.DataFrame] = None,
    *,
    directed: bool = False,
    name: str = "name",
    source: str = "source",
    target: str = "target",
    weight: Optional[str] = None,
    edge_name: Optional[str] = None,
    strict: bool = False,
    node_measures: Optional[Mapping] = None,
    edge_measures: Optional[Mapping] = None,
    **kwargs,
) -> Network:
    """
    Build a Network from Polars node and edge tables.

    Args:
        nodes: Node table; ``name`` column holds identifiers. Its row order is
            the node order. Nodes only mentioned in ``edges`` are appended.
        edges: Edge list; ``source`` / ``target`` columns hold node names.
        directed: Whether edges are directed
        name: Node identifier column in ``nodes``
        source: Source column in ``edges``
        target: Target column in ``edges``
        weight: Optional weight column in ``edges``
        edge_name: Edge identifier column in ``edges`` (``name`` if present)
        strict: Reject edge endpoints missing from ``nodes``
        node_measures: Derived node measures
        edge_measures: Derived edge measures
        **kwargs: Forwarded to :class:`Network`

    Returns:
        Network whose remaining columns are static attributes; columns named
        like a derived measure are discarded.

    Raises:
        UnknownColumn: If a named column is missing.
        NotFound: If ``nodes`` is given and an edge endpoint is not listed in it
            while ``strict=True``.
    """
    node_cols: dict = {}
    order: list = []
    if nodes is not None:
        _require(nodes, name)
        order = nodes.get_column(name).to_list()
        skip = {name, *(node_measures or {})}
        node_cols = {c: nodes.get_column(c).to_list() for c in nodes.columns if c not in skip}

    pairs: list = []
    edge_cols: dict = {}
    weights = None
    edge_names = None
    if edges is not None:
        for col in (source, target):
            _require(edges, col)
        pairs = list(zip(edges.get_column(source).to_list(), edges.get_column(target).to_list()))
        if weight is not None:
            _require(edges, weight)
            weights = edges.get_column(weight).cast(pl.Float64).to_list()
        if edge_name is None and "name" in edges.columns:
            edge_name = "name"
        if edge_name is not None:
            _require(edges, edge_name)
            edge_names = edges.get_column(edge_name).to_list()
        skip = {source, target, weight, edge_name, *EDGE_RESERVED, *(edge_measures or {})}
        edge_cols = {c: edges.get_column(c).to_list() for c in edges.columns if c not in skip}

    index = {v: i for i, v in enumerate(order)}
    extra = []
    for u, v in pairs:
        for x in (u, v):
            if x not in index:
                if strict and nodes is not None:
                    raise NotFound(f"Edge endpoint {x!r} is not in the node table")
                index[x] = len(index)
                extra.append(x)
    if extra and node_cols:
        # appended nodes have no attributes
        node_cols = {c: vals + [None] * len(extra) for c, vals in node_cols.items()}
    order = order + extra

    graph = GraphHandle(
        len(order),
        [(index[u], index[v]) for u, v in pairs],
        directed=directed,
        weights=weights,
        engine=kwargs.pop("engine", None) or "networkx",
    )
    return Network(
        graph,
        order,
        node_attrs=node_cols,
        edge_attrs=edge_cols,
        edge_names=edge_names,
        node_measures=node_measures,
        edge_measures=edge_measures,
        **kwargs,
    )
