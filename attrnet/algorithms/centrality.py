"""
Ready-made derived-measure functions.

Each factory returns a callable ``(GraphHandle) -> list`` suitable for
:meth:`MeasureRegistry.register` or the ``node_measures`` / ``edge_measures``
arguments of :class:`~attrnet.core.network.Network`::

    net = Network.from_edges(pairs, node_measures={"degree": degree()})

The computation is delegated to a graph engine: ``engine=None`` uses the
engine configured on the graph handle.
"""
from __future__ import annotations

from functools import partial

import numpy as np

from ..engines import get_engine


class _Measure:
    """Callable measure with a readable repr."""

    __slots__ = ("label", "_fn")

    def __init__(self, label: str, fn):
        self.label = label
        self._fn = fn

    def __call__(self, graph) -> list:
        return self._fn(graph)

    def __repr__(self) -> str:
        return f"<measure {self.label}>"


def _engine_call(method: str, engine, graph, **kwargs) -> list:
    return getattr(get_engine(engine or graph.engine), method)(graph, **kwargs)


def _measure(method: str, engine=None, **kwargs) -> _Measure:
    args = ", ".join(f"{k}={v!r}" for k, v in kwargs.items())
    return _Measure(f"{method}({args})", partial(_engine_call, method, engine, **kwargs))


# Node measures

def degree(mode: str = "all", loops: bool = True, engine=None) -> _Measure:
    """Number of incident edges; ``mode`` selects in/out on directed graphs."""
    return _measure("degree", engine, mode=mode, loops=loops)


def strength(mode: str = "all", engine=None) -> _Measure:
    """Sum of incident edge weights (unit weights on unweighted graphs)."""
    return _measure("strength", engine, mode=mode)


def betweenness(normalized: bool = True, weighted: bool = False, engine=None) -> _Measure:
    return _measure("betweenness", engine, normalized=normalized, weighted=weighted)


def closeness(weighted: bool = False, engine=None) -> _Measure:
    return _measure("closeness", engine, weighted=weighted)


def eigenvector(weighted: bool = False, engine=None) -> _Measure:
    return _measure("eigenvector", engine, weighted=weighted)


def pagerank(damping: float = 0.85, weighted: bool = False, engine=None) -> _Measure:
    return _measure("pagerank", engine, damping=damping, weighted=weighted)


def local_clustering(engine=None) -> _Measure:
    """Local clustering coefficient, computed on the undirected simple view."""
    return _measure("local_clustering", engine)


# Edge measures

def edge_betweenness(normalized: bool = True, weighted: bool = False, engine=None) -> _Measure:
    """
    Fraction of shortest paths through each edge.

    Parallel edges share the value of the simple edge they collapse into.
    """
    return _measure("edge_betweenness", engine, normalized=normalized, weighted=weighted)


def edge_endpoint_degree_product(engine=None) -> _Measure:
    """
    ``degree(source) * degree(target)`` for every edge.

    A cheap endpoint statistic that changes whenever either endpoint gains or
    loses an edge.
    """
    def compute(graph) -> list:
        deg = np.asarray(_engine_call("degree", engine, graph), dtype=np.int64)
        el = graph.edge_list()
        if not el:
            return []
        src, dst = np.asarray(el, dtype=np.int64).T
        return (deg[src] * deg[dst]).tolist()

    return _Measure("edge_endpoint_degree_product()", compute)
