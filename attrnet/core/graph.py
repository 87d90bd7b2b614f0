from __future__ import annotations

from enum import Enum
from typing import Iterable, NamedTuple, Sequence

import numpy as np
import scipy.sparse as sp

from ..errors import LengthMismatch, NotFound


class EdgeSubsetMode(str, Enum):
    """Which nodes an edge-induced subgraph keeps.

    Attributes:
        TOUCHED: Keep only nodes incident to at least one kept edge
        ALL: Keep every node of the source graph
    """

    TOUCHED = "touched"
    ALL = "all"


class NeighborMode(str, Enum):
    """Edge orientation followed by neighbourhood expansion (directed graphs only)."""

    OUT = "out"
    IN = "in"
    ALL = "all"


_COMBINE = {
    "first": lambda ws: ws[0],
    "sum": sum,
    "min": min,
    "max": max,
    "mean": lambda ws: sum(ws) / len(ws),
}


class GraphTransform(NamedTuple):
    """
    Result of a structural operation.

    Attributes:
        graph: The new :class:`GraphHandle`
        node_index: ``node_index[i]`` is the source-graph index of new node ``i``
        edge_index: ``edge_index[j]`` is the source-graph index of new edge ``j``
    """

    graph: "GraphHandle"
    node_index: tuple
    edge_index: tuple


class GraphHandle:
    """
    Immutable graph topology.

    Nodes are the integers ``0..n_nodes-1``; edges are ``(source, target)``
    index pairs kept in insertion order (parallel edges and self-loops are
    allowed). Every structural operation returns a :class:`GraphTransform`
    holding a **new** handle plus the index maps needed to carry per-entity
    data across renumbering; the handle itself is never modified.

    Parameters
    ----------
    n_nodes : int
        Number of nodes.
    edges : Iterable[tuple[int, int]]
        Edge endpoints as node indices.
    directed : bool, optional
        Whether edges are directed.
    weights : Sequence[float], optional
        One weight per edge; ``None`` for an unweighted graph.
    engine : str, optional
        Name of the graph engine used by :meth:`backend` and built-in measures.

    Raises
    ------
    ValueError
        If an edge endpoint is not a node index.
    LengthMismatch
        If ``weights`` does not have one value per edge.
    """

    __slots__ = ("_n", "_src", "_dst", "_weights", "_directed", "_engine", "_cache")

    def __init__(self, n_nodes: int, edges: Iterable = (), directed: bool = False,
                 weights: Sequence[float] | None = None, engine: str = "networkx"):
        n = int(n_nodes)
        if n < 0:
            raise ValueError("n_nodes must be non-negative")
        pairs = [(int(u), int(v)) for u, v in edges]
        for u, v in pairs:
            if not (0 <= u < n and 0 <= v < n):
                raise ValueError(f"Edge ({u}, {v}) references a node outside 0..{n - 1}")
        self._n = n
        self._src = tuple(u for u, _ in pairs)
        self._dst = tuple(v for _, v in pairs)
        if weights is not None:
            weights = tuple(float(w) for w in weights)
            if len(weights) != len(pairs):
                raise LengthMismatch("weight", len(pairs), len(weights))
        self._weights = weights
        self._directed = bool(directed)
        self._engine = engine
        self._cache = {}

    # Basic properties

    @property
    def n_nodes(self) -> int:
        return self._n

    @property
    def n_edges(self) -> int:
        return len(self._src)

    @property
    def directed(self) -> bool:
        return self._directed

    @property
    def engine(self) -> str:
        """Name of the engine used by :meth:`backend` and the measure factories."""
        return self._engine

    @property
    def weights(self) -> tuple | None:
        return self._weights

    @property
    def is_weighted(self) -> bool:
        return self._weights is not None

    def edge_list(self) -> list[tuple[int, int]]:
        """Edges as ``(source, target)`` pairs in edge order."""
        return list(zip(self._src, self._dst))

    def __len__(self) -> int:
        return self._n

    def __eq__(self, other) -> bool:
        if not isinstance(other, GraphHandle):
            return NotImplemented
        return (
            self._n == other._n
            and self.directed == other.directed
            and self._src == other._src
            and self._dst == other._dst
            and self._weights == other._weights
        )

    def __hash__(self) -> int:
        return hash((self._n, self.directed, self._src, self._dst, self._weights))

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        w = ", weighted" if self.is_weighted else ""
        return f"GraphHandle({self._n} nodes, {self.n_edges} edges, {kind}{w})"

    # Validation

    def _check_nodes(self, ids) -> list[int]:
        out = [int(i) for i in ids]
        bad = [i for i in out if not 0 <= i < self._n]
        if bad:
            raise NotFound(f"Node indices out of range 0..{self._n - 1}: {bad}")
        return out

    def _check_edges(self, ids) -> list[int]:
        out = [int(j) for j in ids]
        m = self.n_edges
        bad = [j for j in out if not 0 <= j < m]
        if bad:
            raise NotFound(f"Edge indices out of range 0..{m - 1}: {bad}")
        return out

    # Structural queries

    def has_node(self, node: int) -> bool:
        return 0 <= int(node) < self._n

    def has_edge(self, source: int, target: int) -> bool:
        """Whether at least one edge joins ``source`` and ``target`` (either way if undirected)."""
        for u, v in zip(self._src, self._dst):
            if (u, v) == (source, target):
                return True
            if not self.directed and (v, u) == (source, target):
                return True
        return False

    def incident_edges(self, node: int) -> list[int]:
        """Indices of edges with ``node`` as an endpoint."""
        (node,) = self._check_nodes([node])
        return [j for j, (u, v) in enumerate(zip(self._src, self._dst)) if u == node or v == node]

    def degree(self, mode: str = "all") -> np.ndarray:
        """
        Edge-endpoint counts per node (a self-loop counts twice in ``'all'`` mode).

        Used for structural decisions (isolate removal); derived ``degree``
        columns come from the graph engine.
        """
        mode = NeighborMode(mode)
        src = np.asarray(self._src, dtype=np.int64)
        dst = np.asarray(self._dst, dtype=np.int64)
        out = np.bincount(src, minlength=self._n)
        inn = np.bincount(dst, minlength=self._n)
        if self.directed and mode is NeighborMode.OUT:
            return out
        if self.directed and mode is NeighborMode.IN:
            return inn
        return out + inn

    def isolates(self) -> list[int]:
        return [int(i) for i in np.flatnonzero(self.degree("all") == 0)]

    def adjacency(self, weighted: bool = False) -> sp.csr_matrix:
        """
        Adjacency as a SciPy CSR matrix.

        Parallel edges add up; undirected graphs produce a symmetric matrix
        (self-loops appear once on the diagonal).
        """
        key = ("adjacency", bool(weighted))
        if key in self._cache:
            return self._cache[key]
        m = self.n_edges
        data = np.ones(m) if not (weighted and self._weights) else np.asarray(self._weights, dtype=float)
        rows = np.asarray(self._src, dtype=np.int64)
        cols = np.asarray(self._dst, dtype=np.int64)
        if not self.directed:
            off = rows != cols
            rows, cols = np.concatenate([rows, cols[off]]), np.concatenate([cols, rows[off]])
            data = np.concatenate([data, data[off]])
        A = sp.csr_matrix((data, (rows, cols)), shape=(self._n, self._n))
        self._cache[key] = A
        return A

    def _walk_matrix(self, mode: NeighborMode) -> sp.csr_matrix:
        A = self.adjacency()
        if not self.directed or mode is NeighborMode.OUT:
            return A
        key = ("walk", mode.value)
        if key not in self._cache:
            T = A.T.tocsr()
            self._cache[key] = T if mode is NeighborMode.IN else (A + T).tocsr()
        return self._cache[key]

    def neighbors(self, node: int, max_distance: int = 1, include_center: bool = True,
                  mode: str = "all") -> set[int]:
        """
        Nodes within ``max_distance`` hops of ``node`` (breadth-first).

        Parameters
        ----------
        node : int
        max_distance : int, optional
            Number of hops; ``0`` yields only the centre (or nothing).
        include_center : bool, optional
            Keep ``node`` itself in the result.
        mode : {'all', 'out', 'in'}, optional
            Edge orientation to follow on directed graphs.

        Returns
        -------
        set[int]

        Raises
        ------
        NotFound
            If ``node`` is not a node index.
        ValueError
            If ``max_distance`` is negative.
        """
        (node,) = self._check_nodes([node])
        if max_distance < 0:
            raise ValueError("max_distance must be >= 0")
        A = self._walk_matrix(NeighborMode(mode))
        indptr, indices = A.indptr, A.indices
        seen = {node}
        frontier = [node]
        for _ in range(int(max_distance)):
            nxt = []
            for u in frontier:
                for v in indices[indptr[u]:indptr[u + 1]]:
                    v = int(v)
                    if v not in seen:
                        seen.add(v)
                        nxt.append(v)
            if not nxt:
                break
            frontier = nxt
        if not include_center:
            seen.discard(node)
        return seen

    def backend(self, engine=None, *, simple: bool = False):
        """Return the engine's graph object for this topology (cached)."""
        from ..engines import get_engine

        return get_engine(engine or self.engine).cached_build(self, simple=simple)

    # Structural transformations

    def _subset(self, nodes: Sequence[int], edges: Sequence[int],
                weights: Sequence[float] | None = None) -> GraphTransform:
        remap = {old: new for new, old in enumerate(nodes)}
        new_edges = [(remap[self._src[j]], remap[self._dst[j]]) for j in edges]
        if weights is None and self._weights is not None:
            weights = [self._weights[j] for j in edges]
        g = GraphHandle(len(nodes), new_edges, directed=self.directed,
                        weights=weights, engine=self.engine)
        return GraphTransform(g, tuple(nodes), tuple(edges))

    def _edges_within(self, keep: set) -> list[int]:
        return [j for j in range(self.n_edges) if self._src[j] in keep and self._dst[j] in keep]

    def delete_nodes(self, ids: Iterable[int]) -> GraphTransform:
        """Remove ``ids`` and every incident edge; survivors are renumbered contiguously."""
        drop = set(self._check_nodes(ids))
        nodes = [i for i in range(self._n) if i not in drop]
        return self._subset(nodes, self._edges_within(set(nodes)))

    def delete_edges(self, ids: Iterable[int]) -> GraphTransform:
        drop = set(self._check_edges(ids))
        return self._subset(range(self._n), [j for j in range(self.n_edges) if j not in drop])

    def simplify(self, remove_multiple: bool = True, remove_loops: bool = True,
                 combine_weights: str = "first") -> GraphTransform:
        """
        Collapse parallel edges and/or drop self-loops.

        The first edge of each parallel group survives; its weight becomes the
        ``combine_weights`` aggregate (``first``, ``sum``, ``min``, ``max`` or
        ``mean``) of the group. Undirected edges are parallel regardless of
        orientation.
        """
        if combine_weights not in _COMBINE:
            raise ValueError(f"combine_weights must be one of {sorted(_COMBINE)}")
        groups: dict = {}
        kept: list[int] = []
        for j, (u, v) in enumerate(zip(self._src, self._dst)):
            if remove_loops and u == v:
                continue
            key = (u, v) if self.directed else (min(u, v), max(u, v))
            if remove_multiple:
                if key in groups:
                    groups[key].append(j)
                    continue
                groups[key] = [j]
            else:
                groups[(key, j)] = [j]
            kept.append(j)
        weights = None
        if self._weights is not None:
            agg = _COMBINE[combine_weights]
            weights = [agg([self._weights[j] for j in members]) for members in groups.values()]
        return self._subset(range(self._n), kept, weights)

    def delete_isolates(self) -> GraphTransform:
        return self.delete_nodes(self.isolates())

    def induce_subgraph(self, node_ids: Iterable[int]) -> GraphTransform:
        """Keep ``node_ids`` (in graph order) and the edges between them."""
        keep = set(self._check_nodes(node_ids))
        nodes = sorted(keep)
        return self._subset(nodes, self._edges_within(keep))

    def induce_subgraph_by_edges(self, edge_ids: Iterable[int],
                                 mode: EdgeSubsetMode | str = EdgeSubsetMode.TOUCHED) -> GraphTransform:
        """
        Keep ``edge_ids`` (in graph order).

        With ``EdgeSubsetMode.TOUCHED`` only nodes incident to a kept edge
        survive; ``EdgeSubsetMode.ALL`` keeps every node.
        """
        mode = EdgeSubsetMode(mode)
        edges = sorted(set(self._check_edges(edge_ids)))
        if mode is EdgeSubsetMode.ALL:
            nodes = list(range(self._n))
        else:
            touched = {self._src[j] for j in edges} | {self._dst[j] for j in edges}
            nodes = sorted(touched)
        return self._subset(nodes, edges)
