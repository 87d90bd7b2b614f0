try:
    import igraph as ig
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "Optional dependency 'python-igraph' is not installed. "
        "Install with: pip install attrnet[igraph]"
    ) from e

import math

import numpy as np

from ._base import GraphEngine


def _clean(values) -> list:
    return [0.0 if (v is None or (isinstance(v, float) and math.isnan(v))) else float(v) for v in values]


class IGraphEngine(GraphEngine):
    """
    Engine backed by python-igraph.

    igraph requires integer vertex indices, which is exactly the handle's node
    order, so no name mapping is needed. Results are rescaled to match the
    NetworkX conventions where igraph uses a different normalisation
    (betweenness, eigenvector centrality).
    """

    name = "igraph"

    def build(self, graph, *, simple: bool = False):
        G = ig.Graph(n=graph.n_nodes, edges=graph.edge_list(), directed=graph.directed)
        weights = graph.weights
        G.es["weight"] = [1.0] * graph.n_edges if weights is None else [float(w) for w in weights]
        if simple:
            G.simplify(multiple=True, loops=False, combine_edges={"weight": "min"})
        return G

    @staticmethod
    def _mode(graph, mode: str) -> str:
        return mode if graph.directed else "all"

    def degree(self, graph, mode="all", loops=True):
        G = self.cached_build(graph)
        return [int(d) for d in G.degree(mode=self._mode(graph, mode), loops=loops)]

    def strength(self, graph, mode="all"):
        G = self.cached_build(graph)
        return _clean(G.strength(mode=self._mode(graph, mode), weights="weight", loops=True))

    def betweenness(self, graph, normalized=True, weighted=False):
        n = graph.n_nodes
        G = self.cached_build(graph, simple=True)
        raw = _clean(G.betweenness(directed=graph.directed, weights="weight" if weighted else None))
        if normalized and n > 2:
            scale = 1.0 / ((n - 1) * (n - 2))
            if not graph.directed:
                scale *= 2.0
            raw = [v * scale for v in raw]
        return raw

    def closeness(self, graph, weighted=False):
        G = self.cached_build(graph, simple=True)
        return _clean(G.closeness(weights="weight" if weighted else None, normalized=True))

    def eigenvector(self, graph, weighted=False):
        if graph.n_nodes == 0:
            return []
        G = self.cached_build(graph, simple=True)
        if G.ecount() == 0:
            return [0.0] * graph.n_nodes
        vals = np.asarray(
            _clean(G.eigenvector_centrality(scale=True, weights="weight" if weighted else None))
        )
        norm = np.linalg.norm(vals)
        return (vals / norm).tolist() if norm > 0 else vals.tolist()

    def pagerank(self, graph, damping=0.85, weighted=False):
        if graph.n_nodes == 0:
            return []
        G = self.cached_build(graph, simple=True)
        return _clean(G.pagerank(damping=damping, weights="weight" if weighted else None))

    def local_clustering(self, graph):
        G = self.cached_build(graph, simple=True).as_undirected()
        G.simplify(multiple=True, loops=True)
        return _clean(G.transitivity_local_undirected(mode="zero"))

    def edge_betweenness(self, graph, normalized=True, weighted=False):
        n = graph.n_nodes
        G = self.cached_build(graph)
        raw = _clean(G.edge_betweenness(directed=graph.directed, weights="weight" if weighted else None))
        if normalized and n > 1:
            scale = 1.0 / (n * (n - 1))
            if not graph.directed:
                scale *= 2.0
            raw = [v * scale for v in raw]
        return raw

    def shortest_path_lengths(self, graph, source, weighted=False):
        G = self.cached_build(graph, simple=True)
        mode = "out" if graph.directed else "all"
        row = G.distances(source=[source], weights="weight" if weighted else None, mode=mode)[0]
        return [float(d) for d in row]
