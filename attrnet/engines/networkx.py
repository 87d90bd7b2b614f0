try:
    import networkx as nx
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "Dependency 'networkx' is not installed. "
        "Install with: pip install attrnet"
    ) from e

import math
import warnings

from ..errors import LossyConversionWarning
from ._base import GraphEngine


def _collapse_multiedges(graph, directed: bool):
    """
    Collapse parallel edges into one simple (Di)Graph edge.

    Parallel edges keep the smallest weight (the shortest-path view);
    ``eids`` keeps the handle's edge indices folded into each simple edge.
    """
    H = nx.DiGraph() if directed else nx.Graph()
    H.add_nodes_from(range(graph.n_nodes))
    weights = graph.weights
    for j, (u, v) in enumerate(graph.edge_list()):
        w = 1.0 if weights is None else float(weights[j])
        if H.has_edge(u, v):
            H[u][v]["weight"] = min(H[u][v]["weight"], w)
            H[u][v]["eids"].append(j)
        else:
            H.add_edge(u, v, weight=w, eids=[j])
    return H


class NetworkXEngine(GraphEngine):
    """Default engine: every measure is delegated to NetworkX."""

    name = "networkx"

    def build(self, graph, *, simple: bool = False):
        if simple:
            H = _collapse_multiedges(graph, graph.directed)
            if H.number_of_edges() < graph.n_edges:
                warnings.warn(
                    f"Graph→NX conversion is lossy: {graph.n_edges - H.number_of_edges()} "
                    "parallel edges collapsed (min weight kept).",
                    category=LossyConversionWarning,
                    stacklevel=4,
                )
            return H
        G = nx.MultiDiGraph() if graph.directed else nx.MultiGraph()
        G.add_nodes_from(range(graph.n_nodes))
        weights = graph.weights
        for j, (u, v) in enumerate(graph.edge_list()):
            G.add_edge(u, v, key=j, weight=1.0 if weights is None else float(weights[j]))
        return G

    # Node measures

    def _per_node(self, graph, mapping, default=0.0) -> list:
        return [mapping.get(i, default) for i in range(graph.n_nodes)]

    def degree(self, graph, mode="all", loops=True):
        G = self.cached_build(graph)
        if not loops:
            G = G.copy()
            G.remove_edges_from(list(nx.selfloop_edges(G, keys=True)))
        if graph.directed and mode == "out":
            view = G.out_degree()
        elif graph.directed and mode == "in":
            view = G.in_degree()
        else:
            view = G.degree()
        return self._per_node(graph, dict(view), 0)

    def strength(self, graph, mode="all"):
        G = self.cached_build(graph)
        if graph.directed and mode == "out":
            view = G.out_degree(weight="weight")
        elif graph.directed and mode == "in":
            view = G.in_degree(weight="weight")
        else:
            view = G.degree(weight="weight")
        return [float(x) for x in self._per_node(graph, dict(view), 0.0)]

    def betweenness(self, graph, normalized=True, weighted=False):
        G = self.cached_build(graph, simple=True)
        res = nx.betweenness_centrality(G, normalized=normalized, weight="weight" if weighted else None)
        return self._per_node(graph, res)

    def closeness(self, graph, weighted=False):
        G = self.cached_build(graph, simple=True)
        res = nx.closeness_centrality(G, distance="weight" if weighted else None)
        return self._per_node(graph, res)

    def eigenvector(self, graph, weighted=False):
        if graph.n_nodes == 0:
            return []
        G = self.cached_build(graph, simple=True)
        if G.number_of_edges() == 0:
            return [0.0] * graph.n_nodes
        res = nx.eigenvector_centrality(G, max_iter=1000, weight="weight" if weighted else None)
        return self._per_node(graph, res)

    def pagerank(self, graph, damping=0.85, weighted=False):
        if graph.n_nodes == 0:
            return []
        G = self.cached_build(graph, simple=True)
        res = nx.pagerank(G, alpha=damping, weight="weight" if weighted else None)
        return self._per_node(graph, res)

    def local_clustering(self, graph):
        G = self.cached_build(graph, simple=True)
        if G.is_directed():
            G = G.to_undirected()
        G = G.copy()
        G.remove_edges_from(list(nx.selfloop_edges(G)))
        return self._per_node(graph, nx.clustering(G))

    # Edge measures

    def edge_betweenness(self, graph, normalized=True, weighted=False):
        G = self.cached_build(graph, simple=True)
        res = nx.edge_betweenness_centrality(G, normalized=normalized, weight="weight" if weighted else None)
        out = [0.0] * graph.n_edges
        for (u, v), val in res.items():
            data = G.get_edge_data(u, v)
            for j in data["eids"]:
                out[j] = val
        return out

    def shortest_path_lengths(self, graph, source, weighted=False):
        G = self.cached_build(graph, simple=True)
        if weighted:
            dist = nx.single_source_dijkstra_path_length(G, source, weight="weight")
        else:
            dist = nx.single_source_shortest_path_length(G, source)
        return [dist.get(i, math.inf) for i in range(graph.n_nodes)]
