from .centrality import (
    betweenness,
    closeness,
    degree,
    edge_betweenness,
    edge_endpoint_degree_product,
    eigenvector,
    local_clustering,
    pagerank,
    strength,
)

__all__ = [
    "betweenness",
    "closeness",
    "degree",
    "edge_betweenness",
    "edge_endpoint_degree_product",
    "eigenvector",
    "local_clustering",
    "pagerank",
    "strength",
]
