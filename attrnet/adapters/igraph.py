try:
    import igraph as ig
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "Optional dependency 'python-igraph' is not installed. "
        "Install with: pip install attrnet[igraph]"
    ) from e

from typing import Mapping

from ..core.graph import GraphHandle
from ..core.measures import EDGE_RESERVED
from ..core.network import Network
from ._utils import public_row, rows_to_columns, weight_skip


def to_igraph(network: Network, *, public_only: bool = False) -> "ig.Graph":
    """
    Export a Network to an igraph Graph.

    Vertex ``i`` is node ``i`` and edge ``j`` is edge ``j``, so no id mapping
    is needed. Every node column becomes a vertex attribute (``name``
    included); edge columns become edge attributes, with endpoint names kept
    under ``source``/``target``.
    """
    G = ig.Graph(n=network.n_nodes, edges=network.graph.edge_list(), directed=network.directed)
    nodes = network.node_attributes()
    for col in public_row({c: None for c in nodes.columns}, public_only):
        G.vs[col] = nodes.get(col)
    edges = network.edge_attributes()
    for col in public_row({c: None for c in edges.columns}, public_only):
        G.es[col] = edges.get(col)
    return G


def from_igraph(
    igG: "ig.Graph",
    *,
    weight: str | None = "weight",
    node_measures: Mapping | None = None,
    edge_measures: Mapping | None = None,
    **kwargs,
) -> Network:
    """
    Build a Network from an igraph Graph.

    Node names come from the ``name`` vertex attribute when present, else
    ``n0, n1, ...``; edge names likewise from the ``name`` edge attribute.
    A ``weight`` edge attribute (if complete) becomes the graph's weights.
    Other attributes become static columns; those shadowing a derived
    measure are discarded.
    """
    node_measures = dict(node_measures or {})
    edge_measures = dict(edge_measures or {})

    v_attrs = igG.vs.attributes()
    e_attrs = igG.es.attributes()
    names = igG.vs["name"] if "name" in v_attrs else None
    edge_names = igG.es["name"] if "name" in e_attrs else None

    weights = None
    if weight is not None and weight in e_attrs:
        w = igG.es[weight]
        if all(x is not None for x in w):
            weights = [float(x) for x in w]

    node_cols = rows_to_columns(
        (v.attributes() for v in igG.vs), skip={"name", *node_measures}, what="node"
    )
    edge_cols = rows_to_columns(
        (e.attributes() for e in igG.es),
        skip={*EDGE_RESERVED, *edge_measures,
              *weight_skip(weight, weights is not None, weight in e_attrs)},
        what="edge",
    )
    graph = GraphHandle(
        igG.vcount(),
        [e.tuple for e in igG.es],
        directed=igG.is_directed(),
        weights=weights,
        engine=kwargs.pop("engine", None) or "networkx",
    )
    return Network(
        graph,
        names,
        node_attrs=node_cols,
        edge_attrs=edge_cols,
        edge_names=edge_names,
        node_measures=node_measures,
        edge_measures=edge_measures,
        **kwargs,
    )
