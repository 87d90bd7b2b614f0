try:
    import networkx as nx
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "Dependency 'networkx' is not installed. "
        "Install with: pip install attrnet"
    ) from e

from typing import Any, Mapping

from ..core.graph import GraphHandle
from ..core.measures import EDGE_RESERVED
from ..core.network import Network
from ._utils import _SCALARS, _serialize_value, public_row, rows_to_columns, weight_skip


def to_networkx(network: Network, *, public_only: bool = False):
    """
    Export a Network to a NetworkX multigraph.

    Parameters
    ----------
    network : Network
    public_only : bool, optional
        If True, strip attributes whose name starts with ``"__"``.

    Returns
    -------
    networkx.MultiGraph | networkx.MultiDiGraph
        Nodes are keyed by ``name`` and carry every node column; edges are
        keyed by edge ``name`` and carry every edge column except
        ``name``/``source``/``target``. Parallel edges and self-loops are kept.
    """
    G = nx.MultiDiGraph() if network.directed else nx.MultiGraph()
    for row in network.node_attributes().to_dicts():
        row = public_row(row, public_only)
        v = row.pop("name")
        G.add_node(v, **row)
    for row in network.edge_attributes().to_dicts():
        row = public_row(row, public_only)
        eid = row.pop("name")
        u = row.pop("source")
        v = row.pop("target")
        G.add_edge(u, v, key=eid, **row)
    return G


def _node_key(v: Any):
    return v if isinstance(v, _SCALARS) and v is not None else str(v)


def from_networkx(
    nxG,
    *,
    weight: str | None = "weight",
    node_measures: Mapping | None = None,
    edge_measures: Mapping | None = None,
    **kwargs,
) -> Network:
    """
    Build a Network from any NetworkX graph.

    Parameters
    ----------
    nxG : networkx.Graph | DiGraph | MultiGraph | MultiDiGraph
    weight : str | None, optional
        Edge attribute holding weights; the graph is weighted only if every
        edge carries it. ``None`` ignores weights.
    node_measures, edge_measures : Mapping[str, Callable], optional
        Derived measures; node/edge attributes with the same names are
        discarded (they are recomputed).
    **kwargs
        Forwarded to :class:`Network`.

    Returns
    -------
    Network
        Node ``name`` is the NetworkX node key (non-scalar keys are
        stringified). Edge ``name`` is the multigraph edge key when keys are
        unique strings, else ``e0, e1, ...``. Remaining attributes become
        static columns.
    """
    node_measures = dict(node_measures or {})
    edge_measures = dict(edge_measures or {})

    nodes = list(nxG.nodes(data=True))
    names = [_node_key(v) for v, _ in nodes]
    index = {v: i for i, (v, _) in enumerate(nodes)}
    node_cols = rows_to_columns(
        (d for _, d in nodes), skip={"name", *node_measures}, what="node"
    )

    if nxG.is_multigraph():
        raw = [(u, v, k, d) for u, v, k, d in nxG.edges(keys=True, data=True)]
    else:
        raw = [(u, v, None, d) for u, v, d in nxG.edges(data=True)]
    keys = [k for _, _, k, _ in raw]
    edge_names = None
    if raw and all(isinstance(k, str) for k in keys) and len(set(keys)) == len(keys):
        edge_names = keys

    weights = None
    if weight is not None and raw and all(weight in d for *_, d in raw):
        weights = [float(_serialize_value(d[weight])) for *_, d in raw]

    edge_cols = rows_to_columns(
        (d for *_, d in raw),
        skip={*EDGE_RESERVED, *edge_measures,
              *weight_skip(weight, weights is not None, any(weight in d for *_, d in raw))},
        what="edge",
    )
    graph = GraphHandle(
        len(nodes),
        [(index[u], index[v]) for u, v, _, _ in raw],
        directed=nxG.is_directed(),
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
