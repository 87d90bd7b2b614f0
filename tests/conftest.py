import warnings

import pytest

# Silence noisy NumPy longdouble warning seen on some builds
warnings.filterwarnings(
    "ignore",
    message=r"Signature .*numpy\.longdouble.*",
    category=UserWarning,
    module=r"numpy\._core\.getlimits",
)

from attrnet import algorithms as alg  # noqa: E402
from attrnet.core.network import Network  # noqa: E402


def path_network(**kwargs):
    """A - B - C - D with node degree and an endpoint-degree edge statistic."""
    return Network.from_edges(
        [("A", "B"), ("B", "C"), ("C", "D")],
        node_measures={"degree": alg.degree()},
        edge_measures={"deg_product": alg.edge_endpoint_degree_product()},
        **kwargs,
    )


def hub_network(**kwargs):
    """``hub`` with 9 leaves, ``minor`` with 3 leaves, the two hubs joined."""
    edges = [("hub", f"h{i}") for i in range(9)]
    edges += [("minor", f"m{i}") for i in range(3)]
    edges.append(("hub", "minor"))
    return Network.from_edges(edges, node_measures={"degree": alg.degree()}, **kwargs)


@pytest.fixture
def path_net():
    return path_network()


@pytest.fixture
def hub_net():
    return hub_network()


@pytest.fixture
def annotated_path():
    net = path_network()
    return net.annotate("node", "group", ["x", "y", "y", "z"])
