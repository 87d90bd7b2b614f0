import unittest

import networkx as nx
import polars as pl
import pytest

from attrnet import algorithms as alg
from attrnet.adapters import available_adapters, load_adapter
from attrnet.adapters.dataframe import from_dataframes, to_dataframes
from attrnet.adapters.networkx import from_networkx, to_networkx
from attrnet.core.network import Network
from attrnet.errors import LossyConversionWarning, NotFound, UnknownColumn

from conftest import path_network

# Optional deps presence
HAS_IG = True
try:
    import igraph as ig  # noqa: F401
except Exception:
    HAS_IG = False


class TestNetworkXAdapter(unittest.TestCase):

    def setUp(self):
        self.net = path_network().annotate("node", "group", ["x", "y", "y", "z"])

    def test_to_networkx(self):
        G = to_networkx(self.net)
        self.assertIsInstance(G, nx.MultiGraph)
        self.assertEqual(list(G.nodes), ["A", "B", "C", "D"])
        self.assertEqual(G.nodes["B"]["degree"], 2)
        self.assertEqual(G.nodes["B"]["group"], "y")
        self.assertEqual(G.edges["B", "C", "e1"]["deg_product"], 4)
        self.assertEqual(G.number_of_edges(), 3)
        self.assertEqual(self.net.to_networkx().number_of_nodes(), 4)

    def test_directed_export_keeps_parallel_edges(self):
        net = Network.from_edges([("a", "b"), ("a", "b"), ("b", "b")], directed=True)
        G = to_networkx(net)
        self.assertIsInstance(G, nx.MultiDiGraph)
        self.assertEqual(G.number_of_edges(), 3)

    def test_public_only(self):
        net = self.net.annotate("node", "__secret", [1, 2, 3, 4])
        G = to_networkx(net, public_only=True)
        self.assertNotIn("__secret", G.nodes["A"])

    def test_roundtrip(self):
        G = to_networkx(self.net)
        back = from_networkx(
            G,
            node_measures={"degree": alg.degree()},
            edge_measures={"deg_product": alg.edge_endpoint_degree_product()},
        )
        self.assertEqual(back.nodes(), self.net.nodes())
        self.assertEqual(sorted(back.edges()), sorted(self.net.edges()))
        self.assertEqual(back.nodes("degree"), self.net.nodes("degree"))
        self.assertEqual(back.nodes("group"), self.net.nodes("group"))
        self.assertEqual(back.static_columns("node"), ["group"])

    def test_from_plain_graph(self):
        G = nx.Graph()
        G.add_node("u", color="red")
        G.add_edge("u", "v", weight=2.5, kind="ppi")
        G.add_edge("v", "w", weight=1.0)
        net = from_networkx(G, node_measures={"degree": alg.degree()})
        self.assertEqual(net.nodes(), ["u", "v", "w"])
        self.assertEqual(net.nodes("color"), ["red", None, None])
        self.assertEqual(net.edges(), ["e0", "e1"])
        self.assertEqual(net.edges("weight"), [2.5, 1.0])
        self.assertEqual(net.edges("kind"), ["ppi", None])
        self.assertEqual(net.nodes("degree"), [1, 2, 1])

    def test_integer_nodes(self):
        net = from_networkx(nx.path_graph(3))
        self.assertEqual(net.nodes(), [0, 1, 2])
        self.assertFalse(net.graph.is_weighted)

    def test_non_scalar_attributes_dropped(self):
        G = nx.Graph()
        G.add_node(1, members=["a", "b"], size=3)
        with self.assertWarns(LossyConversionWarning):
            net = from_networkx(G)
        self.assertNotIn("members", net.node_attributes())
        self.assertEqual(net.nodes("size"), [3])

    def test_partial_weight_is_not_lost_silently(self):
        G = nx.Graph()
        G.add_edge("a", "b", weight=2.0)
        G.add_edge("b", "c")
        with self.assertWarns(LossyConversionWarning):
            net = from_networkx(G)
        self.assertFalse(net.graph.is_weighted)

    def test_partial_custom_weight_stays_static(self):
        G = nx.Graph()
        G.add_edge("a", "b", score=2.0)
        G.add_edge("b", "c")
        net = from_networkx(G, weight="score")
        self.assertFalse(net.graph.is_weighted)
        self.assertEqual(net.edges("score"), [2.0, None])
        self.assertEqual(net.static_columns("edge"), ["score"])


class TestDataFrameAdapter:
    """Tests for the Polars DataFrame adapter."""

    def test_from_dataframes(self):
        nodes = pl.DataFrame({"name": ["A", "B", "C", "Z"], "group": ["x", "y", "y", "q"]})
        edges = pl.DataFrame({
            "source": ["A", "B"],
            "target": ["B", "C"],
            "score": [0.9, 0.4],
            "kind": ["act", "inh"],
        })
        net = from_dataframes(nodes, edges, weight="score", node_measures={"degree": alg.degree()})
        assert net.nodes() == ["A", "B", "C", "Z"]
        assert net.nodes("degree") == [1, 2, 1, 0]
        assert net.edges("weight") == [0.9, 0.4]
        assert net.edges("kind") == ["act", "inh"]
        assert "score" not in net.edge_attributes()
        assert net.static_columns("node") == ["group"]

    def test_edges_only(self):
        edges = pl.DataFrame({"src": ["a", "b"], "dst": ["b", "c"], "name": ["ab", "bc"]})
        net = from_dataframes(edges=edges, source="src", target="dst", directed=True)
        assert net.nodes() == ["a", "b", "c"]
        assert net.edges() == ["ab", "bc"]
        assert net.directed

    def test_endpoints_missing_from_node_table(self):
        nodes = pl.DataFrame({"name": ["a"], "size": [1]})
        edges = pl.DataFrame({"source": ["a"], "target": ["b"]})
        net = from_dataframes(nodes, edges)
        assert net.nodes() == ["a", "b"]
        assert net.nodes("size") == [1, None]
        with pytest.raises(NotFound):
            from_dataframes(nodes, edges, strict=True)

    def test_missing_columns(self):
        with pytest.raises(UnknownColumn):
            from_dataframes(pl.DataFrame({"id": ["a"]}))
        with pytest.raises(UnknownColumn):
            from_dataframes(edges=pl.DataFrame({"source": ["a"]}))

    def test_to_dataframes_roundtrip(self, annotated_path):
        dfs = to_dataframes(annotated_path)
        assert set(dfs) == {"nodes", "edges"}
        assert dfs["edges"].columns[:3] == ["name", "source", "target"]
        back = from_dataframes(dfs["nodes"].drop("degree"), dfs["edges"].drop("deg_product"),
                               node_measures={"degree": alg.degree()})
        assert back.nodes() == annotated_path.nodes()
        assert back.edges() == annotated_path.edges()
        assert back.nodes("group") == annotated_path.nodes("group")
        assert back.nodes("degree") == annotated_path.nodes("degree")

    def test_measure_named_columns_are_discarded(self, path_net):
        dfs = to_dataframes(path_net)
        back = from_dataframes(
            dfs["nodes"], dfs["edges"],
            node_measures={"degree": alg.degree()},
            edge_measures={"deg_product": alg.edge_endpoint_degree_product()},
        )
        assert back.static_columns("node") == []
        assert back.static_columns("edge") == []
        assert back.nodes("degree") == path_net.nodes("degree")
        assert back.edges("deg_product") == path_net.edges("deg_product")

    def test_public_only(self, path_net):
        net = path_net.annotate("edge", "__tmp", [0, 0, 0])
        assert "__tmp" not in to_dataframes(net, public_only=True)["edges"].columns


class TestAdapterRegistry(unittest.TestCase):

    def test_available(self):
        found = available_adapters()
        self.assertTrue(found["networkx"])
        self.assertTrue(found["dataframe"])

    def test_load(self):
        mod = load_adapter("dataframe")
        self.assertTrue(hasattr(mod, "from_dataframes"))
        with self.assertRaises(ValueError):
            load_adapter("sbml")


@unittest.skipUnless(HAS_IG, "python-igraph not installed")
class TestIgraphAdapter(unittest.TestCase):

    def test_to_igraph_export_and_roundtrip(self):
        from attrnet.adapters.igraph import from_igraph, to_igraph  # adapter under test

        net = path_network(weights=[1.0, 2.0, 3.0]).annotate("node", "group", ["x", "y", "y", "z"])
        G = to_igraph(net)
        self.assertEqual(G.vcount(), 4)
        self.assertEqual(G.ecount(), 3)
        self.assertEqual(G.vs["name"], ["A", "B", "C", "D"])
        self.assertEqual(G.es["weight"], [1.0, 2.0, 3.0])

        back = from_igraph(G, node_measures={"degree": alg.degree()})
        self.assertEqual(back.nodes(), net.nodes())
        self.assertEqual(back.edges(), net.edges())
        self.assertEqual(back.edges("weight"), [1.0, 2.0, 3.0])
        self.assertEqual(back.nodes("group"), net.nodes("group"))
        self.assertEqual(back.nodes("degree"), [1, 2, 2, 1])

    def test_unnamed_vertices(self):
        from attrnet.adapters.igraph import from_igraph

        net = from_igraph(ig.Graph.Ring(4))
        self.assertEqual(net.nodes(), ["n0", "n1", "n2", "n3"])
        self.assertEqual(net.n_edges, 4)


if __name__ == "__main__":
    unittest.main()
