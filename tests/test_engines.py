import math
import unittest

import pytest

from attrnet import algorithms as alg
from attrnet.core.graph import GraphHandle
from attrnet.engines import available_engines, get_engine
from attrnet.engines.networkx import NetworkXEngine
from attrnet.errors import LossyConversionWarning

# Optional deps presence
HAS_IG = True
try:
    import igraph as ig  # noqa: F401
except Exception:
    HAS_IG = False


def _graph(**kw):
    # two triangles joined by a bridge, plus a pendant node
    edges = [(0, 1), (1, 2), (2, 0), (2, 3), (3, 4), (4, 5), (5, 3), (5, 6)]
    return GraphHandle(7, edges, **kw)


class TestRegistry(unittest.TestCase):

    def test_available(self):
        engines = available_engines()
        self.assertTrue(engines["networkx"])
        self.assertIn("igraph", engines)

    def test_get_engine(self):
        eng = get_engine()
        self.assertIsInstance(eng, NetworkXEngine)
        self.assertIs(get_engine("networkx"), eng)
        self.assertIs(get_engine(eng), eng)
        with self.assertRaises(ValueError):
            get_engine("graph-tool-ish")

    def test_backend_is_cached_on_handle(self):
        g = _graph()
        self.assertIs(g.backend(), g.backend())
        self.assertEqual(g.backend().number_of_edges(), 8)


class TestNetworkXEngine(unittest.TestCase):

    def setUp(self):
        self.g = _graph()
        self.eng = get_engine("networkx")

    def test_degree_and_strength(self):
        self.assertEqual(self.eng.degree(self.g), [2, 2, 3, 3, 2, 3, 1])
        w = _graph(weights=[2.0] * 8)
        self.assertEqual(self.eng.strength(w), [4.0, 4.0, 6.0, 6.0, 4.0, 6.0, 2.0])

    def test_betweenness_bridge(self):
        btw = self.eng.betweenness(self.g)
        self.assertEqual(btw[0], 0.0)
        self.assertGreater(btw[2], btw[1])
        self.assertGreater(btw[3], 0.0)

    def test_clustering(self):
        cc = self.eng.local_clustering(self.g)
        self.assertEqual(cc[0], 1.0)
        self.assertAlmostEqual(cc[2], 1 / 3)
        self.assertEqual(cc[6], 0.0)

    def test_pagerank_sums_to_one(self):
        self.assertAlmostEqual(sum(self.eng.pagerank(self.g)), 1.0, places=6)

    def test_eigenvector_edge_cases(self):
        self.assertEqual(self.eng.eigenvector(GraphHandle(0)), [])
        self.assertEqual(self.eng.eigenvector(GraphHandle(2)), [0.0, 0.0])

    def test_edge_betweenness_bridge_is_max(self):
        eb = self.eng.edge_betweenness(self.g)
        self.assertEqual(max(eb), eb[3])

    def test_shortest_paths(self):
        g = GraphHandle(3, [(0, 1)])
        self.assertEqual(self.eng.shortest_path_lengths(g, 0), [0, 1, math.inf])
        w = GraphHandle(3, [(0, 1), (1, 2), (0, 2)], weights=[1.0, 1.0, 5.0])
        self.assertEqual(self.eng.shortest_path_lengths(w, 0, weighted=True), [0.0, 1.0, 2.0])

    def test_directed_degree(self):
        g = GraphHandle(3, [(0, 1), (0, 2)], directed=True)
        self.assertEqual(self.eng.degree(g, mode="out"), [2, 0, 0])
        self.assertEqual(self.eng.degree(g, mode="in"), [0, 1, 1])

    def test_multigraph_collapse_warns(self):
        g = GraphHandle(2, [(0, 1), (0, 1)])
        with self.assertWarns(LossyConversionWarning):
            self.eng.betweenness(g)
        # parallel edges count separately for degree
        self.assertEqual(self.eng.degree(g), [2, 2])

    def test_degree_without_loops(self):
        g = GraphHandle(2, [(0, 1), (1, 1)])
        self.assertEqual(self.eng.degree(g), [1, 3])
        self.assertEqual(self.eng.degree(g, loops=False), [1, 1])


class TestMeasureFactories(unittest.TestCase):

    def test_factories_follow_graph_engine(self):
        g = _graph()
        self.assertEqual(alg.degree()(g), [2, 2, 3, 3, 2, 3, 1])
        self.assertEqual(len(alg.edge_betweenness()(g)), 8)
        self.assertIn("degree", repr(alg.degree()))

    def test_endpoint_degree_product(self):
        g = GraphHandle(3, [(0, 1), (1, 2)])
        self.assertEqual(alg.edge_endpoint_degree_product()(g), [2, 2])
        self.assertEqual(alg.edge_endpoint_degree_product()(GraphHandle(2)), [])


@unittest.skipUnless(HAS_IG, "python-igraph not installed")
class TestIGraphEngine(unittest.TestCase):

    def setUp(self):
        self.g = _graph()
        self.nx = get_engine("networkx")
        self.ig = get_engine("igraph")

    def test_matches_networkx(self):
        for method in ("degree", "strength", "betweenness", "closeness", "local_clustering",
                       "edge_betweenness"):
            a = getattr(self.nx, method)(self.g)
            b = getattr(self.ig, method)(self.g)
            self.assertEqual(len(a), len(b), method)
            for x, y in zip(a, b):
                self.assertAlmostEqual(x, y, places=6, msg=method)

    def test_eigenvector_and_pagerank_close(self):
        for method in ("eigenvector", "pagerank"):
            a = getattr(self.nx, method)(self.g)
            b = getattr(self.ig, method)(self.g)
            assert b == pytest.approx(a, rel=1e-3, abs=1e-4), method

    def test_measure_factory_with_engine(self):
        g = _graph(engine="igraph")
        self.assertEqual(alg.degree()(g), [2, 2, 3, 3, 2, 3, 1])
        self.assertEqual(alg.degree(engine="networkx")(g), [2, 2, 3, 3, 2, 3, 1])

    def test_shortest_paths_unreachable(self):
        g = GraphHandle(3, [(0, 1)])
        self.assertEqual(self.ig.shortest_path_lengths(g, 0), [0.0, 1.0, math.inf])


if __name__ == "__main__":
    unittest.main()
