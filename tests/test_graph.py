import unittest

import numpy as np

from attrnet.core.graph import EdgeSubsetMode, GraphHandle
from attrnet.errors import LengthMismatch, NotFound


def _path4(**kw):
    return GraphHandle(4, [(0, 1), (1, 2), (2, 3)], **kw)


class TestGraphHandleBasics(unittest.TestCase):

    def test_construction(self):
        g = _path4()
        self.assertEqual(g.n_nodes, 4)
        self.assertEqual(g.n_edges, 3)
        self.assertFalse(g.directed)
        self.assertFalse(g.is_weighted)
        self.assertEqual(g.edge_list(), [(0, 1), (1, 2), (2, 3)])

    def test_bad_endpoint(self):
        with self.assertRaises(ValueError):
            GraphHandle(3, [(0, 3)])

    def test_weight_length(self):
        with self.assertRaises(LengthMismatch):
            GraphHandle(2, [(0, 1)], weights=[1.0, 2.0])

    def test_equality_ignores_engine(self):
        a = _path4(engine="networkx")
        b = _path4(engine="igraph")
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertNotEqual(a, _path4(directed=True))

    def test_attributes_are_read_only(self):
        g = _path4()
        for attr, value in (("directed", True), ("engine", "igraph"), ("weights", (1.0,) * 3)):
            with self.assertRaises(AttributeError):
                setattr(g, attr, value)
        self.assertFalse(g.directed)
        self.assertEqual(g.engine, "networkx")

    def test_has_edge(self):
        g = _path4()
        self.assertTrue(g.has_edge(1, 0))
        self.assertFalse(g.has_edge(0, 2))
        d = _path4(directed=True)
        self.assertTrue(d.has_edge(0, 1))
        self.assertFalse(d.has_edge(1, 0))

    def test_incident_edges(self):
        self.assertEqual(_path4().incident_edges(1), [0, 1])
        with self.assertRaises(NotFound):
            _path4().incident_edges(7)

    def test_degree_counts_loops_twice(self):
        g = GraphHandle(2, [(0, 1), (1, 1)])
        self.assertEqual(g.degree().tolist(), [1, 3])

    def test_directed_degree(self):
        g = _path4(directed=True)
        self.assertEqual(g.degree("out").tolist(), [1, 1, 1, 0])
        self.assertEqual(g.degree("in").tolist(), [0, 1, 1, 1])

    def test_adjacency_symmetric(self):
        A = _path4().adjacency()
        dense = A.toarray()
        self.assertTrue(np.array_equal(dense, dense.T))
        self.assertEqual(dense.sum(), 6)

    def test_weighted_adjacency(self):
        g = GraphHandle(2, [(0, 1), (0, 1)], weights=[2.0, 3.0], directed=True)
        self.assertEqual(g.adjacency(weighted=True)[0, 1], 5.0)
        self.assertEqual(g.adjacency()[0, 1], 2.0)


class TestNeighbors(unittest.TestCase):

    def test_hops(self):
        g = _path4()
        self.assertEqual(g.neighbors(0, 1), {0, 1})
        self.assertEqual(g.neighbors(0, 2), {0, 1, 2})
        self.assertEqual(g.neighbors(0, 10), {0, 1, 2, 3})

    def test_zero_hops(self):
        g = _path4()
        self.assertEqual(g.neighbors(2, 0), {2})
        self.assertEqual(g.neighbors(2, 0, include_center=False), set())

    def test_exclude_center(self):
        self.assertEqual(_path4().neighbors(1, 1, include_center=False), {0, 2})

    def test_monotone_in_distance(self):
        g = GraphHandle(6, [(0, 1), (1, 2), (2, 3), (1, 4), (4, 5)])
        previous = set()
        for k in range(5):
            current = g.neighbors(0, k)
            self.assertTrue(previous <= current)
            previous = current

    def test_directed_modes(self):
        g = _path4(directed=True)
        self.assertEqual(g.neighbors(1, 1, mode="out"), {1, 2})
        self.assertEqual(g.neighbors(1, 1, mode="in"), {0, 1})
        self.assertEqual(g.neighbors(1, 1, mode="all"), {0, 1, 2})

    def test_invalid(self):
        with self.assertRaises(NotFound):
            _path4().neighbors(4)
        with self.assertRaises(ValueError):
            _path4().neighbors(0, -1)


class TestTransformations(unittest.TestCase):

    def test_delete_nodes_renumbers(self):
        g = _path4()
        tr = g.delete_nodes([1])
        self.assertEqual(tr.graph.n_nodes, 3)
        self.assertEqual(tr.graph.edge_list(), [(1, 2)])
        self.assertEqual(tr.node_index, (0, 2, 3))
        self.assertEqual(tr.edge_index, (2,))
        # source untouched
        self.assertEqual(g.n_nodes, 4)

    def test_delete_nodes_out_of_range(self):
        with self.assertRaises(NotFound):
            _path4().delete_nodes([9])

    def test_delete_edges(self):
        tr = _path4().delete_edges([0, 2])
        self.assertEqual(tr.graph.n_nodes, 4)
        self.assertEqual(tr.graph.edge_list(), [(1, 2)])
        self.assertEqual(tr.edge_index, (1,))

    def test_simplify_undirected(self):
        g = GraphHandle(2, [(0, 1), (1, 0), (1, 1)])
        tr = g.simplify()
        self.assertEqual(tr.graph.edge_list(), [(0, 1)])
        self.assertEqual(tr.edge_index, (0,))

    def test_simplify_directed_keeps_antiparallel(self):
        g = GraphHandle(2, [(0, 1), (1, 0), (0, 1)], directed=True)
        tr = g.simplify()
        self.assertEqual(tr.edge_index, (0, 1))

    def test_simplify_loops_only(self):
        g = GraphHandle(2, [(0, 1), (0, 1), (1, 1)])
        tr = g.simplify(remove_multiple=False, remove_loops=True)
        self.assertEqual(tr.edge_index, (0, 1))

    def test_simplify_combines_weights(self):
        g = GraphHandle(2, [(0, 1), (0, 1), (1, 0)], weights=[1.0, 2.0, 4.0])
        self.assertEqual(g.simplify(combine_weights="sum").graph.weights, (7.0,))
        self.assertEqual(g.simplify(combine_weights="max").graph.weights, (4.0,))
        self.assertEqual(g.simplify().graph.weights, (1.0,))
        with self.assertRaises(ValueError):
            g.simplify(combine_weights="median")

    def test_delete_isolates(self):
        g = GraphHandle(4, [(1, 2)])
        tr = g.delete_isolates()
        self.assertEqual(tr.node_index, (1, 2))
        self.assertEqual(tr.graph.edge_list(), [(0, 1)])

    def test_induce_subgraph(self):
        tr = _path4().induce_subgraph([2, 1])
        self.assertEqual(tr.node_index, (1, 2))
        self.assertEqual(tr.edge_index, (1,))

    def test_induce_by_edges_modes(self):
        g = _path4()
        touched = g.induce_subgraph_by_edges([1])
        self.assertEqual(touched.node_index, (1, 2))
        self.assertEqual(touched.graph.edge_list(), [(0, 1)])
        everything = g.induce_subgraph_by_edges([1], EdgeSubsetMode.ALL)
        self.assertEqual(everything.node_index, (0, 1, 2, 3))
        self.assertEqual(everything.graph.edge_list(), [(1, 2)])
        self.assertEqual(g.induce_subgraph_by_edges([1], "all").graph, everything.graph)

    def test_weights_follow_edges(self):
        g = _path4(weights=[1.0, 2.0, 3.0])
        self.assertEqual(g.delete_nodes([0]).graph.weights, (2.0, 3.0))


if __name__ == "__main__":
    unittest.main()
