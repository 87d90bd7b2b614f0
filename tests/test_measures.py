import unittest

import numpy as np

from attrnet.core.graph import GraphHandle
from attrnet.core.measures import MeasureKind, MeasureRegistry
from attrnet.errors import (
    DerivedMeasureError,
    DuplicateColumn,
    LengthMismatch,
    ReservedColumn,
    UnknownColumn,
)


def _node_count(g):
    return [g.n_nodes] * g.n_nodes


def _edge_ids(g):
    return list(range(g.n_edges))


class TestMeasureRegistry(unittest.TestCase):

    def setUp(self):
        self.g = GraphHandle(3, [(0, 1), (1, 2)])
        self.reg = MeasureRegistry(node={"count": _node_count}, edge={"eid": _edge_ids})

    def test_register_is_copy_on_write(self):
        reg2 = self.reg.register("twice", "node", lambda g: [2] * g.n_nodes)
        self.assertEqual(self.reg.names("node"), ["count"])
        self.assertEqual(reg2.names("node"), ["count", "twice"])
        self.assertIn("twice", reg2)
        self.assertNotIn("twice", self.reg)
        self.assertEqual(len(reg2), 3)

    def test_duplicates_and_reserved(self):
        with self.assertRaises(DuplicateColumn):
            self.reg.register("count", MeasureKind.NODE, _node_count)
        with self.assertRaises(ReservedColumn):
            self.reg.register("name", "node", _node_count)
        with self.assertRaises(ReservedColumn):
            self.reg.register("weight", "edge", _edge_ids)
        # same name on the other kind is fine
        self.assertIn("count", self.reg.register("count", "edge", _edge_ids).names("edge"))

    def test_not_callable(self):
        with self.assertRaises(TypeError):
            self.reg.register("x", "node", 42)

    def test_recompute(self):
        out = self.reg.recompute(self.g)
        self.assertEqual(out[MeasureKind.NODE]["count"], [3, 3, 3])
        self.assertEqual(out[MeasureKind.EDGE]["eid"], [0, 1])

    def test_numpy_output_converted(self):
        reg = MeasureRegistry(node={"z": lambda g: np.zeros(g.n_nodes)})
        self.assertEqual(reg.recompute(self.g)[MeasureKind.NODE]["z"], [0.0, 0.0, 0.0])

    def test_failure_is_wrapped(self):
        def boom(g):
            raise ZeroDivisionError("nope")

        reg = self.reg.register("boom", "node", boom)
        with self.assertRaises(DerivedMeasureError) as ctx:
            reg.recompute(self.g)
        err = ctx.exception
        self.assertEqual(err.name, "boom")
        self.assertEqual(err.kind, "node")
        self.assertIsInstance(err.__cause__, ZeroDivisionError)

    def test_wrong_length(self):
        reg = self.reg.register("short", "edge", lambda g: [1])
        with self.assertRaises(LengthMismatch):
            reg.recompute(self.g)

    def test_mapping_output_aligned_by_index(self):
        reg = self.reg.register("rev", "node", lambda g: {2: "c", 0: "a", 1: "b"})
        self.assertEqual(reg.recompute(self.g)[MeasureKind.NODE]["rev"], ["a", "b", "c"])
        reg = self.reg.register("nxdeg", "node", lambda g: dict(enumerate([5, 6, 7])))
        self.assertEqual(reg.recompute(self.g)[MeasureKind.NODE]["nxdeg"], [5, 6, 7])

    def test_mapping_missing_index(self):
        reg = self.reg.register("partial", "node", lambda g: {0: 1, 1: 1})
        with self.assertRaises(DerivedMeasureError) as ctx:
            reg.recompute(self.g)
        self.assertIsInstance(ctx.exception.__cause__, KeyError)

    def test_unregister_and_get(self):
        reg = self.reg.unregister("count", "node")
        self.assertEqual(reg.names("node"), [])
        self.assertIs(self.reg.get("count", "node"), _node_count)
        with self.assertRaises(UnknownColumn):
            reg.get("count", "node")
        with self.assertRaises(UnknownColumn):
            reg.unregister("count", "node")


if __name__ == "__main__":
    unittest.main()
