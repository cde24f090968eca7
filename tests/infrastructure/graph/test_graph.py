import unittest

import numpy as np

from essay_tensor.domain._errors import GraphInvariantError, UnsetTensorError
from essay_tensor.infrastructure._var import Var
from essay_tensor.infrastructure.graph._graph import Graph
from essay_tensor.infrastructure.graph._node_op import (
    ArgNode,
    ConstNode,
    NoneNode,
    OpNode,
    VarNode,
)
from essay_tensor.infrastructure.graph._tape import Tape
from essay_tensor.infrastructure.ops._binary_op import Add, BinopImpl, Mul
from essay_tensor.infrastructure.tensor._tensor import tensor


def assert_ordered(test: unittest.TestCase, graph: Graph) -> None:
    for index, node in enumerate(graph.nodes):
        for arg in node.arg_ids():
            test.assertLess(arg.index, index)


class TestGraphConstruction(unittest.TestCase):
    def test_alloc_id_is_monotonic(self):
        g = Graph()
        ids = [g.alloc_id() for _ in range(3)]
        self.assertEqual([id.index for id in ids], [0, 1, 2])
        self.assertTrue(all(isinstance(n, NoneNode) for n in g.nodes))

    def test_set_node_rejects_forward_reference(self):
        g = Graph()
        a = g.alloc_id()
        b = g.alloc_id()
        with self.assertRaises(GraphInvariantError):
            g.set_node(a, OpNode(a, BinopImpl(Add()), (b, b)))

    def test_set_node_rejects_self_reference(self):
        g = Graph()
        a = g.alloc_id()
        with self.assertRaises(GraphInvariantError):
            g.set_node(a, OpNode(a, BinopImpl(Add()), (a, a)))

    def test_set_node_rejects_foreign_args(self):
        other = Graph()
        foreign = other.constant(tensor(1.0))
        g = Graph()
        g.constant(tensor(1.0))
        id = g.alloc_id()
        with self.assertRaises(GraphInvariantError):
            g.set_node(id, OpNode(id, BinopImpl(Add()), (foreign, foreign)))

    def test_set_node_rejects_refill(self):
        g = Graph()
        id = g.arg()
        with self.assertRaises(GraphInvariantError):
            g.set_node(id, ConstNode(id))

    def test_input_id_captures_untagged_as_constant(self):
        g = Graph()
        id = g.input_id(tensor(2.0))
        self.assertIsInstance(g.node(id), ConstNode)
        self.assertEqual(g.tensor(id).item(), 2.0)

    def test_input_id_reuses_own_ids(self):
        g = Graph()
        id = g.constant(tensor(2.0))
        self.assertEqual(g.input_id(g.tensor(id)), id)
        self.assertEqual(len(g), 1)

    def test_var_registered_once(self):
        g = Graph()
        v = Var([1.0, 2.0], "v")
        t1 = g.var(v)
        t2 = g.var(v)
        self.assertEqual(t1.id, t2.id)
        self.assertEqual(len(g), 1)
        self.assertIsInstance(g.node(t1.id), VarNode)
        self.assertEqual(g.get_id_by_var(v), t1.id)
        self.assertEqual(g.tracked_vars, (v,))

    def test_unknown_var_has_no_id(self):
        self.assertIsNone(Graph().get_id_by_var(Var(1.0)))

    def test_tail_defaults_to_last_node(self):
        g = Graph()
        self.assertIsNone(g.tail_id())
        a = g.constant(tensor(1.0))
        b = g.constant(tensor(2.0))
        self.assertEqual(g.tail_id(), b)
        g.set_tail(a)
        self.assertEqual(g.tail_id(), a)

    def test_validate_rejects_unfilled_nodes(self):
        g = Graph()
        g.alloc_id()
        with self.assertRaises(GraphInvariantError):
            g.validate()

    def test_repr_lists_nodes(self):
        g = Graph()
        g.arg()
        self.assertIn("0: Arg(", repr(g))


class TestGraphApply(unittest.TestCase):
    def _add_mul(self):
        g = Graph()
        x = g.arg()
        c = g.constant(tensor([10.0, 20.0]))
        s = g.add_op(BinopImpl(Add()), [x, c])
        p = g.add_op(BinopImpl(Mul()), [s, s])
        return g, x, p

    def test_apply_evaluates_in_order(self):
        g, x, p = self._add_mul()
        cache = g.replay_cache()
        cache.set(x, tensor([1.0, 2.0]))
        out = g.apply(cache)
        np.testing.assert_allclose(out[p].to_numpy(), [121.0, 484.0])
        self.assertEqual(out[p].id, p)

    def test_apply_requires_inputs(self):
        g, _, _ = self._add_mul()
        with self.assertRaises(UnsetTensorError):
            g.apply()

    def test_apply_rejects_unfilled_node(self):
        g = Graph()
        g.alloc_id()
        with self.assertRaises(GraphInvariantError):
            g.apply()

    def test_replay_cache_seeds_only_constants(self):
        g, x, p = self._add_mul()
        cache = g.replay_cache()
        self.assertFalse(cache.is_set(x))
        self.assertTrue(cache.is_set(g.ids()[1]))
        self.assertFalse(cache.is_set(p))

    def test_var_node_reads_current_value(self):
        v = Var([1.0], "v")
        g = Graph()
        leaf = g.var(v)
        double = g.add_op(BinopImpl(Add()), [leaf.id, leaf.id])
        v.set([5.0])
        out = g.apply()
        np.testing.assert_allclose(out[double].to_numpy(), [10.0])

    def test_reverse_nodes_read_forward_cache(self):
        fwd = Graph()
        x = fwd.constant(tensor([2.0, 3.0]))

        back = Graph()
        passthrough = back.add_grad_constant(x)
        total = back.add_grad_accum([passthrough, passthrough])
        out = back.apply(fwd=fwd.tensors)

        np.testing.assert_allclose(out[passthrough].to_numpy(), [2.0, 3.0])
        np.testing.assert_allclose(out[total].to_numpy(), [4.0, 6.0])

    def test_reverse_nodes_need_forward_cache(self):
        fwd = Graph()
        x = fwd.constant(tensor(1.0))
        back = Graph()
        back.add_grad_constant(x)
        with self.assertRaises(GraphInvariantError):
            back.apply()

    def test_replay_is_deterministic(self):
        g, x, p = self._add_mul()
        results = []
        for _ in range(2):
            cache = g.replay_cache()
            cache.set(x, tensor([0.5, -1.5]))
            results.append(g.apply(cache)[p].to_numpy())
        np.testing.assert_array_equal(results[0], results[1])


class TestRecordedOrdering(unittest.TestCase):
    def test_every_recorded_arg_precedes_its_node(self):
        a = Var([[1.0, 2.0], [3.0, 4.0]], "a")
        with Tape.begin() as tape:
            x = a.tensor()
            y = (x - 1.0) * x + x.exp()
            y.softmax().reduce_sum(axis=0).l2_loss()
        assert_ordered(self, tape.graph)
        tape.graph.validate()


if __name__ == "__main__":
    unittest.main()
