import unittest
from unittest import mock

import numpy as np

from essay_tensor.domain._errors import GraphInvariantError, NoBackpropError
from essay_tensor.domain._operation import Operation
from essay_tensor.infrastructure._var import Var
from essay_tensor.infrastructure.graph._backprop import (
    ArgTrace,
    BackTrace,
    backprop_graph,
    build_backtrace,
)
from essay_tensor.infrastructure.graph._node_op import GradAccumNode, GradSeedNode
from essay_tensor.infrastructure.graph._graph import Graph
from essay_tensor.infrastructure.graph._tape import Tape, record_op
from essay_tensor.infrastructure.tensor._tensor import Tensor, tensor


class _Floor(Operation):
    def f(self, args, id):
        return Tensor.from_numpy(np.floor(args[0].to_numpy()), id=id)


def _record(fn, *vars):
    with Tape.begin() as tape:
        fn(*[v.tensor() for v in vars])
    return tape.graph


def _grad(graph, var):
    back = backprop_graph(graph, graph.get_id_by_var(var))
    out = back.apply(fwd=graph.tensors)
    return out[back.tail_id()].to_numpy()


class TestBuildBacktrace(unittest.TestCase):
    def test_found_path(self):
        x = Var(2.0, "x")
        g = _record(lambda t: (t + 1.0) * 3.0, x)
        trace = build_backtrace(g, g.get_id_by_var(x))
        self.assertIsNotNone(trace)
        self.assertEqual(trace.id, g.tail_id())
        self.assertEqual([a.index for a in trace.args], [0])

    def test_absent_path(self):
        x = Var(2.0, "x")
        y = Var(3.0, "y")

        def fn(a, b):
            a * 2.0
            return b + 1.0

        g = _record(fn, x, y)
        self.assertIsNone(build_backtrace(g, g.get_id_by_var(x)))
        self.assertIsNone(backprop_graph(g, g.get_id_by_var(x)))

    def test_target_is_tail(self):
        x = Var([1.0, 2.0], "x")
        g = _record(lambda t: t, x)
        trace = build_backtrace(g, g.get_id_by_var(x))
        self.assertEqual(trace.args, [])

    def test_shared_subtrace_is_not_duplicated(self):
        x = Var(2.0, "x")

        def fn(t):
            s = t * 3.0
            return s + s

        g = _record(fn, x)
        trace = build_backtrace(g, g.get_id_by_var(x))
        self.assertEqual(len(trace.args), 2)
        self.assertIs(trace.args[0].trace, trace.args[1].trace)


class TestBackpropGraph(unittest.TestCase):
    def test_seed_is_ones_shaped_like_tail(self):
        x = Var([[1.0, 2.0], [3.0, 4.0]], "x")
        g = _record(lambda t: t * 2.0, x)
        back = backprop_graph(g, g.get_id_by_var(x))
        first = back.nodes[0]
        self.assertIsInstance(first, GradSeedNode)
        self.assertEqual(first.forward_id, g.tail_id())
        out = back.apply(fwd=g.tensors)
        np.testing.assert_allclose(out[first.id].to_numpy(), np.ones((2, 2)))

    def test_identity_gradient_is_ones(self):
        for value in (5.0, [1.0, 2.0, 3.0], [[1.0, 2.0], [3.0, 4.0]]):
            x = Var(value, "x")
            g = _record(lambda t: t, x)
            np.testing.assert_allclose(_grad(g, x), np.ones(np.shape(value)))

    def test_multiple_paths_are_accumulated(self):
        x = Var(2.0, "x")

        def fn(t):
            s = t * 3.0
            return s + s * t

        g = _record(fn, x)
        back = backprop_graph(g, g.get_id_by_var(x))
        self.assertTrue(any(isinstance(n, GradAccumNode) for n in back.nodes))
        # d/dt (3t + 3t^2) = 3 + 6t
        np.testing.assert_allclose(_grad(g, x), 15.0)

    def test_reverse_graph_is_ordered(self):
        x = Var([1.0, 2.0], "x")
        g = _record(lambda t: ((t * t) - t).exp().reduce_sum(), x)
        back = backprop_graph(g, g.get_id_by_var(x))
        back.validate()

    def test_missing_gradient_is_fatal(self):
        x = Var(2.5, "x")
        g = _record(lambda t: record_op(_Floor(), [t]), x)
        with self.assertRaises(NoBackpropError) as ctx:
            backprop_graph(g, g.get_id_by_var(x))
        self.assertEqual(ctx.exception.name, "_Floor")

    def test_gradient_skips_unrelated_branch(self):
        x = Var(2.5, "x")
        y = Var(4.0, "y")

        def fn(a, b):
            floor = record_op(_Floor(), [b])
            return a * 2.0 + floor

        g = _record(fn, x, y)
        np.testing.assert_allclose(_grad(g, x), 2.0)

    def test_explicit_tail(self):
        x = Var(3.0, "x")
        with Tape.begin() as tape:
            t = x.tensor()
            first = t * t
            first + 100.0
        g = tape.graph
        back = backprop_graph(g, g.get_id_by_var(x), tail=first.id)
        out = back.apply(fwd=g.tensors)
        self.assertAlmostEqual(out[back.tail_id()].item(), 6.0)

    def test_constant_target_grad(self):
        with Tape.begin() as tape:
            c = tensor(4.0) + 0.0
            c * 5.0
        g = tape.graph
        back = backprop_graph(g, c.id)
        out = back.apply(fwd=g.tensors)
        self.assertAlmostEqual(out[back.tail_id()].item(), 5.0)

    def test_trace_through_leaf_is_rejected(self):
        g = Graph()
        target = g.constant(tensor(1.0))
        leaf = g.constant(tensor(2.0))
        bogus = BackTrace(leaf, [ArgTrace(0, BackTrace(target))])

        with mock.patch(
            "essay_tensor.infrastructure.graph._backprop.build_backtrace",
            return_value=bogus,
        ):
            with self.assertRaises(GraphInvariantError):
                backprop_graph(g, target)


if __name__ == "__main__":
    unittest.main()
