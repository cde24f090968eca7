import unittest

import numpy as np

from essay_tensor.domain._errors import GraphInvariantError
from essay_tensor.infrastructure._var import Var
from essay_tensor.infrastructure.graph._node_op import (
    ArgNode,
    ConstNode,
    GradAccumNode,
    GradConstNode,
    GradOpNode,
    GradSeedNode,
    NoneNode,
    OpNode,
    VarNode,
)
from essay_tensor.infrastructure.graph._tensor_cache import TensorCache
from essay_tensor.infrastructure.graph._tensor_id import ModelId
from essay_tensor.infrastructure.ops._binary_op import Add, BinopDx, BinopImpl, Mul
from essay_tensor.infrastructure.tensor._tensor import tensor


class TestNodeVariants(unittest.TestCase):
    def setUp(self):
        self.cache = TensorCache(ModelId.alloc())
        self.ids = [self.cache.new_id(i) for i in range(4)]

    def test_every_variant_can_be_built(self):
        a, b, c, d = self.ids
        nodes = [
            NoneNode(),
            NoneNode(a),
            ArgNode(a),
            ConstNode(a),
            VarNode(a, Var(1.0, "v")),
            OpNode(c, BinopImpl(Add()), (a, b)),
            GradConstNode(a, b),
            GradSeedNode(a, b),
            GradOpNode(d, BinopDx(Mul()), (a, b), c),
            GradAccumNode(c, (a, b)),
        ]
        self.assertIsNone(nodes[0].id)
        for node in nodes[1:]:
            self.assertIsNotNone(node.id)

    def test_inputs_and_arg_ids(self):
        a, b, c, d = self.ids
        self.assertTrue(ArgNode(a).is_input())
        self.assertTrue(ConstNode(a).is_input())
        self.assertFalse(OpNode(c, BinopImpl(Add()), (a, b)).is_input())
        self.assertEqual(OpNode(c, BinopImpl(Add()), (a, b)).arg_ids(), (a, b))
        self.assertEqual(GradOpNode(d, BinopDx(Mul()), (a, b), c).arg_ids(), (c,))
        self.assertEqual(GradSeedNode(a, b).arg_ids(), ())

    def test_nodes_are_frozen(self):
        node = ArgNode(self.ids[0])
        with self.assertRaises(AttributeError):
            node.id = self.ids[1]

    def test_seed_takes_shape_from_forward_value(self):
        fwd = TensorCache(ModelId.alloc())
        x = fwd.new_id(0)
        fwd.push(tensor([[1.0, 2.0, 3.0]]))
        seed = GradSeedNode(self.ids[0], x)
        out = seed.eval(TensorCache(self.cache.model), fwd)
        np.testing.assert_allclose(out.to_numpy(), np.ones((1, 3)))
        self.assertEqual(out.id, self.ids[0])

    def test_seed_needs_forward_cache(self):
        seed = GradSeedNode(self.ids[0], self.ids[1])
        with self.assertRaises(GraphInvariantError):
            seed.eval(TensorCache(self.cache.model), None)


if __name__ == "__main__":
    unittest.main()
