import unittest

import numpy as np

from essay_tensor.domain._errors import ShapeMismatchError
from essay_tensor.infrastructure._var import Var
from essay_tensor.infrastructure.graph._tape import Tape
from essay_tensor.infrastructure.ops._reduce_op import L2Loss, ReduceSum, reduce_op


def as_np(t):
    return t.to_numpy()


class TestReduceSum(unittest.TestCase):
    m = [[1.0, 10.0], [100.0, 1000.0]]

    def test_none_axis_folds_everything(self):
        out = reduce_op(ReduceSum(), self.m)
        self.assertEqual(out.shape, ())
        self.assertEqual(out.item(), 1111.0)

    def test_axis_zero(self):
        np.testing.assert_allclose(as_np(reduce_op(ReduceSum(), self.m, 0)), [101.0, 1010.0])

    def test_last_axis(self):
        np.testing.assert_allclose(as_np(reduce_op(ReduceSum(), self.m, -1)), [11.0, 1100.0])
        np.testing.assert_allclose(
            as_np(reduce_op(ReduceSum(), [[1.0, 10.0], [2.0, 20.0]], 1)), [11.0, 22.0]
        )

    def test_rank_three_middle_axis(self):
        a = np.arange(24, dtype=np.float32).reshape(2, 3, 4)
        out = reduce_op(ReduceSum(), a, 1)
        self.assertEqual(out.shape, (2, 4))
        np.testing.assert_allclose(as_np(out), a.sum(axis=1))

    def test_vector_and_scalar(self):
        self.assertEqual(reduce_op(ReduceSum(), [1.0, 2.0, 3.0], 0).item(), 6.0)
        self.assertEqual(reduce_op(ReduceSum(), 4.0).item(), 4.0)

    def test_bad_axis(self):
        with self.assertRaises(ShapeMismatchError):
            reduce_op(ReduceSum(), self.m, 2)

    def test_gradient_broadcasts_upstream(self):
        v = Var(np.arange(24, dtype=np.float32).reshape(2, 3, 4))
        weights = np.arange(8, dtype=np.float32).reshape(2, 4)
        with Tape.begin() as tape:
            s = reduce_op(ReduceSum(), v.tensor(), 1)
            reduce_op(ReduceSum(), s * weights)
        grad = tape.gradient(v).to_numpy()
        np.testing.assert_allclose(grad, np.broadcast_to(weights[:, None, :], (2, 3, 4)))


class TestL2Loss(unittest.TestCase):
    def test_scalar(self):
        self.assertEqual(reduce_op(L2Loss(1), 2.0).item(), 2.0)

    def test_vector(self):
        self.assertAlmostEqual(reduce_op(L2Loss(2), [1.0, 2.0]).item(), 1.25)

    def test_element_derivative(self):
        v = Var([1.0, 2.0])
        with Tape.begin() as tape:
            reduce_op(L2Loss(2), v.tensor())
        np.testing.assert_allclose(tape.gradient(v).to_numpy(), [1.0, 2.0])


if __name__ == "__main__":
    unittest.main()
