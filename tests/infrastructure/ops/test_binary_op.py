import unittest

import numpy as np

from essay_tensor.domain._errors import ShapeMismatchError
from essay_tensor.domain._kernels import BinaryKernel
from essay_tensor.infrastructure._var import Var
from essay_tensor.infrastructure.graph._tape import Tape
from essay_tensor.infrastructure.ops._binary_op import (
    Add,
    Div,
    Maximum,
    Minimum,
    Mul,
    Rem,
    Sub,
    binary_op,
)
from essay_tensor.infrastructure.tensor._tensor import tensor


class _Tag(BinaryKernel):
    """100 * x + y, so each output shows which elements were paired."""

    def f(self, x, y):
        return 100.0 * x + y

    def df_dx(self, x, y):
        return 100.0 * np.ones_like(x)

    def df_dy(self, x, y):
        return np.ones_like(y)


def as_np(t):
    return t.to_numpy()


def _grads(fn, *values):
    vars = [Var(v) for v in values]
    with Tape.begin() as tape:
        fn(*[v.tensor() for v in vars])
    return [tape.gradient(v).to_numpy() for v in vars]


class TestBroadcasting(unittest.TestCase):
    def test_vector_scalar(self):
        np.testing.assert_allclose(as_np(binary_op(Add(), [1.0, 2.0, 3.0], 1.0)), [2.0, 3.0, 4.0])
        np.testing.assert_allclose(as_np(binary_op(Add(), 1.0, [1.0, 2.0, 3.0])), [2.0, 3.0, 4.0])

    def test_vector_matrix(self):
        out = binary_op(Add(), [1.0, 2.0], [[1.0, 2.0], [3.0, 4.0]])
        self.assertEqual(out.shape, (2, 2))
        np.testing.assert_allclose(as_np(out), [[2.0, 4.0], [4.0, 6.0]])

    def test_wraparound_pairing(self):
        np.testing.assert_allclose(
            as_np(binary_op(_Tag(), [1.0, 2.0, 3.0], 1.0)), [101.0, 201.0, 301.0]
        )
        np.testing.assert_allclose(
            as_np(binary_op(_Tag(), 1.0, [1.0, 2.0, 3.0])), [101.0, 102.0, 103.0]
        )
        np.testing.assert_allclose(
            as_np(binary_op(_Tag(), [1.0, 2.0], [[1.0, 2.0], [3.0, 4.0]])),
            [[101.0, 202.0], [103.0, 204.0]],
        )
        np.testing.assert_allclose(
            as_np(binary_op(_Tag(), [[1.0, 2.0], [3.0, 4.0]], [1.0, 2.0])),
            [[101.0, 202.0], [301.0, 402.0]],
        )

    def test_rank_three(self):
        a = np.arange(8, dtype=np.float32).reshape(2, 2, 2)
        b = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32)
        out = binary_op(_Tag(), a, b)
        self.assertEqual(out.shape, (2, 2, 2))
        np.testing.assert_allclose(as_np(out), 100.0 * a + b)

    def test_incompatible_shapes(self):
        with self.assertRaises(ShapeMismatchError):
            binary_op(Add(), [1.0, 2.0, 3.0], [[1.0, 2.0], [3.0, 4.0]])

    def test_mismatch_raised_before_recording(self):
        with Tape.begin() as tape:
            with self.assertRaises(ShapeMismatchError):
                binary_op(Add(), [1.0, 2.0, 3.0], [1.0, 2.0])
        self.assertEqual(len(tape.graph), 0)


class TestKernels(unittest.TestCase):
    def test_forward_values(self):
        x = [6.0, -7.0, 2.0]
        y = [4.0, 2.0, 2.0]
        np.testing.assert_allclose(as_np(binary_op(Sub(), x, y)), [2.0, -9.0, 0.0])
        np.testing.assert_allclose(as_np(binary_op(Mul(), x, y)), [24.0, -14.0, 4.0])
        np.testing.assert_allclose(as_np(binary_op(Div(), x, y)), [1.5, -3.5, 1.0])
        np.testing.assert_allclose(as_np(binary_op(Rem(), x, y)), [2.0, -1.0, 0.0])
        np.testing.assert_allclose(as_np(binary_op(Maximum(), x, y)), [6.0, 2.0, 2.0])
        np.testing.assert_allclose(as_np(binary_op(Minimum(), x, y)), [4.0, -7.0, 2.0])


class TestBinaryGradients(unittest.TestCase):
    def test_add_sub(self):
        gx, gy = _grads(lambda x, y: binary_op(Add(), x, y), [1.0, 2.0], [3.0, 4.0])
        np.testing.assert_allclose(gx, [1.0, 1.0])
        np.testing.assert_allclose(gy, [1.0, 1.0])

        (ga,) = _grads(lambda a: binary_op(Sub(), 2.0, a), [1.0, 2.0])
        np.testing.assert_allclose(ga, [-1.0, -1.0])

    def test_mul(self):
        (ga,) = _grads(lambda a: binary_op(Mul(), 2.0, a), [1.0, 2.0])
        np.testing.assert_allclose(ga, [2.0, 2.0])

    def test_div(self):
        gx, gy = _grads(lambda x, y: binary_op(Div(), x, y), 3.0, 2.0)
        np.testing.assert_allclose(gx, 0.5)
        np.testing.assert_allclose(gy, -0.75)

    def test_rem(self):
        gx, gy = _grads(lambda x, y: binary_op(Rem(), x, y), 7.0, 2.0)
        np.testing.assert_allclose(gx, 1.0)
        np.testing.assert_allclose(gy, -3.0)

    def test_maximum_minimum(self):
        gx, gy = _grads(lambda x, y: binary_op(Maximum(), x, y), [1.0, 5.0], [3.0, 2.0])
        np.testing.assert_allclose(gx, [0.0, 1.0])
        np.testing.assert_allclose(gy, [1.0, 0.0])

        gx, gy = _grads(lambda x, y: binary_op(Minimum(), x, y), [1.0, 5.0], [3.0, 2.0])
        np.testing.assert_allclose(gx, [1.0, 0.0])
        np.testing.assert_allclose(gy, [0.0, 1.0])

    def test_broadcast_gradient_sums_over_batch(self):
        gx, gy = _grads(lambda x, y: binary_op(Add(), x, y), [3.0], [[1.0], [2.0]])
        np.testing.assert_allclose(gx, [2.0])
        np.testing.assert_allclose(gy, [[1.0], [1.0]])

    def test_broadcast_gradient_with_tagged_kernel(self):
        gx, gy = _grads(
            lambda x, y: binary_op(_Tag(), x, y), [1.0, 2.0], [[1.0, 2.0], [3.0, 4.0]]
        )
        np.testing.assert_allclose(gx, [200.0, 200.0])
        np.testing.assert_allclose(gy, np.ones((2, 2)))

    def test_rank_two_square_of_difference(self):
        ga, gx = _grads(
            lambda a, x: binary_op(Mul(), binary_op(Sub(), a, x), binary_op(Sub(), a, x)),
            [[1.0, 2.0], [3.0, 4.0]],
            [[0.0, 1.0], [0.0, 2.0]],
        )
        np.testing.assert_allclose(ga, [[2.0, 2.0], [6.0, 4.0]])
        np.testing.assert_allclose(gx, [[-2.0, -2.0], [-6.0, -4.0]])


if __name__ == "__main__":
    unittest.main()
