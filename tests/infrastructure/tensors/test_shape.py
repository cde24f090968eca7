import unittest

from essay_tensor.domain._errors import ShapeMismatchError
from essay_tensor.infrastructure.tensor._shape import (
    broadcast_shape,
    broadcast_size,
    dim_tail,
    normalize_axis,
    reduce_split,
    size_of,
)


class TestBroadcastShape(unittest.TestCase):
    def test_longer_shape_wins(self):
        self.assertEqual(broadcast_shape((2,), (3, 2)), (3, 2))
        self.assertEqual(broadcast_shape((3, 2), (2,)), (3, 2))

    def test_equal_rank_returns_first(self):
        self.assertEqual(broadcast_shape((2, 2), (2, 2)), (2, 2))

    def test_scalar_broadcasts_against_anything(self):
        self.assertEqual(broadcast_shape((), (4, 5)), (4, 5))
        self.assertEqual(broadcast_shape((4, 5), ()), (4, 5))
        self.assertEqual(broadcast_shape((), ()), ())

    def test_trailing_dims_must_match(self):
        with self.assertRaises(ShapeMismatchError):
            broadcast_shape((3,), (3, 2))
        with self.assertRaises(ShapeMismatchError):
            broadcast_shape((2, 3), (3, 2))

    def test_broadcast_size(self):
        self.assertEqual(broadcast_size((2,), (4, 3, 2)), 24)


class TestShapeArithmetic(unittest.TestCase):
    def test_size_of(self):
        self.assertEqual(size_of(()), 1)
        self.assertEqual(size_of((2, 3, 4)), 24)
        self.assertEqual(size_of((2, 0)), 0)

    def test_dim_tail(self):
        self.assertEqual(dim_tail(()), 1)
        self.assertEqual(dim_tail((4, 7)), 7)

    def test_normalize_axis(self):
        self.assertEqual(normalize_axis(-1, 3), 2)
        self.assertEqual(normalize_axis(1, 3), 1)
        with self.assertRaises(ShapeMismatchError):
            normalize_axis(3, 3)


class TestReduceSplit(unittest.TestCase):
    def test_none_axis_folds_everything(self):
        self.assertEqual(reduce_split((2, 3), None), ((), 1, 6, 1))

    def test_rank_one_folds_everything(self):
        self.assertEqual(reduce_split((5,), 0), ((), 1, 5, 1))
        self.assertEqual(reduce_split((), 0), ((), 1, 1, 1))

    def test_middle_axis(self):
        self.assertEqual(reduce_split((2, 3, 4), 1), ((2, 4), 2, 3, 4))

    def test_negative_axis(self):
        self.assertEqual(reduce_split((2, 3, 4), -1), ((2, 3), 6, 4, 1))


if __name__ == "__main__":
    unittest.main()
