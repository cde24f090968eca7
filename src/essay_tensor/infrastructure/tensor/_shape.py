"""
Shape arithmetic shared by the tensor type and the kernel adapters.

Broadcasting follows a trailing-dimension rule: the shorter shape's
dimensions must equal the longer shape's trailing dimensions, and elements
of the smaller operand are read with wraparound indexing. A scalar
(rank 0) broadcasts against anything.
"""

from __future__ import annotations

from math import prod
from typing import Optional, Sequence, Tuple

from ...domain._errors import ShapeMismatchError

Shape = Tuple[int, ...]


def size_of(shape: Sequence[int]) -> int:
    """
    Return the number of elements of `shape` (1 for a scalar).
    """
    return int(prod(shape))


def dim_tail(shape: Sequence[int]) -> int:
    """
    Return the last dimension of `shape`, or 1 for a scalar.
    """
    return int(shape[-1]) if len(shape) > 0 else 1


def broadcast_shape(a: Shape, b: Shape, op: str = "broadcast") -> Shape:
    """
    Return the output shape of a broadcast binary operation.

    Parameters
    ----------
    a, b : tuple[int, ...]
        Operand shapes.
    op : str, optional
        Operation name used in the error message.

    Returns
    -------
    tuple[int, ...]
        The longer of the two shapes (`a` on equal rank).

    Raises
    ------
    ShapeMismatchError
        If the shorter shape is not a suffix of the longer one.
    """
    short, long = (a, b) if len(a) < len(b) else (b, a)

    if len(short) > 0 and tuple(long[len(long) - len(short):]) != tuple(short):
        raise ShapeMismatchError(op, a, b)

    return tuple(b) if len(a) < len(b) else tuple(a)


def broadcast_size(a: Shape, b: Shape, op: str = "broadcast") -> int:
    """
    Return the element count of the broadcast of `a` and `b`.
    """
    return size_of(broadcast_shape(a, b, op))


def normalize_axis(axis: int, rank: int) -> int:
    """
    Map a possibly negative `axis` into ``[0, rank)``.

    Raises
    ------
    ShapeMismatchError
        If `axis` is out of range.
    """
    if not -rank <= axis < rank:
        raise ShapeMismatchError(f"axis {axis}", (rank,))
    return axis % rank


def reduce_split(shape: Shape, axis: Optional[int]) -> Tuple[Shape, int, int, int]:
    """
    Split `shape` around a reduction axis.

    Parameters
    ----------
    shape : tuple[int, ...]
        Input shape.
    axis : Optional[int]
        Axis to fold; None folds the whole tensor.

    Returns
    -------
    tuple
        ``(out_shape, outer, axis_len, inner)`` such that the input is laid
        out as ``outer x axis_len x inner`` and the output as
        ``outer x inner``.

    Notes
    -----
    Rank-0 and rank-1 inputs always fold to a scalar.
    """
    if axis is None or len(shape) <= 1:
        return (), 1, size_of(shape), 1

    axis = normalize_axis(axis, len(shape))

    outer = size_of(shape[:axis])
    inner = size_of(shape[axis + 1:])
    out_shape = tuple(shape[:axis]) + tuple(shape[axis + 1:])

    return out_shape, outer, int(shape[axis]), inner
