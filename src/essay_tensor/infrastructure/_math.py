"""
Functional tensor math.

Each function here builds the matching kernel and hands it to the generic
adapter in `infrastructure.ops`, which evaluates eagerly and records a node
when a tape is active on the calling thread. Operands that are not tensors
(Python scalars, lists, NumPy arrays) are wrapped and, while recording,
captured as constants.

`Tensor`'s operators and math methods delegate to these functions.
"""

from __future__ import annotations

from typing import Any, Optional

from .ops._binary_op import Add, Div, Maximum, Minimum, Mul, Rem, Sub, binary_op
from .ops._matmul_op import matmul as _matmul
from .ops._reduce_op import ReduceSum, reduce_op
from .ops._unary_op import (
    Abs,
    Cos,
    Exp,
    Ln,
    Neg,
    Powf,
    Sin,
    Sqrt,
    Square,
    unary_op,
)
from .tensor._shape import reduce_split
from .tensor._tensor import Tensor, as_tensor


def add(a: Any, b: Any) -> Tensor:
    return binary_op(Add(), a, b)


def sub(a: Any, b: Any) -> Tensor:
    return binary_op(Sub(), a, b)


def mul(a: Any, b: Any) -> Tensor:
    return binary_op(Mul(), a, b)


def div(a: Any, b: Any) -> Tensor:
    return binary_op(Div(), a, b)


def rem(a: Any, b: Any) -> Tensor:
    """
    Truncated remainder ``a - b * trunc(a / b)``.
    """
    return binary_op(Rem(), a, b)


def maximum(a: Any, b: Any) -> Tensor:
    return binary_op(Maximum(), a, b)


def minimum(a: Any, b: Any) -> Tensor:
    return binary_op(Minimum(), a, b)


def matmul(a: Any, b: Any) -> Tensor:
    return _matmul(a, b)


def neg(a: Any) -> Tensor:
    return unary_op(Neg(), a)


def exp(a: Any) -> Tensor:
    return unary_op(Exp(), a)


def ln(a: Any) -> Tensor:
    return unary_op(Ln(), a)


def square(a: Any) -> Tensor:
    return unary_op(Square(), a)


def sqrt(a: Any) -> Tensor:
    return unary_op(Sqrt(), a)


def abs(a: Any) -> Tensor:
    return unary_op(Abs(), a)


def sin(a: Any) -> Tensor:
    return unary_op(Sin(), a)


def cos(a: Any) -> Tensor:
    return unary_op(Cos(), a)


def powf(a: Any, p: float) -> Tensor:
    return unary_op(Powf(p), a)


def reduce_sum(a: Any, axis: Optional[int] = None) -> Tensor:
    """
    Sum over `axis`, or over every element when `axis` is None.

    Parameters
    ----------
    a : Tensor or array-like
        Input.
    axis : Optional[int]
        Axis to fold; negative values count from the end. Rank-0 and rank-1
        inputs always fold to a scalar.

    Returns
    -------
    Tensor
        Input shape with `axis` removed, or a scalar.
    """
    return reduce_op(ReduceSum(), a, axis)


def reduce_mean(a: Any, axis: Optional[int] = None) -> Tensor:
    """
    Mean over `axis`, or over every element when `axis` is None.

    Computed as `reduce_sum` divided by the folded length, so it records as
    two nodes.
    """
    x = as_tensor(a)
    _, _, axis_len, _ = reduce_split(x.shape, axis)
    return div(reduce_sum(x, axis), float(max(axis_len, 1)))
