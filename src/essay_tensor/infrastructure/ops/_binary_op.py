"""
Broadcasting binary operations.

`binary_op(kernel, a, b)` applies a `BinaryKernel` across two tensors. The
output takes the longer operand's shape; the shorter operand must match the
longer one's trailing dimensions and is read with wraparound indexing
(``i mod len``). A scalar broadcasts against anything.

Gradients are reduced back to each operand's own shape by summing over the
broadcast batch.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ...domain._errors import GraphInvariantError
from ...domain._kernels import BinaryKernel
from ...domain._operation import GradientOp, Operation
from ..graph._tape import record_op
from ..tensor._shape import broadcast_shape, size_of
from ..tensor._tensor import Tensor, as_tensor


def _broadcast_flat(x: Tensor, y: Tensor, op: str):
    shape = broadcast_shape(x.shape, y.shape, op)
    index = np.arange(size_of(shape))
    xs = x.as_flat()[index % max(x.size, 1)]
    ys = y.as_flat()[index % max(y.size, 1)]
    return shape, xs, ys


def _unbroadcast(contrib: np.ndarray, target: Tensor) -> Tensor:
    n = target.size
    if n == 0:
        return Tensor.zeros(target.shape)
    total = np.asarray(contrib).reshape(-1, n).sum(axis=0)
    return Tensor.from_numpy(total, target.shape)


class BinopImpl(Operation):
    """
    Forward adapter applying a `BinaryKernel` with broadcasting.
    """

    def __init__(self, kernel: BinaryKernel) -> None:
        self.kernel = kernel

    def name(self) -> str:
        return self.kernel.name()

    def f(self, args: Sequence[Tensor], id: Any) -> Tensor:
        x, y = args
        shape, xs, ys = _broadcast_flat(x, y, self.name())
        return Tensor.from_numpy(self.kernel.f(xs, ys), shape, id=id)

    def df(self, forward, back, i, args, prev):
        if i == 0:
            return back.add_grad_op(BinopDx(self.kernel), args, prev)
        if i == 1:
            return back.add_grad_op(BinopDy(self.kernel), args, prev)
        raise GraphInvariantError(f"{self.name()} has no argument {i}")

    def __repr__(self) -> str:
        return f"BinopImpl({self.kernel!r})"


class BinopDx(GradientOp):
    def __init__(self, kernel: BinaryKernel) -> None:
        self.kernel = kernel

    def name(self) -> str:
        return f"{self.kernel.name()}Dx"

    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        x, y = args
        _, xs, ys = _broadcast_flat(x, y, self.name())
        return _unbroadcast(self.kernel.df_dx(xs, ys) * prev.as_flat(), x)


class BinopDy(GradientOp):
    def __init__(self, kernel: BinaryKernel) -> None:
        self.kernel = kernel

    def name(self) -> str:
        return f"{self.kernel.name()}Dy"

    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        x, y = args
        _, xs, ys = _broadcast_flat(x, y, self.name())
        return _unbroadcast(self.kernel.df_dy(xs, ys) * prev.as_flat(), y)


def binary_op(kernel: BinaryKernel, a: Any, b: Any) -> Tensor:
    """
    Apply `kernel` to `a` and `b` with broadcasting, recording a graph node
    when a tape is active.

    Parameters
    ----------
    kernel : BinaryKernel
        Element formula.
    a, b : Tensor or scalar or array-like
        Operands. Non-tensors are wrapped with `as_tensor`.

    Returns
    -------
    Tensor
        Result shaped like the longer operand (`a` on equal rank).

    Raises
    ------
    ShapeMismatchError
        If the shapes are not broadcast-compatible.
    """
    x = as_tensor(a)
    y = as_tensor(b)
    broadcast_shape(x.shape, y.shape, kernel.name())
    return record_op(BinopImpl(kernel), [x, y])


# ----------------------------------------------------------------------
# Kernels
# ----------------------------------------------------------------------
class Add(BinaryKernel):
    def f(self, x, y):
        return x + y

    def df_dx(self, x, y):
        return np.ones_like(x)

    def df_dy(self, x, y):
        return np.ones_like(y)


class Sub(BinaryKernel):
    def f(self, x, y):
        return x - y

    def df_dx(self, x, y):
        return np.ones_like(x)

    def df_dy(self, x, y):
        return -np.ones_like(y)


class Mul(BinaryKernel):
    def f(self, x, y):
        return x * y

    def df_dx(self, x, y):
        return y

    def df_dy(self, x, y):
        return x


class Div(BinaryKernel):
    def f(self, x, y):
        return x / y

    def df_dx(self, x, y):
        return 1.0 / y

    def df_dy(self, x, y):
        return -x / (y * y)


class Rem(BinaryKernel):
    """
    Truncated remainder; the result has the sign of `x`.
    """

    def f(self, x, y):
        return np.fmod(x, y)

    def df_dx(self, x, y):
        return np.ones_like(x)

    def df_dy(self, x, y):
        return -np.trunc(x / y)


class Maximum(BinaryKernel):
    def f(self, x, y):
        return np.maximum(x, y)

    def df_dx(self, x, y):
        return (x >= y).astype(x.dtype)

    def df_dy(self, x, y):
        return (x < y).astype(y.dtype)


class Minimum(BinaryKernel):
    def f(self, x, y):
        return np.minimum(x, y)

    def df_dx(self, x, y):
        return (x <= y).astype(x.dtype)

    def df_dy(self, x, y):
        return (x > y).astype(y.dtype)
