"""
Elementwise unary operations and their kernels.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ...domain._errors import GraphInvariantError
from ...domain._kernels import UnaryKernel
from ...domain._operation import GradientOp, Operation
from ..graph._tape import record_op
from ..tensor._tensor import Tensor, as_tensor


class UnopImpl(Operation):
    """
    Forward adapter applying a `UnaryKernel` element by element.
    """

    def __init__(self, kernel: UnaryKernel) -> None:
        self.kernel = kernel

    def name(self) -> str:
        return self.kernel.name()

    def f(self, args: Sequence[Tensor], id: Any) -> Tensor:
        (x,) = args
        return Tensor.from_numpy(self.kernel.f(x.as_flat()), x.shape, id=id)

    def df(self, forward, back, i, args, prev):
        if i != 0:
            raise GraphInvariantError(f"{self.name()} has no argument {i}")
        return back.add_grad_op(UnopDx(self.kernel), args, prev)

    def __repr__(self) -> str:
        return f"UnopImpl({self.kernel!r})"


class UnopDx(GradientOp):
    def __init__(self, kernel: UnaryKernel) -> None:
        self.kernel = kernel

    def name(self) -> str:
        return f"{self.kernel.name()}Dx"

    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        (x,) = args
        grad = self.kernel.df_dx(x.as_flat()) * prev.as_flat()
        return Tensor.from_numpy(grad, x.shape)


def unary_op(kernel: UnaryKernel, a: Any) -> Tensor:
    """
    Apply `kernel` to every element of `a`, recording a graph node when a
    tape is active.
    """
    return record_op(UnopImpl(kernel), [as_tensor(a)])


class Neg(UnaryKernel):
    def f(self, x):
        return -x

    def df_dx(self, x):
        return -np.ones_like(x)


class Exp(UnaryKernel):
    def f(self, x):
        return np.exp(x)

    def df_dx(self, x):
        return np.exp(x)


class Ln(UnaryKernel):
    def f(self, x):
        return np.log(x)

    def df_dx(self, x):
        return 1.0 / x


class Square(UnaryKernel):
    def f(self, x):
        return x * x

    def df_dx(self, x):
        return 2.0 * x


class Sqrt(UnaryKernel):
    def f(self, x):
        return np.sqrt(x)

    def df_dx(self, x):
        return 0.5 / np.sqrt(x)


class Abs(UnaryKernel):
    def f(self, x):
        return np.abs(x)

    def df_dx(self, x):
        return np.sign(x)


class Sin(UnaryKernel):
    def f(self, x):
        return np.sin(x)

    def df_dx(self, x):
        return np.cos(x)


class Cos(UnaryKernel):
    def f(self, x):
        return np.cos(x)

    def df_dx(self, x):
        return -np.sin(x)


class Powf(UnaryKernel):
    """
    ``x ** p`` for a fixed float exponent `p`.
    """

    def __init__(self, p: float) -> None:
        self.p = float(p)

    def f(self, x):
        return np.power(x, self.p)

    def df_dx(self, x):
        return self.p * np.power(x, self.p - 1.0)
