"""
Axis reductions.

A reduction views its input as ``outer x axis_len x inner`` (see
`reduce_split`) and folds the middle dimension with a `ReduceKernel`,
producing an ``outer x inner`` result. Axis None folds the whole tensor, as
does any axis on a rank-0 or rank-1 input.

The gradient with respect to each input element is the kernel's element
derivative scaled by the upstream gradient of the output element it was
folded into.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ...domain._errors import GraphInvariantError
from ...domain._kernels import ReduceKernel
from ...domain._operation import GradientOp, Operation
from ..graph._tape import record_op
from ..tensor._shape import reduce_split
from ..tensor._tensor import Tensor, as_tensor


class ReduceImpl(Operation):
    """
    Forward adapter folding one axis with a `ReduceKernel`.

    Parameters
    ----------
    kernel : ReduceKernel
        Fold formula.
    axis : Optional[int]
        Axis to fold; None folds everything.
    """

    def __init__(self, kernel: ReduceKernel, axis: Optional[int]) -> None:
        self.kernel = kernel
        self.axis = axis

    def name(self) -> str:
        return self.kernel.name()

    def f(self, args: Sequence[Tensor], id: Any) -> Tensor:
        (a,) = args
        out_shape, outer, axis_len, inner = reduce_split(a.shape, self.axis)
        a3 = a.as_flat().reshape(outer, axis_len, inner)

        state = np.full((outer, inner), self.kernel.init(), dtype=a.dtype)
        for k in range(axis_len):
            state = self.kernel.f(state, a3[:, k, :])

        return Tensor.from_numpy(self.kernel.value(state), out_shape, id=id)

    def df(self, forward, back, i, args, prev):
        if i != 0:
            raise GraphInvariantError(f"{self.name()} has no argument {i}")
        return back.add_grad_op(ReduceDx(self.kernel, self.axis), args, prev)

    def __repr__(self) -> str:
        return f"ReduceImpl({self.kernel!r}, axis={self.axis})"


class ReduceDx(GradientOp):
    def __init__(self, kernel: ReduceKernel, axis: Optional[int]) -> None:
        self.kernel = kernel
        self.axis = axis

    def name(self) -> str:
        return f"{self.kernel.name()}Dx"

    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        (a,) = args
        _, outer, axis_len, inner = reduce_split(a.shape, self.axis)
        a3 = a.as_flat().reshape(outer, axis_len, inner)

        grad = self.kernel.df_dx(a3) * prev.as_flat().reshape(outer, 1, inner)
        return Tensor.from_numpy(grad, a.shape)


def reduce_op(kernel: ReduceKernel, a: Any, axis: Optional[int] = None) -> Tensor:
    """
    Fold `axis` of `a` with `kernel`, recording a graph node when a tape is
    active.

    Raises
    ------
    ShapeMismatchError
        If `axis` is out of range for `a`.
    """
    x = as_tensor(a)
    reduce_split(x.shape, axis)
    return record_op(ReduceImpl(kernel, axis), [x])


class ReduceSum(ReduceKernel):
    def f(self, state, a):
        return state + a

    def df_dx(self, a):
        return np.ones_like(a)


class L2Loss(ReduceKernel):
    """
    Scaled sum of squares ``0.5 / n * sum(a * a)``.

    `n` is the length of the folded axis, which normalizes the loss per
    element of the last dimension. The element derivative is reported as
    `a`, unscaled by ``1 / n``.
    """

    def __init__(self, n: int) -> None:
        self.n = int(n)
        self._coeff = 0.5 / self.n if self.n > 0 else 0.0

    def f(self, state, a):
        return state + self._coeff * a * a

    def df_dx(self, a):
        return a
