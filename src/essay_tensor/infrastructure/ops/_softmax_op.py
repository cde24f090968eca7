"""
Chunked softmax.

The flat input is split into consecutive chunks of `chunk` elements (the
last dimension by default) and each chunk is normalized independently:

    w = weight(a)
    out = f(a, w, 1 / sum(w))

When a chunk's weight sum is at or below `EngineConfig.softmax_epsilon`, the
normalizing factor falls back to 1 instead of dividing by a (near) zero sum.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ...domain._errors import GraphInvariantError, ShapeMismatchError
from ...domain._kernels import SoftmaxKernel
from ...domain._operation import GradientOp, Operation
from .._config import get_config
from ..graph._tape import record_op
from ..tensor._tensor import Tensor, as_tensor


def _softmax_forward(kernel: SoftmaxKernel, a: Tensor, chunk: int) -> np.ndarray:
    x = a.as_flat().reshape(-1, chunk)
    weight = kernel.weight(x)
    total = weight.sum(axis=1, keepdims=True)

    inv_sum = np.ones_like(total)
    np.divide(1.0, total, out=inv_sum, where=total > get_config().softmax_epsilon)

    return kernel.f(x, weight, inv_sum)


class SoftmaxImpl(Operation):
    """
    Forward adapter normalizing chunks with a `SoftmaxKernel`.
    """

    def __init__(self, kernel: SoftmaxKernel, chunk: int) -> None:
        self.kernel = kernel
        self.chunk = int(chunk)

    def name(self) -> str:
        return self.kernel.name()

    def f(self, args: Sequence[Tensor], id: Any) -> Tensor:
        (a,) = args
        out = _softmax_forward(self.kernel, a, self.chunk)
        return Tensor.from_numpy(out, a.shape, id=id)

    def df(self, forward, back, i, args, prev):
        if i != 0:
            raise GraphInvariantError(f"{self.name()} has no argument {i}")
        return back.add_grad_op(SoftmaxDx(self.kernel, self.chunk), args, prev)

    def __repr__(self) -> str:
        return f"SoftmaxImpl({self.kernel!r}, chunk={self.chunk})"


class SoftmaxDx(GradientOp):
    def __init__(self, kernel: SoftmaxKernel, chunk: int) -> None:
        self.kernel = kernel
        self.chunk = int(chunk)

    def name(self) -> str:
        return f"{self.kernel.name()}Dx"

    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        (a,) = args
        out = _softmax_forward(self.kernel, a, self.chunk)
        grad = self.kernel.df_dx(out, prev.as_flat().reshape(-1, self.chunk))
        return Tensor.from_numpy(grad, a.shape)


class Softmax(SoftmaxKernel):
    """
    Exponential softmax ``exp(a) / sum(exp(a))``.

    Inputs are not shifted by their maximum, so large logits overflow.
    """

    def weight(self, a):
        return np.exp(a)

    def f(self, a, weight, inv_sum):
        return weight * inv_sum

    def df_dx(self, out, grad):
        return out * (grad - (out * grad).sum(axis=1, keepdims=True))


def softmax_op(kernel: SoftmaxKernel, a: Any, chunk: Optional[int] = None) -> Tensor:
    """
    Normalize consecutive `chunk`-element runs of `a` with `kernel`.

    Parameters
    ----------
    kernel : SoftmaxKernel
        Normalization formula.
    a : Tensor or array-like
        Input.
    chunk : Optional[int]
        Run length. Defaults to the last dimension (1 for a scalar or an
        empty last dimension).

    Raises
    ------
    ShapeMismatchError
        If `chunk` is not positive or does not divide the element count.
    """
    x = as_tensor(a)
    chunk = (x.dim_tail() or 1) if chunk is None else int(chunk)

    if chunk <= 0 or x.size % chunk != 0:
        raise ShapeMismatchError(f"softmax(chunk={chunk})", x.shape)

    return record_op(SoftmaxImpl(kernel, chunk), [x])
