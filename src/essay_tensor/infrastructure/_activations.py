"""
Activation functions.

Elementwise activations are `UnaryKernel`s applied through `unary_op`;
softmax is a chunk normalization applied through `softmax_op`.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..domain._kernels import UnaryKernel
from .ops._softmax_op import Softmax, softmax_op
from .ops._unary_op import unary_op
from .tensor._tensor import Tensor


def _sigmoid(x):
    return 0.5 * (np.tanh(0.5 * x) + 1.0)


class Relu(UnaryKernel):
    def f(self, x):
        return np.maximum(x, 0.0)

    def df_dx(self, x):
        return (x > 0.0).astype(x.dtype)


class Softplus(UnaryKernel):
    """
    ``ln(1 + exp(x))``; its derivative is the logistic sigmoid.
    """

    def f(self, x):
        return np.logaddexp(0.0, x)

    def df_dx(self, x):
        return _sigmoid(x)


class Sigmoid(UnaryKernel):
    def f(self, x):
        return _sigmoid(x)

    def df_dx(self, x):
        s = _sigmoid(x)
        return s * (1.0 - s)


class Tanh(UnaryKernel):
    def f(self, x):
        return np.tanh(x)

    def df_dx(self, x):
        t = np.tanh(x)
        return 1.0 - t * t


def relu(a: Any) -> Tensor:
    return unary_op(Relu(), a)


def softplus(a: Any) -> Tensor:
    return unary_op(Softplus(), a)


def sigmoid(a: Any) -> Tensor:
    return unary_op(Sigmoid(), a)


def tanh(a: Any) -> Tensor:
    return unary_op(Tanh(), a)


def softmax(a: Any, chunk: Optional[int] = None) -> Tensor:
    """
    Exponential softmax over consecutive `chunk`-element runs of `a`
    (the last dimension by default).

    Examples
    --------
    >>> softmax(tensor([0.0, 1.0])).tolist()    # doctest: +SKIP
    [0.2689414322376251, 0.7310585975646973]
    """
    return softmax_op(Softmax(), a, chunk)
