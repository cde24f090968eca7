"""
Two-dimensional matrix multiplication.

Forward:

    C = A @ B               A: (m, k), B: (k, n), C: (m, n)

Backward, for upstream gradient G shaped like C:

    dA = G @ B^T
    dB = A^T @ G
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ...domain._errors import GraphInvariantError, ShapeMismatchError
from ...domain._operation import GradientOp, Operation
from ..graph._tape import record_op
from ..tensor._tensor import Tensor, as_tensor


def _check_matmul(a: Tensor, b: Tensor) -> None:
    if a.rank != 2 or b.rank != 2 or a.shape[1] != b.shape[0]:
        raise ShapeMismatchError("matmul", a.shape, b.shape)


def _as_matrix(t: Tensor) -> np.ndarray:
    return t.as_flat().reshape(t.shape)


class MatMul(Operation):
    def f(self, args: Sequence[Tensor], id: Any) -> Tensor:
        a, b = args
        _check_matmul(a, b)
        return Tensor.from_numpy(_as_matrix(a) @ _as_matrix(b), id=id)

    def df(self, forward, back, i, args, prev):
        if i == 0:
            return back.add_grad_op(MatMulDa(), args, prev)
        if i == 1:
            return back.add_grad_op(MatMulDb(), args, prev)
        raise GraphInvariantError(f"{self.name()} has no argument {i}")


class MatMulDa(GradientOp):
    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        _, b = args
        return Tensor.from_numpy(_as_matrix(prev) @ _as_matrix(b).T)


class MatMulDb(GradientOp):
    def df(self, args: Sequence[Tensor], prev: Tensor) -> Tensor:
        a, _ = args
        return Tensor.from_numpy(_as_matrix(a).T @ _as_matrix(prev))


def matmul(a: Any, b: Any) -> Tensor:
    """
    Multiply two rank-2 tensors, recording a graph node when a tape is
    active.

    Raises
    ------
    ShapeMismatchError
        If either operand is not rank 2 or the inner dimensions differ.
    """
    x = as_tensor(a)
    y = as_tensor(b)
    _check_matmul(x, y)
    return record_op(MatMul(), [x, y])
