"""
Loss functions.

Losses are compositions of recorded primitives, so they differentiate like
any other expression when evaluated under a tape.

- `l2_loss`           : ``0.5 / n * sum(a^2)`` folded over the last axis
- `sum_square_error`  : ``sum((pred - target)^2)``
- `mean_square_error` : ``mean((pred - target)^2)``
"""

from __future__ import annotations

from typing import Any

from ._math import reduce_mean, reduce_sum, square, sub
from .ops._reduce_op import L2Loss, reduce_op
from .tensor._tensor import Tensor, as_tensor


def l2_loss(a: Any) -> Tensor:
    """
    Half the mean-per-row sum of squares.

    Folds the last axis of `a` with ``0.5 / n * a^2`` where `n` is the last
    dimension (1 for a scalar). Rank-0 and rank-1 inputs yield a scalar;
    higher ranks keep the leading dimensions.

    Examples
    --------
    ``l2_loss(2.0) == 2.0`` and ``l2_loss([1.0, 2.0]) == 1.25``.
    """
    x = as_tensor(a)
    return reduce_op(L2Loss(x.dim_tail()), x, -1 if x.rank > 0 else None)


def sum_square_error(pred: Any, target: Any) -> Tensor:
    return reduce_sum(square(sub(pred, target)))


def mean_square_error(pred: Any, target: Any) -> Tensor:
    """
    Mean squared error over every element.

    `target` is broadcast against `pred` with the usual trailing-dimension
    rule.
    """
    return reduce_mean(square(sub(pred, target)))
