"""
Gradient-descent optimizers over `Var`s.

Optimizers run outside any recorded graph: they take gradients produced by
replaying reverse graphs (see `Train.gradients`) and update each Var's
shared value in place with `Var.assign_sub` or `Var.set`. Arithmetic is done
on NumPy arrays so an optimizer step never records nodes, even when called
while a tape is active.

- `SGD`  : ``p <- p - lr * (g + weight_decay * p)``
- `Adam` : bias-corrected first/second moment estimates
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence, Tuple

import numpy as np

from ._var import Var, VarId

logger = logging.getLogger(__name__)


@dataclass
class SGD:
    """
    Stochastic Gradient Descent optimizer.

    Parameters
    ----------
    vars : Iterable[Var]
        Variables to optimize.
    lr : float, optional
        Learning rate. Must be > 0. Defaults to 1e-3.
    weight_decay : float, optional
        Classical (coupled) L2 coefficient. Must be >= 0. Defaults to 0.0.

    Raises
    ------
    ValueError
        If ``lr <= 0`` or ``weight_decay < 0``.
    """

    vars: Sequence[Var]
    lr: float = 1e-3
    weight_decay: float = 0.0

    def __init__(
        self,
        vars: Iterable[Var],
        *,
        lr: float = 1e-3,
        weight_decay: float = 0.0,
    ) -> None:
        self.vars = list(vars)
        self.lr = float(lr)
        self.weight_decay = float(weight_decay)

        if self.lr <= 0.0:
            raise ValueError(f"lr must be > 0, got {self.lr}")
        if self.weight_decay < 0.0:
            raise ValueError(f"weight_decay must be >= 0, got {self.weight_decay}")

    def apply_gradients(self, grads_and_vars: Sequence[Tuple[Any, Var]]) -> None:
        """
        Apply one update from ``(gradient, var)`` pairs.
        """
        for grad, var in grads_and_vars:
            g = np.asarray(grad, dtype=np.float64)
            if self.weight_decay != 0.0:
                g = g + self.weight_decay * np.asarray(var.tensor_raw(), dtype=np.float64)

            var.assign_sub(self.lr * g)
            logger.debug("sgd step on %s", var.name)

    def minimize(self, train: Any) -> None:
        """
        Apply one update using `train.gradient(var)` for every managed Var.
        """
        self.apply_gradients([(train.gradient(var), var) for var in self.vars])


@dataclass
class Adam:
    """
    Adam optimizer.

    Update rule
    -----------
    For gradient ``g_t`` at step ``t`` of a given Var:

        m_t = beta1 * m_{t-1} + (1 - beta1) * g_t
        v_t = beta2 * v_{t-1} + (1 - beta2) * (g_t ** 2)

        m_hat = m_t / (1 - beta1^t)
        v_hat = v_t / (1 - beta2^t)

        p <- p - lr * m_hat / (sqrt(v_hat) + eps)

    Parameters
    ----------
    vars : Iterable[Var]
        Variables to optimize.
    lr : float, optional
        Learning rate. Must be > 0. Defaults to 1e-3.
    betas : tuple[float, float], optional
        Decay rates, each in (0, 1). Defaults to (0.9, 0.999).
    eps : float, optional
        Denominator epsilon. Must be > 0. Defaults to 1e-8.

    Notes
    -----
    Moment state is kept per `VarId`, so aliases of one Var share it.
    """

    vars: Sequence[Var]
    lr: float = 1e-3
    betas: Tuple[float, float] = (0.9, 0.999)
    eps: float = 1e-8

    def __init__(
        self,
        vars: Iterable[Var],
        *,
        lr: float = 1e-3,
        betas: Tuple[float, float] = (0.9, 0.999),
        eps: float = 1e-8,
    ) -> None:
        self.vars = list(vars)
        self.lr = float(lr)
        self.betas = (float(betas[0]), float(betas[1]))
        self.eps = float(eps)

        if self.lr <= 0.0:
            raise ValueError(f"lr must be > 0, got {self.lr}")
        b1, b2 = self.betas
        if not (0.0 < b1 < 1.0 and 0.0 < b2 < 1.0):
            raise ValueError(f"betas must be in (0,1), got {self.betas}")
        if self.eps <= 0.0:
            raise ValueError(f"eps must be > 0, got {self.eps}")

        self._m: Dict[VarId, np.ndarray] = {}
        self._v: Dict[VarId, np.ndarray] = {}
        self._t: Dict[VarId, int] = {}

    def apply_gradients(self, grads_and_vars: Sequence[Tuple[Any, Var]]) -> None:
        """
        Apply one update from ``(gradient, var)`` pairs.
        """
        b1, b2 = self.betas

        for grad, var in grads_and_vars:
            g = np.asarray(grad, dtype=np.float64)
            key = var.id

            m = self._m.get(key, np.zeros_like(g))
            v = self._v.get(key, np.zeros_like(g))
            t = self._t.get(key, 0) + 1

            m = b1 * m + (1.0 - b1) * g
            v = b2 * v + (1.0 - b2) * (g * g)

            m_hat = m / (1.0 - b1**t)
            v_hat = v / (1.0 - b2**t)

            self._m[key] = m
            self._v[key] = v
            self._t[key] = t

            var.assign_sub(self.lr * m_hat / (np.sqrt(v_hat) + self.eps))
            logger.debug("adam step %d on %s", t, var.name)

    def minimize(self, train: Any) -> None:
        """
        Apply one update using `train.gradient(var)` for every managed Var.
        """
        self.apply_gradients([(train.gradient(var), var) for var in self.vars])
