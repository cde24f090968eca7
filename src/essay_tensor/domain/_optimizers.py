"""
Domain-level optimizer contracts for essay_tensor.

This module defines the `IOptimizer` protocol, which specifies the minimal
interface required for optimizer implementations (e.g., SGD, Adam).

Notes
-----
- Domain contracts are backend-agnostic and must not depend on NumPy or
  infrastructure implementations.
- Optimizers update variables outside the recorded graph, using gradients
  produced by replaying reverse graphs.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimizer interface contract.

    Required methods
    ----------------
    - `apply_gradients(grads_and_vars)` applies one update from explicit
      ``(gradient, variable)`` pairs.
    - `minimize(train)` pulls every gradient from a training pass and applies
      them.
    """

    def apply_gradients(self, grads_and_vars: Sequence[Tuple[Any, Any]]) -> None:
        """
        Apply one optimization step from ``(gradient, variable)`` pairs.
        """
        ...

    def minimize(self, train: Any) -> None:
        """
        Apply one optimization step using every gradient of `train`.
        """
        ...

    @property
    def vars(self) -> Iterable[object]:
        """
        Return the variables managed by this optimizer.
        """
        ...
