"""
Element kernel contracts.

Kernels hold the actual numeric formulas of the engine. They own no graph
state: each kernel is a small value object whose methods operate on NumPy
arrays elementwise (or, for softmax, chunkwise). The generic Operation
adapters in `infrastructure.ops` apply them across broadcast-aware loops.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Kernel(ABC):
    """
    Common base for element kernels.

    Kernels compare equal when they are of the same type and carry the same
    parameters, so that two nodes built from the same kernel are
    interchangeable.
    """

    def name(self) -> str:
        return type(self).__name__

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(vars(self).items()))))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({params})"


class BinaryKernel(Kernel):
    """
    Two-argument elementwise kernel ``out = f(x, y)``.
    """

    @abstractmethod
    def f(self, x: Any, y: Any) -> Any: ...

    @abstractmethod
    def df_dx(self, x: Any, y: Any) -> Any: ...

    @abstractmethod
    def df_dy(self, x: Any, y: Any) -> Any: ...


class UnaryKernel(Kernel):
    """
    One-argument elementwise kernel ``out = f(x)``.
    """

    @abstractmethod
    def f(self, x: Any) -> Any: ...

    @abstractmethod
    def df_dx(self, x: Any) -> Any: ...


class ReduceKernel(Kernel):
    """
    Fold kernel applied along one axis.

    The fold starts from `init()`, combines each element with
    ``state = f(state, a)`` and produces ``value(state)``. The gradient of
    the fold with respect to an element is ``df_dx(a)``.
    """

    def init(self) -> float:
        return 0.0

    @abstractmethod
    def f(self, state: Any, a: Any) -> Any: ...

    def value(self, state: Any) -> Any:
        return state

    @abstractmethod
    def df_dx(self, a: Any) -> Any: ...


class SoftmaxKernel(Kernel):
    """
    Chunk-normalizing kernel.

    For each chunk, ``w = weight(a)`` is computed per element, the chunk sum
    of `w` is inverted (with a fallback of 1 when it is too small), and
    ``f(a, w, inv_sum)`` gives the output. `df_dx` maps a chunk of outputs
    and upstream gradients to the chunk's input gradient.
    """

    @abstractmethod
    def weight(self, a: Any) -> Any: ...

    @abstractmethod
    def f(self, a: Any, weight: Any, inv_sum: Any) -> Any: ...

    @abstractmethod
    def df_dx(self, out: Any, grad: Any) -> Any: ...
