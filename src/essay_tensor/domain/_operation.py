"""
Graph operation interface definitions.

This module defines the two contracts every differentiable kernel must
satisfy to participate in recording and reverse-mode differentiation:

- `Operation` is stored in forward `Op` nodes. `f` evaluates the node from
  concrete argument values; `df` is called while a *reverse* graph is being
  built and appends the nodes that will compute one argument's gradient.
- `GradientOp` is stored in reverse `GradOp` nodes. Its `df` is a pure
  function of the original forward inputs and the upstream gradient and is
  evaluated when the reverse graph is replayed.

The split mirrors the two phases of backprop: building the reverse graph
only touches ids, replaying it only touches values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Sequence

from ._errors import NoBackpropError
from ._tensor import ITensor


class IGraph(Protocol):
    """
    Minimal graph surface visible to `Operation.df` implementations.
    """

    def node(self, id: Any) -> Any: ...

    def tensor(self, id: Any) -> Optional[ITensor]: ...

    def add_grad_op(
        self, op: "GradientOp", args: Sequence[Any], prev: Any
    ) -> Any: ...

    def add_grad_constant(self, forward_id: Any) -> Any: ...


class Operation(ABC):
    """
    Abstract base class for forward graph operations.

    Subclasses implement `f`, and `df` when the operation is differentiable.
    Calling `df` on an operation that does not override it raises
    `NoBackpropError`; a missing gradient is never silently zero.
    """

    def name(self) -> str:
        """
        Return a human-readable operation name used in graph dumps and
        error messages.
        """
        return type(self).__name__

    @abstractmethod
    def f(self, args: Sequence[ITensor], id: Optional[Any]) -> ITensor:
        """
        Evaluate the operation.

        Parameters
        ----------
        args : Sequence[ITensor]
            Concrete argument values, in node argument order.
        id : Optional[TensorId]
            The id of the node being evaluated, attached to the result.
            None outside a recording context.

        Returns
        -------
        ITensor
            The computed value. Implementations must not touch any graph;
            registration is done by the caller.
        """
        ...

    def df(
        self,
        forward: IGraph,
        back: IGraph,
        i: int,
        args: Sequence[Any],
        prev: Any,
    ) -> Any:
        """
        Append reverse nodes computing the gradient of argument `i`.

        Parameters
        ----------
        forward : IGraph
            The forward graph containing this node.
        back : IGraph
            The reverse graph under construction.
        i : int
            Index of the argument whose gradient is requested.
        args : Sequence[TensorId]
            Forward ids of this node's arguments.
        prev : TensorId
            Reverse-graph id holding the upstream gradient.

        Returns
        -------
        TensorId
            Reverse-graph id holding argument `i`'s gradient contribution.

        Raises
        ------
        NoBackpropError
            If the operation is not differentiable.
        """
        raise NoBackpropError(self.name())


class GradientOp(ABC):
    """
    Abstract base class for reverse graph operations.
    """

    def name(self) -> str:
        """
        Return a human-readable operation name.
        """
        return type(self).__name__

    @abstractmethod
    def df(self, args: Sequence[ITensor], prev: ITensor) -> ITensor:
        """
        Compute a gradient contribution.

        Parameters
        ----------
        args : Sequence[ITensor]
            The original forward inputs of the node, read from the forward
            graph's cache.
        prev : ITensor
            The upstream gradient.

        Returns
        -------
        ITensor
            The gradient contribution, shaped like the differentiated input.
        """
        ...
