"""
Tensor interface definitions.

This module defines the domain-level interface for tensor values using
structural typing. The engine only needs a shaped numeric buffer that can
be tagged with the id of the graph node that produced it; everything else
(element storage, dtype, broadcasting arithmetic) belongs to the concrete
implementation.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor interface.

    An `ITensor` is an immutable, shaped, flat numeric buffer. When produced
    inside an active recording context it also carries the id of the graph
    node that computed it.
    """

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the shape of the tensor.

        Returns
        -------
        tuple[int, ...]
            The tensor's shape; ``()`` for a scalar.
        """
        ...

    @property
    def size(self) -> int:
        """
        Return the number of elements.

        Returns
        -------
        int
            Product of the shape, ``1`` for a scalar.
        """
        ...

    @property
    def rank(self) -> int:
        """
        Return the number of dimensions.
        """
        ...

    @property
    def id(self) -> Optional[Any]:
        """
        Return the graph id attached to this tensor, if any.

        Returns
        -------
        Optional[TensorId]
            The node id inside the graph that produced this value, or None
            for tensors created outside a recording context.
        """
        ...

    def to_numpy(self) -> Any:
        """
        Return a NumPy copy of the tensor data.
        """
        ...
