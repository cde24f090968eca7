"""
Trainable variable interface definitions.

A variable is a named, shared, mutable tensor cell. Reads inside an active
recording context register the variable as a graph leaf; writes happen
outside the graph (e.g., from an optimizer step) and are visible to every
handle aliasing the same cell.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class IVar(Protocol):
    """
    Domain-level interface for trainable variables.

    Notes
    -----
    - `id` is globally unique; names are informational only.
    - Mutation is not synchronized with graph replay. Callers must not
      update a variable while a replay that reads it is running.
    """

    @property
    def id(self) -> Any:
        """
        Return the globally unique variable id.
        """
        ...

    @property
    def name(self) -> str:
        """
        Return the variable's display name.
        """
        ...

    def tensor(self) -> ITensor:
        """
        Read the current value.

        Returns
        -------
        ITensor
            Inside an active tape, the value tagged with the variable's leaf
            node id; otherwise the raw current value.
        """
        ...

    def set(self, tensor: ITensor) -> None:
        """
        Replace the shared value.
        """
        ...

    def assign_sub(self, delta: ITensor) -> None:
        """
        Decrement the shared value in place by `delta`.
        """
        ...
