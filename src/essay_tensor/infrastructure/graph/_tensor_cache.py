"""
Materialized tensor storage for a graph.

A `TensorCache` maps the ids of one graph to evaluated values. Slots start
unset; during a replay pass each slot is written at most once and must be
written before any later node reads it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ...domain._errors import GraphInvariantError, UnsetTensorError
from ._tensor_id import ModelId, TensorId

if TYPE_CHECKING:
    from ..tensor._tensor import Tensor


class TensorCache:
    """
    Id-indexed tensor slots belonging to one graph.

    Parameters
    ----------
    model : ModelId
        Tag of the owning graph. Ids from other graphs are rejected.
    """

    def __init__(self, model: ModelId) -> None:
        self._model = model
        self._tensors: List[Optional["Tensor"]] = []

    @property
    def model(self) -> ModelId:
        return self._model

    def __len__(self) -> int:
        return len(self._tensors)

    def new_id(self, index: int) -> TensorId:
        return TensorId(self._model, index)

    def push(self, tensor: Optional["Tensor"]) -> None:
        self._tensors.append(tensor)

    def _index(self, id: TensorId) -> int:
        if id.model != self._model:
            raise GraphInvariantError(
                f"tensor id {id!r} does not belong to graph {self._model.value}"
            )
        if not 0 <= id.index < len(self._tensors):
            raise GraphInvariantError(f"tensor id {id!r} is out of range")
        return id.index

    def get(self, id: TensorId) -> Optional["Tensor"]:
        """
        Return the value at `id`, or None if the slot is unset.
        """
        return self._tensors[self._index(id)]

    def is_set(self, id: TensorId) -> bool:
        return self.get(id) is not None

    def __getitem__(self, id: TensorId) -> "Tensor":
        """
        Return the value at `id`.

        Raises
        ------
        UnsetTensorError
            If the slot has not been written.
        """
        tensor = self._tensors[self._index(id)]
        if tensor is None:
            raise UnsetTensorError(id)
        return tensor

    def set(self, id: TensorId, tensor: "Tensor") -> None:
        """
        Write the slot at `id`.

        Raises
        ------
        GraphInvariantError
            If the slot was already written.
        """
        index = self._index(id)
        if self._tensors[index] is not None:
            raise GraphInvariantError(f"tensor {id!r} written twice")
        self._tensors[index] = tensor

    def copy(self) -> "TensorCache":
        cache = TensorCache(self._model)
        cache._tensors = list(self._tensors)
        return cache

    def last(self) -> "Tensor":
        """
        Return the value of the last slot.

        Raises
        ------
        UnsetTensorError
            If the cache is empty or the last slot is unset.
        """
        if not self._tensors:
            raise UnsetTensorError(None)
        return self[self.new_id(len(self._tensors) - 1)]
