"""
Graph-local tensor ids and graph generation tags.

A `TensorId` pairs the index of a node inside its graph with the `ModelId`
of that graph. The tag lets the engine recognize tensors recorded by a
different (possibly still live) graph and treat them as constants instead of
dereferencing a foreign index.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass

_model_counter = itertools.count()
_model_lock = threading.Lock()


@dataclass(frozen=True, order=True)
class ModelId:
    """
    Globally unique graph generation tag.
    """

    value: int

    @classmethod
    def alloc(cls) -> "ModelId":
        with _model_lock:
            return cls(next(_model_counter))

    def index(self) -> int:
        return self.value


@dataclass(frozen=True)
class TensorId:
    """
    Identifier of a node/value slot within one graph.

    Attributes
    ----------
    model : ModelId
        The owning graph's tag.
    index : int
        Position of the node in the graph's node list. Allocated
        monotonically and never reused while the graph is live.
    """

    model: ModelId
    index: int

    def __repr__(self) -> str:
        return f"#{self.model.value}:{self.index}"
