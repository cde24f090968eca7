"""
Concrete trainable variable implementation.

A `Var` is a named handle to a shared, mutable tensor cell. It is the
engine's counterpart of a trainable parameter: graphs never own its value,
they register a `Var` leaf node and read the cell whenever they replay.

Design notes
------------
- Every `Var` gets a globally unique `VarId`. Copies made with
  `copy.copy` alias the same cell *and* the same id, so a graph treats them
  as the same leaf.
- Reads are explicit. `tensor()` registers the Var with the calling thread's
  active tape, if any; `read(tape)` does the same against a given tape and
  fails loudly if that tape is not recording.
- The cell is guarded by a lock so individual reads and writes are atomic.
  Nothing orders writes against a concurrent graph replay; callers must not
  update a Var while a replay that reads it is running.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ..domain._errors import InactiveTapeError, ShapeMismatchError
from ..domain._var import IVar
from .graph._tape import Tape
from .tensor._tensor import Tensor, as_tensor

_var_counter = itertools.count()
_var_lock = threading.Lock()


@dataclass(frozen=True, order=True)
class VarId:
    """
    Globally unique variable id.
    """

    value: int

    @classmethod
    def alloc(cls) -> "VarId":
        with _var_lock:
            return cls(next(_var_counter))

    def index(self) -> int:
        return self.value


class _TensorShare:
    """
    Lock-protected tensor cell shared by aliasing `Var` handles.
    """

    def __init__(self, tensor: Tensor) -> None:
        self._lock = threading.Lock()
        self._tensor = tensor

    def get(self) -> Tensor:
        with self._lock:
            return self._tensor

    def set(self, tensor: Tensor) -> None:
        with self._lock:
            self._tensor = tensor

    def sub(self, delta: np.ndarray) -> None:
        with self._lock:
            current = self._tensor
            updated = current.to_numpy() - delta
            if updated.shape != current.shape:
                raise ShapeMismatchError("assign_sub", current.shape, delta.shape)
            self._tensor = Tensor.from_numpy(updated)


class Var(IVar):
    """
    Named, shared, mutable tensor.

    Parameters
    ----------
    tensor : Tensor or array-like
        Initial value.
    name : Optional[str]
        Display name. Defaults to ``"var"``.
    """

    def __init__(self, tensor: Any, name: Optional[str] = None) -> None:
        self._id = VarId.alloc()
        self._name = "var" if name is None else str(name)
        self._share = _TensorShare(as_tensor(tensor).with_id(None))

    @property
    def id(self) -> VarId:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def shape(self) -> tuple[int, ...]:
        return self._share.get().shape

    def tensor(self) -> Tensor:
        """
        Read the value, registering this Var as a leaf of the active tape.

        Returns
        -------
        Tensor
            The value tagged with the leaf id when a tape is active on the
            calling thread, otherwise the untagged current value.
        """
        if Tape.is_active():
            return Tape.var(self)
        return self.tensor_raw()

    def read(self, tape: Tape) -> Tensor:
        """
        Register this Var with `tape` and return its tagged value.

        Raises
        ------
        InactiveTapeError
            If `tape` is not the recording tape of the calling thread.
        """
        if not tape.is_recording():
            raise InactiveTapeError("read")
        return tape.graph.var(self)

    def tensor_raw(self) -> Tensor:
        """
        Return the current value without touching any tape.
        """
        return self._share.get()

    def set(self, tensor: Any) -> None:
        self._share.set(as_tensor(tensor).with_id(None))

    def assign_sub(self, delta: Any) -> None:
        """
        Subtract `delta` from the value in place.

        Parameters
        ----------
        delta : Tensor or array-like
            Broadcastable to the Var's shape.

        Raises
        ------
        ShapeMismatchError
            If the subtraction would change the Var's shape.
        """
        self._share.sub(np.asarray(delta))

    def __copy__(self) -> "Var":
        alias = type(self).__new__(type(self))
        alias._id = self._id
        alias._name = self._name
        alias._share = self._share
        return alias

    def __repr__(self) -> str:
        return f"Var({self._name!r}, id={self._id.value}, {self.tensor_raw()!r})"
