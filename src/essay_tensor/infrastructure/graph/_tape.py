"""
Thread-local recording context.

A `Tape` wraps exactly one `Graph` while user code runs. Kernel wrappers
funnel node registration through the static helpers on `Tape` (`alloc_id`,
`set_node`, `set_tensor`, ...), which are no-ops, or return None, when no tape
is active on the calling thread. Eager use of the tensor library therefore
never touches a graph.

Usage
-----
>>> with Tape.begin() as tape:
...     y = x.tensor() * 2.0
>>> tape.gradient(x)

At most one tape may be active per thread; `Tape.begin()` while another is
active raises `NestedTapeError`.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional, Sequence

from ...domain._errors import InactiveTapeError, NestedTapeError, TapeError
from ...domain._operation import Operation
from ._graph import Graph
from ._node_op import NodeOp, OpNode
from ._tensor_id import TensorId

if TYPE_CHECKING:
    from .._var import Var
    from ..tensor._tensor import Tensor

logger = logging.getLogger(__name__)

_local = threading.local()


def _active() -> Optional["Tape"]:
    return getattr(_local, "tape", None)


class Tape:
    """
    Recording session for one graph.

    Instances are created by `Tape.begin()`; the graph is released by
    `end()` (or by leaving a ``with`` block).
    """

    def __init__(self) -> None:
        self._graph = Graph()
        self._recording = False

    @property
    def graph(self) -> Graph:
        return self._graph

    def is_recording(self) -> bool:
        """
        Return True while this tape is the active tape of its thread.
        """
        return self._recording and _active() is self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @classmethod
    def begin(cls) -> "Tape":
        """
        Install a fresh tape as the calling thread's recording context.

        Raises
        ------
        NestedTapeError
            If a tape is already active on this thread.
        """
        if _active() is not None:
            raise NestedTapeError()

        tape = cls()
        tape._recording = True
        _local.tape = tape
        logger.debug("tape begin: graph %d", tape._graph.model.value)
        return tape

    def end(self) -> Graph:
        """
        Stop recording and return the graph.

        Raises
        ------
        InactiveTapeError
            If this tape is not the active tape of the calling thread.
        """
        if not self.is_recording():
            raise InactiveTapeError("end")

        _local.tape = None
        self._recording = False
        logger.debug(
            "tape end: graph %d with %d nodes", self._graph.model.value, len(self._graph)
        )
        return self._graph

    def __enter__(self) -> "Tape":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.is_recording():
            self.end()

    # ------------------------------------------------------------------
    # Registration API for kernel wrappers
    # ------------------------------------------------------------------
    @staticmethod
    def is_active() -> bool:
        return _active() is not None

    @staticmethod
    def current() -> Optional["Tape"]:
        return _active()

    @staticmethod
    def alloc_id() -> Optional[TensorId]:
        """
        Return the next id of the active graph, or None when not recording.
        """
        tape = _active()
        if tape is None:
            return None
        return tape._graph.alloc_id()

    @staticmethod
    def set_node(id: TensorId, node: NodeOp) -> None:
        tape = _active()
        if tape is None:
            raise InactiveTapeError("set_node")
        tape._graph.set_node(id, node)

    @staticmethod
    def set_tensor(tensor: "Tensor") -> "Tensor":
        """
        Capture `tensor` under its own id in the active graph.

        Untagged tensors, and any tensor when no tape is active, are
        returned unchanged.
        """
        tape = _active()
        if tape is None or tensor.id is None:
            return tensor
        return tape._graph.set_tensor(tensor.id, tensor)

    @staticmethod
    def set_tensor_id(id: TensorId, tensor: "Tensor") -> "Tensor":
        tape = _active()
        if tape is None:
            raise InactiveTapeError("set_tensor_id")
        return tape._graph.set_tensor(id, tensor)

    @staticmethod
    def input_id(tensor: "Tensor") -> TensorId:
        """
        Return the active-graph id for `tensor`, capturing it as a constant
        when it was not recorded by this graph.
        """
        tape = _active()
        if tape is None:
            raise InactiveTapeError("input_id")
        return tape._graph.input_id(tensor)

    @staticmethod
    def var(var: "Var") -> "Tensor":
        tape = _active()
        if tape is None:
            raise InactiveTapeError("var")
        return tape._graph.var(var)

    # ------------------------------------------------------------------
    # Gradients
    # ------------------------------------------------------------------
    def gradient(self, var: "Var") -> "Tensor":
        """
        Return the gradient of the graph's tail with respect to `var`.

        Uses the values captured during recording, so the tape must have
        ended. A Var the tail does not depend on gets a zeros tensor.

        Raises
        ------
        TapeError
            If the tape is still recording.
        """
        from ..tensor._tensor import Tensor
        from ._backprop import backprop_graph

        if self._recording:
            raise TapeError("Tape.gradient requires an ended tape")

        target = self._graph.get_id_by_var(var)
        back = None if target is None else backprop_graph(self._graph, target)
        if back is None:
            return Tensor.zeros_like(var.tensor_raw())

        out = back.apply(fwd=self._graph.tensors)
        return out[back.tail_id()].with_id(None)


def record_op(op: Operation, args: Sequence["Tensor"]) -> "Tensor":
    """
    Evaluate `op` on `args`, recording an `Op` node when a tape is active.

    Parameters
    ----------
    op : Operation
        The operation to apply.
    args : Sequence[Tensor]
        Argument values. Values not produced by the active graph become
        `Const` nodes.

    Returns
    -------
    Tensor
        The result, tagged with the new node's id when recording.
    """
    if not Tape.is_active():
        return op.f(args, None)

    arg_ids = tuple(Tape.input_id(a) for a in args)

    id = Tape.alloc_id()
    Tape.set_node(id, OpNode(id, op, arg_ids))

    return Tape.set_tensor_id(id, op.f(args, id))
