"""
Node store and replay engine.

A `Graph` is an append-only list of `NodeOp` slots plus a `TensorCache` of
values. The same type represents both forward graphs (recorded by a `Tape`)
and reverse graphs (built by the backprop builder).

Invariants
----------
- Node ids are allocated monotonically; a node may only reference ids of the
  same graph whose index is strictly smaller than its own. Construction
  order is therefore a valid evaluation order and graphs cannot contain
  cycles.
- `apply` evaluates nodes in id order into a cache whose slots are each
  written once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from ...domain._errors import GraphInvariantError, UnsetTensorError
from ...domain._operation import GradientOp, Operation
from ._node_op import (
    ArgNode,
    ConstNode,
    GradAccumNode,
    GradConstNode,
    GradSeedNode,
    GradOpNode,
    NodeOp,
    NoneNode,
    OpNode,
    VarNode,
)
from ._tensor_cache import TensorCache
from ._tensor_id import ModelId, TensorId

if TYPE_CHECKING:
    from .._var import Var, VarId
    from ..tensor._tensor import Tensor

logger = logging.getLogger(__name__)


class Graph:
    """
    Ordered node list with a tensor cache.

    Notes
    -----
    A graph is not thread-safe. During recording it is owned by exactly one
    `Tape`; afterwards it is only read, except by `apply`, which writes into
    a caller-supplied or freshly created cache.
    """

    def __init__(self) -> None:
        self._model = ModelId.alloc()
        self._nodes: List[NodeOp] = []
        self._tensors = TensorCache(self._model)
        self._var_map: Dict["VarId", TensorId] = {}
        self._tracked_vars: List["Var"] = []
        self._tail: Optional[TensorId] = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def model(self) -> ModelId:
        return self._model

    @property
    def nodes(self) -> Tuple[NodeOp, ...]:
        return tuple(self._nodes)

    @property
    def tensors(self) -> TensorCache:
        """
        Return the cache of values captured while the graph was built.
        """
        return self._tensors

    @property
    def tracked_vars(self) -> Tuple["Var", ...]:
        """
        Return every Var registered as a leaf, in registration order.
        """
        return tuple(self._tracked_vars)

    def __len__(self) -> int:
        return len(self._nodes)

    def owns(self, id: Optional[TensorId]) -> bool:
        """
        Return True if `id` is an allocated id of this graph.
        """
        return (
            id is not None
            and isinstance(id, TensorId)
            and id.model == self._model
            and 0 <= id.index < len(self._nodes)
        )

    def _check_id(self, id: TensorId) -> int:
        if not self.owns(id):
            raise GraphInvariantError(
                f"tensor id {id!r} does not belong to graph {self._model.value}"
            )
        return id.index

    def node(self, id: TensorId) -> NodeOp:
        return self._nodes[self._check_id(id)]

    def tensor(self, id: TensorId) -> Optional["Tensor"]:
        """
        Return the captured value of `id`, or None if unset.
        """
        return self._tensors.get(id)

    def ids(self) -> List[TensorId]:
        return [self._tensors.new_id(i) for i in range(len(self._nodes))]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def alloc_id(self) -> TensorId:
        """
        Reserve the next slot and return its id.

        The slot holds a `NoneNode` until `set_node` fills it in.
        """
        id = self._tensors.new_id(len(self._nodes))
        self._nodes.append(NoneNode(id))
        self._tensors.push(None)
        return id

    def set_node(self, id: TensorId, node: NodeOp) -> None:
        """
        Fill in the node of an allocated slot.

        Raises
        ------
        GraphInvariantError
            If the slot is already filled, `node` carries a different id, or
            any referenced id is foreign or not strictly smaller than `id`.
        """
        index = self._check_id(id)

        if not isinstance(self._nodes[index], NoneNode):
            raise GraphInvariantError(f"node {id!r} is already set")
        if node.id != id:
            raise GraphInvariantError(f"node {node!r} stored at {id!r}")

        for arg in node.arg_ids():
            if not self.owns(arg) or arg.index >= index:
                raise GraphInvariantError(
                    f"node {id!r} references {arg!r}, which is not an earlier node"
                )

        self._nodes[index] = node
        logger.debug("set_node %d: %r", index, node)

    def set_tensor(self, id: TensorId, tensor: "Tensor") -> "Tensor":
        """
        Capture the value of `id`, returning it tagged with `id`.
        """
        if tensor.id != id:
            tensor = tensor.with_id(id)
        self._tensors.set(id, tensor)
        return tensor

    def arg(self, tensor: Optional["Tensor"] = None) -> TensorId:
        """
        Append an externally supplied input, optionally capturing a sample
        value for it.
        """
        id = self.alloc_id()
        self.set_node(id, ArgNode(id))
        if tensor is not None:
            self.set_tensor(id, tensor)
        return id

    def constant(self, tensor: "Tensor") -> TensorId:
        """
        Append a captured literal.
        """
        id = self.alloc_id()
        self.set_node(id, ConstNode(id))
        self.set_tensor(id, tensor)
        return id

    def input_id(self, tensor: "Tensor") -> TensorId:
        """
        Return the id to use for `tensor` as an argument of a new node.

        Tensors recorded by this graph are referenced by their id; anything
        else (untagged values, or values from another graph) is captured as
        a constant.
        """
        if self.owns(tensor.id):
            return tensor.id
        return self.constant(tensor)

    def add_op(self, op: Operation, args: Sequence[TensorId]) -> TensorId:
        id = self.alloc_id()
        self.set_node(id, OpNode(id, op, tuple(args)))
        return id

    def add_grad_constant(self, forward_id: TensorId) -> TensorId:
        id = self.alloc_id()
        self.set_node(id, GradConstNode(id, forward_id))
        return id

    def add_grad_seed(self, forward_id: TensorId) -> TensorId:
        id = self.alloc_id()
        self.set_node(id, GradSeedNode(id, forward_id))
        return id

    def add_grad_op(
        self, op: GradientOp, args: Sequence[TensorId], prev: TensorId
    ) -> TensorId:
        id = self.alloc_id()
        self.set_node(id, GradOpNode(id, op, tuple(args), prev))
        return id

    def add_grad_accum(self, grads: Sequence[TensorId]) -> TensorId:
        id = self.alloc_id()
        self.set_node(id, GradAccumNode(id, tuple(grads)))
        return id

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------
    def var(self, var: "Var") -> "Tensor":
        """
        Register `var` as a leaf (once per graph) and return its value
        tagged with the leaf id.
        """
        id = self._var_map.get(var.id)

        if id is None:
            id = self.alloc_id()
            self.set_node(id, VarNode(id, var))
            self.set_tensor(id, var.tensor_raw())
            self._var_map[var.id] = id
            self._tracked_vars.append(var)

        return self._tensors[id]

    def get_id_by_var(self, var: "Var") -> Optional[TensorId]:
        return self._var_map.get(var.id)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def set_tail(self, id: Optional[TensorId]) -> None:
        if id is not None:
            self._check_id(id)
        self._tail = id

    def tail_id(self) -> Optional[TensorId]:
        """
        Return the output id: the explicit tail if one was set, otherwise
        the last node (None for an empty graph).
        """
        if self._tail is not None:
            return self._tail
        if not self._nodes:
            return None
        return self._tensors.new_id(len(self._nodes) - 1)

    # ------------------------------------------------------------------
    # Validation and replay
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """
        Check the ordering invariant over every node.

        Raises
        ------
        GraphInvariantError
            If any node is unfilled or references a non-earlier id.
        """
        for index, node in enumerate(self._nodes):
            if isinstance(node, NoneNode):
                raise GraphInvariantError(f"node {index} was allocated but never set")
            for arg in node.arg_ids():
                if not self.owns(arg) or arg.index >= index:
                    raise GraphInvariantError(
                        f"node {index} references {arg!r}, which is not an earlier node"
                    )

    def replay_cache(self) -> TensorCache:
        """
        Return a cache with only the constant slots filled in.
        """
        cache = TensorCache(self._model)
        for node in self._nodes:
            value = None
            if isinstance(node, ConstNode):
                value = self._tensors[node.id]
            cache.push(value)
        return cache

    def apply(
        self,
        out: Optional[TensorCache] = None,
        fwd: Optional[TensorCache] = None,
    ) -> TensorCache:
        """
        Evaluate every node in id order.

        Parameters
        ----------
        out : Optional[TensorCache]
            Cache to evaluate into. Input slots (`Arg`, `Const`) must already
            be set; every other slot must be unset. Defaults to
            `replay_cache()`, which is sufficient for graphs without `Arg`
            nodes.
        fwd : Optional[TensorCache]
            Forward-graph values read by reverse nodes. Required only when
            replaying a reverse graph.

        Returns
        -------
        TensorCache
            The filled cache.

        Raises
        ------
        GraphInvariantError
            If a `None` node is encountered.
        UnsetTensorError
            If an input slot, or a value a node reads, is unset.
        """
        if out is None:
            out = self.replay_cache()

        for node in self._nodes:
            if isinstance(node, NoneNode):
                raise GraphInvariantError(f"cannot replay unfilled node {node.id!r}")
            if node.is_input():
                if not out.is_set(node.id):
                    raise UnsetTensorError(node.id)
                continue
            out.set(node.id, node.eval(out, fwd))

        return out

    def __repr__(self) -> str:
        lines: List[Any] = [f"Graph(model={self._model.value}) {{"]
        for index, node in enumerate(self._nodes):
            lines.append(f"  {index}: {node!r}")
        lines.append("}")
        return "\n".join(lines)
