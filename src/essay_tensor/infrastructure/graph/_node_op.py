"""
Graph node variants.

Every slot of a `Graph` holds exactly one `NodeOp`:

- `NoneNode`      allocated but not yet filled in
- `ArgNode`       externally supplied input, set before each replay
- `ConstNode`     captured literal, stored in the graph's own cache
- `VarNode`       leaf bound to a `Var`; replay reads the Var's current value
- `OpNode`        forward computation
- `GradConstNode` reverse-graph passthrough of a forward value
- `GradSeedNode`  reverse-graph ones-tensor shaped like a forward value
- `GradOpNode`    reverse computation over forward inputs and an upstream
                  gradient
- `GradAccumNode` reverse-graph sum of several gradient contributions

Each variant knows how to evaluate itself during `Graph.apply`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from ...domain._errors import GraphInvariantError
from ...domain._operation import GradientOp, Operation
from ._tensor_cache import TensorCache
from ._tensor_id import TensorId

if TYPE_CHECKING:
    from ..tensor._tensor import Tensor


class NodeOp:
    """
    Base class of graph node variants.
    """

    id: Optional[TensorId]

    def arg_ids(self) -> Tuple[TensorId, ...]:
        """
        Return every id of *this* graph the node reads.
        """
        return ()

    def is_input(self) -> bool:
        """
        Return True for nodes whose value is supplied rather than computed.
        """
        return False

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        raise GraphInvariantError(f"cannot evaluate {self!r}")


@dataclass(frozen=True)
class NoneNode(NodeOp):
    id: Optional[TensorId] = None

    def __repr__(self) -> str:
        return "None"


@dataclass(frozen=True)
class ArgNode(NodeOp):
    id: TensorId

    def is_input(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Arg({self.id!r})"


@dataclass(frozen=True)
class ConstNode(NodeOp):
    id: TensorId

    def is_input(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Const({self.id!r})"


@dataclass(frozen=True)
class VarNode(NodeOp):
    id: TensorId
    var: Any

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        return self.var.tensor_raw().with_id(self.id)

    def __repr__(self) -> str:
        return f"Var[{self.var.name}: {self.var.id.index}]"


@dataclass(frozen=True)
class OpNode(NodeOp):
    id: TensorId
    op: Operation
    args: Tuple[TensorId, ...]

    def arg_ids(self) -> Tuple[TensorId, ...]:
        return self.args

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        values = [out[arg] for arg in self.args]
        return self.op.f(values, self.id)

    def __repr__(self) -> str:
        return f"{self.op.name()}{[a.index for a in self.args]}"


@dataclass(frozen=True)
class GradConstNode(NodeOp):
    id: TensorId
    forward_id: TensorId

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        return _forward_cache(fwd)[self.forward_id].with_id(self.id)

    def __repr__(self) -> str:
        return f"GradConst({self.id!r}, {self.forward_id!r})"


@dataclass(frozen=True)
class GradSeedNode(NodeOp):
    id: TensorId
    forward_id: TensorId

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        from ..tensor._tensor import Tensor

        value = _forward_cache(fwd)[self.forward_id]
        return Tensor.ones(value.shape).with_id(self.id)

    def __repr__(self) -> str:
        return f"GradSeed({self.id!r}, {self.forward_id!r})"


@dataclass(frozen=True)
class GradOpNode(NodeOp):
    id: TensorId
    op: GradientOp
    args: Tuple[TensorId, ...]
    prev: TensorId

    def arg_ids(self) -> Tuple[TensorId, ...]:
        return (self.prev,)

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        fwd = _forward_cache(fwd)
        values = [fwd[arg] for arg in self.args]
        return self.op.df(values, out[self.prev]).with_id(self.id)

    def __repr__(self) -> str:
        return (
            f"GradOp({self.id!r}, {self.op.name()}, "
            f"{[a.index for a in self.args]}, {self.prev!r})"
        )


@dataclass(frozen=True)
class GradAccumNode(NodeOp):
    id: TensorId
    grads: Tuple[TensorId, ...]

    def arg_ids(self) -> Tuple[TensorId, ...]:
        return self.grads

    def eval(self, out: TensorCache, fwd: Optional[TensorCache]) -> "Tensor":
        from ..tensor._tensor import Tensor

        values = [out[grad] for grad in self.grads]
        total = np.sum([v.to_numpy() for v in values], axis=0)
        return Tensor.from_numpy(total, values[0].shape, id=self.id)

    def __repr__(self) -> str:
        return f"GradAccum({self.id!r}, {[g.index for g in self.grads]})"


def _forward_cache(fwd: Optional[TensorCache]) -> TensorCache:
    if fwd is None:
        raise GraphInvariantError("reverse node evaluated without a forward cache")
    return fwd
