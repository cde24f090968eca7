"""
Training artifacts.

A `Trainer` pairs a compiled `Function` with one reverse graph per `Var`
the function read while it was traced. Each call to `train` replays the
forward graph and returns a `Train`, from which gradients are computed on
demand by replaying the matching reverse graph over that pass's forward
values.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ._var import Var, VarId
from ._function import Function, Output
from .graph._backprop import backprop_graph
from .graph._graph import Graph
from .graph._tensor_cache import TensorCache
from .tensor._tensor import Tensor

logger = logging.getLogger(__name__)


class Trainer:
    """
    Forward graph plus reverse graphs for every traced Var.

    Parameters
    ----------
    function : Function
        The compiled forward computation. Its first output is the value
        being differentiated.
    """

    def __init__(self, function: Function) -> None:
        self._function = function

        forward = function.graph
        self._backs: Dict[VarId, Optional[Graph]] = {}
        for var in forward.tracked_vars:
            target = forward.get_id_by_var(var)
            self._backs[var.id] = backprop_graph(forward, target)

        logger.debug(
            "trainer over graph %d: %d vars, %d reachable",
            forward.model.value,
            len(self._backs),
            sum(back is not None for back in self._backs.values()),
        )

    @classmethod
    def compile(cls, fn: Callable[..., Any], *inputs: Any) -> "Trainer":
        """
        Trace `fn` on `inputs` and build its reverse graphs.
        """
        return cls(Function(fn, *inputs))

    @property
    def function(self) -> Function:
        return self._function

    @property
    def vars(self) -> Tuple[Var, ...]:
        return self._function.graph.tracked_vars

    def back_graph(self, var: Var) -> Optional[Graph]:
        """
        Return the reverse graph for `var`, or None when the output does
        not depend on it.
        """
        return self._backs.get(var.id)

    def train(self, *inputs: Any) -> "Train":
        """
        Replay the forward graph for `inputs`.
        """
        return Train(self, self._function.replay(*inputs))


class Train:
    """
    Result of one forward pass of a `Trainer`.

    Gradients are computed lazily and cached per Var.
    """

    def __init__(self, trainer: Trainer, forward: TensorCache) -> None:
        self._trainer = trainer
        self._forward = forward
        self._grads: Dict[VarId, Tensor] = {}

    def value(self) -> Output:
        return self._trainer.function.read(self._forward)

    def gradient(self, var: Var) -> Tensor:
        """
        Return d(output)/d(var) for this pass.

        A Var the output does not depend on, or one never read while
        tracing, gets a zeros tensor shaped like its current value.
        """
        grad = self._grads.get(var.id)
        if grad is not None:
            return grad

        back = self._trainer.back_graph(var)
        if back is None:
            grad = Tensor.zeros_like(var.tensor_raw())
        else:
            out = back.apply(fwd=self._forward)
            grad = out[back.tail_id()].with_id(None)

        self._grads[var.id] = grad
        return grad

    def gradients(self) -> List[Tuple[Tensor, Var]]:
        """
        Return ``(gradient, var)`` pairs for every traced Var.
        """
        return [(self.gradient(var), var) for var in self._trainer.vars]


def compile(fn: Callable[..., Any], *inputs: Any) -> Trainer:
    """
    Compile `fn` into a `Trainer`. See `Trainer.compile`.
    """
    return Trainer.compile(fn, *inputs)
