"""
Compiled functions.

`Function(fn, *inputs)` runs `fn` once under a fresh tape, with each input
registered as an `Arg` node, and keeps the resulting graph. `call` replays
that graph with new input values instead of running `fn` again, so Python
control flow in `fn` is fixed at compile time.

Example
-------
>>> a = Var(tensor(3.0), "a")
>>> f = Function(lambda x: a.tensor() * x, tensor(2.0))
>>> f.call(tensor(5.0)).item()
15.0
"""

from __future__ import annotations

from typing import Any, Callable, List, Tuple, Union

from .graph._graph import Graph
from .graph._tape import Tape
from .graph._tensor_cache import TensorCache
from .graph._tensor_id import TensorId
from .tensor._tensor import Tensor, as_tensor

Output = Union[Tensor, Tuple[Tensor, ...]]


class Function:
    """
    A closure compiled into a replayable forward graph.

    Parameters
    ----------
    fn : Callable[..., Tensor | tuple[Tensor, ...]]
        Function of tensors. Vars it reads through `Var.tensor()` become
        graph leaves and are re-read on every replay.
    *inputs : Tensor or array-like
        Sample inputs used to trace `fn`. Their shapes are not enforced on
        later calls, but kernels may reject incompatible ones. Reverse
        graphs take their seed shape from each replayed output.

    Notes
    -----
    The graph's tail is the first output; gradients are taken with respect
    to it.
    """

    def __init__(self, fn: Callable[..., Any], *inputs: Any) -> None:
        tape = Tape.begin()
        try:
            graph = tape.graph
            arg_ids = [graph.arg(as_tensor(x)) for x in inputs]
            result = fn(*[graph.tensor(id) for id in arg_ids])

            self._is_tuple = isinstance(result, tuple)
            outputs = result if self._is_tuple else (result,)
            if not outputs:
                raise ValueError("compiled function must return at least one tensor")

            out_ids = [graph.input_id(as_tensor(out)) for out in outputs]
        finally:
            tape.end()

        graph.set_tail(out_ids[0])

        self._graph = graph
        self._arg_ids: List[TensorId] = arg_ids
        self._out_ids: List[TensorId] = out_ids
        self._outputs = self.read(graph.tensors)

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def arg_ids(self) -> Tuple[TensorId, ...]:
        return tuple(self._arg_ids)

    @property
    def out_ids(self) -> Tuple[TensorId, ...]:
        return tuple(self._out_ids)

    def outputs(self) -> Output:
        """
        Return the values produced while tracing.
        """
        return self._outputs

    def replay(self, *inputs: Any) -> TensorCache:
        """
        Evaluate the graph for `inputs` and return the filled cache.

        Raises
        ------
        TypeError
            If the number of inputs differs from the traced signature.
        """
        if len(inputs) != len(self._arg_ids):
            raise TypeError(
                f"expected {len(self._arg_ids)} inputs, got {len(inputs)}"
            )

        cache = self._graph.replay_cache()
        for id, x in zip(self._arg_ids, inputs):
            cache.set(id, as_tensor(x).with_id(id))

        return self._graph.apply(cache)

    def call(self, *inputs: Any) -> Output:
        """
        Replay the graph for `inputs` and return its output(s).
        """
        return self.read(self.replay(*inputs))

    def __call__(self, *inputs: Any) -> Output:
        return self.call(*inputs)

    def read(self, cache: TensorCache) -> Output:
        """
        Return the output(s) held by a cache filled by `replay`.
        """
        values = tuple(cache[id].with_id(None) for id in self._out_ids)
        return values if self._is_tuple else values[0]

    def __repr__(self) -> str:
        return f"Function(args={len(self._arg_ids)}, nodes={len(self._graph)})"


def build(fn: Callable[..., Any], *inputs: Any) -> Function:
    """
    Compile `fn` for the given sample inputs. See `Function`.
    """
    return Function(fn, *inputs)

