"""
Reverse-graph construction.

Backprop runs in two steps:

1. `build_backtrace` searches the forward graph from its tail toward a
   target id and returns a `BackTrace` describing every path between them,
   or None when the target is unreachable. Only `Op` nodes are descended
   into; `Var`, `Const` and `Arg` nodes are leaves.
2. `backprop_graph` walks the backtrace and asks each forward kernel to
   append the reverse nodes computing its arguments' gradients. The result
   is an independent `Graph` whose tail holds the target's gradient.

Subtraces reachable along several paths are shared, not duplicated, and
their gradient contributions are summed with a `GradAccum` node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...domain._errors import GraphInvariantError
from ._graph import Graph
from ._node_op import OpNode
from ._tensor_id import TensorId

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class BackTrace:
    """
    A forward node on some path to the target.

    Attributes
    ----------
    id : TensorId
        Forward node id.
    args : list[ArgTrace]
        The node's arguments that lead to the target. Empty for the target
        itself.
    """

    id: TensorId
    args: List["ArgTrace"] = field(default_factory=list)


@dataclass(eq=False)
class ArgTrace:
    """
    Argument `index` of a node, followed by the argument's own trace.
    """

    index: int
    trace: BackTrace


def build_backtrace(
    graph: Graph, target: TensorId, tail: Optional[TensorId] = None
) -> Optional[BackTrace]:
    """
    Find every path from `tail` back to `target`.

    Parameters
    ----------
    graph : Graph
        The forward graph.
    target : TensorId
        Node whose gradient is wanted.
    tail : Optional[TensorId]
        Output node. Defaults to `graph.tail_id()`.

    Returns
    -------
    Optional[BackTrace]
        The trace rooted at the tail, or None when the tail does not depend
        on the target.

    Notes
    -----
    Since every node's arguments precede it, a single ascending sweep from
    the target to the tail decides reachability for every node in between.
    Each node gets at most one `BackTrace`, shared by all its users.
    """
    if tail is None:
        tail = graph.tail_id()
    if tail is None or not graph.owns(target) or target.index > tail.index:
        return None

    traces: Dict[int, BackTrace] = {target.index: BackTrace(target)}

    for id in graph.ids()[target.index + 1: tail.index + 1]:
        node = graph.node(id)
        if not isinstance(node, OpNode):
            continue

        args = [
            ArgTrace(i, traces[arg.index])
            for i, arg in enumerate(node.args)
            if arg.index in traces
        ]
        if args:
            traces[id.index] = BackTrace(id, args)

    return traces.get(tail.index)


def _collect(root: BackTrace) -> Dict[int, BackTrace]:
    found: Dict[int, BackTrace] = {}
    stack = [root]

    while stack:
        trace = stack.pop()
        if trace.id.index in found:
            continue
        found[trace.id.index] = trace
        stack.extend(arg.trace for arg in trace.args)

    return found


def backprop_graph(
    forward: Graph, target: TensorId, tail: Optional[TensorId] = None
) -> Optional[Graph]:
    """
    Build the reverse graph computing d(tail)/d(target).

    The reverse graph is seeded with a ones-tensor shaped like the tail
    value of whichever forward pass it is replayed against. Nodes of the
    backtrace are visited from the tail downward; each node's incoming
    gradient contributions are summed (when there is more than one) and
    handed to its kernel's `df` for every traced argument.

    Parameters
    ----------
    forward : Graph
        The forward graph.
    target : TensorId
        Forward node to differentiate with respect to.
    tail : Optional[TensorId]
        Output node. Defaults to `forward.tail_id()`.

    Returns
    -------
    Optional[Graph]
        A graph whose `tail_id()` holds the gradient, to be replayed with
        ``apply(fwd=<forward cache>)``; None when no path exists.

    Raises
    ------
    NoBackpropError
        If a kernel on the path does not implement `df`.
    """
    root = build_backtrace(forward, target, tail)
    if root is None:
        logger.debug("no path from tail to %r in graph %d", target, forward.model.value)
        return None

    back = Graph()
    seed = back.add_grad_seed(root.id)

    pending: Dict[int, List[TensorId]] = {root.id.index: [seed]}
    result: Optional[TensorId] = None

    traces = _collect(root)
    for index in sorted(traces, reverse=True):
        trace = traces[index]
        grads = pending.pop(index)
        upstream = grads[0] if len(grads) == 1 else back.add_grad_accum(grads)

        if trace.id == target:
            result = upstream
            continue

        node = forward.node(trace.id)
        if not isinstance(node, OpNode):
            raise GraphInvariantError(f"backtrace passes through non-op node {node!r}")

        for arg in trace.args:
            grad = node.op.df(forward, back, arg.index, node.args, upstream)
            pending.setdefault(arg.trace.id.index, []).append(grad)

    if result is None:
        raise GraphInvariantError(f"backtrace to {target!r} did not reach the target")

    back.set_tail(result)
    logger.debug(
        "reverse graph for %r: %d nodes from %d traced", target, len(back), len(traces)
    )
    return back
