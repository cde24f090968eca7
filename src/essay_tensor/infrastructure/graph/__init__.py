from ._tensor_id import ModelId, TensorId
from ._node_op import (
    NodeOp,
    NoneNode,
    ArgNode,
    ConstNode,
    VarNode,
    OpNode,
    GradConstNode,
    GradSeedNode,
    GradOpNode,
    GradAccumNode,
)
from ._tensor_cache import TensorCache
from ._graph import Graph
from ._tape import Tape, record_op
from ._backprop import ArgTrace, BackTrace, build_backtrace, backprop_graph

__all__ = [
    ModelId.__name__,
    TensorId.__name__,
    NodeOp.__name__,
    NoneNode.__name__,
    ArgNode.__name__,
    ConstNode.__name__,
    VarNode.__name__,
    OpNode.__name__,
    GradConstNode.__name__,
    GradSeedNode.__name__,
    GradOpNode.__name__,
    GradAccumNode.__name__,
    TensorCache.__name__,
    Graph.__name__,
    Tape.__name__,
    record_op.__name__,
    ArgTrace.__name__,
    BackTrace.__name__,
    build_backtrace.__name__,
    backprop_graph.__name__,
]
