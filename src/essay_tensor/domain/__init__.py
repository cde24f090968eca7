from ._errors import (
    TapeError,
    NestedTapeError,
    InactiveTapeError,
    GraphInvariantError,
    UnsetTensorError,
    ShapeMismatchError,
    NoBackpropError,
)
from ._kernels import BinaryKernel, UnaryKernel, ReduceKernel, SoftmaxKernel
from ._operation import Operation, GradientOp
from ._tensor import ITensor
from ._var import IVar
from ._optimizers import IOptimizer

__all__ = [
    TapeError.__name__,
    NestedTapeError.__name__,
    InactiveTapeError.__name__,
    GraphInvariantError.__name__,
    UnsetTensorError.__name__,
    ShapeMismatchError.__name__,
    NoBackpropError.__name__,
    BinaryKernel.__name__,
    UnaryKernel.__name__,
    ReduceKernel.__name__,
    SoftmaxKernel.__name__,
    Operation.__name__,
    GradientOp.__name__,
    ITensor.__name__,
    IVar.__name__,
    IOptimizer.__name__,
]
