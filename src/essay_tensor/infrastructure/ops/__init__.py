from ._binary_op import (
    BinopImpl,
    BinopDx,
    BinopDy,
    binary_op,
    Add,
    Sub,
    Mul,
    Div,
    Rem,
    Maximum,
    Minimum,
)
from ._unary_op import (
    UnopImpl,
    UnopDx,
    unary_op,
    Neg,
    Exp,
    Ln,
    Square,
    Sqrt,
    Abs,
    Sin,
    Cos,
    Powf,
)
from ._reduce_op import ReduceImpl, ReduceDx, reduce_op, ReduceSum, L2Loss
from ._softmax_op import SoftmaxImpl, SoftmaxDx, Softmax, softmax_op
from ._matmul_op import MatMul, MatMulDa, MatMulDb, matmul

__all__ = [
    BinopImpl.__name__,
    BinopDx.__name__,
    BinopDy.__name__,
    binary_op.__name__,
    Add.__name__,
    Sub.__name__,
    Mul.__name__,
    Div.__name__,
    Rem.__name__,
    Maximum.__name__,
    Minimum.__name__,
    UnopImpl.__name__,
    UnopDx.__name__,
    unary_op.__name__,
    Neg.__name__,
    Exp.__name__,
    Ln.__name__,
    Square.__name__,
    Sqrt.__name__,
    Abs.__name__,
    Sin.__name__,
    Cos.__name__,
    Powf.__name__,
    ReduceImpl.__name__,
    ReduceDx.__name__,
    reduce_op.__name__,
    ReduceSum.__name__,
    L2Loss.__name__,
    SoftmaxImpl.__name__,
    SoftmaxDx.__name__,
    Softmax.__name__,
    softmax_op.__name__,
    MatMul.__name__,
    MatMulDa.__name__,
    MatMulDb.__name__,
    matmul.__name__,
]
