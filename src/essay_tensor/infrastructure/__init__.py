from ._config import EngineConfig, get_config, set_config
from .tensor import Tensor, tensor, as_tensor
from .graph import Graph, Tape, TensorCache, TensorId, record_op, backprop_graph
from ._var import Var, VarId
from ._math import (
    add,
    sub,
    mul,
    div,
    rem,
    maximum,
    minimum,
    matmul,
    neg,
    exp,
    ln,
    square,
    sqrt,
    abs,
    sin,
    cos,
    powf,
    reduce_sum,
    reduce_mean,
)
from ._activations import relu, softplus, sigmoid, tanh, softmax
from ._losses import l2_loss, sum_square_error, mean_square_error
from ._function import Function, build
from ._trainer import Trainer, Train, compile
from ._optimizers import SGD, Adam

__all__ = [
    EngineConfig.__name__,
    get_config.__name__,
    set_config.__name__,
    Tensor.__name__,
    tensor.__name__,
    as_tensor.__name__,
    Graph.__name__,
    Tape.__name__,
    TensorCache.__name__,
    TensorId.__name__,
    record_op.__name__,
    backprop_graph.__name__,
    Var.__name__,
    VarId.__name__,
    add.__name__,
    sub.__name__,
    mul.__name__,
    div.__name__,
    rem.__name__,
    maximum.__name__,
    minimum.__name__,
    matmul.__name__,
    neg.__name__,
    exp.__name__,
    ln.__name__,
    square.__name__,
    sqrt.__name__,
    abs.__name__,
    sin.__name__,
    cos.__name__,
    powf.__name__,
    reduce_sum.__name__,
    reduce_mean.__name__,
    relu.__name__,
    softplus.__name__,
    sigmoid.__name__,
    tanh.__name__,
    softmax.__name__,
    l2_loss.__name__,
    sum_square_error.__name__,
    mean_square_error.__name__,
    Function.__name__,
    build.__name__,
    Trainer.__name__,
    Train.__name__,
    compile.__name__,
    SGD.__name__,
    Adam.__name__,
]
