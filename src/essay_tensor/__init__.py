"""
essay_tensor: a small tensor library with tape-based reverse-mode autodiff.

Tensor arithmetic evaluates eagerly. While a `Tape` is active on the calling
thread every operation is also recorded into a `Graph`, which can be
replayed (`Function`) and differentiated (`Trainer`, `Tape.gradient`).
"""

import logging

from .domain import (
    TapeError,
    NestedTapeError,
    InactiveTapeError,
    GraphInvariantError,
    UnsetTensorError,
    ShapeMismatchError,
    NoBackpropError,
    Operation,
    GradientOp,
)
from .infrastructure import *  # noqa: F401,F403
from .infrastructure import __all__ as _infrastructure_all

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    TapeError.__name__,
    NestedTapeError.__name__,
    InactiveTapeError.__name__,
    GraphInvariantError.__name__,
    UnsetTensorError.__name__,
    ShapeMismatchError.__name__,
    NoBackpropError.__name__,
    Operation.__name__,
    GradientOp.__name__,
    *_infrastructure_all,
]
