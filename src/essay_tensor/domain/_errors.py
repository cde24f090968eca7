"""
Graph- and tape-related exceptions for essay_tensor.

This module defines the error taxonomy of the recording/autodiff engine.
Errors fall in three groups:

- invariant violations (nested recording, unset cache slots, out-of-order
  node ids, incompatible shapes) signal a bug in graph construction and are
  raised immediately;
- unsupported operations (asking a kernel without a gradient for one) are
  raised with the kernel's name;
- a gradient target that is unreachable from the tail is *not* an error and
  is therefore not represented here.
"""


class TapeError(RuntimeError):
    """
    Base class for errors raised by the recording context.
    """


class NestedTapeError(TapeError):
    """
    Raised when a tape is started while another tape is already active on
    the same thread.
    """

    def __init__(self) -> None:
        super().__init__("a Tape is already active on this thread")


class InactiveTapeError(TapeError):
    """
    Raised when an operation that requires an active tape is invoked without
    one.

    Attributes
    ----------
    op : str
        The tape operation that was attempted (e.g., "set_node").
    """

    def __init__(self, op: str) -> None:
        super().__init__(f"Tape.{op} called with no active tape")
        self.op = op


class GraphInvariantError(RuntimeError):
    """
    Raised when a graph would be left in an inconsistent state, e.g. a node
    referencing an argument id that is not strictly smaller than its own id.
    """


class UnsetTensorError(GraphInvariantError):
    """
    Raised when a `TensorCache` slot is read before it has been written.

    Attributes
    ----------
    id : object
        The tensor id whose slot was empty.
    """

    def __init__(self, id: object) -> None:
        super().__init__(f"unset tensor {id!r}")
        self.id = id


class ShapeMismatchError(ValueError):
    """
    Raised when operand shapes are incompatible for an operation.

    Attributes
    ----------
    op : str
        Name of the operation (e.g., "binary_op", "matmul").
    shapes : tuple
        Shapes of the operands involved.
    """

    def __init__(self, op: str, *shapes: tuple) -> None:
        shown = ", ".join(str(tuple(s)) for s in shapes)
        super().__init__(f"{op}: incompatible shapes {shown}")
        self.op = op
        self.shapes = shapes


class NoBackpropError(NotImplementedError):
    """
    Raised when a gradient is requested from a kernel that does not
    implement backpropagation.

    Attributes
    ----------
    name : str
        Name of the kernel.
    """

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} does not implement backprop")
        self.name = name
