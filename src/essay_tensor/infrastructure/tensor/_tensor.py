"""
NumPy-backed tensor value type.

A `Tensor` is an immutable, shaped numeric buffer. It is the plain value
every kernel consumes and produces; when created by an operation inside an
active recording context it additionally carries the `TensorId` of the graph
node that computed it.

Design notes
------------
- Buffers are read-only NumPy arrays. Tensors never mutate in place, so a
  value captured in a graph cache cannot change behind the graph's back.
  Shared mutable state lives in `Var`, not here.
- Arithmetic operators and the math/activation/reduction methods route
  through the functional API (`infrastructure._math` and friends), which
  records graph nodes when a tape is active. Those imports are local to each
  method because the functional modules themselves import `Tensor`.
- `with_id` returns a new handle sharing the same buffer; ids are never
  written into an existing tensor.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

import numpy as np
from typing_extensions import Self

from ...domain._tensor import ITensor
from .._config import get_config
from ._shape import broadcast_size, dim_tail, size_of

Number = Union[int, float]


class Tensor(ITensor):
    """
    Immutable shaped numeric buffer.

    Parameters
    ----------
    data : array-like
        Initial contents. Copied and converted to the configured dtype.
    id : Optional[TensorId], optional
        Graph id to attach. Normally set by the engine, not by users.

    Notes
    -----
    `size` is the element count. Python's ``len()`` is intentionally not
    defined to avoid confusion between element count and first dimension.
    """

    def __init__(self, data: Any, *, id: Optional[Any] = None) -> None:
        arr = np.array(data, dtype=get_config().dtype)
        arr.setflags(write=False)

        self._data = arr
        self._id = id

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_numpy(
        cls,
        arr: np.ndarray,
        shape: Optional[Sequence[int]] = None,
        id: Optional[Any] = None,
    ) -> "Tensor":
        """
        Build a tensor from a NumPy array, reshaping if `shape` is given.

        Parameters
        ----------
        arr : np.ndarray
            Source array. Converted to the configured dtype; the result
            owns an independent read-only buffer.
        shape : Optional[Sequence[int]]
            Target shape. Must have the same element count as `arr`.
        id : Optional[TensorId]
            Graph id to attach.

        Returns
        -------
        Tensor
            The new tensor.
        """
        out = np.array(arr, dtype=get_config().dtype)
        if shape is not None:
            out = out.reshape(tuple(shape))
        out.setflags(write=False)

        tensor = cls.__new__(cls)
        tensor._data = out
        tensor._id = id
        return tensor

    @classmethod
    def ones(cls, shape: Sequence[int]) -> "Tensor":
        return cls.from_numpy(np.ones(tuple(shape)))

    @classmethod
    def zeros(cls, shape: Sequence[int]) -> "Tensor":
        return cls.from_numpy(np.zeros(tuple(shape)))

    @classmethod
    def ones_like(cls, other: "Tensor") -> "Tensor":
        return cls.ones(other.shape)

    @classmethod
    def zeros_like(cls, other: "Tensor") -> "Tensor":
        return cls.zeros(other.shape)

    # ------------------------------------------------------------------
    # Core properties
    # ------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self._data.shape)

    @property
    def size(self) -> int:
        return size_of(self._data.shape)

    @property
    def rank(self) -> int:
        return self._data.ndim

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def id(self) -> Optional[Any]:
        return self._id

    def with_id(self, id: Optional[Any]) -> Self:
        """
        Return a handle sharing this buffer, tagged with `id`.
        """
        tensor = type(self).__new__(type(self))
        tensor._data = self._data
        tensor._id = id
        return tensor

    def dim_tail(self) -> int:
        """
        Return the size of the last dimension (1 for a scalar).
        """
        return dim_tail(self.shape)

    def broadcast(self, other: "Tensor") -> int:
        """
        Return the element count of broadcasting this tensor with `other`.

        Raises
        ------
        ShapeMismatchError
            If the shapes are not broadcast-compatible.
        """
        return broadcast_size(self.shape, other.shape)

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------
    def as_flat(self) -> np.ndarray:
        """
        Return a read-only flat view of the buffer.
        """
        return self._data.reshape(-1)

    def to_numpy(self) -> np.ndarray:
        """
        Return a writable NumPy copy of the data.
        """
        return np.array(self._data)

    def item(self) -> float:
        """
        Return the single element of a one-element tensor as a float.

        Raises
        ------
        ValueError
            If the tensor has more than one element.
        """
        if self.size != 1:
            raise ValueError(f"item() needs a one-element tensor, got shape {self.shape}")
        return float(self._data.reshape(-1)[0])

    def tolist(self) -> Any:
        return self._data.tolist()

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        return np.array(self._data, dtype=dtype)

    def __repr__(self) -> str:
        body = np.array2string(self._data, separator=", ")
        if self._id is None:
            return f"Tensor({body}, shape={self.shape})"
        return f"Tensor({body}, shape={self.shape}, id={self._id!r})"

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------
    def __add__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import add

        return add(self, other)

    def __radd__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import add

        return add(other, self)

    def __sub__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import sub

        return sub(self, other)

    def __rsub__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import sub

        return sub(other, self)

    def __mul__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import mul

        return mul(self, other)

    def __rmul__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import mul

        return mul(other, self)

    def __truediv__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import div

        return div(self, other)

    def __rtruediv__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import div

        return div(other, self)

    def __mod__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import rem

        return rem(self, other)

    def __rmod__(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import rem

        return rem(other, self)

    def __neg__(self) -> "Tensor":
        from .._math import neg

        return neg(self)

    def __matmul__(self, other: "Tensor") -> "Tensor":
        from .._math import matmul

        return matmul(self, other)

    def maximum(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import maximum

        return maximum(self, other)

    def minimum(self, other: Union["Tensor", Number]) -> "Tensor":
        from .._math import minimum

        return minimum(self, other)

    def matmul(self, other: "Tensor") -> "Tensor":
        from .._math import matmul

        return matmul(self, other)

    # ------------------------------------------------------------------
    # Elementwise math
    # ------------------------------------------------------------------
    def exp(self) -> "Tensor":
        from .._math import exp

        return exp(self)

    def ln(self) -> "Tensor":
        from .._math import ln

        return ln(self)

    def square(self) -> "Tensor":
        from .._math import square

        return square(self)

    def sqrt(self) -> "Tensor":
        from .._math import sqrt

        return sqrt(self)

    def abs(self) -> "Tensor":
        from .._math import abs

        return abs(self)

    def sin(self) -> "Tensor":
        from .._math import sin

        return sin(self)

    def cos(self) -> "Tensor":
        from .._math import cos

        return cos(self)

    def powf(self, p: float) -> "Tensor":
        from .._math import powf

        return powf(self, p)

    # ------------------------------------------------------------------
    # Activations
    # ------------------------------------------------------------------
    def relu(self) -> "Tensor":
        from .._activations import relu

        return relu(self)

    def softplus(self) -> "Tensor":
        from .._activations import softplus

        return softplus(self)

    def sigmoid(self) -> "Tensor":
        from .._activations import sigmoid

        return sigmoid(self)

    def tanh(self) -> "Tensor":
        from .._activations import tanh

        return tanh(self)

    def softmax(self, chunk: Optional[int] = None) -> "Tensor":
        from .._activations import softmax

        return softmax(self, chunk)

    # ------------------------------------------------------------------
    # Reductions and losses
    # ------------------------------------------------------------------
    def reduce_sum(self, axis: Optional[int] = None) -> "Tensor":
        from .._math import reduce_sum

        return reduce_sum(self, axis)

    def reduce_mean(self, axis: Optional[int] = None) -> "Tensor":
        from .._math import reduce_mean

        return reduce_mean(self, axis)

    def l2_loss(self) -> "Tensor":
        from .._losses import l2_loss

        return l2_loss(self)


def tensor(value: Any) -> Tensor:
    """
    Create a tensor from a Python scalar, nested sequence or NumPy array.
    """
    return Tensor(value)


def as_tensor(value: Union[Tensor, Number, Any]) -> Tensor:
    """
    Return `value` unchanged if it is a Tensor, otherwise wrap it.
    """
    if isinstance(value, Tensor):
        return value
    return Tensor(value)
