from ._tensor import Tensor, tensor, as_tensor
from ._shape import broadcast_shape, broadcast_size, dim_tail, reduce_split, size_of

__all__ = [
    Tensor.__name__,
    tensor.__name__,
    as_tensor.__name__,
    broadcast_shape.__name__,
    broadcast_size.__name__,
    dim_tail.__name__,
    reduce_split.__name__,
    size_of.__name__,
]
