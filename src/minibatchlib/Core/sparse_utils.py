"""

Helpers for working with sparse COO tensors coming
out of a reader.

Torch's own slicing support for sparse tensors is
patchy, so selection is done directly on the index
and value tensors instead.

"""

import math
from typing import List, Sequence

import torch


def calculate_shape_strides(shape: Sequence[int]) -> torch.Tensor:
    """
    Calculate and return the strides associated
    with a particular tensor shape assuming
    the strides are defined with the last dim
    having the smallest jump

    :param shape: The shape to calculate the strides of
    :return: The calculated strides, as an int64 tensor
    """

    cumulative_stride = 1
    strides: List[int] = []
    for dim_length in reversed(list(shape)):
        strides.insert(0, cumulative_stride)
        cumulative_stride = cumulative_stride * int(dim_length)

    return torch.tensor(strides, dtype=torch.int64)


def _rebuild(tensor: torch.Tensor,
             indices: torch.Tensor,
             values: torch.Tensor,
             shape: Sequence[int]) -> torch.Tensor:
    return torch.sparse_coo_tensor(indices,
                                   values,
                                   size=list(shape),
                                   dtype=tensor.dtype,
                                   device=tensor.device)


def select_sparse(tensor: torch.Tensor, dim: int, index: int) -> torch.Tensor:
    """
    The sparse equivalent of tensor.select(dim, index). Keeps
    the entries sitting at index along dim, then removes the
    dimension entirely.

    :param tensor: A sparse COO tensor with no dense dimensions
    :param dim: The dimension to select along. Negative values count from the end
    :param index: The position to keep
    :return: A sparse COO tensor of one less rank
    """
    assert tensor.is_sparse
    assert tensor.dense_dim() == 0

    dim = dim % tensor.dim()
    tensor = tensor.coalesce()
    indices = tensor.indices()
    values = tensor.values()

    keep = indices[dim] == index
    remaining = torch.cat([indices[:dim], indices[dim + 1:]], dim=0)
    shape = list(tensor.shape[:dim]) + list(tensor.shape[dim + 1:])
    return _rebuild(tensor, remaining[:, keep], values[keep], shape)


def narrow_sparse(tensor: torch.Tensor, dim: int, length: int) -> torch.Tensor:
    """
    The sparse equivalent of tensor.narrow(dim, 0, length). Entries
    beyond length along dim are discarded.
    """
    assert tensor.is_sparse
    assert tensor.dense_dim() == 0

    dim = dim % tensor.dim()
    if tensor.shape[dim] == length:
        return tensor

    tensor = tensor.coalesce()
    indices = tensor.indices()
    values = tensor.values()

    keep = indices[dim] < length
    shape = list(tensor.shape)
    shape[dim] = length
    return _rebuild(tensor, indices[:, keep], values[keep], shape)


def sparse_as_matrix(tensor: torch.Tensor) -> torch.Tensor:
    """
    Views a sparse COO tensor of shape [n, ...] as a sparse
    matrix of shape [n, prod(...)]. A rank 1 tensor becomes
    a single column.

    The trailing indices are flattened using row major strides, so
    reshaping the dense result back to the original shape restores
    the original layout.

    :param tensor: A sparse COO tensor of rank >= 1 with no dense dimensions
    :return: A rank 2 sparse COO tensor
    """
    assert tensor.is_sparse
    assert tensor.dense_dim() == 0
    assert tensor.dim() >= 1

    tensor = tensor.coalesce()
    indices = tensor.indices()
    values = tensor.values()

    trailing_shape = list(tensor.shape[1:])
    strides = calculate_shape_strides(trailing_shape).to(indices.device)
    columns = (indices[1:] * strides.unsqueeze(-1)).sum(dim=0)

    matrix_indices = torch.stack([indices[0], columns], dim=0)
    matrix_shape = [tensor.shape[0], math.prod(trailing_shape)]
    return _rebuild(tensor, matrix_indices, values, matrix_shape)


def densify(tensor: torch.Tensor, identity: torch.Tensor) -> torch.Tensor:
    """
    Materializes a sparse tensor of shape [n, ...] into dense
    storage by multiplying it from the left with an n x n
    identity matrix.

    Dense @ sparse is evaluated as (sparse^T @ dense^T)^T, which
    is the form torch.sparse.mm supports on every backend.

    :param tensor: The sparse COO tensor to densify
    :param identity: An n x n identity of the same dtype and device
    :return: A dense tensor equal to the input
    """
    matrix = sparse_as_matrix(tensor)
    product = torch.sparse.mm(matrix.t(), identity.t()).t()
    return product.reshape(tensor.shape)
