"""

Indexing and dropping the last axis of a tensor.

Readers deliver every example with a trailing length
axis, even when the stream is not a sequence. This is
the primitive that gets rid of it, preferring a view
of the existing storage to a copy.

"""

from typing import Optional

import torch

from . import errors as Errors
from . import sparse_utils
from . import string_util


def validate_index_last_axis(tensor: torch.Tensor, index: int, task: Optional[str] = None):
    if tensor.dim() == 0:
        reason = """\
        Parameter 'tensor' is a scalar. There is no last
        axis to index and drop.
        """
        reason = string_util.dedent(reason)
        raise Errors.AxisDropError(reason, task)

    extent = tensor.shape[-1]
    if index < 0 or index >= extent:
        reason = f"""\
        Parameter 'index' was {index}, but the last axis of
        parameter 'tensor', which has shape {string_util.format_shape(tensor.shape)},
        only accepts indices in [0, {extent}).
        """
        reason = string_util.dedent(reason)
        raise Errors.AxisDropError(reason, task)


def index_last_axis(tensor: torch.Tensor, index: int, task: Optional[str] = None) -> torch.Tensor:
    """
    Takes the slice at index along the last axis, and drops
    that axis. The result has the shape of the input minus
    its last dimension.

    When the last axis already holds a single element and index
    is 0 there is nothing to slice, and the trailing dimension is
    simply removed from the shape. Dense tensors then come back as
    a zero copy view. Otherwise a slice view is taken along the
    axis, which shares storage with the input.

    Sparse COO tensors are supported, and come back sparse.

    :param tensor: The tensor to index. Dense, or sparse COO.
    :param index: The position along the last axis to keep
    :param task: The task trace, used to make nice error messages.
    :return: The indexed tensor, with one less dimension.
    """
    validate_index_last_axis(tensor, index, task)

    if tensor.shape[-1] != 1 or index != 0:
        if tensor.is_sparse:
            return sparse_utils.select_sparse(tensor, -1, index)
        return tensor.select(-1, index)

    if tensor.is_sparse:
        # Every entry sits at index 0, so selection only rewrites the indices
        return sparse_utils.select_sparse(tensor, -1, 0)
    return tensor.view(tensor.shape[:-1])
