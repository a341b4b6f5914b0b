"""

Packed streams, and splitting them into examples.

A reader hands over one tensor per input argument, covering
the entire minibatch. Its shape is the sample shape followed
by [length, batch]. Both trailing axes are always present,
whether or not the stream is really a sequence, since the
reader cannot know. Sequences shorter than the packed length
are described by an optional lengths tensor.

"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import torch

from ..Core import errors as Errors
from ..Core import sparse_utils
from ..Core import string_util
from ..Core.types import DynamicAxis, SequenceKind


@dataclass(frozen=True, eq=False)
class PackedStream:
    """
    One input argument across a whole minibatch.

    :param data: Dense or sparse COO tensor of shape sample_shape + [length, batch]
    :param lengths: Optional int tensor of shape [batch] holding the valid
        length of every sequence. When missing, every sequence is full length.
    """
    data: torch.Tensor
    lengths: Optional[torch.Tensor] = None

    def __post_init__(self):
        if self.data.dim() < 2:
            reason = f"""\
            Packed streams must have rank of at least 2, ending
            in [length, batch]. Got shape {string_util.format_shape(self.data.shape)}.
            """
            reason = string_util.dedent(reason)
            raise Errors.StreamValidationError(reason)
        if self.data.is_sparse and self.data.dense_dim() != 0:
            reason = """\
            Sparse streams must be plain sparse COO tensors. Hybrid
            tensors with dense dimensions are not supported.
            """
            reason = string_util.dedent(reason)
            raise Errors.StreamValidationError(reason)
        if self.lengths is not None:
            self._validate_lengths()

    def _validate_lengths(self):
        lengths = self.lengths
        if lengths.dim() != 1 or lengths.shape[0] != self.batch_size:
            reason = f"""\
            Parameter 'lengths' must hold one entry per batch item. Expected
            shape [{self.batch_size}], got {string_util.format_shape(lengths.shape)}.
            """
            reason = string_util.dedent(reason)
            raise Errors.StreamValidationError(reason)
        if torch.is_floating_point(lengths) or torch.is_complex(lengths):
            reason = f"""\
            Parameter 'lengths' must be an integer tensor, but had dtype
            {string_util.format_dtype(lengths.dtype)}.
            """
            reason = string_util.dedent(reason)
            raise Errors.StreamValidationError(reason)
        if torch.any(lengths < 0) or torch.any(lengths > self.max_length):
            reason = f"""\
            Sequence lengths must lie within [0, {self.max_length}], the
            packed length of the stream. Got {lengths.tolist()}.
            """
            reason = string_util.dedent(reason)
            raise Errors.StreamValidationError(reason)

    @classmethod
    def standardize(cls,
                    stream: Union["PackedStream", torch.Tensor],
                    argument: int,
                    task: Optional[str] = None) -> "PackedStream":
        """Accepts a PackedStream or a bare tensor, and returns a PackedStream"""
        if isinstance(stream, PackedStream):
            return stream
        if isinstance(stream, torch.Tensor):
            try:
                return cls(stream)
            except Errors.StreamValidationError as err:
                raise Errors.StreamValidationError(err.reason, task, argument) from err
        reason = f"""\
        Stream {argument} must be a PackedStream or a torch.Tensor,
        but was {type(stream)}.
        """
        reason = string_util.dedent(reason)
        raise Errors.StreamValidationError(reason, task, argument)

    @property
    def sample_shape(self) -> torch.Size:
        return self.data.shape[:-2]

    @property
    def max_length(self) -> int:
        return self.data.shape[-2]

    @property
    def batch_size(self) -> int:
        return self.data.shape[-1]

    @property
    def is_sparse(self) -> bool:
        return self.data.is_sparse

    @property
    def dtype(self) -> torch.dtype:
        return self.data.dtype

    @property
    def device(self) -> torch.device:
        return self.data.device

    def sequence_lengths(self) -> List[int]:
        if self.lengths is None:
            return [self.max_length] * self.batch_size
        return [int(length) for length in self.lengths.tolist()]


@dataclass(frozen=True)
class InputSpec:
    """
    What the unpacking primitive needs to know about
    an argument in order to split it into examples.
    """
    sample_shape: torch.Size
    is_sparse: bool
    dtype: torch.dtype
    dynamic_axes: Tuple[DynamicAxis, ...]

    @classmethod
    def from_stream(cls, stream: PackedStream, kind: SequenceKind) -> "InputSpec":
        return cls(stream.sample_shape, stream.is_sparse, stream.dtype, kind.dynamic_axes)

    @property
    def has_sequence_axis(self) -> bool:
        return len(self.dynamic_axes) > 1


def unpack_stream(stream: PackedStream,
                  spec: InputSpec,
                  device: Union[torch.device, str, None] = None) -> List[torch.Tensor]:
    """
    Splits a packed stream into one tensor per batch item.

    Sequential streams come back with shape sample_shape + [length],
    trimmed to the length of each sequence. Streams without a
    sequence axis come back with the whole packed length axis left
    in place, so the caller can check that it really is degenerate.

    Dense examples are views of the packed storage. Sparse examples
    are rebuilt sparse COO tensors.

    :param stream: The packed stream to split
    :param spec: The description of the argument
    :param device: If given, where to move each example.
    :return: A list of batch_size examples
    """
    if spec.has_sequence_axis:
        lengths = stream.sequence_lengths()
    else:
        lengths = [stream.max_length] * stream.batch_size

    data = stream.data.coalesce() if stream.is_sparse else stream.data
    examples: List[torch.Tensor] = []
    for item, length in enumerate(lengths):
        if stream.is_sparse:
            example = sparse_utils.select_sparse(data, -1, item)
            example = sparse_utils.narrow_sparse(example, -1, length)
        else:
            example = data.select(-1, item).narrow(-1, 0, length)
        if device is not None:
            example = example.to(device)
        examples.append(example)
    return examples
