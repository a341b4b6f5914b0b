"""

Turning a minibatch into graph inputs.

The reader delivers one packed stream per argument. Graph
construction wants, for every argument, one dense constant
per example. This module does the conversion, handling
variable length sequences, degenerate length axes on streams
that are not sequences, and sparse streams.

The result is indexed as result[argument][example], in the
order the streams and batch items were given.

"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import torch

from ..Core import errors as Errors
from ..Core import string_util
from ..Core.axis import index_last_axis
from ..Core.identity import DenseIdentityCache, default_identity_cache
from ..Core.sparse_utils import densify
from ..Core.types import SequenceKind
from .stream import InputSpec, PackedStream, unpack_stream

logger = logging.getLogger(__name__)

StreamType = Union[PackedStream, torch.Tensor]
FlagType = Union[bool, SequenceKind]
UnpackFunction = Callable[[PackedStream, InputSpec, Union[torch.device, str, None]],
                          List[torch.Tensor]]


@dataclass(frozen=True, eq=False)
class Constant:
    """
    A dense tensor wrapped for use as a fixed graph input.
    The tensor is detached, and does not require grad.
    """
    value: torch.Tensor

    @classmethod
    def wrap(cls, tensor: torch.Tensor) -> "Constant":
        return cls(tensor.detach())

    @property
    def shape(self) -> torch.Size:
        return self.value.shape

    @property
    def dtype(self) -> torch.dtype:
        return self.value.dtype

    @property
    def device(self) -> torch.device:
        return self.value.device


def validate_batch(streams: Sequence[StreamType],
                   sequence_flags: Sequence[FlagType],
                   task: Optional[str] = None):
    if len(streams) == 0:
        reason = """\
        No streams were provided. A batch needs at least one
        stream to unpack.
        """
        reason = string_util.dedent(reason)
        raise Errors.StreamValidationError(reason, task)
    if len(sequence_flags) != len(streams):
        reason = f"""\
        There must be exactly one sequence flag per stream. Got
        {len(streams)} streams but {len(sequence_flags)} flags.
        """
        reason = string_util.dedent(reason)
        raise Errors.StreamValidationError(reason, task)


def unpack_batch(streams: Sequence[StreamType],
                 sequence_flags: Sequence[FlagType],
                 device: Union[torch.device, str, None] = None,
                 cache: Optional[DenseIdentityCache] = None,
                 unpack: UnpackFunction = unpack_stream,
                 task: Optional[str] = None) -> List[List[Constant]]:
    """
    Converts a minibatch of packed streams into dense
    constants, one per argument and example.

    Streams flagged as sequences produce examples of shape
    sample_shape + [length]. Streams not flagged as sequences
    must have a degenerate length axis, which is dropped, and
    produce examples of shape sample_shape. Sparse streams are
    densified by a product with a cached identity matrix.

    :param streams: One packed stream per argument, or bare tensors of
        shape sample_shape + [length, batch]
    :param sequence_flags: One flag per stream. True, or SequenceKind.SEQUENTIAL,
        when the length axis is a real sequence axis.
    :param device: Where the examples should end up. None keeps each stream's device.
    :param cache: The identity cache to densify with. Defaults to the process wide one.
    :param unpack: The function splitting a packed stream into examples.
    :param task: The task trace, used to make nice error messages.
    :return: A list of arguments, each a list of constants in batch order.
    :raises: BatchShapeMismatchError, if the streams disagree on the number of sequences
    :raises: MalformedStreamError, if a stream that is not a sequence has a real length axis
    :raises: UnsupportedTypeError, if a sparse stream has a dtype no identity can be built for
    """
    validate_batch(streams, sequence_flags, task)
    if cache is None:
        cache = default_identity_cache

    result: List[List[Constant]] = []
    num_seq: Optional[int] = None
    for argument, (raw, flag) in enumerate(zip(streams, sequence_flags)):
        stream = PackedStream.standardize(raw, argument, task)
        kind = SequenceKind.from_flag(flag)
        spec = InputSpec.from_stream(stream, kind)
        if spec.is_sparse and len(spec.sample_shape) == 0:
            reason = f"""\
            Sparse stream {argument} has no sample axis. Densification
            needs a leading sample dimension to build an identity for.
            """
            reason = string_util.dedent(reason)
            raise Errors.StreamValidationError(reason, task, argument)

        sequences = unpack(stream, spec, device)
        if num_seq is None:
            num_seq = len(sequences)
        elif len(sequences) != num_seq:
            raise Errors.BatchShapeMismatchError(num_seq, len(sequences), argument, task)

        constants: List[Constant] = []
        for example, data in enumerate(sequences):
            if not spec.has_sequence_axis:
                if data.shape[-1] != 1:
                    raise Errors.MalformedStreamError(argument, example, data.shape, task)
                data = index_last_axis(data, 0, task)
            if data.is_sparse:
                identity = cache.get(data.shape[0], data.dtype, data.device, task)
                data = densify(data, identity)
            constants.append(Constant.wrap(data))
        result.append(constants)

    logger.debug("Unpacked %d streams of %d sequences", len(result), num_seq)
    return result


class BatchUnpacker:
    """
    A reusable unpacker holding its own identity cache,
    for hosts that prefer not to share the process wide one.
    """
    def __init__(self,
                 device: Union[torch.device, str, None] = None,
                 cache: Optional[DenseIdentityCache] = None,
                 unpack: UnpackFunction = unpack_stream):
        self.device = device
        self.cache = cache if cache is not None else DenseIdentityCache()
        self.unpack = unpack

    def __call__(self,
                 streams: Sequence[StreamType],
                 sequence_flags: Sequence[FlagType],
                 task: Optional[str] = None) -> List[List[Constant]]:
        return unpack_batch(streams,
                            sequence_flags,
                            self.device,
                            self.cache,
                            self.unpack,
                            task)
