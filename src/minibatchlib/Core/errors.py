"""

The error hierarchy. Everything raised on purpose by
this library is a ValidationError, which carries the
kind of problem, the reason, and optionally the task
being performed when it happened.

"""

from typing import Optional, Sequence

import torch

from . import string_util


class ValidationError(Exception):
    """
    An error class for validation problems
    """
    def __init__(self,
                 type: str,
                 reason: str,
                 task: Optional[str] = None
                 ):

        self.type = type
        self.reason = reason
        self.task = task

        msg = ""
        msg += "A %s error occurred \n" % type
        msg += "The error occurred because: \n\n %s\n" % reason
        if task is not None:
            msg += "This happened while doing: \n %s" % task
        super().__init__(msg)


class AxisDropError(ValidationError):
    """
    Raised when the last axis of a tensor cannot be
    indexed and dropped as asked.
    """
    def __init__(self, reason: str, task: Optional[str] = None):
        super().__init__("AxisDropError", reason, task)


class StreamValidationError(ValidationError):
    """
    Raised when the streams handed over by the data
    loader do not satisfy the packed layout contract.
    """
    def __init__(self,
                 reason: str,
                 task: Optional[str] = None,
                 argument: Optional[int] = None):
        self.argument = argument
        super().__init__("StreamValidationError", reason, task)


class UnsupportedTypeError(ValidationError):
    """
    Raised when an identity matrix is requested for
    a dtype it cannot be built for.
    """
    def __init__(self,
                 dtype: torch.dtype,
                 supported: Sequence[torch.dtype],
                 task: Optional[str] = None):
        self.dtype = dtype
        self.supported = tuple(supported)
        options = ", ".join(string_util.format_dtype(item) for item in self.supported)
        reason = f"""\
        An identity matrix was requested with dtype
        {string_util.format_dtype(dtype)}. Identity matrices can only
        be built for one of: {options}
        """
        reason = string_util.dedent(reason)
        super().__init__("UnsupportedTypeError", reason, task)


class BatchShapeMismatchError(ValidationError):
    """
    Raised when the streams of one batch do not all
    unpack into the same number of sequences.
    """
    def __init__(self,
                 expected: int,
                 got: int,
                 argument: int,
                 task: Optional[str] = None):
        self.expected = expected
        self.got = got
        self.argument = argument
        reason = f"""\
        Streams must all have the same number of sequences. The
        first stream unpacked into {expected} sequences, but
        stream {argument} unpacked into {got}.
        """
        reason = string_util.dedent(reason)
        super().__init__("BatchShapeMismatchError", reason, task)


class MalformedStreamError(ValidationError):
    """
    Raised when a stream declared as not being a sequence
    still carries a real length axis.
    """
    def __init__(self,
                 argument: int,
                 example: int,
                 shape: Sequence[int],
                 task: Optional[str] = None):
        self.argument = argument
        self.example = example
        self.shape = tuple(shape)
        reason = f"""\
        Streams declared as not being sequences must have a trailing
        dimension of 1. Example {example} of stream {argument} had
        shape {string_util.format_shape(shape)} instead.
        """
        reason = string_util.dedent(reason)
        super().__init__("MalformedStreamError", reason, task)
