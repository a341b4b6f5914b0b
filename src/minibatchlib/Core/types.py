"""
Tags describing how the dynamic axes of a stream
are meant to be read.
"""

import enum
from typing import Tuple, Union


class DynamicAxis(enum.Enum):
    BATCH = "batch"
    SEQUENCE = "sequence"


class SequenceKind(enum.Enum):
    """
    Whether the length axis of a packed stream is a real
    sequence axis, or a degenerate axis of size 1.

    Readers always deliver the length axis, so this cannot
    be worked out from the shape and must come from whoever
    knows what the stream means.
    """
    SEQUENTIAL = "sequential"
    NON_SEQUENTIAL = "non_sequential"

    @classmethod
    def from_flag(cls, flag: Union[bool, "SequenceKind"]) -> "SequenceKind":
        if isinstance(flag, SequenceKind):
            return flag
        return cls.SEQUENTIAL if flag else cls.NON_SEQUENTIAL

    @property
    def dynamic_axes(self) -> Tuple[DynamicAxis, ...]:
        if self is SequenceKind.SEQUENTIAL:
            return (DynamicAxis.BATCH, DynamicAxis.SEQUENCE)
        return (DynamicAxis.BATCH,)
