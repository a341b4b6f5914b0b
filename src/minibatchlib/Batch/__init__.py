"""
Unpacking minibatches of packed reader streams
into per example graph constants.
"""

from .stream import PackedStream, InputSpec, unpack_stream
from .unpacker import Constant, BatchUnpacker, unpack_batch
