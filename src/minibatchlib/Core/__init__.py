"""
Core tensor primitives: errors, axis handling,
sparse helpers and the identity cache.
"""

from .errors import ValidationError, AxisDropError, StreamValidationError
from .errors import UnsupportedTypeError, BatchShapeMismatchError, MalformedStreamError
from .string_util import dedent
from .types import DynamicAxis, SequenceKind
from .axis import index_last_axis
from .identity import DenseIdentityCache, default_identity_cache, eye, SUPPORTED_DTYPES
from . import sparse_utils
from .sparse_utils import densify
