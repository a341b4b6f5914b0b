"""

A cache of identity matrices.

Multiplying a sparse tensor by an identity matrix is the
cheapest way to get torch to hand back dense storage with
the same values. The identities are needed once per
minibatch, in the hot loop, so they are built once per
(size, dtype) and then reused for the life of the process.

Building an identity goes through a host buffer which is
then copied onto the requested device. The device is not
part of the cache key unless asked for: the first request
decides where an identity lives.

"""

import logging
import threading
from typing import Dict, Hashable, Optional, Tuple, Union

import numpy as np
import torch

from . import errors as Errors
from . import string_util

logger = logging.getLogger(__name__)

DeviceType = Union[torch.device, str, None]

# The dtypes an identity can be built for, and the host
# buffer type each one is built in.
SUPPORTED_DTYPES: Dict[torch.dtype, type] = {
    torch.float32: np.float32,
    torch.float64: np.float64,
}


def standardize_device(device: DeviceType) -> torch.device:
    if device is None:
        return torch.device("cpu")
    return torch.device(device)


def same_device(first: torch.device, second: torch.device) -> bool:
    """Device comparison where a missing index matches any index of the same type"""
    if first.type != second.type:
        return False
    if first.index is None or second.index is None:
        return True
    return first.index == second.index


def validate_identity_request(n: int, dtype: torch.dtype, task: Optional[str] = None):
    if dtype not in SUPPORTED_DTYPES:
        raise Errors.UnsupportedTypeError(dtype, list(SUPPORTED_DTYPES), task)
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        reason = f"""\
        Identity matrices need a positive integer size.
        Parameter 'n' was {n} instead.
        """
        reason = string_util.dedent(reason)
        raise Errors.ValidationError("IdentityError", reason, task)


def make_identity(n: int, dtype: torch.dtype, device: DeviceType = None) -> torch.Tensor:
    """
    Builds an n x n identity matrix. The values are written
    into a zeroed host buffer, wrapped as a cpu tensor, then
    deep copied onto the target device.

    :param n: The size of the identity
    :param dtype: One of SUPPORTED_DTYPES
    :param device: Where the result should live.
    :return: The identity matrix, owned by nobody else
    """
    buffer = np.zeros(n * n, dtype=SUPPORTED_DTYPES[dtype])
    buffer[::n + 1] = 1  # positions i*n + i
    host = torch.from_numpy(buffer).view(n, n)
    return host.to(device=standardize_device(device), copy=True)


class DenseIdentityCache:
    """
    A memo of identity matrices keyed by (n, dtype), or by
    (n, dtype, device) when key_by_device is set.

    Entries are never evicted. The key space is bounded by the
    leading dimensions of the sparse streams actually seen, which
    in practice is a handful of vocabulary or feature sizes.

    Returned tensors are shared between every caller, and must
    never be modified in place.

    Lookups and insertions happen under a lock, so several
    threads unpacking batches at once never build the same
    identity twice.
    """
    def __init__(self, key_by_device: bool = False):
        self.key_by_device = key_by_device
        self.builds = 0
        self._entries: Dict[Hashable, torch.Tensor] = {}
        self._lock = threading.Lock()

    def key(self, n: int, dtype: torch.dtype, device: DeviceType = None) -> Tuple:
        if self.key_by_device:
            return (n, dtype, standardize_device(device))
        return (n, dtype)

    def get(self,
            n: int,
            dtype: torch.dtype,
            device: DeviceType = None,
            task: Optional[str] = None) -> torch.Tensor:
        """
        Fetch the n x n identity of the given dtype, building
        it on device if it has not been seen before.

        :param n: The size of the identity
        :param dtype: The element type. See SUPPORTED_DTYPES
        :param device: The device to build on, on a cache miss. Defaults to cpu.
        :param task: The task trace, used to make nice error messages.
        :return: The shared identity matrix
        :raises: UnsupportedTypeError, if dtype cannot be built
        """
        validate_identity_request(n, dtype, task)
        device = standardize_device(device)
        key = self.key(n, dtype, device)

        with self._lock:
            identity = self._entries.get(key)
            if identity is None:
                identity = make_identity(n, dtype, device)
                self._entries[key] = identity
                self.builds += 1
                logger.debug("Built %dx%d %s identity on %s",
                             n, n, string_util.format_dtype(dtype), device)
                return identity

        if not same_device(identity.device, device):
            logger.warning("Identity %dx%d %s requested on %s, but was cached on %s",
                           n, n, string_util.format_dtype(dtype), device, identity.device)
        return identity

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.builds = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries


default_identity_cache = DenseIdentityCache()


def eye(n: int,
        dtype: torch.dtype,
        device: DeviceType = None,
        task: Optional[str] = None) -> torch.Tensor:
    """Fetch an identity from the process wide cache"""
    return default_identity_cache.get(n, dtype, device, task)
