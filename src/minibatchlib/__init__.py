"""
A library for turning packed minibatch streams
into dense, per example tensors.


"""

__version__ = "0.1.0"

from . import logging # noqa
from . import Core # noqa
from . import Batch # noqa
