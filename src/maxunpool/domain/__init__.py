"""
Domain contracts for MaxUnpool: error taxonomy and unpooling Protocols.

This package holds no NumPy or backend-specific logic.
"""

from ._errors import (
    ConfigurationError,
    DeviceNotSupportedError,
    DuplicateMaskIndexWarning,
    IndexOutOfRangeError,
    ShapeMismatchError,
)
from ._unpooling import IUnpooling2D, IUnpoolStrategy

__all__ = [
    ConfigurationError.__name__,
    DeviceNotSupportedError.__name__,
    DuplicateMaskIndexWarning.__name__,
    IndexOutOfRangeError.__name__,
    ShapeMismatchError.__name__,
    IUnpooling2D.__name__,
    IUnpoolStrategy.__name__,
]
