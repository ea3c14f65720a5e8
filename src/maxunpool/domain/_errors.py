"""
Configuration-, shape- and index-related exceptions for MaxUnpool.

This module defines the error taxonomy raised by the unpooling operator.
Every error is detected eagerly, before any output buffer is touched, and
surfaced synchronously to the caller. None of these conditions is retried
or recovered locally: a malformed configuration or a corrupted mask is a
programming error in the caller's pipeline, not a transient condition.

Each exception subclasses the closest builtin so generic handlers
(`except ValueError`, `except IndexError`) keep working.
"""

from __future__ import annotations

from typing import Optional, Tuple


class ConfigurationError(ValueError):
    """
    Raised when kernel, pad or stride settings are invalid or contradictory.

    Detected during layer setup; computation cannot proceed.
    """


class ShapeMismatchError(ValueError):
    """
    Raised when a tensor's extent disagrees with the resolved layer shape.

    Typical causes are a mask whose shape differs from the input, an output
    buffer that was not sized by the preceding `reshape`, or a call to
    forward/backward before any shape has been resolved.
    """


class IndexOutOfRangeError(IndexError):
    """
    Raised when a mask value does not address a valid output-plane offset.

    A valid offset lies in `[0, unpooled_height * unpooled_width)`. Values
    are never clamped: clamping would silently break the scatter/gather
    adjoint relationship.

    Attributes
    ----------
    position : tuple[int, int, int, int] | None
        (n, c, h, w) location of the offending mask element, if known.
    value : object
        The offending mask value.
    plane_size : int
        Number of elements in one output plane.
    """

    def __init__(
        self,
        value: object,
        plane_size: int,
        position: Optional[Tuple[int, int, int, int]] = None,
        reason: str = "out of range",
    ) -> None:
        """
        Initialize the IndexOutOfRangeError.

        Parameters
        ----------
        value : object
            Mask value that failed validation.
        plane_size : int
            Size of one unpooled plane (exclusive upper bound for offsets).
        position : tuple[int, int, int, int] | None, optional
            Location of the mask element as (n, c, h, w).
        reason : str, optional
            Short description of the violation.
        """
        where = "" if position is None else f" at (n, c, h, w)={position}"
        super().__init__(
            f"mask value {value!r}{where} is {reason}; "
            f"valid offsets are [0, {plane_size})."
        )
        self.value = value
        self.plane_size = plane_size
        self.position = position


class DeviceNotSupportedError(RuntimeError):
    """
    Raised when an unpooling strategy is requested on a device backend
    that is not implemented.

    Attributes
    ----------
    op : str
        The name of the operation or strategy that was requested.
    device : str
        String representation of the requested device.
    """

    def __init__(self, op: str, device: str) -> None:
        """
        Initialize the DeviceNotSupportedError.

        Parameters
        ----------
        op : str
            The operation name that is not supported on the given device.
        device : str
            The device identifier (e.g., "cuda:0").
        """
        super().__init__(f"{op} is not implemented for device '{device}'.")
        self.op = op
        self.device = device


class DuplicateMaskIndexWarning(RuntimeWarning):
    """
    Emitted by the optional debug check when two input elements of the same
    plane scatter to one output offset.

    Forward then keeps the last write and backward is no longer a true
    adjoint. Paired max-pooling layers are expected to prevent this.
    """
