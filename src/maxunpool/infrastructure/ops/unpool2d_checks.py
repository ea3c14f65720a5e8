"""
Validation helpers for 2D max-unpooling buffers (NumPy backend).

The scatter/gather kernels in `unpool2d_cpu` and `unpool2d_cpu_ext` perform
no checks of their own. Every function here runs **before** a kernel touches
an output buffer, so a rejected call leaves all caller-owned arrays intact.

Checks provided
---------------
- `check_shape`          : exact-extent comparison against a resolved shape
- `as_index_mask`        : integer view/copy of a mask, rejecting non-integral
                           floating values
- `check_mask_range`     : every offset lies in `[0, plane_size)`
- `find_duplicate_plane` : first (n, c) plane with a repeated target offset
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import IndexOutOfRangeError, ShapeMismatchError


def check_shape(name: str, arr: np.ndarray, expected: Sequence[int]) -> None:
    """
    Raise `ShapeMismatchError` unless `arr.shape == expected`.

    Parameters
    ----------
    name : str
        Human-readable buffer name used in the error message.
    arr : np.ndarray
        Array to check.
    expected : Sequence[int]
        Expected (N, C, H, W) extent.
    """
    if not isinstance(arr, np.ndarray):
        raise ShapeMismatchError(
            f"{name} must be a numpy.ndarray, got {type(arr).__name__}"
        )
    if tuple(arr.shape) != tuple(int(d) for d in expected):
        raise ShapeMismatchError(
            f"{name} shape mismatch: expected {tuple(expected)}, got {arr.shape}"
        )


def _position(flat: int, shape: Tuple[int, ...]) -> Tuple[int, int, int, int]:
    n, c, h, w = np.unravel_index(flat, shape)
    return int(n), int(c), int(h), int(w)


def as_index_mask(mask: np.ndarray, plane_size: int) -> np.ndarray:
    """
    Return `mask` as an integer (`np.intp`) array.

    Integer masks are converted without copying when possible. Floating masks
    (as produced by pooling layers that store indices in the data dtype) are
    accepted when every value is integral.

    Parameters
    ----------
    mask : np.ndarray
        Mask of flat plane offsets.
    plane_size : int
        Unpooled plane size, used only for error reporting.

    Returns
    -------
    np.ndarray
        Integer mask of the same shape.

    Raises
    ------
    IndexOutOfRangeError
        If a floating mask holds a non-integral or non-finite value.
    ShapeMismatchError
        If the mask dtype is neither integer nor floating point.
    """
    if np.issubdtype(mask.dtype, np.integer):
        return mask.astype(np.intp, copy=False)

    if not np.issubdtype(mask.dtype, np.floating):
        raise ShapeMismatchError(
            f"mask must have an integer or floating dtype, got {mask.dtype}"
        )

    bad = ~np.isfinite(mask) | (mask != np.trunc(mask))
    if bad.any():
        flat = int(np.flatnonzero(bad.reshape(-1))[0])
        raise IndexOutOfRangeError(
            mask.reshape(-1)[flat].item(),
            plane_size,
            position=_position(flat, mask.shape),
            reason="not an integral offset",
        )
    # range-check in floating point first; the cast of a huge value is undefined
    check_mask_range(mask, plane_size)
    return mask.astype(np.intp)


def check_mask_range(mask: np.ndarray, plane_size: int) -> None:
    """
    Raise `IndexOutOfRangeError` for the first offset outside `[0, plane_size)`.

    Parameters
    ----------
    mask : np.ndarray
        Integer mask of shape (N, C, H, W).
    plane_size : int
        Number of elements in one unpooled plane.
    """
    if mask.size == 0:
        return
    bad = (mask < 0) | (mask >= plane_size)
    if bad.any():
        flat = int(np.flatnonzero(bad.reshape(-1))[0])
        raise IndexOutOfRangeError(
            int(mask.reshape(-1)[flat]),
            plane_size,
            position=_position(flat, mask.shape),
        )


def find_duplicate_plane(mask: np.ndarray) -> Optional[Tuple[int, int, int]]:
    """
    Locate the first plane whose mask scatters twice to the same offset.

    Parameters
    ----------
    mask : np.ndarray
        Integer mask of shape (N, C, H, W).

    Returns
    -------
    tuple[int, int, int] or None
        (n, c, offset) of the first duplicate found in (batch, channel)
        order, or None when every plane's targets are unique.
    """
    N, C, H, W = mask.shape
    if H * W < 2:
        return None

    planes = np.sort(mask.reshape(N * C, H * W), axis=1)
    dup = planes[:, 1:] == planes[:, :-1]
    rows = np.flatnonzero(dup.any(axis=1))
    if rows.size == 0:
        return None

    row = int(rows[0])
    col = int(np.flatnonzero(dup[row])[0])
    n, c = divmod(row, C)
    return n, c, int(planes[row, col])
