"""
CPU reference implementations for 2D max unpooling (NumPy backend).

This module provides **naive, readable, and correct** NumPy-based
implementations of index-based max unpooling for tensors in **NCHW**
layout. These functions serve as:

- A correctness reference for the vectorized backend (`unpool2d_cpu_ext`)
- The numerical ground truth for unit tests
- The kernels behind the "reference" execution strategy

Implemented operations
----------------------
- MaxUnpool2D forward  (scatter by mask offset)
- MaxUnpool2D backward (gather by the same mask offset)

Design notes
------------
- Mask values are flat offsets into one (batch, channel) plane of the
  unpooled output: `offset = row * W_up + col`.
- Input, mask and output planes are walked in lockstep by `PlaneCursor`,
  batch outer and channel inner.
- Kernels assume validated inputs: shapes match the resolved layer shape
  and every mask value lies in `[0, H_up * W_up)`. Validation lives in
  `unpool2d_checks`.
- With duplicate offsets in one plane, forward keeps the last write in
  (row, col) order.
"""

from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError


def _pair(v: int | Tuple[int, int]) -> Tuple[int, int]:
    """
    Normalize an integer or pair into a 2-tuple.

    Parameters
    ----------
    v : int or tuple[int, int]
        Scalar or pair value.

    Returns
    -------
    tuple[int, int]
        Normalized (v, v) if scalar, otherwise the original pair as a tuple.
    """
    return tuple(v) if isinstance(v, (tuple, list)) else (v, v)


def _unpooled_hw(
    H: int, W: int, k: Tuple[int, int], s: Tuple[int, int], p: Tuple[int, int]
) -> Tuple[int, int]:
    """
    Compute unpooled spatial dimensions.

    This is the inverse of the pooling output-size formula
    `H = (H_up + 2 * p_h - k_h) // s_h + 1` and is evaluated in integer
    arithmetic so it stays compatible with paired pooling layers.

    Parameters
    ----------
    H, W : int
        Input (pooled) height and width.
    k : tuple[int, int]
        Kernel size (k_h, k_w).
    s : tuple[int, int]
        Stride (s_h, s_w).
    p : tuple[int, int]
        Padding (p_h, p_w).

    Returns
    -------
    tuple[int, int]
        Unpooled height and width (H_up, W_up).
    """
    k_h, k_w = k
    s_h, s_w = s
    p_h, p_w = p
    H_up = int((H - 1) * s_h + k_h - 2 * p_h)
    W_up = int((W - 1) * s_w + k_w - 2 * p_w)
    return H_up, W_up


class PlaneCursor:
    """
    Walk the (batch, channel) planes of several NCHW arrays in lockstep.

    Every iteration advances all arrays by exactly one plane and yields one
    2D view per array, so callers never keep separate per-array offsets.

    Parameters
    ----------
    *arrays : np.ndarray
        Arrays of shape (N, C, H_i, W_i). All must share (N, C); the spatial
        extents may differ.

    Attributes
    ----------
    n, c : int
        Batch and channel index of the plane most recently yielded.

    Notes
    -----
    Yielded planes are views (`arr[n, c]`), so writes through an output
    plane land in the caller's buffer even when it is not contiguous.
    """

    __slots__ = ("_arrays", "num", "channels", "n", "c")

    def __init__(self, *arrays: np.ndarray) -> None:
        if not arrays:
            raise ValueError("PlaneCursor requires at least one array")

        num, channels = arrays[0].shape[:2]
        for arr in arrays:
            if arr.ndim != 4 or arr.shape[:2] != (num, channels):
                raise ShapeMismatchError(
                    f"PlaneCursor arrays must share (N, C)={(num, channels)}, "
                    f"got shape {arr.shape}"
                )

        self._arrays = arrays
        self.num = int(num)
        self.channels = int(channels)
        self.n = 0
        self.c = 0

    def __len__(self) -> int:
        return self.num * self.channels

    def __iter__(self) -> Iterator[Tuple[np.ndarray, ...]]:
        for n in range(self.num):
            for c in range(self.channels):
                self.n, self.c = n, c
                yield tuple(arr[n, c] for arr in self._arrays)

    def offset(self, i: int) -> int:
        """
        Element offset of the current plane inside array `i`.

        Equivalent to `((n * C) + c) * H_i * W_i` for a contiguous array.
        """
        _, _, h, w = self._arrays[i].shape
        return (self.n * self.channels + self.c) * h * w


def unpool2d_forward_cpu(bottom: np.ndarray, mask: np.ndarray, top: np.ndarray) -> None:
    """
    Naive MaxUnpool2D forward pass (CPU, NumPy), NCHW, in place.

    Parameters
    ----------
    bottom : np.ndarray
        Input tensor of shape (N, C, H, W).
    mask : np.ndarray
        Integer offsets into each unpooled plane, shape (N, C, H, W).
    top : np.ndarray
        Output tensor of shape (N, C, H_up, W_up). Zero-filled, then written.

    Notes
    -----
    - Every output element not targeted by the mask is exactly zero.
    - Duplicate targets within a plane keep the last write.
    """
    top.fill(0)

    H, W = bottom.shape[2], bottom.shape[3]
    W_up = top.shape[3]

    for x_plane, m_plane, y_plane in PlaneCursor(bottom, mask, top):
        for ph in range(H):
            for pw in range(W):
                mask_index = int(m_plane[ph, pw])
                y_plane[mask_index // W_up, mask_index % W_up] = x_plane[ph, pw]


def unpool2d_backward_cpu(
    top_diff: np.ndarray, mask: np.ndarray, bottom_diff: np.ndarray
) -> None:
    """
    Naive MaxUnpool2D backward pass (CPU, NumPy), NCHW, in place.

    Parameters
    ----------
    top_diff : np.ndarray
        Gradient with respect to the output, shape (N, C, H_up, W_up).
    mask : np.ndarray
        The mask used during the forward pass, shape (N, C, H, W).
    bottom_diff : np.ndarray
        Gradient with respect to the input, shape (N, C, H, W).
        Zero-filled, then written.

    Notes
    -----
    - Gradients are gathered, not accumulated: each input position receives
      exactly the output gradient at the offset it scattered to.
    """
    bottom_diff.fill(0)

    H, W = bottom_diff.shape[2], bottom_diff.shape[3]
    W_up = top_diff.shape[3]

    for g_plane, m_plane, gx_plane in PlaneCursor(top_diff, mask, bottom_diff):
        for ph in range(H):
            for pw in range(W):
                mask_index = int(m_plane[ph, pw])
                gx_plane[ph, pw] = g_plane[mask_index // W_up, mask_index % W_up]
