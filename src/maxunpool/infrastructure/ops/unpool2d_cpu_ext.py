"""
Vectorized 2D max-unpooling kernels (NumPy backend).

These kernels back the "vectorized" execution strategy. They compute exactly
what the reference loops in `unpool2d_cpu` compute, but treat the batch and
channel axes as one stacked axis of flat planes:

    (N, C, H, W)      -> (N * C, H * W)          input / mask / input grad
    (N, C, H_up, W_up) -> (N * C, H_up * W_up)   output / output grad

and move every element of every plane with a single `np.put_along_axis`
(scatter) or `np.take_along_axis` (gather) call.

Notes
-----
- Inputs are assumed validated (see `unpool2d_checks`).
- Fancy-index assignment applies writes in index order, so duplicate
  targets keep the last write, matching the reference loops.
- Contiguous outputs are written through a reshaped view; other layouts go
  through a temporary and one final copy.
"""

from __future__ import annotations

import numpy as np


def _flat_planes(arr: np.ndarray) -> np.ndarray:
    N, C, H, W = arr.shape
    return arr.reshape(N * C, H * W)


def unpool2d_forward_vectorized(
    bottom: np.ndarray, mask: np.ndarray, top: np.ndarray
) -> None:
    """
    Vectorized MaxUnpool2D forward pass, NCHW, in place.

    Parameters
    ----------
    bottom : np.ndarray
        Input tensor of shape (N, C, H, W).
    mask : np.ndarray
        Integer offsets into each unpooled plane, shape (N, C, H, W).
    top : np.ndarray
        Output tensor of shape (N, C, H_up, W_up). Zero-filled, then written.
    """
    if top.flags.c_contiguous:
        planes = _flat_planes(top)
        planes.fill(0)
    else:
        planes = np.zeros(
            (top.shape[0] * top.shape[1], top.shape[2] * top.shape[3]),
            dtype=top.dtype,
        )

    if bottom.size:
        np.put_along_axis(
            planes,
            _flat_planes(mask).astype(np.intp, copy=False),
            _flat_planes(bottom),
            axis=1,
        )

    if not top.flags.c_contiguous:
        top[...] = planes.reshape(top.shape)


def unpool2d_backward_vectorized(
    top_diff: np.ndarray, mask: np.ndarray, bottom_diff: np.ndarray
) -> None:
    """
    Vectorized MaxUnpool2D backward pass, NCHW, in place.

    Parameters
    ----------
    top_diff : np.ndarray
        Gradient with respect to the output, shape (N, C, H_up, W_up).
    mask : np.ndarray
        The mask used during the forward pass, shape (N, C, H, W).
    bottom_diff : np.ndarray
        Gradient with respect to the input, shape (N, C, H, W).
        Zero-filled, then written.
    """
    bottom_diff.fill(0)
    if bottom_diff.size == 0:
        return

    gathered = np.take_along_axis(
        _flat_planes(top_diff),
        _flat_planes(mask).astype(np.intp, copy=False),
        axis=1,
    )
    bottom_diff[...] = gathered.reshape(bottom_diff.shape)
