"""
Allocating functional wrappers for 2D max unpooling.

These helpers cover the common case where the caller has arrays but no
long-lived layer: they build a `MaxUnpool2dLayer` from pooling-style
hyperparameters, resolve the shape, allocate the destination buffer and run
one forward or backward pass.

Notes
-----
- Hyperparameters follow the max-pooling convention: int-or-pair values and
  `stride=None` meaning "same as kernel_size".
- The output dtype matches the source values (`x` or `grad_out`).
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from ...domain._unpooling import IUnpoolStrategy
from ._unpooling_layer import MaxUnpool2dLayer


def max_unpool2d_forward(
    x: np.ndarray,
    mask: np.ndarray,
    *,
    kernel_size: int | Tuple[int, int],
    stride: Optional[int | Tuple[int, int]] = None,
    padding: int | Tuple[int, int] = 0,
    strategy: Optional[str | IUnpoolStrategy] = None,
) -> np.ndarray:
    """
    Compute the forward pass of 2D max unpooling into a new array.

    Parameters
    ----------
    x : np.ndarray
        Pooled values of shape (N, C, H, W).
    mask : np.ndarray
        Flat offsets into each unpooled plane, shape (N, C, H, W).
    kernel_size : int | tuple[int, int]
        Kernel size of the paired pooling layer.
    stride : Optional[int | tuple[int, int]], optional
        Stride of the paired pooling layer. If None, defaults to `kernel_size`.
    padding : int | tuple[int, int], optional
        Padding of the paired pooling layer. Defaults to 0.
    strategy : str or IUnpoolStrategy or None, optional
        Execution strategy; None uses the configured default.

    Returns
    -------
    np.ndarray
        Unpooled output of shape (N, C, H_up, W_up).
    """
    layer = MaxUnpool2dLayer.from_pairs(
        kernel_size, stride=stride, padding=padding, strategy=strategy
    )
    top = np.empty(layer.reshape(np.shape(x)), dtype=np.asarray(x).dtype)
    layer.forward(x, mask, top)
    return top


def max_unpool2d_backward(
    grad_out: np.ndarray,
    mask: np.ndarray,
    *,
    x_shape: Sequence[int],
    kernel_size: int | Tuple[int, int],
    stride: Optional[int | Tuple[int, int]] = None,
    padding: int | Tuple[int, int] = 0,
    strategy: Optional[str | IUnpoolStrategy] = None,
) -> np.ndarray:
    """
    Compute the backward pass of 2D max unpooling into a new array.

    Parameters
    ----------
    grad_out : np.ndarray
        Gradient with respect to the unpooled output, shape (N, C, H_up, W_up).
    mask : np.ndarray
        The mask used during the forward pass.
    x_shape : Sequence[int]
        Shape (N, C, H, W) of the forward input.
    kernel_size, stride, padding
        Same hyperparameters used during the forward pass.
    strategy : str or IUnpoolStrategy or None, optional
        Execution strategy; None uses the configured default.

    Returns
    -------
    np.ndarray
        Gradient with respect to the forward input, shape `x_shape`.
    """
    layer = MaxUnpool2dLayer.from_pairs(
        kernel_size, stride=stride, padding=padding, strategy=strategy
    )
    layer.reshape(x_shape)
    grad_x = np.empty(
        layer.resolved_shape.bottom_shape, dtype=np.asarray(grad_out).dtype
    )
    layer.backward(grad_out, mask, True, grad_x)
    return grad_x
