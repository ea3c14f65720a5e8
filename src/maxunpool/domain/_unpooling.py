"""
Unpooling interfaces for MaxUnpool.

This module defines **domain-level Protocols** for index-based 2D max
unpooling: the execution strategy that moves values between the small
(pooled) and large (unpooled) feature maps, and the layer that owns the
configuration, the resolved shape and one such strategy.

Design principles
-----------------
- Tensors are **NCHW** arrays owned by the caller.
- Forward scatters, backward gathers; the two are adjoints as long as the
  mask targets within each plane are unique.
- Strategies are selected once and held by the layer (composition), so the
  layer never needs subclassing to switch execution backends.
- Interfaces use `Protocol` for structural subtyping.

Notes
-----
This module contains **no NumPy or backend-specific logic** and is safe to
depend on from any layer of the architecture.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class IUnpoolStrategy(Protocol):
    """
    Protocol for an unpooling execution strategy.

    A strategy performs the raw scatter/gather over already-validated
    buffers. It owns no state beyond its identity and may be shared across
    calls with the same resolved shape.

    Shape semantics
    ---------------
    bottom, mask, bottom_diff:
        (N, C, H, W)

    top, top_diff:
        (N, C, H_up, W_up)

    Contract
    --------
    - `forward` zero-fills `top`, then writes `top[n, c].flat[mask[n, c, h, w]]
      = bottom[n, c, h, w]` for every element.
    - `backward` zero-fills `bottom_diff`, then writes
      `bottom_diff[n, c, h, w] = top_diff[n, c].flat[mask[n, c, h, w]]`.
    - Neither method validates; callers guarantee shapes and index ranges.
    """

    @property
    def name(self) -> str:
        """Registry name of the strategy (e.g. "reference")."""

    @property
    def device(self) -> str:
        """Device identifier the strategy executes on (e.g. "cpu")."""

    def forward(self, bottom: Any, mask: Any, top: Any) -> None:
        """
        Scatter `bottom` into `top` at the offsets recorded in `mask`.

        Parameters
        ----------
        bottom : array-like
            Small feature map, shape (N, C, H, W). Read only.
        mask : array-like
            Integer flat offsets into each unpooled plane, shape (N, C, H, W).
        top : array-like
            Writable output, shape (N, C, H_up, W_up). Fully overwritten.
        """

    def backward(self, top_diff: Any, mask: Any, bottom_diff: Any) -> None:
        """
        Gather `top_diff` into `bottom_diff` at the offsets recorded in `mask`.

        Parameters
        ----------
        top_diff : array-like
            Gradient w.r.t. the unpooled output, shape (N, C, H_up, W_up).
        mask : array-like
            The mask used by the paired forward call.
        bottom_diff : array-like
            Writable gradient w.r.t. the input, shape (N, C, H, W).
            Fully overwritten.
        """


@runtime_checkable
class IUnpooling2D(Protocol):
    """
    Protocol for a 2D max-unpooling layer driven by an external framework.

    Lifecycle
    ---------
    1. Construction validates the raw configuration (setup).
    2. `reshape` resolves the output shape for an input shape and caches it.
    3. `forward` / `backward` run any number of times against that shape.

    Shape semantics
    ---------------
    H_up = (H - 1) * s_h + k_h - 2 * p_h
    W_up = (W - 1) * s_w + k_w - 2 * p_w
    """

    @property
    def kernel_size(self) -> Tuple[int, int]:
        """Kernel size as (k_h, k_w)."""

    @property
    def stride(self) -> Tuple[int, int]:
        """Stride as (s_h, s_w)."""

    @property
    def padding(self) -> Tuple[int, int]:
        """Padding as (p_h, p_w)."""

    def reshape(self, bottom_shape: Sequence[int]) -> Tuple[int, int, int, int]:
        """
        Resolve and cache the output shape for `bottom_shape`.

        Returns
        -------
        tuple[int, int, int, int]
            (N, C, H_up, W_up).
        """

    def forward(self, bottom: Any, mask: Any, top: Any) -> None:
        """Validate the buffers and scatter `bottom` into `top` in place."""

    def backward(
        self, top_diff: Any, mask: Any, propagate_down: bool, bottom_diff: Any
    ) -> None:
        """
        Validate the buffers and gather `top_diff` into `bottom_diff` in place.

        When `propagate_down` is False this is a no-op and `bottom_diff` is
        left untouched.
        """
