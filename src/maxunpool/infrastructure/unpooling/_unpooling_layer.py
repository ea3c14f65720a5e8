"""
Max-unpooling layer (2D, NCHW).

`MaxUnpool2dLayer` is the object a surrounding layer-execution framework
drives. It owns three things:

- the validated, immutable configuration (`Unpool2dMeta`), resolved once at
  construction (setup),
- the resolved shape (`ResolvedShape`), refreshed by `reshape` whenever the
  input shape changes and reused until the next change,
- one execution strategy (`IUnpoolStrategy`), chosen at construction.

Call protocol
-------------
    layer = MaxUnpool2dLayer(UnpoolingParameter(kernel_size=2, stride=2))
    top_shape = layer.reshape(bottom.shape)
    top = np.empty(top_shape, dtype=bottom.dtype)
    layer.forward(bottom, mask, top)
    layer.backward(top_diff, mask, True, bottom_diff)

Every call validates shapes and mask offsets before a buffer is written, so
a rejected call leaves caller-owned arrays untouched.

Concurrency
-----------
The layer keeps no per-call state. Concurrent forward/backward calls against
the same resolved shape are safe; `reshape` must not overlap with in-flight
forward/backward calls on the same instance.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import (
    ConfigurationError,
    DuplicateMaskIndexWarning,
    ShapeMismatchError,
)
from ...domain._unpooling import IUnpoolStrategy
from ...domain.model._unpool2d_mixin import Unpool2dConfigMixin
from .._settings import load_settings
from ..ops.unpool2d_checks import (
    as_index_mask,
    check_mask_range,
    check_shape,
    find_duplicate_plane,
)
from ..ops.unpool2d_cpu import _unpooled_hw
from ._unpooling_config import (
    Unpool2dMeta,
    UnpoolingParameter,
    resolve_unpooling_parameter,
)
from ._unpooling_strategy import get_strategy


@dataclass(frozen=True)
class ResolvedShape:
    """
    Input/output extents resolved for one input shape.

    Attributes
    ----------
    num, channels : int
        Batch and channel counts, shared by input and output.
    height, width : int
        Input (pooled) spatial size.
    unpooled_height, unpooled_width : int
        Output spatial size.
    """

    num: int
    channels: int
    height: int
    width: int
    unpooled_height: int
    unpooled_width: int

    @property
    def bottom_shape(self) -> Tuple[int, int, int, int]:
        return (self.num, self.channels, self.height, self.width)

    @property
    def top_shape(self) -> Tuple[int, int, int, int]:
        return (self.num, self.channels, self.unpooled_height, self.unpooled_width)

    @property
    def plane_size(self) -> int:
        return self.height * self.width

    @property
    def unpooled_plane_size(self) -> int:
        return self.unpooled_height * self.unpooled_width


def _as_dims(shape: Sequence[int]) -> Tuple[int, ...]:
    try:
        return tuple(int(d) for d in shape)
    except (TypeError, ValueError) as e:
        raise ShapeMismatchError(
            f"bottom shape must be a sequence of ints, got {shape!r}"
        ) from e


def resolve_shape(meta: Unpool2dMeta, bottom_shape: Sequence[int]) -> ResolvedShape:
    """
    Resolve the unpooled output shape for `bottom_shape`.

    Parameters
    ----------
    meta : Unpool2dMeta
        Validated configuration.
    bottom_shape : Sequence[int]
        Input shape (N, C, H, W).

    Returns
    -------
    ResolvedShape
        Resolved extents.

    Raises
    ------
    ShapeMismatchError
        If `bottom_shape` is not 4-D, has a negative batch/channel count,
        non-positive spatial size, or resolves to a non-positive unpooled
        extent.
    """
    dims = _as_dims(bottom_shape)
    if len(dims) != 4:
        raise ShapeMismatchError(
            f"input must have 4 axes (num, channels, height, width), got {dims}"
        )

    N, C, H, W = dims
    if N < 0 or C < 0:
        raise ShapeMismatchError(f"num and channels must be >= 0, got {dims}")
    if H <= 0 or W <= 0:
        raise ShapeMismatchError(f"height and width must be > 0, got {dims}")

    H_up, W_up = _unpooled_hw(H, W, meta.kernel_size, meta.stride, meta.padding)
    if H_up <= 0 or W_up <= 0:
        raise ShapeMismatchError(
            f"unpooled extent {(H_up, W_up)} is not positive for input {dims} "
            f"with kernel={meta.kernel_size}, stride={meta.stride}, "
            f"padding={meta.padding}"
        )

    return ResolvedShape(
        num=N,
        channels=C,
        height=H,
        width=W,
        unpooled_height=H_up,
        unpooled_width=W_up,
    )


class MaxUnpool2dLayer(Unpool2dConfigMixin):
    """
    2D max-unpooling layer (NCHW).

    Forward scatters each input element to the output offset recorded in the
    mask and zero-fills every other output position. Backward gathers the
    output gradient from the same offsets.

    Shape semantics
    ---------------
    Input / mask / input gradient:
        (N, C, H, W)

    Output / output gradient:
        (N, C, H_up, W_up)

    where:
        H_up = (H - 1) * s_h + k_h - 2 * p_h
        W_up = (W - 1) * s_w + k_w - 2 * p_w

    Notes
    -----
    - Mask targets must be unique within each plane (guaranteed by a paired
      max-pooling layer). Duplicates are not removed: forward keeps the last
      write and backward is then not a true adjoint. Enable
      `check_unique_mask` to get a `DuplicateMaskIndexWarning`.
    """

    def __init__(
        self,
        param: UnpoolingParameter,
        *,
        strategy: Optional[str | IUnpoolStrategy] = None,
        check_unique_mask: Optional[bool] = None,
        device: str = "cpu",
    ) -> None:
        """
        Construct and set up a MaxUnpool2dLayer.

        Parameters
        ----------
        param : UnpoolingParameter
            Raw configuration. Validated here, before any shape is resolved.
        strategy : str or IUnpoolStrategy or None, optional
            Execution strategy, as a registry name or an instance. If None,
            the `MAXUNPOOL_STRATEGY` setting is used.
        check_unique_mask : bool or None, optional
            Enable the duplicate-offset debug check. If None, the
            `MAXUNPOOL_CHECK_UNIQUE_MASK` setting is used.
        device : str, optional
            Device for a strategy given by name. Only "cpu" is implemented.

        Raises
        ------
        ConfigurationError
            On invalid configuration or unknown strategy name.
        DeviceNotSupportedError
            If `device` is not implemented.
        """
        self._meta = resolve_unpooling_parameter(param)

        if strategy is None or check_unique_mask is None:
            settings = load_settings()
            if strategy is None:
                strategy = settings.strategy
            if check_unique_mask is None:
                check_unique_mask = settings.check_unique_mask

        if isinstance(strategy, str):
            strategy = get_strategy(strategy, device)
        elif not isinstance(strategy, IUnpoolStrategy):
            raise ConfigurationError(
                f"strategy must be a name or IUnpoolStrategy, got {type(strategy).__name__}"
            )

        self._strategy: IUnpoolStrategy = strategy
        self._check_unique_mask = bool(check_unique_mask)
        self._shape: Optional[ResolvedShape] = None

    @classmethod
    def from_pairs(
        cls,
        kernel_size: int | Tuple[int, int],
        *,
        stride: Optional[int | Tuple[int, int]] = None,
        padding: int | Tuple[int, int] = 0,
        strategy: Optional[str | IUnpoolStrategy] = None,
        check_unique_mask: Optional[bool] = None,
    ) -> "MaxUnpool2dLayer":
        """
        Construct a layer from pooling-style int-or-pair hyperparameters.

        `stride=None` defaults to `kernel_size`, matching the paired
        max-pooling layer's convention.
        """
        return cls(
            UnpoolingParameter.from_pairs(kernel_size, stride=stride, padding=padding),
            strategy=strategy,
            check_unique_mask=check_unique_mask,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def meta(self) -> Unpool2dMeta:
        return self._meta

    @property
    def kernel_size(self) -> Tuple[int, int]:
        return self._meta.kernel_size

    @property
    def stride(self) -> Tuple[int, int]:
        return self._meta.stride

    @property
    def padding(self) -> Tuple[int, int]:
        return self._meta.padding

    @property
    def strategy(self) -> IUnpoolStrategy:
        return self._strategy

    @property
    def strategy_name(self) -> str:
        return self._strategy.name

    @property
    def check_unique_mask(self) -> bool:
        return self._check_unique_mask

    @property
    def resolved_shape(self) -> Optional[ResolvedShape]:
        """The shape cached by the most recent `reshape`, or None."""
        return self._shape

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kernel_size={self.kernel_size}, "
            f"stride={self.stride}, padding={self.padding}, "
            f"strategy={self.strategy_name!r})"
        )

    # ------------------------------------------------------------------
    # Shape resolution
    # ------------------------------------------------------------------
    def reshape(self, bottom_shape: Sequence[int]) -> Tuple[int, int, int, int]:
        """
        Resolve and cache the output shape for an input of `bottom_shape`.

        Calling again with the same input shape reuses the cached result.

        Parameters
        ----------
        bottom_shape : Sequence[int]
            Input shape (N, C, H, W).

        Returns
        -------
        tuple[int, int, int, int]
            Output shape (N, C, H_up, W_up).
        """
        dims = _as_dims(bottom_shape)
        if self._shape is not None and dims == self._shape.bottom_shape:
            return self._shape.top_shape

        self._shape = resolve_shape(self._meta, dims)
        return self._shape.top_shape

    def _require_shape(self) -> ResolvedShape:
        if self._shape is None:
            raise ShapeMismatchError(
                "no resolved shape: call reshape() before forward/backward"
            )
        return self._shape

    def _prepare_mask(self, mask: np.ndarray, shape: ResolvedShape) -> np.ndarray:
        check_shape("mask", mask, shape.bottom_shape)
        plane = shape.unpooled_plane_size
        idx = as_index_mask(mask, plane)
        check_mask_range(idx, plane)

        if self._check_unique_mask:
            dup = find_duplicate_plane(idx)
            if dup is not None:
                n, c, offset = dup
                warnings.warn(
                    f"mask plane (n={n}, c={c}) scatters more than once to "
                    f"offset {offset}; forward keeps the last write and "
                    f"backward is not an exact adjoint",
                    DuplicateMaskIndexWarning,
                    stacklevel=3,
                )
        return idx

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def forward(self, bottom: np.ndarray, mask: np.ndarray, top: np.ndarray) -> None:
        """
        Scatter `bottom` into `top` at the offsets recorded in `mask`.

        Parameters
        ----------
        bottom : np.ndarray
            Input of the resolved shape (N, C, H, W). Read only.
        mask : np.ndarray
            Flat offsets into each unpooled plane, shape (N, C, H, W).
        top : np.ndarray
            Writable output of shape (N, C, H_up, W_up).

        Raises
        ------
        ShapeMismatchError
            If no shape is resolved or any buffer has the wrong extent.
        IndexOutOfRangeError
            If a mask value is not a valid offset into an unpooled plane.
        """
        shape = self._require_shape()
        check_shape("bottom", bottom, shape.bottom_shape)
        check_shape("top", top, shape.top_shape)
        idx = self._prepare_mask(mask, shape)

        self._strategy.forward(bottom, idx, top)

    def backward(
        self,
        top_diff: np.ndarray,
        mask: np.ndarray,
        propagate_down: bool,
        bottom_diff: np.ndarray,
    ) -> None:
        """
        Gather `top_diff` into `bottom_diff` at the offsets recorded in `mask`.

        Parameters
        ----------
        top_diff : np.ndarray
            Gradient w.r.t. the output, shape (N, C, H_up, W_up).
        mask : np.ndarray
            The mask used by the paired forward call.
        propagate_down : bool
            If False, nothing is validated or written.
        bottom_diff : np.ndarray
            Writable gradient w.r.t. the input, shape (N, C, H, W).

        Raises
        ------
        ShapeMismatchError
            If no shape is resolved or any buffer has the wrong extent.
        IndexOutOfRangeError
            If a mask value is not a valid offset into an unpooled plane.
        """
        if not propagate_down:
            return

        shape = self._require_shape()
        check_shape("top_diff", top_diff, shape.top_shape)
        check_shape("bottom_diff", bottom_diff, shape.bottom_shape)
        idx = self._prepare_mask(mask, shape)

        self._strategy.backward(top_diff, idx, bottom_diff)
