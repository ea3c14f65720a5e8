"""
Unpooling configuration: raw parameters and their resolution.

`UnpoolingParameter` carries the raw, possibly incomplete configuration a
surrounding framework hands to the layer: kernel, pad and stride either as
one symmetric value or as an explicit (h, w) pair, with every field
optional. `resolve_unpooling_parameter` validates the mutual-exclusivity
and range rules and produces an immutable `Unpool2dMeta`.

Resolution rules
----------------
- kernel: `kernel_size` OR (`kernel_h` AND `kernel_w`); never both, never
  neither. All kernel dimensions must be > 0.
- pad: `pad` OR (`pad_h` AND `pad_w`); default 0. Pads must be >= 0 and,
  when any pad is nonzero, strictly smaller than the matching kernel side.
- stride: `stride` OR (`stride_h` AND `stride_w`); default 1. Strides must
  be > 0.

Every violation raises `ConfigurationError` naming the broken constraint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ...domain._errors import ConfigurationError
from ..ops.unpool2d_cpu import _pair


def _config_pair(name: str, v: object) -> Tuple[object, object]:
    pair = _pair(v)
    if len(pair) != 2:
        raise ConfigurationError(f"{name} must be an int or a pair, got {v!r}")
    return pair


@dataclass(frozen=True)
class UnpoolingParameter:
    """
    Raw unpooling configuration, as supplied by the caller.

    A field set to None is "unset". Symmetric fields (`kernel_size`, `pad`,
    `stride`) and their explicit per-axis counterparts are mutually
    exclusive; see `resolve_unpooling_parameter`.
    """

    kernel_size: Optional[int] = None
    kernel_h: Optional[int] = None
    kernel_w: Optional[int] = None
    pad: Optional[int] = None
    pad_h: Optional[int] = None
    pad_w: Optional[int] = None
    stride: Optional[int] = None
    stride_h: Optional[int] = None
    stride_w: Optional[int] = None

    @classmethod
    def from_pairs(
        cls,
        kernel_size: int | Tuple[int, int],
        *,
        stride: Optional[int | Tuple[int, int]] = None,
        padding: int | Tuple[int, int] = 0,
    ) -> "UnpoolingParameter":
        """
        Build an explicit per-axis parameter from int-or-pair arguments.

        Parameters
        ----------
        kernel_size : int or tuple[int, int]
            Unpooling window size.
        stride : int or tuple[int, int] or None, optional
            Stride of the paired pooling layer. If None, defaults to
            `kernel_size`.
        padding : int or tuple[int, int], optional
            Padding of the paired pooling layer.

        Returns
        -------
        UnpoolingParameter
            Parameter with `kernel_h/w`, `stride_h/w` and `pad_h/w` set.
        """
        k_h, k_w = _config_pair("kernel_size", kernel_size)
        s_h, s_w = _config_pair("stride", kernel_size if stride is None else stride)
        p_h, p_w = _config_pair("padding", padding)
        return cls(
            kernel_h=k_h,
            kernel_w=k_w,
            stride_h=s_h,
            stride_w=s_w,
            pad_h=p_h,
            pad_w=p_w,
        )


@dataclass(frozen=True)
class Unpool2dMeta:
    """
    Immutable, validated configuration for 2D unpooling.

    Attributes
    ----------
    kernel_size : tuple[int, int]
        Kernel size (k_h, k_w).
    stride : tuple[int, int]
        Stride (s_h, s_w).
    padding : tuple[int, int]
        Padding (p_h, p_w).
    """

    kernel_size: Tuple[int, int]
    stride: Tuple[int, int]
    padding: Tuple[int, int]


def _check_int(name: str, value: object) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(
        value, (int, np.integer)
    ):
        raise ConfigurationError(
            f"{name} must be an integer, got {type(value).__name__} {value!r}"
        )
    return int(value)


def _pick(
    param: UnpoolingParameter,
    symmetric: str,
    default: Optional[int],
) -> Tuple[int, int]:
    """
    Resolve one symmetric/per-axis field group to an (h, w) pair.
    """
    both = getattr(param, symmetric)
    h_name, w_name = f"{symmetric}_h", f"{symmetric}_w"
    if symmetric == "kernel_size":
        h_name, w_name = "kernel_h", "kernel_w"
    h = getattr(param, h_name)
    w = getattr(param, w_name)

    if both is not None and (h is not None or w is not None):
        raise ConfigurationError(
            f"conflicting {symmetric}/{h_name}/{w_name}: "
            f"set {symmetric} OR {h_name} and {w_name}, not both"
        )
    if (h is None) != (w is None):
        missing = w_name if w is None else h_name
        raise ConfigurationError(
            f"{h_name} and {w_name} must be given together ({missing} unset)"
        )

    if both is not None:
        v = _check_int(symmetric, both)
        return v, v
    if h is not None:
        return _check_int(h_name, h), _check_int(w_name, w)
    if default is None:
        raise ConfigurationError(
            f"{symmetric} unset: set {symmetric} OR {h_name} and {w_name}"
        )
    return default, default


def resolve_unpooling_parameter(param: UnpoolingParameter) -> Unpool2dMeta:
    """
    Validate a raw `UnpoolingParameter` and resolve it to `Unpool2dMeta`.

    Parameters
    ----------
    param : UnpoolingParameter
        Raw configuration.

    Returns
    -------
    Unpool2dMeta
        Resolved (kernel, stride, padding) pairs.

    Raises
    ------
    ConfigurationError
        On missing, contradictory, non-integer or out-of-range settings.
    """
    if not isinstance(param, UnpoolingParameter):
        raise ConfigurationError(
            f"expected UnpoolingParameter, got {type(param).__name__}"
        )

    k_h, k_w = _pick(param, "kernel_size", default=None)
    if k_h <= 0 or k_w <= 0:
        raise ConfigurationError(
            f"kernel dimensions must be > 0, got (kernel_h, kernel_w)={(k_h, k_w)}"
        )

    p_h, p_w = _pick(param, "pad", default=0)
    if p_h < 0 or p_w < 0:
        raise ConfigurationError(
            f"pad must be >= 0, got (pad_h, pad_w)={(p_h, p_w)}"
        )
    if p_h != 0 or p_w != 0:
        if p_h >= k_h or p_w >= k_w:
            raise ConfigurationError(
                f"pad must be smaller than kernel: (pad_h, pad_w)={(p_h, p_w)}, "
                f"(kernel_h, kernel_w)={(k_h, k_w)}"
            )

    s_h, s_w = _pick(param, "stride", default=1)
    if s_h <= 0 or s_w <= 0:
        raise ConfigurationError(
            f"stride must be > 0, got (stride_h, stride_w)={(s_h, s_w)}"
        )

    return Unpool2dMeta(kernel_size=(k_h, k_w), stride=(s_h, s_w), padding=(p_h, p_w))
