"""
Configuration mixins for 2D unpooling layers.

This module defines `Unpool2dConfigMixin`, a lightweight mixin that provides
JSON-serializable configuration hooks for max-unpooling layers.

Design notes
------------
- Assumes the host class defines `kernel_size`, `stride`, `padding`
  (pairs) and `strategy_name` attributes or properties.
- Uses plain Python types (lists, ints, str) to ensure JSON compatibility.
- `from_config` routes through the host's `from_pairs` constructor so the
  restored layer is validated exactly like a freshly configured one.
"""

from typing import Any, Dict

from typing_extensions import Self


class Unpool2dConfigMixin:
    """
    Mixin providing JSON serialization hooks for 2D unpooling layers.

    This mixin assumes the host class exposes the following attributes
    or properties:
    - kernel_size   : tuple[int, int]
    - stride        : tuple[int, int]
    - padding       : tuple[int, int]
    - strategy_name : str

    and a classmethod `from_pairs(kernel_size, *, stride, padding, strategy)`.
    """

    # ---------------------------------------------------------------------
    # JSON serialization
    # ---------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return JSON-serializable configuration for this unpooling layer.
        """
        k_h, k_w = self.kernel_size
        s_h, s_w = self.stride
        p_h, p_w = self.padding

        return {
            "kernel_size": [int(k_h), int(k_w)],
            "stride": [int(s_h), int(s_w)],
            "padding": [int(p_h), int(p_w)],
            "strategy": str(self.strategy_name),
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        """
        Reconstruct the unpooling layer from a JSON configuration dict.
        """
        return cls.from_pairs(
            tuple(cfg["kernel_size"]),
            stride=tuple(cfg["stride"]),
            padding=tuple(cfg["padding"]),
            strategy=cfg.get("strategy"),
        )
