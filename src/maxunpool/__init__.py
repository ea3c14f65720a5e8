"""
MaxUnpool: index-based 2D max unpooling for NCHW NumPy arrays.

Forward scatters each pooled value back to the position recorded by a
paired max-pooling step and zero-fills the rest; backward gathers the
gradient from the same positions.

Exports
-------
- MaxUnpool2dLayer, UnpoolingParameter, Unpool2dMeta, ResolvedShape
- max_unpool2d_forward, max_unpool2d_backward
- get_strategy, UnpoolStrategyRegistry
- UnpoolSettings, load_settings
- error types from `maxunpool.domain`
"""

from .domain import (
    ConfigurationError,
    DeviceNotSupportedError,
    DuplicateMaskIndexWarning,
    IndexOutOfRangeError,
    IUnpooling2D,
    IUnpoolStrategy,
    ShapeMismatchError,
)
from .infrastructure._settings import UnpoolSettings, load_settings
from .infrastructure.unpooling import (
    MaxUnpool2dLayer,
    ResolvedShape,
    Unpool2dMeta,
    UnpoolingParameter,
    UnpoolStrategyRegistry,
    get_strategy,
    max_unpool2d_backward,
    max_unpool2d_forward,
    resolve_unpooling_parameter,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DeviceNotSupportedError",
    "DuplicateMaskIndexWarning",
    "IndexOutOfRangeError",
    "IUnpooling2D",
    "IUnpoolStrategy",
    "ShapeMismatchError",
    "UnpoolSettings",
    "load_settings",
    "MaxUnpool2dLayer",
    "ResolvedShape",
    "Unpool2dMeta",
    "UnpoolingParameter",
    "UnpoolStrategyRegistry",
    "get_strategy",
    "max_unpool2d_backward",
    "max_unpool2d_forward",
    "resolve_unpooling_parameter",
]
