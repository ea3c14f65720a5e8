"""
Max-unpooling public API (configuration, strategies, layer, functional ops).

Importing this package registers the built-in execution strategies
("reference", "vectorized") with `UnpoolStrategyRegistry`.
"""

from ._unpooling_config import (
    Unpool2dMeta,
    UnpoolingParameter,
    resolve_unpooling_parameter,
)
from ._unpooling_strategy import (
    ReferenceScatterGather,
    UnpoolStrategyRegistry,
    VectorizedScatterGather,
    get_strategy,
)
from ._unpooling_layer import MaxUnpool2dLayer, ResolvedShape, resolve_shape
from ._unpooling_function import max_unpool2d_backward, max_unpool2d_forward

__all__ = [
    Unpool2dMeta.__name__,
    UnpoolingParameter.__name__,
    resolve_unpooling_parameter.__name__,
    ReferenceScatterGather.__name__,
    UnpoolStrategyRegistry.__name__,
    VectorizedScatterGather.__name__,
    get_strategy.__name__,
    MaxUnpool2dLayer.__name__,
    ResolvedShape.__name__,
    resolve_shape.__name__,
    max_unpool2d_backward.__name__,
    max_unpool2d_forward.__name__,
]
