"""
Unpooling execution strategies and their registry.

An execution strategy performs the raw scatter (forward) and gather
(backward) over buffers the layer has already validated. The layer picks
one strategy at construction and holds it; switching backends never
requires a layer subclass.

Built-in strategies
-------------------
- ``reference``:
    Plane-by-plane Python loops (`ops.unpool2d_cpu`). Slow, obviously
    correct, and the ground truth for tests.
- ``vectorized``:
    Batched NumPy scatter/gather over all planes at once
    (`ops.unpool2d_cpu_ext`). Bit-identical to ``reference`` for masks
    with unique targets per plane.

Usage example
-------------
Registering a strategy:

    @UnpoolStrategyRegistry.register_strategy("mine")
    class MyStrategy(_CpuStrategy):
        ...

Selecting one:

    strategy = get_strategy("vectorized")
    strategy.forward(bottom, mask, top)

Notes
-----
- Only the CPU device is implemented. Requesting any other device fails
  fast with `DeviceNotSupportedError` instead of silently skipping work.
"""

from __future__ import annotations

from typing import Callable, ClassVar, Dict, TypeVar

import numpy as np

from ...domain._errors import ConfigurationError, DeviceNotSupportedError
from ...domain._unpooling import IUnpoolStrategy
from ..ops.unpool2d_cpu import unpool2d_backward_cpu, unpool2d_forward_cpu
from ..ops.unpool2d_cpu_ext import (
    unpool2d_backward_vectorized,
    unpool2d_forward_vectorized,
)

S = TypeVar("S", bound=type)


class UnpoolStrategyRegistry:
    """
    Class-level registry mapping strategy names to strategy classes.

    Notes
    -----
    - Strategies are stored by string name.
    - Registration keys must be unique unless explicitly overwritten.
    """

    STRATEGIES: ClassVar[Dict[str, type]] = {}

    @classmethod
    def register_strategy(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[S], S]:
        """
        Decorator to register a strategy class under `name`.

        Parameters
        ----------
        name:
            Registry key used to retrieve the strategy later.
        overwrite:
            If False (default), raises if `name` is already registered.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Strategy name must be a non-empty string")

        def decorator(strategy_cls: S) -> S:
            if not overwrite and name in cls.STRATEGIES:
                raise ValueError(f"Strategy already registered: {name!r}")
            cls.STRATEGIES[name] = strategy_cls
            return strategy_cls

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Return registered strategy names (sorted)."""
        return tuple(sorted(cls.STRATEGIES))

    @classmethod
    def get(cls, name: str) -> type:
        """Get a registered strategy class by name."""
        try:
            return cls.STRATEGIES[name]
        except KeyError as e:
            available = ", ".join(cls.available()) or "<none>"
            raise ConfigurationError(
                f"Unsupported unpooling strategy: {name!r}. Available: {available}"
            ) from e


class _CpuStrategy:
    """Base for strategies executing on host memory through NumPy."""

    name: ClassVar[str] = ""

    @property
    def device(self) -> str:
        return "cpu"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, device={self.device!r})"


@UnpoolStrategyRegistry.register_strategy("reference")
class ReferenceScatterGather(_CpuStrategy):
    """Plane-cursor loop implementation of forward scatter / backward gather."""

    name = "reference"

    def forward(self, bottom: np.ndarray, mask: np.ndarray, top: np.ndarray) -> None:
        unpool2d_forward_cpu(bottom, mask, top)

    def backward(
        self, top_diff: np.ndarray, mask: np.ndarray, bottom_diff: np.ndarray
    ) -> None:
        unpool2d_backward_cpu(top_diff, mask, bottom_diff)


@UnpoolStrategyRegistry.register_strategy("vectorized")
class VectorizedScatterGather(_CpuStrategy):
    """Batched `put_along_axis` / `take_along_axis` implementation."""

    name = "vectorized"

    def forward(self, bottom: np.ndarray, mask: np.ndarray, top: np.ndarray) -> None:
        unpool2d_forward_vectorized(bottom, mask, top)

    def backward(
        self, top_diff: np.ndarray, mask: np.ndarray, bottom_diff: np.ndarray
    ) -> None:
        unpool2d_backward_vectorized(top_diff, mask, bottom_diff)


def get_strategy(name: str = "reference", device: str = "cpu") -> IUnpoolStrategy:
    """
    Instantiate the strategy registered under `name` for `device`.

    Parameters
    ----------
    name : str, optional
        Registry name. Defaults to "reference".
    device : str, optional
        Target device. Only "cpu" is implemented.

    Returns
    -------
    IUnpoolStrategy
        A new strategy object.

    Raises
    ------
    ConfigurationError
        If `name` is not registered.
    DeviceNotSupportedError
        If `device` is not "cpu".
    """
    strategy_cls = UnpoolStrategyRegistry.get(name)
    if str(device).lower() != "cpu":
        raise DeviceNotSupportedError(f"unpool2d[{name}]", str(device))
    return strategy_cls()
