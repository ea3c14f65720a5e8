"""
Environment-driven defaults for MaxUnpool layers.

Layers constructed without an explicit strategy or debug flag fall back to
the values resolved here. Sources, in increasing priority:

1. Built-in defaults (`UnpoolSettings()`)
2. An optional `.env` file, parsed with `python-dotenv` (`dotenv_values`);
   the file is read but never exported into `os.environ`
3. The process environment

Recognized variables
--------------------
MAXUNPOOL_STRATEGY
    Registry name of the execution strategy ("reference", "vectorized").
MAXUNPOOL_CHECK_UNIQUE_MASK
    Enable the per-plane duplicate-offset debug check
    (1/0, true/false, yes/no, on/off; case-insensitive).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from ..domain._errors import ConfigurationError

ENV_STRATEGY = "MAXUNPOOL_STRATEGY"
ENV_CHECK_UNIQUE_MASK = "MAXUNPOOL_CHECK_UNIQUE_MASK"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class UnpoolSettings:
    """
    Resolved default settings for unpooling layers.

    Attributes
    ----------
    strategy : str
        Default execution strategy name.
    check_unique_mask : bool
        Whether layers run the duplicate-offset debug check by default.
    """

    strategy: str = "reference"
    check_unique_mask: bool = False


def _parse_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {raw!r}")


def load_settings(
    env_file: Optional[str | os.PathLike] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> UnpoolSettings:
    """
    Resolve `UnpoolSettings` from a `.env` file and the environment.

    Parameters
    ----------
    env_file : str or PathLike, optional
        Path to a dotenv file. Missing files are an error when given
        explicitly.
    environ : Mapping[str, str], optional
        Environment mapping to read instead of `os.environ`.

    Returns
    -------
    UnpoolSettings
        The merged settings.

    Raises
    ------
    ConfigurationError
        If `env_file` does not exist or a variable holds an invalid value.
    """
    values: dict[str, Optional[str]] = {}
    if env_file is not None:
        path = Path(env_file)
        if not path.is_file():
            raise ConfigurationError(f"settings file not found: {str(path)!r}")
        values.update(dotenv_values(path))

    env = os.environ if environ is None else environ
    for key in (ENV_STRATEGY, ENV_CHECK_UNIQUE_MASK):
        if key in env:
            values[key] = env[key]

    defaults = UnpoolSettings()

    strategy = values.get(ENV_STRATEGY)
    strategy = defaults.strategy if not strategy else strategy.strip()

    raw_check = values.get(ENV_CHECK_UNIQUE_MASK)
    check = (
        defaults.check_unique_mask
        if not raw_check
        else _parse_bool(ENV_CHECK_UNIQUE_MASK, raw_check)
    )

    return UnpoolSettings(strategy=strategy, check_unique_mask=check)
