"""
Process-wide engine configuration.

The configuration is a frozen dataclass held in a module-level slot. Initial
values come from environment variables so that test runs and scripts can
adjust the engine without code changes:

- ``ESSAY_TENSOR_SOFTMAX_EPSILON``: chunk-sum threshold below which softmax
  normalizes by 1 instead of dividing by the sum.
- ``ESSAY_TENSOR_LOG_LEVEL``: level name applied to the ``essay_tensor``
  logger (e.g., "DEBUG").
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

_LOGGER_NAME = "essay_tensor"


@dataclass(frozen=True)
class EngineConfig:
    """
    Engine configuration.

    Attributes
    ----------
    dtype : numpy dtype
        Element type of every tensor buffer.
    softmax_epsilon : float
        Softmax fallback threshold.
    log_level : str
        Level name for the package logger.
    """

    dtype: Any = np.float32
    softmax_epsilon: float = 1e-20
    log_level: str = "WARNING"


def _from_environ() -> EngineConfig:
    return EngineConfig(
        softmax_epsilon=float(os.environ.get("ESSAY_TENSOR_SOFTMAX_EPSILON", "1e-20")),
        log_level=os.environ.get("ESSAY_TENSOR_LOG_LEVEL", "WARNING").upper(),
    )


def _apply(config: EngineConfig) -> None:
    logging.getLogger(_LOGGER_NAME).setLevel(config.log_level)


_config = _from_environ()
_apply(_config)


def get_config() -> EngineConfig:
    """
    Return the active engine configuration.
    """
    return _config


def set_config(**changes: Any) -> EngineConfig:
    """
    Replace fields of the active configuration.

    Parameters
    ----------
    **changes
        Field values to change (see `EngineConfig`).

    Returns
    -------
    EngineConfig
        The previous configuration, so callers can restore it.

    Raises
    ------
    TypeError
        If an unknown field is given.
    """
    global _config

    previous = _config
    _config = replace(_config, **changes)
    _apply(_config)
    return previous
