#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dateutil import tz
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from cadence.constants import DEFAULT_START_OF_WEEK, MAX_OCCURRENCES
from cadence.recurrence.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Settings shared by the recurrence engine and the calendar grid.

    Parameters
    ----------
    start_of_week
        First column of the calendar grid, 0 for Sunday to 6 for Saturday.
    max_occurrences
        Upper bound on the number of occurrences a rule expands to.
    timezone
        IANA name of the zone in which calendar dates are read. The machine's
        local zone when not set.
    """

    start_of_week: int = DEFAULT_START_OF_WEEK
    max_occurrences: int = MAX_OCCURRENCES
    timezone: Optional[str] = None

    @property
    def tzinfo(self) -> datetime.tzinfo:
        if self.timezone is None:
            return tz.tzlocal()
        return tz.gettz(self.timezone)


def validate(config: EngineConfig) -> EngineConfig:
    if not 0 <= config.start_of_week <= 6:
        raise ConfigurationError(
            f"start_of_week must be between 0 (Sunday) and 6, got {config.start_of_week}"
        )
    if config.max_occurrences < 1:
        raise ConfigurationError(
            f"max_occurrences must be at least 1, got {config.max_occurrences}"
        )
    if config.timezone is not None and tz.gettz(config.timezone) is None:
        raise ConfigurationError(f"Unknown timezone {config.timezone!r}")
    return config


def load_config(
    source: str | Path | Mapping[str, Any] | DictConfig | None = None,
    **overrides: Any,
) -> EngineConfig:
    """Merge `source` (a YAML file, a mapping or a `DictConfig`) and `overrides`
    over the defaults.

    Raises
    ------
    ConfigurationError if a value has the wrong type or is out of range.
    """
    schema = OmegaConf.structured(EngineConfig)
    layers = []
    if isinstance(source, (str, Path)):
        layers.append(OmegaConf.load(source))
    elif source is not None:
        layers.append(
            source if isinstance(source, DictConfig) else OmegaConf.create(dict(source))
        )
    if overrides:
        layers.append(OmegaConf.create(overrides))
    try:
        merged = OmegaConf.merge(schema, *layers)
    except OmegaConfBaseException as e:
        raise ConfigurationError(str(e)) from e
    config = validate(OmegaConf.to_object(merged))
    logger.debug("Engine configuration: %s", config)
    return config
