#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from pathlib import Path

import pytest
from dateutil import tz
from omegaconf import OmegaConf

from cadence.config import EngineConfig, load_config
from cadence.recurrence.exceptions import ConfigurationError


def test_defaults():
    config = load_config()
    assert config == EngineConfig(start_of_week=1, max_occurrences=100, timezone=None)
    assert config.tzinfo == tz.tzlocal()


def test_overrides_take_precedence(tmp_path: Path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("start_of_week: 0\nmax_occurrences: 20\n")
    config = load_config(config_file, max_occurrences=5)
    assert config.start_of_week == 0
    assert config.max_occurrences == 5


def test_mapping_and_dictconfig_sources():
    assert load_config({"timezone": "Europe/Paris"}).tzinfo == tz.gettz("Europe/Paris")
    assert load_config(OmegaConf.create({"start_of_week": 6})).start_of_week == 6


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_of_week": 7},
        {"start_of_week": -1},
        {"max_occurrences": 0},
        {"timezone": "Mars/Olympus_Mons"},
        {"max_occurrences": "plenty"},
        {"unknown_key": 1},
    ],
)
def test_invalid_configuration(overrides: dict):
    with pytest.raises(ConfigurationError):
        load_config(**overrides)
