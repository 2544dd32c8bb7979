"""Config loading: YAML defaults, partial overrides, strict keys."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest
import yaml

from selfie_gate.pipeline import LightingCondition, ValidatorConfig, config_from_dict, load_config, save_config
from selfie_gate.pipeline.config import LOW_LIGHT_THRESHOLDS, NORMAL_THRESHOLDS, config_to_dict


SHIPPED_CONFIG = Path(__file__).parents[1] / "configs" / "validator.yaml"


def test_shipped_yaml_matches_defaults():
    assert load_config(SHIPPED_CONFIG) == ValidatorConfig()


def test_empty_mapping_gives_defaults():
    assert config_from_dict(None) == ValidatorConfig()
    assert config_from_dict({}) == ValidatorConfig()


def test_partial_override_keeps_other_defaults():
    config = config_from_dict({
        "seed": 7,
        "brightness": {"low_light_below": 60.0},
        "low_light": {"skin": {"red": [25, 255]}},
    })
    assert config.seed == 7
    assert config.brightness.low_light_below == 60.0
    assert config.brightness.very_dark_below == 15.0
    assert config.low_light.skin.red == (25, 255)
    assert config.low_light.skin.green == LOW_LIGHT_THRESHOLDS.skin.green
    assert config.normal == NORMAL_THRESHOLDS


@pytest.mark.parametrize(
    "data",
    [
        {"sed": 1},
        {"face": {"window_fraction": 0.5, "window": 1}},
        {"normal": {"skin": {"purple": [0, 1]}}},
    ],
)
def test_unknown_keys_are_rejected(data):
    with pytest.raises(ValueError, match="Unknown config keys"):
        config_from_dict(data)


def test_section_must_be_mapping():
    with pytest.raises(ValueError):
        config_from_dict({"blur": 3})


def test_thresholds_dispatch_on_lighting():
    config = ValidatorConfig()
    assert config.thresholds_for(LightingCondition.NORMAL) is config.normal
    assert config.thresholds_for(LightingCondition.LOW_LIGHT) is config.low_light
    with pytest.raises(ValueError):
        config.thresholds_for(LightingCondition.OVER_EXPOSED)


def test_low_light_table_relaxes_every_gate():
    low = ValidatorConfig().low_light
    assert not low.object_check
    assert not low.blur_check
    assert low.liveness_exempt
    assert not low.screenshot_bright_signal
    assert low.min_skin_ratio < NORMAL_THRESHOLDS.min_skin_ratio


def test_save_then_load(tmp_path):
    config = replace(ValidatorConfig(), seed=99)
    out = tmp_path / "nested" / "validator.yaml"
    save_config(config, out)

    assert load_config(out) == config
    with open(out) as f:
        assert yaml.safe_load(f) == config_to_dict(config)


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("does/not/exist.yaml")
