"""
Tests for parameter presets and validation.
"""

import logging

import pytest

from angio_lib.params import (
    AnalysisParams,
    PRESETS,
    get_preset,
    list_presets,
    validate_params,
    validate_and_warn,
)
from angio_lib.params.validation import PARAM_BOUNDS


def test_list_presets():
    names = list_presets()
    assert set(names) == {"reference", "fast_preview", "fine_search", "validation_suite"}
    assert names == list(PRESETS)


def test_reference_is_default():
    assert get_preset("reference") == AnalysisParams()


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown preset"):
        get_preset("does_not_exist")


@pytest.mark.parametrize("name", sorted(PRESETS))
def test_presets_validate_clean(name):
    is_valid, warnings = validate_params(get_preset(name))
    assert is_valid, warnings
    assert warnings == []


def test_preset_characteristics():
    assert get_preset("fast_preview").optimizer.grid_step == 5.0
    assert get_preset("fast_preview").correct_perspective is False
    assert get_preset("fine_search").optimizer.refinement == "gradient"
    assert get_preset("fine_search").optimizer.workers > 1
    assert get_preset("validation_suite").optimizer.main_weight == 1.2


def test_out_of_range_values_reported():
    params = AnalysisParams()
    params.optimizer.grid_step = 10.0
    params.tracking.blend_factor = -0.5
    is_valid, warnings = validate_params(params)
    assert not is_valid
    assert any("optimizer.grid_step" in w and "exceeds maximum" in w for w in warnings)
    assert any("tracking.blend_factor" in w and "below minimum" in w for w in warnings)


def test_cross_checks():
    params = AnalysisParams()
    params.optimizer.refinement = "annealing"
    params.optimizer.min_step = 2.0
    params.tracking.smoothing_window = 4
    params.perspective.interpolation_order = 3
    _, warnings = validate_params(params)
    text = "\n".join(warnings)
    assert "optimizer.refinement" in text
    assert "min_step" in text
    assert "smoothing_window" in text
    assert "interpolation_order" in text


def test_bounds_cover_every_section():
    sections = {path.split(".")[0] for path in PARAM_BOUNDS}
    assert sections == {"perspective", "tracking", "bifurcation", "optimizer"}


def test_validate_and_warn_logs(caplog):
    params = AnalysisParams()
    params.optimizer.main_weight = 3.0
    with caplog.at_level(logging.WARNING, logger="angio_lib.params.validation"):
        returned = validate_and_warn(params)
    assert returned is params
    assert "optimizer.main_weight" in caplog.text


def test_round_trip_through_dict():
    params = get_preset("fine_search")
    assert AnalysisParams.from_dict(params.to_dict()) == params


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
