"""Parameter presets and validation for bifurcation analysis."""

from .presets import (
    AnalysisParams,
    reference,
    fast_preview,
    fine_search,
    validation_suite,
    get_preset,
    list_presets,
    PRESETS,
)

from .validation import (
    validate_params,
    validate_and_warn,
    PARAM_BOUNDS,
)

__all__ = [
    # Presets
    "AnalysisParams",
    "reference",
    "fast_preview",
    "fine_search",
    "validation_suite",
    "get_preset",
    "list_presets",
    "PRESETS",
    # Validation
    "validate_params",
    "validate_and_warn",
    "PARAM_BOUNDS",
]
