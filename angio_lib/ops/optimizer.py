"""
Viewing angle optimisation.

A view scores well when every vessel runs across the beam rather than along
it. For a unit vessel direction ``v`` and viewing direction ``w`` the visible
fraction of the vessel is ``sqrt(1 - (v . w)^2)``; the viewing score is the
weighted sum over the main vessel and both branches.

The optimum is found by an exhaustive grid over the C-arm range followed by a
local refinement.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import numpy as np

from ..core.types import Direction3D, OptimalAngles, RAO_LAO_RANGE, CRANIAL_CAUDAL_RANGE
from ..core.errors import InvalidVesselCount, InvalidVesselDirection
from ..core import linalg
from ..geometry.projection import viewing_direction, normal_to_angles, round_angle
from .reconstruction import bifurcation_plane_normal

logger = logging.getLogger(__name__)

REFINEMENT_METHODS = ("hill_climb", "gradient")


@dataclass
class OptimizerParams:
    """Parameters for the viewing angle search."""

    grid_step: float = 1.0  # degrees
    main_weight: float = 1.5
    branch_weight: float = 1.0
    refinement: str = "hill_climb"  # "hill_climb" or "gradient"
    refine_step: float = 1.0  # degrees, initial hill-climb step
    min_step: float = 0.1  # degrees, hill-climb stops below this step
    gradient_step: float = 0.1  # degrees, central difference spacing
    learning_rate: float = 20.0  # degrees per unit score gradient
    max_iterations: int = 50
    tolerance: float = 1e-3  # minimum score gain to accept a move
    workers: int = 1  # >1 evaluates grid rows on a thread pool

    def weights(self) -> np.ndarray:
        """Per-vessel weights in (main, branch1, branch2) order."""
        return np.array([self.main_weight, self.branch_weight, self.branch_weight])

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "grid_step": self.grid_step,
            "main_weight": self.main_weight,
            "branch_weight": self.branch_weight,
            "refinement": self.refinement,
            "refine_step": self.refine_step,
            "min_step": self.min_step,
            "gradient_step": self.gradient_step,
            "learning_rate": self.learning_rate,
            "max_iterations": self.max_iterations,
            "tolerance": self.tolerance,
            "workers": self.workers,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "OptimizerParams":
        """Create from dictionary."""
        return cls(
            grid_step=d.get("grid_step", 1.0),
            main_weight=d.get("main_weight", 1.5),
            branch_weight=d.get("branch_weight", 1.0),
            refinement=d.get("refinement", "hill_climb"),
            refine_step=d.get("refine_step", 1.0),
            min_step=d.get("min_step", 0.1),
            gradient_step=d.get("gradient_step", 0.1),
            learning_rate=d.get("learning_rate", 20.0),
            max_iterations=d.get("max_iterations", 50),
            tolerance=d.get("tolerance", 1e-3),
            workers=d.get("workers", 1),
        )


def validate_vessel_directions(directions: Sequence) -> np.ndarray:
    """
    Check and normalise the three vessel directions.

    Returns
    -------
    unit : (3, 3) ndarray
        One unit direction per row, in (main, branch1, branch2) order.

    Raises
    ------
    InvalidVesselCount
        Unless exactly three directions are given.
    InvalidVesselDirection
        If a direction is not a finite 3-vector.
    ZeroMagnitude
        If a direction has zero length.
    """
    directions = list(directions)
    if len(directions) != 3:
        raise InvalidVesselCount(f"Exactly 3 vessel directions required, got {len(directions)}")

    rows = []
    for index, d in enumerate(directions):
        arr = d.to_array() if isinstance(d, Direction3D) else np.asarray(d, dtype=float).reshape(-1)
        if arr.shape != (3,) or not np.all(np.isfinite(arr)):
            raise InvalidVesselDirection(f"Vessel direction {index} must be a finite 3D vector")
        rows.append(linalg.normalize(arr))
    return np.array(rows)


def single_vessel_score(vessel, view) -> float:
    """Visible fraction ``sqrt(1 - (v . w)^2)`` of one vessel, in ``[0, 1]``."""
    v = linalg.normalize(vessel)
    w = linalg.normalize(view)
    d = float(np.clip(np.dot(v, w), -1.0, 1.0))
    return math.sqrt(1.0 - d * d)


def viewing_score(
    directions: Sequence,
    rao_lao: float,
    cranial_caudal: float,
    weights: Optional[Sequence[float]] = None,
) -> float:
    """Weighted visible length of all vessels for one pair of angles."""
    if weights is None:
        weights = OptimizerParams().weights()
    view = viewing_direction(rao_lao, cranial_caudal)
    return float(sum(w * single_vessel_score(d, view) for w, d in zip(weights, directions)))


def _axis_values(lo: float, hi: float, step: float) -> np.ndarray:
    count = int(math.floor((hi - lo) / step + 1e-9)) + 1
    return lo + step * np.arange(count)


def grid_axes(grid_step: float) -> Tuple[np.ndarray, np.ndarray]:
    """RAO/LAO and cranial/caudal sample values of the search grid."""
    if grid_step <= 0:
        raise ValueError(f"grid_step must be positive, got {grid_step}")
    return (
        _axis_values(RAO_LAO_RANGE[0], RAO_LAO_RANGE[1], grid_step),
        _axis_values(CRANIAL_CAUDAL_RANGE[0], CRANIAL_CAUDAL_RANGE[1], grid_step),
    )


def _score_block(unit: np.ndarray, weights: np.ndarray, rao: np.ndarray, cranial: np.ndarray) -> np.ndarray:
    r = np.radians(rao)[:, None]
    c = np.radians(cranial)[None, :]
    views = np.stack(np.broadcast_arrays(
        -np.sin(r) * np.cos(c),
        np.cos(r) * np.cos(c),
        np.sin(c),
    ), axis=-1)
    dots = np.clip(views @ unit.T, -1.0, 1.0)
    return np.sqrt(1.0 - dots * dots) @ weights


def score_grid(directions: Sequence, params: Optional[OptimizerParams] = None) -> np.ndarray:
    """
    Viewing score over the full angle grid.

    Returns
    -------
    scores : (n_rao, n_cranial) ndarray
        ``scores[i, j]`` is the score at ``(rao[i], cranial[j])`` from
        :func:`grid_axes`.
    """
    if params is None:
        params = OptimizerParams()
    unit = validate_vessel_directions(directions)
    rao, cranial = grid_axes(params.grid_step)
    return _score_block(unit, params.weights(), rao, cranial)


def grid_search(directions: Sequence, params: Optional[OptimizerParams] = None) -> Tuple[float, float, float]:
    """
    Best cell of the angle grid.

    Cells are ranked in row-major (RAO/LAO outer) order and the first maximum
    wins. With ``params.workers > 1`` row chunks are scored on a thread pool
    and reduced in chunk order, which gives the same answer as the serial scan.

    Returns
    -------
    (rao_lao, cranial_caudal, score) : tuple of float
    """
    if params is None:
        params = OptimizerParams()
    unit = validate_vessel_directions(directions)
    weights = params.weights()
    rao, cranial = grid_axes(params.grid_step)

    def best_in(rows: np.ndarray) -> Tuple[float, float, float]:
        block = _score_block(unit, weights, rows, cranial)
        i, j = np.unravel_index(int(np.argmax(block)), block.shape)
        return float(rows[i]), float(cranial[j]), float(block[i, j])

    if params.workers > 1:
        chunks = [c for c in np.array_split(rao, params.workers) if len(c)]
        with ThreadPoolExecutor(max_workers=params.workers) as pool:
            results = list(pool.map(best_in, chunks))
    else:
        results = [best_in(rao)]

    best = results[0]
    for candidate in results[1:]:
        if candidate[2] > best[2]:
            best = candidate
    return best


def _clamp(rao: float, cranial: float) -> Tuple[float, float]:
    return (
        max(RAO_LAO_RANGE[0], min(RAO_LAO_RANGE[1], rao)),
        max(CRANIAL_CAUDAL_RANGE[0], min(CRANIAL_CAUDAL_RANGE[1], cranial)),
    )


def _hill_climb(unit, weights, start, params) -> Tuple[float, float]:
    rao, cranial = _clamp(*start)
    current = viewing_score(unit, rao, cranial, weights)
    step = params.refine_step

    for _ in range(params.max_iterations):
        if step < params.min_step:
            break
        moved = False
        for d_rao, d_cr in ((step, 0.0), (-step, 0.0), (0.0, step), (0.0, -step)):
            cand_rao, cand_cr = _clamp(rao + d_rao, cranial + d_cr)
            score = viewing_score(unit, cand_rao, cand_cr, weights)
            if score > current + params.tolerance:
                rao, cranial, current = cand_rao, cand_cr, score
                moved = True
                break
        if not moved:
            step /= 2.0
    return rao, cranial


def _gradient_ascent(unit, weights, start, params) -> Tuple[float, float]:
    rao, cranial = _clamp(*start)
    current = viewing_score(unit, rao, cranial, weights)
    h = params.gradient_step

    for _ in range(params.max_iterations):
        grad_rao = (viewing_score(unit, rao + h, cranial, weights)
                    - viewing_score(unit, rao - h, cranial, weights)) / (2 * h)
        grad_cr = (viewing_score(unit, rao, cranial + h, weights)
                   - viewing_score(unit, rao, cranial - h, weights)) / (2 * h)
        new_rao, new_cr = _clamp(
            rao + params.learning_rate * grad_rao,
            cranial + params.learning_rate * grad_cr,
        )
        score = viewing_score(unit, new_rao, new_cr, weights)
        if score <= current + params.tolerance:
            break
        rao, cranial, current = new_rao, new_cr, score
    return rao, cranial


def refine_angles(
    directions: Sequence,
    start: Tuple[float, float],
    params: Optional[OptimizerParams] = None,
) -> Tuple[float, float]:
    """
    Locally improve a pair of angles.

    ``"hill_climb"`` tries one step along each axis in both directions, takes
    the first improving move and halves the step when none improves.
    ``"gradient"`` follows the central-difference gradient. Both run at most
    ``max_iterations`` iterations, stay inside the C-arm range and never
    return a lower score than ``start``. Non-positive step sizes raise
    ``ValueError``.
    """
    if params is None:
        params = OptimizerParams()
    if params.refinement not in REFINEMENT_METHODS:
        raise ValueError(f"Unknown refinement {params.refinement!r}, expected one of {REFINEMENT_METHODS}")
    for name in ("refine_step", "min_step", "gradient_step"):
        if getattr(params, name) <= 0:
            raise ValueError(f"{name} must be positive, got {getattr(params, name)}")
    unit = validate_vessel_directions(directions)
    weights = params.weights()

    if params.refinement == "gradient":
        return _gradient_ascent(unit, weights, start, params)
    return _hill_climb(unit, weights, start, params)


def optimal_angles(directions: Sequence, params: Optional[OptimizerParams] = None) -> OptimalAngles:
    """
    Recommend the viewing angles that minimise foreshortening.

    Parameters
    ----------
    directions : sequence of three 3-vectors or Direction3D
        Main vessel, branch 1 and branch 2 directions
    params : OptimizerParams, optional
        Search parameters

    Returns
    -------
    OptimalAngles
        Angles rounded to one decimal and the score achieved there.

    Raises
    ------
    InvalidVesselCount
        Unless exactly three directions are given.
    """
    if params is None:
        params = OptimizerParams()
    unit = validate_vessel_directions(directions)

    grid_rao, grid_cr, grid_score = grid_search(unit, params)
    rao, cranial = refine_angles(unit, (grid_rao, grid_cr), params)
    rao, cranial = round_angle(rao), round_angle(cranial)
    score = viewing_score(unit, rao, cranial, params.weights())

    logger.info(
        "Optimal view %.1f RAO/LAO, %.1f CRA/CAU (score %.4f, grid %.4f at %.1f, %.1f)",
        rao, cranial, score, grid_score, grid_rao, grid_cr,
    )
    return OptimalAngles(rao_lao=rao, cranial_caudal=cranial, score=score)


def plane_normal_angles(directions: Sequence) -> Tuple[float, float]:
    """Closed-form alternative: view along the bifurcation plane normal."""
    unit = validate_vessel_directions(directions)
    return normal_to_angles(bifurcation_plane_normal(unit[0], unit[1], unit[2]))
