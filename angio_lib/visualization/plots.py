"""Debug plots for centerlines, score maps and reconstructed directions."""

from typing import Dict, Optional, Sequence
import numpy as np

try:
    import matplotlib.pyplot as plt
    from mpl_toolkits.mplot3d import Axes3D  # noqa: F401
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from ..core.types import VesselSet, BifurcationResult, OptimalAngles, VESSEL_NAMES

VESSEL_COLORS = {"main": "red", "branch1": "limegreen", "branch2": "dodgerblue"}


def _require_matplotlib():
    if not HAS_MATPLOTLIB:
        raise ImportError("matplotlib required. Install with: pip install matplotlib")


def plot_centerlines(
    image: np.ndarray,
    vessels: VesselSet,
    bifurcation: Optional[BifurcationResult] = None,
    ax=None,
    show: bool = True,
    title: Optional[str] = None,
):
    """
    Overlay traced centerlines (and the located bifurcation) on an image.

    Parameters
    ----------
    image : ndarray
        Image the centerlines were traced on
    vessels : VesselSet
        Traced centerlines
    bifurcation : BifurcationResult, optional
        Located bifurcation; its adjusted segments are drawn dashed
    ax : matplotlib Axes, optional
        Existing axes
    show : bool
        Whether to call plt.show()
    title : str, optional
        Plot title

    Returns
    -------
    ax : matplotlib Axes
    """
    _require_matplotlib()

    if ax is None:
        _, ax = plt.subplots(figsize=(10, 8))

    ax.imshow(image, cmap="gray" if np.asarray(image).ndim == 2 else None)
    for name, centerline in vessels.items():
        arr = centerline.to_array()
        if len(arr):
            ax.plot(arr[:, 0], arr[:, 1], color=VESSEL_COLORS[name], linewidth=1.5, label=name)

    if bifurcation is not None:
        for name, segment in bifurcation.adjusted_segments.items():
            arr = segment.to_array()
            ax.plot(arr[:, 0], arr[:, 1], "--", color=VESSEL_COLORS[name], linewidth=2)
        ax.scatter([bifurcation.point.x], [bifurcation.point.y], c="yellow", s=60, marker="x",
                   label=f"{bifurcation.method.value} ({bifurcation.confidence:.2f})")

    ax.legend(loc="upper right")
    if title:
        ax.set_title(title)

    if show:
        plt.show()

    return ax


def plot_score_map(
    score_map: Dict,
    optimal: Optional[OptimalAngles] = None,
    ax=None,
    show: bool = True,
    title: Optional[str] = None,
):
    """
    Heat map of the viewing score over the C-arm range.

    ``score_map`` is the dict returned by ``analysis.score_map``.
    """
    _require_matplotlib()

    if ax is None:
        _, ax = plt.subplots(figsize=(10, 6))

    rao = score_map["rao_lao"]
    cranial = score_map["cranial_caudal"]
    mesh = ax.pcolormesh(rao, cranial, score_map["scores"].T, shading="auto", cmap="viridis")
    plt.colorbar(mesh, ax=ax, label="viewing score")

    if optimal is not None:
        ax.scatter([optimal.rao_lao], [optimal.cranial_caudal], c="red", s=80, marker="*")

    ax.set_xlabel("LAO (-) / RAO (+) [deg]")
    ax.set_ylabel("CAU (-) / CRA (+) [deg]")
    if title:
        ax.set_title(title)

    if show:
        plt.show()

    return ax


def plot_directions_3d(
    directions: Sequence,
    normal: Optional[Sequence[float]] = None,
    ax=None,
    show: bool = True,
    title: Optional[str] = None,
):
    """Draw the three vessel directions (and plane normal) from the origin."""
    _require_matplotlib()

    if ax is None:
        fig = plt.figure(figsize=(8, 8))
        ax = fig.add_subplot(111, projection="3d")

    for name, d in zip(VESSEL_NAMES, directions):
        d = np.asarray(d, dtype=float)
        ax.quiver(0, 0, 0, d[0], d[1], d[2], color=VESSEL_COLORS[name], label=name)

    if normal is not None:
        n = np.asarray(normal, dtype=float)
        ax.quiver(0, 0, 0, n[0], n[1], n[2], color="black", linestyle="--", label="plane normal")

    ax.set_xlim(-1, 1)
    ax.set_ylim(-1, 1)
    ax.set_zlim(-1, 1)
    ax.set_xlabel("X (L-R)")
    ax.set_ylabel("Y (A-P)")
    ax.set_zlabel("Z (H-F)")
    ax.legend()
    if title:
        ax.set_title(title)

    if show:
        plt.show()

    return ax
