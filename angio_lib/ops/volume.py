"""
CT volume workflow: segment contrast-filled vessels, extract their 3D
centerlines and project them into angiographic views.

Volumes are ``(Z, Y, X)`` arrays of Hounsfield units; seeds are ``(x, y, z)``
voxel indices and ``spacing`` is ``(sx, sy, sz)`` in millimetres. Centerlines
are returned in world millimetres.
"""

import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import List, Optional, Sequence, Tuple
import numpy as np
import networkx as nx
from scipy import ndimage
from scipy.spatial.distance import cdist
from skimage.morphology import skeletonize

from ..core.types import Point3D, ProjectionAngles, Centerline
from ..geometry.projection import angles_to_rotation, normalized_to_image

logger = logging.getLogger(__name__)


@dataclass
class VolumeData:
    """CT volume with voxel spacing."""

    data: np.ndarray
    spacing: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self):
        self.data = np.asarray(self.data)
        if self.data.ndim != 3:
            raise ValueError(f"Volume must be 3D (Z, Y, X), got shape {self.data.shape}")
        if len(self.spacing) != 3 or min(self.spacing) <= 0:
            raise ValueError(f"Spacing must be three positive values, got {self.spacing}")
        self.spacing = tuple(float(s) for s in self.spacing)

    @property
    def voxel_volume(self) -> float:
        """Volume of one voxel in mm^3."""
        sx, sy, sz = self.spacing
        return sx * sy * sz

    def contains(self, voxel: Sequence[int]) -> bool:
        x, y, z = voxel
        depth, height, width = self.data.shape
        return 0 <= x < width and 0 <= y < height and 0 <= z < depth


@dataclass
class SegmentationParams:
    """Parameters for intensity-based vessel segmentation."""

    lower: float = 200.0  # HU, contrast-enhanced lumen
    upper: float = 800.0  # HU, excludes calcification
    radius: int = 1  # voxels, neighbourhood reach of region growing
    min_vessel_voxels: int = 10

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "lower": self.lower,
            "upper": self.upper,
            "radius": self.radius,
            "min_vessel_voxels": self.min_vessel_voxels,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SegmentationParams":
        """Create from dictionary."""
        return cls(
            lower=d.get("lower", 200.0),
            upper=d.get("upper", 800.0),
            radius=d.get("radius", 1),
            min_vessel_voxels=d.get("min_vessel_voxels", 10),
        )


@dataclass
class SegmentedVessel:
    """One vessel grown from a seed."""

    id: str
    seed: Tuple[int, int, int]
    centerline: np.ndarray  # (N, 3) world mm
    length: float  # mm
    volume: float  # mm^3
    voxel_count: int
    mask: Optional[np.ndarray] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (mask omitted)."""
        return {
            "id": self.id,
            "seed": list(self.seed),
            "centerline": self.centerline.tolist(),
            "length": self.length,
            "volume": self.volume,
            "voxel_count": self.voxel_count,
        }


@dataclass
class VolumeBifurcation:
    """Point where two segmented vessels come within the proximity threshold."""

    point: Point3D
    vessel1: str
    vessel2: str
    confidence: float

    def to_dict(self) -> dict:
        return {
            "point": self.point.to_dict(),
            "vessel1": self.vessel1,
            "vessel2": self.vessel2,
            "confidence": self.confidence,
        }


def region_grow(
    volume: VolumeData,
    seed: Sequence[int],
    lower: float = 200.0,
    upper: float = 800.0,
    radius: int = 1,
    exclude: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Grow a region from ``seed`` through voxels with ``lower <= HU <= upper``.

    Voxels are neighbours when they lie within a ``(2*radius + 1)`` cube of
    each other. Voxels in ``exclude`` are never added.

    Returns
    -------
    mask : (Z, Y, X) bool ndarray
        Empty if the seed is outside the volume or outside the window.
    """
    allowed = (volume.data >= lower) & (volume.data <= upper)
    if exclude is not None:
        allowed &= ~exclude

    grown = np.zeros(volume.data.shape, dtype=bool)
    if not volume.contains(seed):
        logger.debug("Seed %s outside volume", tuple(seed))
        return grown
    x, y, z = (int(v) for v in seed)
    if not allowed[z, y, x]:
        logger.debug("Seed %s outside intensity window", tuple(seed))
        return grown

    grown[z, y, x] = True
    structure = np.ones((2 * radius + 1,) * 3, dtype=bool)
    return ndimage.binary_propagation(grown, structure=structure, mask=allowed)


def _skeleton_graph(skeleton: np.ndarray, spacing: Tuple[float, float, float]) -> nx.Graph:
    voxels = [tuple(int(v) for v in idx) for idx in np.argwhere(skeleton)]
    members = set(voxels)
    scale = np.array([spacing[2], spacing[1], spacing[0]])  # (z, y, x) order

    graph = nx.Graph()
    graph.add_nodes_from(voxels)
    offsets = [
        (dz, dy, dx)
        for dz in (-1, 0, 1) for dy in (-1, 0, 1) for dx in (-1, 0, 1)
        if (dz, dy, dx) > (0, 0, 0)
    ]
    for node in voxels:
        for off in offsets:
            neighbour = (node[0] + off[0], node[1] + off[1], node[2] + off[2])
            if neighbour in members:
                graph.add_edge(node, neighbour, weight=float(np.linalg.norm(np.array(off) * scale)))
    return graph


def _to_world(voxels_zyx: np.ndarray, spacing: Tuple[float, float, float]) -> np.ndarray:
    return voxels_zyx[:, ::-1].astype(float) * np.asarray(spacing)


def extract_centerline_3d(mask: np.ndarray, spacing: Tuple[float, float, float] = (1.0, 1.0, 1.0)) -> np.ndarray:
    """
    Centerline of a segmented vessel in world millimetres.

    The mask is skeletonised and the longest shortest path through the
    largest skeleton component is returned, found with two Dijkstra sweeps.

    Returns
    -------
    points : (N, 3) ndarray
        ``(x, y, z)`` in mm. Empty for an empty mask; the mask centroid alone
        if the skeleton vanishes.
    """
    mask = np.asarray(mask, dtype=bool)
    if not mask.any():
        return np.zeros((0, 3))

    skeleton = skeletonize(mask, method="lee").astype(bool)
    if not skeleton.any():
        centroid = np.argwhere(mask).mean(axis=0, keepdims=True)
        return _to_world(centroid, spacing)

    graph = _skeleton_graph(skeleton, spacing)
    component = graph.subgraph(max(nx.connected_components(graph), key=len))

    start = min(component.nodes)
    lengths = nx.single_source_dijkstra_path_length(component, start)
    far = max(lengths, key=lambda n: (lengths[n], n))
    lengths, paths = nx.single_source_dijkstra(component, far)
    end = max(lengths, key=lambda n: (lengths[n], n))

    return _to_world(np.array(paths[end]), spacing)


def vessel_length(points: np.ndarray) -> float:
    """Polyline length of an ``(N, 3)`` centerline in its own units."""
    points = np.asarray(points, dtype=float)
    if len(points) < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())


def segment_vessels(
    volume: VolumeData,
    seeds: Sequence[Sequence[int]],
    params: Optional[SegmentationParams] = None,
    keep_masks: bool = False,
) -> List[SegmentedVessel]:
    """
    Segment one vessel per seed.

    Voxels claimed by an earlier seed are not revisited. Regions with at most
    ``params.min_vessel_voxels`` voxels are dropped.
    """
    if params is None:
        params = SegmentationParams()

    claimed = np.zeros(volume.data.shape, dtype=bool)
    vessels = []
    for index, seed in enumerate(seeds):
        mask = region_grow(volume, seed, params.lower, params.upper, params.radius, exclude=claimed)
        claimed |= mask
        count = int(mask.sum())
        if count <= params.min_vessel_voxels:
            logger.info("Seed %d at %s grew %d voxels, skipped", index, tuple(seed), count)
            continue

        centerline = extract_centerline_3d(mask, volume.spacing)
        vessels.append(SegmentedVessel(
            id=f"vessel_{index}",
            seed=tuple(int(v) for v in seed),
            centerline=centerline,
            length=vessel_length(centerline),
            volume=count * volume.voxel_volume,
            voxel_count=count,
            mask=mask if keep_masks else None,
        ))

    logger.info("Segmented %d of %d seeded vessels", len(vessels), len(seeds))
    return vessels


def _pair_confidence(a: SegmentedVessel, b: SegmentedVessel) -> float:
    shorter = min(a.length, b.length)
    longer = max(a.length, b.length)
    if longer == 0:
        return 0.0
    length_score = min(shorter / 20.0, 1.0)
    balance_score = shorter / longer
    return (length_score + balance_score) / 2.0


def detect_volume_bifurcations(
    vessels: Sequence[SegmentedVessel],
    proximity: float = 5.0,
) -> List[VolumeBifurcation]:
    """
    Find vessel pairs whose centerlines come within ``proximity`` mm.

    For each pair the first close point pair (in centerline order) is
    reported at its midpoint.
    """
    found = []
    for a, b in combinations(vessels, 2):
        if len(a.centerline) == 0 or len(b.centerline) == 0:
            continue
        close = np.argwhere(cdist(a.centerline, b.centerline) < proximity)
        if len(close) == 0:
            continue
        i, j = close[0]
        midpoint = (a.centerline[i] + b.centerline[j]) / 2.0
        found.append(VolumeBifurcation(
            point=Point3D.from_array(midpoint),
            vessel1=a.id,
            vessel2=b.id,
            confidence=_pair_confidence(a, b),
        ))
    return found


def project_centerline(
    points: np.ndarray,
    angles: ProjectionAngles,
    width: int,
    height: int,
    scale: float = 0.01,
    center: Optional[Sequence[float]] = None,
) -> Centerline:
    """
    Orthographic projection of a 3D centerline into an image.

    Points are rotated into the detector frame with the view's C-arm rotation,
    the detector X/Y components are scaled by ``scale`` (normalised units per
    mm) and mapped to pixels. This is the forward model matching
    ``image_direction_to_3d``.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    origin = np.zeros(3) if center is None else np.asarray(center, dtype=float)
    rotation = angles_to_rotation(angles.rao_lao, angles.cranial_caudal)
    detector = (points - origin) @ rotation.T
    return Centerline.from_points(
        normalized_to_image((x * scale, y * scale), width, height)
        for x, y in detector[:, :2]
    )
