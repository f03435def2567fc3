"""Support polygons of the feet and their convex hull on the ground plane."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

_COLLINEAR_TOLERANCE = 1e-12


def rectangle_from_offsets(x_max: float, x_min: float, y_max: float, y_min: float) -> np.ndarray:
    """Vertices of a rectangle in the foot frame, on the plane ``z = 0``.

    ``x_max`` and ``x_min`` are the distances of the front and back sides from
    the origin, ``y_max`` and ``y_min`` those of the left and right sides.
    """
    return np.array(
        [
            [x_max, y_max, 0.0],
            [x_max, -y_min, 0.0],
            [-x_min, -y_min, 0.0],
            [-x_min, y_max, 0.0],
        ],
        dtype=float,
    )


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return float((a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0]))


def convex_hull(points) -> np.ndarray:
    """Counter-clockwise vertices of the convex hull of the XY part of ``points``.

    Collinear points on the boundary are dropped. Raises ``ValueError`` when
    the points do not span an area.
    """
    array = np.asarray(points, dtype=float)
    if array.ndim != 2 or array.shape[1] < 2:
        raise ValueError("expected a sequence of points with at least two coordinates")
    planar = np.unique(array[:, :2], axis=0)
    if len(planar) < 3:
        raise ValueError("at least three distinct points are needed to build a hull")

    def half(sequence) -> list[np.ndarray]:
        chain: list[np.ndarray] = []
        for point in sequence:
            while len(chain) >= 2 and _cross(chain[-2], chain[-1], point) <= _COLLINEAR_TOLERANCE:
                chain.pop()
            chain.append(point)
        return chain

    lower = half(planar)
    upper = half(planar[::-1])
    hull = lower[:-1] + upper[:-1]
    if len(hull) < 3:
        raise ValueError("the points are collinear")
    return np.array(hull)


def _transform_points(vertices, transform) -> np.ndarray:
    matrix = np.asarray(transform, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError("a transform has to be a 4x4 homogeneous matrix")
    local = np.asarray(vertices, dtype=float)
    if local.ndim != 2 or local.shape[1] not in (2, 3):
        raise ValueError("polygon vertices need two or three coordinates")
    if local.shape[1] == 2:
        local = np.hstack([local, np.zeros((len(local), 1))])
    return local @ matrix[:3, :3].T + matrix[:3, 3]


class ConvexHullProjection:
    """Half-plane description ``A p <= b`` of the support polygon on the XY plane.

    The rows of ``A`` are unit outward normals, so ``b - A p`` is the distance
    of ``p`` from each edge line.
    """

    def __init__(self) -> None:
        self.A = np.zeros((0, 2))
        self.b = np.zeros(0)
        self.vertices = np.zeros((0, 2))
        self._built = False

    def build(self, polygons: Sequence, transforms: Sequence) -> None:
        """Place each polygon with its 4x4 transform and build the hull of all of them."""
        if len(polygons) != len(transforms):
            raise ValueError("the number of polygons and transforms has to be the same")
        if not polygons:
            raise ValueError("at least one polygon is needed")
        world = np.vstack(
            [_transform_points(polygon, transform) for polygon, transform in zip(polygons, transforms)]
        )
        vertices = convex_hull(world)
        edges = np.roll(vertices, -1, axis=0) - vertices
        normals = np.column_stack([edges[:, 1], -edges[:, 0]])
        normals /= np.linalg.norm(normals, axis=1, keepdims=True)
        self.vertices = vertices
        self.A = normals
        self.b = np.einsum("ij,ij->i", normals, vertices)
        self._built = True

    def margin(self, point) -> float:
        """Signed distance of ``point`` from the hull boundary; negative outside."""
        if not self._built:
            raise RuntimeError("the convex hull has not been built")
        p = np.asarray(point, dtype=float).reshape(-1)
        if p.size < 2:
            raise ValueError("the point needs at least two coordinates")
        return float(np.min(self.b - self.A @ p[:2]))