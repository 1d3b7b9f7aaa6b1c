# struct_mesh/mesh/polygon.py
"""
POLYGON MESHER: Default Triangulation of Surface Polygons
=========================================================

PURPOSE:
--------
Mesh the interior of one planar (or nearly planar) polygon given as an
ordered list of 3D boundary points. This is the default implementation of
the polygon-mesher contract used by the surface adapter:

    mesher(points) -> (nodes, elements)

    points    ordered boundary points [(x, y, z), ...]
    nodes     local node list; nodes[0:len(points)] ARE the input points,
              in input order, followed by any interior/edge nodes
    elements  local triangles (i, j, k) indexing into nodes

ALGORITHM:
----------
1. Best-fit plane: SVD of the centered points gives two in-plane axes.
2. Ear clipping on the projected 2D polygon (handles non-convex shapes).
3. Optional refinement: each pass splits every triangle into four through
   its edge midpoints. Midpoints are shared between neighbouring triangles.

A polygon with no area (collinear or coincident points) yields no
elements; the adapter then skips it.
"""

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..model import Node

logger = logging.getLogger(__name__)

Triangle = Tuple[int, int, int]

_EPS = 1e-12


def project_to_plane(points: np.ndarray) -> Tuple[np.ndarray, bool]:
    """
    Project 3D points onto their best-fit plane.

    Returns:
    --------
    xy : np.ndarray, shape (n, 2)
        In-plane coordinates
    ok : bool
        False when the points do not span a plane
    """
    centered = points - points.mean(axis=0)
    _, s, vt = np.linalg.svd(centered)
    if s[0] <= _EPS or s[1] <= 1e-9 * s[0]:
        return np.zeros((len(points), 2)), False
    return centered @ vt[:2].T, True


def _cross(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    return float((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))


def _signed_area(xy: np.ndarray) -> float:
    x, y = xy[:, 0], xy[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def _in_triangle(p, a, b, c) -> bool:
    # Closed triangle test for a CCW triangle
    return (_cross(a, b, p) >= -_EPS and
            _cross(b, c, p) >= -_EPS and
            _cross(c, a, p) >= -_EPS)


def ear_clip(xy: np.ndarray) -> List[Triangle]:
    """
    Triangulate a simple 2D polygon by ear clipping.

    Returns triangles as index triples into xy, counter-clockwise.
    """
    n = len(xy)
    if n < 3:
        return []

    ring = list(range(n))
    if _signed_area(xy) < 0:
        ring.reverse()

    scale = float(np.ptp(xy, axis=0).max()) or 1.0
    tol = _EPS * scale * scale

    triangles = []
    while len(ring) > 3:
        m = len(ring)
        for k in range(m):
            a, b, c = ring[k - 1], ring[k], ring[(k + 1) % m]
            if _cross(xy[a], xy[b], xy[c]) <= tol:
                continue  # reflex or collinear
            if any(_in_triangle(xy[p], xy[a], xy[b], xy[c])
                   for p in ring if p not in (a, b, c)):
                continue
            triangles.append((a, b, c))
            ring.pop(k)
            break
        else:
            # Self-intersecting input: no ear left, fan the remainder
            logger.warning("No ear found in %d-vertex remainder; fanning", m)
            for k in range(1, m - 1):
                if abs(_cross(xy[ring[0]], xy[ring[k]], xy[ring[k + 1]])) > tol:
                    triangles.append((ring[0], ring[k], ring[k + 1]))
            return triangles

    a, b, c = ring
    if abs(_cross(xy[a], xy[b], xy[c])) > tol:
        triangles.append((a, b, c))
    return triangles


def refine(nodes: List[Node], triangles: List[Triangle]) -> Tuple[List[Node], List[Triangle]]:
    """Split every triangle into four through shared edge midpoints."""
    nodes = list(nodes)
    midpoints: Dict[Tuple[int, int], int] = {}

    def midpoint(i: int, j: int) -> int:
        key = (min(i, j), max(i, j))
        if key not in midpoints:
            p = (np.asarray(nodes[i]) + np.asarray(nodes[j])) / 2.0
            midpoints[key] = len(nodes)
            nodes.append((float(p[0]), float(p[1]), float(p[2])))
        return midpoints[key]

    refined = []
    for a, b, c in triangles:
        ab, bc, ca = midpoint(a, b), midpoint(b, c), midpoint(c, a)
        refined.extend([(a, ab, ca), (ab, b, bc), (ca, bc, c), (ab, bc, ca)])
    return nodes, refined


def mesh_polygon(points: Sequence[Node], refinement: int = 0) -> Tuple[List[Node], List[Triangle]]:
    """
    Default polygon mesher.

    Parameters:
    -----------
    points : sequence of (x, y, z)
        Ordered boundary points (at least 3)
    refinement : int
        Number of 1-to-4 splits applied after ear clipping

    Returns:
    --------
    nodes, elements
        Local nodes (boundary points first, in order) and local triangles.
    """
    nodes = [tuple(float(c) for c in p) for p in points]
    if len(nodes) < 3:
        return nodes, []

    xy, ok = project_to_plane(np.asarray(nodes, dtype=float))
    if not ok:
        logger.debug("Polygon with %d points has no area", len(nodes))
        return nodes, []

    triangles = ear_clip(xy)
    for _ in range(refinement):
        nodes, triangles = refine(nodes, triangles)
    return nodes, triangles


def make_mesher(refinement: int = 0):
    """Bind a refinement level, giving a callable with the mesher contract."""
    def mesher(points: Sequence[Node]):
        return mesh_polygon(points, refinement)
    return mesher
