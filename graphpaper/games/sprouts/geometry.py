"""
Plane geometry for sprouts curves.

Curves are polylines: tuples of (x, y) vertices. Everything here is a pure
function on coordinates; nothing knows about points, players or turns.
"""

from __future__ import annotations
from typing import Sequence
import math

Vec = tuple[float, float]
Polyline = tuple[Vec, ...]

EPSILON = 1e-9


class Overlap:
    """Marker returned when two segments share more than a single point."""

    def __repr__(self) -> str:
        return "OVERLAP"


OVERLAP = Overlap()


def sub(a: Vec, b: Vec) -> Vec:
    return (a[0] - b[0], a[1] - b[1])


def cross(a: Vec, b: Vec) -> float:
    return a[0] * b[1] - a[1] * b[0]


def dot(a: Vec, b: Vec) -> float:
    return a[0] * b[0] + a[1] * b[1]


def distance(a: Vec, b: Vec) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def angle_of(origin: Vec, toward: Vec) -> float:
    """Direction from origin to toward in [0, 2*pi)."""
    return math.atan2(toward[1] - origin[1], toward[0] - origin[0]) % (2 * math.pi)


def offset(origin: Vec, angle: float, length: float) -> Vec:
    return (origin[0] + length * math.cos(angle), origin[1] + length * math.sin(angle))


def same_point(a: Vec, b: Vec, tolerance: float = EPSILON) -> bool:
    return distance(a, b) <= tolerance


def segment_contact(p1: Vec, p2: Vec, q1: Vec, q2: Vec, eps: float = EPSILON):
    """
    How segments p1p2 and q1q2 meet.

    Returns None when they are disjoint, the single shared point when they
    meet once, or OVERLAP when they are collinear and share a stretch.
    """
    if (max(p1[0], p2[0]) < min(q1[0], q2[0]) - eps
            or max(q1[0], q2[0]) < min(p1[0], p2[0]) - eps
            or max(p1[1], p2[1]) < min(q1[1], q2[1]) - eps
            or max(q1[1], q2[1]) < min(p1[1], p2[1]) - eps):
        return None

    r = sub(p2, p1)
    s = sub(q2, q1)
    r_len = math.hypot(*r)
    s_len = math.hypot(*s)
    if r_len <= eps or s_len <= eps:
        return _degenerate_contact(p1, p2, q1, q2, eps)

    qp = sub(q1, p1)
    denom = cross(r, s)
    if abs(denom) > eps * r_len * s_len:
        t = cross(qp, s) / denom
        u = cross(qp, r) / denom
        t_eps = eps / r_len
        u_eps = eps / s_len
        if -t_eps <= t <= 1 + t_eps and -u_eps <= u <= 1 + u_eps:
            return (p1[0] + t * r[0], p1[1] + t * r[1])
        return None

    # Parallel: only collinear segments can touch.
    if abs(cross(qp, r)) / r_len > eps:
        return None
    r_sq = r_len * r_len
    t0 = dot(qp, r) / r_sq
    t1 = t0 + dot(s, r) / r_sq
    lo = max(0.0, min(t0, t1))
    hi = min(1.0, max(t0, t1))
    if lo > hi + eps / r_len:
        return None
    if (hi - lo) * r_len <= eps:
        return (p1[0] + lo * r[0], p1[1] + lo * r[1])
    return OVERLAP


def _degenerate_contact(p1: Vec, p2: Vec, q1: Vec, q2: Vec, eps: float):
    if distance(p1, p2) <= eps:
        return p1 if point_segment_distance(p1, q1, q2) <= eps else None
    return q1 if point_segment_distance(q1, p1, p2) <= eps else None


def point_segment_distance(p: Vec, a: Vec, b: Vec) -> float:
    ab = sub(b, a)
    length_sq = dot(ab, ab)
    if length_sq == 0.0:
        return distance(p, a)
    t = max(0.0, min(1.0, dot(sub(p, a), ab) / length_sq))
    return distance(p, (a[0] + t * ab[0], a[1] + t * ab[1]))


def project_onto_segment(p: Vec, a: Vec, b: Vec) -> tuple[Vec, float]:
    """Closest point on segment ab to p, and its parameter in [0, 1]."""
    ab = sub(b, a)
    length_sq = dot(ab, ab)
    if length_sq == 0.0:
        return a, 0.0
    t = max(0.0, min(1.0, dot(sub(p, a), ab) / length_sq))
    return (a[0] + t * ab[0], a[1] + t * ab[1]), t


def segments(path: Sequence[Vec]) -> list[tuple[Vec, Vec]]:
    return [(path[i], path[i + 1]) for i in range(len(path) - 1)]


def path_length(path: Sequence[Vec]) -> float:
    return sum(distance(a, b) for a, b in segments(path))


def dedupe_path(path: Sequence[Vec], eps: float = EPSILON) -> Polyline:
    """Drop consecutive vertices that coincide."""
    cleaned: list[Vec] = []
    for vertex in path:
        if not cleaned or distance(cleaned[-1], vertex) > eps:
            cleaned.append(vertex)
    return tuple(cleaned)


def signed_area(polygon: Sequence[Vec]) -> float:
    """Shoelace area; positive for counter-clockwise vertex order."""
    total = 0.0
    count = len(polygon)
    for i in range(count):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % count]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def point_in_polygon(p: Vec, polygon: Sequence[Vec]) -> bool:
    """
    Even-odd ray cast.

    Edges walked twice (trees hanging into a face) cancel out, so this
    works on face boundary walks as well as simple polygons.
    """
    x, y = p
    inside = False
    count = len(polygon)
    for i in range(count):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % count]
        if (y1 > y) != (y2 > y):
            x_cross = x1 + (y - y1) * (x2 - x1) / (y2 - y1)
            if x < x_cross:
                inside = not inside
    return inside


def split_at(path: Sequence[Vec], point: Vec, eps: float = EPSILON) -> tuple[Polyline, int]:
    """
    Insert `point` into the path at its closest position.

    Returns the new path and the index of the inserted vertex. If the point
    already coincides with an interior vertex that vertex is reused.
    """
    best_index = 0
    best_distance = math.inf
    best_projection = path[0]
    for i, (a, b) in enumerate(segments(path)):
        projection, _ = project_onto_segment(point, a, b)
        d = distance(point, projection)
        if d < best_distance:
            best_index, best_distance, best_projection = i, d, projection

    for i in range(1, len(path) - 1):
        if distance(path[i], best_projection) <= eps:
            return tuple(path), i
    new_path = tuple(path[: best_index + 1]) + (best_projection,) + tuple(path[best_index + 1:])
    return new_path, best_index + 1


def point_at_half_length(path: Sequence[Vec]) -> Vec:
    """The point halfway along the path, measured by arc length."""
    half = path_length(path) / 2.0
    walked = 0.0
    for a, b in segments(path):
        step = distance(a, b)
        if walked + step >= half and step > 0:
            t = (half - walked) / step
            return (a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1]))
        walked += step
    return path[-1]
