"""
Curve routing inside a face.

To offer concrete moves the engine needs an actual path between two points
of a face. Waypoints are placed a small clearance away from every boundary
vertex, on the face side, and a lazy A* search links them with segments
that touch no boundary curve. The clearance is a fraction of the smallest
feature of the face, so waypoints always sit inside it.

When the search finds nothing, `walk` follows the offset boundary ring from
one corner to the other.
"""

from __future__ import annotations
from typing import Sequence
import heapq
import itertools
import math

from .geometry import (
    Polyline,
    Vec,
    angle_of,
    distance,
    offset,
    point_at_half_length,
    point_segment_distance,
    segment_contact,
)
from .topology import Embedding, Face

BASE_CLEARANCE = 10.0
CLEARANCE_FRACTION = 0.25
MAX_POPS = 200_000

Segment = tuple[Vec, Vec]


def _bbox_gap(p: Vec, seg: Segment) -> float:
    (x1, y1), (x2, y2) = seg
    dx = max(min(x1, x2) - p[0], 0.0, p[0] - max(x1, x2))
    dy = max(min(y1, y2) - p[1], 0.0, p[1] - max(y1, y2))
    return math.hypot(dx, dy)


class FaceRouter:
    """
    Routes curves through one face of an embedding.

    `scale` shrinks the clearance; callers retry with a smaller scale if a
    routed path fails validation.
    """

    def __init__(self, embedding: Embedding, face: Face, scale: float = 1.0):
        self.embedding = embedding
        self.face = face
        self.positions = {p.id: p.position for p in embedding.points}

        seen: set[Segment] = set()
        self.obstacles: list[Segment] = []
        for cycle in face.cycles:
            for e in cycle:
                poly = embedding.half_edges[e].poly
                for a, b in zip(poly, poly[1:]):
                    key = (a, b) if a <= b else (b, a)
                    if key not in seen:
                        seen.add(key)
                        self.obstacles.append(key)
        self.isolated = [self.positions[pid] for pid in face.isolated]
        self.clearance = self._clearance() * scale

        self.waypoints: list[Vec] = []
        self.corner_waypoints: dict[tuple[int, int], Vec] = {}
        # Offset copy of every boundary walk, and where each corner sits on it.
        self.rings: list[list[Vec]] = []
        self.corner_slots: dict[tuple[int, int], tuple[int, int]] = {}
        self._place_waypoints()
        self._visibility: dict[tuple[Vec, Vec], bool] = {}

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _clearance(self) -> float:
        limit = BASE_CLEARANCE / CLEARANCE_FRACTION
        smallest = limit
        for a, b in self.obstacles:
            smallest = min(smallest, distance(a, b))

        vertices = {v for seg in self.obstacles for v in seg} | set(self.isolated)
        for v in vertices:
            for seg in self.obstacles:
                if v == seg[0] or v == seg[1] or _bbox_gap(v, seg) >= smallest:
                    continue
                smallest = min(smallest, point_segment_distance(v, seg[0], seg[1]))
        for a, b in itertools.combinations(self.isolated, 2):
            smallest = min(smallest, distance(a, b))
        return CLEARANCE_FRACTION * smallest

    def _place_waypoints(self):
        for ring_index, cycle in enumerate(self.face.cycles):
            polygon = self.embedding.cycle_polygon(cycle)
            ring: list[Vec] = []
            starts = {}
            index = 0
            for e in cycle:
                starts[index] = e
                index += len(self.embedding.half_edges[e].poly) - 1

            count = len(polygon)
            for i, p in enumerate(polygon):
                prev_v = polygon[i - 1]
                next_v = polygon[(i + 1) % count]
                theta_out = angle_of(p, next_v)
                span = (angle_of(p, prev_v) - theta_out) % (2 * math.pi)
                if span < 1e-12:
                    span = 2 * math.pi
                waypoint = offset(p, theta_out + span / 2, self.clearance)
                self.waypoints.append(waypoint)
                ring.append(waypoint)
                if i in starts:
                    e = starts[i]
                    key = (self.embedding.half_edges[e].origin, e)
                    self.corner_waypoints[key] = waypoint
                    self.corner_slots[key] = (ring_index, i)
            self.rings.append(ring)

        for c in self.isolated:
            for k in range(4):
                self.waypoints.append(offset(c, k * math.pi / 2 + math.pi / 4, self.clearance))

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def visible(self, p: Vec, q: Vec) -> bool:
        key = (p, q) if p <= q else (q, p)
        cached = self._visibility.get(key)
        if cached is not None:
            return cached
        result = self._segment_is_free(p, q)
        self._visibility[key] = result
        return result

    def _segment_is_free(self, p: Vec, q: Vec) -> bool:
        lo_x, hi_x = min(p[0], q[0]), max(p[0], q[0])
        lo_y, hi_y = min(p[1], q[1]), max(p[1], q[1])
        for a, b in self.obstacles:
            if (max(a[0], b[0]) < lo_x or min(a[0], b[0]) > hi_x
                    or max(a[1], b[1]) < lo_y or min(a[1], b[1]) > hi_y):
                continue
            if segment_contact(p, q, a, b) is not None:
                return False
        margin = self.clearance / 2
        for c in self.isolated:
            if point_segment_distance(c, p, q) <= margin:
                return False
        return True

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _start_waypoint(self, point_id: int, toward: Vec) -> Vec:
        corner = self.embedding.corner_for(self.face, point_id)
        origin = self.positions[point_id]
        if corner.outgoing is None:
            return offset(origin, angle_of(origin, toward), self.clearance)
        return self.corner_waypoints[(point_id, corner.outgoing)]

    def route(self, a: int, b: int) -> tuple[Polyline, Vec] | None:
        """A path from a to b inside the face, plus where to put the new point."""
        if a == b:
            return self.loop(a)
        pa, pb = self.positions[a], self.positions[b]
        start = self._start_waypoint(a, pb)
        goal = self._start_waypoint(b, pa)
        # The first and last legs are part of the curve too.
        spokes = [(pa, start), (pb, goal)]

        chain = self._search(start, goal, spokes)
        if chain is None:
            return None
        path = (pa,) + tuple(self._shortcut(chain, spokes)) + (pb,)
        return path, point_at_half_length(path)

    def walk(self, a: int, b: int) -> tuple[Polyline, Vec] | None:
        """
        Follow the face boundary from a corner of `a` to a corner of `b`.

        Neighbouring waypoints of one ring always see each other, so this
        succeeds whenever both points lie on the same boundary walk. Both
        directions around the ring are tried and the shorter one kept.
        """
        if a == b:
            return None
        best: list[Vec] | None = None
        for ring_a, i in self._slots(a):
            for ring_b, j in self._slots(b):
                if ring_a != ring_b:
                    continue
                ring = self.rings[ring_a]
                size = len(ring)
                forward = [ring[(i + k) % size] for k in range((j - i) % size + 1)]
                backward = [ring[(i - k) % size] for k in range((i - j) % size + 1)]
                for chain in (forward, backward):
                    if best is None or len(chain) < len(best):
                        best = chain
        if best is None:
            return None
        path = (self.positions[a],) + tuple(best) + (self.positions[b],)
        return path, point_at_half_length(path)

    def _slots(self, point_id: int) -> list[tuple[int, int]]:
        return [
            self.corner_slots[(point_id, corner.outgoing)]
            for corner in self.face.corners
            if corner.point_id == point_id and corner.outgoing is not None
        ]

    def loop(self, a: int) -> tuple[Polyline, Vec]:
        """
        A small triangle hanging off `a` inside its corner.

        Only points with two free slots loop, so the corner is the whole
        turn around the point.
        """
        corner = self.embedding.corner_for(self.face, a)
        origin = self.positions[a]
        base = 0.0
        if corner.outgoing is not None:
            base = self.embedding.half_edges[corner.outgoing].angle
        p1 = offset(origin, base + 2 * math.pi / 3, self.clearance)
        p2 = offset(origin, base + 4 * math.pi / 3, self.clearance)
        new_point = ((p1[0] + p2[0]) / 2, (p1[1] + p2[1]) / 2)
        return (origin, p1, p2, origin), new_point

    def _clear_of(self, p: Vec, q: Vec, spokes: Sequence[Segment]) -> bool:
        for origin, tip in spokes:
            if p == tip or q == tip:
                continue
            if segment_contact(p, q, origin, tip) is not None:
                return False
        return True

    def _search(self, start: Vec, goal: Vec, spokes: Sequence[Segment]) -> list[Vec] | None:
        nodes = [start, goal] + [w for w in self.waypoints if w != start and w != goal]
        closed: dict[int, int | None] = {}
        counter = itertools.count()
        heap = [(distance(start, goal), 0.0, next(counter), 0, None)]
        pops = 0
        while heap and pops < MAX_POPS:
            _, g, _, node, parent = heapq.heappop(heap)
            pops += 1
            if node in closed:
                continue
            if parent is not None:
                p, q = nodes[parent], nodes[node]
                if not self.visible(p, q) or not self._clear_of(p, q, spokes):
                    continue
            closed[node] = parent
            if node == 1:
                chain = []
                cursor: int | None = node
                while cursor is not None:
                    chain.append(nodes[cursor])
                    cursor = closed[cursor]
                return chain[::-1]
            here = nodes[node]
            for other in range(len(nodes)):
                if other in closed:
                    continue
                step = g + distance(here, nodes[other])
                heapq.heappush(
                    heap,
                    (step + distance(nodes[other], goal), step, next(counter), other, node),
                )
        return None

    def _shortcut(self, chain: Sequence[Vec], spokes: Sequence[Segment]) -> list[Vec]:
        """Drop waypoints that a straight segment can skip."""
        result = [chain[0]]
        i = 0
        while i < len(chain) - 1:
            j = len(chain) - 1
            while j > i + 1 and not (
                self.visible(chain[i], chain[j]) and self._clear_of(chain[i], chain[j], spokes)
            ):
                j -= 1
            result.append(chain[j])
            i = j
        return result
