"""
Planar faces of a sprouts drawing.

The drawing is turned into a half-edge structure: every curve contributes two
edges (its halves around the new point), every edge two opposite half-edges.
Walking "next" half-edges traces face boundaries; faces of separate
components are nested with point-in-polygon tests.

Two points can be joined exactly when both touch a common face and have
enough free slots, so the playable pairs come straight from the faces.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math

from .geometry import Polyline, Vec, angle_of, point_in_polygon, signed_area
from .model import MAX_CONNECTIONS, SproutsMetadata


@dataclass(frozen=True)
class HalfEdge:
    origin: int
    target: int
    poly: Polyline  # from origin to target

    @property
    def angle(self) -> float:
        return angle_of(self.poly[0], self.poly[1])


@dataclass(frozen=True)
class Corner:
    """
    A point as seen from one face.

    `outgoing` is the half-edge leaving the point along the face boundary,
    None for a point with no curves at all.
    """
    point_id: int
    outgoing: int | None = None
    incoming: int | None = None


@dataclass
class Face:
    id: int
    bounded: bool
    area: float = math.inf
    cycles: list[list[int]] = field(default_factory=list)
    corners: list[Corner] = field(default_factory=list)
    isolated: list[int] = field(default_factory=list)

    def point_ids(self) -> set[int]:
        return {c.point_id for c in self.corners} | set(self.isolated)


class Embedding:
    """Half-edges, boundary cycles and faces of one sprouts position."""

    def __init__(self, meta: SproutsMetadata):
        self.points = meta.points
        self.half_edges: list[HalfEdge] = []
        for curve in meta.curves:
            for u, v, poly in curve.halves():
                self.half_edges.append(HalfEdge(u, v, poly))
                self.half_edges.append(HalfEdge(v, u, tuple(reversed(poly))))

        self._outgoing: dict[int, list[int]] = {}
        for index, edge in enumerate(self.half_edges):
            self._outgoing.setdefault(edge.origin, []).append(index)
        self._position: dict[int, int] = {}
        for vertex, edges in self._outgoing.items():
            edges.sort(key=lambda e: self.half_edges[e].angle)
            for i, e in enumerate(edges):
                self._position[e] = i

        self.cycles = self._trace_cycles()
        self.faces = self._build_faces()

    # ------------------------------------------------------------------

    def next_half_edge(self, index: int) -> int:
        """The boundary successor: at the target, turn to the clockwise neighbour of the twin."""
        twin = index ^ 1
        around = self._outgoing[self.half_edges[index].target]
        return around[(self._position[twin] - 1) % len(around)]

    def outgoing(self, point_id: int) -> list[int]:
        return self._outgoing.get(point_id, [])

    def cycle_polygon(self, cycle: list[int]) -> list[Vec]:
        polygon: list[Vec] = []
        for e in cycle:
            polygon.extend(self.half_edges[e].poly[:-1])
        return polygon

    def _trace_cycles(self) -> list[list[int]]:
        seen: set[int] = set()
        cycles = []
        for start in range(len(self.half_edges)):
            if start in seen:
                continue
            cycle = []
            e = start
            while e not in seen:
                seen.add(e)
                cycle.append(e)
                e = self.next_half_edge(e)
            cycles.append(cycle)
        return cycles

    def _components(self) -> dict[int, int]:
        parent = list(range(len(self.points)))

        def find(x: int) -> int:
            while parent[x] != x:
                parent[x] = parent[parent[x]]
                x = parent[x]
            return x

        for edge in self.half_edges[::2]:
            a, b = find(edge.origin), find(edge.target)
            if a != b:
                parent[max(a, b)] = min(a, b)
        return {p.id: find(p.id) for p in self.points}

    def _build_faces(self) -> list[Face]:
        component_of = self._components()
        outer = Face(id=0, bounded=False)
        faces = [outer]

        by_component: dict[int, list[tuple[float, list[int]]]] = {}
        for cycle in self.cycles:
            root = component_of[self.half_edges[cycle[0]].origin]
            area = signed_area(self.cycle_polygon(cycle))
            by_component.setdefault(root, []).append((area, cycle))

        # Every component has exactly one outer walk: its smallest signed area.
        outer_walks: dict[int, list[int]] = {}
        polygons: list[tuple[Face, int, list[Vec]]] = []
        for root, walks in sorted(by_component.items()):
            walks.sort(key=lambda item: item[0])
            outer_walks[root] = walks[0][1]
            for area, cycle in walks[1:]:
                face = Face(id=len(faces), bounded=True, area=area, cycles=[cycle])
                face.corners.extend(self._corners(cycle))
                faces.append(face)
                polygons.append((face, root, self.cycle_polygon(cycle)))

        def enclosing_face(root: int, position: Vec) -> Face:
            best = outer
            for face, owner, polygon in polygons:
                if owner == root or face.area >= best.area:
                    continue
                if point_in_polygon(position, polygon):
                    best = face
            return best

        for root, walk in sorted(outer_walks.items()):
            face = enclosing_face(root, self.points[root].position)
            face.cycles.append(walk)
            face.corners.extend(self._corners(walk))

        for point in self.points:
            if point.id not in self._outgoing:
                enclosing_face(component_of[point.id], point.position).isolated.append(point.id)
        return faces

    def _corners(self, cycle: list[int]) -> list[Corner]:
        corners = []
        for i, e in enumerate(cycle):
            previous = cycle[i - 1]
            corners.append(Corner(point_id=self.half_edges[e].origin, outgoing=e, incoming=previous))
        return corners

    # ------------------------------------------------------------------

    def playable_pairs(self) -> list[tuple[int, int, int]]:
        """
        Every (face id, a, b) with a <= b that can be joined by a curve.

        A loop (a == b) needs two free slots on a.
        """
        degree = {p.id: p.degree for p in self.points}
        pairs = []
        for face in self.faces:
            free = sorted(pid for pid in face.point_ids() if degree[pid] < MAX_CONNECTIONS)
            for i, a in enumerate(free):
                if degree[a] <= MAX_CONNECTIONS - 2:
                    pairs.append((face.id, a, a))
                for b in free[i + 1:]:
                    pairs.append((face.id, a, b))
        return pairs

    def corner_for(self, face: Face, point_id: int) -> Corner:
        for corner in face.corners:
            if corner.point_id == point_id:
                return corner
        return Corner(point_id=point_id)


@dataclass
class TopologyAnalysis:
    """
    Counts the AI and the statistics report use.

    Lives on points that share no face with a usable partner can never be
    spent; every live face ends the game with at least one life left.
    """
    legal_moves: int
    live_faces: int
    total_lives: int
    dead_lives: int
    live_points: int

    @property
    def estimated_moves_remaining(self) -> int:
        return max(0, self.total_lives - self.dead_lives - self.live_faces)


def analyze(meta: SproutsMetadata, embedding: Embedding | None = None) -> TopologyAnalysis:
    embedding = embedding or Embedding(meta)
    pairs = embedding.playable_pairs()
    live_points = set()
    live_faces = set()
    for face_id, a, b in pairs:
        live_points.update((a, b))
        live_faces.add(face_id)
    lives = {p.id: MAX_CONNECTIONS - p.degree for p in meta.points}
    return TopologyAnalysis(
        legal_moves=len(pairs),
        live_faces=len(live_faces),
        total_lives=sum(lives.values()),
        dead_lives=sum(v for pid, v in lives.items() if pid not in live_points),
        live_points=len(live_points),
    )
