"""
Hit testing and snap resolution.

Everything here works in canvas coordinates. HitTester classifies what lies
under a pointer-down; SnapResolver picks the port a released connection drag
attaches to.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from flowcanvas.edit.constants import (
    HIT_PATH_WIDTH,
    PORT_HANDLE_RADIUS,
    SELECTED_HANDLE_RADIUS,
    SNAP_RADIUS,
)
from flowcanvas.graph_model import GraphModel, port_point
from flowcanvas.models import Point, Port, SIDES
from flowcanvas.router import Route


def distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def point_to_segment_distance(point: Point, seg_start: Point, seg_end: Point) -> Tuple[float, float]:
    """Distance from point to a segment and the clamped projection parameter t in [0, 1]."""
    px, py = point
    x1, y1 = seg_start
    x2, y2 = seg_end
    dx, dy = x2 - x1, y2 - y1

    if dx == 0 and dy == 0:
        return math.hypot(px - x1, py - y1), 0.0

    t = max(0.0, min(1.0, ((px - x1) * dx + (py - y1) * dy) / (dx * dx + dy * dy)))
    closest_x, closest_y = x1 + t * dx, y1 + t * dy
    return math.hypot(px - closest_x, py - closest_y), t


def distance_to_polyline(point: Point, points: Sequence[Point]) -> float:
    if not points:
        return float('inf')
    if len(points) == 1:
        return distance(point, points[0])
    return min(point_to_segment_distance(point, a, b)[0] for a, b in zip(points, points[1:]))


def nearest_port(graph: GraphModel, point: Point) -> Tuple[Optional[Port], float]:
    """Closest port over all nodes and sides; (None, inf) for an empty graph."""
    best: Optional[Port] = None
    best_dist = float('inf')
    for node in graph.nodes:
        for side in SIDES:
            dist = distance(point, port_point(node, side))
            if dist < best_dist:
                best_dist = dist
                best = Port(node.id, side)
    return best, best_dist


class SnapResolver:
    """Chooses the target port when a connection drag is released."""

    def __init__(self, radius: float = SNAP_RADIUS):
        self.radius = radius

    def resolve(self, graph: GraphModel, release_point: Point, origin_node_id: str,
                hovered_port: Optional[Port] = None) -> Optional[Port]:
        # A highlighted handle wins over the distance scan
        if hovered_port is not None and hovered_port.node_id != origin_node_id \
                and graph.get_node(hovered_port.node_id) is not None:
            return hovered_port

        port, dist = nearest_port(graph, release_point)
        if port is None or dist >= self.radius or port.node_id == origin_node_id:
            return None
        return port


@dataclass(frozen=True)
class HitResult:
    """
    What a pointer-down landed on.

    kind is one of: 'control_point', 'endpoint', 'port', 'node',
    'connection', 'canvas'.
    """
    kind: str
    node_id: Optional[str] = None
    side: Optional[str] = None
    connection_id: Optional[str] = None
    end: Optional[str] = None
    point_index: Optional[int] = None


CANVAS_HIT = HitResult(kind='canvas')


class HitTester:
    """Classifies canvas points against the rendered editor elements."""

    def __init__(self, port_radius: float = PORT_HANDLE_RADIUS,
                 handle_radius: float = SELECTED_HANDLE_RADIUS,
                 path_tolerance: float = HIT_PATH_WIDTH / 2):
        self.port_radius = port_radius
        self.handle_radius = handle_radius
        self.path_tolerance = path_tolerance

    def port_at(self, graph: GraphModel, point: Point) -> Optional[Port]:
        port, dist = nearest_port(graph, point)
        if port is not None and dist <= self.port_radius:
            return port
        return None

    def node_at(self, graph: GraphModel, point: Point) -> Optional[str]:
        # Later nodes are drawn on top
        for node in reversed(graph.nodes):
            if node.contains(point):
                return node.id
        return None

    def connection_at(self, point: Point, routes: Dict[str, Route]) -> Optional[str]:
        best_id = None
        best_dist = self.path_tolerance
        for conn_id, route in routes.items():
            dist = distance_to_polyline(point, route.points)
            if dist <= best_dist:
                best_dist = dist
                best_id = conn_id
        return best_id

    def hit(self, graph: GraphModel, point: Point, routes: Dict[str, Route],
            selected_connection_id: Optional[str] = None) -> HitResult:
        selected = routes.get(selected_connection_id) if selected_connection_id else None
        if selected is not None:
            for index, handle in enumerate(selected.handles):
                if distance(point, handle) <= self.handle_radius:
                    return HitResult(kind='control_point', connection_id=selected_connection_id,
                                     point_index=index)
            for end, end_point in (('from', selected.points[0]), ('to', selected.points[-1])):
                if distance(point, end_point) <= self.handle_radius:
                    return HitResult(kind='endpoint', connection_id=selected_connection_id, end=end)

        port = self.port_at(graph, point)
        if port is not None:
            return HitResult(kind='port', node_id=port.node_id, side=port.side)

        node_id = self.node_at(graph, point)
        if node_id is not None:
            return HitResult(kind='node', node_id=node_id)

        conn_id = self.connection_at(point, routes)
        if conn_id is not None:
            return HitResult(kind='connection', connection_id=conn_id)

        return CANVAS_HIT
