"""
Orthogonal edge router.

Pure functions: given the resolved endpoints of a connection, its ports and
any user-placed waypoints, compute the polyline to draw and the handles the
UI exposes for dragging.

Routing rules, in priority order:
1. custom points        -> from, *custom, to; every custom point is a handle
2. same explicit sides  -> U-turn bulging away from both nodes; one handle on
                           the cross segment that only moves the U level
3. nearly collinear     -> one straight segment; handle at its midpoint
4. otherwise            -> two-bend path, horizontal-first when both ports are
                           horizontal, vertical-first otherwise; handle at the
                           midpoint of the middle segment
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from flowcanvas.models import HORIZONTAL_SIDES, Connection, Point

if TYPE_CHECKING:
    from flowcanvas.graph_model import GraphModel

U_TURN_OFFSET = 60
COLLINEAR_TOLERANCE = 10

ARROW_SIZE = 14
ARROW_HALF_WIDTH = 8


@dataclass(frozen=True)
class Route:
    points: Tuple[Point, ...]
    handles: Tuple[Point, ...]
    kind: str

    def svg_path(self) -> str:
        return svg_path(self.points)

    def segments(self) -> List[Tuple[Point, Point]]:
        return list(zip(self.points, self.points[1:]))


def svg_path(points: Sequence[Point]) -> str:
    if not points:
        return ''
    head, *rest = points
    parts = [f"M {head[0]:g} {head[1]:g}"]
    parts.extend(f"L {x:g} {y:g}" for x, y in rest)
    return ' '.join(parts)


def _midpoint(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def _u_turn(from_point: Point, to_point: Point, side: str) -> Route:
    fx, fy = from_point
    tx, ty = to_point
    if side in ('top', 'bottom'):
        level = min(fy, ty) - U_TURN_OFFSET if side == 'top' else max(fy, ty) + U_TURN_OFFSET
        points = (from_point, (fx, level), (tx, level), to_point)
        handle = ((fx + tx) / 2, level)
    else:
        level = min(fx, tx) - U_TURN_OFFSET if side == 'left' else max(fx, tx) + U_TURN_OFFSET
        points = (from_point, (level, fy), (level, ty), to_point)
        handle = (level, (fy + ty) / 2)
    return Route(points=points, handles=(handle,), kind='u_turn')


def route_connection(from_point: Point, to_point: Point,
                     from_side: Optional[str] = None, to_side: Optional[str] = None,
                     custom_points: Optional[Sequence[Point]] = None) -> Route:
    """
    Compute the path of a connection.

    from_side/to_side are the ports stored on the connection; None means the
    connection was created without explicit ports (right -> left).
    """
    if custom_points:
        custom = tuple((float(x), float(y)) for x, y in custom_points)
        return Route(points=(from_point, *custom, to_point), handles=custom, kind='custom')

    if from_side and to_side and from_side == to_side:
        return _u_turn(from_point, to_point, from_side)

    fx, fy = from_point
    tx, ty = to_point
    if abs(tx - fx) < COLLINEAR_TOLERANCE or abs(ty - fy) < COLLINEAR_TOLERANCE:
        return Route(points=(from_point, to_point), handles=(_midpoint(from_point, to_point),), kind='straight')

    horizontal_first = (from_side or 'right') in HORIZONTAL_SIDES and (to_side or 'left') in HORIZONTAL_SIDES
    if horizontal_first:
        mid_x = (fx + tx) / 2
        points = (from_point, (mid_x, fy), (mid_x, ty), to_point)
        handle = (mid_x, (fy + ty) / 2)
    else:
        mid_y = (fy + ty) / 2
        points = (from_point, (fx, mid_y), (tx, mid_y), to_point)
        handle = ((fx + tx) / 2, mid_y)
    return Route(points=points, handles=(handle,), kind='orthogonal')


def reshape_route(from_point: Point, to_point: Point,
                  from_side: Optional[str], to_side: Optional[str],
                  drag_point: Point) -> List[Point]:
    """
    Custom points produced by dragging a control handle to drag_point.

    Same-side connections keep their U shape and only move the U level.
    Other connections get a three-waypoint orthogonal path through the drag
    point, oriented along the dominant drag axis measured from the source.
    """
    fx, fy = from_point
    tx, ty = to_point
    dx, dy = drag_point

    if from_side and to_side and from_side == to_side:
        if from_side in ('top', 'bottom'):
            return [(fx, dy), (tx, dy)]
        return [(dx, fy), (dx, ty)]

    if abs(dx - fx) > abs(dy - fy):
        return [(dx, fy), (dx, dy), (dx, ty)]
    return [(fx, dy), (dx, dy), (tx, dy)]


# Unit vector pointing from a port into its node
_INWARD = {
    'left': (1.0, 0.0),
    'right': (-1.0, 0.0),
    'top': (0.0, 1.0),
    'bottom': (0.0, -1.0),
}


def arrow_points(point: Point, side: Optional[str]) -> List[Point]:
    """Arrowhead triangle at a target port, tip first, pointing into the node."""
    ux, uy = _INWARD.get(side or 'left', _INWARD['left'])
    x, y = point
    base_x, base_y = x - ux * ARROW_SIZE, y - uy * ARROW_SIZE
    # perpendicular to the arrow direction
    px, py = -uy * ARROW_HALF_WIDTH, ux * ARROW_HALF_WIDTH
    return [(x, y), (base_x + px, base_y + py), (base_x - px, base_y - py)]


def preview_route(start: Point, current: Point) -> Route:
    """Squared path drawn while a connection is being dragged out."""
    mid_x = (start[0] + current[0]) / 2
    points = (start, (mid_x, start[1]), (mid_x, current[1]), current)
    return Route(points=points, handles=(), kind='preview')


def connection_route(graph: 'GraphModel', conn: Connection) -> Optional[Route]:
    """Route of a stored connection, or None when an endpoint node is gone."""
    from_point = graph.connection_endpoint(conn, 'from')
    to_point = graph.connection_endpoint(conn, 'to')
    if from_point is None or to_point is None:
        return None
    return route_connection(from_point, to_point, conn.from_side, conn.to_side, conn.custom_points)


def compute_routes(graph: 'GraphModel') -> Dict[str, Route]:
    routes = {}
    for conn in graph.connections:
        route = connection_route(graph, conn)
        if route is not None:
            routes[conn.id] = route
    return routes
