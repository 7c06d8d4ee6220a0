"""
Interaction Controller - single source of truth for pointer interaction state.

Pointer and keyboard events from the host are fed in here. Exactly one
interaction state is live at a time:

    Idle
    DraggingNode          node follows the pointer (live graph mutation)
    PanningCanvas         pan offset follows the pointer (live viewport mutation)
    DrawingConnection     transient edge from a port; graph untouched until release
    DraggingEndpoint      DrawingConnection anchored at the kept end of a
                          detached connection
    DraggingControlPoint  reshapes a connection's custom points (live)

Drag states are only entered from Idle. Entering one attaches the global
pointer listeners; every way out (release, cancel, error during commit)
detaches them again.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Protocol, Union

from flowcanvas.edit.constants import DELETE_KEYS
from flowcanvas.edit.hit_testing import HitTester, SnapResolver
from flowcanvas.graph_model import GraphModel
from flowcanvas.models import Connection, Point, Port
from flowcanvas.router import Route, compute_routes, preview_route, reshape_route
from flowcanvas.viewport import Viewport, WHEEL_ZOOM_IN_FACTOR, WHEEL_ZOOM_OUT_FACTOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DraggingNode:
    node_id: str
    grab_offset: Point


@dataclass(frozen=True)
class PanningCanvas:
    pan_start_screen: Point
    pan_offset_at_start: Point


@dataclass(frozen=True)
class DrawingConnection:
    origin_node_id: str
    origin_side: str
    current_point: Point
    hovered_port: Optional[Port] = None


@dataclass(frozen=True)
class DraggingEndpoint(DrawingConnection):
    connection_id: str = ''
    detached_end: str = 'to'
    original: Optional[Connection] = None

    @property
    def kept_end(self) -> str:
        return 'from' if self.detached_end == 'to' else 'to'


@dataclass(frozen=True)
class DraggingControlPoint:
    connection_id: str
    point_index: int


InteractionState = Union[Idle, DraggingNode, PanningCanvas, DrawingConnection, DraggingControlPoint]

IDLE = Idle()


class PointerListeners(Protocol):
    """Host hook for document-level pointer listeners during a drag."""

    def attach(self, on_move: Callable[[Point], None],
               on_up: Callable[[Point], None]) -> Callable[[], None]:
        """Start routing pointer moves/releases to the callbacks; return the detach function."""
        ...


class NullPointerListeners:
    """For hosts that already forward every pointer event to the controller."""

    def attach(self, on_move, on_up):
        return lambda: None


class InteractionController:
    """Consumes pointer events and mutates the viewport and graph model."""

    def __init__(self, graph: GraphModel, viewport: Viewport,
                 listeners: Optional[PointerListeners] = None,
                 snap_resolver: Optional[SnapResolver] = None,
                 hit_tester: Optional[HitTester] = None):
        self.graph = graph
        self.viewport = viewport
        self._listeners = listeners or NullPointerListeners()
        self._snap = snap_resolver or SnapResolver()
        self._hit_tester = hit_tester or HitTester()
        self._state: InteractionState = IDLE
        self._release: Optional[Callable[[], None]] = None
        self._on_state_change: Optional[Callable[['InteractionController'], None]] = None

        self.selected_node_id: Optional[str] = None
        self.selected_connection_id: Optional[str] = None
        self.hovered_node_id: Optional[str] = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, Idle)

    @property
    def hovered_port(self) -> Optional[Port]:
        if isinstance(self._state, DrawingConnection):
            return self._state.hovered_port
        return None

    def set_on_state_change(self, callback: Optional[Callable[['InteractionController'], None]]):
        self._on_state_change = callback

    @property
    def on_state_change(self) -> Optional[Callable[['InteractionController'], None]]:
        return self._on_state_change

    def routes(self) -> Dict[str, Route]:
        return compute_routes(self.graph)

    def preview(self) -> Optional[Route]:
        """Path of the connection being drawn, if any."""
        state = self._state
        if not isinstance(state, DrawingConnection):
            return None
        start = self.graph.port_point(state.origin_node_id, state.origin_side)
        if start is None:
            return None
        return preview_route(start, state.current_point)

    # --- Selection ---

    def select_node(self, node_id: Optional[str]) -> None:
        self.selected_node_id = node_id if self.graph.get_node(node_id) else None
        self.selected_connection_id = None

    def select_connection(self, conn_id: Optional[str]) -> None:
        self.selected_connection_id = conn_id if self.graph.get_connection(conn_id) else None
        self.selected_node_id = None

    def clear_selection(self) -> None:
        self.selected_node_id = None
        self.selected_connection_id = None

    # --- Pointer events ---

    def pointer_down(self, screen_point: Point, button: int = 0) -> InteractionState:
        if not self.is_idle:
            logger.debug(f"Ignoring pointer down while {type(self._state).__name__} is active")
            return self._state
        if button != 0:
            return self._state

        point = self.viewport.to_canvas(screen_point)
        hit = self._hit_tester.hit(self.graph, point, self.routes(), self.selected_connection_id)

        if hit.kind == 'control_point':
            self._begin(DraggingControlPoint(hit.connection_id, hit.point_index))
        elif hit.kind == 'endpoint':
            self._begin_reattach(hit.connection_id, hit.end)
        elif hit.kind == 'port':
            self._begin_drawing(hit.node_id, hit.side)
        elif hit.kind == 'node':
            node = self.graph.get_node(hit.node_id)
            self.select_node(node.id)
            self._begin(DraggingNode(node.id, (point[0] - node.x, point[1] - node.y)))
        elif hit.kind == 'connection':
            self.select_connection(hit.connection_id)
        else:
            self.clear_selection()
            self._begin(PanningCanvas(screen_point, self.viewport.pan_offset))

        self._notify()
        return self._state

    def pointer_move(self, screen_point: Point) -> InteractionState:
        state = self._state
        point = self.viewport.to_canvas(screen_point)

        if isinstance(state, Idle):
            port = self._hit_tester.port_at(self.graph, point)
            self.hovered_node_id = port.node_id if port else self._hit_tester.node_at(self.graph, point)
        elif isinstance(state, DraggingNode):
            self.graph.move_node(state.node_id, point[0] - state.grab_offset[0], point[1] - state.grab_offset[1])
        elif isinstance(state, PanningCanvas):
            self.viewport.pan_to((
                state.pan_offset_at_start[0] + screen_point[0] - state.pan_start_screen[0],
                state.pan_offset_at_start[1] + screen_point[1] - state.pan_start_screen[1],
            ))
        elif isinstance(state, DrawingConnection):
            port = self._hit_tester.port_at(self.graph, point)
            if port is not None and port.node_id == state.origin_node_id:
                port = None
            self._state = replace(state, current_point=point, hovered_port=port)
        elif isinstance(state, DraggingControlPoint):
            self._drag_control_point(state, point)

        self._notify()
        return self._state

    def pointer_up(self, screen_point: Point) -> Optional[Connection]:
        """Finish the active drag. Returns the connection created, if any."""
        state = self._state
        if isinstance(state, Idle):
            return None

        created = None
        try:
            if isinstance(state, DrawingConnection):
                created = self._commit_connection(state, self.viewport.to_canvas(screen_point))
        finally:
            self._end()
            self._notify()
        return created

    def pointer_cancel(self) -> None:
        """Pointer left the window or the host aborted the gesture."""
        state = self._state
        if isinstance(state, Idle):
            return
        try:
            if isinstance(state, DraggingEndpoint):
                self._restore_start_transition(state)
        finally:
            self._end()
            self._notify()

    def wheel(self, delta_x: float, delta_y: float, screen_point: Point, ctrl: bool = False) -> None:
        """Ctrl + wheel (or pinch) zooms about the pointer; plain wheel scrolls the canvas."""
        if not self.is_idle:
            return
        if ctrl:
            if delta_y == 0:
                return
            factor = WHEEL_ZOOM_IN_FACTOR if delta_y < 0 else WHEEL_ZOOM_OUT_FACTOR
            self.viewport.zoom_by(factor, screen_point)
        else:
            self.viewport.pan_by((-delta_x, -delta_y))
        self._notify()

    def key_down(self, key: str) -> bool:
        """Delete/Backspace removes the selected connection or node. Returns True if something was deleted."""
        if key not in DELETE_KEYS or not self.is_idle:
            return False

        deleted = False
        if self.selected_connection_id:
            if self.graph.remove_connection(self.selected_connection_id) is not None:
                logger.info(f"Deleted connection {self.selected_connection_id}")
                self.selected_connection_id = None
                deleted = True
        elif self.graph.get_node(self.selected_node_id) is not None:
            if self.graph.is_start(self.selected_node_id):
                logger.debug("Refused deletion of the start node")
            else:
                self.graph.remove_node(self.selected_node_id)
                self.selected_node_id = None
                deleted = True

        if deleted:
            self._notify()
        return deleted

    # --- Mode lifecycle ---

    def _begin(self, state: InteractionState) -> None:
        if not self.is_idle:
            raise RuntimeError(f"Cannot start {type(state).__name__} while {type(self._state).__name__} is active")
        self._state = state
        self._release = self._listeners.attach(self.pointer_move, self.pointer_up)
        logger.debug(f"Interaction -> {type(state).__name__}")

    def _end(self) -> None:
        release, self._release = self._release, None
        previous = self._state
        self._state = IDLE
        if release is not None:
            release()
        logger.debug(f"Interaction {type(previous).__name__} -> Idle")

    def _begin_drawing(self, node_id: str, side: str) -> None:
        if self.graph.is_start(node_id) and self.graph.outgoing_connections(node_id):
            logger.debug("Start node already has its transition; not drawing another")
            return
        anchor = self.graph.port_point(node_id, side)
        if anchor is None:
            return
        self._begin(DrawingConnection(node_id, side, anchor))

    def _begin_reattach(self, conn_id: str, end: str) -> None:
        conn = self.graph.get_connection(conn_id)
        if conn is None:
            return
        if end == 'from' and self.graph.is_start(conn.from_id):
            logger.debug("Start transition can only be moved by its target end")
            return
        kept_end = 'to' if end == 'from' else 'from'
        kept_node_id = conn.to_id if kept_end == 'to' else conn.from_id
        kept_side = self.graph.endpoint_side(conn, kept_end)
        anchor = self.graph.port_point(kept_node_id, kept_side)
        if anchor is None:
            return

        self.graph.remove_connection(conn_id, reattaching=True)
        self.selected_connection_id = None
        self._begin(DraggingEndpoint(
            origin_node_id=kept_node_id,
            origin_side=kept_side,
            current_point=anchor,
            connection_id=conn_id,
            detached_end=end,
            original=conn,
        ))

    def _commit_connection(self, state: DrawingConnection, release_point: Point) -> Optional[Connection]:
        target = self._snap.resolve(self.graph, release_point, state.origin_node_id, state.hovered_port)
        label = state.original.label if isinstance(state, DraggingEndpoint) and state.original else None

        created = None
        if target is not None:
            if isinstance(state, DraggingEndpoint) and state.detached_end == 'from':
                created = self.graph.add_connection(target.node_id, state.origin_node_id,
                                                    target.side, state.origin_side, label=label)
            else:
                created = self.graph.add_connection(state.origin_node_id, target.node_id,
                                                    state.origin_side, target.side, label=label)
        else:
            logger.debug(f"Connection drag from {state.origin_node_id} released away from any port")

        if created is None and isinstance(state, DraggingEndpoint):
            self._restore_start_transition(state)
        return created

    def _restore_start_transition(self, state: DraggingEndpoint) -> None:
        original = state.original
        if original is not None and self.graph.is_start(original.from_id):
            self.graph.restore_connection(original)

    def _drag_control_point(self, state: DraggingControlPoint, point: Point) -> None:
        conn = self.graph.get_connection(state.connection_id)
        if conn is None:
            return
        from_point = self.graph.connection_endpoint(conn, 'from')
        to_point = self.graph.connection_endpoint(conn, 'to')
        if from_point is None or to_point is None:
            return
        points = reshape_route(from_point, to_point, conn.from_side, conn.to_side, point)
        self.graph.set_custom_points(conn.id, points)

    def _notify(self) -> None:
        if self._on_state_change:
            self._on_state_change(self)
