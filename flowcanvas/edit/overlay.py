"""
Edit Overlay - renders the editor canvas as SVG inside a NiceGUI interactive image.

The whole canvas (grid, connections, nodes, handles, in-progress edge) is one
SVG string rebuilt from editor state after every interaction. Canvas content
sits in a group transformed by the viewport, so routing and hit testing stay
in canvas coordinates while mouse events arrive in screen pixels.
"""

from html import escape
from typing import Callable, Dict, List, Optional, Tuple

from nicegui import ui

from flowcanvas.edit.constants import HIT_PATH_WIDTH, PORT_HANDLE_RADIUS, SELECTED_HANDLE_RADIUS
from flowcanvas.edit.controller import DraggingNode, DrawingConnection
from flowcanvas.graph_model import port_point
from flowcanvas.models import Node, NodeKind, Point, SIDES
from flowcanvas.router import arrow_points

GRID_SPACING = 20


def _points_attr(points: List[Point]) -> str:
    return ' '.join(f"{x:g},{y:g}" for x, y in points)


def _render_grid(theme: Dict[str, str], zoom: float, pan: Point) -> str:
    spacing = GRID_SPACING * zoom
    return (
        f'<defs><pattern id="grid" width="{spacing:g}" height="{spacing:g}" '
        f'x="{pan[0]:g}" y="{pan[1]:g}" patternUnits="userSpaceOnUse">'
        f'<circle cx="1" cy="1" r="1" fill="{theme["grid_dot"]}" /></pattern></defs>'
        f'<rect width="100%" height="100%" fill="{theme["canvas_bg"]}" />'
        f'<rect width="100%" height="100%" fill="url(#grid)" />'
    )


def _render_node(node: Node, selected: bool, theme: Dict[str, str]) -> str:
    label = escape(node.label)
    ring = f' stroke="{theme["accent"]}" stroke-width="3"' if selected else ''
    cx, cy = node.x + node.width / 2, node.y + node.height / 2

    if node.kind == NodeKind.START:
        r = min(node.width, node.height) / 2
        shape = f'<circle class="node" data-id="{escape(node.id)}" cx="{cx:g}" cy="{cy:g}" r="{r:g}" fill="{node.color}"{ring} />'
    else:
        shape = (f'<rect class="node" data-id="{escape(node.id)}" x="{node.x:g}" y="{node.y:g}" '
                 f'width="{node.width:g}" height="{node.height:g}" rx="8" fill="{node.color}"{ring} />')

    parts = [shape, f'<text x="{cx:g}" y="{cy:g}" fill="#ffffff" font-size="14" font-weight="600" '
                    f'text-anchor="middle" dominant-baseline="middle" font-family="system-ui, sans-serif">{label}</text>']
    if node.wip_limit is not None:
        parts.append(f'<text x="{node.x + node.width - 8:g}" y="{node.y + 14:g}" fill="#ffffff" font-size="10" '
                     f'text-anchor="end" font-family="system-ui, sans-serif">WIP {node.wip_limit}</text>')
    if node.is_done:
        parts.append(f'<text x="{node.x + 8:g}" y="{node.y + 14:g}" fill="#ffffff" font-size="11" '
                     f'font-family="system-ui, sans-serif">&#10003;</text>')
    return ''.join(parts)


def _render_ports(node: Node, hovered_side: Optional[str], theme: Dict[str, str]) -> str:
    parts = []
    for side in SIDES:
        x, y = port_point(node, side)
        scale = 1.25 if side == hovered_side else 1.0
        parts.append(f'<circle class="port" cx="{x:g}" cy="{y:g}" r="{PORT_HANDLE_RADIUS * 0.75 * scale:g}" '
                     f'fill="#ffffff" stroke="{theme["accent"]}" stroke-width="2" />')
    return ''.join(parts)


def render_canvas_svg(editor, theme: Dict[str, str], size: Tuple[float, float]) -> str:
    """Build the SVG markup for the editor's current state."""
    width, height = size
    controller = editor.controller
    state = controller.state
    zoom = editor.viewport.zoom
    pan = editor.viewport.pan_offset
    selected_conn = controller.selected_connection_id

    parts = [f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width:g} {height:g}" '
             f'width="{width:g}" height="{height:g}">']
    parts.append(_render_grid(theme, zoom, pan))
    parts.append(f'<g transform="translate({pan[0]:g} {pan[1]:g}) scale({zoom:g})">')

    routes = editor.routes()
    for conn in editor.graph.connections:
        route = routes.get(conn.id)
        if route is None:
            continue
        is_selected = conn.id == selected_conn
        color = theme["accent"] if is_selected else theme["connection"]
        path = route.svg_path()
        parts.append(f'<path class="hit-path" data-id="{escape(conn.id)}" d="{path}" stroke="transparent" '
                     f'stroke-width="{HIT_PATH_WIDTH}" fill="none" />')
        parts.append(f'<path class="connection" d="{path}" stroke="{color}" '
                     f'stroke-width="{3 if is_selected else 2}" fill="none" />')
        to_side = editor.graph.endpoint_side(conn, 'to')
        parts.append(f'<polygon class="arrow" points="{_points_attr(arrow_points(route.points[-1], to_side))}" fill="{color}" />')
        if conn.label:
            lx, ly = route.handles[0] if route.handles else route.points[0]
            parts.append(f'<text x="{lx:g}" y="{ly - 8:g}" fill="{color}" font-size="11" text-anchor="middle" '
                         f'font-family="system-ui, sans-serif">{escape(conn.label)}</text>')
        if not is_selected:
            for x, y in (route.points[0], route.points[-1]):
                parts.append(f'<circle class="endpoint" cx="{x:g}" cy="{y:g}" r="4" fill="{theme["accent"]}" />')

    for node in editor.graph.nodes:
        parts.append(_render_node(node, node.id == controller.selected_node_id, theme))

    selected_route = routes.get(selected_conn) if selected_conn else None
    if selected_route is not None:
        for x, y in (selected_route.points[0], selected_route.points[-1]):
            parts.append(f'<circle class="endpoint selected" cx="{x:g}" cy="{y:g}" r="{SELECTED_HANDLE_RADIUS * 0.75:g}" '
                         f'fill="{theme["endpoint_selected"]}" stroke="{theme["accent"]}" stroke-width="2" />')
        for x, y in selected_route.handles:
            parts.append(f'<circle class="control-point" cx="{x:g}" cy="{y:g}" r="{SELECTED_HANDLE_RADIUS * 0.75:g}" '
                         f'fill="{theme["endpoint_selected"]}" stroke="{theme["accent"]}" stroke-width="2" />')

    hovered_port = controller.hovered_port
    port_node_id = hovered_port.node_id if hovered_port else controller.hovered_node_id
    port_node = editor.graph.get_node(port_node_id)
    if port_node is not None and not isinstance(state, DraggingNode):
        parts.append(_render_ports(port_node, hovered_port.side if hovered_port else None, theme))

    if isinstance(state, DrawingConnection):
        preview = editor.preview()
        if preview is not None:
            start = preview.points[0]
            parts.append(f'<path class="preview" d="{preview.svg_path()}" stroke="{theme["accent"]}" '
                         f'stroke-width="2" stroke-dasharray="5,5" fill="none" />')
            parts.append(f'<circle cx="{start[0]:g}" cy="{start[1]:g}" r="4" fill="{theme["accent"]}" />')

    parts.append('</g></svg>')
    return ''.join(parts)


class EditOverlay:
    """
    Owns the NiceGUI interactive image that displays the canvas.

    Call setup() once inside a page/container, then update() after every
    state change.
    """

    EVENTS = ['mousedown', 'mousemove', 'mouseup', 'mouseleave']

    def __init__(self, editor, theme: Dict[str, str]):
        self.editor = editor
        self.theme = theme
        self._image = None

    @property
    def size(self) -> Tuple[float, float]:
        return self.editor.viewport_size

    def render(self) -> str:
        return render_canvas_svg(self.editor, self.theme, self.size)

    def setup(self, on_mouse: Callable) -> 'ui.interactive_image':
        if self._image is not None:
            return self._image
        self._image = ui.interactive_image(
            size=self.size,
            content=self.render(),
            on_mouse=on_mouse,
            events=self.EVENTS,
            cross=False,
        ).classes('w-full h-full select-none')
        return self._image

    def wheel_js(self) -> str:
        """Client-side wheel handler that reports the pointer in image (viewBox) units."""
        width, height = self.size
        return (
            "(e) => { e.preventDefault(); const r = e.currentTarget.getBoundingClientRect(); "
            f"emit({{deltaX: e.deltaX, deltaY: e.deltaY, ctrlKey: e.ctrlKey, "
            f"imageX: (e.clientX - r.left) * {width:g} / r.width, "
            f"imageY: (e.clientY - r.top) * {height:g} / r.height}}); }}"
        )

    def on_wheel(self, handler: Callable) -> None:
        if self._image is not None:
            self._image.on('wheel', handler, js_handler=self.wheel_js())

    @property
    def element(self):
        return self._image

    def set_theme(self, theme: Dict[str, str]) -> None:
        self.theme = theme
        self.update()

    def update(self) -> None:
        if self._image is not None:
            self._image.content = self.render()
