"""
Edit Handlers - NiceGUI event handlers for the editor canvas.

Translates interactive-image mouse events, wheel events and keyboard events
into InteractionController calls, and refreshes the overlay whenever the
controller reports a state change.
"""

import logging
from typing import Any, Callable, Dict, Optional

from flowcanvas.edit.overlay import EditOverlay
from flowcanvas.models import Point

logger = logging.getLogger(__name__)


class OverlayPointerListeners:
    """
    Pointer listeners for the NiceGUI canvas.

    The interactive image reports every mouse event; while a drag is active
    the controller's attached callbacks receive moves and releases, otherwise
    moves are plain hover updates.
    """

    def __init__(self):
        self._on_move: Optional[Callable[[Point], Any]] = None
        self._on_up: Optional[Callable[[Point], Any]] = None

    @property
    def active(self) -> bool:
        return self._on_move is not None

    def attach(self, on_move, on_up):
        self._on_move, self._on_up = on_move, on_up

        def detach():
            self._on_move = None
            self._on_up = None

        return detach

    def dispatch_move(self, point: Point) -> bool:
        if self._on_move is None:
            return False
        self._on_move(point)
        return True

    def dispatch_up(self, point: Point) -> bool:
        if self._on_up is None:
            return False
        self._on_up(point)
        return True


def setup_edit_handlers(
    editor,
    overlay: EditOverlay,
    listeners: OverlayPointerListeners,
    on_selection_change: Optional[Callable[[Optional[str], Optional[str]], None]] = None,
) -> Dict[str, Callable]:
    """
    Set up all canvas event handlers.

    Args:
        editor: WorkflowEditor instance (built with the same listeners)
        overlay: EditOverlay rendering the editor
        listeners: OverlayPointerListeners passed to the editor
        on_selection_change: Called with (node_id, connection_id) when the selection changes

    Returns:
        Dict with handler functions for binding to UI events
    """
    last_selection = {'value': (None, None)}

    def on_state_change(controller):
        overlay.update()
        selection = (controller.selected_node_id, controller.selected_connection_id)
        if selection != last_selection['value']:
            last_selection['value'] = selection
            if on_selection_change:
                on_selection_change(*selection)

    editor.controller.set_on_state_change(on_state_change)

    def handle_mouse(e):
        """Route interactive-image mouse events into the controller."""
        controller = editor.controller
        point = (e.image_x, e.image_y)
        if e.type == 'mousedown':
            controller.pointer_down(point, getattr(e, 'button', 0))
        elif e.type == 'mousemove':
            if not listeners.dispatch_move(point):
                controller.pointer_move(point)
        elif e.type == 'mouseup':
            listeners.dispatch_up(point)
        elif e.type == 'mouseleave':
            controller.pointer_cancel()

    def handle_wheel(e):
        """Ctrl + wheel zooms about the pointer (image units), plain wheel pans."""
        controller = editor.controller
        args = e.args if hasattr(e, 'args') else e
        if not isinstance(args, dict):
            return
        controller.wheel(
            float(args.get('deltaX', 0)),
            float(args.get('deltaY', 0)),
            (float(args.get('imageX', args.get('offsetX', 0))), float(args.get('imageY', args.get('offsetY', 0)))),
            ctrl=bool(args.get('ctrlKey', False)),
        )

    def handle_keyboard(e):
        """Delete/Backspace removes the selected transition or status."""
        if not e.action.keydown:
            return
        key = getattr(e.key, 'name', str(e.key))
        if editor.controller.key_down(key):
            logger.debug(f"Deleted selection via {key}")

    return {
        'handle_mouse': handle_mouse,
        'handle_wheel': handle_wheel,
        'handle_keyboard': handle_keyboard,
    }
