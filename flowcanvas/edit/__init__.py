"""
Interactive editing layer for the workflow canvas.

This package provides the pointer-driven editing machinery:
- InteractionController: single-active-mode state machine over pointer events
- HitTester / SnapResolver: what lies under the pointer, where a drawn edge lands
- EditActions: host commands (add/edit/delete status, relabel transitions)
- EditOverlay: SVG rendering into a NiceGUI interactive image
- handlers: NiceGUI event handlers for app.py integration

Usage:
    from flowcanvas.edit import InteractionController, EditActions
    from flowcanvas.edit.handlers import setup_edit_handlers
"""

from flowcanvas.edit.constants import (
    SNAP_RADIUS,
    HIT_PATH_WIDTH,
    PORT_HANDLE_RADIUS,
    SELECTED_HANDLE_RADIUS,
)
from flowcanvas.edit.controller import (
    InteractionController,
    InteractionState,
    Idle,
    DraggingNode,
    PanningCanvas,
    DrawingConnection,
    DraggingEndpoint,
    DraggingControlPoint,
    NullPointerListeners,
)
from flowcanvas.edit.hit_testing import HitResult, HitTester, SnapResolver
from flowcanvas.edit.actions import EditActions

__all__ = [
    'InteractionController',
    'InteractionState',
    'Idle',
    'DraggingNode',
    'PanningCanvas',
    'DrawingConnection',
    'DraggingEndpoint',
    'DraggingControlPoint',
    'NullPointerListeners',
    'HitResult',
    'HitTester',
    'SnapResolver',
    'EditActions',
    'SNAP_RADIUS',
    'HIT_PATH_WIDTH',
    'PORT_HANDLE_RADIUS',
    'SELECTED_HANDLE_RADIUS',
]
