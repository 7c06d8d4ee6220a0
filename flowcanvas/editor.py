"""
WorkflowEditor - the object a host UI shell talks to.

Bundles one workflow's GraphModel, its Viewport, the InteractionController
and the EditActions, plus the host callbacks:

    editor = WorkflowEditor(initial_snapshot, on_save=store.save, on_back=go_home)
    editor.controller.pointer_down((x, y))
    ...
    editor.save()   # -> on_save({"name": ..., "nodes": [...], "connections": [...]})
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from flowcanvas.edit.actions import EditActions
from flowcanvas.edit.constants import CANVAS_HEIGHT, CANVAS_WIDTH
from flowcanvas.edit.controller import InteractionController, PointerListeners
from flowcanvas.graph_model import GraphModel
from flowcanvas.router import Route
from flowcanvas.templates import default_workflow
from flowcanvas.viewport import Viewport

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]


class WorkflowEditor:

    def __init__(self, snapshot: Optional[Snapshot] = None,
                 on_save: Optional[Callable[[Snapshot], Any]] = None,
                 on_back: Optional[Callable[[], Any]] = None,
                 on_close: Optional[Callable[[], Any]] = None,
                 listeners: Optional[PointerListeners] = None,
                 viewport_size: Tuple[float, float] = (CANVAS_WIDTH, CANVAS_HEIGHT)):
        snapshot = snapshot or default_workflow()
        self.name: str = snapshot.get('name') or 'New Workflow'
        self.graph = GraphModel.from_snapshot(snapshot)
        self.viewport = Viewport()
        self.viewport_size = viewport_size
        self._listeners = listeners
        self.controller = InteractionController(self.graph, self.viewport, listeners=listeners)
        self.actions = EditActions(self.graph)
        self._on_save = on_save
        self._on_back = on_back
        self._on_close = on_close

    # --- Host surface ---

    def snapshot(self) -> Snapshot:
        return self.graph.snapshot(self.name)

    def save(self) -> Snapshot:
        snapshot = self.snapshot()
        unreachable = self.graph.unreachable_nodes()
        if unreachable:
            logger.warning(f"Workflow '{self.name}' has statuses unreachable from START: {', '.join(unreachable)}")
        if self._on_save:
            self._on_save(snapshot)
        logger.info(f"Saved workflow '{self.name}' ({len(snapshot['nodes'])} nodes, "
                    f"{len(snapshot['connections'])} connections)")
        return snapshot

    def back(self) -> None:
        self.controller.pointer_cancel()
        if self._on_back:
            self._on_back()

    def close(self) -> None:
        self.controller.pointer_cancel()
        if self._on_close:
            self._on_close()

    def load(self, snapshot: Snapshot, keep_name: bool = True) -> None:
        """Replace the graph with a snapshot (e.g. a template), resetting the view."""
        self.controller.pointer_cancel()
        callback = self.controller.on_state_change
        if not keep_name:
            self.name = snapshot.get('name') or self.name
        self.graph = GraphModel.from_snapshot(snapshot)
        self.viewport.reset()
        self.controller = InteractionController(self.graph, self.viewport, listeners=self._listeners)
        self.controller.set_on_state_change(callback)
        self.actions = EditActions(self.graph)
        logger.info(f"Loaded {len(self.graph.nodes)} statuses into '{self.name}'")
        if callback:
            callback(self.controller)

    def rename(self, name: str) -> bool:
        if not name.strip():
            return False
        self.name = name.strip()
        return True

    # --- Viewport commands ---

    @property
    def viewport_center(self) -> Tuple[float, float]:
        return (self.viewport_size[0] / 2, self.viewport_size[1] / 2)

    def zoom_in(self) -> float:
        return self.viewport.zoom_in(self.viewport_center)

    def zoom_out(self) -> float:
        return self.viewport.zoom_out(self.viewport_center)

    def fit_to_view(self) -> None:
        self.viewport.reset()

    # --- Rendering queries ---

    def routes(self) -> Dict[str, Route]:
        return self.controller.routes()

    def preview(self) -> Optional[Route]:
        return self.controller.preview()
