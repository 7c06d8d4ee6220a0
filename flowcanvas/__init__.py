"""
FlowCanvas - interactive workflow diagram editor engine.

The engine (graph model, viewport, router, interaction controller) has no UI
dependency; NiceGUI is only used by the rendering glue in flowcanvas.edit.
"""

__version__ = "0.1.0"
