"""
Workflow templates.

The built-in default is the four-status workflow a new editor opens with.
Further templates are YAML files in workflow_templates/ next to the app,
using the same shape as editor snapshots:

    name: Review flow
    nodes:
      - {id: start, kind: start, label: START, x: 150, y: 250, width: 80, height: 80, color: "#4353FF"}
      ...
    connections:
      - {id: conn-1, from: start, to: todo}
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from flowcanvas.graph_model import GraphModel
from flowcanvas.paths import get_templates_dir

logger = logging.getLogger(__name__)

PRESET_COLORS = [
    "#6B7280",  # Gray
    "#3B82F6",  # Blue
    "#22C55E",  # Green
]

NEW_STATUS_COLOR = "#8B5CF6"

DEFAULT_TEMPLATE = "default"

_DEFAULT_WORKFLOW: Dict[str, Any] = {
    "name": "New Workflow",
    "nodes": [
        {"id": "start", "kind": "start", "label": "START", "x": 150, "y": 250,
         "width": 80, "height": 80, "color": "#4353FF"},
        {"id": "todo", "kind": "status", "label": "To Do", "x": 300, "y": 250,
         "width": 140, "height": 70, "color": "#4353FF"},
        {"id": "in-progress", "kind": "status", "label": "In Progress", "x": 500, "y": 250,
         "width": 140, "height": 70, "color": "#F59E0B"},
        {"id": "done", "kind": "status", "label": "Done", "x": 700, "y": 250,
         "width": 140, "height": 70, "color": "#10B981"},
    ],
    "connections": [
        {"id": "conn-1", "from": "start", "to": "todo"},
        {"id": "conn-2", "from": "todo", "to": "in-progress"},
        {"id": "conn-3", "from": "in-progress", "to": "done"},
    ],
}


def default_workflow(name: Optional[str] = None) -> Dict[str, Any]:
    """Fresh copy of the default workflow snapshot."""
    workflow = copy.deepcopy(_DEFAULT_WORKFLOW)
    if name:
        workflow["name"] = name
    return workflow


def list_templates(templates_dir: Optional[Path] = None) -> List[str]:
    """Names of available templates; the built-in default is always first."""
    templates_dir = templates_dir or get_templates_dir()
    names = [DEFAULT_TEMPLATE]
    if templates_dir.exists():
        names.extend(sorted(p.stem for p in templates_dir.glob("*.yaml") if p.stem != DEFAULT_TEMPLATE))
    return names


def load_template(name: str, templates_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load a template snapshot by name.

    Unknown, unreadable or malformed templates fall back to the default workflow.
    """
    if name == DEFAULT_TEMPLATE:
        return default_workflow()

    templates_dir = templates_dir or get_templates_dir()
    path = templates_dir / f"{name}.yaml"
    if not path.exists():
        logger.warning(f"Template '{name}' not found in {templates_dir}, using default")
        return default_workflow()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Failed to read template {path}: {e}")
        return default_workflow()

    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
        logger.warning(f"Template {path} has no node list, using default")
        return default_workflow()

    data.setdefault("name", name.replace("_", " ").title())
    data.setdefault("connections", [])

    try:
        GraphModel.from_snapshot(data)
    except ValueError as e:
        logger.warning(f"Template {path} is malformed ({e}), using default")
        return default_workflow()
    return data
