"""
Edit Actions - host commands that mutate the workflow.

Translates toolbar, dialog and popover actions (add status, edit status,
delete, rename, relabel) into GraphModel operations. Invalid input and
missing entities are refused by returning None/False.
"""

import logging
from typing import Optional

from flowcanvas.graph_model import GraphModel
from flowcanvas.models import Node, NodeKind, StatusForm, new_id

logger = logging.getLogger(__name__)

# Where "Add Status" drops new nodes, in canvas coordinates
NEW_STATUS_POSITION = (400.0, 400.0)
STATUS_WIDTH = 140.0
STATUS_HEIGHT = 70.0


class EditActions:
    """
    Executes host-level editing commands.

    Each method validates its input and commits through the GraphModel.
    """

    def __init__(self, graph: GraphModel):
        self.graph = graph

    def add_status(self, form: StatusForm) -> Optional[Node]:
        """Create a status node from the add-status dialog."""
        if not form.is_valid:
            logger.debug("Refused status with empty name")
            return None

        x, y = NEW_STATUS_POSITION
        node = Node(
            id=new_id('status'),
            kind=NodeKind.STATUS,
            label=form.name.strip(),
            x=x,
            y=y,
            width=STATUS_WIDTH,
            height=STATUS_HEIGHT,
            color=form.color,
            wip_limit=form.wip_limit,
            is_done=form.is_done,
        )
        self.graph.add_node(node)
        logger.info(f"Added status '{node.label}' ({node.id})")
        return node

    def update_status(self, node_id: str, form: StatusForm) -> bool:
        """Apply the edit-status dialog to an existing node."""
        if not form.is_valid:
            return False
        return self.graph.update_node(
            node_id,
            label=form.name.strip(),
            color=form.color,
            wip_limit=form.wip_limit,
            is_done=form.is_done,
        )

    def status_form(self, node_id: str) -> Optional[StatusForm]:
        """Pre-filled form for editing a node, or None for unknown nodes."""
        node = self.graph.get_node(node_id)
        if node is None:
            return None
        return StatusForm(name=node.label, color=node.color, wip_limit=node.wip_limit, is_done=node.is_done)

    def delete_node(self, node_id: str) -> bool:
        if self.graph.get_node(node_id) is None or self.graph.is_start(node_id):
            return False
        self.graph.remove_node(node_id)
        return True

    def delete_connection(self, conn_id: str) -> bool:
        """Delete a transition; the start transition can only be moved, not deleted."""
        return self.graph.remove_connection(conn_id) is not None

    def rename_node(self, node_id: str, label: str) -> bool:
        return self.graph.update_node(node_id, label=label)

    def recolor_node(self, node_id: str, color: str) -> bool:
        return self.graph.update_node(node_id, color=color)

    def set_connection_label(self, conn_id: str, label: Optional[str]) -> bool:
        return self.graph.set_connection_label(conn_id, label)
