"""
Graph Model - entity store for workflow nodes and connections.

Nodes and connections live in two id-keyed arenas. Every mutation goes through
a method of GraphModel so the workflow invariants are enforced in one place:

- a connection never joins a node to itself
- at most one connection leaves the Start node
- deleting a node deletes every connection touching it

Refused mutations return None/False instead of raising; lookups of missing
entities return None.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import networkx as nx

from flowcanvas.models import Connection, Node, NodeKind, Point, SIDES, new_id

logger = logging.getLogger(__name__)

# Sides used when a connection was stored without explicit ports
DEFAULT_FROM_SIDE = 'right'
DEFAULT_TO_SIDE = 'left'

_NODE_FIELDS = frozenset(['label', 'color', 'wip_limit', 'is_done', 'width', 'height'])


def port_point(node: Node, side: str) -> Optional[Point]:
    """Midpoint of the given edge of a node's bounding box."""
    if side == 'left':
        return (node.x, node.y + node.height / 2)
    if side == 'right':
        return (node.x + node.width, node.y + node.height / 2)
    if side == 'top':
        return (node.x + node.width / 2, node.y)
    if side == 'bottom':
        return (node.x + node.width / 2, node.y + node.height)
    return None


class GraphModel:
    """Nodes and connections of one workflow."""

    def __init__(self, nodes: Iterable[Node] = (), connections: Iterable[Connection] = ()):
        self._nodes: Dict[str, Node] = {}
        self._connections: Dict[str, Connection] = {}
        for node in nodes:
            self.add_node(node)
        for conn in connections:
            # Host snapshots are trusted for invariants; only dangling ids are dropped
            if conn.from_id not in self._nodes or conn.to_id not in self._nodes:
                logger.warning(f"Dropping connection {conn.id}: unknown endpoint {conn.from_id} -> {conn.to_id}")
                continue
            if conn.id in self._connections:
                raise ValueError(f"Duplicate connection id {conn.id!r}")
            self._connections[conn.id] = conn

    # --- Queries ---

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def get_node(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def get_connection(self, conn_id: Optional[str]) -> Optional[Connection]:
        if conn_id is None:
            return None
        return self._connections.get(conn_id)

    def start_node(self) -> Optional[Node]:
        for node in self._nodes.values():
            if node.kind == NodeKind.START:
                return node
        return None

    def is_start(self, node_id: Optional[str]) -> bool:
        start = self.start_node()
        return start is not None and start.id == node_id

    def incident_connections(self, node_id: str) -> List[Connection]:
        return [c for c in self._connections.values() if c.from_id == node_id or c.to_id == node_id]

    def outgoing_connections(self, node_id: str) -> List[Connection]:
        return [c for c in self._connections.values() if c.from_id == node_id]

    def port_has_connection(self, node_id: str, side: str) -> bool:
        return any(
            (c.from_id == node_id and c.from_side == side) or (c.to_id == node_id and c.to_side == side)
            for c in self._connections.values()
        )

    def port_point(self, node_id: str, side: str) -> Optional[Point]:
        node = self._nodes.get(node_id)
        if node is None:
            return None
        return port_point(node, side)

    @staticmethod
    def endpoint_side(conn: Connection, end: str) -> str:
        """Stored side of a connection end, or the legacy right->left default."""
        if end == 'from':
            return conn.from_side or DEFAULT_FROM_SIDE
        return conn.to_side or DEFAULT_TO_SIDE

    def connection_endpoint(self, conn: Connection, end: str) -> Optional[Point]:
        node_id = conn.from_id if end == 'from' else conn.to_id
        return self.port_point(node_id, self.endpoint_side(conn, end))

    def can_connect(self, from_id: str, to_id: str) -> bool:
        if from_id not in self._nodes or to_id not in self._nodes:
            return False
        if from_id == to_id:
            return False
        if self.is_start(from_id) and self.outgoing_connections(from_id):
            return False
        return True

    # --- Node mutations ---

    def add_node(self, node: Node) -> Node:
        if node.id in self._nodes:
            raise ValueError(f"Duplicate node id {node.id!r}")
        self._nodes[node.id] = node
        return node

    def move_node(self, node_id: str, x: float, y: float) -> bool:
        """Move a node's top-left corner; negative coordinates are clamped to zero."""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.x = max(0.0, x)
        node.y = max(0.0, y)
        return True

    def update_node(self, node_id: str, **changes: Any) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        unknown = set(changes) - _NODE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update node fields: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            setattr(node, key, value)
        return True

    def remove_node(self, node_id: str) -> List[Connection]:
        """Remove a node and cascade to its connections. Returns the removed connections."""
        if node_id not in self._nodes:
            return []
        removed = self.incident_connections(node_id)
        for conn in removed:
            del self._connections[conn.id]
        del self._nodes[node_id]
        logger.info(f"Removed node {node_id} and {len(removed)} connection(s)")
        return removed

    # --- Connection mutations ---

    def add_connection(self, from_id: str, to_id: str,
                       from_side: Optional[str] = None, to_side: Optional[str] = None,
                       label: Optional[str] = None,
                       connection_id: Optional[str] = None) -> Optional[Connection]:
        if not self.can_connect(from_id, to_id):
            logger.debug(f"Refused connection {from_id} -> {to_id}")
            return None
        for side in (from_side, to_side):
            if side is not None and side not in SIDES:
                raise ValueError(f"Unknown side {side!r}")
        conn_id = connection_id or new_id('conn')
        if conn_id in self._connections:
            raise ValueError(f"Duplicate connection id {conn_id!r}")
        conn = Connection(id=conn_id, from_id=from_id, to_id=to_id,
                          from_side=from_side, to_side=to_side, label=label)
        self._connections[conn_id] = conn
        logger.info(f"Created connection {conn_id}: {from_id}.{from_side} -> {to_id}.{to_side}")
        return conn

    def restore_connection(self, conn: Connection) -> bool:
        """Put back a connection that was detached for reattachment."""
        if conn.id in self._connections or not self.can_connect(conn.from_id, conn.to_id):
            return False
        self._connections[conn.id] = conn
        return True

    def remove_connection(self, conn_id: str, reattaching: bool = False) -> Optional[Connection]:
        """
        Remove a connection. Start transitions can only be detached for
        reattachment (reattaching=True), never deleted outright.
        """
        conn = self._connections.get(conn_id)
        if conn is None:
            return None
        if self.is_start(conn.from_id) and not reattaching:
            logger.debug(f"Refused deletion of start transition {conn_id}")
            return None
        del self._connections[conn_id]
        return conn

    def set_connection_label(self, conn_id: str, label: Optional[str]) -> bool:
        conn = self._connections.get(conn_id)
        if conn is None:
            return False
        conn.label = label or None
        return True

    def set_custom_points(self, conn_id: str, points: Iterable[Point]) -> bool:
        conn = self._connections.get(conn_id)
        if conn is None:
            return False
        conn.custom_points = [(float(x), float(y)) for x, y in points]
        return True

    # --- Analysis ---

    def to_digraph(self) -> nx.MultiDiGraph:
        G = nx.MultiDiGraph()
        for node in self._nodes.values():
            G.add_node(node.id, label=node.label, kind=node.kind.value)
        for conn in self._connections.values():
            G.add_edge(conn.from_id, conn.to_id, key=conn.id, label=conn.label)
        return G

    def unreachable_nodes(self) -> List[str]:
        """Ids of nodes that no path from Start reaches (empty without a Start node)."""
        start = self.start_node()
        if start is None:
            return []
        G = self.to_digraph()
        reachable = nx.descendants(G, start.id) | {start.id}
        return [node_id for node_id in self._nodes if node_id not in reachable]

    # --- Snapshots ---

    def snapshot(self, name: str) -> Dict[str, Any]:
        return {
            'name': name,
            'nodes': [n.to_dict() for n in self._nodes.values()],
            'connections': [c.to_dict() for c in self._connections.values()],
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> 'GraphModel':
        nodes = [Node.from_dict(n) for n in data.get('nodes', [])]
        connections = [Connection.from_dict(c) for c in data.get('connections', [])]
        return cls(nodes, connections)
