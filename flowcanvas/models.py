"""
Workflow data model.

Nodes are statuses drawn as boxes on the canvas; connections are transitions
between them. Positions are top-left corners in canvas coordinates.

Snapshot format (what the host receives in on_save and may pass back in):
{
  "name": "My Workflow",
  "nodes": [{"id": "todo", "kind": "status", "label": "To Do",
             "x": 300, "y": 250, "width": 140, "height": 70,
             "color": "#4353FF", "wipLimit": 5, "isDone": false}],
  "connections": [{"id": "conn-1", "from": "start", "to": "todo",
                   "fromSide": "right", "toSide": "left", "label": "Begin",
                   "customPoints": [{"x": 260, "y": 290}]}]
}
"""

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

Point = Tuple[float, float]

# Ports in the order they are scanned by hit testing and snapping
SIDES = ('left', 'right', 'top', 'bottom')
HORIZONTAL_SIDES = frozenset(['left', 'right'])


class NodeKind(str, Enum):
    START = 'start'
    STATUS = 'status'
    END = 'end'


class Port(NamedTuple):
    """A (node, side) pair; resolved to a point on demand."""
    node_id: str
    side: str


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _check_side(side: Optional[str], field_name: str) -> Optional[str]:
    if side is None:
        return None
    if side not in SIDES:
        raise ValueError(f"{field_name} must be one of {', '.join(SIDES)}, got {side!r}")
    return side


@dataclass
class Node:
    id: str
    kind: NodeKind
    label: str
    x: float
    y: float
    width: float
    height: float
    color: str
    wip_limit: Optional[int] = None
    is_done: bool = False

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def contains(self, point: Point) -> bool:
        px, py = point
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'kind': self.kind.value,
            'label': self.label,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'color': self.color,
        }
        if self.wip_limit is not None:
            data['wipLimit'] = self.wip_limit
        if self.is_done:
            data['isDone'] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Node':
        try:
            kind = NodeKind(data.get('kind', data.get('type', NodeKind.STATUS.value)))
            wip_limit = data.get('wipLimit')
            return cls(
                id=str(data['id']),
                kind=kind,
                label=str(data.get('label', '')),
                x=float(data['x']),
                y=float(data['y']),
                width=float(data['width']),
                height=float(data['height']),
                color=str(data.get('color', '#6B7280')),
                wip_limit=int(wip_limit) if wip_limit is not None else None,
                is_done=bool(data.get('isDone', False)),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed node entry {data!r}: {e}") from e


@dataclass
class Connection:
    id: str
    from_id: str
    to_id: str
    from_side: Optional[str] = None
    to_side: Optional[str] = None
    label: Optional[str] = None
    custom_points: List[Point] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'id': self.id, 'from': self.from_id, 'to': self.to_id}
        if self.from_side:
            data['fromSide'] = self.from_side
        if self.to_side:
            data['toSide'] = self.to_side
        if self.label:
            data['label'] = self.label
        if self.custom_points:
            data['customPoints'] = [{'x': x, 'y': y} for x, y in self.custom_points]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Connection':
        try:
            points = [(float(p['x']), float(p['y'])) for p in data.get('customPoints') or []]
            return cls(
                id=str(data.get('id') or new_id('conn')),
                from_id=str(data['from']),
                to_id=str(data['to']),
                from_side=_check_side(data.get('fromSide'), 'fromSide'),
                to_side=_check_side(data.get('toSide'), 'toSide'),
                label=data.get('label'),
                custom_points=points,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed connection entry {data!r}: {e}") from e


def status_key(name: str) -> str:
    """Derive a status key from its display name ('In Review' -> 'in-review')."""
    return re.sub(r'\s+', '-', name.strip().lower())


@dataclass
class StatusForm:
    """Values collected by the host's add/edit status dialog."""
    name: str
    color: str = '#8B5CF6'
    key: str = ''
    wip_limit: Optional[int] = None
    is_done: bool = False

    def __post_init__(self):
        if not self.key:
            self.key = status_key(self.name)

    @property
    def is_valid(self) -> bool:
        return bool(self.name.strip())
