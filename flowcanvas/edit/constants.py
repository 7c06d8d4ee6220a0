"""
Shared constants for the interaction layer.

Distances are in canvas units unless noted. The overlay renderer draws
handles with the same radii the hit tester uses, so keep them in sync.
"""

# Maximum distance between a released connection drag and a port to snap onto it
SNAP_RADIUS = 20

# Width of the invisible path drawn over each connection for click targets
HIT_PATH_WIDTH = 20

# Radius of a port handle (shown on the hovered node)
PORT_HANDLE_RADIUS = 8

# Radius of the endpoint dots and control handles of the selected connection
SELECTED_HANDLE_RADIUS = 8

# Keys that delete the current selection
DELETE_KEYS = frozenset(['Delete', 'Backspace'])

# Default canvas size in screen pixels, used for zoom buttons when the host
# does not report its viewport size
CANVAS_WIDTH = 1200.0
CANVAS_HEIGHT = 700.0
