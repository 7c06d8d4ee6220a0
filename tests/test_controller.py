"""
Tests for the pointer interaction state machine.

Screen and canvas coordinates coincide unless a test changes the viewport.
The default workflow puts To Do at (300, 250), In Progress at (500, 250) and
Done at (700, 250), each 140x70.
"""

import pytest

from flowcanvas.edit.controller import (
    DraggingControlPoint,
    DraggingEndpoint,
    DraggingNode,
    DrawingConnection,
    Idle,
    InteractionController,
    PanningCanvas,
)
from flowcanvas.models import Port
from flowcanvas.viewport import Viewport


class RecordingListeners:
    """Counts attach/detach calls and keeps the live callbacks."""

    def __init__(self):
        self.attached = 0
        self.detached = 0
        self.on_move = None
        self.on_up = None

    @property
    def active(self):
        return self.attached - self.detached

    def attach(self, on_move, on_up):
        self.attached += 1
        self.on_move, self.on_up = on_move, on_up

        def detach():
            self.detached += 1
            self.on_move = self.on_up = None

        return detach


class ExplodingSnap:
    def resolve(self, *args, **kwargs):
        raise RuntimeError("boom")


@pytest.fixture
def listeners():
    return RecordingListeners()


@pytest.fixture
def controller(graph, listeners):
    return InteractionController(graph, Viewport(), listeners=listeners)


def select(controller, conn_id, point):
    """Click a connection's path to select it."""
    controller.pointer_down(point)
    assert controller.selected_connection_id == conn_id


class TestNodeDrag:

    def test_drag_moves_node_by_grab_offset(self, controller, listeners, graph):
        controller.pointer_down((350, 270))
        state = controller.state
        assert isinstance(state, DraggingNode)
        assert state.grab_offset == (50, 20)
        assert controller.selected_node_id == "todo"
        assert listeners.active == 1

        listeners.on_move((450, 400))
        assert graph.get_node("todo").position == (400, 380)

        listeners.on_up((450, 400))
        assert isinstance(controller.state, Idle)
        assert listeners.active == 0

    def test_only_dragged_node_moves(self, controller, graph):
        before = {n.id: n.position for n in graph.nodes if n.id != "todo"}
        controller.pointer_down((350, 270))
        controller.pointer_move((380, 500))
        controller.pointer_up((380, 500))
        assert {n.id: n.position for n in graph.nodes if n.id != "todo"} == before

    def test_drag_respects_zoom(self, graph, listeners):
        controller = InteractionController(graph, Viewport(zoom=2.0), listeners=listeners)
        controller.pointer_down((700, 540))  # canvas (350, 270)
        controller.pointer_move((800, 540))
        assert graph.get_node("todo").position == (350, 250)


class TestPan:

    def test_pan_follows_pointer(self, controller, listeners):
        controller.pointer_down((1000, 600))
        assert isinstance(controller.state, PanningCanvas)
        controller.pointer_move((1010, 620))
        controller.pointer_move((1030, 640))
        assert controller.viewport.pan_offset == (30, 40)
        controller.pointer_up((1030, 640))
        assert listeners.active == 0

    def test_canvas_click_clears_selection(self, controller):
        controller.select_node("todo")
        controller.pointer_down((1000, 600))
        assert controller.selected_node_id is None


class TestDrawConnection:

    def test_snap_to_port_within_radius(self, controller, graph, listeners):
        controller.pointer_down((570, 320))  # in-progress.bottom
        assert isinstance(controller.state, DrawingConnection)

        created = controller.pointer_up((770, 245))  # 5 units above done.top
        assert created is not None
        assert (created.from_id, created.to_id) == ("in-progress", "done")
        assert (created.from_side, created.to_side) == ("bottom", "top")
        assert listeners.active == 0

    def test_release_too_far_creates_nothing(self, controller, graph, listeners):
        controller.pointer_down((570, 320))
        controller.pointer_move((770, 220))
        assert controller.pointer_up((770, 220)) is None
        assert len(graph.connections) == 3
        assert isinstance(controller.state, Idle)
        assert listeners.active == 0

    def test_graph_untouched_while_drawing(self, controller, graph):
        controller.pointer_down((570, 320))
        controller.pointer_move((900, 500))
        assert len(graph.connections) == 3
        assert controller.preview().points[0] == (570, 320)
        assert controller.preview().points[-1] == (900, 500)

    def test_hover_highlights_other_nodes_only(self, controller):
        controller.pointer_down((370, 320))  # todo.bottom
        controller.pointer_move((370, 252))  # over todo.top
        assert controller.hovered_port is None
        controller.pointer_move((768, 250))
        assert controller.hovered_port == Port("done", "top")

    def test_no_self_loop(self, controller, graph):
        controller.pointer_down((370, 320))
        assert controller.pointer_up((370, 250)) is None
        assert len(graph.connections) == 3

    def test_start_with_transition_cannot_draw(self, controller, listeners):
        controller.pointer_down((190, 330))  # start.bottom
        assert isinstance(controller.state, Idle)
        assert listeners.attached == 0

    def test_error_during_commit_still_detaches(self, graph, listeners):
        controller = InteractionController(graph, Viewport(), listeners=listeners, snap_resolver=ExplodingSnap())
        controller.pointer_down((570, 320))
        with pytest.raises(RuntimeError):
            controller.pointer_up((770, 245))
        assert isinstance(controller.state, Idle)
        assert listeners.active == 0


class TestReattach:

    def test_move_target_end(self, controller, graph, listeners):
        select(controller, "conn-3", (670, 285))
        controller.pointer_down((700, 285))
        state = controller.state
        assert isinstance(state, DraggingEndpoint)
        assert state.kept_end == "from"
        assert graph.get_connection("conn-3") is None

        created = controller.pointer_up((300, 285))  # todo.left
        assert (created.from_id, created.to_id) == ("in-progress", "todo")
        assert (created.from_side, created.to_side) == ("right", "left")
        assert graph.get_connection("conn-3") is None
        assert listeners.active == 0

    def test_move_source_end_keeps_direction(self, controller, graph):
        graph.set_connection_label("conn-3", "Ship it")
        select(controller, "conn-3", (670, 285))
        controller.pointer_down((640, 285))

        created = controller.pointer_up((440, 285))  # todo.right
        assert (created.from_id, created.to_id) == ("todo", "done")
        assert created.to_side == "left"
        assert created.label == "Ship it"

    def test_abandoned_reattach_discards_connection(self, controller, graph):
        select(controller, "conn-3", (670, 285))
        controller.pointer_down((700, 285))
        assert controller.pointer_up((1000, 650)) is None
        assert [c.id for c in graph.connections] == ["conn-1", "conn-2"]

    def test_start_transition_survives_failed_move(self, controller, graph):
        select(controller, "conn-1", (265, 288))
        controller.pointer_down((300, 285))
        assert graph.get_connection("conn-1") is None

        controller.pointer_up((1000, 650))
        assert graph.get_connection("conn-1") is not None

    def test_start_transition_can_be_moved(self, controller, graph):
        select(controller, "conn-1", (265, 288))
        controller.pointer_down((300, 285))
        created = controller.pointer_up((500, 285))  # in-progress.left
        assert (created.from_id, created.to_id) == ("start", "in-progress")
        assert len(graph.outgoing_connections("start")) == 1

    def test_start_transition_source_end_stays_on_start(self, controller, graph, listeners):
        select(controller, "conn-1", (265, 288))
        controller.pointer_down((230, 290))  # from-dot on start.right
        assert isinstance(controller.state, Idle)
        assert listeners.attached == 0

        controller.pointer_up((640, 285))
        assert [c.id for c in graph.outgoing_connections("start")] == ["conn-1"]

    def test_cancel_restores_start_transition(self, controller, graph, listeners):
        select(controller, "conn-1", (265, 288))
        controller.pointer_down((300, 285))
        controller.pointer_cancel()
        assert graph.get_connection("conn-1") is not None
        assert isinstance(controller.state, Idle)
        assert listeners.active == 0


class TestControlPoint:

    def test_drag_control_point_sets_custom_points(self, controller, graph, listeners):
        select(controller, "conn-2", (470, 285))
        controller.pointer_down((470, 285))
        assert isinstance(controller.state, DraggingControlPoint)

        controller.pointer_move((470, 400))
        assert graph.get_connection("conn-2").custom_points == [(440, 400), (470, 400), (500, 400)]
        assert controller.routes()["conn-2"].kind == "custom"

        controller.pointer_up((470, 400))
        assert listeners.active == 0

    def test_custom_points_survive_node_move(self, controller, graph):
        graph.set_custom_points("conn-2", [(470, 285), (470, 400)])
        controller.pointer_down((350, 270))
        controller.pointer_move((350, 100))
        controller.pointer_up((350, 100))
        assert graph.get_connection("conn-2").custom_points == [(470, 285), (470, 400)]


class TestModeExclusivity:

    def test_pointer_down_ignored_while_dragging(self, controller, listeners):
        controller.pointer_down((350, 270))
        controller.pointer_down((1000, 600))
        assert isinstance(controller.state, DraggingNode)
        assert listeners.attached == 1

    def test_repeated_drags_never_leak_listeners(self, controller, listeners):
        for _ in range(5):
            controller.pointer_down((350, 270))
            controller.pointer_up((350, 270))
            controller.pointer_down((1000, 600))
            controller.pointer_cancel()
        assert listeners.attached == 10
        assert listeners.detached == 10

    def test_secondary_button_ignored(self, controller, listeners):
        controller.pointer_down((350, 270), button=2)
        assert isinstance(controller.state, Idle)
        assert listeners.attached == 0


class TestWheelAndKeys:

    def test_ctrl_wheel_zooms_about_pointer(self, controller):
        anchor = controller.viewport.to_canvas((400, 300))
        controller.wheel(0, -30, (400, 300), ctrl=True)
        assert controller.viewport.zoom == pytest.approx(1.05)
        assert controller.viewport.to_screen(anchor) == pytest.approx((400, 300))

        controller.wheel(0, 30, (400, 300), ctrl=True)
        assert controller.viewport.zoom == pytest.approx(1.05 * 0.95)

    def test_ctrl_wheel_without_vertical_delta_keeps_zoom(self, controller):
        controller.wheel(12, 0, (400, 300), ctrl=True)
        assert controller.viewport.as_tuple() == (1.0, 0.0, 0.0)

    def test_plain_wheel_pans(self, controller):
        controller.wheel(10, 25, (400, 300))
        assert controller.viewport.pan_offset == (-10, -25)

    def test_wheel_ignored_while_dragging(self, controller):
        controller.pointer_down((350, 270))
        controller.wheel(0, -30, (400, 300), ctrl=True)
        assert controller.viewport.zoom == 1.0

    def test_delete_selected_connection(self, controller, graph):
        select(controller, "conn-3", (670, 285))
        assert controller.key_down("Delete")
        assert graph.get_connection("conn-3") is None
        assert controller.selected_connection_id is None

    def test_start_transition_survives_delete_key(self, controller, graph):
        select(controller, "conn-1", (265, 288))
        assert not controller.key_down("Backspace")
        assert graph.get_connection("conn-1") is not None

    def test_delete_selected_node_cascades(self, controller, graph):
        controller.select_node("in-progress")
        assert controller.key_down("Delete")
        assert graph.get_node("in-progress") is None
        assert [c.id for c in graph.connections] == ["conn-1"]

    def test_start_node_cannot_be_deleted(self, controller, graph):
        controller.select_node("start")
        assert not controller.key_down("Delete")
        assert graph.get_node("start") is not None

    def test_delete_with_stale_node_selection(self, controller, graph):
        controller.select_node("todo")
        graph.remove_node("todo")
        assert not controller.key_down("Delete")
        assert len(graph.nodes) == 3

    def test_other_keys_do_nothing(self, controller, graph):
        controller.select_node("todo")
        assert not controller.key_down("Enter")


class TestStateChangeCallback:

    def test_callback_fires_on_transitions(self, controller):
        seen = []
        controller.set_on_state_change(lambda c: seen.append(type(c.state).__name__))
        controller.pointer_down((350, 270))
        controller.pointer_up((350, 270))
        assert seen == ["DraggingNode", "Idle"]
