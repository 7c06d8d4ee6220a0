import pytest

from flowcanvas.edit.hit_testing import (
    HitTester,
    SnapResolver,
    distance_to_polyline,
    nearest_port,
    point_to_segment_distance,
)
from flowcanvas.models import Port
from flowcanvas.router import compute_routes


class TestGeometry:

    def test_point_to_segment_middle(self):
        dist, t = point_to_segment_distance((5, 5), (0, 0), (10, 10))
        assert t == pytest.approx(0.5)
        assert dist == pytest.approx(0)

    def test_point_to_segment_clamps_past_end(self):
        dist, t = point_to_segment_distance((20, 0), (0, 0), (10, 0))
        assert t == 1.0
        assert dist == pytest.approx(10)

    def test_degenerate_segment(self):
        dist, t = point_to_segment_distance((3, 4), (0, 0), (0, 0))
        assert dist == pytest.approx(5)
        assert t == 0.0

    def test_polyline_distance(self):
        points = [(0, 0), (100, 0), (100, 100)]
        assert distance_to_polyline((110, 50), points) == pytest.approx(10)
        assert distance_to_polyline((0, 0), []) == float("inf")

    def test_nearest_port(self, graph):
        port, dist = nearest_port(graph, (772, 245))
        assert port == Port("done", "top")
        assert dist == pytest.approx((2 ** 2 + 5 ** 2) ** 0.5)


class TestSnapResolver:

    def test_snaps_within_radius(self, graph):
        target = SnapResolver().resolve(graph, (770, 245), "in-progress")
        assert target == Port("done", "top")

    def test_nothing_beyond_radius(self, graph):
        assert SnapResolver().resolve(graph, (770, 220), "in-progress") is None

    def test_exact_radius_is_outside(self, graph):
        assert SnapResolver(radius=20).resolve(graph, (770, 230), "in-progress") is None

    def test_origin_node_ports_are_rejected(self, graph):
        # closest port is in-progress.bottom itself
        assert SnapResolver().resolve(graph, (570, 325), "in-progress") is None

    def test_hovered_port_wins(self, graph):
        hovered = Port("todo", "top")
        target = SnapResolver().resolve(graph, (770, 245), "in-progress", hovered_port=hovered)
        assert target == hovered

    def test_hovered_port_on_origin_is_ignored(self, graph):
        hovered = Port("in-progress", "top")
        target = SnapResolver().resolve(graph, (770, 245), "in-progress", hovered_port=hovered)
        assert target == Port("done", "top")


class TestHitTester:

    @pytest.fixture
    def tester(self):
        return HitTester()

    def test_canvas(self, tester, graph):
        assert tester.hit(graph, (1000, 600), compute_routes(graph)).kind == "canvas"

    def test_port_beats_node(self, tester, graph):
        hit = tester.hit(graph, (372, 252), compute_routes(graph))
        assert hit.kind == "port"
        assert (hit.node_id, hit.side) == ("todo", "top")

    def test_node_body(self, tester, graph):
        hit = tester.hit(graph, (350, 270), compute_routes(graph))
        assert hit.kind == "node"
        assert hit.node_id == "todo"

    def test_topmost_node_wins(self, tester, graph):
        graph.move_node("in-progress", 320, 260)
        assert tester.node_at(graph, (400, 300)) == "in-progress"

    def test_connection_path(self, tester, graph):
        hit = tester.hit(graph, (670, 290), compute_routes(graph))
        assert hit.kind == "connection"
        assert hit.connection_id == "conn-3"

    def test_node_beats_connection_through_it(self, tester, graph):
        graph.set_custom_points("conn-1", [(350, 290)])
        hit = tester.hit(graph, (350, 290), compute_routes(graph))
        assert hit.kind == "node"

    def test_handles_only_for_selected_connection(self, tester, graph):
        routes = compute_routes(graph)
        assert tester.hit(graph, (670, 285), routes).kind == "connection"

        hit = tester.hit(graph, (670, 285), routes, selected_connection_id="conn-3")
        assert hit.kind == "control_point"
        assert hit.point_index == 0

    def test_endpoint_beats_port(self, tester, graph):
        routes = compute_routes(graph)
        assert tester.hit(graph, (700, 285), routes).kind == "port"

        hit = tester.hit(graph, (700, 285), routes, selected_connection_id="conn-3")
        assert hit.kind == "endpoint"
        assert hit.end == "to"

        hit = tester.hit(graph, (640, 285), routes, selected_connection_id="conn-3")
        assert hit.end == "from"
