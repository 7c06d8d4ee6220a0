import pytest

from flowcanvas.edit import EditActions
from flowcanvas.models import NodeKind, StatusForm, status_key


@pytest.fixture
def actions(graph):
    return EditActions(graph)


def test_status_form_derives_key():
    form = StatusForm(name="  In Review ")
    assert form.key == "in-review"
    assert form.color == "#8B5CF6"
    assert status_key("Ready for QA") == "ready-for-qa"
    assert StatusForm(name="X", key="custom").key == "custom"


def test_add_status(actions, graph):
    node = actions.add_status(StatusForm(name="Review", color="#22C55E", wip_limit=3))
    assert node.id.startswith("status-")
    assert node.kind == NodeKind.STATUS
    assert (node.x, node.y, node.width, node.height) == (400, 400, 140, 70)
    assert node.wip_limit == 3
    assert graph.get_node(node.id) is node


def test_add_status_requires_name(actions, graph):
    assert actions.add_status(StatusForm(name="   ")) is None
    assert len(graph.nodes) == 4


def test_edit_status_round_trip(actions, graph):
    form = actions.status_form("done")
    assert form.name == "Done"
    form.is_done = True
    form.name = "Shipped"
    assert actions.update_status("done", form)

    node = graph.get_node("done")
    assert node.label == "Shipped"
    assert node.is_done
    assert actions.status_form("ghost") is None


def test_delete_node_refuses_start(actions, graph):
    assert not actions.delete_node("start")
    assert actions.delete_node("todo")
    assert graph.get_node("todo") is None
    assert not actions.delete_node("todo")


def test_delete_connection_refuses_start_transition(actions, graph):
    assert not actions.delete_connection("conn-1")
    assert actions.delete_connection("conn-2")
    assert graph.get_connection("conn-2") is None


def test_rename_recolor_relabel(actions, graph):
    assert actions.rename_node("todo", "Backlog")
    assert actions.recolor_node("todo", "#6B7280")
    assert actions.set_connection_label("conn-2", "Start work")
    assert graph.get_node("todo").label == "Backlog"
    assert graph.get_node("todo").color == "#6B7280"
    assert graph.get_connection("conn-2").label == "Start work"
    assert not actions.rename_node("ghost", "Nope")
