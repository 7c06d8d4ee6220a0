import pytest

from flowcanvas.graph_model import GraphModel
from flowcanvas.templates import default_workflow


@pytest.fixture
def graph():
    """The four-status default workflow: start -> todo -> in-progress -> done."""
    return GraphModel.from_snapshot(default_workflow())
