import pytest

from n8nflow.diff.workflow_diff import ChangeKind, compare, compare_nodes, is_empty
from n8nflow.models.connection import Connection
from n8nflow.models.node import Node
from n8nflow.models.workflow import from_document


@pytest.fixture
def wf(linear_doc):
    return from_document(linear_doc)


def test_identity_is_empty(wf):
    assert is_empty(compare(wf, wf))


def test_rename_is_remove_plus_add(wf):
    renamed = wf.rename_node("Set", "Set2")
    diff = compare(wf, renamed)

    assert diff.nodes_removed == ["Set"]
    assert diff.nodes_added == ["Set2"]
    assert diff.nodes_modified == []
    assert [str(c) for c in diff.connections_removed] == [
        "Set main[0] -> HTTP main[0]",
        "Trigger main[0] -> Set main[0]",
    ]
    assert [str(c) for c in diff.connections_added] == [
        "Set2 main[0] -> HTTP main[0]",
        "Trigger main[0] -> Set2 main[0]",
    ]


def test_symmetry(wf):
    other = (
        wf.remove_node("HTTP")
        .add_node(Node(id="n9", name="Mail", type="n8n-nodes-base.emailSend"))
        .add_connection(Connection.between("Set", "Mail"))
    )
    ab, ba = compare(wf, other), compare(other, wf)
    assert ab.nodes_added == ba.nodes_removed == ["Mail"]
    assert ab.nodes_removed == ba.nodes_added == ["HTTP"]
    assert ab.connections_added == ba.connections_removed
    assert ab.connections_removed == ba.connections_added


def test_scalar_changes(wf):
    other = wf.model_copy(update={"name": "Renamed", "active": True})
    diff = compare(wf, other)
    assert diff.name_changed == ("Linear", "Renamed")
    assert diff.active_changed == (False, True)
    assert not diff.is_empty()


def test_input_slot_change_is_not_a_modification(wf):
    other = wf.remove_connection("Set", "HTTP").add_connection(
        Connection(source_node="Set", target_node="HTTP", target_input=1)
    )
    diff = compare(wf, other)
    assert [c.target_input for c in diff.connections_removed] == [0]
    assert [c.target_input for c in diff.connections_added] == [1]
    assert diff.nodes_modified == []


def test_node_order_does_not_matter(wf):
    reordered = wf.model_copy(update={"nodes": list(reversed(wf.nodes))})
    assert is_empty(compare(wf, reordered))


def test_residual_empty_slots_do_not_show_up(wf):
    # removing and re-adding the same edge leaves padding but no structural change
    other = wf.remove_connection("Set", "HTTP").add_connection(Connection.between("Set", "HTTP"))
    assert is_empty(compare(wf, other))


def test_parameters_expand_key_by_key():
    old = Node(id="1", name="HTTP", type="t", parameters={"url": "a", "options": {"timeout": 5, "retry": 1}})
    new = Node(id="1", name="HTTP", type="t", parameters={"url": "b", "options": {"timeout": 5}, "method": "POST"})
    changes = {c.field: c for c in compare_nodes(old, new)}
    assert set(changes) == {"parameters.url", "parameters.options.retry", "parameters.method"}
    assert (changes["parameters.url"].old, changes["parameters.url"].new) == ("a", "b")
    assert changes["parameters.options.retry"].kind is ChangeKind.REMOVED
    assert changes["parameters.method"].kind is ChangeKind.ADDED


def test_every_node_field_is_compared():
    old = Node(id="1", name="N", type="a", position=[0, 0])
    new = Node(id="2", name="N", type="b", type_version=2, position=[1, 0], disabled=True,
               credentials={"api": {"id": "1"}}, webhook_id="w", notes="hi")
    fields = [c.field for c in compare_nodes(old, new)]
    assert fields == ["type", "typeVersion", "position", "disabled", "credentials", "webhookId", "notes"]


def test_true_is_not_one():
    old = Node(id="1", name="N", type="t", parameters={"flag": 1})
    new = Node(id="1", name="N", type="t", parameters={"flag": True})
    assert [c.field for c in compare_nodes(old, new)] == ["parameters.flag"]


def test_diff_output_is_deterministic(linear_doc):
    a = from_document(linear_doc)
    linear_doc["connections"]["HTTP"] = {"main": [[{"node": "Set"}, {"node": "Trigger"}]]}
    b = from_document(linear_doc)
    assert compare(a, b).model_dump() == compare(a, b).model_dump()
    assert [c.target_node for c in compare(a, b).connections_added] == ["Set", "Trigger"]


def test_documents_without_node_ids_compare_equal():
    doc = {
        "name": "No ids",
        "nodes": [
            {"name": "Trigger", "type": "n8n-nodes-base.manualTrigger", "position": [0, 0]},
            {"name": "Set", "type": "n8n-nodes-base.set", "position": [200, 0]},
        ],
        "connections": {"Trigger": {"main": [[{"node": "Set", "type": "main", "index": 0}]]}},
    }
    a, b = from_document(doc), from_document(doc)
    assert a.nodes[0].id != b.nodes[0].id
    assert is_empty(compare(a, b))


def test_id_change_alone_is_not_a_modification():
    old = Node(id="1", name="N", type="t")
    assert compare_nodes(old, old.model_copy(update={"id": "2"})) == []
