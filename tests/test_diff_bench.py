from pathlib import Path

import pytest

from n8nflow.diff.workflow_diff import compare, is_empty
from n8nflow.models.workflow import from_document

from conftest import BENCH, load_json


@pytest.mark.parametrize("case_dir", sorted((BENCH / "diff").glob("D*")), ids=lambda p: p.name)
def test_diff_bench(case_dir: Path):
    """
    Diff benchmark:
    - load old.json / new.json
    - load expect.json
    - compare both directions and check the expected summary
    """
    old = from_document(load_json(case_dir / "old.json"))
    new = from_document(load_json(case_dir / "new.json"))
    asserts = load_json(case_dir / "expect.json").get("assert") or {}

    diff = compare(old, new)
    back = compare(new, old)

    if "empty" in asserts:
        assert is_empty(diff) == asserts["empty"], f"{case_dir.name}: {diff}"

    if "name_changed" in asserts:
        assert list(diff.name_changed) == asserts["name_changed"]

    if "active_changed" in asserts:
        assert list(diff.active_changed) == asserts["active_changed"]

    if "nodes_added" in asserts:
        assert diff.nodes_added == asserts["nodes_added"]

    if "nodes_removed" in asserts:
        assert diff.nodes_removed == asserts["nodes_removed"]

    if "nodes_modified" in asserts:
        assert [d.node_name for d in diff.nodes_modified] == asserts["nodes_modified"]

    for name, fields in (asserts.get("modified_fields") or {}).items():
        node_diff = next(d for d in diff.nodes_modified if d.node_name == name)
        assert node_diff.fields() == fields, f"{case_dir.name}: {name} changed {node_diff.fields()}"

    if "connections_added" in asserts:
        assert len(diff.connections_added) == asserts["connections_added"]

    if "connections_removed" in asserts:
        assert len(diff.connections_removed) == asserts["connections_removed"]

    # swapping the inputs swaps every set-valued field
    assert back.nodes_added == diff.nodes_removed
    assert back.nodes_removed == diff.nodes_added
    assert back.connections_added == diff.connections_removed
    assert back.connections_removed == diff.connections_added
