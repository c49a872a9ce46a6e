from pathlib import Path

import pytest

from n8nflow.structural.checker import validate_document

from conftest import BENCH, load_json


@pytest.mark.parametrize("case_dir", sorted((BENCH / "validation").glob("V*")), ids=lambda p: p.name)
def test_validation_bench(case_dir: Path):
    """
    Validation benchmark:
    - load workflow.json
    - load expect.json
    - run validate_document
    - check error/warning counts and expected message fragments
    """
    wf_file = case_dir / "workflow.json"
    exp_file = case_dir / "expect.json"

    assert wf_file.exists(), f"Missing workflow.json in {case_dir}"
    assert exp_file.exists(), f"Missing expect.json in {case_dir}"

    result = validate_document(load_json(wf_file))
    asserts = load_json(exp_file).get("assert") or {}

    if "is_valid" in asserts:
        assert result.is_valid == asserts["is_valid"], f"{case_dir.name}: errors={result.errors}"

    if "n_errors" in asserts:
        assert len(result.errors) == asserts["n_errors"], f"{case_dir.name}: errors={result.errors}"

    if "n_warnings" in asserts:
        assert len(result.warnings) == asserts["n_warnings"], f"{case_dir.name}: warnings={result.warnings}"

    for fragment in asserts.get("errors_contain", []):
        assert any(fragment in e for e in result.errors), f"{case_dir.name}: no error mentions {fragment!r}"

    for fragment in asserts.get("warnings_contain", []):
        assert any(fragment in w for w in result.warnings), f"{case_dir.name}: no warning mentions {fragment!r}"
