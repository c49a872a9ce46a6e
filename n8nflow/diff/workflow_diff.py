"""Structural diff between two workflow snapshots.

Nodes are matched by name, the key connections use. A renamed node therefore
shows up as one removal plus one addition, and every connection touching it
is reported as removed under the old name and added under the new one.
Connections have no identity beyond their full value, so there is no
"connection modified" category either: a changed input slot is a removal
plus an addition.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from n8nflow.models.connection import Connection, flatten
from n8nflow.models.node import Node
from n8nflow.models.workflow import TypedWorkflow
from n8nflow.utils.logger import get_logger

logger = get_logger("diff")


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class FieldChange(BaseModel):
    """One changed field of a node. Parameter changes use dotted paths."""

    model_config = ConfigDict(frozen=True)

    field: str
    old: Any = None
    new: Any = None
    kind: ChangeKind = ChangeKind.CHANGED


class NodeDiff(BaseModel):
    node_name: str
    node_id: str
    changes: List[FieldChange] = Field(default_factory=list)

    def fields(self) -> List[str]:
        return [c.field for c in self.changes]

    def change(self, field: str) -> Optional[FieldChange]:
        for c in self.changes:
            if c.field == field:
                return c
        return None


class WorkflowDiff(BaseModel):
    name_changed: Optional[Tuple[str, str]] = None
    active_changed: Optional[Tuple[bool, bool]] = None
    nodes_added: List[str] = Field(default_factory=list)
    nodes_removed: List[str] = Field(default_factory=list)
    nodes_modified: List[NodeDiff] = Field(default_factory=list)
    connections_added: List[Connection] = Field(default_factory=list)
    connections_removed: List[Connection] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.name_changed is None
            and self.active_changed is None
            and not self.nodes_added
            and not self.nodes_removed
            and not self.nodes_modified
            and not self.connections_added
            and not self.connections_removed
        )


def compare(old: TypedWorkflow, new: TypedWorkflow) -> WorkflowDiff:
    """
    Compare two workflows.

    Node sets come out in lexical name order and connection sets in the
    canonical flatten order, so identical inputs always give identical diffs.
    """
    diff = WorkflowDiff()

    if old.name != new.name:
        diff.name_changed = (old.name, new.name)
    if old.active != new.active:
        diff.active_changed = (old.active, new.active)

    old_nodes = _by_name(old.nodes)
    new_nodes = _by_name(new.nodes)

    diff.nodes_added = sorted(set(new_nodes) - set(old_nodes))
    diff.nodes_removed = sorted(set(old_nodes) - set(new_nodes))
    for name in sorted(set(old_nodes) & set(new_nodes)):
        changes = compare_nodes(old_nodes[name], new_nodes[name])
        if changes:
            diff.nodes_modified.append(NodeDiff(node_name=name, node_id=new_nodes[name].id, changes=changes))

    old_conns = set(flatten(old.connections))
    new_conns = set(flatten(new.connections))
    diff.connections_added = sorted(new_conns - old_conns, key=Connection.sort_key)
    diff.connections_removed = sorted(old_conns - new_conns, key=Connection.sort_key)

    logger.debug(
        "diff %r -> %r: +%d/-%d/~%d node(s), +%d/-%d connection(s)",
        old.name, new.name,
        len(diff.nodes_added), len(diff.nodes_removed), len(diff.nodes_modified),
        len(diff.connections_added), len(diff.connections_removed),
    )
    return diff


def is_empty(diff: WorkflowDiff) -> bool:
    return diff.is_empty()


def compare_nodes(old: Node, new: Node) -> List[FieldChange]:
    """Field-level changes between two versions of the same node."""
    changes: List[FieldChange] = []

    scalar_fields = (
        ("type", old.type, new.type),
        ("typeVersion", old.type_version, new.type_version),
        ("position", list(old.position.as_tuple()), list(new.position.as_tuple())),
        ("disabled", old.disabled, new.disabled),
        ("credentials", old.credentials, new.credentials),
        ("webhookId", old.webhook_id, new.webhook_id),
    )
    for field, a, b in scalar_fields:
        if _same(a, b):
            continue
        if a is None:
            changes.append(FieldChange(field=field, new=b, kind=ChangeKind.ADDED))
        elif b is None:
            changes.append(FieldChange(field=field, old=a, kind=ChangeKind.REMOVED))
        else:
            changes.append(FieldChange(field=field, old=a, new=b))

    _diff_mapping("parameters", old.parameters, new.parameters, changes)
    _diff_mapping("", old.extras, new.extras, changes, recurse=False)
    return changes


def _diff_mapping(
    prefix: str,
    old: Dict[str, Any],
    new: Dict[str, Any],
    out: List[FieldChange],
    recurse: bool = True,
) -> None:
    """Key-by-key comparison; nested objects are expanded when `recurse`."""
    for key in sorted(set(old) | set(new), key=str):
        path = f"{prefix}.{key}" if prefix else str(key)
        if key not in new:
            out.append(FieldChange(field=path, old=old[key], kind=ChangeKind.REMOVED))
        elif key not in old:
            out.append(FieldChange(field=path, new=new[key], kind=ChangeKind.ADDED))
        elif recurse and isinstance(old[key], dict) and isinstance(new[key], dict):
            _diff_mapping(path, old[key], new[key], out)
        elif not _same(old[key], new[key]):
            out.append(FieldChange(field=path, old=old[key], new=new[key]))


def _same(a: Any, b: Any) -> bool:
    """Deep JSON equality that does not treat True as 1."""
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(_same(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(_same(x, y) for x, y in zip(a, b))
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b


def _by_name(nodes: List[Node]) -> Dict[str, Node]:
    # first occurrence wins; duplicate names are a validator error
    out: Dict[str, Node] = {}
    for n in nodes:
        out.setdefault(n.name, n)
    return out
