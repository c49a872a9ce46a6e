# n8nflow/structural/checker.py

from collections import Counter
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from n8nflow.models.connection import flatten
from n8nflow.models.workflow import TypedWorkflow, from_document
from n8nflow.utils.graph import has_trigger, orphan_names
from n8nflow.utils.logger import get_logger

logger = get_logger("checker")


class Severity(str, Enum):
    ERROR = "error"      # workflow will be rejected or misbehave
    WARNING = "warning"  # runs, but is probably not what the author meant


class ValidationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    node: Optional[str] = Field(default=None, description="Node name (or id) the finding is about")


class ValidationResult(BaseModel):
    """All findings of one validation run, in the order the rules produced them."""

    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [i.message for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.issues if i.severity is Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        """Warnings never block; only errors do."""
        return not any(i.severity is Severity.ERROR for i in self.issues)


def validate_workflow(workflow: TypedWorkflow) -> ValidationResult:
    """
    Run every structural rule against `workflow` and collect the findings.

    Rules are independent: all of them run, none short-circuits another.
    Never raises for a parsed workflow, however broken its graph is.

    Returns:
        ValidationResult with errors and warnings.
    """
    issues: List[ValidationIssue] = []

    def error(message: str, node: Optional[str] = None) -> None:
        issues.append(ValidationIssue(severity=Severity.ERROR, message=message, node=node))

    def warning(message: str, node: Optional[str] = None) -> None:
        issues.append(ValidationIssue(severity=Severity.WARNING, message=message, node=node))

    nodes = workflow.nodes

    # 1) Workflow-level
    if not nodes:
        warning("[WORKFLOW] Workflow has no nodes")
    if not workflow.name.strip():
        error("[WORKFLOW] Workflow has empty name")

    # 2) Identity: ids and names must be unique, names non-empty
    for node_id, count in _duplicates(n.id for n in nodes):
        error(f"[IDENTITY] Duplicate node id: {node_id} (shared by {count} nodes)", node=node_id)
    for name, count in _duplicates(n.name for n in nodes):
        error(f"[IDENTITY] Duplicate node name: {name} (shared by {count} nodes)", node=name)
    for n in nodes:
        if not n.name.strip():
            error(f"[IDENTITY] Node with id '{n.id}' has empty name", node=n.id)

    # 3) Entry point
    if not has_trigger(nodes):
        warning(
            "[FLOW] No trigger node found "
            "(workflow can only be executed manually)"
        )

    # 4) Referential integrity (connections are keyed by node name)
    valid = {n.name for n in nodes}
    flat = flatten(workflow.connections)
    for source in sorted(workflow.connections):
        if source not in valid:
            error(f"[REFERENCE] Connections reference non-existent source node: {source}", node=source)
    for c in flat:
        if c.target_node not in valid:
            error(
                f"[REFERENCE] Connection {c.source_node} -> {c.target_node} "
                f"references non-existent target node: {c.target_node}",
                node=c.target_node,
            )

    # 5) Orphans: non-trigger nodes nothing connects to or from
    for name in orphan_names(workflow):
        warning(f"[STRUCTURE] Node '{name}' is not connected to any other node", node=name)

    # 6) Self-loops
    for c in flat:
        if c.source_node == c.target_node:
            warning(f"[STRUCTURE] Node '{c.source_node}' has a self-loop connection ({c})", node=c.source_node)

    result = ValidationResult(issues=issues)
    logger.debug(
        "validated workflow %r: %d error(s), %d warning(s)",
        workflow.name, len(result.errors), len(result.warnings),
    )
    return result


def validate_document(doc: Any) -> ValidationResult:
    """
    Assemble a decoded workflow document and validate it.

    Raises:
        DataFormatError: only when the document shape cannot be parsed.
    """
    return validate_workflow(from_document(doc))


def _duplicates(values) -> List[tuple]:
    """(value, count) for every value seen more than once, in first-seen order."""
    counts = Counter(values)
    return [(v, k) for v, k in counts.items() if k > 1]
