"""Typed workflow: the assembled graph and its document form.

:func:`from_document` turns a decoded workflow document into a
:class:`TypedWorkflow`; :func:`to_document` writes it back. Parsing only checks
shape. Dangling references, duplicate names and the like are reported by
``n8nflow.structural.checker``.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from jsonschema import ValidationError as SchemaError
from jsonschema import validate
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from n8nflow.errors import (
    ConnectionNotFoundError,
    DataFormatError,
    NodeNotFoundError,
    format_path,
)
from n8nflow.models.connection import (
    Connection,
    ConnectionsMap,
    add_to_map,
    connections_map_from_wire,
    connections_map_to_wire,
    copy_map,
    drop_node_from_map,
    flatten,
    remove_from_map,
    rename_in_map,
)
from n8nflow.models.node import Node, Position
from n8nflow.structural.schema import N8N_WORKFLOW_SCHEMA
from n8nflow.utils.logger import get_logger


AUTO_POSITION_STEP = 200
AUTO_POSITION_Y = 100

logger = get_logger("workflow")


class TypedWorkflow(BaseModel):
    """A workflow with typed nodes and a typed connections map.

    Instances are frozen, but only shallowly: ``connections``, ``settings`` and
    ``parameters`` are plain containers, and mutating them in place changes the
    workflow. Treat them as read-only. Edit helpers (``add_node``, ``remove_connection`` ...)
    return a new workflow whose connections map is independent of this one.
    Unknown top-level keys (``pinData``, ``meta``, ``createdAt`` ...) are kept
    as extra fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: Optional[str] = None
    name: str
    active: bool = False
    nodes: List[Node] = Field(default_factory=list)
    connections: ConnectionsMap = Field(default_factory=dict)
    settings: Dict[str, Any] = Field(default_factory=dict)
    tags: Optional[List[Dict[str, Any]]] = None
    version_id: Optional[str] = Field(default=None, alias="versionId")

    @field_validator("connections", mode="before")
    @classmethod
    def _normalize_connections(cls, value: Any) -> Any:
        return connections_map_from_wire(value)

    @field_validator("settings", mode="before")
    @classmethod
    def _settings_default(cls, value: Any) -> Any:
        return {} if value is None else value

    # ---- lookups ----

    def find_node(self, key: str) -> Optional[Node]:
        """Find a node by id or name."""
        for n in self.nodes:
            if n.id == key or n.name == key:
                return n
        return None

    def node_names(self) -> List[str]:
        return [n.name for n in self.nodes]

    def has_trigger(self) -> bool:
        return any(n.is_trigger() for n in self.nodes)

    def connections_flat(self) -> List[Connection]:
        return flatten(self.connections)

    def auto_position(self) -> Position:
        """Position for a new node: one step right of the rightmost node."""
        max_x = max((n.position.x for n in self.nodes), default=0)
        return Position(x=max_x + AUTO_POSITION_STEP, y=AUTO_POSITION_Y)

    # ---- edits (each returns a new workflow) ----

    def _replace(self, **update: Any) -> "TypedWorkflow":
        update.setdefault("connections", copy_map(self.connections))
        return self.model_copy(update=update)

    def add_node(self, node: Node) -> "TypedWorkflow":
        return self._replace(nodes=[*self.nodes, node])

    def remove_node(self, key: str) -> "TypedWorkflow":
        """Remove a node (by id or name) together with all of its connections."""
        node = self.find_node(key)
        if node is None:
            raise NodeNotFoundError(key)
        connections = copy_map(self.connections)
        drop_node_from_map(connections, node.name)
        nodes = [n for n in self.nodes if n is not node]
        logger.debug("removed node %r from workflow %r", node.name, self.name)
        return self._replace(nodes=nodes, connections=connections)

    def rename_node(self, key: str, new_name: str) -> "TypedWorkflow":
        """Rename a node and rewrite every connection that refers to it."""
        node = self.find_node(key)
        if node is None:
            raise NodeNotFoundError(key)
        connections = copy_map(self.connections)
        rename_in_map(connections, node.name, new_name)
        nodes = [n.renamed(new_name) if n is node else n for n in self.nodes]
        return self._replace(nodes=nodes, connections=connections)

    def add_connection(self, conn: Connection) -> "TypedWorkflow":
        connections = copy_map(self.connections)
        add_to_map(connections, conn)
        return self._replace(connections=connections)

    def remove_connection(self, source: str, target: str) -> "TypedWorkflow":
        """
        Remove all connections from `source` to `target`.
        Both may be given as node id or name.
        """
        source_name = self._resolve_name(source)
        target_name = self._resolve_name(target)
        connections = copy_map(self.connections)
        if not remove_from_map(connections, source_name, target_name):
            raise ConnectionNotFoundError(source_name, target_name)
        return self._replace(connections=connections)

    def _resolve_name(self, key: str) -> str:
        node = self.find_node(key)
        return node.name if node is not None else key

    # ---- serialization ----

    def to_document(self) -> Dict[str, Any]:
        return to_document(self)

    def to_definition(self) -> Dict[str, Any]:
        """The upload payload: name, nodes, connections, settings only."""
        doc = to_document(self)
        return {k: doc[k] for k in ("name", "nodes", "connections", "settings")}


def from_document(doc: Any) -> TypedWorkflow:
    """
    Assemble a TypedWorkflow from a decoded workflow document.

    Raises:
        DataFormatError: if the document, a node or the connections map does
        not have the expected shape. The error carries the offending path.
    """
    if not isinstance(doc, dict):
        raise DataFormatError(f"workflow document must be an object, got {type(doc).__name__}")

    try:
        validate(instance=doc, schema=N8N_WORKFLOW_SCHEMA)
    except SchemaError as e:
        raise DataFormatError(e.message, format_path(e.absolute_path)) from e

    nodes = [_parse_node(raw, i) for i, raw in enumerate(doc.get("nodes") or [])]
    connections = connections_map_from_wire(doc.get("connections"))

    payload = dict(doc)
    payload["nodes"] = nodes
    payload["connections"] = connections
    try:
        workflow = TypedWorkflow.model_validate(payload)
    except ValidationError as e:
        err = e.errors()[0]
        raise DataFormatError(err["msg"], format_path(err["loc"])) from e

    logger.debug(
        "assembled workflow %r: %d node(s), %d source key(s)",
        workflow.name, len(workflow.nodes), len(workflow.connections),
    )
    return workflow


def _parse_node(raw: Dict[str, Any], i: int) -> Node:
    try:
        return Node.model_validate(raw)
    except ValidationError as e:
        err = e.errors()[0]
        raise DataFormatError(err["msg"], format_path(("nodes", i, *err["loc"]))) from e


def to_document(workflow: TypedWorkflow) -> Dict[str, Any]:
    """Serialize back to the wire document shape. Does not validate."""
    doc: Dict[str, Any] = {}
    if workflow.id is not None:
        doc["id"] = workflow.id
    doc["name"] = workflow.name
    doc["active"] = workflow.active
    doc["nodes"] = [n.to_wire() for n in workflow.nodes]
    doc["connections"] = connections_map_to_wire(workflow.connections)
    doc["settings"] = copy.deepcopy(workflow.settings)
    if workflow.tags is not None:
        doc["tags"] = copy.deepcopy(workflow.tags)
    if workflow.version_id is not None:
        doc["versionId"] = workflow.version_id
    doc.update(copy.deepcopy(workflow.model_extra or {}))
    return doc
