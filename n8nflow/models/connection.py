"""Connection model and the flat <-> nested converter.

n8n stores connections source-keyed and nested::

    connections[<source name>][<connection type>][<output slot>] = [
        {"node": <target name>, "type": <target type>, "index": <input slot>},
        ...
    ]

The output slot is positional. Slots are contiguous from 0: a gap is an empty
list, never a missing entry or ``null``. :func:`flatten` projects the map to
one :class:`Connection` per endpoint in a canonical order; :func:`unflatten`
rebuilds a map from such records.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from n8nflow.errors import DataFormatError, format_path


DEFAULT_CONNECTION_TYPE = "main"


class ConnectionEndpoint(BaseModel):
    """Target of a connection: node name, input channel and input slot."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    node: str
    connection_type: str = Field(default=DEFAULT_CONNECTION_TYPE, alias="type")
    index: int = Field(default=0, ge=0)

    @field_validator("index", mode="before")
    @classmethod
    def _integral_index(cls, value: Any) -> Any:
        # same rule as the document schema: integral numbers only, 1.0 included
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not float(value).is_integer():
            raise ValueError(f"{value!r} is not of type 'integer'")
        return int(value)

    def to_wire(self) -> Dict[str, Any]:
        return {"node": self.node, "type": self.connection_type, "index": self.index}


# source name -> connection type -> output slots -> endpoints
ConnectionsMap = Dict[str, Dict[str, List[List[ConnectionEndpoint]]]]


class Connection(BaseModel):
    """One edge of the workflow, as a flat value record."""

    model_config = ConfigDict(frozen=True)

    source_node: str
    source_output: int = Field(default=0, ge=0)
    source_type: str = DEFAULT_CONNECTION_TYPE
    target_node: str
    target_input: int = Field(default=0, ge=0)
    target_type: str = DEFAULT_CONNECTION_TYPE

    @classmethod
    def between(cls, source_node: str, target_node: str) -> "Connection":
        """main[0] -> main[0], the common case."""
        return cls(source_node=source_node, target_node=target_node)

    def sort_key(self) -> Tuple[str, str, int, str, int, str]:
        return (
            self.source_node,
            self.source_type,
            self.source_output,
            self.target_node,
            self.target_input,
            self.target_type,
        )

    def endpoint(self) -> ConnectionEndpoint:
        return ConnectionEndpoint(node=self.target_node, connection_type=self.target_type, index=self.target_input)

    def references(self, name: str) -> bool:
        return self.source_node == name or self.target_node == name

    def __str__(self) -> str:
        return (
            f"{self.source_node} {self.source_type}[{self.source_output}] -> "
            f"{self.target_node} {self.target_type}[{self.target_input}]"
        )


def flatten(connections: ConnectionsMap) -> List[Connection]:
    """Project a nested connections map to canonically sorted flat records."""
    flat: List[Connection] = []
    for source_node, outputs in connections.items():
        for source_type, slots in outputs.items():
            for source_output, targets in enumerate(slots):
                for ep in targets:
                    flat.append(
                        Connection(
                            source_node=source_node,
                            source_output=source_output,
                            source_type=source_type,
                            target_node=ep.node,
                            target_input=ep.index,
                            target_type=ep.connection_type,
                        )
                    )
    flat.sort(key=Connection.sort_key)
    return flat


def add_to_map(connections: ConnectionsMap, conn: Connection) -> None:
    """Insert one connection, padding missing output slots with empty lists."""
    outputs = connections.setdefault(conn.source_node, {})
    slots = outputs.setdefault(conn.source_type, [])
    while len(slots) <= conn.source_output:
        slots.append([])
    slots[conn.source_output].append(conn.endpoint())


def unflatten(connections: Iterable[Connection]) -> ConnectionsMap:
    out: ConnectionsMap = {}
    for conn in connections:
        add_to_map(out, conn)
    return out


def remove_from_map(connections: ConnectionsMap, source_name: str, target_name: str) -> bool:
    """
    Remove every endpoint under `source_name` that points at `target_name`.

    Emptied slots and keys are left in place; they flatten to nothing.
    Returns True if at least one endpoint was removed.
    """
    removed = False
    for slots in connections.get(source_name, {}).values():
        for i, targets in enumerate(slots):
            kept = [ep for ep in targets if ep.node != target_name]
            if len(kept) < len(targets):
                slots[i] = kept
                removed = True
    return removed


def drop_node_from_map(connections: ConnectionsMap, name: str) -> None:
    """Remove outgoing connections of `name` and every endpoint pointing at it."""
    connections.pop(name, None)
    for source in list(connections):
        remove_from_map(connections, source, name)


def rename_in_map(connections: ConnectionsMap, old_name: str, new_name: str) -> None:
    """Rewrite a node name both as a source key and as an endpoint target."""
    if old_name in connections:
        connections[new_name] = connections.pop(old_name)
    for outputs in connections.values():
        for slots in outputs.values():
            for i, targets in enumerate(slots):
                slots[i] = [
                    ep.model_copy(update={"node": new_name}) if ep.node == old_name else ep
                    for ep in targets
                ]


def copy_map(connections: ConnectionsMap) -> ConnectionsMap:
    """Independent copy; endpoints are immutable and shared."""
    return {
        source: {ctype: [list(targets) for targets in slots] for ctype, slots in outputs.items()}
        for source, outputs in connections.items()
    }


def connections_map_from_wire(raw: Any, path: str = "connections") -> ConnectionsMap:
    """
    Build a ConnectionsMap from its decoded JSON shape.

    Accepts endpoint dicts or ConnectionEndpoint instances; ``null`` slots
    become empty slots. Raises DataFormatError on any other shape.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise DataFormatError("connections must be an object keyed by source node name", path)

    out: ConnectionsMap = {}
    for source, outputs in raw.items():
        if not isinstance(outputs, dict):
            raise DataFormatError("expected an object keyed by connection type", f"{path}.{source}")
        typed: Dict[str, List[List[ConnectionEndpoint]]] = {}
        for ctype, slots in outputs.items():
            where = f"{path}.{source}.{ctype}"
            if not isinstance(slots, list):
                raise DataFormatError("expected an array of output slots", where)
            parsed_slots: List[List[ConnectionEndpoint]] = []
            for i, targets in enumerate(slots):
                if targets is None:
                    parsed_slots.append([])
                    continue
                if not isinstance(targets, list):
                    raise DataFormatError("expected an array of endpoints", f"{where}[{i}]")
                parsed_slots.append([_endpoint(ep, f"{where}[{i}][{j}]") for j, ep in enumerate(targets)])
            typed[ctype] = parsed_slots
        out[source] = typed
    return out


def _endpoint(raw: Any, where: str) -> ConnectionEndpoint:
    if isinstance(raw, ConnectionEndpoint):
        return raw
    if not isinstance(raw, dict):
        raise DataFormatError("expected an endpoint object {node, type, index}", where)
    try:
        return ConnectionEndpoint.model_validate(raw)
    except ValidationError as e:
        err = e.errors()[0]
        loc = format_path(err["loc"])
        raise DataFormatError(err["msg"], f"{where}.{loc}" if loc else where) from e


def connections_map_to_wire(connections: ConnectionsMap) -> Dict[str, Any]:
    return {
        source: {
            ctype: [[ep.to_wire() for ep in targets] for targets in slots]
            for ctype, slots in outputs.items()
        }
        for source, outputs in connections.items()
    }
