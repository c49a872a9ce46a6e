# n8nflow/errors.py
from __future__ import annotations

from typing import Iterable, Union


PathPart = Union[str, int]


def format_path(parts: Iterable[PathPart]) -> str:
    """
    Render a JSON location as a readable field path:
      ("nodes", 1, "position") -> "nodes[1].position"
    """
    out = ""
    for p in parts:
        if isinstance(p, int):
            out += f"[{p}]"
        elif out:
            out += f".{p}"
        else:
            out = str(p)
    return out


class WorkflowError(Exception):
    """Base class for all n8nflow errors."""


class DataFormatError(WorkflowError, ValueError):
    """The input document does not have the expected node/connection shape."""

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class NodeNotFoundError(WorkflowError, LookupError):
    def __init__(self, node: str):
        self.node = node
        super().__init__(f"Node '{node}' not found in workflow")


class ConnectionNotFoundError(WorkflowError, LookupError):
    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Connection not found: {source} -> {target}")
