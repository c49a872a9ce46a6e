"""Node and canvas position models.

A node is one step of a workflow. Its ``name`` is what connections refer to,
so renaming a node is a structural change, while its ``id`` is an opaque,
stable identifier assigned by the editor (or generated here when missing).
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator


TRIGGER_KEYWORD = "trigger"


def default_type_version() -> int:
    """typeVersion assigned to nodes that do not declare one."""
    return 1


def generate_id() -> str:
    return str(uuid.uuid4())


class Position(BaseModel):
    """Canvas coordinates. On the wire this is ``[x, y]``, never ``{x, y}``."""

    model_config = ConfigDict(frozen=True)

    x: int = 0
    y: int = 0

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError(f"position must be a 2-element [x, y] array, got {len(data)} element(s)")
            return {"x": data[0], "y": data[1]}
        return data

    @model_serializer
    def _as_pair(self) -> List[int]:
        return [self.x, self.y]

    def as_tuple(self) -> tuple:
        return (self.x, self.y)


class Node(BaseModel):
    """A single workflow step.

    Keys the model does not know about (``notes``, ``continueOnFail``,
    ``retryOnFail``, ``executeOnce`` ...) are kept as extra fields and written
    back unchanged by :meth:`to_wire`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(default_factory=generate_id, description="Stable unique identifier")
    name: str = Field(..., description="Display label, referenced by connections")
    type: str = Field(..., description="Namespaced node type, e.g. 'n8n-nodes-base.httpRequest'")
    type_version: Union[int, float] = Field(default_factory=default_type_version, alias="typeVersion")
    position: Position = Field(default_factory=Position)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Dict[str, Any]] = None
    disabled: bool = False
    webhook_id: Optional[str] = Field(default=None, alias="webhookId")

    @property
    def extras(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def is_trigger(self) -> bool:
        return TRIGGER_KEYWORD in self.type.lower()

    def with_position(self, x: int, y: int) -> "Node":
        return self.model_copy(update={"position": Position(x=x, y=y)})

    def with_parameters(self, parameters: Dict[str, Any]) -> "Node":
        return self.model_copy(update={"parameters": dict(parameters)})

    def with_disabled(self, disabled: bool = True) -> "Node":
        return self.model_copy(update={"disabled": disabled})

    def renamed(self, name: str) -> "Node":
        return self.model_copy(update={"name": name})

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the n8n node object shape."""
        doc = self.model_dump(by_alias=True)
        # disabled only appears when set; absent optionals are omitted
        if not self.disabled:
            doc.pop("disabled", None)
        if self.credentials is None:
            doc.pop("credentials", None)
        if self.webhook_id is None:
            doc.pop("webhookId", None)
        return doc
