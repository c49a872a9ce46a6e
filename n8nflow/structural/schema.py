#n8nflow/structural/schema.py
# Wire shape of an n8n workflow document. Only shape is checked here;
# cross references (connection -> node) are the validator's job.

ENDPOINT_SCHEMA = {
    "type": "object",
    "required": ["node"],
    "properties": {
        "node": {"type": "string"},
        # Target input channel (usually "main")
        "type": {"type": "string"},
        # Target input slot: non-negative integer
        "index": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": True,
}

NODE_SCHEMA = {
    "type": "object",
    "required": ["name", "type"],
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "type": {"type": "string"},
        "typeVersion": {"type": "number"},
        # [x, y], never {x, y}
        "position": {
            "type": "array",
            "items": {"type": "integer"},
            "minItems": 2,
            "maxItems": 2,
        },
        "parameters": {"type": "object"},
        "disabled": {"type": "boolean"},
        "credentials": {"type": "object"},
        "webhookId": {"type": "string"},
    },
    "additionalProperties": True,
}

CONNECTIONS_SCHEMA = {
    "type": "object",
    # source node name -> connection type -> output slots -> endpoints
    "additionalProperties": {
        "type": "object",
        "additionalProperties": {
            "type": "array",
            "items": {
                # null slots are tolerated and normalized to empty slots
                "type": ["array", "null"],
                "items": ENDPOINT_SCHEMA,
            },
        },
    },
}

N8N_WORKFLOW_SCHEMA = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "id": {"type": ["string", "null"]},
        "name": {"type": "string"},
        "active": {"type": "boolean"},
        "nodes": {"type": "array", "items": NODE_SCHEMA},
        "connections": CONNECTIONS_SCHEMA,
        "settings": {"type": ["object", "null"]},
        "tags": {"type": "array", "items": {"type": "object"}},
        "versionId": {"type": ["string", "null"]},
    },
    "additionalProperties": True,
}
