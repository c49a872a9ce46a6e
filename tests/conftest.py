import json
from pathlib import Path

import pytest

BENCH = Path(__file__).resolve().parent.parent / "bench"


def load_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def linear_doc():
    """Trigger -> Set -> HTTP, the smallest healthy workflow."""
    return {
        "id": "wf-1",
        "name": "Linear",
        "active": False,
        "nodes": [
            {"id": "n1", "name": "Trigger", "type": "n8n-nodes-base.manualTrigger", "position": [0, 0]},
            {"id": "n2", "name": "Set", "type": "n8n-nodes-base.set", "typeVersion": 3, "position": [200, 0],
             "parameters": {"mode": "manual"}},
            {"id": "n3", "name": "HTTP", "type": "n8n-nodes-base.httpRequest", "typeVersion": 4.2,
             "position": [400, 0], "parameters": {"url": "https://example.com"}},
        ],
        "connections": {
            "Trigger": {"main": [[{"node": "Set", "type": "main", "index": 0}]]},
            "Set": {"main": [[{"node": "HTTP", "type": "main", "index": 0}]]},
        },
        "settings": {"executionOrder": "v1"},
    }
