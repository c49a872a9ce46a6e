# utils/graph.py
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Set

import networkx as nx

from n8nflow.models.connection import ConnectionsMap, flatten
from n8nflow.models.node import Node

if TYPE_CHECKING:
    from n8nflow.models.workflow import TypedWorkflow


def has_trigger(nodes: Iterable[Node]) -> bool:
    return any(n.is_trigger() for n in nodes)


def referenced_names(connections: ConnectionsMap) -> Set[str]:
    """Every node name used as a source key or as an endpoint target."""
    names = set(connections)
    for outputs in connections.values():
        for slots in outputs.values():
            for targets in slots:
                names.update(ep.node for ep in targets)
    return names


def build_graph(workflow: "TypedWorkflow") -> nx.MultiDiGraph:
    """
    Build a name-keyed multigraph of the workflow.

    Nodes: every workflow node name plus every name the connections map
    mentions (dangling references become bare graph nodes).
    Edges: one per flat connection, carrying it under the 'connection' key.
    """
    G = nx.MultiDiGraph()
    for n in workflow.nodes:
        if n.name not in G:
            G.add_node(n.name, id=n.id, type=n.type, trigger=n.is_trigger())
    for source in workflow.connections:
        if source not in G:
            G.add_node(source)
    for c in flatten(workflow.connections):
        G.add_edge(c.source_node, c.target_node, connection=c)
    return G


def orphan_names(workflow: "TypedWorkflow") -> List[str]:
    """
    Non-trigger nodes that no connection mentions, in workflow order.
    A source key whose slots are all empty still counts as mentioned.
    """
    G = build_graph(workflow)
    keys = set(workflow.connections)
    orphans: List[str] = []
    for n in workflow.nodes:
        if n.is_trigger() or n.name in keys:
            continue
        if G.degree(n.name) == 0 and n.name not in orphans:
            orphans.append(n.name)
    return orphans
