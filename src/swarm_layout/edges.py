"""
Edge rule engine.

Applies a fixed, ordered, additive set of connectivity rules to placed
entities and their handles:

R1  host -> gwbridge          default, gwbridge center handle
R2  container -> gwbridge     vxlan, per-container handle, "VXLAN" label, dashed
R3  overlay -> container      ingress, handles on both ends
R4  gwbridge -> ingress       ingress, for gwbridges carrying the ingress link
R5  overlay -> host           default, per declared overlay peer
EXT host -> external network  default, every host when an external network exists

Edges are emitted in rule order with no sorting or deduplication. A rule
instance whose inputs do not match produces no edge; no rule raises.
"""

from __future__ import annotations

from typing import Callable, Optional

from .handles import HandleTable
from .placer import Placement
from .types import Edge, EdgeKind, HandleRef

VXLAN_LABEL = "VXLAN"

EdgeRule = Callable[[Placement, HandleTable], list[Edge]]


def edge_id(source_id: str, target_id: str) -> str:
    """Identifier of the edge between two entities."""
    return f"edge-{source_id}-to-{target_id}"


def _edge(
    rule: str,
    source_id: str,
    target_id: str,
    kind: EdgeKind,
    source_handle: Optional[HandleRef],
    target_handle: Optional[HandleRef],
    label: Optional[str] = None,
    dashed: bool = False,
) -> Edge:
    return Edge(
        id=edge_id(source_id, target_id),
        source_id=source_id,
        target_id=target_id,
        kind=kind,
        source_handle=source_handle,
        target_handle=target_handle,
        label=label,
        dashed=dashed,
        rule=rule,
    )


def host_gwbridge_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """R1: one default edge from every host to its gwbridge."""
    edges = []
    for host_id in placement.host_ids:
        gwbridge_id = placement.gwbridge_by_host.get(host_id)
        if gwbridge_id is None:
            continue
        edges.append(
            _edge(
                "R1",
                host_id,
                gwbridge_id,
                EdgeKind.DEFAULT,
                handles.get(host_id, gwbridge_id),
                handles.get(gwbridge_id, host_id),
            )
        )
    return edges


def container_gwbridge_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """R2: one dashed VXLAN edge from every container to its host's gwbridge."""
    edges = []
    for host_id in placement.host_ids:
        gwbridge_id = placement.gwbridge_by_host.get(host_id)
        if gwbridge_id is None:
            continue
        for container_id in placement.containers_by_host.get(host_id, ()):
            target_handle = handles.get(gwbridge_id, container_id)
            if target_handle is None:
                continue
            edges.append(
                _edge(
                    "R2",
                    container_id,
                    gwbridge_id,
                    EdgeKind.VXLAN,
                    None,
                    target_handle,
                    label=VXLAN_LABEL,
                    dashed=True,
                )
            )
    return edges


def overlay_container_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """R3: one edge from an overlay network to every container attached to it."""
    edges = []
    for network_id, container_id in handles.overlay_links:
        if network_id not in placement or container_id not in placement:
            continue
        edges.append(
            _edge(
                "R3",
                network_id,
                container_id,
                EdgeKind.INGRESS,
                handles.get(network_id, container_id),
                handles.container_handle(network_id, container_id),
            )
        )
    return edges


def gwbridge_ingress_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """R4: one edge from every ingress-linked gwbridge to the ingress network."""
    ingress_id = placement.ingress_id
    if ingress_id is None:
        return []
    return [
        _edge(
            "R4",
            gwbridge_id,
            ingress_id,
            EdgeKind.INGRESS,
            handles.get(gwbridge_id, ingress_id),
            handles.get(ingress_id, gwbridge_id),
        )
        for gwbridge_id in handles.ingress_links
        if gwbridge_id in placement
    ]


def host_overlay_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """R5: one edge per declared overlay/host pair."""
    return [
        _edge(
            "R5",
            network_id,
            host_id,
            EdgeKind.DEFAULT,
            handles.get(network_id, host_id),
            handles.get(host_id, network_id),
        )
        for network_id, host_id in handles.host_overlay_links
        if network_id in placement and host_id in placement
    ]


def external_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """Every host connects to the external network, when one is placed."""
    external_id = placement.external_id
    if external_id is None:
        return []
    return [
        _edge(
            "EXT",
            host_id,
            external_id,
            EdgeKind.DEFAULT,
            None,
            handles.get(external_id, host_id),
        )
        for host_id in placement.host_ids
    ]


RULES: tuple[tuple[str, EdgeRule], ...] = (
    ("R1", host_gwbridge_edges),
    ("R2", container_gwbridge_edges),
    ("R3", overlay_container_edges),
    ("R4", gwbridge_ingress_edges),
    ("R5", host_overlay_edges),
    ("EXT", external_edges),
)


def generate_edges(placement: Placement, handles: HandleTable) -> list[Edge]:
    """
    Apply all rules in order and concatenate their edges.

    Returns a new list on every call; handles are read, never consumed.
    """
    edges: list[Edge] = []
    for _name, rule in RULES:
        edges.extend(rule(placement, handles))
    return edges


__all__ = [
    "VXLAN_LABEL",
    "EdgeRule",
    "RULES",
    "edge_id",
    "generate_edges",
    "host_gwbridge_edges",
    "container_gwbridge_edges",
    "overlay_container_edges",
    "gwbridge_ingress_edges",
    "host_overlay_edges",
    "external_edges",
]
