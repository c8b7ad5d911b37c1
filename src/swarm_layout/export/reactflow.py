"""
React Flow export for topology layouts.

Produces the node and edge dictionaries the dashboard canvas consumes:

- hosts       -> ``swarmNode``
- containers  -> ``container``
- networks    -> ``networkNode``
- edges       -> ``swarmEdge`` with ``data.edgeType`` driving the style

Handles are listed per node with their CSS position along the node's width
so the canvas can render one anchor per counterpart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from ..types import (
    ContainerRecord,
    EntityKind,
    HandleRef,
    HostRecord,
    NetworkRecord,
    PlacedEntity,
    Side,
    enum_value,
)

if TYPE_CHECKING:
    from ..result import LayoutResult

NODE_TYPES = {
    EntityKind.HOST: "swarmNode",
    EntityKind.CONTAINER: "container",
    EntityKind.NETWORK: "networkNode",
}

EDGE_TYPE = "swarmEdge"

_POSITIONS = {Side.NORTH: "top", Side.SOUTH: "bottom"}


def _record_data(entity: PlacedEntity) -> dict[str, Any]:
    """Record fields under the camelCase keys the canvas components read."""
    ref = entity.ref
    if isinstance(ref, HostRecord):
        return {
            "id": ref.id,
            "hostname": ref.hostname,
            "role": enum_value(ref.role),
            "status": ref.status,
            "labels": dict(ref.labels),
            "containerCount": ref.container_count,
        }
    if isinstance(ref, ContainerRecord):
        return {
            "id": ref.id,
            "serviceName": ref.service_name,
            "image": ref.image,
            "status": ref.status,
            "networkAttachments": [
                {
                    "networkRef": a.network_ref,
                    "driver": a.driver,
                    "ipAddress": a.ip_address,
                }
                for a in ref.network_attachments
            ],
        }
    if isinstance(ref, NetworkRecord):
        return {
            "id": ref.id,
            "name": ref.name,
            "driver": ref.driver,
            "scope": ref.scope,
            "type": ref.type,
            "networkInfo": {"subnet": ref.subnet, "gateway": ref.gateway},
        }
    return {"id": entity.id}


def _handle_data(handle: HandleRef) -> dict[str, Any]:
    return {
        "id": handle.handle_id,
        "position": _POSITIONS[handle.side],
        "left": f"{handle.offset * 100:.2f}%",
    }


def _handle_id(handle: Optional[HandleRef]) -> Optional[str]:
    return handle.handle_id if handle is not None else None


def to_reactflow(result: LayoutResult) -> dict[str, list[dict[str, Any]]]:
    """
    Export a layout result as React Flow nodes and edges.

    Args:
        result: Output of layout()

    Returns:
        {"nodes": [...], "edges": [...]} in result order
    """
    nodes = []
    for entity in result.entities:
        data = _record_data(entity)
        data["layer"] = entity.layer.name.lower()
        data["handles"] = [_handle_data(h) for h in result.handles_on(entity.id)]
        nodes.append(
            {
                "id": entity.id,
                "type": NODE_TYPES[entity.kind],
                "position": {"x": entity.x, "y": entity.y},
                "style": {"width": entity.width, "height": entity.height},
                "data": data,
            }
        )

    edges = []
    for edge in result.edges:
        item: dict[str, Any] = {
            "id": edge.id,
            "source": edge.source_id,
            "target": edge.target_id,
            "type": EDGE_TYPE,
            "data": {"edgeType": enum_value(edge.kind), "rule": edge.rule},
        }
        source_handle = _handle_id(edge.source_handle)
        target_handle = _handle_id(edge.target_handle)
        if source_handle is not None:
            item["sourceHandle"] = source_handle
        if target_handle is not None:
            item["targetHandle"] = target_handle
        if edge.label is not None:
            item["data"]["label"] = edge.label
        if edge.dashed:
            item["style"] = {"strokeDasharray": "5,5"}
        edges.append(item)

    return {"nodes": nodes, "edges": edges}


__all__ = ["NODE_TYPES", "EDGE_TYPE", "to_reactflow"]
