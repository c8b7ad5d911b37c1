"""
Docker Engine API ingestion.

Converts already-fetched JSON payloads of the swarm endpoints into
snapshot records:

- ``GET /nodes``    -> HostRecord
- ``GET /tasks``    -> flat ContainerRecord (grouped by NodeID later)
- ``GET /networks`` -> NetworkRecord

No requests are made here. Per-node ``docker_gwbridge`` payloads come from
each node's local engine and can be tagged with their host id, which sets
the explicit gwbridge -> host foreign key instead of relying on names.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from .snapshot import TopologySnapshot, coerce_role
from .types import ContainerRecord, HostRecord, NetworkAttachment, NetworkRecord
from .validation import (
    InvalidContainerError,
    InvalidHostError,
    InvalidNetworkError,
    get_field,
    require_field,
)

GWBRIDGE_NAME = "docker_gwbridge"
INGRESS_SANDBOX = "ingress-sbox"


def _dig(payload: Any, *path: str) -> Any:
    """Follow nested keys, returning None as soon as one is missing."""
    value = payload
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def host_from_node(node: Mapping[str, Any]) -> HostRecord:
    """
    Build a host from one ``/nodes`` entry.

    Raises:
        InvalidHostError: If ``ID`` is missing or the role is unknown
    """
    host_id = require_field(node, ("ID",), InvalidHostError, "Swarm node")
    return HostRecord(
        id=host_id,
        hostname=_dig(node, "Description", "Hostname") or "",
        role=coerce_role(_dig(node, "Spec", "Role"), host_id),
        status=_dig(node, "Status", "State"),
        labels=dict(_dig(node, "Spec", "Labels") or {}),
    )


def attachment_from_task(entry: Mapping[str, Any]) -> NetworkAttachment:
    """
    Build an attachment from one ``NetworksAttachments`` entry of a task.

    The reference is the network id, falling back to its name.

    Raises:
        InvalidContainerError: If neither id nor name is present
    """
    network = entry.get("Network") or {}
    ref = network.get("ID") or _dig(network, "Spec", "Name")
    if not ref:
        raise InvalidContainerError("Task network attachment has no network id or name")
    addresses = entry.get("Addresses") or []
    return NetworkAttachment(
        network_ref=ref,
        driver=_dig(network, "DriverState", "Name") or "",
        ip_address=addresses[0] if addresses else None,
    )


def container_from_task(task: Mapping[str, Any]) -> ContainerRecord:
    """
    Build a flat container from one ``/tasks`` entry.

    Raises:
        InvalidContainerError: If ``ID`` is missing
    """
    task_id = require_field(task, ("ID",), InvalidContainerError, "Task")
    return ContainerRecord(
        id=task_id,
        service_name=task.get("ServiceID") or "",
        image=_dig(task, "Spec", "ContainerSpec", "Image") or "",
        status=_dig(task, "Status", "State") or "",
        network_attachments=tuple(
            attachment_from_task(a) for a in task.get("NetworksAttachments") or ()
        ),
        host_id=task.get("NodeID"),
    )


def network_from_payload(
    network: Mapping[str, Any], host_id: Optional[str] = None
) -> NetworkRecord:
    """
    Build a network from one ``/networks`` entry.

    Args:
        network: Network inspect payload
        host_id: Node the payload was read from. Only applied to the
            local docker_gwbridge network, whose owner it identifies.

    Raises:
        InvalidNetworkError: If ``Id``, ``Name`` or ``Driver`` is missing
    """
    network_id = require_field(network, ("Id", "ID"), InvalidNetworkError, "Network")
    what = f"Network '{network_id}'"
    name = require_field(network, ("Name",), InvalidNetworkError, what)
    ipam = (_dig(network, "IPAM", "Config") or [{}])[0] or {}
    is_gwbridge = name == GWBRIDGE_NAME
    containers = network.get("Containers") or {}
    return NetworkRecord(
        id=network_id,
        name=name,
        driver=require_field(network, ("Driver",), InvalidNetworkError, what),
        scope=network.get("Scope") or "local",
        subnet=get_field(ipam, ("Subnet",)),
        gateway=get_field(ipam, ("Gateway",)),
        host_id=host_id if is_gwbridge else None,
        ingress_link=is_gwbridge and any(
            key.startswith(INGRESS_SANDBOX)
            or str(_dig(containers, key, "Name") or "").endswith(INGRESS_SANDBOX)
            for key in containers
        ),
        peers=tuple(p.get("Name") for p in network.get("Peers") or () if p.get("Name")),
    )


def snapshot_from_api(
    nodes: Sequence[Mapping[str, Any]],
    tasks: Sequence[Mapping[str, Any]],
    networks: Sequence[Mapping[str, Any]],
    *,
    gwbridges: Optional[Mapping[str, Mapping[str, Any]]] = None,
    swarm_only: bool = True,
) -> TopologySnapshot:
    """
    Assemble a snapshot from swarm API payloads.

    Args:
        nodes: ``/nodes`` payload
        tasks: ``/tasks`` payload
        networks: ``/networks`` payload of a manager
        gwbridges: Optional mapping of node id to that node's local
            docker_gwbridge inspect payload
        swarm_only: Keep only swarm-scoped networks from ``networks``

    Returns:
        TopologySnapshot with tasks as flat containers
    """
    network_records = [
        network_from_payload(n)
        for n in networks
        if not swarm_only or n.get("Scope") == "swarm"
    ]
    for node_id, payload in (gwbridges or {}).items():
        network_records.append(network_from_payload(payload, host_id=node_id))

    hosts = tuple(host_from_node(n) for n in nodes)

    # Overlay peers are reported by node hostname
    by_hostname = {h.hostname: h.id for h in hosts if h.hostname}
    network_records = [
        replace(n, peers=tuple(by_hostname.get(p, p) for p in n.peers)) if n.peers else n
        for n in network_records
    ]

    return TopologySnapshot(
        hosts=hosts,
        networks=tuple(network_records),
        containers=tuple(container_from_task(t) for t in tasks),
    )


__all__ = [
    "GWBRIDGE_NAME",
    "INGRESS_SANDBOX",
    "attachment_from_task",
    "container_from_task",
    "host_from_node",
    "network_from_payload",
    "snapshot_from_api",
]
