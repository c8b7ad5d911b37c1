"""
Topology snapshots.

A TopologySnapshot is the immutable input of the layout engine: hosts,
networks and, optionally, a flat list of containers that carry a host id
instead of being embedded in their host.

Records may be given as record instances, dicts (camelCase or snake_case
keys) or plain objects with the same attributes; everything is coerced to
frozen records up front so the later stages never see caller objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence

from .types import ContainerRecord, HostRecord, HostRole, NetworkAttachment, NetworkRecord
from .validation import (
    InvalidContainerError,
    InvalidHostError,
    InvalidNetworkError,
    get_field,
    require_field,
)

log = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Coercion
# -------------------------------------------------------------------------


def coerce_attachment(value: Any, container_id: str = "?") -> NetworkAttachment:
    """Coerce a NetworkAttachment, dict or object into a NetworkAttachment."""
    if isinstance(value, NetworkAttachment):
        if not value.network_ref:
            raise InvalidContainerError(
                f"Network attachment of container '{container_id}' is missing "
                "required field 'network_ref'"
            )
        return value
    ref = require_field(
        value,
        ("network_ref", "networkRef", "id", "name"),
        InvalidContainerError,
        f"Network attachment of container '{container_id}'",
    )
    return NetworkAttachment(
        network_ref=ref,
        driver=str(get_field(value, ("driver",), "")),
        ip_address=get_field(value, ("ip_address", "ipAddress")),
    )


def coerce_container(value: Any, host_id: Optional[str] = None) -> ContainerRecord:
    """
    Coerce a container-like value into a ContainerRecord.

    Args:
        value: ContainerRecord, dict or object
        host_id: Owning host when the container is embedded in a host

    Raises:
        InvalidContainerError: If the id or an attachment reference is missing
    """
    if isinstance(value, ContainerRecord):
        if not value.id:
            raise InvalidContainerError("Container is missing required field 'id'")
        for attachment in value.network_attachments:
            coerce_attachment(attachment, value.id)
        if host_id is not None and value.host_id is None:
            return replace(value, host_id=host_id)
        return value

    container_id = require_field(value, ("id",), InvalidContainerError, "Container")
    attachments = get_field(value, ("network_attachments", "networkAttachments", "networks"), ())
    return ContainerRecord(
        id=container_id,
        service_name=str(get_field(value, ("service_name", "serviceName", "name"), "")),
        image=str(get_field(value, ("image",), "")),
        status=str(get_field(value, ("status",), "")),
        network_attachments=tuple(coerce_attachment(a, container_id) for a in attachments),
        host_id=get_field(value, ("host_id", "hostId", "nodeId"), host_id),
    )


def coerce_role(value: Any, host_id: str = "?") -> HostRole:
    """
    Parse a host role.

    Accepts HostRole members and case-insensitive strings; a missing role
    defaults to worker.

    Raises:
        InvalidHostError: If the role is not manager or worker
    """
    if value is None or value == "":
        return HostRole.WORKER
    if isinstance(value, HostRole):
        return value
    try:
        return HostRole(str(value).lower())
    except ValueError:
        raise InvalidHostError(
            f"Host '{host_id}' has unknown role {value!r} (expected manager or worker)"
        ) from None


def coerce_host(value: Any) -> HostRecord:
    """
    Coerce a host-like value into a HostRecord.

    Embedded containers are coerced as well and tagged with the host id.

    Raises:
        InvalidHostError: If the id is missing or the role is unknown
        InvalidContainerError: If an embedded container is malformed
    """
    if isinstance(value, HostRecord):
        host_id = value.id
        if not host_id:
            raise InvalidHostError("Host is missing required field 'id'")
        containers = value.containers
        role = coerce_role(value.role, host_id)
        hostname = value.hostname
        status = value.status
        labels: Mapping[str, str] = value.labels
    else:
        host_id = require_field(value, ("id",), InvalidHostError, "Host")
        containers = get_field(value, ("containers",), ())
        role = coerce_role(get_field(value, ("role",)), host_id)
        hostname = str(get_field(value, ("hostname", "name"), ""))
        status = get_field(value, ("status",))
        labels = dict(get_field(value, ("labels",), {}) or {})

    return HostRecord(
        id=host_id,
        hostname=hostname,
        role=role,
        status=status,
        labels=labels,
        containers=tuple(coerce_container(c, host_id) for c in containers),
    )


def coerce_network(value: Any) -> NetworkRecord:
    """
    Coerce a network-like value into a NetworkRecord.

    Raises:
        InvalidNetworkError: If the id, name or driver is missing
    """
    if isinstance(value, NetworkRecord):
        for name in ("id", "name", "driver"):
            if not getattr(value, name):
                raise InvalidNetworkError(f"Network is missing required field '{name}'")
        return value

    network_id = require_field(value, ("id",), InvalidNetworkError, "Network")
    what = f"Network '{network_id}'"
    info = get_field(value, ("network_info", "networkInfo"), {}) or {}
    return NetworkRecord(
        id=network_id,
        name=require_field(value, ("name",), InvalidNetworkError, what),
        driver=require_field(value, ("driver",), InvalidNetworkError, what),
        scope=str(get_field(value, ("scope",), "swarm")),
        type=get_field(value, ("type",)),
        subnet=get_field(value, ("subnet",), get_field(info, ("subnet",))),
        gateway=get_field(value, ("gateway",), get_field(info, ("gateway",))),
        host_id=get_field(value, ("host_id", "hostId")),
        ingress_link=bool(get_field(value, ("ingress_link", "ingressLink"), False)),
        peers=tuple(get_field(value, ("peers",), ()) or ()),
    )


# -------------------------------------------------------------------------
# Snapshot
# -------------------------------------------------------------------------


@dataclass(frozen=True)
class TopologySnapshot:
    """
    Immutable cluster state handed to the layout engine.

    Attributes:
        hosts: Hosts, optionally with embedded containers
        networks: Networks known to the cluster
        containers: Flat containers grouped under hosts by ``host_id``
    """

    hosts: tuple[HostRecord, ...] = ()
    networks: tuple[NetworkRecord, ...] = ()
    containers: tuple[ContainerRecord, ...] = field(default=())

    @classmethod
    def from_records(
        cls,
        hosts: Sequence[Any] = (),
        networks: Sequence[Any] = (),
        containers: Sequence[Any] = (),
    ) -> TopologySnapshot:
        """
        Build a snapshot from record instances, dicts or objects.

        Raises:
            ValidationError: If any record is malformed
        """
        return cls(
            hosts=tuple(coerce_host(h) for h in hosts),
            networks=tuple(coerce_network(n) for n in networks),
            containers=tuple(coerce_container(c) for c in containers),
        )

    @property
    def is_empty(self) -> bool:
        return not self.hosts

    def grouped_hosts(self) -> tuple[HostRecord, ...]:
        """
        Hosts with the flat containers merged in.

        Embedded containers keep their order and come first; flat containers
        follow in input order. A flat container whose host is unknown is
        skipped.

        Raises:
            InvalidContainerError: If a flat container has no host id
        """
        if not self.containers:
            return self.hosts

        host_ids = {h.id for h in self.hosts}
        extra: dict[str, list[ContainerRecord]] = {}
        for container in self.containers:
            if not container.host_id:
                raise InvalidContainerError(
                    f"Container '{container.id}' is not embedded in a host and has no host id"
                )
            if container.host_id not in host_ids:
                log.debug(
                    "Skipping container %s: host %s not in snapshot",
                    container.id,
                    container.host_id,
                )
                continue
            extra.setdefault(container.host_id, []).append(container)

        return tuple(
            replace(h, containers=h.containers + tuple(extra[h.id])) if h.id in extra else h
            for h in self.hosts
        )


def as_snapshot(value: Any) -> TopologySnapshot:
    """
    Coerce the engine input into a TopologySnapshot.

    Accepts a TopologySnapshot or a mapping with ``hosts``, ``networks`` and
    optional ``containers`` keys.
    """
    if isinstance(value, TopologySnapshot):
        return TopologySnapshot.from_records(value.hosts, value.networks, value.containers)
    if isinstance(value, Mapping):
        return TopologySnapshot.from_records(
            value.get("hosts", ()) or (),
            value.get("networks", ()) or (),
            value.get("containers", ()) or (),
        )
    raise TypeError(f"Cannot build a topology snapshot from {type(value).__name__}")


# -------------------------------------------------------------------------
# Change detection
# -------------------------------------------------------------------------


@dataclass(frozen=True)
class SnapshotDiff:
    """Ids of hosts and networks that differ between two snapshots."""

    added_hosts: tuple[str, ...] = ()
    removed_hosts: tuple[str, ...] = ()
    changed_hosts: tuple[str, ...] = ()
    added_networks: tuple[str, ...] = ()
    removed_networks: tuple[str, ...] = ()
    changed_networks: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.added_hosts
            or self.removed_hosts
            or self.changed_hosts
            or self.added_networks
            or self.removed_networks
            or self.changed_networks
        )


def _canonical_container(container: ContainerRecord) -> ContainerRecord:
    # Attachment order carries no meaning
    attachments = tuple(sorted(container.network_attachments, key=lambda a: a.network_ref))
    return replace(container, network_attachments=attachments)


def _canonical_host(host: HostRecord) -> tuple[Any, ...]:
    containers = sorted(
        (_canonical_container(replace(c, host_id=host.id)) for c in host.containers),
        key=lambda c: c.id,
    )
    return (
        host.id,
        host.hostname,
        host.role,
        host.status,
        tuple(sorted(host.labels.items())),
        tuple(containers),
    )


def diff_snapshots(old: TopologySnapshot, new: TopologySnapshot) -> SnapshotDiff:
    """
    Compare two snapshots host by host and network by network.

    Container order within a host and attachment order within a container
    are ignored; everything else is compared structurally.
    """
    old_hosts = {h.id: _canonical_host(h) for h in old.grouped_hosts()}
    new_hosts = {h.id: _canonical_host(h) for h in new.grouped_hosts()}
    old_networks = {n.id: n for n in old.networks}
    new_networks = {n.id: n for n in new.networks}

    return SnapshotDiff(
        added_hosts=tuple(i for i in new_hosts if i not in old_hosts),
        removed_hosts=tuple(i for i in old_hosts if i not in new_hosts),
        changed_hosts=tuple(
            i for i in new_hosts if i in old_hosts and old_hosts[i] != new_hosts[i]
        ),
        added_networks=tuple(i for i in new_networks if i not in old_networks),
        removed_networks=tuple(i for i in old_networks if i not in new_networks),
        changed_networks=tuple(
            i for i in new_networks if i in old_networks and old_networks[i] != new_networks[i]
        ),
    )


def snapshots_equal(a: TopologySnapshot, b: TopologySnapshot) -> bool:
    """Check whether two snapshots describe the same cluster state."""
    return diff_snapshots(a, b).is_empty


__all__ = [
    "TopologySnapshot",
    "SnapshotDiff",
    "as_snapshot",
    "coerce_attachment",
    "coerce_container",
    "coerce_host",
    "coerce_network",
    "coerce_role",
    "diff_snapshots",
    "snapshots_equal",
]
