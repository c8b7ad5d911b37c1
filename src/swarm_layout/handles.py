"""
Handle allocation.

Entities that receive more than one edge expose one handle per
counterpart so the edges do not land on the same point. Offsets are
fractions of the owner's width:

- gwbridge <-> container: the container's center projected onto the
  gwbridge, which keeps the VXLAN edge short and vertical; the gwbridge's
  aggregate link toward its host sits at the center (0.5) on both ends
- overlay <-> container: the container's center projected onto the overlay
  network; on the container, the overlays it attaches to are spread evenly
  along its top in stacking order and keyed by network name (by id when two
  of them share a name)
- gwbridge <-> ingress: the gwbridge's center projected onto the ingress
  network; on the gwbridge, the widest free gap between its other handles
- overlay <-> host: the host's center projected onto the overlay network
  (moved aside if taken); on the host, the widest free gap
- external <-> host: the host's center projected onto the external network

Network attachments whose reference resolves to no network are dropped.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

from .placer import Placement
from .types import HandleRef, NetworkRecord, PlacedEntity, Side

log = logging.getLogger(__name__)

CENTER = 0.5


def facing_side(owner: PlacedEntity, counterpart: PlacedEntity) -> Side:
    """Side of ``owner`` that faces ``counterpart``."""
    return Side.NORTH if counterpart.center_y < owner.center_y else Side.SOUTH


def relative_offset(owner: PlacedEntity, x: float) -> float:
    """Project an absolute x onto the owner's width, clamped to [0, 1]."""
    return max(0.0, min(1.0, (x - owner.x) / owner.width))


def spread_offsets(count: int) -> list[float]:
    """
    Evenly distributed offsets for ``count`` handles on one side.

    For k handles, positions are (i+1)/(k+1) for i in 0..k-1.
    """
    return [(i + 1) / (count + 1) for i in range(count)]


def claim_offset(taken: Sequence[float], preferred: Optional[float] = None) -> float:
    """
    Pick an offset distinct from every offset in ``taken``.

    Args:
        taken: Offsets already used on the owner
        preferred: Offset to use if it is free. If it collides, the midpoint
            between it and the next taken offset (or the border) is used.
            If None, the midpoint of the widest free gap is used.

    Returns:
        An offset in (0, 1) not equal to any taken offset
    """
    points = sorted(set(taken))

    if preferred is not None:
        if not any(math.isclose(preferred, t, abs_tol=1e-9) for t in points):
            return preferred
        upper = next((t for t in points if t > preferred + 1e-9), 1.0)
        if upper - preferred > 1e-9:
            return (preferred + upper) / 2
        lower = max((t for t in points if t < preferred - 1e-9), default=0.0)
        return (lower + preferred) / 2

    bounds = [0.0, *points, 1.0]
    best = 0
    for i in range(1, len(bounds) - 1):
        if bounds[i + 1] - bounds[i] > bounds[best + 1] - bounds[best]:
            best = i
    return (bounds[best] + bounds[best + 1]) / 2


@dataclass
class HandleTable:
    """
    Handles keyed by (owner id, counterpart id), plus the resolved links
    that the edge rules consume.

    Attributes:
        overlay_links: (overlay network id, container id) per resolved attachment
        container_keys: Counterpart key of the container-side handle per
            (overlay network id, container id); the network name, or the
            network id when the container reaches two overlays of one name
        ingress_links: Gwbridge ids linked to the ingress network
        host_overlay_links: (overlay network id, host id) per declared peer
    """

    handles: dict[tuple[str, str], HandleRef] = field(default_factory=dict)
    overlay_links: list[tuple[str, str]] = field(default_factory=list)
    container_keys: dict[tuple[str, str], str] = field(default_factory=dict)
    ingress_links: list[str] = field(default_factory=list)
    host_overlay_links: list[tuple[str, str]] = field(default_factory=list)

    def add(self, handle: HandleRef) -> HandleRef:
        self.handles[(handle.owner_id, handle.counterpart_id)] = handle
        return handle

    def get(self, owner_id: str, counterpart_id: str) -> Optional[HandleRef]:
        return self.handles.get((owner_id, counterpart_id))

    def for_owner(self, owner_id: str) -> list[HandleRef]:
        """All handles on one entity, in allocation order."""
        return [h for h in self.handles.values() if h.owner_id == owner_id]

    def offsets(self, owner_id: str) -> list[float]:
        return [h.offset for h in self.for_owner(owner_id)]

    def container_handle(self, network_id: str, container_id: str) -> Optional[HandleRef]:
        """Container-side handle of an overlay attachment."""
        key = self.container_keys.get((network_id, container_id))
        return self.get(container_id, key) if key is not None else None

    def __iter__(self) -> Iterator[HandleRef]:
        return iter(self.handles.values())

    def __len__(self) -> int:
        return len(self.handles)


def resolve_network(
    ref: str,
    by_id: dict[str, NetworkRecord],
    by_name: dict[str, NetworkRecord],
) -> Optional[NetworkRecord]:
    """Resolve an attachment reference by network id, then by name."""
    return by_id.get(ref) or by_name.get(ref)


def _network_indexes(
    networks: Sequence[NetworkRecord],
) -> tuple[dict[str, NetworkRecord], dict[str, NetworkRecord]]:
    by_id: dict[str, NetworkRecord] = {}
    by_name: dict[str, NetworkRecord] = {}
    for network in networks:
        by_id.setdefault(network.id, network)
        by_name.setdefault(network.name, network)
    return by_id, by_name


def _allocate_gwbridge_handles(placement: Placement, table: HandleTable) -> None:
    for host_id in placement.host_ids:
        gwbridge_id = placement.gwbridge_by_host.get(host_id)
        if gwbridge_id is None:
            continue
        gwbridge = placement.entity(gwbridge_id)
        host = placement.entity(host_id)
        for container_id in placement.containers_by_host.get(host_id, ()):
            container = placement.entity(container_id)
            table.add(
                HandleRef(
                    gwbridge_id,
                    container_id,
                    relative_offset(gwbridge, container.center_x),
                    facing_side(gwbridge, container),
                )
            )
        table.add(HandleRef(gwbridge_id, host_id, CENTER, facing_side(gwbridge, host)))
        table.add(HandleRef(host_id, gwbridge_id, CENTER, facing_side(host, gwbridge)))


def _allocate_overlay_handles(
    placement: Placement, networks: Sequence[NetworkRecord], table: HandleTable
) -> None:
    by_id, by_name = _network_indexes(networks)
    stack_order = {network_id: i for i, network_id in enumerate(placement.overlay_ids)}

    for host_id in placement.host_ids:
        for container_id in placement.containers_by_host.get(host_id, ()):
            container = placement.entity(container_id)
            attached: dict[str, NetworkRecord] = {}
            for attachment in container.ref.network_attachments:  # type: ignore[union-attr]
                network = resolve_network(attachment.network_ref, by_id, by_name)
                if network is None:
                    log.debug(
                        "Dropping attachment of container %s: network %s not found",
                        container_id,
                        attachment.network_ref,
                    )
                    continue
                if network.id in stack_order:
                    attached.setdefault(network.id, network)

            ordered = sorted(attached.values(), key=lambda n: stack_order[n.id])
            names = Counter(n.name for n in ordered)
            for network, offset in zip(ordered, spread_offsets(len(ordered))):
                overlay = placement.entity(network.id)
                table.add(
                    HandleRef(
                        network.id,
                        container_id,
                        relative_offset(overlay, container.center_x),
                        facing_side(overlay, container),
                    )
                )
                key = network.name if names[network.name] == 1 else network.id
                table.add(HandleRef(container_id, key, offset, facing_side(container, overlay)))
                table.container_keys[(network.id, container_id)] = key
                table.overlay_links.append((network.id, container_id))


def _allocate_ingress_handles(placement: Placement, table: HandleTable) -> None:
    if placement.ingress_id is None:
        return
    ingress = placement.entity(placement.ingress_id)
    for host_id in placement.host_ids:
        gwbridge_id = placement.gwbridge_by_host.get(host_id)
        if gwbridge_id is None:
            continue
        gwbridge = placement.entity(gwbridge_id)
        if not gwbridge.ref.ingress_link:  # type: ignore[union-attr]
            continue
        table.add(
            HandleRef(
                ingress.id,
                gwbridge_id,
                relative_offset(ingress, gwbridge.center_x),
                facing_side(ingress, gwbridge),
            )
        )
        table.add(
            HandleRef(
                gwbridge_id,
                ingress.id,
                claim_offset(table.offsets(gwbridge_id)),
                facing_side(gwbridge, ingress),
            )
        )
        table.ingress_links.append(gwbridge_id)


def _allocate_host_overlay_handles(placement: Placement, table: HandleTable) -> None:
    for network_id in placement.overlay_ids:
        overlay = placement.entity(network_id)
        seen: set[str] = set()
        for host_id in overlay.ref.peers:  # type: ignore[union-attr]
            if host_id in seen:
                continue
            seen.add(host_id)
            if host_id not in placement.host_ids:
                log.debug("Skipping peer %s of overlay %s: host not placed", host_id, network_id)
                continue
            host = placement.entity(host_id)
            table.add(
                HandleRef(
                    network_id,
                    host_id,
                    claim_offset(
                        table.offsets(network_id), relative_offset(overlay, host.center_x)
                    ),
                    facing_side(overlay, host),
                )
            )
            table.add(
                HandleRef(
                    host_id,
                    network_id,
                    claim_offset([CENTER, *table.offsets(host_id)]),
                    facing_side(host, overlay),
                )
            )
            table.host_overlay_links.append((network_id, host_id))


def _allocate_external_handles(placement: Placement, table: HandleTable) -> None:
    if placement.external_id is None:
        return
    external = placement.entity(placement.external_id)
    for host_id in placement.host_ids:
        host = placement.entity(host_id)
        table.add(
            HandleRef(
                external.id,
                host_id,
                relative_offset(external, host.center_x),
                facing_side(external, host),
            )
        )


def allocate_handles(placement: Placement, networks: Sequence[NetworkRecord]) -> HandleTable:
    """
    Compute every handle of a placement.

    Args:
        placement: Output of place_entities()
        networks: All networks of the snapshot, used to resolve attachments

    Returns:
        HandleTable with handles and resolved links
    """
    table = HandleTable()
    if not placement.entities:
        return table
    _allocate_gwbridge_handles(placement, table)
    _allocate_overlay_handles(placement, networks, table)
    _allocate_ingress_handles(placement, table)
    _allocate_host_overlay_handles(placement, table)
    _allocate_external_handles(placement, table)
    return table


__all__ = [
    "CENTER",
    "HandleTable",
    "allocate_handles",
    "claim_offset",
    "facing_side",
    "relative_offset",
    "resolve_network",
    "spread_offsets",
]
