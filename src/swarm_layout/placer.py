"""
Entity placer.

Turns the layer plan into absolute geometry for every host, container and
network. Entities are emitted layer by layer in stacking order: overlay
networks, ingress, containers, gwbridges, hosts, external network.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from .config import LayoutConfig
from .planner import LayerPlan, network_layer
from .types import EntityKind, HostRecord, Layer, NetworkRecord, PlacedEntity

log = logging.getLogger(__name__)

GWBRIDGE_DRIVERS = ("bridge", "gwbridge")


class TopologyWarning(UserWarning):
    """Warning issued when the snapshot is ambiguous but still laid out."""

    pass


def is_gwbridge_candidate(network: NetworkRecord) -> bool:
    """Check if a network's driver marks it as a possible per-host gwbridge."""
    return network.driver in GWBRIDGE_DRIVERS


def resolve_gwbridges(
    hosts: Sequence[HostRecord], networks: Sequence[NetworkRecord], *, stacklevel: int = 2
) -> dict[str, NetworkRecord]:
    """
    Find each host's gwbridge network.

    A bridge/gwbridge network belongs to a host when it names the host
    explicitly through ``host_id``, or else when its id contains the host id
    as a substring. When one network id contains several host ids the
    longest one wins. A host with several matching networks keeps the first
    (explicit owners before substring matches) and a TopologyWarning is
    issued. Hosts without a match are simply absent from the result.

    Args:
        hosts: Hosts of the snapshot
        networks: All networks of the snapshot
        stacklevel: Passed to warnings.warn; callers that wrap this function
            raise it so the warning points at their own caller

    Returns:
        Mapping of host id to its gwbridge network
    """
    host_ids = [h.id for h in hosts]
    known = set(host_ids)
    claims: dict[str, list[NetworkRecord]] = {}

    for network in networks:
        if not is_gwbridge_candidate(network):
            continue
        if network.host_id:
            if network.host_id in known:
                claims.setdefault(network.host_id, []).append(network)
            else:
                log.debug(
                    "Skipping gwbridge %s: owner host %s not in snapshot",
                    network.id,
                    network.host_id,
                )
            continue
        matches = [host_id for host_id in host_ids if host_id in network.id]
        if matches:
            claims.setdefault(max(matches, key=len), []).append(network)

    resolved: dict[str, NetworkRecord] = {}
    for host_id in host_ids:
        candidates = claims.get(host_id)
        if not candidates:
            continue
        explicit = [n for n in candidates if n.host_id]
        chosen = (explicit or candidates)[0]
        if len(candidates) > 1:
            warnings.warn(
                f"Host '{host_id}' matches {len(candidates)} gwbridge networks "
                f"({', '.join(n.id for n in candidates)}); using '{chosen.id}'.",
                TopologyWarning,
                stacklevel=stacklevel,
            )
        resolved[host_id] = chosen
    return resolved


@dataclass(frozen=True)
class Placement:
    """
    Placed entities plus the relations later stages need.

    Attributes:
        plan: Layer plan the placement was computed from
        entities: Placed entities in stacking order
        host_ids: Host ids in input order
        containers_by_host: Container ids per host, left to right
        gwbridge_by_host: Placed gwbridge network id per host
        ingress_id: Placed ingress network id, if any
        overlay_ids: Placed overlay network ids in stacking order
        external_id: Placed external network id, if any
    """

    plan: LayerPlan
    entities: tuple[PlacedEntity, ...] = ()
    host_ids: tuple[str, ...] = ()
    containers_by_host: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    gwbridge_by_host: Mapping[str, str] = field(default_factory=dict)
    ingress_id: Optional[str] = None
    overlay_ids: tuple[str, ...] = ()
    external_id: Optional[str] = None
    _index: Mapping[str, PlacedEntity] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {e.id: e for e in self.entities})

    def get(self, entity_id: str) -> Optional[PlacedEntity]:
        return self._index.get(entity_id)

    def entity(self, entity_id: str) -> PlacedEntity:
        return self._index[entity_id]

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._index


def _network_entity(
    network: NetworkRecord, layer: Layer, x: float, y: float, width: float, height: float
) -> PlacedEntity:
    return PlacedEntity(network.id, EntityKind.NETWORK, layer, x, y, width, height, network)


def place_entities(
    hosts: Sequence[HostRecord],
    networks: Sequence[NetworkRecord],
    plan: LayerPlan,
    config: LayoutConfig,
    *,
    stacklevel: int = 2,
) -> Placement:
    """
    Assign absolute x/y/width/height to every entity.

    - hosts: span from the plan, fixed host height, host layer
    - containers: left to right inside their host's span, container layer
    - gwbridge: the host's x/width, gwbridge layer (only if resolved)
    - overlay networks: full width, stacked by index inside the overlay band
    - ingress / external: full width, first network of each class only

    Args:
        hosts: Hosts with grouped containers
        networks: All networks of the snapshot
        plan: Output of plan_layers()
        config: Layout geometry
        stacklevel: Stack level of the ambiguous gwbridge warning, relative
            to this function

    Returns:
        Placement holding the entities and their relations
    """
    if plan.is_empty:
        return Placement(plan)

    entities: list[PlacedEntity] = []
    full_x = plan.origin_x
    full_w = plan.total_width

    gwbridges = resolve_gwbridges(hosts, networks, stacklevel=stacklevel + 1)
    gwbridge_ids = {n.id for n in gwbridges.values()}

    overlays: list[NetworkRecord] = []
    ingress: Optional[NetworkRecord] = None
    external: Optional[NetworkRecord] = None
    for network in networks:
        if network.id in gwbridge_ids:
            continue
        layer = network_layer(network)
        if layer is Layer.OVERLAY:
            overlays.append(network)
        elif layer is Layer.INGRESS:
            if ingress is None:
                ingress = network
            else:
                log.debug("Skipping extra ingress network %s", network.id)
        elif layer is Layer.EXTERNAL:
            if external is None:
                external = network
            else:
                log.debug("Skipping extra external network %s", network.id)

    # Overlay networks (top)
    band = plan.band(Layer.OVERLAY)
    for index, network in enumerate(overlays):
        y = band.y + index * (config.overlay_network_height + config.overlay_stack_gap)
        entities.append(
            _network_entity(
                network, Layer.OVERLAY, full_x, y, full_w, config.overlay_network_height
            )
        )

    # Ingress
    if ingress is not None:
        band = plan.band(Layer.INGRESS)
        entities.append(
            _network_entity(ingress, Layer.INGRESS, full_x, band.y, full_w, band.height)
        )

    # Containers, left to right within their host
    band = plan.band(Layer.CONTAINERS)
    containers_by_host: dict[str, tuple[str, ...]] = {}
    for host in hosts:
        span = plan.span(host.id)
        for index, container in enumerate(host.containers):
            x = span.x + index * config.container_pitch
            entities.append(
                PlacedEntity(
                    container.id,
                    EntityKind.CONTAINER,
                    Layer.CONTAINERS,
                    x,
                    band.y,
                    config.container_width,
                    config.container_height,
                    container,
                )
            )
        containers_by_host[host.id] = tuple(c.id for c in host.containers)

    # Per-host gwbridge networks
    band = plan.band(Layer.GWBRIDGE)
    gwbridge_by_host: dict[str, str] = {}
    for host in hosts:
        gwbridge = gwbridges.get(host.id)
        if gwbridge is None:
            continue
        span = plan.span(host.id)
        entities.append(
            _network_entity(gwbridge, Layer.GWBRIDGE, span.x, band.y, span.width, band.height)
        )
        gwbridge_by_host[host.id] = gwbridge.id

    # Hosts
    band = plan.band(Layer.HOSTS)
    for host in hosts:
        span = plan.span(host.id)
        entities.append(
            PlacedEntity(
                host.id, EntityKind.HOST, Layer.HOSTS, span.x, band.y, span.width, band.height, host
            )
        )

    # External network (bottom)
    if external is not None:
        band = plan.band(Layer.EXTERNAL)
        entities.append(
            _network_entity(external, Layer.EXTERNAL, full_x, band.y, full_w, band.height)
        )

    return Placement(
        plan=plan,
        entities=tuple(entities),
        host_ids=tuple(h.id for h in hosts),
        containers_by_host=containers_by_host,
        gwbridge_by_host=gwbridge_by_host,
        ingress_id=ingress.id if ingress is not None else None,
        overlay_ids=tuple(n.id for n in overlays),
        external_id=external.id if external is not None else None,
    )


__all__ = [
    "GWBRIDGE_DRIVERS",
    "TopologyWarning",
    "Placement",
    "is_gwbridge_candidate",
    "resolve_gwbridges",
    "place_entities",
]
