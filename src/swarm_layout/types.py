"""
Common types for the swarm topology layout engine.

This module provides the records consumed by the engine and the derived
structures it produces:
- HostRecord, ContainerRecord, NetworkAttachment, NetworkRecord: input snapshot
- PlacedEntity: absolute geometry of one host, container or network
- HandleRef: connection anchor along an entity's width
- Edge: a rule-derived connection between two placed entities
- Side, EntityKind, EdgeKind, Layer: enumerations shared by all stages
- EventType, Event: layout lifecycle events
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional, TypedDict, Union


class Side(Enum):
    """Side of a placed entity where handles sit."""

    NORTH = "north"
    SOUTH = "south"

    def opposite(self) -> Side:
        """Get the opposite side."""
        return Side.SOUTH if self is Side.NORTH else Side.NORTH


class EntityKind(Enum):
    """Kind of a placed entity."""

    HOST = "host"
    CONTAINER = "container"
    NETWORK = "network"


class EdgeKind(Enum):
    """
    Rendering class of an edge.

    - default: direct link
    - vxlan: container to gwbridge tunnel (dashed, labelled)
    - ingress: overlay or routing-mesh link
    """

    DEFAULT = "default"
    VXLAN = "vxlan"
    INGRESS = "ingress"


class Layer(IntEnum):
    """
    Fixed vertical stacking order, first layer at the top.

    The order is domain policy and never changes; only the rendering
    direction (top-to-bottom or bottom-to-top) may flip it on screen.
    """

    OVERLAY = 0
    INGRESS = 1
    CONTAINERS = 2
    GWBRIDGE = 3
    HOSTS = 4
    EXTERNAL = 5


class HostRole(Enum):
    """Swarm role of a host."""

    MANAGER = "manager"
    WORKER = "worker"


class EventType(IntEnum):
    """
    Layout lifecycle events.

    - start: Layout computation has begun
    - end: Layout result is complete
    """

    start = 0
    end = 1


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    hosts: int
    entities: int
    edges: int


# =============================================================================
# Input records
# =============================================================================


@dataclass(frozen=True)
class NetworkAttachment:
    """
    A container's reference to a network.

    The reference is an id or a name and may not resolve to any network.
    """

    network_ref: str
    driver: str = ""
    ip_address: Optional[str] = None


@dataclass(frozen=True)
class ContainerRecord:
    """A running task/container scheduled on a host."""

    id: str
    service_name: str = ""
    image: str = ""
    status: str = ""
    network_attachments: tuple[NetworkAttachment, ...] = ()
    host_id: Optional[str] = None  # only used by the flat input form


@dataclass(frozen=True)
class HostRecord:
    """A swarm member and the containers placed on it."""

    id: str
    hostname: str = ""
    role: HostRole = HostRole.WORKER
    status: Optional[str] = None
    labels: Mapping[str, str] = field(default_factory=dict)
    containers: tuple[ContainerRecord, ...] = ()

    @property
    def container_count(self) -> int:
        return len(self.containers)


@dataclass(frozen=True)
class NetworkRecord:
    """
    A docker network.

    Attributes:
        id: Network identifier
        name: Network name ("ingress", "docker_gwbridge", ...)
        driver: overlay, bridge, gwbridge or host
        scope: swarm or local
        type: "external" for the singular external network, else None
        subnet: CIDR of the first IPAM config
        gateway: Gateway address of the first IPAM config
        host_id: Explicit owner host for a gwbridge network
        ingress_link: Gwbridge carries the ingress sandbox link
        peers: Host ids declared as peers of an overlay network
    """

    id: str
    name: str
    driver: str
    scope: str = "swarm"
    type: Optional[str] = None
    subnet: Optional[str] = None
    gateway: Optional[str] = None
    host_id: Optional[str] = None
    ingress_link: bool = False
    peers: tuple[str, ...] = ()


Record = Union[HostRecord, ContainerRecord, NetworkRecord]


# =============================================================================
# Derived structures
# =============================================================================


@dataclass(frozen=True)
class PlacedEntity:
    """
    Absolute geometry of one entity.

    (x, y) is the top-left corner in screen coordinates (y grows downward).
    """

    id: str
    kind: EntityKind
    layer: Layer
    x: float
    y: float
    width: float
    height: float
    ref: Record

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def anchor(self, side: Side, offset: float = 0.5) -> tuple[float, float]:
        """
        Get the (x, y) position of a handle on this entity.

        Args:
            side: Which side of the entity
            offset: Position along the width (0.0 to 1.0)

        Returns:
            (x, y) coordinates of the handle
        """
        x = self.x + self.width * offset
        if side is Side.NORTH:
            return (x, self.y)
        return (x, self.bottom)


@dataclass(frozen=True)
class HandleRef:
    """
    A connection anchor on an entity.

    Attributes:
        owner_id: Entity the handle sits on
        counterpart_id: Entity (or network name) on the other end
        offset: Position along the owner's width (0.0 to 1.0)
        side: Side of the owner facing the counterpart
    """

    owner_id: str
    counterpart_id: str
    offset: float
    side: Side = Side.NORTH

    @property
    def handle_id(self) -> str:
        """Stable identifier of the handle on its owner."""
        return f"handle-{self.counterpart_id}"


@dataclass(frozen=True)
class Edge:
    """
    A connection between two placed entities.

    Attributes:
        id: Edge identifier, unique per endpoint pair
        source_id: Source entity id
        target_id: Target entity id
        kind: Rendering class of the edge
        source_handle: Anchor on the source, None for the default anchor
        target_handle: Anchor on the target, None for the default anchor
        label: Optional text shown on the edge
        dashed: Rendering hint for tunnel-style links
        rule: Name of the rule that produced the edge
    """

    id: str
    source_id: str
    target_id: str
    kind: EdgeKind = EdgeKind.DEFAULT
    source_handle: Optional[HandleRef] = None
    target_handle: Optional[HandleRef] = None
    label: Optional[str] = None
    dashed: bool = False
    rule: str = ""


def enum_value(value: Any) -> Any:
    """Return ``value.value`` for enum members, the value itself otherwise."""
    return value.value if isinstance(value, Enum) else value


__all__ = [
    "Side",
    "EntityKind",
    "EdgeKind",
    "Layer",
    "HostRole",
    "EventType",
    "Event",
    "NetworkAttachment",
    "ContainerRecord",
    "HostRecord",
    "NetworkRecord",
    "Record",
    "PlacedEntity",
    "HandleRef",
    "Edge",
    "enum_value",
]
