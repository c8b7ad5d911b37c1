"""
swarm-layout: Layered topology layout for Docker Swarm clusters.

This package converts a snapshot of swarm hosts, containers and networks
into absolute screen geometry for every entity plus a rule-derived set of
connection edges with stable attachment points.

Pipeline stages:
- planner: fixed vertical layer order and host extents
- placer: absolute geometry of hosts, containers and networks
- handles: per-counterpart anchor offsets on shared entities
- edges: ordered connectivity rules
- result: the LayoutResult handed to the rendering layer
"""

import logging

__version__ = "0.1.0"

# Configuration
from .config import DEFAULT_CONFIG, LayoutConfig

# Docker Engine API ingestion
from .docker import snapshot_from_api

# Layout entry points
from .engine import TopologyLayout, layout

# Metrics for layout quality evaluation
from .metrics import (
    edge_lengths,
    edge_slant,
    layout_bounds,
    layout_quality_summary,
    overlapping_pairs,
)
from .placer import TopologyWarning
from .result import EMPTY_RESULT, LayoutResult

# Snapshots
from .snapshot import SnapshotDiff, TopologySnapshot, diff_snapshots, snapshots_equal
from .types import (
    ContainerRecord,
    Edge,
    EdgeKind,
    EntityKind,
    Event,
    EventType,
    HandleRef,
    HostRecord,
    HostRole,
    Layer,
    NetworkAttachment,
    NetworkRecord,
    PlacedEntity,
    Side,
)

# Validation
from .validation import (
    DuplicateIdError,
    InvalidConfigError,
    InvalidContainerError,
    InvalidHostError,
    InvalidNetworkError,
    ValidationError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Entry points
    "TopologyLayout",
    "layout",
    "LayoutResult",
    "EMPTY_RESULT",
    # Configuration
    "LayoutConfig",
    "DEFAULT_CONFIG",
    # Snapshots
    "TopologySnapshot",
    "SnapshotDiff",
    "diff_snapshots",
    "snapshots_equal",
    "snapshot_from_api",
    # Types
    "HostRecord",
    "HostRole",
    "ContainerRecord",
    "NetworkAttachment",
    "NetworkRecord",
    "PlacedEntity",
    "HandleRef",
    "Edge",
    "EdgeKind",
    "EntityKind",
    "Layer",
    "Side",
    "Event",
    "EventType",
    # Metrics
    "edge_lengths",
    "edge_slant",
    "overlapping_pairs",
    "layout_bounds",
    "layout_quality_summary",
    # Errors and warnings
    "ValidationError",
    "InvalidConfigError",
    "InvalidHostError",
    "InvalidContainerError",
    "InvalidNetworkError",
    "DuplicateIdError",
    "TopologyWarning",
]
