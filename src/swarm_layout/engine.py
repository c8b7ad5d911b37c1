"""
Topology layout entry points.

``layout(snapshot)`` runs the whole pipeline once:

    snapshot -> plan_layers -> place_entities -> allocate_handles
             -> generate_edges -> assemble_result

TopologyLayout wraps the same pipeline with a fixed configuration and
start/end event callbacks. It keeps no state between runs: every call
recomputes everything from its snapshot and returns a new LayoutResult.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from typing_extensions import Self

from .config import DEFAULT_CONFIG, LayoutConfig
from .edges import generate_edges
from .handles import allocate_handles
from .placer import place_entities
from .planner import plan_layers
from .result import EMPTY_RESULT, LayoutResult, assemble_result
from .snapshot import TopologySnapshot, as_snapshot
from .types import Event, EventType
from .validation import validate_unique_ids

log = logging.getLogger(__name__)


class TopologyLayout:
    """
    Layered swarm topology layout.

    Example:
        engine = TopologyLayout(config=LayoutConfig(horizontal_gap=120))
        result = engine.run({
            "hosts": [{"id": "node-1", "role": "manager", "containers": []}],
            "networks": [],
        })
        for entity in result.entities:
            print(entity.id, entity.x, entity.y, entity.width, entity.height)
    """

    def __init__(
        self,
        *,
        config: Optional[LayoutConfig] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize the layout engine.

        Args:
            config: Layout geometry (defaults to DEFAULT_CONFIG)
            on_start: Callback for start event
            on_end: Callback for end event
        """
        self._config: LayoutConfig = config if config is not None else DEFAULT_CONFIG
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}
        if on_start:
            self._events[EventType.start] = on_start
        if on_end:
            self._events[EventType.end] = on_end

    @property
    def config(self) -> LayoutConfig:
        """Get the layout geometry."""
        return self._config

    @config.setter
    def config(self, value: LayoutConfig) -> None:
        """Set the layout geometry."""
        if not isinstance(value, LayoutConfig):
            raise TypeError(f"config must be a LayoutConfig, got {type(value).__name__}")
        self._config = value

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a layout event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """Trigger an event, calling the registered callback."""
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def run(self, snapshot: TopologySnapshot | Any) -> LayoutResult:
        """
        Lay out one snapshot.

        Args:
            snapshot: TopologySnapshot, or a mapping with "hosts", "networks"
                and optional flat "containers"

        Returns:
            A new LayoutResult; empty when the snapshot has no hosts

        Raises:
            ValidationError: If any record is malformed. Nothing is returned
                in that case, not even a partial result.
        """
        return self._run(snapshot, stacklevel=3)

    def _run(self, snapshot: TopologySnapshot | Any, stacklevel: int) -> LayoutResult:
        # stacklevel counts from here: 1 is _run, 2 its public caller, 3 the user
        snap = as_snapshot(snapshot)
        hosts = snap.grouped_hosts()
        validate_unique_ids(hosts, snap.networks)

        self.trigger({"type": EventType.start, "hosts": len(hosts)})

        if not hosts:
            result = EMPTY_RESULT
        else:
            plan = plan_layers(hosts, snap.networks, self._config)
            placement = place_entities(
                hosts, snap.networks, plan, self._config, stacklevel=stacklevel + 1
            )
            handles = allocate_handles(placement, snap.networks)
            edges = generate_edges(placement, handles)
            result = assemble_result(placement, handles, edges)

        log.debug(
            "Laid out %d hosts: %d entities, %d edges, total width %.1f",
            len(hosts),
            len(result.entities),
            len(result.edges),
            result.total_width,
        )
        self.trigger(
            {
                "type": EventType.end,
                "hosts": len(hosts),
                "entities": len(result.entities),
                "edges": len(result.edges),
            }
        )
        return result


def layout(
    snapshot: TopologySnapshot | Any, config: Optional[LayoutConfig] = None
) -> LayoutResult:
    """
    Compute the layered layout of a swarm snapshot.

    Pure function: reads only its arguments and returns a new result.

    Args:
        snapshot: TopologySnapshot or mapping with "hosts", "networks" and
            optional flat "containers"
        config: Layout geometry (defaults to DEFAULT_CONFIG)

    Raises:
        ValidationError: If any record is malformed
    """
    return TopologyLayout(config=config)._run(snapshot, stacklevel=3)


__all__ = ["TopologyLayout", "layout"]
