"""
Layout configuration.

All geometry constants used by the planner, placer and handle allocator
live in a single immutable LayoutConfig value that is passed explicitly
into the engine. Defaults reproduce the dashboard's stock geometry.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from .validation import InvalidConfigError, validate_non_negative, validate_positive

ORIENTATIONS = ("top-to-bottom", "bottom-to-top")


@dataclass(frozen=True)
class LayoutConfig:
    """
    Geometry of the layered swarm diagram.

    Attributes:
        container_width: Width of a container box
        container_height: Height of a container box
        min_host_width: Minimum host width (hosts with few containers)
        host_height: Height of a host box
        external_network_height: Height of the external network band
        ingress_network_height: Height of the ingress network band
        gwbridge_network_height: Height of a per-host gwbridge band
        overlay_network_height: Height of one overlay network band
        overlay_stack_gap: Vertical gap between stacked overlay networks
        container_gap: Horizontal gap between containers of one host
        layer_gap: Vertical gap between layers
        horizontal_gap: Horizontal gap between hosts
        start_x: X coordinate of the leftmost host
        start_y: Y coordinate of the first layer
        orientation: 'top-to-bottom' puts overlay networks at the top,
            'bottom-to-top' puts the external network at the top.
    """

    container_width: float = 120.0
    container_height: float = 80.0
    min_host_width: float = 380.0
    host_height: float = 400.0
    external_network_height: float = 40.0
    ingress_network_height: float = 40.0
    gwbridge_network_height: float = 60.0
    overlay_network_height: float = 40.0
    overlay_stack_gap: float = 10.0
    container_gap: float = 10.0
    layer_gap: float = 40.0
    horizontal_gap: float = 200.0
    start_x: float = 50.0
    start_y: float = 100.0
    orientation: str = "top-to-bottom"

    def __post_init__(self) -> None:
        for name in (
            "container_width",
            "container_height",
            "min_host_width",
            "host_height",
            "external_network_height",
            "ingress_network_height",
            "gwbridge_network_height",
            "overlay_network_height",
        ):
            validate_positive(getattr(self, name), name)
        for name in ("overlay_stack_gap", "container_gap", "layer_gap", "horizontal_gap"):
            validate_non_negative(getattr(self, name), name)
        if self.orientation not in ORIENTATIONS:
            raise InvalidConfigError(
                f"orientation must be one of {ORIENTATIONS}, got {self.orientation!r}"
            )

    def host_width(self, container_count: int) -> float:
        """
        Width of a host holding ``container_count`` containers.

        width = max(min_host_width, n * container_width + (n - 1) * container_gap)
        """
        if container_count <= 0:
            return self.min_host_width
        containers_width = (
            container_count * self.container_width + (container_count - 1) * self.container_gap
        )
        return max(self.min_host_width, containers_width)

    @property
    def container_pitch(self) -> float:
        """Horizontal distance between the left edges of adjacent containers."""
        return self.container_width + self.container_gap

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> LayoutConfig:
        """
        Build a configuration from a plain mapping (e.g. parsed JSON/TOML).

        Raises:
            InvalidConfigError: If the mapping holds unknown keys or bad values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidConfigError(f"Unknown layout config keys: {', '.join(unknown)}")
        return cls(**dict(values))


DEFAULT_CONFIG = LayoutConfig()


__all__ = ["LayoutConfig", "DEFAULT_CONFIG", "ORIENTATIONS"]
