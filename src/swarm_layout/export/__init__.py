"""
Export functionality for topology layouts.

This module provides functions to export layout results to:
- React Flow: node/edge dictionaries for the dashboard canvas
- SVG: Scalable Vector Graphics for documentation and reports

Example usage:
    from swarm_layout import layout
    from swarm_layout.export import to_reactflow, to_svg

    result = layout({"hosts": [{"id": "node-1", "containers": []}], "networks": []})

    # Export to React Flow
    graph = to_reactflow(result)

    # Export to SVG
    with open("topology.svg", "w") as f:
        f.write(to_svg(result))
"""

from .reactflow import to_reactflow
from .svg import to_svg

__all__ = [
    "to_reactflow",
    "to_svg",
]
