"""
Small formatting helpers.

Used by the CLI to print compact summaries of resolver results.
"""

from __future__ import annotations

from fiberviability.domain.models import DistributionNode, ProximityResult


def one_line_summary(result: ProximityResult) -> str:
    """Render a compact single-line summary for a proximity result."""
    parts = [
        f"{result.name}",
        f"{result.distance_meters:.1f}m",
        f"tier={result.viability_tier}",
        f"capacity={result.capacity_available}/{result.capacity_total}",
    ]
    return " | ".join(parts)


def node_line(node: DistributionNode) -> str:
    """Render a node as `name (lat, lng) address`."""
    where = f"({node.location.lat:.6f}, {node.location.lng:.6f})" if node.location else "(no coordinates)"
    address = f"  {node.address}" if node.address else ""
    return f"{node.name} {where}{address}"
