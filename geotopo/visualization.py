"""Map preview rendering for synthesized topologies."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt

from geotopo.log_config import get_logger
from geotopo.models import NodeStatus

if TYPE_CHECKING:
    from geotopo.models import MapCoordinate, Topology
    from geotopo.projection import MapProjector

logger = get_logger(__name__)

STATUS_COLORS = {
    NodeStatus.ONLINE: "#2e7d32",
    NodeStatus.OFFLINE: "#757575",
    NodeStatus.WARNING: "#f9a825",
    NodeStatus.CRITICAL: "#c62828",
    NodeStatus.MAINTENANCE: "#1565c0",
    NodeStatus.UNKNOWN: "#9e9e9e",
}


def node_positions(topology: Topology, projector: MapProjector) -> dict[str, MapCoordinate]:
    """Project every node of a topology onto the viewport."""
    return {
        node.node_id: projector.convert(
            node.coordinates.latitude, node.coordinates.longitude
        )
        for node in topology.nodes
    }


def export_topology_map(
    topology: Topology,
    projector: MapProjector,
    output_path: Path,
    dpi: int = 150,
    show_labels: bool = True,
) -> None:
    """Render nodes and edges at their projected map positions.

    Args:
        topology: Topology to draw.
        projector: Projection used to place nodes.
        output_path: Image path; format follows the suffix (PNG, JPEG, SVG).
        dpi: Output resolution.
        show_labels: Annotate nodes with their names.

    Raises:
        ValueError: If the topology has no nodes.
        RuntimeError: If rendering or saving fails.
    """
    if not topology.nodes:
        raise ValueError("Cannot create map: topology has no nodes")

    positions = node_positions(topology, projector)
    width, height = projector.viewport_width, projector.viewport_height

    fig = None
    try:
        fig, ax = plt.subplots(figsize=(12, 12 * height / width))

        for edge in topology.edges:
            a = positions.get(edge.source)
            b = positions.get(edge.target)
            if a is None or b is None:
                continue
            ax.plot([a.x, b.x], [a.y, b.y], color="#90a4ae", linewidth=0.8, zorder=1)

        for node in topology.nodes:
            pos = positions[node.node_id]
            ax.scatter(
                [pos.x],
                [pos.y],
                s=40,
                color=STATUS_COLORS.get(node.status, "#9e9e9e"),
                edgecolors="black",
                linewidths=0.4,
                zorder=2,
            )
            if show_labels and node.name:
                ax.annotate(
                    node.name,
                    (pos.x, pos.y),
                    xytext=(3, 3),
                    textcoords="offset points",
                    fontsize=6,
                )

        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)  # screen coordinates: y grows downward
        ax.set_aspect("equal")
        ax.set_axis_off()
        ax.set_title(
            f"{topology.name} ({len(topology.nodes)} nodes, {len(topology.edges)} edges)",
            fontsize=12,
        )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    except Exception as e:
        if output_path.exists():
            output_path.unlink()
        raise RuntimeError(f"Failed to export topology map to {output_path}: {e}") from e
    finally:
        if fig is not None:
            plt.close(fig)

    logger.info(f"Saved topology map → {output_path}")
